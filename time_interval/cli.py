import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from colorama import Fore, Style, init as colorama_init

from . import formatting, parsing, smoke
from .utcdate import parse_anchor, to_epoch_ms

DEFAULT_SWEEP_ANCHOR = "2000"

# Clock-style preset: "1 day 04:05:06"
CLOCK_OPTIONS: Dict[str, Any] = {
    "thresholds": {"years": False, "months": False, "weeks": False, "days": True, "seconds": True},
    "strings": {
        "days": (" day ", " days "),
        "hours": ":",
        "minutes": ":",
        "seconds": "",
        "joiner": "",
        "final_joiner": "",
        "spacer": "",
    },
    "pad": {"hours": True, "minutes": True, "seconds": True},
    "display_zero": {"hours": True, "minutes": True, "seconds": True},
}


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="time-interval", description="Parse and say time intervals")
    p.add_argument("--verbose", action="store_true", help="Show debug logging")

    sub = p.add_subparsers(dest="cmd", required=False)

    p_parse = sub.add_parser("parse", help="Parse a duration like '1y 2mo 3d' into milliseconds")
    p_parse.add_argument("text", nargs="+", help="Duration text")
    p_parse.add_argument("--anchor", help="Start date for years/months (ISO date or year, UTC)")

    p_str = sub.add_parser("stringify", help="Say a millisecond interval in words")
    p_str.add_argument("interval", help="Interval in milliseconds (may be negative)")
    _add_stringify_options(p_str)

    p_approx = sub.add_parser("approx", help="Say a millisecond interval as one approximate unit")
    p_approx.add_argument("interval", help="Interval in milliseconds (may be negative)")
    p_approx.add_argument("--round-down", action="store_true", help="Round down instead of up")

    p_round = sub.add_parser("roundtrip", help="Parse a duration, then say it against the same anchor")
    p_round.add_argument("text", nargs="+", help="Duration text")
    _add_stringify_options(p_round)

    sub.add_parser("regex", help="Print the duration grammar as a regular expression literal")
    sub.add_parser("smoke", help="Run the built-in smoke checks")

    p_sweep = sub.add_parser("sweep", help="Step an interval and print every change of the clock-style output")
    p_sweep.add_argument("--step", default="-1h", help="Step per iteration as a duration, e.g. --step=-30m (default -1h)")
    p_sweep.add_argument("--anchor", default=DEFAULT_SWEEP_ANCHOR, help="Start date (default 2000)")
    p_sweep.add_argument("--stop-prefix", default="365 days", help="Stop once the output starts with this")
    p_sweep.add_argument("--limit", type=int, default=100000, help="Maximum number of steps")

    sub.add_parser("interactive", help="Run interactive menu")
    return p.parse_args(argv)


def _add_stringify_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--anchor", help="Start date for years/months (ISO date or year, UTC)")
    p.add_argument("--options", help="JSON file with thresholds/pad/display_zero/strings")
    p.add_argument("--pad", action="store_true", help="Zero-pad every unit")
    p.add_argument("--display-zero", action="store_true", help="Show units whose value is 0")
    p.add_argument("--spacer", help="Text between a number and its unit")
    p.add_argument("--joiner", help="Text between units")
    p.add_argument("--final-joiner", help="Text before the last unit")


def _parse_interval_arg(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise SystemExit(f"Invalid interval: {text!r} (expected milliseconds)")


def _parse_anchor_arg(text: Optional[str]):
    if not text:
        return None
    try:
        return parse_anchor(text)
    except ValueError as e:
        raise SystemExit(str(e))


def load_options_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SystemExit(f"Cannot read options file: {e}")
    except ValueError as e:
        raise SystemExit(f"Invalid JSON in options file: {e}")
    if not isinstance(data, dict):
        raise SystemExit("Options file must contain a JSON object")
    if isinstance(data.get("start_date"), str):
        data["start_date"] = _parse_anchor_arg(data["start_date"])
    return data


def build_options(ns: argparse.Namespace) -> Dict[str, Any]:
    options: Dict[str, Any] = load_options_file(Path(ns.options)) if ns.options else {}
    anchor = _parse_anchor_arg(ns.anchor)
    if anchor is not None:
        options["start_date"] = anchor
    if ns.pad:
        options["pad"] = True
    if ns.display_zero:
        options["display_zero"] = True
    joins = {k: v for k, v in (("spacer", ns.spacer), ("joiner", ns.joiner), ("final_joiner", ns.final_joiner))
             if v is not None}
    if joins:
        options["strings"] = {**options.get("strings", {}), **joins}
    return options


def _stringify_or_exit(interval: float, options: Dict[str, Any]) -> str:
    try:
        return formatting.stringify_interval(interval, options)
    except (TypeError, ValueError) as e:
        raise SystemExit(f"Invalid options: {e}")


def cmd_parse(text: str, anchor: Optional[str]) -> None:
    ms = parsing.parse_interval(text, _parse_anchor_arg(anchor))
    if ms is None:
        raise SystemExit(f"Not a duration: {text!r}")
    print(ms)


def cmd_stringify(interval: float, options: Dict[str, Any]) -> None:
    print(_stringify_or_exit(interval, options))


def cmd_approx(interval: float, round_down: bool) -> None:
    print(formatting.stringify_approx(interval, round_down))


def cmd_roundtrip(text: str, options: Dict[str, Any]) -> None:
    ms = parsing.parse_interval(text, options.get("start_date"))
    if ms is None:
        raise SystemExit(f"Not a duration: {text!r}")
    said = _stringify_or_exit(ms, options)
    print(f"{ms} ms")
    print(said)
    back = parsing.parse_interval(said, options.get("start_date"))
    if back == ms:
        print(Fore.GREEN + "Round trip exact.")
    elif back is None:
        print(Fore.YELLOW + "Output does not parse back (custom strings or joiners).")
    else:
        print(Fore.YELLOW + f"Round trip changed the value by {back - ms} ms (rounding).")


def cmd_regex() -> None:
    print(f"/{parsing.INTERVAL_RE.pattern}/i")


def cmd_smoke() -> None:
    results = smoke.run_smoke()
    ok = 0
    for r in results:
        if r.ok:
            ok += 1
            print(Fore.GREEN + f"✔ {r.case.describe()} {r.detail}")
        else:
            print(Fore.RED + f"❌ {r.case.describe()} {r.detail}")
    failed = len(results) - ok
    print(Style.BRIGHT + f"{ok} succeeded and {failed} failed out of {len(results)}")
    if failed:
        raise SystemExit(1)


def cmd_sweep(step_text: str, anchor: Optional[str], stop_prefix: str, limit: int) -> None:
    start = _parse_anchor_arg(anchor)
    step = parsing.parse_interval(step_text, start)
    if not step:
        raise SystemExit(f"Invalid --step: {step_text!r}")
    stringifier = formatting.compile_stringifier(CLOCK_OPTIONS)
    start_ms = to_epoch_ms(start) if start is not None else None
    last = ""
    interval = 0
    for _ in range(limit):
        outcome = stringifier.stringify(interval, start_ms)
        # The clock part always changes; compare only what comes before it
        if outcome[:-8] != last[:-8]:
            print(f"{outcome} from {interval}ms")
            if outcome.startswith(stop_prefix):
                return
            last = outcome
        interval += step
    print(Fore.YELLOW + f"Stopped after {limit} steps.")


def _input_with_default(prompt: str, default: str) -> str:
    s = input(f"{prompt} [{default}]: ").strip()
    return s if s else default


def interactive_menu() -> None:
    anchor_text = ""
    while True:
        print("")
        print(Fore.CYAN + Style.BRIGHT + "=== Time Interval ===")
        print(f"Anchor: {anchor_text or 'now'}")
        print(f"{Fore.YELLOW}1){Style.RESET_ALL} Parse a duration")
        print(f"{Fore.YELLOW}2){Style.RESET_ALL} Stringify milliseconds")
        print(f"{Fore.YELLOW}3){Style.RESET_ALL} Approximate milliseconds")
        print(f"{Fore.YELLOW}4){Style.RESET_ALL} Set anchor date")
        print(f"{Fore.YELLOW}0){Style.RESET_ALL} Quit")
        choice = input("Choose: ").strip()

        if choice == "0":
            print(Fore.GREEN + "Goodbye.")
            return
        try:
            if choice == "1":
                text = input("Duration (e.g., 1y 2mo 3d 4h): ")
                cmd_parse(text, anchor_text or None)
            elif choice == "2":
                interval = _parse_interval_arg(input("Milliseconds: ").strip())
                options = {"start_date": parse_anchor(anchor_text)} if anchor_text else {}
                cmd_stringify(interval, options)
            elif choice == "3":
                interval = _parse_interval_arg(input("Milliseconds: ").strip())
                round_down = _input_with_default("Round down? (y/N)", "n").lower() in ("y", "yes")
                cmd_approx(interval, round_down)
            elif choice == "4":
                text = _input_with_default("Anchor date (ISO date or year, empty for now)", "")
                if text:
                    parse_anchor(text)
                anchor_text = text
            else:
                print(Fore.RED + "Invalid choice")
        except SystemExit as e:
            print(Fore.RED + str(e))
        except ValueError as e:
            print(Fore.RED + str(e))


def main(argv: Optional[list] = None) -> None:
    colorama_init(autoreset=True)
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if ns.cmd is None or ns.cmd == "interactive":
        interactive_menu()
    elif ns.cmd == "parse":
        cmd_parse(" ".join(ns.text), ns.anchor)
    elif ns.cmd == "stringify":
        cmd_stringify(_parse_interval_arg(ns.interval), build_options(ns))
    elif ns.cmd == "approx":
        cmd_approx(_parse_interval_arg(ns.interval), ns.round_down)
    elif ns.cmd == "roundtrip":
        cmd_roundtrip(" ".join(ns.text), build_options(ns))
    elif ns.cmd == "regex":
        cmd_regex()
    elif ns.cmd == "smoke":
        cmd_smoke()
    elif ns.cmd == "sweep":
        cmd_sweep(ns.step, ns.anchor, ns.stop_prefix, ns.limit)
    else:
        raise SystemExit("Unknown command")


if __name__ == "__main__":
    main()
