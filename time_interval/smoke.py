"""Console smoke checks for the parser and both stringifiers.

Each case is a call and the value it must return (or the exception type it
must raise). ``run_smoke`` evaluates them without stopping at the first
failure; the CLI ``smoke`` command prints the outcome of each.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Tuple

from .formatting import compile_stringifier, stringify_approx, stringify_interval
from .parsing import parse_interval


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@dataclass(frozen=True)
class SmokeCase:
    func: Callable[..., Any]
    args: Tuple[Any, ...]
    expected: Any
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    note: str = ""

    def describe(self) -> str:
        shown = [_brief(a) for a in self.args]
        shown += [f"{k}={_brief(v)}" for k, v in self.kwargs.items()]
        return f"{getattr(self.func, '__name__', 'call')}({', '.join(shown)})"


@dataclass(frozen=True)
class SmokeResult:
    case: SmokeCase
    ok: bool
    detail: str


def _brief(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return "{...}"
    text = repr(value)
    return text if len(text) <= 30 else text[:30] + "…"


def _precompiled_nan(interval: float) -> str:
    return compile_stringifier().stringify(interval)


def _stringify_parsed(text: str, parse_from: datetime, stringify_from: datetime) -> str:
    return stringify_interval(parse_interval(text, parse_from) or 0, stringify_from)


_NOTHING = {unit: False for unit in ("years", "months", "weeks", "days", "hours", "minutes", "seconds")}
_WEEKS_AND_SECONDS = {**_NOTHING, "weeks": True, "seconds": True}
_YEARS_AND_SECONDS = {"months": False, "days": False, "hours": False, "minutes": False, "seconds": True}
_MONTHS_ONLY = {**_NOTHING, "months": True}
_YEARS_AND_MONTHS = {**_NOTHING, "years": True, "months": True}
_SHORT_STRINGS = {
    "years": "y", "months": "mo", "weeks": "w", "days": "d", "hours": "h", "minutes": "m", "seconds": "s",
    "spacer": "", "joiner": " ", "final_joiner": " ",
}

SMOKE_CASES: List[SmokeCase] = [
    SmokeCase(parse_interval, ("",), None),
    SmokeCase(parse_interval, ("5d",), 432000000),
    SmokeCase(parse_interval, ("100y -10s", _utc(1900, 1, 1)), 3155673590000),
    SmokeCase(parse_interval, ("5a",), None),
    SmokeCase(parse_interval, (".5s",), 500),
    SmokeCase(parse_interval, (" 1 YEAR 4 mo -4 h -30.5 min 100s ", _utc(1900, 1, 1)), 41891530000),
    SmokeCase(parse_interval, (" 3 y 1 months - 4 hour 15 mins -100s ", _utc(1950, 1, 1)), 97357600000),
    SmokeCase(parse_interval, ("1 week -8 days",), -86400000),
    SmokeCase(parse_interval, ("0.5 year -6 months", _utc(2000, 1, 1)), None),
    SmokeCase(parse_interval, ("2.9 months", _utc(2000, 1, 1)), None),
    SmokeCase(parse_interval, ("-2.9 months", _utc(2000, 1, 1)), None),
    SmokeCase(parse_interval, ("578 days 16 hours 53 minutes 20 seconds",), 50000000000),
    SmokeCase(stringify_interval, (500000,), "8 minutes and 20 seconds"),
    SmokeCase(stringify_interval, (-5000000,), "1 hour and 23 minutes"),
    SmokeCase(stringify_interval, (50000000,), "13 hours and 53 minutes"),
    SmokeCase(stringify_interval, (-500000000,), "5 days, 18 hours and 53 minutes"),
    SmokeCase(stringify_interval, (5000000000,), "57 days, 20 hours and 53 minutes"),
    SmokeCase(stringify_interval, (-500000000, {"thresholds": _WEEKS_AND_SECONDS}), "500000 seconds"),
    SmokeCase(
        stringify_interval,
        (5000000000, {"thresholds": {**_WEEKS_AND_SECONDS, "minutes": True}}),
        "8 weeks, 2693 minutes and 20 seconds",
    ),
    SmokeCase(stringify_interval, (50000000000,), "578 days, 16 hours and 53 minutes"),
    SmokeCase(stringify_interval, (-50000000000,), "578 days, 16 hours and 53 minutes"),
    SmokeCase(
        stringify_interval,
        (50000000000, {
            "thresholds": {"days": False, "hours": False, "minutes": False, "seconds": True},
            "strings": {"seconds": "secs"},
        }),
        "50000000 secs",
    ),
    SmokeCase(stringify_interval, (50000000000, _utc(1950, 1, 1)), "1 year, 7 months, 1 day, 16 hours and 53 minutes"),
    SmokeCase(stringify_interval, (-50000000000, _utc(1950, 1, 1)), "1 year, 6 months, 29 days, 16 hours and 53 minutes"),
    SmokeCase(
        stringify_interval,
        (50000000000, {"start_date": _utc(2020, 1, 1), "thresholds": _YEARS_AND_SECONDS}),
        "1 year and 18377600 seconds",
        note="years and seconds over a leap year",
    ),
    SmokeCase(
        stringify_interval,
        (-50000000000, {"start_date": _utc(2020, 1, 1), "thresholds": _YEARS_AND_SECONDS}),
        "1 year and 18464000 seconds",
    ),
    SmokeCase(stringify_interval, (50000000000, {"start_date": _utc(2020, 1, 1), "thresholds": _MONTHS_ONLY}), "19 months"),
    SmokeCase(stringify_interval, (-50000000000, {"start_date": _utc(2020, 1, 1), "thresholds": _MONTHS_ONLY}), "19 months"),
    SmokeCase(stringify_interval, (-50000000000, {"start_date": _utc(2020, 1, 1), "thresholds": _NOTHING}), ""),
    SmokeCase(
        stringify_interval,
        (1234567890123, {"start_date": _utc(2000, 1, 1), "thresholds": _YEARS_AND_MONTHS}),
        "39 years and 1 month",
    ),
    SmokeCase(
        stringify_interval,
        (-1234567890123, {"start_date": _utc(2000, 1, 1), "thresholds": _YEARS_AND_MONTHS}),
        "39 years and 1 month",
    ),
    SmokeCase(stringify_interval, (123, {"start_date": _utc(2000, 1, 1), "thresholds": _YEARS_AND_MONTHS}), "0 months"),
    SmokeCase(stringify_interval, (-123, {"start_date": _utc(2000, 1, 1), "thresholds": _YEARS_AND_MONTHS}), "0 months"),
    SmokeCase(stringify_interval, (2505600000, _utc(2020, 1, 15)), "29 days"),
    SmokeCase(stringify_interval, (-2505600000, _utc(2020, 1, 15)), "29 days"),
    SmokeCase(stringify_interval, (2505600000, _utc(2020, 2, 1)), "1 month", note="29 days of a leap February"),
    SmokeCase(stringify_interval, (-2505600000, _utc(2020, 3, 1)), "1 month"),
    SmokeCase(stringify_interval, (2678399000, _utc(2021, 1, 1)), "1 month", note="rounded up from one second short"),
    SmokeCase(
        stringify_interval,
        (1234567890123, {"start_date": _utc(2000, 1, 1), "strings": _SHORT_STRINGS}),
        "39y 1mo 12d 23h 32m",
    ),
    SmokeCase(_stringify_parsed, ("1y 10min", _utc(1949, 1, 15), _utc(1950, 1, 15, 0, 10)), "1 year and 10 minutes"),
    SmokeCase(
        _stringify_parsed,
        ("-1y 10min 59s", _utc(1951, 3, 1, 10, 59), _utc(1950, 3, 1)),
        "1 year and 11 minutes",
    ),
    SmokeCase(stringify_interval, (math.nan,), ""),
    SmokeCase(_precompiled_nan, (math.nan,), ValueError),
    SmokeCase(stringify_approx, (500000,), "9 minutes"),
    SmokeCase(stringify_approx, (-5000000,), "2 hours"),
    SmokeCase(stringify_approx, (50000000,), "14 hours"),
    SmokeCase(stringify_approx, (-500000000,), "6 days"),
    SmokeCase(stringify_approx, (5000000000,), "~2 months"),
    SmokeCase(stringify_approx, (-50000000000,), "2 years"),
    SmokeCase(stringify_approx, (500000, True), "8 minutes"),
    SmokeCase(stringify_approx, (-5000000, True), "1 hour"),
    SmokeCase(stringify_approx, (50000000, True), "13 hours"),
    SmokeCase(stringify_approx, (-500000000, True), "5 days"),
    SmokeCase(stringify_approx, (5000000000, True), "~1 month"),
    SmokeCase(stringify_approx, (-50000000000, True), "1 year"),
    SmokeCase(stringify_approx, (math.nan,), ""),
]


def check_case(case: SmokeCase) -> SmokeResult:
    expects_error = isinstance(case.expected, type) and issubclass(case.expected, Exception)
    try:
        result = case.func(*case.args, **case.kwargs)
    except Exception as e:
        if expects_error and isinstance(e, case.expected):
            return SmokeResult(case, True, f"raised {type(e).__name__}")
        return SmokeResult(case, False, f"raised {type(e).__name__}: {e}")
    if expects_error:
        return SmokeResult(case, False, f"returned {_brief(result)} instead of raising {case.expected.__name__}")
    if result == case.expected and type(result) is type(case.expected):
        return SmokeResult(case, True, f"returned {_brief(result)}")
    return SmokeResult(case, False, f"returned {_brief(result)} instead of {_brief(case.expected)}")


def run_smoke(cases: Iterable[SmokeCase] = SMOKE_CASES) -> List[SmokeResult]:
    return [check_case(case) for case in cases]
