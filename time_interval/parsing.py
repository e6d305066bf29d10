import math
import re
from typing import List, Optional, Tuple

from .utcdate import AnchorDate, add_utc_months, now_ms, to_epoch_ms

# Millisecond sizes of the fixed-length units
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
MS_PER_WEEK = 7 * MS_PER_DAY

_INTEGER = r"\d+"
_DECIMAL = r"\d+(?:\.\d+)?|\.\d+"

# (unit, spellings, magnitude pattern) in the only order the grammar accepts
_UNIT_GRAMMAR = [
    ("years", r"y(?:ears?)?", _INTEGER),
    ("months", r"mo(?:nths?)?", _INTEGER),
    ("weeks", r"w(?:eeks?)?", _DECIMAL),
    ("days", r"d(?:ays?)?", _DECIMAL),
    ("hours", r"h(?:(?:ou)?rs?)?", _DECIMAL),
    ("minutes", r"m(?:in(?:ute)?s?)?", _DECIMAL),
    ("seconds", r"s(?:ec(?:ond)?s?)?", _DECIMAL),
]

_FIXED_MS = (MS_PER_WEEK, MS_PER_DAY, MS_PER_HOUR, MS_PER_MINUTE, MS_PER_SECOND)

Components = Tuple[int, int, float, float, float, float, float]


def build_interval_pattern() -> str:
    """Return the anchored duration grammar, e.g. for '1y 2mo 3w 4d 5h 6m 7s'.

    Every unit is optional and may carry its own minus sign. Years and months
    only take whole numbers.
    """
    inner = "".join(
        rf"(?:(?:(-) ?)?({number}) ?{spelling}\s?)?" for _, spelling, number in _UNIT_GRAMMAR
    )
    return f"^{inner}$"


INTERVAL_RE = re.compile(build_interval_pattern(), re.IGNORECASE | re.ASCII)


def parse_components(text: str) -> Optional[Components]:
    """Split a duration text into signed (years, months, weeks, days, hours, minutes, seconds).

    The sign is a running state: each minus flips it for that component and
    every component after it, so "1w -8d 2h" is 1 week, minus 8 days, minus
    2 hours, and two minus signs cancel out.
    Returns None for empty or malformed text.
    """
    if text is None:
        return None
    s = text.strip()
    if not s:
        return None
    m = INTERVAL_RE.match(s)
    if not m:
        return None
    groups = m.groups()
    sign = 1
    values: List[float] = []
    for idx, (_, _, number) in enumerate(_UNIT_GRAMMAR):
        minus, magnitude = groups[2 * idx], groups[2 * idx + 1]
        if minus:
            sign = -sign
        if not magnitude:
            values.append(0)
        elif number == _INTEGER:
            values.append(sign * int(magnitude))
        else:
            values.append(sign * float(magnitude))
    return tuple(values)  # type: ignore[return-value]


def _round_half_up(ms: float) -> int:
    if isinstance(ms, int):
        return ms
    return math.floor(ms + 0.5)


def parse_interval(text: str, start_date: Optional[AnchorDate] = None) -> Optional[int]:
    """Parse a user string like "1y 2mo 3w 4d 5h 6m 7s" into milliseconds.

    Years and months have no fixed length, so they are applied as calendar
    steps in UTC from start_date (or now). A text without them never looks at
    the anchor. Returns None when the text is empty or not a duration; 0 is a
    valid result.
    """
    parts = parse_components(text)
    if parts is None:
        return None
    years, months = parts[0], parts[1]
    fixed = sum(value * size for value, size in zip(parts[2:], _FIXED_MS))
    if years == 0 and months == 0:
        return _round_half_up(fixed)
    start = to_epoch_ms(start_date) if start_date is not None else now_ms()
    shifted = add_utc_months(start, years * 12 + months)
    return _round_half_up(shifted - start + fixed)
