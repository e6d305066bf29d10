import re
import time
from datetime import date, datetime, timedelta, timezone
from typing import Tuple, Union

AnchorDate = Union[datetime, date, int]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)
MS_PER_DAY = 86_400_000

# Days in a 400-year Gregorian cycle, and from 0000-03-01 to 1970-01-01
_DAYS_PER_ERA = 146097
_EPOCH_SHIFT = 719468

_YEAR_ONLY_RE = re.compile(r"^[+-]?\d{4}$")


def to_epoch_ms(anchor: AnchorDate) -> int:
    """Return the anchor as integer milliseconds since the epoch.

    Naive datetimes are read as UTC, plain dates as midnight UTC and ints as
    epoch milliseconds already.
    """
    if isinstance(anchor, datetime):
        if anchor.tzinfo is None:
            anchor = anchor.replace(tzinfo=timezone.utc)
        return (anchor - EPOCH) // _ONE_MS
    if isinstance(anchor, date):
        return days_from_civil(anchor.year, anchor.month, anchor.day) * MS_PER_DAY
    if isinstance(anchor, int) and not isinstance(anchor, bool):
        return anchor
    raise TypeError(f"anchor date must be a datetime, date or epoch milliseconds, not {type(anchor).__name__}")


def from_epoch_ms(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


def now_ms() -> int:
    return int(time.time() * 1000)


def days_from_civil(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 of a proleptic Gregorian date, for any year.

    day may run past the end of the month; the extra days carry into the
    following months.
    """
    y = year - 1 if month <= 2 else year
    era = y // 400
    yoe = y - era * 400
    doy = (153 * (month - 3 if month > 2 else month + 9) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * _DAYS_PER_ERA + doe - _EPOCH_SHIFT


def civil_from_days(days: int) -> Tuple[int, int, int]:
    """(year, month, day) of a day count since 1970-01-01."""
    z = days + _EPOCH_SHIFT
    era = z // _DAYS_PER_ERA
    doe = z - era * _DAYS_PER_ERA
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400
    return (year + 1 if month <= 2 else year), month, day


def utc_fields(ms: int) -> Tuple[int, int]:
    """(year, zero-based month) of an epoch-ms instant."""
    year, month, _ = civil_from_days(ms // MS_PER_DAY)
    return year, month - 1


def add_utc_months(ms: int, months: int) -> int:
    """Move an instant by whole calendar months in UTC.

    Time of day and day of month are kept. A day past the end of the target
    month rolls into the next one, so Jan 31 + 1 month is Mar 3 (Mar 2 in a
    leap year). Works on integers, so any year is fine.
    """
    if not months:
        return ms
    days, time_of_day = divmod(ms, MS_PER_DAY)
    year, month, day = civil_from_days(days)
    new_year, month0 = divmod(year * 12 + month - 1 + months, 12)
    return days_from_civil(new_year, month0 + 1, day) * MS_PER_DAY + time_of_day


def parse_anchor(text: str) -> datetime:
    """Parse an anchor typed by a user: ISO date/datetime or a bare year."""
    s = (text or "").strip()
    if not s:
        raise ValueError("empty anchor date")
    if _YEAR_ONLY_RE.match(s):
        return datetime(int(s), 1, 1, tzinfo=timezone.utc)
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"invalid anchor date: {text!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
