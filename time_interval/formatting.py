import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .settings import (
    CALENDAR_UNITS,
    FIXED_UNITS,
    SECONDS_BY_UNIT,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    UNITS,
    StringifySettings,
    Threshold,
    resolve_settings,
    split_options,
)
from .utcdate import AnchorDate, add_utc_months, to_epoch_ms, utc_fields

logger = logging.getLogger(__name__)

# Average and extreme calendar lengths for the approximate short form
SECONDS_PER_YEAR = 365.25 * SECONDS_PER_DAY
SECONDS_PER_YEAR_LOWER = 365 * SECONDS_PER_DAY
SECONDS_PER_YEAR_UPPER = 366 * SECONDS_PER_DAY
SECONDS_PER_MONTH = SECONDS_PER_YEAR / 12
SECONDS_PER_MONTH_LOWER = 28 * SECONDS_PER_DAY
SECONDS_PER_MONTH_UPPER = 31 * SECONDS_PER_DAY

# Finest first: the unit a value is rounded to when seconds are disabled
_ROUNDING_ORDER = ("minutes", "hours", "days", "weeks")

_PAD_WIDTH = {"years": 4}


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def _within(value: float, threshold: Threshold) -> bool:
    lower, upper = threshold
    return lower <= value <= upper


def _round_to_smallest(interval: int, enabled: Mapping[str, bool]) -> Tuple[int, bool]:
    """Round to the finest enabled fixed unit.

    Returns (interval, True) when no fixed unit is enabled at all, meaning any
    rounding has to happen on years/months instead.
    """
    if enabled["seconds"]:
        return interval, False
    for unit in _ROUNDING_ORDER:
        if enabled[unit]:
            size = SECONDS_BY_UNIT[unit]
            return (interval + size // 2) // size * size, False
    return interval, True


def years_months_remainder(
    start_ms: int,
    interval: int,
    in_past: bool,
    should_round: bool,
    thresholds: Mapping[str, Threshold],
) -> Tuple[int, int, int]:
    """Split an interval in seconds into calendar years, months and leftover seconds.

    The interval is laid out from start_ms, backwards when in_past. Years and
    months are whole calendar steps in UTC, so their length depends on where
    the interval sits. With should_round the leftover is instead rounded into
    the finest of years/months that the thresholds enable, using half the
    length of the actual next month or year as the tie point.
    """
    direction = -1 if in_past else 1
    target = start_ms + direction * interval * 1000
    larger, smaller = (start_ms, target) if in_past else (target, start_ms)

    larger_year, larger_month = utc_fields(larger)
    smaller_year, smaller_month = utc_fields(smaller)
    years = larger_year - smaller_year
    months = larger_month - smaller_month

    total_months = years * 12 + months
    changing = add_utc_months(start_ms, direction * total_months)
    # Overshot the target: take months back. A day rolled past a short month
    # can need two steps, and zero months never overshoots.
    while (changing < target) if in_past else (target < changing):
        total_months -= 1
        changing = add_utc_months(start_ms, direction * total_months)
    remaining = abs(target - changing) // 1000
    years, months = divmod(total_months, 12)

    enable_years = _within(years, thresholds["years"])
    enable_months = _within(total_months, thresholds["months"])

    if not enable_years and not enable_months:
        return 0, 0, interval

    if not should_round:
        if not enable_years:
            return 0, total_months, remaining
        if not enable_months:
            # Hand the months back to the fixed units
            changing = add_utc_months(start_ms, direction * years * 12)
            remaining = abs(target - changing) // 1000
            months = 0
        return years, months, remaining

    if not enable_years:
        month_length = abs(add_utc_months(start_ms, direction * (total_months + 1)) - changing) // 1000
        if remaining * 2 >= month_length:
            total_months += 1
        return 0, total_months, 0

    if not enable_months:
        changing = add_utc_months(start_ms, direction * years * 12)
        remaining = abs(target - changing) // 1000
        year_length = abs(add_utc_months(start_ms, direction * (years + 1) * 12) - changing) // 1000
        if remaining * 2 >= year_length:
            years += 1
        return years, 0, 0

    month_length = abs(add_utc_months(start_ms, direction * (total_months + 1)) - changing) // 1000
    if remaining * 2 >= month_length:
        months += 1
        if months >= 12:
            months -= 12
            years += 1
    return years, months, 0


def _numeral(unit: str, value: int, pad: bool) -> str:
    text = str(value)
    if pad:
        text = text.rjust(_PAD_WIDTH.get(unit, 2), "0")
    return text


def _stringify(interval_ms: float, settings: StringifySettings, start_date: Optional[AnchorDate]) -> str:
    interval = _round_half_up(interval_ms / 1000)
    in_past = interval < 0
    if in_past:
        interval = -interval

    thresholds = settings.thresholds
    enabled: Dict[str, bool] = {"years": False, "months": False}
    for unit in FIXED_UNITS:
        lower, upper = thresholds[unit]
        size = SECONDS_BY_UNIT[unit]
        enabled[unit] = lower * size <= interval <= upper * size

    interval, should_round = _round_to_smallest(interval, enabled)

    values = dict.fromkeys(UNITS, 0)
    if start_date is not None and any(thresholds[unit][0] < math.inf for unit in CALENDAR_UNITS):
        years, months, interval = years_months_remainder(
            to_epoch_ms(start_date), interval, in_past, should_round, thresholds
        )
        values["years"], values["months"] = years, months
        enabled["years"] = _within(years, thresholds["years"])
        enabled["months"] = _within(months + years * 12, thresholds["months"])
        logger.debug("calendar split: %d years, %d months, %d seconds left", years, months, interval)

    for unit in FIXED_UNITS[:-1]:
        if enabled[unit]:
            values[unit], interval = divmod(interval, SECONDS_BY_UNIT[unit])
    if enabled["seconds"]:
        values["seconds"] = interval
    elif interval > 0 and (values["years"] > 0 or values["months"] > 0
                           or any(enabled[unit] for unit in FIXED_UNITS)):
        logger.warning("stringify_interval dropped %d seconds that no enabled unit could hold", interval)

    strings = settings.strings
    shown = [
        (unit, values[unit]) for unit in UNITS
        if enabled[unit] and (settings.display_zero[unit] or values[unit] > 0)
    ]

    # Nothing to say: 0 of the smallest enabled unit
    if not shown:
        for unit in reversed(UNITS):
            if enabled[unit]:
                return f"0{strings.spacer}{strings.names[unit][1]}"
        return ""

    rendered: List[str] = [
        f"{_numeral(unit, value, settings.pad[unit])}{strings.spacer}{strings.name(unit, value)}"
        for unit, value in shown
    ]
    if len(rendered) <= 1:
        return rendered[0]
    return strings.joiner.join(rendered[:-1]) + strings.final_joiner + rendered[-1]


def stringify_interval(interval: float, options: Any = None) -> str:
    """Stringify a ms interval like "1 day, 5 hours and 20 minutes".

    options is an anchor date or a mapping (see time_interval.settings). With
    an anchor the output can use years and months. Seconds are only shown
    under 10 minutes by default. A NaN interval gives "".
    """
    if not math.isfinite(interval):
        return ""
    settings, start_date = split_options(options)
    return _stringify(interval, settings, start_date)


class IntervalStringifier:
    """Stringifier whose options were resolved once, up front.

    Behaves like stringify_interval, except that the anchor date is given per
    call and a NaN interval raises ValueError instead of returning "".
    """

    __slots__ = ("_settings",)

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        if options and "start_date" in options:
            raise ValueError("start_date is passed to stringify(), not to the stringifier")
        self._settings = resolve_settings(options)
        logger.debug("compiled stringifier settings: %r", self._settings)

    @property
    def settings(self) -> StringifySettings:
        return self._settings

    def stringify(self, interval: float, start_date: Optional[AnchorDate] = None) -> str:
        if not math.isfinite(interval):
            raise ValueError("Cannot stringify NaN interval")
        return _stringify(interval, self._settings, start_date)


def compile_stringifier(options: Optional[Mapping[str, Any]] = None) -> IntervalStringifier:
    return IntervalStringifier(options)


def _unit_text(count: int, name: str, tilde: bool = False) -> str:
    s = "" if count == 1 else "s"
    return f"{'~' if tilde else ''}{count} {name}{s}"


def stringify_approx(interval: float, round_down: bool = False) -> str:
    """Say a ms interval as a count of the largest unit that fits it.

    Picks minutes, hours, days, months or years, like "5 days", "5 months" or
    "~5 years", for use after "within" or "under". Rounds up, or down with
    round_down for use after "at least". The tilde marks counts that would
    differ between the shortest and longest month or year.
    """
    if not math.isfinite(interval):
        return ""
    rnd = math.floor if round_down else math.ceil
    seconds = abs(interval) / 1000

    if seconds < SECONDS_PER_HOUR:
        minutes = rnd(seconds / SECONDS_PER_MINUTE)
        if minutes != 60:
            return _unit_text(minutes, "minute")

    if seconds < SECONDS_PER_DAY:
        hours = rnd(seconds / SECONDS_PER_HOUR)
        if hours != 24:
            return _unit_text(hours, "hour")

    if seconds < SECONDS_PER_MONTH_UPPER:
        return _unit_text(rnd(seconds / SECONDS_PER_DAY), "day")

    if seconds < SECONDS_PER_YEAR:
        months = rnd(seconds / SECONDS_PER_MONTH)
        if months != 12:
            tilde = rnd(seconds / SECONDS_PER_MONTH_LOWER) != rnd(seconds / SECONDS_PER_MONTH_UPPER)
            return _unit_text(months, "month", tilde)

    years = rnd(seconds / SECONDS_PER_YEAR)
    tilde = rnd(seconds / SECONDS_PER_YEAR_LOWER) != rnd(seconds / SECONDS_PER_YEAR_UPPER)
    return _unit_text(years, "year", tilde)
