"""Stringifier options and their resolution into a complete settings record.

Callers hand ``stringify_interval`` either nothing, a bare anchor date, or a
mapping of partial options::

    {
        "start_date": datetime(2000, 1, 1),
        "thresholds": {"weeks": True, "seconds": 60, "months": (6, 18)},
        "pad": {"hours": True},
        "display_zero": True,
        "strings": {"seconds": "secs", "final_joiner": " & "},
    }

``resolve_settings`` folds every accepted spelling (booleans, bare numbers,
tuples, omitted keys) into one immutable ``StringifySettings``. The result is
safe to share between threads; ``DEFAULT_SETTINGS`` is the shared instance
used when no options are given.
"""
import math
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .utcdate import AnchorDate

UNITS = ("years", "months", "weeks", "days", "hours", "minutes", "seconds")
CALENDAR_UNITS = ("years", "months")
FIXED_UNITS = ("weeks", "days", "hours", "minutes", "seconds")

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY

SECONDS_BY_UNIT = {
    "weeks": SECONDS_PER_WEEK,
    "days": SECONDS_PER_DAY,
    "hours": SECONDS_PER_HOUR,
    "minutes": SECONDS_PER_MINUTE,
    "seconds": 1,
}

ENABLED = (0, math.inf)
DISABLED = (math.inf, 0)

Threshold = Tuple[float, float]

_THRESHOLD_DEFAULTS: Dict[str, Threshold] = {
    "years": ENABLED,
    "months": ENABLED,
    "weeks": DISABLED,
    "days": ENABLED,
    "hours": ENABLED,
    "minutes": ENABLED,
    "seconds": (0, 10 * SECONDS_PER_MINUTE),
}

_NAME_DEFAULTS: Dict[str, Tuple[str, str]] = {
    "years": ("year", "years"),
    "months": ("month", "months"),
    "weeks": ("week", "weeks"),
    "days": ("day", "days"),
    "hours": ("hour", "hours"),
    "minutes": ("minute", "minutes"),
    "seconds": ("second", "seconds"),
}

_JOIN_DEFAULTS = {"spacer": " ", "joiner": ", ", "final_joiner": " and "}

OPTION_KEYS = ("start_date", "thresholds", "pad", "display_zero", "strings")


@dataclass(frozen=True)
class StringSettings:
    names: Mapping[str, Tuple[str, str]]
    spacer: str = " "
    joiner: str = ", "
    final_joiner: str = " and "

    def name(self, unit: str, value: int) -> str:
        singular, plural = self.names[unit]
        return singular if value == 1 else plural


@dataclass(frozen=True)
class StringifySettings:
    thresholds: Mapping[str, Threshold]
    pad: Mapping[str, bool]
    display_zero: Mapping[str, bool]
    strings: StringSettings


def _frozen(d: Dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(d))


_ALL_OFF = _frozen({unit: False for unit in UNITS})
_ALL_ON = _frozen({unit: True for unit in UNITS})

DEFAULT_STRINGS = StringSettings(names=_frozen(_NAME_DEFAULTS), **_JOIN_DEFAULTS)

DEFAULT_SETTINGS = StringifySettings(
    thresholds=_frozen(_THRESHOLD_DEFAULTS),
    pad=_ALL_OFF,
    display_zero=_ALL_OFF,
    strings=DEFAULT_STRINGS,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_units(kind: str, given: Mapping[str, Any], allowed) -> None:
    unknown = [k for k in given if k not in allowed]
    if unknown:
        raise ValueError(f"unknown {kind} key(s): {', '.join(sorted(map(str, unknown)))}")


def threshold_to_tuple(value: Any) -> Threshold:
    """True -> (0, inf), False -> (inf, 0), n -> (0, n), (lo, hi) as given."""
    if value is True:
        return ENABLED
    if value is False:
        return DISABLED
    if _is_number(value):
        return (0, value)
    if isinstance(value, (tuple, list)) and len(value) == 2 and all(_is_number(v) for v in value):
        return (value[0], value[1])
    raise ValueError(f"invalid threshold: {value!r}")


def resolve_thresholds(thresholds: Optional[Mapping[str, Any]]) -> Mapping[str, Threshold]:
    if thresholds is None:
        return DEFAULT_SETTINGS.thresholds
    if not isinstance(thresholds, Mapping):
        raise TypeError("thresholds must be a mapping of unit to threshold")
    _check_units("threshold", thresholds, UNITS)
    return _frozen({
        unit: threshold_to_tuple(thresholds[unit]) if unit in thresholds else _THRESHOLD_DEFAULTS[unit]
        for unit in UNITS
    })


def resolve_unit_flags(flags: Any, kind: str = "flag") -> Mapping[str, bool]:
    """pad / display_zero: a bool for every unit, or a partial mapping."""
    if flags is None or flags is False:
        return _ALL_OFF
    if flags is True:
        return _ALL_ON
    if not isinstance(flags, Mapping):
        raise TypeError(f"{kind} must be a bool or a mapping of unit to bool")
    _check_units(kind, flags, UNITS)
    return _frozen({unit: bool(flags.get(unit, False)) for unit in UNITS})


def _name_pair(unit: str, value: Any) -> Tuple[str, str]:
    if isinstance(value, str):
        return (value, value)
    if isinstance(value, (tuple, list)) and len(value) == 2 and all(isinstance(v, str) for v in value):
        return (value[0], value[1])
    raise TypeError(f"strings for {unit} must be a string or a (singular, plural) pair")


def resolve_strings(strings: Optional[Mapping[str, Any]]) -> StringSettings:
    if strings is None:
        return DEFAULT_STRINGS
    if not isinstance(strings, Mapping):
        raise TypeError("strings must be a mapping")
    _check_units("strings", strings, UNITS + tuple(_JOIN_DEFAULTS))
    names = {
        unit: _name_pair(unit, strings[unit]) if unit in strings else _NAME_DEFAULTS[unit]
        for unit in UNITS
    }
    joins = {}
    for key, default in _JOIN_DEFAULTS.items():
        value = strings.get(key, default)
        if not isinstance(value, str):
            raise TypeError(f"strings.{key} must be a string")
        joins[key] = value
    return StringSettings(names=_frozen(names), **joins)


def resolve_settings(options: Optional[Mapping[str, Any]] = None) -> StringifySettings:
    """Fill in every default for a partial options mapping.

    ``start_date`` is allowed and ignored here; use ``split_options`` to get at
    it.
    """
    if not options:
        return DEFAULT_SETTINGS
    if not isinstance(options, Mapping):
        raise TypeError("options must be a mapping")
    _check_units("option", options, OPTION_KEYS)
    return StringifySettings(
        thresholds=resolve_thresholds(options.get("thresholds")),
        pad=resolve_unit_flags(options.get("pad"), "pad"),
        display_zero=resolve_unit_flags(options.get("display_zero"), "display_zero"),
        strings=resolve_strings(options.get("strings")),
    )


def split_options(options: Any) -> Tuple[StringifySettings, Optional[AnchorDate]]:
    """Return (settings, start_date) for whatever was passed as options.

    A bare anchor date selects the default settings.
    """
    if options is None:
        return DEFAULT_SETTINGS, None
    if isinstance(options, (date, int)) and not isinstance(options, bool):
        return DEFAULT_SETTINGS, options
    if isinstance(options, Mapping):
        return resolve_settings(options), options.get("start_date")
    raise TypeError(f"options must be an anchor date or a mapping, not {type(options).__name__}")
