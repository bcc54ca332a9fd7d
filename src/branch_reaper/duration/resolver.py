"""Parse ``<value> <unit>`` strings and resolve them into points in time."""

from datetime import datetime

from branch_reaper.duration.exceptions import MalformedDurationError
from branch_reaper.duration.models import Direction, Duration, TimeUnit

# Short forms are case-sensitive: "m" is a minute, "M" is a month
_SHORT_UNITS: dict[str, TimeUnit] = {
    "ms": TimeUnit.MILLISECOND,
    "s": TimeUnit.SECOND,
    "m": TimeUnit.MINUTE,
    "h": TimeUnit.HOUR,
    "d": TimeUnit.DAY,
    "D": TimeUnit.DAY,
    "w": TimeUnit.WEEK,
    "M": TimeUnit.MONTH,
    "y": TimeUnit.YEAR,
}


def parse_unit(raw: str) -> TimeUnit:
    """Parse a unit name.

    Accepts singular and plural names in any case ("day", "Days") and the
    short aliases in ``_SHORT_UNITS``.

    Args:
        raw: Unit token

    Returns:
        Parsed unit

    Raises:
        MalformedDurationError: If the unit is not supported
    """
    if raw in _SHORT_UNITS:
        return _SHORT_UNITS[raw]

    name = raw.lower()
    if name.endswith("s") and name != "ms":
        name = name[:-1]
    try:
        return TimeUnit(name)
    except ValueError as e:
        valid_units = [u.value for u in TimeUnit]
        raise MalformedDurationError(f"Unsupported time unit: {raw!r}. Valid units: {valid_units}") from e


def parse_duration(raw: str) -> Duration:
    """Parse a duration string such as ``"3 days"`` or ``"6 months"``.

    Args:
        raw: Input in the form ``<value> <unit>``

    Returns:
        Parsed duration

    Raises:
        MalformedDurationError: If the input does not split into exactly a
            quantity and a unit, or either part is invalid
    """
    tokens = raw.split()
    if len(tokens) != 2:
        raise MalformedDurationError(f'Invalid duration {raw!r}. Must be in the format of "<value> <unit>".')

    raw_quantity, raw_unit = tokens
    try:
        quantity = float(raw_quantity)
    except ValueError as e:
        raise MalformedDurationError(f"Invalid duration quantity: {raw_quantity!r}") from e

    return Duration(quantity=quantity, unit=parse_unit(raw_unit))


def resolve(quantity: float, unit: TimeUnit, direction: Direction, now: datetime) -> datetime:
    """Resolve a duration relative to ``now``.

    Month and year arithmetic is calendar aware, so one month before
    March 31st is the last day of February.

    Args:
        quantity: Number of units
        unit: Unit of the quantity
        direction: FUTURE returns ``now + duration``, PAST returns ``now - duration``
        now: Reference point in time

    Returns:
        The resolved point in time

    Raises:
        MalformedDurationError: If the quantity is negative, not finite, or
            fractional for months and years
    """
    return Duration(quantity=quantity, unit=unit).resolve(direction, now)


def resolve_input(raw: str, direction: Direction, now: datetime) -> datetime:
    """Parse ``raw`` and resolve it relative to ``now``.

    Args:
        raw: Input in the form ``<value> <unit>``
        direction: Direction to apply the duration in
        now: Reference point in time

    Returns:
        The resolved point in time
    """
    return parse_duration(raw).resolve(direction, now)

