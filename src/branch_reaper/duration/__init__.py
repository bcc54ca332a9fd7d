"""Human-readable durations ("3 days") resolved against an explicit clock."""

from branch_reaper.duration.exceptions import DurationError, MalformedDurationError
from branch_reaper.duration.models import Direction, Duration, TimeUnit
from branch_reaper.duration.resolver import parse_duration, parse_unit, resolve, resolve_input

__all__ = [
    "Direction",
    "Duration",
    "DurationError",
    "MalformedDurationError",
    "TimeUnit",
    "parse_duration",
    "parse_unit",
    "resolve",
    "resolve_input",
]
