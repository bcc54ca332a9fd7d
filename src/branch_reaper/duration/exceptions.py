"""Duration parsing exceptions."""


class DurationError(Exception):
    """Base exception for duration errors."""


class MalformedDurationError(DurationError):
    """Duration input is not in the form ``<value> <unit>``."""
