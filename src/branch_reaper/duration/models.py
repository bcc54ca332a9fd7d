"""Duration value types."""

import math
from datetime import datetime
from enum import Enum
from typing import Self

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field, model_validator

from branch_reaper.duration.exceptions import MalformedDurationError


class Direction(str, Enum):
    """Which way a duration is applied relative to "now"."""

    FUTURE = "future"
    PAST = "past"


class TimeUnit(str, Enum):
    """Calendar units a duration can be expressed in."""

    MILLISECOND = "millisecond"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def is_calendar(self) -> bool:
        """Check if the unit has a variable length (months and years).

        Returns:
            True for months and years
        """
        return self in (TimeUnit.MONTH, TimeUnit.YEAR)

    def delta(self, quantity: float) -> relativedelta:
        """Build a relativedelta covering ``quantity`` of this unit.

        Args:
            quantity: Number of units

        Returns:
            Delta suitable for adding to or subtracting from a datetime
        """
        if self is TimeUnit.MILLISECOND:
            return relativedelta(microseconds=quantity * 1000)
        if self.is_calendar:
            return relativedelta(**{f"{self.value}s": int(quantity)})
        return relativedelta(**{f"{self.value}s": quantity})


class Duration(BaseModel):
    """A quantity of a time unit, e.g. ``3 days``."""

    model_config = ConfigDict(frozen=True)

    quantity: float = Field(description="Number of units")
    unit: TimeUnit = Field(description="Unit of the quantity")

    @model_validator(mode="after")
    def validate_quantity(self) -> Self:
        """Reject quantities that cannot be applied to a point in time.

        Returns:
            Self if valid

        Raises:
            MalformedDurationError: If the quantity is negative, not finite, or
                fractional for months and years
        """
        if not math.isfinite(self.quantity) or self.quantity < 0:
            raise MalformedDurationError(f"Duration quantity must be a finite, non-negative number: {self.quantity}")
        # relativedelta only takes whole months and years
        if self.unit.is_calendar and not self.quantity.is_integer():
            raise MalformedDurationError(f"Duration in {self.unit.value}s must be a whole number: {self.quantity}")
        return self

    def resolve(self, direction: Direction, now: datetime) -> datetime:
        """Apply this duration to ``now``.

        Args:
            direction: FUTURE adds the duration, PAST subtracts it
            now: Reference point in time

        Returns:
            The resolved point in time
        """
        delta = self.unit.delta(self.quantity)
        if direction is Direction.FUTURE:
            return now + delta
        return now - delta

    def __str__(self) -> str:
        quantity = int(self.quantity) if self.quantity.is_integer() else self.quantity
        suffix = "" if quantity == 1 else "s"
        return f"{quantity} {self.unit.value}{suffix}"
