"""
Shared value objects and amount helpers

- quantize(): every stored amount is rounded half-up to cents
- DateRange: travel windows, hotel stays and package periods
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.base import ValueObject

CENT = Decimal('0.01')


def quantize(amount) -> Decimal:
    """Round an amount half-up to whole cents."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Span of days from start_date to end_date, start strictly first

    len() counts nights, so a range ending on the start of another one
    does not share a night with it.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def contains(self, day: date) -> bool:
        """Inclusive at both ends: the return day still belongs to the trip"""
        return self.start_date <= day <= self.end_date

    def covers(self, other: 'DateRange') -> bool:
        return self.start_date <= other.start_date and other.end_date <= self.end_date

    def __len__(self) -> int:
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"
