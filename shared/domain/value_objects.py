"""
Common Value Objects

- DateRange: A stay from check-in (inclusive) to check-out (exclusive)
"""

from dataclasses import dataclass
from datetime import date, datetime

from shared.domain.base import ValueObject


def parse_date(value) -> date:
    """
    Parse a calendar date from a date object or a YYYY-MM-DD string

    Raises ValueError for anything that is not a valid calendar date,
    including impossible dates such as 2024-02-30.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    raise ValueError(f"Not a calendar date: {value!r}")


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    An empty or inverted range cannot be constructed.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(01, 05) overlaps with DateRange(04, 08) -> True
            - DateRange(01, 05) overlaps with DateRange(05, 08) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        return (self.start_date < other.end_date and
                other.start_date < self.end_date)

    def contains(self, check_date: date) -> bool:
        return self.start_date <= check_date < self.end_date

    def __len__(self) -> int:
        """Number of nights in the range"""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"[{self.start_date.isoformat()}, {self.end_date.isoformat()})"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
