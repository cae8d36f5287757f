"""
Reservation Domain Entities

- Reservation: Aggregate root for one stay at one property
- ReservationStatus: Lifecycle states
- PropertyInfo: What the booking core reads about a property
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange


class ReservationStatus(Enum):
    """
    Reservation lifecycle

    State transitions:
    - PENDING -> CANCELLED
    - CONFIRMED -> CANCELLED

    Every status except CANCELLED occupies the dates.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'

    @property
    def blocks_dates(self) -> bool:
        return self is not ReservationStatus.CANCELLED


@dataclass(frozen=True)
class PropertyInfo:
    """Read-only view of a bookable property"""
    id: int
    price_per_night: Decimal
    max_guests: int
    rooms: int


@dataclass
class Reservation(Aggregate):
    """
    Reservation Aggregate Root

    Key invariants:
    - dates is a non-empty half-open range [check_in, check_out)
    - a cancelled reservation stays cancelled
    """

    owner_id: int
    property_id: int
    dates: DateRange
    rooms: int = 1
    guests: int = 1
    note: str = ''
    nightly_rate: Decimal = Decimal('0.00')
    status: ReservationStatus = ReservationStatus.CONFIRMED
    id: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def book(
        cls,
        *,
        owner_id: int,
        prop: PropertyInfo,
        dates: DateRange,
        rooms: int = 1,
        guests: int = 1,
        note: str = '',
    ) -> 'Reservation':
        return cls(
            owner_id=owner_id,
            property_id=prop.id,
            dates=dates,
            rooms=rooms,
            guests=guests,
            note=note,
            nightly_rate=prop.price_per_night,
            status=ReservationStatus.CONFIRMED,
        )

    @property
    def check_in(self) -> date:
        return self.dates.start_date

    @property
    def check_out(self) -> date:
        return self.dates.end_date

    @property
    def nights(self) -> int:
        return len(self.dates)

    @property
    def total_price(self) -> Decimal:
        return self.nightly_rate * self.nights

    @property
    def is_cancelled(self) -> bool:
        return self.status is ReservationStatus.CANCELLED

    def is_owned_by(self, user_id) -> bool:
        return user_id is not None and self.owner_id == user_id

    def mark_created(self):
        """Record the creation event once the store has assigned an id."""
        from apps.reservations.domain.events import ReservationCreated

        self.add_event(ReservationCreated(
            reservation_id=self.id,
            property_id=self.property_id,
            owner_id=self.owner_id,
            dates=self.dates,
            total_price=self.total_price,
        ))

    def cancel(self, cancelled_by: int, reason: str = '') -> bool:
        """
        Cancel the reservation (PENDING/CONFIRMED -> CANCELLED)

        Returns False without changing anything if it was already cancelled.
        Events: ReservationCancelled
        """
        if self.is_cancelled:
            return False

        from apps.reservations.domain.events import ReservationCancelled

        self.status = ReservationStatus.CANCELLED
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancellation_reason = reason or ''

        self.add_event(ReservationCancelled(
            reservation_id=self.id,
            property_id=self.property_id,
            owner_id=self.owner_id,
            cancelled_by=cancelled_by,
            dates=self.dates,
            reason=self.cancellation_reason,
        ))
        return True
