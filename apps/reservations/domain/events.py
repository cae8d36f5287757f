"""
Reservation Domain Events

Published on the message bus after the transaction that produced them
has committed.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange


@dataclass
class ReservationCreated(DomainEvent):
    """Event: a reservation was accepted and stored"""
    reservation_id: int
    property_id: int
    owner_id: int
    dates: DateRange
    total_price: Decimal

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'reservation_id': self.reservation_id,
            'property_id': self.property_id,
            'owner_id': self.owner_id,
            'check_in': self.dates.start_date.isoformat(),
            'check_out': self.dates.end_date.isoformat(),
            'total_price': str(self.total_price),
        })
        return data


@dataclass
class ReservationCancelled(DomainEvent):
    """Event: a reservation was cancelled and its dates released"""
    reservation_id: int
    property_id: int
    owner_id: int
    cancelled_by: int
    dates: DateRange
    reason: str = ''

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'reservation_id': self.reservation_id,
            'property_id': self.property_id,
            'owner_id': self.owner_id,
            'cancelled_by': self.cancelled_by,
            'check_in': self.dates.start_date.isoformat(),
            'check_out': self.dates.end_date.isoformat(),
            'reason': self.reason,
        })
        return data
