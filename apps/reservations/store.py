"""
Reservation Stores

The booking service talks to persistence through ``ReservationStore``:
- DjangoReservationStore: the relational store behind the API
- InMemoryReservationStore: an isolated store for unit tests

Both enforce the same overlap predicate (see DateRange.overlaps_with).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import nullcontext
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from itertools import count
from threading import RLock
from typing import Dict, List, Optional
import copy
import logging

from django.db import IntegrityError, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.reservations.domain.entities import PropertyInfo, Reservation, ReservationStatus
from shared.application.uow import (
    AbstractUnitOfWork,
    DjangoUnitOfWork,
    InMemoryUnitOfWork,
    storage_errors_as_unavailable,
)
from shared.domain.errors import ConflictError
from shared.domain.value_objects import DateRange

logger = logging.getLogger(__name__)


_MAX_ID = 2**63 - 1


def _as_id(value) -> Optional[int]:
    """Coerce an identifier to a positive int; anything else is treated as absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and 0 < value <= _MAX_ID:
        return value
    return None


class ReservationStore(ABC):
    """Persistence port used by ReservationService"""

    @abstractmethod
    def unit_of_work(self) -> AbstractUnitOfWork:
        """Open one atomic unit of work"""

    def reading(self):
        """Context for reads outside a unit of work"""
        return nullcontext()

    @abstractmethod
    def get_property(self, property_id, *, lock: bool = False) -> Optional[PropertyInfo]:
        """
        Return a bookable (existing and active) property or None

        With ``lock=True`` the property is held until the unit of work ends,
        which serialises concurrent bookings of the same property.
        """

    @abstractmethod
    def find_overlapping(self, property_id, dates: DateRange) -> List[Reservation]:
        """Non-cancelled reservations of the property that overlap ``dates``"""

    @abstractmethod
    def add(self, reservation: Reservation) -> Reservation:
        """Insert a new reservation and assign its id"""

    @abstractmethod
    def get(self, reservation_id, *, lock: bool = False) -> Optional[Reservation]:
        pass

    @abstractmethod
    def save(self, reservation: Reservation) -> Reservation:
        """Persist changes to an existing reservation"""

    @abstractmethod
    def list_for_owner(self, owner_id) -> List[Reservation]:
        """All reservations of the owner, newest first"""

    @abstractmethod
    def find_owner_id(self, email: str) -> Optional[int]:
        pass


# ===== Django ORM store =====

def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection(queryset.db).in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class DjangoReservationStore(ReservationStore):
    """
    Relational store backed by the Django ORM

    Must be used inside ``unit_of_work()`` for writes: row locks taken by
    ``get_property(lock=True)`` and ``get(lock=True)`` last until the
    surrounding transaction ends.
    """

    def __init__(self, using: str | None = None):
        self._using = using

    def unit_of_work(self) -> DjangoUnitOfWork:
        return DjangoUnitOfWork(using=self._using)

    def reading(self):
        return storage_errors_as_unavailable()

    def _reservations(self):
        from apps.reservations.models import Reservation as ReservationModel

        return ReservationModel.objects.using(self._using)

    def get_property(self, property_id, *, lock: bool = False) -> Optional[PropertyInfo]:
        from apps.properties.models import Property

        pk = _as_id(property_id)
        if pk is None:
            return None

        qs = Property.objects.using(self._using).filter(pk=pk, is_active=True)
        if lock:
            qs = _lock_queryset_if_possible(qs)

        row = qs.values("id", "price_per_night", "max_guests", "rooms").first()
        if row is None:
            return None
        return PropertyInfo(
            id=row["id"],
            price_per_night=row["price_per_night"],
            max_guests=row["max_guests"],
            rooms=row["rooms"],
        )

    def find_overlapping(self, property_id, dates: DateRange) -> List[Reservation]:
        qs = (
            self._reservations()
            .filter(property_id=property_id)
            .active()
            .overlapping(dates.start_date, dates.end_date)
            .order_by("check_in")
        )
        return [self._to_entity(row) for row in qs]

    def add(self, reservation: Reservation) -> Reservation:
        from apps.reservations.models import NO_OVERLAP_CONSTRAINT, Reservation as ReservationModel

        row = ReservationModel(property_id=reservation.property_id, owner_id=reservation.owner_id)
        self._apply(reservation, row)
        try:
            # Savepoint keeps the outer transaction usable after a violation.
            with transaction.atomic(using=self._using):
                row.save(using=self._using)
        except IntegrityError as exc:
            if NO_OVERLAP_CONSTRAINT in str(exc):
                logger.warning(
                    f"Exclusion constraint rejected reservation for property "
                    f"{reservation.property_id} {reservation.dates}"
                )
                raise ConflictError(reason=ConflictError.OVERLAP) from exc
            raise

        reservation.id = row.pk
        reservation.created_at = row.created_at
        reservation.updated_at = row.updated_at
        return reservation

    def get(self, reservation_id, *, lock: bool = False) -> Optional[Reservation]:
        pk = _as_id(reservation_id)
        if pk is None:
            return None
        qs = self._reservations().filter(pk=pk)
        if lock:
            qs = _lock_queryset_if_possible(qs)
        row = qs.first()
        return self._to_entity(row) if row is not None else None

    def save(self, reservation: Reservation) -> Reservation:
        row = self._reservations().get(pk=reservation.id)
        self._apply(reservation, row)
        row.save(using=self._using)
        reservation.updated_at = row.updated_at
        return reservation

    def list_for_owner(self, owner_id) -> List[Reservation]:
        pk = _as_id(owner_id)
        if pk is None:
            return []
        qs = self._reservations().filter(owner_id=pk).order_by("-created_at", "-id")
        return [self._to_entity(row) for row in qs]

    def find_owner_id(self, email: str) -> Optional[int]:
        from django.contrib.auth import get_user_model

        if not email:
            return None
        User = get_user_model()
        return (
            User.objects.using(self._using)
            .filter(email__iexact=email.strip())
            .values_list("id", flat=True)
            .first()
        )

    @staticmethod
    def _apply(reservation: Reservation, row) -> None:
        row.check_in = reservation.check_in
        row.check_out = reservation.check_out
        row.status = reservation.status.value
        row.rooms = reservation.rooms
        row.guests = reservation.guests
        row.note = reservation.note
        row.nightly_rate = reservation.nightly_rate
        row.total_price = reservation.total_price
        row.cancelled_at = reservation.cancelled_at
        row.cancellation_reason = reservation.cancellation_reason

    @staticmethod
    def _to_entity(row) -> Reservation:
        return Reservation(
            id=row.pk,
            owner_id=row.owner_id,
            property_id=row.property_id,
            dates=DateRange(row.check_in, row.check_out),
            rooms=row.rooms,
            guests=row.guests,
            note=row.note,
            nightly_rate=row.nightly_rate,
            status=ReservationStatus(row.status),
            cancelled_at=row.cancelled_at,
            cancellation_reason=row.cancellation_reason,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


# ===== In-memory store =====

class InMemoryReservationStore(ReservationStore):
    """
    Dictionary-backed store

    A single re-entrant lock is held for the whole unit of work, so
    concurrent bookers are serialised exactly like writers on the
    relational store. ``add`` re-checks the overlap rule itself, playing
    the part of the storage constraint.
    """

    def __init__(self, properties: Optional[Dict[int, PropertyInfo]] = None, users: Optional[Dict[str, int]] = None):
        self._lock = RLock()
        self._properties: Dict[int, PropertyInfo] = dict(properties or {})
        self._users: Dict[str, int] = {email.lower(): uid for email, uid in (users or {}).items()}
        self._reservations: Dict[int, Reservation] = {}
        self._ids = count(1)
        self._created = count(1)

    def unit_of_work(self) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self._lock)

    def add_property(
        self,
        property_id: int,
        *,
        price_per_night: Decimal = Decimal('100.00'),
        max_guests: int = 2,
        rooms: int = 1,
    ) -> PropertyInfo:
        info = PropertyInfo(id=property_id, price_per_night=price_per_night, max_guests=max_guests, rooms=rooms)
        with self._lock:
            self._properties[property_id] = info
        return info

    def add_user(self, email: str, user_id: int):
        with self._lock:
            self._users[email.lower()] = user_id

    def get_property(self, property_id, *, lock: bool = False) -> Optional[PropertyInfo]:
        pk = _as_id(property_id)
        if pk is None:
            return None
        with self._lock:
            return self._properties.get(pk)

    def find_overlapping(self, property_id, dates: DateRange) -> List[Reservation]:
        with self._lock:
            return [
                copy.deepcopy(r)
                for r in self._reservations.values()
                if r.property_id == property_id
                and r.status.blocks_dates
                and r.dates.overlaps_with(dates)
            ]

    def add(self, reservation: Reservation) -> Reservation:
        with self._lock:
            for existing in self._reservations.values():
                if (
                    existing.property_id == reservation.property_id
                    and existing.status.blocks_dates
                    and existing.dates.overlaps_with(reservation.dates)
                ):
                    raise ConflictError(reason=ConflictError.OVERLAP)

            reservation.id = next(self._ids)
            reservation.created_at = reservation.updated_at = self._tick()
            self._reservations[reservation.id] = self._snapshot(reservation)
            return reservation

    def get(self, reservation_id, *, lock: bool = False) -> Optional[Reservation]:
        pk = _as_id(reservation_id)
        if pk is None:
            return None
        with self._lock:
            stored = self._reservations.get(pk)
            return copy.deepcopy(stored) if stored is not None else None

    def save(self, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation.id not in self._reservations:
                raise KeyError(reservation.id)
            reservation.updated_at = self._tick()
            self._reservations[reservation.id] = self._snapshot(reservation)
            return reservation

    def list_for_owner(self, owner_id) -> List[Reservation]:
        pk = _as_id(owner_id)
        with self._lock:
            owned = [copy.deepcopy(r) for r in self._reservations.values() if r.owner_id == pk]
        return sorted(owned, key=lambda r: (r.created_at, r.id), reverse=True)

    def find_owner_id(self, email: str) -> Optional[int]:
        if not email:
            return None
        with self._lock:
            return self._users.get(email.strip().lower())

    def all(self) -> List[Reservation]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._reservations.values()]

    def _tick(self):
        # Monotonic stand-in for created_at so ordering is deterministic.
        return datetime(2000, 1, 1, tzinfo=timezone.utc) + timedelta(microseconds=next(self._created))

    @staticmethod
    def _snapshot(reservation: Reservation) -> Reservation:
        stored = copy.deepcopy(reservation)
        stored.clear_events()
        return stored
