"""
Reservation Service

Use cases of the booking core. Each write runs in one unit of work opened
on the injected store:

1. Validate the request (dates, property, capacity)
2. Lock the property row so bookers of one property queue up
3. Look for non-cancelled reservations overlapping the requested range
4. Insert the reservation (the storage constraint is the final safety net)
5. Publish domain events after commit
"""

from __future__ import annotations

from typing import List, Optional
import logging

from apps.reservations.domain.entities import Reservation
from apps.reservations.store import DjangoReservationStore, ReservationStore
from shared.domain.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from shared.domain.value_objects import DateRange, parse_date

logger = logging.getLogger(__name__)


class ReservationService:
    """Creates, cancels and lists reservations against one store."""

    def __init__(self, store: Optional[ReservationStore] = None):
        self.store = store if store is not None else DjangoReservationStore()

    # ===== Commands =====

    def create_reservation(
        self,
        property_id,
        check_in,
        check_out,
        requester_id,
        rooms: Optional[int] = None,
        guests: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Reservation:
        """
        Book ``property_id`` for ``[check_in, check_out)``

        Raises:
            ValidationError: bad-range, inverted-dates, unknown-property
                or over-capacity, checked in that order
            ConflictError: a non-cancelled reservation overlaps the range
            StorageUnavailable: transient store failure, nothing was written
        """
        dates = self._parse_range(check_in, check_out)
        rooms = 1 if rooms is None else rooms
        guests = 1 if guests is None else guests

        logger.info(
            f"Creating reservation for property {property_id}, "
            f"owner {requester_id}, dates {dates}"
        )

        with self.store.unit_of_work() as uow:
            prop = self.store.get_property(property_id, lock=True)
            if prop is None:
                raise ValidationError(
                    f"Property {property_id} does not exist or is not bookable.",
                    reason=ValidationError.UNKNOWN_PROPERTY,
                )

            if guests > prop.max_guests or rooms > prop.rooms:
                raise ValidationError(
                    f"Requested {guests} guest(s) and {rooms} room(s), property allows "
                    f"{prop.max_guests} guest(s) and {prop.rooms} room(s).",
                    reason=ValidationError.OVER_CAPACITY,
                )

            if self.store.find_overlapping(prop.id, dates):
                logger.warning(f"Reservation conflict for property {prop.id} {dates}")
                raise ConflictError(reason=ConflictError.OVERLAP)

            reservation = Reservation.book(
                owner_id=requester_id,
                prop=prop,
                dates=dates,
                rooms=rooms,
                guests=guests,
                note=note or '',
            )
            self.store.add(reservation)
            reservation.mark_created()
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.id} confirmed for property {prop.id} {dates}")
        return reservation

    def cancel_reservation(self, reservation_id, requester_id, is_admin: bool = False, reason: str = '') -> Reservation:
        """
        Cancel a reservation (owner or administrator)

        Cancelling an already cancelled reservation returns it unchanged.

        Raises:
            NotFoundError: no such reservation
            ForbiddenError: requester is neither the owner nor an admin
        """
        with self.store.unit_of_work() as uow:
            reservation = self.store.get(reservation_id, lock=True)
            if reservation is None:
                raise NotFoundError(f"Reservation {reservation_id} not found.")

            if not (is_admin or reservation.is_owned_by(requester_id)):
                logger.warning(f"User {requester_id} may not cancel reservation {reservation_id}")
                raise ForbiddenError()

            if reservation.cancel(cancelled_by=requester_id, reason=reason):
                self.store.save(reservation)
                uow.collect_events(reservation)
                logger.info(f"Reservation {reservation.id} cancelled by {requester_id}")
            else:
                logger.info(f"Reservation {reservation.id} already cancelled")

        return reservation

    # ===== Queries =====

    def get_reservation(self, reservation_id, requester_id, is_admin: bool = False) -> Reservation:
        with self.store.reading():
            reservation = self.store.get(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found.")
        if not (is_admin or reservation.is_owned_by(requester_id)):
            raise ForbiddenError("You are not allowed to view this reservation.")
        return reservation

    def list_reservations_for_owner(self, requester_id=None, owner_email: Optional[str] = None) -> List[Reservation]:
        """
        Reservations of one owner, newest first

        The owner is given either by id or by email. An unknown owner
        yields an empty list.
        """
        with self.store.reading():
            owner_id = requester_id
            if owner_email is not None:
                owner_id = self.store.find_owner_id(owner_email)
            if owner_id is None:
                return []
            return self.store.list_for_owner(owner_id)

    # ===== Helpers =====

    @staticmethod
    def _parse_range(check_in, check_out) -> DateRange:
        try:
            start = parse_date(check_in)
            end = parse_date(check_out)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "check_in and check_out must be calendar dates (YYYY-MM-DD).",
                reason=ValidationError.BAD_RANGE,
            ) from exc

        if start >= end:
            raise ValidationError(
                "check_out must be after check_in.",
                reason=ValidationError.INVERTED_DATES,
            )
        return DateRange(start, end)
