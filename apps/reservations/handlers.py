"""Event handlers for the reservations domain."""

import logging

from apps.reservations.domain.events import ReservationCancelled, ReservationCreated
from shared.application.message_bus import message_bus

audit_logger = logging.getLogger("reserva.audit")


def log_reservation_created(event: ReservationCreated):
    audit_logger.info("reservation.created", extra={"reservation": event.to_dict()})


def log_reservation_cancelled(event: ReservationCancelled):
    audit_logger.info("reservation.cancelled", extra={"reservation": event.to_dict()})


def register_handlers(bus=message_bus):
    bus.register_event_handler(ReservationCreated, log_reservation_created)
    bus.register_event_handler(ReservationCancelled, log_reservation_cancelled)
