"""Tests for the Django ORM reservation store."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from django.db import IntegrityError, OperationalError, connection, transaction

from apps.properties.models import Property
from apps.reservations.domain.events import ReservationCancelled, ReservationCreated
from apps.reservations.models import Reservation as ReservationModel
from apps.reservations.services import ReservationService
from apps.reservations.store import DjangoReservationStore
from apps.users.models import User
from shared.application.message_bus import message_bus
from shared.domain.errors import ConflictError, StorageUnavailable, ValidationError


@pytest.fixture
def owner(db):
    return User.objects.create_user(email="owner@example.com", password="StrongPass123", name="Owner")


@pytest.fixture
def flat(db):
    return Property.objects.create(
        title="Flat",
        city="Lisbon",
        price_per_night=Decimal("75.50"),
        max_guests=2,
        rooms=1,
    )


@pytest.fixture
def service():
    return ReservationService(store=DjangoReservationStore())


@pytest.fixture
def published():
    events = []
    message_bus.register_event_handler(ReservationCreated, events.append)
    message_bus.register_event_handler(ReservationCancelled, events.append)
    yield events
    message_bus.unregister_event_handler(ReservationCreated, events.append)
    message_bus.unregister_event_handler(ReservationCancelled, events.append)


@pytest.mark.django_db
def test_create_persists_row(service, owner, flat):
    reservation = service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id, guests=2)

    row = ReservationModel.objects.get(pk=reservation.id)
    assert row.owner_id == owner.id
    assert row.property_id == flat.id
    assert row.check_in == date(2024, 6, 1)
    assert row.status == ReservationModel.Status.CONFIRMED
    assert row.guests == 2
    assert row.nightly_rate == Decimal("75.50")
    assert row.total_price == Decimal("302.00")
    assert (row.check_out - row.check_in).days == 4
    assert reservation.created_at is not None


@pytest.mark.django_db
def test_inactive_property_is_unknown(service, owner, flat):
    flat.is_active = False
    flat.save()

    with pytest.raises(ValidationError) as exc_info:
        service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)

    assert exc_info.value.reason == "unknown-property"


@pytest.mark.django_db
def test_overlap_and_adjacency_against_database(service, owner, flat):
    service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)

    with pytest.raises(ConflictError):
        service.create_reservation(flat.id, "2024-06-04", "2024-06-08", owner.id)
    service.create_reservation(flat.id, "2024-06-05", "2024-06-08", owner.id)

    assert ReservationModel.objects.filter(property=flat).count() == 2


@pytest.mark.django_db
def test_cancel_soft_deletes_and_frees_dates(service, owner, flat):
    reservation = service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)

    service.cancel_reservation(reservation.id, owner.id, is_admin=False, reason="sick")
    service.cancel_reservation(reservation.id, owner.id, is_admin=False)

    row = ReservationModel.objects.get(pk=reservation.id)
    assert row.status == ReservationModel.Status.CANCELLED
    assert row.cancelled_at is not None
    assert row.cancellation_reason == "sick"

    rebooked = service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)
    assert ReservationModel.objects.active().get().pk == rebooked.id


@pytest.mark.django_db
def test_list_for_owner_by_email_newest_first(service, owner, flat):
    first = service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)
    second = service.create_reservation(flat.id, "2024-07-01", "2024-07-05", owner.id)

    listed = service.list_reservations_for_owner(owner_email="Owner@Example.com")

    assert [r.id for r in listed] == [second.id, first.id]
    assert service.list_reservations_for_owner(owner_email="nobody@example.com") == []


@pytest.mark.django_db
def test_events_published_on_commit(service, owner, flat, published, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        reservation = service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)
        assert published == []

    assert len(callbacks) == 1
    assert [type(event) for event in published] == [ReservationCreated]
    assert published[0].reservation_id == reservation.id


@pytest.mark.django_db
def test_rejected_booking_schedules_no_events(service, owner, flat, published, django_capture_on_commit_callbacks):
    service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(ConflictError):
            service.create_reservation(flat.id, "2024-06-02", "2024-06-03", owner.id)

    assert callbacks == []


@pytest.mark.django_db
def test_transient_database_error_becomes_storage_unavailable(monkeypatch, owner, flat):
    store = DjangoReservationStore()

    def lost_connection(*args, **kwargs):
        raise OperationalError("server closed the connection unexpectedly")

    monkeypatch.setattr(store, "find_overlapping", lost_connection)
    service = ReservationService(store=store)

    with pytest.raises(StorageUnavailable):
        service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)

    assert not ReservationModel.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize("method", ["get", "list_for_owner", "find_owner_id"])
def test_transient_database_error_on_read_becomes_storage_unavailable(monkeypatch, method, owner, flat):
    store = DjangoReservationStore()
    service = ReservationService(store=store)
    reservation = service.create_reservation(flat.id, "2024-06-01", "2024-06-05", owner.id)

    def lost_connection(*args, **kwargs):
        raise OperationalError("connection lost")

    monkeypatch.setattr(store, method, lost_connection)

    with pytest.raises(StorageUnavailable):
        if method == "get":
            service.get_reservation(reservation.id, owner.id)
        elif method == "list_for_owner":
            service.list_reservations_for_owner(requester_id=owner.id)
        else:
            service.list_reservations_for_owner(owner_email=owner.email)


@pytest.mark.django_db
def test_check_constraint_rejects_inverted_rows(owner, flat):
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            ReservationModel.objects.create(
                owner=owner, property=flat, check_in=date(2024, 6, 5), check_out=date(2024, 6, 1)
            )


@pytest.mark.skipif(connection.vendor != "postgresql", reason="exclusion constraint is PostgreSQL only")
@pytest.mark.django_db
def test_exclusion_constraint_maps_to_conflict(owner, flat):
    from apps.reservations.domain.entities import PropertyInfo, Reservation
    from shared.domain.value_objects import DateRange

    store = DjangoReservationStore()
    info = PropertyInfo(id=flat.id, price_per_night=flat.price_per_night, max_guests=2, rooms=1)

    with store.unit_of_work():
        store.add(Reservation.book(owner_id=owner.id, prop=info, dates=DateRange(date(2024, 6, 1), date(2024, 6, 5))))

    # Skip the service check to hit the storage constraint directly.
    with pytest.raises(ConflictError):
        with store.unit_of_work():
            store.add(Reservation.book(owner_id=owner.id, prop=info, dates=DateRange(date(2024, 6, 3), date(2024, 6, 4))))

    assert ReservationModel.objects.count() == 1
