"""API tests for the reservations endpoints."""

from __future__ import annotations

from decimal import Decimal
from unittest import mock

from django.db import OperationalError
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.properties.models import Property
from apps.reservations.models import Reservation
from apps.reservations.store import DjangoReservationStore
from apps.users.models import User


class ReservationAPITests(APITestCase):
    def setUp(self) -> None:
        self.guest = User.objects.create_user(email="guest@example.com", password="StrongPass123", name="Guest")
        self.other = User.objects.create_user(email="other@example.com", password="StrongPass123")
        self.admin = User.objects.create_superuser(email="admin@example.com", password="StrongPass123")
        self.property = Property.objects.create(
            title="Cozy flat",
            city="Lisbon",
            price_per_night=Decimal("80.00"),
            max_guests=3,
            rooms=2,
        )
        self.list_url = reverse("reservation-list")

    def _book(self, check_in="2024-06-01", check_out="2024-06-05", **extra):
        payload = {"property": self.property.id, "check_in": check_in, "check_out": check_out, **extra}
        return self.client.post(self.list_url, payload, format="json")

    def test_create_requires_authentication(self) -> None:
        response = self._book()
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(Reservation.objects.exists())

    def test_create_reservation(self) -> None:
        self.client.force_authenticate(self.guest)

        response = self._book(guests=2, note="Arriving late")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "confirmed")
        self.assertEqual(response.data["owner"], self.guest.id)
        self.assertEqual(response.data["property"], self.property.id)
        self.assertEqual(response.data["nights"], 4)
        self.assertEqual(response.data["total_price"], "320.00")
        self.assertEqual(response.data["note"], "Arriving late")

    def test_overlap_returns_conflict(self) -> None:
        self.client.force_authenticate(self.guest)
        self._book()

        self.client.force_authenticate(self.other)
        response = self._book("2024-06-04", "2024-06-08")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)
        self.assertEqual(response.data["code"], "overlap")

        response = self._book("2024-06-05", "2024-06-08")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_validation_reasons(self) -> None:
        self.client.force_authenticate(self.guest)
        cases = [
            ({"check_in": "2024-06-31", "check_out": "2024-07-02"}, "bad-range"),
            ({"check_in": "2024-06-05", "check_out": "2024-06-05"}, "inverted-dates"),
            ({"check_in": "2024-06-06", "check_out": "2024-06-05"}, "inverted-dates"),
            ({"property": 999999}, "unknown-property"),
            ({"guests": 4}, "over-capacity"),
        ]
        for overrides, reason in cases:
            payload = {"property": self.property.id, "check_in": "2024-06-01", "check_out": "2024-06-05"}
            payload.update(overrides)
            with self.subTest(reason=reason, payload=payload):
                response = self.client.post(self.list_url, payload, format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
                self.assertEqual(response.data["code"], reason)
        self.assertFalse(Reservation.objects.exists())

    def test_date_problems_are_reported_before_property_problems(self) -> None:
        self.client.force_authenticate(self.guest)
        cases = [
            ({"property": 0, "check_in": "nope", "check_out": "2024-06-01"}, "bad-range"),
            ({"property": self.property.id, "check_out": "2024-06-05"}, "bad-range"),
            ({"property": "abc", "check_in": None, "check_out": "2024-06-05"}, "bad-range"),
            ({"property": self.property.id, "check_in": 20240601, "check_out": "2024-06-05"}, "bad-range"),
            ({"property": 0, "check_in": "2024-06-05", "check_out": "2024-06-01"}, "inverted-dates"),
            ({"check_in": "2024-06-01", "check_out": "2024-06-05"}, "unknown-property"),
            ({"property": "abc", "check_in": "2024-06-01", "check_out": "2024-06-05"}, "unknown-property"),
            ({"property": -3, "check_in": "2024-06-01", "check_out": "2024-06-05"}, "unknown-property"),
            ({"property": 10**20, "check_in": "2024-06-01", "check_out": "2024-06-05"}, "unknown-property"),
        ]
        for payload, reason in cases:
            with self.subTest(reason=reason, payload=payload):
                response = self.client.post(self.list_url, payload, format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
                self.assertEqual(response.data["code"], reason)
        self.assertFalse(Reservation.objects.exists())

    def test_database_outage_on_read_returns_503(self) -> None:
        self.client.force_authenticate(self.guest)
        booked = self._book().data["id"]
        lost = OperationalError("connection lost")

        with mock.patch.object(DjangoReservationStore, "list_for_owner", side_effect=lost):
            response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["code"], "storage-unavailable")
        self.assertEqual(response["Retry-After"], "1")

        with mock.patch.object(DjangoReservationStore, "get", side_effect=lost):
            response = self.client.get(reverse("reservation-detail", args=[booked]))
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["code"], "storage-unavailable")

        self.assertFalse(Reservation.objects.exists())

    def test_zero_guests_is_plain_validation_error(self) -> None:
        self.client.force_authenticate(self.guest)
        response = self._book(guests=0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("guests", response.data)

    def test_list_own_reservations_newest_first(self) -> None:
        self.client.force_authenticate(self.guest)
        first = self._book("2024-06-01", "2024-06-05").data["id"]
        second = self._book("2024-07-01", "2024-07-05").data["id"]
        self.client.force_authenticate(self.other)
        self._book("2024-08-01", "2024-08-05")

        self.client.force_authenticate(self.guest)
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [second, first])

    def test_admin_lists_by_owner_email(self) -> None:
        self.client.force_authenticate(self.guest)
        booked = self._book().data["id"]

        self.client.force_authenticate(self.admin)
        response = self.client.get(self.list_url, {"owner_email": "guest@example.com"})
        self.assertEqual([item["id"] for item in response.data], [booked])

        response = self.client.get(self.list_url, {"owner_email": "ghost@example.com"})
        self.assertEqual(response.data, [])

    def test_superuser_without_staff_flag_acts_as_admin(self) -> None:
        root = User.objects.create_user(email="root@example.com", password="StrongPass123", is_superuser=True)
        self.assertFalse(root.is_staff)
        self.client.force_authenticate(self.guest)
        booked = self._book().data["id"]

        self.client.force_authenticate(root)
        response = self.client.get(self.list_url, {"owner_email": "guest@example.com"})
        self.assertEqual([item["id"] for item in response.data], [booked])
        response = self.client.get(reverse("reservation-detail", args=[booked]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(reverse("reservation-cancel", args=[booked]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")

    def test_owner_email_is_ignored_for_regular_users(self) -> None:
        self.client.force_authenticate(self.guest)
        self._book()

        self.client.force_authenticate(self.other)
        response = self.client.get(self.list_url, {"owner_email": "guest@example.com"})
        self.assertEqual(response.data, [])

    def test_retrieve_owner_admin_and_stranger(self) -> None:
        self.client.force_authenticate(self.guest)
        booked = self._book().data["id"]
        url = reverse("reservation-detail", args=[booked])

        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)
        self.client.force_authenticate(self.other)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "forbidden")

    def test_cancel_flow(self) -> None:
        self.client.force_authenticate(self.guest)
        booked = self._book().data["id"]
        cancel_url = reverse("reservation-cancel", args=[booked])

        self.client.force_authenticate(self.other)
        response = self.client.post(cancel_url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Reservation.objects.get(pk=booked).status, Reservation.Status.CONFIRMED)

        self.client.force_authenticate(self.guest)
        response = self.client.post(cancel_url, {"reason": "Change of plans"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["cancellation_reason"], "Change of plans")

        response = self.client.post(cancel_url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")

        response = self._book()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_admin_cancels_any_reservation(self) -> None:
        self.client.force_authenticate(self.guest)
        booked = self._book().data["id"]

        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("reservation-cancel", args=[booked]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Reservation.objects.get(pk=booked).status, Reservation.Status.CANCELLED)

    def test_cancel_missing_reservation(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("reservation-cancel", args=[424242]), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not-found")

    def test_session_login_can_book(self) -> None:
        logged_in = self.client.login(email="guest@example.com", password="StrongPass123")
        self.assertTrue(logged_in)

        response = self._book()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
