"""Reservation models for Reserva."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.db.models import F, Q  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

# Name of the PostgreSQL exclusion constraint created in migration 0002.
NO_OVERLAP_CONSTRAINT = "reservation_no_overlap"


class ReservationQuerySet(models.QuerySet):
    def active(self):
        return self.exclude(status=Reservation.Status.CANCELLED)

    def overlapping(self, check_in, check_out):
        """Rows whose [check_in, check_out) intersects the given range."""
        return self.filter(Q(check_in__lt=check_out) & Q(check_out__gt=check_in))


class Reservation(models.Model):
    """A stay booked by a user at a property."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    rooms = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    guests = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    note = models.TextField(blank=True)
    nightly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Price per night captured when the reservation was made."),
    )
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["property", "check_in", "check_out"], name="reservation_property_dates"),
            models.Index(fields=["owner", "created_at"], name="reservation_owner_created"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(check_out__gt=F("check_in")),
                name="reservation_valid_dates",
            ),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.pk} {self.property_id} [{self.check_in}, {self.check_out})"

