"""Property domain models for Reserva.

The catalog keeps what a booking needs to know about a listing: whether it
is bookable, its nightly price and its capacity.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PropertyQuerySet(models.QuerySet):
    def bookable(self):
        return self.filter(is_active=True)


class Property(models.Model):
    """A listing offered for nightly rental."""

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    city = models.CharField(max_length=100)
    address = models.CharField(max_length=255, blank=True)
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    max_guests = models.PositiveSmallIntegerField(default=2, validators=[MinValueValidator(1)])
    rooms = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(
        default=True,
        help_text=_("Inactive properties are hidden from guests and cannot be booked."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PropertyQuerySet.as_manager()

    class Meta:
        verbose_name = _("Property")
        verbose_name_plural = _("Properties")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["city", "is_active"], name="property_city_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.city})"
