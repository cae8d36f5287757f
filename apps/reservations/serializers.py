"""Serializers for the reservations domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class ReservationCreateSerializer(serializers.Serializer):
    """Booking request from a user.

    The property and the dates are taken as sent: the reservation service
    checks them in order (dates, then property) so that every problem
    carries its reason code.
    """

    property = serializers.JSONField(required=False, allow_null=True)
    check_in = serializers.JSONField(required=False, allow_null=True)
    check_out = serializers.JSONField(required=False, allow_null=True)
    rooms = serializers.IntegerField(min_value=1, required=False)
    guests = serializers.IntegerField(min_value=1, required=False)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class ReservationSerializer(serializers.Serializer):
    """Read representation of a reservation entity."""

    id = serializers.IntegerField()
    owner = serializers.IntegerField(source="owner_id")
    property = serializers.IntegerField(source="property_id")
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    nights = serializers.IntegerField()
    status = serializers.CharField(source="status.value")
    rooms = serializers.IntegerField()
    guests = serializers.IntegerField()
    note = serializers.CharField()
    nightly_rate = serializers.DecimalField(max_digits=10, decimal_places=2)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    cancelled_at = serializers.DateTimeField(allow_null=True)
    cancellation_reason = serializers.CharField()
    created_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)
