"""Serializers for the properties domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Property


class PropertySerializer(serializers.ModelSerializer):
    class Meta:
        model = Property
        fields = [
            "id",
            "title",
            "description",
            "city",
            "address",
            "price_per_night",
            "max_guests",
            "rooms",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
