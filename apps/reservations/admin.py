"""Admin registrations for reservations domain."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "property",
        "owner",
        "check_in",
        "check_out",
        "status",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "check_in")
    search_fields = ("owner__email", "property__title")
    date_hierarchy = "check_in"
    list_select_related = ("property", "owner")
    readonly_fields = (
        "owner",
        "property",
        "check_in",
        "check_out",
        "status",
        "nightly_rate",
        "total_price",
        "cancelled_at",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        # New reservations go through the API so the overlap rule applies.
        return False

    def has_delete_permission(self, request, obj=None):
        return False
