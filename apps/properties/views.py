"""Property API views."""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore

from .filters import PropertyFilterSet
from .models import Property
from .serializers import PropertySerializer

logger = logging.getLogger(__name__)


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone may browse the catalog; only administrators change it."""

    def has_permission(self, request, view):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class PropertyViewSet(viewsets.ModelViewSet):
    serializer_class = PropertySerializer
    permission_classes = [IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = PropertyFilterSet
    ordering_fields = ["price_per_night", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = Property.objects.all()
        user = self.request.user
        if user.is_authenticated and user.is_admin:
            return qs
        return qs.bookable()

    def perform_destroy(self, instance):  # type: ignore
        # Reservations keep their property; a booked listing is only withdrawn.
        if instance.reservations.exists():
            instance.is_active = False
            instance.save(update_fields=["is_active", "updated_at"])
            logger.info(f"Property {instance.pk} has reservations, deactivated instead of deleted")
            return
        instance.delete()
