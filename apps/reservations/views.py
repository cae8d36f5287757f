"""API views for the reservations domain."""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .serializers import ReservationCancelSerializer, ReservationCreateSerializer, ReservationSerializer
from .services import ReservationService


class ReservationViewSet(viewsets.ViewSet):
    """Create, list, inspect and cancel reservations.

    Business rules live in ReservationService; domain errors are rendered
    by the project exception handler.
    """

    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ReservationSerializer

    def get_service(self) -> ReservationService:
        return ReservationService()

    @extend_schema(
        parameters=[
            OpenApiParameter("owner_email", str, description="Administrators only: list another user's reservations."),
        ],
        responses=ReservationSerializer(many=True),
    )
    def list(self, request):  # type: ignore
        service = self.get_service()
        owner_email = request.query_params.get("owner_email")
        if owner_email and request.user.is_admin:
            reservations = service.list_reservations_for_owner(owner_email=owner_email)
        else:
            reservations = service.list_reservations_for_owner(requester_id=request.user.id)
        return Response(ReservationSerializer(reservations, many=True).data)

    @extend_schema(request=ReservationCreateSerializer, responses={201: ReservationSerializer})
    def create(self, request):  # type: ignore
        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation = self.get_service().create_reservation(
            property_id=data.get("property"),
            check_in=data.get("check_in"),
            check_out=data.get("check_out"),
            requester_id=request.user.id,
            rooms=data.get("rooms"),
            guests=data.get("guests"),
            note=data.get("note"),
        )
        return Response(ReservationSerializer(reservation).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses=ReservationSerializer)
    def retrieve(self, request, pk=None):  # type: ignore
        reservation = self.get_service().get_reservation(
            pk, requester_id=request.user.id, is_admin=request.user.is_admin
        )
        return Response(ReservationSerializer(reservation).data)

    @extend_schema(request=ReservationCancelSerializer, responses=ReservationSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = ReservationCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = self.get_service().cancel_reservation(
            pk,
            requester_id=request.user.id,
            is_admin=request.user.is_admin,
            reason=serializer.validated_data["reason"],
        )
        return Response(ReservationSerializer(reservation).data, status=status.HTTP_200_OK)
