"""User API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .serializers import UserSerializer

User = get_user_model()


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """Read access to users.

    - `me` returns the current user
    - list/retrieve are restricted to administrators
    """

    serializer_class = UserSerializer
    queryset = User.objects.all()

    def get_permissions(self):  # type: ignore
        if self.action == "me":
            return [permissions.IsAuthenticated()]
        return [permissions.IsAdminUser()]

    @action(detail=False, methods=["get"])
    def me(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data)
