"""Views for authentication flows (register, login, logout).

Login opens a Django session for browser clients and also returns a JWT
pair for API clients; both are accepted by the REST framework.
"""

from __future__ import annotations

import logging

from django.contrib.auth import login, logout  # type: ignore
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken  # type: ignore

from .auth_serializers import LoginSerializer, RegisterSerializer
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


def _tokens_for_user(user) -> dict[str, str]:
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("User %s registered", user.pk)
        data = {
            "user": UserSerializer(user).data,
            "tokens": _tokens_for_user(user),
        }
        return Response(data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):  # type: ignore
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        login(request, user, backend="django.contrib.auth.backends.ModelBackend")
        logger.info("User %s logged in", user.pk)
        data = {
            "user": UserSerializer(user).data,
            "tokens": _tokens_for_user(user),
        }
        return Response(data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):  # type: ignore
        logout(request)
        return Response(status=status.HTTP_204_NO_CONTENT)
