"""Account API views.

Password reset, session login/logout, registration and the current-user
endpoint.  Domain exceptions from the services are translated into
``{"error": ...}`` responses here.
"""

from __future__ import annotations

from django.contrib.auth import login, logout
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from modules.accounts.dtos import (
    ForgotPasswordDTO,
    LoginDTO,
    RegisterUserDTO,
    ResetPasswordDTO,
)
from modules.accounts.exceptions import (
    EmailAlreadyRegistered,
    ExpiredResetToken,
    InvalidCredentials,
    InvalidResetToken,
    ResetTokenAlreadyUsed,
)
from modules.accounts.permissions import IsAdminRole
from modules.accounts.repositories.django_repository import (
    PasswordResetDjangoRepository,
    UserDjangoRepository,
)
from modules.accounts.serializers import DeliveryPersonSerializer, UserSerializer
from modules.accounts.services import AccountService, PasswordResetService
from modules.core.validation import first_error_message


def _password_reset_service() -> PasswordResetService:
    return PasswordResetService(
        reset_repository=PasswordResetDjangoRepository(),
        user_repository=UserDjangoRepository(),
    )


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


class ForgotPasswordView(APIView):
    """POST /api/auth/forgot-password"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "password_reset"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _password_reset_service()

    def post(self, request: Request) -> Response:
        email = request.data.get("email")
        if not email or not isinstance(email, str):
            return Response(
                {"error": "Email is required"}, status=status.HTTP_400_BAD_REQUEST
            )
        try:
            dto = ForgotPasswordDTO(email=email)
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        message = self._service.request_reset(dto)
        return Response({"message": message})


class ResetPasswordView(APIView):
    """POST /api/auth/reset-password"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "password_reset"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _password_reset_service()

    def post(self, request: Request) -> Response:
        token = request.data.get("token")
        password = request.data.get("password")
        if not token or not password:
            return Response(
                {"error": "Token and password are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            dto = ResetPasswordDTO(token=str(token), password=str(password))
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            self._service.reset_password(dto)
        except (InvalidResetToken, ExpiredResetToken, ResetTokenAlreadyUsed) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"message": "Password has been reset successfully"})


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class LoginView(APIView):
    """POST /api/auth/login

    Opens a Django session (cookie clients) and also returns a JWT pair
    for Bearer clients such as the delivery app.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "login"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService(user_repository=UserDjangoRepository())

    def post(self, request: Request) -> Response:
        try:
            dto = LoginDTO(
                email=str(request.data.get("email") or ""),
                password=str(request.data.get("password") or ""),
            )
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            user = self._service.authenticate(dto, request=request)
        except InvalidCredentials as exc:
            return Response({"error": str(exc)}, status=status.HTTP_401_UNAUTHORIZED)

        login(request, user)
        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "user": UserSerializer(user).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            }
        )


class LogoutView(APIView):
    """POST /api/auth/logout"""

    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        logout(request)
        return Response({"message": "Logged out"})


class RegisterView(APIView):
    """POST /api/auth/register"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "login"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService(user_repository=UserDjangoRepository())

    def post(self, request: Request) -> Response:
        data = request.data
        if not data.get("name") or not data.get("email") or not data.get("password"):
            return Response(
                {"error": "Name, email and password are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            dto = RegisterUserDTO(
                name=str(data["name"]),
                email=str(data["email"]),
                password=str(data["password"]),
                phone=str(data.get("phone") or ""),
            )
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            user = self._service.register(dto)
        except EmailAlreadyRegistered as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {"user": UserSerializer(user).data}, status=status.HTTP_201_CREATED
        )


class MeView(APIView):
    """GET /api/auth/me"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        return Response({"user": UserSerializer(request.user).data})


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class DeliveryPersonnelView(APIView):
    """GET /api/admin/delivery-personnel"""

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService(user_repository=UserDjangoRepository())

    def get(self, request: Request) -> Response:
        people = self._service.list_delivery_personnel()
        return Response(
            {
                "success": True,
                "deliveryPersons": DeliveryPersonSerializer(people, many=True).data,
            }
        )
