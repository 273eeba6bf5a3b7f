import logging

from django.contrib.auth.models import update_last_login
from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from config.api import envelope
from config.exceptions import BadRequest
from .models import CustomUser
from .serializers import (
    ChangePasswordSerializer,
    LoginSerializer,
    RegisterSerializer,
    UserSerializer,
)

security_logger = logging.getLogger("farmlink.security")


def client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {"token": str(refresh.access_token), "refresh": str(refresh)}


# -------- Auth --------
class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        email = request.data.get("email")
        if isinstance(email, str) and CustomUser.objects.find_by_email(email):
            raise BadRequest("User with this email already exists")

        ser = RegisterSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                user = ser.save()
        except IntegrityError:
            # a concurrent sign-up claimed the email between the check and the insert
            raise BadRequest("User with this email already exists")

        security_logger.info(
            "User registered: id=%s email=%s ip=%s", user.id, user.email, client_ip(request)
        )
        return envelope(
            "User registered successfully",
            {"user": UserSerializer(user).data, **issue_tokens(user)},
            status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        ser = LoginSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        email = ser.validated_data["email"]
        password = ser.validated_data["password"]

        user = CustomUser.objects.find_by_email(email)
        if user is None or not user.check_password(password):
            security_logger.warning(
                "Failed login attempt: email=%s ip=%s agent=%s",
                email, client_ip(request), request.META.get("HTTP_USER_AGENT", ""),
            )
            raise AuthenticationFailed("Invalid email or password")

        if not user.is_active:
            raise AuthenticationFailed("Account is deactivated. Please contact support.")

        update_last_login(None, user)
        security_logger.info(
            "Successful login: id=%s email=%s ip=%s", user.id, user.email, client_ip(request)
        )
        return envelope(
            "Login successful",
            {"user": UserSerializer(user).data, **issue_tokens(user)},
        )


# -------- Profile --------
class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return envelope(
            "Profile retrieved successfully",
            {"user": UserSerializer(request.user).data},
        )

    def put(self, request):
        return self._update(request, partial=True)

    def patch(self, request):
        return self._update(request, partial=True)

    def _update(self, request, partial):
        ser = UserSerializer(request.user, data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        ser.save()
        return envelope("Profile updated successfully", {"user": ser.data})


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = ChangePasswordSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(ser.validated_data["currentPassword"]):
            raise BadRequest("Current password is incorrect")

        user.set_password(ser.validated_data["newPassword"])
        user.save(update_fields=["password", "updated_at"])
        security_logger.info("Password changed: id=%s", user.id)
        return envelope("Password changed successfully")

    def put(self, request):
        return self.post(request)


class DeactivateAccountView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        user = request.user
        user.is_active = False
        user.save(update_fields=["is_active", "updated_at"])
        security_logger.info("Account deactivated: id=%s", user.id)
        return envelope("Account deactivated successfully")
