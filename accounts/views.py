import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import exceptions, generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .serializers import (
    ForgotPasswordSerializer,
    LoginSerializer,
    LogoutSerializer,
    PasswordChangeSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSerializer,
    VerifyOTPSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def token_payload(user):
    """Access/refresh pair plus the public user representation."""
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
        "user": UserSerializer(user).data,
    }


def get_user_or_404(email):
    try:
        return User.objects.get_by_email(email)
    except User.DoesNotExist:
        raise exceptions.NotFound("No user found with this email.")


def send_otp(request, user):
    otp = user.generate_otp()
    user.save(update_fields=["otp_hash", "otp_expires"])
    result = request.services.mailer.send(
        "otp_verification",
        user.email,
        "HomeFinder - verify your email",
        {"name": user.name, "otp": otp, "ttl_minutes": settings.OTP_TTL_MINUTES},
    )
    if not result.success:
        logger.warning("OTP email failed for user_id=%s: %s", user.id, result.error)
    return result


def send_temp_password(request, user):
    temp_password = user.generate_temp_password()
    user.save(update_fields=["temp_password_hash", "temp_password_expires"])
    result = request.services.mailer.send(
        "temp_password",
        user.email,
        "HomeFinder - your temporary password",
        {
            "name": user.name,
            "temp_password": temp_password,
            "ttl_minutes": settings.TEMP_PASSWORD_TTL_MINUTES,
            "login_url": f"{settings.CLIENT_URL}/login",
        },
    )
    if not result.success:
        logger.warning("Temporary password email failed for user_id=%s: %s", user.id, result.error)
    return result


class RegisterView(generics.CreateAPIView):
    """
    User registration endpoint.

    The account starts unverified; a one-time code is mailed to the address
    and must be confirmed through ``verify-email-otp/`` before login.
    """

    queryset = User.objects.all()
    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("User registered user_id=%s", user.id)

        result = send_otp(request, user)
        return Response(
            {
                "user_id": user.id,
                "message": "Registration successful. Check your email for the verification code.",
                "email_send_error": not result.success,
            },
            status=status.HTTP_201_CREATED,
        )


class VerifyEmailOTPView(APIView):
    """
    POST {"email"} re-sends a code, POST {"email", "otp"} verifies it.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = VerifyOTPSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = get_user_or_404(serializer.validated_data["email"])
        otp = serializer.validated_data.get("otp")

        if user.is_email_verified:
            raise exceptions.ValidationError({"email": ["Email is already verified."]})

        if not otp:
            result = send_otp(request, user)
            return Response({
                "message": "A new verification code has been sent.",
                "email_send_error": not result.success,
            })

        if not user.check_otp(otp):
            raise exceptions.ValidationError({"otp": ["Invalid or expired verification code."]})

        user.is_email_verified = True
        user.clear_otp()
        user.save(update_fields=["is_email_verified", "otp_hash", "otp_expires"])
        logger.info("Email verified user_id=%s", user.id)

        result = send_temp_password(request, user)
        payload = token_payload(user)
        payload["email_send_error"] = not result.success
        return Response(payload)


class LoginView(APIView):
    """
    Login with the regular password or an unexpired temporary one.
    A successful temporary-password login makes it the regular password.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]
        password = serializer.validated_data["password"]

        try:
            user = User.objects.get_by_email(email)
        except User.DoesNotExist:
            user = None

        if user is None or not user.is_active:
            logger.warning("Login failed for %s", email)
            raise exceptions.AuthenticationFailed("Invalid email or password.")

        if user.check_temp_password(password):
            user.set_password(password)
            user.clear_temp_password()
            user.save(update_fields=["password", "temp_password_hash", "temp_password_expires"])
            logger.info("Temporary password promoted user_id=%s", user.id)
        elif not user.check_password(password):
            logger.warning("Login failed for user_id=%s", user.id)
            raise exceptions.AuthenticationFailed("Invalid email or password.")

        if not user.is_email_verified:
            raise exceptions.AuthenticationFailed("Please verify your email before logging in.")

        logger.info("User logged in user_id=%s", user.id)
        return Response(token_payload(user))


class LogoutView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            RefreshToken(serializer.validated_data["refresh"]).blacklist()
        except TokenError as exc:
            raise exceptions.ValidationError({"refresh": [str(exc)]})
        logger.info("User logged out user_id=%s", request.user.id)
        return Response({"detail": "Logged out."}, status=status.HTTP_200_OK)


class MeView(generics.RetrieveAPIView):
    """Getting the current user."""

    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


class ProfileUpdateView(generics.UpdateAPIView):
    """
    Profile update (PUT/PATCH), both partial.
    For example: PATCH /api/accounts/update-details/ {"bio": "Quiet tenant"}.
    """
    serializer_class = ProfileUpdateSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        super().update(request, *args, **kwargs)
        return Response(UserSerializer(self.get_object()).data)


class PasswordChangeView(APIView):
    """
    PUT /api/accounts/update-password/
    {
      "current_password": "...",
      "new_password": "..."
    }
    Answers with a fresh token pair.
    """
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request):
        serializer = PasswordChangeSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Password changed user_id=%s", user.id)
        return Response(token_payload(user), status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = get_user_or_404(serializer.validated_data["email"])

        result = send_temp_password(request, user)
        if not result.success:
            # an undelivered temporary password must not stay usable
            user.clear_temp_password()
            user.save(update_fields=["temp_password_hash", "temp_password_expires"])
            return Response({
                "message": "Could not send the temporary password. Please try again later.",
                "email_send_error": True,
            })

        logger.info("Temporary password issued user_id=%s", user.id)
        return Response({
            "message": "A temporary password has been sent to your email.",
            "email_send_error": False,
        })


@api_view(["GET"])
@permission_classes([AllowAny])
def accounts_root(request, format=None):
    return Response({
        "register": reverse("register", request=request, format=format),
        "verify_email_otp": reverse("verify-email-otp", request=request, format=format),
        "login": reverse("login", request=request, format=format),
        "logout": reverse("logout", request=request, format=format),
        "token_refresh": reverse("token_refresh", request=request, format=format),
        "me": reverse("me", request=request, format=format),
        "update_details": reverse("update-details", request=request, format=format),
        "update_password": reverse("update-password", request=request, format=format),
        "forgot_password": reverse("forgot-password", request=request, format=format),
    })
