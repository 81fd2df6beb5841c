import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from users.serializers import UserSerializer
from . import verification
from .emails import send_password_reset_email, send_verification_email
from .serializers import (
    VerificationRequestSerializer,
    SignupSerializer,
    LoginSerializer,
    PasswordResetRequestSerializer,
    PasswordResetCodeSerializer,
    PasswordResetSerializer,
)

logger = logging.getLogger("eventflow.authx")


class SendVerificationView(APIView):
    """
    POST /api/auth/verification/
    Body: {"email": "..."}

    Issues a fresh code (replacing any previous one) and emails it.
    The code is never part of the response.
    """
    permission_classes = []
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "verification"

    def post(self, request):
        serializer = VerificationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        otp = verification.issue(email)

        # Delivery is non-critical for the request; the user can ask again
        try:
            send_verification_email(email, otp)
        except Exception as e:
            logger.warning(f"Failed to send verification email to {email}: {e}")

        return Response({"message": "Verification code sent"}, status=status.HTTP_202_ACCEPTED)


class SignupView(APIView):
    # allow unauthenticated
    permission_classes = []
    authentication_classes = []

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = verification.signup(
            email=data["email"],
            otp=data["otp"],
            name=data["name"],
            password=data["password"],
            role=data["role"],
            organization=data.get("organization"),
            college=data.get("college"),
        )
        return Response(
            {"message": "Signup successful", "user_id": user.id},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    # allow unauthenticated
    permission_classes = []
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data['user']
        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_200_OK
        )


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class ForgotPasswordView(APIView):
    """
    POST /api/auth/password/forgot/
    Body: {"email": "..."}

    Emails a reset code when the address has an account. The answer is the
    same either way, so the endpoint does not reveal which emails exist.
    """
    permission_classes = []
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "verification"

    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        otp = verification.request_password_reset(email)
        if otp is not None:
            try:
                send_password_reset_email(email, otp)
            except Exception as e:
                logger.warning(f"Failed to send password reset email to {email}: {e}")

        return Response(
            {"message": "If an account exists for this email, a reset code has been sent"},
            status=status.HTTP_202_ACCEPTED,
        )


class VerifyResetCodeView(APIView):
    """
    POST /api/auth/password/verify/
    Body: {"email", "otp"}

    Lets the client check a code before asking for the new password.
    The code stays valid until the reset itself.
    """
    permission_classes = []
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "password-reset"

    def post(self, request):
        serializer = PasswordResetCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        verification.verify(data["email"], data["otp"], purpose=verification.PASSWORD_RESET)
        return Response({"valid": True})


class ResetPasswordView(APIView):
    """
    POST /api/auth/password/reset/
    Body: {"email", "otp", "new_password"}
    """
    permission_classes = []
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "password-reset"

    def post(self, request):
        serializer = PasswordResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        verification.reset_password(
            email=data["email"],
            otp=data["otp"],
            new_password=data["new_password"],
        )
        return Response({"message": "Password reset successful"})
