# authx/urls.py
from django.urls import path
from .views import (
    SendVerificationView,
    SignupView,
    LoginView,
    MeView,
    ForgotPasswordView,
    VerifyResetCodeView,
    ResetPasswordView,
)
from rest_framework_simplejwt.views import (
    TokenRefreshView,
    TokenVerifyView,
)

urlpatterns = [
    path("verification/", SendVerificationView.as_view(), name="send-verification"),
    path("signup/", SignupView.as_view(), name="signup"),
    path("login/", LoginView.as_view(), name="login"),
    path("me/", MeView.as_view(), name="me"),
    path("password/forgot/", ForgotPasswordView.as_view(), name="password-forgot"),
    path("password/verify/", VerifyResetCodeView.as_view(), name="password-verify"),
    path("password/reset/", ResetPasswordView.as_view(), name="password-reset"),
    path("jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    path("jwt/verify/", TokenVerifyView.as_view(), name="jwt-verify"),
]
