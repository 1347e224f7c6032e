from django.urls import path
from .views import (
    ForgotPasswordView,
    LoginView,
    LogoutView,
    MeView,
    PasswordChangeView,
    ProfileUpdateView,
    RegisterView,
    VerifyEmailOTPView,
    accounts_root,
)

urlpatterns = [
    path("", accounts_root, name="accounts-root"),

    path("register/", RegisterView.as_view(), name="register"),
    path("verify-email-otp/", VerifyEmailOTPView.as_view(), name="verify-email-otp"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),
    path("update-details/", ProfileUpdateView.as_view(), name="update-details"),
    path("update-password/", PasswordChangeView.as_view(), name="update-password"),
    path("forgot-password/", ForgotPasswordView.as_view(), name="forgot-password"),
]
