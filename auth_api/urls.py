from django.urls import path
from .views import (
    RegisterView,
    RegisterWithTopicsView,
    VerifyEmailView,
    ResendVerificationView,
    LoginView,
    LogoutView,
    RefreshView,
    ForgotPasswordView,
    ResetPasswordView,
    CompleteProfileView,
    ProfileCompletionView,
)

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("register-with-topics/", RegisterWithTopicsView.as_view(), name="register-with-topics"),
    path("verify-email/", VerifyEmailView.as_view(), name="verify-email"),
    path("resend-verification/", ResendVerificationView.as_view(), name="resend-verification"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("refresh/", RefreshView.as_view(), name="token-refresh"),
    path("forgot-password/", ForgotPasswordView.as_view(), name="forgot-password"),
    path("reset-password/", ResetPasswordView.as_view(), name="reset-password"),
    path("complete-profile/", CompleteProfileView.as_view(), name="complete-profile"),
    path("profile-completion/", ProfileCompletionView.as_view(), name="profile-completion"),
]
