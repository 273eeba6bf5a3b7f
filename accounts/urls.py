from django.urls import path

from .views import (
    ChangePasswordView,
    DeactivateAccountView,
    LoginView,
    ProfileView,
    RegisterView,
)

urlpatterns = [
    path("register/", RegisterView.as_view(), name="auth-register"),
    path("login/", LoginView.as_view(), name="auth-login"),
    path("profile/", ProfileView.as_view(), name="auth-profile"),
    path("change-password/", ChangePasswordView.as_view(), name="auth-change-password"),
    path("deactivate/", DeactivateAccountView.as_view(), name="auth-deactivate"),
]
