from django.urls import path
from .views import (
    LoginView,
    LogoutAllView,
    LogoutView,
    MagicLinkRequestView,
    MagicLinkVerifyView,
    MeView,
    SignupView,
)

urlpatterns = [
    path("signup/", SignupView.as_view(), name="signup"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("logout-all/", LogoutAllView.as_view(), name="logout_all"),
    path("me/", MeView.as_view(), name="me"),
    path("magic-link/", MagicLinkRequestView.as_view(), name="magic_link_request"),
    path("magic-link/verify/", MagicLinkVerifyView.as_view(), name="magic_link_verify"),
]
