import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from django.db import transaction
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.generic import TemplateView
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from user_sessions.services import get_session_manager
from .serializers import (
    LoginSerializer,
    MagicLinkRequestSerializer,
    MagicLinkVerifySerializer,
    MeSerializer,
    SignupSerializer,
    UserSerializer,
)
from .services import MagicLinkService

logger = logging.getLogger(__name__)


class LoginThrottle(AnonRateThrottle):
    scope = 'login'


class SignupThrottle(AnonRateThrottle):
    scope = 'signup'


def _touch_last_login(user):
    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])


def _session_response(user, payload, status_code):
    """Issue a session for user and return payload with the cookie set"""
    sessions = get_session_manager()
    session = sessions.issue(user.pk)
    _touch_last_login(user)
    response = Response(payload, status=status_code)
    sessions.set_cookie(response, session)
    return response


class SignupView(APIView):
    """Create a password account and sign it in"""
    permission_classes = [AllowAny]
    throttle_classes = [SignupThrottle]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if serializer.email_taken():
            return Response(
                {"detail": "An account with this email already exists"},
                status=status.HTTP_409_CONFLICT,
            )
        with transaction.atomic():
            user = serializer.save()
        logger.info("[Signup] user=%s created", user.pk)
        return _session_response(user, {"user": UserSerializer(user).data}, status.HTTP_201_CREATED)


class LoginView(APIView):
    """Email/password login; sets the session_id cookie"""
    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        # Password-less (magic link only) accounts have an unusable password and fail here too
        user = authenticate(request._request, username=email, password=serializer.validated_data["password"])
        if user is None:
            logger.info("[Login] failed for email=%s", email)
            return Response(
                {"detail": "Invalid email or password"},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        return _session_response(user, {"user": UserSerializer(user).data}, status.HTTP_200_OK)


class LogoutView(APIView):
    """Destroy the current session (if any) and clear the cookie. Always succeeds."""
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request):
        sessions = get_session_manager()
        token = sessions.token_from_request(request)
        destroyed = sessions.destroy(token) if token else False
        response = Response({"detail": "Logged out successfully", "destroyed": destroyed})
        sessions.clear_cookie(response)
        return response


class LogoutAllView(APIView):
    """Destroy every session of the current user, this one included"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        sessions = get_session_manager()
        count = sessions.destroy_all(request.user.pk)
        response = Response({"detail": "Logged out everywhere", "destroyed": count})
        sessions.clear_cookie(response)
        return response


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        data = MeSerializer(request.user).data
        data["session_expires_at"] = request.auth.expires_at.isoformat() if request.auth else None
        return Response(data)


class MagicLinkRequestView(APIView):
    """Email a single-use sign-in link.

    Always answers 200 so the endpoint cannot be used to probe for accounts.
    """
    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        serializer = MagicLinkRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = User.objects.filter(username=serializer.validated_data["email"], is_active=True).first()
        if user is not None:
            link = MagicLinkService.create(user)
            MagicLinkService.send(link)
        return Response({"detail": "If an account exists for this email, a sign-in link has been sent."})


class MagicLinkVerifyView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        serializer = MagicLinkVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = MagicLinkService.consume(serializer.validated_data["token"])
        if user is None or not user.is_active:
            return Response(
                {"detail": "This sign-in link is invalid or has expired"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return _session_response(user, {"user": UserSerializer(user).data}, status.HTTP_200_OK)


class LoginPageView(TemplateView):
    template_name = "accounts/login.html"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        next_url = self.request.GET.get("next", "")
        # Only same-host paths; rejects "//other.host" and absolute URLs
        if not (
            next_url.startswith("/")
            and url_has_allowed_host_and_scheme(
                next_url,
                allowed_hosts={self.request.get_host()},
                require_https=self.request.is_secure(),
            )
        ):
            next_url = "/dashboard/"
        ctx["next_url"] = next_url
        return ctx
