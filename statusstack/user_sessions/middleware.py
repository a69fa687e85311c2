import logging

from django.conf import settings
from django.http import HttpResponseRedirect, JsonResponse
from django.utils.http import urlencode

from .services import SessionConfig, SessionManager

logger = logging.getLogger(__name__)


class SessionCookieMiddleware:
    """Validate and slide the session_id cookie on protected paths.

    On success the session and its user are attached as request.auth_session
    and request.auth_user for SessionCookieAuthentication and plain Django
    views. Without a valid session, /api/ paths get a 401 and page paths are
    redirected to the login page. When the session was slid forward the
    cookie is re-issued with the new expiry on the way out.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.sessions = SessionManager(SessionConfig.from_settings(settings))

    def __call__(self, request):
        request.auth_session = None
        request.auth_user = None
        config = self.sessions.config

        if not config.is_protected(request.path):
            return self.get_response(request)

        result = self.sessions.validate(self.sessions.token_from_request(request))
        if result is None:
            return self._unauthenticated(request)

        session, user = result
        request.auth_session = session
        request.auth_user = user
        refreshed = self.sessions.refresh(session)

        response = self.get_response(request)

        # Logout and similar views clear the cookie themselves; do not resurrect it
        cleared = config.cookie_name in response.cookies and not response.cookies[config.cookie_name].value
        if refreshed and not cleared:
            self.sessions.set_cookie(response, session)
        return response

    def _unauthenticated(self, request):
        if request.path.startswith("/api/"):
            response = JsonResponse({"detail": "Authentication credentials were not provided."}, status=401)
            response["WWW-Authenticate"] = 'Session realm="api"'
        else:
            response = HttpResponseRedirect(
                f"{self.sessions.config.login_url}?{urlencode({'next': request.get_full_path()})}"
            )
        # Drop a stale cookie so the browser stops presenting it
        if self.sessions.token_from_request(request):
            self.sessions.clear_cookie(response)
        return response
