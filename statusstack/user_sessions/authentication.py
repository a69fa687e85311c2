from rest_framework.authentication import BaseAuthentication

from .services import get_session_manager


class SessionCookieAuthentication(BaseAuthentication):
    """Authenticate DRF requests with the session_id cookie.

    Protected paths are validated once by SessionCookieMiddleware, which
    attaches the result to the request; public paths (logout, /api/public/)
    are validated here on demand. request.auth is the Session row.
    """

    def authenticate(self, request):
        django_request = request._request
        session = getattr(django_request, "auth_session", None)
        user = getattr(django_request, "auth_user", None)
        if session is not None and user is not None:
            return (user, session)

        manager = get_session_manager()
        result = manager.validate(manager.token_from_request(django_request))
        if result is None:
            return None
        session, user = result
        return (user, session)

    def authenticate_header(self, request):
        return 'Session realm="api"'
