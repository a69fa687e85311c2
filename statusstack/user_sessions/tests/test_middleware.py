from datetime import timedelta

from django.contrib.auth.models import User
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone
from django.utils.http import parse_http_date
from rest_framework.test import APIClient

from user_sessions.models import Session
from user_sessions.services import get_session_manager


class SessionCookieMiddlewareTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(
            username="dana@example.com", email="dana@example.com", password="x", first_name="Dana"
        )
        self.sessions = get_session_manager()

    def login(self):
        session = self.sessions.issue(self.user.pk)
        self.client.cookies["session_id"] = session.token
        return session

    def test_api_without_cookie_is_401_json(self):
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 401)
        self.assertIn("detail", resp.json())
        self.assertEqual(resp["WWW-Authenticate"], 'Session realm="api"')

    def test_dashboard_without_cookie_redirects_to_login(self):
        resp = self.client.get("/dashboard/")
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], "/login/?next=%2Fdashboard%2F")

    def test_expired_cookie_is_rejected_and_cleared(self):
        session = self.login()
        Session.objects.filter(token=session.token).update(expires_at=timezone.now() - timedelta(minutes=1))
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.cookies["session_id"].value, "")

    def test_valid_session_reaches_view(self):
        session = self.login()
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["email"], "dana@example.com")
        self.assertEqual(resp.data["name"], "Dana")
        self.assertEqual(resp.wsgi_request.auth_session.token, session.token)
        # Fresh session: nothing to slide, cookie untouched
        self.assertNotIn("session_id", resp.cookies)

    def test_sliding_refresh_reissues_cookie(self):
        session = self.login()
        near_expiry = timezone.now() + timedelta(days=10)
        Session.objects.filter(token=session.token).update(expires_at=near_expiry)

        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 200)
        stored = Session.objects.get(token=session.token)
        self.assertGreater(stored.expires_at, timezone.now() + timedelta(days=29))
        cookie = resp.cookies["session_id"]
        self.assertEqual(cookie.value, session.token)
        self.assertTrue(cookie["httponly"])
        self.assertEqual(cookie["samesite"], "Lax")
        self.assertEqual(cookie["path"], "/")
        self.assertAlmostEqual(parse_http_date(cookie["expires"]), stored.expires_at.timestamp(), delta=2)

    @override_settings(AUTH_SESSION_COOKIE_SECURE=True)
    def test_refreshed_cookie_is_secure_when_configured(self):
        session = self.login()
        Session.objects.filter(token=session.token).update(expires_at=timezone.now() + timedelta(days=10))
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.cookies["session_id"]["secure"])

    def test_public_paths_skip_validation(self):
        resp = self.client.get("/login/")
        self.assertEqual(resp.status_code, 200)
        resp = self.client.post("/api/auth/logout/")
        self.assertEqual(resp.status_code, 200)

    def test_orphaned_session_is_unauthenticated(self):
        session = self.login()
        Session.objects.filter(token=session.token).update(user_id=self.user.pk + 999)
        resp = self.client.get("/api/auth/me/")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(Session.objects.filter(token=session.token).exists())
