from unittest import mock

from django.core.cache import cache
from django.test import TestCase

from tenants.models import Page


class SubdomainRoutingMiddlewareTests(TestCase):
    def setUp(self):
        cache.clear()
        self.page = Page.objects.create(name="Acme", subdomain="acme")

    def test_root_domain_renders_landing_page(self):
        resp = self.client.get("/", HTTP_HOST="downtime.online")
        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "statuspages/landing.html")
        self.assertEqual(resp.wsgi_request.subdomain_route.kind, "root")
        self.assertIsNone(resp.wsgi_request.tenant_page)

    def test_localhost_is_root(self):
        resp = self.client.get("/", HTTP_HOST="localhost:8000")
        self.assertEqual(resp.wsgi_request.subdomain_route.kind, "root")

    def test_app_subdomain_redirects_to_dashboard(self):
        resp = self.client.get("/", HTTP_HOST="app.downtime.online")
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp["Location"], "/dashboard/")

    def test_other_reserved_subdomain_is_not_a_status_page(self):
        resp = self.client.get("/", HTTP_HOST="www.downtime.online")
        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "statuspages/landing.html")

    def test_tenant_subdomain_renders_status_page(self):
        resp = self.client.get("/", HTTP_HOST="acme.downtime.online")
        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "statuspages/status_page.html")
        self.assertEqual(resp.wsgi_request.tenant_page["subdomain"], "acme")
        self.assertEqual(resp.wsgi_request.tenant_page["id"], str(self.page.id))
        self.assertContains(resp, "Acme")

    def test_unknown_subdomain_is_404(self):
        resp = self.client.get("/", HTTP_HOST="ghost.downtime.online")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.content, b"Status page not found")

    def test_unknown_subdomain_404_applies_to_api_paths_too(self):
        resp = self.client.get("/api/public/summary/", HTTP_HOST="ghost.downtime.online")
        self.assertEqual(resp.status_code, 404)

    def test_page_projection_is_cached(self):
        self.client.get("/", HTTP_HOST="acme.downtime.online")
        self.assertIsNotNone(cache.get("subdomain:acme"))

        # Served from cache even when the store is unavailable
        with mock.patch("tenants.store.DjangoPageStore.find_by_subdomain", side_effect=RuntimeError("db down")):
            resp = self.client.get("/api/public/summary/", HTTP_HOST="acme.downtime.online")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["page"]["subdomain"], "acme")

    def test_settings_update_is_not_visible_until_cache_expires(self):
        self.client.get("/", HTTP_HOST="acme.downtime.online")
        Page.objects.filter(pk=self.page.pk).update(name="Acme Renamed")
        resp = self.client.get("/api/public/summary/", HTTP_HOST="acme.downtime.online")
        self.assertEqual(resp.json()["page"]["name"], "Acme")

        cache.delete("subdomain:acme")
        resp = self.client.get("/api/public/summary/", HTTP_HOST="acme.downtime.online")
        self.assertEqual(resp.json()["page"]["name"], "Acme Renamed")
