from django.contrib.auth.models import User
from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import TeamMember
from tenants.models import Page
from user_sessions.services import get_session_manager


class PageTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.owner = self.make_user("owner@example.com")
        self.client = self.client_for(self.owner)

    def make_user(self, email):
        return User.objects.create_user(username=email, email=email, password="x", first_name=email.split("@")[0])

    def client_for(self, user):
        client = APIClient()
        client.cookies["session_id"] = get_session_manager().issue(user.pk).token
        return client

    def make_page(self, subdomain="acme", owner=None):
        page = Page.objects.create(name=subdomain.title(), subdomain=subdomain)
        TeamMember.objects.create(page=page, user=owner or self.owner, role=TeamMember.ROLE_OWNER)
        return page


class PageApiTests(PageTestCase):
    def test_create_page_makes_creator_owner(self):
        resp = self.client.post("/api/pages/", {"name": "Acme", "subdomain": "Acme-Status"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["subdomain"], "acme-status")
        self.assertEqual(resp.data["status_indicator"], "none")
        member = TeamMember.objects.get(page_id=resp.data["id"])
        self.assertEqual(member.user, self.owner)
        self.assertEqual(member.role, TeamMember.ROLE_OWNER)

    def test_invalid_subdomains_are_rejected(self):
        self.make_page("taken")
        for subdomain in ("ab", "-acme", "acme-", "ac_me", "app", "www", "taken", "a" * 64):
            resp = self.client.post("/api/pages/", {"name": "X", "subdomain": subdomain}, format="json")
            self.assertEqual(resp.status_code, 400, subdomain)
            self.assertIn("subdomain", resp.data)
        self.assertEqual(Page.objects.count(), 1)

    def test_list_only_shows_own_pages(self):
        mine = self.make_page("mine")
        self.make_page("theirs", owner=self.make_user("other@example.com"))
        resp = self.client.get("/api/pages/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p["id"] for p in resp.data], [str(mine.id)])

    def test_non_member_gets_404(self):
        page = self.make_page("theirs", owner=self.make_user("other@example.com"))
        self.assertEqual(self.client.get(f"/api/pages/{page.id}/").status_code, 404)

    def test_owner_updates_settings(self):
        page = self.make_page()
        resp = self.client.patch(
            f"/api/pages/{page.id}/",
            {"status_indicator": "major", "status_description": "Partial outage", "custom_domain": "Status.Acme.com"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        page.refresh_from_db()
        self.assertEqual(page.status_indicator, "major")
        self.assertEqual(page.custom_domain, "status.acme.com")

    def test_subdomain_cannot_change(self):
        page = self.make_page()
        self.client.patch(f"/api/pages/{page.id}/", {"subdomain": "other"}, format="json")
        page.refresh_from_db()
        self.assertEqual(page.subdomain, "acme")

    def test_plain_member_cannot_update(self):
        page = self.make_page()
        member = self.make_user("member@example.com")
        TeamMember.objects.create(page=page, user=member, role=TeamMember.ROLE_MEMBER)
        client = self.client_for(member)
        self.assertEqual(client.get(f"/api/pages/{page.id}/").status_code, 200)
        resp = client.patch(f"/api/pages/{page.id}/", {"name": "Hacked"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_pages_cannot_be_deleted(self):
        page = self.make_page()
        self.assertEqual(self.client.delete(f"/api/pages/{page.id}/").status_code, 405)
        self.assertTrue(Page.objects.filter(pk=page.pk).exists())


class TeamMemberApiTests(PageTestCase):
    def setUp(self):
        super().setUp()
        self.page = self.make_page()
        self.url = f"/api/pages/{self.page.id}/members/"

    def test_add_and_list_members(self):
        self.make_user("helen@example.com")
        resp = self.client.post(self.url, {"email": "Helen@example.com", "role": "admin"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["role"], "admin")

        resp = self.client.get(self.url)
        self.assertEqual(sorted(m["email"] for m in resp.data), ["helen@example.com", "owner@example.com"])

    def test_add_unknown_or_duplicate_member(self):
        resp = self.client.post(self.url, {"email": "ghost@example.com"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(self.url, {"email": "owner@example.com"}, format="json")
        self.assertEqual(resp.status_code, 409)

    def test_plain_member_cannot_manage_team(self):
        member = self.make_user("ivan@example.com")
        TeamMember.objects.create(page=self.page, user=member, role=TeamMember.ROLE_MEMBER)
        self.make_user("judy@example.com")
        client = self.client_for(member)
        self.assertEqual(client.get(self.url).status_code, 200)
        self.assertEqual(client.post(self.url, {"email": "judy@example.com"}, format="json").status_code, 403)

    def test_remove_member(self):
        user = self.make_user("kim@example.com")
        member = TeamMember.objects.create(page=self.page, user=user, role=TeamMember.ROLE_MEMBER)
        resp = self.client.delete(f"{self.url}{member.id}/")
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(TeamMember.objects.filter(pk=member.pk).exists())

    def test_last_owner_cannot_be_removed(self):
        owner = TeamMember.objects.get(page=self.page, user=self.owner)
        resp = self.client.delete(f"{self.url}{owner.id}/")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(TeamMember.objects.filter(pk=owner.pk).exists())

        second = TeamMember.objects.create(
            page=self.page, user=self.make_user("lee@example.com"), role=TeamMember.ROLE_OWNER
        )
        self.assertEqual(self.client.delete(f"{self.url}{owner.id}/").status_code, 204)
        self.assertTrue(TeamMember.objects.filter(pk=second.pk).exists())


class DashboardViewTests(PageTestCase):
    def test_dashboard_lists_pages(self):
        self.make_page("acme")
        resp = self.client.get("/dashboard/")
        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "tenants/dashboard.html")
        self.assertContains(resp, "acme")
