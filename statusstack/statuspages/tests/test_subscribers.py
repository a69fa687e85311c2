import re
from datetime import timedelta
from unittest import mock
from urllib.parse import urlsplit

from django.core import mail
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import TeamMember
from statuspages import notifications, tasks
from statuspages.models import Component, ComponentGroup, Incident, IncidentUpdate, Subscriber, SubscriberConfirmation
from tenants.models import Page
from .test_components import StatusPageApiTestCase

HOST = "acme.downtime.online"


class PublicSubscribeTests(StatusPageApiTestCase):
    def setUp(self):
        super().setUp()
        self.public = APIClient(HTTP_HOST=HOST)
        self.api = Component.objects.create(page=self.page, name="API")

    def subscribe(self, email="sam@example.com", **extra):
        data = {"email": email}
        data.update(extra)
        with mock.patch.object(tasks.send_subscriber_confirmation, "delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                resp = self.public.post("/api/public/subscribe/", data, format="json")
        return resp, delay

    def test_subscribe_creates_pending_subscriber_and_queues_confirmation(self):
        resp, delay = self.subscribe("Sam@Example.com", component_ids=[str(self.api.id)])
        self.assertEqual(resp.status_code, 202)
        subscriber = Subscriber.objects.get(page=self.page)
        self.assertEqual(subscriber.email, "sam@example.com")
        self.assertEqual(subscriber.component_ids, [str(self.api.id)])
        self.assertIsNone(subscriber.confirmed_at)
        confirmation = SubscriberConfirmation.objects.get(subscriber=subscriber)
        delay.assert_called_once_with(confirmation.token)
        self.assertGreater(confirmation.expires_at, timezone.now() + timedelta(hours=47))

    def test_subscribe_twice_reuses_subscriber(self):
        self.subscribe()
        self.subscribe()
        self.assertEqual(Subscriber.objects.filter(page=self.page).count(), 1)

    def test_existing_subscriber_is_unchanged_until_confirmed(self):
        subscriber = Subscriber.objects.create(page=self.page, email="sam@example.com", confirmed_at=timezone.now())
        fresh, _ = self.subscribe("new@example.com")
        resp, delay = self.subscribe(component_ids=[str(self.api.id)])
        self.assertEqual(resp.status_code, 202)
        self.assertEqual(resp.data, fresh.data)
        self.assertNotIn("subscriber", resp.data)
        delay.assert_called_once()
        subscriber.refresh_from_db()
        self.assertEqual(subscriber.component_ids, [])
        self.assertTrue(subscriber.is_active)

        token = SubscriberConfirmation.objects.get(subscriber=subscriber).token
        self.public.post("/api/public/subscribe/confirm/", {"token": token}, format="json")
        subscriber.refresh_from_db()
        self.assertEqual(subscriber.component_ids, [str(self.api.id)])

    def test_subscribe_rejects_bad_input(self):
        self.assertEqual(self.subscribe("not-an-email")[0].status_code, 400)
        other = Component.objects.create(page=Page.objects.create(name="O", subdomain="other"), name="X")
        self.assertEqual(self.subscribe(component_ids=[str(other.id)])[0].status_code, 400)

    def test_public_endpoints_need_a_tenant_host(self):
        resp = APIClient().post("/api/public/subscribe/", {"email": "sam@example.com"}, format="json")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(APIClient().get("/api/public/summary/").status_code, 404)

    def test_confirm_flow(self):
        self.subscribe()
        token = SubscriberConfirmation.objects.get().token
        resp = self.public.post("/api/public/subscribe/confirm/", {"token": token}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertIsNotNone(Subscriber.objects.get().confirmed_at)
        self.assertFalse(SubscriberConfirmation.objects.exists())

        again = self.public.post("/api/public/subscribe/confirm/", {"token": token}, format="json")
        self.assertEqual(again.status_code, 400)

    def test_expired_confirmation_is_rejected(self):
        self.subscribe()
        SubscriberConfirmation.objects.update(expires_at=timezone.now() - timedelta(minutes=1))
        token = SubscriberConfirmation.objects.get().token
        resp = self.public.post("/api/public/subscribe/confirm/", {"token": token}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIsNone(Subscriber.objects.get().confirmed_at)

    def test_confirmation_from_another_page_is_rejected(self):
        self.subscribe()
        token = SubscriberConfirmation.objects.get().token
        Page.objects.create(name="Other", subdomain="other")
        other = APIClient(HTTP_HOST="other.downtime.online")
        resp = other.post("/api/public/subscribe/confirm/", {"token": token}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(SubscriberConfirmation.objects.filter(token=token).exists())

    def test_unsubscribe_and_resubscribe(self):
        subscriber = Subscriber.objects.create(page=self.page, email="sam@example.com", confirmed_at=timezone.now())
        resp = self.public.post("/api/public/unsubscribe/", {"subscriber": str(subscriber.id)}, format="json")
        self.assertEqual(resp.status_code, 200)
        subscriber.refresh_from_db()
        self.assertIsNotNone(subscriber.unsubscribed_at)

        resp, delay = self.subscribe()
        delay.assert_called_once()
        subscriber.refresh_from_db()
        self.assertIsNotNone(subscriber.unsubscribed_at)

        token = SubscriberConfirmation.objects.get(subscriber=subscriber).token
        self.public.post("/api/public/subscribe/confirm/", {"token": token}, format="json")
        subscriber.refresh_from_db()
        self.assertIsNone(subscriber.unsubscribed_at)
        self.assertTrue(subscriber.is_active)

    def test_unsubscribe_unknown_subscriber(self):
        resp = self.public.post(
            "/api/public/unsubscribe/", {"subscriber": "00000000-0000-4000-8000-000000000000"}, format="json"
        )
        self.assertEqual(resp.status_code, 404)

    def test_confirmation_task_sends_email(self):
        self.subscribe()
        token = SubscriberConfirmation.objects.get().token
        self.assertTrue(tasks.send_subscriber_confirmation.apply(args=[token]).get())
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(token, mail.outbox[0].body)
        self.assertIn("acme.downtime.online", mail.outbox[0].body)

        SubscriberConfirmation.objects.all().delete()
        self.assertFalse(tasks.send_subscriber_confirmation.apply(args=[token]).get())

    def test_emailed_links_open_pages_on_the_status_host(self):
        self.subscribe()
        token = SubscriberConfirmation.objects.get().token
        tasks.send_subscriber_confirmation.apply(args=[token]).get()
        link = urlsplit(re.search(r"https?://\S+", mail.outbox[0].body).group(0))
        self.assertEqual(link.netloc, HOST)

        resp = self.public.get(f"{link.path}?{link.query}")
        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "statuspages/subscription_link.html")
        self.assertContains(resp, "/api/public/subscribe/confirm/")

        subscriber = Subscriber.objects.get()
        link = urlsplit(notifications.unsubscribe_url(subscriber))
        resp = self.public.get(f"{link.path}?{link.query}")
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "/api/public/unsubscribe/")
        # Opening the page alone changes nothing
        subscriber.refresh_from_db()
        self.assertIsNone(subscriber.unsubscribed_at)

    def test_link_pages_need_a_tenant_host(self):
        self.assertEqual(APIClient().get("/subscribe/confirm?token=abc").status_code, 404)
        self.assertEqual(APIClient().get("/unsubscribe?subscriber=abc").status_code, 404)


class SubscriberDashboardTests(StatusPageApiTestCase):
    def setUp(self):
        super().setUp()
        self.subscriber = Subscriber.objects.create(page=self.page, email="sam@example.com", confirmed_at=timezone.now())

    def test_list_and_quarantine(self):
        resp = self.client.get(f"/api/subscribers/?page={self.page.id}")
        self.assertEqual([s["email"] for s in resp.data], ["sam@example.com"])
        self.assertTrue(resp.data[0]["is_active"])

        resp = self.client.post(f"/api/subscribers/{self.subscriber.id}/quarantine/")
        self.assertEqual(resp.status_code, 200)
        self.assertIsNotNone(resp.data["quarantined_at"])
        self.assertFalse(resp.data["is_active"])

    def test_delete(self):
        self.assertEqual(self.client.delete(f"/api/subscribers/{self.subscriber.id}/").status_code, 204)
        self.assertFalse(Subscriber.objects.exists())

    def test_plain_member_cannot_delete_or_quarantine(self):
        from django.contrib.auth.models import User

        user = User.objects.create_user(username="mia@example.com", email="mia@example.com", password="x")
        TeamMember.objects.create(page=self.page, user=user, role=TeamMember.ROLE_MEMBER)
        client = self.client_for(user)
        self.assertEqual(client.get("/api/subscribers/").status_code, 200)
        self.assertEqual(client.delete(f"/api/subscribers/{self.subscriber.id}/").status_code, 403)
        self.assertEqual(client.post(f"/api/subscribers/{self.subscriber.id}/quarantine/").status_code, 403)


class PublicStatusPageTests(StatusPageApiTestCase):
    def setUp(self):
        super().setUp()
        core = ComponentGroup.objects.create(page=self.page, name="Core", position=0)
        ComponentGroup.objects.create(page=self.page, name="Empty", position=1)
        Component.objects.create(page=self.page, name="Website", position=0)
        Component.objects.create(page=self.page, group=core, name="API", position=1, status="partial_outage")
        Component.objects.create(page=self.page, name="Internal", position=2, showcase=False)
        incident = Incident.objects.create(page=self.page, name="Slow API", status="identified", impact="minor")
        IncidentUpdate.objects.create(incident=incident, status="identified", body="Cache node lost")
        Incident.objects.create(page=self.page, name="Old outage", status="resolved", resolved_at=timezone.now())
        Incident.objects.create(
            page=self.page, name="DB upgrade", status="scheduled", scheduled_for=timezone.now() + timedelta(days=2)
        )

    def test_summary_json(self):
        resp = APIClient(HTTP_HOST=HOST).get("/api/public/summary/")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["page"]["subdomain"], "acme")
        self.assertEqual([c["name"] for c in data["components"]], ["Website"])
        self.assertEqual([g["name"] for g in data["groups"]], ["Core"])
        self.assertEqual(data["groups"][0]["components"][0]["status"], "partial_outage")
        self.assertEqual([i["name"] for i in data["incidents"]], ["Slow API"])
        self.assertEqual(data["incidents"][0]["updates"][0]["body"], "Cache node lost")
        self.assertEqual([i["name"] for i in data["scheduled_maintenances"]], ["DB upgrade"])

    def test_status_page_html(self):
        resp = self.client.get("/", HTTP_HOST=HOST)
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Slow API")
        self.assertContains(resp, "Cache node lost")
        self.assertContains(resp, "DB upgrade")
        self.assertNotContains(resp, "Internal")
        self.assertNotContains(resp, "Old outage")
