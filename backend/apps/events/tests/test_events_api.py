from __future__ import annotations

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.core.models import MemberStats
from apps.core.tests.helpers import add_submission, fixed_clock, make_event, make_squad
from apps.events.models import DailyEvent, MissedEvent, PollQuestion, Submission


class EventApiTests(TestCase):
    def setUp(self):
        self.squad, self.users = make_squad("crew", ["ava", "ben", "cleo"], admin="ava")
        self.ava, self.ben, self.cleo = self.users
        # Views use the wall clock, so the window is built around it
        self.clock = fixed_clock(timezone.now() - timedelta(minutes=1))
        self.event = make_event(self.squad, self.clock)
        self.client = APIClient()
        self.client.force_authenticate(self.ben)

    def test_list_events(self):
        r = self.client.get(f"/api/squads/{self.squad.id}/events")
        self.assertEqual(r.status_code, 200)
        self.assertEqual([e["id"] for e in r.data], [self.event.id])

    def test_submit(self):
        r = self.client.post(f"/api/events/{self.event.id}/submit", {"payload": {"error_ms": 140}}, format="json")
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.data["score"], 140.0)
        self.assertEqual(r.data["username"], "ben")

    def test_duplicate_submit(self):
        add_submission(self.event, self.ben, 90)
        r = self.client.post(f"/api/events/{self.event.id}/submit", {"payload": {"error_ms": 140}}, format="json")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["code"], "duplicate_submission")
        self.assertEqual(Submission.objects.filter(event=self.event, user=self.ben).count(), 1)

    def test_submit_to_scheduled_event(self):
        DailyEvent.objects.filter(pk=self.event.pk).update(status=DailyEvent.STATUS_SCHEDULED)
        r = self.client.post(f"/api/events/{self.event.id}/submit", {"payload": {"error_ms": 140}}, format="json")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["code"], "event_not_open")

    def test_submit_bad_payload(self):
        r = self.client.post(f"/api/events/{self.event.id}/submit", {"payload": {"error_ms": "fast"}}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.data["code"], "validation_failed")

    def test_submit_unknown_event(self):
        r = self.client.post("/api/events/999999/submit", {"payload": {"error_ms": 1}}, format="json")
        self.assertEqual(r.status_code, 404)

    def test_lifecycle_endpoints_need_admin(self):
        r = self.client.post(f"/api/events/{self.event.id}/close")
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.data["code"], "forbidden")

    def test_admin_closes_and_finalizes(self):
        add_submission(self.event, self.ben, 90)
        add_submission(self.event, self.cleo, 60)
        admin = APIClient()
        admin.force_authenticate(self.ava)
        r = admin.post(f"/api/events/{self.event.id}/close")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["status"], DailyEvent.STATUS_CLOSED)
        r = admin.post(f"/api/events/{self.event.id}/finalize")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["status"], DailyEvent.STATUS_FINALIZED)
        self.assertEqual(MemberStats.objects.get(user=self.cleo, squad=self.squad).points_weekly, 20)
        self.assertTrue(MissedEvent.objects.filter(event=self.event, user=self.ava).exists())

    def test_finalize_open_event_conflicts(self):
        admin = APIClient()
        admin.force_authenticate(self.ava)
        r = admin.post(f"/api/events/{self.event.id}/finalize")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["code"], "invalid_transition")

    def test_submissions_hidden_while_open(self):
        add_submission(self.event, self.ben, 90)
        add_submission(self.event, self.cleo, 60)
        r = self.client.get(f"/api/events/{self.event.id}/submissions")
        self.assertEqual(r.status_code, 200)
        self.assertEqual([s["username"] for s in r.data], ["ben"])

        DailyEvent.objects.filter(pk=self.event.pk).update(status=DailyEvent.STATUS_CLOSED)
        r = self.client.get(f"/api/events/{self.event.id}/submissions")
        self.assertEqual(len(r.data), 2)

    def test_missed_penalty_endpoint(self):
        DailyEvent.objects.filter(pk=self.event.pk).update(status=DailyEvent.STATUS_CLOSED)
        admin = APIClient()
        admin.force_authenticate(self.ava)
        r = admin.post(f"/api/events/{self.event.id}/missed-penalty", {"user_id": self.cleo.id}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.data["applied"])
        r = admin.post(f"/api/events/{self.event.id}/missed-penalty", {"user_id": self.cleo.id}, format="json")
        self.assertFalse(r.data["applied"])

    def test_non_member_cannot_see_event(self):
        _, (outsider,) = make_squad("other", ["zed"])
        client = APIClient()
        client.force_authenticate(outsider)
        r = client.get(f"/api/events/{self.event.id}")
        self.assertEqual(r.status_code, 403)


class PollAdminApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        _, (self.member,) = make_squad("crew", ["ava"])

    def test_staff_only(self):
        self.client.force_authenticate(self.member)
        r = self.client.post("/api/admin/polls", {"question": "Tea?", "options": ["Yes", "No"]}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_create_poll(self):
        self.member.is_staff = True
        self.member.save()
        self.client.force_authenticate(self.member)
        r = self.client.post("/api/admin/polls", {"question": "Tea?", "options": ["Yes", "No"]}, format="json")
        self.assertEqual(r.status_code, 201)
        self.assertTrue(PollQuestion.objects.filter(question="Tea?").exists())
        r = self.client.post("/api/admin/polls", {"question": "Tea?", "options": ["Yes"]}, format="json")
        self.assertEqual(r.status_code, 400)
