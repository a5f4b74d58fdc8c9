from __future__ import annotations

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.core.tests.helpers import add_submission, fixed_clock, make_event, make_squad
from apps.events.lifecycle import close_event
from apps.rewards.models import Crown, Power


class RewardsApiTests(TestCase):
    def setUp(self):
        self.squad, self.users = make_squad("crew", ["ava", "ben", "cleo"], admin="ava")
        self.ava, self.ben, self.cleo = self.users
        self.clock = fixed_clock(timezone.now() - timedelta(minutes=1))
        self.event = make_event(self.squad, self.clock)
        add_submission(self.event, self.ben, 80)
        add_submission(self.event, self.cleo, 300)
        self.event = close_event(self.event, clock=self.clock)

    def client_for(self, user):
        client = APIClient()
        client.force_authenticate(user)
        return client

    def test_award_endpoints_need_admin(self):
        r = self.client_for(self.ben).post(f"/api/events/{self.event.id}/award-crown")
        self.assertEqual(r.status_code, 403)

    def test_award_and_use_power(self):
        admin = self.client_for(self.ava)
        r = admin.post(f"/api/events/{self.event.id}/award-power")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["power"]["user"], self.cleo.id)
        Power.objects.filter(pk=r.data["power"]["id"]).update(power_type=Power.TYPE_TARGET_LOCK)

        cleo = self.client_for(self.cleo)
        r = cleo.get(f"/api/squads/{self.squad.id}/powers")
        self.assertEqual(len(r.data["results"]), 1)
        power_id = r.data["results"][0]["id"]

        r = cleo.post(f"/api/powers/{power_id}/use", {"target_user_id": self.cleo.id}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.data["code"], "invalid_target")

        r = cleo.post(f"/api/powers/{power_id}/use", {"target_user_id": self.ben.id}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertIsNotNone(r.data["used_at"])

        r = cleo.post(f"/api/powers/{power_id}/use", {"target_user_id": self.ben.id}, format="json")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["code"], "already_used")

        r = self.client_for(self.ben).get(f"/api/squads/{self.squad.id}/powers")
        self.assertTrue(r.data["targeted"])

    def test_crown_headline_and_rivalry(self):
        r = self.client_for(self.ava).post(f"/api/events/{self.event.id}/award-crown")
        crown_id = r.data["crown"]["id"]
        ben = self.client_for(self.ben)

        r = ben.post(f"/api/crowns/{crown_id}/headline", {"content": "y" * 51}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.data["code"], "validation_failed")

        r = ben.post(f"/api/crowns/{crown_id}/headline", {"content": "Fastest thumbs"}, format="json")
        self.assertEqual(r.status_code, 201)
        r = ben.post(
            f"/api/crowns/{crown_id}/rivalry", {"rival1_id": self.ava.id, "rival2_id": self.cleo.id}, format="json"
        )
        self.assertEqual(r.status_code, 201)

        r = self.client_for(self.cleo).get(f"/api/squads/{self.squad.id}/crown")
        self.assertEqual(r.data["crown"]["user"], self.ben.id)
        self.assertEqual(r.data["headline"]["content"], "Fastest thumbs")
        self.assertEqual(r.data["rivalry"]["rival2"], self.cleo.id)

    def test_headline_by_non_holder(self):
        crown = Crown.objects.create(
            user=self.ben, squad=self.squad, source_event=self.event, expires_at=timezone.now() + timedelta(hours=1)
        )
        r = self.client_for(self.cleo).post(f"/api/crowns/{crown.id}/headline", {"content": "mine"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_empty_crown_view(self):
        r = self.client_for(self.ben).get(f"/api/squads/{self.squad.id}/crown")
        self.assertEqual(r.data, {"crown": None, "headline": None, "rivalry": None})
