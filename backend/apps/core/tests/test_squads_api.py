from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.core.models import Membership, MemberStats, Squad
from .helpers import make_squad

User = get_user_model()


class SquadApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="alice", password="verysecurepass")
        self.client.force_authenticate(self.user)

    def test_anonymous_rejected(self):
        r = APIClient().post("/api/squads", {"name": "crew"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_create_squad_makes_creator_admin(self):
        r = self.client.post("/api/squads", {"name": "crew", "timezone": "Europe/Berlin"}, format="json")
        self.assertEqual(r.status_code, 201)
        squad = Squad.objects.get(id=r.data["id"])
        self.assertEqual(len(squad.invite_code), 6)
        self.assertEqual(squad.timezone, "Europe/Berlin")
        self.assertTrue(Membership.objects.filter(user=self.user, squad=squad, role=Membership.ROLE_ADMIN).exists())
        self.assertTrue(MemberStats.objects.filter(user=self.user, squad=squad).exists())

    def test_create_squad_defaults(self):
        before = timezone.now()
        r = self.client.post("/api/squads", {"name": "crew"}, format="json")
        self.assertEqual(r.status_code, 201)
        squad = Squad.objects.get(id=r.data["id"])
        self.assertEqual(squad.timezone, "UTC")
        self.assertGreaterEqual(squad.created_at, before)
        self.assertLessEqual(squad.created_at, timezone.now())

    def test_create_squad_rejects_unknown_timezone(self):
        r = self.client.post("/api/squads", {"name": "crew", "timezone": "Mars/Olympus"}, format="json")
        self.assertEqual(r.status_code, 400)

    def test_join_by_invite_code(self):
        squad, _ = make_squad("crew", ["bob"])
        r = self.client.post("/api/squads/join", {"inviteCode": squad.invite_code.lower()}, format="json")
        self.assertEqual(r.status_code, 201)
        self.assertTrue(squad.has_member(self.user.id))
        # Joining again is harmless
        r = self.client.post("/api/squads/join", {"inviteCode": squad.invite_code}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(Membership.objects.filter(user=self.user, squad=squad).count(), 1)

    def test_unknown_invite_code(self):
        r = self.client.post("/api/squads/join", {"inviteCode": "ZZZZZZ"}, format="json")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.data["code"], "not_found")

    def test_squad_hidden_from_non_members(self):
        squad, _ = make_squad("crew", ["bob"])
        r = self.client.get(f"/api/squads/{squad.id}")
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.data["code"], "forbidden")

    def test_leaderboard(self):
        squad, _ = make_squad("crew", ["bob"])
        Membership.objects.create(user=self.user, squad=squad)
        r = self.client.get(f"/api/squads/{squad.id}/leaderboard")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["squadId"], squad.id)
        self.assertEqual([row["username"] for row in r.data["results"]], ["bob"])

    def test_store_failure_maps_to_503(self):
        squad, _ = make_squad("crew", ["bob"])
        Membership.objects.create(user=self.user, squad=squad)
        with mock.patch("apps.core.views.stats.leaderboard", side_effect=DatabaseError("connection lost")):
            r = self.client.get(f"/api/squads/{squad.id}/leaderboard")
        self.assertEqual(r.status_code, 503)
        self.assertEqual(r.data["code"], "store_unavailable")

    def test_me(self):
        r = self.client.get("/api/users/me")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["username"], "alice")
        self.assertEqual(r.data["squadIds"], [])


class OpsApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(username="staff", password="strongpassword123", is_staff=True)

    def test_ops_require_staff(self):
        member = User.objects.create_user(username="member", password="strongpassword123")
        self.client.force_authenticate(member)
        self.assertEqual(self.client.post("/api/ops/weekly-reset", {}, format="json").status_code, 403)
        self.assertEqual(self.client.post("/api/ops/decay-strikes", {}, format="json").status_code, 403)

    def test_weekly_reset_is_repeatable(self):
        make_squad("crew", ["bob", "cleo"])
        self.client.force_authenticate(self.staff)
        r = self.client.post("/api/ops/weekly-reset", {"periodStart": "2026-03-02"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["updated"], 2)
        r = self.client.post("/api/ops/weekly-reset", {"periodStart": "2026-03-02"}, format="json")
        self.assertEqual(r.data["updated"], 0)

    def test_decay_strikes(self):
        squad, (bob,) = make_squad("crew", ["bob"])
        MemberStats.objects.filter(user=bob, squad=squad).update(strikes_14d=2)
        self.client.force_authenticate(self.staff)
        r = self.client.post("/api/ops/decay-strikes", {"periodStart": "2026-03-02"}, format="json")
        self.assertEqual(r.data["updated"], 1)
        self.assertEqual(MemberStats.objects.get(user=bob, squad=squad).strikes_14d, 1)


class ObservabilityTests(TestCase):
    def test_healthz(self):
        r = APIClient().get("/api/healthz")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["status"], "ok")

    def test_metrics(self):
        r = APIClient().get("/api/metrics")
        self.assertEqual(r.status_code, 200)
        self.assertIn(b"squad_event_submissions_total", r.content)
