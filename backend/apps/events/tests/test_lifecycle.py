from __future__ import annotations

import random
from datetime import date, timedelta
from zoneinfo import ZoneInfo

from django.test import TestCase

from apps.core import stats
from apps.core.exceptions import InvalidTransition, ValidationFailed
from apps.core.models import MemberStats
from apps.core.tests.helpers import add_submission, fixed_clock, make_event, make_squad
from apps.events import lifecycle
from apps.events.models import DailyEvent, MissedEvent, PollQuestion, Submission
from apps.judging.models import JudgeAssignment
from apps.rewards.models import Crown, Power


class OpenCloseTests(TestCase):
    def setUp(self):
        self.clock = fixed_clock()
        self.squad, self.users = make_squad("crew", ["ava", "ben", "cleo"])
        self.event = make_event(
            self.squad,
            self.clock,
            status=DailyEvent.STATUS_SCHEDULED,
            opens_at=self.clock.now() + timedelta(minutes=10),
        )

    def test_open_before_window_fails(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.open_event(self.event, clock=self.clock)

    def test_open_assigns_judge(self):
        self.clock.advance(minutes=10)
        event = lifecycle.open_event(self.event, seed=7, clock=self.clock)
        self.assertEqual(event.status, DailyEvent.STATUS_OPEN)
        self.assertIn(event.judge_id, [u.id for u in self.users])
        assignment = JudgeAssignment.objects.get(squad=self.squad, judge_date=event.date)
        self.assertEqual((assignment.user_id, assignment.event_id), (event.judge_id, event.id))

    def test_open_keeps_existing_judge(self):
        DailyEvent.objects.filter(pk=self.event.pk).update(judge=self.users[2])
        self.clock.advance(minutes=10)
        event = lifecycle.open_event(self.event, clock=self.clock)
        self.assertEqual(event.judge_id, self.users[2].id)

    def test_open_twice_fails(self):
        self.clock.advance(minutes=10)
        lifecycle.open_event(self.event, clock=self.clock)
        with self.assertRaises(InvalidTransition):
            lifecycle.open_event(self.event, clock=self.clock)

    def test_close_scheduled_event_needs_window_to_pass(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.close_event(self.event, clock=self.clock)
        self.clock.advance(minutes=15)
        event = lifecycle.close_event(self.event, clock=self.clock)
        self.assertEqual(event.status, DailyEvent.STATUS_CLOSED)
        self.assertIsNotNone(event.ranked_at)

    def test_close_ranks_and_is_repeatable(self):
        self.clock.advance(minutes=10)
        lifecycle.open_event(self.event, clock=self.clock)
        add_submission(self.event, self.users[0], 200)
        add_submission(self.event, self.users[1], 100)
        event = lifecycle.close_event(self.event, clock=self.clock)
        self.assertEqual(event.status, DailyEvent.STATUS_CLOSED)
        self.assertEqual(Submission.objects.get(event=event, user=self.users[1]).rank, 1)
        again = lifecycle.close_event(event, clock=self.clock)
        self.assertEqual(again.ranked_at, event.ranked_at)

    def test_finalize_requires_closed(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.finalize_event(self.event, clock=self.clock)


class FinalizeTests(TestCase):
    def setUp(self):
        self.clock = fixed_clock()
        self.squad, self.users = make_squad("crew", ["ava", "ben", "cleo", "dev"])
        self.ava, self.ben, self.cleo, self.dev = self.users
        self.event = make_event(self.squad, self.clock)
        for user, score in zip([self.ava, self.ben, self.cleo], [120, 95, 310]):
            add_submission(self.event, user, score)
        self.event = lifecycle.close_event(self.event, clock=self.clock)

    def _stats(self, user):
        return MemberStats.objects.get(user=user, squad=self.squad)

    def test_finalize_applies_points_penalties_and_awards(self):
        event = lifecycle.finalize_event(self.event, rng=random.Random(3), clock=self.clock)
        self.assertEqual(event.status, DailyEvent.STATUS_FINALIZED)
        self.assertEqual(event.finalized_at, self.clock.now())

        # rank 1 -> 10 + 10, rank 2 -> 10 + 5, rank 3 -> 10
        self.assertEqual(self._stats(self.ben).points_weekly, 20)
        self.assertEqual(self._stats(self.ava).points_weekly, 15)
        self.assertEqual(self._stats(self.cleo).points_weekly, 10)
        self.assertEqual(self._stats(self.ben).streak_count, 1)

        missed = self._stats(self.dev)
        self.assertEqual(missed.points_weekly, 0)
        self.assertEqual(missed.strikes_14d, 1)
        self.assertTrue(MissedEvent.objects.filter(event=event, user=self.dev).exists())

        self.assertEqual(Crown.objects.get(source_event=event).user_id, self.ben.id)
        self.assertEqual(Power.objects.get(source_event=event).user_id, self.cleo.id)

    def test_late_finalize_keeps_points_out_of_new_week(self):
        next_week = self.event.date + timedelta(days=7)
        stats.reset_weekly(next_week, clock=self.clock)
        self.clock.advance(days=7)
        lifecycle.finalize_event(self.event, clock=self.clock)
        ben = self._stats(self.ben)
        self.assertEqual(ben.points_weekly, 0)
        self.assertEqual(ben.points_lifetime, 20)
        self.assertEqual(ben.week_start, next_week)

    def test_finalize_twice_changes_nothing(self):
        lifecycle.finalize_event(self.event, clock=self.clock)
        before = list(MemberStats.objects.filter(squad=self.squad).order_by("user_id").values_list("points_weekly", "strikes_14d"))
        self.clock.advance(hours=1)
        lifecycle.finalize_event(self.event, clock=self.clock)
        after = list(MemberStats.objects.filter(squad=self.squad).order_by("user_id").values_list("points_weekly", "strikes_14d"))
        self.assertEqual(before, after)
        self.assertEqual(Crown.objects.filter(source_event=self.event).count(), 1)
        self.assertEqual(Power.objects.filter(source_event=self.event).count(), 1)

    def test_finalize_resumes_after_partial_run(self):
        # Stats for one submission were already applied before an interruption
        stats.on_submission(self.ben.id, self.squad.id, 20, today=self.event.date, clock=self.clock)
        Submission.objects.filter(event=self.event, user=self.ben).update(points_awarded=20, stats_applied_at=self.clock.now())
        lifecycle.finalize_event(self.event, clock=self.clock)
        self.assertEqual(self._stats(self.ben).points_weekly, 20)

    def test_missed_penalty_applies_once(self):
        self.assertTrue(lifecycle.apply_missed_event_penalty(self.event, self.dev.id, clock=self.clock))
        self.assertFalse(lifecycle.apply_missed_event_penalty(self.event, self.dev.id, clock=self.clock))
        self.assertEqual(self._stats(self.dev).strikes_14d, 1)

    def test_missed_penalty_rejects_submitters(self):
        with self.assertRaises(ValidationFailed):
            lifecycle.apply_missed_event_penalty(self.event, self.ava.id, clock=self.clock)

    def test_missed_penalty_waits_for_close(self):
        event = make_event(self.squad, self.clock, date=self.event.date + timedelta(days=1))
        with self.assertRaises(InvalidTransition):
            lifecycle.apply_missed_event_penalty(event, self.dev.id, clock=self.clock)

    def test_media_event_grants_no_privileges(self):
        event = make_event(self.squad, self.clock, event_type=DailyEvent.TYPE_MEDIA, date=self.event.date + timedelta(days=1))
        add_submission(event, self.ava, media_ref="media/1.jpg")
        lifecycle.close_event(event, clock=self.clock)
        event = lifecycle.finalize_event(event, clock=self.clock)
        self.assertEqual(Submission.objects.get(event=event, user=self.ava).points_awarded, 10)
        self.assertFalse(Crown.objects.filter(source_event=event).exists())
        self.assertFalse(Power.objects.filter(source_event=event).exists())


class GenerateEventTests(TestCase):
    def setUp(self):
        self.clock = fixed_clock()
        self.squad, _ = make_squad("crew", ["ava", "ben"])
        self.squad.timezone = "America/New_York"
        self.squad.save()

    def test_generates_window_in_squad_timezone(self):
        day = date(2026, 3, 3)
        event = lifecycle.generate_daily_event(self.squad, day, seed=11, clock=self.clock)
        local = event.opens_at.astimezone(ZoneInfo("America/New_York"))
        self.assertEqual(local.date(), day)
        self.assertTrue(8 <= local.hour < 22)
        self.assertEqual(event.closes_at - event.opens_at, timedelta(minutes=5))
        self.assertEqual(event.status, DailyEvent.STATUS_SCHEDULED)

    def test_without_polls_no_vote_events(self):
        for offset in range(10):
            event = lifecycle.generate_daily_event(self.squad, date(2026, 3, 3) + timedelta(days=offset), seed=offset, clock=self.clock)
            self.assertNotEqual(event.event_type, DailyEvent.TYPE_VOTE)

    def test_vote_event_carries_poll(self):
        PollQuestion.objects.create(question="Text or call?", options=["Text", "Call"])
        events = [
            lifecycle.generate_daily_event(self.squad, date(2026, 3, 3) + timedelta(days=offset), seed=offset, clock=self.clock)
            for offset in range(40)
        ]
        votes = [e for e in events if e.event_type == DailyEvent.TYPE_VOTE]
        self.assertTrue(votes)
        for event in votes:
            self.assertEqual(event.poll_question, "Text or call?")
            self.assertEqual(event.poll_options, ["Text", "Call"])

    def test_generation_is_idempotent(self):
        first = lifecycle.generate_daily_event(self.squad, date(2026, 3, 3), seed=1, clock=self.clock)
        second = lifecycle.generate_daily_event(self.squad, date(2026, 3, 3), seed=2, clock=self.clock)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(DailyEvent.objects.filter(squad=self.squad).count(), 1)


class SweepTests(TestCase):
    def setUp(self):
        self.clock = fixed_clock()
        self.squad, self.users = make_squad("crew", ["ava", "ben"])
        self.event = make_event(
            self.squad,
            self.clock,
            status=DailyEvent.STATUS_SCHEDULED,
            opens_at=self.clock.now() + timedelta(minutes=1),
        )

    def test_sweeps_drive_the_lifecycle(self):
        self.assertEqual(lifecycle.open_due_events(clock=self.clock), 0)
        self.clock.advance(minutes=1)
        self.assertEqual(lifecycle.open_due_events(clock=self.clock), 1)
        add_submission(self.event, self.users[0], 80)
        self.assertEqual(lifecycle.close_due_events(clock=self.clock), 0)
        self.clock.advance(minutes=5)
        self.assertEqual(lifecycle.close_due_events(clock=self.clock), 1)
        self.event.refresh_from_db()
        self.assertEqual(self.event.status, DailyEvent.STATUS_FINALIZED)
        # Nothing left to do
        self.assertEqual(lifecycle.close_due_events(clock=self.clock), 0)

    def test_generate_sweep_once_per_squad_day(self):
        self.event.delete()
        self.assertEqual(lifecycle.generate_daily_events(clock=self.clock), 1)
        self.assertEqual(lifecycle.generate_daily_events(clock=self.clock), 0)
