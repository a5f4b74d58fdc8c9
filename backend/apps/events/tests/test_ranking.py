from __future__ import annotations

from datetime import timedelta

from django.test import TestCase

from apps.core.exceptions import DuplicateSubmission, EventNotOpen, InvalidTransition, ValidationFailed
from apps.core.tests.helpers import add_submission, fixed_clock, make_event, make_squad
from apps.events.lifecycle import close_event
from apps.events.models import DailyEvent, Submission
from apps.events.ranking import first_place, last_place, rank_event, submit


class SubmitTests(TestCase):
    def setUp(self):
        self.clock = fixed_clock()
        self.squad, (self.ava, self.ben) = make_squad("crew", ["ava", "ben"])
        self.event = make_event(self.squad, self.clock)

    def test_submit_stores_score(self):
        sub = submit(self.event.id, self.ava.id, {"error_ms": 120}, clock=self.clock)
        self.assertEqual(sub.score, 120.0)
        self.assertEqual(sub.submitted_at, self.clock.now())
        self.assertIsNone(sub.rank)

    def test_duplicate_submission_rejected(self):
        submit(self.event.id, self.ava.id, {"error_ms": 120}, clock=self.clock)
        with self.assertRaises(DuplicateSubmission):
            submit(self.event.id, self.ava.id, {"error_ms": 80}, clock=self.clock)
        self.assertEqual(Submission.objects.filter(event=self.event).count(), 1)

    def test_scheduled_event_rejects_submissions(self):
        event = make_event(self.squad, self.clock, status=DailyEvent.STATUS_SCHEDULED, date=self.clock.now().date() + timedelta(days=1))
        with self.assertRaises(EventNotOpen):
            submit(event.id, self.ava.id, {"error_ms": 120}, clock=self.clock)

    def test_submission_after_window_rejected(self):
        self.clock.advance(minutes=5)
        with self.assertRaises(EventNotOpen):
            submit(self.event.id, self.ava.id, {"error_ms": 120}, clock=self.clock)

    def test_submission_after_close_rejected(self):
        close_event(self.event, clock=self.clock)
        with self.assertRaises(EventNotOpen):
            submit(self.event.id, self.ava.id, {"error_ms": 120}, clock=self.clock)

    def test_non_member_rejected(self):
        _, (outsider,) = make_squad("other", ["zed"])
        with self.assertRaises(ValidationFailed):
            submit(self.event.id, outsider.id, {"error_ms": 120}, clock=self.clock)

    def test_timed_score_needs_number(self):
        for payload in ({}, {"error_ms": "fast"}, {"error_ms": True}, {"error_ms": -1}):
            with self.assertRaises(ValidationFailed):
                submit(self.event.id, self.ava.id, payload, clock=self.clock)

    def test_vote_must_match_poll(self):
        event = make_event(
            self.squad,
            self.clock,
            event_type=DailyEvent.TYPE_VOTE,
            date=self.clock.now().date() + timedelta(days=1),
            poll_question="Text or call?",
            poll_options=["Text", "Call"],
        )
        with self.assertRaises(ValidationFailed):
            submit(event.id, self.ava.id, {"option": "Smoke signals"}, clock=self.clock)
        sub = submit(event.id, self.ava.id, {"option": "Text"}, clock=self.clock)
        self.assertIsNone(sub.score)

    def test_media_needs_reference(self):
        event = make_event(self.squad, self.clock, event_type=DailyEvent.TYPE_MEDIA, date=self.clock.now().date() + timedelta(days=1))
        with self.assertRaises(ValidationFailed):
            submit(event.id, self.ava.id, {}, media_ref="   ", clock=self.clock)
        sub = submit(event.id, self.ava.id, {}, media_ref="media/abc123.jpg", clock=self.clock)
        self.assertEqual(sub.media_ref, "media/abc123.jpg")


class RankEventTests(TestCase):
    def setUp(self):
        self.clock = fixed_clock()
        self.squad, self.users = make_squad("crew", ["ava", "ben", "cleo"])

    def _closed(self, event_type=DailyEvent.TYPE_TIMED_SCORE, **fields):
        return make_event(self.squad, self.clock, event_type=event_type, status=DailyEvent.STATUS_CLOSED, **fields)

    def test_lower_score_ranks_first(self):
        event = self._closed()
        subs = [add_submission(event, user, score) for user, score in zip(self.users, [120, 95, 310])]
        rank_event(event, clock=self.clock)
        self.assertEqual([Submission.objects.get(pk=s.pk).rank for s in subs], [2, 1, 3])
        self.assertEqual(first_place(event).user_id, self.users[1].id)
        self.assertEqual(last_place(event).user_id, self.users[2].id)

    def test_rank_is_idempotent(self):
        event = self._closed()
        for user, score in zip(self.users, [120, 95, 310]):
            add_submission(event, user, score)
        event = rank_event(event, clock=self.clock)
        first = list(Submission.objects.filter(event=event).order_by("id").values_list("rank", flat=True))
        ranked_at = event.ranked_at
        # A late row must not be picked up by a second run
        Submission.objects.filter(event=event, user=self.users[2]).update(score=1)
        self.clock.advance(minutes=1)
        event = rank_event(event, clock=self.clock)
        second = list(Submission.objects.filter(event=event).order_by("id").values_list("rank", flat=True))
        self.assertEqual(first, second)
        self.assertEqual(event.ranked_at, ranked_at)

    def test_tie_goes_to_earlier_submission(self):
        event = self._closed()
        late = add_submission(event, self.users[0], 100, at=event.opens_at + timedelta(seconds=50))
        early = add_submission(event, self.users[1], 100, at=event.opens_at + timedelta(seconds=10))
        rank_event(event, clock=self.clock)
        self.assertEqual(Submission.objects.get(pk=early.pk).rank, 1)
        self.assertEqual(Submission.objects.get(pk=late.pk).rank, 2)

    def test_unscored_submissions_stay_unranked(self):
        event = self._closed()
        add_submission(event, self.users[0], 50)
        blank = add_submission(event, self.users[1])
        rank_event(event, clock=self.clock)
        self.assertIsNone(Submission.objects.get(pk=blank.pk).rank)

    def test_vote_tally_is_ordered(self):
        event = self._closed(event_type=DailyEvent.TYPE_VOTE, poll_options=["Spring", "Summer", "Winter"])
        for user, option in zip(self.users, ["Winter", "Summer", "Winter"]):
            add_submission(event, user, payload={"option": option})
        event = rank_event(event, clock=self.clock)
        self.assertEqual(
            event.results,
            [{"option": "Winter", "votes": 2}, {"option": "Summer", "votes": 1}, {"option": "Spring", "votes": 0}],
        )
        self.assertFalse(Submission.objects.filter(event=event, rank__isnull=False).exists())
        self.assertIsNone(first_place(event))
        self.assertIsNone(last_place(event))

    def test_media_event_has_no_places(self):
        event = self._closed(event_type=DailyEvent.TYPE_MEDIA)
        add_submission(event, self.users[0], media_ref="media/1.jpg")
        event = rank_event(event, clock=self.clock)
        self.assertIsNotNone(event.ranked_at)
        self.assertIsNone(first_place(event))
        self.assertIsNone(last_place(event))

    def test_open_event_cannot_be_ranked(self):
        event = make_event(self.squad, self.clock)
        with self.assertRaises(InvalidTransition):
            rank_event(event, clock=self.clock)
