"""
Submission & ranking engine.

submit() and the close path both take the event row lock, so a submission
either lands before the event closes (and is ranked) or is rejected.
"""
from __future__ import annotations

import logging
from collections import Counter
from numbers import Real
from typing import Optional

from django.db import IntegrityError, transaction

from apps.core.clock import Clock, system_clock
from apps.core.exceptions import DuplicateSubmission, EventNotOpen, InvalidTransition, NotFound, ValidationFailed
from apps.core.metrics import event_submissions_total
from .models import DailyEvent, Submission

logger = logging.getLogger(__name__)


def _locked_event(event_id: int) -> DailyEvent:
    try:
        return DailyEvent.objects.select_for_update().get(pk=event_id)
    except DailyEvent.DoesNotExist:
        raise NotFound("Event not found.")


def _clean_payload(event: DailyEvent, payload: dict, media_ref: str) -> Optional[float]:
    """Validate a payload for the event type and return the score to store, if any."""
    if event.event_type == DailyEvent.TYPE_TIMED_SCORE:
        raw = payload.get("error_ms", payload.get("score"))
        if isinstance(raw, bool) or not isinstance(raw, Real):
            raise ValidationFailed("Timed-score submissions need a numeric error_ms.")
        if raw < 0:
            raise ValidationFailed("error_ms must not be negative.")
        return float(raw)
    if event.event_type == DailyEvent.TYPE_VOTE:
        option = payload.get("option")
        if not isinstance(option, str) or not option.strip():
            raise ValidationFailed("Vote submissions need an option.")
        if event.poll_options and option not in event.poll_options:
            raise ValidationFailed("Option is not part of this poll.")
        return None
    if not media_ref:
        raise ValidationFailed("Media submissions need a media reference.")
    return None


def submit(event_id: int, member_id: int, payload: Optional[dict] = None, media_ref: Optional[str] = None, clock: Clock = system_clock) -> Submission:
    payload = dict(payload or {})
    media_ref = (media_ref or "").strip()
    with transaction.atomic():
        event = _locked_event(event_id)
        now = clock.now()
        if event.status != DailyEvent.STATUS_OPEN or now >= event.closes_at:
            raise EventNotOpen()
        if not event.squad.has_member(member_id):
            raise ValidationFailed("Not a member of this squad.")
        score = _clean_payload(event, payload, media_ref)
        if Submission.objects.filter(event=event, user_id=member_id).exists():
            raise DuplicateSubmission()
        try:
            with transaction.atomic():
                submission = Submission.objects.create(
                    event=event,
                    user_id=member_id,
                    payload=payload,
                    media_ref=media_ref,
                    score=score,
                    submitted_at=now,
                )
        except IntegrityError:
            raise DuplicateSubmission()
    event_submissions_total.labels(event_type=event.event_type).inc()
    logger.info("submission %s event=%s user=%s score=%s", submission.id, event.id, member_id, score)
    return submission


def _vote_tally(event: DailyEvent) -> list[dict]:
    tally = Counter({option: 0 for option in event.poll_options or []})
    for payload in event.submissions.values_list("payload", flat=True):
        option = (payload or {}).get("option")
        if option:
            tally[option] += 1
    ordered = sorted(tally.items(), key=lambda item: (-item[1], item[0]))
    return [{"option": option, "votes": votes} for option, votes in ordered]


def rank_event(event: DailyEvent, clock: Clock = system_clock) -> DailyEvent:
    """
    Compute results for a closed event. Runs once per event: an event with
    ranked_at set is returned untouched.

    timed-score: ascending score, earlier submission wins a tie, ranks 1..n.
    vote: tally stored on the event, no per-submission rank.
    media: nothing to compute.
    """
    with transaction.atomic():
        event = _locked_event(event.pk)
        if event.ranked_at is not None:
            return event
        if event.status not in (DailyEvent.STATUS_CLOSED, DailyEvent.STATUS_FINALIZED):
            raise InvalidTransition("Only closed events can be ranked.")
        if event.event_type == DailyEvent.TYPE_TIMED_SCORE:
            ranked = list(
                event.submissions.filter(score__isnull=False).order_by("score", "submitted_at", "id")
            )
            for position, submission in enumerate(ranked, start=1):
                submission.rank = position
            Submission.objects.bulk_update(ranked, ["rank"])
            logger.info("event %s ranked %s submissions", event.id, len(ranked))
        elif event.event_type == DailyEvent.TYPE_VOTE:
            event.results = _vote_tally(event)
            logger.info("event %s tallied %s options", event.id, len(event.results))
        event.ranked_at = clock.now()
        event.save(update_fields=["results", "ranked_at"])
    return event


def first_place(event: DailyEvent) -> Optional[Submission]:
    if not event.is_ranked_type:
        return None
    return event.submissions.filter(rank__isnull=False).order_by("rank").first()


def last_place(event: DailyEvent) -> Optional[Submission]:
    if not event.is_ranked_type:
        return None
    return event.submissions.filter(rank__isnull=False).order_by("-rank").first()
