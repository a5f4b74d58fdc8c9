"""
Event lifecycle: scheduled -> open -> closed -> finalized.

Only this module advances DailyEvent.status. Every step of finalize_event is
keyed on a marker (Submission.stats_applied_at, MissedEvent, the crown and power
source event), so repeating the call after a partial failure is safe.
"""
from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.core import stats
from apps.core.clock import Clock, system_clock
from apps.core.exceptions import GameError, InvalidTransition, NotFound, ValidationFailed
from apps.core.metrics import event_transitions_total
from apps.core.models import Squad
from apps.judging.services import assign_judge
from apps.rewards.crowns import award_crown
from apps.rewards.powers import award_underdog_power
from .models import DailyEvent, MissedEvent, PollQuestion, Submission
from .ranking import rank_event

logger = logging.getLogger(__name__)

# Events open at a random minute between 08:00 and 21:59 local time
FIRST_OPEN_MINUTE = 8 * 60
LAST_OPEN_MINUTE = 22 * 60


def _locked_event(event_id: int) -> DailyEvent:
    try:
        return DailyEvent.objects.select_for_update().get(pk=event_id)
    except DailyEvent.DoesNotExist:
        raise NotFound("Event not found.")


def _transition(event: DailyEvent, status: str, **fields) -> None:
    event.status = status
    for name, value in fields.items():
        setattr(event, name, value)
    event.save(update_fields=["status", *fields])
    event_transitions_total.labels(status=status).inc()
    logger.info("event %s squad=%s -> %s", event.id, event.squad_id, status)


def open_event(event: DailyEvent, seed: Optional[int] = None, clock: Clock = system_clock) -> DailyEvent:
    with transaction.atomic():
        event = _locked_event(event.pk)
        if event.status != DailyEvent.STATUS_SCHEDULED:
            raise InvalidTransition(f"Cannot open an event that is {event.status}.")
        if clock.now() < event.opens_at:
            raise InvalidTransition("Event window has not started yet.")
        fields = {}
        if event.judge_id is None:
            fields["judge_id"] = assign_judge(event, seed=seed, clock=clock)
        _transition(event, DailyEvent.STATUS_OPEN, **fields)
    return event


def close_event(event: DailyEvent, clock: Clock = system_clock) -> DailyEvent:
    """Close and rank in one transaction; closing a closed event does nothing."""
    with transaction.atomic():
        event = _locked_event(event.pk)
        if event.status in (DailyEvent.STATUS_CLOSED, DailyEvent.STATUS_FINALIZED):
            return event
        if event.status == DailyEvent.STATUS_SCHEDULED and clock.now() < event.closes_at:
            raise InvalidTransition("Event has not been opened and its window is still running.")
        _transition(event, DailyEvent.STATUS_CLOSED)
        event = rank_event(event, clock=clock)
    return event


def points_for(event: DailyEvent, submission: Submission) -> int:
    points = settings.PARTICIPATION_POINTS
    if event.is_ranked_type and submission.rank is not None:
        points += settings.RANK_BONUS_POINTS.get(submission.rank, 0)
    return points


def apply_missed_event_penalty(event: DailyEvent, member_id: int, clock: Clock = system_clock) -> bool:
    """Penalize a member for skipping the event. Returns False when already applied."""
    if event.status not in (DailyEvent.STATUS_CLOSED, DailyEvent.STATUS_FINALIZED):
        raise InvalidTransition("Penalties apply only after the event closed.")
    if not event.squad.has_member(member_id):
        raise ValidationFailed("Not a member of this squad.")
    if Submission.objects.filter(event=event, user_id=member_id).exists():
        raise ValidationFailed("Member submitted to this event.")
    try:
        with transaction.atomic():
            MissedEvent.objects.create(event=event, user_id=member_id, applied_at=clock.now())
            stats.on_missed_event(member_id, event.squad_id, today=event.date, clock=clock)
    except IntegrityError:
        return False
    return True


def finalize_event(event: DailyEvent, rng: Optional[random.Random] = None, clock: Clock = system_clock) -> DailyEvent:
    with transaction.atomic():
        event = _locked_event(event.pk)
        if event.status == DailyEvent.STATUS_FINALIZED:
            return event
        if event.status != DailyEvent.STATUS_CLOSED:
            raise InvalidTransition(f"Cannot finalize an event that is {event.status}.")

        now = clock.now()
        pending = event.submissions.filter(stats_applied_at__isnull=True).order_by("id")
        for submission in pending:
            points = points_for(event, submission)
            stats.on_submission(submission.user_id, event.squad_id, points, today=event.date, clock=clock)
            submission.points_awarded = points
            submission.stats_applied_at = now
            submission.save(update_fields=["points_awarded", "stats_applied_at"])

        submitted = set(event.submissions.values_list("user_id", flat=True))
        penalized = set(event.missed.values_list("user_id", flat=True))
        for member_id in event.squad.member_ids():
            if member_id not in submitted and member_id not in penalized:
                apply_missed_event_penalty(event, member_id, clock=clock)

        award_crown(event, clock=clock)
        award_underdog_power(event, rng=rng, clock=clock)
        _transition(event, DailyEvent.STATUS_FINALIZED, finalized_at=now)
    return event


def generate_daily_event(squad: Squad, day: date, seed: Optional[int] = None, clock: Clock = system_clock) -> DailyEvent:
    """Create the squad's event for the day, or return the one already there."""
    existing = DailyEvent.objects.filter(squad=squad, date=day).first()
    if existing is not None:
        return existing
    rng = random.Random(seed)
    polls = list(PollQuestion.objects.filter(active=True).order_by("id"))
    types = [DailyEvent.TYPE_TIMED_SCORE, DailyEvent.TYPE_VOTE, DailyEvent.TYPE_MEDIA]
    if not polls:
        types.remove(DailyEvent.TYPE_VOTE)
    event_type = rng.choice(types)
    minute = rng.randrange(FIRST_OPEN_MINUTE, LAST_OPEN_MINUTE)
    opens_at = datetime.combine(day, time(minute // 60, minute % 60), tzinfo=ZoneInfo(squad.timezone))
    defaults = {
        "event_type": event_type,
        "opens_at": opens_at,
        "closes_at": opens_at + timedelta(minutes=settings.EVENT_DURATION_MINUTES),
        "created_at": clock.now(),
    }
    if event_type == DailyEvent.TYPE_VOTE:
        poll = rng.choice(polls)
        defaults["poll_question"] = poll.question
        defaults["poll_options"] = list(poll.options)
    event, created = DailyEvent.objects.get_or_create(squad=squad, date=day, defaults=defaults)
    if created:
        logger.info("event %s generated for squad %s on %s: %s at %s", event.id, squad.id, day, event_type, opens_at)
    return event


# Sweeps driven by the scheduler

def generate_daily_events(clock: Clock = system_clock) -> int:
    created = 0
    for squad in Squad.objects.filter(memberships__isnull=False).distinct().order_by("id"):
        day = clock.today(squad.timezone)
        if not DailyEvent.objects.filter(squad=squad, date=day).exists():
            generate_daily_event(squad, day, clock=clock)
            created += 1
    return created


def open_due_events(clock: Clock = system_clock) -> int:
    now = clock.now()
    due = DailyEvent.objects.filter(
        status=DailyEvent.STATUS_SCHEDULED, opens_at__lte=now, closes_at__gt=now
    ).order_by("id")
    opened = 0
    for event in list(due):
        try:
            open_event(event, clock=clock)
            opened += 1
        except GameError as exc:
            logger.warning("event %s not opened: %s", event.id, exc.detail)
    return opened


def close_due_events(clock: Clock = system_clock) -> int:
    """Close every event past its window, then finalize everything closed."""
    now = clock.now()
    due = DailyEvent.objects.filter(
        status__in=[DailyEvent.STATUS_SCHEDULED, DailyEvent.STATUS_OPEN], closes_at__lte=now
    ).order_by("id")
    for event in list(due):
        try:
            close_event(event, clock=clock)
        except GameError as exc:
            logger.warning("event %s not closed: %s", event.id, exc.detail)
    finalized = 0
    for event in list(DailyEvent.objects.filter(status=DailyEvent.STATUS_CLOSED).order_by("id")):
        try:
            finalize_event(event, clock=clock)
            finalized += 1
        except GameError as exc:
            logger.warning("event %s not finalized: %s", event.id, exc.detail)
    return finalized
