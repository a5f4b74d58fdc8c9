"""
Judge rotation and challenge voting.

A challenge passes once the "for" votes reach the threshold share of the votes
cast, counted only after min_votes ballots are in, or earlier when they already
reach that share of the whole electorate. It fails as soon as the remaining
voters could not carry it. Deadlines are checked by callers
(cast_vote, resolve_if_expired, the expire_challenges sweep): a challenge with
no votes at its deadline is expired, otherwise it fails and the decision stands.
"""
from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.core.clock import Clock, system_clock
from apps.core.exceptions import Expired, Forbidden, InvalidTransition, NotFound, ValidationFailed
from apps.core.metrics import challenge_votes_total, challenges_resolved_total
from apps.core.models import Squad
from apps.core.stats import strikes_by_member
from apps.events.models import DailyEvent
from apps.rewards.models import ActiveTarget, Power, PowerActivation
from .models import Challenge, ChallengeVote, JudgeAssignment

logger = logging.getLogger(__name__)


def select_judge(squad: Squad, seed: Optional[int] = None) -> Optional[int]:
    """Uniform pick among members under the strike ceiling, else among everyone."""
    candidates = squad.member_ids()
    if not candidates:
        return None
    strikes = strikes_by_member(squad.id)
    eligible = [member_id for member_id in candidates if strikes.get(member_id, 0) < settings.JUDGE_STRIKE_CEILING]
    return random.Random(seed).choice(eligible or candidates)


def assign_judge(event: DailyEvent, seed: Optional[int] = None, clock: Clock = system_clock) -> Optional[int]:
    """Judge for the event's day. The first assignment recorded for a squad and day sticks."""
    existing = JudgeAssignment.objects.filter(squad_id=event.squad_id, judge_date=event.date).first()
    if existing is None:
        judge_id = select_judge(event.squad, seed=seed)
        if judge_id is None:
            return None
        existing, created = JudgeAssignment.objects.get_or_create(
            squad_id=event.squad_id,
            judge_date=event.date,
            defaults={"user_id": judge_id, "event": event, "assigned_at": clock.now()},
        )
        if created:
            logger.info("judge %s assigned to squad %s for %s", judge_id, event.squad_id, event.date)
    if existing.event_id is None:
        JudgeAssignment.objects.filter(pk=existing.pk).update(event=event)
    return existing.user_id


def _subject(squad: Squad, challenge_type: str, event: Optional[DailyEvent], power: Optional[Power]) -> int:
    """Validate the challenged decision and return the member it belongs to."""
    if challenge_type == Challenge.TYPE_JUDGE_DECISION:
        if event is None or event.squad_id != squad.id:
            raise ValidationFailed("A judge decision challenge needs an event of this squad.")
        if event.judge_id is None:
            raise ValidationFailed("Event has no judge.")
        return event.judge_id
    if challenge_type == Challenge.TYPE_POWER_USE:
        if power is None or power.squad_id != squad.id:
            raise ValidationFailed("A power use challenge needs a power of this squad.")
        if power.used_at is None:
            raise ValidationFailed("Power has not been used.")
        return power.user_id
    raise ValidationFailed("Unknown challenge type.")


def open_challenge(
    squad: Squad,
    challenger_id: int,
    challenge_type: str,
    event: Optional[DailyEvent] = None,
    power: Optional[Power] = None,
    reason: str = "",
    threshold_percent: Optional[int] = None,
    duration_hours: Optional[int] = None,
    clock: Clock = system_clock,
) -> Challenge:
    if not squad.has_member(challenger_id):
        raise Forbidden("Not a member of this squad.")
    target_id = _subject(squad, challenge_type, event, power)
    if target_id == challenger_id:
        raise ValidationFailed("Cannot challenge your own decision.")
    threshold = settings.CHALLENGE_THRESHOLD_PERCENT if threshold_percent is None else threshold_percent
    if not 1 <= threshold <= 100:
        raise ValidationFailed("Threshold must be between 1 and 100.")
    hours = settings.CHALLENGE_DURATION_HOURS if duration_hours is None else duration_hours
    if hours <= 0:
        raise ValidationFailed("Duration must be positive.")
    electorate = [m for m in squad.member_ids() if m not in (challenger_id, target_id)]
    if not electorate:
        raise ValidationFailed("No eligible voters.")
    now = clock.now()
    try:
        with transaction.atomic():
            challenge = Challenge.objects.create(
                squad=squad,
                challenger_id=challenger_id,
                challenge_type=challenge_type,
                target_id=target_id,
                event=event if challenge_type == Challenge.TYPE_JUDGE_DECISION else None,
                power=power if challenge_type == Challenge.TYPE_POWER_USE else None,
                reason=(reason or "").strip()[:280],
                eligible_voters=len(electorate),
                threshold_percent=threshold,
                min_votes=min(settings.CHALLENGE_MIN_VOTES, len(electorate)),
                started_at=now,
                expires_at=now + timedelta(hours=hours),
            )
    except IntegrityError:
        raise ValidationFailed("An active challenge already exists for this decision.")
    if challenge.power_id is not None:
        PowerActivation.objects.filter(power_id=challenge.power_id).update(was_challenged=True, challenge=challenge)
    logger.info(
        "challenge %s opened by user %s against user %s (%s, %s voters)",
        challenge.id, challenger_id, target_id, challenge_type, len(electorate),
    )
    return challenge


def _lock_challenge(challenge_id: int) -> Challenge:
    try:
        return Challenge.objects.select_for_update().get(pk=challenge_id)
    except Challenge.DoesNotExist:
        raise NotFound("Challenge not found.")


def _outcome(challenge: Challenge) -> Optional[str]:
    threshold = challenge.threshold_percent
    if challenge.votes_for * 100 >= threshold * challenge.eligible_voters:
        return Challenge.STATUS_PASSED
    cast = challenge.votes_cast
    if cast >= challenge.min_votes and challenge.votes_for * 100 >= threshold * cast:
        return Challenge.STATUS_PASSED
    # Best case: every remaining voter votes "for"
    remaining = max(0, challenge.eligible_voters - cast)
    if (challenge.votes_for + remaining) * 100 < threshold * challenge.eligible_voters:
        return Challenge.STATUS_FAILED
    return None


def _judge_assignment(challenge: Challenge, now) -> Optional[JudgeAssignment]:
    event = challenge.event
    assignment, _ = JudgeAssignment.objects.select_for_update().get_or_create(
        squad_id=challenge.squad_id,
        judge_date=event.date,
        defaults={"user_id": challenge.target_id, "event": event, "assigned_at": now},
    )
    if assignment.user_id != challenge.target_id:
        logger.warning(
            "challenge %s: judge of %s is user %s, not %s",
            challenge.id, event.date, assignment.user_id, challenge.target_id,
        )
        return None
    return assignment


def _settle_judge(challenge: Challenge, passed: bool, now) -> None:
    if passed:
        DailyEvent.objects.filter(pk=challenge.event_id).update(outcome_overturned=True)
    assignment = _judge_assignment(challenge, now)
    if assignment is None:
        return
    assignment.challenge = challenge
    if passed:
        assignment.is_overturned = True
        assignment.penalty_applied = settings.JUDGE_OVERTURN_PENALTY
    else:
        assignment.bonus_earned = settings.JUDGE_UPHELD_BONUS
    assignment.save(update_fields=["challenge", "is_overturned", "penalty_applied", "bonus_earned"])


def _settle_power(challenge: Challenge, passed: bool, now) -> None:
    if not passed:
        return
    ActiveTarget.objects.filter(power_id=challenge.power_id, expires_at__gt=now).update(expires_at=now)
    power = Power.objects.select_for_update().get(pk=challenge.power_id)
    power.metadata = {**(power.metadata or {}), "overturned": True, "overturned_by_challenge": challenge.id}
    power.save(update_fields=["metadata"])


def _apply_result(challenge: Challenge, now) -> None:
    """Overturn the decision of a passed challenge, uphold it for a failed one. Runs once."""
    if challenge.result_applied:
        return
    passed = challenge.status == Challenge.STATUS_PASSED
    if challenge.challenge_type == Challenge.TYPE_JUDGE_DECISION:
        _settle_judge(challenge, passed, now)
    else:
        _settle_power(challenge, passed, now)
    challenge.result_applied = True
    logger.info("challenge %s %s %s", challenge.id, "overturned" if passed else "upheld", challenge.challenge_type)


def _resolve(challenge: Challenge, status: str, now) -> None:
    challenge.status = status
    challenge.resolved_at = now
    if status in (Challenge.STATUS_PASSED, Challenge.STATUS_FAILED):
        _apply_result(challenge, now)
    if challenge.power_id is not None:
        PowerActivation.objects.filter(power_id=challenge.power_id, challenge=challenge).update(challenge_result=status)
    challenge.save()
    challenges_resolved_total.labels(status=status).inc()
    logger.info(
        "challenge %s resolved %s (for=%s against=%s of %s)",
        challenge.id, status, challenge.votes_for, challenge.votes_against, challenge.eligible_voters,
    )


def _expire(challenge: Challenge, now) -> None:
    _resolve(challenge, Challenge.STATUS_FAILED if challenge.votes_cast else Challenge.STATUS_EXPIRED, now)


def cast_vote(challenge_id: int, voter_id: int, vote: str, clock: Clock = system_clock) -> Challenge:
    if vote not in (ChallengeVote.VOTE_FOR, ChallengeVote.VOTE_AGAINST):
        raise ValidationFailed("Vote must be 'for' or 'against'.")
    deadline_passed = False
    with transaction.atomic():
        challenge = _lock_challenge(challenge_id)
        if challenge.status != Challenge.STATUS_ACTIVE:
            raise InvalidTransition(f"Challenge is {challenge.status}.")
        now = clock.now()
        if now >= challenge.expires_at:
            _expire(challenge, now)
            deadline_passed = True
        else:
            if voter_id in (challenge.challenger_id, challenge.target_id):
                raise Forbidden("Challenger and target cannot vote.")
            if not challenge.squad.has_member(voter_id):
                raise Forbidden("Not a member of this squad.")
            if ChallengeVote.objects.filter(challenge=challenge, user_id=voter_id).exists():
                raise ValidationFailed("Already voted on this challenge.")
            try:
                with transaction.atomic():
                    ChallengeVote.objects.create(challenge=challenge, user_id=voter_id, vote=vote, voted_at=now)
            except IntegrityError:
                raise ValidationFailed("Already voted on this challenge.")
            if vote == ChallengeVote.VOTE_FOR:
                challenge.votes_for += 1
            else:
                challenge.votes_against += 1
            challenge_votes_total.labels(vote=vote).inc()
            outcome = _outcome(challenge)
            if outcome is None:
                challenge.save(update_fields=["votes_for", "votes_against"])
            else:
                _resolve(challenge, outcome, now)
    if deadline_passed:
        raise Expired("Challenge deadline has passed.")
    return challenge


def resolve_if_expired(challenge: Challenge, clock: Clock = system_clock) -> Challenge:
    with transaction.atomic():
        challenge = _lock_challenge(challenge.pk)
        now = clock.now()
        if challenge.status == Challenge.STATUS_ACTIVE and now >= challenge.expires_at:
            _expire(challenge, now)
    return challenge


def expire_challenges(clock: Clock = system_clock) -> int:
    """Resolve every active challenge past its deadline; returns how many were resolved."""
    due = list(
        Challenge.objects.filter(status=Challenge.STATUS_ACTIVE, expires_at__lte=clock.now())
        .order_by("id")
        .values_list("id", flat=True)
    )
    resolved = 0
    for challenge_id in due:
        with transaction.atomic():
            challenge = _lock_challenge(challenge_id)
            if challenge.status == Challenge.STATUS_ACTIVE:
                _expire(challenge, clock.now())
                resolved += 1
    return resolved
