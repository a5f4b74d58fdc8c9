"""
Stats & streak engine.

All writes to MemberStats go through this module. Each mutation locks the
single (member, squad) row, so work for different members runs in parallel
while updates for the same member are serialized. Periodic sweeps are keyed
by the period they belong to and can be re-run safely.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q

from .clock import Clock, system_clock, week_start
from .models import MemberStats

logger = logging.getLogger(__name__)


def _locked_stats(member_id: int, squad_id: int) -> MemberStats:
    stats, _ = MemberStats.objects.get_or_create(user_id=member_id, squad_id=squad_id)
    return MemberStats.objects.select_for_update().get(pk=stats.pk)


def _roll_week(stats: MemberStats, today: date) -> bool:
    """Move the row into today's week. False when today belongs to an earlier week."""
    period = week_start(today)
    if stats.week_start is not None and period < stats.week_start:
        return False
    if stats.week_start is not None and stats.week_start < period:
        stats.points_weekly = 0
    stats.week_start = period
    return True


def ensure_member(member_id: int, squad_id: int) -> MemberStats:
    """Create the zeroed stats row for a new member; existing rows are left alone."""
    stats, created = MemberStats.objects.get_or_create(user_id=member_id, squad_id=squad_id)
    if created:
        logger.info("stats: row created member=%s squad=%s", member_id, squad_id)
    return stats


def next_streak(last_participation: Optional[date], current_streak: int, today: date) -> int:
    if last_participation is None or last_participation < today - timedelta(days=1):
        return 1
    if last_participation == today - timedelta(days=1):
        return current_streak + 1
    # Already counted today
    return current_streak


def on_submission(member_id: int, squad_id: int, points: int, today: Optional[date] = None, clock: Clock = system_clock) -> MemberStats:
    today = today or clock.today()
    with transaction.atomic():
        stats = _locked_stats(member_id, squad_id)
        # Points for an earlier week count towards lifetime only
        if _roll_week(stats, today):
            stats.points_weekly += points
        stats.points_lifetime += points
        stats.streak_count = next_streak(stats.last_participation_date, stats.streak_count, today)
        if stats.last_participation_date is None or stats.last_participation_date < today:
            stats.last_participation_date = today
        stats.updated_at = clock.now()
        stats.save()
    logger.info("stats: +%s points member=%s squad=%s streak=%s", points, member_id, squad_id, stats.streak_count)
    return stats


def on_missed_event(member_id: int, squad_id: int, today: Optional[date] = None, clock: Clock = system_clock) -> MemberStats:
    penalty = settings.MISSED_EVENT_PENALTY
    today = today or clock.today()
    with transaction.atomic():
        stats = _locked_stats(member_id, squad_id)
        if _roll_week(stats, today):
            stats.points_weekly = max(0, stats.points_weekly - penalty)
        stats.points_lifetime = max(0, stats.points_lifetime - penalty)
        stats.streak_count = 0
        stats.strikes_14d += 1
        stats.updated_at = clock.now()
        stats.save()
    logger.info("stats: missed event member=%s squad=%s strikes=%s", member_id, squad_id, stats.strikes_14d)
    return stats


def reset_weekly(period_start: Optional[date] = None, clock: Clock = system_clock) -> int:
    """Zero weekly points of every row still belonging to an earlier week."""
    period = period_start or week_start(clock.today())
    count = MemberStats.objects.filter(Q(week_start__isnull=True) | Q(week_start__lt=period)).update(
        points_weekly=0, week_start=period, updated_at=clock.now()
    )
    logger.info("stats: weekly reset for %s touched %s rows", period, count)
    return count


def decay_strikes(period_start: Optional[date] = None, clock: Clock = system_clock) -> int:
    """Take one strike off every member with strikes, at most once per period."""
    period = period_start or week_start(clock.today())
    count = (
        MemberStats.objects.filter(strikes_14d__gt=0)
        .filter(Q(strikes_decayed_for__isnull=True) | Q(strikes_decayed_for__lt=period))
        .update(strikes_14d=F("strikes_14d") - 1, strikes_decayed_for=period, updated_at=clock.now())
    )
    logger.info("stats: strike decay for %s touched %s rows", period, count)
    return count


def strikes_by_member(squad_id: int) -> dict[int, int]:
    rows = MemberStats.objects.filter(squad_id=squad_id).values_list("user_id", "strikes_14d")
    return {user_id: strikes for user_id, strikes in rows}


def leaderboard(squad_id: int) -> list[dict]:
    """Weekly standings with dense ranking (equal points share a rank)."""
    qs = (
        MemberStats.objects.filter(squad_id=squad_id)
        .select_related("user")
        .order_by("-points_weekly", "user__username")
    )
    results = []
    rank = 0
    last_points = None
    for row in qs:
        if row.points_weekly != last_points:
            rank += 1
            last_points = row.points_weekly
        results.append(
            {
                "rank": rank,
                "user_id": row.user_id,
                "username": row.user.username,
                "points_weekly": row.points_weekly,
                "points_lifetime": row.points_lifetime,
                "streak_count": row.streak_count,
                "strikes_14d": row.strikes_14d,
            }
        )
    return results
