from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional

from django.contrib.auth import get_user_model

from apps.core import stats
from apps.core.clock import FixedClock
from apps.core.models import Membership, Squad
from apps.events.models import DailyEvent, Submission

User = get_user_model()

# Monday noon UTC
BASE = datetime(2026, 3, 2, 12, 0, tzinfo=dt_timezone.utc)


def fixed_clock(at: datetime = BASE) -> FixedClock:
    return FixedClock(at)


def make_squad(name: str, usernames: list[str], admin: Optional[str] = None):
    """Squad plus its members, in creation (and therefore id) order."""
    squad = Squad.objects.create(name=name)
    users = []
    for username in usernames:
        user = User.objects.create_user(username=username, password="verysecurepass")
        role = Membership.ROLE_ADMIN if username == admin else Membership.ROLE_MEMBER
        Membership.objects.create(user=user, squad=squad, role=role)
        stats.ensure_member(user.id, squad.id)
        users.append(user)
    return squad, users


def make_event(squad: Squad, clock: FixedClock, event_type: str = DailyEvent.TYPE_TIMED_SCORE, status: str = DailyEvent.STATUS_OPEN, **fields) -> DailyEvent:
    opens_at = fields.pop("opens_at", clock.now())
    return DailyEvent.objects.create(
        squad=squad,
        date=fields.pop("date", opens_at.date()),
        event_type=event_type,
        opens_at=opens_at,
        closes_at=fields.pop("closes_at", opens_at + timedelta(minutes=5)),
        status=status,
        **fields,
    )


def add_submission(event: DailyEvent, user, score=None, at: Optional[datetime] = None, **fields) -> Submission:
    return Submission.objects.create(
        event=event,
        user=user,
        payload=fields.pop("payload", {"error_ms": score} if score is not None else {}),
        score=score,
        submitted_at=at or event.opens_at + timedelta(seconds=30),
        **fields,
    )
