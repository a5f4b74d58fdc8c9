"""
Underdog powers.

A power is claimed exactly once. use_power() holds the row lock while it
validates, then claims with a conditional UPDATE on used_at IS NULL; a caller
that loses the claim gets AlreadyUsed. A successful claim also writes the
PowerActivation audit record in the same transaction.
"""
from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Any, Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.core.clock import Clock, system_clock
from apps.core.exceptions import AlreadyUsed, Expired, Forbidden, GameError, InvalidTarget, NotFound
from apps.core.metrics import power_uses_total, rewards_granted_total
from apps.core.models import Membership
from apps.events.models import DailyEvent
from apps.events.ranking import last_place
from .models import ActiveTarget, Power, PowerActivation

logger = logging.getLogger(__name__)

POWER_TYPES = [choice for choice, _ in Power.TYPE_CHOICES]

# Metadata written by the server; callers of use_power cannot set these
RESERVED_METADATA_KEYS = frozenset(
    {"source_event_id", "awarded_reason", "used_timestamp", "overturned", "overturned_by_challenge", "challenge_result"}
)


def award_underdog_power(event: DailyEvent, rng: Optional[random.Random] = None, clock: Clock = system_clock) -> Optional[Power]:
    """Grant a random power to the worst-ranked finisher; once per event."""
    existing = Power.objects.filter(source_event=event).first()
    if existing is not None:
        return existing
    loser = last_place(event)
    if loser is None:
        return None
    rng = rng or random.Random()
    power_type = rng.choice(POWER_TYPES)
    now = clock.now()
    try:
        with transaction.atomic():
            power = Power.objects.create(
                user_id=loser.user_id,
                squad_id=event.squad_id,
                power_type=power_type,
                granted_at=now,
                expires_at=now + timedelta(hours=settings.POWER_DURATION_HOURS),
                source_event=event,
                metadata={"source_event_id": event.id, "awarded_reason": "last_place_finish"},
            )
    except IntegrityError:
        return Power.objects.get(source_event=event)
    rewards_granted_total.labels(kind="power").inc()
    logger.info("power %s (%s) granted to user %s for event %s", power.id, power_type, loser.user_id, event.id)
    return power


def _lock_power(power_id: int) -> Power:
    try:
        return Power.objects.select_for_update().get(pk=power_id)
    except Power.DoesNotExist:
        raise NotFound("Power not found.")


def _clean_target(power: Power, acting_member_id: int, raw: Any) -> int:
    try:
        target_id = int(raw)
    except (TypeError, ValueError):
        raise InvalidTarget("target_user_id is required.")
    if target_id == acting_member_id:
        raise InvalidTarget("Cannot target yourself.")
    if not Membership.objects.filter(squad_id=power.squad_id, user_id=target_id).exists():
        raise InvalidTarget("Target is not a member of this squad.")
    return target_id


def _claim(power_id: int, acting_member_id: int, metadata: dict, clock: Clock) -> Power:
    with transaction.atomic():
        power = _lock_power(power_id)
        now = clock.now()
        if power.user_id != acting_member_id:
            raise Forbidden("Power belongs to another member.")
        if power.used_at is not None:
            raise AlreadyUsed()
        if power.expires_at < now:
            raise Expired("Power has expired.")
        metadata = {key: value for key, value in metadata.items() if key not in RESERVED_METADATA_KEYS}
        target_id = None
        if power.power_type == Power.TYPE_TARGET_LOCK:
            target_id = _clean_target(power, acting_member_id, metadata.get("target_user_id"))
            metadata["target_user_id"] = target_id
        merged = {**(power.metadata or {}), **metadata, "used_timestamp": now.isoformat()}
        claimed = Power.objects.filter(pk=power.pk, used_at__isnull=True).update(used_at=now, metadata=merged)
        if not claimed:
            raise AlreadyUsed()
        if target_id is not None:
            ActiveTarget.objects.create(
                targeter_id=acting_member_id,
                target_id=target_id,
                squad_id=power.squad_id,
                power=power,
                created_at=now,
                expires_at=power.expires_at,
            )
        PowerActivation.objects.create(
            squad_id=power.squad_id,
            power=power,
            power_type=power.power_type,
            activated_by_id=acting_member_id,
            affected_users=[target_id] if target_id is not None else [],
            event_id=power.source_event_id,
            activated_at=now,
            expires_at=power.expires_at,
            metadata=metadata,
        )
        power.refresh_from_db()
    return power


def use_power(power_id: int, acting_member_id: int, metadata: Optional[dict] = None, clock: Clock = system_clock) -> Power:
    try:
        power = _claim(power_id, acting_member_id, dict(metadata or {}), clock)
    except GameError as exc:
        power_uses_total.labels(result=exc.default_code).inc()
        logger.info("power %s use by user %s rejected: %s", power_id, acting_member_id, exc.default_code)
        raise
    power_uses_total.labels(result="used").inc()
    logger.info("power %s (%s) used by user %s", power.id, power.power_type, acting_member_id)
    return power


def active_powers(member_id: int, squad_id: int, clock: Clock = system_clock):
    return Power.objects.filter(
        user_id=member_id, squad_id=squad_id, used_at__isnull=True, expires_at__gte=clock.now()
    ).order_by("expires_at", "id")


def is_targeted(member_id: int, squad_id: int, clock: Clock = system_clock) -> bool:
    return ActiveTarget.objects.filter(target_id=member_id, squad_id=squad_id, expires_at__gt=clock.now()).exists()
