"""Crown of the day and the declarations its holder may post."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q

from apps.core.clock import Clock, system_clock
from apps.core.exceptions import Expired, Forbidden, NotFound, ValidationFailed
from apps.core.metrics import rewards_granted_total
from apps.core.models import Membership
from apps.events.models import DailyEvent
from apps.events.ranking import first_place
from .models import Crown, Headline, Rivalry

logger = logging.getLogger(__name__)


def award_crown(event: DailyEvent, clock: Clock = system_clock) -> Optional[Crown]:
    existing = Crown.objects.filter(squad_id=event.squad_id, source_event=event).first()
    if existing is not None:
        return existing
    winner = first_place(event)
    if winner is None:
        return None
    now = clock.now()
    try:
        with transaction.atomic():
            crown = Crown.objects.create(
                user_id=winner.user_id,
                squad_id=event.squad_id,
                source_event=event,
                granted_at=now,
                expires_at=now + timedelta(hours=settings.CROWN_DURATION_HOURS),
            )
    except IntegrityError:
        return Crown.objects.get(squad_id=event.squad_id, source_event=event)
    rewards_granted_total.labels(kind="crown").inc()
    logger.info("crown %s granted to user %s for event %s", crown.id, winner.user_id, event.id)
    return crown


def _holder_crown(crown_id: int, acting_member_id: int, clock: Clock) -> Crown:
    """Lock the crown row for its holder; callers run inside a transaction."""
    try:
        crown = Crown.objects.select_for_update().get(pk=crown_id)
    except Crown.DoesNotExist:
        raise NotFound("Crown not found.")
    if crown.user_id != acting_member_id:
        raise Forbidden("Crown belongs to another member.")
    if crown.expires_at < clock.now():
        raise Expired("Crown has expired.")
    return crown


def create_headline(crown_id: int, acting_member_id: int, content, clock: Clock = system_clock) -> Headline:
    if not isinstance(content, str):
        raise ValidationFailed("Headline must be text.")
    text = content.strip()
    if not text:
        raise ValidationFailed("Headline cannot be empty.")
    if len(text) > settings.HEADLINE_MAX_LENGTH:
        raise ValidationFailed(f"Headline exceeds {settings.HEADLINE_MAX_LENGTH} characters.")
    with transaction.atomic():
        crown = _holder_crown(crown_id, acting_member_id, clock)
        headline, created = Headline.objects.update_or_create(
            crown=crown,
            defaults={
                "user_id": crown.user_id,
                "squad_id": crown.squad_id,
                "content": text,
                "expires_at": crown.expires_at,
            },
            create_defaults={
                "user_id": crown.user_id,
                "squad_id": crown.squad_id,
                "content": text,
                "created_at": clock.now(),
                "expires_at": crown.expires_at,
            },
        )
    logger.info("headline %s %s for crown %s", headline.id, "created" if created else "updated", crown_id)
    return headline


def declare_rivalry(crown_id: int, acting_member_id: int, rival1_id: int, rival2_id: int, clock: Clock = system_clock) -> Rivalry:
    with transaction.atomic():
        crown = _holder_crown(crown_id, acting_member_id, clock)
        if rival1_id == rival2_id:
            raise ValidationFailed("Rivals must be different members.")
        if crown.user_id in (rival1_id, rival2_id):
            raise ValidationFailed("Crown holder cannot be a rival.")
        members = set(
            Membership.objects.filter(squad_id=crown.squad_id, user_id__in=[rival1_id, rival2_id]).values_list(
                "user_id", flat=True
            )
        )
        if members != {rival1_id, rival2_id}:
            raise ValidationFailed("Both rivals must be members of this squad.")
        rivalry, created = Rivalry.objects.update_or_create(
            crown=crown,
            defaults={"rival1_id": rival1_id, "rival2_id": rival2_id},
            create_defaults={
                "declarer_id": crown.user_id,
                "rival1_id": rival1_id,
                "rival2_id": rival2_id,
                "squad_id": crown.squad_id,
                "created_at": clock.now(),
                "expires_at": crown.expires_at,
            },
        )
    logger.info("rivalry %s %s: %s vs %s", rivalry.id, "declared" if created else "updated", rival1_id, rival2_id)
    return rivalry


def active_crown(squad_id: int, clock: Clock = system_clock) -> Optional[Crown]:
    return Crown.objects.filter(squad_id=squad_id, expires_at__gte=clock.now()).order_by("-granted_at", "-id").first()


def active_headline(squad_id: int, clock: Clock = system_clock) -> Optional[Headline]:
    return Headline.objects.filter(squad_id=squad_id, expires_at__gte=clock.now()).order_by("-created_at", "-id").first()


def active_rivalry(squad_id: int, clock: Clock = system_clock) -> Optional[Rivalry]:
    return Rivalry.objects.filter(squad_id=squad_id, expires_at__gte=clock.now()).order_by("-created_at", "-id").first()


def is_crown_holder(member_id: int, squad_id: int, clock: Clock = system_clock) -> bool:
    return Crown.objects.filter(user_id=member_id, squad_id=squad_id, expires_at__gte=clock.now()).exists()


def are_rivals(member_a: int, member_b: int, squad_id: int, clock: Clock = system_clock) -> bool:
    pair = Q(rival1_id=member_a, rival2_id=member_b) | Q(rival1_id=member_b, rival2_id=member_a)
    return Rivalry.objects.filter(pair, squad_id=squad_id, expires_at__gte=clock.now()).exists()
