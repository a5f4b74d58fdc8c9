from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import MemberStats

logger = logging.getLogger(__name__)


def squad_group(squad_id: int) -> str:
    return f"squad.{squad_id}"


def _send(squad_id: int, kind: str, payload: dict) -> None:
    try:
        channel_layer = get_channel_layer()
        async_to_sync(channel_layer.group_send)(
            squad_group(squad_id), {"type": "squad.update", "kind": kind, "payload": payload}
        )
    except Exception as exc:
        # Delivery is best effort; state changes never depend on it
        logger.warning("broadcast %s to squad %s failed: %s", kind, squad_id, exc)


def broadcast_squad(squad_id: int, kind: str, payload: dict) -> None:
    """Notify squad subscribers once the surrounding transaction commits."""
    transaction.on_commit(lambda: _send(squad_id, kind, payload))


@receiver(post_save, sender=MemberStats)
def broadcast_stats_change(sender, instance: MemberStats, created: bool, **kwargs):
    broadcast_squad(
        instance.squad_id,
        "stats",
        {
            "user_id": instance.user_id,
            "points_weekly": instance.points_weekly,
            "points_lifetime": instance.points_lifetime,
            "streak_count": instance.streak_count,
            "strikes_14d": instance.strikes_14d,
        },
    )
