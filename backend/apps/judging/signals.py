from __future__ import annotations

from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.core.signals import broadcast_squad
from .models import Challenge


@receiver(post_save, sender=Challenge)
def broadcast_challenge(sender, instance: Challenge, created: bool, **kwargs):
    broadcast_squad(
        instance.squad_id,
        "challenge",
        {
            "challenge_id": instance.id,
            "challenge_type": instance.challenge_type,
            "target_id": instance.target_id,
            "status": instance.status,
            "votes_for": instance.votes_for,
            "votes_against": instance.votes_against,
            "eligible_voters": instance.eligible_voters,
            "expires_at": instance.expires_at.isoformat(),
        },
    )
