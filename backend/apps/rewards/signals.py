from __future__ import annotations

from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.core.signals import broadcast_squad
from .models import ActiveTarget, Crown, Headline, Power, Rivalry


@receiver(post_save, sender=Power)
def broadcast_power(sender, instance: Power, created: bool, **kwargs):
    broadcast_squad(
        instance.squad_id,
        "power",
        {
            "power_id": instance.id,
            "user_id": instance.user_id,
            "power_type": instance.power_type,
            "expires_at": instance.expires_at.isoformat(),
            "used": instance.used_at is not None,
        },
    )


@receiver(post_save, sender=ActiveTarget)
def broadcast_target(sender, instance: ActiveTarget, created: bool, **kwargs):
    if not created:
        return
    broadcast_squad(
        instance.squad_id,
        "target",
        {"targeter_id": instance.targeter_id, "target_id": instance.target_id, "expires_at": instance.expires_at.isoformat()},
    )


@receiver(post_save, sender=Crown)
def broadcast_crown(sender, instance: Crown, created: bool, **kwargs):
    if not created:
        return
    broadcast_squad(
        instance.squad_id,
        "crown",
        {"crown_id": instance.id, "user_id": instance.user_id, "expires_at": instance.expires_at.isoformat()},
    )


@receiver(post_save, sender=Headline)
def broadcast_headline(sender, instance: Headline, created: bool, **kwargs):
    broadcast_squad(instance.squad_id, "headline", {"crown_id": instance.crown_id, "content": instance.content})


@receiver(post_save, sender=Rivalry)
def broadcast_rivalry(sender, instance: Rivalry, created: bool, **kwargs):
    broadcast_squad(
        instance.squad_id,
        "rivalry",
        {"crown_id": instance.crown_id, "rival1_id": instance.rival1_id, "rival2_id": instance.rival2_id},
    )
