from __future__ import annotations

from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.core.signals import broadcast_squad
from .models import DailyEvent, Submission


@receiver(post_save, sender=DailyEvent)
def broadcast_event_change(sender, instance: DailyEvent, created: bool, **kwargs):
    broadcast_squad(
        instance.squad_id,
        "event",
        {
            "event_id": instance.id,
            "date": instance.date.isoformat(),
            "event_type": instance.event_type,
            "status": instance.status,
            "opens_at": instance.opens_at.isoformat(),
            "closes_at": instance.closes_at.isoformat(),
            "judge_id": instance.judge_id,
            "results": instance.results,
        },
    )


@receiver(post_save, sender=Submission)
def broadcast_submission(sender, instance: Submission, created: bool, **kwargs):
    if not created:
        return
    # Only who submitted; payloads stay private until results are out
    broadcast_squad(
        instance.event.squad_id,
        "submission",
        {"event_id": instance.event_id, "user_id": instance.user_id},
    )
