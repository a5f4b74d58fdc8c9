from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.core.models import Squad

User = get_user_model()


class PollQuestion(models.Model):
    question = models.CharField(max_length=255)
    options = models.JSONField(default=list)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self) -> str:
        return self.question


class DailyEvent(models.Model):
    TYPE_TIMED_SCORE = "timed-score"
    TYPE_VOTE = "vote"
    TYPE_MEDIA = "media"
    TYPE_CHOICES = [
        (TYPE_TIMED_SCORE, "Timed score"),
        (TYPE_VOTE, "Vote"),
        (TYPE_MEDIA, "Media"),
    ]

    STATUS_SCHEDULED = "scheduled"
    STATUS_OPEN = "open"
    STATUS_CLOSED = "closed"
    STATUS_FINALIZED = "finalized"
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_OPEN, "Open"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_FINALIZED, "Finalized"),
    ]

    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="events")
    date = models.DateField()
    event_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    opens_at = models.DateTimeField()
    closes_at = models.DateTimeField()
    judge = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="judged_events")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    poll_question = models.CharField(max_length=255, blank=True, default="")
    poll_options = models.JSONField(default=list, blank=True)
    # Vote tally written at close: [{"option": ..., "votes": n}, ...]
    results = models.JSONField(null=True, blank=True)
    ranked_at = models.DateTimeField(null=True, blank=True)
    finalized_at = models.DateTimeField(null=True, blank=True)
    outcome_overturned = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["squad", "date"], name="uniq_event_per_squad_day"),
            models.CheckConstraint(condition=Q(closes_at__gt=models.F("opens_at")), name="event_window_positive"),
        ]
        indexes = [models.Index(fields=["status", "opens_at"], name="events_status_opens_idx")]

    def __str__(self) -> str:
        return f"Event#{self.id} squad={self.squad_id} {self.date} {self.event_type} ({self.status})"

    @property
    def is_ranked_type(self) -> bool:
        return self.event_type == self.TYPE_TIMED_SCORE


class Submission(models.Model):
    event = models.ForeignKey(DailyEvent, on_delete=models.CASCADE, related_name="submissions")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="event_submissions")
    payload = models.JSONField(default=dict, blank=True)
    media_ref = models.CharField(max_length=500, blank=True, default="")
    score = models.FloatField(null=True, blank=True)
    rank = models.PositiveIntegerField(null=True, blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    points_awarded = models.IntegerField(null=True, blank=True)
    stats_applied_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_submission_per_event_member"),
        ]
        indexes = [models.Index(fields=["event", "rank"], name="events_sub_rank_idx")]

    def __str__(self) -> str:
        return f"Sub#{self.id} event={self.event_id} user={self.user_id} rank={self.rank}"


class MissedEvent(models.Model):
    """Marker for a missed-event penalty already applied to a member."""

    event = models.ForeignKey(DailyEvent, on_delete=models.CASCADE, related_name="missed")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="missed_events")
    applied_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_missed_per_event_member"),
        ]

    def __str__(self) -> str:
        return f"Missed event={self.event_id} user={self.user_id}"
