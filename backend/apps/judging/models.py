from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.core.models import Squad
from apps.events.models import DailyEvent
from apps.rewards.models import Power

User = get_user_model()


class Challenge(models.Model):
    """Squad vote to overturn a judge decision or a power use."""

    TYPE_JUDGE_DECISION = "judge_decision"
    TYPE_POWER_USE = "power_use"
    TYPE_CHOICES = [
        (TYPE_JUDGE_DECISION, "Judge decision"),
        (TYPE_POWER_USE, "Power use"),
    ]

    STATUS_ACTIVE = "active"
    STATUS_PASSED = "passed"
    STATUS_FAILED = "failed"
    STATUS_EXPIRED = "expired"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_PASSED, "Passed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_EXPIRED, "Expired"),
    ]

    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="challenges")
    challenger = models.ForeignKey(User, on_delete=models.CASCADE, related_name="challenges_opened")
    challenge_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    target = models.ForeignKey(User, on_delete=models.CASCADE, related_name="challenges_against")
    event = models.ForeignKey(DailyEvent, on_delete=models.CASCADE, null=True, blank=True, related_name="challenges")
    power = models.ForeignKey(Power, on_delete=models.CASCADE, null=True, blank=True, related_name="challenges")
    reason = models.CharField(max_length=280, blank=True, default="")
    votes_for = models.PositiveIntegerField(default=0)
    votes_against = models.PositiveIntegerField(default=0)
    eligible_voters = models.PositiveIntegerField()
    threshold_percent = models.PositiveSmallIntegerField(default=50)
    min_votes = models.PositiveSmallIntegerField(default=1)
    started_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    resolved_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    result_applied = models.BooleanField(default=False)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event"],
                condition=Q(status="active", event__isnull=False),
                name="uniq_active_challenge_per_event",
            ),
            models.UniqueConstraint(
                fields=["power"],
                condition=Q(status="active", power__isnull=False),
                name="uniq_active_challenge_per_power",
            ),
            models.CheckConstraint(
                condition=Q(threshold_percent__gte=1, threshold_percent__lte=100),
                name="challenge_threshold_range",
            ),
            models.CheckConstraint(
                condition=Q(challenge_type="judge_decision", event__isnull=False)
                | Q(challenge_type="power_use", power__isnull=False),
                name="challenge_has_subject",
            ),
        ]
        indexes = [models.Index(fields=["status", "expires_at"], name="judging_status_expiry_idx")]

    def __str__(self) -> str:
        return f"Challenge#{self.id} {self.challenge_type} ({self.status})"

    @property
    def votes_cast(self) -> int:
        return self.votes_for + self.votes_against


class ChallengeVote(models.Model):
    VOTE_FOR = "for"
    VOTE_AGAINST = "against"
    VOTE_CHOICES = [(VOTE_FOR, "For"), (VOTE_AGAINST, "Against")]

    challenge = models.ForeignKey(Challenge, on_delete=models.CASCADE, related_name="votes")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="challenge_votes")
    vote = models.CharField(max_length=8, choices=VOTE_CHOICES)
    voted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["challenge", "user"], name="uniq_vote_per_challenge_member"),
        ]

    def __str__(self) -> str:
        return f"Vote {self.vote} by {self.user_id} on {self.challenge_id}"


class JudgeAssignment(models.Model):
    """The squad's judge for a day and how their decision held up."""

    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="judge_assignments")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="judge_assignments")
    judge_date = models.DateField()
    event = models.ForeignKey(DailyEvent, on_delete=models.SET_NULL, null=True, blank=True, related_name="judge_assignments")
    bonus_earned = models.PositiveIntegerField(default=0)
    penalty_applied = models.PositiveIntegerField(default=0)
    is_overturned = models.BooleanField(default=False)
    challenge = models.ForeignKey(Challenge, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    assigned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["squad", "judge_date"], name="uniq_judge_per_squad_day"),
        ]
        indexes = [models.Index(fields=["user", "judge_date"], name="judging_assignment_user_idx")]

    def __str__(self) -> str:
        return f"Judge {self.user_id} squad={self.squad_id} on {self.judge_date}"
