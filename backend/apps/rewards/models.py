from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from apps.core.models import Squad
from apps.events.models import DailyEvent

User = get_user_model()


class Power(models.Model):
    """Single-use privilege granted to an event's last-place finisher."""

    TYPE_DOUBLE_CHANCE = "double_chance"
    TYPE_TARGET_LOCK = "target_lock"
    TYPE_CHAOS_CARD = "chaos_card"
    TYPE_STREAK_SHIELD = "streak_shield"
    TYPE_CHOICES = [
        (TYPE_DOUBLE_CHANCE, "Double chance"),
        (TYPE_TARGET_LOCK, "Target lock"),
        (TYPE_CHAOS_CARD, "Chaos card"),
        (TYPE_STREAK_SHIELD, "Streak shield"),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="powers")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="powers")
    power_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    granted_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    source_event = models.ForeignKey(
        DailyEvent, on_delete=models.SET_NULL, null=True, blank=True, related_name="underdog_powers"
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["source_event"],
                condition=Q(source_event__isnull=False),
                name="uniq_power_per_source_event",
            ),
            models.CheckConstraint(
                condition=Q(used_at__isnull=True) | Q(used_at__lte=F("expires_at")),
                name="power_used_before_expiry",
            ),
        ]
        indexes = [models.Index(fields=["user", "squad", "expires_at"], name="rewards_power_owner_idx")]

    def __str__(self) -> str:
        return f"Power#{self.id} {self.power_type} user={self.user_id}"

    def is_active(self, at) -> bool:
        return self.used_at is None and self.expires_at >= at


class ActiveTarget(models.Model):
    targeter = models.ForeignKey(User, on_delete=models.CASCADE, related_name="targets_set")
    target = models.ForeignKey(User, on_delete=models.CASCADE, related_name="targeted_by")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="active_targets")
    power = models.OneToOneField(Power, on_delete=models.CASCADE, related_name="active_target")
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=~Q(targeter=F("target")), name="target_not_self"),
        ]
        indexes = [models.Index(fields=["squad", "target", "expires_at"], name="rewards_target_idx")]

    def __str__(self) -> str:
        return f"Target {self.targeter_id} -> {self.target_id} squad={self.squad_id}"


class Crown(models.Model):
    """First place of an event; unlocks one headline and one rivalry."""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="crowns")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="crowns")
    source_event = models.ForeignKey(DailyEvent, on_delete=models.SET_NULL, null=True, blank=True, related_name="crowns")
    granted_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["squad", "source_event"], name="uniq_crown_per_event"),
        ]
        indexes = [models.Index(fields=["squad", "expires_at"], name="rewards_crown_squad_idx")]

    def __str__(self) -> str:
        return f"Crown#{self.id} user={self.user_id} squad={self.squad_id}"


class Headline(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="headlines")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="headlines")
    crown = models.OneToOneField(Crown, on_delete=models.CASCADE, related_name="headline")
    content = models.CharField(max_length=50)
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=~Q(content=""), name="headline_not_empty"),
        ]

    def __str__(self) -> str:
        return self.content


class Rivalry(models.Model):
    declarer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="rivalries_declared")
    rival1 = models.ForeignKey(User, on_delete=models.CASCADE, related_name="+")
    rival2 = models.ForeignKey(User, on_delete=models.CASCADE, related_name="+")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="rivalries")
    crown = models.OneToOneField(Crown, on_delete=models.CASCADE, related_name="rivalry")
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=~Q(rival1=F("rival2")), name="rivalry_distinct_rivals"),
            models.CheckConstraint(
                condition=~Q(declarer=F("rival1")) & ~Q(declarer=F("rival2")),
                name="rivalry_declarer_not_rival",
            ),
        ]

    def __str__(self) -> str:
        return f"Rivalry {self.rival1_id} vs {self.rival2_id} squad={self.squad_id}"


class PowerActivation(models.Model):
    """Audit record of a power use and of any challenge against it."""

    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="power_activations")
    power = models.OneToOneField(Power, on_delete=models.SET_NULL, null=True, blank=True, related_name="activation")
    power_type = models.CharField(max_length=20, choices=Power.TYPE_CHOICES)
    activated_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name="power_activations")
    affected_users = models.JSONField(default=list, blank=True)
    event = models.ForeignKey(DailyEvent, on_delete=models.SET_NULL, null=True, blank=True, related_name="power_activations")
    activated_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(null=True, blank=True)
    was_challenged = models.BooleanField(default=False)
    challenge = models.ForeignKey(
        "judging.Challenge", on_delete=models.SET_NULL, null=True, blank=True, related_name="power_activations"
    )
    challenge_result = models.CharField(max_length=16, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["squad", "activated_at"], name="rewards_activation_squad_idx"),
            models.Index(fields=["activated_by", "activated_at"], name="rewards_activation_user_idx"),
        ]

    def __str__(self) -> str:
        return f"Activation {self.power_type} by {self.activated_by_id} squad={self.squad_id}"
