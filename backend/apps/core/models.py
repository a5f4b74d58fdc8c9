from __future__ import annotations

import secrets
import string

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone as dj_timezone

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
INVITE_CODE_LENGTH = 6


def generate_invite_code() -> str:
    """Return an invite code not used by any existing squad."""
    while True:
        code = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
        if not Squad.objects.filter(invite_code=code).exists():
            return code


class Squad(models.Model):
    name = models.CharField(max_length=30)
    invite_code = models.CharField(max_length=INVITE_CODE_LENGTH, unique=True)
    timezone = models.CharField(max_length=50, default="UTC")
    created_at = models.DateTimeField(default=dj_timezone.now)
    members = models.ManyToManyField(settings.AUTH_USER_MODEL, through="Membership", related_name="squads")

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):
        if not self.invite_code:
            self.invite_code = generate_invite_code()
        super().save(*args, **kwargs)

    def member_ids(self) -> list[int]:
        """Member user ids in a stable (ascending) order."""
        return list(self.memberships.order_by("user_id").values_list("user_id", flat=True))

    def has_member(self, user_id: int) -> bool:
        return self.memberships.filter(user_id=user_id).exists()


class Membership(models.Model):
    ROLE_MEMBER = "member"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [(ROLE_MEMBER, "Member"), (ROLE_ADMIN, "Admin")]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="memberships")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="memberships")
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    joined_at = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        unique_together = (("user", "squad"),)

    def __str__(self) -> str:
        return f"{self.user_id} in {self.squad_id} ({self.role})"


class MemberStats(models.Model):
    """
    Per (member, squad) scoreboard row. Only apps.core.stats writes to it.

    week_start / strikes_decayed_for record which period the weekly points and
    the last strike decay belong to, so periodic sweeps can run more than once.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="squad_stats")
    squad = models.ForeignKey(Squad, on_delete=models.CASCADE, related_name="member_stats")
    points_weekly = models.IntegerField(default=0)
    points_lifetime = models.IntegerField(default=0)
    streak_count = models.IntegerField(default=0)
    strikes_14d = models.IntegerField(default=0)
    last_participation_date = models.DateField(null=True, blank=True)
    week_start = models.DateField(null=True, blank=True)
    strikes_decayed_for = models.DateField(null=True, blank=True)
    updated_at = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "squad"], name="uniq_stats_per_member_squad"),
            models.CheckConstraint(
                condition=Q(points_weekly__gte=0) & Q(points_lifetime__gte=0),
                name="stats_points_non_negative",
            ),
        ]
        indexes = [models.Index(fields=["squad", "-points_weekly"], name="core_stats_weekly_idx")]

    def __str__(self) -> str:
        return f"stats user={self.user_id} squad={self.squad_id} weekly={self.points_weekly}"
