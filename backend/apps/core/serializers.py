from __future__ import annotations

from zoneinfo import available_timezones

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from . import stats
from .models import Membership, MemberStats, Squad

User = get_user_model()


class UserPublicSerializer(serializers.ModelSerializer):
    squadIds = serializers.SerializerMethodField()
    isStaff = serializers.BooleanField(source="is_staff", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "squadIds", "isStaff"]
        read_only_fields = ["id", "username", "squadIds", "isStaff"]

    def get_squadIds(self, obj):
        return list(obj.memberships.order_by("squad_id").values_list("squad_id", flat=True))


class MembershipSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    joinedAt = serializers.DateTimeField(source="joined_at", read_only=True)

    class Meta:
        model = Membership
        fields = ["userId", "username", "role", "joinedAt"]


class SquadPublicSerializer(serializers.ModelSerializer):
    inviteCode = serializers.CharField(source="invite_code", read_only=True)
    members = MembershipSerializer(source="memberships", many=True, read_only=True)

    class Meta:
        model = Squad
        fields = ["id", "name", "inviteCode", "timezone", "members"]


class SquadCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Squad
        fields = ["name", "timezone"]
        extra_kwargs = {
            "timezone": {"required": False},
        }

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name must not be blank")
        return value

    def validate_timezone(self, value):
        if value not in available_timezones():
            raise serializers.ValidationError("Unknown timezone")
        return value

    def create(self, validated_data):
        user = self.context["request"].user
        with transaction.atomic():
            squad = Squad.objects.create(**validated_data)
            Membership.objects.create(user=user, squad=squad, role=Membership.ROLE_ADMIN)
            stats.ensure_member(user.id, squad.id)
        return squad


class JoinSquadSerializer(serializers.Serializer):
    inviteCode = serializers.CharField(max_length=6)

    def validate_inviteCode(self, value):
        return value.strip().upper()


class MemberStatsSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    pointsWeekly = serializers.IntegerField(source="points_weekly", read_only=True)
    pointsLifetime = serializers.IntegerField(source="points_lifetime", read_only=True)
    streakCount = serializers.IntegerField(source="streak_count", read_only=True)
    strikes14d = serializers.IntegerField(source="strikes_14d", read_only=True)
    lastParticipationDate = serializers.DateField(source="last_participation_date", read_only=True)

    class Meta:
        model = MemberStats
        fields = ["userId", "pointsWeekly", "pointsLifetime", "streakCount", "strikes14d", "lastParticipationDate"]


class PeriodSerializer(serializers.Serializer):
    periodStart = serializers.DateField(required=False)
