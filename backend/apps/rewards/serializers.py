from __future__ import annotations

from rest_framework import serializers

from .models import Crown, Headline, Power, Rivalry


class PowerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Power
        fields = ["id", "user", "squad", "power_type", "granted_at", "expires_at", "used_at", "metadata", "source_event"]
        read_only_fields = fields


class UsePowerSerializer(serializers.Serializer):
    target_user_id = serializers.IntegerField(required=False)
    metadata = serializers.DictField(required=False, default=dict)

    def to_metadata(self) -> dict:
        metadata = dict(self.validated_data.get("metadata") or {})
        if "target_user_id" in self.validated_data:
            metadata["target_user_id"] = self.validated_data["target_user_id"]
        return metadata


class CrownSerializer(serializers.ModelSerializer):
    class Meta:
        model = Crown
        fields = ["id", "user", "squad", "source_event", "granted_at", "expires_at"]
        read_only_fields = fields


class HeadlineSerializer(serializers.ModelSerializer):
    class Meta:
        model = Headline
        fields = ["id", "user", "squad", "crown", "content", "created_at", "expires_at"]
        read_only_fields = fields


class RivalrySerializer(serializers.ModelSerializer):
    class Meta:
        model = Rivalry
        fields = ["id", "declarer", "rival1", "rival2", "squad", "crown", "created_at", "expires_at"]
        read_only_fields = fields


class HeadlineRequestSerializer(serializers.Serializer):
    # Blank and length rules are enforced by crowns.create_headline
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)


class RivalryRequestSerializer(serializers.Serializer):
    rival1_id = serializers.IntegerField()
    rival2_id = serializers.IntegerField()
