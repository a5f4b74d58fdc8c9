from __future__ import annotations

from rest_framework import serializers

from .models import Challenge, ChallengeVote


class ChallengeSerializer(serializers.ModelSerializer):
    my_vote = serializers.SerializerMethodField()

    class Meta:
        model = Challenge
        fields = [
            "id",
            "squad",
            "challenger",
            "challenge_type",
            "target",
            "event",
            "power",
            "reason",
            "votes_for",
            "votes_against",
            "eligible_voters",
            "threshold_percent",
            "min_votes",
            "started_at",
            "expires_at",
            "resolved_at",
            "status",
            "result_applied",
            "my_vote",
        ]
        read_only_fields = fields

    def get_my_vote(self, obj):
        request = self.context.get("request")
        if request is None:
            return None
        return obj.votes.filter(user_id=request.user.id).values_list("vote", flat=True).first()


class OpenChallengeSerializer(serializers.Serializer):
    challenge_type = serializers.ChoiceField(choices=Challenge.TYPE_CHOICES)
    event_id = serializers.IntegerField(required=False)
    power_id = serializers.IntegerField(required=False)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=280, default="")
    threshold_percent = serializers.IntegerField(required=False, min_value=1, max_value=100)
    duration_hours = serializers.IntegerField(required=False, min_value=1, max_value=168)

    def validate(self, attrs):
        if attrs["challenge_type"] == Challenge.TYPE_JUDGE_DECISION and "event_id" not in attrs:
            raise serializers.ValidationError({"event_id": "Required for judge decision challenges"})
        if attrs["challenge_type"] == Challenge.TYPE_POWER_USE and "power_id" not in attrs:
            raise serializers.ValidationError({"power_id": "Required for power use challenges"})
        return attrs


class VoteSerializer(serializers.Serializer):
    vote = serializers.ChoiceField(choices=ChallengeVote.VOTE_CHOICES)


class SelectJudgeSerializer(serializers.Serializer):
    seed = serializers.IntegerField(required=False)
