from __future__ import annotations

from rest_framework import serializers

from .models import DailyEvent, PollQuestion, Submission


class DailyEventSerializer(serializers.ModelSerializer):
    submissions_count = serializers.SerializerMethodField()

    class Meta:
        model = DailyEvent
        fields = [
            "id",
            "squad",
            "date",
            "event_type",
            "status",
            "opens_at",
            "closes_at",
            "judge",
            "poll_question",
            "poll_options",
            "results",
            "ranked_at",
            "finalized_at",
            "outcome_overturned",
            "submissions_count",
        ]
        read_only_fields = fields

    def get_submissions_count(self, obj):
        return obj.submissions.count()


class SubmissionSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = Submission
        fields = [
            "id",
            "event",
            "user",
            "username",
            "payload",
            "media_ref",
            "score",
            "rank",
            "submitted_at",
            "points_awarded",
        ]
        read_only_fields = fields


class SubmitRequestSerializer(serializers.Serializer):
    payload = serializers.DictField(required=False, default=dict)
    media_ref = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")


class MissedPenaltyRequestSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class PollQuestionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PollQuestion
        fields = ["id", "question", "options", "active"]

    def validate_options(self, value):
        if not isinstance(value, list) or len(value) < 2:
            raise serializers.ValidationError("At least two options required")
        if not all(isinstance(option, str) and option.strip() for option in value):
            raise serializers.ValidationError("Options must be non-empty text")
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Options must be unique")
        return value
