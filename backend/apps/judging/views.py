from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.access import require_squad_admin, squad_for_member
from apps.core.exceptions import NotFound
from apps.events.models import DailyEvent
from apps.rewards.models import Power
from . import services
from .models import Challenge
from .serializers import ChallengeSerializer, OpenChallengeSerializer, SelectJudgeSerializer, VoteSerializer

logger = logging.getLogger(__name__)


def _member_challenge(challenge_id: int, user) -> Challenge:
    try:
        challenge = Challenge.objects.get(id=challenge_id)
    except Challenge.DoesNotExist:
        raise NotFound("Challenge not found.")
    squad_for_member(challenge.squad_id, user.id)
    return challenge


class SelectJudgeView(APIView):
    def post(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        require_squad_admin(squad, request.user)
        serializer = SelectJudgeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        judge_id = services.select_judge(squad, seed=serializer.validated_data.get("seed"))
        return Response({"judge_id": judge_id})


class SquadChallengesView(ListAPIView):
    serializer_class = ChallengeSerializer
    filterset_fields = ["status", "challenge_type"]

    def get_queryset(self):
        squad = squad_for_member(self.kwargs["id"], self.request.user.id)
        return Challenge.objects.filter(squad=squad).order_by("-started_at", "-id")

    def post(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        serializer = OpenChallengeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        event = power = None
        if "event_id" in data:
            event = DailyEvent.objects.filter(id=data["event_id"], squad=squad).first()
            if event is None:
                raise NotFound("Event not found.")
        if "power_id" in data:
            power = Power.objects.filter(id=data["power_id"], squad=squad).first()
            if power is None:
                raise NotFound("Power not found.")
        challenge = services.open_challenge(
            squad,
            request.user.id,
            data["challenge_type"],
            event=event,
            power=power,
            reason=data["reason"],
            threshold_percent=data.get("threshold_percent"),
            duration_hours=data.get("duration_hours"),
        )
        return Response(ChallengeSerializer(challenge, context={"request": request}).data, status=status.HTTP_201_CREATED)


class ChallengeDetailView(APIView):
    def get(self, request, id: int):
        challenge = _member_challenge(id, request.user)
        return Response(ChallengeSerializer(challenge, context={"request": request}).data)


class ChallengeVoteView(APIView):
    throttle_scope = "challenge-vote"

    def post(self, request, id: int):
        serializer = VoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        challenge = services.cast_vote(id, request.user.id, serializer.validated_data["vote"])
        return Response(ChallengeSerializer(challenge, context={"request": request}).data)


class ChallengeResolveView(APIView):
    """Deadline check on demand; a no-op while voting is still open."""

    def post(self, request, id: int):
        challenge = _member_challenge(id, request.user)
        challenge = services.resolve_if_expired(challenge)
        return Response(ChallengeSerializer(challenge, context={"request": request}).data)
