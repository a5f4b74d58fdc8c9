from __future__ import annotations

import logging

from django.db import transaction
from django.http import HttpResponse
from rest_framework import permissions, status
from rest_framework.generics import CreateAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from . import stats
from .access import squad_for_member
from .exceptions import NotFound
from .models import Membership, Squad
from .serializers import (
    JoinSquadSerializer,
    PeriodSerializer,
    SquadCreateSerializer,
    SquadPublicSerializer,
    UserPublicSerializer,
)


logger = logging.getLogger(__name__)


class MeView(APIView):
    def get(self, request):
        return Response(UserPublicSerializer(request.user).data)


class SquadCreateView(CreateAPIView):
    serializer_class = SquadCreateSerializer

    def get_queryset(self):
        return Squad.objects.all()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        squad = serializer.save()
        logger.info("squad %s created by user %s", squad.id, request.user.id)
        return Response(SquadPublicSerializer(squad).data, status=status.HTTP_201_CREATED)


class SquadJoinView(APIView):
    def post(self, request):
        serializer = JoinSquadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        code = serializer.validated_data["inviteCode"]
        try:
            squad = Squad.objects.get(invite_code=code)
        except Squad.DoesNotExist:
            raise NotFound("Unknown invite code.")
        with transaction.atomic():
            _, created = Membership.objects.get_or_create(
                user=request.user, squad=squad, defaults={"role": Membership.ROLE_MEMBER}
            )
            stats.ensure_member(request.user.id, squad.id)
        if created:
            logger.info("user %s joined squad %s", request.user.id, squad.id)
        return Response(SquadPublicSerializer(squad).data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class SquadDetailView(APIView):
    def get(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        return Response(SquadPublicSerializer(squad).data)


class LeaderboardView(APIView):
    def get(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        return Response({"squadId": squad.id, "results": stats.leaderboard(squad.id)})


class WeeklyResetView(APIView):
    """Ops trigger for the weekly points reset; safe to call more than once per week."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request):
        serializer = PeriodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = stats.reset_weekly(serializer.validated_data.get("periodStart"))
        return Response({"updated": updated})


class DecayStrikesView(APIView):
    """Ops trigger for the strike decay; applies at most once per period."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request):
        serializer = PeriodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = stats.decay_strikes(serializer.validated_data.get("periodStart"))
        return Response({"updated": updated})


# Observability endpoints

class HealthzView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response({"status": "ok"})


class MetricsView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        data = generate_latest()
        return HttpResponse(data, content_type=CONTENT_TYPE_LATEST)
