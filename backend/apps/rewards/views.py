from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.access import require_squad_admin, squad_for_member
from apps.core.exceptions import NotFound
from apps.events.models import DailyEvent
from . import crowns, powers
from .serializers import (
    CrownSerializer,
    HeadlineRequestSerializer,
    HeadlineSerializer,
    PowerSerializer,
    RivalryRequestSerializer,
    RivalrySerializer,
    UsePowerSerializer,
)

logger = logging.getLogger(__name__)


def _admin_event(event_id: int, user) -> DailyEvent:
    try:
        event = DailyEvent.objects.select_related("squad").get(id=event_id)
    except DailyEvent.DoesNotExist:
        raise NotFound("Event not found.")
    squad = squad_for_member(event.squad_id, user.id)
    require_squad_admin(squad, user)
    return event


class MyPowersView(APIView):
    def get(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        rows = powers.active_powers(request.user.id, squad.id)
        return Response(
            {
                "results": PowerSerializer(rows, many=True).data,
                "targeted": powers.is_targeted(request.user.id, squad.id),
            }
        )


class UsePowerView(APIView):
    def post(self, request, id: int):
        serializer = UsePowerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        power = powers.use_power(id, request.user.id, serializer.to_metadata())
        return Response(PowerSerializer(power).data)


class AwardPowerView(APIView):
    def post(self, request, id: int):
        event = _admin_event(id, request.user)
        power = powers.award_underdog_power(event)
        if power is None:
            return Response({"power": None})
        return Response({"power": PowerSerializer(power).data})


class AwardCrownView(APIView):
    def post(self, request, id: int):
        event = _admin_event(id, request.user)
        crown = crowns.award_crown(event)
        if crown is None:
            return Response({"crown": None})
        return Response({"crown": CrownSerializer(crown).data})


class SquadCrownView(APIView):
    """Current crown of a squad with its headline and rivalry."""

    def get(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        crown = crowns.active_crown(squad.id)
        headline = crowns.active_headline(squad.id)
        rivalry = crowns.active_rivalry(squad.id)
        return Response(
            {
                "crown": CrownSerializer(crown).data if crown else None,
                "headline": HeadlineSerializer(headline).data if headline else None,
                "rivalry": RivalrySerializer(rivalry).data if rivalry else None,
            }
        )


class HeadlineView(APIView):
    def post(self, request, id: int):
        serializer = HeadlineRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        headline = crowns.create_headline(id, request.user.id, serializer.validated_data["content"])
        return Response(HeadlineSerializer(headline).data, status=status.HTTP_201_CREATED)


class RivalryView(APIView):
    def post(self, request, id: int):
        serializer = RivalryRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rivalry = crowns.declare_rivalry(
            id,
            request.user.id,
            serializer.validated_data["rival1_id"],
            serializer.validated_data["rival2_id"],
        )
        return Response(RivalrySerializer(rivalry).data, status=status.HTTP_201_CREATED)
