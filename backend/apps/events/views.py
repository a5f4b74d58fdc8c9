from __future__ import annotations

import logging

from rest_framework import permissions, status
from rest_framework.generics import ListAPIView, ListCreateAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.access import require_squad_admin, squad_for_member
from apps.core.clock import system_clock
from apps.core.exceptions import NotFound
from . import lifecycle
from .models import DailyEvent, PollQuestion, Submission
from .ranking import submit
from .serializers import (
    DailyEventSerializer,
    MissedPenaltyRequestSerializer,
    PollQuestionSerializer,
    SubmissionSerializer,
    SubmitRequestSerializer,
)

logger = logging.getLogger(__name__)


def _member_event(event_id: int, user) -> DailyEvent:
    try:
        event = DailyEvent.objects.select_related("squad").get(id=event_id)
    except DailyEvent.DoesNotExist:
        raise NotFound("Event not found.")
    squad_for_member(event.squad_id, user.id)
    return event


class SquadEventListView(ListAPIView):
    serializer_class = DailyEventSerializer
    filterset_fields = ["status", "event_type", "date"]

    def get_queryset(self):
        squad = squad_for_member(self.kwargs["id"], self.request.user.id)
        return DailyEvent.objects.filter(squad=squad).order_by("-date")


class SquadEventGenerateView(APIView):
    """Create today's event for the squad when the scheduler has not yet."""

    def post(self, request, id: int):
        squad = squad_for_member(id, request.user.id)
        require_squad_admin(squad, request.user)
        event = lifecycle.generate_daily_event(squad, system_clock.today(squad.timezone))
        return Response(DailyEventSerializer(event).data, status=status.HTTP_201_CREATED)


class EventDetailView(APIView):
    def get(self, request, id: int):
        event = _member_event(id, request.user)
        return Response(DailyEventSerializer(event).data)


class EventOpenView(APIView):
    def post(self, request, id: int):
        event = _member_event(id, request.user)
        require_squad_admin(event.squad, request.user)
        event = lifecycle.open_event(event)
        return Response(DailyEventSerializer(event).data)


class EventCloseView(APIView):
    def post(self, request, id: int):
        event = _member_event(id, request.user)
        require_squad_admin(event.squad, request.user)
        event = lifecycle.close_event(event)
        return Response(DailyEventSerializer(event).data)


class EventFinalizeView(APIView):
    def post(self, request, id: int):
        event = _member_event(id, request.user)
        require_squad_admin(event.squad, request.user)
        event = lifecycle.finalize_event(event)
        return Response(DailyEventSerializer(event).data)


class EventSubmitView(APIView):
    throttle_scope = "event-submit"

    def post(self, request, id: int):
        serializer = SubmitRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = submit(
            id,
            request.user.id,
            serializer.validated_data["payload"],
            media_ref=serializer.validated_data["media_ref"],
        )
        return Response(SubmissionSerializer(submission).data, status=status.HTTP_201_CREATED)


class EventSubmissionsView(ListAPIView):
    """All submissions once the event closed; before that only the caller's own."""

    serializer_class = SubmissionSerializer
    filter_backends = []

    def get_queryset(self):
        event = _member_event(self.kwargs["id"], self.request.user)
        qs = Submission.objects.filter(event=event).select_related("user").order_by("rank", "submitted_at", "id")
        if event.status in (DailyEvent.STATUS_SCHEDULED, DailyEvent.STATUS_OPEN):
            qs = qs.filter(user=self.request.user)
        return qs


class MissedPenaltyView(APIView):
    def post(self, request, id: int):
        event = _member_event(id, request.user)
        require_squad_admin(event.squad, request.user)
        serializer = MissedPenaltyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        applied = lifecycle.apply_missed_event_penalty(event, serializer.validated_data["user_id"])
        return Response({"applied": applied})


class PollQuestionListCreateView(ListCreateAPIView):
    queryset = PollQuestion.objects.all().order_by("id")
    serializer_class = PollQuestionSerializer
    permission_classes = [permissions.IsAdminUser]
    filterset_fields = ["active"]
