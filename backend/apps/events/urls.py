from django.urls import path

from .views import (
    SquadEventListView,
    SquadEventGenerateView,
    EventDetailView,
    EventOpenView,
    EventCloseView,
    EventFinalizeView,
    EventSubmitView,
    EventSubmissionsView,
    MissedPenaltyView,
    PollQuestionListCreateView,
)

urlpatterns = [
    path("squads/<int:id>/events", SquadEventListView.as_view()),
    path("squads/<int:id>/events/generate", SquadEventGenerateView.as_view()),
    path("events/<int:id>", EventDetailView.as_view()),
    path("events/<int:id>/open", EventOpenView.as_view()),
    path("events/<int:id>/close", EventCloseView.as_view()),
    path("events/<int:id>/finalize", EventFinalizeView.as_view()),
    path("events/<int:id>/submit", EventSubmitView.as_view()),
    path("events/<int:id>/submissions", EventSubmissionsView.as_view()),
    path("events/<int:id>/missed-penalty", MissedPenaltyView.as_view()),
    # Admin
    path("admin/polls", PollQuestionListCreateView.as_view()),
]
