from django.urls import path

from .views import (
    MeView,
    SquadCreateView,
    SquadJoinView,
    SquadDetailView,
    LeaderboardView,
    WeeklyResetView,
    DecayStrikesView,
    HealthzView,
    MetricsView,
)

urlpatterns = [
    path("users/me", MeView.as_view()),
    path("squads", SquadCreateView.as_view()),
    path("squads/join", SquadJoinView.as_view()),
    path("squads/<int:id>", SquadDetailView.as_view()),
    path("squads/<int:id>/leaderboard", LeaderboardView.as_view()),
    path("ops/weekly-reset", WeeklyResetView.as_view()),
    path("ops/decay-strikes", DecayStrikesView.as_view()),
    # Observability
    path("healthz", HealthzView.as_view()),
    path("metrics", MetricsView.as_view()),
]
