from django.urls import path

from .views import (
    SelectJudgeView,
    SquadChallengesView,
    ChallengeDetailView,
    ChallengeVoteView,
    ChallengeResolveView,
)

urlpatterns = [
    path("squads/<int:id>/select-judge", SelectJudgeView.as_view()),
    path("squads/<int:id>/challenges", SquadChallengesView.as_view()),
    path("challenges/<int:id>", ChallengeDetailView.as_view()),
    path("challenges/<int:id>/vote", ChallengeVoteView.as_view()),
    path("challenges/<int:id>/resolve", ChallengeResolveView.as_view()),
]
