from django.urls import path

from .views import (
    MyPowersView,
    UsePowerView,
    AwardPowerView,
    AwardCrownView,
    SquadCrownView,
    HeadlineView,
    RivalryView,
)

urlpatterns = [
    path("squads/<int:id>/powers", MyPowersView.as_view()),
    path("squads/<int:id>/crown", SquadCrownView.as_view()),
    path("powers/<int:id>/use", UsePowerView.as_view()),
    path("events/<int:id>/award-power", AwardPowerView.as_view()),
    path("events/<int:id>/award-crown", AwardCrownView.as_view()),
    path("crowns/<int:id>/headline", HeadlineView.as_view()),
    path("crowns/<int:id>/rivalry", RivalryView.as_view()),
]
