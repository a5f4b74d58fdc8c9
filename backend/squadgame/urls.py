from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/schema", SpectacularAPIView.as_view(), name="schema"),
    path("api/", include("apps.core.urls")),
    path("api/", include("apps.events.urls")),
    path("api/", include("apps.rewards.urls")),
    path("api/", include("apps.judging.urls")),
]
