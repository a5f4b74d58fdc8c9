from django.contrib import admin
from .models import DailyEvent, MissedEvent, PollQuestion, Submission


@admin.register(PollQuestion)
class PollQuestionAdmin(admin.ModelAdmin):
    list_display = ("id", "question", "active")
    list_filter = ("active",)
    search_fields = ("question",)


@admin.register(DailyEvent)
class DailyEventAdmin(admin.ModelAdmin):
    list_display = ("id", "squad", "date", "event_type", "status", "opens_at", "judge")
    list_filter = ("status", "event_type")
    search_fields = ("squad__name",)
    # Status moves through the lifecycle services only
    readonly_fields = ("status", "results", "ranked_at", "finalized_at")


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("id", "event", "user", "score", "rank", "points_awarded", "submitted_at")
    search_fields = ("user__username",)


@admin.register(MissedEvent)
class MissedEventAdmin(admin.ModelAdmin):
    list_display = ("event", "user", "applied_at")
