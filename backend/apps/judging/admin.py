from django.contrib import admin
from .models import Challenge, ChallengeVote, JudgeAssignment


class ChallengeVoteInline(admin.TabularInline):
    model = ChallengeVote
    extra = 0
    readonly_fields = ("user", "vote", "voted_at")


@admin.register(Challenge)
class ChallengeAdmin(admin.ModelAdmin):
    list_display = ("id", "squad", "challenge_type", "challenger", "target", "status", "votes_for", "votes_against", "expires_at")
    list_filter = ("status", "challenge_type")
    inlines = [ChallengeVoteInline]


@admin.register(JudgeAssignment)
class JudgeAssignmentAdmin(admin.ModelAdmin):
    list_display = ("id", "squad", "user", "judge_date", "is_overturned", "penalty_applied", "bonus_earned")
    list_filter = ("is_overturned",)
