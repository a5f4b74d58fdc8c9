from django.contrib import admin
from .models import Squad, Membership, MemberStats


@admin.register(Squad)
class SquadAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "invite_code", "timezone", "created_at")
    search_fields = ("name", "invite_code")


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "squad", "role", "joined_at")
    list_filter = ("role",)


@admin.register(MemberStats)
class MemberStatsAdmin(admin.ModelAdmin):
    list_display = ("user", "squad", "points_weekly", "points_lifetime", "streak_count", "strikes_14d", "updated_at")
    search_fields = ("squad__name", "user__username")
    # Stats are owned by the stats engine
    readonly_fields = (
        "points_weekly",
        "points_lifetime",
        "streak_count",
        "strikes_14d",
        "last_participation_date",
        "week_start",
        "strikes_decayed_for",
        "updated_at",
    )
