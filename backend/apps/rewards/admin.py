from django.contrib import admin
from .models import ActiveTarget, Crown, Headline, Power, PowerActivation, Rivalry


@admin.register(Power)
class PowerAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "squad", "power_type", "granted_at", "expires_at", "used_at")
    list_filter = ("power_type",)
    readonly_fields = ("used_at",)


@admin.register(ActiveTarget)
class ActiveTargetAdmin(admin.ModelAdmin):
    list_display = ("id", "targeter", "target", "squad", "expires_at")


@admin.register(Crown)
class CrownAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "squad", "source_event", "granted_at", "expires_at")


@admin.register(Headline)
class HeadlineAdmin(admin.ModelAdmin):
    list_display = ("id", "crown", "user", "content", "expires_at")
    search_fields = ("content",)


@admin.register(Rivalry)
class RivalryAdmin(admin.ModelAdmin):
    list_display = ("id", "crown", "declarer", "rival1", "rival2", "expires_at")


@admin.register(PowerActivation)
class PowerActivationAdmin(admin.ModelAdmin):
    list_display = ("id", "squad", "power_type", "activated_by", "activated_at", "was_challenged", "challenge_result")
    list_filter = ("power_type", "was_challenged")
