from django.contrib import admin
from django.utils import timezone
from .models import Session


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    """Admin for dashboard cookie sessions"""
    list_display = ('user', 'short_token', 'created_at', 'expires_at', 'is_live')
    list_filter = ('created_at', 'expires_at')
    search_fields = ('user__username', 'user__email')
    readonly_fields = ('token', 'user', 'created_at')
    actions = ['expire_sessions']

    def short_token(self, obj):
        return f"{obj.token[:8]}…"
    short_token.short_description = 'Token'

    def is_live(self, obj):
        return obj.is_valid()
    is_live.boolean = True
    is_live.short_description = 'Valid'

    def expire_sessions(self, request, queryset):
        count = queryset.update(expires_at=timezone.now())
        self.message_user(request, f"Expired {count} session(s)")
    expire_sessions.short_description = "Expire selected sessions"
