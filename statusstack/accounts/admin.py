from django.contrib import admin
from .models import MagicLink, TeamMember


@admin.register(TeamMember)
class TeamMemberAdmin(admin.ModelAdmin):
    """Per-page roles of each user"""
    list_display = ('user', 'page', 'role', 'created_at')
    list_filter = ('role',)
    search_fields = ('user__username', 'user__email', 'page__subdomain', 'page__name')
    raw_id_fields = ('user', 'page')


@admin.register(MagicLink)
class MagicLinkAdmin(admin.ModelAdmin):
    """Read-only view of issued sign-in links"""
    list_display = ('user', 'short_token', 'created_at', 'expires_at', 'used_at')
    list_filter = ('created_at', 'used_at')
    search_fields = ('user__username', 'user__email')
    readonly_fields = ('token', 'user', 'expires_at', 'used_at', 'created_at')

    def short_token(self, obj):
        return f"{obj.token[:8]}…"
    short_token.short_description = 'Token'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
