from django.contrib import admin
from accounts.models import TeamMember
from .models import Page


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    raw_id_fields = ("user",)
    readonly_fields = ("created_at",)


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ("subdomain", "name", "status_indicator", "custom_domain", "created_at")
    list_filter = ("status_indicator",)
    search_fields = ("subdomain", "name", "custom_domain")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [TeamMemberInline]

    def has_delete_permission(self, request, obj=None):
        return False  # Pages are never hard-deleted
