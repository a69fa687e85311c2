from django.contrib import admin
from django.utils import timezone
from .models import Component, ComponentGroup, Incident, IncidentComponent, IncidentUpdate, Subscriber


@admin.register(ComponentGroup)
class ComponentGroupAdmin(admin.ModelAdmin):
    list_display = ("name", "page", "position")
    list_filter = ("page",)
    search_fields = ("name", "page__subdomain")
    ordering = ("page", "position")


@admin.register(Component)
class ComponentAdmin(admin.ModelAdmin):
    list_display = ("name", "page", "group", "status", "position", "showcase")
    list_filter = ("status", "showcase", "page")
    search_fields = ("name", "page__subdomain")
    list_editable = ("status", "position", "showcase")
    ordering = ("page", "position")


class IncidentUpdateInline(admin.StackedInline):
    model = IncidentUpdate
    extra = 0
    readonly_fields = ("created_at",)


class IncidentComponentInline(admin.TabularInline):
    model = IncidentComponent
    extra = 0
    raw_id_fields = ("component",)


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = ("name", "page", "status", "impact", "created_at", "resolved_at")
    list_filter = ("status", "impact", "page")
    search_fields = ("name", "page__subdomain")
    readonly_fields = ("created_at", "updated_at", "resolved_at")
    inlines = [IncidentUpdateInline, IncidentComponentInline]

    def save_model(self, request, obj, form, change):
        # Keep resolved_at in step with status edits made here
        obj.apply_status(obj.status)
        super().save_model(request, obj, form, change)


@admin.register(Subscriber)
class SubscriberAdmin(admin.ModelAdmin):
    list_display = ("email", "page", "confirmed_at", "quarantined_at", "unsubscribed_at", "created_at")
    list_filter = ("page", "confirmed_at", "quarantined_at", "unsubscribed_at")
    search_fields = ("email", "page__subdomain")
    readonly_fields = ("created_at",)
    actions = ["quarantine_subscribers"]

    def quarantine_subscribers(self, request, queryset):
        count = queryset.filter(quarantined_at__isnull=True).update(quarantined_at=timezone.now())
        self.message_user(request, f"Quarantined {count} subscriber(s)")
    quarantine_subscribers.short_description = "Quarantine selected subscribers"
