import logging
import uuid

from django.http import Http404
from django.shortcuts import redirect
from django.views.generic import TemplateView
from rest_framework import mixins, permissions, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from accounts.models import TeamMember
from accounts.permissions import IsPageMember, has_page_access, has_page_role
from common.subdomains import Reserved
from .models import Component, ComponentGroup, Incident, Subscriber
from .serializers import (
    ComponentGroupSerializer,
    ComponentReorderSerializer,
    ComponentSerializer,
    IncidentCreateSerializer,
    IncidentSerializer,
    IncidentUpdateSerializer,
    SubscribeConfirmSerializer,
    SubscribeSerializer,
    SubscriberSerializer,
    UnsubscribeSerializer,
)
from .services import IncidentService, SubscriberService, next_position, reorder_components
from .summary import build_summary

logger = logging.getLogger(__name__)


class PageScopedMixin:
    """Restrict a queryset to pages the user is on the team of.

    ``?page=<id>`` narrows the list to one page. Object permissions look the
    page up through get_page_id().
    """
    permission_classes = [permissions.IsAuthenticated, IsPageMember]
    pagination_class = None

    def page_filter(self):
        raw = self.request.query_params.get("page")
        if not raw:
            return None
        try:
            return uuid.UUID(raw)
        except ValueError:
            raise serializers.ValidationError({"page": "Invalid page ID"})

    def scoped(self, qs):
        qs = qs.filter(page__team_members__user=self.request.user)
        page_id = self.page_filter()
        if page_id is not None:
            qs = qs.filter(page_id=page_id)
        return qs

    def get_page_id(self, obj):
        return obj.page_id

    def require_member(self, page, roles=None):
        allowed = has_page_role(self.request.user, page.pk, roles) if roles else has_page_access(self.request.user, page.pk)
        if not allowed:
            raise PermissionDenied("You do not have access to this page.")


class ComponentGroupViewSet(PageScopedMixin, viewsets.ModelViewSet):
    serializer_class = ComponentGroupSerializer

    def get_queryset(self):
        return self.scoped(ComponentGroup.objects.all()).order_by("position", "created_at")

    def perform_create(self, serializer):
        page = serializer.validated_data["page"]
        self.require_member(page)
        if "position" not in self.request.data:
            serializer.save(position=next_position(ComponentGroup.objects.filter(page=page)))
        else:
            serializer.save()


class ComponentViewSet(PageScopedMixin, viewsets.ModelViewSet):
    serializer_class = ComponentSerializer

    def get_queryset(self):
        return self.scoped(Component.objects.select_related("group")).order_by("position", "created_at")

    def perform_create(self, serializer):
        page = serializer.validated_data["page"]
        self.require_member(page)
        component = serializer.save(
            position=next_position(Component.objects.filter(page=page)),
            status=Component.STATUS_OPERATIONAL,
        )
        logger.info("[Components] page=%s created component=%s", page.pk, component.pk)

    @action(detail=False, methods=["post"], url_path="reorder")
    def reorder(self, request):
        serializer = ComponentReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        page = serializer.validated_data["page"]
        self.require_member(page)
        reorder_components(page, serializer.validated_data["component_ids"])
        qs = Component.objects.filter(page=page).order_by("position", "created_at")
        return Response(ComponentSerializer(qs, many=True).data)


class IncidentViewSet(PageScopedMixin, viewsets.ModelViewSet):
    serializer_class = IncidentSerializer

    def get_serializer_class(self):
        if self.action == "create":
            return IncidentCreateSerializer
        return IncidentSerializer

    def get_queryset(self):
        qs = self.scoped(Incident.objects.prefetch_related("updates", "affected__component"))
        state = self.request.query_params.get("state")
        if state == "unresolved":
            return qs.filter(resolved_at__isnull=True).order_by("-created_at")
        if state == "scheduled":
            return qs.filter(scheduled_for__isnull=False).order_by("-scheduled_for")
        if state:
            raise serializers.ValidationError({"state": "Expected 'unresolved' or 'scheduled'"})
        return qs.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.require_member(serializer.validated_data["page"])
        incident = serializer.save()
        incident = Incident.objects.prefetch_related("updates", "affected__component").get(pk=incident.pk)
        return Response(IncidentSerializer(incident).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get", "post"], url_path="updates")
    def updates(self, request, pk=None):
        incident = self.get_object()
        if request.method == "GET":
            return Response(IncidentUpdateSerializer(incident.updates.all(), many=True).data)

        serializer = IncidentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update = IncidentService.post_update(
            incident,
            status=serializer.validated_data["status"],
            body=serializer.validated_data["body"],
            display_at=serializer.validated_data.get("display_at"),
        )
        return Response(IncidentUpdateSerializer(update).data, status=status.HTTP_201_CREATED)


class SubscriberViewSet(PageScopedMixin,
                        mixins.ListModelMixin,
                        mixins.RetrieveModelMixin,
                        mixins.DestroyModelMixin,
                        viewsets.GenericViewSet):
    serializer_class = SubscriberSerializer

    def get_queryset(self):
        return self.scoped(Subscriber.objects.all()).order_by("-created_at")

    def perform_destroy(self, instance):
        self.require_member(instance.page, TeamMember.MANAGER_ROLES)
        instance.delete()

    @action(detail=True, methods=["post"], url_path="quarantine")
    def quarantine(self, request, pk=None):
        subscriber = self.get_object()
        self.require_member(subscriber.page, TeamMember.MANAGER_ROLES)
        SubscriberService.quarantine(subscriber)
        return Response(SubscriberSerializer(subscriber).data)


# --- Public (tenant subdomain) endpoints ----------------------------------

class SubscribeThrottle(AnonRateThrottle):
    scope = "subscribe"


class PublicPageMixin:
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def tenant_page(self):
        page = getattr(self.request, "tenant_page", None)
        if page is None:
            raise Http404("Status page not found")
        return page


class SummaryView(PublicPageMixin, APIView):
    def get(self, request):
        return Response(build_summary(self.tenant_page()))


class SubscribeView(PublicPageMixin, APIView):
    throttle_classes = [SubscribeThrottle]

    def post(self, request):
        page = self.tenant_page()
        serializer = SubscribeSerializer(data=request.data, context={"page": page})
        serializer.is_valid(raise_exception=True)
        SubscriberService.subscribe(
            page["id"],
            serializer.validated_data["email"],
            serializer.validated_data.get("component_ids"),
        )
        # Same answer for new and existing addresses
        return Response(
            {"detail": "Check your inbox to confirm your subscription."},
            status=status.HTTP_202_ACCEPTED,
        )


class SubscribeConfirmView(PublicPageMixin, APIView):
    throttle_classes = [SubscribeThrottle]

    def post(self, request):
        page = self.tenant_page()
        serializer = SubscribeConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subscriber = SubscriberService.confirm(serializer.validated_data["token"], page["id"])
        if subscriber is None:
            return Response(
                {"detail": "This confirmation link is invalid or has expired"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response({"detail": "Subscription confirmed."})


class UnsubscribeView(PublicPageMixin, APIView):
    throttle_classes = [SubscribeThrottle]

    def post(self, request):
        page = self.tenant_page()
        serializer = UnsubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subscriber_id = serializer.validated_data["subscriber"]
        if not Subscriber.objects.filter(page_id=page["id"], pk=subscriber_id).exists():
            raise Http404("Subscriber not found")
        SubscriberService.unsubscribe(page["id"], subscriber_id)
        return Response({"detail": "You have been unsubscribed."})


# --- Server-rendered pages -------------------------------------------------

class HomeView(TemplateView):
    """``/`` dispatches on the subdomain route set by SubdomainRoutingMiddleware."""

    def get(self, request, *args, **kwargs):
        route = getattr(request, "subdomain_route", None)
        if isinstance(route, Reserved) and route.name == "app":
            return redirect("/dashboard/")
        return super().get(request, *args, **kwargs)

    def get_template_names(self):
        if getattr(self.request, "tenant_page", None) is not None:
            return ["statuspages/status_page.html"]
        return ["statuspages/landing.html"]

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        page = getattr(self.request, "tenant_page", None)
        if page is not None:
            ctx["summary"] = build_summary(page)
        return ctx


class SubscriptionLinkView(TemplateView):
    """Landing pages for the links in subscriber emails.

    The page reads the token or subscriber id from the query string and
    POSTs it to the public API, the same way ``/login/magic`` does.
    """
    template_name = "statuspages/subscription_link.html"
    action = "confirm"

    def get(self, request, *args, **kwargs):
        if getattr(request, "tenant_page", None) is None:
            raise Http404("Status page not found")
        return super().get(request, *args, **kwargs)

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["page"] = self.request.tenant_page
        ctx["action"] = self.action
        return ctx
