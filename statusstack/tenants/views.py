import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.views.generic import TemplateView
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.models import TeamMember
from accounts.permissions import IsPageManagerOrReadOnly, has_page_role
from accounts.serializers import TeamMemberCreateSerializer, TeamMemberSerializer
from .models import Page
from .serializers import PageCreateSerializer, PageSerializer, PageUpdateSerializer

logger = logging.getLogger(__name__)


class PageViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.CreateModelMixin,
                  mixins.UpdateModelMixin,
                  viewsets.GenericViewSet):
    """Pages the current user is a team member of.

    Pages are never deleted here. Settings updates do not invalidate the
    subdomain cache; public status pages pick changes up within its TTL.
    """
    serializer_class = PageSerializer
    permission_classes = [permissions.IsAuthenticated, IsPageManagerOrReadOnly]
    # Disable pagination; a user belongs to a handful of pages
    pagination_class = None

    def get_queryset(self):
        return Page.objects.filter(team_members__user=self.request.user).distinct()

    def get_serializer_class(self):
        if self.action == "create":
            return PageCreateSerializer
        if self.action in {"update", "partial_update"}:
            return PageUpdateSerializer
        return PageSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            page = serializer.save()
            TeamMember.objects.create(page=page, user=request.user, role=TeamMember.ROLE_OWNER)
        logger.info("[Pages] user=%s created page=%s subdomain=%s", request.user.pk, page.pk, page.subdomain)
        return Response(PageSerializer(page).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        page = self.get_object()
        serializer = self.get_serializer(page, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(PageSerializer(page).data)

    @action(detail=True, methods=["get", "post"], url_path="members")
    def members(self, request, pk=None):
        page = self.get_object()
        if request.method == "GET":
            qs = TeamMember.objects.filter(page=page).select_related("user").order_by("created_at")
            return Response(TeamMemberSerializer(qs, many=True).data)

        serializer = TeamMemberCreateSerializer(data=request.data, context={})
        serializer.is_valid(raise_exception=True)
        user = serializer.context["user"]
        member, created = TeamMember.objects.get_or_create(
            page=page, user=user, defaults={"role": serializer.validated_data["role"]}
        )
        if not created:
            return Response({"detail": "This user is already a team member"}, status=status.HTTP_409_CONFLICT)
        return Response(TeamMemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"members/(?P<member_id>[0-9a-f-]+)")
    def remove_member(self, request, pk=None, member_id=None):
        page = self.get_object()
        member = get_object_or_404(TeamMember, pk=member_id, page=page)
        if member.role == TeamMember.ROLE_OWNER and not TeamMember.objects.filter(
            page=page, role=TeamMember.ROLE_OWNER
        ).exclude(pk=member.pk).exists():
            return Response({"detail": "A page must keep at least one owner"}, status=status.HTTP_400_BAD_REQUEST)
        member.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class DashboardView(TemplateView):
    """Server-rendered list of the signed-in user's pages.

    Lives under /dashboard/, so SessionCookieMiddleware has already
    redirected anonymous visitors to the login page.
    """
    template_name = "tenants/dashboard.html"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        user = self.request.auth_user
        memberships = TeamMember.objects.filter(user=user).select_related("page").order_by("page__name")
        ctx["user"] = user
        ctx["memberships"] = memberships
        ctx["can_manage"] = {m.page_id: has_page_role(user, m.page_id, TeamMember.MANAGER_ROLES) for m in memberships}
        return ctx
