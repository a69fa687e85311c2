from typing import Iterable, Optional
from rest_framework.permissions import BasePermission, SAFE_METHODS
from .models import TeamMember


def get_membership(user, page_id) -> Optional[TeamMember]:
    if not user or not user.is_authenticated or not page_id:
        return None
    return TeamMember.objects.filter(user=user, page_id=page_id).first()


def has_page_access(user, page_id) -> bool:
    return get_membership(user, page_id) is not None


def has_page_role(user, page_id, roles: Iterable[str]) -> bool:
    member = get_membership(user, page_id)
    return bool(member and member.role in set(roles))


class IsPageMember(BasePermission):
    """Object-level: the user must be on the team of obj's page.

    Views expose the page id of an object through get_page_id(obj); objects
    without one are treated as pages themselves.
    """

    message = "You do not have access to this page."

    def has_object_permission(self, request, view, obj):
        page_id = view.get_page_id(obj) if hasattr(view, "get_page_id") else obj.pk
        return has_page_access(request.user, page_id)


class IsPageManagerOrReadOnly(IsPageMember):
    """Members may read; only owners and admins may write."""

    message = "Only page owners and admins can change this."

    def has_object_permission(self, request, view, obj):
        page_id = view.get_page_id(obj) if hasattr(view, "get_page_id") else obj.pk
        if request.method in SAFE_METHODS:
            return has_page_access(request.user, page_id)
        return has_page_role(request.user, page_id, TeamMember.MANAGER_ROLES)
