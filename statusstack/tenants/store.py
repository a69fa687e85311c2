from __future__ import annotations

from typing import Optional

from .models import Page
from .serializers import PageSerializer


class DjangoPageStore:
    """Persistent page lookup used by the subdomain resolver.

    Returns the JSON-ready projection of the page (the same shape that is
    cached), or None. Database errors are not caught here.
    """

    def find_by_subdomain(self, subdomain: str) -> Optional[dict]:
        page = Page.objects.filter(subdomain=subdomain).first()
        if page is None:
            return None
        return dict(PageSerializer(page).data)
