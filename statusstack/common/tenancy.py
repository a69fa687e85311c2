from __future__ import annotations

import logging
from django.conf import settings
from django.http import HttpResponseNotFound

from common.subdomains import (
    DjangoCache,
    NotFound,
    ResolverConfig,
    SubdomainResolver,
    TenantPage,
)
from tenants.store import DjangoPageStore

logger = logging.getLogger(__name__)


class SubdomainRoutingMiddleware:
    """
    Resolve request.subdomain_route from the Host header.

    Unknown tenant subdomains are answered with 404 here; every other
    classification is stored on the request for views to dispatch on.
    request.tenant_page is the cached page projection for tenant subdomains
    and None otherwise.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.resolver = SubdomainResolver(
            store=DjangoPageStore(),
            cache=DjangoCache(getattr(settings, "SUBDOMAIN_CACHE_ALIAS", "default")),
            config=ResolverConfig.from_settings(settings),
        )

    def __call__(self, request):
        host = request.get_host()
        route = self.resolver.resolve(host)
        logger.debug("Subdomain route: host=%s path=%s -> %s", host, request.path, route)

        request.subdomain_route = route
        request.tenant_page = route.page if isinstance(route, TenantPage) else None

        if isinstance(route, NotFound):
            return HttpResponseNotFound("Status page not found", content_type="text/html")

        return self.get_response(request)
