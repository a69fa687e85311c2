"""
Subdomain resolution for multi-tenant routing.

Classifies an inbound hostname as the root domain, a reserved platform
subdomain, a tenant status page, or an unknown subdomain. Tenant pages are
looked up in a read-through cache first (key ``subdomain:<name>``, JSON
value, fixed TTL) and fall back to the persistent store on a miss.

Negative results are never cached, and cached pages are never invalidated on
page updates: a settings change may take up to the TTL to show up.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Protocol, Union

logger = logging.getLogger(__name__)

DEFAULT_RESERVED_SUBDOMAINS = frozenset({"www", "app", "api", "admin", "status", "mail"})
DEFAULT_CACHE_TTL = 300
LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1"})
CACHE_KEY_PREFIX = "subdomain:"


# --- Route results ---------------------------------------------------------

@dataclass(frozen=True)
class Root:
    """Bare domain, localhost or loopback address."""

    kind = "root"


@dataclass(frozen=True)
class Reserved:
    """Platform-owned subdomain (app, api, admin, ...)."""

    name: str
    kind = "reserved"


@dataclass(frozen=True)
class TenantPage:
    """Subdomain of an existing status page. ``page`` is the JSON projection."""

    subdomain: str
    page: dict
    kind = "status-page"


@dataclass(frozen=True)
class NotFound:
    """Well-formed subdomain with no page behind it."""

    subdomain: str
    kind = "not-found"


RouteResult = Union[Root, Reserved, TenantPage, NotFound]


# --- Collaborators ---------------------------------------------------------

class PageStore(Protocol):
    def find_by_subdomain(self, subdomain: str) -> Optional[dict]:
        ...


class SubdomainCache(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str, ttl: int) -> None:
        ...


class NullCache:
    """Cache that never hits and drops writes."""

    def get(self, key: str) -> Optional[str]:
        return None

    def put(self, key: str, value: str, ttl: int) -> None:
        return None


class DjangoCache:
    """Adapts a Django cache alias (LocMem, Redis via django-redis) to get/put."""

    def __init__(self, alias: str = "default"):
        from django.core.cache import caches

        self.alias = alias
        self._cache = caches[alias]

    def get(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    def put(self, key: str, value: str, ttl: int) -> None:
        self._cache.set(key, value, timeout=ttl)


@dataclass(frozen=True)
class ResolverConfig:
    reserved: FrozenSet[str] = DEFAULT_RESERVED_SUBDOMAINS
    cache_ttl: int = DEFAULT_CACHE_TTL
    loopback_hosts: FrozenSet[str] = field(default=LOOPBACK_HOSTS)

    @classmethod
    def from_settings(cls, settings: Any) -> "ResolverConfig":
        reserved = getattr(settings, "STATUSPAGE_RESERVED_SUBDOMAINS", None)
        return cls(
            reserved=frozenset(s.lower() for s in reserved) if reserved else DEFAULT_RESERVED_SUBDOMAINS,
            cache_ttl=int(getattr(settings, "SUBDOMAIN_CACHE_TTL", DEFAULT_CACHE_TTL)),
        )


# --- Hostname helpers ------------------------------------------------------

def strip_port(hostname: str) -> str:
    return (hostname or "").split(":")[0]


def extract_subdomain(hostname: str, loopback_hosts: FrozenSet[str] = LOOPBACK_HOSTS) -> Optional[str]:
    """Return the lower-cased first label, or None when there is no subdomain.

    Needs at least three labels (sub.domain.tld). This is a label-count
    heuristic, not a public suffix list lookup, so ``acme.co.uk`` is read as
    subdomain ``acme`` of ``co.uk``.

    >>> extract_subdomain("acme.downtime.online")
    'acme'
    >>> extract_subdomain("downtime.online") is None
    True
    >>> extract_subdomain("localhost:4321") is None
    True
    """
    host = strip_port(hostname)
    if host in loopback_hosts:
        return None
    parts = host.split(".")
    if len(parts) < 3:
        return None
    return parts[0].lower()


def cache_key(subdomain: str) -> str:
    return f"{CACHE_KEY_PREFIX}{subdomain}"


# --- Resolver --------------------------------------------------------------

class SubdomainResolver:
    def __init__(self, store: PageStore, cache: Optional[SubdomainCache] = None,
                 config: Optional[ResolverConfig] = None):
        self.store = store
        self.cache = cache if cache is not None else NullCache()
        self.config = config or ResolverConfig()

    def is_reserved(self, subdomain: str) -> bool:
        return subdomain in self.config.reserved

    def resolve(self, hostname: str) -> RouteResult:
        subdomain = extract_subdomain(hostname, self.config.loopback_hosts)
        if not subdomain:
            return Root()

        if self.is_reserved(subdomain):
            return Reserved(subdomain)

        key = cache_key(subdomain)
        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("Subdomain cache hit: %s", subdomain)
            return TenantPage(subdomain, cached)

        # Store errors propagate: the caller must fail the request
        page = self.store.find_by_subdomain(subdomain)
        if page is None:
            logger.debug("Subdomain has no page: %s", subdomain)
            return NotFound(subdomain)

        self._cache_put(key, page)
        return TenantPage(subdomain, page)

    def _cache_get(self, key: str) -> Optional[dict]:
        try:
            raw = self.cache.get(key)
        except Exception:
            logger.warning("Subdomain cache read failed for %s; falling back to store", key, exc_info=True)
            return None
        if raw is None:
            return None
        if isinstance(raw, dict):
            return raw
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable subdomain cache entry %s", key)
            return None

    def _cache_put(self, key: str, page: dict) -> None:
        try:
            self.cache.put(key, json.dumps(page), self.config.cache_ttl)
        except Exception:
            logger.warning("Subdomain cache write failed for %s", key, exc_info=True)
