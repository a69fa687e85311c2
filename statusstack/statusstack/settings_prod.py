# Production settings
# Usage: set environment variable DJANGO_SETTINGS_MODULE=statusstack.settings_prod

from .settings import *  # noqa
import os
from pathlib import Path

import dj_database_url

# --- Core ---
DEBUG = False
ENVIRONMENT = os.environ.get("ENVIRONMENT", "production").lower()
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("DJANGO_SECRET_KEY must be set in production")

_root = STATUSPAGE_ROOT_DOMAIN
ALLOWED_HOSTS = [h for h in os.environ.get("ALLOWED_HOSTS", "").split(",") if h.strip()] or [_root, f".{_root}"]

# --- Security & HTTPS ---
SECURE_SSL_REDIRECT = os.environ.get("SECURE_SSL_REDIRECT", "True") == "True"
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "True") == "True"
CSRF_COOKIE_SECURE = os.environ.get("CSRF_COOKIE_SECURE", "True") == "True"
AUTH_SESSION_COOKIE_SECURE = ENVIRONMENT == "production"
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"
SECURE_HSTS_SECONDS = int(os.environ.get("SECURE_HSTS_SECONDS", "31536000"))
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"

# --- Database ---
# Prefer DATABASE_URL if provided; fallback to sqlite (not recommended for prod)
DATABASE_URL = os.environ.get("DATABASE_URL", "")
if DATABASE_URL:
    DATABASES["default"] = dj_database_url.parse(DATABASE_URL, conn_max_age=600)
else:
    BASE_DIR = Path(__file__).resolve().parent.parent
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# --- Caches ---
# The subdomain cache lives here. Use Redis if REDIS_URL is provided; else LocMem
REDIS_URL = os.environ.get("REDIS_URL", "")
if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                # Cache outages surface as exceptions; the resolver treats them as misses
                "IGNORE_EXCEPTIONS": False,
            },
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'prod-locmem',
        }
    }

# --- CORS / CSRF ---
_frontend = [u for u in os.environ.get("FRONTEND_ORIGINS", "").split(",") if u.strip()]
if _frontend:
    CORS_ALLOWED_ORIGINS = _frontend
    CSRF_TRUSTED_ORIGINS = _frontend
CORS_ALLOW_CREDENTIALS = True

# --- Static files ---
STATIC_ROOT = os.environ.get("STATIC_ROOT", str(Path(BASE_DIR) / "staticfiles"))

# WhiteNoise: serve static files via Gunicorn (compressed + hashed filenames)
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# --- Swagger / drf_yasg ---
# Do not expose Swagger UI in production unless explicitly allowed
if not ENABLE_SWAGGER:
    INSTALLED_APPS = [app for app in INSTALLED_APPS if app != 'drf_yasg']

# --- Email backend ---
if os.environ.get('EMAIL_BACKEND'):
    EMAIL_BACKEND = os.environ['EMAIL_BACKEND']

# --- Logging ---
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "root": {"handlers": ["console"], "level": os.environ.get("LOG_LEVEL", "INFO")},
}
