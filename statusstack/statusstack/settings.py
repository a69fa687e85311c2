from pathlib import Path
import os
from corsheaders.defaults import default_headers, default_methods

BASE_DIR = Path(__file__).resolve().parent.parent
SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "django-insecure-change-this-in-production-@#$%^&*()"
)
DEBUG = os.environ.get("DJANGO_DEBUG", "False").lower() in ("1", "true", "yes")
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

# development | staging | production
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development").lower()

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'drf_yasg',
    'axes',
    'common',
    'tenants',
    'accounts',
    'user_sessions',
    'statuspages',
    'django_celery_beat',
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    # Classify the Host header (root / reserved / tenant page / 404) before anything else
    "common.tenancy.SubdomainRoutingMiddleware",
    # Validate and slide the session_id cookie on protected paths
    "user_sessions.middleware.SessionCookieMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "axes.middleware.AxesMiddleware",  # Brute force protection
]

ROOT_URLCONF = "statusstack.urls"
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]
WSGI_APPLICATION = "statusstack.wsgi.application"
ASGI_APPLICATION = "statusstack.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# Celery configuration
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/3')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/3')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = os.environ.get('CELERY_TIMEZONE', 'UTC')
CELERY_BROKER_TRANSPORT_OPTIONS = {
    'global_keyprefix': os.environ.get('CELERY_KEY_PREFIX', 'celery-status:')
}
CELERY_RESULT_BACKEND_TRANSPORT_OPTIONS = {
    'global_keyprefix': os.environ.get('CELERY_KEY_PREFIX', 'celery-status:')
}

# Celery Beat schedule
CELERY_BEAT_SCHEDULE = {
    'purge-expired-sessions': {
        'task': 'user_sessions.tasks.purge_expired_sessions',
        'schedule': 60.0 * 60,  # hourly
    },
}
CELERY_BEAT_SCHEDULER = 'django_celery_beat.schedulers:DatabaseScheduler'

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "accounts.validators.CustomPasswordValidator",
    },
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Email settings
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend' if DEBUG else 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_HOST = os.environ.get('EMAIL_HOST', 'smtp.resend.com')
EMAIL_PORT = int(os.environ.get('EMAIL_PORT', '587'))
EMAIL_USE_TLS = os.environ.get('EMAIL_USE_TLS', 'True') == 'True'
EMAIL_HOST_USER = os.environ.get('EMAIL_HOST_USER', 'resend')
EMAIL_HOST_PASSWORD = os.environ.get('RESEND_API_KEY', '')
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'noreply@downtime.online')

# Public URL of the app surface, used to build magic links and confirmation links
APP_URL = os.environ.get("APP_URL", "http://localhost:8000").rstrip("/")

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'user_sessions.authentication.SessionCookieAuthentication',
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": "200/hour",
        "user": "2000/hour",
        "login": "10/minute",
        "signup": "20/hour",
        "subscribe": "20/hour",
    },
}

# CORS/CSRF for the dashboard frontend
CORS_ALLOWED_ORIGINS = [
    "http://localhost:4321",
    "http://localhost:3000",
]
CORS_ALLOW_CREDENTIALS = True
_cors_env = os.environ.get("CORS_ALLOWED_ORIGINS")
if _cors_env:
    CORS_ALLOWED_ORIGINS = [o.strip() for o in _cors_env.split(",") if o.strip()]
CSRF_TRUSTED_ORIGINS = [
    "http://localhost:4321",
    "http://localhost:3000",
]
_csrf_env = os.environ.get("CSRF_TRUSTED_ORIGINS")
if _csrf_env:
    CSRF_TRUSTED_ORIGINS = [o.strip() for o in _csrf_env.split(",") if o.strip()]

CORS_ALLOW_HEADERS = list(default_headers)
CORS_ALLOW_METHODS = list(default_methods)

# --- Subdomain routing ---
STATUSPAGE_ROOT_DOMAIN = os.environ.get("STATUSPAGE_ROOT_DOMAIN", "downtime.online")
STATUSPAGE_RESERVED_SUBDOMAINS = [
    s.strip().lower()
    for s in os.environ.get("STATUSPAGE_RESERVED_SUBDOMAINS", "www,app,api,admin,status,mail").split(",")
    if s.strip()
]
SUBDOMAIN_CACHE_ALIAS = "default"
SUBDOMAIN_CACHE_TTL = int(os.environ.get("SUBDOMAIN_CACHE_TTL", "300"))

# --- Cookie sessions (dashboard auth) ---
# Distinct from Django's own "sessionid" cookie, which only backs the admin site.
AUTH_SESSION_COOKIE_NAME = "session_id"
AUTH_SESSION_DURATION_DAYS = 30
AUTH_SESSION_REFRESH_THRESHOLD_DAYS = 15
AUTH_SESSION_COOKIE_SECURE = ENVIRONMENT == "production"
AUTH_SESSION_PUBLIC_PATHS = [
    "/api/auth/login/",
    "/api/auth/signup/",
    "/api/auth/logout/",
    "/api/auth/magic-link/",
    "/api/auth/magic-link/verify/",
]
AUTH_SESSION_PUBLIC_PREFIXES = [
    "/api/public/",
]
AUTH_SESSION_PROTECTED_PREFIXES = [
    "/api/",
    "/dashboard/",
]
LOGIN_URL = "/login/"

MAGIC_LINK_TTL_MINUTES = int(os.environ.get("MAGIC_LINK_TTL_MINUTES", "15"))
SUBSCRIBER_CONFIRMATION_TTL_HOURS = 48

# Swagger UI (drf_yasg) is only mounted when DEBUG or ENABLE_SWAGGER=True
ENABLE_SWAGGER = os.environ.get("ENABLE_SWAGGER", "False") == "True"

# Django-axes configuration for brute force protection
AXES_FAILURE_LIMIT = 5  # Lock after 5 failed attempts
AXES_COOLOFF_TIME = 1  # Cooloff period in hours
AXES_LOCKOUT_PARAMETERS = [["username", "ip_address"]]
AXES_RESET_ON_SUCCESS = True
AXES_ENABLE_ACCESS_FAILURE_LOG = True
AXES_LOCKOUT_TEMPLATE = None  # Return 403 instead of template
AXES_VERBOSE = True

AUTHENTICATION_BACKENDS = [
    'axes.backends.AxesStandaloneBackend',
    'django.contrib.auth.backends.ModelBackend',
]

# Local memory cache for development; settings_prod swaps in Redis
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'statusstack-locmem',
    }
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "loggers": {
        # Tenant resolution in `common/tenancy.py` and `common/subdomains.py`
        "common": {
            "handlers": ["console"],
            "level": "DEBUG" if DEBUG else "INFO",
            "propagate": False,
        },
        "user_sessions": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        # Login failures, page creation, incident updates and notification dispatch
        "accounts": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "tenants": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "statuspages": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "django.request": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# Production security settings (tuned via environment; safe defaults under HTTPS)
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

SECURE_SSL_REDIRECT = (
    os.environ.get("SECURE_SSL_REDIRECT", "True").lower() in ("1", "true", "yes")
    if ENVIRONMENT == "production"
    else False
)

SESSION_COOKIE_SECURE = ENVIRONMENT == "production"
CSRF_COOKIE_SECURE = ENVIRONMENT == "production"
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"

SECURE_REFERRER_POLICY = os.environ.get("SECURE_REFERRER_POLICY", "strict-origin-when-cross-origin")
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
