import os
from django.contrib import admin
from django.urls import path, re_path, include
from django.conf import settings
from rest_framework import permissions

from accounts.views import LoginPageView
from statuspages.views import HomeView, SubscriptionLinkView
from tenants.views import DashboardView

# Obscure admin URL; set ADMIN_URL_PATH in the environment
ADMIN_URL_PATH = os.environ.get('ADMIN_URL_PATH', 'secret-admin-panel')

urlpatterns = [
    path(f"{ADMIN_URL_PATH}/", admin.site.urls),
    path("api/auth/", include("accounts.urls")),
    path("api/public/", include("statuspages.public_urls")),
    path("api/", include("tenants.urls")),
    path("api/", include("statuspages.urls")),
    path("login/", LoginPageView.as_view(), name="login-page"),
    path("login/magic", LoginPageView.as_view(), name="magic-link-page"),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
    path("subscribe/confirm", SubscriptionLinkView.as_view(action="confirm"), name="subscribe-confirm-page"),
    path("unsubscribe", SubscriptionLinkView.as_view(action="unsubscribe"), name="unsubscribe-page"),
    path("", HomeView.as_view(), name="home"),
]

# Swagger UI is mounted only in DEBUG or with ENABLE_SWAGGER; production
# settings drop drf_yasg from INSTALLED_APPS otherwise
if getattr(settings, 'ENABLE_SWAGGER', False) or settings.DEBUG:
    from drf_yasg.views import get_schema_view
    from drf_yasg import openapi

    schema_view = get_schema_view(
        openapi.Info(
            title="StatusStack API",
            default_version="v1",
            description="Status pages, components, incidents and subscribers",
            contact=openapi.Contact(email="support@downtime.online"),
        ),
        public=True,
        permission_classes=[permissions.AllowAny],
    )
    urlpatterns += [
        re_path(r"^swagger(?P<format>\.json|\.yaml)$", schema_view.without_ui(cache_timeout=0), name="schema-json"),
        path("swagger/", schema_view.with_ui("swagger", cache_timeout=0), name="schema-swagger-ui"),
        path("redoc/", schema_view.with_ui("redoc", cache_timeout=0), name="schema-redoc"),
    ]
