"""
Top-level routes: the admin site, the registry API and its OpenAPI docs.
"""
from django.contrib import admin
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework.permissions import AllowAny

api_info = openapi.Info(
    title="Stillbirth Notification API",
    default_version="v1",
    description="Notification intake, alert escalation along the location hierarchy, and stillbirth reports.",
)

docs = get_schema_view(api_info, public=True, permission_classes=(AllowAny,))

urlpatterns = [
    path("", include("registry.routers")),
    path("admin/", admin.site.urls),
    path("swagger/", docs.with_ui("swagger", cache_timeout=0), name="schema-swagger-ui"),
    path("redoc/", docs.with_ui("redoc", cache_timeout=0), name="schema-redoc"),
]
