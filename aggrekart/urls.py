"""Aggrekart root URL configuration."""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),

    # OpenAPI / Interactive Docs
    path("api/schema/", SpectacularAPIView.as_view(),       name="schema"),
    path("api/docs/",   SpectacularSwaggerView.as_view(), name="swagger-ui"),

    # Pilot app
    path("api/pilot/", include("apps.authentication.urls")),
    path("api/pilot/", include("apps.orders.urls")),
    path("api/pilot/", include("apps.support.pilot_urls")),
    path("api/pilot/", include("apps.ops.pilot_urls")),

    # Support desk
    path("api/support/", include("apps.support.urls")),

    # Staff
    path("api/admin/pilots/", include("apps.authentication.admin_urls")),
    path("api/admin/orders/", include("apps.orders.admin_urls")),

    # Ops
    path("api/health/", include("apps.ops.health_urls")),
    path("api/ops/",    include("apps.ops.ops_urls")),

    # Prometheus scrape endpoint (/metrics)
    path("", include("django_prometheus.urls")),
]
