"""
Operations views:
  - Deep health check (database and cache)
  - Prometheus-formatted domain gauges
  - Pilot app configuration
"""

import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.db.models import Count
from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from aggrekart.responses import ok
from apps.authentication.models import Pilot
from apps.authentication.permissions import IsStaffMember
from apps.orders.models import Order
from apps.support.models import Ticket

logger = logging.getLogger("aggrekart.ops")


def _check_database() -> str:
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1")
    except DatabaseError as exc:
        logger.error("Health check: database unavailable: %s", exc)
        return f"error: {exc}"
    return "ok"


def _check_cache() -> str:
    try:
        cache.set("healthcheck", "1", 5)
        return "ok" if cache.get("healthcheck") == "1" else "miss"
    except Exception as exc:  # backend-specific (redis.ConnectionError and friends)
        logger.error("Health check: cache unavailable: %s", exc)
        return f"error: {exc}"


# ── GET /api/health/deep/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Deep health check: database and cache")
class DeepHealthView(APIView):
    permission_classes     = [AllowAny]
    authentication_classes = []

    def get(self, request):
        checks = {"database": _check_database(), "cache": _check_cache()}
        healthy = all(v == "ok" for v in checks.values())
        return ok(
            {"status": "ok" if healthy else "degraded", "checks": checks},
            status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )


def _gauge(name: str, help_text: str, label: str, counts: dict) -> list:
    lines = [f"# HELP {name} {help_text}", f"# TYPE {name} gauge"]
    for value, count in sorted(counts.items()):
        lines.append(f'{name}{{{label}="{value}"}} {count}')
    return lines


def _by(model, field: str) -> dict:
    return dict(model.objects.order_by().values_list(field).annotate(c=Count("id")))


# ── GET /api/ops/metrics/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Prometheus-formatted order, ticket and pilot gauges")
class MetricsView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request):
        pilots = {
            "approved": Pilot.objects.filter(is_approved=True).count(),
            "pending":  Pilot.objects.filter(is_approved=False).count(),
        }
        lines = (
            _gauge("aggrekart_orders_total", "Orders by status", "status", _by(Order, "status"))
            + [""]
            + _gauge("aggrekart_tickets_total", "Support tickets by status", "status", _by(Ticket, "status"))
            + [""]
            + _gauge("aggrekart_pilots_total", "Pilots by approval state", "approval", pilots)
            + [
                "",
                "# HELP aggrekart_pilots_on_duty Approved pilots currently available",
                "# TYPE aggrekart_pilots_on_duty gauge",
                f"aggrekart_pilots_on_duty {Pilot.objects.filter(is_approved=True, is_available=True).count()}",
            ]
        )
        return HttpResponse("\n".join(lines) + "\n", content_type="text/plain; version=0.0.4")


# ── GET /api/pilot/app/config ─────────────────────────────────────────────────
@extend_schema(tags=["Pilot"], summary="Support contacts, app version and feature flags")
class AppConfigView(APIView):
    permission_classes     = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return ok({
            "supportInfo": {
                "phone":    settings.SUPPORT_PHONE,
                "email":    settings.SUPPORT_EMAIL,
                "whatsapp": settings.SUPPORT_WHATSAPP,
            },
            "appVersion": {
                "current": settings.APP_VERSION_CURRENT,
                "minimum": settings.APP_VERSION_MINIMUM,
            },
            "features": {
                "liveTracking":   True,
                "otpDelivery":    True,
                "cashCollection": False,
            },
        })
