"""
Error envelope and operations endpoints
========================================
Covers: exception handler | deep health | domain metrics | pilot app config | routing
"""

from unittest.mock import MagicMock, patch

import pytest
from django.db import DatabaseError
from django.urls import resolve
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import exceptions
from rest_framework_simplejwt.exceptions import InvalidToken

from aggrekart.exceptions import ConflictError, ValidationError, envelope_exception_handler


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT — exception handler
# ═══════════════════════════════════════════════════════════════════════════════

class TestEnvelopeHandler:

    def test_domain_error(self):
        resp = envelope_exception_handler(ConflictError("Journey already started"), {})
        assert resp.status_code == 409
        assert resp.data == {
            "success": False,
            "message": "Journey already started",
            "error": {"statusCode": 409},
        }

    def test_field_errors_carry_details(self):
        exc = ValidationError({"phoneNumber": ["Enter a valid 10-digit mobile number."]})
        resp = envelope_exception_handler(exc, {})
        assert resp.status_code == 400
        assert resp.data["message"] == "Validation failed"
        assert resp.data["error"]["details"] == {"phoneNumber": ["Enter a valid 10-digit mobile number."]}

    def test_single_message_validation_error(self):
        resp = envelope_exception_handler(ValidationError("Pilot ID mismatch"), {})
        assert resp.data["message"] == "Pilot ID mismatch"

    def test_token_error_uses_detail_text(self):
        resp = envelope_exception_handler(InvalidToken(), {})
        assert resp.status_code == 401
        assert resp.data["message"] == str(InvalidToken.default_detail)

    def test_unhandled_error_is_500_without_stack(self):
        resp = envelope_exception_handler(RuntimeError("boom"), {"view": MagicMock()})
        assert resp.status_code == 500
        assert resp.data == {
            "success": False,
            "message": "Something went wrong!",
            "error": {"statusCode": 500},
        }

    def test_stack_only_in_debug(self, settings):
        settings.DEBUG = True
        resp = envelope_exception_handler(RuntimeError("boom"), {})
        assert "RuntimeError: boom" in resp.data["error"]["stack"]

    def test_throttled_keeps_status(self):
        resp = envelope_exception_handler(exceptions.Throttled(wait=30), {})
        assert resp.status_code == 429
        assert resp.data["success"] is False


@pytest.mark.django_db
class TestEnvelopeOverHTTP:

    def test_crash_inside_view_returns_envelope(self, auth_client, customer):
        with patch("apps.support.views.ticket_service.get_for_customer", side_effect=RuntimeError("boom")):
            resp = auth_client(customer).get("/api/support/tickets/TKT-000001")
        assert resp.status_code == 500
        assert resp.data["success"] is False
        assert "stack" not in resp.data["error"]

    def test_success_envelope(self, api_client):
        resp = api_client.get("/api/pilot/app/config")
        assert resp.data["success"] is True
        assert resp.data["message"] == ""


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION — ops endpoints
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestOpsEndpoints:

    def test_health_deep_accessible_without_auth(self, api_client):
        resp = api_client.get("/api/health/deep/")
        assert resp.status_code == 200
        assert resp.data["data"] == {"status": "ok", "checks": {"database": "ok", "cache": "ok"}}

    def test_health_reports_cache_outage(self, api_client):
        with patch("apps.ops.views.cache") as cache:
            cache.set.side_effect = ConnectionError("redis down")
            resp = api_client.get("/api/health/deep/")
        assert resp.status_code == 503
        assert resp.data["data"]["status"] == "degraded"
        assert resp.data["data"]["checks"]["cache"].startswith("error")

    def test_health_reports_database_outage(self, api_client):
        with patch("apps.ops.views.connection") as conn:
            conn.cursor.side_effect = DatabaseError("server closed the connection")
            resp = api_client.get("/api/health/deep/")
        assert resp.status_code == 503
        assert resp.data["data"]["checks"]["database"].startswith("error")

    def test_metrics_staff_only(self, pilot_client):
        resp = pilot_client.get("/api/ops/metrics/")
        assert resp.status_code == 403

    def test_metrics_gauges(self, auth_client, staff, pilot, make_pilot, make_order):
        make_pilot(approved=False)
        make_order()
        resp = auth_client(staff).get("/api/ops/metrics/")
        assert resp.status_code == 200
        assert resp["Content-Type"].startswith("text/plain")
        body = resp.content.decode()
        assert 'aggrekart_orders_total{status="dispatched"} 1' in body
        assert 'aggrekart_pilots_total{approval="approved"} 1' in body
        assert 'aggrekart_pilots_total{approval="pending"} 1' in body
        assert "aggrekart_pilots_on_duty 1" in body

    def test_app_config(self, api_client):
        resp = api_client.get("/api/pilot/app/config")
        assert resp.status_code == 200
        data = resp.data["data"]
        assert data["supportInfo"]["email"] == "support@aggrekart.com"
        assert data["appVersion"] == {"current": "1.0.0", "minimum": "1.0.0"}
        assert data["features"]["otpDelivery"] is True


# ═══════════════════════════════════════════════════════════════════════════════
# URL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

class TestRouting:

    def test_docs_routes_resolve(self):
        assert resolve("/api/docs/").func.view_class is SpectacularSwaggerView
        assert resolve("/api/schema/").func.view_class is SpectacularAPIView

    @pytest.mark.parametrize("path, name", [
        ("/api/pilot/login", "pilot-login"),
        ("/api/pilot/accept-order", "pilot-accept-order"),
        ("/api/admin/orders/AGK000001/cancel", "order-admin-cancel"),
        ("/api/support/tickets", "ticket-list"),
        ("/api/health/deep/", "health-deep"),
    ])
    def test_app_routes_resolve(self, path, name):
        assert resolve(path).url_name == name
