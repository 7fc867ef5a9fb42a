"""
Pilot OTP login
================
Covers: OTP issue | single use | expiry | token claims | login endpoints
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from aggrekart.exceptions import NotFoundError, UnauthorizedError, ValidationError
from apps.authentication.identity import OTPStore, PilotIdentityService, hash_otp, issue_pilot_token


def _service():
    return PilotIdentityService(notification_service=MagicMock())


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT — OTP store
# ═══════════════════════════════════════════════════════════════════════════════

class TestOTPStore:

    def test_issue_stores_only_the_hash(self):
        store = OTPStore()
        code = store.issue("9876543210")
        challenge = store.cache.get("pilot-otp:9876543210")
        assert len(code) == 6 and code.isdigit()
        assert challenge["code_hash"] == hash_otp(code)

    def test_consume_is_single_use(self):
        store = OTPStore()
        code = store.issue("9876543210")
        store.consume("9876543210", code)
        with pytest.raises(UnauthorizedError):
            store.consume("9876543210", code)

    def test_wrong_code_keeps_challenge_alive(self):
        store = OTPStore()
        code = store.issue("9876543210")
        wrong = "000000" if code != "000000" else "111111"
        with pytest.raises(UnauthorizedError, match="Invalid OTP"):
            store.consume("9876543210", wrong)
        store.consume("9876543210", code)

    def test_expired_challenge_rejected_even_with_right_code(self):
        store = OTPStore(ttl_seconds=600)
        code = store.issue("9876543210")
        later = timezone.now() + timedelta(minutes=11)
        with patch("apps.authentication.identity.timezone") as tz:
            tz.now.return_value = later
            with pytest.raises(UnauthorizedError, match="expired"):
                store.consume("9876543210", code)

    def test_new_issue_replaces_previous_code(self):
        store = OTPStore()
        first = store.issue("9876543210")
        second = store.issue("9876543210")
        if first != second:
            with pytest.raises(UnauthorizedError):
                store.consume("9876543210", first)
        store.consume("9876543210", second)

    def test_consume_without_request(self):
        with pytest.raises(UnauthorizedError, match="not requested"):
            OTPStore().consume("9876543210", "123456")


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT — identity service
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestPilotIdentityService:

    def test_request_otp_sends_sms(self, pilot):
        svc = _service()
        code = svc.request_otp("9876543210")
        phone, text = svc.notifier.queue_sms.call_args.args
        assert phone == "9876543210"
        assert code in text

    @pytest.mark.parametrize("phone", ["5876543210", "98765", "98765432101", "abcdefghij", ""])
    def test_request_otp_rejects_malformed_phone(self, phone):
        with pytest.raises(ValidationError):
            _service().request_otp(phone)

    def test_unknown_phone_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            _service().request_otp("9123456789")

    def test_unapproved_pilot_is_not_found(self, make_pilot):
        make_pilot(phone="9123456789", approved=False)
        svc = _service()
        with pytest.raises(NotFoundError, match="not approved"):
            svc.request_otp("9123456789")
        svc.notifier.queue_sms.assert_not_called()

    def test_inactive_account_is_not_found(self, make_pilot):
        p = make_pilot(phone="9123456789")
        p.account.is_active = False
        p.account.save(update_fields=["is_active"])
        with pytest.raises(NotFoundError):
            _service().request_otp("9123456789")

    def test_verify_returns_pilot_and_token(self, pilot):
        svc = _service()
        code = svc.request_otp("9876543210")
        verified, token = svc.verify_otp("9876543210", code)
        assert verified.pk == pilot.pk
        assert AccessToken(token)["pilot_id"] == pilot.pilot_id

    def test_second_verify_with_same_code_fails(self, pilot):
        svc = _service()
        code = svc.request_otp("9876543210")
        svc.verify_otp("9876543210", code)
        with pytest.raises(UnauthorizedError):
            svc.verify_otp("9876543210", code)

    def test_pilot_deactivated_between_request_and_verify(self, pilot):
        svc = _service()
        code = svc.request_otp("9876543210")
        pilot.is_approved = False
        pilot.save(update_fields=["is_approved"])
        with pytest.raises(UnauthorizedError, match="not active"):
            svc.verify_otp("9876543210", code)

    def test_malformed_otp_is_validation_error(self, pilot):
        with pytest.raises(ValidationError):
            _service().verify_otp("9876543210", "12ab")


@pytest.mark.django_db
class TestPilotToken:

    def test_claims_and_lifetime(self, pilot):
        token = AccessToken(issue_pilot_token(pilot))
        assert token["role"] == "pilot"
        assert token["pilot_id"] == pilot.pilot_id
        assert token["user_id"] == str(pilot.account.pk)
        lifetime = token["exp"] - token["iat"]
        assert abs(lifetime - timedelta(days=30).total_seconds()) < 5


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION — login endpoints
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestLoginEndpoints:

    def test_dual_login_request_then_verify(self, api_client, pilot, sms_gateway):
        resp = api_client.post("/api/pilot/login", {"phoneNumber": "9876543210"}, format="json")
        assert resp.status_code == 200
        assert resp.data["success"] is True
        assert resp.data["message"] == "OTP sent successfully"
        otp = resp.data["data"]["otp"]
        assert sms_gateway.called

        resp = api_client.post("/api/pilot/login", {"phoneNumber": "9876543210", "otp": otp}, format="json")
        assert resp.status_code == 200
        assert resp.data["data"]["pilot"]["pilotId"] == pilot.pilot_id
        assert resp.data["data"]["token"]

    def test_split_endpoints(self, api_client, pilot):
        resp = api_client.post("/api/pilot/login/request-otp", {"phoneNumber": "9876543210"}, format="json")
        otp = resp.data["data"]["otp"]
        resp = api_client.post("/api/pilot/login/verify-otp",
                               {"phoneNumber": "9876543210", "otp": otp}, format="json")
        assert resp.status_code == 200

    def test_otp_not_echoed_when_disabled(self, api_client, pilot, settings):
        settings.PILOT_OTP_ECHO = False
        resp = api_client.post("/api/pilot/login/request-otp", {"phoneNumber": "9876543210"}, format="json")
        assert resp.status_code == 200
        assert "otp" not in resp.data["data"]

    def test_replayed_otp_is_401(self, api_client, pilot):
        otp = api_client.post("/api/pilot/login", {"phoneNumber": "9876543210"}, format="json").data["data"]["otp"]
        api_client.post("/api/pilot/login", {"phoneNumber": "9876543210", "otp": otp}, format="json")
        resp = api_client.post("/api/pilot/login", {"phoneNumber": "9876543210", "otp": otp}, format="json")
        assert resp.status_code == 401
        assert resp.data["success"] is False
        assert resp.data["error"]["statusCode"] == 401

    def test_unapproved_pilot_gets_404(self, api_client, make_pilot):
        make_pilot(phone="9123456789", approved=False)
        resp = api_client.post("/api/pilot/login", {"phoneNumber": "9123456789"}, format="json")
        assert resp.status_code == 404
        assert resp.data["message"] == "Pilot not found or not approved"

    def test_bad_phone_is_400_with_details(self, api_client, db):
        resp = api_client.post("/api/pilot/login", {"phoneNumber": "12345"}, format="json")
        assert resp.status_code == 400
        assert "phoneNumber" in resp.data["error"]["details"]

    def test_token_authenticates_pilot_routes(self, api_client, pilot):
        otp = api_client.post("/api/pilot/login", {"phoneNumber": "9876543210"}, format="json").data["data"]["otp"]
        token = api_client.post("/api/pilot/login", {"phoneNumber": "9876543210", "otp": otp},
                                format="json").data["data"]["token"]
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        resp = api_client.get("/api/pilot/dashboard/stats")
        assert resp.status_code == 200

    def test_garbage_token_is_401(self, api_client, db):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        resp = api_client.get("/api/pilot/dashboard/stats")
        assert resp.status_code == 401
        assert resp.data["success"] is False
