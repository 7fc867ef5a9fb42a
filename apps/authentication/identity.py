"""
Pilot phone + OTP login.

Flow:  request_otp(phone)  →  SMS with 6-digit code  →  verify_otp(phone, code)  →  30-day JWT

Challenges live in the Django cache (Redis in production) keyed by phone, hold only a
SHA-256 of the code, expire after PILOT_OTP_TTL_SECONDS and are consumed on first success.
"""

import hashlib
import logging
import re
import secrets
from datetime import timedelta

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from aggrekart.exceptions import NotFoundError, UnauthorizedError, ValidationError
from apps.authentication.models import Pilot
from apps.notifications.service import NotificationService

logger = logging.getLogger("aggrekart.identity")

PILOT_PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
OTP_PATTERN = re.compile(r"^\d{6}$")


def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_otp(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def issue_pilot_token(pilot: Pilot) -> str:
    """Signed access token: account id + role/pilot_id claims, fixed lifetime, no refresh."""
    token = AccessToken.for_user(pilot.account)
    token.set_exp(lifetime=timedelta(days=settings.PILOT_TOKEN_LIFETIME_DAYS))
    token["role"] = "pilot"
    token["pilot_id"] = pilot.pilot_id
    return str(token)


class OTPStore:
    """One pending challenge per phone; a new issue replaces the old one."""

    key_prefix = "pilot-otp"

    def __init__(self, cache_backend=None, ttl_seconds=None):
        self.cache = cache_backend or cache
        self.ttl   = ttl_seconds or settings.PILOT_OTP_TTL_SECONDS

    def _key(self, phone: str) -> str:
        return f"{self.key_prefix}:{phone}"

    def issue(self, phone: str) -> str:
        code = generate_otp()
        self.cache.set(
            self._key(phone),
            {"code_hash": hash_otp(code), "expires_at": timezone.now() + timedelta(seconds=self.ttl)},
            timeout=self.ttl,
        )
        return code

    def consume(self, phone: str, code: str) -> None:
        """Raise UnauthorizedError unless `code` matches a live challenge; invalidate it on success."""
        key = self._key(phone)
        challenge = self.cache.get(key)
        if challenge is None:
            raise UnauthorizedError("OTP expired or not requested")
        if challenge["expires_at"] <= timezone.now():
            self.cache.delete(key)
            raise UnauthorizedError("OTP expired or not requested")
        if not secrets.compare_digest(challenge["code_hash"], hash_otp(code)):
            raise UnauthorizedError("Invalid OTP")
        # Two concurrent verifications of the same code: only the one that deletes wins
        if not self.cache.delete(key):
            raise UnauthorizedError("OTP expired or not requested")


class PilotIdentityService:
    """Dependencies are injected so they can be swapped in tests."""

    def __init__(self, otp_store=None, notification_service=None):
        self.otp_store = otp_store or OTPStore()
        self.notifier  = notification_service or NotificationService()

    @staticmethod
    def _validate_phone(phone: str) -> str:
        phone = (phone or "").strip()
        if not PILOT_PHONE_PATTERN.match(phone):
            raise ValidationError({"phoneNumber": ["Enter a valid 10-digit mobile number starting with 6-9."]})
        return phone

    @staticmethod
    def _active_pilot(phone: str):
        return (
            Pilot.objects.select_related("account", "current_order")
            .filter(account__phone=phone, is_approved=True, account__is_active=True)
            .first()
        )

    def request_otp(self, phone: str) -> str:
        phone = self._validate_phone(phone)
        pilot = self._active_pilot(phone)
        if pilot is None:
            logger.info("Login OTP refused for %s: no approved active pilot", phone)
            raise NotFoundError("Pilot not found or not approved")

        code = self.otp_store.issue(phone)
        minutes = self.otp_store.ttl // 60
        self.notifier.queue_sms(
            phone,
            f"Your Aggrekart pilot login OTP is {code}. Valid for {minutes} minutes. Do not share it.",
        )
        logger.info("Login OTP issued for %s (%s)", phone, pilot.pilot_id)
        return code

    def verify_otp(self, phone: str, code: str):
        """Return (pilot, token). The challenge is consumed before the pilot is re-checked."""
        phone = self._validate_phone(phone)
        code = (code or "").strip()
        if not OTP_PATTERN.match(code):
            raise ValidationError({"otp": ["OTP must be 6 digits."]})

        try:
            self.otp_store.consume(phone, code)
        except UnauthorizedError:
            logger.warning("Login OTP rejected for %s", phone)
            raise

        pilot = self._active_pilot(phone)
        if pilot is None:
            logger.warning("OTP verified for %s but pilot is no longer active", phone)
            raise UnauthorizedError("Pilot account is not active")

        token = issue_pilot_token(pilot)
        logger.info("Pilot %s logged in", pilot.pilot_id)
        return pilot, token
