"""
Notification service.
Supports SMS (via the SMS gateway) and Email (via Django's mail backend).
In production, swap the HTTP calls with the real provider SDK.
"""

import logging
import requests
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger("aggrekart.notifications")


class NotificationService:
    """Send SMS and Email notifications. Fails silently — never blocks the main flow."""

    def send_sms(self, phone: str, message: str) -> bool:
        """Send SMS via gateway. Returns True on success."""
        try:
            resp = requests.post(
                f"{settings.SMS_GATEWAY_URL}/send",
                json={"phone": phone, "message": message},
                timeout=3,
            )
            if resp.status_code == 200:
                logger.info("SMS sent to %s", phone)
                return True
            logger.warning("SMS gateway returned %s for %s", resp.status_code, phone)
        except requests.RequestException as exc:
            logger.warning("SMS failed for %s: %s", phone, exc)
        return False

    def queue_sms(self, phone: str, message: str) -> bool:
        """Hand the SMS to Celery. Fire-and-forget: no retries, broker errors are logged."""
        if not phone:
            return False
        from apps.notifications.tasks import send_sms
        try:
            send_sms.delay(phone, message)
            return True
        except Exception as exc:  # kombu raises transport-specific errors
            logger.warning("Could not queue SMS for %s: %s", phone, exc)
            return False

    def send_email(self, email: str, subject: str, body: str) -> bool:
        """Send email through the configured Django backend."""
        if not email:
            return False
        sent = send_mail(
            subject, body, settings.DEFAULT_FROM_EMAIL, [email], fail_silently=True,
        )
        if sent:
            logger.info("EMAIL → %s | Subject: %s", email, subject)
        else:
            logger.warning("EMAIL to %s not sent | Subject: %s", email, subject)
        return bool(sent)
