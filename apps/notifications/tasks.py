"""Celery tasks for outbound notifications."""

import logging
from celery import shared_task

logger = logging.getLogger("aggrekart.notifications.tasks")


@shared_task(ignore_result=True)
def send_sms(phone: str, message: str) -> bool:
    """Deliver one SMS. Not retried: the state change that triggered it is already committed."""
    from apps.notifications.service import NotificationService

    delivered = NotificationService().send_sms(phone, message)
    if not delivered:
        logger.info("SMS to %s dropped after gateway failure", phone)
    return delivered
