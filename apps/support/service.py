"""
TicketService: applies ticket workflow plans to the database.

Flow:  create  →  reply / assign / status / note  (staff and customer)  →  rate  (customer)

The plan_* functions in workflow.py decide; this class writes. Each mutation locks the
ticket row, applies one TicketChange in a transaction and emails after commit.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from aggrekart.exceptions import NotFoundError
from aggrekart.sequences import create_with_next_id
from apps.authentication.models import Account
from apps.notifications.service import NotificationService
from apps.orders.models import Order
from apps.support import workflow
from apps.support.models import AdminNote, Ticket, TicketMessage

logger = logging.getLogger("aggrekart.support")

Sender = TicketMessage.SenderType


class TicketService:
    """Dependencies are injected so they can be swapped in tests."""

    def __init__(self, notification_service=None):
        self.notifier = notification_service or NotificationService()

    # ── Reads ─────────────────────────────────────────────────────────────────
    @staticmethod
    def get(ticket_id: str) -> Ticket:
        ticket = (
            Ticket.objects.select_related("user", "handled_by", "related_order", "related_supplier")
            .filter(ticket_id=ticket_id)
            .first()
        )
        if ticket is None:
            raise NotFoundError("Ticket not found")
        return ticket

    @staticmethod
    def get_for_customer(user, ticket_id: str) -> Ticket:
        """Somebody else's ticket is reported exactly like a missing one."""
        ticket = (
            Ticket.objects.select_related("handled_by", "related_order", "related_supplier")
            .filter(ticket_id=ticket_id, user=user)
            .first()
        )
        if ticket is None:
            raise NotFoundError("Ticket not found")
        return ticket

    # ── Create ────────────────────────────────────────────────────────────────
    @transaction.atomic
    def create(self, user, data: dict) -> Ticket:
        """
        Open a ticket. The description becomes the first message of the thread.
        `data` is serializer-validated: subject, description, category, priority and optional
        related_order_id / contact_phone / contact_email / preferred_contact_method.
        """
        related_order = None
        order_id = data.get("related_order_id")
        if order_id:
            related_order = (
                Order.objects.select_related("supplier")
                .filter(order_id=order_id, customer=user)
                .first()
            )

        ticket = create_with_next_id(
            Ticket, "ticket_id", "TKT-",
            user=user,
            subject=data["subject"],
            description=data["description"],
            category=data.get("category") or Ticket.Category.OTHER,
            priority=data.get("priority") or Ticket.Priority.MEDIUM,
            related_order=related_order,
            related_supplier=related_order.supplier if related_order else None,
            contact_phone=data.get("contact_phone") or user.phone,
            contact_email=data.get("contact_email") or user.email,
            preferred_contact_method=data.get("preferred_contact_method") or Ticket.ContactMethod.EMAIL,
        )
        TicketMessage.objects.create(
            ticket=ticket, sender=user, sender_type=Sender.CUSTOMER,
            body=data["description"], attachments=list(data.get("attachments") or []),
            created_at=ticket.created_at,
        )
        logger.info("Ticket %s opened by %s [%s/%s]", ticket.ticket_id, user.pk, ticket.category, ticket.priority)

        emails = [workflow.PendingEmail(
            settings.SUPPORT_EMAIL,
            f"[{ticket.ticket_id}] New {ticket.get_priority_display().lower()} priority ticket",
            f"{user.full_name} ({user.phone}) opened \"{ticket.subject}\".\n\n{ticket.description}",
        )]
        if ticket.contact_email:
            emails.append(workflow.PendingEmail(
                ticket.contact_email,
                f"[{ticket.ticket_id}] We received your request",
                f"Thanks for contacting Aggrekart support. Your ticket \"{ticket.subject}\" is open "
                f"and our team will get back to you soon.",
            ))
        self._email_after_commit(emails)
        return ticket

    # ── Mutations ─────────────────────────────────────────────────────────────
    def _email_after_commit(self, emails):
        if not emails:
            return

        def send():
            for email in emails:
                self.notifier.send_email(email.to, email.subject, email.body)
        transaction.on_commit(send)

    @transaction.atomic
    def _mutate(self, ticket_id: str, planner, owner=None) -> Ticket:
        """Lock the ticket, ask `planner(ticket, now)` for a TicketChange and write it."""
        qs = Ticket.objects.select_for_update().filter(ticket_id=ticket_id)
        if owner is not None:
            qs = qs.filter(user=owner)
        ticket = qs.first()
        if ticket is None:
            raise NotFoundError("Ticket not found")

        now = timezone.now()
        change = planner(ticket, now)

        updates = {"last_activity_at": now, **change.updates}
        for name, value in updates.items():
            setattr(ticket, name, value)
        ticket.save(update_fields=[*updates, "updated_at"])

        TicketMessage.objects.bulk_create([
            TicketMessage(
                ticket=ticket, sender=m.sender, sender_type=m.sender_type, body=m.body,
                attachments=list(m.attachments), is_internal=m.is_internal, created_at=now,
            )
            for m in change.messages
        ])
        AdminNote.objects.bulk_create([
            AdminNote(ticket=ticket, admin=n.admin, note=n.note, created_at=now)
            for n in change.notes
        ])
        self._email_after_commit(change.emails)

        logger.info(
            "Ticket %s updated: fields=%s messages=%d notes=%d",
            ticket.ticket_id, sorted(change.updates), len(change.messages), len(change.notes),
        )
        return ticket

    # ── Customer side ─────────────────────────────────────────────────────────
    def reply_as_customer(self, user, ticket_id: str, body: str, attachments=()) -> Ticket:
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_message(t, user, Sender.CUSTOMER, body, attachments),
            owner=user,
        )

    def close_by_customer(self, user, ticket_id: str) -> Ticket:
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_status_change(
                t, Ticket.Status.CLOSED, user, now, sender_type=Sender.CUSTOMER,
            ),
            owner=user,
        )

    def rate(self, user, ticket_id: str, rating: int, comment: str = "") -> Ticket:
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_rating(t, rating, comment, now),
            owner=user,
        )

    # ── Staff side ────────────────────────────────────────────────────────────
    def admin_reply(self, admin, ticket_id: str, body: str, attachments=(), is_internal: bool = False) -> Ticket:
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_message(t, admin, Sender.ADMIN, body, attachments, is_internal),
        )

    def update_status(self, admin, ticket_id: str, new_status: str, note: str = "") -> Ticket:
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_status_change(t, new_status, admin, now, note),
        )

    def assign(self, admin, ticket_id: str, admin_id=None) -> Ticket:
        """Assign to a staff account; admin_id=None unassigns."""
        assignee = None
        if admin_id is not None:
            assignee = (
                Account.objects
                .filter(Q(role=Account.Role.ADMIN) | Q(is_staff=True), pk=admin_id, is_active=True)
                .first()
            )
            if assignee is None:
                raise NotFoundError("Admin not found")
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_assignment(t, assignee, admin, now),
        )

    def add_admin_note(self, admin, ticket_id: str, note: str) -> Ticket:
        return self._mutate(
            ticket_id,
            lambda t, now: workflow.plan_admin_note(t, admin, note),
        )
