"""
Ticket state machine as pure planning functions.

Each plan_* function inspects a ticket and returns a TicketChange describing what should
happen: field updates, messages and notes to append, and emails to send. Nothing is written
here; TicketService applies a change inside one transaction and sends the emails on commit.
"""

from dataclasses import dataclass, field
from typing import Optional

from aggrekart.exceptions import ConflictError
from apps.support.models import Ticket, TicketMessage

Status = Ticket.Status

ALLOWED_TRANSITIONS = {
    Status.OPEN:        {Status.IN_PROGRESS, Status.RESOLVED, Status.CLOSED},
    Status.IN_PROGRESS: {Status.RESOLVED, Status.CLOSED},
    Status.RESOLVED:    {Status.CLOSED},
    Status.CLOSED:      set(),
}


@dataclass(frozen=True)
class PendingMessage:
    sender: object
    sender_type: str
    body: str
    attachments: tuple = ()
    is_internal: bool = False


@dataclass(frozen=True)
class PendingNote:
    admin: object
    note: str


@dataclass(frozen=True)
class PendingEmail:
    to: str
    subject: str
    body: str


@dataclass
class TicketChange:
    updates: dict = field(default_factory=dict)
    messages: list = field(default_factory=list)
    notes: list = field(default_factory=list)
    emails: list = field(default_factory=list)

    def merge(self, other: "TicketChange") -> "TicketChange":
        return TicketChange(
            updates={**self.updates, **other.updates},
            messages=self.messages + other.messages,
            notes=self.notes + other.notes,
            emails=self.emails + other.emails,
        )

    @property
    def is_empty(self) -> bool:
        return not (self.updates or self.messages or self.notes)


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def _customer_email(ticket: Ticket, subject: str, body: str) -> list:
    if not ticket.contact_email:
        return []
    return [PendingEmail(ticket.contact_email, f"[{ticket.ticket_id}] {subject}", body)]


def plan_status_change(ticket: Ticket, new_status: str, actor, now, note: str = "",
                       sender_type: str = TicketMessage.SenderType.ADMIN) -> TicketChange:
    """Move along an allowed edge; stamps resolved_at / closed_at on entry."""
    old = ticket.status
    if old == new_status:
        raise ConflictError(f"Ticket is already {new_status}")
    if not can_transition(old, new_status):
        raise ConflictError(f"Cannot move ticket from {old} to {new_status}")

    updates = {"status": new_status}
    if new_status == Status.RESOLVED:
        updates["resolved_at"] = now
    elif new_status == Status.CLOSED:
        updates["closed_at"] = now

    text = f"Ticket status changed from {old} to {new_status}"
    if note:
        text = f"{text}: {note}"
    change = TicketChange(
        updates=updates,
        messages=[PendingMessage(actor, sender_type, text, is_internal=True)],
        emails=_customer_email(
            ticket, f"Ticket {Status(new_status).label.lower()}",
            f"Your support ticket \"{ticket.subject}\" is now {new_status}.",
        ),
    )
    if note:
        change.notes.append(PendingNote(actor, note))
    return change


def plan_message(ticket: Ticket, sender, sender_type: str, body: str,
                 attachments=(), is_internal: bool = False) -> TicketChange:
    """Append to the thread. Never changes status; closed tickets accept no replies."""
    if ticket.status == Status.CLOSED:
        raise ConflictError("Cannot reply to a closed ticket")
    change = TicketChange(messages=[
        PendingMessage(sender, sender_type, body, tuple(attachments or ()), is_internal),
    ])
    if sender_type == TicketMessage.SenderType.ADMIN and not is_internal:
        change.emails.extend(_customer_email(ticket, "New reply from support", body))
    return change


def plan_assignment(ticket: Ticket, admin, assigned_by, now) -> TicketChange:
    """Hand the ticket to a staff member; an open ticket moves to in-progress."""
    text = f"Ticket assigned to {admin.full_name}" if admin is not None else "Ticket unassigned"
    change = TicketChange(
        updates={"handled_by": admin},
        messages=[PendingMessage(assigned_by, TicketMessage.SenderType.ADMIN, text, is_internal=True)],
    )
    if admin is not None and ticket.status == Status.OPEN:
        change = change.merge(plan_status_change(ticket, Status.IN_PROGRESS, assigned_by, now))
    return change


def plan_admin_note(ticket: Ticket, admin, note: str) -> TicketChange:
    return TicketChange(notes=[PendingNote(admin, note)])


def plan_rating(ticket: Ticket, rating: int, comment: Optional[str], now) -> TicketChange:
    if ticket.status not in (Status.RESOLVED, Status.CLOSED):
        raise ConflictError("Can only rate resolved or closed tickets")
    if ticket.rating is not None:
        raise ConflictError("Ticket has already been rated")
    return TicketChange(updates={"rating": rating, "rating_comment": comment or "", "rated_at": now})
