"""
Support tickets
================
Covers: workflow plans | TicketService | stats | customer desk | staff console | pilot contact
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from django.core import mail
from django.utils import timezone

from aggrekart.exceptions import ConflictError, NotFoundError
from apps.authentication.models import Account
from apps.support import stats, workflow
from apps.support.models import AdminNote, Ticket, TicketMessage
from apps.support.service import TicketService

Status = Ticket.Status


def ticket_data(**extra):
    data = {
        "subject":     "Cement bags short",
        "description": "Received 18 bags instead of 20 on my last order.",
        "category":    Ticket.Category.DELIVERY_ISSUE,
        "priority":    Ticket.Priority.HIGH,
    }
    data.update(extra)
    return data


def _service():
    return TicketService(notification_service=MagicMock())


@pytest.fixture
def ticket(customer):
    return _service().create(customer, ticket_data())


@pytest.fixture
def resolved(ticket, staff):
    return _service().update_status(staff, ticket.ticket_id, Status.RESOLVED)


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT — workflow plans (no database)
# ═══════════════════════════════════════════════════════════════════════════════

class TestWorkflowPlans:

    def _ticket(self, status=Status.OPEN, email="ravi@example.com", **kw):
        return Ticket(ticket_id="TKT-000001", subject="Late truck", status=status, contact_email=email, **kw)

    @pytest.mark.parametrize("old,new", [
        (Status.OPEN, Status.IN_PROGRESS),
        (Status.OPEN, Status.RESOLVED),
        (Status.OPEN, Status.CLOSED),
        (Status.IN_PROGRESS, Status.RESOLVED),
        (Status.IN_PROGRESS, Status.CLOSED),
        (Status.RESOLVED, Status.CLOSED),
    ])
    def test_allowed_edges(self, old, new):
        assert workflow.can_transition(old, new)

    @pytest.mark.parametrize("old,new", [
        (Status.IN_PROGRESS, Status.OPEN),
        (Status.RESOLVED, Status.IN_PROGRESS),
        (Status.RESOLVED, Status.OPEN),
        (Status.CLOSED, Status.OPEN),
        (Status.CLOSED, Status.RESOLVED),
    ])
    def test_backward_moves_rejected(self, old, new):
        with pytest.raises(ConflictError, match="Cannot move"):
            workflow.plan_status_change(self._ticket(old), new, actor=None, now=timezone.now())

    def test_same_status_rejected(self):
        with pytest.raises(ConflictError, match="already"):
            workflow.plan_status_change(self._ticket(Status.OPEN), Status.OPEN, None, timezone.now())

    def test_resolve_stamps_time_and_emails(self):
        now = timezone.now()
        change = workflow.plan_status_change(self._ticket(), Status.RESOLVED, None, now, note="Refund issued")
        assert change.updates == {"status": Status.RESOLVED, "resolved_at": now}
        assert change.messages[0].is_internal
        assert change.messages[0].body.endswith(": Refund issued")
        assert [n.note for n in change.notes] == ["Refund issued"]
        assert change.emails[0].to == "ravi@example.com"
        assert change.emails[0].subject.startswith("[TKT-000001]")

    def test_close_stamps_closed_at(self):
        now = timezone.now()
        change = workflow.plan_status_change(self._ticket(Status.RESOLVED), Status.CLOSED, None, now)
        assert change.updates["closed_at"] == now
        assert "resolved_at" not in change.updates

    def test_no_email_without_contact_address(self):
        change = workflow.plan_status_change(self._ticket(email=""), Status.CLOSED, None, timezone.now())
        assert change.emails == []

    def test_customer_message_never_changes_status(self):
        change = workflow.plan_message(self._ticket(Status.RESOLVED), None, TicketMessage.SenderType.CUSTOMER,
                                       "Still missing two bags")
        assert change.updates == {}
        assert change.emails == []

    def test_public_admin_reply_emails_customer(self):
        change = workflow.plan_message(self._ticket(), None, TicketMessage.SenderType.ADMIN, "On it")
        assert len(change.emails) == 1

    def test_internal_admin_reply_stays_internal(self):
        change = workflow.plan_message(self._ticket(), None, TicketMessage.SenderType.ADMIN, "Check GRN",
                                       is_internal=True)
        assert change.emails == []
        assert change.messages[0].is_internal

    def test_closed_ticket_takes_no_replies(self):
        with pytest.raises(ConflictError, match="closed"):
            workflow.plan_message(self._ticket(Status.CLOSED), None, TicketMessage.SenderType.CUSTOMER, "hello?")

    def test_assignment_moves_open_ticket_in_progress(self):
        admin = Account(full_name="Asha Support")
        change = workflow.plan_assignment(self._ticket(), admin, admin, timezone.now())
        assert change.updates["handled_by"] is admin
        assert change.updates["status"] == Status.IN_PROGRESS
        assert [m.body for m in change.messages] == [
            "Ticket assigned to Asha Support",
            "Ticket status changed from open to in-progress",
        ]

    def test_reassignment_keeps_status(self):
        admin = Account(full_name="Asha Support")
        change = workflow.plan_assignment(self._ticket(Status.IN_PROGRESS), admin, admin, timezone.now())
        assert "status" not in change.updates

    def test_unassignment(self):
        change = workflow.plan_assignment(self._ticket(Status.IN_PROGRESS), None, None, timezone.now())
        assert change.updates == {"handled_by": None}
        assert change.messages[0].body == "Ticket unassigned"

    def test_rating_rules(self):
        now = timezone.now()
        with pytest.raises(ConflictError, match="resolved or closed"):
            workflow.plan_rating(self._ticket(Status.IN_PROGRESS), 5, "", now)
        with pytest.raises(ConflictError, match="already been rated"):
            workflow.plan_rating(self._ticket(Status.RESOLVED, rating=4), 5, "", now)
        change = workflow.plan_rating(self._ticket(Status.CLOSED), 5, None, now)
        assert change.updates == {"rating": 5, "rating_comment": "", "rated_at": now}


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT — TicketService
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestTicketService:

    def test_create_opens_thread_and_emails(self, customer, django_capture_on_commit_callbacks):
        svc = _service()
        with django_capture_on_commit_callbacks(execute=True):
            t = svc.create(customer, ticket_data())

        assert t.ticket_id == "TKT-000001"
        assert t.status == Status.OPEN
        assert (t.contact_phone, t.contact_email) == ("9000000001", "ravi@example.com")
        first = t.messages.get()
        assert first.sender_type == TicketMessage.SenderType.CUSTOMER
        assert first.body == t.description
        recipients = [c.args[0] for c in svc.notifier.send_email.call_args_list]
        assert recipients == ["support@aggrekart.com", "ravi@example.com"]

    def test_ticket_ids_are_sequential(self, customer):
        svc = _service()
        ids = [svc.create(customer, ticket_data()).ticket_id for _ in range(3)]
        assert ids == ["TKT-000001", "TKT-000002", "TKT-000003"]

    def test_ticket_id_taken_by_concurrent_insert_is_retried(self, customer):
        svc = _service()
        first = svc.create(customer, ticket_data())
        # Both requests counted the same rows; the other one inserted TKT-000001 first
        with patch("aggrekart.sequences.next_free", side_effect=["TKT-000001", "TKT-000002"]):
            second = svc.create(customer, ticket_data())
        assert (first.ticket_id, second.ticket_id) == ("TKT-000001", "TKT-000002")
        assert second.messages.count() == 1

    def test_pre_seeded_ids_are_skipped(self, customer):
        svc = _service()
        Ticket.objects.create(ticket_id="TKT-000001", user=customer, subject="Imported",
                              description="Legacy", category=Ticket.Category.OTHER)
        Ticket.objects.create(ticket_id="TKT-000003", user=customer, subject="Imported",
                              description="Legacy", category=Ticket.Category.OTHER)
        ids = [svc.create(customer, ticket_data()).ticket_id for _ in range(2)]
        assert ids == ["TKT-000004", "TKT-000005"]

    def test_related_order_must_belong_to_customer(self, customer, make_account, make_order):
        own = make_order()
        foreign = make_order(customer=make_account())
        svc = _service()

        linked = svc.create(customer, ticket_data(related_order_id=own.order_id))
        assert linked.related_order_id == own.pk
        assert linked.related_supplier_id == own.supplier_id

        unlinked = svc.create(customer, ticket_data(related_order_id=foreign.order_id))
        assert unlinked.related_order is None
        assert unlinked.related_supplier is None

    def test_customer_cannot_see_other_tickets(self, ticket, make_account):
        with pytest.raises(NotFoundError):
            TicketService.get_for_customer(make_account(), ticket.ticket_id)
        with pytest.raises(NotFoundError):
            _service().reply_as_customer(make_account(), ticket.ticket_id, "Hello there")

    def test_reply_on_resolved_ticket_keeps_state(self, customer, resolved):
        resolved_at = resolved.resolved_at
        t = _service().reply_as_customer(customer, resolved.ticket_id, "Thanks, all sorted")
        t.refresh_from_db()
        assert t.status == Status.RESOLVED
        assert t.resolved_at == resolved_at
        assert t.last_activity_at >= resolved_at

    def test_close_by_customer(self, customer, ticket):
        t = _service().close_by_customer(customer, ticket.ticket_id)
        t.refresh_from_db()
        assert t.status == Status.CLOSED and t.closed_at
        last = t.messages.last()
        assert last.sender_type == TicketMessage.SenderType.CUSTOMER and last.is_internal
        with pytest.raises(ConflictError):
            _service().reply_as_customer(customer, ticket.ticket_id, "One more thing")

    def test_rate_once_after_resolution(self, customer, ticket, staff):
        svc = _service()
        with pytest.raises(ConflictError):
            svc.rate(customer, ticket.ticket_id, 5)
        svc.update_status(staff, ticket.ticket_id, Status.RESOLVED)
        t = svc.rate(customer, ticket.ticket_id, 4, "Quick help")
        assert (t.rating, t.rating_comment) == (4, "Quick help")
        with pytest.raises(ConflictError):
            svc.rate(customer, ticket.ticket_id, 5)

    def test_status_change_with_note(self, staff, ticket, django_capture_on_commit_callbacks):
        svc = _service()
        with django_capture_on_commit_callbacks(execute=True):
            svc.update_status(staff, ticket.ticket_id, Status.RESOLVED, note="Replacement bags sent")
        assert AdminNote.objects.get(ticket=ticket).note == "Replacement bags sent"
        svc.notifier.send_email.assert_called_once()
        with pytest.raises(ConflictError):
            svc.update_status(staff, ticket.ticket_id, Status.IN_PROGRESS)

    def test_assign_and_unassign(self, staff, ticket):
        svc = _service()
        t = svc.assign(staff, ticket.ticket_id, staff.pk)
        t.refresh_from_db()
        assert t.handled_by_id == staff.pk
        assert t.status == Status.IN_PROGRESS

        t = svc.assign(staff, ticket.ticket_id, None)
        t.refresh_from_db()
        assert t.handled_by is None
        assert t.status == Status.IN_PROGRESS

    def test_assign_to_non_staff_is_not_found(self, staff, ticket, customer):
        with pytest.raises(NotFoundError, match="Admin not found"):
            _service().assign(staff, ticket.ticket_id, customer.pk)

    def test_unknown_ticket(self, staff):
        with pytest.raises(NotFoundError):
            _service().add_admin_note(staff, "TKT-999999", "x")


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT — aggregates
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestTicketStats:

    def test_ticket_stats_has_every_status(self, ticket):
        assert stats.get_ticket_stats() == {
            "total": 1, "open": 1, "in-progress": 0, "resolved": 0, "closed": 0,
        }

    def test_avg_resolution_time(self, customer, staff):
        svc = _service()
        for hours in (4, 10):
            t = svc.create(customer, ticket_data())
            Ticket.objects.filter(pk=t.pk).update(created_at=timezone.now() - timedelta(hours=hours))
            svc.update_status(staff, t.ticket_id, Status.RESOLVED)
        result = stats.get_avg_resolution_time()
        assert result["count"] == 2
        assert result["avgResolutionTime"] == pytest.approx(7.0, abs=0.01)

    def test_old_resolutions_fall_outside_window(self, resolved):
        Ticket.objects.filter(pk=resolved.pk).update(resolved_at=timezone.now() - timedelta(days=40))
        assert stats.get_avg_resolution_time(window_days=30) == {"avgResolutionTime": 0, "count": 0}

    def test_satisfaction(self, customer, staff):
        svc = _service()
        for stars in (5, 5, 3):
            t = svc.create(customer, ticket_data())
            svc.update_status(staff, t.ticket_id, Status.RESOLVED)
            svc.rate(customer, t.ticket_id, stars)
        result = stats.get_customer_satisfaction_stats()
        assert result["avgRating"] == pytest.approx(4.33, abs=0.01)
        assert result["totalRatings"] == 3
        assert result["ratings"] == {"1": 0, "2": 0, "3": 1, "4": 0, "5": 2}


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION — customer desk
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestCustomerEndpoints:

    def test_create_ticket(self, auth_client, customer, make_order, django_capture_on_commit_callbacks):
        order = make_order()
        with django_capture_on_commit_callbacks(execute=True):
            resp = auth_client(customer).post("/api/support/tickets", {
                "subject":        "Truck arrived late",
                "description":    "Driver reached the site four hours after the slot.",
                "category":       "delivery_issue",
                "relatedOrderId": order.order_id,
                "attachments":    [{"filename": "photo.jpg", "url": "https://cdn.example.com/p.jpg"}],
            }, format="json")
        assert resp.status_code == 201
        t = resp.data["data"]["ticket"]
        assert t["status"] == "open"
        assert t["priority"] == "medium"
        assert t["relatedOrder"] == order.order_id
        assert t["relatedSupplier"] == "Kalinga Cements"
        assert t["messages"][0]["attachments"][0]["filename"] == "photo.jpg"
        assert {m.to[0] for m in mail.outbox} == {"support@aggrekart.com", "ravi@example.com"}

    def test_create_validation(self, auth_client, customer):
        resp = auth_client(customer).post("/api/support/tickets", {
            "subject": "Hi", "description": "short", "category": "nonsense",
        }, format="json")
        assert resp.status_code == 400
        assert set(resp.data["error"]["details"]) == {"subject", "description", "category"}

    def test_list_only_own_tickets(self, auth_client, customer, ticket, make_account):
        _service().create(make_account(), ticket_data(subject="Someone else"))
        resp = auth_client(customer).get("/api/support/tickets")
        assert resp.status_code == 200
        assert [row["ticketId"] for row in resp.data["data"]["tickets"]] == [ticket.ticket_id]
        assert resp.data["data"]["pagination"]["totalItems"] == 1

    def test_list_status_filter(self, auth_client, customer, ticket):
        resp = auth_client(customer).get("/api/support/tickets", {"status": "closed"})
        assert resp.data["data"]["tickets"] == []

    def test_other_customers_ticket_is_404(self, auth_client, ticket, make_account):
        resp = auth_client(make_account()).get(f"/api/support/tickets/{ticket.ticket_id}")
        assert resp.status_code == 404
        assert resp.data["message"] == "Ticket not found"

    def test_internal_messages_hidden_from_customer(self, auth_client, customer, staff, ticket):
        svc = _service()
        svc.admin_reply(staff, ticket.ticket_id, "Check with the depot first", is_internal=True)
        svc.admin_reply(staff, ticket.ticket_id, "We are looking into it")

        resp = auth_client(customer).get(f"/api/support/tickets/{ticket.ticket_id}")
        bodies = [m["message"] for m in resp.data["data"]["ticket"]["messages"]]
        assert "Check with the depot first" not in bodies
        assert "We are looking into it" in bodies

        resp = auth_client(staff).get(f"/api/support/admin/tickets/{ticket.ticket_id}")
        bodies = [m["message"] for m in resp.data["data"]["ticket"]["messages"]]
        assert "Check with the depot first" in bodies

    def test_reply_and_close(self, auth_client, customer, ticket):
        client = auth_client(customer)
        resp = client.post(f"/api/support/tickets/{ticket.ticket_id}/reply",
                           {"message": "Any update?"}, format="json")
        assert resp.status_code == 200
        assert resp.data["data"]["ticket"]["messages"][-1]["senderType"] == "customer"

        resp = client.put(f"/api/support/tickets/{ticket.ticket_id}/close")
        assert resp.status_code == 200
        assert resp.data["data"] == {"ticketId": ticket.ticket_id, "status": "closed"}

        resp = client.post(f"/api/support/tickets/{ticket.ticket_id}/reply",
                           {"message": "Hello?"}, format="json")
        assert resp.status_code == 409

    def test_rating_endpoint(self, auth_client, customer, ticket, staff):
        client = auth_client(customer)
        resp = client.post(f"/api/support/tickets/{ticket.ticket_id}/rating", {"rating": 5}, format="json")
        assert resp.status_code == 409

        _service().update_status(staff, ticket.ticket_id, Status.RESOLVED)
        resp = client.post(f"/api/support/tickets/{ticket.ticket_id}/rating",
                           {"rating": 5, "comment": "Great"}, format="json")
        assert resp.status_code == 200
        assert resp.data["data"]["rating"]["rating"] == 5

        resp = client.post(f"/api/support/tickets/{ticket.ticket_id}/rating", {"rating": 6}, format="json")
        assert resp.status_code == 400

    def test_anonymous_is_401(self, api_client, db):
        assert api_client.get("/api/support/tickets").status_code == 401


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION — staff console
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestStaffEndpoints:

    def test_customers_are_kept_out(self, auth_client, customer, ticket):
        resp = auth_client(customer).get("/api/support/admin/tickets")
        assert resp.status_code == 403
        assert resp.data["message"] == "Support staff only."

    def test_list_filters(self, auth_client, staff, customer, ticket):
        svc = _service()
        other = svc.create(customer, ticket_data(subject="Invoice GST mismatch", category="billing_inquiry",
                                                 priority="low"))
        svc.assign(staff, other.ticket_id, staff.pk)
        client = auth_client(staff)

        def ids(**params):
            resp = client.get("/api/support/admin/tickets", params)
            assert resp.status_code == 200
            return {row["ticketId"] for row in resp.data["data"]["tickets"]}

        assert ids() == {ticket.ticket_id, other.ticket_id}
        assert ids(status="in-progress") == {other.ticket_id}
        assert ids(priority="high") == {ticket.ticket_id}
        assert ids(category="billing_inquiry") == {other.ticket_id}
        assert ids(handledBy=str(staff.pk)) == {other.ticket_id}
        assert ids(search="invoice") == {other.ticket_id}
        assert ids(search="9000000001") == {ticket.ticket_id, other.ticket_id}

    def test_self_assign_by_default(self, auth_client, staff, ticket):
        resp = auth_client(staff).put(f"/api/support/admin/tickets/{ticket.ticket_id}/assign", {}, format="json")
        assert resp.status_code == 200
        t = resp.data["data"]["ticket"]
        assert t["handledBy"] == {"id": str(staff.pk), "name": "Asha Support"}
        assert t["status"] == "in-progress"

    def test_explicit_null_unassigns(self, auth_client, staff, ticket):
        client = auth_client(staff)
        client.put(f"/api/support/admin/tickets/{ticket.ticket_id}/assign", {}, format="json")
        resp = client.put(f"/api/support/admin/tickets/{ticket.ticket_id}/assign", {"adminId": None}, format="json")
        assert resp.data["data"]["ticket"]["handledBy"] is None

    def test_assign_to_unknown_admin(self, auth_client, staff, ticket, customer):
        resp = auth_client(staff).put(f"/api/support/admin/tickets/{ticket.ticket_id}/assign",
                                      {"adminId": str(customer.pk)}, format="json")
        assert resp.status_code == 404

    def test_status_endpoint(self, auth_client, staff, ticket):
        client = auth_client(staff)
        resp = client.put(f"/api/support/admin/tickets/{ticket.ticket_id}/status",
                          {"status": "resolved", "note": "Credited 2 bags"}, format="json")
        assert resp.status_code == 200
        t = resp.data["data"]["ticket"]
        assert t["status"] == "resolved"
        assert t["resolvedAt"] is not None
        assert t["adminNotes"][0]["note"] == "Credited 2 bags"

        resp = client.put(f"/api/support/admin/tickets/{ticket.ticket_id}/status",
                          {"status": "open"}, format="json")
        assert resp.status_code == 409
        assert resp.data["message"] == "Cannot move ticket from resolved to open"

    def test_admin_reply_emails_customer(self, auth_client, staff, ticket, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            resp = auth_client(staff).post(f"/api/support/admin/tickets/{ticket.ticket_id}/reply",
                                           {"message": "Two bags will reach you tomorrow."}, format="json")
        assert resp.status_code == 200
        assert [m.to for m in mail.outbox] == [["ravi@example.com"]]
        assert mail.outbox[0].subject == f"[{ticket.ticket_id}] New reply from support"

    def test_admin_note(self, auth_client, staff, ticket):
        resp = auth_client(staff).post(f"/api/support/admin/tickets/{ticket.ticket_id}/notes",
                                       {"note": "Customer is a repeat buyer"}, format="json")
        assert resp.status_code == 201
        assert resp.data["data"]["adminNotes"][0]["admin"]["name"] == "Asha Support"

    def test_analytics(self, auth_client, staff, customer, ticket):
        svc = _service()
        second = svc.create(customer, ticket_data(category="complaint"))
        svc.create(customer, ticket_data(category="complaint"))
        svc.update_status(staff, ticket.ticket_id, Status.RESOLVED)
        svc.rate(customer, ticket.ticket_id, 4)
        svc.update_status(staff, second.ticket_id, Status.CLOSED)

        resp = auth_client(staff).get("/api/support/admin/analytics")
        assert resp.status_code == 200
        data = resp.data["data"]
        assert data["overview"]["total"] == 3
        assert data["byCategory"] == {"complaint": 2, "delivery_issue": 1}
        assert data["resolutionRate"] == pytest.approx(66.67)
        assert data["performance"]["count"] == 1
        assert data["satisfaction"]["avgRating"] == 4.0

    def test_analytics_rejects_inverted_range(self, auth_client, staff):
        resp = auth_client(staff).get("/api/support/admin/analytics",
                                      {"startDate": "2024-02-01", "endDate": "2024-01-01"})
        assert resp.status_code == 400


# ═══════════════════════════════════════════════════════════════════════════════
# INTEGRATION — pilot contact
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestPilotSupport:

    def test_contact_creates_ticket(self, pilot_client, pilot):
        resp = pilot_client.post("/api/pilot/support/contact", {
            "subject": "App crash",
            "message": "The app closes when I scan the QR code.",
            "priority": "high",
        }, format="json")
        assert resp.status_code == 201
        assert resp.data["data"]["status"] == "open"
        t = Ticket.objects.get(ticket_id=resp.data["data"]["ticketId"])
        assert t.user_id == pilot.account.pk
        assert t.category == Ticket.Category.OTHER
        assert t.description == "The app closes when I scan the QR code."

    def test_contact_rejects_urgent_priority(self, pilot_client):
        resp = pilot_client.post("/api/pilot/support/contact", {
            "subject": "App crash", "message": "The app closes when I scan.", "priority": "urgent",
        }, format="json")
        assert resp.status_code == 400

    def test_contact_requires_pilot(self, auth_client, customer):
        resp = auth_client(customer).post("/api/pilot/support/contact", {
            "subject": "App crash", "message": "The app closes when I scan.",
        }, format="json")
        assert resp.status_code == 403

    def test_faqs_are_public(self, api_client):
        resp = api_client.get("/api/pilot/support/faqs")
        assert resp.status_code == 200
        assert len(resp.data["data"]["faqs"]) == 3
