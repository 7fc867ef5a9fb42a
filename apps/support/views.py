"""Support tickets: the customer desk, the staff console and the pilot contact form."""

import logging
from datetime import datetime, time, timedelta

from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, permissions, status
from rest_framework.filters import OrderingFilter
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from aggrekart.responses import EnvelopePagination, ok
from apps.authentication.permissions import IsPilot, IsStaffMember

from .filters import TicketFilter
from .models import Ticket
from .service import TicketService
from . import serializers as sz
from . import stats

logger = logging.getLogger("aggrekart.support")
ticket_service = TicketService()

PILOT_FAQS = [
    {
        "question": "How do I accept an order?",
        "answer":   "Scan the QR code on the order or enter the order ID, review the details and tap Accept.",
    },
    {
        "question": "What if the customer is not available?",
        "answer":   "Call the customer using the number in the order details. If unreachable, contact support.",
    },
    {
        "question": "How is my payment calculated?",
        "answer":   "You earn a share of the transport charge of every delivery you complete.",
    },
]


class TicketPagination(EnvelopePagination):
    results_key = "tickets"


def _attachments(validated) -> list:
    return list(validated.get("attachments") or [])


# ── Customer desk ─────────────────────────────────────────────────────────────

# ── GET/POST /api/support/tickets ─────────────────────────────────────────────
@extend_schema(tags=["Support"], summary="List my tickets or open a new one")
class TicketListCreateView(generics.ListAPIView):
    serializer_class   = sz.TicketListSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class   = TicketPagination
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status", "category"]

    def get_queryset(self):
        return Ticket.objects.filter(user=self.request.user).select_related("handled_by", "related_order")

    def post(self, request):
        ser = sz.TicketCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = ticket_service.create(request.user, ser.validated_data)
        return ok(
            {"ticket": sz.TicketDetailSerializer(ticket).data},
            message="Support ticket created successfully",
            status=status.HTTP_201_CREATED,
        )


# ── GET /api/support/tickets/<ticket_id> ──────────────────────────────────────
@extend_schema(tags=["Support"], summary="One of my tickets with its public thread")
class TicketDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, ticket_id):
        ticket = ticket_service.get_for_customer(request.user, ticket_id)
        return ok({"ticket": sz.TicketDetailSerializer(ticket).data})


# ── POST /api/support/tickets/<ticket_id>/reply ───────────────────────────────
@extend_schema(tags=["Support"], summary="Reply on my ticket")
class TicketReplyView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, ticket_id):
        ser = sz.ReplySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = ticket_service.reply_as_customer(
            request.user, ticket_id, ser.validated_data["message"], _attachments(ser.validated_data),
        )
        return ok({"ticket": sz.TicketDetailSerializer(ticket).data}, message="Reply added successfully")


# ── PUT /api/support/tickets/<ticket_id>/close ────────────────────────────────
@extend_schema(tags=["Support"], summary="Close my ticket")
class TicketCloseView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, ticket_id):
        ticket = ticket_service.close_by_customer(request.user, ticket_id)
        return ok({"ticketId": ticket.ticket_id, "status": ticket.status}, message="Ticket closed successfully")


# ── POST /api/support/tickets/<ticket_id>/rating ──────────────────────────────
@extend_schema(tags=["Support"], summary="Rate the support received on a resolved ticket")
class TicketRatingView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, ticket_id):
        ser = sz.RatingSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = ticket_service.rate(
            request.user, ticket_id, ser.validated_data["rating"], ser.validated_data["comment"],
        )
        return ok(
            {"rating": {"rating": ticket.rating, "comment": ticket.rating_comment, "ratedAt": ticket.rated_at}},
            message="Thank you for your feedback",
        )


# ── Staff console ─────────────────────────────────────────────────────────────

# ── GET /api/support/admin/tickets ────────────────────────────────────────────
@extend_schema(tags=["Support Admin"], summary="All tickets, filterable by status, priority, category, assignee")
class AdminTicketListView(generics.ListAPIView):
    serializer_class   = sz.TicketListSerializer
    permission_classes = [IsStaffMember]
    pagination_class   = TicketPagination
    filter_backends    = [DjangoFilterBackend, OrderingFilter]
    filterset_class    = TicketFilter
    ordering_fields    = ["created_at", "last_activity_at", "priority"]

    def get_queryset(self):
        return Ticket.objects.select_related("user", "handled_by", "related_order")


# ── GET /api/support/admin/tickets/<ticket_id> ────────────────────────────────
@extend_schema(tags=["Support Admin"], summary="Full ticket including internal messages and notes")
class AdminTicketDetailView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request, ticket_id):
        return ok({"ticket": sz.StaffTicketDetailSerializer(ticket_service.get(ticket_id)).data})


# ── PUT /api/support/admin/tickets/<ticket_id>/assign ─────────────────────────
@extend_schema(tags=["Support Admin"], summary="Assign a ticket to a staff member (omit adminId to take it)")
class AdminAssignView(APIView):
    permission_classes = [IsStaffMember]

    def put(self, request, ticket_id):
        ser = sz.AssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        admin_id = ser.validated_data.get("adminId", request.user.pk)
        ticket = ticket_service.assign(request.user, ticket_id, admin_id)
        return ok({"ticket": sz.StaffTicketDetailSerializer(ticket).data}, message="Ticket assigned successfully")


# ── PUT /api/support/admin/tickets/<ticket_id>/status ─────────────────────────
@extend_schema(tags=["Support Admin"], summary="Move a ticket along its lifecycle")
class AdminStatusView(APIView):
    permission_classes = [IsStaffMember]

    def put(self, request, ticket_id):
        ser = sz.StatusChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = ticket_service.update_status(
            request.user, ticket_id, ser.validated_data["status"], ser.validated_data["note"],
        )
        return ok({"ticket": sz.StaffTicketDetailSerializer(ticket).data}, message="Ticket status updated")


# ── POST /api/support/admin/tickets/<ticket_id>/reply ─────────────────────────
@extend_schema(tags=["Support Admin"], summary="Reply to the customer, or post an internal message")
class AdminReplyView(APIView):
    permission_classes = [IsStaffMember]

    def post(self, request, ticket_id):
        ser = sz.AdminReplySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        ticket = ticket_service.admin_reply(
            request.user, ticket_id, d["message"], _attachments(d), is_internal=d["isInternal"],
        )
        return ok({"ticket": sz.StaffTicketDetailSerializer(ticket).data}, message="Reply added successfully")


# ── POST /api/support/admin/tickets/<ticket_id>/notes ─────────────────────────
@extend_schema(tags=["Support Admin"], summary="Add a staff-only note")
class AdminNoteView(APIView):
    permission_classes = [IsStaffMember]

    def post(self, request, ticket_id):
        ser = sz.AdminNoteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = ticket_service.add_admin_note(request.user, ticket_id, ser.validated_data["note"])
        return ok(
            {"adminNotes": sz.NoteSerializer(ticket.admin_notes.select_related("admin"), many=True).data},
            message="Note added successfully",
            status=status.HTTP_201_CREATED,
        )


# ── GET /api/support/admin/analytics ──────────────────────────────────────────
@extend_schema(tags=["Support Admin"], summary="Ticket analytics for a date range (default: last 30 days)")
class AnalyticsView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request):
        ser = sz.AnalyticsQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        tz = timezone.get_current_timezone()
        today = timezone.localdate()
        start_day = ser.validated_data.get("startDate") or today - timedelta(days=30)
        end_day = ser.validated_data.get("endDate") or today
        start = timezone.make_aware(datetime.combine(start_day, time.min), tz)
        end = timezone.make_aware(datetime.combine(end_day, time.max), tz)
        return ok(stats.analytics(start, end))


# ── Pilot contact ─────────────────────────────────────────────────────────────

# ── POST /api/pilot/support/contact ───────────────────────────────────────────
@extend_schema(tags=["Pilot Support"], summary="Raise a support ticket from the pilot app")
class PilotContactView(APIView):
    permission_classes = [IsPilot]

    def post(self, request):
        ser = sz.PilotContactSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ticket = ticket_service.create(request.user, ser.validated_data)
        return ok(
            {"ticketId": ticket.ticket_id, "status": ticket.status},
            message="Support request submitted successfully",
            status=status.HTTP_201_CREATED,
        )


# ── GET /api/pilot/support/faqs ───────────────────────────────────────────────
@extend_schema(tags=["Pilot Support"], summary="Frequently asked questions for pilots")
class PilotFAQView(APIView):
    permission_classes     = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request):
        return ok({"faqs": PILOT_FAQS})
