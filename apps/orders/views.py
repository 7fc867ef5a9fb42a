"""Pilot order API: scan, accept, journey, delivery, nearby search and reporting."""

import logging
from django.conf import settings
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from aggrekart.exceptions import BadRequestError
from aggrekart.responses import ok, pagination_block
from apps.authentication.permissions import IsPilot, IsStaffMember, pilot_for
from apps.authentication.serializers import PilotPublicSerializer

from .nearby import NearbyOrderFinder
from .service import AssignmentService
from . import reports
from . import serializers as sz

logger = logging.getLogger("aggrekart.orders")
assignment_service = AssignmentService()


class PilotAPIView(APIView):
    permission_classes = [IsPilot]

    @property
    def pilot(self):
        if not hasattr(self, "_pilot"):
            self._pilot = pilot_for(self.request.user)
        return self._pilot


# ── POST /api/pilot/scan-order ────────────────────────────────────────────────
@extend_schema(tags=["Pilot Orders"], summary="Look up a pickup-ready order by its ID or QR code")
class ScanOrderView(PilotAPIView):

    def post(self, request):
        ser = sz.OrderIdSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot = self.pilot
        order = assignment_service.scan_order(pilot, ser.validated_data["orderId"])
        return ok({"order": sz.OrderScanSerializer(order, context={"pilot": pilot}).data})


# ── POST /api/pilot/accept-order ──────────────────────────────────────────────
@extend_schema(tags=["Pilot Orders"], summary="Claim an order; one pilot per order, one order per pilot")
class AcceptOrderView(PilotAPIView):

    def post(self, request):
        ser = sz.AcceptOrderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot = self.pilot
        claimed_id = ser.validated_data.get("pilotId")
        if claimed_id and claimed_id != pilot.pilot_id:
            raise BadRequestError("Pilot ID mismatch")

        order = assignment_service.accept_order(pilot, ser.validated_data["orderId"])
        return ok({
            "order": sz.OrderSummarySerializer(order).data,
            "driverDetails": {
                "name":          pilot.name,
                "phoneNumber":   pilot.phone_number,
                "vehicleNumber": pilot.registration_number,
            },
        }, message="Order accepted successfully")


# ── POST /api/pilot/start-journey ─────────────────────────────────────────────
@extend_schema(tags=["Pilot Orders"], summary="Mark the journey to the drop point as started")
class StartJourneyView(PilotAPIView):

    def post(self, request):
        ser = sz.StartJourneySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        location = ser.validated_data.get("currentLocation") or {}
        order = assignment_service.start_journey(
            self.pilot, ser.validated_data["orderId"],
            latitude=location.get("latitude"), longitude=location.get("longitude"),
        )
        return ok({
            "estimatedDeliveryTime": order.estimated_delivery_time,
            "customerLocation": {"latitude": order.delivery_lat, "longitude": order.delivery_lng},
            "journeyStartedAt": order.journey_started_at,
        }, message="Journey started successfully")


# ── POST /api/pilot/complete-delivery ─────────────────────────────────────────
@extend_schema(tags=["Pilot Orders"], summary="Complete a delivery with the customer's OTP")
class CompleteDeliveryView(PilotAPIView):

    def post(self, request):
        ser = sz.CompleteDeliverySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        order, pilot = assignment_service.complete_delivery(
            self.pilot, d["orderId"], d["deliveryOTP"],
            notes=d.get("deliveryNotes", ""), rating=d.get("customerRating"),
        )
        return ok({
            "order": {"orderId": order.order_id, "status": order.status, "deliveredAt": order.delivered_at},
            "pilot": {
                "totalDeliveries": pilot.total_deliveries,
                "rating":          {"average": pilot.rating_average, "count": pilot.rating_count},
                "isAvailable":     pilot.is_available,
            },
        }, message="Delivery completed successfully")


# ── GET /api/pilot/available-nearby-orders ────────────────────────────────────
@extend_schema(
    tags=["Pilot Orders"],
    summary="Unassigned dispatched orders near the pilot, nearest first",
    parameters=[
        OpenApiParameter("radius", float, description="km, default 15, capped at 50"),
        OpenApiParameter("page", int),
        OpenApiParameter("limit", int),
        OpenApiParameter("orderType", str, enum=["urgent", "normal"]),
    ],
)
class NearbyOrdersView(PilotAPIView):

    def get(self, request):
        ser = sz.NearbyQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        q = ser.validated_data
        result = NearbyOrderFinder().find(
            self.pilot,
            radius_km=q.get("radius"),
            page=q["page"],
            limit=q["limit"],
            order_type=q.get("orderType"),
        )
        speed = settings.AVERAGE_SPEED_KMPH
        return ok({
            "orders":     [sz.nearby_order(o, dist, prio, speed) for o, dist, prio in result.orders],
            "pagination": result.pagination,
            "summary":    result.summary,
            "filters":    result.filters,
        })


# ── GET /api/pilot/stats ──────────────────────────────────────────────────────
@extend_schema(tags=["Pilot Reports"], summary="Lifetime and monthly delivery statistics")
class PilotStatsView(PilotAPIView):

    def get(self, request):
        pilot = self.pilot
        return ok({
            "pilot":            {**PilotPublicSerializer(pilot).data, "joinedDate": pilot.created_at},
            "stats":            reports.pilot_stats(pilot),
            "recentDeliveries": sz.DeliverySummarySerializer(reports.recent_deliveries(pilot), many=True).data,
            "performance": {
                "averageRating": pilot.rating_average,
                "totalRatings":  pilot.rating_count,
            },
        })


# ── GET /api/pilot/dashboard/stats ────────────────────────────────────────────
@extend_schema(tags=["Pilot Reports"], summary="Today's numbers and the active order")
class DashboardStatsView(PilotAPIView):

    def get(self, request):
        pilot = self.pilot
        current = pilot.current_order
        return ok({
            "todayStats": reports.today_stats(pilot),
            "pilotInfo": {
                "name":            pilot.name,
                "vehicleNumber":   pilot.registration_number,
                "rating":          pilot.rating_average,
                "totalDeliveries": pilot.total_deliveries,
                "isAvailable":     pilot.is_available,
            },
            "currentOrder": sz.OrderSummarySerializer(current).data if current else None,
        })


# ── GET /api/pilot/delivery-history ───────────────────────────────────────────
@extend_schema(
    tags=["Pilot Reports"],
    summary="Paginated delivered/cancelled orders",
    parameters=[
        OpenApiParameter("status", str, enum=["delivered", "cancelled"]),
        OpenApiParameter("page", int),
        OpenApiParameter("limit", int),
    ],
)
class DeliveryHistoryView(PilotAPIView):

    def get(self, request):
        ser = sz.HistoryQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        q = ser.validated_data
        page, limit = q["page"], q["limit"]

        qs = reports.delivery_history(self.pilot, q.get("status"))
        total = qs.count()
        window = qs[(page - 1) * limit: page * limit]
        return ok({
            "deliveries": sz.DeliverySummarySerializer(window, many=True).data,
            "pagination": pagination_block(page, limit, total),
        })


# ── POST /api/admin/orders/<order_id>/cancel ──────────────────────────────────
@extend_schema(tags=["Order Admin"], summary="Cancel an order before its journey starts and release the pilot")
class CancelOrderView(APIView):
    permission_classes = [IsStaffMember]

    def post(self, request, order_id):
        ser = sz.CancelOrderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order = assignment_service.cancel_order(request.user, order_id, ser.validated_data["reason"])
        return ok({
            "orderId":       order.order_id,
            "status":        order.status,
            "releasedPilot": order.assigned_pilot.pilot_id if order.assigned_pilot_id else None,
        }, message="Order cancelled")
