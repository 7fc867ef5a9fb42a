"""Pilot identity: registration, OTP login, live state, profile and staff approval."""

import logging
from django.conf import settings
from rest_framework import generics, permissions, status
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from aggrekart.exceptions import ForbiddenError
from aggrekart.responses import ok
from apps.orders.models import Order
from apps.orders.serializers import DeliverySummarySerializer

from .identity import PilotIdentityService
from .models import Pilot
from .permissions import IsPilot, IsStaffMember, pilot_for
from .service import PilotDirectory
from . import serializers as sz

logger = logging.getLogger("aggrekart.pilots")
identity_service = PilotIdentityService()
directory = PilotDirectory()


def _otp_sent(code: str) -> dict:
    data = {"otpSent": True}
    if settings.PILOT_OTP_ECHO:
        data["otp"] = code
    return data


def _login_payload(pilot, token: str) -> dict:
    return {"pilot": sz.PilotPublicSerializer(pilot).data, "token": token}


# ── POST /api/pilot/register ──────────────────────────────────────────────────
@extend_schema(tags=["Pilot Auth"], summary="Register as a delivery pilot (pending approval)")
class PilotRegisterView(APIView):
    permission_classes     = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = sz.PilotRegisterSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot = directory.register(ser.validated_data)
        return ok(
            {"pilotId": pilot.pilot_id, "status": "pending_approval"},
            message="Pilot registration submitted successfully. You will be notified once approved.",
            status=status.HTTP_201_CREATED,
        )


# ── POST /api/pilot/login ─────────────────────────────────────────────────────
@extend_schema(tags=["Pilot Auth"], summary="Request an OTP (no otp field) or verify it (with otp)")
class PilotLoginView(APIView):
    permission_classes     = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = sz.PilotLoginSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        phone = ser.validated_data["phoneNumber"]
        otp = ser.validated_data.get("otp")

        if not otp:
            code = identity_service.request_otp(phone)
            return ok(_otp_sent(code), message="OTP sent successfully")

        pilot, token = identity_service.verify_otp(phone, otp)
        return ok(_login_payload(pilot, token), message="Login successful")


# ── POST /api/pilot/login/request-otp ─────────────────────────────────────────
@extend_schema(tags=["Pilot Auth"], summary="Send a login OTP to an approved pilot")
class OTPRequestView(APIView):
    permission_classes     = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = sz.OTPRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        code = identity_service.request_otp(ser.validated_data["phoneNumber"])
        return ok(_otp_sent(code), message="OTP sent successfully")


# ── POST /api/pilot/login/verify-otp ──────────────────────────────────────────
@extend_schema(tags=["Pilot Auth"], summary="Exchange a login OTP for a 30-day token")
class OTPVerifyView(APIView):
    permission_classes     = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = sz.OTPVerifySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot, token = identity_service.verify_otp(ser.validated_data["phoneNumber"], ser.validated_data["otp"])
        return ok(_login_payload(pilot, token), message="Login successful")


# ── POST /api/pilot/update-location ───────────────────────────────────────────
@extend_schema(tags=["Pilot"], summary="Report the pilot's current GPS position")
class UpdateLocationView(APIView):
    permission_classes = [IsPilot]

    def post(self, request):
        ser = sz.LocationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot = directory.update_location(
            pilot_for(request.user), ser.validated_data["latitude"], ser.validated_data["longitude"],
        )
        return ok({
            "location": {
                "latitude":    pilot.current_lat,
                "longitude":   pilot.current_lng,
                "lastUpdated": pilot.location_updated_at,
            }
        }, message="Location updated successfully")


# ── POST /api/pilot/availability ──────────────────────────────────────────────
@extend_schema(tags=["Pilot"], summary="Go on or off duty")
class AvailabilityView(APIView):
    permission_classes = [IsPilot]

    def post(self, request):
        ser = sz.AvailabilitySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot = directory.update_availability(pilot_for(request.user), ser.validated_data["isAvailable"])
        return ok({"isAvailable": pilot.is_available}, message="Availability updated")


# ── GET /api/pilot/profile/<pilot_id> ─────────────────────────────────────────
@extend_schema(tags=["Pilot"], summary="Pilot profile with recent deliveries")
class PilotProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pilot_id):
        me = pilot_for(request.user)
        if not request.user.is_support_staff and (me is None or me.pilot_id != pilot_id):
            raise ForbiddenError("You can only view your own profile")

        pilot = directory.get(pilot_id)
        recent = (
            Order.objects.filter(assigned_pilot=pilot, status=Order.Status.DELIVERED)
            .order_by("-delivered_at")[:10]
        )
        return ok({
            "pilot":            sz.PilotProfileSerializer(pilot).data,
            "recentDeliveries": DeliverySummarySerializer(recent, many=True).data,
            "stats": {
                "totalDeliveries": pilot.total_deliveries,
                "rating":          {"average": pilot.rating_average, "count": pilot.rating_count},
                "documentsValid":  pilot.documents_valid,
            },
        })


# ── GET /api/admin/pilots/pending ─────────────────────────────────────────────
@extend_schema(tags=["Pilot Admin"], summary="Pilots awaiting document review")
class PendingPilotListView(generics.ListAPIView):
    serializer_class   = sz.PendingPilotSerializer
    permission_classes = [IsStaffMember]
    filter_backends    = []

    def get_queryset(self):
        return (
            Pilot.objects.select_related("account")
            .filter(is_approved=False, rejection_reason="")
            .order_by("created_at")
        )


# ── POST /api/admin/pilots/<pilot_id>/approve ─────────────────────────────────
@extend_schema(tags=["Pilot Admin"], summary="Approve a pilot and activate the account")
class ApprovePilotView(APIView):
    permission_classes = [IsStaffMember]

    def post(self, request, pilot_id):
        pilot = directory.approve(pilot_id, staff=request.user)
        return ok({"pilotId": pilot.pilot_id, "status": "approved"}, message="Pilot approved")


# ── POST /api/admin/pilots/<pilot_id>/reject ──────────────────────────────────
@extend_schema(tags=["Pilot Admin"], summary="Reject a pilot and deactivate the account")
class RejectPilotView(APIView):
    permission_classes = [IsStaffMember]

    def post(self, request, pilot_id):
        ser = sz.RejectPilotSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pilot = directory.reject(pilot_id, ser.validated_data["reason"], staff=request.user)
        return ok({"pilotId": pilot.pilot_id, "status": "rejected"}, message="Pilot rejected")
