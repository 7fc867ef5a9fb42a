"""Pilot identity serializers. Request payloads and responses use the mobile app's camelCase keys."""

import re
from django.utils import timezone
from rest_framework import serializers

from .identity import PILOT_PHONE_PATTERN
from .models import Pilot

REGISTRATION_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z]{2}[0-9]{4}$")


# ── Validators ────────────────────────────────────────────────────────────────
def validate_pilot_phone(value):
    if not PILOT_PHONE_PATTERN.match(value):
        raise serializers.ValidationError("Please provide a valid phone number")


def validate_registration(value):
    normalised = value.replace(" ", "").replace("-", "").upper()
    if not REGISTRATION_PATTERN.match(normalised):
        raise serializers.ValidationError("Invalid vehicle registration number (e.g. KA01AB1234).")


# ── Registration ──────────────────────────────────────────────────────────────
class VehicleDetailsSerializer(serializers.Serializer):
    registrationNumber = serializers.CharField(max_length=15, validators=[validate_registration])
    vehicleType        = serializers.ChoiceField(choices=Pilot.VehicleType.choices)
    capacity           = serializers.DecimalField(max_digits=4, decimal_places=1, min_value=1, max_value=50)
    insuranceValid     = serializers.BooleanField(required=False, default=False)
    insuranceExpiry    = serializers.DateField(required=False, allow_null=True)
    rcValid            = serializers.BooleanField(required=False, default=False)
    rcExpiry           = serializers.DateField(required=False, allow_null=True)


class DrivingLicenseSerializer(serializers.Serializer):
    number    = serializers.CharField(max_length=20)
    validTill = serializers.DateField()

    def validate_validTill(self, value):
        if value <= timezone.localdate():
            raise serializers.ValidationError("Driving licence has expired.")
        return value


class EmergencyContactSerializer(serializers.Serializer):
    name        = serializers.CharField(max_length=120, required=False, allow_blank=True)
    phoneNumber = serializers.CharField(max_length=15, required=False, allow_blank=True)
    relation    = serializers.CharField(max_length=40, required=False, allow_blank=True)


class PilotRegisterSerializer(serializers.Serializer):
    name             = serializers.CharField(min_length=2, max_length=120)
    phoneNumber      = serializers.CharField(validators=[validate_pilot_phone])
    email            = serializers.EmailField(required=False, allow_blank=True)
    vehicleDetails   = VehicleDetailsSerializer()
    drivingLicense   = DrivingLicenseSerializer()
    emergencyContact = EmergencyContactSerializer(required=False)
    address          = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city             = serializers.CharField(max_length=80, required=False, allow_blank=True)

    def validate(self, data):
        """Flatten into PilotDirectory.register's keyword layout."""
        vehicle   = data["vehicleDetails"]
        licence   = data["drivingLicense"]
        emergency = data.get("emergencyContact") or {}
        return {
            "full_name":           data["name"].strip(),
            "phone_number":        data["phoneNumber"],
            "email":               data.get("email", ""),
            "registration_number": vehicle["registrationNumber"],
            "vehicle_type":        vehicle["vehicleType"],
            "capacity_tons":       vehicle["capacity"],
            "insurance_valid":     vehicle.get("insuranceValid", False),
            "insurance_expiry":    vehicle.get("insuranceExpiry"),
            "rc_valid":            vehicle.get("rcValid", False),
            "rc_expiry":           vehicle.get("rcExpiry"),
            "license_number":      licence["number"].strip().upper(),
            "license_valid_till":  licence["validTill"],
            "emergency_contact_name":     emergency.get("name", ""),
            "emergency_contact_phone":    emergency.get("phoneNumber", ""),
            "emergency_contact_relation": emergency.get("relation", ""),
            "address":             data.get("address", ""),
            "city":                data.get("city", ""),
        }


# ── Login ─────────────────────────────────────────────────────────────────────
class OTPRequestSerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(validators=[validate_pilot_phone])


class OTPVerifySerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(validators=[validate_pilot_phone])
    otp         = serializers.RegexField(r"^\d{6}$", error_messages={"invalid": "Please provide a valid 6-digit OTP"})


class PilotLoginSerializer(serializers.Serializer):
    """Single login endpoint: no `otp` requests one, with `otp` verifies it."""
    phoneNumber = serializers.CharField(validators=[validate_pilot_phone])
    otp         = serializers.RegexField(r"^\d{6}$", required=False,
                                         error_messages={"invalid": "Please provide a valid 6-digit OTP"})


# ── Live state ────────────────────────────────────────────────────────────────
class LocationSerializer(serializers.Serializer):
    latitude  = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class AvailabilitySerializer(serializers.Serializer):
    isAvailable = serializers.BooleanField()


class RejectPilotSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


# ── Responses ─────────────────────────────────────────────────────────────────
class PilotPublicSerializer(serializers.ModelSerializer):
    """What the pilot app keeps after login."""
    pilotId         = serializers.CharField(source="pilot_id")
    name            = serializers.CharField()
    phoneNumber     = serializers.CharField(source="phone_number")
    vehicleDetails  = serializers.SerializerMethodField()
    isAvailable     = serializers.BooleanField(source="is_available")
    currentOrder    = serializers.CharField(source="current_order.order_id", default=None)
    totalDeliveries = serializers.IntegerField(source="total_deliveries")
    rating          = serializers.SerializerMethodField()

    class Meta:
        model  = Pilot
        fields = [
            "pilotId", "name", "phoneNumber", "vehicleDetails",
            "isAvailable", "currentOrder", "totalDeliveries", "rating",
        ]

    def get_vehicleDetails(self, obj):
        return {
            "registrationNumber": obj.registration_number,
            "vehicleType":        obj.vehicle_type,
            "capacity":           float(obj.capacity_tons),
            "insuranceValid":     obj.insurance_valid,
            "rcValid":            obj.rc_valid,
        }

    def get_rating(self, obj):
        return {"average": obj.rating_average, "count": obj.rating_count}


class PilotProfileSerializer(PilotPublicSerializer):
    email            = serializers.EmailField(source="account.email")
    drivingLicense   = serializers.SerializerMethodField()
    emergencyContact = serializers.SerializerMethodField()
    currentLocation  = serializers.SerializerMethodField()
    isApproved       = serializers.BooleanField(source="is_approved")
    documentsValid   = serializers.BooleanField(source="documents_valid")
    createdAt        = serializers.DateTimeField(source="created_at")

    class Meta(PilotPublicSerializer.Meta):
        fields = PilotPublicSerializer.Meta.fields + [
            "email", "drivingLicense", "emergencyContact", "currentLocation",
            "isApproved", "documentsValid", "createdAt",
        ]

    def get_drivingLicense(self, obj):
        return {"number": obj.license_number, "validTill": obj.license_valid_till, "isValid": obj.license_is_valid}

    def get_emergencyContact(self, obj):
        return {
            "name":        obj.emergency_contact_name,
            "phoneNumber": obj.emergency_contact_phone,
            "relation":    obj.emergency_contact_relation,
        }

    def get_currentLocation(self, obj):
        if not obj.has_location:
            return None
        return {"latitude": obj.current_lat, "longitude": obj.current_lng, "lastUpdated": obj.location_updated_at}


class PendingPilotSerializer(serializers.ModelSerializer):
    """Staff review queue row."""
    name  = serializers.CharField(source="account.full_name")
    phone = serializers.CharField(source="account.phone")

    class Meta:
        model  = Pilot
        fields = [
            "pilot_id", "name", "phone", "registration_number", "vehicle_type", "capacity_tons",
            "license_number", "license_valid_till", "insurance_valid", "rc_valid",
            "rejection_reason", "created_at",
        ]
