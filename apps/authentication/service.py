"""
PilotDirectory: the registry of delivery pilots.

Flow:  register  →  approve | reject  (staff)  →  update_location / update_availability  (pilot)
"""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from aggrekart.exceptions import BadRequestError, ConflictError, NotFoundError, ValidationError
from aggrekart.sequences import create_with_next_id
from apps.authentication.models import Account, Pilot
from apps.notifications.service import NotificationService
from apps.orders.geo import valid_coordinates
from apps.orders.geocoding import GeocodingConnector

logger = logging.getLogger("aggrekart.pilots")


def normalise_registration(value: str) -> str:
    return (value or "").replace(" ", "").replace("-", "").upper()


class PilotDirectory:
    """Dependencies are injected so they can be swapped in tests."""

    def __init__(self, notification_service=None, geocoder=None):
        self.notifier = notification_service or NotificationService()
        self.geocoder = geocoder or GeocodingConnector()

    @staticmethod
    def get(pilot_id: str) -> Pilot:
        pilot = (
            Pilot.objects.select_related("account", "current_order")
            .filter(pilot_id=pilot_id)
            .first()
        )
        if pilot is None:
            raise NotFoundError("Pilot not found")
        return pilot

    # ── Registration ──────────────────────────────────────────────────────────
    def register(self, data: dict) -> Pilot:
        """
        Create an inactive account plus an unapproved pilot.
        `data` is serializer-validated; uniqueness is re-checked here and by the DB constraints.
        The base address is geocoded before the transaction opens.
        """
        phone = data["phone_number"]
        registration = normalise_registration(data["registration_number"])

        errors = {}
        if Account.objects.filter(phone=phone).exists():
            errors["phoneNumber"] = ["A pilot with this phone number already exists."]
        if Pilot.objects.filter(registration_number=registration).exists():
            errors["vehicleRegistrationNumber"] = ["This vehicle is already registered."]
        if Pilot.objects.filter(license_number=data["license_number"]).exists():
            errors["drivingLicense"] = ["This driving licence is already registered."]
        if errors:
            raise ValidationError(errors)

        location = {}
        address = data.get("address")
        if address:
            resolved = self.geocoder.geocode(address, data.get("city", ""))
            location = {
                "current_lat":         resolved["latitude"],
                "current_lng":         resolved["longitude"],
                "location_updated_at": timezone.now(),
            }

        try:
            with transaction.atomic():
                account = Account.objects.create_user(
                    phone=phone,
                    full_name=data["full_name"],
                    email=data.get("email", ""),
                    role=Account.Role.PILOT,
                    is_active=False,
                )
                pilot = create_with_next_id(
                    Pilot, "pilot_id", "PIL",
                    account             = account,
                    registration_number = registration,
                    vehicle_type        = data["vehicle_type"],
                    capacity_tons       = data["capacity_tons"],
                    insurance_valid     = data.get("insurance_valid", False),
                    insurance_expiry    = data.get("insurance_expiry"),
                    rc_valid            = data.get("rc_valid", False),
                    rc_expiry           = data.get("rc_expiry"),
                    license_number      = data["license_number"],
                    license_valid_till  = data["license_valid_till"],
                    emergency_contact_name     = data.get("emergency_contact_name", ""),
                    emergency_contact_phone    = data.get("emergency_contact_phone", ""),
                    emergency_contact_relation = data.get("emergency_contact_relation", ""),
                    is_approved         = False,
                    is_available        = False,
                    **location,
                )
                transaction.on_commit(lambda: self.notifier.queue_sms(
                    phone,
                    f"Aggrekart: Registration received. Your pilot ID is {pilot.pilot_id}. "
                    f"We will notify you once your documents are approved.",
                ))
        except IntegrityError:
            # Lost a race against a concurrent registration with the same phone/vehicle
            raise ValidationError({"phoneNumber": ["Pilot with these details already exists."]})

        logger.info("Pilot %s registered for %s (%s)", pilot.pilot_id, phone, registration)
        return pilot

    # ── Approval (staff) ──────────────────────────────────────────────────────
    @transaction.atomic
    def approve(self, pilot_id: str, staff=None) -> Pilot:
        pilot = self.get(pilot_id)
        if pilot.is_approved:
            raise ConflictError("Pilot is already approved")

        pilot.is_approved = True
        pilot.is_available = True
        pilot.approved_at = timezone.now()
        pilot.rejection_reason = ""
        pilot.save(update_fields=["is_approved", "is_available", "approved_at", "rejection_reason", "updated_at"])
        Account.objects.filter(pk=pilot.account_id).update(is_active=True)

        phone = pilot.phone_number
        transaction.on_commit(lambda: self.notifier.queue_sms(
            phone, f"Aggrekart: You are approved as a delivery pilot ({pilot.pilot_id}). Log in to start.",
        ))
        logger.info("Pilot %s approved by %s", pilot.pilot_id, getattr(staff, "phone", "system"))
        return pilot

    @transaction.atomic
    def reject(self, pilot_id: str, reason: str, staff=None) -> Pilot:
        pilot = self.get(pilot_id)
        if pilot.current_order_id is not None:
            raise ConflictError("Pilot has an order in progress")

        pilot.is_approved = False
        pilot.is_available = False
        pilot.approved_at = None
        pilot.rejection_reason = reason
        pilot.save(update_fields=["is_approved", "is_available", "approved_at", "rejection_reason", "updated_at"])
        Account.objects.filter(pk=pilot.account_id).update(is_active=False)

        phone = pilot.phone_number
        transaction.on_commit(lambda: self.notifier.queue_sms(
            phone, f"Aggrekart: Your pilot registration was not approved. Reason: {reason}",
        ))
        logger.info("Pilot %s rejected by %s: %s", pilot.pilot_id, getattr(staff, "phone", "system"), reason)
        return pilot

    # ── Live state (pilot) ────────────────────────────────────────────────────
    def update_location(self, pilot: Pilot, latitude, longitude) -> Pilot:
        if not valid_coordinates(latitude, longitude):
            raise BadRequestError("Invalid coordinates")
        pilot.current_lat = float(latitude)
        pilot.current_lng = float(longitude)
        pilot.location_updated_at = timezone.now()
        pilot.save(update_fields=["current_lat", "current_lng", "location_updated_at", "updated_at"])
        logger.debug("Pilot %s at (%s, %s)", pilot.pilot_id, latitude, longitude)
        return pilot

    @transaction.atomic
    def update_availability(self, pilot: Pilot, is_available: bool) -> Pilot:
        locked = Pilot.objects.select_for_update().get(pk=pilot.pk)
        if locked.current_order_id is not None:
            raise ConflictError("Complete your current order before changing availability")
        locked.is_available = bool(is_available)
        locked.save(update_fields=["is_available", "updated_at"])
        pilot.is_available = locked.is_available
        logger.info("Pilot %s availability → %s", pilot.pilot_id, locked.is_available)
        return locked
