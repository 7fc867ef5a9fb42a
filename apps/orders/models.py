"""
Order models — the slice of a marketplace order the pilot workflow reads and writes.

A DISPATCHED order with no assigned pilot is open for pickup. From the pilot's side it
then moves  unassigned → assigned → in_transit → delivered  (or cancelled by ops).
"""

import random
import string
import time
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator


def generate_order_id() -> str:
    """AGK<epoch millis><3 base36 chars>, e.g. AGK1718000000000X7Q."""
    chars = string.ascii_uppercase + string.digits
    return f"AGK{int(time.time() * 1000)}{''.join(random.choices(chars, k=3))}"


class Supplier(models.Model):
    """Material supplier the pilot picks up from."""
    account        = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                          null=True, blank=True, related_name="supplier")
    company_name   = models.CharField(max_length=150)
    contact_number = models.CharField(max_length=15)
    email          = models.EmailField(blank=True)
    address        = models.CharField(max_length=255)
    city           = models.CharField(max_length=80)
    state          = models.CharField(max_length=80, blank=True)
    pincode        = models.CharField(max_length=6, blank=True)
    latitude       = models.FloatField(null=True, blank=True)
    longitude      = models.FloatField(null=True, blank=True)

    def __str__(self):
        return f"{self.company_name} ({self.city})"


class Order(models.Model):

    class Status(models.TextChoices):
        PENDING    = "pending",    "Pending"
        CONFIRMED  = "confirmed",  "Confirmed"
        PREPARING  = "preparing",  "Preparing"
        PROCESSING = "processing", "Processing"
        DISPATCHED = "dispatched", "Dispatched"      # ready for pilot pickup
        DELIVERED  = "delivered",  "Delivered"
        CANCELLED  = "cancelled",  "Cancelled"

    class PilotStage(models.TextChoices):
        UNASSIGNED = "unassigned", "Unassigned"
        ASSIGNED   = "assigned",   "Assigned"
        IN_TRANSIT = "in_transit", "In Transit"
        DELIVERED  = "delivered",  "Delivered"
        CANCELLED  = "cancelled",  "Cancelled"

    order_id       = models.CharField(max_length=24, unique=True, default=generate_order_id)
    customer       = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                       related_name="orders")
    supplier       = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="orders")
    status         = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDING)
    is_urgent      = models.BooleanField(default=False)

    # Pricing snapshot
    subtotal       = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"),
                                         validators=[MinValueValidator(0)])
    transport_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"),
                                         validators=[MinValueValidator(0)])
    gst_amount     = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"),
                                         validators=[MinValueValidator(0)])
    total_amount   = models.DecimalField(max_digits=12, decimal_places=2,
                                         validators=[MinValueValidator(0)])

    # Drop point
    delivery_address = models.CharField(max_length=255)
    delivery_city    = models.CharField(max_length=80)
    delivery_state   = models.CharField(max_length=80, blank=True)
    delivery_pincode = models.CharField(max_length=6, blank=True)
    delivery_lat     = models.FloatField(null=True, blank=True)
    delivery_lng     = models.FloatField(null=True, blank=True)

    estimated_delivery_time = models.CharField(max_length=40, default="2-4 hours")
    special_instructions    = models.TextField(blank=True)

    # Pilot workflow
    assigned_pilot     = models.ForeignKey("authentication.Pilot", on_delete=models.SET_NULL,
                                           null=True, blank=True, related_name="assigned_orders")
    assigned_at        = models.DateTimeField(null=True, blank=True)
    delivery_otp       = models.CharField(max_length=6, blank=True)   # cleared once consumed
    journey_started_at = models.DateTimeField(null=True, blank=True)
    journey_start_lat  = models.FloatField(null=True, blank=True)
    journey_start_lng  = models.FloatField(null=True, blank=True)
    delivered_at       = models.DateTimeField(null=True, blank=True)
    delivery_notes     = models.CharField(max_length=500, blank=True)
    customer_rating    = models.PositiveSmallIntegerField(null=True, blank=True,
                                                          validators=[MinValueValidator(1), MaxValueValidator(5)])

    confirmed_at   = models.DateTimeField(null=True, blank=True)
    created_at     = models.DateTimeField(auto_now_add=True)
    updated_at     = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [
            models.Index(fields=["status", "assigned_pilot"], name="order_status_pilot_idx"),
            models.Index(fields=["delivery_lat", "delivery_lng"], name="order_delivery_geo_idx"),
            models.Index(fields=["assigned_pilot", "delivered_at"], name="order_pilot_delivered_idx"),
        ]

    def __str__(self):
        return f"{self.order_id} [{self.status}]"

    @property
    def pilot_stage(self) -> str:
        if self.status == self.Status.CANCELLED:
            return self.PilotStage.CANCELLED
        if self.status == self.Status.DELIVERED:
            return self.PilotStage.DELIVERED
        if self.assigned_pilot_id is None:
            return self.PilotStage.UNASSIGNED
        if self.journey_started_at:
            return self.PilotStage.IN_TRANSIT
        return self.PilotStage.ASSIGNED

    @property
    def pilot_earning(self) -> Decimal:
        share = Decimal(str(settings.PILOT_EARNING_SHARE))
        return (self.transport_cost * share).quantize(Decimal("0.01"))

    @property
    def age_reference(self):
        """When the order became deliverable; older orders sort first on distance ties."""
        return self.confirmed_at or self.created_at


class OrderItem(models.Model):
    order       = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    name        = models.CharField(max_length=150)
    quantity    = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0.1)])
    unit        = models.CharField(max_length=20, default="ton")
    unit_price  = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    total_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])

    def __str__(self):
        return f"{self.name} × {self.quantity} {self.unit}"


class OrderEvent(models.Model):
    """Immutable audit trail for every pilot-facing transition."""
    order      = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="events")
    from_stage = models.CharField(max_length=12)
    to_stage   = models.CharField(max_length=12)
    actor      = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True)
    note       = models.CharField(max_length=255, blank=True)
    occurred_at= models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["occurred_at", "id"]
