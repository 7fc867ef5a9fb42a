"""
AssignmentService: the pilot-facing order lifecycle.

Flow:  scan_order  →  accept_order  →  start_journey  →  complete_delivery
       (read-only)    (claim + OTP)     (in transit)     (OTP-gated, terminal)

Each mutating step runs in one transaction. The claim in accept_order is a pair of
conditional UPDATEs, so two pilots racing for the same order get exactly one winner.
SMS go out through transaction.on_commit: a rolled-back step notifies nobody.

Staff may cancel_order while the order is unassigned or assigned; the pilot is released
with it. Once the journey has started the order can only be delivered.
"""

import logging

from django.db import transaction
from django.utils import timezone

from aggrekart.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from apps.authentication.identity import generate_otp
from apps.authentication.models import Pilot
from apps.notifications.service import NotificationService
from apps.orders.models import Order, OrderEvent

logger = logging.getLogger("aggrekart.assignment")


class AssignmentService:
    """Dependencies are injected so they can be swapped in tests."""

    def __init__(self, notification_service=None):
        self.notifier = notification_service or NotificationService()

    @staticmethod
    def _order(order_id: str, message: str = "Order not found", **filters) -> Order:
        order = (
            Order.objects.select_related("customer", "supplier", "assigned_pilot")
            .filter(order_id=order_id, **filters)
            .first()
        )
        if order is None:
            raise NotFoundError(message)
        return order

    @staticmethod
    def _record(order, pilot, from_stage, to_stage, note):
        OrderEvent.objects.create(
            order=order, from_stage=from_stage, to_stage=to_stage,
            actor=pilot.account, note=note,
        )

    def _notify_after_commit(self, *messages):
        """messages: (phone, text) pairs, queued once the transaction commits."""
        def send():
            for phone, text in messages:
                self.notifier.queue_sms(phone, text)
        transaction.on_commit(send)

    # ── Scan ──────────────────────────────────────────────────────────────────
    def scan_order(self, pilot: Pilot, order_id: str) -> Order:
        """Read-only lookup of a pickup-ready order. No state change, safe to repeat."""
        order = self._order(order_id, "Order not found or not ready for pickup", status=Order.Status.DISPATCHED)
        logger.debug("Pilot %s scanned %s", pilot.pilot_id, order.order_id)
        return order

    # ── Accept ────────────────────────────────────────────────────────────────
    @transaction.atomic
    def accept_order(self, pilot: Pilot, order_id: str) -> Order:
        order = self._order(order_id, "Order not found or not ready for pickup", status=Order.Status.DISPATCHED)

        if order.assigned_pilot_id == pilot.pk:
            logger.info("Pilot %s re-accepted %s (no-op)", pilot.pilot_id, order.order_id)
            return order
        if order.assigned_pilot_id is not None:
            raise ConflictError("Order already assigned to another pilot")

        now = timezone.now()
        otp = generate_otp()

        claimed = (
            Order.objects
            .filter(pk=order.pk, assigned_pilot__isnull=True, status=Order.Status.DISPATCHED)
            .update(assigned_pilot=pilot, assigned_at=now, delivery_otp=otp, updated_at=now)
        )
        if not claimed:
            logger.warning("Pilot %s lost the race for %s", pilot.pilot_id, order.order_id)
            raise ConflictError("Order already assigned to another pilot")

        held = (
            Pilot.objects
            .filter(pk=pilot.pk, current_order__isnull=True)
            .update(current_order=order, is_available=False, updated_at=now)
        )
        if not held:
            # Raising rolls the order claim back with the transaction
            raise ConflictError("Complete your current order first")

        order.refresh_from_db()
        pilot.refresh_from_db()
        self._record(order, pilot, Order.PilotStage.UNASSIGNED, Order.PilotStage.ASSIGNED,
                     f"Assigned to pilot {pilot.name} ({pilot.registration_number})")

        self._notify_after_commit(
            (order.customer.phone,
             f"Aggrekart: Your order {order.order_id} is assigned to {pilot.name} "
             f"({pilot.registration_number}, {pilot.phone_number}). "
             f"Share delivery OTP {otp} with the driver only on delivery."),
            (order.supplier.contact_number,
             f"Aggrekart: Order {order.order_id} will be picked up by {pilot.name} "
             f"({pilot.registration_number}, {pilot.phone_number})."),
        )
        logger.info("Order %s accepted by pilot %s", order.order_id, pilot.pilot_id)
        return order

    # ── Start journey ─────────────────────────────────────────────────────────
    @transaction.atomic
    def start_journey(self, pilot: Pilot, order_id: str, latitude=None, longitude=None) -> Order:
        order = self._order(order_id)
        current = Pilot.objects.select_for_update().get(pk=pilot.pk)
        if current.current_order_id != order.pk or order.assigned_pilot_id != pilot.pk:
            raise ForbiddenError("This order is not assigned to you")

        now = timezone.now()
        started = (
            Order.objects
            .filter(pk=order.pk, assigned_pilot=pilot, status=Order.Status.DISPATCHED,
                    journey_started_at__isnull=True)
            .update(journey_started_at=now, journey_start_lat=latitude,
                    journey_start_lng=longitude, updated_at=now)
        )
        if not started:
            raise ConflictError("Journey already started")

        if latitude is not None and longitude is not None:
            current.current_lat = latitude
            current.current_lng = longitude
            current.location_updated_at = now
            current.save(update_fields=["current_lat", "current_lng", "location_updated_at", "updated_at"])

        order.refresh_from_db()
        self._record(order, current, Order.PilotStage.ASSIGNED, Order.PilotStage.IN_TRANSIT,
                     "Driver started journey to delivery location")
        self._notify_after_commit(
            (order.customer.phone,
             f"Aggrekart: Your order {order.order_id} is on the way! "
             f"Expected delivery: {order.estimated_delivery_time}."),
        )
        logger.info("Pilot %s started journey for %s", pilot.pilot_id, order.order_id)
        return order

    # ── Complete ──────────────────────────────────────────────────────────────
    @transaction.atomic
    def complete_delivery(self, pilot: Pilot, order_id: str, delivery_otp: str,
                          notes: str = "", rating=None):
        """
        Consume the delivery OTP and close the order. The OTP is cleared in the same
        UPDATE that marks the order delivered, so a duplicate submission cannot match.
        Returns (order, pilot).
        """
        order = self._order(order_id)
        if order.assigned_pilot_id != pilot.pk:
            raise ForbiddenError("This order is not assigned to you")

        now = timezone.now()
        delivered = (
            Order.objects
            .filter(pk=order.pk, assigned_pilot=pilot, status=Order.Status.DISPATCHED,
                    delivery_otp=delivery_otp)
            .exclude(delivery_otp="")
            .update(status=Order.Status.DELIVERED, delivered_at=now, delivery_otp="",
                    delivery_notes=notes or "", customer_rating=rating, updated_at=now)
        )
        if not delivered:
            logger.warning("Invalid delivery OTP from pilot %s for %s", pilot.pilot_id, order.order_id)
            raise UnauthorizedError("Invalid delivery OTP")

        current = Pilot.objects.select_for_update().get(pk=pilot.pk)
        from_stage = Order.PilotStage.IN_TRANSIT if order.journey_started_at else Order.PilotStage.ASSIGNED
        current.current_order = None
        current.is_available = True
        current.total_deliveries += 1
        if rating:
            current.add_rating(rating)
        current.save(update_fields=[
            "current_order", "is_available", "total_deliveries",
            "rating_average", "rating_count", "updated_at",
        ])

        order.refresh_from_db()
        self._record(order, current, from_stage, Order.PilotStage.DELIVERED, "Order delivered successfully")
        self._notify_after_commit(
            (order.customer.phone,
             f"Aggrekart: Order {order.order_id} delivered on {now:%d %b %Y}. Thank you for choosing Aggrekart!"),
            (order.supplier.contact_number,
             f"Aggrekart: Order {order.order_id} for {order.customer.full_name} was delivered on {now:%d %b %Y}."),
        )
        logger.info("Order %s delivered by pilot %s (total %s)",
                    order.order_id, pilot.pilot_id, current.total_deliveries)
        return order, current

    # ── Cancel (staff) ────────────────────────────────────────────────────────
    @transaction.atomic
    def cancel_order(self, staff, order_id: str, reason: str = "") -> Order:
        """
        Cancel an order that no pilot has started driving. An assigned pilot is released
        in the same transaction and can accept again straight away. Returns the order.
        """
        order = self._order(order_id)
        stage = order.pilot_stage
        if stage == Order.PilotStage.CANCELLED:
            raise ConflictError("Order is already cancelled")
        if stage not in (Order.PilotStage.UNASSIGNED, Order.PilotStage.ASSIGNED):
            raise ConflictError(f"Order cannot be cancelled once {stage.label.lower()}")

        now = timezone.now()
        cancelled = (
            Order.objects
            .filter(pk=order.pk, journey_started_at__isnull=True)
            .exclude(status__in=[Order.Status.DELIVERED, Order.Status.CANCELLED])
            .update(status=Order.Status.CANCELLED, delivery_otp="", updated_at=now)
        )
        if not cancelled:
            # Journey started or delivered since the read above
            raise ConflictError("Order cannot be cancelled once in transit")

        pilot = None
        if order.assigned_pilot_id is not None:
            Pilot.objects.filter(pk=order.assigned_pilot_id, current_order=order).update(
                current_order=None, is_available=True, updated_at=now,
            )
            pilot = Pilot.objects.select_related("account").get(pk=order.assigned_pilot_id)

        order.refresh_from_db()
        note = f"Cancelled by {staff.full_name or staff.phone}"
        if reason:
            note = f"{note}: {reason}"
        OrderEvent.objects.create(order=order, from_stage=stage, to_stage=Order.PilotStage.CANCELLED,
                                  actor=staff, note=note[:255])

        messages = [(order.customer.phone,
                     f"Aggrekart: Your order {order.order_id} has been cancelled. "
                     f"Contact support if you have any questions.")]
        if pilot is not None:
            messages.append((pilot.phone_number,
                             f"Aggrekart: Order {order.order_id} was cancelled. You can accept new orders now."))
        self._notify_after_commit(*messages)
        logger.info("Order %s cancelled from %s by %s", order.order_id, stage, staff.pk)
        return order
