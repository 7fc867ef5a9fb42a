"""Pilot-side reporting: lifetime stats, today's dashboard and delivery history."""

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from apps.orders.models import Order

TWO_PLACES = Decimal("0.01")


def _share() -> Decimal:
    return Decimal(str(settings.PILOT_EARNING_SHARE))


def _earning(transport_total) -> float:
    return float(((transport_total or Decimal("0")) * _share()).quantize(TWO_PLACES))


def pilot_stats(pilot) -> dict:
    """Lifetime, last-30-day, last-7-day and this-month figures over delivered orders."""
    now = timezone.now()
    month_start = timezone.localtime(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    delivered = Order.objects.filter(assigned_pilot=pilot, status=Order.Status.DELIVERED)
    totals = delivered.aggregate(
        total_deliveries = Count("id"),
        total_revenue    = Sum("total_amount"),
        last_month       = Count("id", filter=Q(delivered_at__gte=now - timedelta(days=30))),
        this_week        = Count("id", filter=Q(delivered_at__gte=now - timedelta(days=7))),
        monthly_count    = Count("id", filter=Q(delivered_at__gte=month_start)),
        monthly_transport= Sum("transport_cost", filter=Q(delivered_at__gte=month_start)),
    )
    return {
        "totalDeliveries":   totals["total_deliveries"],
        "totalRevenue":      float(totals["total_revenue"] or 0),
        "lastMonth":         totals["last_month"],
        "thisWeek":          totals["this_week"],
        "monthlyEarnings":   _earning(totals["monthly_transport"]),
        "monthlyDeliveries": totals["monthly_count"],
    }


def recent_deliveries(pilot, limit: int = 5):
    return (
        Order.objects.filter(assigned_pilot=pilot, status=Order.Status.DELIVERED)
        .select_related("customer")
        .order_by("-delivered_at")[:limit]
    )


def today_stats(pilot) -> dict:
    """Orders assigned to the pilot since local midnight."""
    midnight = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
    today = Order.objects.filter(assigned_pilot=pilot, assigned_at__gte=midnight)
    totals = today.aggregate(
        total_orders     = Count("id"),
        completed_orders = Count("id", filter=Q(status=Order.Status.DELIVERED)),
        transport        = Sum("transport_cost", filter=Q(status=Order.Status.DELIVERED)),
    )
    return {
        "totalOrders":     totals["total_orders"],
        "completedOrders": totals["completed_orders"],
        "totalEarnings":   _earning(totals["transport"]),
    }


def delivery_history(pilot, status=None):
    """Finished orders for the pilot, newest first; `status` narrows to delivered or cancelled."""
    statuses = [status] if status else [Order.Status.DELIVERED, Order.Status.CANCELLED]
    return (
        Order.objects.filter(assigned_pilot=pilot, status__in=statuses)
        .select_related("customer", "supplier")
        .order_by(F("delivered_at").desc(nulls_last=True), "-created_at", "-pk")
    )
