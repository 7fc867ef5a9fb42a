"""Ticket aggregates for the staff dashboard and the metrics endpoint."""

from datetime import timedelta

from django.db.models import Avg, Count
from django.utils import timezone

from apps.support.models import Ticket

Status = Ticket.Status


def _counts(qs, field: str) -> dict:
    return {row[field]: row["n"] for row in qs.values(field).annotate(n=Count("id")).order_by(field)}


def get_ticket_stats(qs=None) -> dict:
    """Count per status, every status present (zero when empty)."""
    qs = Ticket.objects.all() if qs is None else qs
    by_status = _counts(qs, "status")
    stats = {"total": sum(by_status.values())}
    for value in Status.values:
        stats[value] = by_status.get(value, 0)
    return stats


def get_avg_resolution_time(window_days: int = 30, qs=None) -> dict:
    """Mean hours from creation to resolution for tickets resolved inside the window."""
    qs = Ticket.objects.all() if qs is None else qs
    since = timezone.now() - timedelta(days=window_days)
    rows = qs.filter(resolved_at__isnull=False, resolved_at__gte=since).values_list("created_at", "resolved_at")
    hours = [(resolved - created).total_seconds() / 3600 for created, resolved in rows]
    return {
        "avgResolutionTime": round(sum(hours) / len(hours), 2) if hours else 0,
        "count": len(hours),
    }


def get_customer_satisfaction_stats(window_days: int = 30, qs=None) -> dict:
    qs = Ticket.objects.all() if qs is None else qs
    since = timezone.now() - timedelta(days=window_days)
    rated = qs.filter(rating__isnull=False, rated_at__gte=since)
    agg = rated.aggregate(avg=Avg("rating"), n=Count("id"))
    ratings = _counts(rated, "rating")
    return {
        "avgRating":    round(agg["avg"], 2) if agg["avg"] is not None else 0,
        "totalRatings": agg["n"],
        "ratings":      {str(star): ratings.get(star, 0) for star in range(1, 6)},
    }


def analytics(start, end) -> dict:
    """Staff analytics for tickets created in [start, end]."""
    window_days = max((timezone.now() - start).days + 1, 1)
    qs = Ticket.objects.filter(created_at__gte=start, created_at__lte=end)
    overview = get_ticket_stats(qs)
    done = overview[Status.RESOLVED] + overview[Status.CLOSED]
    return {
        "overview":       overview,
        "byStatus":       _counts(qs, "status"),
        "byCategory":     _counts(qs, "category"),
        "byPriority":     _counts(qs, "priority"),
        "resolutionRate": round(done / overview["total"] * 100, 2) if overview["total"] else 0,
        "performance":    get_avg_resolution_time(window_days, qs),
        "satisfaction":   get_customer_satisfaction_stats(window_days, qs),
        "dateRange":      {"start": start, "end": end},
    }
