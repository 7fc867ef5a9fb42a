"""
NearbyOrderFinder: open orders within a radius of the pilot, nearest first.

Candidates are prefiltered in SQL with a bounding box on the indexed delivery coordinates,
then cut to the exact great-circle radius in Python. The full candidate set is sorted by
(distance, age reference, pk) before slicing, so pages are stable while no orders change.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from aggrekart.exceptions import BadRequestError
from aggrekart.responses import pagination_block
from apps.authentication.models import Pilot
from apps.orders.geo import bounding_box, haversine_km
from apps.orders.models import Order

logger = logging.getLogger("aggrekart.nearby")

URGENT = "urgent"
NORMAL = "normal"


@dataclass
class NearbyResult:
    orders: list                      # [(Order, distance_km, priority)] for the requested page
    summary: dict
    filters: dict
    pagination: dict


def priority_for(is_urgent: bool, confirmed_at, now=None, age_hours=None) -> str:
    """Explicitly flagged, or confirmed longer ago than the urgency threshold."""
    if is_urgent:
        return URGENT
    if confirmed_at is None:
        return NORMAL
    now = now or timezone.now()
    hours = settings.URGENT_ORDER_AGE_HOURS if age_hours is None else age_hours
    return URGENT if now - confirmed_at > timedelta(hours=hours) else NORMAL


class NearbyOrderFinder:

    def __init__(self, max_radius_km=None, max_page_size=None):
        self._max_radius = max_radius_km
        self._max_limit  = max_page_size

    @property
    def max_radius(self) -> float:
        return float(self._max_radius or settings.NEARBY_MAX_RADIUS_KM)

    @property
    def max_limit(self) -> int:
        return int(self._max_limit or settings.NEARBY_MAX_PAGE_SIZE)

    def find(self, pilot: Pilot, radius_km=None, page: int = 1, limit: int = 10, order_type=None) -> NearbyResult:
        if not pilot.has_location:
            raise BadRequestError("Update your location first")

        requested = float(settings.NEARBY_DEFAULT_RADIUS_KM if radius_km is None else radius_km)
        if requested <= 0:
            raise BadRequestError("Radius must be greater than 0")
        radius = min(requested, self.max_radius)
        limit = max(1, min(int(limit), self.max_limit))
        page = max(1, int(page))

        origin_lat, origin_lng = pilot.current_lat, pilot.current_lng
        candidates = self._candidates(origin_lat, origin_lng, radius)

        now = timezone.now()
        in_radius = []
        for pk, lat, lng, is_urgent, confirmed_at, created_at in candidates:
            distance = haversine_km(origin_lat, origin_lng, lat, lng)
            if distance > radius:
                continue
            priority = priority_for(is_urgent, confirmed_at, now=now)
            in_radius.append((distance, confirmed_at or created_at, pk, priority))
        in_radius.sort(key=lambda row: (row[0], row[1], row[2]))

        urgent_count = sum(1 for row in in_radius if row[3] == URGENT)
        summary = {
            "totalOrders":     len(in_radius),
            "urgentOrders":    urgent_count,
            "normalOrders":    len(in_radius) - urgent_count,
            "averageDistance": round(sum(r[0] for r in in_radius) / len(in_radius), 2) if in_radius else 0,
        }

        selected = [row for row in in_radius if order_type is None or row[3] == order_type]
        start = (page - 1) * limit
        window = selected[start:start + limit]

        by_pk = Order.objects.select_related("customer", "supplier").prefetch_related("items").in_bulk(
            [row[2] for row in window]
        )
        orders = [(by_pk[pk], distance, priority) for distance, _, pk, priority in window if pk in by_pk]

        logger.info(
            "Pilot %s nearby search r=%skm type=%s → %s in radius, page %s",
            pilot.pilot_id, radius, order_type or "all", len(in_radius), page,
        )
        return NearbyResult(
            orders=orders,
            summary=summary,
            filters={
                "radius":          radius,
                "requestedRadius": requested,
                "orderType":       order_type,
                "pilotLocation":   {"latitude": origin_lat, "longitude": origin_lng},
            },
            pagination=pagination_block(page, limit, len(selected)),
        )

    @staticmethod
    def _candidates(lat, lng, radius):
        qs = Order.objects.filter(
            status=Order.Status.DISPATCHED,
            assigned_pilot__isnull=True,
            delivery_lat__isnull=False,
            delivery_lng__isnull=False,
        )
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius)
        qs = qs.filter(delivery_lat__gte=min_lat, delivery_lat__lte=max_lat)
        if min_lng is not None:
            qs = qs.filter(delivery_lng__gte=min_lng, delivery_lng__lte=max_lng)
        return qs.values_list("pk", "delivery_lat", "delivery_lng", "is_urgent", "confirmed_at", "created_at")
