"""
Management command: seed a supplier, a customer and dispatched orders around a centre point.

Usage:
    python manage.py seed_demo_orders
    python manage.py seed_demo_orders --count 20 --lat 20.2961 --lng 85.8245 --spread-km 12
    python manage.py seed_demo_orders --count 200 --pilots 50     # approved pilots 9876500001..
"""

import math
import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.authentication.models import Account, Pilot
from apps.orders.geo import EARTH_RADIUS_KM
from apps.orders.models import Order, OrderItem, Supplier

MATERIALS = [
    ("TMT Steel Bars",   "ton",  Decimal("52000.00")),
    ("OPC Cement 53",    "bag",  Decimal("380.00")),
    ("River Sand",       "ton",  Decimal("1800.00")),
    ("20mm Aggregate",   "ton",  Decimal("1450.00")),
    ("Red Bricks",       "unit", Decimal("8.50")),
]


def _offset(lat, lng, distance_km, bearing_deg):
    """Point `distance_km` from (lat, lng) along a bearing."""
    angular = distance_km / EARTH_RADIUS_KM
    bearing = math.radians(bearing_deg)
    lat1, lng1 = math.radians(lat), math.radians(lng)
    lat2 = math.asin(math.sin(lat1) * math.cos(angular) + math.cos(lat1) * math.sin(angular) * math.cos(bearing))
    lng2 = lng1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    return round(math.degrees(lat2), 6), round(math.degrees(lng2), 6)


class Command(BaseCommand):
    help = "Seed dispatched demo orders for the pilot app"

    def add_arguments(self, parser):
        parser.add_argument("--count", type=int, default=10)
        parser.add_argument("--lat", type=float, default=20.2961)
        parser.add_argument("--lng", type=float, default=85.8245)
        parser.add_argument("--spread-km", type=float, default=12.0)
        parser.add_argument("--pilots", type=int, default=0, help="approved pilots to create")

    @transaction.atomic
    def handle(self, *args, **options):
        centre_lat, centre_lng = options["lat"], options["lng"]

        customer, _ = Account.objects.get_or_create(
            phone="9000000001",
            defaults={"full_name": "Demo Customer", "role": Account.Role.CUSTOMER, "email": "customer@example.com"},
        )
        supplier, _ = Supplier.objects.get_or_create(
            company_name="Demo Building Supplies",
            defaults={
                "contact_number": "9000000002",
                "address":        "Plot 12, Industrial Estate, Rasulgarh",
                "city":           "Bhubaneswar",
                "state":          "Odisha",
                "pincode":        "751010",
                "latitude":       centre_lat,
                "longitude":      centre_lng,
            },
        )

        now = timezone.now()
        for i in range(options["count"]):
            lat, lng = _offset(centre_lat, centre_lng,
                               random.uniform(0.5, options["spread_km"]), random.uniform(0, 360))
            name, unit, price = random.choice(MATERIALS)
            quantity = Decimal(random.randint(1, 10))
            subtotal = price * quantity
            transport = Decimal(random.randint(400, 2500))
            gst = (subtotal * Decimal("0.18")).quantize(Decimal("0.01"))

            order = Order.objects.create(
                customer=customer,
                supplier=supplier,
                status=Order.Status.DISPATCHED,
                is_urgent=(i % 5 == 0),
                subtotal=subtotal,
                transport_cost=transport,
                gst_amount=gst,
                total_amount=subtotal + transport + gst,
                delivery_address=f"Site {i + 1}, Demo Layout",
                delivery_city="Bhubaneswar",
                delivery_state="Odisha",
                delivery_pincode="751001",
                delivery_lat=lat,
                delivery_lng=lng,
                confirmed_at=now - timedelta(hours=random.randint(1, 48)),
            )
            OrderItem.objects.create(
                order=order, name=name, quantity=quantity, unit=unit,
                unit_price=price, total_price=subtotal,
            )

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {options['count']} dispatched orders around ({centre_lat}, {centre_lng})."
        ))
        if options["pilots"]:
            created = self._seed_pilots(options["pilots"], centre_lat, centre_lng)
            self.stdout.write(self.style.SUCCESS(f"Seeded {created} approved pilots."))

    def _seed_pilots(self, count, centre_lat, centre_lng) -> int:
        created = 0
        today = timezone.localdate()
        for n in range(1, count + 1):
            phone = f"98765{n:05d}"
            if Account.objects.filter(phone=phone).exists():
                continue
            account = Account.objects.create_user(phone=phone, role=Account.Role.PILOT, full_name=f"Demo Pilot {n}")
            lat, lng = _offset(centre_lat, centre_lng, random.uniform(0, 5), random.uniform(0, 360))
            Pilot.objects.create(
                account=account,
                pilot_id=f"PILD{n:05d}",
                registration_number=f"OD02DM{n:04d}",
                vehicle_type=Pilot.VehicleType.TRUCK,
                capacity_tons=Decimal("10.0"),
                insurance_valid=True,
                rc_valid=True,
                license_number=f"OD0220200{n:06d}",
                license_valid_till=today + timedelta(days=730),
                is_approved=True,
                is_available=True,
                approved_at=timezone.now(),
                current_lat=lat,
                current_lng=lng,
                location_updated_at=timezone.now(),
            )
            created += 1
        return created
