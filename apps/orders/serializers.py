"""Order serializers for the pilot app. Keys are camelCase to match the mobile client."""

from rest_framework import serializers

from apps.orders.geo import haversine_km, travel_minutes
from .models import Order, OrderItem

ORDER_TYPES = (("urgent", "Urgent"), ("normal", "Normal"))
HISTORY_STATUSES = (
    (Order.Status.DELIVERED, "Delivered"),
    (Order.Status.CANCELLED, "Cancelled"),
)


# ── Requests ──────────────────────────────────────────────────────────────────
class OrderIdSerializer(serializers.Serializer):
    orderId = serializers.CharField(max_length=24)


class AcceptOrderSerializer(OrderIdSerializer):
    pilotId = serializers.CharField(max_length=12, required=False)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, max_length=200)


class CoordinatesSerializer(serializers.Serializer):
    latitude  = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class StartJourneySerializer(OrderIdSerializer):
    currentLocation = CoordinatesSerializer(required=False)


class CompleteDeliverySerializer(OrderIdSerializer):
    deliveryOTP    = serializers.RegexField(r"^\d{6}$",
                                            error_messages={"invalid": "Valid 6-digit OTP is required"})
    deliveryNotes  = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    customerRating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)


class NearbyQuerySerializer(serializers.Serializer):
    radius    = serializers.FloatField(required=False)
    page      = serializers.IntegerField(min_value=1, required=False, default=1)
    limit     = serializers.IntegerField(min_value=1, max_value=50, required=False, default=10)
    orderType = serializers.ChoiceField(choices=ORDER_TYPES, required=False)

    def validate_radius(self, value):
        if value <= 0:
            raise serializers.ValidationError("Radius must be greater than 0.")
        return value


class HistoryQuerySerializer(serializers.Serializer):
    page   = serializers.IntegerField(min_value=1, required=False, default=1)
    limit  = serializers.IntegerField(min_value=1, max_value=50, required=False, default=10)
    status = serializers.ChoiceField(choices=HISTORY_STATUSES, required=False)


# ── Building blocks ───────────────────────────────────────────────────────────
def customer_block(order) -> dict:
    return {"name": order.customer.full_name, "phoneNumber": order.customer.phone}


def supplier_block(order) -> dict:
    supplier = order.supplier
    return {
        "companyName":   supplier.company_name,
        "contactNumber": supplier.contact_number,
        "address":       supplier.address,
    }


def delivery_location(order) -> dict:
    return {
        "address":   order.delivery_address,
        "city":      order.delivery_city,
        "state":     order.delivery_state,
        "pincode":   order.delivery_pincode,
        "latitude":  order.delivery_lat,
        "longitude": order.delivery_lng,
    }


def pricing_block(order) -> dict:
    return {
        "subtotal":      float(order.subtotal),
        "transportCost": float(order.transport_cost),
        "gstAmount":     float(order.gst_amount),
        "totalAmount":   float(order.total_amount),
    }


class OrderItemSerializer(serializers.ModelSerializer):
    totalPrice = serializers.DecimalField(source="total_price", max_digits=12, decimal_places=2, coerce_to_string=False)
    quantity   = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False)

    class Meta:
        model  = OrderItem
        fields = ["name", "quantity", "unit", "totalPrice"]


# ── Responses ─────────────────────────────────────────────────────────────────
class OrderScanSerializer(serializers.ModelSerializer):
    """Full order detail for the pilot's pickup review. context["pilot"] enables `distance`."""
    orderId               = serializers.CharField(source="order_id")
    customer              = serializers.SerializerMethodField()
    supplier              = serializers.SerializerMethodField()
    deliveryAddress       = serializers.SerializerMethodField()
    items                 = OrderItemSerializer(many=True)
    pricing               = serializers.SerializerMethodField()
    totalAmount           = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2,
                                                     coerce_to_string=False)
    estimatedDeliveryTime = serializers.CharField(source="estimated_delivery_time")
    specialInstructions   = serializers.CharField(source="special_instructions")
    pilotStage            = serializers.CharField(source="pilot_stage")
    distance              = serializers.SerializerMethodField()

    class Meta:
        model  = Order
        fields = [
            "orderId", "customer", "supplier", "deliveryAddress", "items", "pricing",
            "totalAmount", "estimatedDeliveryTime", "specialInstructions",
            "status", "pilotStage", "distance",
        ]

    def get_customer(self, obj):
        return customer_block(obj)

    def get_supplier(self, obj):
        return supplier_block(obj)

    def get_deliveryAddress(self, obj):
        return {"pickup": obj.supplier.address, "drop": delivery_location(obj)}

    def get_pricing(self, obj):
        return pricing_block(obj)

    def get_distance(self, obj):
        pilot = self.context.get("pilot")
        if pilot is None or not pilot.has_location or obj.delivery_lat is None or obj.delivery_lng is None:
            return None
        return round(haversine_km(pilot.current_lat, pilot.current_lng, obj.delivery_lat, obj.delivery_lng), 2)


class OrderSummarySerializer(serializers.ModelSerializer):
    """Compact view used after accept and on the dashboard."""
    orderId         = serializers.CharField(source="order_id")
    customerName    = serializers.CharField(source="customer.full_name")
    customerPhone   = serializers.CharField(source="customer.phone")
    deliveryAddress = serializers.SerializerMethodField()
    pilotStage      = serializers.CharField(source="pilot_stage")
    totalAmount     = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2,
                                               coerce_to_string=False)
    estimatedDeliveryTime = serializers.CharField(source="estimated_delivery_time")

    class Meta:
        model  = Order
        fields = [
            "orderId", "customerName", "customerPhone", "deliveryAddress",
            "status", "pilotStage", "totalAmount", "estimatedDeliveryTime",
        ]

    def get_deliveryAddress(self, obj):
        return delivery_location(obj)


class DeliverySummarySerializer(serializers.ModelSerializer):
    """Row in profile, stats and history listings."""
    orderId         = serializers.CharField(source="order_id")
    customerName    = serializers.CharField(source="customer.full_name")
    deliveryAddress = serializers.SerializerMethodField()
    totalAmount     = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2,
                                               coerce_to_string=False)
    pilotEarning    = serializers.DecimalField(source="pilot_earning", max_digits=12, decimal_places=2,
                                               coerce_to_string=False)
    deliveredAt     = serializers.DateTimeField(source="delivered_at")
    orderDate       = serializers.DateTimeField(source="created_at")
    deliveryNotes   = serializers.CharField(source="delivery_notes")
    customerRating  = serializers.IntegerField(source="customer_rating")

    class Meta:
        model  = Order
        fields = [
            "orderId", "customerName", "deliveryAddress", "totalAmount", "pilotEarning",
            "status", "deliveredAt", "orderDate", "deliveryNotes", "customerRating",
        ]

    def get_deliveryAddress(self, obj):
        return delivery_location(obj)


def nearby_order(order, distance_km: float, priority: str, speed_kmph: float) -> dict:
    """One row of the nearby-orders response."""
    return {
        "orderId":  order.order_id,
        "priority": priority,
        "customer": customer_block(order),
        "supplier": supplier_block(order),
        "deliveryLocation": delivery_location(order),
        "orderDetails": {
            "itemCount":             len(order.items.all()),
            "totalAmount":           float(order.total_amount),
            "transportCost":         float(order.transport_cost),
            "pilotEarning":          float(order.pilot_earning),
            "estimatedDeliveryTime": order.estimated_delivery_time,
            "confirmedAt":           order.confirmed_at,
        },
        "distance":          round(distance_km, 2),
        "estimatedDuration": travel_minutes(distance_km, speed_kmph),
    }
