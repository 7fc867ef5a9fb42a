from django.contrib import admin, messages

from aggrekart.exceptions import ConflictError
from .models import Supplier, Order, OrderItem, OrderEvent
from .service import AssignmentService


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display  = ("company_name", "city", "contact_number")
    search_fields = ("company_name", "contact_number", "city")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display    = ("order_id", "status", "customer", "supplier", "assigned_pilot",
                       "is_urgent", "total_amount", "created_at")
    list_filter     = ("status", "is_urgent", "delivery_city")
    search_fields   = ("order_id", "customer__phone", "customer__full_name", "supplier__company_name")
    readonly_fields = ("order_id", "delivery_otp", "assigned_at", "journey_started_at",
                       "delivered_at", "created_at", "updated_at")
    ordering        = ("-created_at",)
    inlines         = [OrderItemInline]
    actions         = ["cancel_orders"]

    def get_readonly_fields(self, request, obj=None):
        # Once a pilot holds the order its status only moves through the workflow
        if obj is not None and obj.assigned_pilot_id is not None:
            return self.readonly_fields + ("status", "assigned_pilot")
        return self.readonly_fields

    @admin.action(description="Cancel selected orders and release their pilots")
    def cancel_orders(self, request, queryset):
        service = AssignmentService()
        cancelled = 0
        for order in queryset:
            try:
                service.cancel_order(request.user, order.order_id, "Cancelled from admin")
                cancelled += 1
            except ConflictError as exc:
                self.message_user(request, f"{order.order_id}: {exc.detail}", messages.WARNING)
        self.message_user(request, f"{cancelled} order(s) cancelled.", messages.SUCCESS)


@admin.register(OrderEvent)
class OrderEventAdmin(admin.ModelAdmin):
    list_display    = ("order", "from_stage", "to_stage", "actor", "occurred_at")
    readonly_fields = ("occurred_at",)
