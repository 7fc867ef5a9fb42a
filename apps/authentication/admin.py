from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from aggrekart.exceptions import ConflictError
from .models import Account, Pilot
from .service import PilotDirectory


@admin.register(Account)
class AccountAdmin(BaseUserAdmin):
    list_display  = ("phone", "full_name", "role", "is_active", "created_at")
    list_filter   = ("role", "is_active", "is_staff")
    search_fields = ("phone", "full_name", "email")
    ordering      = ("-created_at",)
    fieldsets = (
        (None,          {"fields": ("phone", "password")}),
        ("Personal",    {"fields": ("full_name", "email")}),
        ("Role",        {"fields": ("role",)}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("phone", "full_name", "role", "password1", "password2")}),
    )


@admin.register(Pilot)
class PilotAdmin(admin.ModelAdmin):
    list_display    = ("pilot_id", "account", "registration_number", "vehicle_type", "capacity_tons",
                       "is_approved", "is_available", "total_deliveries", "rating_average")
    list_filter     = ("is_approved", "is_available", "vehicle_type")
    search_fields   = ("pilot_id", "registration_number", "license_number", "account__phone", "account__full_name")
    readonly_fields = ("pilot_id", "current_order", "total_deliveries", "rating_average", "rating_count",
                       "created_at", "updated_at")
    actions         = ["approve_pilots", "reject_pilots"]

    @admin.action(description="Approve selected pilots")
    def approve_pilots(self, request, queryset):
        directory = PilotDirectory()
        approved = 0
        for pilot in queryset.filter(is_approved=False):
            directory.approve(pilot.pilot_id, staff=request.user)
            approved += 1
        self.message_user(request, f"{approved} pilot(s) approved.", messages.SUCCESS)

    @admin.action(description="Reject selected pilots (documents incomplete)")
    def reject_pilots(self, request, queryset):
        directory = PilotDirectory()
        rejected = 0
        for pilot in queryset:
            try:
                directory.reject(pilot.pilot_id, "Documents incomplete", staff=request.user)
                rejected += 1
            except ConflictError as exc:
                self.message_user(request, f"{pilot.pilot_id}: {exc.detail}", messages.WARNING)
        self.message_user(request, f"{rejected} pilot(s) rejected.", messages.SUCCESS)
