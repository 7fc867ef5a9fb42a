from django.contrib import admin
from .models import AdminNote, Ticket, TicketMessage


class TicketMessageInline(admin.TabularInline):
    model           = TicketMessage
    extra           = 0
    readonly_fields = ("sender", "sender_type", "body", "attachments", "is_internal", "created_at")
    can_delete      = False


class AdminNoteInline(admin.TabularInline):
    model           = AdminNote
    extra           = 0
    readonly_fields = ("admin", "note", "created_at")
    can_delete      = False


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display    = ("ticket_id", "subject", "user", "category", "priority", "status",
                       "handled_by", "last_activity_at")
    list_filter     = ("status", "priority", "category")
    search_fields   = ("ticket_id", "subject", "user__phone", "user__full_name")
    readonly_fields = ("ticket_id", "status", "resolved_at", "closed_at", "rating", "rated_at",
                       "last_activity_at", "created_at", "updated_at")
    raw_id_fields   = ("user", "handled_by", "related_order", "related_supplier")
    inlines         = [TicketMessageInline, AdminNoteInline]
