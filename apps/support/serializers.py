"""Support ticket serializers. camelCase on the wire, snake_case into TicketService."""

from rest_framework import serializers

from .models import AdminNote, Ticket, TicketMessage

PILOT_PRIORITIES = (
    (Ticket.Priority.LOW,    "Low"),
    (Ticket.Priority.MEDIUM, "Medium"),
    (Ticket.Priority.HIGH,   "High"),
)


# ── Requests ──────────────────────────────────────────────────────────────────
class AttachmentSerializer(serializers.Serializer):
    filename = serializers.CharField(max_length=255)
    url      = serializers.URLField()
    fileType = serializers.CharField(max_length=100, required=False, allow_blank=True)
    size     = serializers.IntegerField(min_value=0, required=False)


class TicketCreateSerializer(serializers.Serializer):
    subject                = serializers.CharField(min_length=3, max_length=200)
    description            = serializers.CharField(min_length=10, max_length=2000)
    category               = serializers.ChoiceField(choices=Ticket.Category.choices)
    priority               = serializers.ChoiceField(choices=Ticket.Priority.choices, required=False,
                                                     default=Ticket.Priority.MEDIUM)
    relatedOrderId         = serializers.CharField(max_length=24, required=False, allow_blank=True)
    contactPhone           = serializers.CharField(max_length=15, required=False, allow_blank=True)
    contactEmail           = serializers.EmailField(required=False, allow_blank=True)
    preferredContactMethod = serializers.ChoiceField(choices=Ticket.ContactMethod.choices, required=False)
    attachments            = AttachmentSerializer(many=True, required=False)

    def validate(self, attrs):
        return {
            "subject":                  attrs["subject"].strip(),
            "description":              attrs["description"].strip(),
            "category":                 attrs["category"],
            "priority":                 attrs["priority"],
            "related_order_id":         attrs.get("relatedOrderId", ""),
            "contact_phone":            attrs.get("contactPhone", ""),
            "contact_email":            attrs.get("contactEmail", ""),
            "preferred_contact_method": attrs.get("preferredContactMethod"),
            "attachments":              attrs.get("attachments", []),
        }


class PilotContactSerializer(serializers.Serializer):
    subject  = serializers.CharField(min_length=3, max_length=200)
    message  = serializers.CharField(min_length=10, max_length=2000)
    priority = serializers.ChoiceField(choices=PILOT_PRIORITIES, required=False, default=Ticket.Priority.MEDIUM)
    category = serializers.ChoiceField(choices=Ticket.Category.choices, required=False,
                                       default=Ticket.Category.OTHER)

    def validate(self, attrs):
        return {
            "subject":     attrs["subject"].strip(),
            "description": attrs["message"].strip(),
            "category":    attrs["category"],
            "priority":    attrs["priority"],
        }


class ReplySerializer(serializers.Serializer):
    message     = serializers.CharField(max_length=2000)
    attachments = AttachmentSerializer(many=True, required=False)


class AdminReplySerializer(ReplySerializer):
    isInternal = serializers.BooleanField(required=False, default=False)


class RatingSerializer(serializers.Serializer):
    rating  = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Ticket.Status.choices)
    note   = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class AssignSerializer(serializers.Serializer):
    adminId = serializers.UUIDField(required=False, allow_null=True)


class AdminNoteSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=1000)


class AnalyticsQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate   = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get("startDate"), attrs.get("endDate")
        if start and end and start > end:
            raise serializers.ValidationError("startDate must not be after endDate.")
        return attrs


# ── Responses ─────────────────────────────────────────────────────────────────
def person(account) -> dict:
    if account is None:
        return None
    return {"id": str(account.pk), "name": account.full_name}


class MessageSerializer(serializers.ModelSerializer):
    sender     = serializers.SerializerMethodField()
    senderType = serializers.CharField(source="sender_type")
    message    = serializers.CharField(source="body")
    isInternal = serializers.BooleanField(source="is_internal")
    createdAt  = serializers.DateTimeField(source="created_at")

    class Meta:
        model  = TicketMessage
        fields = ["sender", "senderType", "message", "attachments", "isInternal", "createdAt"]

    def get_sender(self, obj):
        return person(obj.sender)


class NoteSerializer(serializers.ModelSerializer):
    admin     = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model  = AdminNote
        fields = ["admin", "note", "createdAt"]

    def get_admin(self, obj):
        return person(obj.admin)


class TicketListSerializer(serializers.ModelSerializer):
    ticketId       = serializers.CharField(source="ticket_id")
    handledBy      = serializers.SerializerMethodField()
    relatedOrder   = serializers.CharField(source="related_order.order_id", default=None)
    lastActivityAt = serializers.DateTimeField(source="last_activity_at")
    createdAt      = serializers.DateTimeField(source="created_at")

    class Meta:
        model  = Ticket
        fields = ["ticketId", "subject", "category", "priority", "status",
                  "handledBy", "relatedOrder", "lastActivityAt", "createdAt"]

    def get_handledBy(self, obj):
        return person(obj.handled_by)


class TicketDetailSerializer(TicketListSerializer):
    """Customer view: the public thread only."""
    description       = serializers.CharField()
    relatedSupplier   = serializers.CharField(source="related_supplier.company_name", default=None)
    contact           = serializers.SerializerMethodField()
    messages          = serializers.SerializerMethodField()
    rating            = serializers.SerializerMethodField()
    resolvedAt        = serializers.DateTimeField(source="resolved_at")
    closedAt          = serializers.DateTimeField(source="closed_at")
    responseTimeHours = serializers.IntegerField(source="response_time_hours")

    class Meta(TicketListSerializer.Meta):
        fields = TicketListSerializer.Meta.fields + [
            "description", "relatedSupplier", "contact", "messages", "rating",
            "resolvedAt", "closedAt", "responseTimeHours",
        ]

    def get_contact(self, obj):
        return {
            "phone":           obj.contact_phone,
            "email":           obj.contact_email,
            "preferredMethod": obj.preferred_contact_method,
        }

    def _messages(self, obj):
        return obj.messages.select_related("sender").filter(is_internal=False)

    def get_messages(self, obj):
        return MessageSerializer(self._messages(obj), many=True).data

    def get_rating(self, obj):
        if obj.rating is None:
            return None
        return {"rating": obj.rating, "comment": obj.rating_comment, "ratedAt": obj.rated_at}


class StaffTicketDetailSerializer(TicketDetailSerializer):
    """Staff view: internal messages and admin notes included."""
    customer   = serializers.SerializerMethodField()
    adminNotes = serializers.SerializerMethodField()
    ageDays    = serializers.IntegerField(source="age_days")

    class Meta(TicketDetailSerializer.Meta):
        fields = TicketDetailSerializer.Meta.fields + ["customer", "adminNotes", "ageDays"]

    def _messages(self, obj):
        return obj.messages.select_related("sender")

    def get_customer(self, obj):
        return {**person(obj.user), "phone": obj.user.phone, "email": obj.user.email}

    def get_adminNotes(self, obj):
        return NoteSerializer(obj.admin_notes.select_related("admin"), many=True).data
