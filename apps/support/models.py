"""
Support ticket models.

A ticket belongs to one account and moves  open → in-progress → resolved → closed
(open and in-progress may also close directly). Messages and admin notes are append-only;
nothing here is ever deleted.
"""

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone


class Ticket(models.Model):

    class Category(models.TextChoices):
        ORDER_INQUIRY     = "order_inquiry",     "Order Inquiry"
        PAYMENT_ISSUE     = "payment_issue",     "Payment Issue"
        PRODUCT_INQUIRY   = "product_inquiry",   "Product Inquiry"
        DELIVERY_ISSUE    = "delivery_issue",    "Delivery Issue"
        ACCOUNT_ISSUE     = "account_issue",     "Account Issue"
        TECHNICAL_SUPPORT = "technical_support", "Technical Support"
        BILLING_INQUIRY   = "billing_inquiry",   "Billing Inquiry"
        COMPLAINT         = "complaint",         "Complaint"
        FEATURE_REQUEST   = "feature_request",   "Feature Request"
        OTHER             = "other",             "Other"

    class Priority(models.TextChoices):
        LOW    = "low",    "Low"
        MEDIUM = "medium", "Medium"
        HIGH   = "high",   "High"
        URGENT = "urgent", "Urgent"

    class Status(models.TextChoices):
        OPEN        = "open",        "Open"
        IN_PROGRESS = "in-progress", "In Progress"
        RESOLVED    = "resolved",    "Resolved"
        CLOSED      = "closed",      "Closed"

    class ContactMethod(models.TextChoices):
        EMAIL = "email", "Email"
        PHONE = "phone", "Phone"
        BOTH  = "both",  "Both"

    ticket_id   = models.CharField(max_length=12, unique=True)
    user        = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="tickets")
    subject     = models.CharField(max_length=200)
    description = models.TextField(max_length=2000)
    category    = models.CharField(max_length=20, choices=Category.choices)
    priority    = models.CharField(max_length=8, choices=Priority.choices, default=Priority.MEDIUM)
    status      = models.CharField(max_length=12, choices=Status.choices, default=Status.OPEN)

    handled_by       = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                         null=True, blank=True, related_name="handled_tickets")
    related_order    = models.ForeignKey("orders.Order", on_delete=models.SET_NULL,
                                         null=True, blank=True, related_name="tickets")
    related_supplier = models.ForeignKey("orders.Supplier", on_delete=models.SET_NULL,
                                         null=True, blank=True, related_name="tickets")

    # Customer contact snapshot
    contact_phone            = models.CharField(max_length=15, blank=True)
    contact_email            = models.EmailField(blank=True)
    preferred_contact_method = models.CharField(max_length=5, choices=ContactMethod.choices,
                                                default=ContactMethod.EMAIL)

    rating         = models.PositiveSmallIntegerField(null=True, blank=True,
                                                      validators=[MinValueValidator(1), MaxValueValidator(5)])
    rating_comment = models.CharField(max_length=500, blank=True)
    rated_at       = models.DateTimeField(null=True, blank=True)

    resolved_at      = models.DateTimeField(null=True, blank=True)
    closed_at        = models.DateTimeField(null=True, blank=True)
    last_activity_at = models.DateTimeField(default=timezone.now)
    created_at       = models.DateTimeField(auto_now_add=True)
    updated_at       = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_activity_at", "-created_at"]
        indexes  = [
            models.Index(fields=["user", "status"],     name="ticket_user_status_idx"),
            models.Index(fields=["status", "priority"], name="ticket_status_priority_idx"),
            models.Index(fields=["last_activity_at"],   name="ticket_activity_idx"),
        ]

    def __str__(self):
        return f"{self.ticket_id} [{self.status}] {self.subject}"

    @property
    def message_count(self) -> int:
        return self.messages.count()

    @property
    def response_time_hours(self):
        if self.resolved_at is None:
            return None
        return round((self.resolved_at - self.created_at).total_seconds() / 3600)

    @property
    def age_days(self) -> int:
        return (timezone.now() - self.created_at).days


class TicketMessage(models.Model):

    class SenderType(models.TextChoices):
        CUSTOMER = "customer", "Customer"
        ADMIN    = "admin",    "Admin"

    ticket      = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name="messages")
    sender      = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True)
    sender_type = models.CharField(max_length=8, choices=SenderType.choices)
    body        = models.TextField(max_length=2000)
    attachments = models.JSONField(default=list, blank=True)   # [{filename, url, fileType, size}]
    is_internal = models.BooleanField(default=False)
    created_at  = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.ticket_id}/{self.sender_type}: {self.body[:40]}"


class AdminNote(models.Model):
    """Staff-only annotation on a ticket."""
    ticket     = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name="admin_notes")
    admin      = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True)
    note       = models.TextField(max_length=1000)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]
