import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("ticket_id",   models.CharField(max_length=12, unique=True)),
                ("subject",     models.CharField(max_length=200)),
                ("description", models.TextField(max_length=2000)),
                ("category",    models.CharField(max_length=20, choices=[
                    ("order_inquiry", "Order Inquiry"), ("payment_issue", "Payment Issue"),
                    ("product_inquiry", "Product Inquiry"), ("delivery_issue", "Delivery Issue"),
                    ("account_issue", "Account Issue"), ("technical_support", "Technical Support"),
                    ("billing_inquiry", "Billing Inquiry"), ("complaint", "Complaint"),
                    ("feature_request", "Feature Request"), ("other", "Other"),
                ])),
                ("priority",    models.CharField(max_length=8, default="medium", choices=[
                    ("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent"),
                ])),
                ("status",      models.CharField(max_length=12, default="open", choices=[
                    ("open", "Open"), ("in-progress", "In Progress"),
                    ("resolved", "Resolved"), ("closed", "Closed"),
                ])),
                ("contact_phone",            models.CharField(blank=True, max_length=15)),
                ("contact_email",            models.EmailField(blank=True, max_length=254)),
                ("preferred_contact_method", models.CharField(max_length=5, default="email", choices=[
                    ("email", "Email"), ("phone", "Phone"), ("both", "Both"),
                ])),
                ("rating",         models.PositiveSmallIntegerField(blank=True, null=True, validators=[
                    django.core.validators.MinValueValidator(1),
                    django.core.validators.MaxValueValidator(5),
                ])),
                ("rating_comment",   models.CharField(blank=True, max_length=500)),
                ("rated_at",         models.DateTimeField(blank=True, null=True)),
                ("resolved_at",      models.DateTimeField(blank=True, null=True)),
                ("closed_at",        models.DateTimeField(blank=True, null=True)),
                ("last_activity_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at",       models.DateTimeField(auto_now_add=True)),
                ("updated_at",       models.DateTimeField(auto_now=True)),
                ("handled_by",       models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="handled_tickets",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("related_order",    models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="tickets",
                    to="orders.order",
                )),
                ("related_supplier", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="tickets",
                    to="orders.supplier",
                )),
                ("user",             models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="tickets",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-last_activity_at", "-created_at"]},
        ),
        migrations.CreateModel(
            name="TicketMessage",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("sender_type", models.CharField(max_length=8, choices=[("customer", "Customer"), ("admin", "Admin")])),
                ("body",        models.TextField(max_length=2000)),
                ("attachments", models.JSONField(blank=True, default=list)),
                ("is_internal", models.BooleanField(default=False)),
                ("created_at",  models.DateTimeField(default=django.utils.timezone.now)),
                ("sender",      models.ForeignKey(
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
                ("ticket",      models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="messages",
                    to="support.ticket",
                )),
            ],
            options={"ordering": ["created_at", "id"]},
        ),
        migrations.CreateModel(
            name="AdminNote",
            fields=[
                ("id",         models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("note",       models.TextField(max_length=1000)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("admin",      models.ForeignKey(
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
                ("ticket",     models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="admin_notes",
                    to="support.ticket",
                )),
            ],
            options={"ordering": ["created_at", "id"]},
        ),
        migrations.AddIndex(
            model_name="ticket",
            index=models.Index(fields=["user", "status"], name="ticket_user_status_idx"),
        ),
        migrations.AddIndex(
            model_name="ticket",
            index=models.Index(fields=["status", "priority"], name="ticket_status_priority_idx"),
        ),
        migrations.AddIndex(
            model_name="ticket",
            index=models.Index(fields=["last_activity_at"], name="ticket_activity_idx"),
        ),
    ]
