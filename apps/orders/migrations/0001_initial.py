import apps.orders.models
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id",             models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("company_name",   models.CharField(max_length=150)),
                ("contact_number", models.CharField(max_length=15)),
                ("email",          models.EmailField(blank=True, max_length=254)),
                ("address",        models.CharField(max_length=255)),
                ("city",           models.CharField(max_length=80)),
                ("state",          models.CharField(blank=True, max_length=80)),
                ("pincode",        models.CharField(blank=True, max_length=6)),
                ("latitude",       models.FloatField(blank=True, null=True)),
                ("longitude",      models.FloatField(blank=True, null=True)),
                ("account",        models.OneToOneField(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="supplier",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id",             models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("order_id",       models.CharField(default=apps.orders.models.generate_order_id, max_length=24, unique=True)),
                ("status",         models.CharField(
                    choices=[
                        ("pending",    "Pending"),
                        ("confirmed",  "Confirmed"),
                        ("preparing",  "Preparing"),
                        ("processing", "Processing"),
                        ("dispatched", "Dispatched"),
                        ("delivered",  "Delivered"),
                        ("cancelled",  "Cancelled"),
                    ],
                    default="pending",
                    max_length=12,
                )),
                ("is_urgent",      models.BooleanField(default=False)),
                ("subtotal",       models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("transport_cost", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("gst_amount",     models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("total_amount",   models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("delivery_address", models.CharField(max_length=255)),
                ("delivery_city",    models.CharField(max_length=80)),
                ("delivery_state",   models.CharField(blank=True, max_length=80)),
                ("delivery_pincode", models.CharField(blank=True, max_length=6)),
                ("delivery_lat",     models.FloatField(blank=True, null=True)),
                ("delivery_lng",     models.FloatField(blank=True, null=True)),
                ("estimated_delivery_time", models.CharField(default="2-4 hours", max_length=40)),
                ("special_instructions",    models.TextField(blank=True)),
                ("assigned_at",        models.DateTimeField(blank=True, null=True)),
                ("delivery_otp",       models.CharField(blank=True, max_length=6)),
                ("journey_started_at", models.DateTimeField(blank=True, null=True)),
                ("journey_start_lat",  models.FloatField(blank=True, null=True)),
                ("journey_start_lng",  models.FloatField(blank=True, null=True)),
                ("delivered_at",       models.DateTimeField(blank=True, null=True)),
                ("delivery_notes",     models.CharField(blank=True, max_length=500)),
                ("customer_rating",    models.PositiveSmallIntegerField(
                    blank=True, null=True,
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(5),
                    ],
                )),
                ("confirmed_at",   models.DateTimeField(blank=True, null=True)),
                ("created_at",     models.DateTimeField(auto_now_add=True)),
                ("updated_at",     models.DateTimeField(auto_now=True)),
                ("assigned_pilot", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="assigned_orders",
                    to="authentication.pilot",
                )),
                ("customer",       models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="orders",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("supplier",       models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="orders",
                    to="orders.supplier",
                )),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["status", "assigned_pilot"], name="order_status_pilot_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["delivery_lat", "delivery_lng"], name="order_delivery_geo_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["assigned_pilot", "delivered_at"], name="order_pilot_delivered_idx"),
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("name",        models.CharField(max_length=150)),
                ("quantity",    models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0.1)])),
                ("unit",        models.CharField(default="ton", max_length=20)),
                ("unit_price",  models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("order",       models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="orders.order",
                )),
            ],
        ),
        migrations.CreateModel(
            name="OrderEvent",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("from_stage",  models.CharField(max_length=12)),
                ("to_stage",    models.CharField(max_length=12)),
                ("note",        models.CharField(blank=True, max_length=255)),
                ("occurred_at", models.DateTimeField(auto_now_add=True)),
                ("actor",       models.ForeignKey(
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
                ("order",       models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="events",
                    to="orders.order",
                )),
            ],
            options={"ordering": ["occurred_at", "id"]},
        ),
    ]
