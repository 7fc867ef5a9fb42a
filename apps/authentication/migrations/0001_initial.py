import django.core.validators
import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("password",     models.CharField(max_length=128, verbose_name="password")),
                ("last_login",   models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, verbose_name="superuser status")),
                ("id",           models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("phone",        models.CharField(max_length=15, unique=True)),
                ("email",        models.EmailField(blank=True, max_length=254)),
                ("full_name",    models.CharField(max_length=120)),
                ("role",         models.CharField(
                    choices=[
                        ("CUSTOMER", "Customer"),
                        ("SUPPLIER", "Supplier"),
                        ("PILOT", "Delivery Pilot"),
                        ("ADMIN", "Admin / Support Staff"),
                    ],
                    default="CUSTOMER",
                    max_length=10,
                )),
                ("is_active",    models.BooleanField(default=True)),
                ("is_staff",     models.BooleanField(default=False)),
                ("created_at",   models.DateTimeField(auto_now_add=True)),
                ("groups",       models.ManyToManyField(
                    blank=True, related_name="user_set", related_query_name="user",
                    to="auth.group", verbose_name="groups",
                )),
                ("user_permissions", models.ManyToManyField(
                    blank=True, related_name="user_set", related_query_name="user",
                    to="auth.permission", verbose_name="user permissions",
                )),
            ],
            options={"verbose_name": "Account"},
        ),
        migrations.AddIndex(
            model_name="account",
            index=models.Index(fields=["phone"], name="auth_account_phone_idx"),
        ),
        migrations.AddIndex(
            model_name="account",
            index=models.Index(fields=["role"], name="auth_account_role_idx"),
        ),
        migrations.CreateModel(
            name="Pilot",
            fields=[
                ("id",                  models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("pilot_id",            models.CharField(max_length=12, unique=True)),
                ("registration_number", models.CharField(max_length=12, unique=True)),
                ("vehicle_type",        models.CharField(
                    choices=[
                        ("truck", "Truck"),
                        ("mini_truck", "Mini Truck"),
                        ("pickup", "Pickup"),
                        ("tractor", "Tractor"),
                        ("trailer", "Trailer"),
                        ("motorcycle", "Motorcycle"),
                    ],
                    max_length=12,
                )),
                ("capacity_tons",       models.DecimalField(
                    decimal_places=1, max_digits=4,
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(50),
                    ],
                )),
                ("insurance_valid",     models.BooleanField(default=False)),
                ("insurance_expiry",    models.DateField(blank=True, null=True)),
                ("rc_valid",            models.BooleanField(default=False)),
                ("rc_expiry",           models.DateField(blank=True, null=True)),
                ("license_number",      models.CharField(max_length=20, unique=True)),
                ("license_valid_till",  models.DateField()),
                ("emergency_contact_name",     models.CharField(blank=True, max_length=120)),
                ("emergency_contact_phone",    models.CharField(blank=True, max_length=15)),
                ("emergency_contact_relation", models.CharField(blank=True, max_length=40)),
                ("is_approved",         models.BooleanField(default=False)),
                ("approved_at",         models.DateTimeField(blank=True, null=True)),
                ("rejection_reason",    models.CharField(blank=True, max_length=255)),
                ("is_available",        models.BooleanField(default=True)),
                ("current_lat",         models.FloatField(blank=True, null=True)),
                ("current_lng",         models.FloatField(blank=True, null=True)),
                ("location_updated_at", models.DateTimeField(blank=True, null=True)),
                ("total_deliveries",    models.PositiveIntegerField(default=0)),
                ("rating_average",      models.FloatField(default=0.0)),
                ("rating_count",        models.PositiveIntegerField(default=0)),
                ("created_at",          models.DateTimeField(auto_now_add=True)),
                ("updated_at",          models.DateTimeField(auto_now=True)),
                ("account",             models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="pilot",
                    to="authentication.account",
                )),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="pilot",
            index=models.Index(fields=["is_approved", "is_available"], name="pilot_approved_avail_idx"),
        ),
    ]
