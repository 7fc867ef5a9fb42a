"""
Authentication models.
Account is the custom User — covers Customer, Supplier, Pilot and Admin roles.
Pilot is the delivery-partner record hanging off an Account with role=PILOT.
"""

import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone


class AccountManager(BaseUserManager):
    def create_user(self, phone, password=None, **extra):
        if not phone:
            raise ValueError("Phone number is required.")
        user = self.model(phone=phone, **extra)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, phone, password, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        extra.setdefault("role", Account.Role.ADMIN)
        return self.create_user(phone, password, **extra)


class Account(AbstractBaseUser, PermissionsMixin):
    """Every human actor on the marketplace — identified by a 10-digit mobile number."""

    class Role(models.TextChoices):
        CUSTOMER = "CUSTOMER", "Customer"
        SUPPLIER = "SUPPLIER", "Supplier"
        PILOT    = "PILOT",    "Delivery Pilot"
        ADMIN    = "ADMIN",    "Admin / Support Staff"

    id          = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone       = models.CharField(max_length=15, unique=True)
    email       = models.EmailField(blank=True)
    full_name   = models.CharField(max_length=120)
    role        = models.CharField(max_length=10, choices=Role.choices, default=Role.CUSTOMER)
    is_active   = models.BooleanField(default=True)
    is_staff    = models.BooleanField(default=False)
    created_at  = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD  = "phone"
    REQUIRED_FIELDS = ["full_name"]

    objects = AccountManager()

    class Meta:
        verbose_name = "Account"
        indexes = [
            models.Index(fields=["phone"], name="auth_account_phone_idx"),
            models.Index(fields=["role"],  name="auth_account_role_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.role})"

    @property
    def is_support_staff(self) -> bool:
        return self.role == self.Role.ADMIN or self.is_staff


class Pilot(models.Model):
    """Delivery pilot: vehicle, licence, live location and delivery counters.

    Never hard-deleted; rejection and suspension deactivate the Account instead.
    current_order is one-to-one, so an order can be the active job of one pilot only.
    """

    class VehicleType(models.TextChoices):
        TRUCK      = "truck",      "Truck"
        MINI_TRUCK = "mini_truck", "Mini Truck"
        PICKUP     = "pickup",     "Pickup"
        TRACTOR    = "tractor",    "Tractor"
        TRAILER    = "trailer",    "Trailer"
        MOTORCYCLE = "motorcycle", "Motorcycle"

    account             = models.OneToOneField(Account, on_delete=models.CASCADE, related_name="pilot")
    pilot_id            = models.CharField(max_length=12, unique=True)

    # Vehicle
    registration_number = models.CharField(max_length=12, unique=True)
    vehicle_type        = models.CharField(max_length=12, choices=VehicleType.choices)
    capacity_tons       = models.DecimalField(max_digits=4, decimal_places=1,
                                              validators=[MinValueValidator(1), MaxValueValidator(50)])
    insurance_valid     = models.BooleanField(default=False)
    insurance_expiry    = models.DateField(null=True, blank=True)
    rc_valid            = models.BooleanField(default=False)
    rc_expiry           = models.DateField(null=True, blank=True)

    # Driving licence
    license_number      = models.CharField(max_length=20, unique=True)
    license_valid_till  = models.DateField()

    emergency_contact_name     = models.CharField(max_length=120, blank=True)
    emergency_contact_phone    = models.CharField(max_length=15, blank=True)
    emergency_contact_relation = models.CharField(max_length=40, blank=True)

    # Approval
    is_approved         = models.BooleanField(default=False)
    approved_at         = models.DateTimeField(null=True, blank=True)
    rejection_reason    = models.CharField(max_length=255, blank=True)

    # Live state
    is_available        = models.BooleanField(default=True)
    current_order       = models.OneToOneField("orders.Order", on_delete=models.SET_NULL,
                                               null=True, blank=True, related_name="current_pilot")
    current_lat         = models.FloatField(null=True, blank=True)
    current_lng         = models.FloatField(null=True, blank=True)
    location_updated_at = models.DateTimeField(null=True, blank=True)

    total_deliveries    = models.PositiveIntegerField(default=0)
    rating_average      = models.FloatField(default=0.0)
    rating_count        = models.PositiveIntegerField(default=0)

    created_at          = models.DateTimeField(auto_now_add=True)
    updated_at          = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [
            models.Index(fields=["is_approved", "is_available"], name="pilot_approved_avail_idx"),
        ]

    def __str__(self):
        return f"{self.pilot_id} – {self.account.full_name} ({self.registration_number})"

    @property
    def name(self) -> str:
        return self.account.full_name

    @property
    def phone_number(self) -> str:
        return self.account.phone

    @property
    def has_location(self) -> bool:
        return self.current_lat is not None and self.current_lng is not None

    @property
    def license_is_valid(self) -> bool:
        return self.license_valid_till > timezone.localdate()

    @property
    def documents_valid(self) -> bool:
        """Licence, insurance and RC must all be flagged valid and unexpired."""
        today = timezone.localdate()
        insurance_ok = self.insurance_valid and (self.insurance_expiry is None or self.insurance_expiry > today)
        rc_ok        = self.rc_valid and (self.rc_expiry is None or self.rc_expiry > today)
        return self.license_is_valid and insurance_ok and rc_ok

    def add_rating(self, value: int) -> None:
        """Fold one 1–5 rating into the running average (one decimal place)."""
        total = self.rating_average * self.rating_count + value
        self.rating_count += 1
        self.rating_average = round(total / self.rating_count, 1)
