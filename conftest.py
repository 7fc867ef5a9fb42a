"""
pytest configuration for Aggrekart.
Sets Django settings and provides shared fixtures.
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from django.conf import settings


def pytest_configure(config):
    """Configure Django settings before tests run."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME":   ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.admin",
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django.contrib.sessions",
                "django.contrib.messages",
                "django.contrib.staticfiles",
                "rest_framework",
                "rest_framework_simplejwt",
                "drf_spectacular",
                "django_filters",
                "corsheaders",
                "apps.authentication",
                "apps.orders",
                "apps.support",
                "apps.notifications",
                "apps.ops",
            ],
            AUTH_USER_MODEL="authentication.Account",
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
                "DEFAULT_FILTER_BACKENDS": [
                    "django_filters.rest_framework.DjangoFilterBackend",
                    "rest_framework.filters.SearchFilter",
                    "rest_framework.filters.OrderingFilter",
                ],
                "DEFAULT_PAGINATION_CLASS": "aggrekart.responses.EnvelopePagination",
                "PAGE_SIZE": 10,
                "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
                "EXCEPTION_HANDLER": "aggrekart.exceptions.envelope_exception_handler",
            },
            SPECTACULAR_SETTINGS={
                "TITLE": "Aggrekart Pilot API",
                "VERSION": "1.0.0",
                "SERVE_INCLUDE_SCHEMA": False,
            },
            SECRET_KEY="test-secret-key-not-for-production",
            DEBUG=False,
            USE_TZ=True,
            TIME_ZONE="Asia/Kolkata",
            ROOT_URLCONF="aggrekart.urls",
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            TEMPLATES=[{
                "BACKEND": "django.template.backends.django.DjangoTemplates",
                "DIRS": [],
                "APP_DIRS": True,
                "OPTIONS": {
                    "context_processors": [
                        "django.template.context_processors.debug",
                        "django.template.context_processors.request",
                        "django.contrib.auth.context_processors.auth",
                        "django.contrib.messages.context_processors.messages",
                    ],
                },
            }],
            MIDDLEWARE=[
                "django.middleware.security.SecurityMiddleware",
                "corsheaders.middleware.CorsMiddleware",
                "django.contrib.sessions.middleware.SessionMiddleware",
                "django.middleware.common.CommonMiddleware",
                "django.middleware.csrf.CsrfViewMiddleware",
                "django.contrib.auth.middleware.AuthenticationMiddleware",
                "django.contrib.messages.middleware.MessageMiddleware",
            ],
            STATIC_URL="/static/",
            STATIC_ROOT="/tmp/staticfiles_test",
            CACHES={
                "default": {
                    "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
                }
            },
            CELERY_TASK_ALWAYS_EAGER=True,   # Execute tasks synchronously in tests
            CELERY_TASK_EAGER_PROPAGATES=True,
            CELERY_BROKER_URL="memory://",
            EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
            DEFAULT_FROM_EMAIL="noreply@aggrekart.com",
            CORS_ALLOW_ALL_ORIGINS=True,
            SIMPLE_JWT={
                "ACCESS_TOKEN_LIFETIME": timedelta(days=30),
                "REFRESH_TOKEN_LIFETIME": timedelta(days=30),
                "ALGORITHM": "HS256",
                "AUTH_HEADER_TYPES": ("Bearer",),
            },
            # Pilot workflow
            PILOT_OTP_TTL_SECONDS=600,
            PILOT_OTP_ECHO=True,
            PILOT_TOKEN_LIFETIME_DAYS=30,
            NEARBY_DEFAULT_RADIUS_KM=15.0,
            NEARBY_MAX_RADIUS_KM=50.0,
            NEARBY_MAX_PAGE_SIZE=50,
            URGENT_ORDER_AGE_HOURS=24,
            PILOT_EARNING_SHARE="0.70",
            AVERAGE_SPEED_KMPH=40.0,
            SUPPORT_PHONE="+91-9876543210",
            SUPPORT_EMAIL="support@aggrekart.com",
            SUPPORT_WHATSAPP="+91-9876543210",
            APP_VERSION_CURRENT="1.0.0",
            APP_VERSION_MINIMUM="1.0.0",
            # Dummy external service URLs (mocked in tests)
            SMS_GATEWAY_URL="http://sms-mock:8003",
            GEOCODING_API_URL="http://geocode-mock/json",
            GOOGLE_MAPS_API_KEY="",
        )


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

PILOT_HOME = (20.2961, 85.8245)


@pytest.fixture(autouse=True)
def sms_gateway():
    """No test ever reaches the real SMS gateway."""
    with patch("apps.notifications.service.requests.post") as post:
        post.return_value = MagicMock(status_code=200)
        yield post


@pytest.fixture(autouse=True)
def clear_cache():
    """OTP challenges live in the cache; start every test without any."""
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_account(db):
    from apps.authentication.models import Account
    counter = {"n": 0}

    def _make(phone=None, role=Account.Role.CUSTOMER, **kwargs):
        counter["n"] += 1
        phone = phone or f"70000{counter['n']:05d}"
        kwargs.setdefault("full_name", "Test User")
        return Account.objects.create_user(phone=phone, role=role, **kwargs)
    return _make


@pytest.fixture
def customer(make_account):
    return make_account(phone="9000000001", full_name="Ravi Customer", email="ravi@example.com")


@pytest.fixture
def staff(make_account):
    from apps.authentication.models import Account
    return make_account(phone="9000000009", role=Account.Role.ADMIN, full_name="Asha Support",
                        email="asha@aggrekart.com")


@pytest.fixture
def supplier(db):
    from apps.orders.models import Supplier
    return Supplier.objects.create(
        company_name="Kalinga Cements",
        contact_number="9000000002",
        address="Plot 4, Rasulgarh",
        city="Bhubaneswar",
        latitude=PILOT_HOME[0],
        longitude=PILOT_HOME[1],
    )


@pytest.fixture
def make_pilot(make_account):
    from apps.authentication.models import Account, Pilot
    counter = {"n": 0}

    def _make(phone=None, approved=True, location=PILOT_HOME, **kwargs):
        counter["n"] += 1
        n = counter["n"]
        account = make_account(
            phone=phone or f"98765{n:05d}", role=Account.Role.PILOT,
            full_name=kwargs.pop("full_name", f"Pilot {n}"), is_active=approved,
        )
        lat, lng = location if location else (None, None)
        defaults = dict(
            pilot_id=f"PIL{n:06d}",
            registration_number=f"OD02AB{n:04d}",
            vehicle_type=Pilot.VehicleType.TRUCK,
            capacity_tons=Decimal("10.0"),
            insurance_valid=True,
            rc_valid=True,
            license_number=f"OD0220190{n:06d}",
            license_valid_till=date.today() + timedelta(days=365),
            is_approved=approved,
            is_available=approved,
            current_lat=lat,
            current_lng=lng,
        )
        defaults.update(kwargs)
        return Pilot.objects.create(account=account, **defaults)
    return _make


@pytest.fixture
def pilot(make_pilot):
    return make_pilot(phone="9876543210", full_name="Suresh Pilot")


@pytest.fixture
def make_order(customer, supplier):
    from apps.orders.models import Order, OrderItem
    counter = {"n": 0}

    def _make(lat=PILOT_HOME[0], lng=PILOT_HOME[1], status=Order.Status.DISPATCHED, **kwargs):
        counter["n"] += 1
        kwargs.setdefault("order_id", f"AGK{counter['n']:06d}")
        kwargs.setdefault("confirmed_at", None)
        order = Order.objects.create(
            customer=kwargs.pop("customer", customer),
            supplier=supplier,
            status=status,
            subtotal=Decimal("10000.00"),
            transport_cost=Decimal("1000.00"),
            gst_amount=Decimal("1800.00"),
            total_amount=Decimal("12800.00"),
            delivery_address="Site 7, Patia",
            delivery_city="Bhubaneswar",
            delivery_lat=lat,
            delivery_lng=lng,
            **kwargs,
        )
        OrderItem.objects.create(
            order=order, name="OPC Cement 53", quantity=Decimal("20"), unit="bag",
            unit_price=Decimal("500.00"), total_price=Decimal("10000.00"),
        )
        return order
    return _make


@pytest.fixture
def auth_client(db):
    """APIClient authenticated as the given account."""
    from rest_framework.test import APIClient

    def _as(account):
        client = APIClient()
        client.force_authenticate(user=account)
        return client
    return _as


@pytest.fixture
def pilot_client(auth_client, pilot):
    return auth_client(pilot.account)
