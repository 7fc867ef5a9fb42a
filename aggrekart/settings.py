"""
Aggrekart – Production-oriented Django settings.
Pilot delivery and support backend for the construction-materials marketplace.
"""

import os
from pathlib import Path
from datetime import timedelta

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "CHANGE-ME-IN-PRODUCTION")

DEBUG = os.environ.get("DEBUG", "False") == "True"

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "localhost 127.0.0.1").split()

# ── Apps ─────────────────────────────────────────────────────────────────────
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

THIRD_PARTY_APPS = [
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",
    "corsheaders",
    "django_prometheus",
]

LOCAL_APPS = [
    "apps.authentication",
    "apps.orders",
    "apps.support",
    "apps.notifications",
    "apps.ops",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE = [
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

ROOT_URLCONF = "aggrekart.urls"
WSGI_APPLICATION = "aggrekart.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# ── Database (PostgreSQL) ────────────────────────────────────────────────────
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME":     os.environ.get("DB_NAME",     "aggrekart"),
        "USER":     os.environ.get("DB_USER",     "aggrekart"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "aggrekart"),
        "HOST":     os.environ.get("DB_HOST",     "postgres"),
        "PORT":     os.environ.get("DB_PORT",     "5432"),
        "CONN_MAX_AGE": int(os.environ.get("DB_CONN_MAX_AGE", "60")),
    }
}

# ── Cache / Redis (also backs the pilot OTP store) ───────────────────────────
REDIS_URL = os.environ.get("REDIS_URL", "redis://redis:6379/0")

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
    }
}

# ── Celery (fire-and-forget SMS) ─────────────────────────────────────────────
CELERY_BROKER_URL      = REDIS_URL
CELERY_RESULT_BACKEND  = REDIS_URL
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT  = ["json"]
CELERY_TIMEZONE        = "Asia/Kolkata"
CELERY_TASK_ALWAYS_EAGER = False

# ── Auth ──────────────────────────────────────────────────────────────────────
AUTH_USER_MODEL = "authentication.Account"

PILOT_TOKEN_LIFETIME_DAYS = int(os.environ.get("PILOT_TOKEN_LIFETIME_DAYS", "30"))

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME":  timedelta(days=PILOT_TOKEN_LIFETIME_DAYS),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=PILOT_TOKEN_LIFETIME_DAYS),
    "ALGORITHM": "HS256",
    "AUTH_HEADER_TYPES": ("Bearer",),
}

# ── DRF ───────────────────────────────────────────────────────────────────────
REST_FRAMEWORK = {
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
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": "100/hour",
        "user": "5000/hour",
    },
}

# ── OpenAPI ───────────────────────────────────────────────────────────────────
SPECTACULAR_SETTINGS = {
    "TITLE": "Aggrekart Pilot API",
    "DESCRIPTION": "Delivery pilots, nearby orders and customer support",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# ── Internationalisation ──────────────────────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE     = "Asia/Kolkata"
USE_I18N      = True
USE_TZ        = True

# ── Static / Media ────────────────────────────────────────────────────────────
STATIC_URL  = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
MEDIA_URL   = "/media/"
MEDIA_ROOT  = BASE_DIR / "media"

# ── Logging (structured JSON) ─────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        }
    },
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "django":    {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "aggrekart": {"handlers": ["console"], "level": "INFO",    "propagate": False},
    },
}

# ── Email ─────────────────────────────────────────────────────────────────────
EMAIL_BACKEND      = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST         = os.environ.get("EMAIL_HOST", "localhost")
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "noreply@aggrekart.com")

# ── Pilot workflow ────────────────────────────────────────────────────────────
PILOT_OTP_TTL_SECONDS    = int(os.environ.get("PILOT_OTP_TTL_SECONDS", "600"))
PILOT_OTP_ECHO           = os.environ.get("PILOT_OTP_ECHO", str(DEBUG)) == "True"
NEARBY_DEFAULT_RADIUS_KM = float(os.environ.get("NEARBY_DEFAULT_RADIUS_KM", "15"))
NEARBY_MAX_RADIUS_KM     = float(os.environ.get("NEARBY_MAX_RADIUS_KM", "50"))
NEARBY_MAX_PAGE_SIZE     = int(os.environ.get("NEARBY_MAX_PAGE_SIZE", "50"))
URGENT_ORDER_AGE_HOURS   = int(os.environ.get("URGENT_ORDER_AGE_HOURS", "24"))
PILOT_EARNING_SHARE      = os.environ.get("PILOT_EARNING_SHARE", "0.70")
AVERAGE_SPEED_KMPH       = float(os.environ.get("AVERAGE_SPEED_KMPH", "40"))

# ── Pilot app config ─────────────────────────────────────────────────────────
SUPPORT_PHONE       = os.environ.get("SUPPORT_PHONE",    "+91-9876543210")
SUPPORT_EMAIL       = os.environ.get("SUPPORT_EMAIL",    "support@aggrekart.com")
SUPPORT_WHATSAPP    = os.environ.get("SUPPORT_WHATSAPP", "+91-9876543210")
APP_VERSION_CURRENT = os.environ.get("APP_VERSION_CURRENT", "1.0.0")
APP_VERSION_MINIMUM = os.environ.get("APP_VERSION_MINIMUM", "1.0.0")

# ── External services ─────────────────────────────────────────────────────────
SMS_GATEWAY_URL     = os.environ.get("SMS_GATEWAY_URL",   "http://sms-gateway:8003")
GEOCODING_API_URL   = os.environ.get("GEOCODING_API_URL", "https://maps.googleapis.com/maps/api/geocode/json")
GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "")

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
CORS_ALLOW_ALL_ORIGINS = DEBUG
