"""
Django settings for erp_project.

Every deploy-specific value is read from the environment so the same
module serves development, tests and production.
"""
import os
from decimal import Decimal
from pathlib import Path

from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    # "1", "true", "yes" (any case) switch a flag on
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "insecure-dev-key-change-me-in-production"
)
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if h.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "erp_core.apps.ErpCoreConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    # attaches request.client (the tenant) after the user is known
    "erp_core.middleware.CurrentClientMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "erp_project.urls"
WSGI_APPLICATION = "erp_project.wsgi.application"

TEMPLATES = [
    {
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
    },
]

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DATABASE_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

# Custom user carries the default client (tenant)
AUTH_USER_MODEL = "erp_core.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("ERP_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------- ERP defaults ----------
# Months added to a subscription when a client signs up or is extended
ERP_SUBSCRIPTION_MONTHS = int(os.environ.get("ERP_SUBSCRIPTION_MONTHS", "1"))
# Tax rate suggested for new invoices/bills when none is given (0.00 - 1.00)
ERP_DEFAULT_TAX_RATE = Decimal(os.environ.get("ERP_DEFAULT_TAX_RATE", "0.00"))

# ---------- Celery ----------
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "expire-subscriptions": {
        "task": "erp_core.tasks.expire_subscriptions_task",
        "schedule": crontab(hour=0, minute=5),
    },
    "mark-overdue-documents": {
        "task": "erp_core.tasks.mark_overdue_documents_task",
        "schedule": crontab(hour=0, minute=15),
    },
    "rebuild-attendance-summaries": {
        "task": "erp_core.tasks.rebuild_attendance_summaries_task",
        "schedule": crontab(hour=1, minute=0),
    },
    "snapshot-profit-loss": {
        "task": "erp_core.tasks.snapshot_profit_loss_task",
        "schedule": crontab(hour=1, minute=30),
    },
}

# ---------- Logging ----------
ERP_LOG_LEVEL = os.environ.get("ERP_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "erp_core": {
            "handlers": ["console"],
            "level": ERP_LOG_LEVEL,
            "propagate": False,
        },
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}
