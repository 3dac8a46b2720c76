"""
Django settings for the notifyhub backend.

Everything is read from the environment with development-friendly defaults;
DJANGO_ENV (local | staging | production) switches the profile at the bottom.
"""

import os
from pathlib import Path
from celery.schedules import crontab

LOG_JSON = os.getenv("LOG_JSON", "1") == "1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# this file lives at backend/notifyhub/settings.py; BASE_DIR is /backend
BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-unsafe")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]
CSRF_TRUSTED_ORIGINS = [o.strip() for o in os.getenv("CSRF_TRUSTED_ORIGINS", "").split(",") if o.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # project apps
    "messaging.apps.MessagingConfig",
    "ops",                         # request logs + heartbeat
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "ops.middleware.RequestLogMiddleware",
]

# Templates (needed for Django admin)
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",   # admin needs this
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

ROOT_URLCONF = "notifyhub.urls"
WSGI_APPLICATION = "notifyhub.wsgi.application"

DB_ENGINE = os.getenv("DB_ENGINE", "sqlite").lower()
if DB_ENGINE == "mysql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.mysql",
            "NAME": os.getenv("MYSQL_DATABASE", "notifyhub"),
            "USER": os.getenv("MYSQL_USER", "notifyhub"),
            "PASSWORD": os.getenv("MYSQL_PASSWORD", ""),
            "HOST": os.getenv("DB_HOST", "127.0.0.1"),
            "PORT": int(os.getenv("DB_PORT", "3306")),
            "OPTIONS": {
                "charset": "utf8mb4",
                "use_unicode": True,
            },
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.getenv("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
        }
    }

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

ADMIN_URL = os.getenv("ADMIN_URL", "admin")

# --- Messaging ---
MESSAGING_DEFAULT_LANGUAGE = os.getenv("MESSAGING_DEFAULT_LANGUAGE", "en")
MESSAGING_SUPPORTED_LANGUAGES = tuple(
    l.strip() for l in os.getenv("MESSAGING_SUPPORTED_LANGUAGES", "en,fr").split(",") if l.strip()
)
MESSAGING_TEMPLATE_DIR = os.getenv("MESSAGING_TEMPLATE_DIR", str(BASE_DIR / "messaging" / "wa_templates"))
# Delivery retry policy attached to every queued job
MESSAGING_RETRY_ATTEMPTS = int(os.getenv("MESSAGING_RETRY_ATTEMPTS", "3"))
MESSAGING_RETRY_DELAY_SECONDS = float(os.getenv("MESSAGING_RETRY_DELAY_SECONDS", "5"))
MESSAGING_RETRY_MAX_DELAY_SECONDS = float(os.getenv("MESSAGING_RETRY_MAX_DELAY_SECONDS", "300"))
MESSAGING_RETENTION_DAYS = int(os.getenv("MESSAGING_RETENTION_DAYS", "30"))

WHATSAPP_PROVIDER = os.getenv("WHATSAPP_PROVIDER", "mock")   # meta | mock
WA_VERIFY_TOKEN = os.getenv("WA_VERIFY_TOKEN", "")
WA_APP_SECRET = os.getenv("WA_APP_SECRET", "")

EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "mock")         # brevo | mock
EMAIL_WEBHOOK_TOKEN = os.getenv("EMAIL_WEBHOOK_TOKEN", "")
# links in templated emails (password reset, welcome)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")

PUSH_PROVIDER = os.getenv("PUSH_PROVIDER", "mock")           # mock; device transports plug in behind PushProvider

# --- Celery ---
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/1")
CELERY_RESULT_EXPIRES = int(os.getenv("CELERY_RESULT_EXPIRES", str(24 * 3600)))
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ROUTES = {
    "messaging.tasks.deliver_whatsapp_message": {"queue": "whatsapp-notifications"},
    "messaging.tasks.deliver_email": {"queue": "email-notifications"},
    "messaging.tasks.deliver_push": {"queue": "push-notifications"},
}

CELERY_BEAT_SCHEDULE = {
    "ops-beat-heartbeat-every-1m": {
        "task": "ops.tasks.beat_heartbeat",
        "schedule": crontab(minute="*/1"),
    },
    "messaging-purge-old-records-daily": {
        "task": "messaging.tasks.purge_old_records",
        "schedule": crontab(hour=3, minute=15),
    },
}

# --- Logging ---
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        # request log lines are already JSON; keep the prefix minimal when LOG_JSON is on
        "plain": {"format": "%(message)s" if LOG_JSON else "%(asctime)s %(levelname)s %(name)s %(message)s"},
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
        "request": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "request": {"handlers": ["request"], "level": LOG_LEVEL, "propagate": False},
        "messaging": {"level": LOG_LEVEL},
        "ops": {"level": LOG_LEVEL},
    },
    "root": {"handlers": ["console"], "level": os.getenv("ROOT_LOG_LEVEL", "WARNING")},
}

# ------------------------------------------------------------------------------
# Environment profile
# ------------------------------------------------------------------------------
DJANGO_ENV = (os.getenv("DJANGO_ENV") or "local").lower()

if DJANGO_ENV == "local":
    DEBUG = True
elif DJANGO_ENV in {"staging", "production"}:
    DEBUG = False
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_SSL_REDIRECT = True
    SECURE_HSTS_SECONDS = 3600
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
# ------------------------------------------------------------------------------
