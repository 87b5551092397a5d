"""
Base settings for the scheduled rides backend.

Environment variables (optionally from ../.env) override the defaults below.
"""

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent.parent
load_dotenv(os.path.join(BASE_DIR, '..', '.env'))

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-dev-only-change-me")
DEBUG = os.getenv("DJANGO_DEBUG", "true").lower() == "true"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "*").split(',')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'channels',
    'realtime',
    'scheduled_rides',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'scheduling_backend.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'scheduling_backend.wsgi.application'
ASGI_APPLICATION = 'scheduling_backend.asgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv("DATABASE_PATH", str(BASE_DIR / 'db.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv("TIME_ZONE", "Asia/Kolkata")
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

CORS_ALLOW_ALL_ORIGINS = True

# ---------------------- REST Framework ----------------------

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=12),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=30),
}

# ---------------------- Redis / Channels / Celery ----------------------

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {
            "hosts": [REDIS_URL],
        },
    }
}

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_BEAT_SCHEDULE = {
    # Background-task slot: best effort, the reminder and app-resume triggers cover gaps
    "reconcile-scheduled-rides": {
        "task": "scheduled_rides.tasks.reconcile_scheduled_rides_task",
        "schedule": float(os.getenv("RECONCILE_INTERVAL_SECONDS", 300)),
    },
    "cleanup-scheduled-rides": {
        "task": "scheduled_rides.tasks.cleanup_scheduled_rides_task",
        "schedule": 24 * 60 * 60.0,
    },
}

# ---------------------- Caches ----------------------

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": REDIS_URL,
    },
    # Local store for scheduled rides; must survive restarts
    "scheduled_rides": {
        "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
        "LOCATION": os.getenv("SCHEDULED_RIDES_CACHE_DIR", str(BASE_DIR / "var" / "scheduled_rides")),
        "TIMEOUT": None,
    },
}

# ---------------------- Scheduled Rides ----------------------

SCHEDULED_RIDES = {
    "MIN_LEAD_MINUTES": int(os.getenv("SCHEDULED_RIDES_MIN_LEAD_MINUTES", 30)),
    "MAX_HORIZON_DAYS": int(os.getenv("SCHEDULED_RIDES_MAX_HORIZON_DAYS", 30)),
    "REMINDER_OFFSETS_MINUTES": [
        int(m) for m in os.getenv("SCHEDULED_RIDES_REMINDER_OFFSETS", "60,15").split(",")
    ],
    "TRIGGER_WINDOW_MINUTES": int(os.getenv("SCHEDULED_RIDES_TRIGGER_WINDOW_MINUTES", 15)),
    "STALE_AFTER_MINUTES": int(os.getenv("SCHEDULED_RIDES_STALE_AFTER_MINUTES", 60)),
    "RETENTION_DAYS": int(os.getenv("SCHEDULED_RIDES_RETENTION_DAYS", 30)),
    "BOOKING_API_URL": os.getenv("BOOKING_API_URL", ""),
    "BOOKING_API_TOKEN": os.getenv("BOOKING_API_TOKEN", ""),
    "BOOKING_TIMEOUT_SECONDS": float(os.getenv("BOOKING_TIMEOUT_SECONDS", 10)),
    "RECONCILE_LOCK_SECONDS": 120,
    "LOCAL_STORE": {
        "BACKEND": os.getenv("SCHEDULED_RIDES_STORE", "cache"),
        "CACHE_ALIAS": "scheduled_rides",
        "PATH": os.getenv("SCHEDULED_RIDES_STORE_PATH", str(BASE_DIR / "var" / "scheduled_rides.json")),
    },
}

# ---------------------- Logging ----------------------

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "services": {"handlers": ["console"], "level": os.getenv("SCHEDULING_LOG_LEVEL", "INFO"), "propagate": False},
        "scheduled_rides": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "realtime": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
