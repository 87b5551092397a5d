from .base import *

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "default",
    },
    "scheduled_rides": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "scheduled-rides",
        "TIMEOUT": None,
    },
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SCHEDULED_RIDES = {
    **SCHEDULED_RIDES,
    "MIN_LEAD_MINUTES": 30,
    "MAX_HORIZON_DAYS": 30,
    "REMINDER_OFFSETS_MINUTES": [60, 15],
    "TRIGGER_WINDOW_MINUTES": 15,
    "STALE_AFTER_MINUTES": 60,
    "RETENTION_DAYS": 30,
    "BOOKING_API_URL": "http://booking.test/api/bookings/",
    "BOOKING_API_TOKEN": "",
    "LOCAL_STORE": {"BACKEND": "cache", "CACHE_ALIAS": "scheduled_rides"},
}

LOGGING["loggers"]["services"]["level"] = "CRITICAL"
LOGGING["loggers"]["scheduled_rides"]["level"] = "CRITICAL"
LOGGING["loggers"]["realtime"]["level"] = "CRITICAL"
