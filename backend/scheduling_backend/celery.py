"""Celery application for scheduled ride processing (beat schedule lives in settings)."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "scheduling_backend.settings.base")

app = Celery("scheduling_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
