from .base import *
import os

DEBUG = False
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(',')
CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(',')

if os.getenv("DJANGO_SECRET_KEY") is None:
    raise RuntimeError("DJANGO_SECRET_KEY must be set in production")

# Scheduled rides only survive restarts if the store is on persistent storage
SCHEDULED_RIDES["LOCAL_STORE"]["BACKEND"] = os.getenv("SCHEDULED_RIDES_STORE", "file")
