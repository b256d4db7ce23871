from .base import *

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

SCHOOLRIDE = {
    "MAPS_API_KEY": "",
    "ROUTE_COMPATIBILITY_RULE": "tiered",
    "PAYMENT_GATEWAY": {"PROVIDER": "mock"},
}

LOGGING["root"]["level"] = "WARNING"
