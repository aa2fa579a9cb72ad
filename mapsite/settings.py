"""
Django settings for the listings map backend.
"""
from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in {"1", "true", "yes"}
ALLOWED_HOSTS = [host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "api",
]

MIDDLEWARE = [
    "django.middleware.common.CommonMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
]

ROOT_URLCONF = "mapsite.urls"
WSGI_APPLICATION = "mapsite.wsgi.application"

DATABASES = {}

# Draft filter state lives only as long as the browser session. The login
# itself is kept in a signed cookie for MAP_LOGIN_MAX_AGE seconds.
SESSION_ENGINE = "django.contrib.sessions.backends.cache"
SESSION_EXPIRE_AT_BROWSER_CLOSE = True
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

USE_TZ = True
TIME_ZONE = "Asia/Kolkata"

MAP_DATA_SOURCE = os.environ.get("MAP_DATA_SOURCE", str(BASE_DIR / "media" / "listings.csv"))
MAP_CREDENTIALS_SOURCE = os.environ.get(
    "MAP_CREDENTIALS_SOURCE", str(BASE_DIR / "media" / "credentials.csv")
)
MAP_PIPELINE_PRESET = os.environ.get("MAP_PIPELINE_PRESET", "extended")
MAP_FACET_MODE = os.environ.get("MAP_FACET_MODE") or None
MAP_PRICE_GRAMMAR = os.environ.get("MAP_PRICE_GRAMMAR") or None
MAP_DATE_CUTOFF_ENABLED = os.environ.get("MAP_DATE_CUTOFF_ENABLED") or None
MAP_PRICE_FIELD = os.environ.get("MAP_PRICE_FIELD") or None
MAP_PRICE_MAX_MULTIPLIER = os.environ.get("MAP_PRICE_MAX_MULTIPLIER") or None
MAP_LOGIN_MAX_AGE = int(os.environ.get("MAP_LOGIN_MAX_AGE", 30 * 24 * 60 * 60))

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "[%(asctime)s] [%(levelname)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        # Reduce noise from dependencies
        "urllib3": {"level": "WARNING"},
    },
}
