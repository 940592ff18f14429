"""
Django settings for the stockroom inventory core.

Only the pieces the engine needs are configured: the ORM (the durable record
store), the apps holding the unit registry, stock ledger and category tree,
Celery for periodic maintenance, and logging.
"""

from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

# ============================================
# CORE
# ============================================
DEBUG = os.getenv("DJANGO_DEBUG", "False") == "True"

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-stockroom-dev-key")

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "mptt",
    "stockroom.apps.StockroomConfig",
    "measurements.apps.MeasurementsConfig",
    "catalog.apps.CatalogConfig",
    "inventory.apps.InventoryConfig",
]

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# ============================================
# DATABASE
# ============================================
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("STOCKROOM_DB_PATH", str(BASE_DIR / "db.sqlite3")),
        # The writer thread and readers use separate connections; give
        # readers room to wait out a commit instead of failing with "locked".
        "OPTIONS": {"timeout": 20},
        "TEST": {
            "NAME": str(BASE_DIR / "test_stockroom.sqlite3"),
        },
    }
}

# ============================================
# ENGINE
# ============================================
STOCKROOM = {
    "MAX_CATEGORY_LEVEL": 4,
    "CATEGORY_SEARCH_LIMIT": 20,
    "MAX_CONVERSION_FACTOR": 1_000_000,
    "DEFAULT_BASE_UNITS": ("pcs", "gr"),
    "TRANSACTION_PAGE_SIZE": 50,
    "TRANSACTION_RETENTION_DAYS": int(os.getenv("STOCKROOM_RETENTION_DAYS", "365")),
    "WRITER_EAGER": os.getenv("STOCKROOM_WRITER_EAGER", "False") == "True",
}

# ============================================
# CELERY
# ============================================
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE

# ============================================
# LOGGING
# ============================================
LOG_LEVEL = os.getenv("STOCKROOM_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{levelname}] {asctime} {name} {thread:d} - {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "stockroom": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "measurements": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "inventory": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "catalog": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
