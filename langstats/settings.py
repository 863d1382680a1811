# langstats/settings.py
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("STUDYLOG_SECRET_KEY", "dev-only-insecure-key")
DEBUG = _env_bool("STUDYLOG_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("STUDYLOG_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "studylog",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "langstats.urls"
WSGI_APPLICATION = "langstats.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("STUDYLOG_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Session dates are stamped in this zone; it is also the default "today" for streaks.
USE_TZ = True
TIME_ZONE = os.environ.get("STUDYLOG_TIME_ZONE", "UTC")

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

STUDYLOG = {
    "WEEKLY_GOAL_MINUTES": int(os.environ.get("STUDYLOG_WEEKLY_GOAL_MINUTES", "300")),
    "TREND_DAYS": int(os.environ.get("STUDYLOG_TREND_DAYS", "14")),
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "studylog": {
            "handlers": ["console"],
            "level": os.environ.get("STUDYLOG_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
