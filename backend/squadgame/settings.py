import os
from pathlib import Path
from datetime import timedelta

from celery.schedules import crontab
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

# Core
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-secret-key")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

# Applications
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "django_filters",
    "channels",
    "corsheaders",
    "drf_spectacular",
    # Local apps
    "apps.core",
    "apps.events",
    "apps.rewards",
    "apps.judging",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "squadgame.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
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

WSGI_APPLICATION = "squadgame.wsgi.application"
ASGI_APPLICATION = "squadgame.asgi.application"

# Database
def _postgres_dict():
    host = os.getenv("POSTGRES_HOST")
    name = os.getenv("POSTGRES_DB")
    user = os.getenv("POSTGRES_USER")
    password = os.getenv("POSTGRES_PASSWORD")
    port = os.getenv("POSTGRES_PORT", "5432")
    if all([host, name, user, password]):
        return {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": name,
            "USER": user,
            "PASSWORD": password,
            "HOST": host,
            "PORT": port,
            "CONN_MAX_AGE": 60,
            "OPTIONS": {"connect_timeout": 5},
        }
    return None


DATABASES = {
    "default": _postgres_dict()
    or {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
        # Writers queue on the database lock instead of failing with "database is locked"
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        # File database so threads in tests share one store
        "TEST": {"NAME": BASE_DIR / "test_db.sqlite3"},
    }
}

# Cache
_redis_url_env = os.getenv("REDIS_URL")
if _redis_url_env:
    _redis_url = _redis_url_env
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": _redis_url,
        }
    }
else:
    # Use in-memory cache when REDIS_URL is not explicitly set (e.g., tests/CI)
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "squadgame-cache",
        }
    }
    _redis_url = "redis://localhost:6379/1"

# Channels
_channel_redis_url = os.getenv("CHANNEL_REDIS_URL")
if _channel_redis_url:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {"hosts": [_channel_redis_url]},
        }
    }
else:
    # In-memory channel layer for dev/tests without Redis
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels.layers.InMemoryChannelLayer",
        }
    }

# Celery
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", _redis_url)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", _redis_url)
CELERY_TASK_ALWAYS_EAGER = os.getenv("CELERY_TASK_ALWAYS_EAGER", "0") == "1"
# Daily events are generated per squad timezone, so the generator runs hourly
CELERY_BEAT_SCHEDULE = {
    "generate-daily-events": {
        "task": "apps.events.tasks.generate_daily_events",
        "schedule": crontab(minute=5),
    },
    "open-due-events": {
        "task": "apps.events.tasks.open_due_events",
        "schedule": crontab(),
    },
    "close-due-events": {
        "task": "apps.events.tasks.close_due_events",
        "schedule": crontab(),
    },
    "expire-challenges": {
        "task": "apps.judging.tasks.expire_challenges",
        "schedule": crontab(),
    },
    # Monday 00:00 UTC
    "reset-weekly-points": {
        "task": "apps.events.tasks.reset_weekly_points",
        "schedule": crontab(minute=0, hour=0, day_of_week=1),
    },
    "decay-strikes": {
        "task": "apps.events.tasks.decay_strikes",
        "schedule": crontab(minute=10, hour=0, day_of_week=1),
    },
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": 12}},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TZ", "UTC")
USE_I18N = True
USE_TZ = True

# Static/media
STATIC_URL = "static/"
STATIC_ROOT = str(BASE_DIR / "staticfiles")

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Security headers
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "0") == "1"
CSRF_COOKIE_SECURE = os.getenv("CSRF_COOKIE_SECURE", "0") == "1"
CSRF_TRUSTED_ORIGINS = [o for o in os.getenv("CSRF_TRUSTED_ORIGINS", "").split(",") if o]
SECURE_HSTS_SECONDS = int(os.getenv("SECURE_HSTS_SECONDS", "0"))
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = False
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
REFERRER_POLICY = "no-referrer"

# CORS (dev-friendly; tighten in prod)
CORS_ALLOWED_ORIGINS = [o for o in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",") if o]
CORS_ALLOW_CREDENTIALS = True

# DRF
# Member identity comes from the upstream identity provider; the API only
# consumes it through session or bearer-token authentication.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_FILTER_BACKENDS": ["django_filters.rest_framework.DjangoFilterBackend"],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "apps.core.exceptions.game_exception_handler",
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.ScopedRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "event-submit": os.getenv("THROTTLE_EVENT_SUBMIT", "30/min"),
        "challenge-vote": os.getenv("THROTTLE_CHALLENGE_VOTE", "30/min"),
    },
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=15),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Squad Game API",
    "DESCRIPTION": "Daily squad events, scoring, powers, crowns and challenges",
    "VERSION": "0.1.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# Game settings
PARTICIPATION_POINTS = int(os.getenv("PARTICIPATION_POINTS", "10"))
# Extra points on top of participation for timed-score podium finishes
RANK_BONUS_POINTS = {1: 10, 2: 5}
MISSED_EVENT_PENALTY = int(os.getenv("MISSED_EVENT_PENALTY", "15"))
EVENT_DURATION_MINUTES = int(os.getenv("EVENT_DURATION_MINUTES", "5"))
POWER_DURATION_HOURS = int(os.getenv("POWER_DURATION_HOURS", "24"))
CROWN_DURATION_HOURS = int(os.getenv("CROWN_DURATION_HOURS", "24"))
HEADLINE_MAX_LENGTH = 50
JUDGE_STRIKE_CEILING = int(os.getenv("JUDGE_STRIKE_CEILING", "3"))
CHALLENGE_THRESHOLD_PERCENT = int(os.getenv("CHALLENGE_THRESHOLD_PERCENT", "50"))
CHALLENGE_DURATION_HOURS = int(os.getenv("CHALLENGE_DURATION_HOURS", "24"))
# Once this many votes are in, the share of votes cast decides the challenge
CHALLENGE_MIN_VOTES = int(os.getenv("CHALLENGE_MIN_VOTES", "5"))
# Recorded on the judge's assignment when a challenge against them resolves
JUDGE_OVERTURN_PENALTY = int(os.getenv("JUDGE_OVERTURN_PENALTY", "25"))
JUDGE_UPHELD_BONUS = int(os.getenv("JUDGE_UPHELD_BONUS", "10"))

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "format": '{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s","module":"%(module)s"}'
        },
        "simple": {"format": "%(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "json"},
    },
    "root": {"handlers": ["console"], "level": os.getenv("LOG_LEVEL", "INFO")},
}
