# config/settings.py
from pathlib import Path
from datetime import timedelta
import os
from dotenv import load_dotenv

# -----------------------------------------------------------------------------
# PATHS & ENV
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name, default="0"):
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# -----------------------------------------------------------------------------
# CORE SETTINGS
# -----------------------------------------------------------------------------
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "farmlink-dev-secret-key-change-me")
DEBUG = env_bool("DEBUG")

ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",")
    if h.strip()
]

FARMLINK_VERSION = "1.0.0"
FARMLINK_ENVIRONMENT = os.environ.get("FARMLINK_ENV", "development")

# -----------------------------------------------------------------------------
# APPLICATIONS
# -----------------------------------------------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "djoser",
    "accounts",
    "crops",
    "tasks",
    "monitoring",
    "aichat",
]

# -----------------------------------------------------------------------------
# MIDDLEWARE
# -----------------------------------------------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "monitoring.middleware.RequestLoggingMiddleware",
    "monitoring.middleware.PerformanceMonitorMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# -----------------------------------------------------------------------------
# URLS & WSGI
# -----------------------------------------------------------------------------
ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
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

# -----------------------------------------------------------------------------
# DATABASE (SQLite by default, any Django backend through env)
# -----------------------------------------------------------------------------
DB_ENGINE = os.environ.get("DB_ENGINE", "django.db.backends.sqlite3")

if DB_ENGINE.endswith("sqlite3"):
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "farmlink.sqlite3")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("DB_NAME", "farmlink"),
            "USER": os.environ.get("DB_USER", ""),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "localhost"),
            "PORT": os.environ.get("DB_PORT", ""),
        }
    }

# -----------------------------------------------------------------------------
# AUTH & USER MODEL
# -----------------------------------------------------------------------------
AUTH_USER_MODEL = "accounts.CustomUser"

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 6},
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# -----------------------------------------------------------------------------
# INTERNATIONALIZATION
# -----------------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

# -----------------------------------------------------------------------------
# STATIC
# -----------------------------------------------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------------------------------------------
# DJANGO REST FRAMEWORK & JWT
# -----------------------------------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_RENDERER_CLASSES": (
        "rest_framework.renderers.JSONRenderer",
    ),
    "EXCEPTION_HANDLER": "config.exceptions.farmlink_exception_handler",
    "DEFAULT_THROTTLE_RATES": {
        "monitoring": os.environ.get("MONITORING_THROTTLE_RATE", "400/hour"),
    },
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(days=int(os.environ.get("JWT_ACCESS_DAYS", "7"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=30),
    "AUTH_HEADER_TYPES": ("Bearer",),
    "UPDATE_LAST_LOGIN": True,
}

# -----------------------------------------------------------------------------
# DJOSER CONFIGURATION
# -----------------------------------------------------------------------------
DJOSER = {
    "LOGIN_FIELD": "email",
    "TOKEN_MODEL": None,
}

# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
CORS_ALLOWED_ORIGINS = [
    origin
    for origin in [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        os.environ.get("FRONTEND_URL", ""),
    ]
    if origin
]
CORS_ALLOW_CREDENTIALS = True

# -----------------------------------------------------------------------------
# FARMLINK
# -----------------------------------------------------------------------------
FARMLINK = {
    "CROP_DELETE_CASCADE": env_bool("CROP_DELETE_CASCADE"),
    "MONITORING": {
        "RESPONSE_TIME_SAMPLES": 1000,
        "MEMORY_SAMPLES": 100,
        "MEMORY_SAMPLE_INTERVAL": 30,
        "SLOW_QUERY_MS": 100,
        "SLOW_QUERY_SAMPLES": 50,
        "THRESHOLDS": {
            "RESPONSE_TIME_WARNING_MS": 1000,
            "RESPONSE_TIME_CRITICAL_MS": 3000,
            "MEMORY_WARNING": 0.8,
            "MEMORY_CRITICAL": 0.9,
            "ERROR_RATE_WARNING": 0.05,
            "ERROR_RATE_CRITICAL": 0.1,
        },
    },
    "AI_CHAT": {
        "API_KEY": os.environ.get("OPENAI_API_KEY", "").strip(),
        "API_URL": os.environ.get("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"),
        "MODEL": os.environ.get("OPENAI_MODEL", "gpt-3.5-turbo"),
        "MAX_TOKENS": 256,
        "TEMPERATURE": 0.7,
        "TIMEOUT": 20,
    },
}

# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.environ.get("LOG_DIR", BASE_DIR / "logs"))
# file handlers create LOG_DIR on their first write
LOG_TO_FILE = env_bool("LOG_TO_FILE", "1")
LOG_HANDLERS = ["console", "combined_file", "error_file"] if LOG_TO_FILE else ["console"]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
        "simple": {
            "format": "%(levelname)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
        "combined_file": {
            "class": "config.log_handlers.LazyRotatingFileHandler",
            "filename": str(LOG_DIR / "combined.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "verbose",
        },
        "error_file": {
            "class": "config.log_handlers.LazyRotatingFileHandler",
            "filename": str(LOG_DIR / "error.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 5,
            "level": "ERROR",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": LOG_HANDLERS,
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": LOG_HANDLERS,
            "level": "INFO",
            "propagate": False,
        },
        "farmlink": {
            "handlers": LOG_HANDLERS,
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
