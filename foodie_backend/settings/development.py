# foodie_backend/settings/development.py
from .base import *

# -----------------------------------------------------------------------------
# Development Settings
# -----------------------------------------------------------------------------
DEBUG = True

SECRET_KEY = SECRET_KEY or "dev-insecure-foodie-secret-key"
SIMPLE_JWT["SIGNING_KEY"] = SECRET_KEY

# Allow all hosts in development
ALLOWED_HOSTS = ["*"]

# The Expo dev client talks to us from arbitrary LAN origins
CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOWED_ORIGINS = []

# -----------------------------------------------------------------------------
# Security Settings (Relaxed for Development)
# -----------------------------------------------------------------------------
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# -----------------------------------------------------------------------------
# Logging Configuration (Development)
# -----------------------------------------------------------------------------
LOGGING["root"]["level"] = "INFO"
LOGGING["loggers"]["payments"]["level"] = "DEBUG"
LOGGING["loggers"]["orders"]["level"] = "DEBUG"

LOGGING["loggers"]["django.db.backends"] = {
    "handlers": ["console"],
    "level": "DEBUG" if os.getenv("DEBUG_SQL", "0") == "1" else "INFO",
    "propagate": False,
}
