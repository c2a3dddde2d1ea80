# foodie_backend/settings/__init__.py
"""
Django settings package for the Foodie checkout backend.

This package provides environment-specific settings:
- development: Local development with debug enabled (also used by tests)
- production: Production environment with security hardening

Settings are selected by the ENVIRONMENT variable and default to development.
"""

import os
import sys

# Determine which settings to load
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Validate environment
VALID_ENVIRONMENTS = ["development", "production"]
if ENVIRONMENT not in VALID_ENVIRONMENTS:
    raise ValueError(
        f"Invalid ENVIRONMENT '{ENVIRONMENT}'. "
        f"Must be one of: {', '.join(VALID_ENVIRONMENTS)}"
    )

if ENVIRONMENT == "production":
    from .production import *
else:
    from .development import *

# Add environment info to settings
ENVIRONMENT_INFO = {
    "name": ENVIRONMENT,
    "debug": DEBUG,
    "allowed_hosts": ALLOWED_HOSTS,
    "database_engine": DATABASES["default"]["ENGINE"],
    "payment_service_url": PAYMENT_SERVICE_URL,
}


def validate_settings():
    """Validate critical settings are properly configured."""
    errors = []

    if not SECRET_KEY:
        errors.append("SECRET_KEY must be set to a secure random value")

    if not DATABASES.get("default"):
        errors.append("Database configuration is missing")

    if not PAYMENT_SERVICE_URL:
        errors.append("PAYMENT_SERVICE_URL must point at the payment-link service")

    if ENVIRONMENT == "production" and not ALLOWED_HOSTS:
        errors.append("ALLOWED_HOSTS must be configured for production")

    if ENVIRONMENT == "production" and DEBUG:
        errors.append("DEBUG should be False in production")

    if errors:
        error_msg = "\n".join([f"  - {error}" for error in errors])
        raise ValueError(f"Settings validation failed:\n{error_msg}")


if "migrate" not in sys.argv and ENVIRONMENT == "production":
    validate_settings()

__all__ = ["ENVIRONMENT_INFO", "validate_settings"]
