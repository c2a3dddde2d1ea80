import os
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

# Tests always run against the development settings unless told otherwise
os.environ.setdefault("ENVIRONMENT", "development")


@pytest.fixture(autouse=True)
def _fast_checkout(settings):
    """No settle pauses and no real payment service during tests."""
    settings.UPI_RETURN_SETTLE_SECONDS = (0, 0)
    settings.PAYMENT_SERVICE_URL = "http://payments.test/api"
    settings.APP_DEEP_LINK_SCHEME = "foodie"


@pytest.fixture(autouse=True)
def _fresh_prefetchers(monkeypatch):
    # warmed links must not leak between tests
    from payments import prefetch

    monkeypatch.setattr(prefetch, "registry", prefetch.PrefetcherRegistry())
    for module in ("orders.api_views", "orders.services.cancellation", "payments.signals"):
        mod = __import__(module, fromlist=["registry"])
        if hasattr(mod, "registry"):
            monkeypatch.setattr(mod, "registry", prefetch.registry)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient(enforce_csrf_checks=False)


@pytest.fixture
def user(db):
    """The customer placing orders in most tests."""
    return get_user_model().objects.create_user(
        username="asha",
        email="asha@example.com",
        password="password123!",
    )


@pytest.fixture
def auth_api_client(api_client: APIClient, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def fees():
    from core.services import PlatformFees

    return PlatformFees(
        platform_fee=Decimal("5"),
        delivery_fee=Decimal("29"),
        free_delivery_threshold=Decimal("399"),
    )
