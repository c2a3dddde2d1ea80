from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError

from .models import PlatformConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformFees:
    platform_fee: Decimal
    delivery_fee: Decimal
    free_delivery_threshold: Decimal

    @classmethod
    def defaults(cls) -> "PlatformFees":
        raw = getattr(settings, "PLATFORM_FEE_DEFAULTS", {}) or {}
        return cls(
            platform_fee=Decimal(str(raw.get("platform_fee", "5"))),
            delivery_fee=Decimal(str(raw.get("delivery_fee", "29"))),
            free_delivery_threshold=Decimal(str(raw.get("free_delivery_threshold", "399"))),
        )


def get_platform_config() -> PlatformFees:
    """Read the platform fee row, falling back to safe defaults when it is missing or unreadable."""
    try:
        row = PlatformConfig.objects.filter(pk=PlatformConfig.SINGLETON_PK).first()
    except DatabaseError:
        logger.warning("Platform config unreadable; using default fees", exc_info=True)
        return PlatformFees.defaults()

    if row is None:
        logger.info("No platform config row; using default fees")
        return PlatformFees.defaults()

    return PlatformFees(
        platform_fee=row.platform_fee,
        delivery_fee=row.delivery_fee,
        free_delivery_threshold=row.free_delivery_threshold,
    )
