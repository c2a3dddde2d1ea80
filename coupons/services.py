from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from django.db.models import Q
from django.utils import timezone

from .models import Coupon

logger = logging.getLogger(__name__)


class CouponValidationError(Exception):
    """Raised with a user-facing message when a promo code cannot be applied."""
    pass


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def find_coupon(restaurant_id, code: str) -> Optional[Coupon]:
    """Find a restaurant's active coupon by code. Blank codes never reach the database."""
    code = normalize_code(code)
    if not code:
        raise CouponValidationError("Enter a promo code")

    return (
        Coupon.objects.filter(restaurant_id=restaurant_id, code__iexact=code, is_active=True)
        .order_by("-created_at")
        .first()
    )


def validate_coupon(coupon: Optional[Coupon], sub_total: Decimal, now=None) -> Tuple[bool, str]:
    """Check activity, expiry and minimum sub-total."""
    if not coupon:
        return False, "Coupon not found"

    if not coupon.is_active:
        return False, "This coupon is no longer active"

    if coupon.is_expired(now):
        return False, "This coupon has expired"

    if Decimal(str(sub_total)) < coupon.min_subtotal:
        return False, f"Add items worth {coupon.min_subtotal - Decimal(str(sub_total))} more to use this coupon"

    return True, "Valid"


def apply_coupon(restaurant_id, code: str, sub_total: Decimal, now=None) -> Coupon:
    coupon = find_coupon(restaurant_id, code)
    if coupon is None:
        raise CouponValidationError("Invalid promo code")

    ok, message = validate_coupon(coupon, sub_total, now=now)
    if not ok:
        raise CouponValidationError(message)

    logger.info("Applied coupon %s for restaurant %s (sub-total %s)", coupon.code, restaurant_id, sub_total)
    return coupon


def revalidate_coupon(coupon: Optional[Coupon], sub_total: Decimal, now=None) -> Optional[Coupon]:
    """Return the coupon if it still qualifies, otherwise ``None`` so callers drop it."""
    if coupon is None:
        return None
    ok, message = validate_coupon(coupon, sub_total, now=now)
    if not ok:
        logger.info("Dropping coupon %s: %s", coupon.code, message)
        return None
    return coupon


def list_available_coupons(restaurant_id, sub_total: Decimal, now=None) -> List[Coupon]:
    """Currently valid coupons for a restaurant, soonest-expiring first."""
    now = now or timezone.now()
    coupons = Coupon.objects.filter(
        restaurant_id=restaurant_id,
        is_active=True,
        min_subtotal__lte=sub_total,
    ).filter(
        Q(active_until__isnull=True) | Q(active_until__gt=now)
    )
    # Expiring coupons first, open-ended ones last
    return sorted(coupons, key=lambda c: (c.active_until is None, c.active_until or now, c.code))
