# orders/session_utils.py
"""
Session persistence for the cart and the applied coupon.

The cart is stored under ``foodie-cart`` as ``{"version": 1, "lines": [...]}``.
Anything unreadable (missing key, corrupt payload, unknown version) loads as an
empty cart and is logged; loading never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from django.http import HttpRequest

from .utils.cart import CartLine, CartStore, Lines

logger = logging.getLogger(__name__)

CART_SESSION_KEY = "foodie-cart"
CART_SCHEMA_VERSION = 1
COUPON_SESSION_KEY = "applied_coupon"


def _migrate_v0(payload: Dict[str, Any]) -> Dict[str, Any]:
    # v0 was a bare list of lines
    return {"version": 1, "lines": list(payload.get("lines") or [])}


# from_version -> callable returning a payload one version newer
MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    0: _migrate_v0,
}


def _upgrade(payload: Any) -> Optional[Dict[str, Any]]:
    if isinstance(payload, list):
        payload = {"version": 0, "lines": payload}
    if not isinstance(payload, dict):
        return None

    version = payload.get("version")
    while isinstance(version, int) and version < CART_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            return None
        payload = step(payload)
        version = payload.get("version")

    if version != CART_SCHEMA_VERSION:
        return None
    return payload


def decode_cart(payload: Any) -> Lines:
    """Parse a stored payload into cart lines; an empty tuple on any problem."""
    if payload is None:
        return tuple()

    upgraded = _upgrade(payload)
    if upgraded is None:
        version = payload.get("version") if isinstance(payload, dict) else type(payload).__name__
        logger.warning("Discarding cart payload with unsupported version: %r", version)
        return tuple()

    raw_lines = upgraded.get("lines")
    if not isinstance(raw_lines, list):
        logger.warning("Discarding cart payload without a line list")
        return tuple()

    try:
        return tuple(CartLine.from_dict(row) for row in raw_lines)
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        logger.warning("Discarding corrupt cart payload: %s", e)
        return tuple()


def encode_cart(lines: Lines) -> Dict[str, Any]:
    return {"version": CART_SCHEMA_VERSION, "lines": [line.to_dict() for line in lines]}


class SessionCartStorage:
    """Cart storage backed by a Django session (or any dict-like mapping)."""

    def __init__(self, session):
        self.session = session

    def load(self) -> Lines:
        return decode_cart(self.session.get(CART_SESSION_KEY))

    def save(self, lines: Lines) -> None:
        self.session[CART_SESSION_KEY] = encode_cart(lines)
        # nested dict edits are invisible to the session otherwise
        if hasattr(self.session, "modified"):
            self.session.modified = True


def get_cart_store(request: HttpRequest) -> CartStore:
    return CartStore(SessionCartStorage(request.session))


def get_applied_coupons(session) -> Dict[str, str]:
    """restaurant id -> coupon code currently applied in this session."""
    data = session.get(COUPON_SESSION_KEY)
    return dict(data) if isinstance(data, dict) else {}


def get_applied_coupon(session, restaurant_id) -> Optional[str]:
    return get_applied_coupons(session).get(str(restaurant_id)) or None


def set_applied_coupon(session, restaurant_id, code: Optional[str]) -> None:
    coupons = get_applied_coupons(session)
    if code:
        coupons[str(restaurant_id)] = code
    else:
        coupons.pop(str(restaurant_id), None)
    session[COUPON_SESSION_KEY] = coupons
    if hasattr(session, "modified"):
        session.modified = True


def serialize_lines(lines: Lines) -> List[Dict[str, Any]]:
    return [line.to_dict() for line in lines]
