from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from menu.models import MenuItem, Restaurant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityReport:
    available_lines: Tuple = ()
    unavailable_lines: Tuple = ()
    is_restaurant_open: bool = True
    availability: Dict[str, bool] = field(default_factory=dict)

    @property
    def has_any_available(self) -> bool:
        return bool(self.available_lines)

    @property
    def all_unavailable(self) -> bool:
        return bool(self.unavailable_lines) and not self.available_lines


def _valid_ids(ids: Iterable[str]):
    out = []
    for raw in ids:
        try:
            out.append(uuid.UUID(str(raw)))
        except ValueError:
            continue
    return out


def fetch_restaurant_open(restaurant_id) -> bool:
    """A restaurant we cannot read, or whose flag is unset, counts as open."""
    try:
        flag = Restaurant.objects.filter(pk=restaurant_id).values_list("open", flat=True).first()
    except (DatabaseError, ValidationError, ValueError):
        logger.warning("Could not read restaurant %s; treating it as open", restaurant_id, exc_info=True)
        return True
    return flag is not False


def fetch_item_availability(item_ids: Iterable[str], restaurant_id=None) -> Dict[str, bool]:
    """
    item id -> available. Items missing from the menu are left out (callers
    treat them as available); with ``restaurant_id`` an item on another
    restaurant's menu counts as unavailable.
    """
    ids = _valid_ids(item_ids)
    if not ids:
        return {}
    rows = MenuItem.objects.filter(pk__in=ids).values_list("id", "restaurant_id", "available")
    return {
        str(pk): flag is not False and (restaurant_id is None or str(owner) == str(restaurant_id))
        for pk, owner, flag in rows
    }


def check_availability(restaurant_id, lines: Iterable, previous: Optional[Dict[str, bool]] = None) -> AvailabilityReport:
    """
    Partition a restaurant's cart lines by live item availability.

    A failed item query keeps the ``previous`` map (everything available when
    there is none) so a flaky read never blocks checkout on its own.
    """
    lines = tuple(lines)
    is_open = fetch_restaurant_open(restaurant_id)

    try:
        fetched = fetch_item_availability((line.item.id for line in lines), restaurant_id)
    except DatabaseError:
        logger.warning("Item availability query failed for restaurant %s", restaurant_id, exc_info=True)
        fetched = None

    availability: Dict[str, bool] = {}
    for line in lines:
        item_id = line.item.id
        if fetched is None:
            availability[item_id] = (previous or {}).get(item_id, True) is not False
        else:
            availability[item_id] = fetched.get(item_id, True)

    available = tuple(l for l in lines if availability[l.item.id])
    unavailable = tuple(l for l in lines if not availability[l.item.id])

    if unavailable:
        logger.info(
            "Restaurant %s: %d of %d cart lines unavailable",
            restaurant_id, len(unavailable), len(lines),
        )

    return AvailabilityReport(
        available_lines=available,
        unavailable_lines=unavailable,
        is_restaurant_open=is_open,
        availability=availability,
    )
