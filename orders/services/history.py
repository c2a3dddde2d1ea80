from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.utils import timezone

from orders.models import Order

TAB_PENDING = "pending"
TAB_PAID = "paid"
TAB_FAILED = "failed"
TABS = (TAB_PENDING, TAB_PAID, TAB_FAILED)


@dataclass
class OrderPage:
    orders: List[Order]
    next_cursor: Optional[str] = None


def list_orders(user, tab: str = TAB_PENDING, cursor: Optional[str] = None, page_size: Optional[int] = None, now=None) -> OrderPage:
    """
    One page of the user's orders, newest first.

    ``pending`` lists every order still awaiting payment; ``paid`` and
    ``failed`` only look back ``ORDER_HISTORY_WINDOW_DAYS``. ``cursor`` is the
    id of the last order on the previous page.
    """
    if tab not in TABS:
        raise ValueError(f"Unknown orders tab: {tab}")

    page_size = int(page_size or getattr(settings, "ORDER_HISTORY_PAGE_SIZE", 20))
    now = now or timezone.now()

    qs = Order.objects.filter(user=user, payment_status=tab).order_by("-created_at", "-id")
    if tab != TAB_PENDING:
        since = now - timedelta(days=int(getattr(settings, "ORDER_HISTORY_WINDOW_DAYS", 30)))
        qs = qs.filter(created_at__gte=since)

    if cursor:
        try:
            anchor = Order.objects.filter(user=user, pk=cursor).values("created_at", "id").first()
        except ValidationError:
            anchor = None
        if anchor is None:
            raise ValueError("Unknown cursor")
        # start after the anchor in (created_at, id) order
        qs = qs.filter(
            Q(created_at__lt=anchor["created_at"])
            | Q(created_at=anchor["created_at"], id__lt=anchor["id"])
        )

    orders = list(qs[:page_size])
    next_cursor = str(orders[-1].pk) if len(orders) == page_size else None
    return OrderPage(orders=orders, next_cursor=next_cursor)

