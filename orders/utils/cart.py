# orders/utils/cart.py
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

Lines = Tuple["CartLine", ...]


@dataclass(frozen=True)
class CartItem:
    id: str
    name: str
    price: Decimal
    photo_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            price=Decimal(str(data.get("price", 0))),
            photo_id=data.get("photoId") or data.get("photo_id") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "name": self.name, "price": str(self.price)}
        if self.photo_id:
            out["photoId"] = self.photo_id
        return out


@dataclass(frozen=True)
class CartLine:
    restaurant_id: str
    restaurant_name: str
    item: CartItem
    qty: int

    @property
    def line_total(self) -> Decimal:
        return self.item.price * self.qty

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLine":
        qty = int(data["qty"])
        if qty < 1:
            raise ValueError(f"Cart line quantity must be >= 1, got {qty}")
        return cls(
            restaurant_id=str(data["restaurantId"]),
            restaurant_name=str(data.get("restaurantName") or ""),
            item=CartItem.from_dict(data["item"]),
            qty=qty,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "restaurantId": self.restaurant_id,
            "restaurantName": self.restaurant_name,
            "item": self.item.to_dict(),
            "qty": self.qty,
        }


def _matches(line: CartLine, restaurant_id: str, item_id: str) -> bool:
    return line.restaurant_id == str(restaurant_id) and line.item.id == str(item_id)


# ---------------------------------------------------------------------------
# Pure reducers: (lines, args) -> new lines. Never mutate the input.
# ---------------------------------------------------------------------------

def add_item(lines: Lines, restaurant_id: str, restaurant_name: str, item: CartItem, qty: int = 1) -> Lines:
    """Merge into the existing (restaurant, item) line by summing qty, else append."""
    qty = max(1, int(qty))
    for idx, line in enumerate(lines):
        if _matches(line, restaurant_id, item.id):
            bumped = replace(line, qty=line.qty + qty)
            return lines[:idx] + (bumped,) + lines[idx + 1:]
    return lines + (CartLine(str(restaurant_id), restaurant_name, item, qty),)


def update_qty(lines: Lines, restaurant_id: str, item_id: str, qty: int) -> Lines:
    """Set a line's quantity; anything below 1 removes the line."""
    qty = int(qty)
    if qty < 1:
        return remove_item(lines, restaurant_id, item_id)
    return tuple(replace(l, qty=qty) if _matches(l, restaurant_id, item_id) else l for l in lines)


def remove_item(lines: Lines, restaurant_id: str, item_id: str) -> Lines:
    return tuple(l for l in lines if not _matches(l, restaurant_id, item_id))


def clear_restaurant(lines: Lines, restaurant_id: str) -> Lines:
    return tuple(l for l in lines if l.restaurant_id != str(restaurant_id))


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

def get_item_qty(lines: Lines, restaurant_id: str, item_id: str) -> int:
    for line in lines:
        if _matches(line, restaurant_id, item_id):
            return line.qty
    return 0


def get_restaurant_count(lines: Lines, restaurant_id: str) -> int:
    return sum(l.qty for l in lines if l.restaurant_id == str(restaurant_id))


def lines_for_restaurant(lines: Lines, restaurant_id: str) -> Lines:
    return tuple(l for l in lines if l.restaurant_id == str(restaurant_id))


class InMemoryCartStorage:
    """Storage that keeps nothing beyond the process; handy for scripts and tests."""

    def __init__(self, lines: Iterable[CartLine] = ()):
        self._lines: Lines = tuple(lines)

    def load(self) -> Lines:
        return self._lines

    def save(self, lines: Lines) -> None:
        self._lines = tuple(lines)


class CartStore:
    """
    The customer's cart: lines keyed by (restaurant, item) across any number
    of restaurants. Each mutation runs the matching reducer and persists the
    result through ``storage`` (anything with ``load()``/``save(lines)``).
    """

    def __init__(self, storage=None):
        self.storage = storage if storage is not None else InMemoryCartStorage()
        self._lines: Lines = tuple(self.storage.load())

    @property
    def lines(self) -> Lines:
        return self._lines

    def _commit(self, lines: Lines) -> Lines:
        self._lines = lines
        self.storage.save(lines)
        return lines

    def add_item(self, restaurant_id, restaurant_name: str, item: CartItem, qty: int = 1) -> Lines:
        return self._commit(add_item(self._lines, restaurant_id, restaurant_name, item, qty))

    def update_qty(self, restaurant_id, item_id, qty: int) -> Lines:
        return self._commit(update_qty(self._lines, restaurant_id, item_id, qty))

    def remove_item(self, restaurant_id, item_id) -> Lines:
        return self._commit(remove_item(self._lines, restaurant_id, item_id))

    def clear_restaurant(self, restaurant_id) -> Lines:
        return self._commit(clear_restaurant(self._lines, restaurant_id))

    def clear(self) -> Lines:
        return self._commit(tuple())

    def get_item_qty(self, restaurant_id, item_id) -> int:
        return get_item_qty(self._lines, restaurant_id, item_id)

    def get_restaurant_count(self, restaurant_id) -> int:
        return get_restaurant_count(self._lines, restaurant_id)

    def lines_for_restaurant(self, restaurant_id) -> Lines:
        return lines_for_restaurant(self._lines, restaurant_id)
