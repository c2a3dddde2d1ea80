from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class CheckoutError(Exception):
    """Base for checkout failures shown to the user as an alert."""

    code = "checkout_error"
    status_code = 400
    default_message = "Could not complete checkout."

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_payload(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra}


class RestaurantClosed(CheckoutError):
    code = "restaurant_closed"
    default_message = "This restaurant is currently closed. Please try again later."


class NoAvailableItems(CheckoutError):
    code = "no_available_items"
    default_message = "All items in your cart are currently unavailable. Please remove them to continue."


class ItemsUnavailable(CheckoutError):
    code = "items_unavailable"
    default_message = "Some items are unavailable. Remove them to continue."

    def __init__(self, lines: Iterable = (), message: Optional[str] = None):
        self.lines = list(lines)
        if message is None and self.lines:
            message = "Some items are unavailable: " + ", ".join(line.item.name for line in self.lines)
        super().__init__(message, items=[{"id": line.item.id, "name": line.item.name} for line in self.lines])


class AddressRequired(CheckoutError):
    code = "address_required"
    default_message = "Choose a delivery address."


class PaymentMethodRequired(CheckoutError):
    code = "payment_method_required"
    default_message = "Choose a payment method."


class OrderPlacementError(CheckoutError):
    code = "order_failed"
    status_code = 503
    default_message = "Could not place the order."


class OrderNotCancellable(CheckoutError):
    code = "not_cancellable"
    status_code = 409
    default_message = "This order can no longer be cancelled."


class OrderNotPayable(CheckoutError):
    code = "not_payable"
    status_code = 409
    default_message = "This order is not awaiting payment."
