# FILE: payments/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = ("pending", "paid", "failed", "canceled", "expired")


class PaymentServiceError(Exception):
    """The payment-link service failed, answered with an error, or sent something unparseable."""

    def __init__(self, message: str, status: int = 0, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def already_paid(self) -> bool:
        return "already_paid" in str(self).lower()


@dataclass(frozen=True)
class PaymentLink:
    id: str
    short_url: str
    status: str
    reference_id: str


@dataclass(frozen=True)
class PaymentStatus:
    reference_id: str
    status: str
    raw_status: str
    link_id: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"


def _json_amount(amount) -> Any:
    value = Decimal(str(amount))
    return int(value) if value == value.to_integral_value() else float(value)


class PaymentServiceClient:
    """
    Thin client for the payment-link microservice:

      POST /payments/create-link        -> {id, short_url, status, reference_id}
      GET  /payments/status/<reference> -> {referenceId, status, rawStatus, linkId?}
      POST /payments/cancel/<reference>
      POST /orders/cancel/<order_id>
    """

    def __init__(self, base_url: str, timeout: float = 20.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = self._url(path)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.exception("Network error calling %s %s", method, url)
            raise PaymentServiceError(f"Payment service unreachable: {e}") from e

        raw = resp.text or ""
        data: Any = None
        if raw.strip():
            try:
                data = resp.json()
            except ValueError:
                # HTML error pages from the host, cold-start splash screens, etc.
                raise PaymentServiceError(
                    f"Non-JSON response ({resp.status_code}): {raw[:180]}", status=resp.status_code
                )

        if resp.status_code >= 400:
            message = None
            if isinstance(data, dict):
                message = data.get("detail") or data.get("error")
            message = str(message or f"HTTP {resp.status_code}")
            logger.warning("Payment service %s %s failed: %s", method, url, message)
            raise PaymentServiceError(message, status=resp.status_code, payload=data)

        return data

    def create_link(
        self,
        reference_id: str,
        amount,
        name: Optional[str] = None,
        email: Optional[str] = None,
        contact: Optional[str] = None,
        callback_url: Optional[str] = None,
    ) -> PaymentLink:
        body: Dict[str, Any] = {"referenceId": str(reference_id), "amount": _json_amount(amount)}
        optional = {"name": name, "email": email, "contact": contact, "callbackUrl": callback_url}
        body.update({k: v for k, v in optional.items() if v})

        data = self._request("POST", "/payments/create-link", json=body)
        if not isinstance(data, dict) or not data.get("short_url"):
            raise PaymentServiceError("Could not create payment link.", payload=data)

        logger.info("Created payment link %s for reference %s", data.get("id"), reference_id)
        return PaymentLink(
            id=str(data.get("id") or ""),
            short_url=str(data["short_url"]),
            status=str(data.get("status") or ""),
            reference_id=str(data.get("reference_id") or reference_id),
        )

    def fetch_status(self, reference_id: str) -> PaymentStatus:
        data = self._request("GET", f"/payments/status/{reference_id}")
        if not isinstance(data, dict) or data.get("status") not in PAYMENT_STATUSES:
            raise PaymentServiceError("Malformed payment status response.", payload=data)
        return PaymentStatus(
            reference_id=str(data.get("referenceId") or reference_id),
            status=data["status"],
            raw_status=str(data.get("rawStatus") or ""),
            link_id=data.get("linkId"),
        )

    def cancel_payment(self, reference_id: str) -> Any:
        logger.info("Cancelling payment link for reference %s", reference_id)
        return self._request("POST", f"/payments/cancel/{reference_id}")

    def cancel_order(self, order_id: str) -> Any:
        logger.info("Cancelling pending order %s through the payment service", order_id)
        return self._request("POST", f"/orders/cancel/{order_id}")

    def cancel(self, reference_id: str) -> Any:
        """Cancel by whichever endpoint PAYMENT_CANCEL_ENDPOINT selects; both are keyed by the order id."""
        if getattr(settings, "PAYMENT_CANCEL_ENDPOINT", "payment") == "order":
            return self.cancel_order(reference_id)
        return self.cancel_payment(reference_id)

    def close(self) -> None:
        self.session.close()


def get_payment_client() -> PaymentServiceClient:
    return PaymentServiceClient(
        base_url=getattr(settings, "PAYMENT_SERVICE_URL", ""),
        timeout=float(getattr(settings, "PAYMENT_SERVICE_TIMEOUT", 20)),
    )
