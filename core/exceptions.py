from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from coupons.services import CouponValidationError
from orders.exceptions import CheckoutError
from payments.services import PaymentServiceError

logger = logging.getLogger(__name__)


def _validation_payload(exc: DjangoValidationError) -> dict:
    if hasattr(exc, "error_dict"):
        fields = {name: [str(m) for m in errs] for name, errs in exc.message_dict.items()}
        return {"detail": "Please fix the highlighted fields.", "code": "invalid", "fields": fields}
    return {"detail": " ".join(str(m) for m in exc.messages), "code": "invalid"}


def api_exception_handler(exc, context):
    """
    Convert domain and I/O failures into user-facing JSON:
    {"detail": <message>, "code": <machine code>, ...}.
    """
    if isinstance(exc, CheckoutError):
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, CouponValidationError):
        return Response({"detail": str(exc), "code": "invalid_coupon"}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, DjangoValidationError):
        return Response(_validation_payload(exc), status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, DRFValidationError) and isinstance(exc.detail, dict):
        fields = {name: [str(m) for m in (errs if isinstance(errs, list) else [errs])] for name, errs in exc.detail.items()}
        return Response(
            {"detail": "Please fix the highlighted fields.", "code": "invalid", "fields": fields},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, ObjectDoesNotExist):
        return Response({"detail": "Not found.", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, PaymentServiceError):
        logger.warning("Payment service failure surfaced to client: %s", exc)
        return Response(
            {"detail": str(exc) or "Payment service unavailable. Please try again.", "code": "payment_service_error"},
            status=status.HTTP_502_BAD_GATEWAY,
        )

    if isinstance(exc, DatabaseError):
        logger.exception("Database failure while handling %s", context.get("view").__class__.__name__)
        return Response(
            {"detail": "We could not reach the server. Please try again.", "code": "database_error"},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = exception_handler(exc, context)
    if response is not None and isinstance(response.data, dict) and "detail" in response.data:
        response.data.setdefault("code", getattr(getattr(exc, "detail", None), "code", None) or "error")
    return response
