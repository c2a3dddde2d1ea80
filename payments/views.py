from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.api_views import placement_payload
from orders.models import Order
from orders.serializers import PaymentReturnSerializer
from orders.services.placement import resume_upi_payment
from orders.session_utils import get_cart_store

from .deeplinks import parse_callback_url

logger = logging.getLogger(__name__)


class PaymentReturnView(APIView):
    """
    The app was reopened through ``<scheme>://orders/<reference>`` after the
    payment page. Resolve the link to the user's order and poll its status once.
    """

    @extend_schema(request=PaymentReturnSerializer)
    def post(self, request):
        ser = PaymentReturnSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        reference_id = parse_callback_url(ser.validated_data["url"])
        if not reference_id:
            logger.info("Ignoring unrecognised payment return link %s", ser.validated_data["url"])
            return Response(
                {"detail": "Not a payment return link.", "code": "invalid_link"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        order = get_object_or_404(Order, user=request.user, reference_id=reference_id)
        result = resume_upi_payment(order, cart=get_cart_store(request))
        return Response(placement_payload(result))
