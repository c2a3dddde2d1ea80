import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from coupons.api_serializers import ApplyCouponSerializer, CouponSerializer
from coupons.services import list_available_coupons
from menu.models import MenuItem
from payments.prefetch import checkout_key, registry

from .models import Order
from .serializers import (
    AddToCartSerializer,
    CartLineSerializer,
    CheckoutRequestSerializer,
    OrderListSerializer,
    OrderSerializer,
    RemoveUnavailableSerializer,
    TotalsSerializer,
    UpdateQtySerializer,
)
from .services.cancellation import cancel_order
from .services.history import TAB_PENDING, list_orders
from .services.placement import CheckoutSession, resume_upi_payment, retry_upi_payment
from .session_utils import get_applied_coupon, get_cart_store, set_applied_coupon
from .utils.cart import CartItem

logger = logging.getLogger(__name__)


def cart_payload(store):
    lines = store.lines
    return {
        "lines": CartLineSerializer(lines, many=True).data,
        "count": sum(line.qty for line in lines),
    }


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

class CartView(APIView):
    """The session cart across every restaurant."""

    def get(self, request):
        return Response(cart_payload(get_cart_store(request)))

    @extend_schema(request=AddToCartSerializer)
    def post(self, request):
        ser = AddToCartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        # price and name always come from the menu, never from the client
        menu_item = get_object_or_404(MenuItem.objects.select_related("restaurant"), pk=ser.validated_data["item_id"])
        item = CartItem(
            id=str(menu_item.pk),
            name=menu_item.name,
            price=menu_item.price,
            photo_id=menu_item.photo_id or None,
        )
        store = get_cart_store(request)
        store.add_item(str(menu_item.restaurant_id), menu_item.restaurant.name, item, ser.validated_data["qty"])
        return Response(cart_payload(store), status=status.HTTP_201_CREATED)

    def delete(self, request):
        store = get_cart_store(request)
        store.clear()
        return Response(cart_payload(store))


class CartLineView(APIView):
    @extend_schema(request=UpdateQtySerializer)
    def patch(self, request, restaurant_id, item_id):
        ser = UpdateQtySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        store = get_cart_store(request)
        store.update_qty(restaurant_id, item_id, ser.validated_data["qty"])
        return Response(cart_payload(store))

    def delete(self, request, restaurant_id, item_id):
        store = get_cart_store(request)
        store.remove_item(restaurant_id, item_id)
        return Response(cart_payload(store))


class CartRestaurantView(APIView):
    def delete(self, request, restaurant_id):
        store = get_cart_store(request)
        store.clear_restaurant(restaurant_id)
        return Response(cart_payload(store))


def placement_payload(result):
    return {
        "state": result.state,
        "order": OrderSerializer(result.order).data,
        "payment_url": result.payment_url or None,
        "callback_url": result.callback_url or None,
        "message": result.message,
    }


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

class CheckoutMixin:
    def get_checkout(self, request, restaurant_id, with_prefetch=False) -> CheckoutSession:
        prefetcher = registry.get(checkout_key(request.user.pk, restaurant_id)) if with_prefetch else None
        return CheckoutSession(
            user=request.user,
            restaurant_id=restaurant_id,
            cart=get_cart_store(request),
            coupon_code=get_applied_coupon(request.session, restaurant_id),
            prefetcher=prefetcher,
        )

    def summary(self, request, checkout: CheckoutSession):
        totals = checkout.totals()
        # keep the session in step when a coupon was dropped during re-validation
        set_applied_coupon(request.session, checkout.restaurant_id, checkout.coupon_code)
        report = checkout.report
        return {
            "restaurant_id": checkout.restaurant_id,
            "state": checkout.state,
            "blocked_reason": checkout.blocked_reason,
            "is_restaurant_open": report.is_restaurant_open if report else None,
            "available_lines": CartLineSerializer(report.available_lines if report else checkout.lines, many=True).data,
            "unavailable_lines": CartLineSerializer(report.unavailable_lines if report else (), many=True).data,
            "availability": report.availability if report else {},
            "totals": TotalsSerializer(totals).data,
            "coupon": CouponSerializer(checkout.coupon).data if checkout.coupon else None,
            "coupon_message": checkout.coupon_message,
        }


class CheckoutSummaryView(CheckoutMixin, APIView):
    """Availability and totals; clients poll this while the checkout screen is open."""

    def get(self, request, restaurant_id):
        checkout = self.get_checkout(request, restaurant_id)
        checkout.refresh()
        return Response(self.summary(request, checkout))


class CheckoutCouponView(CheckoutMixin, APIView):
    @extend_schema(request=ApplyCouponSerializer)
    def post(self, request, restaurant_id):
        ser = ApplyCouponSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        checkout = self.get_checkout(request, restaurant_id)
        checkout.refresh()
        checkout.apply_coupon(ser.validated_data["code"])
        return Response(self.summary(request, checkout))

    def delete(self, request, restaurant_id):
        checkout = self.get_checkout(request, restaurant_id)
        checkout.clear_coupon()
        checkout.refresh()
        return Response(self.summary(request, checkout))


class CheckoutCouponListView(CheckoutMixin, APIView):
    def get(self, request, restaurant_id):
        checkout = self.get_checkout(request, restaurant_id)
        checkout.refresh()
        sub_total = checkout.totals().sub_total
        coupons = list_available_coupons(restaurant_id, sub_total)
        return Response(CouponSerializer(coupons, many=True).data)


class RemoveUnavailableView(CheckoutMixin, APIView):
    @extend_schema(request=RemoveUnavailableSerializer)
    def post(self, request, restaurant_id):
        ser = RemoveUnavailableSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        checkout = self.get_checkout(request, restaurant_id)
        if ser.validated_data["remove_all"]:
            checkout.remove_all_items()
        else:
            checkout.remove_unavailable_items()
        return Response(self.summary(request, checkout))


class CheckoutConfirmView(CheckoutMixin, APIView):
    """Start the pre-placement countdown; UPI links are warmed in the background."""

    @extend_schema(request=CheckoutRequestSerializer)
    def post(self, request, restaurant_id):
        ser = CheckoutRequestSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)
        checkout = self.get_checkout(request, restaurant_id, with_prefetch=True)
        checkout.begin_confirmation(ser.validated_data["payment_method"], ser.validated_data["address_id"])

        payload = self.summary(request, checkout)
        payload["countdown_seconds"] = int(getattr(settings, "CHECKOUT_COUNTDOWN_SECONDS", 5))
        return Response(payload)

    def delete(self, request, restaurant_id):
        """Countdown cancelled; the pending UPI order stays for reuse, its warm link does not."""
        registry.discard(checkout_key(request.user.pk, restaurant_id))
        checkout = self.get_checkout(request, restaurant_id)
        checkout.refresh()
        return Response(self.summary(request, checkout))


class PlaceOrderView(CheckoutMixin, APIView):
    @extend_schema(request=CheckoutRequestSerializer)
    def post(self, request, restaurant_id):
        ser = CheckoutRequestSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)
        checkout = self.get_checkout(request, restaurant_id, with_prefetch=True)
        result = checkout.place_order(ser.validated_data["payment_method"], ser.validated_data["address_id"])

        set_applied_coupon(request.session, restaurant_id, checkout.coupon_code)
        if result.is_paid or result.order.payment_method == Order.METHOD_COD:
            registry.discard(checkout_key(request.user.pk, restaurant_id))

        return Response(placement_payload(result), status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

class OrderViewSet(viewsets.GenericViewSet):
    serializer_class = OrderSerializer

    def get_queryset(self):
        return Order.objects.filter(user=self.request.user)

    @extend_schema(
        parameters=[
            OpenApiParameter("tab", str, enum=["pending", "paid", "failed"]),
            OpenApiParameter("cursor", str),
        ],
        responses=OrderListSerializer(many=True),
    )
    def list(self, request):
        tab = (request.query_params.get("tab") or TAB_PENDING).lower()
        try:
            page = list_orders(request.user, tab=tab, cursor=request.query_params.get("cursor"))
        except ValueError as e:
            return Response({"detail": str(e), "code": "invalid"}, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            "results": OrderListSerializer(page.orders, many=True).data,
            "next_cursor": page.next_cursor,
        })

    def retrieve(self, request, pk=None):
        return Response(OrderSerializer(self.get_object()).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        order = cancel_order(self.get_object(), by_user=request.user)
        if order is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        result = retry_upi_payment(self.get_object(), cart=get_cart_store(request))
        return Response(placement_payload(result))

    @action(detail=True, methods=["post"])
    def resume(self, request, pk=None):
        result = resume_upi_payment(self.get_object(), cart=get_cart_store(request))
        return Response(placement_payload(result))
