# orders/api_urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .api_views import (
    CartLineView,
    CartRestaurantView,
    CartView,
    CheckoutConfirmView,
    CheckoutCouponListView,
    CheckoutCouponView,
    CheckoutSummaryView,
    OrderViewSet,
    PlaceOrderView,
    RemoveUnavailableView,
)

router = SimpleRouter()
router.register(r"orders", OrderViewSet, basename="order")

urlpatterns = [
    path("", include(router.urls)),
    # Cart
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/<uuid:restaurant_id>/", CartRestaurantView.as_view(), name="cart-restaurant"),
    path("cart/<uuid:restaurant_id>/items/<uuid:item_id>/", CartLineView.as_view(), name="cart-line"),
    # Checkout
    path("checkout/<uuid:restaurant_id>/", CheckoutSummaryView.as_view(), name="checkout-summary"),
    path("checkout/<uuid:restaurant_id>/coupon/", CheckoutCouponView.as_view(), name="checkout-coupon"),
    path("checkout/<uuid:restaurant_id>/coupons/", CheckoutCouponListView.as_view(), name="checkout-coupons"),
    path(
        "checkout/<uuid:restaurant_id>/remove-unavailable/",
        RemoveUnavailableView.as_view(),
        name="checkout-remove-unavailable",
    ),
    path("checkout/<uuid:restaurant_id>/confirm/", CheckoutConfirmView.as_view(), name="checkout-confirm"),
    path("checkout/<uuid:restaurant_id>/place/", PlaceOrderView.as_view(), name="checkout-place"),
]

# GET    /api/orders/?tab=pending|paid|failed&cursor=<id>  - order history page
# GET    /api/orders/{id}/                                 - order detail
# POST   /api/orders/{id}/cancel/                          - cancel (COD deleted, UPI cancelled)
# POST   /api/orders/{id}/pay/                             - new UPI link for a pending order
# POST   /api/orders/{id}/resume/                          - poll after returning from the browser
