from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from django.db import DatabaseError

from orders.exceptions import (
    AddressRequired,
    ItemsUnavailable,
    NoAvailableItems,
    OrderPlacementError,
    PaymentMethodRequired,
    RestaurantClosed,
)
from orders.models import Order
from orders.services import placement
from orders.services.placement import CheckoutSession
from orders.utils.cart import CartItem, CartStore
from payments.prefetch import UPILinkPrefetcher
from payments.services import PaymentLink, PaymentServiceClient, PaymentServiceError, PaymentStatus
from tests.factories import AddressFactory, CouponFactory, MenuItemFactory, RestaurantFactory, UserFactory


@pytest.fixture
def restaurant(db):
    return RestaurantFactory(name="Spice Hub")


@pytest.fixture
def dish(restaurant):
    return MenuItemFactory(restaurant=restaurant, name="Paneer Tikka", price=Decimal("100.00"))


@pytest.fixture
def shopper(db):
    return UserFactory()


@pytest.fixture
def address(shopper):
    return AddressFactory(user=shopper, is_default=True)


@pytest.fixture
def cart(dish):
    store = CartStore()
    store.add_item(str(dish.restaurant_id), dish.restaurant.name, as_cart_item(dish), 2)
    return store


@pytest.fixture
def payment_client():
    payment_client = Mock(spec=PaymentServiceClient)
    payment_client.create_link.side_effect = lambda reference_id, amount, **kw: PaymentLink(
        id="plink_1", short_url=f"https://pay.test/{reference_id}", status="created", reference_id=reference_id
    )
    return payment_client


def as_cart_item(menu_item):
    return CartItem(id=str(menu_item.pk), name=menu_item.name, price=menu_item.price)


def checkout(shopper, restaurant, cart, fees, **kwargs):
    return CheckoutSession(shopper, restaurant.pk, cart, config=fees, **kwargs)


# ---------------------------------------------------------------------------
# COD
# ---------------------------------------------------------------------------

def test_cod_order_is_placed_and_cart_cleared(shopper, restaurant, cart, address, fees):
    other = MenuItemFactory(name="Dosa")
    cart.add_item(str(other.restaurant_id), other.restaurant.name, as_cart_item(other))

    session = checkout(shopper, restaurant, cart, fees)
    result = session.place_order(Order.METHOD_COD, address)

    order = Order.objects.get(pk=result.order.pk)
    assert result.state == placement.STATE_PLACED
    assert order.status == Order.STATUS_PLACED
    assert order.payment_status == Order.PAYMENT_PENDING
    assert order.reference_id == str(order.pk)
    assert order.sub_total == Decimal("200")
    assert order.gst == Decimal("12")
    assert order.total == Decimal("246")
    assert order.items[0]["qty"] == 2
    assert order.address["fullName"] == address.full_name

    assert cart.get_restaurant_count(restaurant.pk) == 0
    # other restaurant's lines are untouched
    assert cart.get_restaurant_count(other.restaurant_id) == 1


def test_platform_defaults_used_without_config_row(shopper, restaurant, cart, address):
    result = CheckoutSession(shopper, restaurant.pk, cart).place_order(Order.METHOD_COD, address)
    assert result.order.platform_fee == Decimal("5")
    assert result.order.delivery_fee == Decimal("29")


def test_database_failure_raises_placement_error_and_keeps_cart(shopper, restaurant, cart, address, fees):
    with patch.object(Order, "save", side_effect=DatabaseError("disk full")):
        with pytest.raises(OrderPlacementError, match="disk full"):
            checkout(shopper, restaurant, cart, fees).place_order(Order.METHOD_COD, address)
    assert cart.get_restaurant_count(restaurant.pk) == 2
    assert not Order.objects.exists()


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def test_closed_restaurant_is_distinct_from_unavailable_items(shopper, restaurant, cart, dish, address, fees):
    dish.available = False
    dish.save()
    restaurant.open = False
    restaurant.save()

    session = checkout(shopper, restaurant, cart, fees)
    with pytest.raises(RestaurantClosed):
        session.place_order(Order.METHOD_COD, address)
    assert session.blocked_reason == placement.BLOCKED_RESTAURANT_CLOSED

    restaurant.open = True
    restaurant.save()
    with pytest.raises(NoAvailableItems):
        session.place_order(Order.METHOD_COD, address)
    assert session.blocked_reason == placement.BLOCKED_NO_AVAILABLE_ITEMS


def test_partial_unavailability_blocks_until_removed(shopper, restaurant, cart, address, fees):
    gone = MenuItemFactory(restaurant=restaurant, name="Kulfi", available=False)
    cart.add_item(str(restaurant.pk), restaurant.name, as_cart_item(gone))

    session = checkout(shopper, restaurant, cart, fees)
    with pytest.raises(ItemsUnavailable) as excinfo:
        session.place_order(Order.METHOD_COD, address)
    assert "Kulfi" in str(excinfo.value)
    assert excinfo.value.as_payload()["items"] == [{"id": str(gone.pk), "name": "Kulfi"}]
    assert session.state == placement.STATE_BLOCKED

    session.remove_unavailable_items()
    assert session.state == placement.STATE_READY
    result = session.place_order(Order.METHOD_COD, address)
    assert [row["name"] for row in result.order.items] == ["Paneer Tikka"]


def test_remove_all_items_empties_restaurant_cart(shopper, restaurant, cart, dish, fees):
    dish.available = False
    dish.save()
    session = checkout(shopper, restaurant, cart, fees)
    session.refresh()
    assert session.blocked_reason == placement.BLOCKED_NO_AVAILABLE_ITEMS
    session.remove_all_items()
    assert cart.lines_for_restaurant(restaurant.pk) == ()


def test_address_and_method_required(shopper, restaurant, cart, address, fees):
    session = checkout(shopper, restaurant, cart, fees)
    with pytest.raises(AddressRequired):
        session.place_order(Order.METHOD_COD, None)
    with pytest.raises(PaymentMethodRequired):
        session.place_order(Order.METHOD_CARD, address)
    assert not Order.objects.exists()


def test_coupon_dropped_when_cart_no_longer_qualifies(shopper, restaurant, cart, dish, fees):
    CouponFactory(restaurant=restaurant, code="BIG", min_subtotal=Decimal("150"), value=Decimal("50"))
    session = checkout(shopper, restaurant, cart, fees)
    session.refresh()
    session.apply_coupon("big")
    assert session.totals().discount == Decimal("50")

    cart.update_qty(restaurant.pk, dish.pk, 1)
    totals = session.totals()
    assert totals.discount == Decimal("0")
    assert session.coupon is None
    assert "BIG" in session.coupon_message


# ---------------------------------------------------------------------------
# UPI
# ---------------------------------------------------------------------------

def test_upi_without_launcher_returns_payment_link(shopper, restaurant, cart, address, fees, payment_client):
    result = checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(Order.METHOD_UPI, address)

    order = result.order
    assert result.state == placement.STATE_PENDING_PAYMENT
    assert order.status == Order.STATUS_PENDING_PAYMENT
    assert result.payment_url == f"https://pay.test/{order.pk}"
    assert result.callback_url == f"foodie://orders/{order.pk}"
    payment_client.create_link.assert_called_once_with(
        str(order.pk), order.total, name=address.full_name, callback_url=f"foodie://orders/{order.pk}"
    )
    # nothing paid yet, cart stays
    assert cart.get_restaurant_count(restaurant.pk) == 2


def test_upi_reuses_pending_order(shopper, restaurant, cart, dish, address, fees, payment_client):
    first = checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(Order.METHOD_UPI, address)
    cart.update_qty(restaurant.pk, dish.pk, 3)
    second = checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(Order.METHOD_UPI, address)

    assert first.order.pk == second.order.pk
    assert Order.objects.filter(payment_method=Order.METHOD_UPI).count() == 1
    second.order.refresh_from_db()
    assert second.order.sub_total == Decimal("300")
    assert second.order.items[0]["qty"] == 3


def test_upi_paid_after_launch_confirms_order(shopper, restaurant, cart, address, fees, payment_client):
    payment_client.fetch_status.return_value = PaymentStatus(reference_id="x", status="paid", raw_status="paid")
    launcher = Mock(return_value=None)

    result = checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(
        Order.METHOD_UPI, address, launcher=launcher
    )

    order = Order.objects.get(pk=result.order.pk)
    launcher.assert_called_once_with(f"https://pay.test/{order.pk}", f"foodie://orders/{order.pk}")
    assert result.state == placement.STATE_PAID
    assert order.payment_status == Order.PAYMENT_PAID
    assert order.status == Order.STATUS_PLACED
    assert cart.get_restaurant_count(restaurant.pk) == 0


def test_upi_still_pending_keeps_order_and_cart(shopper, restaurant, cart, address, fees, payment_client):
    payment_client.fetch_status.return_value = PaymentStatus(reference_id="x", status="pending", raw_status="created")

    result = checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(
        Order.METHOD_UPI, address, launcher=Mock(return_value=None)
    )

    order = Order.objects.get(pk=result.order.pk)
    assert result.state == placement.STATE_STILL_PENDING
    assert order.status == Order.STATUS_PENDING_PAYMENT
    assert order.payment_status == Order.PAYMENT_PENDING
    assert order.payment_raw_status == "created"
    assert cart.get_restaurant_count(restaurant.pk) == 2


def test_already_paid_error_counts_as_paid(shopper, restaurant, cart, address, fees, payment_client):
    payment_client.create_link.side_effect = PaymentServiceError("Order already_paid")
    result = checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(Order.METHOD_UPI, address)
    assert result.state == placement.STATE_PAID
    assert Order.objects.get(pk=result.order.pk).payment_status == Order.PAYMENT_PAID


def test_link_failure_raises_and_keeps_cart(shopper, restaurant, cart, address, fees, payment_client):
    payment_client.create_link.side_effect = PaymentServiceError("Could not create payment link.")
    with pytest.raises(OrderPlacementError, match="Could not create payment link"):
        checkout(shopper, restaurant, cart, fees, client=payment_client).place_order(Order.METHOD_UPI, address)
    assert cart.get_restaurant_count(restaurant.pk) == 2
    # the pending order is kept for a later retry
    assert Order.objects.get().status == Order.STATUS_PENDING_PAYMENT


def test_resume_after_return_clears_cart_when_paid(shopper, restaurant, cart, address, fees, payment_client):
    session = checkout(shopper, restaurant, cart, fees, client=payment_client)
    pending = session.place_order(Order.METHOD_UPI, address).order

    payment_client.fetch_status.return_value = PaymentStatus(reference_id=str(pending.pk), status="paid", raw_status="paid")
    result = session.resume_upi_payment()

    assert result.state == placement.STATE_PAID
    assert cart.get_restaurant_count(restaurant.pk) == 0


def test_confirmation_prefetches_link_once(shopper, restaurant, cart, address, fees, payment_client):
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        prefetcher = UPILinkPrefetcher(payment_client, executor=executor)
        session = checkout(shopper, restaurant, cart, fees, client=payment_client, prefetcher=prefetcher)

        session.begin_confirmation(Order.METHOD_UPI, address)
        assert session.state == placement.STATE_CONFIRMING
        session.cancel_confirmation()
        assert session.state == placement.STATE_READY

        session.begin_confirmation(Order.METHOD_UPI, address)
        result = session.place_order(Order.METHOD_UPI, address)
    finally:
        executor.shutdown(wait=True)

    assert result.payment_url == f"https://pay.test/{result.order.pk}"
    assert payment_client.create_link.call_count == 1
    assert Order.objects.count() == 1

    order = Order.objects.get()
    assert order.payment_link_id == "plink_1"
    assert order.payment_link_url == result.payment_url


def test_cod_confirmation_creates_nothing(shopper, restaurant, cart, address, fees):
    prefetcher = Mock()
    session = checkout(shopper, restaurant, cart, fees, prefetcher=prefetcher)
    session.begin_confirmation(Order.METHOD_COD, address)
    prefetcher.ensure.assert_not_called()
    assert not Order.objects.exists()
