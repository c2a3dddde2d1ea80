from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from orders.services.availability import check_availability
from orders.utils.cart import CartItem, CartLine
from tests.factories import MenuItemFactory, RestaurantFactory


def line_for(menu_item, qty=1):
    item = CartItem(id=str(menu_item.pk), name=menu_item.name, price=menu_item.price)
    return CartLine(str(menu_item.restaurant_id), menu_item.restaurant.name, item, qty)


@pytest.mark.django_db
def test_partitions_lines_by_item_flag():
    restaurant = RestaurantFactory()
    ok = MenuItemFactory(restaurant=restaurant, available=True)
    unset = MenuItemFactory(restaurant=restaurant, available=None)
    gone = MenuItemFactory(restaurant=restaurant, available=False)

    report = check_availability(restaurant.pk, [line_for(ok), line_for(unset), line_for(gone)])

    assert [l.item.id for l in report.available_lines] == [str(ok.pk), str(unset.pk)]
    assert [l.item.id for l in report.unavailable_lines] == [str(gone.pk)]
    assert report.availability[str(gone.pk)] is False
    assert report.is_restaurant_open
    assert report.has_any_available
    assert not report.all_unavailable


@pytest.mark.django_db
def test_missing_item_counts_as_available():
    restaurant = RestaurantFactory()
    ghost = CartLine(str(restaurant.pk), restaurant.name, CartItem(id="not-a-uuid", name="Ghost", price=Decimal("10")), 1)
    report = check_availability(restaurant.pk, [ghost])
    assert report.availability["not-a-uuid"] is True
    assert report.has_any_available


@pytest.mark.django_db
def test_closed_restaurant_reported_separately_from_items():
    restaurant = RestaurantFactory(open=False)
    item = MenuItemFactory(restaurant=restaurant)
    report = check_availability(restaurant.pk, [line_for(item)])
    assert not report.is_restaurant_open
    assert report.has_any_available


@pytest.mark.django_db
def test_unset_or_unknown_restaurant_is_open():
    restaurant = RestaurantFactory(open=None)
    assert check_availability(restaurant.pk, []).is_restaurant_open
    assert check_availability("00000000-0000-0000-0000-000000000000", []).is_restaurant_open


@pytest.mark.django_db
def test_all_unavailable():
    restaurant = RestaurantFactory()
    a = MenuItemFactory(restaurant=restaurant, available=False)
    b = MenuItemFactory(restaurant=restaurant, available=False)
    report = check_availability(restaurant.pk, [line_for(a), line_for(b)])
    assert report.all_unavailable
    assert not report.has_any_available


@pytest.mark.django_db
def test_failed_item_query_keeps_previous_map():
    restaurant = RestaurantFactory()
    item = MenuItemFactory(restaurant=restaurant, available=True)
    other = MenuItemFactory(restaurant=restaurant, available=True)
    previous = {str(item.pk): False}

    with patch("orders.services.availability.fetch_item_availability", side_effect=DatabaseError("down")):
        report = check_availability(restaurant.pk, [line_for(item), line_for(other)], previous=previous)

    assert report.availability == {str(item.pk): False, str(other.pk): True}


@pytest.mark.django_db
def test_item_from_another_menu_is_unavailable():
    restaurant = RestaurantFactory()
    own = MenuItemFactory(restaurant=restaurant)
    foreign = MenuItemFactory()
    # a line claiming this restaurant but pointing at another menu's item
    stray = CartLine(str(restaurant.pk), restaurant.name, CartItem(id=str(foreign.pk), name=foreign.name, price=foreign.price), 1)

    report = check_availability(restaurant.pk, [line_for(own), stray])

    assert [l.item.id for l in report.unavailable_lines] == [str(foreign.pk)]
    assert report.availability[str(own.pk)] is True
