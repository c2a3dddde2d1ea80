from .accounts import AddressFactory, UserFactory
from .coupons import CouponFactory
from .menu import MenuItemFactory, RestaurantFactory
from .orders import OrderFactory

__all__ = [
    "UserFactory",
    "AddressFactory",
    "RestaurantFactory",
    "MenuItemFactory",
    "CouponFactory",
    "OrderFactory",
]
