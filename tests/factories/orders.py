import factory
from decimal import Decimal

from orders.models import Order
from .accounts import UserFactory
from .menu import RestaurantFactory


class OrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Order

    user = factory.SubFactory(UserFactory)
    restaurant = factory.SubFactory(RestaurantFactory)
    restaurant_name = factory.LazyAttribute(lambda o: o.restaurant.name)
    items = factory.LazyFunction(lambda: [{"id": "x", "name": "Dish", "price": "100.00", "qty": 2}])
    address = factory.LazyFunction(lambda: {"fullName": "Asha Verma", "phone": "9876543210"})
    sub_total = Decimal("200")
    platform_fee = Decimal("5")
    delivery_fee = Decimal("29")
    gst = Decimal("12")
    discount = Decimal("0")
    total = Decimal("246")
    payment_method = Order.METHOD_COD
    payment_status = Order.PAYMENT_PENDING
    status = Order.STATUS_PLACED
    reference_id = ""

    @factory.post_generation
    def set_reference(self, create, extracted, **kwargs):
        if not self.reference_id:
            self.reference_id = str(self.pk)
            if create:
                self.save(update_fields=["reference_id"])
