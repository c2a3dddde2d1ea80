import factory
from django.contrib.auth import get_user_model

from accounts.models import Address


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        raw = extracted or "password123!"
        self.set_password(raw)
        if create:
            self.save(update_fields=["password"])


class AddressFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Address

    user = factory.SubFactory(UserFactory)
    full_name = "Asha Verma"
    phone = "9876543210"
    line1 = factory.Sequence(lambda n: f"{n} MG Road")
    landmark = ""
    pincode = "560001"
    city = "Bengaluru"
    state = "Karnataka"
    country = "India"
    is_default = False
