import pytest
from django.core.exceptions import ValidationError

from accounts.models import Address
from accounts.services import AddressBook, validate_address_input
from tests.factories import UserFactory

VALID = {
    "full_name": "  Asha Verma ",
    "phone": "9876543210",
    "line1": "12 MG Road",
    "landmark": "",
    "pincode": "560001",
    "city": "Bengaluru",
    "state": "Karnataka",
    "country": "India",
}


def defaults(user):
    return list(Address.objects.filter(user=user, is_default=True))


@pytest.mark.django_db
def test_first_address_becomes_default_and_is_trimmed():
    user = UserFactory()
    address = AddressBook(user).create({**VALID, "is_default": False})
    assert address.is_default
    assert address.full_name == "Asha Verma"


@pytest.mark.django_db
def test_only_one_default_after_create_and_make_default():
    user = UserFactory()
    book = AddressBook(user)
    first = book.create(VALID)
    second = book.create({**VALID, "line1": "99 Park Street", "is_default": True})
    assert defaults(user) == [second]

    book.make_default(first.pk)
    assert defaults(user) == [first]


@pytest.mark.django_db
def test_deleting_default_promotes_oldest_remaining():
    user = UserFactory()
    book = AddressBook(user)
    first = book.create(VALID)
    second = book.create({**VALID, "line1": "2nd Cross Road"})
    third = book.create({**VALID, "line1": "3rd Main Road"})

    promoted = book.delete(first.pk)
    assert promoted.pk == second.pk
    assert defaults(user) == [second]
    assert book.delete(third.pk) is None


@pytest.mark.django_db
def test_unsetting_default_promotes_another_but_sole_address_stays_default():
    user = UserFactory()
    book = AddressBook(user)
    only = book.create(VALID)
    assert book.update(only.pk, {"is_default": False}).is_default

    other = book.create({**VALID, "line1": "Second Street"})
    book.update(only.pk, {"is_default": False})
    assert defaults(user) == [other]


@pytest.mark.django_db
def test_update_validates_only_supplied_fields():
    user = UserFactory()
    book = AddressBook(user)
    address = book.create(VALID)
    updated = book.update(address.pk, {"city": " Mysuru "})
    assert updated.city == "Mysuru"
    with pytest.raises(ValidationError):
        book.update(address.pk, {"phone": "12345"})


@pytest.mark.parametrize(
    "field, value",
    [
        ("full_name", "A"),
        ("phone", "98765"),
        ("phone", "98765abcde"),
        ("line1", "abc"),
        ("pincode", "123"),
        ("city", "   "),
        ("state", ""),
        ("country", ""),
    ],
)
def test_invalid_input_rejected_before_database(field, value):
    with pytest.raises(ValidationError) as excinfo:
        validate_address_input({**VALID, field: value})
    assert field in excinfo.value.message_dict


@pytest.mark.django_db
def test_addresses_are_scoped_per_user():
    a, b = UserFactory(), UserFactory()
    AddressBook(a).create(VALID)
    AddressBook(b).create(VALID)
    assert len(AddressBook(a).list()) == 1
    assert len(defaults(a)) == 1
    assert len(defaults(b)) == 1
