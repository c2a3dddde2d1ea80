# accounts/serializers.py
from rest_framework import serializers

from .models import Address


class AddressSerializer(serializers.ModelSerializer):
    """
    Read shape for addresses. Writes go through AddressBook, which owns
    validation and the single-default rule, so every field here is plain.
    """

    class Meta:
        model = Address
        fields = [
            "id", "full_name", "phone", "line1", "landmark", "pincode",
            "city", "state", "country", "is_default", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {name: {"required": False, "allow_blank": True} for name in (
            "full_name", "phone", "line1", "landmark", "pincode", "city", "state", "country",
        )}


def _text(model_field: str, **kwargs):
    max_length = Address._meta.get_field(model_field).max_length
    return serializers.CharField(max_length=max_length, required=False, allow_blank=True, **kwargs)


class AddressWriteSerializer(serializers.Serializer):
    """
    Types and column limits for address writes. The content rules (10-digit
    phone, minimum lengths, required fields) stay in ``validate_address_input``.
    """

    full_name = _text("full_name")
    phone = _text("phone")
    line1 = _text("line1")
    landmark = _text("landmark")
    pincode = _text("pincode")
    city = _text("city")
    state = _text("state")
    country = _text("country")
    is_default = serializers.BooleanField(required=False)
