from rest_framework import serializers

from accounts.models import Address
from .models import Order


class CartItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    photo_id = serializers.CharField(allow_null=True, required=False)


class CartLineSerializer(serializers.Serializer):
    """Read-only view of a cart line value object."""
    restaurant_id = serializers.CharField()
    restaurant_name = serializers.CharField()
    item = CartItemSerializer()
    qty = serializers.IntegerField()
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2)


class AddToCartSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    qty = serializers.IntegerField(min_value=1, max_value=99, default=1)


class UpdateQtySerializer(serializers.Serializer):
    # below 1 removes the line
    qty = serializers.IntegerField(max_value=99)


class TotalsSerializer(serializers.Serializer):
    sub_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    platform_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    delivery_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    gst = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount_to_free_delivery = serializers.DecimalField(max_digits=12, decimal_places=2)


class CheckoutRequestSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=[Order.METHOD_COD, Order.METHOD_UPI])
    address_id = serializers.UUIDField()

    def validate_address_id(self, value):
        user = self.context["request"].user
        address = Address.objects.filter(user=user, pk=value).first()
        if address is None:
            raise serializers.ValidationError("Choose one of your saved addresses.")
        return address


class RemoveUnavailableSerializer(serializers.Serializer):
    remove_all = serializers.BooleanField(default=False)


class PaymentReturnSerializer(serializers.Serializer):
    url = serializers.CharField(max_length=500)


class OrderSerializer(serializers.ModelSerializer):
    restaurant_id = serializers.UUIDField(read_only=True)
    is_cancellable = serializers.BooleanField(read_only=True)
    is_upi_pending = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "reference_id", "restaurant_id", "restaurant_name",
            "items", "address",
            "sub_total", "platform_fee", "delivery_fee", "gst", "discount", "total", "coupon_code",
            "payment_method", "payment_status", "status", "payment_raw_status",
            "is_cancellable", "is_upi_pending",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id", "restaurant_name", "total", "payment_method", "payment_status",
            "status", "item_count", "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj) -> int:
        return sum(int(row.get("qty") or 0) for row in (obj.items or []))
