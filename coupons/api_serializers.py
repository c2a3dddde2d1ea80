from __future__ import annotations

from rest_framework import serializers

from .models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = ["code", "title", "type", "value", "min_subtotal", "active_until"]
        read_only_fields = fields


class ApplyCouponSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True, trim_whitespace=True)
