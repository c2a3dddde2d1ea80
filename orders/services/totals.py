from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional

from django.conf import settings

ZERO = Decimal("0")


def round_currency(value) -> Decimal:
    """Round half away from zero to whole currency units."""
    return Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def gst_rate() -> Decimal:
    return Decimal(str(getattr(settings, "GST_RATE", "0.05")))


@dataclass(frozen=True)
class Totals:
    sub_total: Decimal
    platform_fee: Decimal
    delivery_fee: Decimal
    gst: Decimal
    discount: Decimal
    total: Decimal
    amount_to_free_delivery: Decimal = ZERO

    def as_dict(self) -> Dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items()}


def compute_totals(lines: Iterable, config, coupon=None, availability: Optional[Dict[str, bool]] = None) -> Totals:
    """Price a restaurant's cart lines.

    Lines whose item is flagged unavailable (``availability[item_id] is False``)
    are left out of the sub-total. The computation ignores any totals sent by
    the client.
    """
    availability = availability or {}

    sub_total = ZERO
    for line in lines:
        if availability.get(line.item.id) is False:
            continue
        sub_total += Decimal(str(line.item.price)) * int(line.qty)

    platform_fee = Decimal(str(config.platform_fee))
    threshold = Decimal(str(config.free_delivery_threshold))

    delivery_fee = ZERO if sub_total >= threshold else Decimal(str(config.delivery_fee))
    coupon_type = getattr(coupon, "type", None)
    if coupon_type == "freeship":
        delivery_fee = ZERO

    discount = ZERO
    if coupon_type == "fixed":
        discount = max(ZERO, Decimal(str(coupon.value)))
    elif coupon_type == "percentage":
        discount = round_currency(sub_total * Decimal(str(coupon.value)) / Decimal("100"))

    taxable = max(ZERO, sub_total - discount) + platform_fee + delivery_fee
    gst = round_currency(taxable * gst_rate())
    total = max(ZERO, sub_total - discount + platform_fee + delivery_fee + gst)

    return Totals(
        sub_total=sub_total,
        platform_fee=platform_fee,
        delivery_fee=delivery_fee,
        gst=gst,
        discount=discount,
        total=total,
        amount_to_free_delivery=max(ZERO, threshold - sub_total),
    )
