# Overview: Weight-based courier shipping fee.

from __future__ import annotations

import math

# Carts lighter than this are charged as if they weighed this much
MIN_FEE_WEIGHT_KG = 0.1
# Everything up to this weight costs the courier's base rate
MIN_FEE_MAX_WEIGHT_KG = 1.0


def calculate_shipping_fee(
    total_weight_kg: float,
    base_rate: float,
    rate_per_kg: float,
    max_weight: float | None = None,
) -> float:
    """
    Fee for shipping `total_weight_kg` with a courier.

    Up to 1 kg the fee is base_rate; above that every started kilogram adds
    rate_per_kg. Returns math.inf when the chargeable weight exceeds the
    courier's max_weight, meaning the courier cannot take the parcel.
    """
    weight = max(0.0, float(total_weight_kg or 0))
    chargeable = max(MIN_FEE_WEIGHT_KG, weight)

    if max_weight is not None and chargeable > float(max_weight):
        return math.inf

    base_fee = max(0.0, float(base_rate or 0))
    per_kg = max(0.0, float(rate_per_kg or 0))

    if chargeable <= MIN_FEE_MAX_WEIGHT_KG:
        return base_fee

    extra_units = math.ceil(chargeable - MIN_FEE_MAX_WEIGHT_KG)
    return base_fee + extra_units * per_kg


def delivery_fee_for(total_weight_kg: float, courier) -> int | None:
    """
    Whole-currency fee for a Courier row, or None when the courier cannot
    deliver this weight.
    """
    fee = calculate_shipping_fee(
        total_weight_kg,
        courier.base_rate,
        courier.rate_per_kg,
        courier.max_weight,
    )
    if not math.isfinite(fee):
        return None
    # Halves round up
    return max(0, math.floor(fee + 0.5))
