"""
Shipping fee tests.

Verifies:
- Base rate covers everything up to 1 kg (and the 0.1 kg minimum)
- Every started kilogram above 1 kg adds rate_per_kg
- Couriers refuse parcels above max_weight (infinite fee)
- Garbage inputs are clamped rather than producing negative fees
"""

import math

import pytest

from partshop.models import Courier
from partshop.services.shipping_service import calculate_shipping_fee, delivery_fee_for


@pytest.mark.parametrize(
    "weight,expected",
    [
        (0, 100),
        (0.05, 100),
        (1.0, 100),
        (1.01, 150),
        (2.0, 150),
        (2.5, 200),
        (10, 550),
    ],
)
def test_fee_by_weight(weight, expected):
    assert calculate_shipping_fee(weight, 100, 50) == expected


def test_negative_weight_is_treated_as_zero():
    assert calculate_shipping_fee(-5, 80, 30) == 80


def test_negative_rates_are_clamped():
    assert calculate_shipping_fee(3, -10, -5) == 0


def test_over_max_weight_is_infinite():
    assert math.isinf(calculate_shipping_fee(20.5, 100, 50, max_weight=20))


def test_exactly_max_weight_is_deliverable():
    assert calculate_shipping_fee(20, 100, 50, max_weight=20) == 100 + 19 * 50


def test_minimum_chargeable_weight_counts_against_max_weight():
    # An empty cart still weighs 0.1 kg for the courier
    assert math.isinf(calculate_shipping_fee(0, 100, 50, max_weight=0.05))


def test_no_max_weight_means_no_limit():
    assert calculate_shipping_fee(500, 100, 10) == 100 + 499 * 10


class TestDeliveryFeeFor:
    def test_rounds_to_whole_currency(self):
        courier = Courier(name="X", base_rate=99.6, rate_per_kg=0, max_weight=None)
        assert delivery_fee_for(0.5, courier) == 100

    @pytest.mark.parametrize("base_rate,expected", [(50.5, 51), (100.5, 101), (2.5, 3)])
    def test_rounds_halves_up(self, base_rate, expected):
        courier = Courier(name="X", base_rate=base_rate, rate_per_kg=0, max_weight=None)
        assert delivery_fee_for(0.5, courier) == expected

    def test_returns_none_when_courier_cannot_deliver(self):
        courier = Courier(name="X", base_rate=100, rate_per_kg=50, max_weight=5)
        assert delivery_fee_for(6, courier) is None
