"""Tests for reserve runway estimates."""

import math

import pytest

from engine.reserve_runway import calculate_guaranteed_income_total, calculate_reserve_runway
from models import IncomeStreamType


def test_income_covers_essentials():
    result = calculate_reserve_runway(100000, 40000, 20000, 40000)

    assert math.isinf(result.years_of_essentials)
    assert result.years_of_full_spending == 5
    assert result.description == "Guaranteed income covers all essential expenses"


def test_partial_final_year_counts():
    result = calculate_reserve_runway(100000, 30000, 0, 0, inflation_rate=0.0)

    assert result.years_of_essentials == 4
    assert result.description == "Reserve covers 4 years of essential expenses"


def test_inflation_shortens_runway():
    flat = calculate_reserve_runway(150000, 10000, 0, 0, inflation_rate=0.0)
    inflating = calculate_reserve_runway(150000, 10000, 0, 0, inflation_rate=0.05)

    assert flat.years_of_essentials == 15
    assert flat.description == "Reserve covers ~15 years of essential expenses"
    assert inflating.years_of_essentials < 15


def test_runway_is_capped():
    result = calculate_reserve_runway(1e9, 1000, 0, 0, inflation_rate=0.0)

    assert result.years_of_essentials == 100
    assert result.description == "Reserve provides 30+ years of essential expense coverage"


def test_empty_reserve():
    result = calculate_reserve_runway(0, 30000, 10000, 0)

    assert result.years_of_essentials == 0
    assert result.description == "Reserve covers 0 months of essential expenses"


def test_single_year():
    result = calculate_reserve_runway(20000, 30000, 0, 0)

    assert result.description == "Reserve covers 1 year of essential expenses"


def test_guaranteed_income_total(make_stream):
    streams = (
        make_stream(),
        make_stream(id="rental", type=IncomeStreamType.RENTAL, annual_amount=12000, is_guaranteed=False),
        make_stream(id="pension", type=IncomeStreamType.PENSION, annual_amount=18000),
    )

    assert calculate_guaranteed_income_total(streams) == pytest.approx(42000)
