"""Shared scenario builders for the projection tests."""

import pytest

from models import BalanceByType, IncomeStream, IncomeStreamType, ProjectionInput


def social_security_stream(**overrides) -> IncomeStream:
    params = dict(
        id="ss-primary",
        name="Social Security",
        type=IncomeStreamType.SOCIAL_SECURITY,
        annual_amount=24000,
        start_age=67,
        inflation_adjusted=True,
        is_guaranteed=True,
    )
    params.update(overrides)
    return IncomeStream(**params)


def build_input(**overrides) -> ProjectionInput:
    """A 30-year-old saver retiring at 65 with one Social Security stream at 67."""
    params = dict(
        current_age=30,
        retirement_age=65,
        max_age=90,
        balances_by_type=BalanceByType(tax_deferred=60000, tax_free=30000, taxable=10000),
        annual_contribution=20000,
        contribution_allocation=BalanceByType(tax_deferred=60, tax_free=30, taxable=10),
        expected_return=0.06,
        inflation_rate=0.025,
        contribution_growth_rate=0.0,
        annual_essential_expenses=40000,
        annual_discretionary_expenses=20000,
        annual_healthcare_costs=6500,
        healthcare_inflation_rate=0.05,
        income_streams=(social_security_stream(),),
        start_year=2025,
    )
    params.update(overrides)
    return ProjectionInput(**params)


def build_retiree_input(**overrides) -> ProjectionInput:
    """Already retired at 65, flat markets and prices, all money in taxable."""
    params = dict(
        current_age=65,
        retirement_age=65,
        max_age=66,
        balances_by_type=BalanceByType(taxable=100000),
        annual_contribution=0,
        expected_return=0.0,
        inflation_rate=0.0,
        annual_essential_expenses=30000,
        annual_discretionary_expenses=10000,
        annual_healthcare_costs=0,
        healthcare_inflation_rate=0.0,
        income_streams=(),
    )
    params.update(overrides)
    return build_input(**params)


@pytest.fixture
def make_input():
    return build_input


@pytest.fixture
def make_retiree_input():
    return build_retiree_input


@pytest.fixture
def make_stream():
    return social_security_stream


@pytest.fixture
def base_input():
    return build_input()
