# engine/spending_comparison.py

"""
Flat vs phased spending comparison.

Runs the projection twice (spending phases disabled, then as configured) and
derives the early-years bonus, break-even age and longevity difference.
"""

from dataclasses import dataclass, replace
from typing import List, Optional

import numpy as np

from models import ProjectionInput, ProjectionResult, round_cents
from engine.simulator import run_projection

DEFAULT_EARLY_YEARS_COUNT = 10
BREAK_EVEN_TOLERANCE = 100.0  # dollars of cumulative spending


@dataclass(frozen=True)
class YearlySpending:
    age: int
    amount: float
    phase: Optional[str] = None


@dataclass(frozen=True)
class SpendingStrategyResult:
    total_lifetime_spending: float
    portfolio_depletion_age: Optional[int]
    ending_balance: float
    yearly_spending: List[YearlySpending]


@dataclass(frozen=True)
class SpendingComparison:
    flat_spending: SpendingStrategyResult
    phased_spending: SpendingStrategyResult
    early_years_bonus: float
    early_years_count: int
    break_even_age: Optional[int]
    longevity_difference: int


def _retirement_outflows(result: ProjectionResult, retirement_age: int) -> np.ndarray:
    return np.array(
        [r.outflows for r in result.records if r.age >= retirement_age], dtype=float
    )


def _strategy_result(result: ProjectionResult, retirement_age: int) -> SpendingStrategyResult:
    retirement_records = [r for r in result.records if r.age >= retirement_age]
    return SpendingStrategyResult(
        total_lifetime_spending=round_cents(sum(r.outflows for r in retirement_records)),
        portfolio_depletion_age=result.summary.depletion_age,
        ending_balance=result.summary.ending_balance,
        yearly_spending=[
            YearlySpending(age=r.age, amount=r.outflows, phase=r.active_phase_name)
            for r in retirement_records
        ],
    )


def _early_years_spending(result: ProjectionResult, retirement_age: int, years_count: int) -> float:
    return sum(
        r.outflows for r in result.records
        if retirement_age <= r.age < retirement_age + years_count
    )


def calculate_break_even_age(flat_result: ProjectionResult,
                             phased_result: ProjectionResult,
                             retirement_age: int) -> Optional[int]:
    """
    First age at which cumulative phased-minus-flat spending comes back to
    within the tolerance band or crosses to the other side of it, once the two
    paths have diverged. None if they never diverge or never come back.
    """
    flat = _retirement_outflows(flat_result, retirement_age)
    phased = _retirement_outflows(phased_result, retirement_age)
    n = min(len(flat), len(phased))
    if n == 0:
        return None

    ages = [r.age for r in flat_result.records if r.age >= retirement_age][:n]
    cumulative_diff = np.cumsum(phased[:n]) - np.cumsum(flat[:n])
    # +1 above the band, -1 below it, 0 inside it
    bands = np.where(cumulative_diff > BREAK_EVEN_TOLERANCE, 1,
                     np.where(cumulative_diff < -BREAK_EVEN_TOLERANCE, -1, 0))

    previous_band = 0
    for age, band in zip(ages, bands):
        if previous_band != 0 and band != previous_band:
            return int(age)
        if band != 0:
            previous_band = int(band)
    return None


def _longevity_difference(inputs: ProjectionInput,
                          flat_years: Optional[int],
                          phased_years: Optional[int]) -> int:
    horizon = inputs.max_age - inputs.current_age
    if flat_years is not None and phased_years is not None:
        return phased_years - flat_years
    if flat_years is not None:
        # Phased never depletes, flat does
        return horizon - flat_years
    if phased_years is not None:
        # Flat never depletes, phased does
        return -(horizon - phased_years)
    return 0


def calculate_spending_comparison(base_input: ProjectionInput,
                                  early_years_count: int = DEFAULT_EARLY_YEARS_COUNT
                                  ) -> SpendingComparison:
    """
    Compares flat spending against the caller's spending-phase configuration.

    Args:
        base_input: Scenario, possibly carrying a spending_phase_config.
        early_years_count: Number of early retirement years for the bonus.

    Returns:
        SpendingComparison with metrics for both strategies.
    """
    retirement_age = base_input.retirement_age

    flat_result = run_projection(replace(base_input, spending_phase_config=None))
    phased_result = run_projection(base_input)

    early_years_bonus = (
        _early_years_spending(phased_result, retirement_age, early_years_count)
        - _early_years_spending(flat_result, retirement_age, early_years_count)
    )

    return SpendingComparison(
        flat_spending=_strategy_result(flat_result, retirement_age),
        phased_spending=_strategy_result(phased_result, retirement_age),
        early_years_bonus=round_cents(early_years_bonus),
        early_years_count=early_years_count,
        break_even_age=calculate_break_even_age(flat_result, phased_result, retirement_age),
        longevity_difference=_longevity_difference(
            base_input,
            flat_result.summary.years_until_depletion,
            phased_result.summary.years_until_depletion,
        ),
    )
