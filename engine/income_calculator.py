# income_calculator.py
#
# Aggregates income streams (Social Security, pension, rental, annuity, part-time)
#

from typing import Iterable

from models import IncomeStream


def calculate_total_income(
    streams: Iterable[IncomeStream],
    age: int,
    inflation_multiplier: float
) -> float:
    """
    Calculates the total annual income from all streams active at `age`.

    Args:
        streams: Income streams in today's dollars.
        age: Age in the projection year.
        inflation_multiplier: Cumulative general inflation since retirement;
            applied only to streams flagged inflation_adjusted (COLA).

    Returns:
        float: Total annual income for the year.
    """
    total = 0.0
    for stream in streams:
        if stream.is_active(age):
            stream_inflation = inflation_multiplier if stream.inflation_adjusted else 1.0
            total += stream.annual_amount * stream_inflation
    return total


def calculate_guaranteed_income(
    streams: Iterable[IncomeStream],
    age: int,
    inflation_multiplier: float
) -> float:
    """Same as calculate_total_income, restricted to guaranteed streams."""
    return calculate_total_income(
        (s for s in streams if s.is_guaranteed), age, inflation_multiplier
    )
