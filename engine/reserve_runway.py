# engine/reserve_runway.py
#
# How many years a reserve would carry essential (and full) spending once
# guaranteed income has been netted off.
#

import math
from dataclasses import dataclass
from typing import Iterable

from config.market_assumptions import DEFAULT_INFLATION_RATE
from models import IncomeStream

MAX_RUNWAY_YEARS = 100


@dataclass(frozen=True)
class ReserveRunwayResult:
    years_of_essentials: float     # whole years, or math.inf
    years_of_full_spending: float  # whole years, or math.inf
    description: str


def _inflation_adjusted_years(reserve: float, annual_need: float, inflation_rate: float) -> float:
    if annual_need <= 0:
        return math.inf

    remaining = reserve
    need = annual_need
    years = 0
    while remaining > 0 and years < MAX_RUNWAY_YEARS:
        remaining -= need
        need *= 1 + inflation_rate
        years += 1
    return years


def _describe(years: float, essential_gap: float) -> str:
    if essential_gap <= 0:
        return "Guaranteed income covers all essential expenses"
    if years >= 30:
        return "Reserve provides 30+ years of essential expense coverage"
    if years >= 10:
        return f"Reserve covers ~{int(years)} years of essential expenses"
    if years >= 1:
        plural = "s" if years >= 2 else ""
        return f"Reserve covers {int(years)} year{plural} of essential expenses"
    return f"Reserve covers {int(years * 12)} months of essential expenses"


def calculate_reserve_runway(reserve_amount: float,
                             annual_essential_expenses: float,
                             annual_discretionary_expenses: float,
                             guaranteed_annual_income: float,
                             inflation_rate: float = DEFAULT_INFLATION_RATE) -> ReserveRunwayResult:
    """
    Years the reserve covers the gap between expenses and guaranteed income,
    growing the gap with inflation each year. Capped at MAX_RUNWAY_YEARS.
    """
    essential_gap = max(0.0, annual_essential_expenses - guaranteed_annual_income)
    full_gap = essential_gap + annual_discretionary_expenses

    years_of_essentials = _inflation_adjusted_years(reserve_amount, essential_gap, inflation_rate)
    years_of_full = _inflation_adjusted_years(reserve_amount, full_gap, inflation_rate)

    return ReserveRunwayResult(
        years_of_essentials=years_of_essentials,
        years_of_full_spending=years_of_full,
        description=_describe(years_of_essentials, essential_gap),
    )


def calculate_guaranteed_income_total(streams: Iterable[IncomeStream]) -> float:
    return sum(s.annual_amount for s in streams if s.is_guaranteed)
