# engine/assumptions.py
#
# Pure default formulas used when building a ProjectionInput from a stored profile.
#

from typing import Dict, Iterable, Optional

from config.market_assumptions import DEFAULT_RETURN_RATES, DEFAULT_RISK_TOLERANCE
from config.expense_assumptions import (
    DEFAULT_HEALTHCARE_COSTS_BY_AGE,
    SSA_MAX_MONTHLY_BENEFIT,
    debt_payoff_years,
    default_debt_interest_rate,
    late_retirement_age,
    max_spending_share_of_income,
    medicare_start_age,
    ss_conservative_haircut,
    ss_replacement_tiers,
)


def default_return_rate(risk_tolerance: Optional[str]) -> float:
    """Expected return for a risk tier; unknown tiers fall back to moderate."""
    key = (risk_tolerance or DEFAULT_RISK_TOLERANCE).strip().lower()
    return DEFAULT_RETURN_RATES.get(key, DEFAULT_RETURN_RATES[DEFAULT_RISK_TOLERANCE])


def estimate_healthcare_costs(age: int) -> float:
    """Annual healthcare cost (today's dollars) for the age band containing `age`."""
    if age < medicare_start_age:
        return DEFAULT_HEALTHCARE_COSTS_BY_AGE["under65"]
    elif age < late_retirement_age:
        return DEFAULT_HEALTHCARE_COSTS_BY_AGE["65to74"]
    else:
        return DEFAULT_HEALTHCARE_COSTS_BY_AGE["75plus"]


def estimate_social_security_monthly(annual_income: float) -> float:
    """
    Estimates the monthly Social Security benefit in today's dollars.

    Uses a tiered replacement-rate approximation of the SSA formula, applies a
    conservative haircut and caps the result at the SSA maximum benefit.

    Args:
        annual_income: Current annual earned income.

    Returns:
        float: Estimated monthly benefit.
    """
    annual_benefit = 0.0
    lower = 0.0
    for upper, rate in ss_replacement_tiers:
        if annual_income <= lower:
            break
        annual_benefit += (min(annual_income, upper) - lower) * rate
        lower = upper

    monthly_benefit = annual_benefit * (1 - ss_conservative_haircut) / 12
    return min(monthly_benefit, SSA_MAX_MONTHLY_BENEFIT)


def derive_annual_expenses(annual_income: float, savings_rate: float) -> float:
    """Spending implied by income and savings rate (percent), capped at 80% of income."""
    spending = annual_income * (1 - savings_rate / 100)
    return min(spending, annual_income * max_spending_share_of_income)


def estimate_annual_debt_payments(debts: Iterable[Dict[str, float]]) -> float:
    """
    Total annual payment for a list of debts, assuming each is amortized over
    ten years. Debts without an interest rate use 5%.
    """
    num_payments = debt_payoff_years * 12
    total = 0.0

    for debt in debts:
        balance = debt.get("balance", 0.0)
        rate = debt.get("interest_rate")
        if rate is None:
            rate = default_debt_interest_rate
        rate = rate / 100
        monthly_rate = rate / 12

        if monthly_rate == 0:
            total += balance / debt_payoff_years
            continue

        # M = P * r(1+r)^n / ((1+r)^n - 1)
        factor = (1 + monthly_rate) ** num_payments
        monthly_payment = balance * (monthly_rate * factor) / (factor - 1)
        total += monthly_payment * 12

    return total
