# config/expense_assumptions.py
# These are **reasonable defaults** - callers can override per scenario

# Healthcare (separate, typically higher, inflation path)
DEFAULT_HEALTHCARE_INFLATION_RATE = 0.05
medicare_start_age = 65
late_retirement_age = 75

# Annual healthcare cost by age band, today's dollars (retiree cost estimates)
DEFAULT_HEALTHCARE_COSTS_BY_AGE = {
    "under65": 8000,    # pre-Medicare: ACA marketplace or employer
    "65to74": 6500,     # early Medicare + supplements
    "75plus": 12000,    # late retirement, increased medical needs
}

# Social Security estimate
DEFAULT_SS_AGE = 67
SSA_MAX_MONTHLY_BENEFIT = 4500  # 2024, approximate
ss_replacement_tiers = [
    # (upper income bound, replacement rate)
    (30_000, 0.55),
    (80_000, 0.40),
    (float("inf"), 0.30),
]
ss_conservative_haircut = 0.20

# Expense derivation when no budget is provided
max_spending_share_of_income = 0.80

# Debt amortization (simple 10-year payoff)
debt_payoff_years = 10
default_debt_interest_rate = 5.0  # percent
