# engine/__init__.py

# The projection itself
from .simulator import run_projection

# Building blocks callers use on their own
from .rmd_tables import calculate_rmd, get_distribution_period
from .withdrawal_engine import WithdrawalEngine, withdraw_from_accounts, withdraw_with_rmd
from .reserve_policy import apply_reserve_constraint
from .spending_phases import calculate_phase_adjusted_expenses, get_active_phase
from .income_calculator import calculate_guaranteed_income, calculate_total_income

# Analyses layered on run_projection
from .sensitivity import analyze_sensitivity, identify_low_friction_wins, identify_sensitive_assumptions
from .spending_comparison import calculate_spending_comparison
from .staleness import check_projection_staleness
from .projection_warnings import generate_projection_warnings
from .income_floor import calculate_income_floor
from .reserve_runway import calculate_reserve_runway
from .status import get_retirement_status
