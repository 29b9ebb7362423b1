# =============================================================================
# Market Info used in projections
# =============================================================================

# Expected nominal return by risk tolerance (single deterministic path)
DEFAULT_RETURN_RATES = {
    "conservative": 0.04,   # bond-heavy portfolio
    "moderate": 0.06,       # balanced 60/40
    "aggressive": 0.08,     # equity-heavy
}
DEFAULT_RISK_TOLERANCE = "moderate"

# Inflation (historical average)
DEFAULT_INFLATION_RATE = 0.025

# Contributions
DEFAULT_CONTRIBUTION_GROWTH_RATE = 0.0   # flat contributions
DEFAULT_CONTRIBUTION_ALLOCATION = {     # percent, must sum to 100
    "tax_deferred": 60,
    "tax_free": 30,
    "taxable": 10,
}

# Horizon
DEFAULT_MAX_AGE = 90
