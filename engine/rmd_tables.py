# engine/rmd_tables.py

"""
RMD lookup using the 2022+ IRS Uniform Lifetime Table.

RMD = prior year-end tax-deferred balance / distribution period(age).
Start age follows SECURE 2.0 (73 for anyone turning 72 after 2022).
"""

from typing import Dict, Optional

# =============================================================================
# 2022+ IRS UNIFORM LIFETIME TABLE (AGES 73-120)
# =============================================================================
UNIFORM_LIFETIME_TABLE: Dict[int, float] = {
    73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9,
    78: 22.0, 79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7,
    84: 16.8, 85: 16.0, 86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9,
    90: 12.2, 91: 11.5, 92: 10.8, 93: 10.1, 94: 9.5, 95: 8.9,
    96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8, 100: 6.4, 101: 6.0,
    102: 5.6, 103: 5.2, 104: 4.9, 105: 4.6, 106: 4.3, 107: 4.1,
    108: 3.9, 109: 3.7, 110: 3.5, 111: 3.4, 112: 3.3, 113: 3.1,
    114: 3.0, 115: 2.9, 116: 2.8, 117: 2.7, 118: 2.5, 119: 2.3,
    120: 2.0,
}

DEFAULT_RMD_START_AGE = 73
TERMINAL_DISTRIBUTION_PERIOD = 2.0  # IRS default for 120+

_FIRST_TABLE_AGE = min(UNIFORM_LIFETIME_TABLE)
_LAST_TABLE_AGE = max(UNIFORM_LIFETIME_TABLE)


def get_distribution_period(age: int, start_age: int = DEFAULT_RMD_START_AGE) -> Optional[float]:
    """
    Returns the distribution period for `age`, or None below the RMD start age.

    A start age earlier than the table's first row uses the first row's factor.
    """
    if age < start_age:
        return None
    if age > _LAST_TABLE_AGE:
        return TERMINAL_DISTRIBUTION_PERIOD
    return UNIFORM_LIFETIME_TABLE.get(max(age, _FIRST_TABLE_AGE), TERMINAL_DISTRIBUTION_PERIOD)


def calculate_rmd(prior_year_end_balance: float, age: int,
                  start_age: int = DEFAULT_RMD_START_AGE) -> float:
    """Required minimum distribution for the year, 0 when not yet required."""
    distribution_period = get_distribution_period(age, start_age)

    if distribution_period is None or prior_year_end_balance <= 0:
        return 0.0

    return prior_year_end_balance / distribution_period


__all__ = [
    "UNIFORM_LIFETIME_TABLE",
    "DEFAULT_RMD_START_AGE",
    "get_distribution_period",
    "calculate_rmd",
]
