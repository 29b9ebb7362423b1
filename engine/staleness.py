# engine/staleness.py

"""
Detects whether a stored projection input differs from a freshly derived one,
and reports which fields changed for display.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from models import BalanceByType, IncomeStream, ProjectionInput, SpendingPhaseConfig

# Scalar fields that affect projection outcomes
SCALAR_FIELDS = (
    "current_age",
    "retirement_age",
    "max_age",
    "annual_contribution",
    "expected_return",
    "inflation_rate",
    "healthcare_inflation_rate",
    "annual_essential_expenses",
    "annual_discretionary_expenses",
    "annual_healthcare_costs",
    "annual_debt_payments",
    "contribution_growth_rate",
    "reserve_floor",
    "rmd_config",
)


@dataclass
class StalenessResult:
    is_stale: bool
    changed_fields: List[str] = field(default_factory=list)
    # field -> {"previous": ..., "current": ...}
    changes: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def balances_equal(a: BalanceByType, b: BalanceByType) -> bool:
    return (
        a.tax_deferred == b.tax_deferred
        and a.tax_free == b.tax_free
        and a.taxable == b.taxable
    )


def _sorted_by_id(items: Sequence) -> list:
    return sorted(items, key=lambda item: item.id)


def _structurally_equal(a: Sequence, b: Sequence) -> bool:
    if len(a) != len(b):
        return False
    return [asdict(x) for x in _sorted_by_id(a)] == [asdict(y) for y in _sorted_by_id(b)]


def income_streams_equal(a: Sequence[IncomeStream], b: Sequence[IncomeStream]) -> bool:
    """Order-independent: sort by id, then compare field by field."""
    return _structurally_equal(a, b)


def spending_phases_equal(a: Optional[SpendingPhaseConfig], b: Optional[SpendingPhaseConfig]) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    # Phase details are irrelevant while both are switched off
    if not a.enabled and not b.enabled:
        return True
    if a.enabled != b.enabled:
        return False
    return _structurally_equal(a.phases, b.phases)


def check_projection_staleness(stored_inputs: ProjectionInput,
                               current_inputs: ProjectionInput) -> StalenessResult:
    """
    Field-by-field comparison of stored vs current projection inputs.

    Returns:
        StalenessResult listing changed fields with previous/current values.
    """
    result = StalenessResult(is_stale=False)

    def _flag(name: str, previous: Any, current: Any) -> None:
        result.changed_fields.append(name)
        result.changes[name] = {"previous": previous, "current": current}

    for name in SCALAR_FIELDS:
        previous = getattr(stored_inputs, name)
        current = getattr(current_inputs, name)
        if previous != current:
            _flag(name, previous, current)

    if not balances_equal(stored_inputs.balances_by_type, current_inputs.balances_by_type):
        _flag("balances_by_type", stored_inputs.balances_by_type, current_inputs.balances_by_type)

    if not balances_equal(stored_inputs.contribution_allocation, current_inputs.contribution_allocation):
        _flag("contribution_allocation",
              stored_inputs.contribution_allocation, current_inputs.contribution_allocation)

    if not income_streams_equal(stored_inputs.income_streams, current_inputs.income_streams):
        _flag("income_streams", stored_inputs.income_streams, current_inputs.income_streams)

    if not spending_phases_equal(stored_inputs.spending_phase_config,
                                 current_inputs.spending_phase_config):
        _flag("spending_phase_config",
              stored_inputs.spending_phase_config, current_inputs.spending_phase_config)

    result.is_stale = bool(result.changed_fields)
    return result
