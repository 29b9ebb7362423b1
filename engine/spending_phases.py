# engine/spending_phases.py
#
# Resolves the active lifestyle phase ("Go-Go", "Slow-Go", "No-Go") for an age
# and applies its essential/discretionary adjustments.
#

from dataclasses import dataclass
from typing import Optional

from models import SpendingPhase, SpendingPhaseConfig


@dataclass(frozen=True)
class PhaseAdjustedExpenses:
    essential: float
    discretionary: float
    active_phase: Optional[SpendingPhase]


def get_active_phase(age: int, config: Optional[SpendingPhaseConfig]) -> Optional[SpendingPhase]:
    """
    The phase with the greatest start_age that is <= age. Phases sharing a
    start age resolve to the first one in input order.
    """
    if config is None or not config.enabled:
        return None

    active = None
    for phase in config.phases:
        if phase.start_age > age:
            continue
        if active is None or phase.start_age > active.start_age:
            active = phase
    return active


def calculate_phase_adjusted_expenses(
    age: int,
    base_essential: float,
    base_discretionary: float,
    config: Optional[SpendingPhaseConfig]
) -> PhaseAdjustedExpenses:
    """
    Applies the active phase to base (today's dollar) expenses. Absolute
    overrides beat multipliers, per field. No active phase means flat spending.
    """
    phase = get_active_phase(age, config)
    if phase is None:
        return PhaseAdjustedExpenses(base_essential, base_discretionary, None)

    if phase.absolute_essential is not None:
        essential = phase.absolute_essential
    else:
        essential = base_essential * phase.essential_multiplier

    if phase.absolute_discretionary is not None:
        discretionary = phase.absolute_discretionary
    else:
        discretionary = base_discretionary * phase.discretionary_multiplier

    return PhaseAdjustedExpenses(essential, discretionary, phase)


# Common three-phase retirement spending shape
DEFAULT_SPENDING_PHASES = SpendingPhaseConfig(
    enabled=True,
    phases=(
        SpendingPhase(id="go-go", name="Go-Go Years", start_age=65,
                      essential_multiplier=1.0, discretionary_multiplier=1.1),
        SpendingPhase(id="slow-go", name="Slow-Go Years", start_age=75,
                      essential_multiplier=0.95, discretionary_multiplier=0.75),
        SpendingPhase(id="no-go", name="No-Go Years", start_age=85,
                      essential_multiplier=0.9, discretionary_multiplier=0.5),
    ),
)
