# engine/reserve_policy.py
#
# Reserve-constrained spending: never intentionally withdraw below the floor.
# Reductions are staged, mildest first:
#   discretionary reduced -> essentials only -> essentials reduced -> floor reached
#

from dataclasses import dataclass

from models import ReductionStage

# Discretionary room below a cent counts as none
MIN_DISCRETIONARY_PAYMENT = 0.01


@dataclass(frozen=True)
class ReserveConstraintResult:
    essential_paid: float
    discretionary_paid: float
    shortfall: float
    stage: ReductionStage

    @property
    def withdrawal_target(self) -> float:
        return self.essential_paid + self.discretionary_paid

    @property
    def is_constrained(self) -> bool:
        return self.stage is not ReductionStage.NONE


def apply_reserve_constraint(
    total_balance: float,
    essential_need: float,
    discretionary_need: float,
    reserve_floor: float
) -> ReserveConstraintResult:
    """
    Decides how much of this year's portfolio need can be paid without going
    below `reserve_floor`.

    Args:
        total_balance: Portfolio balance before this year's withdrawal.
        essential_need: Essential spending (incl. healthcare) not covered by income.
        discretionary_need: Discretionary spending not covered by income.
        reserve_floor: Minimum total balance to preserve.

    Returns:
        ReserveConstraintResult with the amounts paid, the unmet shortfall and
        the reduction stage applied.
    """
    essential_need = max(0.0, essential_need)
    discretionary_need = max(0.0, discretionary_need)
    total_need = essential_need + discretionary_need
    room = total_balance - reserve_floor

    # 1) Spending down to the floor still covers everything
    if total_need <= 0 or room >= total_need:
        return ReserveConstraintResult(essential_need, discretionary_need, 0.0, ReductionStage.NONE)

    # 4) Floor already reached or breached: pay nothing
    if room <= 0:
        return ReserveConstraintResult(0.0, 0.0, total_need, ReductionStage.FLOOR_REACHED)

    # 2) Essentials fit, discretionary is scaled to what is left
    if room - essential_need >= MIN_DISCRETIONARY_PAYMENT:
        discretionary_paid = room - essential_need
        return ReserveConstraintResult(
            essential_need,
            discretionary_paid,
            discretionary_need - discretionary_paid,
            ReductionStage.DISCRETIONARY_REDUCED,
        )

    if room >= essential_need:
        return ReserveConstraintResult(
            essential_need, 0.0, discretionary_need, ReductionStage.ESSENTIALS_ONLY
        )

    # 3) Even essentials exceed the room above the floor
    return ReserveConstraintResult(
        room, 0.0, total_need - room, ReductionStage.ESSENTIALS_REDUCED
    )
