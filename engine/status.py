# engine/status.py
#
# Headline classification of a projection: on track, needs adjustment, at risk.
#

from dataclasses import dataclass
from enum import Enum

from models import ProjectionSummary

# Depletion further out than this is a nudge, not an alarm
AT_RISK_YEARS = 20


class RetirementStatus(str, Enum):
    ON_TRACK = "on-track"
    NEEDS_ADJUSTMENT = "needs-adjustment"
    AT_RISK = "at-risk"


@dataclass(frozen=True)
class RetirementStatusResult:
    status: RetirementStatus
    label: str
    description: str


def get_retirement_status(summary: ProjectionSummary,
                          current_age: int,
                          max_age: int) -> RetirementStatusResult:
    years = summary.years_until_depletion

    if years is None:
        return RetirementStatusResult(
            status=RetirementStatus.ON_TRACK,
            label="On Track",
            description=f"Your retirement savings are projected to last through age {max_age}.",
        )

    depletion_age = current_age + years
    if years > AT_RISK_YEARS:
        return RetirementStatusResult(
            status=RetirementStatus.NEEDS_ADJUSTMENT,
            label="Needs Adjustment",
            description=f"Funds may run out at age {depletion_age}. Consider increasing savings.",
        )

    return RetirementStatusResult(
        status=RetirementStatus.AT_RISK,
        label="At Risk of Shortfall",
        description=f"Funds projected to run out at age {depletion_age}. Action recommended.",
    )
