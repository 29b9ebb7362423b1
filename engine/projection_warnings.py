# engine/projection_warnings.py
#
# Advisory (non-blocking) warnings for unusual but valid projection inputs.
#

from dataclasses import dataclass
from typing import List

from models import ProjectionInput
from utils.currency import format_currency_output, format_percent

HIGH_INFLATION_THRESHOLD = 0.08
LOW_RETURN_THRESHOLD = 0.02
SHORT_HORIZON_YEARS = 5
RMD_WARNING_AGES = range(70, 73)
RMD_WARNING_BALANCE = 100_000


@dataclass(frozen=True)
class ProjectionWarning:
    field: str
    message: str
    severity: str  # 'info' | 'warning'


def generate_projection_warnings(inputs: ProjectionInput) -> List[ProjectionWarning]:
    warnings: List[ProjectionWarning] = []

    if inputs.inflation_rate > HIGH_INFLATION_THRESHOLD:
        warnings.append(ProjectionWarning(
            field="inflation_rate",
            message=(f"Inflation rate of {format_percent(inputs.inflation_rate)} is higher than "
                     "historical averages. Consider using a more conservative estimate "
                     "(2-4% is typical)."),
            severity="warning",
        ))

    if 0 <= inputs.expected_return < LOW_RETURN_THRESHOLD:
        warnings.append(ProjectionWarning(
            field="expected_return",
            message=(f"Expected return of {format_percent(inputs.expected_return)} is quite "
                     "conservative. Historical stock market returns average 7-10% before inflation."),
            severity="info",
        ))

    if inputs.balances_by_type.total() == 0 and inputs.annual_contribution == 0:
        warnings.append(ProjectionWarning(
            field="savings",
            message=("Starting with no savings and no contributions will result in relying "
                     "entirely on other income sources in retirement."),
            severity="warning",
        ))

    if (inputs.annual_debt_payments > 0 and inputs.annual_contribution > 0
            and inputs.annual_debt_payments >= inputs.annual_contribution):
        warnings.append(ProjectionWarning(
            field="debt",
            message=("Your debt payments exceed your retirement contributions. "
                     "Consider prioritizing debt reduction."),
            severity="info",
        ))

    years_to_retirement = inputs.retirement_age - inputs.current_age
    if 0 < years_to_retirement <= SHORT_HORIZON_YEARS:
        plural = "" if years_to_retirement == 1 else "s"
        warnings.append(ProjectionWarning(
            field="retirement_age",
            message=(f"You're {years_to_retirement} year{plural} from retirement. Focus on "
                     "preserving capital and finalizing your income strategy."),
            severity="info",
        ))

    tax_deferred = inputs.balances_by_type.tax_deferred
    if inputs.current_age in RMD_WARNING_AGES and tax_deferred > RMD_WARNING_BALANCE:
        warnings.append(ProjectionWarning(
            field="rmd",
            message=("You're approaching age 73 when Required Minimum Distributions (RMDs) begin. "
                     f"With {format_currency_output(tax_deferred)} in tax-deferred accounts, you'll "
                     "be required to withdraw a minimum amount each year starting at age 73."),
            severity="info",
        ))

    return warnings
