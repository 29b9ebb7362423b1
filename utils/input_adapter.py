import logging
from dataclasses import MISSING, dataclass, fields
from datetime import date
from typing import Any, Dict, List, Mapping, Union

from config.expense_assumptions import DEFAULT_HEALTHCARE_INFLATION_RATE, DEFAULT_SS_AGE
from config.market_assumptions import (
    DEFAULT_CONTRIBUTION_ALLOCATION,
    DEFAULT_CONTRIBUTION_GROWTH_RATE,
    DEFAULT_INFLATION_RATE,
    DEFAULT_MAX_AGE,
)
from engine.assumptions import (
    default_return_rate,
    derive_annual_expenses,
    estimate_annual_debt_payments,
    estimate_healthcare_costs,
)
from engine.rmd_tables import DEFAULT_RMD_START_AGE
from models import (
    BalanceByType,
    IncomeStream,
    IncomeStreamType,
    ProjectionInput,
    RMDConfig,
    SpendingPhase,
    SpendingPhaseConfig,
    is_guaranteed_income_type,
)
from utils.currency import clean_currency, clean_percent
from utils.xml_loader import DEFAULT_SETUP, parse_setup_xml

logger = logging.getLogger(__name__)

LEGACY_SS_STREAM_ID = "legacy-ss"
ALLOCATION_TOLERANCE = 0.01

INT_FIELDS = ("current_age", "retirement_age", "max_age", "start_year")
MONEY_FIELDS = (
    "annual_contribution",
    "annual_essential_expenses",
    "annual_discretionary_expenses",
    "annual_healthcare_costs",
    "annual_debt_payments",
    "reserve_floor",
)
RATE_FIELDS = (
    "expected_return",
    "inflation_rate",
    "contribution_growth_rate",
    "healthcare_inflation_rate",
)


class ProjectionInputError(ValueError):
    """Raised when a scenario is structurally invalid."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


# =============================================================================
# Input shapes
# =============================================================================

@dataclass(frozen=True)
class LegacyInputShape:
    """Single annual_expenses total and/or flat Social Security fields."""
    data: Dict[str, Any]


@dataclass(frozen=True)
class CurrentInputShape:
    data: Dict[str, Any]


InputShape = Union[LegacyInputShape, CurrentInputShape]


def _has_legacy_expenses(raw: Mapping[str, Any]) -> bool:
    return "annual_expenses" in raw and "annual_essential_expenses" not in raw


def _has_legacy_social_security(raw: Mapping[str, Any]) -> bool:
    return "social_security_monthly" in raw or "social_security_age" in raw


def detect_input_shape(raw: Mapping[str, Any]) -> InputShape:
    if _has_legacy_expenses(raw) or _has_legacy_social_security(raw):
        return LegacyInputShape(dict(raw))
    return CurrentInputShape(dict(raw))


def _from_legacy(shape: LegacyInputShape) -> Dict[str, Any]:
    data = dict(shape.data)

    total = data.pop("annual_expenses", None)
    if total is not None and "annual_essential_expenses" not in data:
        logger.warning("Legacy annual_expenses total mapped to essential expenses")
        data["annual_essential_expenses"] = total
        data.setdefault("annual_discretionary_expenses", 0.0)

    ss_age = data.pop("social_security_age", None)
    ss_monthly = data.pop("social_security_monthly", None)
    if ss_monthly and not data.get("income_streams"):
        logger.warning(
            f"Legacy Social Security fields mapped to income stream '{LEGACY_SS_STREAM_ID}'"
        )
        data["income_streams"] = [{
            "id": LEGACY_SS_STREAM_ID,
            "name": "Social Security",
            "type": IncomeStreamType.SOCIAL_SECURITY.value,
            "annual_amount": float(ss_monthly) * 12,
            "start_age": int(ss_age) if ss_age is not None else DEFAULT_SS_AGE,
            "inflation_adjusted": True,
            "is_guaranteed": True,
            "is_spouse": False,
        }]
    return data


def normalize_input_shape(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Maps either accepted shape onto the current field names."""
    shape = detect_input_shape(raw)
    if isinstance(shape, LegacyInputShape):
        return _from_legacy(shape)
    return shape.data


# =============================================================================
# Dict -> dataclass conversion
# =============================================================================

def _to_balances(value: Any) -> BalanceByType:
    if isinstance(value, BalanceByType):
        return value
    value = value or {}
    return BalanceByType(
        tax_deferred=float(value.get("tax_deferred") or 0.0),
        tax_free=float(value.get("tax_free") or 0.0),
        taxable=float(value.get("taxable") or 0.0),
    )


def _to_income_stream(value: Any) -> IncomeStream:
    if isinstance(value, IncomeStream):
        return value
    try:
        stream_type = IncomeStreamType(value.get("type"))
    except ValueError:
        raise ProjectionInputError([f"Unknown income stream type: {value.get('type')!r}"])
    end_age = value.get("end_age")
    return IncomeStream(
        id=str(value["id"]),
        name=value.get("name") or stream_type.value,
        type=stream_type,
        annual_amount=float(value.get("annual_amount") or 0.0),
        start_age=int(value["start_age"]),
        end_age=int(end_age) if end_age is not None else None,
        inflation_adjusted=bool(value.get("inflation_adjusted", True)),
        is_guaranteed=bool(value.get("is_guaranteed", is_guaranteed_income_type(stream_type))),
        is_spouse=bool(value.get("is_spouse", False)),
    )


def _to_spending_phase(value: Any) -> SpendingPhase:
    if isinstance(value, SpendingPhase):
        return value
    absolute_essential = value.get("absolute_essential")
    absolute_discretionary = value.get("absolute_discretionary")
    return SpendingPhase(
        id=str(value["id"]),
        name=value.get("name") or str(value["id"]),
        start_age=int(value["start_age"]),
        essential_multiplier=float(value.get("essential_multiplier", 1.0)),
        discretionary_multiplier=float(value.get("discretionary_multiplier", 1.0)),
        absolute_essential=float(absolute_essential) if absolute_essential is not None else None,
        absolute_discretionary=(float(absolute_discretionary)
                                if absolute_discretionary is not None else None),
    )


def _to_phase_config(value: Any) -> Union[SpendingPhaseConfig, None]:
    if value is None or isinstance(value, SpendingPhaseConfig):
        return value
    return SpendingPhaseConfig(
        enabled=bool(value.get("enabled", False)),
        phases=tuple(_to_spending_phase(p) for p in value.get("phases", ())),
    )


def _to_rmd_config(value: Any) -> Union[RMDConfig, None]:
    if value is None or isinstance(value, RMDConfig):
        return value
    return RMDConfig(
        enabled=bool(value.get("enabled", True)),
        start_age=int(value.get("start_age", DEFAULT_RMD_START_AGE)),
    )


def _fill_derived_fields(data: Dict[str, Any]) -> None:
    """
    Fills fields the caller left out, either from profile-style inputs
    (debts, annual_income/savings_rate) or from the assumption defaults.
    """
    debts = data.pop("debts", None)
    if debts is not None and data.get("annual_debt_payments") is None:
        data["annual_debt_payments"] = estimate_annual_debt_payments(debts)

    annual_income = data.pop("annual_income", None)
    savings_rate = data.pop("savings_rate", None)
    if (annual_income is not None
            and data.get("annual_essential_expenses") is None
            and data.get("annual_discretionary_expenses") is None):
        if isinstance(annual_income, str):
            annual_income = clean_currency(annual_income)
        data["annual_essential_expenses"] = derive_annual_expenses(
            float(annual_income), float(savings_rate or 0.0)
        )
        data["annual_discretionary_expenses"] = 0.0

    if data.get("annual_healthcare_costs") is None and data.get("retirement_age") is not None:
        data["annual_healthcare_costs"] = estimate_healthcare_costs(int(data["retirement_age"]))

    if data.get("max_age") is None:
        data["max_age"] = DEFAULT_MAX_AGE
    if data.get("inflation_rate") is None:
        data["inflation_rate"] = DEFAULT_INFLATION_RATE
    if data.get("contribution_growth_rate") is None:
        data["contribution_growth_rate"] = DEFAULT_CONTRIBUTION_GROWTH_RATE
    if data.get("healthcare_inflation_rate") is None:
        data["healthcare_inflation_rate"] = DEFAULT_HEALTHCARE_INFLATION_RATE
    if data.get("contribution_allocation") is None:
        data["contribution_allocation"] = dict(DEFAULT_CONTRIBUTION_ALLOCATION)


def build_projection_input(raw: Mapping[str, Any]) -> ProjectionInput:
    """
    Builds a ProjectionInput from a dict in either accepted shape. Nested dicts
    become their dataclasses; keys that are not ProjectionInput fields are dropped.
    """
    data = normalize_input_shape(raw)

    risk_tolerance = data.pop("risk_tolerance", None)
    if data.get("expected_return") is None:
        data["expected_return"] = default_return_rate(risk_tolerance)

    if data.get("start_year") is None:
        data["start_year"] = date.today().year

    _fill_derived_fields(data)

    for name in INT_FIELDS:
        if data.get(name) is not None:
            data[name] = int(data[name])
    for name in MONEY_FIELDS:
        if isinstance(data.get(name), str):
            data[name] = clean_currency(data[name])
        if data.get(name) is not None:
            data[name] = float(data[name])
    for name in RATE_FIELDS:
        if isinstance(data.get(name), str):
            rate = clean_percent(data[name])
            if rate is None:
                raise ProjectionInputError([f"{name} is not a valid rate: {data[name]!r}"])
            data[name] = rate
        if data.get(name) is not None:
            data[name] = float(data[name])

    data["balances_by_type"] = _to_balances(data.get("balances_by_type"))
    data["contribution_allocation"] = _to_balances(data.get("contribution_allocation"))
    data["income_streams"] = tuple(_to_income_stream(s) for s in data.get("income_streams") or ())
    data["spending_phase_config"] = _to_phase_config(data.get("spending_phase_config"))
    data["rmd_config"] = _to_rmd_config(data.get("rmd_config"))

    # Reflection over the dataclass keeps only fields ProjectionInput knows about
    input_field_names = {f.name for f in fields(ProjectionInput)}
    unknown = sorted(key for key in data if key not in input_field_names)
    if unknown:
        logger.warning(f"Ignoring unknown projection input fields: {', '.join(unknown)}")

    final_inputs = {key: value for key, value in data.items() if key in input_field_names}

    missing = sorted(
        f.name for f in fields(ProjectionInput)
        if f.name not in final_inputs
        and f.default is MISSING and f.default_factory is MISSING
    )
    if missing:
        raise ProjectionInputError([f"Missing required field: {name}" for name in missing])

    return ProjectionInput(**final_inputs)


# =============================================================================
# Validation
# =============================================================================

def validate_projection_input(inputs: ProjectionInput) -> None:
    """
    Structural checks for a scenario before it reaches the engine.

    Raises:
        ProjectionInputError: listing every problem found.
    """
    problems: List[str] = []

    if inputs.current_age < 0:
        problems.append("current_age must be non-negative")
    if inputs.current_age > inputs.max_age:
        problems.append("current_age must not exceed max_age")
    if inputs.retirement_age > inputs.max_age:
        problems.append("retirement_age must not exceed max_age")

    allocation_total = inputs.contribution_allocation.total()
    if abs(allocation_total - 100) > ALLOCATION_TOLERANCE:
        problems.append(f"contribution_allocation must sum to 100 (got {allocation_total:g})")

    balances = inputs.balances_by_type
    if min(balances.tax_deferred, balances.tax_free, balances.taxable) < 0:
        problems.append("balances_by_type must be non-negative")

    for name in ("annual_contribution", "annual_essential_expenses",
                 "annual_discretionary_expenses", "annual_healthcare_costs",
                 "annual_debt_payments"):
        if getattr(inputs, name) < 0:
            problems.append(f"{name} must be non-negative")

    if inputs.reserve_floor is not None and inputs.reserve_floor < 0:
        problems.append("reserve_floor must be non-negative")

    for stream in inputs.income_streams:
        try:
            IncomeStreamType(stream.type)
        except ValueError:
            problems.append(f"income stream {stream.id!r} has unknown type {stream.type!r}")
        if stream.annual_amount < 0:
            problems.append(f"income stream {stream.id!r} has a negative amount")
        if stream.end_age is not None and stream.end_age < stream.start_age:
            problems.append(f"income stream {stream.id!r} ends before it starts")

    if inputs.spending_phase_config is not None:
        for phase in inputs.spending_phase_config.phases:
            if phase.essential_multiplier < 0 or phase.discretionary_multiplier < 0:
                problems.append(f"spending phase {phase.id!r} has a negative multiplier")

    if problems:
        raise ProjectionInputError(problems)


# =============================================================================
# Entry points
# =============================================================================

def get_projection_input(**overrides: Any) -> ProjectionInput:
    """
    Merges the XML default scenario with caller overrides (either input shape)
    and returns a validated ProjectionInput.
    """
    # 1. Start with defaults loaded from the XML setup file
    inputs_dict = DEFAULT_SETUP.copy()

    # 2. Normalise the overrides on their own, so legacy fields are judged
    # against what the caller supplied rather than the defaults
    normalized = normalize_input_shape(overrides)

    # 3. A risk tier without an explicit return replaces the default return
    if "risk_tolerance" in normalized and "expected_return" not in normalized:
        inputs_dict.pop("expected_return", None)

    # 4. Profile-style inputs replace the default amounts they derive
    if "debts" in normalized and "annual_debt_payments" not in normalized:
        inputs_dict.pop("annual_debt_payments", None)
    if ("annual_income" in normalized
            and "annual_essential_expenses" not in normalized
            and "annual_discretionary_expenses" not in normalized):
        inputs_dict.pop("annual_essential_expenses", None)
        inputs_dict.pop("annual_discretionary_expenses", None)

    inputs_dict.update(normalized)

    inputs = build_projection_input(inputs_dict)
    validate_projection_input(inputs)
    return inputs


def load_projection_input(file_path: Any, **overrides: Any) -> ProjectionInput:
    """Builds a validated ProjectionInput from an XML scenario file layered on the defaults."""
    scenario = normalize_input_shape(parse_setup_xml(file_path))
    scenario.update(normalize_input_shape(overrides))
    return get_projection_input(**scenario)
