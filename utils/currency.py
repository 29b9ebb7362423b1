# utils/currency.py
import re
from typing import Union

# Everything except digits, sign and decimal point
_NON_NUMERIC = re.compile(r"[^0-9.\-]")


# ----------------------------------------------------------------------
# Parsing (scenario files / overrides)
# ----------------------------------------------------------------------

def _to_number(text: str) -> Union[float, None]:
    """'$1,200.50' -> 1200.5, '-$300' -> -300.0, '6 %' -> 6.0; None if nothing numeric is left."""
    stripped = _NON_NUMERIC.sub("", text)
    if stripped in ("", "-", ".", "-."):
        return None
    try:
        return float(stripped)
    except ValueError:
        return None


def clean_currency(val) -> float:
    """
    Parses a dollar amount such as "$140,000.00" or "-$2,500" into a float.
    Blank or unparsable values read as 0.0.
    """
    if val is None or val == "":
        return 0.0
    if isinstance(val, (int, float)):
        return float(val)

    amount = _to_number(str(val))
    return amount if amount is not None else 0.0


def clean_percent(raw_input: Union[str, float, int]) -> Union[float, None]:
    """
    Parses a rate given as a fraction ('0.06'), a percent ('6%') or a bare
    percentage number ('6') into a fraction. Values from 1 to 100 are read as
    percentages. Returns None when nothing numeric is given.
    """
    if raw_input is None:
        return None

    if isinstance(raw_input, (int, float)):
        value = float(raw_input)
    else:
        value = _to_number(str(raw_input))
        if value is None:
            return None

    if 1.0 <= value <= 100.0:
        return value / 100.0
    return value


# ----------------------------------------------------------------------
# Display
# ----------------------------------------------------------------------

def format_currency_output(val, decimals=0):
    """
    Formats a float/int into a clean currency string ($1,234,567).

    Args:
        val (float): The numerical value to format.
        decimals (int): Number of decimal places.
    """
    if val is None:
        val = 0.0
    if val < 0:
        return f"-${abs(val):,.{decimals}f}"
    return f"${val:,.{decimals}f}"


def format_compact_currency(val: float) -> str:
    """Short form used in insight text: $1.2M, $45K, $950."""
    sign = "-" if val < 0 else ""
    magnitude = abs(val)
    if magnitude >= 1_000_000:
        return f"{sign}${magnitude / 1_000_000:.1f}M"
    if magnitude >= 1_000:
        return f"{sign}${int(magnitude / 1_000 + 0.5)}K"
    return f"{sign}${int(magnitude + 0.5)}"


def format_percent(value: Union[float, None], decimals: int = 1) -> str:
    """0.065 -> '6.5%'."""
    if value is None:
        return ""
    return f"{value * 100:.{decimals}f}%"
