# utils/xml_loader.py
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List

# Elements whose children form a flat record
GROUP_TAGS = ("balances_by_type", "contribution_allocation", "rmd_config")


def try_cast(value: str) -> Any:
    """Try to convert string to bool, int or float if possible, else leave as str."""
    if value is None:
        return None
    value = value.strip()
    if value == "":
        return None
    # Booleans
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    # Integers (try first)
    try:
        if '.' not in value:
            return int(value)
    except ValueError:
        pass

    # Floats (try second)
    try:
        return float(value)
    except ValueError:
        pass

    return value


def _parse_record(elem: ET.Element) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    if elem.get("id") is not None:
        record["id"] = elem.get("id")
    for child in elem:
        record[child.tag] = try_cast(child.text)
    return record


def _parse_income_streams(elem: ET.Element) -> List[Dict[str, Any]]:
    streams = []
    for stream in elem.findall("stream"):
        record = _parse_record(stream)
        if isinstance(record.get("type"), str):
            record["type"] = record["type"].strip().lower()
        if "id" not in record:
            record["id"] = f"stream-{len(streams) + 1}"
        streams.append(record)
    return streams


def _parse_spending_phases(elem: ET.Element) -> Dict[str, Any]:
    enabled = try_cast(elem.findtext("enabled"))
    phases = []
    for phase in elem.findall("phase"):
        record = _parse_record(phase)
        if "id" not in record:
            record["id"] = f"phase-{len(phases) + 1}"
        phases.append(record)
    return {"enabled": bool(enabled), "phases": phases}


def parse_setup_xml(file_path: Any) -> Dict[str, Any]:
    """
    Parse a scenario XML file (path or file-like object) into a plain dict.

    Scalars become top-level keys; balances, allocation and RMD config become
    nested dicts; income streams a list of dicts; spending phases a dict with
    'enabled' and a 'phases' list.
    """
    tree = ET.parse(file_path)
    root = tree.getroot()

    setup_dict: Dict[str, Any] = {}

    for child in root:
        if child.tag in GROUP_TAGS:
            setup_dict[child.tag] = _parse_record(child)
        elif child.tag == "income_streams":
            setup_dict[child.tag] = _parse_income_streams(child)
        elif child.tag == "spending_phase_config":
            setup_dict[child.tag] = _parse_spending_phases(child)
        else:
            val = try_cast(child.text)
            if isinstance(val, str):
                val = val.strip().lower()
            setup_dict[child.tag] = val

    return setup_dict


CONFIG_DIR = Path(__file__).parent.parent / "config"

DEFAULT_SETUP = parse_setup_xml(CONFIG_DIR / "default_setup.xml")
