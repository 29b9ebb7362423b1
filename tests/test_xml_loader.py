"""Tests for XML scenario parsing."""

import io

import pytest

from utils.xml_loader import DEFAULT_SETUP, parse_setup_xml, try_cast


@pytest.mark.parametrize("raw, expected", [("42", 42), ("0.06", 0.06), ("true", True), ("False", False),
                                           ("  moderate ", "moderate"), ("", None), (None, None)])
def test_try_cast(raw, expected):
    assert try_cast(raw) == expected


class TestDefaultSetup:

    def test_scalars(self):
        assert DEFAULT_SETUP["current_age"] == 45
        assert DEFAULT_SETUP["expected_return"] == 0.06

    def test_groups(self):
        assert DEFAULT_SETUP["balances_by_type"] == {"tax_deferred": 300000, "tax_free": 100000,
                                                     "taxable": 100000}
        assert sum(DEFAULT_SETUP["contribution_allocation"].values()) == 100
        assert DEFAULT_SETUP["rmd_config"] == {"enabled": True, "start_age": 73}

    def test_income_streams(self):
        (stream,) = DEFAULT_SETUP["income_streams"]

        assert stream["id"] == "ss-primary"
        assert stream["type"] == "social_security"
        assert stream["is_guaranteed"] is True

    def test_spending_phases(self):
        config = DEFAULT_SETUP["spending_phase_config"]

        assert config["enabled"] is False
        assert [p["id"] for p in config["phases"]] == ["go-go", "slow-go", "no-go"]


def test_parse_file_like_object():
    xml = io.StringIO("""
        <setup>
            <current_age>50</current_age>
            <risk_tolerance>Aggressive</risk_tolerance>
            <income_streams>
                <stream>
                    <name>Pension</name>
                    <type>PENSION</type>
                    <annual_amount>18000</annual_amount>
                    <start_age>62</start_age>
                    <end_age>90</end_age>
                </stream>
            </income_streams>
        </setup>
    """)
    setup = parse_setup_xml(xml)

    assert setup["current_age"] == 50
    assert setup["risk_tolerance"] == "aggressive"
    assert setup["income_streams"] == [{"id": "stream-1", "name": "Pension", "type": "pension",
                                        "annual_amount": 18000, "start_age": 62, "end_age": 90}]
