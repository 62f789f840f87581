"""Tests for mortgage_calc.forms."""

from datetime import date
from decimal import Decimal

import pytest

from mortgage_calc.calculators import (
    AffordabilityInputs,
    LoanPayoffInputs,
    PurchaseInputs,
    RefinanceInputs,
    VARefinanceInputs,
)
from mortgage_calc.data_models import AmountOrPercent, PaymentFrequency, TermUnit, YearsOrMonths
from mortgage_calc.forms import inputs_from_mapping, parse_date
from mortgage_calc.programs import Program


class TestLenientMapping:
    def test_missing_fields_use_defaults(self):
        assert inputs_from_mapping(PurchaseInputs, {}) == PurchaseInputs()
        assert inputs_from_mapping(PurchaseInputs, None) == PurchaseInputs()

    def test_blank_fields_are_zero(self):
        inputs = inputs_from_mapping(PurchaseInputs, {"home_value": "", "hoa_monthly": "-", "lump_sum": "."})
        assert inputs.home_value == 0
        assert inputs.hoa_monthly == 0
        assert inputs.lump_sum == 0

    def test_form_strings(self):
        inputs = inputs_from_mapping(
            PurchaseInputs,
            {
                "home_value": "450,000",
                "down_payment": "20%",
                "term": "15y",
                "extra_frequency": "BiWeekly",
                "first_payment_date": "2025-02",
            },
        )
        assert inputs.home_value == Decimal("450000")
        assert inputs.down_payment == AmountOrPercent.percent(20)
        assert inputs.term.months == 180
        assert inputs.extra_frequency is PaymentFrequency.BIWEEKLY
        assert inputs.first_payment_date == date(2025, 2, 1)

    def test_json_shapes(self):
        inputs = inputs_from_mapping(
            AffordabilityInputs,
            {
                "program": "fha",
                "down_payment": {"value": 3.5, "is_percent": True},
                "term": {"value": 360, "unit": "months"},
                "home_price": 300000,
            },
        )
        assert inputs.program is Program.FHA
        assert inputs.down_payment == AmountOrPercent(Decimal("3.5"), True)
        assert inputs.term == YearsOrMonths(360, TermUnit.MONTHS)
        assert inputs.home_price == Decimal("300000")

    def test_bare_number_term_is_years(self):
        inputs = inputs_from_mapping(LoanPayoffInputs, {"term": 20})
        assert inputs.term.months == 240

    def test_optional_blank_is_none(self):
        inputs = inputs_from_mapping(VARefinanceInputs, {"funding_fee_pct": ""})
        assert inputs.funding_fee_pct is None

    def test_dates(self):
        inputs = inputs_from_mapping(RefinanceInputs, {"original_start": "2020-06-15"})
        assert inputs.original_start == date(2020, 6, 15)

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field: colour"):
            inputs_from_mapping(PurchaseInputs, {"colour": "blue"})

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="must not be negative"):
            inputs_from_mapping(PurchaseInputs, {"home_value": "-10"})

    def test_fractional_whole_number(self):
        with pytest.raises(ValueError, match="whole number"):
            inputs_from_mapping(LoanPayoffInputs, {"term": 2.5})


class TestStrictMapping:
    def test_suffixes(self):
        inputs = inputs_from_mapping(LoanPayoffInputs, {"principal": "300k", "extra_monthly": "$1.5k"}, strict=True)
        assert inputs.principal == Decimal("300000")
        assert inputs.extra_monthly == Decimal("1500")

    def test_typos_reported(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            inputs_from_mapping(LoanPayoffInputs, {"principal": "30O000"}, strict=True)

    def test_blank_means_default(self):
        inputs = inputs_from_mapping(LoanPayoffInputs, {"principal": None, "annual_rate": ""}, strict=True)
        assert inputs == LoanPayoffInputs()

    @pytest.mark.parametrize(
        "text,expected",
        [("12.5%", AmountOrPercent.percent(Decimal("12.5"))), ("$40k", AmountOrPercent.amount(40000))],
    )
    def test_amount_or_percent(self, text, expected):
        inputs = inputs_from_mapping(PurchaseInputs, {"down_payment": text}, strict=True)
        assert inputs.down_payment == expected

    def test_bad_percent_reported(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            inputs_from_mapping(PurchaseInputs, {"down_payment": "twenty%"}, strict=True)


class TestParseDate:
    def test_formats(self):
        assert parse_date("2024-03-09") == date(2024, 3, 9)
        assert parse_date("2024-03") == date(2024, 3, 1)
        assert parse_date(date(2020, 1, 2)) == date(2020, 1, 2)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_date("2024-13-01")
