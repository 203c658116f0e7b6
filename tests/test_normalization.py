"""Tests for field normalization.

GIVEN: Raw line item field values as importers produce them
WHEN: Normalizing them for comparison
THEN: Equivalent spellings collapse to one canonical string
"""

from decimal import Decimal

import pytest

from ledger_match.services.normalization import (
    absolute_amount,
    normalize_amount,
    normalize_symbol,
    normalize_text,
    to_decimal,
)


class TestNormalizeAmount:
    @pytest.mark.parametrize("value", [None, "", "  ", 0, "0", 0.0, "0.0", "0.00", Decimal("0"), Decimal("-0.00")])
    def test_zero_spellings_collapse(self, value):
        """GIVEN: Any representation of zero or a missing value
        WHEN: Normalizing as an amount
        THEN: The canonical "0" is returned"""
        assert normalize_amount(value) == "0"

    def test_rounds_half_up_to_cents(self):
        """GIVEN: Values with more than two decimals
        WHEN: Normalizing
        THEN: They are rounded half-up, not banker's rounding"""
        assert normalize_amount("2.345") == "2.35"
        assert normalize_amount("2.344") == "2.34"
        assert normalize_amount(Decimal("-100.005")) == "-100.01"

    def test_integer_and_string_forms_agree(self):
        """GIVEN: The same amount as int, str, float and Decimal
        WHEN: Normalizing each
        THEN: All produce the same fixed-point string"""
        forms = [-100, "-100", "-100.00", -100.0, Decimal("-100.000")]
        assert {normalize_amount(v) for v in forms} == {"-100.00"}

    def test_float_noise_does_not_leak(self):
        """GIVEN: A float that is not exactly representable
        WHEN: Normalizing
        THEN: The result matches the decimal literal"""
        assert normalize_amount(0.1 + 0.2) == "0.30"

    def test_tiny_values_round_to_zero(self):
        assert normalize_amount("0.004") == "0"

    def test_never_uses_exponent_notation(self):
        assert normalize_amount(Decimal("1E+3")) == "1000.00"

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            normalize_amount("twelve")


class TestNormalizeSymbolAndText:
    def test_symbol_trims_and_uppercases(self):
        assert normalize_symbol("  aapl ") == "AAPL"
        assert normalize_symbol(None) == ""
        assert normalize_symbol("") == ""

    def test_text_trims_and_lowercases(self):
        assert normalize_text("  ACH Deposit ") == "ach deposit"
        assert normalize_text(None) == ""
        assert normalize_text("") == ""


class TestHelpers:
    def test_to_decimal_handles_missing(self):
        assert to_decimal(None) is None
        assert to_decimal("") is None

    def test_absolute_amount(self):
        assert absolute_amount("-200.00") == Decimal("200.00")
        assert absolute_amount(None) == Decimal("0")
