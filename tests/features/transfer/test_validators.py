"""Tests for the send form's amount checks."""

from decimal import Decimal

import pytest

from ninja_wallet.features.transfer.validators import (
    AmountCheck,
    AmountRejected,
    KasAmountValidator,
    check_amount,
)


@pytest.fixture
def validator():
    return KasAmountValidator()


@pytest.mark.unit
class TestToDecimal:
    def test_plain_amount(self, validator):
        assert validator.to_decimal(" 1.5 ") == Decimal("1.5")

    def test_thousands_separator_ignored(self, validator):
        assert validator.to_decimal("1,000.25") == Decimal("1000.25")

    @pytest.mark.parametrize("text", ["", "   "])
    def test_required(self, validator, text):
        with pytest.raises(AmountRejected, match="required"):
            validator.to_decimal(text)

    @pytest.mark.parametrize("text", ["-1", "+1"])
    def test_signed(self, validator, text):
        with pytest.raises(AmountRejected, match="positive"):
            validator.to_decimal(text)

    def test_not_a_number(self, validator):
        with pytest.raises(AmountRejected, match="valid number"):
            validator.to_decimal("abc")

    @pytest.mark.parametrize("text", ["Infinity", "NaN"])
    def test_special_values(self, validator, text):
        with pytest.raises(AmountRejected, match="finite"):
            validator.to_decimal(text)

    def test_zero(self, validator):
        with pytest.raises(AmountRejected, match="greater than zero"):
            validator.to_decimal("0.0")


@pytest.mark.unit
class TestPrecisionAndRange:
    def test_eight_places_allowed(self, validator):
        validator.check_precision(Decimal("0.00000001"))

    def test_nine_places_rejected(self, validator):
        with pytest.raises(AmountRejected, match="Maximum 8"):
            validator.check_precision(Decimal("0.000000001"))

    def test_exponent_form_integer(self, validator):
        validator.check_precision(Decimal("1E+3"))

    def test_to_sompi(self, validator):
        assert validator.to_sompi(Decimal("1.23456789")) == 123_456_789

    def test_exceeds_u64(self, validator):
        with pytest.raises(AmountRejected, match="exceeds"):
            validator.to_sompi(Decimal("184467440738"))

    def test_custom_limits(self):
        validator = KasAmountValidator(max_decimals=2, max_sompi=1_000_000_000)
        assert validator.check("0.001").error.startswith("Too many decimal places")
        assert validator.check("0.01").sompi == 1_000_000
        assert validator.check("100").error == "Amount exceeds maximum allowed value"


@pytest.mark.unit
class TestCheckAmount:
    def test_valid(self):
        assert check_amount("1.5") == AmountCheck(ok=True, sompi=150_000_000)

    def test_large_amount_within_u64(self):
        assert check_amount("100000").sompi == 10_000_000_000_000

    def test_too_many_decimals(self):
        assert check_amount("0.123456789").ok is False

    def test_invalid_text(self):
        result = check_amount("one kas")
        assert result == AmountCheck.reject("Amount must be a valid number")
