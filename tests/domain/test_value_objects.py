"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.value_objects import Money, Quantity, round_money, to_decimal


# ── Rounding and coercion ────────────────────────────────────────────────────


class TestRoundMoney:

    def test_rounds_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")

    def test_pads_to_two_decimals(self):
        assert str(round_money(Decimal("5"))) == "5.00"


class TestToDecimal:

    def test_numeric_string_equals_int(self):
        assert to_decimal("10.0") == to_decimal(10)

    def test_float_keeps_its_decimal_text(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError, match="Invalid price"):
            to_decimal("ten", "price")

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            to_decimal(True)

    def test_nan_rejected(self):
        with pytest.raises(ValidationError):
            to_decimal("NaN")


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "AED"

    def test_of_factory_from_string(self):
        m = Money.of("25.99")
        assert m.amount == Decimal("25.99")

    def test_of_factory_from_int(self):
        m = Money.of(10)
        assert m.amount == Decimal("10")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError, match="must be a Decimal"):
            Money(10.5)

    def test_str_formatting(self):
        assert str(Money.of("15")) == "AED 15.00"
        assert str(Money.of("1234.5")) == "AED 1,234.50"


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_creation(self):
        q = Quantity.of("0.5", " kg ")
        assert q.value == Decimal("0.5")
        assert q.unit == "kg"

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity.of(0, "kg")

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity.of("-1", "kg")

    def test_missing_unit_rejected(self):
        with pytest.raises(ValidationError, match="unit is required"):
            Quantity.of(1, "  ")

    def test_str(self):
        assert str(Quantity.of("1.500", "kg")) == "1.5 kg"
