"""Tests for TransferFeeCalculator: 1.5% with a per-currency minimum."""

from decimal import Decimal

import pytest

from fxrates.config import FeeSettings
from fxrates.conversion.fees import TransferFeeCalculator


@pytest.fixture
def calculator():
    return TransferFeeCalculator(FeeSettings())


class TestCalculateFee:
    def test_percentage_above_floor(self, calculator):
        assert calculator.calculate_fee(Decimal("1000"), "EUR") == Decimal("15.000")

    def test_floor_applies_to_small_amounts(self, calculator):
        assert calculator.calculate_fee(Decimal("100"), "USD") == Decimal("5")

    def test_break_even_amount(self, calculator):
        # 333.33... * 0.015 == 5
        assert calculator.calculate_fee(Decimal("400"), "EUR") == Decimal("6.000")
        assert calculator.calculate_fee(Decimal("300"), "EUR") == Decimal("5")

    def test_zero_amount_pays_floor(self, calculator):
        assert calculator.calculate_fee(Decimal("0"), "EUR") == Decimal("5")

    def test_negative_amount_rejected(self, calculator):
        with pytest.raises(ValueError):
            calculator.calculate_fee(Decimal("-1"), "EUR")

    def test_monotonic_in_amount(self, calculator):
        amounts = [Decimal(a) for a in ("0", "10", "333", "334", "1000", "250000")]
        fees = [calculator.calculate_fee(a, "USD") for a in amounts]

        assert fees == sorted(fees)
        assert all(f >= Decimal("5") for f in fees)

    def test_unknown_currency_uses_default_floor(self, calculator):
        assert calculator.min_fee_for("gbp") == Decimal("5")


class TestAmountInput:
    def test_float_amount_below_break_even(self, calculator):
        assert calculator.calculate_fee(100.5, "EUR") == Decimal("5")

    def test_float_amount_above_break_even(self, calculator):
        assert calculator.calculate_fee(1000.5, "EUR") == Decimal("15.0075")

    def test_float_quote_total_is_decimal(self, calculator):
        quote = calculator.quote(1000.5, "USD")

        assert quote.amount == Decimal("1000.5")
        assert quote.total_amount == Decimal("1015.5075")

    @pytest.mark.parametrize("amount", ["lots", float("nan"), True])
    def test_non_numeric_amount_rejected(self, calculator, amount):
        with pytest.raises(ValueError, match="finite number"):
            calculator.calculate_fee(amount, "EUR")


class TestConfiguredFloors:
    def test_per_currency_floor(self):
        calculator = TransferFeeCalculator(
            FeeSettings(
                min_fee_by_currency={"EUR": Decimal("4"), "JPY": Decimal("700")},
                default_min_fee=Decimal("3"),
            )
        )

        assert calculator.calculate_fee(Decimal("100"), "jpy") == Decimal("700")
        assert calculator.calculate_fee(Decimal("100"), "EUR") == Decimal("4")
        assert calculator.calculate_fee(Decimal("100"), "CHF") == Decimal("3")

    def test_custom_percentage(self):
        calculator = TransferFeeCalculator(FeeSettings(transfer_fee_percent=Decimal("0.02")))

        assert calculator.fee_percent == Decimal("0.02")
        assert calculator.calculate_fee(Decimal("1000"), "USD") == Decimal("20.00")


class TestQuote:
    def test_breakdown(self, calculator):
        quote = calculator.quote(Decimal("1000"), "eur")

        assert quote.currency == "EUR"
        assert quote.fee == Decimal("15")
        assert quote.total_amount == Decimal("1015")
        assert quote.fee_percent == Decimal("0.015")
        assert quote.min_fee == Decimal("5")
