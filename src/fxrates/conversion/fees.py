"""Money-transfer fee computation.

fee = max(amount * transfer_fee_percent, min_fee(currency))
total_amount = amount + fee

Pure Decimal arithmetic with no store access, so results depend only on the
inputs and FeeSettings.

NOTE: the default floor is 5 for both EUR and USD, which is not
currency-equivalent. The per-currency table keeps it adjustable until
product decides on the intended floors.
"""

from decimal import Decimal

from fxrates.config import FeeSettings
from fxrates.models import FeeQuote
from fxrates.normalizer import to_amount


class TransferFeeCalculator:
    """Calculates the bounded percentage fee for a money transfer.

    Args:
        fee_settings: Percentage and per-currency minimum floors.
    """

    def __init__(self, fee_settings: FeeSettings) -> None:
        self._fees = fee_settings

    @property
    def fee_percent(self) -> Decimal:
        return self._fees.transfer_fee_percent

    def min_fee_for(self, currency: str) -> Decimal:
        """Minimum fee floor for currency, falling back to default_min_fee."""
        return self._fees.min_fee_by_currency.get(currency.upper(), self._fees.default_min_fee)

    def calculate_fee(self, amount: Decimal | float, currency: str) -> Decimal:
        """Return max(amount * fee_percent, min_fee_for(currency)).

        Raises:
            ValueError: If amount is negative or not a finite number.
        """
        amount = to_amount(amount)
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        return max(amount * self._fees.transfer_fee_percent, self.min_fee_for(currency))

    def quote(self, amount: Decimal | float, currency: str) -> FeeQuote:
        """Full fee breakdown for a transfer of amount in currency."""
        amount = to_amount(amount)
        fee = self.calculate_fee(amount, currency)
        return FeeQuote(
            amount=amount,
            currency=currency.upper(),
            fee=fee,
            total_amount=amount + fee,
            fee_percent=self._fees.transfer_fee_percent,
            min_fee=self.min_fee_for(currency),
        )
