"""Read-side facade consumed by the platform's HTTP layer.

Every method is read-only and safe to call while ingestion is writing.
Currency codes are upper-cased on the way in. Stale data is returned as-is;
freshness is visible through last_updated / timestamp / is_fallback, never
as an exception.
"""

from decimal import Decimal

from fxrates.conversion.engine import ConversionEngine
from fxrates.conversion.fees import TransferFeeCalculator
from fxrates.data.store import RateStore
from fxrates.models import (
    ConversionResult,
    FeeQuote,
    LiveRateSnapshot,
    RateHistoryPoint,
    RateSource,
)

DEFAULT_HISTORY_INTERVAL = "1h"
DEFAULT_HISTORY_LIMIT = 100
DEFAULT_TOP_CRYPTOS_LIMIT = 20


class ExchangeRateService:
    """Query and conversion entry point for the rest of the platform.

    Args:
        store: Snapshot and history reader.
        conversion_engine: Direct/inverse rate resolver.
        fee_calculator: Transfer fee computation.
    """

    def __init__(
        self,
        store: RateStore,
        conversion_engine: ConversionEngine,
        fee_calculator: TransferFeeCalculator,
    ) -> None:
        self._store = store
        self._conversion = conversion_engine
        self._fees = fee_calculator

    async def get_live_rates(self, base_currency: str | None = None) -> list[LiveRateSnapshot]:
        """All snapshots, newest first, optionally for one base currency."""
        return await self._store.find_snapshots(
            base_currency=base_currency.upper() if base_currency else None,
        )

    async def get_rate(self, base_currency: str, quote_currency: str) -> LiveRateSnapshot | None:
        """Most recently updated snapshot for the pair across sources, or None."""
        return await self._store.find_latest_snapshot(base_currency.upper(), quote_currency.upper())

    async def get_rate_history(
        self,
        base_currency: str,
        quote_currency: str,
        interval: str = DEFAULT_HISTORY_INTERVAL,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[RateHistoryPoint]:
        """History points for the pair at one sampling interval, newest first."""
        return await self._store.find_history(
            base_currency.upper(),
            quote_currency.upper(),
            interval,
            limit,
        )

    async def convert_amount(
        self,
        from_currency: str,
        to_currency: str,
        amount: Decimal | float,
    ) -> ConversionResult:
        """Convert amount; raises RateNotFoundError for unsupported pairs."""
        return await self._conversion.convert(from_currency, to_currency, amount)

    async def get_top_cryptos(self, limit: int = DEFAULT_TOP_CRYPTOS_LIMIT) -> list[LiveRateSnapshot]:
        """USD-quoted aggregator snapshots by market cap, largest first."""
        return await self._store.find_snapshots(
            quote_currency="USD",
            source=RateSource.AGGREGATOR,
            order_by_market_cap=True,
            limit=limit,
        )

    def get_fee_estimate(self, amount: Decimal | float, currency: str) -> FeeQuote:
        """Transfer fee breakdown for amount in currency."""
        return self._fees.quote(amount, currency)

    async def get_status(self) -> dict:
        """Per-source counts and latest write times."""
        return await self._store.get_data_status()
