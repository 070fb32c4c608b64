"""Unit tests for BinanceRateProvider ticker mapping (ccxt exchange mocked)."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import ccxt
import pytest

from fxrates.config import HttpSettings
from fxrates.models import RateSource
from fxrates.providers.binance import WATCHED_MARKETS, BinanceRateProvider


def _ticker(symbol: str, last=None, **info) -> dict:
    """Minimal ccxt unified ticker with a raw Binance info block."""
    return {
        "symbol": symbol,
        "last": last,
        "percentage": None,
        "high": None,
        "low": None,
        "quoteVolume": None,
        "info": {"symbol": symbol.replace("/", ""), **info},
    }


@pytest.fixture
def mock_exchange():
    exchange = MagicMock()
    exchange.fetch_tickers = AsyncMock(return_value={})
    exchange.close = AsyncMock()
    return exchange


@pytest.fixture
def provider(mock_exchange):
    return BinanceRateProvider(HttpSettings(), exchange=mock_exchange)


class TestBinanceFetch:
    """fetch_rates() maps watched tickers and never raises."""

    @pytest.mark.asyncio
    async def test_requests_whole_watch_list_in_one_call(self, provider, mock_exchange):
        await provider.fetch_rates()

        mock_exchange.fetch_tickers.assert_awaited_once_with(list(WATCHED_MARKETS.values()))

    @pytest.mark.asyncio
    async def test_usdt_pair_becomes_usd_with_24h_fields(self, provider, mock_exchange):
        ticker = _ticker("BTC/USDT", last=43250.5)
        ticker.update(percentage=2.31, high=44000.0, low=42000.0, quoteVolume=1234567.89)
        mock_exchange.fetch_tickers.return_value = {"BTC/USDT": ticker}

        rates = await provider.fetch_rates()

        assert len(rates) == 1
        rate = rates[0]
        assert (rate.base_currency, rate.quote_currency) == ("BTC", "USD")
        assert rate.rate == Decimal("43250.5")
        assert rate.change_24h == Decimal("2.31")
        assert rate.high_24h == Decimal("44000.0")
        assert rate.low_24h == Decimal("42000.0")
        assert rate.volume_24h == Decimal("1234567.89")
        assert rate.market_cap is None
        assert rate.is_fallback is False

    @pytest.mark.asyncio
    async def test_raw_last_price_used_when_unified_missing(self, provider, mock_exchange):
        mock_exchange.fetch_tickers.return_value = {
            "ETH/EUR": _ticker("ETH/EUR", lastPrice="2100.10", priceChangePercent="-1.5"),
        }

        rates = await provider.fetch_rates()

        assert rates[0].quote_currency == "EUR"
        assert rates[0].rate == Decimal("2100.10")
        assert rates[0].change_24h == Decimal("-1.5")

    @pytest.mark.asyncio
    async def test_price_change_is_never_the_rate(self, provider, mock_exchange):
        mock_exchange.fetch_tickers.return_value = {
            "BTC/USDT": _ticker("BTC/USDT", priceChange="150.00"),
        }

        assert await provider.fetch_rates() == []

    @pytest.mark.asyncio
    async def test_unwatched_market_skipped(self, provider, mock_exchange):
        mock_exchange.fetch_tickers.return_value = {
            "PEPE/USDT": _ticker("PEPE/USDT", last=0.000001),
            "BNB/USDT": _ticker("BNB/USDT", last=310.2),
        }

        rates = await provider.fetch_rates()

        assert [r.base_currency for r in rates] == ["BNB"]

    @pytest.mark.asyncio
    async def test_zero_last_price_dropped(self, provider, mock_exchange):
        mock_exchange.fetch_tickers.return_value = {
            "SOL/USDT": _ticker("SOL/USDT", last=0),
            "ADA/USDT": _ticker("ADA/USDT", last="0.55"),
        }

        rates = await provider.fetch_rates()

        assert [r.base_currency for r in rates] == ["ADA"]

    @pytest.mark.asyncio
    async def test_exchange_error_returns_empty(self, provider, mock_exchange):
        mock_exchange.fetch_tickers.side_effect = ccxt.NetworkError("connection reset")

        assert await provider.fetch_rates() == []

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_empty(self, provider, mock_exchange):
        mock_exchange.fetch_tickers.side_effect = RuntimeError("boom")

        assert await provider.fetch_rates() == []


class TestBinanceClose:
    @pytest.mark.asyncio
    async def test_close_releases_exchange(self, provider, mock_exchange):
        await provider.close()

        mock_exchange.close.assert_awaited_once()

    def test_identity(self, provider):
        assert provider.name == "binance"
        assert provider.source == RateSource.SPOT_EXCHANGE
