"""Binance spot ticker adapter via ccxt async.

Fetches the 24h ticker snapshot for a fixed watch-list in one batch call.

CRITICAL: the rate is the last traded price (ccxt "last", raw "lastPrice").
Binance also returns "priceChange" and "priceChangePercent"; using either of
those, or the "price" field of the lighter /ticker/price endpoint, as the
rate is a correctness bug.
"""

from types import MappingProxyType

import ccxt.async_support as ccxt_async

from fxrates.config import HttpSettings
from fxrates.exceptions import ProviderError
from fxrates.logging import get_logger
from fxrates.models import NormalizedRate, RateSource
from fxrates.normalizer import build_rate, parse_symbol
from fxrates.providers.base import RateProvider

logger = get_logger(__name__)

# Binance market id -> ccxt unified symbol.
WATCHED_MARKETS: MappingProxyType[str, str] = MappingProxyType({
    "BTCUSDT": "BTC/USDT",
    "ETHUSDT": "ETH/USDT",
    "BNBUSDT": "BNB/USDT",
    "XRPUSDT": "XRP/USDT",
    "SOLUSDT": "SOL/USDT",
    "ADAUSDT": "ADA/USDT",
    "DOGEUSDT": "DOGE/USDT",
    "TRXUSDT": "TRX/USDT",
    "DOTUSDT": "DOT/USDT",
    "POLUSDT": "POL/USDT",
    "LTCUSDT": "LTC/USDT",
    "AVAXUSDT": "AVAX/USDT",
    "LINKUSDT": "LINK/USDT",
    "XLMUSDT": "XLM/USDT",
    "ATOMUSDT": "ATOM/USDT",
    "ETCUSDT": "ETC/USDT",
    "TONUSDT": "TON/USDT",
    "NEARUSDT": "NEAR/USDT",
    "APTUSDT": "APT/USDT",
    "BTCEUR": "BTC/EUR",
    "ETHEUR": "ETH/EUR",
    "BNBEUR": "BNB/EUR",
})


def _pick(unified: object, raw: object) -> object:
    """Prefer the ccxt unified field, fall back to the raw Binance field."""
    return unified if unified is not None else raw


class BinanceRateProvider(RateProvider):
    """Spot-exchange adapter backed by ccxt.async_support.binance."""

    name = "binance"
    source = RateSource.SPOT_EXCHANGE

    def __init__(
        self,
        http_settings: HttpSettings,
        exchange: ccxt_async.Exchange | None = None,
    ) -> None:
        self._exchange = exchange or ccxt_async.binance({
            "enableRateLimit": True,
            "timeout": int(http_settings.timeout_seconds * 1000),  # ccxt wants ms
            "options": {"defaultType": "spot"},
        })

    async def _fetch(self) -> list[NormalizedRate]:
        try:
            tickers = await self._exchange.fetch_tickers(list(WATCHED_MARKETS.values()))
        except ccxt_async.BaseError as e:
            raise ProviderError(f"binance: {e}") from e

        rates: list[NormalizedRate] = []
        for symbol, ticker in tickers.items():
            rate = self._map_ticker(symbol, ticker)
            if rate is not None:
                rates.append(rate)
        return rates

    def _map_ticker(self, symbol: str, ticker: dict) -> NormalizedRate | None:
        info = ticker.get("info") or {}
        market_id = info.get("symbol") or symbol.replace("/", "")
        if market_id not in WATCHED_MARKETS:
            return None

        pair = parse_symbol(market_id)
        if pair is None:
            return None
        base, quote = pair

        last = _pick(ticker.get("last"), info.get("lastPrice"))

        return build_rate(
            base,
            quote,
            last,
            change_24h=_pick(ticker.get("percentage"), info.get("priceChangePercent")),
            high_24h=_pick(ticker.get("high"), info.get("highPrice")),
            low_24h=_pick(ticker.get("low"), info.get("lowPrice")),
            volume_24h=_pick(ticker.get("quoteVolume"), info.get("quoteVolume")),
        )

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        await self._exchange.close()
        logger.info("binance_connection_closed")
