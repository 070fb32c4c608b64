"""CoinGecko simple-price adapter.

One batch request to /simple/price for a fixed coin-ID list, priced in USD
and EUR, with 24h change, 24h volume and market cap. Results are mapped by
iterating the static symbol -> coin ID table, so a coin missing from the
response is omitted rather than treated as an error.
"""

from types import MappingProxyType
from urllib.parse import urlencode

from fxrates.config import CoinGeckoSettings, HttpSettings
from fxrates.exceptions import ProviderError
from fxrates.models import NormalizedRate, RateSource
from fxrates.normalizer import build_rate
from fxrates.providers.base import RateProvider
from fxrates.providers.http import fetch_json

# Canonical currency code -> CoinGecko coin ID
COIN_IDS: MappingProxyType[str, str] = MappingProxyType({
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "XRP": "ripple",
    "USDC": "usd-coin",
    "SOL": "solana",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "TRX": "tron",
    "TON": "the-open-network",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "LTC": "litecoin",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "XLM": "stellar",
    "ATOM": "cosmos",
    "XMR": "monero",
    "ETC": "ethereum-classic",
})

VS_CURRENCIES: tuple[str, ...] = ("usd", "eur")


class CoinGeckoRateProvider(RateProvider):
    """Aggregator adapter for the CoinGecko free (or demo-key) API."""

    name = "coingecko"
    source = RateSource.AGGREGATOR

    def __init__(self, settings: CoinGeckoSettings, http_settings: HttpSettings) -> None:
        self._settings = settings
        self._http = http_settings

    def _build_url(self) -> str:
        params = {
            "ids": ",".join(COIN_IDS.values()),
            "vs_currencies": ",".join(VS_CURRENCIES),
            "include_24hr_change": "true",
            "include_24hr_vol": "true",
            "include_market_cap": "true",
        }
        return f"{self._settings.base_url}/simple/price?{urlencode(params)}"

    async def _fetch(self) -> list[NormalizedRate]:
        headers: dict[str, str] = {}
        api_key = self._settings.api_key.get_secret_value()
        if api_key:
            headers["x-cg-demo-api-key"] = api_key

        payload = await fetch_json(
            self._build_url(),
            timeout=self._http.timeout_seconds,
            headers=headers,
            user_agent=self._http.user_agent,
        )
        if not isinstance(payload, dict):
            raise ProviderError("coingecko: unexpected payload shape")

        rates: list[NormalizedRate] = []
        for symbol, coin_id in COIN_IDS.items():
            data = payload.get(coin_id)
            if not isinstance(data, dict):
                continue
            for vs in VS_CURRENCIES:
                if data.get(vs) is None:
                    continue
                rate = build_rate(
                    symbol,
                    vs.upper(),
                    data[vs],
                    change_24h=data.get(f"{vs}_24h_change"),
                    volume_24h=data.get(f"{vs}_24h_vol"),
                    market_cap=data.get(f"{vs}_market_cap"),
                )
                if rate is not None:
                    rates.append(rate)
        return rates
