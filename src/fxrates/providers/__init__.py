"""Upstream rate providers -- Binance (ccxt), CoinGecko and Fixer adapters."""

from fxrates.providers.base import RateProvider
from fxrates.providers.binance import BinanceRateProvider
from fxrates.providers.coingecko import CoinGeckoRateProvider
from fxrates.providers.fixer import FixerRateProvider

__all__ = [
    "BinanceRateProvider",
    "CoinGeckoRateProvider",
    "FixerRateProvider",
    "RateProvider",
]
