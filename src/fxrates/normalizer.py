"""Shared value logic used by every provider adapter.

Symbol parsing, quote-currency remapping and invalid-value filtering live
here so each adapter only has to know its own payload shape.
"""

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from fxrates.logging import get_logger
from fxrates.models import NormalizedRate

logger = get_logger(__name__)

# Stablecoins treated as USD so stablecoin- and fiat-quoted rates compare.
USD_PEGGED_STABLECOINS: frozenset[str] = frozenset({"USDT", "USDC", "BUSD", "FDUSD", "TUSD"})

# Longest first so "FDUSD" wins over "USD"-like suffixes when parsing "BTCFDUSD".
_QUOTE_ASSETS: tuple[str, ...] = ("FDUSD", "USDT", "USDC", "BUSD", "TUSD", "EUR", "GBP", "BTC", "ETH")


def to_decimal(value: object) -> Decimal | None:
    """Convert an upstream number or numeric string to a finite Decimal.

    Returns None for missing, non-numeric, NaN or infinite values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def to_amount(value: object) -> Decimal:
    """Convert a caller-supplied amount (Decimal, int, float or numeric str) to Decimal.

    Raises:
        ValueError: If value is not a finite number.
    """
    amount = to_decimal(value)
    if amount is None:
        raise ValueError(f"amount must be a finite number, got {value!r}")
    return amount


def is_valid_rate(value: Decimal | None) -> bool:
    """A rate is valid when it is a finite, strictly positive Decimal."""
    return isinstance(value, Decimal) and value.is_finite() and value > 0


def remap_quote(quote: str) -> str:
    """Rewrite USD-pegged stablecoin quotes to USD; others pass through."""
    quote = quote.upper()
    if quote in USD_PEGGED_STABLECOINS:
        return "USD"
    return quote


def parse_symbol(symbol: str) -> tuple[str, str] | None:
    """Split a trading-pair symbol into (base, normalized quote).

    Accepts the unified "BTC/USDT" form and the concatenated exchange form
    "BTCUSDT". Returns None when the quote asset is not recognised.
    """
    symbol = symbol.strip().upper()
    if "/" in symbol:
        base, _, quote = symbol.partition("/")
        # Drop a derivatives settle suffix ("BTC/USDT:USDT").
        quote = quote.split(":", 1)[0]
        if not base or not quote:
            return None
        return base, remap_quote(quote)

    for quote in _QUOTE_ASSETS:
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return symbol[: -len(quote)], remap_quote(quote)
    return None


def build_rate(
    base_currency: str,
    quote_currency: str,
    raw_rate: object,
    *,
    change_24h: object = None,
    high_24h: object = None,
    low_24h: object = None,
    volume_24h: object = None,
    market_cap: object = None,
    is_fallback: bool = False,
) -> NormalizedRate | None:
    """Build a NormalizedRate, or None if the rate is unusable.

    Optional fields that fail to parse are recorded as absent rather than
    rejecting the whole record.
    """
    rate = to_decimal(raw_rate)
    if rate is None or rate <= 0:
        logger.warning(
            "invalid_rate_dropped",
            base=base_currency,
            quote=quote_currency,
            raw=raw_rate,
        )
        return None
    return NormalizedRate(
        base_currency=base_currency.upper(),
        quote_currency=quote_currency.upper(),
        rate=rate,
        change_24h=to_decimal(change_24h),
        high_24h=to_decimal(high_24h),
        low_24h=to_decimal(low_24h),
        volume_24h=to_decimal(volume_24h),
        market_cap=to_decimal(market_cap),
        is_fallback=is_fallback,
    )


def filter_valid(rates: Iterable[NormalizedRate | None]) -> list[NormalizedRate]:
    """Drop None entries and any record whose rate is not finite and positive."""
    return [r for r in rates if r is not None and is_valid_rate(r.rate)]
