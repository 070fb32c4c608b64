"""Fixer fiat rate adapter.

The free tier only quotes against EUR, so USD-based rates are re-derived
from the same response:

    USD/<ccy> = (EUR/<ccy>) / (EUR/USD)

and the EUR/USD pair itself is emitted separately.

When the call fails or Fixer answers success=false, the last-known-good
FALLBACK_RATES table is served instead of nothing. Fiat moves slowly enough
that a stale rate is safer than no rate; those records carry
is_fallback=True so consumers can tell them apart.
"""

from decimal import Decimal

from fxrates.config import FixerSettings, HttpSettings
from fxrates.exceptions import ProviderBusinessError, ProviderError
from fxrates.logging import get_logger
from fxrates.models import NormalizedRate, RateSource
from fxrates.normalizer import build_rate, filter_valid, to_decimal
from fxrates.providers.base import RateProvider
from fxrates.providers.http import fetch_json

logger = get_logger(__name__)

SUPPORTED_CURRENCIES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "CHF", "JPY", "CAD", "AUD", "NZD",
    "CNY", "HKD", "SGD", "INR", "KRW", "RUB", "UAH", "PLN",
    "CZK", "TRY", "BRL", "MXN", "ZAR", "AED", "SAR", "THB",
)

# (base, quote, rate); no timestamp, hence is_fallback on every record
FALLBACK_RATES: tuple[tuple[str, str, Decimal], ...] = (
    ("EUR", "USD", Decimal("1.08")),
    ("USD", "EUR", Decimal("0.926")),
    ("USD", "GBP", Decimal("0.79")),
    ("USD", "CHF", Decimal("0.88")),
    ("USD", "JPY", Decimal("149.5")),
    ("USD", "CAD", Decimal("1.36")),
    ("USD", "AUD", Decimal("1.53")),
    ("USD", "CNY", Decimal("7.24")),
    ("USD", "RUB", Decimal("92.5")),
    ("USD", "UAH", Decimal("41.2")),
)


def fallback_rates() -> list[NormalizedRate]:
    """Return the static last-known-good table as normalized records."""
    return filter_valid(
        build_rate(base, quote, rate, is_fallback=True)
        for base, quote, rate in FALLBACK_RATES
    )


class FixerRateProvider(RateProvider):
    """Fiat adapter for the EUR-based Fixer latest-rates endpoint."""

    name = "fixer"
    source = RateSource.FIAT_PROVIDER

    def __init__(self, settings: FixerSettings, http_settings: HttpSettings) -> None:
        self._settings = settings
        self._http = http_settings

    def _build_url(self) -> str:
        # The URL embeds the access key; never log it.
        return (
            f"{self._settings.base_url}/latest"
            f"?access_key={self._settings.api_key.get_secret_value()}"
            f"&symbols={','.join(SUPPORTED_CURRENCIES)}"
        )

    async def _fetch(self) -> list[NormalizedRate]:
        payload = await fetch_json(
            self._build_url(),
            timeout=self._http.timeout_seconds,
            user_agent=self._http.user_agent,
        )
        if not isinstance(payload, dict):
            raise ProviderError("fixer: unexpected payload shape")
        if not payload.get("success"):
            raise ProviderBusinessError(f"fixer: {payload.get('error') or 'success=false'}")

        eur_rates = payload.get("rates")
        if not isinstance(eur_rates, dict):
            raise ProviderBusinessError("fixer: response has no rates table")

        eur_to_usd = to_decimal(eur_rates.get("USD"))
        if eur_to_usd is None or eur_to_usd <= 0:
            raise ProviderBusinessError("fixer: response has no usable EUR/USD rate")

        rates: list[NormalizedRate | None] = []
        for currency in SUPPORTED_CURRENCIES:
            if currency == "USD" or currency not in eur_rates:
                continue
            eur_rate = to_decimal(eur_rates[currency])
            if eur_rate is None or eur_rate <= 0:
                logger.warning("fixer_invalid_rate", currency=currency, raw=eur_rates[currency])
                continue
            rates.append(build_rate("USD", currency, eur_rate / eur_to_usd))

        rates.append(build_rate("EUR", "USD", eur_to_usd))
        return filter_valid(rates)

    def _on_failure(self, error: Exception) -> list[NormalizedRate]:
        logger.warning(
            "fixer_using_fallback_rates",
            reason=str(error),
            count=len(FALLBACK_RATES),
        )
        return fallback_rates()
