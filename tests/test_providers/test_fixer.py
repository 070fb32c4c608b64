"""Unit tests for FixerRateProvider EUR-to-USD re-basing and fallback."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from fxrates.config import FixerSettings, HttpSettings
from fxrates.exceptions import ProviderError
from fxrates.providers.fixer import FALLBACK_RATES, FixerRateProvider, fallback_rates


@pytest.fixture
def provider():
    return FixerRateProvider(FixerSettings(api_key="k"), HttpSettings())  # type: ignore[arg-type]


def _by_pair(rates):
    return {(r.base_currency, r.quote_currency): r for r in rates}


def _patched(payload=None, side_effect=None):
    return patch(
        "fxrates.providers.fixer.fetch_json",
        new=AsyncMock(return_value=payload, side_effect=side_effect),
    )


class TestFixerDerivation:
    """USD/<ccy> = (EUR/<ccy>) / (EUR/USD), plus EUR/USD itself."""

    @pytest.mark.asyncio
    async def test_rebases_to_usd(self, provider):
        payload = {
            "success": True,
            "base": "EUR",
            "rates": {"USD": "1.08", "GBP": "0.8532", "JPY": "161.46", "EUR": 1},
        }
        with _patched(payload):
            rates = _by_pair(await provider.fetch_rates())

        assert rates[("USD", "GBP")].rate == Decimal("0.8532") / Decimal("1.08")
        assert rates[("USD", "JPY")].rate == Decimal("161.46") / Decimal("1.08")
        assert rates[("EUR", "USD")].rate == Decimal("1.08")
        assert rates[("USD", "EUR")].rate == Decimal(1) / Decimal("1.08")
        assert ("USD", "USD") not in rates
        assert not any(r.is_fallback for r in rates.values())

    @pytest.mark.asyncio
    async def test_invalid_currency_rate_skipped(self, provider):
        payload = {"success": True, "rates": {"USD": 1.08, "GBP": 0, "CHF": 0.95}}
        with _patched(payload):
            rates = _by_pair(await provider.fetch_rates())

        assert ("USD", "GBP") not in rates
        assert ("USD", "CHF") in rates

    @pytest.mark.asyncio
    async def test_access_key_in_url(self, provider):
        fetch = AsyncMock(return_value={"success": True, "rates": {"USD": 1.1}})
        with patch("fxrates.providers.fixer.fetch_json", new=fetch):
            await provider.fetch_rates()

        url = fetch.await_args.args[0]
        assert url.startswith("http://data.fixer.io/api/latest?access_key=k")


class TestFixerFallback:
    """Failures serve the static table, flagged as fallback."""

    @pytest.mark.asyncio
    async def test_success_false_serves_fallback(self, provider):
        payload = {"success": False, "error": {"code": 101, "type": "invalid_access_key"}}
        with _patched(payload):
            rates = await provider.fetch_rates()

        assert len(rates) == len(FALLBACK_RATES)
        assert all(r.is_fallback for r in rates)
        assert _by_pair(rates)[("EUR", "USD")].rate == Decimal("1.08")

    @pytest.mark.asyncio
    async def test_transport_error_serves_fallback(self, provider):
        with _patched(side_effect=ProviderError("transport error: timed out")):
            rates = await provider.fetch_rates()

        assert _by_pair(rates)[("USD", "UAH")].rate == Decimal("41.2")

    @pytest.mark.asyncio
    async def test_missing_usd_serves_fallback(self, provider):
        with _patched({"success": True, "rates": {"GBP": 0.85}}):
            rates = await provider.fetch_rates()

        assert all(r.is_fallback for r in rates)

    def test_fallback_table_is_valid(self):
        rates = fallback_rates()

        assert len(rates) == len(FALLBACK_RATES)
        assert all(r.rate > 0 for r in rates)
