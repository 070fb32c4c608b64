"""Unit tests for symbol parsing, quote remapping and rate validation."""

from decimal import Decimal

import pytest

from fxrates.models import NormalizedRate
from fxrates.normalizer import (
    build_rate,
    filter_valid,
    is_valid_rate,
    parse_symbol,
    remap_quote,
    to_amount,
    to_decimal,
)


# ---------------------------------------------------------------------------
# to_decimal / is_valid_rate
# ---------------------------------------------------------------------------


class TestToDecimal:
    """Upstream numbers and numeric strings become finite Decimals."""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_numeric_string(self):
        assert to_decimal("43250.50") == Decimal("43250.50")

    @pytest.mark.parametrize("raw", [None, True, "abc", "", "NaN", "Infinity", float("inf")])
    def test_unusable_values_are_none(self, raw):
        assert to_decimal(raw) is None


class TestToAmount:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(100.5, Decimal("100.5")), (7, Decimal("7")), ("12.30", Decimal("12.30")), (Decimal("1"), Decimal("1"))],
    )
    def test_numbers_accepted(self, raw, expected):
        assert to_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, "ten", float("inf"), False])
    def test_non_numbers_rejected(self, raw):
        with pytest.raises(ValueError):
            to_amount(raw)


class TestIsValidRate:
    def test_positive_is_valid(self):
        assert is_valid_rate(Decimal("0.0001"))

    def test_non_decimal_is_invalid(self):
        assert not is_valid_rate(1.5)  # type: ignore[arg-type]

    def test_nan_is_invalid(self):
        assert not is_valid_rate(Decimal("NaN"))

    @pytest.mark.parametrize("value", [None, Decimal("0"), Decimal("-1")])
    def test_zero_negative_missing_are_invalid(self, value):
        assert not is_valid_rate(value)


# ---------------------------------------------------------------------------
# Symbol parsing
# ---------------------------------------------------------------------------


class TestParseSymbol:
    """Concatenated and unified symbols split into (base, normalized quote)."""

    def test_stablecoin_quote_becomes_usd(self):
        assert parse_symbol("BTCUSDT") == ("BTC", "USD")

    def test_fdusd_wins_over_shorter_suffix(self):
        assert parse_symbol("BTCFDUSD") == ("BTC", "USD")

    def test_fiat_quote_passes_through(self):
        assert parse_symbol("ETHEUR") == ("ETH", "EUR")

    def test_crypto_quote_passes_through(self):
        assert parse_symbol("ETHBTC") == ("ETH", "BTC")

    def test_unified_form(self):
        assert parse_symbol("sol/usdc") == ("SOL", "USD")

    def test_settle_suffix_dropped(self):
        assert parse_symbol("BTC/USDT:USDT") == ("BTC", "USD")

    def test_unknown_quote_returns_none(self):
        assert parse_symbol("BTCXYZ") is None

    def test_quote_only_returns_none(self):
        assert parse_symbol("USDT") is None


class TestRemapQuote:
    @pytest.mark.parametrize("quote", ["USDT", "usdc", "BUSD"])
    def test_stablecoins(self, quote):
        assert remap_quote(quote) == "USD"

    def test_other_quotes_untouched(self):
        assert remap_quote("gbp") == "GBP"


# ---------------------------------------------------------------------------
# build_rate / filter_valid
# ---------------------------------------------------------------------------


class TestBuildRate:
    def test_builds_normalized_record(self):
        rate = build_rate("btc", "usd", "43250.5", change_24h=2.5, market_cap="850000000000")

        assert rate == NormalizedRate(
            base_currency="BTC",
            quote_currency="USD",
            rate=Decimal("43250.5"),
            change_24h=Decimal("2.5"),
            market_cap=Decimal("850000000000"),
        )

    @pytest.mark.parametrize("raw", [0, -3, None, "n/a", float("nan")])
    def test_invalid_rate_dropped(self, raw):
        assert build_rate("BTC", "USD", raw) is None

    def test_bad_optional_field_recorded_as_absent(self):
        rate = build_rate("BTC", "USD", "1", volume_24h="lots")

        assert rate is not None
        assert rate.volume_24h is None

    def test_fallback_flag_carried(self):
        rate = build_rate("USD", "GBP", Decimal("0.79"), is_fallback=True)

        assert rate is not None
        assert rate.is_fallback is True


class TestFilterValid:
    def test_drops_none_and_non_positive(self):
        good = NormalizedRate("BTC", "USD", Decimal("1"))
        bad = NormalizedRate("ETH", "USD", Decimal("0"))

        assert filter_valid([good, None, bad]) == [good]
