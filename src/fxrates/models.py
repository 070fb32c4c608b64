"""Shared data models for the exchange-rate engine.

CRITICAL: All monetary values use Decimal. Never use float for rates, amounts,
volumes or fees. Upstream JSON numbers go through Decimal(str(value)).
Timestamps are Unix seconds as float.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class RateSource(str, Enum):
    """Upstream provider a snapshot or history point originated from."""

    SPOT_EXCHANGE = "spot_exchange"
    AGGREGATOR = "aggregator"
    FIAT_PROVIDER = "fiat_provider"


@dataclass(frozen=True)
class NormalizedRate:
    """Canonical adapter output for one currency pair.

    rate is always finite and > 0; the normalizer drops anything else.
    """

    base_currency: str
    quote_currency: str
    rate: Decimal
    change_24h: Decimal | None = None
    high_24h: Decimal | None = None
    low_24h: Decimal | None = None
    volume_24h: Decimal | None = None
    market_cap: Decimal | None = None
    is_fallback: bool = False  # served from a hardcoded table, not the upstream


@dataclass
class LiveRateSnapshot:
    """Current rate for one (base, quote, source) triple."""

    base_currency: str
    quote_currency: str
    source: RateSource
    rate: Decimal
    last_updated: float
    change_24h: Decimal | None = None
    high_24h: Decimal | None = None
    low_24h: Decimal | None = None
    volume_24h: Decimal | None = None
    market_cap: Decimal | None = None
    is_fallback: bool = False


@dataclass
class RateHistoryPoint:
    """One immutable timestamped sample of a rate."""

    base_currency: str
    quote_currency: str
    rate: Decimal
    timestamp: float
    interval: str
    source: RateSource
    high: Decimal | None = None
    low: Decimal | None = None
    volume: Decimal | None = None
    is_fallback: bool = False


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting an amount between two currencies."""

    rate: Decimal
    result: Decimal
    source: RateSource
    inverted: bool = False  # resolved from the swapped pair's snapshot


@dataclass(frozen=True)
class FeeQuote:
    """Transfer fee breakdown for an amount in a given currency."""

    amount: Decimal
    currency: str
    fee: Decimal
    total_amount: Decimal
    fee_percent: Decimal
    min_fee: Decimal


@dataclass
class SourceReport:
    """Per-source outcome of one ingestion tick."""

    source: RateSource
    fetched: int = 0
    written: int = 0
    failed: int = 0
    history_failed: int = 0


@dataclass
class IngestionReport:
    """Outcome of one scheduler tick across the sources it drove."""

    loop: str
    started_at: float
    finished_at: float = 0.0
    sources: dict[RateSource, SourceReport] | None = None

    @property
    def total_written(self) -> int:
        if not self.sources:
            return 0
        return sum(s.written for s in self.sources.values())
