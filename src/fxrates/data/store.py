"""Typed read/write abstraction over the live-rate and rate-history tables.

RateStore turns NormalizedRate records into snapshot upserts and history
inserts, and turns stored rows back into LiveRateSnapshot and
RateHistoryPoint. All storage access goes through an injected
RateRepository, so nothing here depends on SQLite.

CRITICAL: All monetary/rate values stored as TEXT, restored as Decimal on read.
"""

import time
from collections.abc import Callable
from decimal import Decimal

from fxrates.data.repository import LIVE_RATES, RATE_HISTORY, RateRepository, Record
from fxrates.exceptions import StoreWriteError
from fxrates.models import LiveRateSnapshot, NormalizedRate, RateHistoryPoint, RateSource
from fxrates.normalizer import is_valid_rate

_NEWEST_SNAPSHOT_FIRST = (("last_updated", True),)
_NEWEST_POINT_FIRST = (("timestamp", True), ("id", True))


def _text(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _decimal(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _require_valid_rate(rate: NormalizedRate, source: RateSource) -> None:
    if not is_valid_rate(rate.rate):
        raise StoreWriteError(
            f"refusing to persist rate {rate.rate!r} for "
            f"{rate.base_currency}/{rate.quote_currency} ({source.value})"
        )


def _empty_status() -> dict:
    return {"snapshots": 0, "history_points": 0, "last_updated": None}


def _row_to_snapshot(row: Record) -> LiveRateSnapshot:
    return LiveRateSnapshot(
        base_currency=row["base_currency"],
        quote_currency=row["quote_currency"],
        source=RateSource(row["source"]),
        rate=Decimal(row["rate"]),
        last_updated=row["last_updated"],
        change_24h=_decimal(row["change_24h"]),
        high_24h=_decimal(row["high_24h"]),
        low_24h=_decimal(row["low_24h"]),
        volume_24h=_decimal(row["volume_24h"]),
        market_cap=_decimal(row["market_cap"]),
        is_fallback=bool(row["is_fallback"]),
    )


def _row_to_point(row: Record) -> RateHistoryPoint:
    return RateHistoryPoint(
        base_currency=row["base_currency"],
        quote_currency=row["quote_currency"],
        rate=Decimal(row["rate"]),
        timestamp=row["timestamp"],
        interval=row["interval"],
        source=RateSource(row["source"]),
        high=_decimal(row["high"]),
        low=_decimal(row["low"]),
        volume=_decimal(row["volume"]),
        is_fallback=bool(row["is_fallback"]),
    )


class RateStore:
    """Snapshot + history persistence for normalized rates.

    Args:
        repository: Storage primitives.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        repository: RateRepository,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._repository = repository
        self._clock = clock

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def upsert_snapshot(self, rate: NormalizedRate, source: RateSource) -> LiveRateSnapshot:
        """Insert or replace the snapshot for (base, quote, source).

        last_updated is always set to ingestion time.
        Raises StoreWriteError if the rate is not finite and positive or
        the write fails.
        """
        _require_valid_rate(rate, source)
        now = self._clock()
        key = {
            "base_currency": rate.base_currency,
            "quote_currency": rate.quote_currency,
            "source": source.value,
        }
        record = {
            "rate": str(rate.rate),
            "change_24h": _text(rate.change_24h),
            "high_24h": _text(rate.high_24h),
            "low_24h": _text(rate.low_24h),
            "volume_24h": _text(rate.volume_24h),
            "market_cap": _text(rate.market_cap),
            "is_fallback": int(rate.is_fallback),
            "last_updated": now,
        }
        try:
            await self._repository.upsert(LIVE_RATES, key, record)
        except Exception as e:
            raise StoreWriteError(
                f"snapshot upsert failed for {rate.base_currency}/{rate.quote_currency} ({source.value})"
            ) from e

        return LiveRateSnapshot(
            base_currency=rate.base_currency,
            quote_currency=rate.quote_currency,
            source=source,
            rate=rate.rate,
            last_updated=now,
            change_24h=rate.change_24h,
            high_24h=rate.high_24h,
            low_24h=rate.low_24h,
            volume_24h=rate.volume_24h,
            market_cap=rate.market_cap,
            is_fallback=rate.is_fallback,
        )

    async def append_history(
        self,
        rate: NormalizedRate,
        source: RateSource,
        interval: str,
    ) -> RateHistoryPoint:
        """Append one history point. Never replaces an existing point.

        Raises StoreWriteError if the rate is not finite and positive or
        the write fails.
        """
        _require_valid_rate(rate, source)
        point = RateHistoryPoint(
            base_currency=rate.base_currency,
            quote_currency=rate.quote_currency,
            rate=rate.rate,
            timestamp=self._clock(),
            interval=interval,
            source=source,
            high=rate.high_24h,
            low=rate.low_24h,
            volume=rate.volume_24h,
            is_fallback=rate.is_fallback,
        )
        try:
            await self._repository.insert(RATE_HISTORY, {
                "base_currency": point.base_currency,
                "quote_currency": point.quote_currency,
                "source": source.value,
                "rate": str(point.rate),
                "high": _text(point.high),
                "low": _text(point.low),
                "volume": _text(point.volume),
                "timestamp": point.timestamp,
                "interval": interval,
                "is_fallback": int(point.is_fallback),
            })
        except Exception as e:
            raise StoreWriteError(
                f"history insert failed for {rate.base_currency}/{rate.quote_currency} ({source.value})"
            ) from e
        return point

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def find_snapshots(
        self,
        base_currency: str | None = None,
        quote_currency: str | None = None,
        source: RateSource | None = None,
        order_by_market_cap: bool = False,
        limit: int | None = None,
    ) -> list[LiveRateSnapshot]:
        """Query snapshots, newest first (or by market cap descending)."""
        filter: dict[str, str] = {}
        if base_currency is not None:
            filter["base_currency"] = base_currency
        if quote_currency is not None:
            filter["quote_currency"] = quote_currency
        if source is not None:
            filter["source"] = source.value

        order = (("market_cap", True),) if order_by_market_cap else _NEWEST_SNAPSHOT_FIRST
        rows = await self._repository.find_many(LIVE_RATES, filter, order, limit)
        return [_row_to_snapshot(row) for row in rows]

    async def find_latest_snapshot(
        self,
        base_currency: str,
        quote_currency: str,
    ) -> LiveRateSnapshot | None:
        """Most recently updated snapshot for a pair across all sources."""
        row = await self._repository.find_one(
            LIVE_RATES,
            {"base_currency": base_currency, "quote_currency": quote_currency},
            _NEWEST_SNAPSHOT_FIRST,
        )
        return _row_to_snapshot(row) if row is not None else None

    async def find_history(
        self,
        base_currency: str,
        quote_currency: str,
        interval: str,
        limit: int,
    ) -> list[RateHistoryPoint]:
        """History points for a pair and interval, newest first, at most limit."""
        rows = await self._repository.find_many(
            RATE_HISTORY,
            {
                "base_currency": base_currency,
                "quote_currency": quote_currency,
                "interval": interval,
            },
            _NEWEST_POINT_FIRST,
            limit,
        )
        return [_row_to_point(row) for row in rows]

    async def get_rate_age(self, base_currency: str, quote_currency: str) -> float | None:
        """Seconds since the pair's most recent snapshot write, or None if never written."""
        snapshot = await self.find_latest_snapshot(base_currency, quote_currency)
        if snapshot is None:
            return None
        return self._clock() - snapshot.last_updated

    async def is_stale(
        self,
        base_currency: str,
        quote_currency: str,
        max_age_seconds: float,
    ) -> bool:
        """True if the pair has no snapshot or its newest one is older than max_age_seconds."""
        age = await self.get_rate_age(base_currency, quote_currency)
        if age is None:
            return True
        return age > max_age_seconds

    async def get_data_status(self) -> dict:
        """Per-source snapshot and history counts plus latest write times."""
        snapshots = await self._repository.aggregate(LIVE_RATES, group_by="source")
        history = await self._repository.aggregate(RATE_HISTORY, group_by="source")

        by_source: dict[str, dict] = {s.value: _empty_status() for s in RateSource}
        for row in snapshots:
            entry = by_source.setdefault(row["source"], _empty_status())
            entry["snapshots"] = row["count"]
            entry["last_updated"] = row["latest"]
        for row in history:
            entry = by_source.setdefault(row["source"], _empty_status())
            entry["history_points"] = row["count"]

        return {
            "total_snapshots": sum(e["snapshots"] for e in by_source.values()),
            "total_history_points": sum(e["history_points"] for e in by_source.values()),
            "sources": by_source,
        }
