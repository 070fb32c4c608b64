"""Ingestion scheduler -- polls providers on two independent cadences.

The crypto loop (default every 60s) drives the spot-exchange and aggregator
providers concurrently; the fiat loop (default hourly) drives the fiat
provider. The loops share no lock: they write disjoint source partitions.

Each tick fetches from all of its providers first, then writes every record
as snapshot upsert followed by history insert. A failed write is logged and
counted, and the tick moves on to the next record. A tick that raises is
logged at the loop boundary and the next tick runs on schedule. A loop never
starts tick N+1 before tick N's writes have been issued, so a stale cycle
can never overwrite a newer one for the same key.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence

import structlog

from fxrates.config import SchedulerSettings
from fxrates.data.store import RateStore
from fxrates.exceptions import StoreWriteError
from fxrates.logging import get_logger
from fxrates.models import IngestionReport, NormalizedRate, RateSource, SourceReport
from fxrates.providers.base import RateProvider

logger = get_logger(__name__)

CRYPTO_LOOP = "crypto"
FIAT_LOOP = "fiat"


class IngestionScheduler:
    """Runs provider fetches on schedule and persists their results.

    Args:
        store: Snapshot + history writer.
        crypto_providers: Providers polled on the fast cadence.
        fiat_providers: Providers polled on the slow cadence.
        settings: Cadences and the history interval tag.
    """

    def __init__(
        self,
        store: RateStore,
        crypto_providers: Sequence[RateProvider],
        fiat_providers: Sequence[RateProvider],
        settings: SchedulerSettings,
    ) -> None:
        self._store = store
        self._crypto_providers = list(crypto_providers)
        self._fiat_providers = list(fiat_providers)
        self._settings = settings
        self._running = False
        self._tasks: list[asyncio.Task] = []  # type: ignore[type-arg]
        self._last_reports: dict[str, IngestionReport] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start both loops as background tasks. The first tick of each runs immediately."""
        if self._running:
            logger.warning("ingestion_scheduler_already_running")
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(
                self._loop(CRYPTO_LOOP, self._settings.crypto_interval_seconds, self.run_crypto_tick),
                name="fxrates-crypto-ingestion",
            ),
            asyncio.create_task(
                self._loop(FIAT_LOOP, self._settings.fiat_interval_seconds, self.run_fiat_tick),
                name="fxrates-fiat-ingestion",
            ),
        ]
        logger.info(
            "ingestion_scheduler_started",
            crypto_interval=self._settings.crypto_interval_seconds,
            fiat_interval=self._settings.fiat_interval_seconds,
            crypto_providers=[p.name for p in self._crypto_providers],
            fiat_providers=[p.name for p in self._fiat_providers],
        )

    async def stop(self) -> None:
        """Cancel both loops and wait for them to finish."""
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        logger.info("ingestion_scheduler_stopped")

    async def run_crypto_tick(self) -> IngestionReport:
        """Run one crypto cycle now."""
        return await self._run_tick(CRYPTO_LOOP, self._crypto_providers)

    async def run_fiat_tick(self) -> IngestionReport:
        """Run one fiat cycle now."""
        return await self._run_tick(FIAT_LOOP, self._fiat_providers)

    def get_last_report(self, loop: str) -> IngestionReport | None:
        """Return the report of the most recent completed tick of a loop."""
        return self._last_reports.get(loop)

    async def _loop(
        self,
        name: str,
        interval: float,
        tick: Callable[[], Awaitable[IngestionReport]],
    ) -> None:
        while self._running:
            started = time.monotonic()
            with structlog.contextvars.bound_contextvars(loop=name):
                try:
                    await tick()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.error("ingestion_tick_error", exc_info=True)
            if self._running:
                elapsed = time.monotonic() - started
                await asyncio.sleep(max(interval - elapsed, 0.0))

    async def _run_tick(self, loop: str, providers: Sequence[RateProvider]) -> IngestionReport:
        sources: dict[RateSource, SourceReport] = {}
        report = IngestionReport(loop=loop, started_at=time.time(), sources=sources)

        # Fetch phase: providers hit distinct APIs, so run them concurrently.
        results = await asyncio.gather(
            *(p.fetch_rates() for p in providers),
            return_exceptions=True,
        )

        # Write phase.
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    # CancelledError is not an Exception; it ends the tick.
                    raise result
                # fetch_rates() should never raise; treat it like an empty batch.
                logger.error(
                    "provider_raised_past_boundary",
                    provider=provider.name,
                    error=str(result),
                )
                result = []
            sources[provider.source] = await self._persist(provider, result)

        report.finished_at = time.time()
        self._last_reports[loop] = report
        logger.info(
            "ingestion_tick_complete",
            loop=loop,
            written=report.total_written,
            sources={
                s.value: {"fetched": r.fetched, "written": r.written, "failed": r.failed}
                for s, r in sources.items()
            },
            elapsed_ms=round((report.finished_at - report.started_at) * 1000),
        )
        return report

    async def _persist(
        self,
        provider: RateProvider,
        rates: Sequence[NormalizedRate],
    ) -> SourceReport:
        source = provider.source
        source_report = SourceReport(source=source, fetched=len(rates))

        for rate in rates:
            try:
                await self._store.upsert_snapshot(rate, source)
            except StoreWriteError:
                source_report.failed += 1
                logger.error(
                    "snapshot_write_failed",
                    provider=provider.name,
                    pair=f"{rate.base_currency}/{rate.quote_currency}",
                    exc_info=True,
                )
                continue
            source_report.written += 1

            # Live view is already correct; a missing history point is tolerated.
            try:
                await self._store.append_history(rate, source, self._settings.history_interval)
            except StoreWriteError:
                source_report.history_failed += 1
                logger.error(
                    "history_write_failed",
                    provider=provider.name,
                    pair=f"{rate.base_currency}/{rate.quote_currency}",
                    exc_info=True,
                )

        if not rates:
            logger.warning("provider_returned_no_rates", provider=provider.name)
        return source_report
