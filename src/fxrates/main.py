"""Entry point for the exchange-rate engine.

Wires all components together, starts the ingestion loops and runs until
SIGINT/SIGTERM.

Component wiring order (in _build_components):
1. RateDatabase (caller connects it)
2. SqliteRateRepository + RateStore
3. Providers (Binance, CoinGecko, Fixer), skipping disabled ones
4. IngestionScheduler (crypto and fiat loops)
5. ConversionEngine + TransferFeeCalculator
6. ExchangeRateService (read facade handed to the HTTP layer)
"""

import asyncio
import signal
from typing import Any

from fxrates.config import AppSettings
from fxrates.conversion.engine import ConversionEngine
from fxrates.conversion.fees import TransferFeeCalculator
from fxrates.data.database import RateDatabase
from fxrates.data.repository import SqliteRateRepository
from fxrates.data.store import RateStore
from fxrates.ingestion.scheduler import IngestionScheduler
from fxrates.logging import get_logger, setup_logging
from fxrates.providers.base import RateProvider
from fxrates.providers.binance import BinanceRateProvider
from fxrates.providers.coingecko import CoinGeckoRateProvider
from fxrates.providers.fixer import FixerRateProvider
from fxrates.service import ExchangeRateService


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the full dependency graph from settings.

    Does NOT connect the database or start the scheduler; run() does that.
    """
    database = RateDatabase(settings.storage.db_path)
    store = RateStore(SqliteRateRepository(database))

    crypto_providers: list[RateProvider] = []
    if settings.binance.enabled:
        crypto_providers.append(BinanceRateProvider(settings.http))
    if settings.coingecko.enabled:
        crypto_providers.append(CoinGeckoRateProvider(settings.coingecko, settings.http))

    fiat_providers: list[RateProvider] = []
    if settings.fixer.enabled:
        fiat_providers.append(FixerRateProvider(settings.fixer, settings.http))

    scheduler = IngestionScheduler(
        store=store,
        crypto_providers=crypto_providers,
        fiat_providers=fiat_providers,
        settings=settings.scheduler,
    )

    service = ExchangeRateService(
        store=store,
        conversion_engine=ConversionEngine(store),
        fee_calculator=TransferFeeCalculator(settings.fees),
    )

    return {
        "database": database,
        "store": store,
        "providers": [*crypto_providers, *fiat_providers],
        "scheduler": scheduler,
        "service": service,
    }


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set stop_event on SIGINT/SIGTERM. Must run inside the event loop."""
    logger = get_logger("fxrates.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def run() -> None:
    """Run ingestion until a shutdown signal arrives."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("fxrates.main")

    components = _build_components(settings)
    stop_event = asyncio.Event()
    _setup_signal_handlers(stop_event)

    database: RateDatabase = components["database"]
    scheduler: IngestionScheduler = components["scheduler"]

    await database.connect()
    try:
        await scheduler.start()
        logger.info(
            "fxrates_started",
            providers=[p.name for p in components["providers"]],
            db_path=settings.storage.db_path,
        )
        await stop_event.wait()
    finally:
        await scheduler.stop()
        for provider in components["providers"]:
            try:
                await provider.close()
            except Exception as e:
                logger.error("provider_close_failed", provider=provider.name, error=str(e))
        await database.close()
        logger.info("fxrates_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
