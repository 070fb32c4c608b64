"""Ingestion layer -- scheduled provider polling and persistence."""

from fxrates.ingestion.scheduler import CRYPTO_LOOP, FIAT_LOOP, IngestionScheduler

__all__ = ["CRYPTO_LOOP", "FIAT_LOOP", "IngestionScheduler"]
