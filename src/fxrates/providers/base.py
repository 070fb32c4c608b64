"""Abstract rate provider interface.

Defines the contract for all upstream adapters. The scheduler depends only
on this interface, keeping provider-specific payload handling isolated in
the concrete implementations.

fetch_rates() never raises: any failure inside _fetch() is logged as a
warning and replaced by _on_failure(), so one provider's outage cannot
abort its siblings. Records whose rate is not finite and positive are
dropped here whatever the adapter returned.
"""

import time
from abc import ABC, abstractmethod

from fxrates.logging import get_logger
from fxrates.models import NormalizedRate, RateSource
from fxrates.normalizer import filter_valid

logger = get_logger(__name__)


class RateProvider(ABC):
    """Base class for upstream rate adapters."""

    name: str = "provider"
    source: RateSource

    async def fetch_rates(self) -> list[NormalizedRate]:
        """Fetch and normalize the provider's current rates.

        Returns an empty list (or the provider's fallback table) on failure.
        """
        started = time.monotonic()
        try:
            fetched = await self._fetch()
        except Exception as e:
            logger.warning(
                "provider_fetch_failed",
                provider=self.name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return filter_valid(self._on_failure(e))

        rates = filter_valid(fetched)
        if len(rates) < len(fetched):
            logger.warning(
                "provider_invalid_rates_dropped",
                provider=self.name,
                dropped=len(fetched) - len(rates),
            )

        logger.debug(
            "provider_fetch_complete",
            provider=self.name,
            count=len(rates),
            elapsed_ms=round((time.monotonic() - started) * 1000),
        )
        return rates

    @abstractmethod
    async def _fetch(self) -> list[NormalizedRate]:
        """Call the upstream API and map its payload. May raise."""
        ...

    def _on_failure(self, error: Exception) -> list[NormalizedRate]:
        """Result to serve when _fetch() raised. Empty by default."""
        return []

    async def close(self) -> None:
        """Release network resources. No-op unless the provider holds any."""
        return None
