"""Currency conversion over the live snapshot set.

Resolution order for (from, to):
  1. Newest snapshot for (from, to) across all sources -> rate as stored.
  2. Otherwise newest snapshot for (to, from) -> rate = 1 / stored rate.
  3. Otherwise RateNotFoundError.

Results are computed per call and never cached.
"""

from decimal import Decimal

from fxrates.data.store import RateStore
from fxrates.exceptions import RateNotFoundError
from fxrates.logging import get_logger
from fxrates.models import ConversionResult
from fxrates.normalizer import to_amount

logger = get_logger(__name__)


class ConversionEngine:
    """Converts amounts using direct or inverted live snapshots.

    Args:
        store: Snapshot source.
    """

    def __init__(self, store: RateStore) -> None:
        self._store = store

    async def convert(
        self,
        from_currency: str,
        to_currency: str,
        amount: Decimal | float,
    ) -> ConversionResult:
        """Convert amount from one currency to another.

        Raises:
            RateNotFoundError: Neither the pair nor its inverse has a snapshot.
            ValueError: amount is not a finite number.
        """
        amount = to_amount(amount)
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        direct = await self._store.find_latest_snapshot(from_currency, to_currency)
        if direct is not None:
            rate = direct.rate
            return ConversionResult(rate=rate, result=amount * rate, source=direct.source)

        inverse = await self._store.find_latest_snapshot(to_currency, from_currency)
        if inverse is not None:
            rate = Decimal(1) / inverse.rate
            logger.debug(
                "conversion_used_inverse",
                pair=f"{from_currency}/{to_currency}",
                source=inverse.source.value,
            )
            return ConversionResult(
                rate=rate,
                result=amount * rate,
                source=inverse.source,
                inverted=True,
            )

        raise RateNotFoundError(from_currency, to_currency)
