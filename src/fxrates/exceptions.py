"""Custom exceptions for the exchange-rate engine.

All provider, store and conversion exceptions live here to avoid
circular imports between modules.
"""


class RateEngineError(Exception):
    """Base exception for all engine errors."""


class ProviderError(RateEngineError):
    """Raised inside an adapter when the upstream call or decode fails.

    Never escapes the adapter's fetch_rates() boundary.
    """


class ProviderBusinessError(ProviderError):
    """Raised when the upstream answered but flagged the request as failed."""


class StoreWriteError(RateEngineError):
    """Raised when a snapshot upsert or history insert could not be persisted."""


class RateNotFoundError(RateEngineError):
    """Raised when no direct or inverse snapshot exists for a pair.

    An expected outcome for unsupported pairs, not a system fault.
    """

    def __init__(self, from_currency: str, to_currency: str) -> None:
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(f"Rate not found for {from_currency}/{to_currency}")
