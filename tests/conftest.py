"""Shared test fixtures for the exchange-rate engine."""

from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio

from fxrates.data.database import RateDatabase
from fxrates.data.repository import SqliteRateRepository
from fxrates.data.store import RateStore
from fxrates.models import NormalizedRate


class FakeClock:
    """Deterministic stand-in for time.time()."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_rate(
    base: str = "BTC",
    quote: str = "USD",
    rate: str = "43250.50",
    **kwargs: object,
) -> NormalizedRate:
    """Build a NormalizedRate from string amounts."""
    return NormalizedRate(base_currency=base, quote_currency=quote, rate=Decimal(rate), **kwargs)  # type: ignore[arg-type]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncIterator[RateDatabase]:  # type: ignore[no-untyped-def]
    """Connected RateDatabase in a temporary directory."""
    db = RateDatabase(str(tmp_path / "rates.db"))
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def repository(database: RateDatabase) -> SqliteRateRepository:
    return SqliteRateRepository(database)


@pytest.fixture
def store(repository: SqliteRateRepository, clock: FakeClock) -> RateStore:
    """RateStore backed by a real SQLite file and a fake clock."""
    return RateStore(repository, clock=clock)


@pytest.fixture
def rate_factory():  # type: ignore[no-untyped-def]
    """Expose make_rate to tests as a fixture."""
    return make_rate
