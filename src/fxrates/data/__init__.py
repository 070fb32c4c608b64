"""Rate persistence layer.

Provides the SQLite database manager, the storage-agnostic repository
contract with its aiosqlite implementation, and the typed RateStore.
"""

from fxrates.data.database import RateDatabase
from fxrates.data.repository import RateRepository, SqliteRateRepository
from fxrates.data.store import RateStore

__all__ = [
    "RateDatabase",
    "RateRepository",
    "RateStore",
    "SqliteRateRepository",
]
