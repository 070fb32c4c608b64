"""Persistence primitives the engine depends on.

RateRepository is the storage-agnostic contract (upsert / insert /
find_many / find_one / aggregate over named tables with plain-dict records).
SqliteRateRepository is the shipped implementation over RateDatabase.

Records are dicts of primitives. Decimal values arrive already serialized
as TEXT by RateStore; columns listed in _DECIMAL_TEXT_COLUMNS are ordered
numerically so "ORDER BY market_cap" is not lexicographic.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from fxrates.data.database import RateDatabase

Record = dict[str, Any]
Filter = Mapping[str, Any]
OrderBy = Sequence[tuple[str, bool]]  # (column, descending)

LIVE_RATES = "live_rates"
RATE_HISTORY = "rate_history"

_COLUMNS: MappingProxyType[str, frozenset[str]] = MappingProxyType({
    LIVE_RATES: frozenset({
        "base_currency", "quote_currency", "source", "rate", "change_24h",
        "high_24h", "low_24h", "volume_24h", "market_cap", "is_fallback",
        "last_updated",
    }),
    RATE_HISTORY: frozenset({
        "id", "base_currency", "quote_currency", "source", "rate", "high",
        "low", "volume", "timestamp", "interval", "is_fallback",
    }),
})

_TIME_COLUMN: MappingProxyType[str, str] = MappingProxyType({
    LIVE_RATES: "last_updated",
    RATE_HISTORY: "timestamp",
})

_DECIMAL_TEXT_COLUMNS = frozenset({
    "rate", "change_24h", "high_24h", "low_24h", "volume_24h", "market_cap",
    "high", "low", "volume",
})


class RateRepository(ABC):
    """Abstract storage for the live-rate and rate-history tables."""

    @abstractmethod
    async def upsert(self, table: str, key: Filter, record: Record) -> None:
        """Insert record, or replace the non-key columns of the row matching key."""
        ...

    @abstractmethod
    async def insert(self, table: str, record: Record) -> None:
        """Append a new row. Never replaces."""
        ...

    @abstractmethod
    async def find_many(
        self,
        table: str,
        filter: Filter | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """Return rows matching every filter column, in order, up to limit."""
        ...

    async def find_one(
        self,
        table: str,
        filter: Filter | None = None,
        order_by: OrderBy | None = None,
    ) -> Record | None:
        """Return the first row find_many() would return, or None."""
        rows = await self.find_many(table, filter, order_by, limit=1)
        return rows[0] if rows else None

    @abstractmethod
    async def aggregate(
        self,
        table: str,
        filter: Filter | None = None,
        group_by: str | None = None,
    ) -> list[Record]:
        """Return row counts and latest time column value, optionally per group.

        Each result has keys "count" and "latest", plus the group_by column.
        """
        ...


def _check_columns(table: str, columns: Sequence[str] | Filter) -> None:
    allowed = _COLUMNS.get(table)
    if allowed is None:
        raise ValueError(f"Unknown table {table!r}")
    unknown = set(columns) - allowed
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {sorted(unknown)}")


def _where(filter: Filter | None) -> tuple[str, list[Any]]:
    if not filter:
        return "", []
    conditions = []
    params: list[Any] = []
    for column, value in filter.items():
        if value is None:
            conditions.append(f"{column} IS NULL")
        else:
            conditions.append(f"{column} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(conditions), params


def _order(order_by: OrderBy | None) -> str:
    if not order_by:
        return ""
    parts = []
    for column, descending in order_by:
        expr = f"CAST({column} AS REAL)" if column in _DECIMAL_TEXT_COLUMNS else column
        parts.append(f"{expr} {'DESC' if descending else 'ASC'}")
    return " ORDER BY " + ", ".join(parts)


class SqliteRateRepository(RateRepository):
    """RateRepository over an aiosqlite connection.

    Writes are serialized with an asyncio.Lock so one loop's commit never
    lands in the middle of another loop's statement.
    """

    def __init__(self, database: RateDatabase) -> None:
        self._database = database
        self._write_lock = asyncio.Lock()

    async def upsert(self, table: str, key: Filter, record: Record) -> None:
        row = {**record, **key}
        _check_columns(table, list(row))
        columns = list(row)
        updates = [c for c in columns if c not in key]
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT ({', '.join(key)}) DO UPDATE SET "
            + ", ".join(f"{c} = excluded.{c}" for c in updates)
        )
        async with self._write_lock:
            await self._database.db.execute(sql, [row[c] for c in columns])
            await self._database.db.commit()

    async def insert(self, table: str, record: Record) -> None:
        _check_columns(table, list(record))
        columns = list(record)
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        async with self._write_lock:
            await self._database.db.execute(sql, [record[c] for c in columns])
            await self._database.db.commit()

    async def find_many(
        self,
        table: str,
        filter: Filter | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        _check_columns(table, list(filter or {}))
        _check_columns(table, [c for c, _ in order_by or ()])

        where, params = _where(filter)
        sql = f"SELECT * FROM {table}{where}{_order(order_by)}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(limit, 0))

        cursor = await self._database.db.execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def aggregate(
        self,
        table: str,
        filter: Filter | None = None,
        group_by: str | None = None,
    ) -> list[Record]:
        _check_columns(table, list(filter or {}))
        if group_by is not None:
            _check_columns(table, [group_by])

        where, params = _where(filter)
        time_column = _TIME_COLUMN[table]
        select = f"COUNT(*) AS count, MAX({time_column}) AS latest"
        if group_by is None:
            sql = f"SELECT {select} FROM {table}{where}"
        else:
            sql = (
                f"SELECT {group_by}, {select} FROM {table}{where} "
                f"GROUP BY {group_by} ORDER BY {group_by}"
            )

        cursor = await self._database.db.execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]
