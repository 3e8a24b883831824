"""SQLite-backed document store for the production planner."""

from __future__ import annotations

import json
import sqlite3
from typing import Generic, Iterator, List, Optional, Type

from .domain import Order, ProductTemplate
from .repository import DuplicateRecordError, RecordNotFoundError, T


class SQLiteRepository(Generic[T]):
    """Repository implementation that keeps JSON documents inside SQLite."""

    def __init__(
        self, connection: sqlite3.Connection, table: str, record_type: Type[T]
    ) -> None:
        self._connection = connection
        self._table = table
        self._record_type = record_type
        self._connection.execute(
            f"CREATE TABLE IF NOT EXISTS {table} ("  # nosec - static table names
            "id TEXT PRIMARY KEY, payload TEXT NOT NULL)"
        )
        self._connection.commit()

    def __contains__(self, item_id: object) -> bool:
        if not isinstance(item_id, str):
            return False
        cursor = self._connection.execute(
            f"SELECT 1 FROM {self._table} WHERE id = ? LIMIT 1", (item_id,)
        )
        return cursor.fetchone() is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.list())

    def __len__(self) -> int:
        cursor = self._connection.execute(
            f"SELECT COUNT(1) FROM {self._table}"
        )
        value = cursor.fetchone()
        return int(value[0]) if value else 0

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def _load(self, payload: str) -> T:
        return self._record_type.from_document(json.loads(payload))  # type: ignore[attr-defined]

    def add(self, item: T) -> None:
        if item.id in self:
            raise DuplicateRecordError(f"Record with id {item.id!r} already exists")
        self._connection.execute(
            f"INSERT INTO {self._table} (id, payload) VALUES (?, ?)",
            (item.id, json.dumps(item.to_document())),
        )
        self._connection.commit()

    def upsert(self, item: T) -> None:
        self._connection.execute(
            f"INSERT INTO {self._table} (id, payload) VALUES (?, ?) "
            "ON CONFLICT(id) DO UPDATE SET payload = excluded.payload",
            (item.id, json.dumps(item.to_document())),
        )
        self._connection.commit()

    def get(self, item_id: str) -> T:
        cursor = self._connection.execute(
            f"SELECT payload FROM {self._table} WHERE id = ?", (item_id,)
        )
        row = cursor.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found")
        return self._load(row[0])

    def remove(self, item_id: str) -> None:
        cursor = self._connection.execute(
            f"DELETE FROM {self._table} WHERE id = ?", (item_id,)
        )
        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found")
        self._connection.commit()

    def list(self) -> List[T]:
        cursor = self._connection.execute(
            f"SELECT payload FROM {self._table} ORDER BY id"
        )
        return [self._load(row[0]) for row in cursor.fetchall()]


class PlannerDatabase:
    """Convenience facade bundling the SQLite repositories."""

    def __init__(self, path: str) -> None:
        connection = sqlite3.connect(path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        self._connection = connection
        self.orders = SQLiteRepository[Order](connection, "orders", Order)
        self.templates = SQLiteRepository[ProductTemplate](
            connection, "product_templates", ProductTemplate
        )

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "PlannerDatabase":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[BaseException],
    ) -> None:
        self.close()


__all__ = ["SQLiteRepository", "PlannerDatabase"]
