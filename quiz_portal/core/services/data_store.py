"""Table-oriented data store used by the catalog and the attempt ledger.

The interface mirrors the small slice of a hosted backend-as-a-service client
the portal relies on: insert, select with equality filters, update and
delete, a unique constraint on quiz codes, and cascading deletes from a quiz
to its questions and attempts. ``InMemoryDataStore`` implements it for a
single process; rows are plain dictionaries and are copied in and out so
callers never share state with the store.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

Row = dict[str, Any]

QUIZZES = "quizzes"
QUESTIONS = "questions"
ATTEMPTS = "attempts"


class StoreError(Exception):
    """Raised when the store rejects a read or write."""


class UniqueViolationError(StoreError):
    """Raised when a write would break a unique constraint."""


class ForeignKeyViolationError(StoreError):
    """Raised when a row references a parent row that does not exist."""


@dataclass(slots=True)
class TableSchema:
    primary_key: tuple[str, ...]
    unique: tuple[tuple[str, ...], ...] = ()
    # column -> parent table; children are removed when the parent is deleted
    foreign_keys: dict[str, str] = field(default_factory=dict)


DEFAULT_SCHEMA: dict[str, TableSchema] = {
    QUIZZES: TableSchema(primary_key=("id",), unique=(("code",),)),
    QUESTIONS: TableSchema(primary_key=("quiz_id", "id"), foreign_keys={"quiz_id": QUIZZES}),
    ATTEMPTS: TableSchema(primary_key=("id",), foreign_keys={"quiz_id": QUIZZES}),
}


class InMemoryDataStore:
    """Process-local implementation of the data store interface."""

    def __init__(self, schema: dict[str, TableSchema] | None = None) -> None:
        self._schema = schema or DEFAULT_SCHEMA
        self._tables: dict[str, list[Row]] = {name: [] for name in self._schema}
        self._lock = Lock()

    def insert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert all rows or none of them."""
        with self._lock:
            existing = self._table(table)
            schema = self._schema[table]
            staged: list[Row] = []
            for row in rows:
                self._check_foreign_keys(schema, row)
                self._check_unique(schema, existing + staged, row)
                staged.append(deepcopy(row))
            existing.extend(staged)
            return deepcopy(staged)

    def select(self, table: str, **filters: Any) -> list[Row]:
        with self._lock:
            return [deepcopy(row) for row in self._table(table) if _matches(row, filters)]

    def update(self, table: str, values: Row, **filters: Any) -> list[Row]:
        with self._lock:
            rows = self._table(table)
            schema = self._schema[table]
            targets = [row for row in rows if _matches(row, filters)]
            others = [row for row in rows if not _matches(row, filters)]
            for row in targets:
                candidate = {**row, **values}
                self._check_unique(schema, others, candidate)
                others.append(candidate)
            for row in targets:
                row.update(deepcopy(values))
            return [deepcopy(row) for row in targets]

    def delete(self, table: str, **filters: Any) -> list[Row]:
        with self._lock:
            return self._delete_locked(table, filters)

    def _delete_locked(self, table: str, filters: dict[str, Any]) -> list[Row]:
        rows = self._table(table)
        removed = [row for row in rows if _matches(row, filters)]
        self._tables[table] = [row for row in rows if not _matches(row, filters)]
        primary_key = self._schema[table].primary_key
        for child_table, child_schema in self._schema.items():
            for column, parent in child_schema.foreign_keys.items():
                if parent != table:
                    continue
                for row in removed:
                    # single-column parent keys only
                    self._delete_locked(child_table, {column: row[primary_key[0]]})
        return removed

    def _table(self, table: str) -> list[Row]:
        try:
            return self._tables[table]
        except KeyError as exc:
            raise StoreError(f"Unknown table '{table}'.") from exc

    def _check_unique(self, schema: TableSchema, rows: list[Row], candidate: Row) -> None:
        for columns in (schema.primary_key, *schema.unique):
            key = tuple(candidate.get(column) for column in columns)
            if any(tuple(row.get(column) for column in columns) == key for row in rows):
                raise UniqueViolationError(
                    f"Duplicate value for ({', '.join(columns)}): {key}"
                )

    def _check_foreign_keys(self, schema: TableSchema, row: Row) -> None:
        for column, parent in schema.foreign_keys.items():
            parent_key = self._schema[parent].primary_key[0]
            if not any(
                parent_row[parent_key] == row.get(column) for parent_row in self._tables[parent]
            ):
                raise ForeignKeyViolationError(
                    f"{column}={row.get(column)!r} does not reference an existing {parent} row."
                )


def _matches(row: Row, filters: dict[str, Any]) -> bool:
    return all(row.get(column) == value for column, value in filters.items())
