"""
Data store interface.

Every table operation used by the backend goes through DataStore: the
session mechanism, the newsletter tables and any CRUD collaborator.
Rows are plain dicts; timestamps are ISO strings produced by
bench.utils.clock.to_iso().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from bench.utils.clock import to_iso

Row = Dict[str, Any]

OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")
        if isinstance(self.value, datetime):
            object.__setattr__(self, "value", to_iso(self.value))


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


class DataStore(ABC):
    """Per-table select/insert/update/delete/upsert with filter predicates."""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        columns: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        ...

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert one row and return it as stored (with generated id)."""

    @abstractmethod
    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        """Update matching rows and return them after the update."""

    @abstractmethod
    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        """Delete matching rows and return how many were removed."""

    @abstractmethod
    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        """Insert, or update the row whose ``on_conflict`` column matches."""

    def select_one(self, table: str, filters: Sequence[Filter] = (), **kwargs) -> Optional[Row]:
        rows = self.select(table, filters, limit=1, **kwargs)
        return rows[0] if rows else None

    def ping(self) -> bool:
        """Best-effort connectivity check."""
        return True
