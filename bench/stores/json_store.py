"""
JSON-file backed DataStore.

One file per table under the data directory (``<table>.json``), written
atomically. Writes are serialised with a process-local lock; unique
columns are enforced on insert and upsert.
"""

from __future__ import annotations

import json
import operator
import shutil
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from bench.utils.clock import to_iso, utc_now
from bench.utils.exceptions import StoreError, UniqueViolation
from bench.utils.logger import get_logger

from .base import DataStore, Filter, Row

logger = get_logger(__name__)

DEFAULT_UNIQUE_COLUMNS: Dict[str, Sequence[str]] = {
    "profiles": ("email",),
    "super_admin_sessions": ("token",),
    "subscriptions": ("email",),
}

_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


def _matches(row: Row, filters: Iterable[Filter]) -> bool:
    for f in filters:
        value = row.get(f.column)
        if f.op not in ("eq", "neq") and value is None:
            return False
        try:
            if not _OPS[f.op](value, f.value):
                return False
        except TypeError:
            return False
    return True


def _normalize(row: Row) -> Row:
    return {k: to_iso(v) if isinstance(v, datetime) else v for k, v in row.items()}


def _sort_key(column: str):
    # None sorts first, like NULLS FIRST on ascending order
    return lambda row: (row.get(column) is not None, row.get(column))


class JsonStore(DataStore):
    """DataStore persisted as JSON files."""

    def __init__(self, data_dir: Path, unique_columns: Optional[Dict[str, Sequence[str]]] = None):
        self.data_dir = Path(data_dir)
        self.unique_columns = dict(DEFAULT_UNIQUE_COLUMNS if unique_columns is None else unique_columns)
        self._lock = threading.RLock()

    # -- persistence ---------------------------------------------------

    def _table_path(self, table: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in table)
        return self.data_dir / f"{safe}.json"

    def _load(self, table: str) -> List[Row]:
        path = self._table_path(table)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"Failed to read table {table} from {path}: {e}")
        return list(raw.get("rows", []))

    def _save(self, table: str, rows: List[Row]) -> None:
        path = self._table_path(table)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w", dir=str(path.parent), delete=False, encoding="utf-8"
            ) as tf:
                json.dump({"rows": rows}, tf, indent=2, ensure_ascii=False, default=str)
                temp_path = Path(tf.name)
        except OSError as e:
            raise StoreError(f"Failed to write table {table}: {e}")
        try:
            shutil.move(str(temp_path), str(path))
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StoreError(f"Failed to save table {table} to {path}: {e}")

    def _check_unique(self, table: str, rows: List[Row], candidate: Row, skip_id: Any = None) -> None:
        for column in self.unique_columns.get(table, ()):
            value = candidate.get(column)
            if value is None:
                continue
            for row in rows:
                if row.get("id") == skip_id:
                    continue
                if row.get(column) == value:
                    raise UniqueViolation(table, column, value)

    # -- DataStore -----------------------------------------------------

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        columns: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        with self._lock:
            rows = [r for r in self._load(table) if _matches(r, filters)]
        if order_by:
            rows.sort(key=_sort_key(order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns:
            rows = [{c: r.get(c) for c in columns} for r in rows]
        return [dict(r) for r in rows]

    def insert(self, table: str, row: Row) -> Row:
        with self._lock:
            rows = self._load(table)
            new_row = _normalize(row)
            new_row.setdefault("id", str(uuid4()))
            new_row.setdefault("created_at", to_iso(utc_now()))
            self._check_unique(table, rows, new_row)
            if any(r.get("id") == new_row["id"] for r in rows):
                raise UniqueViolation(table, "id", new_row["id"])
            rows.append(new_row)
            self._save(table, rows)
        return dict(new_row)

    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        values = _normalize(values)
        updated: List[Row] = []
        with self._lock:
            rows = self._load(table)
            for row in rows:
                if _matches(row, filters):
                    candidate = {**row, **values}
                    self._check_unique(table, rows, candidate, skip_id=row.get("id"))
                    row.update(values)
                    updated.append(dict(row))
            if updated:
                self._save(table, rows)
        return updated

    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        with self._lock:
            rows = self._load(table)
            kept = [r for r in rows if not _matches(r, filters)]
            removed = len(rows) - len(kept)
            if removed:
                self._save(table, kept)
        return removed

    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        row = _normalize(row)
        key = row.get(on_conflict)
        with self._lock:
            rows = self._load(table)
            for existing in rows:
                if key is not None and existing.get(on_conflict) == key:
                    existing.update(row)
                    self._save(table, rows)
                    return dict(existing)
            return self.insert(table, row)

    def ping(self) -> bool:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            return self.data_dir.is_dir()
        except OSError as e:
            logger.warning("JSON store not reachable", data_dir=str(self.data_dir), error=str(e))
            return False
