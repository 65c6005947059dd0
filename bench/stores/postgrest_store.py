"""
DataStore backed by the hosted platform's REST API (PostgREST dialect).

Requests are made with the service key, so row-level security does not
apply; this store must only be used server-side.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from bench.utils.exceptions import StoreError, UniqueViolation
from bench.utils.logger import get_logger

from .base import DataStore, Filter, Row

logger = get_logger(__name__)


def _encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _filter_params(filters: Sequence[Filter]) -> List[Tuple[str, str]]:
    params = []
    for f in filters:
        if f.value is None and f.op in ("eq", "neq"):
            params.append((f.column, "is.null" if f.op == "eq" else "not.is.null"))
        else:
            params.append((f.column, f"{f.op}.{_encode_value(f.value)}"))
    return params


class PostgrestStore(DataStore):
    """DataStore that talks to ``<url>/rest/v1/<table>``."""

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        if not url or not service_key:
            raise StoreError("Hosted store requires both url and service_key")
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        })

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[List[Tuple[str, str]]] = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers: Dict[str, str] = {}
        if prefer:
            headers["Prefer"] = prefer
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # the exception text carries the request URL, whose filters may hold a token
            raise StoreError(f"{method} {table} failed: {type(e).__name__}")

        if response.status_code == 409:
            detail = _error_detail(response)
            raise UniqueViolation(table, detail.get("column", "unknown"))
        if response.status_code >= 400:
            detail = _error_detail(response)
            raise StoreError(
                f"{method} {table} returned {response.status_code} ({detail.get('code') or 'no code'})"
            )
        if not response.content:
            return None
        return response.json()

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        columns: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        params = [("select", ",".join(columns) if columns else "*")]
        params.extend(_filter_params(filters))
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return self._request("GET", table, params=params) or []

    def insert(self, table: str, row: Row) -> Row:
        rows = self._request("POST", table, json_body=row, prefer="return=representation")
        if not rows:
            raise StoreError(f"Insert into {table} returned no row")
        return rows[0]

    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        if not filters:
            raise StoreError("Refusing to update without filters")
        return self._request(
            "PATCH",
            table,
            params=_filter_params(filters),
            json_body=values,
            prefer="return=representation",
        ) or []

    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        if not filters:
            raise StoreError("Refusing to delete without filters")
        rows = self._request(
            "DELETE", table, params=_filter_params(filters), prefer="return=representation"
        )
        return len(rows or [])

    def upsert(self, table: str, row: Row, on_conflict: str) -> Row:
        rows = self._request(
            "POST",
            table,
            params=[("on_conflict", on_conflict)],
            json_body=row,
            prefer="resolution=merge-duplicates,return=representation",
        )
        if not rows:
            raise StoreError(f"Upsert into {table} returned no row")
        return rows[0]

    def ping(self) -> bool:
        try:
            response = self.session.get(self.base_url + "/", timeout=self.timeout)
            return response.status_code < 500
        except requests.RequestException as e:
            logger.warning("Hosted store not reachable", error=type(e).__name__)
            return False


def _error_detail(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    detail = {"code": body.get("code")}
    # e.g. 'Key (email)=(x@y.z) already exists.'
    details = body.get("details") or ""
    if details.startswith("Key (") and ")" in details:
        detail["column"] = details[5:details.index(")")]
    return detail
