# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""HTTP record store for a PostgREST-compatible endpoint.

Requests go to ``{store_url}/rest/v1/{table}`` with the store credential in
both the ``apikey`` header and a bearer ``Authorization`` header.

Query shapes:
    select   GET    ?col=eq.value&col2=is.null&order=created_at.desc
    insert   POST   Prefer: return=representation
    update   PATCH  ?col=eq.value  Prefer: return=representation (rows matched)
    count    HEAD   Prefer: count=exact  (total read from Content-Range)

A 409 answer on insert is a uniqueness conflict (:class:`ConflictError`);
every other failure is a :class:`StoreError`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..core.config import CoreSettings
from ..core.exceptions import ConflictError, StoreError
from .backend import Filters, Order, Record, RecordStore
from .schema import column_name, encode_value, from_remote, to_remote

logger = logging.getLogger(__name__)


def _filter_params(table: str, filters: Filters | None) -> dict[str, str]:
    params: dict[str, str] = {}
    for key, value in (filters or {}).items():
        column = column_name(table, key)
        if value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{encode_value(value)}"
    return params


def _parse_content_range(header: str | None) -> int:
    # "0-9/42" or "*/0"
    if not header or "/" not in header:
        raise ValueError(f"missing total in Content-Range: {header!r}")
    total = header.rsplit("/", 1)[1]
    if total == "*":
        raise ValueError("store did not report an exact count")
    return int(total)


class PostgrestStore(RecordStore):
    """Record store backed by a PostgREST HTTP API.

    Args:
        base_url: Store endpoint URL (without the ``/rest/v1`` suffix).
        api_key: Store access credential.
        timeout: Request timeout in seconds.
        client: Pre-built ``httpx.Client`` (tests inject a mock transport).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: CoreSettings) -> PostgrestStore:
        """Build a store from settings, failing fast on missing configuration."""
        settings.require_store()
        return cls(settings.store_url, settings.store_key, timeout=settings.store_timeout)

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        body: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        logger.debug("Store %s %s params=%s", method, table, params)
        try:
            resp = self._client.request(
                method,
                self._url(table),
                params=params,
                json=body,
                headers=self._headers(prefer),
            )
        except httpx.TimeoutException as e:
            raise StoreError(f"Store request timed out: {method} {table}", table=table) from e
        except httpx.TransportError as e:
            raise StoreError(f"Cannot reach store at {self.base_url}: {e}", table=table) from e

        if resp.status_code == 409:
            raise ConflictError(f"Duplicate key in {table}", table=table)
        if resp.status_code >= 400:
            raise StoreError(
                f"Store rejected {method} {table}: {resp.text[:200]}",
                table=table,
                status_code=resp.status_code,
            )
        return resp

    def _rows(self, table: str, resp: httpx.Response) -> list[Record]:
        try:
            body = resp.json()
        except json.JSONDecodeError as e:
            raise StoreError(f"Undecodable response from {table}", table=table) from e
        if not isinstance(body, list):
            raise StoreError(f"Expected a list of rows from {table}", table=table)
        return [from_remote(table, row) for row in body]

    def insert(self, table: str, record: Record) -> Record:
        resp = self._request("POST", table, body=to_remote(table, record), prefer="return=representation")
        rows = self._rows(table, resp)
        if not rows:
            raise StoreError(f"Insert into {table} returned no row", table=table)
        return rows[0]

    def select(self, table: str, filters: Filters | None = None, order: Order | None = None) -> list[Record]:
        params = {"select": "*", **_filter_params(table, filters)}
        if order is not None:
            field_name, descending = order
            params["order"] = f"{column_name(table, field_name)}.{'desc' if descending else 'asc'}"
        resp = self._request("GET", table, params=params)
        return self._rows(table, resp)

    def update(self, table: str, filters: Filters, patch: Record) -> int:
        if not filters:
            raise StoreError(f"Refusing unfiltered update on {table}", table=table)
        resp = self._request(
            "PATCH",
            table,
            params=_filter_params(table, filters),
            body=to_remote(table, patch),
            prefer="return=representation",
        )
        return len(self._rows(table, resp))

    def count(self, table: str, filters: Filters | None = None) -> int:
        params = {"select": "*", **_filter_params(table, filters)}
        resp = self._request("HEAD", table, params=params, prefer="count=exact")
        try:
            return _parse_content_range(resp.headers.get("content-range"))
        except ValueError as e:
            raise StoreError(f"Bad count response from {table}: {e}", table=table) from e

    def close(self) -> None:
        self._client.close()
