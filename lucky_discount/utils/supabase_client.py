import os
import threading
from typing import Dict, Any, List, Optional

import httpx

from lucky_discount.utils.logger import get_logger

logger = get_logger("utils.supabase_client")

_FILTER_OPERATORS = ("eq", "neq", "gt", "lt", "gte", "lte", "like", "ilike", "in", "is")


class SupabaseError(Exception):
    """A request to the Supabase REST API failed."""

    def __init__(self, table: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{table}: {message}")
        self.table = table
        self.status_code = status_code


def _filter_params(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    params = {}
    for key, val in (filters or {}).items():
        if isinstance(val, bool):
            params[key] = f"eq.{str(val).lower()}"
        elif isinstance(val, str) and "." in val and val.split(".")[0] in _FILTER_OPERATORS:
            params[key] = val
        else:
            params[key] = f"eq.{val}"
    return params


class SupabaseClient:
    """
    Lightweight client for the Supabase (PostgREST) REST API.

    Every method raises SupabaseError on transport failures and non-2xx
    responses; callers decide whether a failure is fatal.
    """
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.url = url or os.environ.get("SUPABASE_URL", "")
        self.key = key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_KEY", "")

        if not self.url or not self.key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set in environment.")

        self.headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }
        self.client = httpx.Client(
            base_url=self.url or "http://localhost",
            headers=self.headers,
            timeout=30.0,
            transport=transport,
        )

    def _send(self, method: str, table: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, f"/rest/v1/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Supabase {method} failed on {table}: HTTP {e.response.status_code} {e.response.text[:300]}")
            raise SupabaseError(table, e.response.text or f"HTTP {e.response.status_code}", e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Supabase {method} failed on {table}: {e}")
            raise SupabaseError(table, str(e)) from e
        if not response.content:
            return []
        return response.json()

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, select: str = "*",
               limit: Optional[int] = None, order: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Query a Supabase table.
        """
        params = {"select": select}
        params.update(_filter_params(filters))

        if limit:
            params["limit"] = str(limit)

        if order:
            params["order"] = order

        rows = self._send("GET", table, params=params)
        return rows if isinstance(rows, list) else []

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored (defaults and id filled in)."""
        rows = self._send("POST", table, json=row)
        if isinstance(rows, list):
            if not rows:
                raise SupabaseError(table, "insert returned no row")
            return rows[0]
        return rows

    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Patch every row matching filters; returns the updated rows."""
        rows = self._send("PATCH", table, params=_filter_params(filters), json=values)
        return rows if isinstance(rows, list) else []

    def delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Delete every row matching filters; returns the deleted rows."""
        rows = self._send("DELETE", table, params=_filter_params(filters))
        return rows if isinstance(rows, list) else []


_client: Optional[SupabaseClient] = None
_client_lock = threading.Lock()


def get_supabase_client() -> SupabaseClient:
    """Return the process-wide client, created on first use."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = SupabaseClient()
    return _client
