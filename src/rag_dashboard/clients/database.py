"""Database access for the corpus tables.

`DatabaseClient` is the read/write contract used by the store and the
endpoints. `PostgrestClient` talks to the database's REST gateway over
HTTP; the similarity ranking itself runs inside the database as an RPC.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from ..errors import FormatError, NetworkError
from ..models.base import RecordId
from ..observability.logging import fields, get_logger

logger = get_logger(__name__)


class DatabaseClient(ABC):
    """Abstract interface of the remote corpus database."""

    @abstractmethod
    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Reads rows from a table.

        Args:
            table: Table name.
            columns: Comma-separated column list.
            order_by: Optional column to sort by.
            descending: Sort direction for `order_by`.
            limit: Optional maximum number of rows.

        Returns:
            The rows as dictionaries.
        """
        pass  # pragma: no cover

    @abstractmethod
    def count(self, table: str) -> int:
        """Returns the exact number of rows in a table."""
        pass  # pragma: no cover

    @abstractmethod
    def rpc(self, function: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Calls a database function and returns the rows it yields."""
        pass  # pragma: no cover

    @abstractmethod
    def update(
        self,
        table: str,
        record_id: RecordId,
        values: dict[str, Any],
        *,
        returning: str = "*",
    ) -> dict[str, Any]:
        """Updates one row by id and returns the requested columns of it."""
        pass  # pragma: no cover


class PostgrestClient(DatabaseClient):
    """DatabaseClient over the PostgREST HTTP interface."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> requests.Response:
        url = f"{self.base_url}/{path}"
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(
                "Database request failed.", extra=fields(url=url, error=str(e))
            )
            raise NetworkError(f"database unreachable: {e}") from e

        if not resp.ok:
            raise NetworkError(self._error_message(resp), status_code=resp.status_code)
        return resp

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return f"HTTP {resp.status_code}: {resp.text}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {resp.status_code}"

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise FormatError(f"database returned invalid JSON: {e}") from e

    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"select": columns.replace(" ", "")}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit

        rows = self._json(self._request("GET", table, params=params))
        if not isinstance(rows, list):
            raise FormatError(f"expected a list of rows from '{table}'")
        return rows

    def count(self, table: str) -> int:
        resp = self._request(
            "HEAD",
            table,
            params={"select": "id"},
            headers={"Prefer": "count=exact"},
        )
        # Content-Range looks like "0-9/123" or "*/0".
        content_range = resp.headers.get("Content-Range", "")
        _, _, total = content_range.partition("/")
        if not total.isdigit():
            raise FormatError(f"missing row count for '{table}'")
        return int(total)

    def rpc(self, function: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        rows = self._json(self._request("POST", f"rpc/{function}", json=params))
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise FormatError(f"expected a list of rows from rpc '{function}'")
        return rows

    def update(
        self,
        table: str,
        record_id: RecordId,
        values: dict[str, Any],
        *,
        returning: str = "*",
    ) -> dict[str, Any]:
        resp = self._request(
            "PATCH",
            table,
            params={"id": f"eq.{record_id}", "select": returning.replace(" ", "")},
            json=values,
            headers={
                "Prefer": "return=representation",
                "Accept": "application/vnd.pgrst.object+json",
            },
        )
        row = self._json(resp)
        if not isinstance(row, dict):
            raise FormatError(f"expected a single row from '{table}'")
        return row
