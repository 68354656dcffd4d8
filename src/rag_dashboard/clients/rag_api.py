"""HTTP client of the search and update endpoints."""

from typing import Any, Optional

import requests
from pydantic import BaseModel, ValidationError

from ..errors import FormatError, NetworkError
from ..models.base import RecordId
from ..models.documents import SearchResponse, UpdateResponse
from ..observability.logging import fields, get_logger

logger = get_logger(__name__)


class RagApiClient:
    """Calls `/api/rag/search` and `/api/rag/update`."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def search(
        self,
        query: str,
        match_count: int = 5,
        match_threshold: float = 0.0,
        doc_type: Optional[str] = None,
    ) -> SearchResponse:
        """Runs a semantic search.

        Raises:
            NetworkError: The endpoint is unreachable or answered non-2xx.
            FormatError: The endpoint answered with an unexpected shape.
        """
        body: dict[str, Any] = {
            "query": query,
            "match_count": match_count,
            "match_threshold": match_threshold,
        }
        if doc_type:
            body["doc_type"] = doc_type
        return self._parse(SearchResponse, self._post("/api/rag/search", body))

    def update(
        self,
        record_id: RecordId,
        content: str,
        regenerate_embedding: bool = True,
    ) -> UpdateResponse:
        """Replaces the content of one regulation row."""
        body = {
            "id": record_id,
            "content": content,
            "regenerate_embedding": regenerate_embedding,
        }
        return self._parse(UpdateResponse, self._post("/api/rag/update", body))

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("RAG API unreachable.", extra=fields(url=url, error=str(e)))
            raise NetworkError(f"service unreachable at {url}: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if not resp.ok:
            message = None
            if isinstance(payload, dict):
                message = payload.get("error")
            raise NetworkError(
                message or f"HTTP {resp.status_code} from {path}",
                status_code=resp.status_code,
            )
        if payload is None:
            raise FormatError(f"{path} returned a non-JSON response")
        return payload

    @staticmethod
    def _parse(model: type[BaseModel], payload: Any):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise FormatError(f"unexpected response shape: {e}") from e
