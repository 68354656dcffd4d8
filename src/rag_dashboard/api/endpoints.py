"""Search and update endpoints of the RAG dashboard.

`RagEndpoints` holds the request handling; `build_router` exposes it as
FastAPI routes. Embedding and similarity ranking are delegated to the
embedding server and the database.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..clients.database import DatabaseClient
from ..clients.embedding import OllamaEmbeddingClient, format_vector
from ..clients.realtime import InMemoryRealtimeBroker
from ..errors import DashboardError, NetworkError, RequestError
from ..models.documents import RegulationRow, SearchRequest, UpdateRequest
from ..models.enums import ChangeEventType, TrackedTable
from ..observability.logging import fields, get_logger

logger = get_logger(__name__)

SEARCH_FUNCTION = "search_regulations"
UPDATE_RESPONSE_FIELDS = ("id", "source", "content", "doc_type")
# Full row minus the vector, so realtime subscribers keep every cached column.
UPDATE_RETURNING = RegulationRow.select_columns() + ", doc_type"


class RagEndpoints:
    """Handlers for the search and update endpoints."""

    def __init__(
        self,
        embedder: OllamaEmbeddingClient,
        database: DatabaseClient,
        broker: Optional[InMemoryRealtimeBroker] = None,
    ):
        """Initialize with the embedding and database clients.

        Args:
            embedder: Client of the embedding server.
            database: Client of the corpus database.
            broker: Optional in-process broker; successful updates are
                published to it as `UPDATE` events on `regulations`.
        """
        self.embedder = embedder
        self.database = database
        self.broker = broker

    def search(self, payload: Any) -> dict[str, Any]:
        """Embeds the query and ranks corpus rows by similarity.

        Args:
            payload: `{query, match_count?, match_threshold?, doc_type?}`.

        Returns:
            `{success, data, query, embedding_dimension}`.

        Raises:
            RequestError: The query is missing or a parameter is invalid.
            DashboardError: The embedding server or the database failed.
        """
        request = _parse(SearchRequest, payload, "missing or invalid query parameter")

        embedding = self.embedder.embed(request.query)

        params: dict[str, Any] = {
            "query_embedding": format_vector(embedding),
            "match_threshold": request.match_threshold,
            "match_count": request.match_count,
        }
        if request.doc_type:
            params["filter_doc_type"] = request.doc_type

        try:
            rows = self.database.rpc(SEARCH_FUNCTION, params)
        except DashboardError as e:
            raise _prefixed(e, "Database search failed") from e

        logger.info(
            "Search served.",
            extra=fields(query=request.query, count=len(rows), dimension=len(embedding)),
        )
        return {
            "success": True,
            "data": rows,
            "query": request.query,
            "embedding_dimension": len(embedding),
        }

    def update(self, payload: Any) -> dict[str, Any]:
        """Replaces a regulation's content, re-embedding it by default.

        Args:
            payload: `{id, content, regenerate_embedding?}`.

        Returns:
            `{success, data, embedding_regenerated}`.
        """
        request = _parse(UpdateRequest, payload, "missing required parameters (id, content)")

        values: dict[str, Any] = {"content": request.content}
        if request.regenerate_embedding:
            values["embedding"] = format_vector(self.embedder.embed(request.content))

        try:
            row = self.database.update(
                TrackedTable.REGULATIONS.value,
                request.id,
                values,
                returning=UPDATE_RETURNING,
            )
        except DashboardError as e:
            raise _prefixed(e, "Update failed") from e

        logger.info(
            "Regulation updated.",
            extra=fields(record_id=request.id, regenerated=request.regenerate_embedding),
        )
        if self.broker is not None:
            self.broker.publish(
                TrackedTable.REGULATIONS.value,
                {"eventType": ChangeEventType.UPDATE.value, "new": row, "old": {"id": request.id}},
            )
        return {
            "success": True,
            "data": {key: row[key] for key in UPDATE_RESPONSE_FIELDS if key in row},
            "embedding_regenerated": request.regenerate_embedding,
        }


def _prefixed(error: DashboardError, prefix: str) -> DashboardError:
    if isinstance(error, NetworkError):
        return type(error)(f"{prefix}: {error}", status_code=error.status_code)
    return type(error)(f"{prefix}: {error}")


def _parse(model, payload: Any, message: str):
    if not isinstance(payload, dict):
        raise RequestError(message)
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise RequestError(message) from e


def _error_response(error: Exception) -> JSONResponse:
    if isinstance(error, RequestError):
        return JSONResponse({"error": str(error)}, status_code=400)
    logger.error("RAG endpoint failed.", extra=fields(error=str(error)))
    return JSONResponse({"error": str(error) or "unknown error"}, status_code=500)


def build_router(endpoints: RagEndpoints) -> APIRouter:
    """Exposes the endpoints as `POST /api/rag/search` and `POST /api/rag/update`."""
    router = APIRouter(prefix="/api/rag", tags=["rag"])

    @router.post("/search")
    def search(payload: Any = Body(default=None)):
        try:
            return endpoints.search(payload)
        except Exception as e:
            return _error_response(e)

    @router.post("/update")
    def update(payload: Any = Body(default=None)):
        try:
            return endpoints.update(payload)
        except Exception as e:
            return _error_response(e)

    return router
