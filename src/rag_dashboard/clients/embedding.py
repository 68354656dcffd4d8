"""Client of the local embedding model server."""

from typing import Any, Optional

import requests

from ..errors import EmbeddingFormatError, EmbeddingUnavailableError
from ..observability.logging import fields, get_logger

logger = get_logger(__name__)


def format_vector(vector: list[float]) -> str:
    """Renders a vector as a pgvector literal, e.g. "[0.1,0.2]"."""
    return "[" + ",".join(str(v) for v in vector) + "]"


class OllamaEmbeddingClient:
    """Generates text embeddings through the model server's `/api/embed`."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "bge-m3",
        *,
        keep_alive: str = "5m",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.keep_alive = keep_alive
        self.timeout = timeout
        self.session = session or requests.Session()

    def embed(self, text: str) -> list[float]:
        """Embeds one text.

        Args:
            text: The text to embed.

        Returns:
            The embedding vector.

        Raises:
            EmbeddingUnavailableError: The server is unreachable or refused
                the request.
            EmbeddingFormatError: The server answered without a vector.
        """
        url = f"{self.base_url}/api/embed"
        try:
            resp = self.session.post(
                url,
                json={
                    "model": self.model,
                    "input": [text],
                    "keep_alive": self.keep_alive,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(
                "Embedding service unreachable.", extra=fields(url=url, error=str(e))
            )
            raise EmbeddingUnavailableError(
                f"embedding service unreachable at {self.base_url}: {e}"
            ) from e

        if not resp.ok:
            raise EmbeddingUnavailableError(
                f"embedding request failed: {resp.text}", status_code=resp.status_code
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise EmbeddingFormatError(
                f"embedding service returned invalid JSON: {e}"
            ) from e

        return self._extract_vector(body)

    @staticmethod
    def _extract_vector(body: Any) -> list[float]:
        vector = None
        if isinstance(body, dict):
            embeddings = body.get("embeddings")
            if isinstance(embeddings, list) and embeddings:
                vector = embeddings[0]
            elif body.get("embedding") is not None:
                vector = body["embedding"]

        if (
            not isinstance(vector, list)
            or not vector
            or not all(
                isinstance(v, (int, float)) and not isinstance(v, bool)
                for v in vector
            )
        ):
            raise EmbeddingFormatError("embedding service returned an unexpected format")
        return [float(v) for v in vector]
