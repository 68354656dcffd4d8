from unittest.mock import MagicMock

import pytest
import requests

from rag_dashboard.clients.embedding import OllamaEmbeddingClient, format_vector
from rag_dashboard.errors import (
    EmbeddingFormatError,
    EmbeddingUnavailableError,
    FormatError,
    NetworkError,
)


def response(ok=True, status=200, body=None, text=""):
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status
    resp.text = text
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


class TestOllamaEmbeddingClient:
    @pytest.fixture
    def setup(self):
        session = MagicMock()
        client = OllamaEmbeddingClient(
            "http://ollama:11434/", "bge-m3", keep_alive="10m", timeout=5, session=session
        )
        return client, session

    def test_embed_request(self, setup):
        client, session = setup
        session.post.return_value = response(body={"embeddings": [[0.1, 0.2, 3]]})
        assert client.embed("hello") == [0.1, 0.2, 3.0]
        session.post.assert_called_once_with(
            "http://ollama:11434/api/embed",
            json={"model": "bge-m3", "input": ["hello"], "keep_alive": "10m"},
            timeout=5,
        )

    def test_single_embedding_field(self, setup):
        client, session = setup
        session.post.return_value = response(body={"embedding": [1, 2]})
        assert client.embed("x") == [1.0, 2.0]

    def test_unreachable(self, setup):
        client, session = setup
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(EmbeddingUnavailableError, match="unreachable"):
            client.embed("x")

    def test_non_2xx(self, setup):
        client, session = setup
        session.post.return_value = response(ok=False, status=404, text='model "bge-m3" not found')
        with pytest.raises(EmbeddingUnavailableError) as exc:
            client.embed("x")
        assert exc.value.status_code == 404
        assert isinstance(exc.value, NetworkError)

    def test_invalid_json(self, setup):
        client, session = setup
        session.post.return_value = response(body=ValueError("not json"))
        with pytest.raises(EmbeddingFormatError):
            client.embed("x")

    @pytest.mark.parametrize(
        "body",
        [{}, {"embeddings": []}, {"embeddings": [[]]}, {"embedding": ["a"]}, [0.1], {"embedding": [True]}],
    )
    def test_unexpected_shapes(self, setup, body):
        client, session = setup
        session.post.return_value = response(body=body)
        with pytest.raises(EmbeddingFormatError) as exc:
            client.embed("x")
        assert isinstance(exc.value, FormatError)


def test_format_vector():
    assert format_vector([0.5, 1.0, -2.25]) == "[0.5,1.0,-2.25]"
    assert format_vector([]) == "[]"
