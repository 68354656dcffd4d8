import pytest
from pydantic import ValidationError

from rag_dashboard.config import DashboardConfig


class TestDashboardConfig:
    def test_defaults(self):
        config = DashboardConfig.from_env({})
        assert config.supabase_url == "http://127.0.0.1:54321"
        assert config.ollama_url == "http://localhost:11434"
        assert config.embedding_model == "bge-m3"
        assert config.page_size == 100
        assert config.server_port == 7860
        assert config.log_level == "INFO"

    def test_from_env(self):
        config = DashboardConfig.from_env(
            {
                "SUPABASE_URL": "http://db:54321",
                "SUPABASE_ANON_KEY": "anon",
                "OLLAMA_URL": "http://ollama:11434",
                "EMBEDDING_MODEL": "nomic-embed-text",
                "RAG_API_URL": "http://app:8000",
                "RAG_PAGE_SIZE": "25",
                "REQUEST_TIMEOUT": "2.5",
                "GRADIO_SERVER_PORT": "8000",
                "LOG_LEVEL": "debug",
            }
        )
        assert config.supabase_key == "anon"
        assert config.embedding_model == "nomic-embed-text"
        assert config.api_url == "http://app:8000"
        assert config.page_size == 25
        assert config.request_timeout == 2.5
        assert config.server_port == 8000
        assert config.log_level == "DEBUG"

    def test_empty_values_keep_defaults(self):
        assert DashboardConfig.from_env({"EMBEDDING_MODEL": ""}).embedding_model == "bge-m3"

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            DashboardConfig.from_env({"RAG_PAGE_SIZE": "0"})
        with pytest.raises(ValidationError):
            DashboardConfig.from_env({"GRADIO_SERVER_PORT": "not-a-port"})

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DashboardConfig().page_size = 5

    def test_api_url_follows_server_port(self):
        config = DashboardConfig.from_env({"GRADIO_SERVER_PORT": "8000"})
        assert config.api_url == "http://127.0.0.1:8000"
