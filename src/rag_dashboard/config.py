"""Runtime configuration for the RAG dashboard.

Values are read from environment variables once at start-up and frozen.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

API_URL_ENV = "RAG_API_URL"


def local_api_url(port: int) -> str:
    """Endpoint base URL of a server listening on this host."""
    return f"http://127.0.0.1:{port}"


class DashboardConfig(BaseModel):
    """
    Static configuration shared by the clients, the store and the server.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    supabase_url: str = Field(
        default="http://127.0.0.1:54321",
        description="Base URL of the database gateway.",
    )
    supabase_key: str = Field(
        default="",
        description="Anonymous API key sent as `apikey` and bearer token.",
    )
    ollama_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the embedding model server.",
    )
    embedding_model: str = Field(
        default="bge-m3", description="Embedding model name."
    )
    embedding_keep_alive: str = Field(
        default="5m",
        description="How long the model server keeps the model loaded.",
    )
    api_url: str = Field(
        default="http://127.0.0.1:7860",
        description="Base URL of the search/update endpoints.",
    )
    page_size: int = Field(
        default=100,
        ge=1,
        description="Maximum rows loaded per table fetch.",
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout in seconds."
    )
    server_name: str = Field(
        default="0.0.0.0", description="Interface the web server binds to."
    )
    server_port: int = Field(
        default=7860, ge=1, le=65535, description="Web server port."
    )
    log_level: str = Field(default="INFO", description="Root log level.")

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "DashboardConfig":
        """Builds a configuration from environment variables.

        Args:
            environ: Optional mapping to read instead of `os.environ`.

        Returns:
            A frozen DashboardConfig. Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        mapping = {
            "supabase_url": "SUPABASE_URL",
            "supabase_key": "SUPABASE_ANON_KEY",
            "ollama_url": "OLLAMA_URL",
            "embedding_model": "EMBEDDING_MODEL",
            "embedding_keep_alive": "EMBEDDING_KEEP_ALIVE",
            "api_url": API_URL_ENV,
            "page_size": "RAG_PAGE_SIZE",
            "request_timeout": "REQUEST_TIMEOUT",
            "server_name": "GRADIO_SERVER_NAME",
            "server_port": "GRADIO_SERVER_PORT",
            "log_level": "LOG_LEVEL",
        }
        values = {
            field: env[var] for field, var in mapping.items() if env.get(var)
        }
        if "log_level" in values:
            values["log_level"] = values["log_level"].upper()
        if "api_url" not in values and "server_port" in values:
            values["api_url"] = local_api_url(values["server_port"])
        return cls(**values)
