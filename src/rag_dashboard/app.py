"""Server entry point: the search/update API with the dashboard mounted at `/`."""

from typing import Optional

import gradio as gr
import uvicorn
from fastapi import FastAPI

from rag_dashboard.api.endpoints import RagEndpoints, build_router
from rag_dashboard.clients.database import PostgrestClient
from rag_dashboard.clients.embedding import OllamaEmbeddingClient
from rag_dashboard.clients.rag_api import RagApiClient
from rag_dashboard.clients.realtime import InMemoryRealtimeBroker
from rag_dashboard.config import DashboardConfig
from rag_dashboard.observability.logging import fields, get_logger, setup_logging
from rag_dashboard.store.rag_store import RagStore
from rag_dashboard.ui.layout import RagPageController, create_ui

logger = get_logger(__name__)


def build_app(
    config: DashboardConfig,
) -> tuple[FastAPI, RagPageController]:
    """Wires clients, store and endpoints into a FastAPI application.

    Returns:
        The FastAPI app (without the Gradio page) and the page controller.
    """
    database = PostgrestClient(
        config.supabase_url, config.supabase_key, timeout=config.request_timeout
    )
    embedder = OllamaEmbeddingClient(
        config.ollama_url,
        config.embedding_model,
        keep_alive=config.embedding_keep_alive,
        timeout=config.request_timeout,
    )
    broker = InMemoryRealtimeBroker()

    store = RagStore(
        database,
        RagApiClient(config.api_url, timeout=config.request_timeout),
        broker,
        page_size=config.page_size,
    )
    controller = RagPageController(store, database, embedding_model=config.embedding_model)

    app = FastAPI(title="RAG Dashboard")
    app.include_router(build_router(RagEndpoints(embedder, database, broker)))

    @app.get("/health")
    def health():
        state = store.state
        return {"status": "ok", "realtime": state.is_subscribed}

    return app, controller


def main(config: Optional[DashboardConfig] = None) -> None:
    config = config or DashboardConfig.from_env()
    setup_logging(config.log_level)

    app, controller = build_app(config)
    demo = create_ui(controller)
    app = gr.mount_gradio_app(app, demo, path="/")

    controller.start()
    logger.info(
        "Starting server.",
        extra=fields(host=config.server_name, port=config.server_port),
    )
    try:
        uvicorn.run(app, host=config.server_name, port=config.server_port)
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
