"""UI layout and event handling for the RAG dashboard.

This module defines the search-and-edit page: the controller that turns
user interactions into store actions, and the Gradio layout that wires the
controller to components.
"""

import json
from collections.abc import Mapping
from typing import Any, Callable, Optional

import gradio as gr
from gradio.themes.base import Base

from ..clients.database import DatabaseClient
from ..errors import DashboardError
from ..models.component import UIComponent
from ..models.documents import SearchResult
from ..models.enums import TrackedTable
from ..observability.logging import fields, get_logger
from ..store.rag_store import RagStore
from .gradio_view import mount_node
from .renderer import render_component
from .theme import DashboardTheme
from .validation import load_components

logger = get_logger(__name__)

SEARCH_LIMIT = 5
MATERIALS_LIMIT = 10
ACTION_LOG_SIZE = 20

RESULT_HEADERS = ["Similarity", "Source", "Article", "Content"]
DOCUMENT_HEADERS = ["ID", "Source", "Chunk", "Content", "Created"]
REGULATION_HEADERS = ["ID", "Source", "Article", "Chunk", "Content", "Created"]
MATERIAL_HEADERS = ["Name", "Unit", "Price", "Spec"]


def format_answer(results: list[SearchResult]) -> str:
    """Summarises the top search result as an answer paragraph."""
    if not results:
        return "No relevant results found; try different keywords."
    top = results[0]
    article = f" {top.article_no}" if top.article_no else ""
    return (
        f"Based on the search results, {top.content}\n\n"
        f"(Source: {top.source}{article}, similarity {top.similarity * 100:.0f}%)"
    )


def _truncate(text: Any, limit: int = 160) -> str:
    text = "" if text is None else str(text)
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _limit(tool: str, value: Any) -> int:
    if value is None:
        return SEARCH_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError, OverflowError):
        limit = 0
    if limit < 1:
        logger.warning("Ignoring search limit.", extra=fields(tool=tool, limit=value))
        return SEARCH_LIMIT
    return limit


def _banner(message: Optional[str]) -> dict[str, Any]:
    if not message:
        return gr.update(value="", visible=False)
    return gr.update(value=f"**Error:** {message}", visible=True)


class RagPageController:
    """Translates page interactions into store actions and view values."""

    def __init__(
        self,
        store: RagStore,
        database: DatabaseClient,
        embedding_model: str = "bge-m3",
    ):
        self.store = store
        self.database = database
        self.embedding_model = embedding_model
        self.action_log: list[dict[str, Any]] = []
        self._teardown: Optional[Callable[[], None]] = None

    # -------------------- lifecycle --------------------

    def start(self) -> None:
        """Subscribes to realtime changes and loads both tables."""
        self._teardown = self.store.subscribe()
        self.store.refresh()

    def stop(self) -> None:
        if self._teardown is not None:
            self._teardown()
            self._teardown = None

    # -------------------- view values --------------------

    def result_rows(self) -> list[list[str]]:
        return [
            [
                f"{r.similarity * 100:.0f}%",
                r.source,
                r.article_no or "",
                _truncate(r.content),
            ]
            for r in self.store.state.search_results
        ]

    def document_rows(self) -> list[list[str]]:
        return [
            [
                str(row.get("id", "")),
                row.get("source") or "",
                str(row.get("chunk_idx", "")),
                _truncate(row.get("content")),
                str(row.get("created_at") or ""),
            ]
            for row in self.store.state.documents
        ]

    def regulation_rows(self) -> list[list[str]]:
        return [
            [
                str(row.get("id", "")),
                row.get("source") or "",
                row.get("article_no") or "",
                str(row.get("chunk_idx", "")),
                _truncate(row.get("content")),
                str(row.get("created_at") or ""),
            ]
            for row in self.store.state.regulations
        ]

    def status_markdown(self) -> str:
        state = self.store.state
        realtime = "live" if state.is_subscribed else "offline"
        loading = " · loading…" if state.is_loading else ""
        return (
            f"**Realtime:** {realtime} · **Documents:** {len(state.documents)} · "
            f"**Regulations:** {len(state.regulations)}{loading}"
        )

    # -------------------- handlers --------------------

    def load_overview(self):
        """Loads corpus statistics and the first materials."""
        try:
            regulation_count = self.database.count(TrackedTable.REGULATIONS.value)
            materials = self.database.select("materials", "*", limit=MATERIALS_LIMIT)
        except DashboardError as e:
            logger.warning("Overview load failed.", extra=fields(error=str(e)))
            return (
                self._stats_markdown(0, 0),
                [],
                "**Database:** disconnected",
                _banner(
                    "Unable to connect to the database; check that the service is running. "
                    f"({e})"
                ),
            )

        material_rows = [
            [m.get("name", ""), m.get("unit", ""), str(m.get("price", "")), m.get("spec") or ""]
            for m in materials
        ]
        return (
            self._stats_markdown(regulation_count, len(materials)),
            material_rows,
            "**Database:** connected",
            _banner(None),
        )

    def _stats_markdown(self, regulations: int, materials: int) -> str:
        return (
            f"**Regulation chunks:** {regulations} · **Materials:** {materials} · "
            f"**Embedding model:** {self.embedding_model}"
        )

    def on_search(self, query: str):
        """Runs a search; returns (result rows, answer, banner)."""
        if not query or not query.strip():
            return self.result_rows(), gr.update(), _banner(None)

        self.store.search_documents(query.strip(), limit=SEARCH_LIMIT)
        state = self.store.state
        if state.error:
            return (
                [],
                "",
                _banner(
                    f"Search failed: {state.error}. Check that the embedding server is "
                    f"running and the {self.embedding_model} model is installed."
                ),
            )
        return self.result_rows(), format_answer(state.search_results), _banner(None)

    def on_select_result(self, evt: gr.SelectData):
        """Opens the editor on the clicked result row."""
        row = evt.index[0] if isinstance(evt.index, (list, tuple)) else evt.index
        results = self.store.state.search_results
        if row is None or not 0 <= row < len(results):
            return None, gr.update(), gr.update(visible=False), ""
        selected = results[row]
        return selected.id, gr.update(value=selected.content), gr.update(visible=True), ""

    def on_save_edit(self, record_id: Any, content: str):
        """Saves the edited content; returns (message, result rows, answer)."""
        if record_id is None or not content or not content.strip():
            return "Nothing to save.", self.result_rows(), gr.update()

        response = self.store.update_regulation(record_id, content)
        if response is None:
            return (
                f"Save failed: {self.store.state.error}",
                self.result_rows(),
                gr.update(),
            )
        return (
            "Saved. The embedding vector was regenerated."
            if response.embedding_regenerated
            else "Saved.",
            self.result_rows(),
            format_answer(self.store.state.search_results),
        )

    def on_cancel_edit(self):
        return None, gr.update(value=""), gr.update(visible=False), ""

    def refresh_tables(self):
        return self.document_rows(), self.regulation_rows(), self.status_markdown()

    def on_reload(self):
        self.store.refresh()
        return self.refresh_tables()

    def preview_component(self, text: str):
        """Validates a component or tool result JSON for the preview panel.

        Returns:
            (validation markdown, list of component payloads to render).
        """
        if not text or not text.strip():
            return "", []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            return f"**Invalid JSON:** {e}", []

        components, result = load_components(payload, strict=True)
        if not result.valid:
            return "**Invalid component:**\n" + "\n".join(f"- {e}" for e in result.errors), []
        return (
            f"Valid: {len(components)} component(s).",
            [c.model_dump(mode="json") for c in components],
        )

    def dispatch_action(self, tool: str, params: dict[str, Any]) -> None:
        """Handles an action fired by a rendered component.

        Params come from tool-generated components, so malformed values are
        logged and ignored rather than raised into the event handler.
        """
        self.action_log = (self.action_log + [{"tool": tool, "params": params}])[-ACTION_LOG_SIZE:]
        logger.info("Dispatching UI action.", extra=fields(tool=tool))

        if not isinstance(params, Mapping):
            logger.warning("Ignoring action params.", extra=fields(tool=tool, params=params))
            params = {}
        form_data = params.get("formData")
        if form_data is not None and not isinstance(form_data, Mapping):
            logger.warning("Ignoring formData.", extra=fields(tool=tool, form_data=form_data))
            form_data = None
        form_data = form_data or {}

        if tool == "rag.search":
            query = params.get("query") or form_data.get("query")
            if query:
                self.store.search_documents(str(query), limit=_limit(tool, params.get("limit")))
        elif tool == "rag.refresh":
            self.store.refresh()
        elif tool == "rag.reset":
            self.store.reset()

    def action_log_value(self) -> list[dict[str, Any]]:
        return list(self.action_log)


def create_ui(controller: RagPageController, theme: Optional[Base] = None) -> gr.Blocks:
    """Constructs the Gradio page and sets up event handlers.

    Args:
        controller: The page controller.
        theme: Optional theme; defaults to DashboardTheme.

    Returns:
        A gr.Blocks object containing the application layout.
    """
    with gr.Blocks(title="RAG Knowledge Base", theme=theme or DashboardTheme()) as demo:
        selected_id = gr.State(None)
        preview_state = gr.State([])

        with gr.Row():
            gr.Markdown("## RAG Knowledge Base Search\nSearch regulations and materials.")
            connection = gr.Markdown("**Database:** connecting…")

        banner = gr.Markdown(visible=False, elem_classes=["error-banner"])
        stats = gr.Markdown()

        with gr.Tabs():
            with gr.Tab("Search"):
                with gr.Row():
                    query = gr.Textbox(
                        placeholder="e.g. minimum wire gauge for a 20A branch circuit",
                        show_label=False,
                        scale=4,
                    )
                    search_btn = gr.Button("Search", variant="primary", scale=1)
                answer = gr.Markdown()
                results = gr.Dataframe(
                    headers=RESULT_HEADERS, interactive=False, wrap=True, label="Results"
                )

                with gr.Group(visible=False) as editor:
                    gr.Markdown("### Edit content\nSaving regenerates the embedding vector.")
                    edit_content = gr.Textbox(lines=8, show_label=False)
                    with gr.Row():
                        save_btn = gr.Button("Save", variant="primary")
                        cancel_btn = gr.Button("Cancel", variant="secondary")
                    save_msg = gr.Markdown()

            with gr.Tab("Corpus"):
                status = gr.Markdown()
                reload_btn = gr.Button("Reload", variant="secondary")
                with gr.Tabs():
                    with gr.Tab("Regulations"):
                        regulations = gr.Dataframe(headers=REGULATION_HEADERS, interactive=False)
                    with gr.Tab("Documents"):
                        documents = gr.Dataframe(headers=DOCUMENT_HEADERS, interactive=False)
                    with gr.Tab("Materials"):
                        materials = gr.Dataframe(headers=MATERIAL_HEADERS, interactive=False)

            with gr.Tab("Component Preview"):
                with gr.Row():
                    with gr.Column(scale=1):
                        preview_input = gr.Code(language="json", label="Component or tool result")
                        preview_btn = gr.Button("Render", variant="primary")
                        preview_msg = gr.Markdown()
                        action_log = gr.JSON(label="Action log")
                    with gr.Column(scale=1):

                        @gr.render(inputs=[preview_state])
                        def show_preview(payloads):
                            for payload in payloads or []:
                                node = render_component(
                                    UIComponent.model_validate(payload),
                                    controller.dispatch_action,
                                )
                                mount_node(
                                    node,
                                    outputs=[action_log],
                                    refresh=controller.action_log_value,
                                )

        # --- Event Handlers ---

        demo.load(
            controller.load_overview,
            inputs=None,
            outputs=[stats, materials, connection, banner],
        )
        demo.load(
            controller.refresh_tables,
            inputs=None,
            outputs=[documents, regulations, status],
        )

        for trigger in (search_btn.click, query.submit):
            trigger(
                controller.on_search,
                inputs=[query],
                outputs=[results, answer, banner],
            )

        results.select(
            controller.on_select_result,
            inputs=None,
            outputs=[selected_id, edit_content, editor, save_msg],
        )
        save_btn.click(
            controller.on_save_edit,
            inputs=[selected_id, edit_content],
            outputs=[save_msg, results, answer],
        )
        cancel_btn.click(
            controller.on_cancel_edit,
            inputs=None,
            outputs=[selected_id, edit_content, editor, save_msg],
        )
        reload_btn.click(
            controller.on_reload,
            inputs=None,
            outputs=[documents, regulations, status],
        )
        preview_btn.click(
            controller.preview_component,
            inputs=[preview_input],
            outputs=[preview_msg, preview_state],
        )

        timer = gr.Timer(2.0)
        timer.tick(
            controller.refresh_tables,
            inputs=None,
            outputs=[documents, regulations, status],
        )

    return demo
