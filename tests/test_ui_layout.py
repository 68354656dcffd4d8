import json
from unittest.mock import MagicMock

import gradio as gr
import pytest

from rag_dashboard.clients.realtime import InMemoryRealtimeBroker
from rag_dashboard.errors import NetworkError
from rag_dashboard.models.documents import SearchResponse, SearchResult, UpdateResponse
from rag_dashboard.store.rag_store import RagStore
from rag_dashboard.ui import factory
from rag_dashboard.ui.layout import (
    ACTION_LOG_SIZE,
    RagPageController,
    create_ui,
    format_answer,
)
from rag_dashboard.ui.theme import DashboardTheme


def search_response(*rows):
    return SearchResponse(success=True, data=list(rows), query="q", embedding_dimension=3)


class TestFormatAnswer:
    def test_no_results(self):
        assert format_answer([]).startswith("No relevant results found")

    def test_top_result(self):
        text = format_answer(
            [
                SearchResult(id=1, content="Use 12 AWG.", source="NEC", article_no="210.19", similarity=0.873),
                SearchResult(id=2, content="other", similarity=0.5),
            ]
        )
        assert "Use 12 AWG." in text
        assert "Source: NEC 210.19" in text
        assert "similarity 87%" in text
        assert "other" not in text


class TestRagPageController:
    @pytest.fixture
    def setup(self):
        database = MagicMock()
        database.select.return_value = []
        api = MagicMock()
        broker = InMemoryRealtimeBroker()
        store = RagStore(database, api, broker)
        controller = RagPageController(store, database, embedding_model="bge-m3")
        return controller, store, database, api, broker

    def test_start_and_stop(self, setup):
        controller, store, database, _, broker = setup
        database.select.return_value = [{"id": 1, "content": "a"}]
        controller.start()
        assert store.state.is_subscribed is True
        assert store.state.documents == [{"id": 1, "content": "a"}]
        assert len(broker.channels("regulations")) == 1

        controller.stop()
        controller.stop()
        assert store.state.is_subscribed is False
        assert broker.channels("regulations") == []

    def test_load_overview(self, setup):
        controller, _, database, _, _ = setup
        database.count.return_value = 42
        database.select.return_value = [{"name": "Cable", "unit": "m", "price": 2.5}]
        stats, materials, connection, banner = controller.load_overview()

        assert "**Regulation chunks:** 42" in stats
        assert materials == [["Cable", "m", "2.5", ""]]
        assert connection == "**Database:** connected"
        assert banner["visible"] is False
        database.select.assert_called_once_with("materials", "*", limit=10)

    def test_load_overview_failure(self, setup):
        controller, _, database, _, _ = setup
        database.count.side_effect = NetworkError("connection refused")
        _, materials, connection, banner = controller.load_overview()
        assert materials == []
        assert connection == "**Database:** disconnected"
        assert banner["visible"] is True
        assert "Unable to connect to the database" in banner["value"]
        assert "connection refused" in banner["value"]

    def test_search(self, setup):
        controller, _, _, api, _ = setup
        api.search.return_value = search_response(
            {"id": 1, "content": "Use 12 AWG.", "source": "NEC", "article_no": "210.19", "similarity": 0.9}
        )
        rows, answer, banner = controller.on_search("  wire gauge ")
        api.search.assert_called_once_with("wire gauge", match_count=5)
        assert rows == [["90%", "NEC", "210.19", "Use 12 AWG."]]
        assert "Use 12 AWG." in answer
        assert banner["visible"] is False

    def test_search_failure_banner(self, setup):
        controller, _, _, api, _ = setup
        api.search.side_effect = NetworkError("embedding service unreachable")
        rows, answer, banner = controller.on_search("q")
        assert rows == []
        assert banner["visible"] is True
        assert "Search failed: embedding service unreachable" in banner["value"]
        assert "bge-m3" in banner["value"]

    def test_blank_search_is_ignored(self, setup):
        controller, _, _, api, _ = setup
        controller.on_search("   ")
        api.search.assert_not_called()

    def test_select_and_save(self, setup):
        controller, store, _, api, _ = setup
        api.search.return_value = search_response(
            {"id": "a", "content": "first"}, {"id": "b", "content": "second"}
        )
        controller.on_search("q")

        evt = MagicMock()
        evt.index = [1, 3]
        selected, content, editor, message = controller.on_select_result(evt)
        assert selected == "b"
        assert content["value"] == "second"
        assert editor["visible"] is True

        api.update.return_value = UpdateResponse(
            success=True, data={"id": "b", "content": "edited"}, embedding_regenerated=True
        )
        message, rows, _ = controller.on_save_edit("b", "edited")
        assert "regenerated" in message
        assert rows[1][3] == "edited"
        assert store.state.search_results[1].content == "edited"

    def test_select_out_of_range(self, setup):
        controller, _, _, _, _ = setup
        evt = MagicMock()
        evt.index = [4, 0]
        selected, _, editor, _ = controller.on_select_result(evt)
        assert selected is None
        assert editor["visible"] is False

    def test_save_failure(self, setup):
        controller, _, _, api, _ = setup
        api.update.side_effect = NetworkError("Update failed: timeout")
        message, _, _ = controller.on_save_edit("b", "edited")
        assert message == "Save failed: Update failed: timeout"

    def test_save_without_content(self, setup):
        controller, _, _, api, _ = setup
        message, _, _ = controller.on_save_edit("b", "  ")
        assert message == "Nothing to save."
        api.update.assert_not_called()

    def test_refresh_tables_reflects_realtime(self, setup):
        controller, store, _, _, broker = setup
        store.subscribe()
        broker.publish(
            "regulations",
            {"eventType": "INSERT", "new": {"id": 7, "source": "NEC", "article_no": "110.3", "content": "x"}},
        )
        documents, regulations, status = controller.refresh_tables()
        assert documents == []
        assert regulations == [["7", "NEC", "110.3", "", "x", ""]]
        assert "**Realtime:** live" in status

    def test_preview_component(self, setup):
        controller, _, _, _, _ = setup
        text = json.dumps(factory.create_badge("new").model_dump(mode="json"))
        message, payloads = controller.preview_component(text)
        assert message.startswith("Valid: 1")
        assert payloads[0]["kind"] == "badge"

    def test_preview_tool_result(self, setup):
        controller, _, _, _, _ = setup
        text = json.dumps({"content": [{"type": "ui", "ui": {"type": "alert", "props": {"title": "t"}}}]})
        message, payloads = controller.preview_component(text)
        assert payloads[0]["kind"] == "alert"

    def test_preview_invalid(self, setup):
        controller, _, _, _, _ = setup
        message, payloads = controller.preview_component('{"kind": "sparkle", "properties": {}}')
        assert "invalid component kind: sparkle" in message
        assert payloads == []

        message, payloads = controller.preview_component("{not json")
        assert message.startswith("**Invalid JSON:**")
        assert payloads == []

    def test_dispatch_search_from_form(self, setup):
        controller, store, _, api, _ = setup
        api.search.return_value = search_response()
        controller.dispatch_action("rag.search", {"formData": {"query": "breaker"}})
        api.search.assert_called_once_with("breaker", match_count=5)
        assert store.state.last_query == "breaker"
        assert controller.action_log_value() == [
            {"tool": "rag.search", "params": {"formData": {"query": "breaker"}}}
        ]

    def test_dispatch_refresh_and_unknown(self, setup):
        controller, _, database, api, _ = setup
        controller.dispatch_action("rag.refresh", {})
        assert database.select.call_count == 2
        controller.dispatch_action("weather.lookup", {"city": "Oslo"})
        api.search.assert_not_called()
        assert controller.action_log_value()[-1]["tool"] == "weather.lookup"

    def test_dispatch_ignores_non_mapping_form_data(self, setup):
        controller, _, _, api, _ = setup
        controller.dispatch_action("rag.search", {"formData": "ignored"})
        api.search.assert_not_called()
        assert controller.action_log_value()[-1]["params"] == {"formData": "ignored"}

    def test_dispatch_ignores_non_mapping_params(self, setup):
        controller, _, _, api, _ = setup
        controller.dispatch_action("rag.search", ["q"])
        api.search.assert_not_called()

    @pytest.mark.parametrize("limit", ["ten", None, 0, -3, [5]])
    def test_dispatch_malformed_limit_uses_default(self, setup, limit):
        controller, _, _, api, _ = setup
        api.search.return_value = search_response()
        controller.dispatch_action("rag.search", {"query": "q", "limit": limit})
        api.search.assert_called_once_with("q", match_count=5)

    def test_dispatch_numeric_string_limit(self, setup):
        controller, _, _, api, _ = setup
        api.search.return_value = search_response()
        controller.dispatch_action("rag.search", {"query": "q", "limit": "3"})
        api.search.assert_called_once_with("q", match_count=3)

    def test_action_log_is_bounded(self, setup):
        controller, _, _, _, _ = setup
        for i in range(ACTION_LOG_SIZE + 5):
            controller.dispatch_action("noop", {"i": i})
        log = controller.action_log_value()
        assert len(log) == ACTION_LOG_SIZE
        assert log[-1]["params"] == {"i": ACTION_LOG_SIZE + 4}


def test_create_ui():
    database = MagicMock()
    store = RagStore(database, MagicMock(), InMemoryRealtimeBroker())
    demo = create_ui(RagPageController(store, database))
    assert isinstance(demo, gr.Blocks)
    assert isinstance(demo.theme, DashboardTheme)
