import pytest
from pydantic import ValidationError

from rag_dashboard.errors import (
    ComponentCycleError,
    ComponentSharedError,
    ComponentValidationError,
)
from rag_dashboard.models.component import (
    ButtonProperties,
    CardProperties,
    UIAction,
    UIComponent,
)
from rag_dashboard.models.documents import (
    DocumentRow,
    RegulationRow,
    SearchRequest,
    SearchResult,
)
from rag_dashboard.models.enums import ActionEvent, ChangeEventType, ComponentKind
from rag_dashboard.models.store_state import ChangeEvent, RagState
from rag_dashboard.models.tool_result import ToolResult


class TestUIComponent:
    def test_parses_wire_aliases(self):
        c = UIComponent.model_validate(
            {"type": "button", "props": {"text": "Go"}, "actions": None}
        )
        assert c.kind == "button"
        assert c.component_kind == ComponentKind.BUTTON
        assert c.properties == {"text": "Go"}
        assert c.actions == []
        assert c.children == []

    def test_unknown_kind_is_kept(self):
        c = UIComponent(kind="sparkle", properties={})
        assert c.kind == "sparkle"
        assert c.component_kind is None

    def test_missing_properties_is_none(self):
        assert UIComponent(kind="badge").properties is None

    def test_typed_properties(self):
        c = UIComponent(kind="button", properties={"text": "Save", "size": "sm"})
        props = c.typed_properties()
        assert isinstance(props, ButtonProperties)
        assert props.size.value == "sm"

    def test_typed_properties_unknown_kind(self):
        with pytest.raises(ComponentValidationError, match="sparkle"):
            UIComponent(kind="sparkle", properties={}).typed_properties()

    def test_typed_properties_wrong_shape(self):
        with pytest.raises(ValidationError):
            UIComponent(kind="button", properties={}).typed_properties()

    def test_find_action(self):
        c = UIComponent(
            kind="button",
            properties={"text": "x"},
            actions=[
                UIAction(event=ActionEvent.SUBMIT, tool="a"),
                UIAction(event=ActionEvent.CLICK, tool="b"),
                UIAction(event=ActionEvent.CLICK, tool="c"),
            ],
        )
        assert c.find_action(ActionEvent.CLICK).tool == "b"
        assert c.find_action(ActionEvent.CHANGE) is None

    def test_action_requires_tool(self):
        with pytest.raises(ValidationError):
            UIAction(event=ActionEvent.CLICK, tool="")


class TestComponentTree:
    def test_add_child_appends_in_order(self):
        root = UIComponent(kind="card", properties={})
        a = UIComponent(kind="badge", properties={"text": "a"})
        b = UIComponent(kind="badge", properties={"text": "b"})
        assert root.add_child(a).add_child(b) is root
        assert root.children == [a, b]

    def test_add_self_is_rejected(self):
        node = UIComponent(kind="card", properties={})
        with pytest.raises(ComponentCycleError):
            node.add_child(node)

    def test_add_ancestor_is_rejected(self):
        parent = UIComponent(kind="card", properties={})
        child = UIComponent(kind="card", properties={})
        grandchild = UIComponent(kind="card", properties={})
        parent.add_child(child)
        child.add_child(grandchild)
        with pytest.raises(ComponentCycleError):
            grandchild.add_child(parent)
        assert grandchild.children == []

    def test_shared_child_is_rejected(self):
        parent = UIComponent(kind="card", properties={})
        child = UIComponent(kind="badge", properties={"text": "x"})
        parent.add_child(child)
        with pytest.raises(ComponentSharedError, match="already in this tree"):
            parent.add_child(child)

    def test_shared_grandchild_is_rejected(self):
        root = UIComponent(kind="card", properties={})
        leaf = UIComponent(kind="badge", properties={"text": "x"})
        root.add_child(leaf)
        wrapper = UIComponent(kind="card", properties={}, children=[leaf])
        with pytest.raises(ComponentSharedError):
            root.add_child(wrapper)
        assert root.children == [leaf]

    def test_duplicate_children_are_rejected(self):
        x = UIComponent(kind="badge", properties={"text": "x"})
        with pytest.raises(ValueError, match="more than once"):
            UIComponent(kind="card", properties={}, children=[x, x])

    def test_component_property_repeated_as_child_is_rejected(self):
        x = UIComponent(kind="badge", properties={"text": "x"})
        with pytest.raises(ValueError, match="more than once"):
            UIComponent(kind="card", properties={"title": "t", "content": x}, children=[x])

    def test_node_may_appear_in_separate_trees(self):
        x = UIComponent(kind="badge", properties={"text": "x"})
        first = UIComponent(kind="card", properties={}, children=[x])
        second = UIComponent(kind="card", properties={}).add_child(x)
        assert first.children == second.children == [x]

    def test_equal_but_distinct_children_are_accepted(self):
        payload = {"kind": "badge", "properties": {"text": "x"}}
        card = UIComponent.model_validate({"kind": "card", "properties": {}, "children": [payload, payload]})
        assert len(card.children) == 2

    def test_cycle_through_assignment_is_rejected(self):
        a = UIComponent(kind="card", properties={})
        b = UIComponent(kind="card", properties={})
        b.add_child(a)
        with pytest.raises(ValueError):
            a.children = [b]

    def test_cycle_error_is_value_error(self):
        assert issubclass(ComponentCycleError, ValueError)
        assert issubclass(ComponentCycleError, ComponentValidationError)
        assert issubclass(ComponentSharedError, ValueError)
        assert issubclass(ComponentSharedError, ComponentValidationError)

    def test_nested_component_properties_count_as_descendants(self):
        inner = UIComponent(kind="badge", properties={"text": "x"})
        card = UIComponent(kind="card", properties={"title": "t", "content": inner})
        assert list(card.nested_components()) == [inner]
        with pytest.raises(ComponentCycleError):
            inner.add_child(card)


class TestPropertyModels:
    def test_card_content_accepts_text_or_component(self):
        assert CardProperties(title="t", content="hello").content == "hello"
        nested = CardProperties.model_validate(
            {"title": "t", "content": {"kind": "badge", "properties": {"text": "x"}}}
        )
        assert isinstance(nested.content, UIComponent)

    def test_camel_case_keys(self):
        from rag_dashboard.models.component import ChartProperties

        props = ChartProperties.model_validate(
            {"type": "bar", "data": [{"m": "Jan", "v": 3}], "xKey": "m", "yKey": "v"}
        )
        assert props.x_key == "m"
        assert props.y_key == "v"


class TestDocuments:
    def test_select_columns_skip_embedding(self):
        assert DocumentRow.select_columns() == "id, content, source, chunk_idx, created_at, metadata"
        assert "embedding" not in RegulationRow.select_columns()
        assert RegulationRow.select_columns().endswith("article_no")

    def test_search_result_fills_blank_source_and_similarity(self):
        r = SearchResult.model_validate({"id": 1, "content": "c", "source": None, "similarity": None})
        assert r.source == "Regulation database"
        assert r.similarity == 0.0

    def test_search_result_rejects_out_of_range_similarity(self):
        with pytest.raises(ValidationError):
            SearchResult(id=1, content="c", similarity=1.5)

    def test_search_request_defaults(self):
        req = SearchRequest(query="wire gauge")
        assert req.match_count == 5
        assert req.match_threshold == 0.0
        assert req.doc_type is None

    def test_search_request_requires_query(self):
        with pytest.raises(ValidationError):
            SearchRequest(query="")


class TestStoreModels:
    def test_state_defaults(self):
        s = RagState()
        assert s.documents == []
        assert s.is_loading is False
        assert s.is_subscribed is False
        assert s.error is None

    def test_state_is_frozen(self):
        with pytest.raises(ValidationError):
            RagState().is_loading = True

    def test_change_event_aliases_and_case(self):
        e = ChangeEvent.model_validate({"eventType": "insert", "new": {"id": 1}})
        assert e.event_type == ChangeEventType.INSERT
        e = ChangeEvent.model_validate({"type": "DELETE", "old": {"id": 1}})
        assert e.event_type == ChangeEventType.DELETE


class TestToolResult:
    def test_components_and_texts(self):
        result = ToolResult.model_validate(
            {
                "content": [
                    {"type": "text", "text": "Here is a badge"},
                    {"type": "ui", "ui": {"type": "badge", "props": {"text": "new"}}},
                    {
                        "type": "resource",
                        "resource": {"uri": "file:///a.pdf", "mimeType": "application/pdf"},
                    },
                ],
                "isError": False,
            }
        )
        components = list(result.components())
        assert [c.kind for c in components] == ["badge"]
        assert result.texts() == ["Here is a badge"]
        assert result.content[2].resource.mime_type == "application/pdf"
