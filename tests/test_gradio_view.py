from unittest.mock import MagicMock

import gradio as gr

from rag_dashboard.models.component import UIComponent
from rag_dashboard.models.enums import AlertVariant, ChartType, ComponentVariant
from rag_dashboard.ui import factory
from rag_dashboard.ui.gradio_view import GradioMounter, _markdown_for, mount_node
from rag_dashboard.ui.renderer import RenderNode, render_component


def mount(component, callback=None, **kwargs):
    with gr.Blocks():
        return mount_node(render_component(component, callback), **kwargs)


class TestMarkdownFallback:
    def test_error_placeholder(self):
        text = _markdown_for(RenderNode(element="error", text="Unknown component kind: x"))
        assert text == "**Error:** Unknown component kind: x"

    def test_badge(self):
        assert _markdown_for(RenderNode(element="badge", text="new")) == "`new`"

    def test_destructive_alert(self):
        node = RenderNode(
            element="alert",
            text="Down",
            attrs={"variant": "destructive", "description": "db refused"},
        )
        assert _markdown_for(node) == "**Error: Down**\n\ndb refused"


class TestMountNode:
    def test_button(self):
        created = mount(factory.create_button("Go", tool="t", variant=ComponentVariant.DESTRUCTIVE))
        assert len(created) == 1
        assert isinstance(created[0], gr.Button)
        assert created[0].variant == "stop"

    def test_unknown_kind(self):
        created = mount(UIComponent(kind="sparkle", properties={}))
        assert isinstance(created[0], gr.Markdown)
        assert "sparkle" in created[0].value

    def test_data_table(self):
        created = mount(
            factory.create_data_table(
                [{"key": "a", "header": "A"}, {"key": "b", "header": "B"}],
                [{"a": 1, "b": 2}, {"a": 3}],
            )
        )
        tables = [c for c in created if isinstance(c, gr.Dataframe)]
        assert len(tables) == 1

    def test_card_groups_content(self):
        created = mount(factory.create_card("Title", factory.create_badge("x")))
        assert isinstance(created[0], gr.Group)
        assert any(isinstance(c, gr.Markdown) and c.value == "`x`" for c in created)

    def test_dialog_uses_accordion(self):
        created = mount(
            factory.create_dialog("Details", factory.create_alert("Body"), factory.create_button("Open"))
        )
        assert isinstance(created[0], gr.Button)
        assert any(isinstance(c, gr.Accordion) for c in created)

    def test_form_fields(self):
        created = mount(
            factory.create_form(
                [
                    {"name": "q", "label": "Query", "required": True},
                    {"name": "n", "label": "Count", "type": "number"},
                    {
                        "name": "t",
                        "label": "Type",
                        "type": "select",
                        "options": [{"value": "reg", "label": "Regulation"}],
                    },
                ],
                submit_text="Find",
            )
        )
        kinds = [type(c) for c in created]
        assert kinds == [gr.Group, gr.Textbox, gr.Number, gr.Dropdown, gr.Button]
        assert created[1].label == "Query *"
        assert created[-1].value == "Find"

    def test_charts(self):
        data = [{"m": "Jan", "v": 1}, {"m": "Feb", "v": 2}]
        bar = mount(factory.create_chart(ChartType.PIE, data, "m", "v"))
        line = mount(factory.create_chart(ChartType.LINE, data, "m", "v"))
        assert isinstance(bar[0], gr.BarPlot)
        assert isinstance(line[0], gr.LinePlot)

    def test_alert_and_toast(self):
        created = mount(factory.create_toast("Saved", variant=AlertVariant.DEFAULT))
        assert created[0].value == "**Saved**"


class TestMounterRefresh:
    def test_after_returns_refresh_value(self):
        refresh = MagicMock(return_value=[{"tool": "t"}])
        mounter = GradioMounter(outputs=[MagicMock()], refresh=refresh)
        assert mounter._after() == [{"tool": "t"}]

    def test_after_without_outputs(self):
        refresh = MagicMock()
        assert GradioMounter(refresh=refresh)._after() is None
        refresh.assert_not_called()
