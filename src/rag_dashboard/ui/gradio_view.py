"""Mounting of rendered component trees as Gradio components.

`mount_node` must be called inside a `gr.Blocks` (or `gr.render`) context.
Event listeners call back into the RenderNode handlers and then refresh the
given outputs, so an action's side effects show up on the page.
"""

from typing import Any, Callable, Optional

import gradio as gr
import pandas as pd

from .renderer import RenderNode

Refresh = Callable[[], Any]


def _markdown_for(node: RenderNode) -> str:
    if node.element == "error":
        return f"**Error:** {node.text}"
    if node.element == "badge":
        return f"`{node.text}`"
    if node.element in ("alert", "toast"):
        prefix = "Error: " if node.attrs.get("variant") == "destructive" else ""
        text = f"**{prefix}{node.text}**"
        if node.attrs.get("description"):
            text += f"\n\n{node.attrs['description']}"
        return text
    return node.text


def _button_variant(node: RenderNode) -> str:
    variant = node.attrs.get("variant")
    if variant == "destructive":
        return "stop"
    if variant in ("secondary", "outline", "ghost", "link"):
        return "secondary"
    return "primary"


def _button_size(node: RenderNode) -> str:
    return {"sm": "sm", "lg": "lg"}.get(node.attrs.get("size"), "md")


class GradioMounter:
    """Creates Gradio components for a RenderNode tree.

    Args:
        outputs: Components refreshed after every fired event.
        refresh: Returns the new values of `outputs`.
    """

    def __init__(
        self,
        outputs: Optional[list[gr.components.Component]] = None,
        refresh: Optional[Refresh] = None,
    ) -> None:
        self.outputs = outputs or []
        self.refresh = refresh
        self.created: list[Any] = []

    def _after(self) -> Any:
        if self.refresh is None or not self.outputs:
            return None
        return self.refresh()

    def _track(self, component: Any) -> Any:
        self.created.append(component)
        return component

    def mount(self, node: RenderNode) -> Any:
        """Mounts `node` and its children; returns the main component created."""
        mount_fn = getattr(self, f"_mount_{node.element.replace('-', '_')}", None)
        if mount_fn is None:
            component = self._track(
                gr.Markdown(_markdown_for(node), elem_classes=[f"ui-{node.element}"])
            )
            self._mount_children(node)
            return component
        return mount_fn(node)

    def _mount_children(self, node: RenderNode, skip_slots: bool = False) -> None:
        for child in node.children:
            if skip_slots and child.slot is not None:
                continue
            self.mount(child)

    def _mount_text(self, node: RenderNode) -> Any:
        return self._track(gr.Markdown(node.text))

    def _mount_button(self, node: RenderNode) -> Any:
        button = self._track(
            gr.Button(node.text, variant=_button_variant(node), size=_button_size(node))
        )

        def on_click():
            node.trigger("click")
            return self._after()

        button.click(on_click, inputs=None, outputs=self.outputs or None)
        self._mount_children(node)
        return button

    def _mount_card(self, node: RenderNode) -> Any:
        with gr.Group(elem_classes=["ui-card"]) as group:
            self._track(group)
            header = f"### {node.attrs.get('title', '')}"
            if node.attrs.get("description"):
                header += f"\n{node.attrs['description']}"
            self._track(gr.Markdown(header))
            content = node.child("content")
            if content is not None:
                self.mount(content)
            footer = node.child("footer")
            if footer is not None:
                self.mount(footer)
            self._mount_children(node, skip_slots=True)
        return group

    def _mount_data_table(self, node: RenderNode) -> Any:
        headers = [cell.text for cell in node.find_all("header-cell")]
        rows = [[cell.text for cell in row.children] for row in node.children if row.element == "row"]
        table = self._track(
            gr.Dataframe(
                value=rows,
                headers=headers,
                interactive=False,
                wrap=True,
                elem_classes=["ui-data-table"],
            )
        )
        for child in node.children:
            if child.element not in ("header", "row"):
                self.mount(child)
        return table

    def _mount_dialog(self, node: RenderNode) -> Any:
        trigger = node.child("trigger")
        opener = self.mount(trigger) if trigger is not None else None
        with gr.Accordion(node.attrs.get("title", ""), open=False) as panel:
            self._track(panel)
            if node.attrs.get("description"):
                self._track(gr.Markdown(node.attrs["description"]))
            content = node.child("content")
            if content is not None:
                self.mount(content)
            self._mount_children(node, skip_slots=True)
        if isinstance(opener, gr.Button):
            opener.click(lambda: gr.Accordion(open=True), inputs=None, outputs=[panel])
        return panel

    def _mount_form(self, node: RenderNode) -> Any:
        field_nodes = [child for child in node.children if child.element == "field"]
        names = [f.attrs["name"] for f in field_nodes]
        with gr.Group(elem_classes=["ui-form"]) as group:
            self._track(group)
            inputs = [self._mount_field(f) for f in field_nodes]
            submit_node = next((c for c in node.children if c.element == "submit"), None)
            submit = self._track(
                gr.Button(submit_node.text if submit_node else "Submit", variant="primary")
            )

        def on_submit(*values):
            node.trigger("submit", dict(zip(names, values)))
            return self._after()

        submit.click(on_submit, inputs=inputs, outputs=self.outputs or None)
        for child in node.children:
            if child.element not in ("field", "submit"):
                self.mount(child)
        return group

    def _mount_field(self, node: RenderNode) -> Any:
        label = node.text + (" *" if node.attrs.get("required") else "")
        field_type = node.attrs.get("type", "text")
        placeholder = node.attrs.get("placeholder")
        if field_type == "number":
            validation = node.attrs.get("validation") or {}
            return self._track(
                gr.Number(label=label, minimum=validation.get("min"), maximum=validation.get("max"))
            )
        if field_type == "select":
            return self._track(gr.Dropdown(choices=node.attrs.get("options") or [], label=label))
        if field_type == "textarea":
            return self._track(gr.Textbox(label=label, placeholder=placeholder, lines=4))
        textbox_type = field_type if field_type in ("password", "email") else "text"
        return self._track(gr.Textbox(label=label, placeholder=placeholder, type=textbox_type))

    def _mount_input(self, node: RenderNode) -> Any:
        input_type = node.attrs.get("type")
        textbox = self._track(
            gr.Textbox(
                value=node.text,
                placeholder=node.attrs.get("placeholder"),
                type=input_type if input_type in ("password", "email") else "text",
                show_label=False,
            )
        )
        if "change" in node.handlers:

            def on_change(value):
                node.trigger("change", value)
                return self._after()

            textbox.change(on_change, inputs=[textbox], outputs=self.outputs or None)
        self._mount_children(node)
        return textbox

    def _mount_chart(self, node: RenderNode) -> Any:
        frame = pd.DataFrame(node.attrs.get("data") or [])
        kwargs = {
            "value": frame,
            "x": node.attrs["x_key"],
            "y": node.attrs["y_key"],
            "title": node.text or None,
        }
        if node.attrs.get("type") in ("bar", "pie"):
            plot = gr.BarPlot(**kwargs)
        else:
            plot = gr.LinePlot(**kwargs)
        self._track(plot)
        self._mount_children(node)
        return plot


def mount_node(
    node: RenderNode,
    outputs: Optional[list[gr.components.Component]] = None,
    refresh: Optional[Refresh] = None,
) -> list[Any]:
    """Mounts a rendered tree in the current Gradio context.

    Returns:
        Every Gradio component and layout block created, in creation order.
    """
    mounter = GradioMounter(outputs=outputs, refresh=refresh)
    mounter.mount(node)
    return mounter.created
