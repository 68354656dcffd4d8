"""Rendering of UI component trees.

`render_component` turns a UIComponent into a framework-neutral
`RenderNode` tree with its event handlers already bound to the action
callback. `ui.gradio_view` mounts such a tree as Gradio components; tests
drive the handlers directly.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from ..models.component import (
    AlertProperties,
    BadgeProperties,
    ButtonProperties,
    CardProperties,
    ChartProperties,
    DataTableProperties,
    DialogProperties,
    FormProperties,
    InputProperties,
    ToastProperties,
    UIComponent,
)
from ..models.enums import ActionEvent, ComponentKind, ComponentVariant
from ..observability.logging import fields, get_logger

logger = get_logger(__name__)

ActionCallback = Callable[[str, dict[str, Any]], None]


@dataclass
class RenderNode:
    """One element of rendered output.

    Attributes:
        element: Element name, e.g. "button", "row", "cell", "error".
        text: Text content of the element.
        attrs: Presentation attributes (title, variant, size, ...).
        children: Nested elements in display order.
        handlers: Event name to bound handler.
        slot: Role of the element inside its parent ("content", "trigger", ...).
    """

    element: str
    text: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)
    children: list["RenderNode"] = field(default_factory=list)
    handlers: dict[str, Callable[..., None]] = field(default_factory=dict)
    slot: Optional[str] = None

    def trigger(self, event: str, *args: Any) -> None:
        """Fires a bound handler; events without a handler are ignored."""
        handler = self.handlers.get(event)
        if handler is not None:
            handler(*args)

    def walk(self) -> Iterator["RenderNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find_all(self, element: str) -> list["RenderNode"]:
        return [node for node in self.walk() if node.element == element]

    def child(self, slot: str) -> Optional["RenderNode"]:
        for node in self.children:
            if node.slot == slot:
                return node
        return None


def log_action(tool: str, params: dict[str, Any]) -> None:
    """Fallback action sink used when no callback is supplied."""
    logger.info("UI action.", extra=fields(tool=tool, params=params))


def render_component(
    component: UIComponent, on_action: Optional[ActionCallback] = None
) -> RenderNode:
    """Renders a component tree.

    Unknown kinds render as a visible "error" placeholder. A tree whose
    properties do not fit its kind raises pydantic.ValidationError; run
    validation first for untrusted input.

    Args:
        component: Root of the tree.
        on_action: Called with `(tool, params)` when a bound event fires.
            Defaults to a logging sink.

    Returns:
        The root RenderNode.
    """
    callback = on_action or log_action
    kind = component.component_kind
    if kind is None:
        return RenderNode(
            element="error",
            text=f"Unknown component kind: {component.kind}",
            attrs={"variant": ComponentVariant.DESTRUCTIVE.value},
        )

    node = _RENDERERS[kind](component, callback)
    node.attrs.setdefault(
        "variant", (component.variant or ComponentVariant.DEFAULT).value
    )
    node.children.extend(render_component(child, callback) for child in component.children)
    return node


def _render_slot(
    value: Union[str, UIComponent], slot: str, callback: ActionCallback
) -> RenderNode:
    if isinstance(value, UIComponent):
        node = render_component(value, callback)
    else:
        node = RenderNode(element="text", text=value)
    node.slot = slot
    return node


def _render_button(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = ButtonProperties.model_validate(component.properties or {})
    click = component.find_action(ActionEvent.CLICK)

    node = RenderNode(element="button", text=props.text, attrs={"size": props.size.value})
    if click is not None:
        node.handlers["click"] = lambda: callback(click.tool, dict(click.params))
    return node


def _render_card(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = CardProperties.model_validate(component.properties or {})
    node = RenderNode(
        element="card",
        attrs={"title": props.title, "description": props.description},
    )
    node.children.append(_render_slot(props.content, "content", callback))
    if props.footer:
        node.children.append(_render_slot(props.footer, "footer", callback))
    return node


def _cell_text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def _render_data_table(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = DataTableProperties.model_validate(component.properties or {})
    header = RenderNode(
        element="header",
        children=[
            RenderNode(
                element="header-cell",
                text=col.header,
                attrs={
                    "key": col.key,
                    "width": col.width,
                    "sortable": col.sortable,
                    "type": col.type.value if col.type else None,
                },
            )
            for col in props.columns
        ],
    )
    rows = [
        RenderNode(
            element="row",
            children=[
                RenderNode(element="cell", text=_cell_text(row, col.key), attrs={"key": col.key})
                for col in props.columns
            ],
        )
        for row in props.data
    ]
    return RenderNode(
        element="data-table",
        attrs={
            "pagination": props.pagination,
            "page_size": props.page_size,
            "searchable": props.searchable,
            "search_column": props.search_column,
        },
        children=[header, *rows],
    )


def _render_dialog(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = DialogProperties.model_validate(component.properties or {})
    return RenderNode(
        element="dialog",
        attrs={
            "title": props.title,
            "description": props.description,
            "confirm_text": props.confirm_text,
            "cancel_text": props.cancel_text,
        },
        children=[
            _render_slot(props.trigger, "trigger", callback),
            _render_slot(props.content, "content", callback),
        ],
    )


def _render_form(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = FormProperties.model_validate(component.properties or {})
    names = [f.name for f in props.fields]

    def submit(values: Optional[Mapping[str, Any]] = None) -> None:
        if props.on_submit is None:
            return
        live = values or {}
        form_data = {name: live.get(name, "") for name in names}
        callback(props.on_submit.tool, {**props.on_submit.params, "formData": form_data})

    fields_nodes = [
        RenderNode(
            element="field",
            text=f.label,
            attrs={
                "name": f.name,
                "type": f.type.value,
                "placeholder": f.placeholder,
                "required": f.required,
                "options": [(o.label, o.value) for o in f.options],
                "validation": f.validation.model_dump(exclude_none=True) if f.validation else None,
            },
        )
        for f in props.fields
    ]
    return RenderNode(
        element="form",
        children=[
            *fields_nodes,
            RenderNode(element="submit", text=props.submit_text or "Submit"),
        ],
        handlers={"submit": submit},
    )


def _render_input(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = InputProperties.model_validate(component.properties or {})
    node = RenderNode(
        element="input",
        text=props.value or "",
        attrs={"type": props.type, "placeholder": props.placeholder},
    )
    change = component.find_action(ActionEvent.CHANGE)
    if change is not None:
        node.handlers["change"] = lambda value: callback(
            change.tool, {**change.params, "value": value}
        )
    return node


def _render_chart(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = ChartProperties.model_validate(component.properties or {})
    return RenderNode(
        element="chart",
        text=props.title or "",
        attrs={
            "type": props.type.value,
            "x_key": props.x_key,
            "y_key": props.y_key,
            "data": [dict(record) for record in props.data],
        },
    )


def _render_alert(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = AlertProperties.model_validate(component.properties or {})
    return RenderNode(
        element="alert",
        text=props.title,
        attrs={"description": props.description, "variant": props.variant.value},
    )


def _render_badge(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = BadgeProperties.model_validate(component.properties or {})
    return RenderNode(element="badge", text=props.text)


def _render_toast(component: UIComponent, callback: ActionCallback) -> RenderNode:
    props = ToastProperties.model_validate(component.properties or {})
    return RenderNode(
        element="toast",
        text=props.title,
        attrs={"description": props.description, "variant": props.variant.value},
    )


_RENDERERS: dict[ComponentKind, Callable[[UIComponent, ActionCallback], RenderNode]] = {
    ComponentKind.BUTTON: _render_button,
    ComponentKind.CARD: _render_card,
    ComponentKind.DATA_TABLE: _render_data_table,
    ComponentKind.DIALOG: _render_dialog,
    ComponentKind.FORM: _render_form,
    ComponentKind.INPUT: _render_input,
    ComponentKind.CHART: _render_chart,
    ComponentKind.ALERT: _render_alert,
    ComponentKind.BADGE: _render_badge,
    ComponentKind.TOAST: _render_toast,
}
