"""Helpers that build UI components from kind-specific properties.

The helpers only assemble; they do not validate. Run
`ui.validation.validate_component` before trusting a tree built from
untrusted input.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel

from ..models.component import (
    AlertProperties,
    BadgeProperties,
    ButtonProperties,
    CardProperties,
    ChartProperties,
    DataTableColumn,
    DataTableProperties,
    DialogProperties,
    FormField,
    FormProperties,
    InputProperties,
    ToastProperties,
    UIAction,
    UIComponent,
)
from ..models.enums import (
    ActionEvent,
    AlertVariant,
    ButtonSize,
    ChartType,
    ComponentKind,
    ComponentVariant,
)

Properties = Union[BaseModel, dict[str, Any]]


def create_component(
    kind: Union[ComponentKind, str],
    properties: Optional[Properties] = None,
    *,
    variant: Optional[ComponentVariant] = None,
    children: Optional[list[UIComponent]] = None,
    actions: Optional[list[UIAction]] = None,
) -> UIComponent:
    """Assembles a component.

    Args:
        kind: Component kind.
        properties: A property record (dumped to its wire form) or a raw mapping.
        variant: Optional visual style.
        children: Optional child components.
        actions: Optional event bindings.

    Returns:
        The new UIComponent.
    """
    if isinstance(properties, BaseModel):
        properties = properties.model_dump(mode="json", by_alias=True, exclude_none=True)
    return UIComponent(
        kind=kind.value if isinstance(kind, ComponentKind) else kind,
        variant=variant,
        properties={} if properties is None else properties,
        children=children or [],
        actions=actions or [],
    )


def create_data_table(
    columns: list[Union[DataTableColumn, dict[str, Any]]],
    data: list[dict[str, Any]],
    *,
    pagination: bool = True,
    page_size: int = 10,
    searchable: bool = False,
    search_column: Optional[str] = None,
) -> UIComponent:
    return create_component(
        ComponentKind.DATA_TABLE,
        DataTableProperties(
            columns=columns,
            data=data,
            pagination=pagination,
            page_size=page_size,
            searchable=searchable,
            search_column=search_column,
        ),
    )


def create_card(
    title: str,
    content: Union[str, UIComponent],
    *,
    description: Optional[str] = None,
    footer: Optional[Union[str, UIComponent]] = None,
    variant: Optional[ComponentVariant] = None,
) -> UIComponent:
    return create_component(
        ComponentKind.CARD,
        CardProperties(
            title=title, content=content, description=description, footer=footer
        ),
        variant=variant,
    )


def create_button(
    text: str,
    *,
    tool: Optional[str] = None,
    params: Optional[dict[str, Any]] = None,
    size: ButtonSize = ButtonSize.DEFAULT,
    variant: Optional[ComponentVariant] = None,
) -> UIComponent:
    """Builds a button, bound to `tool` on click when one is given."""
    actions = []
    if tool:
        actions.append(UIAction(event=ActionEvent.CLICK, tool=tool, params=params or {}))
    return create_component(
        ComponentKind.BUTTON,
        ButtonProperties(text=text, size=size),
        variant=variant,
        actions=actions,
    )


def create_form(
    fields: list[Union[FormField, dict[str, Any]]],
    *,
    on_submit: Optional[UIAction] = None,
    submit_text: Optional[str] = None,
) -> UIComponent:
    return create_component(
        ComponentKind.FORM,
        FormProperties(fields=fields, on_submit=on_submit, submit_text=submit_text),
    )


def create_dialog(
    title: str,
    content: UIComponent,
    trigger: UIComponent,
    *,
    description: Optional[str] = None,
    confirm_text: Optional[str] = None,
    cancel_text: Optional[str] = None,
) -> UIComponent:
    return create_component(
        ComponentKind.DIALOG,
        DialogProperties(
            title=title,
            content=content,
            trigger=trigger,
            description=description,
            confirm_text=confirm_text,
            cancel_text=cancel_text,
        ),
    )


def create_chart(
    chart_type: ChartType,
    data: list[dict[str, Union[str, int, float]]],
    x_key: str,
    y_key: str,
    *,
    title: Optional[str] = None,
) -> UIComponent:
    return create_component(
        ComponentKind.CHART,
        ChartProperties(type=chart_type, data=data, x_key=x_key, y_key=y_key, title=title),
    )


def create_input(
    *,
    placeholder: Optional[str] = None,
    type: str = "text",
    value: Optional[str] = None,
) -> UIComponent:
    return create_component(
        ComponentKind.INPUT,
        InputProperties(placeholder=placeholder, type=type, value=value),
    )


def create_alert(
    title: str,
    *,
    description: Optional[str] = None,
    variant: AlertVariant = AlertVariant.DEFAULT,
) -> UIComponent:
    return create_component(
        ComponentKind.ALERT,
        AlertProperties(title=title, description=description, variant=variant),
    )


def create_badge(
    text: str, *, variant: Optional[ComponentVariant] = None
) -> UIComponent:
    return create_component(
        ComponentKind.BADGE, BadgeProperties(text=text), variant=variant
    )


def create_toast(
    title: str,
    *,
    description: Optional[str] = None,
    variant: AlertVariant = AlertVariant.DEFAULT,
) -> UIComponent:
    return create_component(
        ComponentKind.TOAST,
        ToastProperties(title=title, description=description, variant=variant),
    )
