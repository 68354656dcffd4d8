"""Data models for declarative UI components.

A `UIComponent` is one node of a tree describing what a tool wants the
dashboard to show. The raw `properties` bag is kept as received so that
untrusted payloads can be validated and reported on; `typed_properties()`
parses it into the record that belongs to the component's kind.
"""

from collections.abc import Iterator
from typing import Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ..errors import (
    ComponentCycleError,
    ComponentSharedError,
    ComponentValidationError,
)
from .base import WireModel
from .enums import (
    ActionEvent,
    AlertVariant,
    ButtonSize,
    ChartType,
    ColumnType,
    ComponentKind,
    ComponentVariant,
    FormFieldType,
)


class UIAction(WireModel):
    """Binds a UI event to a named tool invocation.

    Attributes:
        event: The UI event that fires the action.
        tool: Name of the tool to invoke.
        params: Parameter template passed to the tool.
    """

    event: ActionEvent = Field(..., description="UI event that fires the action.")
    tool: str = Field(..., min_length=1, description="Tool to invoke.")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Parameter template for the tool."
    )


class UIComponent(BaseModel):
    """One renderable node of a component tree.

    Attributes:
        kind: Component kind; expected to be a `ComponentKind` value but kept
            as a plain string so unknown kinds can be reported and rendered
            as a placeholder.
        variant: Optional visual style.
        properties: Kind-specific property bag, None when absent.
        children: Ordered child components owned by this node.
        actions: Ordered event bindings.
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    kind: str = Field(
        ...,
        validation_alias=AliasChoices("kind", "type"),
        description="Component kind (e.g. 'data-table').",
    )
    variant: Optional[ComponentVariant] = Field(
        default=None, description="Visual style variant."
    )
    properties: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("properties", "props"),
        description="Kind-specific properties.",
    )
    children: list["UIComponent"] = Field(
        default_factory=list, description="Ordered child components."
    )
    actions: list[UIAction] = Field(
        default_factory=list, description="Ordered event bindings."
    )

    @field_validator("children", "actions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_ownership(self) -> "UIComponent":
        if any(_reaches(node, self) for node in self.nested_components()):
            raise ComponentCycleError("component cannot be its own descendant")
        if _has_shared_node(self):
            raise ComponentSharedError("component appears more than once in the tree")
        return self

    @property
    def component_kind(self) -> Optional[ComponentKind]:
        """The kind as an enum member, or None if it is not recognised."""
        try:
            return ComponentKind(self.kind)
        except ValueError:
            return None

    def nested_components(self) -> Iterator["UIComponent"]:
        """Yields direct descendants: component-valued properties, then children."""
        for value in (self.properties or {}).values():
            if isinstance(value, UIComponent):
                yield value
        yield from self.children

    def add_child(self, child: "UIComponent") -> "UIComponent":
        """Attaches a child, refusing to create a cycle or shared node.

        Only this tree is checked: a node may still be attached to a separate
        tree, as trees parsed from payloads never share instances.

        Args:
            child: The component to append to `children`.

        Returns:
            This component, to allow chaining.

        Raises:
            ComponentCycleError: If `self` is `child` or one of its descendants.
            ComponentSharedError: If `child` is already in this tree.
        """
        if _reaches(child, self):
            raise ComponentCycleError(
                f"attaching this '{child.kind}' would make '{self.kind}' its own descendant"
            )
        if _node_ids(self) & _node_ids(child):
            raise ComponentSharedError(
                f"'{child.kind}' or one of its descendants is already in this tree"
            )
        self.children.append(child)
        return self

    def find_action(self, event: ActionEvent) -> Optional[UIAction]:
        """Returns the first action bound to `event`, if any."""
        for action in self.actions:
            if action.event == event:
                return action
        return None

    def typed_properties(self) -> BaseModel:
        """Parses `properties` into the record for this component's kind.

        Raises:
            ComponentValidationError: If the kind is not recognised.
            pydantic.ValidationError: If the properties do not fit the kind.
        """
        kind = self.component_kind
        if kind is None:
            raise ComponentValidationError(f"invalid component kind: {self.kind}")
        return PROPERTY_MODELS[kind].model_validate(self.properties or {})


def _reaches(start: UIComponent, target: UIComponent) -> bool:
    """True if `target` is `start` or one of its descendants (by identity)."""
    seen: set[int] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        if node is target:
            return True
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.extend(node.nested_components())
    return False


def _walk(root: UIComponent) -> Iterator[UIComponent]:
    """Yields every node under `root`, once per path."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(node.nested_components())


def _node_ids(root: UIComponent) -> set[int]:
    seen: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) not in seen:
            seen.add(id(node))
            stack.extend(node.nested_components())
    return seen


def _has_shared_node(root: UIComponent) -> bool:
    """True if some node is reachable along two paths from `root`."""
    seen: set[int] = set()
    for node in _walk(root):
        if id(node) in seen:
            return True
        seen.add(id(node))
    return False


# -------------------- kind-specific properties --------------------


class DataTableColumn(WireModel):
    key: str
    header: str
    type: Optional[ColumnType] = None
    sortable: bool = False
    width: Optional[str] = None


class DataTableProperties(WireModel):
    columns: list[DataTableColumn]
    data: list[dict[str, Any]]
    pagination: bool = False
    page_size: int = Field(default=10, ge=1)
    searchable: bool = False
    search_column: Optional[str] = None


class CardProperties(WireModel):
    title: str
    content: Union[str, UIComponent]
    description: Optional[str] = None
    footer: Optional[Union[str, UIComponent]] = None


class DialogProperties(WireModel):
    title: str
    content: UIComponent
    trigger: UIComponent
    description: Optional[str] = None
    confirm_text: Optional[str] = None
    cancel_text: Optional[str] = None


class FormOption(WireModel):
    value: str
    label: str


class FieldValidation(WireModel):
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    message: Optional[str] = None


class FormField(WireModel):
    """One input of a form.

    Attributes:
        name: Key under which the value is submitted.
        label: Human-readable label.
        type: Input type.
        placeholder: Optional hint text.
        required: Whether the field must be filled in.
        options: Choices for `select` fields.
        validation: Optional numeric/pattern constraints.
    """

    name: str
    label: str
    type: FormFieldType = FormFieldType.TEXT
    placeholder: Optional[str] = None
    required: bool = False
    options: list[FormOption] = Field(default_factory=list)
    validation: Optional[FieldValidation] = None


class FormProperties(WireModel):
    fields: list[FormField]
    submit_text: Optional[str] = None
    on_submit: Optional[UIAction] = None


class ChartProperties(WireModel):
    type: ChartType
    data: list[dict[str, Union[str, int, float]]]
    x_key: str
    y_key: str
    title: Optional[str] = None


class ButtonProperties(WireModel):
    text: str
    size: ButtonSize = ButtonSize.DEFAULT


class InputProperties(WireModel):
    placeholder: Optional[str] = None
    type: str = "text"
    value: Optional[str] = None


class AlertProperties(WireModel):
    title: str
    description: Optional[str] = None
    variant: AlertVariant = AlertVariant.DEFAULT


class BadgeProperties(WireModel):
    text: str


class ToastProperties(AlertProperties):
    pass


PROPERTY_MODELS: dict[ComponentKind, type[WireModel]] = {
    ComponentKind.BUTTON: ButtonProperties,
    ComponentKind.CARD: CardProperties,
    ComponentKind.DATA_TABLE: DataTableProperties,
    ComponentKind.DIALOG: DialogProperties,
    ComponentKind.FORM: FormProperties,
    ComponentKind.INPUT: InputProperties,
    ComponentKind.CHART: ChartProperties,
    ComponentKind.ALERT: AlertProperties,
    ComponentKind.BADGE: BadgeProperties,
    ComponentKind.TOAST: ToastProperties,
}
