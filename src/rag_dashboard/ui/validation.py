"""Validation of UI component trees and tool results.

Validation is a separate, explicit step: trees produced by tools are
untrusted and must be checked before they are rendered. Errors are
collected, never raised, and follow document order (a parent's errors
before its children's, children left to right).
"""

from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, Field, ValidationError

from ..models.component import PROPERTY_MODELS, UIAction, UIComponent
from ..models.enums import ComponentKind, ComponentVariant, ToolContentType
from ..models.tool_result import ToolResult

ComponentLike = Union[UIComponent, Mapping[str, Any]]

# Properties that may hold a nested component tree.
NESTED_COMPONENT_PROPERTIES = ("content", "footer", "trigger")


class ValidationResult(BaseModel):
    """Outcome of a validation pass.

    Attributes:
        valid: True when no error was recorded.
        errors: Human-readable messages in document order.
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)


def validate_component(
    component: ComponentLike, *, strict: bool = False
) -> ValidationResult:
    """Validates a component tree.

    Checks that every node has a recognised kind and a properties object,
    recursing depth-first into children.

    Args:
        component: A UIComponent or its raw mapping form.
        strict: Also check each node's properties against the shape of its
            kind, its variant and its actions, and recurse into
            component-valued properties.

    Returns:
        The collected ValidationResult.
    """
    errors: list[str] = []
    _collect(component, errors, strict)
    return ValidationResult(valid=not errors, errors=errors)


def validate_tool_result(
    result: Union[ToolResult, Mapping[str, Any]], *, strict: bool = False
) -> ValidationResult:
    """Validates every UI component carried by a tool result."""
    errors: list[str] = []
    if isinstance(result, ToolResult):
        for component in result.components():
            _collect(component, errors, strict)
    else:
        content = result.get("content")
        if not isinstance(content, list):
            errors.append("tool result has no content list")
        else:
            for entry in content:
                if isinstance(entry, Mapping) and entry.get("type") == ToolContentType.UI.value:
                    _collect(entry.get("ui"), errors, strict)
    return ValidationResult(valid=not errors, errors=errors)


def is_tool_result(payload: Any) -> bool:
    return isinstance(payload, Mapping) and isinstance(payload.get("content"), list)


def load_components(
    payload: Any, *, strict: bool = False
) -> tuple[list[UIComponent], ValidationResult]:
    """Validates a raw payload and parses it into components.

    Args:
        payload: A component mapping, a tool result mapping or a list of
            component mappings.
        strict: Passed through to validation.

    Returns:
        The parsed components (empty when validation failed) and the result.
    """
    if is_tool_result(payload):
        result = validate_tool_result(payload, strict=strict)
        raw = [
            entry["ui"]
            for entry in payload["content"]
            if isinstance(entry, Mapping) and entry.get("type") == ToolContentType.UI.value
        ]
    else:
        raw = payload if isinstance(payload, list) else [payload]
        errors: list[str] = []
        for item in raw:
            errors.extend(validate_component(item, strict=strict).errors)
        result = ValidationResult(valid=not errors, errors=errors)

    if not result.valid:
        return [], result

    try:
        return [UIComponent.model_validate(item) for item in raw], result
    except ValidationError as e:
        return [], ValidationResult(valid=False, errors=_pydantic_messages("component", e))


def _collect(node: Any, errors: list[str], strict: bool) -> None:
    if isinstance(node, UIComponent):
        kind, variant = node.kind, node.variant
        properties, children, actions = node.properties, node.children, node.actions
    elif isinstance(node, Mapping):
        kind = node.get("kind", node.get("type"))
        variant = node.get("variant")
        properties = node.get("properties", node.get("props"))
        children = node.get("children") or []
        actions = node.get("actions") or []
    else:
        errors.append(f"invalid component: expected an object, got {type(node).__name__}")
        return

    known_kind = kind in ComponentKind.values()
    if not known_kind:
        errors.append(f"invalid component kind: {kind}")

    if properties is None:
        errors.append("missing properties")
    elif not isinstance(properties, Mapping):
        errors.append(f"invalid properties: expected an object, got {type(properties).__name__}")
        properties = None

    if strict:
        _collect_strict(kind if known_kind else None, variant, properties, actions, errors)

    if not isinstance(children, list):
        errors.append("invalid children: expected a list")
        return
    for child in children:
        _collect(child, errors, strict)


def _collect_strict(
    kind: Any,
    variant: Any,
    properties: Any,
    actions: Any,
    errors: list[str],
) -> None:
    if variant is not None and not isinstance(variant, ComponentVariant):
        if variant not in [v.value for v in ComponentVariant]:
            errors.append(f"invalid component variant: {variant}")

    for index, action in enumerate(actions if isinstance(actions, list) else []):
        if isinstance(action, UIAction):
            continue
        try:
            UIAction.model_validate(action)
        except ValidationError as e:
            errors.extend(_pydantic_messages(f"action {index}", e))

    if kind is None or properties is None:
        return

    try:
        PROPERTY_MODELS[ComponentKind(kind)].model_validate(properties)
    except ValidationError as e:
        errors.extend(_pydantic_messages(f"properties for {kind}", e))

    for key in NESTED_COMPONENT_PROPERTIES:
        value = properties.get(key)
        if isinstance(value, (UIComponent, Mapping)):
            _collect(value, errors, strict=True)


def _pydantic_messages(subject: str, error: ValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        if location:
            messages.append(f"invalid {subject}: {location}: {err['msg']}")
        else:
            messages.append(f"invalid {subject}: {err['msg']}")
    return messages
