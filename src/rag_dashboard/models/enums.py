"""Enumeration definitions for the RAG dashboard.

This module contains the closed vocabularies used by the UI component
schema, the renderer and the realtime reconciliation logic.
"""

from enum import Enum


class ComponentKind(str, Enum):
    """Defines the renderable component kinds.

    Attributes:
        BUTTON: A clickable button bound to a `click` action.
        CARD: A titled container with text or nested component content.
        DATA_TABLE: A table of rows described by a column list.
        DIALOG: A trigger component revealing a titled content panel.
        FORM: A set of input fields submitted through an action.
        INPUT: A single free-standing input.
        CHART: A line, bar, pie or area chart over a list of records.
        ALERT: An inline status banner.
        BADGE: A short inline label.
        TOAST: A transient notification.
    """

    BUTTON = "button"
    CARD = "card"
    DATA_TABLE = "data-table"
    DIALOG = "dialog"
    FORM = "form"
    INPUT = "input"
    CHART = "chart"
    ALERT = "alert"
    BADGE = "badge"
    TOAST = "toast"

    @classmethod
    def values(cls) -> list[str]:
        return [k.value for k in cls]


class ComponentVariant(str, Enum):
    """Visual style variants shared by all component kinds."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"
    OUTLINE = "outline"
    SECONDARY = "secondary"
    GHOST = "ghost"
    LINK = "link"


class AlertVariant(str, Enum):
    """Variants accepted by alerts and toasts."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class ActionEvent(str, Enum):
    """UI events that may be bound to a tool invocation.

    Attributes:
        CLICK: Button activation.
        SUBMIT: Form submission.
        CHANGE: Input value change.
    """

    CLICK = "click"
    SUBMIT = "submit"
    CHANGE = "change"


class ButtonSize(str, Enum):
    SM = "sm"
    DEFAULT = "default"
    LG = "lg"


class ChartType(str, Enum):
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    AREA = "area"


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BADGE = "badge"
    ACTION = "action"


class FormFieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    SELECT = "select"


class ToolContentType(str, Enum):
    """Content entry types of a tool result."""

    TEXT = "text"
    RESOURCE = "resource"
    UI = "ui"


class ChangeEventType(str, Enum):
    """Row-level change events delivered by a realtime channel.

    Attributes:
        INSERT: A row was created; the payload carries `new`.
        UPDATE: A row was modified; the payload carries `new`.
        DELETE: A row was removed; the payload carries `old`.
    """

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class TrackedTable(str, Enum):
    """Remote tables mirrored by the store."""

    DOCUMENTS = "documents"
    REGULATIONS = "regulations"
