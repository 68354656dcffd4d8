"""State and event models of the reactive store."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .documents import SearchResult


class RagState(BaseModel):
    """Immutable snapshot of the store.

    Every transition produces a new snapshot; lists are replaced, never
    mutated in place, so a snapshot handed to a reader stays consistent.

    Attributes:
        documents: Cached `documents` rows, most recent first.
        regulations: Cached `regulations` rows, most recent first.
        search_results: Ranked rows of the last successful search.
        is_loading: True while a fetch or search is in flight.
        is_subscribed: True while realtime channels are open.
        error: Message of the last failed action, if any.
        last_query: Query of the last search issued.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    documents: list[dict[str, Any]] = Field(default_factory=list)
    regulations: list[dict[str, Any]] = Field(default_factory=list)
    search_results: list[SearchResult] = Field(default_factory=list)
    is_loading: bool = False
    is_subscribed: bool = False
    error: Optional[str] = None
    last_query: Optional[str] = None


class ChangeEvent(BaseModel):
    """A row-level change delivered by a realtime channel."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    event_type: str = Field(
        ..., validation_alias=AliasChoices("eventType", "event_type", "type")
    )
    new: Optional[dict[str, Any]] = None
    old: Optional[dict[str, Any]] = None
    table: Optional[str] = None

    @field_validator("event_type", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value
