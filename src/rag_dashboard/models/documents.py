"""Data models for corpus rows and the search/update endpoint contracts."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .base import RecordId


class CorpusRow(BaseModel):
    """Common shape of rows cached from the remote corpus tables."""

    model_config = ConfigDict(extra="allow")

    id: RecordId
    content: str
    source: str = ""
    chunk_idx: Optional[int] = None
    embedding: Optional[list[float]] = None
    created_at: Optional[datetime] = None

    @classmethod
    def select_columns(cls) -> str:
        """Column list for cache reads; vectors are never pulled to the client."""
        return ", ".join(name for name in cls.model_fields if name != "embedding")


class DocumentRow(CorpusRow):
    metadata: Optional[dict[str, Any]] = None


class RegulationRow(CorpusRow):
    article_no: Optional[str] = None


class SearchRequest(BaseModel):
    """Body of the search endpoint.

    Attributes:
        query: Free-text query to embed.
        match_count: Maximum number of ranked rows to return.
        match_threshold: Minimum similarity for a row to be returned.
        doc_type: Optional document type filter.
    """

    model_config = ConfigDict(extra="ignore")

    query: str = Field(..., min_length=1)
    match_count: int = Field(default=5, ge=1)
    match_threshold: float = Field(default=0.0, ge=0.0, le=1.0)
    doc_type: Optional[str] = None


class SearchResult(BaseModel):
    """One ranked row returned by the similarity search."""

    model_config = ConfigDict(extra="ignore")

    id: RecordId
    content: str
    source: str = "Regulation database"
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    article_no: Optional[str] = None
    chunk_idx: Optional[int] = None
    doc_type: Optional[str] = None

    @field_validator("source", "similarity", mode="before")
    @classmethod
    def _fill_blank(cls, value: Any, info: ValidationInfo) -> Any:
        if value in (None, ""):
            return cls.model_fields[info.field_name].default
        return value


class SearchResponse(BaseModel):
    success: bool
    data: list[SearchResult] = Field(default_factory=list)
    query: str
    embedding_dimension: int


class UpdateRequest(BaseModel):
    """Body of the update endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: RecordId
    content: str = Field(..., min_length=1)
    regenerate_embedding: bool = True


class UpdatedRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: RecordId
    content: str
    source: Optional[str] = None
    doc_type: Optional[str] = None


class UpdateResponse(BaseModel):
    success: bool
    data: UpdatedRecord
    embedding_regenerated: bool
