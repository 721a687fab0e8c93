"""Domain models for stored rows and retrieval results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class VectorRow(BaseModel):
    """One row of the ``documents`` table as written at ingestion time."""

    content: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def dimension(self) -> int:
        return len(self.embedding)


class RetrievedChunk(BaseModel):
    """A chunk returned by similarity search.

    Attributes
    ----------
    content:
        The chunk text.
    metadata:
        Metadata stored with the chunk (``source``, ``page``,
        ``chunk_index``).
    similarity:
        Similarity score returned by ``match_documents``; higher is
        more similar.
    id:
        Row identifier in the vector table, when known.
    """

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float | None = None
    id: int | str | None = None
