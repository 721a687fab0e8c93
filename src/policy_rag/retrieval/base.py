"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing the abstract methods.  Ingestion and the answer
pipeline are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from policy_rag.errors import DimensionMismatchError
from policy_rag.retrieval.models import VectorRow


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    table_name:
        Logical name of the table / collection holding the rows.
    embedding_dimension:
        Width of the stored vectors, or ``None`` when the backend accepts
        any width.
    """

    def __init__(self, table_name: str, embedding_dimension: int | None = None) -> None:
        self.table_name = table_name
        self.embedding_dimension = embedding_dimension

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 3,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* rows matching *query_embedding*.

        Each result dict **must** contain at least ``"content"`` and
        ``"metadata"``; ``"id"`` and ``"similarity"`` are passed through
        when the backend provides them.
        """
        ...

    @abstractmethod
    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 3,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Embed *query* and delegate to :meth:`similarity_search`."""
        ...

    @abstractmethod
    def add_rows(self, rows: list[VectorRow]) -> int:
        """Persist *rows* in one logical batch and return how many were written.

        Writes always append; existing rows are never replaced.
        """
        ...

    # -- shared helpers -------------------------------------------------------

    def validate_rows(self, rows: list[VectorRow]) -> None:
        """Raise :class:`DimensionMismatchError` if any row has the wrong width.

        Touches nothing in the backend, so callers run it before any
        destructive step.
        """
        if self.embedding_dimension is None:
            return
        for row in rows:
            if row.dimension != self.embedding_dimension:
                raise DimensionMismatchError(self.embedding_dimension, row.dimension)

    # -- optional overrides ---------------------------------------------------

    def clear(self) -> int:
        """Delete every row and return how many were removed.  Optional: raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support clear")
