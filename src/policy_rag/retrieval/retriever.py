"""Policy retriever — top-k similarity search over the stored chunks.

Usage::

    from policy_rag.retrieval.retriever import PolicyRetriever

    retriever = PolicyRetriever(store, k=3)
    for chunk in retriever.search("Can I return an opened package?"):
        print(chunk.similarity, chunk.content[:80])
"""

from __future__ import annotations

import logging
from typing import Any

from policy_rag.retrieval.base import VectorStoreBase
from policy_rag.retrieval.models import RetrievedChunk

logger = logging.getLogger(__name__)


class PolicyRetriever:
    """High-level retriever that wraps any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    k:
        Number of chunks returned by :meth:`search`.
    """

    def __init__(self, store: VectorStoreBase, *, k: int = 3) -> None:
        if k < 1:
            raise ValueError(f"k must be positive, got {k}")
        self._store = store
        self.k = k

    @property
    def store(self) -> VectorStoreBase:
        return self._store

    def search(self, question: str, *, filter: dict[str, Any] | None = None) -> list[RetrievedChunk]:
        """Embed *question* and return the ``k`` most similar chunks."""
        raw_hits = self._store.similarity_search_by_text(question, k=self.k, filter=filter)
        logger.debug("Retrieved %d chunk(s) for question", len(raw_hits))
        return [self._to_chunk(hit) for hit in raw_hits[: self.k]]

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _to_chunk(hit: dict[str, Any]) -> RetrievedChunk:
        return RetrievedChunk(
            id=hit.get("id"),
            content=hit.get("content", ""),
            similarity=hit.get("similarity"),
            metadata=hit.get("metadata") or {},
        )
