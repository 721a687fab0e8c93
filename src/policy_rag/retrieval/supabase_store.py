"""Supabase (pgvector) implementation of the vector-store abstraction.

Rows live in a table (``documents`` by default) with the columns
``content``, ``metadata`` and ``embedding``; similarity search goes
through a SQL function (``match_documents``).  See ``sql/documents.sql``.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from supabase import create_client

from policy_rag.config import settings
from policy_rag.errors import DimensionMismatchError, StoreWriteError
from policy_rag.retrieval.base import VectorStoreBase
from policy_rag.retrieval.models import VectorRow

if TYPE_CHECKING:
    from supabase import Client

    from policy_rag.ingestion.embedder import GoogleEmbedder

logger = logging.getLogger(__name__)


def get_supabase_client(url: str | None = None, key: str | None = None) -> Client:
    """Return a Supabase client authenticated with the service-role key."""
    return create_client(url or settings.supabase_url, key or settings.supabase_service_role_key)


# pgvector reports e.g. "expected 1536 dimensions, not 768"
_PGVECTOR_DIMENSIONS = re.compile(r"expected (\d+) dimensions, not (\d+)")


def _is_dimension_error(exc: Exception) -> bool:
    return "dimension" in str(exc).lower()


def _dimension_error(exc: Exception, actual: int) -> DimensionMismatchError:
    """Build the error from a backend message, using its widths when it names them."""
    match = _PGVECTOR_DIMENSIONS.search(str(exc))
    if match:
        return DimensionMismatchError(int(match.group(1)), int(match.group(2)), detail=str(exc))
    return DimensionMismatchError(None, actual, detail=str(exc))


class SupabaseVectorStore(VectorStoreBase):
    """Supabase-backed vector store.

    Parameters
    ----------
    client:
        An authenticated ``supabase.Client``.
    embedder:
        Used to embed text queries in :meth:`similarity_search_by_text`.
    table_name:
        Table holding the rows.
    query_name:
        Name of the similarity-search SQL function.
    embedding_dimension:
        Width of the table's ``vector(N)`` column.  Rows of any other
        width are rejected before they reach the database.
    """

    def __init__(
        self,
        client: Client,
        embedder: GoogleEmbedder,
        *,
        table_name: str = settings.supabase_table,
        query_name: str = settings.supabase_query_name,
        embedding_dimension: int = settings.embedding_dimension,
    ) -> None:
        super().__init__(table_name, embedding_dimension)
        self.query_name = query_name
        self._client = client
        self._embedder = embedder

    @property
    def embedder(self) -> GoogleEmbedder:
        return self._embedder

    # -- VectorStoreBase overrides --------------------------------------------

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 3,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        params = {
            "query_embedding": query_embedding,
            "match_count": k,
            "filter": filter or {},
        }
        response = self._client.rpc(self.query_name, params).execute()

        hits: list[dict[str, Any]] = []
        for row in response.data or []:
            hits.append(
                {
                    "id": row.get("id"),
                    "content": row.get("content") or "",
                    "similarity": row.get("similarity"),
                    "metadata": row.get("metadata") or {},
                }
            )
        return hits

    def similarity_search_by_text(
        self,
        query: str,
        *,
        k: int = 3,
        filter: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        embedding = self._embedder.embed_query(query)
        return self.similarity_search(embedding, k=k, filter=filter)

    def add_rows(self, rows: list[VectorRow]) -> int:
        if not rows:
            return 0

        self.validate_rows(rows)

        payload = [row.model_dump() for row in rows]
        logger.info("Inserting %d row(s) into %r", len(payload), self.table_name)
        try:
            response = self._client.table(self.table_name).insert(payload).execute()
        except Exception as exc:
            if _is_dimension_error(exc):
                raise _dimension_error(exc, rows[0].dimension) from exc
            raise StoreWriteError(f"Insert into {self.table_name!r} failed: {exc}") from exc

        written = len(response.data) if response.data is not None else len(payload)
        logger.info("Inserted %d row(s)", written)
        return written

    def clear(self) -> int:
        try:
            response = self._client.table(self.table_name).delete().gte("id", 0).execute()
        except Exception as exc:
            raise StoreWriteError(f"Clearing {self.table_name!r} failed: {exc}") from exc
        removed = len(response.data or [])
        logger.info("Removed %d existing row(s) from %r", removed, self.table_name)
        return removed
