"""Ingestion pipeline — load → chunk → embed → store.

The run either completes or fails loudly.  There is no partial-success
mode: an error in any step aborts the run, and rows already inserted by
an earlier run stay in the table.  Writes append, so running the
pipeline twice on the same document doubles the row count unless the
second run is started with ``clear=True``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from policy_rag.errors import EmbeddingError
from policy_rag.ingestion.chunker import Chunker, RecursiveChunker
from policy_rag.ingestion.embedder import Embedder
from policy_rag.ingestion.loader import load_document
from policy_rag.retrieval.base import VectorStoreBase
from policy_rag.retrieval.models import VectorRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionReport:
    """Summary of one ingestion run."""

    source: str
    pages: int
    chunks: int
    rows_written: int
    rows_cleared: int = 0

    def __str__(self) -> str:
        return (
            f"Ingested {self.source}: {self.pages} page(s) → {self.chunks} chunk(s) "
            f"→ {self.rows_written} row(s) written"
        )


def ingest(
    document_path: str | Path,
    *,
    embedder: Embedder,
    store: VectorStoreBase,
    chunker: Chunker | None = None,
    clear: bool = False,
) -> IngestionReport:
    """Embed the document at *document_path* into *store*.

    Parameters
    ----------
    document_path:
        PDF, text or Markdown policy document.
    embedder:
        Produces one vector per chunk.
    store:
        Destination vector store; rows are appended in one batch.
    chunker:
        Splitting strategy; defaults to 1000-character windows with a
        200-character overlap.
    clear:
        Delete every existing row before writing.

    Raises
    ------
    LoadError, EmbeddingError, StoreWriteError
        Propagated unchanged; :class:`~policy_rag.errors.DimensionMismatchError`
        is a ``StoreWriteError`` and must be fixed in the table schema.
        It is raised before ``clear`` runs, so a width mismatch never
        empties the table.
    """
    chunker = chunker or RecursiveChunker()
    source = str(document_path)

    pages = load_document(document_path)

    logger.info("Splitting %d page(s) into chunks", len(pages))
    chunks = chunker.split(pages)
    logger.info("Text split into %d chunk(s)", len(chunks))

    if not chunks:
        logger.warning("No text extracted from %s — nothing to store", source)
        return IngestionReport(source=source, pages=len(pages), chunks=0, rows_written=0)

    vectors = embedder.embed([chunk.page_content for chunk in chunks])
    if len(vectors) != len(chunks):
        raise EmbeddingError(f"Expected {len(chunks)} embedding(s), provider returned {len(vectors)}")

    rows = [
        VectorRow(content=chunk.page_content, embedding=vector, metadata=dict(chunk.metadata))
        for chunk, vector in zip(chunks, vectors)
    ]

    store.validate_rows(rows)

    cleared = 0
    if clear:
        cleared = store.clear()

    written = store.add_rows(rows)
    report = IngestionReport(
        source=source,
        pages=len(pages),
        chunks=len(chunks),
        rows_written=written,
        rows_cleared=cleared,
    )
    logger.info("%s", report)
    return report
