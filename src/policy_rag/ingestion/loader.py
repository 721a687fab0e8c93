"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import PyPDFLoader, TextLoader

from policy_rag.errors import LoadError

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

_TEXT_SUFFIXES = {".txt", ".md", ".markdown"}


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one ``Document`` per page."""
    return PyPDFLoader(str(path)).load()


def load_text(path: str | Path) -> list[Document]:
    """Load a plain-text or Markdown file as a single page."""
    docs = TextLoader(str(path), encoding="utf-8").load()
    for doc in docs:
        doc.metadata.setdefault("page", 0)
    return docs


def load_document(path: str | Path) -> list[Document]:
    """Load the policy document at *path* into page-level records.

    The loader is picked from the file extension: ``.pdf`` goes through
    ``PyPDFLoader``; ``.txt`` / ``.md`` through ``TextLoader``.

    Raises
    ------
    LoadError
        If the path does not exist, has an unsupported extension, or the
        underlying loader fails to read / parse it.
    """
    path = Path(path)
    if not path.is_file():
        raise LoadError(f"Document not found or not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == ".pdf":
        loader = load_pdf
    elif suffix in _TEXT_SUFFIXES:
        loader = load_text
    else:
        raise LoadError(f"Unsupported document type {suffix!r} for {path}")

    logger.info("Loading document from %s", path)
    try:
        docs = loader(path)
    except Exception as exc:
        raise LoadError(f"Could not load {path}: {exc}") from exc

    logger.info("Document loaded: %d page(s)", len(docs))
    return docs
