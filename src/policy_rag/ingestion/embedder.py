"""Embedding — Google Generative AI embeddings behind a one-method interface."""

from __future__ import annotations

import logging
from typing import Protocol

from langchain_google_genai import GoogleGenerativeAIEmbeddings

from policy_rag.config import settings
from policy_rag.errors import EmbeddingError

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Maps texts to fixed-width vectors."""

    def embed(self, texts: list[str]) -> list[list[float]]: ...


def get_embedding_function(
    api_key: str | None = None,
    model: str | None = None,
) -> GoogleGenerativeAIEmbeddings:
    """Return the configured Google embedding function."""
    return GoogleGenerativeAIEmbeddings(
        model=model or settings.embedding_model,
        google_api_key=api_key or settings.google_api_key,
    )


class GoogleEmbedder:
    """:class:`Embedder` backed by a LangChain ``Embeddings`` instance.

    Any provider failure (quota, network, invalid key) is re-raised as
    :class:`~policy_rag.errors.EmbeddingError`.
    """

    def __init__(self, embeddings: GoogleGenerativeAIEmbeddings | None = None) -> None:
        self._embeddings = embeddings or get_embedding_function()

    @property
    def embeddings(self) -> GoogleGenerativeAIEmbeddings:
        return self._embeddings

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        logger.info("Embedding %d chunk(s)", len(texts))
        try:
            return self._embeddings.embed_documents(texts)
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc

    def embed_query(self, text: str) -> list[float]:
        try:
            return self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc
