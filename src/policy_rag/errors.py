"""Exception hierarchy shared by the ingestion command and the query service.

Fatal errors (configuration, initialisation, ingestion) end the process
with exit code 1. Request-level errors (:class:`ValidationError`,
:class:`GenerationError`) are translated into HTTP responses by
:mod:`policy_rag.serving.app`.
"""

from __future__ import annotations


class PolicyRAGError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PolicyRAGError):
    """One or more required settings are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Missing required environment variable(s): "
            f"{', '.join(self.missing)}. Check your .env file."
        )


class InitializationError(PolicyRAGError):
    """An AI component (LLM, vector store, retriever) could not be built."""


class LoadError(PolicyRAGError):
    """The source document is missing, unreadable or unparsable."""


class EmbeddingError(PolicyRAGError):
    """The embedding provider failed (quota, network, invalid key, …)."""


class StoreWriteError(PolicyRAGError):
    """Rows could not be written to the vector table."""


class DimensionMismatchError(StoreWriteError):
    """Embedding width does not match the vector column width.

    This is a schema problem, never a transient one: it is not retried and
    carries a hint telling the operator how to fix the table.
    """

    def __init__(self, expected: int | None, actual: int | None, detail: str = "") -> None:
        self.expected = expected
        self.actual = actual
        message = "Vector dimension mismatch"
        if expected is not None and actual is not None:
            message += f" (table expects {expected}, embedding has {actual})"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @property
    def hint(self) -> str:
        width = self.actual if self.actual is not None else "<embedding dimension>"
        return (
            "The embedding dimension does not match the vector column of the "
            f"documents table. Change the column to `vector({width})` (and the "
            "match_documents signature) or configure EMBEDDING_DIMENSION to the "
            "model's output width, then re-run ingestion."
        )


class ValidationError(PolicyRAGError):
    """A query request is malformed (e.g. the question is missing)."""


class GenerationError(PolicyRAGError):
    """Retrieval or the LLM call failed while answering a question."""
