"""Text chunking strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from langchain_text_splitters import RecursiveCharacterTextSplitter

if TYPE_CHECKING:
    from langchain_core.documents import Document

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


class Chunker(Protocol):
    """Anything that can split page-level documents into chunks."""

    def split(self, documents: list[Document]) -> list[Document]: ...


class RecursiveChunker:
    """Overlapping fixed-size windows via ``RecursiveCharacterTextSplitter``.

    Splitting prefers paragraph, line, sentence and word boundaries and
    falls back to single characters, so text without separators is cut
    into exact ``chunk_size`` windows sharing ``chunk_overlap`` characters.
    The result is deterministic for the same input and parameters.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=["\n\n", "\n", ". ", " ", ""],
        )

    def split(self, documents: list[Document]) -> list[Document]:
        chunks = self._splitter.split_documents(documents)
        for index, chunk in enumerate(chunks):
            chunk.metadata["chunk_index"] = index
        return chunks
