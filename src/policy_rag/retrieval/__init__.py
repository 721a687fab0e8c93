"""
Retrieval — vector storage and similarity search.

This module wraps the vector store behind a clean interface so that
ingestion and the answer pipeline never need to know which database is
backing retrieval.

Public surface
--------------
- :class:`PolicyRetriever` — top-k search over stored chunks.
- :class:`VectorStoreBase` — abstract backend.
- :class:`SupabaseVectorStore` — default Supabase / pgvector backend.
- :class:`RetrievedChunk`, :class:`VectorRow` — data models.
"""

from policy_rag.retrieval.base import VectorStoreBase
from policy_rag.retrieval.models import RetrievedChunk, VectorRow
from policy_rag.retrieval.retriever import PolicyRetriever
from policy_rag.retrieval.supabase_store import SupabaseVectorStore

__all__ = [
    "PolicyRetriever",
    "RetrievedChunk",
    "SupabaseVectorStore",
    "VectorRow",
    "VectorStoreBase",
]
