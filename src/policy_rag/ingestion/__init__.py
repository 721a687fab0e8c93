"""
Ingestion — document loading, chunking, and embedding into the vector store.

This module is the offline half of the system: it converts the return
policy document into embedded chunks stored in the Supabase
``documents`` table.
"""

from policy_rag.ingestion.pipeline import IngestionReport, ingest

__all__ = ["IngestionReport", "ingest"]
