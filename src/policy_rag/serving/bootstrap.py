"""Service bootstrap — validate configuration and build the AI components once.

:func:`initialize` runs before the HTTP server is created.  It either
returns a complete, immutable :class:`AIComponents` bundle or raises;
there is no degraded startup mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from langchain_core.runnables import Runnable

from policy_rag.chat.llm import get_llm
from policy_rag.chat.memory import ConversationMemory
from policy_rag.chat.pipeline import AnswerPipeline
from policy_rag.config import Settings, settings
from policy_rag.errors import ConfigurationError, InitializationError
from policy_rag.ingestion.embedder import GoogleEmbedder, get_embedding_function
from policy_rag.retrieval.base import VectorStoreBase
from policy_rag.retrieval.retriever import PolicyRetriever
from policy_rag.retrieval.supabase_store import SupabaseVectorStore, get_supabase_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AIComponents:
    """Everything the query service needs, constructed once at startup."""

    settings: Settings
    llm: Runnable
    store: VectorStoreBase
    retriever: PolicyRetriever
    memory: ConversationMemory
    pipeline: AnswerPipeline


def validate_settings(config: Settings) -> None:
    """Log which required values are loaded and fail if any is missing.

    Only presence is logged, never the values themselves.
    """
    for env, loaded in config.required_status().items():
        logger.info("%s: %s", env, "loaded" if loaded else "NOT LOADED")

    missing = config.missing_required()
    if missing:
        raise ConfigurationError(missing)


def build_store(config: Settings) -> SupabaseVectorStore:
    """Create the Supabase client and the vector store bound to the documents table.

    Raises :class:`InitializationError` if the client or the embeddings
    cannot be constructed (e.g. a malformed ``SUPABASE_URL``).
    """
    try:
        client = get_supabase_client(config.supabase_url, config.supabase_service_role_key)
        embedder = GoogleEmbedder(get_embedding_function(config.google_api_key, config.embedding_model))
    except Exception as exc:
        raise InitializationError(f"Could not create the vector store: {exc}") from exc
    return SupabaseVectorStore(
        client,
        embedder,
        table_name=config.supabase_table,
        query_name=config.supabase_query_name,
        embedding_dimension=config.embedding_dimension,
    )


def initialize(config: Settings | None = None) -> AIComponents:
    """Validate *config* and construct the LLM, store, retriever and memory.

    Raises
    ------
    ConfigurationError
        A required environment variable is missing.
    InitializationError
        Any component failed to construct.
    """
    config = config or settings
    validate_settings(config)

    try:
        llm = get_llm(config)
        logger.info("Gemini LLM initialised")

        store = build_store(config)
        logger.info(
            "Supabase vector store initialised (table=%r, query=%r)",
            config.supabase_table,
            config.supabase_query_name,
        )

        retriever = PolicyRetriever(store, k=config.retrieval_k)
        logger.info("Retriever initialised (k=%d)", config.retrieval_k)

        memory = ConversationMemory()
        logger.info("Conversation memory initialised")

        pipeline = AnswerPipeline(retriever, llm, memory, support_email=config.support_email)
    except InitializationError:
        raise
    except Exception as exc:
        raise InitializationError(f"Failed to initialise AI components: {exc}") from exc

    logger.info("RAG pipeline with conversation memory is ready")
    return AIComponents(
        settings=config,
        llm=llm,
        store=store,
        retriever=retriever,
        memory=memory,
        pipeline=pipeline,
    )
