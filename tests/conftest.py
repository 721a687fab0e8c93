"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from fakes import POLICY_HITS, SUPPORT_EMAIL, FakeVectorStore, RecordingLLM
from policy_rag.chat.memory import ConversationMemory
from policy_rag.chat.pipeline import AnswerPipeline
from policy_rag.config import Settings
from policy_rag.retrieval.base import VectorStoreBase
from policy_rag.retrieval.retriever import PolicyRetriever
from policy_rag.serving.bootstrap import AIComponents


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        google_api_key="test-google-key",
        supabase_url="https://project.supabase.co",
        supabase_service_role_key="test-service-role-key",
        support_email=SUPPORT_EMAIL,
    )


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore(hits=POLICY_HITS)


@pytest.fixture()
def echo_llm() -> RecordingLLM:
    return RecordingLLM()


@pytest.fixture()
def make_components(test_settings: Settings) -> Callable[..., AIComponents]:
    """Factory building an :class:`AIComponents` bundle around fakes."""

    def _make(store: VectorStoreBase, llm: RecordingLLM | Any) -> AIComponents:
        runnable = llm.runnable if isinstance(llm, RecordingLLM) else llm
        memory = ConversationMemory()
        retriever = PolicyRetriever(store, k=test_settings.retrieval_k)
        pipeline = AnswerPipeline(retriever, runnable, memory, support_email=SUPPORT_EMAIL)
        return AIComponents(
            settings=test_settings,
            llm=runnable,
            store=store,
            retriever=retriever,
            memory=memory,
            pipeline=pipeline,
        )

    return _make
