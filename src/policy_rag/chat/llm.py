"""LLM initialisation — single place to swap providers.

The hosted model is Google Gemini through ``langchain-google-genai``.
Temperature is pinned low so answers stay close to the policy text,
and ``max_retries`` bounds the client's built-in retry on transient
failures; nothing above this layer retries.
"""

from __future__ import annotations

import logging

from langchain_google_genai import ChatGoogleGenerativeAI

from policy_rag.config import Settings, settings

logger = logging.getLogger(__name__)


def get_llm(config: Settings | None = None) -> ChatGoogleGenerativeAI:
    """Return the configured chat model."""
    config = config or settings
    logger.info(
        "Initialising Gemini LLM %s (temperature=%s, max_retries=%d)",
        config.llm_model_name,
        config.llm_temperature,
        config.llm_max_retries,
    )
    return ChatGoogleGenerativeAI(
        model=config.llm_model_name,
        google_api_key=config.google_api_key,
        temperature=config.llm_temperature,
        max_retries=config.llm_max_retries,
    )
