"""
Chat — the question-answering workflow built with LangGraph.

This module contains **zero** infrastructure dependencies: the
retriever, LLM and memory are injected, so the workflow can be tested
locally without Supabase or Gemini.

Public API
----------
- :class:`AnswerPipeline` — answer a question within a session.
- :class:`ConversationMemory` — session-keyed turn logs.
- :func:`build_graph` — compile the answer workflow.
"""

from policy_rag.chat.graph import build_graph
from policy_rag.chat.memory import DEFAULT_SESSION, ConversationMemory, ConversationTurn
from policy_rag.chat.pipeline import AnswerPipeline
from policy_rag.chat.state import AnswerState, create_initial_state

__all__ = [
    "DEFAULT_SESSION",
    "AnswerPipeline",
    "AnswerState",
    "ConversationMemory",
    "ConversationTurn",
    "build_graph",
    "create_initial_state",
]
