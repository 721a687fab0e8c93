"""Answer state — the dict flowing through every node of the answer graph."""

from __future__ import annotations

from typing import TypedDict

from policy_rag.chat.memory import ConversationTurn
from policy_rag.retrieval.models import RetrievedChunk


class AnswerState(TypedDict, total=False):
    """State of one question on its way through the graph.

    Keys
    ----
    question:
        The user's question, unchanged.
    session_id:
        Conversation the question belongs to.
    chunks:
        Policy chunks retrieved for ``question`` alone.
    history:
        Turns of the session recorded before this question.
    prompt:
        The fully rendered prompt sent to the LLM.
    answer:
        Normalised model output.
    """

    question: str
    session_id: str
    chunks: list[RetrievedChunk]
    history: list[ConversationTurn]
    prompt: str
    answer: str


def create_initial_state(question: str, session_id: str) -> AnswerState:
    """Build the initial state dict for ``graph.ainvoke()``."""
    return {
        "question": question,
        "session_id": session_id,
        "chunks": [],
        "history": [],
        "prompt": "",
        "answer": "",
    }
