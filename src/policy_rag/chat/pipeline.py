"""Answer pipeline — validate the question, then run the answer graph."""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.runnables import Runnable

from policy_rag.chat.graph import build_graph
from policy_rag.chat.memory import DEFAULT_SESSION, ConversationMemory
from policy_rag.chat.nodes import AnswerNodes
from policy_rag.chat.state import create_initial_state
from policy_rag.config import settings
from policy_rag.errors import GenerationError, ValidationError
from policy_rag.retrieval.retriever import PolicyRetriever

logger = logging.getLogger(__name__)


class AnswerPipeline:
    """Answers questions from retrieved policy context and session history.

    Parameters
    ----------
    retriever:
        Returns the top-k policy chunks for a question.
    llm:
        Chat model (or any runnable) taking the rendered prompt.
    memory:
        Session-keyed conversation memory; each answered question adds
        exactly one turn to its session.
    support_email:
        Contact address used in the prompt's fallback sentence.
    """

    def __init__(
        self,
        retriever: PolicyRetriever,
        llm: Runnable,
        memory: ConversationMemory,
        *,
        support_email: str = settings.support_email,
    ) -> None:
        self.retriever = retriever
        self.llm = llm
        self.memory = memory
        self.graph = build_graph(AnswerNodes(retriever, llm, memory, support_email=support_email))

    async def run(self, question: Any, session_id: str | None = None) -> dict[str, Any]:
        """Answer *question* and return the final graph state.

        Raises
        ------
        ValidationError
            If *question* is missing, not a string, or blank.
        GenerationError
            If retrieval or the LLM call fails.  Memory is left untouched.
        """
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Question is missing from the request.")

        session_id = session_id or DEFAULT_SESSION
        logger.info("Question received for session %r", session_id)

        try:
            return await self.graph.ainvoke(create_initial_state(question, session_id))
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(f"Answer pipeline failed: {exc}") from exc

    async def answer(self, question: Any, session_id: str | None = None) -> str:
        state = await self.run(question, session_id)
        return state["answer"]
