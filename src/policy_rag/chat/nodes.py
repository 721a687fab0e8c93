"""Graph nodes — each method is one step of the answer workflow.

Node contract
-------------
* Accepts the full :class:`AnswerState` dict.
* Returns a *partial* dict with **only the keys that changed**.
* Collaborators (retriever, LLM, memory) are injected through
  :class:`AnswerNodes` so every node is testable with fakes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from langchain_core.output_parsers import StrOutputParser
from langchain_core.runnables import Runnable

from policy_rag.chat.memory import ConversationMemory
from policy_rag.chat.prompts import build_answer_prompt
from policy_rag.chat.state import AnswerState
from policy_rag.errors import GenerationError
from policy_rag.retrieval.retriever import PolicyRetriever

logger = logging.getLogger(__name__)


class AnswerNodes:
    """The four steps of answering a question, bound to their collaborators."""

    def __init__(
        self,
        retriever: PolicyRetriever,
        llm: Runnable,
        memory: ConversationMemory,
        *,
        support_email: str,
    ) -> None:
        self.retriever = retriever
        self.memory = memory
        self.support_email = support_email
        self._chain = llm | StrOutputParser()

    # ── 1. RETRIEVE ───────────────────────────────────────────────────

    async def retrieve(self, state: AnswerState) -> dict[str, Any]:
        """Fetch the top-k chunks for the new question only."""
        try:
            chunks = await asyncio.to_thread(self.retriever.search, state["question"])
        except Exception as exc:
            raise GenerationError(f"Retrieval failed: {exc}") from exc
        logger.info("Retrieved %d chunk(s)", len(chunks))
        return {"chunks": chunks}

    # ── 2. LOAD HISTORY ───────────────────────────────────────────────

    async def load_history(self, state: AnswerState) -> dict[str, Any]:
        return {"history": self.memory.history(state["session_id"])}

    # ── 3. GENERATE ───────────────────────────────────────────────────

    async def generate(self, state: AnswerState) -> dict[str, Any]:
        """Render the prompt, call the LLM and normalise its text output."""
        prompt = build_answer_prompt(
            state["question"],
            state.get("chunks", []),
            state.get("history", []),
            support_email=self.support_email,
        )
        try:
            raw = await self._chain.ainvoke(prompt)
        except Exception as exc:
            raise GenerationError(f"LLM call failed: {exc}") from exc
        return {"prompt": prompt, "answer": normalize_answer(raw)}

    # ── 4. RECORD TURN ────────────────────────────────────────────────

    async def record_turn(self, state: AnswerState) -> dict[str, Any]:
        self.memory.append(state["session_id"], state["question"], state["answer"])
        logger.info(
            "Answer generated, session %r now has %d turn(s) (%d session(s) in memory)",
            state["session_id"],
            self.memory.turn_count(state["session_id"]),
            len(self.memory),
        )
        return {"answer": state["answer"]}


def normalize_answer(raw: Any) -> str:
    """Coerce model output to stripped plain text."""
    if raw is None:
        return ""
    return str(raw).strip()
