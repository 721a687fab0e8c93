"""Unit tests for the answer workflow.

All tests run **without** Supabase or Gemini by injecting the fakes from
``fakes.py``.  The suite validates:

- Conversation memory and history rendering
- Prompt construction (context, history, question, fallback sentence)
- Graph compilation and node order
- The answer pipeline end to end: validation, memory updates,
  history propagation, failure handling
- Concurrent questions against shared memory
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any
from unittest.mock import MagicMock

import pytest
from langchain_core.runnables import RunnableLambda

from fakes import POLICY_HITS, SUPPORT_EMAIL, FakeVectorStore, RecordingLLM
from policy_rag.chat.graph import TURN_STEPS, build_graph, build_turn_graph
from policy_rag.chat.memory import DEFAULT_SESSION, ConversationMemory, ConversationTurn, render_history
from policy_rag.chat.nodes import AnswerNodes, normalize_answer
from policy_rag.chat.pipeline import AnswerPipeline
from policy_rag.chat.prompts import build_answer_prompt, fallback_answer, format_context
from policy_rag.chat.state import create_initial_state
from policy_rag.errors import GenerationError, ValidationError
from policy_rag.retrieval.models import RetrievedChunk
from policy_rag.retrieval.retriever import PolicyRetriever


# ── Fixtures & helpers ─────────────────────────────────────────────────


def _chunks(n: int = 2) -> list[RetrievedChunk]:
    return [RetrievedChunk(content=hit["content"], metadata=hit["metadata"]) for hit in POLICY_HITS[:n]]


def _pipeline(
    llm: RecordingLLM | None = None,
    store: FakeVectorStore | None = None,
) -> tuple[AnswerPipeline, RecordingLLM, FakeVectorStore]:
    llm = llm or RecordingLLM()
    store = store or FakeVectorStore(hits=POLICY_HITS)
    pipeline = AnswerPipeline(
        PolicyRetriever(store, k=3),
        llm.runnable,
        ConversationMemory(),
        support_email=SUPPORT_EMAIL,
    )
    return pipeline, llm, store


# ═══════════════════════════════════════════════════════════════════════
# Memory
# ═══════════════════════════════════════════════════════════════════════


class TestConversationMemory:
    def test_starts_empty(self) -> None:
        memory = ConversationMemory()
        assert memory.history() == []
        assert memory.turn_count() == 0

    def test_append_preserves_order(self) -> None:
        memory = ConversationMemory()
        memory.append(None, "q1", "a1")
        memory.append(None, "q2", "a2")
        assert memory.history() == [ConversationTurn("q1", "a1"), ConversationTurn("q2", "a2")]
        assert memory.history(DEFAULT_SESSION) == memory.history()

    def test_sessions_are_isolated(self) -> None:
        memory = ConversationMemory()
        memory.append("alice", "q1", "a1")
        memory.append("bob", "q2", "a2")
        assert memory.turn_count("alice") == 1
        assert memory.turn_count("bob") == 1
        assert memory.turn_count() == 0
        assert len(memory) == 2

    def test_reads_do_not_create_sessions(self) -> None:
        memory = ConversationMemory()
        memory.append("alice", "q", "a")

        for i in range(100):
            assert memory.history(f"unknown-{i}") == []
            assert memory.turn_count(f"unknown-{i}") == 0

        assert len(memory) == 1

    def test_history_is_a_copy(self) -> None:
        memory = ConversationMemory()
        memory.append(None, "q", "a")
        memory.history().clear()
        assert memory.turn_count() == 1

    def test_render_history(self) -> None:
        turns = [ConversationTurn("Can I return milk?", "No."), ConversationTurn("Shoes?", "Yes.")]
        assert render_history(turns) == "Human: Can I return milk?\nAI: No.\nHuman: Shoes?\nAI: Yes."

    def test_render_empty_history(self) -> None:
        assert render_history([]) == ""

    def test_session_lock_is_exclusive(self) -> None:
        memory = ConversationMemory()

        async def scenario() -> bool:
            async with memory.session("s") as log:
                return log.lock.locked()

        assert asyncio.run(scenario()) is True


# ═══════════════════════════════════════════════════════════════════════
# Prompts
# ═══════════════════════════════════════════════════════════════════════


class TestPrompts:
    def test_format_context_joins_chunks_in_order(self) -> None:
        context = format_context(_chunks(2))
        assert context == f"{POLICY_HITS[0]['content']}\n\n{POLICY_HITS[1]['content']}"

    def test_prompt_includes_context_history_and_question(self) -> None:
        prompt = build_answer_prompt(
            "Can I return opened cheese?",
            _chunks(2),
            [ConversationTurn("Do you accept returns?", "Yes, within 14 days.")],
            support_email=SUPPORT_EMAIL,
        )
        assert POLICY_HITS[0]["content"] in prompt
        assert POLICY_HITS[1]["content"] in prompt
        assert "Human: Do you accept returns?" in prompt
        assert "AI: Yes, within 14 days." in prompt
        assert prompt.rstrip().endswith("User question: Can I return opened cheese?\nAnswer:")

    def test_prompt_enforces_grounding_and_fallback(self) -> None:
        prompt = build_answer_prompt("q", [], [], support_email=SUPPORT_EMAIL)
        assert "Use only the following excerpts" in prompt
        assert fallback_answer(SUPPORT_EMAIL) in prompt
        assert SUPPORT_EMAIL in prompt

    def test_braces_in_context_are_kept_verbatim(self) -> None:
        chunk = RetrievedChunk(content="Fee: {restocking_fee} applies")
        prompt = build_answer_prompt("q", [chunk], [], support_email=SUPPORT_EMAIL)
        assert "{restocking_fee}" in prompt


# ═══════════════════════════════════════════════════════════════════════
# Graph
# ═══════════════════════════════════════════════════════════════════════


class TestGraph:
    def _nodes(self) -> AnswerNodes:
        return AnswerNodes(
            PolicyRetriever(FakeVectorStore(hits=POLICY_HITS)),
            RecordingLLM().runnable,
            ConversationMemory(),
            support_email=SUPPORT_EMAIL,
        )

    def test_graph_has_expected_nodes(self) -> None:
        graph = build_graph(self._nodes())
        node_names = set(graph.get_graph().nodes.keys())
        for expected in ("retrieve", "turn"):
            assert expected in node_names, f"Missing node: {expected}"

    def test_turn_graph_has_memory_steps(self) -> None:
        graph = build_turn_graph(self._nodes())
        node_names = set(graph.get_graph().nodes.keys())
        for expected in TURN_STEPS:
            assert expected in node_names, f"Missing node: {expected}"
        assert "retrieve" not in node_names

    def test_initial_state_keys(self) -> None:
        state = create_initial_state("q", "s")
        assert set(state) == {"question", "session_id", "chunks", "history", "prompt", "answer"}

    def test_full_invocation_returns_state(self) -> None:
        graph = build_graph(self._nodes())
        result = asyncio.run(graph.ainvoke(create_initial_state("Can I return shoes?", "s1")))
        assert len(result["chunks"]) == 3
        assert result["history"] == []
        assert "Can I return shoes?" in result["prompt"]
        assert result["answer"] == result["prompt"].strip()

    def test_normalize_answer(self) -> None:
        assert normalize_answer("  Yes, within 14 days.\n") == "Yes, within 14 days."
        assert normalize_answer(None) == ""


# ═══════════════════════════════════════════════════════════════════════
# Answer pipeline
# ═══════════════════════════════════════════════════════════════════════


class TestAnswerPipeline:
    def test_answer_appends_exactly_one_turn(self) -> None:
        pipeline, llm, _ = _pipeline(RecordingLLM(reply=lambda _: "  Within 14 days.  "))

        answer = asyncio.run(pipeline.answer("How long do I have to return items?"))

        assert answer == "Within 14 days."
        assert pipeline.memory.history() == [
            ConversationTurn("How long do I have to return items?", "Within 14 days.")
        ]
        assert len(llm.prompts) == 1

    def test_prompt_contains_retrieved_context(self) -> None:
        pipeline, llm, _ = _pipeline()
        asyncio.run(pipeline.answer("Can I return milk?"))
        prompt = llm.prompts[0]
        for hit in POLICY_HITS[:3]:
            assert hit["content"] in prompt
        assert POLICY_HITS[3]["content"] not in prompt

    def test_history_propagates_to_next_prompt(self) -> None:
        replies = iter(["You have 14 days.", "Refunds take 5 business days."])
        pipeline, llm, _ = _pipeline(RecordingLLM(reply=lambda _: next(replies)))

        async def conversation() -> None:
            await pipeline.answer("How long is the return window?")
            await pipeline.answer("And the refund?")

        asyncio.run(conversation())

        second_prompt = llm.prompts[1]
        assert "How long is the return window?" in second_prompt
        assert "You have 14 days." in second_prompt
        assert "How long is the return window?" not in llm.prompts[0].split("User question:")[0]

    def test_history_does_not_influence_retrieval(self) -> None:
        pipeline, _, store = _pipeline()

        async def conversation() -> None:
            await pipeline.answer("First question?")
            await pipeline.answer("Second question?")

        asyncio.run(conversation())
        assert store.queries == ["First question?", "Second question?"]

    @pytest.mark.parametrize("question", [None, "", "   ", 42])
    def test_missing_question_is_rejected_without_llm_call(self, question: object) -> None:
        pipeline, llm, store = _pipeline()
        with pytest.raises(ValidationError):
            asyncio.run(pipeline.answer(question))
        assert llm.prompts == []
        assert store.queries == []
        assert pipeline.memory.turn_count() == 0

    def test_retrieval_failure_is_generation_error(self) -> None:
        store = MagicMock()
        store.similarity_search_by_text.side_effect = ConnectionError("supabase unreachable")
        llm = RecordingLLM()
        pipeline = AnswerPipeline(PolicyRetriever(store), llm.runnable, ConversationMemory())

        with pytest.raises(GenerationError, match="Retrieval failed"):
            asyncio.run(pipeline.answer("q?"))
        assert llm.prompts == []
        assert pipeline.memory.turn_count() == 0

    def test_llm_failure_is_generation_error_and_memory_untouched(self) -> None:
        def boom(_: object) -> str:
            raise RuntimeError("503 model overloaded")

        pipeline = AnswerPipeline(
            PolicyRetriever(FakeVectorStore(hits=POLICY_HITS)),
            RunnableLambda(boom),
            ConversationMemory(),
        )
        with pytest.raises(GenerationError, match="LLM call failed") as excinfo:
            asyncio.run(pipeline.answer("q?"))
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert pipeline.memory.turn_count() == 0

    def test_run_returns_final_state(self) -> None:
        pipeline, _, _ = _pipeline(RecordingLLM(reply=lambda _: "ok"))
        state = asyncio.run(pipeline.run("q?", session_id="abc"))
        assert state["session_id"] == "abc"
        assert state["answer"] == "ok"
        assert pipeline.memory.turn_count("abc") == 1
        assert pipeline.memory.turn_count() == 0


# ═══════════════════════════════════════════════════════════════════════
# Concurrency
# ═══════════════════════════════════════════════════════════════════════


class TestConcurrentQuestions:
    """Concurrent calls on one session record turns one at a time; none are dropped.

    Completion order between the calls is not specified, only that each
    call records exactly one turn and sees every turn recorded before it.
    """

    def test_no_turns_are_dropped(self) -> None:
        pipeline, llm, _ = _pipeline(RecordingLLM(reply=lambda p: "answer", delay=0.01))
        questions = [f"Question {i}?" for i in range(5)]

        async def ask_all() -> list[str]:
            return await asyncio.gather(*(pipeline.answer(q) for q in questions))

        answers = asyncio.run(ask_all())

        assert answers == ["answer"] * 5
        turns = pipeline.memory.history()
        assert len(turns) == len(questions)
        assert sorted(t.question for t in turns) == sorted(questions)

    def test_later_call_sees_earlier_turn(self) -> None:
        pipeline, llm, _ = _pipeline(RecordingLLM(reply=lambda p: "answer", delay=0.01))

        async def ask_both() -> None:
            await asyncio.gather(pipeline.answer("Alpha?"), pipeline.answer("Beta?"))

        asyncio.run(ask_both())

        first, second = llm.prompts
        first_question = "Alpha?" if "User question: Alpha?" in first else "Beta?"
        assert f"Human: {first_question}" in second

    def test_sessions_do_not_share_history(self) -> None:
        pipeline, llm, _ = _pipeline(RecordingLLM(reply=lambda p: "answer", delay=0.01))

        async def ask_both() -> None:
            await asyncio.gather(
                pipeline.answer("Alpha?", session_id="a"),
                pipeline.answer("Beta?", session_id="b"),
            )

        asyncio.run(ask_both())

        assert pipeline.memory.turn_count("a") == 1
        assert pipeline.memory.turn_count("b") == 1
        assert all("Human:" not in prompt for prompt in llm.prompts)

    def test_retrieval_runs_outside_the_session_lock(self) -> None:
        """Three default-session questions must all be inside retrieval at once."""

        class BarrierStore(FakeVectorStore):
            def __init__(self) -> None:
                super().__init__(hits=POLICY_HITS)
                self.barrier = threading.Barrier(3, timeout=5)

            def similarity_search_by_text(self, query: str, **kwargs: Any) -> list[dict[str, Any]]:
                self.barrier.wait()
                return super().similarity_search_by_text(query, **kwargs)

        pipeline, _, store = _pipeline(RecordingLLM(reply=lambda p: "answer"), BarrierStore())

        async def ask_all() -> list[str]:
            return await asyncio.gather(*(pipeline.answer(f"Question {i}?") for i in range(3)))

        assert asyncio.run(ask_all()) == ["answer"] * 3
        assert not store.barrier.broken
        assert pipeline.memory.turn_count() == 3
