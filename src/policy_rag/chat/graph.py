"""LangGraph graph definition — the answer workflow.

This module wires the nodes defined in :mod:`policy_rag.chat.nodes`
into compiled :class:`StateGraph` objects.  The workflow is linear:

1. **Retrieve** the top-k policy chunks for the question.
2. **Load** the session's conversation history.
3. **Generate** the answer from the rendered prompt.
4. **Record** the new turn in memory.

Steps 2-4 form the *turn* subgraph, which runs while the session's lock
is held.  Retrieval runs before the lock is taken, so questions in the
same session still embed and search concurrently.  Retrieval sees only
the new question; history only shapes generation.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, StateGraph

from policy_rag.chat.nodes import AnswerNodes
from policy_rag.chat.state import AnswerState

TURN_STEPS = ("load_history", "generate", "record_turn")
NODE_ORDER = ("retrieve", *TURN_STEPS)


def _linear(workflow: StateGraph, steps: tuple[str, ...]) -> None:
    workflow.set_entry_point(steps[0])
    for src, dst in zip(steps, steps[1:]):
        workflow.add_edge(src, dst)
    workflow.add_edge(steps[-1], END)


def build_turn_graph(nodes: AnswerNodes):
    """Compile the steps that read and write session memory.

    Graph topology::

        load_history → generate → record_turn → END
    """
    workflow = StateGraph(AnswerState)
    for name in TURN_STEPS:
        workflow.add_node(name, getattr(nodes, name))
    _linear(workflow, TURN_STEPS)
    return workflow.compile()


def build_graph(nodes: AnswerNodes):
    """Construct and return the compiled answer graph.

    Graph topology::

        retrieve → turn → END

    where ``turn`` holds the session lock around :func:`build_turn_graph`.

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.ainvoke()``.
    """
    turn_graph = build_turn_graph(nodes)

    async def turn(state: AnswerState) -> dict[str, Any]:
        async with nodes.memory.session(state["session_id"]):
            return await turn_graph.ainvoke(state)

    workflow = StateGraph(AnswerState)
    workflow.add_node("retrieve", nodes.retrieve)
    workflow.add_node("turn", turn)
    _linear(workflow, ("retrieve", "turn"))

    return workflow.compile()
