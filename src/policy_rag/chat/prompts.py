"""Prompt template for answering return-policy questions.

The template carries the grounding policy: answer only from the
retrieved policy excerpts, and fall back to a fixed sentence pointing
to customer support otherwise.  The model is trusted to follow it; the
code only guarantees what is put into the prompt.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.prompts import PromptTemplate

from policy_rag.chat.memory import render_history

if TYPE_CHECKING:
    from policy_rag.chat.memory import ConversationTurn
    from policy_rag.retrieval.models import RetrievedChunk

FALLBACK_ANSWER = (
    "Unfortunately I could not find an answer to your question in our return policy. "
    "Please contact us by e-mail at {support_email} and we will be happy to help you."
)

ANSWER_TEMPLATE = """\
Use only the following excerpts from the return policy to answer the user's question.
Always answer neutrally and factually, based on the information provided.
If you can NOT find the answer in the provided text, politely reply with: "{fallback_answer}"
---------------------
{context}
---------------------
Conversation history:
{chat_history}

User question: {question}
Answer:"""

ANSWER_PROMPT = PromptTemplate.from_template(ANSWER_TEMPLATE)

CONTEXT_SEPARATOR = "\n\n"


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Concatenate retrieved chunk texts in retrieval order."""
    return CONTEXT_SEPARATOR.join(chunk.content for chunk in chunks)


def fallback_answer(support_email: str) -> str:
    return FALLBACK_ANSWER.format(support_email=support_email)


def build_answer_prompt(
    question: str,
    chunks: list[RetrievedChunk],
    history: list[ConversationTurn],
    *,
    support_email: str,
) -> str:
    """Render the full prompt for one question."""
    return ANSWER_PROMPT.format(
        fallback_answer=fallback_answer(support_email),
        context=format_context(chunks),
        chat_history=render_history(history),
        question=question,
    )
