"""Conversation memory — append-only turn logs keyed by session.

Every session owns its turn list and an ``asyncio.Lock``.  The answer
pipeline holds the lock from reading the history until the new turn is
recorded, so concurrent questions in one session are serialized and no
turn is lost.  Retrieval runs before the lock is taken.  Reads never
create a session; only :meth:`ConversationMemory.session` and
:meth:`ConversationMemory.append` do.  Requests that do not name a
session share :data:`DEFAULT_SESSION`, i.e. one global conversation.

Memory lives in-process only and is lost on restart.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, get_buffer_string

DEFAULT_SESSION = "default"


@dataclass(frozen=True)
class ConversationTurn:
    """One question and the answer given to it."""

    question: str
    answer: str

    def to_messages(self) -> list[BaseMessage]:
        return [HumanMessage(content=self.question), AIMessage(content=self.answer)]


def render_history(turns: list[ConversationTurn]) -> str:
    """Render *turns* as ``Human: …`` / ``AI: …`` lines, oldest first."""
    messages: list[BaseMessage] = []
    for turn in turns:
        messages.extend(turn.to_messages())
    return get_buffer_string(messages)


class SessionLog:
    """Ordered turns of a single conversation plus the lock guarding them."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.lock = asyncio.Lock()
        self._turns: list[ConversationTurn] = []

    @property
    def turns(self) -> list[ConversationTurn]:
        return list(self._turns)

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def __len__(self) -> int:
        return len(self._turns)


class ConversationMemory:
    """Map of session id → :class:`SessionLog`."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionLog] = {}

    def _log(self, session_id: str | None) -> SessionLog:
        """Return the session's log, creating it on first write."""
        key = session_id or DEFAULT_SESSION
        log = self._sessions.get(key)
        if log is None:
            log = self._sessions[key] = SessionLog(key)
        return log

    @asynccontextmanager
    async def session(self, session_id: str | None = None) -> AsyncIterator[SessionLog]:
        """Hold exclusive access to one session's log."""
        log = self._log(session_id)
        async with log.lock:
            yield log

    def _existing(self, session_id: str | None) -> SessionLog | None:
        return self._sessions.get(session_id or DEFAULT_SESSION)

    def history(self, session_id: str | None = None) -> list[ConversationTurn]:
        log = self._existing(session_id)
        return log.turns if log is not None else []

    def append(self, session_id: str | None, question: str, answer: str) -> ConversationTurn:
        turn = ConversationTurn(question=question, answer=answer)
        self._log(session_id).append(turn)
        return turn

    def turn_count(self, session_id: str | None = None) -> int:
        log = self._existing(session_id)
        return len(log) if log is not None else 0

    def __len__(self) -> int:
        """Number of sessions held in memory."""
        return len(self._sessions)
