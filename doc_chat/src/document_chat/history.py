from __future__ import annotations

from typing import Dict, List, NamedTuple

from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.utils.lock_table import LockTable


class ConversationTurn(NamedTuple):
    question: str
    answer: str


class HistoryStore:
    """
    Process-wide, in-memory conversation history keyed by session id.

    Created at application startup and cleared at shutdown; nothing survives
    a restart. Each session keeps at most ``max_turns`` turns, oldest evicted
    first. Access to one session is serialized through a sharded lock table.
    """

    # TODO: TTL sweep for idle sessions; the map grows with every new session id.

    def __init__(
        self,
        max_turns: int = 10,
        max_question_chars: int = 500,
        max_answer_chars: int = 2000,
        lock_shards: int = 64,
    ):
        self.max_turns = max_turns
        self.max_question_chars = max_question_chars
        self.max_answer_chars = max_answer_chars
        self._locks = LockTable(lock_shards)
        self._sessions: Dict[str, List[ConversationTurn]] = {}

    async def read(self, session_id: str) -> List[ConversationTurn]:
        """Chronological snapshot of the session's turns (empty if unseen)."""
        async with self._locks.lock_for(session_id):
            return list(self._sessions.get(session_id, ()))

    async def append(self, session_id: str, question: str, answer: str) -> int:
        """Append one turn and return the history length afterwards."""
        turn = ConversationTurn(
            question[: self.max_question_chars], answer[: self.max_answer_chars]
        )
        async with self._locks.lock_for(session_id):
            turns = self._sessions.setdefault(session_id, [])
            turns.append(turn)
            evicted = len(turns) - self.max_turns
            if evicted > 0:
                del turns[:evicted]
            size = len(turns)

        log.debug("History appended | session_id=%s | turns=%d", session_id, size)
        return size

    async def clear(self) -> None:
        count = len(self._sessions)
        self._sessions.clear()
        log.info("History cleared | sessions=%d", count)

    def __len__(self) -> int:
        return len(self._sessions)
