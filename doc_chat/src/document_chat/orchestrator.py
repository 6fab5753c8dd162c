from __future__ import annotations

from typing import Optional

from doc_chat.exception import ValidationError
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.src.document_chat.answer import AnswerComposer
from doc_chat.src.document_chat.history import HistoryStore
from doc_chat.src.document_chat.retrieval import Retriever
from doc_chat.utils.lock_table import LockTable


class ChatOrchestrator:
    """
    Chat pipeline for one question:
      1. Validate session id + question
      2. Take the session's conversation lock
      3. Read history, retrieve context, ask the LLM
      4. Append the new turn

    Holding the lock across 3-4 keeps two concurrent questions on the same
    session from both answering against the same history and losing a turn.
    History is only written after a successful completion.
    """

    def __init__(
        self,
        retriever: Retriever,
        composer: AnswerComposer,
        history: HistoryStore,
        max_question_chars: int = 1000,
        lock_shards: int = 64,
    ):
        self.retriever = retriever
        self.composer = composer
        self.history = history
        self.max_question_chars = max_question_chars
        self._conversation_locks = LockTable(lock_shards)

    def validate(self, session_id: Optional[str], question: Optional[str]) -> tuple[str, str]:
        session_id = session_id.strip() if isinstance(session_id, str) else ""
        if not session_id:
            raise ValidationError("Session ID is required")
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Question is required")
        if len(question) > self.max_question_chars:
            raise ValidationError("Question too long")
        return session_id, question

    async def chat(self, session_id: Optional[str], question: Optional[str]) -> str:
        session_id, question = self.validate(session_id, question)
        log.info("Chat request received | session_id=%s", session_id)

        async with self._conversation_locks.lock_for(session_id):
            history = await self.history.read(session_id)
            context = await self.retriever.retrieve(question, session_id)
            answer = await self.composer.answer(context, history, question)
            turns = await self.history.append(session_id, question, answer)

        log.info(
            "Chat completed | session_id=%s | context_chunks=%d | history_turns=%d",
            session_id, len(context), turns,
        )
        return answer
