from __future__ import annotations

from typing import Any, Dict, List, Sequence

from doc_chat.exception import CompletionError
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.prompts.prompt_library import PROMPT_REGISTRY
from doc_chat.src.document_chat.history import ConversationTurn
from doc_chat.utils.thread_pool import run_sync

ChatMessage = Dict[str, str]

# langchain message type -> chat completions role
_ROLES = {"system": "system", "human": "user", "ai": "assistant"}


def render_history(history: Sequence[ConversationTurn]) -> str:
    return "\n".join(f"User: {q}\nAssistant: {a}" for q, a in history)


class AnswerComposer:
    """
    Builds the chat prompt (system instruction with context and history,
    then the raw question) and reads back one completion from Groq.
    """

    def __init__(
        self,
        llm_client: Any,
        model_name: str = "llama-3.3-70b-versatile",
        temperature: float = 0.7,
        max_tokens: int = 500,
    ):
        self.llm_client = llm_client
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.prompt = PROMPT_REGISTRY["document_qa"]

    def compose(
        self,
        context_chunks: Sequence[str],
        history: Sequence[ConversationTurn],
        question: str,
    ) -> List[ChatMessage]:
        messages = self.prompt.format_messages(
            context="\n".join(context_chunks),
            history=render_history(history),
            question=question,
        )
        return [{"role": _ROLES[m.type], "content": m.content} for m in messages]

    def _complete_sync(self, messages: List[ChatMessage]) -> Any:
        return self.llm_client.chat.completions.create(
            messages=messages,
            model=self.model_name,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    async def complete(self, messages: List[ChatMessage]) -> str:
        try:
            resp = await run_sync(self._complete_sync, messages)
        except Exception as e:
            log.error("LLM API error | model=%s | error=%s", self.model_name, str(e))
            raise CompletionError("Failed to generate response", e) from e

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            log.error("LLM response malformed | model=%s | error=%s", self.model_name, str(e))
            raise CompletionError("LLM response missing completion", e) from e

        if not isinstance(content, str):
            log.error("LLM response has no completion text | model=%s", self.model_name)
            raise CompletionError("LLM response missing completion")
        return content

    async def answer(
        self,
        context_chunks: Sequence[str],
        history: Sequence[ConversationTurn],
        question: str,
    ) -> str:
        messages = self.compose(context_chunks, history, question)
        log.info(
            "Prompt composed | context_chunks=%d | history_turns=%d",
            len(context_chunks),
            len(history),
        )
        return await self.complete(messages)
