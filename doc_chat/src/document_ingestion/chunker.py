from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from langchain_text_splitters import RecursiveCharacterTextSplitter

from doc_chat.exception import EmptyDocumentError
from doc_chat.logger import GLOBAL_LOGGER as log

# paragraph -> line -> sentence -> word -> hard character cut
DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", "! ", "? ", " ", ""]


@dataclass(frozen=True)
class DocumentChunk:
    text: str
    source_session_id: str


class Chunker:
    """
    Splits extracted document text into overlapping chunks.

    Chunks target ``chunk_size`` characters with ``chunk_overlap`` characters
    shared between neighbours. The splitter prefers paragraph, line, sentence
    and word boundaries before cutting mid-word.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=DEFAULT_SEPARATORS,
            keep_separator="end",
        )

    def split(self, text: str, session_id: str) -> Iterator[DocumentChunk]:
        """
        Validate eagerly, then hand back a one-shot generator of chunks.

        Raises:
            EmptyDocumentError: text is empty or whitespace-only
        """
        if not text or not text.strip():
            raise EmptyDocumentError("Document contains no readable text")

        parts = self._splitter.split_text(text)
        if not parts:
            raise EmptyDocumentError("No valid text extracted from document")

        log.info(
            "Document split | session_id=%s | chars=%d | chunks=%d",
            session_id,
            len(text),
            len(parts),
        )
        return (DocumentChunk(text=p, source_session_id=session_id) for p in parts)
