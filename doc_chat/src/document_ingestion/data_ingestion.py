from __future__ import annotations

from typing import Iterable, Optional

from doc_chat.exception import UnsupportedFormatError, ValidationError
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.src.document_ingestion.chunker import Chunker
from doc_chat.src.vector_store.embeddings import EmbeddingGateway
from doc_chat.src.vector_store.pinecone_store import PineconeVectorStore
from doc_chat.utils.document_ops import SUPPORTED_MIME_TYPES, extract_text
from doc_chat.utils.thread_pool import run_sync

DEFAULT_MAX_BYTES = 50 * 1024 * 1024


class DataIngestor:
    """
    Upload pipeline for one document:

    - validate session id, MIME type and size
    - extract text (off the event loop)
    - chunk with overlap
    - embed chunks in "passage" mode
    - upsert into the session's namespace

    Nothing is written unless every step before the upsert succeeded.
    """

    def __init__(
        self,
        chunker: Chunker,
        embeddings: EmbeddingGateway,
        store: PineconeVectorStore,
        allowed_mime_types: Iterable[str] = SUPPORTED_MIME_TYPES,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.chunker = chunker
        self.embeddings = embeddings
        self.store = store
        self.allowed_mime_types = frozenset(allowed_mime_types)
        self.max_bytes = max_bytes

    def check_request(self, session_id: Optional[str], size: Optional[int], mime_type: Optional[str]) -> str:
        """
        Check the request before any parsing; returns the cleaned session id.

        ``size`` is the upload's byte count, or None when no file was sent. It
        is enough on its own, so callers can reject a request before reading
        the body.
        """
        session_id = (session_id or "").strip()
        if not session_id:
            raise ValidationError("Session ID is required")
        if size is None:
            raise ValidationError("No file uploaded")
        if mime_type not in self.allowed_mime_types:
            raise UnsupportedFormatError(
                "Invalid file type. Only TXT, PDF, CSV, and DOCX are allowed"
            )
        if size == 0:
            raise ValidationError("Uploaded file is empty")
        if size > self.max_bytes:
            raise ValidationError(
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB",
                status_code=413,
            )
        return session_id

    def validate(self, session_id: Optional[str], payload: Optional[bytes], mime_type: Optional[str]) -> str:
        return self.check_request(session_id, None if payload is None else len(payload), mime_type)

    async def ingest(self, session_id: Optional[str], payload: Optional[bytes], mime_type: Optional[str]) -> int:
        """Store one document under ``session_id``; returns the number of chunks written."""
        session_id = self.validate(session_id, payload, mime_type)
        log.info(
            "Starting ingestion | session_id=%s | mime_type=%s | bytes=%d",
            session_id, mime_type, len(payload),
        )

        text = await run_sync(extract_text, payload, mime_type)

        chunks = self.chunker.split(text, session_id)
        texts = [c.text for c in chunks]

        vectors = await self.embeddings.embed(texts, mode="passage")
        records = self.store.build_records(session_id, texts, vectors)
        await self.store.upsert(session_id, records)

        log.info("Upload completed | session_id=%s | chunks=%d", session_id, len(records))
        return len(records)
