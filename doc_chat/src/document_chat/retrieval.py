from typing import List

from doc_chat.exception import EmbeddingServiceError, RetrievalError
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.src.vector_store.embeddings import EmbeddingGateway
from doc_chat.src.vector_store.pinecone_store import SEVEN_DAYS_MS, PineconeVectorStore


class Retriever:
    """
    Embeds the question in "query" mode and pulls the closest chunks from
    the session's own namespace, limited to the trailing time window.
    Only raw chunk text is handed back; scores and metadata stop here.
    """

    def __init__(
        self,
        embeddings: EmbeddingGateway,
        store: PineconeVectorStore,
        top_k: int = 5,
        max_age_ms: int = SEVEN_DAYS_MS,
    ):
        self.embeddings = embeddings
        self.store = store
        self.top_k = top_k
        self.max_age_ms = max_age_ms

        log.info(
            "Retriever initialized | top_k=%d | max_age_ms=%d", self.top_k, self.max_age_ms
        )

    async def retrieve(self, question: str, session_id: str) -> List[str]:
        try:
            vectors = await self.embeddings.embed([question], mode="query")
        except EmbeddingServiceError as e:
            log.error("Query embedding failed | session_id=%s | error=%s", session_id, e.message)
            raise RetrievalError("Failed to process query", e) from e

        if len(vectors) != 1:
            log.error(
                "Query embedding returned %d vectors | session_id=%s", len(vectors), session_id
            )
            raise RetrievalError(f"Expected exactly one query vector, got {len(vectors)}")

        matches = await self.store.query(
            session_id, vectors[0], top_k=self.top_k, max_age_ms=self.max_age_ms
        )
        log.info("Context retrieved | session_id=%s | chunks=%d", session_id, len(matches))
        return [text for text, _score in matches]
