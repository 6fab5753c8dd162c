"""
Embedding gateway over the Pinecone Inference API.

The hosted model answers in one of two shapes depending on SDK version:
a bare list of records, or an object (``EmbeddingsList``) whose ``data``
attribute holds the records. Each record carries a ``values`` list.
``decode_embedding_response`` accepts exactly those two shapes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, List, Literal, Optional

from doc_chat.exception import EmbeddingServiceError
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.utils.thread_pool import run_sync

EmbeddingMode = Literal["passage", "query"]
EmbeddingVector = List[float]

_MODES = ("passage", "query")


@dataclass(frozen=True)
class BareArrayResponse:
    records: Sequence[Any]


@dataclass(frozen=True)
class WrappedDataResponse:
    records: Sequence[Any]


def _is_record_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _classify(payload: Any) -> BareArrayResponse | WrappedDataResponse:
    if _is_record_list(payload):
        return BareArrayResponse(payload)

    data = payload.get("data") if isinstance(payload, Mapping) else getattr(payload, "data", None)
    if _is_record_list(data):
        return WrappedDataResponse(data)

    raise EmbeddingServiceError(
        f"Invalid embedding response format: {type(payload).__name__}"
    )


def _values_of(record: Any) -> EmbeddingVector:
    # dicts expose a .values() method, so mappings are checked by key first
    values = record.get("values") if isinstance(record, Mapping) else getattr(record, "values", None)
    if not _is_record_list(values):
        raise EmbeddingServiceError("Embedding record has no values")
    return [float(v) for v in values]


def decode_embedding_response(payload: Any) -> List[EmbeddingVector]:
    """Decode either accepted response shape into a list of vectors."""
    response = _classify(payload)
    return [_values_of(r) for r in response.records]


class EmbeddingGateway:
    """
    Turns text into vectors with the hosted embedding model.

    ``client`` is a ``pinecone.Pinecone`` instance (only ``client.inference``
    is used). Inputs are sent in batches of ``batch_size``; the output list is
    always aligned 1:1 with the input list.
    """

    def __init__(
        self,
        client: Any,
        model_name: str = "multilingual-e5-large",
        batch_size: int = 32,
        truncate: str = "END",
        dimension: Optional[int] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.client = client
        self.model_name = model_name
        self.batch_size = batch_size
        self.truncate = truncate
        self.dimension = dimension

    def _embed_batch(self, batch: List[str], mode: EmbeddingMode) -> List[EmbeddingVector]:
        response = self.client.inference.embed(
            model=self.model_name,
            inputs=batch,
            parameters={"input_type": mode, "truncate": self.truncate},
        )
        vectors = decode_embedding_response(response)

        if len(vectors) != len(batch):
            raise EmbeddingServiceError(
                f"Embedding count mismatch: sent {len(batch)} texts, got {len(vectors)} vectors"
            )
        if self.dimension is not None:
            for v in vectors:
                if len(v) != self.dimension:
                    raise EmbeddingServiceError(
                        f"Embedding dimension mismatch: expected {self.dimension}, got {len(v)}"
                    )
        return vectors

    async def embed(self, texts: Sequence[str], mode: EmbeddingMode = "passage") -> List[EmbeddingVector]:
        if mode not in _MODES:
            raise ValueError(f"mode must be one of {_MODES}, got {mode!r}")
        if isinstance(texts, str) or not texts:
            raise EmbeddingServiceError("Texts must be a non-empty list")

        texts = list(texts)
        log.debug("Generating embeddings | mode=%s | count=%d | first=%r", mode, len(texts), texts[:3])

        vectors: List[EmbeddingVector] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            try:
                vectors.extend(await run_sync(self._embed_batch, batch, mode))
            except EmbeddingServiceError as e:
                log.error(
                    "Embedding batch rejected | mode=%s | batch=%d-%d | error=%s",
                    mode, start, start + len(batch) - 1, e.message,
                )
                raise
            except Exception as e:
                log.error(
                    "Embedding generation failed | mode=%s | batch=%d-%d | error=%s",
                    mode, start, start + len(batch) - 1, str(e),
                )
                raise EmbeddingServiceError("Failed to generate embeddings", e) from e

        log.info("Embeddings generated | mode=%s | count=%d", mode, len(vectors))
        return vectors
