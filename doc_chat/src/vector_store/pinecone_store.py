from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pinecone import ServerlessSpec

from doc_chat.exception import RetrievalError, StartupProvisioningError, StorageWriteError
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.utils.thread_pool import run_sync

SEVEN_DAYS_MS = 604_800_000


def now_millis() -> int:
    return int(time.time() * 1000)


def make_record_id(session_id: str, timestamp_ms: int, index: int) -> str:
    """Unique per chunk; the random suffix covers uploads landing in the same millisecond."""
    return f"doc-{session_id}-{timestamp_ms}-{index}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class StoredVectorRecord:
    id: str
    values: List[float]
    text: str
    timestamp: int
    session_id: str

    @property
    def metadata(self) -> Dict[str, Any]:
        return {"text": self.text, "timestamp": self.timestamp, "sessionId": self.session_id}

    def to_pinecone(self) -> Dict[str, Any]:
        return {"id": self.id, "values": self.values, "metadata": self.metadata}


@dataclass(frozen=True)
class IndexSpec:
    name: str = "doc-chat-index"
    dimension: int = 1024
    metric: str = "cosine"
    cloud: str = "aws"
    region: str = "us-east-1"
    settle_seconds: float = 60.0


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorStore:
    """
    Session-scoped wrapper over a Pinecone index.

    Every read and write goes to namespace ``{namespace_prefix}{session_id}``.
    Records carry ``text``, ``timestamp`` (epoch ms) and ``sessionId``
    metadata; queries filter on both and the results are re-checked here, so
    a match from another session or outside the window never leaves this class.
    """

    def __init__(
        self,
        index: Any,
        namespace_prefix: str = "user-",
        upsert_batch_size: int = 100,
        clock: Callable[[], int] = now_millis,
    ):
        self.index = index
        self.namespace_prefix = namespace_prefix
        self.upsert_batch_size = upsert_batch_size
        self.clock = clock

    # -------------------------------------------------
    # Provisioning
    # -------------------------------------------------
    @staticmethod
    def provision(client: Any, spec: IndexSpec, sleep: Callable[[float], None] = time.sleep) -> Any:
        """
        Create the index if it does not exist yet, wait for it to settle when
        freshly created, and return a handle to it.

        Raises:
            StartupProvisioningError: on any failure; callers exit the process
        """
        try:
            existing = client.list_indexes().names()
            if spec.name not in existing:
                log.info(
                    "Creating Pinecone index | name=%s | dimension=%d | metric=%s",
                    spec.name, spec.dimension, spec.metric,
                )
                client.create_index(
                    name=spec.name,
                    dimension=spec.dimension,
                    metric=spec.metric,
                    spec=ServerlessSpec(cloud=spec.cloud, region=spec.region),
                )
                log.info("Waiting for index to settle | seconds=%s", spec.settle_seconds)
                sleep(spec.settle_seconds)
            else:
                log.info("Pinecone index already exists | name=%s", spec.name)

            return client.Index(spec.name)
        except Exception as e:
            log.critical("Pinecone initialization failed | error=%s", str(e))
            raise StartupProvisioningError("Pinecone initialization failed", e) from e

    def namespace_for(self, session_id: str) -> str:
        return f"{self.namespace_prefix}{session_id}"

    # -------------------------------------------------
    # Writes
    # -------------------------------------------------
    def build_records(
        self, session_id: str, texts: Sequence[str], vectors: Sequence[List[float]]
    ) -> List[StoredVectorRecord]:
        if len(texts) != len(vectors):
            raise StorageWriteError(
                f"Length mismatch: {len(texts)} texts vs {len(vectors)} vectors"
            )
        ts = self.clock()
        return [
            StoredVectorRecord(
                id=make_record_id(session_id, ts, i),
                values=list(vec),
                text=txt,
                timestamp=ts,
                session_id=session_id,
            )
            for i, (txt, vec) in enumerate(zip(texts, vectors))
        ]

    def _upsert_sync(self, namespace: str, payload: List[Dict[str, Any]]) -> None:
        for start in range(0, len(payload), self.upsert_batch_size):
            batch = payload[start : start + self.upsert_batch_size]
            self.index.upsert(vectors=batch, namespace=namespace)

    async def upsert(self, session_id: str, records: Sequence[StoredVectorRecord]) -> None:
        if not records:
            return

        foreign = [r.id for r in records if r.session_id != session_id]
        if foreign:
            log.error(
                "Refusing cross-session write | session_id=%s | foreign_records=%d",
                session_id, len(foreign),
            )
            raise StorageWriteError("Records belong to a different session")

        namespace = self.namespace_for(session_id)
        payload = [r.to_pinecone() for r in records]
        try:
            await run_sync(self._upsert_sync, namespace, payload)
        except Exception as e:
            log.error(
                "Vector storage failed | session_id=%s | records=%d | error=%s",
                session_id, len(payload), str(e),
            )
            raise StorageWriteError("Failed to store document", e) from e

        log.info(
            "Vectors upserted | session_id=%s | namespace=%s | count=%d",
            session_id, namespace, len(payload),
        )

    # -------------------------------------------------
    # Reads
    # -------------------------------------------------
    async def query(
        self,
        session_id: str,
        vector: List[float],
        top_k: int = 5,
        max_age_ms: int = SEVEN_DAYS_MS,
    ) -> List[Tuple[str, float]]:
        """Top ``top_k`` (text, score) pairs for this session, newest ``max_age_ms`` only."""
        cutoff = self.clock() - max_age_ms
        namespace = self.namespace_for(session_id)

        try:
            response = await run_sync(
                self.index.query,
                vector=vector,
                top_k=top_k,
                namespace=namespace,
                include_metadata=True,
                filter={"sessionId": {"$eq": session_id}, "timestamp": {"$gte": cutoff}},
            )
        except Exception as e:
            log.error("Vector query failed | session_id=%s | error=%s", session_id, str(e))
            raise RetrievalError("Failed to process query", e) from e

        matches = _field(response, "matches") or []
        results: List[Tuple[str, float]] = []
        for m in matches:
            md: Optional[Dict[str, Any]] = _field(m, "metadata") or {}
            if md.get("sessionId") != session_id:
                log.warning("Dropped foreign match | session_id=%s | id=%s", session_id, _field(m, "id"))
                continue
            ts = md.get("timestamp")
            if not isinstance(ts, (int, float)) or ts < cutoff:
                continue
            text = md.get("text")
            if text is None:
                continue
            results.append((text, float(_field(m, "score", 0.0))))

        results.sort(key=lambda pair: pair[1], reverse=True)
        results = results[:top_k]
        log.info(
            "Vector query done | session_id=%s | matches=%d | kept=%d",
            session_id, len(matches), len(results),
        )
        return results
