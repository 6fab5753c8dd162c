# orchestrator/orchestrator_manager.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.src.document_chat.answer import AnswerComposer
from doc_chat.src.document_chat.history import HistoryStore
from doc_chat.src.document_chat.orchestrator import ChatOrchestrator
from doc_chat.src.document_chat.retrieval import Retriever
from doc_chat.src.document_ingestion.chunker import Chunker
from doc_chat.src.document_ingestion.data_ingestion import DataIngestor
from doc_chat.src.vector_store.embeddings import EmbeddingGateway
from doc_chat.src.vector_store.pinecone_store import (
    IndexSpec,
    PineconeVectorStore,
    now_millis,
)
from doc_chat.utils.model_loader import ModelLoader
from doc_chat.utils.thread_pool import run_sync


@dataclass
class AppServices:
    """
    Process-wide services, built once in the FastAPI lifespan.

    ``history`` is the only mutable shared state; the client handles inside
    the other services are never replaced after construction.
    """

    ingestor: DataIngestor
    orchestrator: ChatOrchestrator
    history: HistoryStore
    index_name: str
    embedding_model: str


def wire_services(
    config: dict,
    embedding_client: Any,
    index: Any,
    llm_client: Any,
    clock: Callable[[], int] = now_millis,
) -> AppServices:
    """Assemble the pipeline from already-built external clients."""
    upload_cfg = config.get("upload") or {}
    chunk_cfg = config.get("chunking") or {}
    emb_cfg = config.get("embedding_model") or {}
    vs_cfg = config.get("vector_store") or {}
    ret_cfg = config.get("retriever") or {}
    hist_cfg = config.get("history") or {}
    chat_cfg = config.get("chat") or {}
    llm_cfg = (config.get("llm") or {}).get("rag") or {}

    lock_shards = hist_cfg.get("lock_shards", 64)

    embeddings = EmbeddingGateway(
        embedding_client,
        model_name=emb_cfg.get("model_name", "multilingual-e5-large"),
        batch_size=emb_cfg.get("batch_size", 32),
        truncate=emb_cfg.get("truncate", "END"),
        dimension=emb_cfg.get("dimension"),
    )
    store = PineconeVectorStore(
        index,
        namespace_prefix=vs_cfg.get("namespace_prefix", "user-"),
        upsert_batch_size=vs_cfg.get("upsert_batch_size", 100),
        clock=clock,
    )

    ingestor_kwargs = {}
    if upload_cfg.get("allowed_mime_types"):
        ingestor_kwargs["allowed_mime_types"] = upload_cfg["allowed_mime_types"]
    if upload_cfg.get("max_file_size_mb"):
        ingestor_kwargs["max_bytes"] = int(upload_cfg["max_file_size_mb"]) * 1024 * 1024

    ingestor = DataIngestor(
        Chunker(
            chunk_size=chunk_cfg.get("chunk_size", 1000),
            chunk_overlap=chunk_cfg.get("chunk_overlap", 200),
        ),
        embeddings,
        store,
        **ingestor_kwargs,
    )

    history = HistoryStore(
        max_turns=hist_cfg.get("max_turns", 10),
        max_question_chars=hist_cfg.get("max_question_chars", 500),
        max_answer_chars=hist_cfg.get("max_answer_chars", 2000),
        lock_shards=lock_shards,
    )

    orchestrator = ChatOrchestrator(
        Retriever(
            embeddings,
            store,
            top_k=ret_cfg.get("top_k", 5),
            max_age_ms=ret_cfg.get("max_age_ms", 604_800_000),
        ),
        AnswerComposer(
            llm_client,
            model_name=llm_cfg.get("model_name", "llama-3.3-70b-versatile"),
            temperature=llm_cfg.get("temperature", 0.7),
            max_tokens=llm_cfg.get("max_tokens", 500),
        ),
        history,
        max_question_chars=chat_cfg.get("max_question_chars", 1000),
        lock_shards=lock_shards,
    )

    return AppServices(
        ingestor=ingestor,
        orchestrator=orchestrator,
        history=history,
        index_name=vs_cfg.get("index_name", "doc-chat-index"),
        embedding_model=embeddings.model_name,
    )


async def build_services(model_loader: Optional[ModelLoader] = None) -> AppServices:
    """
    Build real clients, provision the index (create-if-absent + settle) and
    wire everything together.

    Raises:
        StartupProvisioningError: index could not be provisioned
    """
    model_loader = model_loader or ModelLoader()
    vs_cfg = model_loader.section("vector_store")

    pinecone_client = model_loader.load_pinecone()
    spec = IndexSpec(
        name=vs_cfg.get("index_name", "doc-chat-index"),
        dimension=vs_cfg.get("dimension", 1024),
        metric=vs_cfg.get("metric", "cosine"),
        cloud=vs_cfg.get("cloud", "aws"),
        region=vs_cfg.get("region", "us-east-1"),
        settle_seconds=vs_cfg.get("settle_seconds", 60),
    )
    index = await run_sync(PineconeVectorStore.provision, pinecone_client, spec)

    services = wire_services(
        model_loader.config,
        embedding_client=pinecone_client,
        index=index,
        llm_client=model_loader.load_llm("rag"),
    )
    log.info(
        "Services ready | index=%s | embedding_model=%s",
        services.index_name, services.embedding_model,
    )
    return services
