"""
Shared fakes for the external services (Pinecone index, Pinecone inference,
Groq chat completions) and pre-wired app services.
"""

import copy
import math
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

import pytest

from doc_chat.utils.config_loader import load_config
from orchestrator.orchestrator_manager import wire_services

FIXED_NOW_MS = 1_700_000_000_000


# ============================================================================
# Fake embedding service
# ============================================================================

def letter_vector(text: str) -> List[float]:
    """Deterministic 27-dim bag-of-letters vector (last slot keeps it non-zero)."""
    vec = [0.0] * 27
    for ch in text.lower():
        if "a" <= ch <= "z":
            vec[ord(ch) - ord("a")] += 1.0
    vec[26] = 1.0
    return vec


class FakeInference:
    """Stands in for ``Pinecone().inference``."""

    def __init__(self, embed_fn: Callable[[str], List[float]] = letter_vector, wrapped: bool = True):
        self.embed_fn = embed_fn
        self.wrapped = wrapped
        self.calls: List[dict] = []

    def embed(self, model, inputs, parameters=None):
        self.calls.append({"model": model, "inputs": list(inputs), "parameters": parameters})
        records = [{"values": self.embed_fn(t)} for t in inputs]
        if self.wrapped:
            return SimpleNamespace(data=records)
        return records


# ============================================================================
# Fake vector index
# ============================================================================

def cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


def _matches_filter(metadata: dict, flt: Optional[dict]) -> bool:
    for key, cond in (flt or {}).items():
        value = metadata.get(key)
        if not isinstance(cond, dict):
            cond = {"$eq": cond}
        for op, target in cond.items():
            if op == "$eq" and value != target:
                return False
            if op == "$gte" and (value is None or value < target):
                return False
    return True


class FakeIndex:
    """
    In-memory Pinecone index. With ``leaky=True`` it ignores namespaces and
    filters, to check that isolation does not rely on the store alone.
    """

    def __init__(self, leaky: bool = False):
        self.leaky = leaky
        self.namespaces: Dict[str, Dict[str, dict]] = {}
        self.upsert_calls: List[dict] = []
        self.query_calls: List[dict] = []
        self.fail_upsert: Optional[Exception] = None
        self.fail_query: Optional[Exception] = None

    def upsert(self, vectors, namespace=""):
        self.upsert_calls.append({"namespace": namespace, "count": len(vectors)})
        if self.fail_upsert is not None:
            raise self.fail_upsert
        ns = self.namespaces.setdefault(namespace, {})
        for v in vectors:
            ns[v["id"]] = {"values": list(v["values"]), "metadata": dict(v["metadata"])}
        return {"upserted_count": len(vectors)}

    def query(self, vector, top_k, namespace="", include_metadata=False, filter=None):
        self.query_calls.append({"namespace": namespace, "top_k": top_k, "filter": filter})
        if self.fail_query is not None:
            raise self.fail_query

        if self.leaky:
            pool = [item for ns in self.namespaces.values() for item in ns.items()]
        else:
            pool = list(self.namespaces.get(namespace, {}).items())

        scored = []
        for rid, rec in pool:
            if not self.leaky and not _matches_filter(rec["metadata"], filter):
                continue
            scored.append(
                SimpleNamespace(
                    id=rid,
                    score=cosine(vector, rec["values"]),
                    metadata=rec["metadata"] if include_metadata else None,
                )
            )
        scored.sort(key=lambda m: m.score, reverse=True)
        return SimpleNamespace(matches=scored[:top_k])

    def count(self, namespace: str) -> int:
        return len(self.namespaces.get(namespace, {}))


# ============================================================================
# Fake LLM
# ============================================================================

def blue_sky_responder(messages: List[dict]) -> str:
    system = messages[0]["content"]
    if "blue" in system:
        return "According to your document, the sky is blue."
    return "I could not find that in your document."


class FakeCompletions:
    def __init__(self, responder: Callable[[List[dict]], Optional[str]]):
        self.responder = responder
        self.calls: List[dict] = []
        self.error: Optional[Exception] = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.responder(kwargs["messages"])
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeGroq:
    """Stands in for ``groq.Groq``: only ``chat.completions.create`` is used."""

    def __init__(self, responder: Callable[[List[dict]], Optional[str]] = blue_sky_responder):
        self.completions = FakeCompletions(responder)
        self.chat = SimpleNamespace(completions=self.completions)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def clock():
    """Mutable clock: set ``clock.now`` to move time."""
    state = SimpleNamespace(now=FIXED_NOW_MS)
    return state


@pytest.fixture
def fake_inference():
    return FakeInference()


@pytest.fixture
def fake_index():
    return FakeIndex()


@pytest.fixture
def fake_groq():
    return FakeGroq()


@pytest.fixture
def test_config():
    config = copy.deepcopy(load_config())
    # fake embeddings are 27-dim
    config["embedding_model"]["dimension"] = None
    return config


@pytest.fixture
def services(test_config, fake_inference, fake_index, fake_groq, clock):
    return wire_services(
        test_config,
        embedding_client=SimpleNamespace(inference=fake_inference),
        index=fake_index,
        llm_client=fake_groq,
        clock=lambda: clock.now,
    )
