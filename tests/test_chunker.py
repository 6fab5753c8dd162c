import types

import pytest

from doc_chat.exception import EmptyDocumentError
from doc_chat.src.document_ingestion.chunker import Chunker, DocumentChunk


def _words(n: int) -> str:
    return " ".join(f"word{i:04d}" for i in range(n))


class TestChunker:

    @pytest.fixture
    def chunker(self):
        return Chunker(chunk_size=1000, chunk_overlap=200)

    def test_short_text_single_chunk(self, chunker):
        chunks = list(chunker.split("The sky is blue. Grass is green.", "s1"))
        assert chunks == [DocumentChunk(text="The sky is blue. Grass is green.", source_session_id="s1")]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_empty_text_rejected_at_call_time(self, chunker, text):
        with pytest.raises(EmptyDocumentError):
            chunker.split(text, "s1")

    def test_long_text_sizes_and_overlap(self, chunker):
        text = _words(600)  # ~5400 chars
        chunks = [c.text for c in chunker.split(text, "s1")]

        assert len(chunks) >= 2
        assert all(len(c) <= 1000 for c in chunks)
        for prev, nxt in zip(chunks, chunks[1:]):
            # next chunk opens with the tail of the previous one
            assert nxt[:50] in prev[-200:]

    def test_exactly_chunk_size_plus_one_splits(self, chunker):
        text = _words(112)  # 112 * 9 - 1 = 1007 chars
        assert len(text) >= 1000
        assert len(list(chunker.split(text, "s1"))) >= 2

    def test_prefers_paragraph_boundaries(self, chunker):
        para_a = "A" * 600
        para_b = "B" * 600
        chunks = [c.text for c in chunker.split(f"{para_a}\n\n{para_b}", "s1")]
        assert chunks == [para_a, para_b]

    def test_hard_cut_without_boundaries(self, chunker):
        chunks = [c.text for c in chunker.split("x" * 2500, "s1")]
        assert len(chunks) >= 3
        assert all(len(c) <= 1000 for c in chunks)

    def test_chunks_reconstruct_source_words(self, chunker):
        text = _words(400)
        seen = set()
        for chunk in chunker.split(text, "s1"):
            seen.update(chunk.text.split())
        assert seen == set(text.split())

    def test_result_is_one_shot_generator(self, chunker):
        result = chunker.split(_words(300), "s1")
        assert isinstance(result, types.GeneratorType)
        first = list(result)
        assert first
        assert list(result) == []

    def test_session_id_carried(self, chunker):
        assert {c.source_session_id for c in chunker.split(_words(300), "abc")} == {"abc"}

    def test_chunk_is_immutable(self, chunker):
        chunk = next(iter(chunker.split("hello", "s1")))
        with pytest.raises(AttributeError):
            chunk.text = "changed"

    def test_overlap_must_be_smaller_than_size(self):
        with pytest.raises(ValueError):
            Chunker(chunk_size=100, chunk_overlap=100)
