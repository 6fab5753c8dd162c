from unittest.mock import Mock

import pytest

from doc_chat.exception import (
    EmbeddingServiceError,
    EmptyDocumentError,
    StorageWriteError,
    UnsupportedFormatError,
    ValidationError,
)
from doc_chat.utils.document_ops import MIME_DOCX, MIME_PDF, extract_text

TXT = "text/plain"


class TestDataIngestor:

    async def test_plain_text_stored_under_session(self, services, fake_index):
        count = await services.ingestor.ingest("s1", b"The sky is blue. Grass is green.", TXT)

        assert count == 1
        (record,) = fake_index.namespaces["user-s1"].values()
        assert record["metadata"]["text"] == "The sky is blue. Grass is green."
        assert record["metadata"]["sessionId"] == "s1"

    async def test_long_document_chunked(self, services, fake_index, fake_inference):
        text = " ".join(f"sentence number {i}." for i in range(400)).encode()

        count = await services.ingestor.ingest("s1", text, TXT)

        assert count >= 2
        assert fake_index.count("user-s1") == count
        assert all(c["parameters"]["input_type"] == "passage" for c in fake_inference.calls)

    @pytest.mark.parametrize("session_id", [None, "", "   "])
    async def test_missing_session_rejected_before_chunking(self, services, session_id):
        services.ingestor.chunker.split = Mock()

        with pytest.raises(ValidationError, match="Session ID is required"):
            await services.ingestor.ingest(session_id, b"hello", TXT)
        services.ingestor.chunker.split.assert_not_called()

    async def test_unsupported_mime(self, services):
        with pytest.raises(UnsupportedFormatError):
            await services.ingestor.ingest("s1", b"<html></html>", "text/html")

    async def test_oversized_payload(self, services):
        services.ingestor.max_bytes = 10
        with pytest.raises(ValidationError) as exc_info:
            await services.ingestor.ingest("s1", b"x" * 11, TXT)
        assert exc_info.value.status_code == 413

    def test_check_request_uses_size_only(self, services):
        services.ingestor.max_bytes = 10

        with pytest.raises(ValidationError, match="Session ID is required"):
            services.ingestor.check_request(None, 10_000, TXT)
        with pytest.raises(ValidationError) as exc_info:
            services.ingestor.check_request("s1", 11, TXT)
        assert exc_info.value.status_code == 413
        assert services.ingestor.check_request(" s1 ", 10, TXT) == "s1"

    async def test_missing_file(self, services):
        with pytest.raises(ValidationError, match="No file uploaded"):
            await services.ingestor.ingest("s1", None, None)

    async def test_whitespace_document(self, services, fake_index):
        with pytest.raises(EmptyDocumentError):
            await services.ingestor.ingest("s1", b"   \n\n  ", TXT)
        assert fake_index.upsert_calls == []

    async def test_embedding_failure_writes_nothing(self, services, fake_index, fake_inference):
        def broken(model, inputs, parameters=None):
            raise ConnectionError("down")

        fake_inference.embed = broken
        with pytest.raises(EmbeddingServiceError):
            await services.ingestor.ingest("s1", b"some text", TXT)
        assert fake_index.upsert_calls == []

    async def test_storage_failure_surfaces(self, services, fake_index):
        fake_index.fail_upsert = RuntimeError("quota")
        with pytest.raises(StorageWriteError):
            await services.ingestor.ingest("s1", b"some text", TXT)


class TestExtractText:

    def test_plain_text(self):
        assert extract_text("héllo".encode("utf-8"), TXT) == "héllo"

    @pytest.mark.parametrize("mime", ["text/csv", "application/vnd.ms-excel"])
    def test_csv_rows_joined(self, mime):
        payload = b"name,color\nsky,blue\ngrass,green\n"
        assert extract_text(payload, mime) == "sky blue\ngrass green\n"

    def test_header_only_csv_is_empty(self):
        with pytest.raises(EmptyDocumentError):
            extract_text(b"name,color\n", "text/csv")

    def test_corrupt_pdf(self):
        with pytest.raises(ValidationError, match="Failed to parse document"):
            extract_text(b"definitely not a pdf", MIME_PDF)

    def test_corrupt_docx(self):
        with pytest.raises(ValidationError):
            extract_text(b"not a zip archive", MIME_DOCX)

    def test_unsupported(self):
        with pytest.raises(UnsupportedFormatError):
            extract_text(b"x", "image/png")
