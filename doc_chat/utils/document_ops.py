from __future__ import annotations

import io
from typing import Callable, Dict

import docx2txt
import pandas as pd
from pypdf import PdfReader

from doc_chat.exception import EmptyDocumentError, UnsupportedFormatError, ValidationError
from doc_chat.logger import GLOBAL_LOGGER as log

MIME_TEXT = "text/plain"
MIME_PDF = "application/pdf"
MIME_CSV = "text/csv"
MIME_XLS = "application/vnd.ms-excel"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MIME_TYPES = (MIME_TEXT, MIME_PDF, MIME_CSV, MIME_XLS, MIME_DOCX)


def _read_text(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


def _read_pdf(payload: bytes) -> str:
    reader = PdfReader(io.BytesIO(payload))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def _read_csv(payload: bytes) -> str:
    """One line per row, row values joined by spaces (header row is the column names)."""
    df = pd.read_csv(io.BytesIO(payload), dtype=str, keep_default_na=False)
    lines = [" ".join(row) for row in df.itertuples(index=False, name=None)]
    return "\n".join(lines) + ("\n" if lines else "")


def _read_docx(payload: bytes) -> str:
    return docx2txt.process(io.BytesIO(payload)) or ""


# legacy spreadsheet MIME is what browsers send for .csv on Windows, so it is read as CSV
_READERS: Dict[str, Callable[[bytes], str]] = {
    MIME_TEXT: _read_text,
    MIME_PDF: _read_pdf,
    MIME_CSV: _read_csv,
    MIME_XLS: _read_csv,
    MIME_DOCX: _read_docx,
}


def extract_text(payload: bytes, mime_type: str) -> str:
    """
    Extract plain text from an uploaded document.

    Raises:
        UnsupportedFormatError: mime_type is not one of SUPPORTED_MIME_TYPES
        ValidationError: the parser rejected the payload
        EmptyDocumentError: nothing readable came out
    """
    reader = _READERS.get(mime_type)
    if reader is None:
        raise UnsupportedFormatError(
            "Invalid file type. Only TXT, PDF, CSV, and DOCX are allowed"
        )

    try:
        text = reader(payload)
    except Exception as e:
        log.error("Document parsing failed | mime_type=%s | error=%s", mime_type, str(e))
        raise ValidationError(f"Failed to parse document: {e}", e) from e

    if not text or not text.strip():
        raise EmptyDocumentError("Document contains no readable text")

    log.info("Text extracted | mime_type=%s | chars=%d", mime_type, len(text))
    return text
