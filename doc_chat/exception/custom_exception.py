import sys
import traceback
from typing import Optional


class DocChatException(Exception):
    """
    Base exception for the document chat backend.

    Keeps a stable, client-safe ``message`` plus the wrapped cause and the
    location it was raised from, so the server log has full detail while the
    HTTP layer can surface only the message.

    ``error_details`` may be the causing exception, the ``sys`` module (to
    pick up the exception currently being handled) or None.
    """

    status_code: int = 500
    # 5xx classes hide their message behind a generic one at the HTTP layer
    public_message: Optional[str] = "Internal server error"

    def __init__(self, error_message: str, error_details: Optional[object] = None):
        super().__init__(error_message)
        self.message = str(error_message)

        exc_type = exc_value = exc_tb = None
        if isinstance(error_details, BaseException):
            exc_type, exc_value, exc_tb = (
                type(error_details),
                error_details,
                error_details.__traceback__,
            )
        elif error_details is sys:
            exc_type, exc_value, exc_tb = sys.exc_info()

        self.cause = exc_value

        # walk to the innermost frame, where the cause was actually raised
        last_tb = exc_tb
        while last_tb and last_tb.tb_next:
            last_tb = last_tb.tb_next

        self.file_name = last_tb.tb_frame.f_code.co_filename if last_tb else "<unknown>"
        self.lineno = last_tb.tb_lineno if last_tb else -1

        if exc_type and exc_tb:
            self.traceback_str = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )
        else:
            self.traceback_str = ""

    @property
    def client_message(self) -> str:
        return self.public_message or self.message

    def __str__(self) -> str:
        base = self.message
        if self.cause is not None:
            base = f"{base}: {self.cause}"
        if self.lineno != -1:
            base = f"{base} [{self.file_name}:{self.lineno}]"
        return base

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, cause={self.cause!r})"


# -------------------------------------------------
# User-recoverable errors (4xx)
# -------------------------------------------------
class ValidationError(DocChatException):
    """Missing, oversized or malformed user input."""

    status_code = 400
    public_message = None

    def __init__(
        self,
        error_message: str,
        error_details: Optional[object] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(error_message, error_details)
        if status_code is not None:
            self.status_code = status_code


class UnsupportedFormatError(DocChatException):
    status_code = 415
    public_message = None


class EmptyDocumentError(DocChatException):
    status_code = 422
    public_message = None


# -------------------------------------------------
# External dependency failures (5xx)
# -------------------------------------------------
class EmbeddingServiceError(DocChatException):
    status_code = 502
    public_message = "Failed to generate embeddings"


class StorageWriteError(DocChatException):
    status_code = 502
    public_message = "Failed to store document"


class RetrievalError(DocChatException):
    status_code = 502
    public_message = "Failed to process query"


class CompletionError(DocChatException):
    status_code = 502
    public_message = "Failed to generate response"


# -------------------------------------------------
# Fatal
# -------------------------------------------------
class StartupProvisioningError(DocChatException):
    """Vector index could not be provisioned; the process must exit."""
