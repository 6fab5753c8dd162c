from .custom_exception import (
    CompletionError,
    DocChatException,
    EmbeddingServiceError,
    EmptyDocumentError,
    RetrievalError,
    StartupProvisioningError,
    StorageWriteError,
    UnsupportedFormatError,
    ValidationError,
)

__all__ = [
    "DocChatException",
    "ValidationError",
    "UnsupportedFormatError",
    "EmptyDocumentError",
    "EmbeddingServiceError",
    "StorageWriteError",
    "RetrievalError",
    "CompletionError",
    "StartupProvisioningError",
]
