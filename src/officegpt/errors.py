"""Exception hierarchy shared by the ingestion and query pipelines."""

from __future__ import annotations


class OfficeGPTError(RuntimeError):
    """Base class for all pipeline failures."""


class IngestionError(OfficeGPTError):
    """Raised when ingestion fails for a particular document."""


class ExtractionError(IngestionError):
    """Raised when no usable text can be recovered from a document."""


class EmptyInputError(ExtractionError):
    """Raised when extracted text is empty or whitespace-only."""


class UnsupportedFileTypeError(ExtractionError):
    """Raised when a document extension is not supported by the extractor."""


class NoChunksError(IngestionError):
    """Raised when splitting produced zero chunks."""


class ProviderError(OfficeGPTError):
    """Raised when an embedding, vector-store or language-model call fails."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider} provider failed: {message}")
        self.provider = provider


class EmptyQueryError(OfficeGPTError, ValueError):
    """Raised when a question is blank after trimming."""


__all__ = [
    "EmptyInputError",
    "EmptyQueryError",
    "ExtractionError",
    "IngestionError",
    "NoChunksError",
    "OfficeGPTError",
    "ProviderError",
    "UnsupportedFileTypeError",
]
