"""Document ingestion pipeline."""

from .extraction import LangChainTextExtractor, TextExtractor
from .service import IngestionPipeline, staged_path, validate_upload
from .splitter import ChunkSplitter, normalize_text, split_text

__all__ = [
    "ChunkSplitter",
    "IngestionPipeline",
    "LangChainTextExtractor",
    "TextExtractor",
    "normalize_text",
    "split_text",
    "staged_path",
    "validate_upload",
]
