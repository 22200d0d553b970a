"""Text extraction via LangChain document loaders."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, Sequence

from langchain_community.document_loaders import PyPDFLoader, TextLoader
from langchain_community.document_loaders.base import BaseLoader
from langchain_core.documents import Document as LCDocument

from officegpt.errors import EmptyInputError, ExtractionError, UnsupportedFileTypeError
from officegpt.ingestion.splitter import normalize_text
from officegpt.models import ExtractedText


class TextExtractor(Protocol):
    """Protocol for turning a staged file into plain text."""

    def extract(self, path: Path, *, source: str) -> ExtractedText:
        """Return the full text of *path*, labelled with *source*."""


class LangChainTextExtractor:
    """Extract text with LangChain loaders, keeping the whole document as one text."""

    _LOADERS: Mapping[str, type[BaseLoader]] = {
        ".pdf": PyPDFLoader,
        ".txt": TextLoader,
        ".md": TextLoader,
    }

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    @classmethod
    def supported_extensions(cls) -> tuple[str, ...]:
        return tuple(cls._LOADERS)

    def extract(self, path: Path, *, source: str) -> ExtractedText:
        suffix = path.suffix.lower()
        loader_cls = self._LOADERS.get(suffix)
        if loader_cls is None:
            raise UnsupportedFileTypeError(f"Unsupported document type: {suffix or '<none>'}")

        try:
            pages = self._build_loader(loader_cls, path).load()
        except Exception as exc:  # loader-specific parse errors
            raise ExtractionError(f"Failed to read {source}: {exc}") from exc

        text = "\n\n".join(normalize_text(page.page_content) for page in pages if page.page_content)
        if not text.strip():
            raise EmptyInputError(f"Document content is empty or could not be extracted: {source}")
        return ExtractedText(text=text, source=source, total_pages=self._total_pages(pages, suffix))

    def _build_loader(self, loader_cls: type[BaseLoader], path: Path) -> BaseLoader:
        if loader_cls is TextLoader:
            return loader_cls(str(path), encoding=self._encoding)
        return loader_cls(str(path))

    @staticmethod
    def _total_pages(pages: Sequence[LCDocument], suffix: str) -> int | None:
        if suffix != ".pdf" or not pages:
            return None
        declared = pages[0].metadata.get("total_pages")
        if isinstance(declared, int) and declared > 0:
            return declared
        return len(pages)
