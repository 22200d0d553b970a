"""Text chunking."""

from __future__ import annotations

import re
import unicodedata
from typing import List

from langchain_text_splitters import RecursiveCharacterTextSplitter

from officegpt.errors import EmptyInputError
from officegpt.models import Chunk, ExtractedText

# Paragraph, line, sentence, word, character.
DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ", "")


def normalize_text(raw: str) -> str:
    """Fold unicode compatibility forms while keeping paragraph structure."""
    normalized = unicodedata.normalize("NFKC", raw)
    normalized = normalized.replace("\u00a0", " ").replace("\r\n", "\n")
    normalized = re.sub(r"[ \t]+", " ", normalized)
    return normalized.strip()


class ChunkSplitter:
    """Split extracted text into ordered, bounded, overlapping chunks.

    Parameters
    ----------
    max_length:
        Maximum number of characters per chunk.
    overlap:
        Maximum number of characters shared by neighbouring chunks.
    """

    def __init__(self, max_length: int = 500, overlap: int = 100) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        if overlap < 0 or overlap >= max_length:
            raise ValueError("overlap must be non-negative and smaller than max_length")
        self.max_length = max_length
        self.overlap = overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=max_length,
            chunk_overlap=overlap,
            length_function=len,
            separators=list(DEFAULT_SEPARATORS),
            keep_separator="end",
            add_start_index=True,
        )

    def split(self, text: ExtractedText | str) -> List[Chunk]:
        if isinstance(text, str):
            text = ExtractedText(text=text, source="")
        if not text.text.strip():
            raise EmptyInputError(f"No text to split for {text.source or 'document'}")

        documents = self._splitter.create_documents([text.text])
        chunks: List[Chunk] = []
        for index, document in enumerate(documents):
            start = int(document.metadata.get("start_index", -1))
            if start < 0:
                start = text.text.find(document.page_content)
            chunks.append(
                Chunk(
                    index=index,
                    text=document.page_content,
                    source=text.source,
                    total_pages=text.total_pages,
                    start_index=max(start, 0),
                ),
            )
        return chunks


def split_text(text: ExtractedText | str, max_length: int = 500, overlap: int = 100) -> List[Chunk]:
    """Convenience helper for one-off splitting."""

    return ChunkSplitter(max_length=max_length, overlap=overlap).split(text)
