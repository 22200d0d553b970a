"""Tests for the ingestion pipeline."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Sequence

import pytest
from pypdf import PdfWriter
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject

from officegpt.embeddings.service import EmbeddingBatcher, EmbeddingConfig, HashEmbeddingProvider
from officegpt.errors import (
    EmptyInputError,
    IngestionError,
    NoChunksError,
    ProviderError,
    UnsupportedFileTypeError,
)
from officegpt.ingestion.extraction import LangChainTextExtractor
from officegpt.ingestion.service import IngestionPipeline, validate_upload
from officegpt.models import BytesDocument, Chunk, ExtractedText, PathDocument, VectorRecord


class StubStore:
    def __init__(self, fail_on_call: int | None = None) -> None:
        self.upserts: list[list[VectorRecord]] = []
        self._fail_on_call = fail_on_call

    def upsert(self, records: Sequence[VectorRecord]) -> None:
        if self._fail_on_call is not None and len(self.upserts) + 1 == self._fail_on_call:
            raise ProviderError("vector_store", "index unavailable")
        self.upserts.append(list(records))

    def similarity_search(self, query: str, *, k: int = 3):
        return []

    def count(self) -> int:
        return sum(len(batch) for batch in self.upserts)


class RecordingExtractor:
    """Wraps an extractor and remembers which staged paths it was handed."""

    def __init__(self, delegate=None, text: str = "Holiday policy applies to everyone.") -> None:
        self._delegate = delegate
        self._text = text
        self.paths: list[Path] = []

    def extract(self, path: Path, *, source: str) -> ExtractedText:
        assert path.exists()
        self.paths.append(path)
        if self._delegate is not None:
            return self._delegate.extract(path, source=source)
        return ExtractedText(text=self._text, source=source, total_pages=7)


class FixedSplitter:
    def __init__(self, count: int) -> None:
        self._count = count

    def split(self, text: ExtractedText) -> list[Chunk]:
        return [
            Chunk(index=i, text=f"chunk-{i}", source=text.source, total_pages=text.total_pages)
            for i in range(self._count)
        ]


def _pipeline(store, *, extractor=None, splitter=None) -> IngestionPipeline:
    provider = HashEmbeddingProvider(EmbeddingConfig(dim=8))
    return IngestionPipeline(
        store,
        EmbeddingBatcher(provider, batch_size=10),
        extractor=extractor or RecordingExtractor(),
        splitter=splitter,
    )


def test_twenty_five_chunks_upserted_in_three_ordered_batches():
    store = StubStore()
    result = _pipeline(store, splitter=FixedSplitter(25)).ingest(BytesDocument(b"%PDF", "guide.pdf"))

    assert [len(batch) for batch in store.upserts] == [10, 10, 5]
    texts = [record.metadata["text"] for batch in store.upserts for record in batch]
    assert texts == [f"chunk-{i}" for i in range(25)]
    assert result.chunk_count == 25
    assert int(result) == 25
    assert result.batch_count == 3
    assert len(set(result.record_ids)) == 25


def test_records_carry_original_name_and_page_count():
    store = StubStore()
    _pipeline(store, splitter=FixedSplitter(2)).ingest(BytesDocument(b"%PDF", "Expenses.pdf"))
    metadata = store.upserts[0][0].metadata
    assert metadata == {"text": "chunk-0", "source": "Expenses.pdf", "totalPages": 7}


def test_temp_file_removed_after_success():
    extractor = RecordingExtractor()
    _pipeline(StubStore(), extractor=extractor).ingest(BytesDocument(b"data", "memo.pdf"))
    staged = extractor.paths[0]
    assert not staged.exists()
    assert not staged.parent.exists()


def test_failure_mid_batch_keeps_earlier_batches_and_cleans_up():
    store = StubStore(fail_on_call=2)
    extractor = RecordingExtractor()
    pipeline = _pipeline(store, extractor=extractor, splitter=FixedSplitter(25))

    with pytest.raises(ProviderError):
        pipeline.ingest(BytesDocument(b"data", "big.pdf"))

    assert [len(batch) for batch in store.upserts] == [10]
    assert not extractor.paths[0].exists()


def test_empty_document_fails_without_upserts_or_leftovers():
    store = StubStore()
    extractor = RecordingExtractor(delegate=LangChainTextExtractor())

    with pytest.raises(EmptyInputError):
        _pipeline(store, extractor=extractor).ingest(BytesDocument(b"", "empty.txt"))

    assert store.upserts == []
    assert not extractor.paths[0].parent.exists()


def test_no_chunks_error_when_splitter_returns_nothing():
    store = StubStore()
    with pytest.raises(NoChunksError):
        _pipeline(store, splitter=FixedSplitter(0)).ingest(BytesDocument(b"x", "x.pdf"))
    assert store.upserts == []


def test_path_document_is_read_in_place(tmp_path: Path):
    document = tmp_path / "notes.txt"
    document.write_text("Office hours are nine to five.\n\nParking is on level two.", encoding="utf-8")
    store = StubStore()
    pipeline = _pipeline(store, extractor=LangChainTextExtractor())

    result = pipeline.ingest(PathDocument(path=document), original_name="Office Notes.txt")

    assert document.exists()
    assert result.chunk_count == 1
    record = store.upserts[0][0]
    assert record.metadata["source"] == "Office Notes.txt"
    assert "totalPages" not in record.metadata
    assert "Parking is on level two." in record.metadata["text"]


def test_reingesting_same_document_adds_new_ids():
    store = StubStore()
    pipeline = _pipeline(store, splitter=FixedSplitter(12))
    first = pipeline.ingest(BytesDocument(b"x", "a.pdf"))
    second = pipeline.ingest(BytesDocument(b"x", "a.pdf"))
    assert set(first.record_ids).isdisjoint(second.record_ids)
    assert store.count() == 24


def test_unsupported_extension_rejected(tmp_path: Path):
    document = tmp_path / "sheet.xlsx"
    document.write_bytes(b"binary")
    with pytest.raises(UnsupportedFileTypeError):
        _pipeline(StubStore(), extractor=LangChainTextExtractor()).ingest(PathDocument(path=document))


def test_ingest_many_preserves_order():
    pipeline = _pipeline(StubStore(), splitter=FixedSplitter(1))
    results = pipeline.ingest_many([BytesDocument(b"1", "one.pdf"), PathDocument(path=Path(__file__), original_name="two.pdf")])
    assert [result.source for result in results] == ["one.pdf", "two.pdf"]


def test_validate_upload_rules():
    validate_upload("report.PDF", 1024)
    with pytest.raises(UnsupportedFileTypeError):
        validate_upload("report.docx", 1024)
    with pytest.raises(IngestionError, match="empty"):
        validate_upload("report.pdf", 0)
    with pytest.raises(IngestionError, match="too large"):
        validate_upload("report.pdf", 11 * 1024 * 1024)


def _pdf_bytes(page_texts: list[str]) -> bytes:
    """Build a PDF with one page per entry; empty entries become blank pages."""
    writer = PdfWriter()
    font = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
        },
    )
    for text in page_texts:
        page = writer.add_blank_page(width=612, height=792)
        if not text:
            continue
        content = DecodedStreamObject()
        content.set_data(f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1"))
        page[NameObject("/Contents")] = writer._add_object(content)
        page[NameObject("/Resources")] = DictionaryObject(
            {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font})},
        )
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_blank_pdf_raises_empty_input_error():
    store = StubStore()
    extractor = RecordingExtractor(delegate=LangChainTextExtractor())

    with pytest.raises(EmptyInputError):
        _pipeline(store, extractor=extractor).ingest(BytesDocument(_pdf_bytes([""]), "blank.pdf"))

    assert store.upserts == []
    assert not extractor.paths[0].parent.exists()


def test_pdf_page_count_recorded_on_every_record():
    store = StubStore()
    extractor = RecordingExtractor(delegate=LangChainTextExtractor())
    document = BytesDocument(_pdf_bytes(["Holiday policy page one", "Expense rules page two"]), "Handbook.pdf")

    result = _pipeline(store, extractor=extractor).ingest(document)

    records = [record for batch in store.upserts for record in batch]
    assert result.chunk_count == len(records) >= 1
    assert all(record.metadata["totalPages"] == 2 for record in records)
    assert all(record.metadata["source"] == "Handbook.pdf" for record in records)
    joined = " ".join(record.metadata["text"] for record in records)
    assert "Holiday policy" in joined
    assert "Expense rules" in joined
