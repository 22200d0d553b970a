"""Document ingestion pipeline for OfficeGPT."""

from __future__ import annotations

import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence

from officegpt.embeddings.records import VectorRecordBuilder
from officegpt.embeddings.service import EmbeddingBatcher
from officegpt.embeddings.store import VectorStore
from officegpt.errors import IngestionError, NoChunksError, UnsupportedFileTypeError
from officegpt.ingestion.extraction import LangChainTextExtractor, TextExtractor
from officegpt.ingestion.splitter import ChunkSplitter
from officegpt.metrics.observability import PipelineMetrics, get_logger
from officegpt.models import BytesDocument, Document, IngestionResult, PathDocument


def validate_upload(
    filename: str,
    size_bytes: int,
    *,
    allowed_extensions: Sequence[str] = (".pdf",),
    max_bytes: int = 10 * 1024 * 1024,
) -> None:
    """Reject uploads the pipeline should never see."""

    suffix = Path(filename).suffix.lower()
    if suffix not in {ext.lower() for ext in allowed_extensions}:
        raise UnsupportedFileTypeError(f"Unsupported file type: {suffix or 'unknown'}")
    if size_bytes <= 0:
        raise IngestionError(f"File is empty: {filename}")
    if size_bytes > max_bytes:
        raise IngestionError(f"File too large (>{max_bytes // (1024 * 1024)}MB): {filename}")


@contextmanager
def staged_path(document: Document) -> Iterator[Path]:
    """Yield a readable path for *document*.

    In-memory uploads are written to a private temporary directory that is
    removed when the block exits, whatever the outcome.
    """
    if isinstance(document, PathDocument):
        yield Path(document.path)
        return
    if not isinstance(document, BytesDocument):
        raise TypeError(f"Unsupported document type: {type(document).__name__}")
    with tempfile.TemporaryDirectory(prefix="officegpt-") as tmpdir:
        destination = Path(tmpdir) / f"upload{Path(document.original_name).suffix.lower()}"
        destination.write_bytes(document.data)
        yield destination


class IngestionPipeline:
    """Extract, split, embed and upsert one document at a time.

    Batches are processed sequentially. Upserts are not transactional across
    batches: when batch N fails, batches before it stay in the store.
    """

    _logger = get_logger("ingestion")

    def __init__(
        self,
        store: VectorStore,
        batcher: EmbeddingBatcher,
        *,
        splitter: ChunkSplitter | None = None,
        extractor: TextExtractor | None = None,
        record_builder: VectorRecordBuilder | None = None,
    ) -> None:
        self._store = store
        self._batcher = batcher
        self._splitter = splitter or ChunkSplitter()
        self._extractor = extractor or LangChainTextExtractor()
        self._records = record_builder or VectorRecordBuilder()

    def ingest(self, document: Document, original_name: str | None = None) -> IngestionResult:
        name = original_name or self._display_name(document)
        start = time.perf_counter()
        indexed = 0
        self._logger.info("ingestion.start", source=name)
        try:
            with staged_path(document) as path:
                extracted = self._extractor.extract(path, source=name)
                chunks = self._splitter.split(extracted)
                if not chunks:
                    raise NoChunksError(f"No chunks to index after splitting {name}")
                self._logger.info("ingestion.split", source=name, chunk_count=len(chunks))

                record_ids: List[str] = []
                batch_count = 0
                for offset, batch in self._batcher.partition(chunks):
                    vectors = self._batcher.embed_batch(batch)
                    records = self._records.build_batch(batch, vectors, offset, original_name=name)
                    self._store.upsert(records)
                    indexed += len(records)
                    batch_count += 1
                    record_ids.extend(record.id for record in records)
                    self._logger.debug("ingestion.batch", source=name, offset=offset, indexed=indexed)
        except Exception as exc:
            PipelineMetrics.record_ingestion_failure(exc)
            self._logger.error(
                "ingestion.failed",
                source=name,
                error=type(exc).__name__,
                detail=str(exc),
                persisted_chunks=indexed,
            )
            raise

        duration = time.perf_counter() - start
        PipelineMetrics.observe_ingestion(duration, indexed)
        self._logger.info(
            "ingestion.complete",
            source=name,
            chunk_count=indexed,
            batch_count=batch_count,
            duration_seconds=duration,
        )
        return IngestionResult(
            source=name,
            chunk_count=indexed,
            batch_count=batch_count,
            record_ids=tuple(record_ids),
        )

    def ingest_many(self, documents: Sequence[Document]) -> List[IngestionResult]:
        return [self.ingest(document) for document in documents]

    @staticmethod
    def _display_name(document: Document) -> str:
        if isinstance(document, PathDocument):
            return document.display_name
        return document.original_name
