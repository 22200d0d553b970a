"""Embedding providers and the batching layer that drives them."""

from __future__ import annotations

import hashlib
import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Protocol, Sequence, Tuple

from langchain_core.embeddings import Embeddings as LangChainEmbeddings

from officegpt.errors import ProviderError
from officegpt.metrics.observability import PipelineMetrics, get_logger
from officegpt.models import Chunk, EmbeddingVector

LOGGER = logging.getLogger(__name__)

RawVector = Sequence[float] | Mapping[str, float]


@dataclass(frozen=True)
class EmbeddingConfig:
    """Configuration for embedding providers."""

    model: str = "BAAI/bge-small-en-v1.5"
    dim: int = 384
    device: str | None = None
    normalize: bool = True
    cache_folder: str | None = None


class EmbeddingProvider(Protocol):
    """Anything that turns a batch of texts into one vector per text."""

    def embed_batch(self, texts: Sequence[str]) -> Sequence[RawVector]:
        """Return vectors in the same order as *texts*."""


class HashEmbeddingProvider:
    """Deterministic lightweight embeddings used for tests and offline runs."""

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self._config = config or EmbeddingConfig()

    def _hash_to_vector(self, text: str) -> Tuple[float, ...]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        repeat = (self._config.dim + len(digest) - 1) // len(digest)
        raw = (digest * repeat)[: self._config.dim]
        vector = [byte / 255.0 for byte in raw]
        if self._config.normalize:
            norm = math.sqrt(sum(value * value for value in vector)) or 1.0
            vector = [value / norm for value in vector]
        return tuple(vector)

    def embed_batch(self, texts: Sequence[str]) -> Sequence[RawVector]:
        return [self._hash_to_vector(text) for text in texts]


class LangChainEmbeddingProvider:
    """Adapter over any LangChain ``Embeddings`` implementation."""

    def __init__(self, embeddings: LangChainEmbeddings) -> None:
        self._embeddings = embeddings

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> "LangChainEmbeddingProvider":
        from langchain_community.embeddings import HuggingFaceEmbeddings

        model_kwargs = {"device": config.device} if config.device else {}
        embeddings = HuggingFaceEmbeddings(
            model_name=config.model,
            model_kwargs=model_kwargs,
            encode_kwargs={"normalize_embeddings": config.normalize},
            cache_folder=config.cache_folder,
        )
        LOGGER.info("Loaded embedding model %s", config.model)
        return cls(embeddings)

    def embed_batch(self, texts: Sequence[str]) -> Sequence[RawVector]:
        return self._embeddings.embed_documents(list(texts))


def canonicalize_vector(raw: Any) -> EmbeddingVector:
    """Return *raw* as a flat tuple of floats.

    Some providers hand back objects keyed by the stringified position
    (``{"0": 0.1, "1": 0.2}``) instead of arrays; those are ordered by their
    integer key.
    """
    if isinstance(raw, Mapping):
        try:
            items = sorted(raw.items(), key=lambda item: int(item[0]))
        except (TypeError, ValueError) as exc:
            raise ProviderError("embedding", f"vector mapping has non-numeric keys: {exc}") from exc
        if [int(key) for key, _ in items] != list(range(len(items))):
            raise ProviderError("embedding", "vector mapping keys are not a contiguous 0..n-1 range")
        return tuple(float(value) for _, value in items)
    if hasattr(raw, "tolist"):
        raw = raw.tolist()
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise ProviderError("embedding", f"unsupported vector type {type(raw).__name__}")
    try:
        return tuple(float(value) for value in raw)
    except (TypeError, ValueError) as exc:
        raise ProviderError("embedding", f"vector contains non-numeric values: {exc}") from exc


class EmbeddingBatcher:
    """Embed chunks in fixed-size batches, one provider call per batch.

    Batching only bounds request size; the returned vectors are always aligned
    with the input chunks.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        batch_size: int = 10,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._provider = provider
        self.batch_size = batch_size
        self._timeout = timeout_seconds
        self._logger = get_logger("embeddings")

    def partition(self, chunks: Sequence[Chunk]) -> Iterator[Tuple[int, List[Chunk]]]:
        """Yield ``(offset, batch)`` pairs covering *chunks* in order."""
        for offset in range(0, len(chunks), self.batch_size):
            yield offset, list(chunks[offset : offset + self.batch_size])

    def embed(self, chunks: Sequence[Chunk]) -> List[EmbeddingVector]:
        vectors: List[EmbeddingVector] = []
        for _, batch in self.partition(chunks):
            vectors.extend(self.embed_batch(batch))
        return vectors

    def embed_batch(self, chunks: Sequence[Chunk]) -> List[EmbeddingVector]:
        if not chunks:
            return []
        texts = [chunk.text for chunk in chunks]
        raw_vectors = self._call_provider(texts)
        PipelineMetrics.record_embedding_batch()

        if len(raw_vectors) != len(chunks):
            raise ProviderError(
                "embedding",
                f"returned {len(raw_vectors)} vectors for {len(chunks)} chunks",
            )
        vectors = [canonicalize_vector(raw) for raw in raw_vectors]
        dims = {len(vector) for vector in vectors}
        if len(dims) != 1 or 0 in dims:
            raise ProviderError("embedding", f"inconsistent vector dimensions {sorted(dims)}")
        self._logger.debug("embedding.batch", size=len(chunks), dim=dims.pop())
        return vectors

    def _call_provider(self, texts: Sequence[str]) -> Sequence[Any]:
        if self._timeout is None:
            return self._invoke(texts)
        return self._invoke_with_timeout(texts, self._timeout)

    def _invoke(self, texts: Sequence[str]) -> Sequence[Any]:
        try:
            return list(self._provider.embed_batch(texts))
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError("embedding", str(exc)) from exc

    def _invoke_with_timeout(self, texts: Sequence[str], timeout: float) -> Sequence[Any]:
        # One daemon thread per call: an abandoned call never holds up later ones.
        outcome: dict[str, Any] = {}

        def target() -> None:
            try:
                outcome["vectors"] = self._invoke(texts)
            except ProviderError as exc:
                outcome["error"] = exc

        worker = threading.Thread(target=target, name="embedding-call", daemon=True)
        worker.start()
        worker.join(timeout)
        if worker.is_alive():
            raise ProviderError("embedding", f"timed out after {timeout}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["vectors"]
