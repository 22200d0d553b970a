"""Construct provider clients and pipeline services from settings."""

from __future__ import annotations

from dataclasses import dataclass

import chromadb
from chromadb.api import ClientAPI

from officegpt.config import Settings, get_settings
from officegpt.embeddings import (
    ChromaVectorStore,
    EmbeddingBatcher,
    EmbeddingConfig,
    EmbeddingProvider,
    HashEmbeddingProvider,
    LangChainEmbeddingProvider,
    VectorRecordBuilder,
)
from officegpt.ingestion import ChunkSplitter, IngestionPipeline, LangChainTextExtractor
from officegpt.services import (
    GenerationConfig,
    GroqLanguageModel,
    LanguageModel,
    PromptBuilder,
    PromptBuilderConfig,
    RetrievalConfig,
    RetrievalOrchestrator,
    TemplateLanguageModel,
    TransformersLanguageModel,
)


@dataclass(frozen=True)
class AppDependencies:
    store: ChromaVectorStore
    pipeline: IngestionPipeline
    orchestrator: RetrievalOrchestrator


def build_embedding_provider(settings: Settings) -> EmbeddingProvider:
    config = EmbeddingConfig(model=settings.embedding_model, dim=settings.embedding_dim)
    if settings.use_model_embeddings:
        return LangChainEmbeddingProvider.from_config(config)
    return HashEmbeddingProvider(config)


def build_language_model(settings: Settings) -> LanguageModel:
    config = GenerationConfig(
        model=settings.llm_model,
        api_key=settings.groq_api_key,
        timeout_seconds=settings.provider_timeout_seconds,
    )
    if settings.llm_backend == "groq":
        return GroqLanguageModel(config)
    if settings.llm_backend == "transformers":
        return TransformersLanguageModel(config)
    return TemplateLanguageModel()


def build_chroma_client(settings: Settings) -> ClientAPI:
    if settings.chroma_host:
        return chromadb.HttpClient(
            host=settings.chroma_host,
            port=settings.chroma_port or 8000,
            ssl=settings.chroma_ssl,
        )
    if settings.chroma_persist_dir is not None and not settings.is_test:
        return chromadb.PersistentClient(path=str(settings.chroma_persist_dir))
    return chromadb.EphemeralClient()


def build_dependencies(
    settings: Settings | None = None,
    *,
    client: ClientAPI | None = None,
    embedding_provider: EmbeddingProvider | None = None,
    llm: LanguageModel | None = None,
) -> AppDependencies:
    settings = settings or get_settings()
    provider = embedding_provider or build_embedding_provider(settings)
    store = ChromaVectorStore(
        provider,
        collection_name=settings.chroma_collection,
        client=client or build_chroma_client(settings),
        max_concurrency=settings.vector_store_max_concurrency,
    )
    pipeline = IngestionPipeline(
        store,
        EmbeddingBatcher(
            provider,
            batch_size=settings.embedding_batch_size,
            timeout_seconds=settings.provider_timeout_seconds,
        ),
        splitter=ChunkSplitter(max_length=settings.chunk_size, overlap=settings.chunk_overlap),
        extractor=LangChainTextExtractor(),
        record_builder=VectorRecordBuilder(),
    )
    orchestrator = RetrievalOrchestrator(
        store,
        llm or build_language_model(settings),
        config=RetrievalConfig(
            top_k=settings.retrieval_top_k,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        ),
        prompt_builder=PromptBuilder(PromptBuilderConfig(assistant_name=settings.assistant_name)),
    )
    return AppDependencies(store=store, pipeline=pipeline, orchestrator=orchestrator)
