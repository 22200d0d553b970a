"""Query orchestration combining retrieval and generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from officegpt.embeddings.store import VectorStore
from officegpt.errors import EmptyQueryError, OfficeGPTError, ProviderError
from officegpt.metrics.observability import PipelineMetrics, TimedSection, get_logger
from officegpt.models import ChatAnswer, RetrievedChunk
from officegpt.services.generation import LanguageModel, TemplateLanguageModel

SYSTEM_PROMPT_TEMPLATE = (
    "You are {assistant_name}, an intelligent assistant for office-related questions.\n"
    "Use the following relevant pieces of retrieved context to answer the question accurately.\n"
    "If you don't know the answer based on the context, politely say you don't have that information.\n"
    "Be professional, concise, and helpful."
)


@dataclass(frozen=True)
class PromptBuilderConfig:
    """Configuration for prompt construction."""

    assistant_name: str = "OfficeGPT"
    context_separator: str = "\n\n"


class PromptBuilder:
    """Builds the system and user prompts for the language model."""

    def __init__(self, config: PromptBuilderConfig | None = None) -> None:
        self._config = config or PromptBuilderConfig()

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT_TEMPLATE.format(assistant_name=self._config.assistant_name)

    def build_context(self, chunks: Sequence[RetrievedChunk]) -> str:
        return self._config.context_separator.join(chunk.text for chunk in chunks)

    def build_user_prompt(self, question: str, context: str) -> str:
        return f"Question: {question}\nRelevant context: {context}\nAnswer:"

    def build(self, question: str, chunks: Sequence[RetrievedChunk]) -> Tuple[str, str]:
        return self.system_prompt, self.build_user_prompt(question, self.build_context(chunks))


@dataclass(frozen=True)
class RetrievalConfig:
    """Retrieval and sampling parameters."""

    top_k: int = 3
    temperature: float = 0.7
    max_tokens: int = 1024


class RetrievalOrchestrator:
    """Answer a question from the top-k stored chunks and one model call.

    No conversation state is kept between calls.
    """

    def __init__(
        self,
        store: VectorStore,
        llm: LanguageModel | None = None,
        *,
        config: RetrievalConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._store = store
        self._llm = llm or TemplateLanguageModel()
        self._config = config or RetrievalConfig()
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._logger = get_logger("query")

    def build_prompt(self, query: str, chunks: Sequence[RetrievedChunk]) -> Tuple[str, str]:
        return self._prompt_builder.build(query, chunks)

    def answer(self, query: str) -> ChatAnswer:
        question = (query or "").strip()
        if not question:
            raise EmptyQueryError("Message is required")

        with TimedSection() as retrieval:
            retrieved = list(self._store.similarity_search(question, k=self._config.top_k))
        PipelineMetrics.observe_retrieval(retrieval.duration, len(retrieved))
        self._logger.info(
            "retrieval.complete",
            chunk_count=len(retrieved),
            duration_seconds=retrieval.duration,
            top_k=self._config.top_k,
        )

        system_prompt, user_prompt = self.build_prompt(question, retrieved)
        with TimedSection(PipelineMetrics.observe_generation) as generation:
            try:
                text = self._llm.complete(
                    system_prompt,
                    user_prompt,
                    temperature=self._config.temperature,
                    max_tokens=self._config.max_tokens,
                )
            except OfficeGPTError:
                raise
            except Exception as exc:
                raise ProviderError("llm", str(exc)) from exc
        self._logger.info(
            "generation.complete",
            duration_seconds=generation.duration,
            source_count=len(retrieved),
        )
        return ChatAnswer(response_text=text, source_count=len(retrieved), sources=tuple(retrieved))
