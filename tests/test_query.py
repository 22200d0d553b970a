"""Tests for retrieval orchestration and prompt assembly."""

from __future__ import annotations

import pytest

from officegpt.errors import EmptyQueryError, ProviderError
from officegpt.models import RetrievedChunk
from officegpt.services.generation import TemplateLanguageModel
from officegpt.services.query import PromptBuilder, RetrievalOrchestrator


class StubStore:
    def __init__(self, texts: list[str]) -> None:
        self._texts = texts
        self.queries: list[tuple[str, int]] = []

    def upsert(self, records) -> None:  # pragma: no cover - unused
        raise AssertionError("retrieval must not write")

    def similarity_search(self, query: str, *, k: int = 3):
        self.queries.append((query, k))
        return [
            RetrievedChunk(text=text, metadata={"text": text, "source": "handbook.pdf"}, rank=rank, score=1.0 - rank / 10)
            for rank, text in enumerate(self._texts[:k])
        ]

    def count(self) -> int:
        return len(self._texts)


class RecordingLLM:
    def __init__(self, reply: str = "Ten days of annual leave.") -> None:
        self.calls: list[dict] = []
        self._reply = reply

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float, max_tokens: int) -> str:
        self.calls.append(
            {"system": system_prompt, "user": user_prompt, "temperature": temperature, "max_tokens": max_tokens},
        )
        return self._reply


class BrokenLLM:
    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float, max_tokens: int) -> str:
        raise TimeoutError("upstream timed out")


def test_answer_uses_three_chunks_in_rank_order():
    store = StubStore(["leave is ten days", "sick leave is separate", "carry over up to five", "unrelated"])
    llm = RecordingLLM()
    answer = RetrievalOrchestrator(store, llm).answer("How much leave do I get?")

    assert answer.source_count == 3
    assert answer.response_text == "Ten days of annual leave."
    assert store.queries == [("How much leave do I get?", 3)]
    call = llm.calls[0]
    assert "leave is ten days\n\nsick leave is separate\n\ncarry over up to five" in call["user"]
    assert "unrelated" not in call["user"]
    assert call["user"].startswith("Question: How much leave do I get?\nRelevant context: ")
    assert call["user"].endswith("Answer:")
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 1024


def test_system_prompt_grounds_and_admits_ignorance():
    llm = RecordingLLM()
    RetrievalOrchestrator(StubStore(["x"]), llm).answer("q")
    system = llm.calls[0]["system"]
    assert system.startswith("You are OfficeGPT")
    assert "don't have that information" in system


@pytest.mark.parametrize("query", ["", "   ", "\n"])
def test_blank_query_makes_no_provider_calls(query: str):
    store = StubStore(["x"])
    llm = RecordingLLM()
    with pytest.raises(EmptyQueryError):
        RetrievalOrchestrator(store, llm).answer(query)
    assert store.queries == []
    assert llm.calls == []


def test_calls_are_stateless():
    llm = RecordingLLM()
    orchestrator = RetrievalOrchestrator(StubStore(["a", "b", "c"]), llm)
    orchestrator.answer("first question")
    orchestrator.answer("second question")
    assert "first question" not in llm.calls[1]["user"]


def test_llm_failure_surfaces_as_provider_error():
    with pytest.raises(ProviderError) as excinfo:
        RetrievalOrchestrator(StubStore(["a"]), BrokenLLM()).answer("q")
    assert excinfo.value.provider == "llm"


def test_empty_store_still_answers_with_zero_sources():
    answer = RetrievalOrchestrator(StubStore([]), TemplateLanguageModel()).answer("Where is HR?")
    assert answer.source_count == 0
    assert "don't have that information" in answer.response_text


def test_prompt_builder_joins_with_blank_line():
    chunks = [RetrievedChunk(text=t, metadata={}, rank=i) for i, t in enumerate(["one", "two"])]
    system, user = PromptBuilder().build("Why?", chunks)
    assert user == "Question: Why?\nRelevant context: one\n\ntwo\nAnswer:"
    assert "OfficeGPT" in system
