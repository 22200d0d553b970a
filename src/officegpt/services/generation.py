"""Language-model backends for OfficeGPT."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from officegpt.errors import ProviderError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationConfig:
    """Configuration for answer generation."""

    model: str = "llama-3.3-70b-versatile"
    api_key: str | None = None
    timeout_seconds: float | None = 30.0
    device: str | None = None


class LanguageModel(Protocol):
    """Protocol describing a single-shot chat completion."""

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float, max_tokens: int) -> str:
        """Return the top completion for the two-message conversation."""


class TemplateLanguageModel:
    """Deterministic backend used for tests and offline environments."""

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float, max_tokens: int) -> str:
        _, _, context = user_prompt.partition("Relevant context:")
        context = context.rsplit("Answer:", 1)[0].strip()
        if not context:
            return "I don't have that information in the uploaded documents."
        first_passage = context.split("\n\n", 1)[0]
        return f"Based on the uploaded documents: {first_passage}"[: max_tokens * 4]


class GroqLanguageModel:
    """Chat completions served by Groq."""

    def __init__(self, config: GenerationConfig | None = None, *, client=None) -> None:
        self._config = config or GenerationConfig()
        if client is None:
            from groq import Groq

            client = Groq(api_key=self._config.api_key, timeout=self._config.timeout_seconds)
        self._client = client

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float, max_tokens: int) -> str:
        try:
            completion = self._client.chat.completions.create(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                model=self._config.model,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            raise ProviderError("llm", str(exc)) from exc
        if not completion.choices:
            raise ProviderError("llm", "completion returned no choices")
        return (completion.choices[0].message.content or "").strip()


class TransformersLanguageModel:
    """Local chat model loaded through Hugging Face Transformers."""

    def __init__(self, config: GenerationConfig | None = None) -> None:
        self._config = config or GenerationConfig(model="Qwen/Qwen2.5-1.5B-Instruct")
        from transformers import AutoModelForCausalLM, AutoTokenizer

        self._tokenizer = AutoTokenizer.from_pretrained(self._config.model, trust_remote_code=True)
        self._model = AutoModelForCausalLM.from_pretrained(self._config.model, trust_remote_code=True)
        if self._tokenizer.pad_token is None and self._tokenizer.eos_token is not None:
            self._tokenizer.pad_token = self._tokenizer.eos_token
        if self._config.device:
            self._model.to(self._config.device)
        LOGGER.info("Loaded generation model %s", self._config.model)

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float, max_tokens: int) -> str:
        import torch

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        try:
            prompt = self._tokenizer.apply_chat_template(messages, tokenize=False, add_generation_prompt=True)
            tokenized = self._tokenizer(prompt, return_tensors="pt", padding=True)
            input_ids = tokenized.input_ids
            attention_mask = tokenized.attention_mask
            prompt_length = input_ids.shape[1]
            if self._config.device:
                input_ids = input_ids.to(self._config.device)
                attention_mask = attention_mask.to(self._config.device)
            with torch.no_grad():
                output = self._model.generate(
                    input_ids,
                    attention_mask=attention_mask,
                    max_new_tokens=max_tokens,
                    temperature=temperature,
                    do_sample=temperature > 0,
                )
        except Exception as exc:
            raise ProviderError("llm", str(exc)) from exc
        generated_tokens = output[0][prompt_length:]
        return self._tokenizer.decode(generated_tokens, skip_special_tokens=True).strip()
