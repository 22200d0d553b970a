"""Service layer orchestrations for OfficeGPT."""

from .generation import (
    GenerationConfig,
    GroqLanguageModel,
    LanguageModel,
    TemplateLanguageModel,
    TransformersLanguageModel,
)
from .query import PromptBuilder, PromptBuilderConfig, RetrievalConfig, RetrievalOrchestrator

__all__ = [
    "GenerationConfig",
    "GroqLanguageModel",
    "LanguageModel",
    "PromptBuilder",
    "PromptBuilderConfig",
    "RetrievalConfig",
    "RetrievalOrchestrator",
    "TemplateLanguageModel",
    "TransformersLanguageModel",
]
