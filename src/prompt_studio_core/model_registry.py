"""
Model Registry

Catalog of model descriptors. Statically declared models and models
discovered at runtime (Ollama) live in one lookup table keyed by id.
"""

from __future__ import annotations

import logging
from typing import Iterable

from prompt_studio_core.domain.constants import PROVIDER_PRIORITY, PROVIDERS
from prompt_studio_core.domain.errors import UnknownModelError
from prompt_studio_core.domain.value_objects import (
    ModelCapabilities,
    ModelDescriptor,
    TemperatureRange,
)

logger = logging.getLogger(__name__)


def _caps(
    temp_max: float,
    temp_default: float,
    max_output_tokens: int,
    thinking: bool = False,
) -> ModelCapabilities:
    return ModelCapabilities(
        supports_streaming=True,
        supports_thinking=thinking,
        supports_temperature=True,
        temperature_range=TemperatureRange(min=0.0, max=temp_max, default=temp_default),
        supports_system_prompt=True,
        supports_max_tokens=True,
        max_output_tokens=max_output_tokens,
    )


# Capabilities given to discovered local models
LOCAL_CAPABILITIES = _caps(2.0, 0.7, 4096)

STATIC_MODELS: list[ModelDescriptor] = [
    # OpenAI
    ModelDescriptor("gpt-5.2", "openai", "gpt-5.2", "GPT-5.2", 400000,
                    _caps(2.0, 1.0, 128000, thinking=True), tier=1, is_default=True),
    ModelDescriptor("gpt-5-mini", "openai", "gpt-5-mini", "GPT-5 Mini", 128000,
                    _caps(2.0, 1.0, 32000, thinking=True), tier=2),
    ModelDescriptor("gpt-5-nano", "openai", "gpt-5-nano", "GPT-5 Nano", 128000,
                    _caps(2.0, 1.0, 16000, thinking=True), tier=3),
    # Anthropic
    ModelDescriptor("claude-opus-4-5-20251101", "anthropic", "claude-opus-4-5-20251101",
                    "Claude Opus 4.5", 200000, _caps(1.0, 1.0, 64000, thinking=True), tier=1),
    ModelDescriptor("claude-sonnet-4-5-20250929", "anthropic", "claude-sonnet-4-5-20250929",
                    "Claude Sonnet 4.5", 200000, _caps(1.0, 1.0, 64000, thinking=True),
                    tier=2, is_default=True),
    # Google
    ModelDescriptor("gemini-3-pro-preview", "google", "gemini-3-pro-preview", "Gemini 3 Pro",
                    200000, _caps(2.0, 1.0, 65536, thinking=True), tier=1),
    ModelDescriptor("gemini-3-flash-preview", "google", "gemini-3-flash-preview", "Gemini 3 Flash",
                    1000000, _caps(2.0, 1.0, 65536, thinking=True), tier=3, is_default=True),
    # Mistral
    ModelDescriptor("mistral-large-latest", "mistral", "mistral-large-latest", "Mistral Large",
                    128000, _caps(1.0, 0.7, 8192), tier=1, is_default=True),
    ModelDescriptor("mistral-small-latest", "mistral", "mistral-small-latest", "Mistral Small",
                    32000, _caps(1.0, 0.7, 8192), tier=2),
    ModelDescriptor("codestral-latest", "mistral", "codestral-latest", "Codestral",
                    32000, _caps(1.0, 0.2, 8192), tier=2),
    # DeepSeek
    ModelDescriptor("deepseek-chat", "deepseek", "deepseek-chat", "DeepSeek Chat",
                    64000, _caps(2.0, 1.0, 8192), tier=2),
    ModelDescriptor("deepseek-reasoner", "deepseek", "deepseek-reasoner", "DeepSeek R1",
                    64000, _caps(2.0, 0.6, 8192, thinking=True), tier=1, is_default=True),
    # Perplexity
    ModelDescriptor("sonar-pro", "perplexity", "sonar-pro", "Sonar Pro",
                    200000, _caps(2.0, 0.7, 8192), tier=1, is_default=True),
    ModelDescriptor("sonar", "perplexity", "sonar", "Sonar",
                    128000, _caps(2.0, 0.7, 8192), tier=2),
]


class ModelRegistry:
    """Lookup table of model descriptors keyed by id"""

    def __init__(self, models: Iterable[ModelDescriptor] | None = None) -> None:
        self._models: dict[str, ModelDescriptor] = {}
        for model in STATIC_MODELS if models is None else models:
            self._models[model.id] = model

    def __contains__(self, model_id: str) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)

    def all(self) -> list[ModelDescriptor]:
        return list(self._models.values())

    def get(self, model_id: str) -> ModelDescriptor | None:
        return self._models.get(model_id)

    def require(self, model_id: str) -> ModelDescriptor:
        model = self._models.get(model_id)
        if model is None:
            raise UnknownModelError(model_id)
        return model

    def by_provider(self, provider: str) -> list[ModelDescriptor]:
        """Models of one provider, most capable first"""
        return sorted(
            (m for m in self._models.values() if m.provider == provider),
            key=lambda m: m.tier,
        )

    def defaults(self) -> list[ModelDescriptor]:
        return [m for m in self._models.values() if m.is_default]

    def grouped_by_provider(self) -> dict[str, list[ModelDescriptor]]:
        return {provider: self.by_provider(provider) for provider in PROVIDERS}

    def most_capable(self, provider: str) -> ModelDescriptor | None:
        models = self.by_provider(provider)
        return models[0] if models else None

    def best_available(self, available_providers: Iterable[str]) -> ModelDescriptor | None:
        """
        Pick the best model among providers that are configured

        Walks providers in priority order and returns the most capable
        model of the first one that has any; falls back to any model of an
        available provider.
        """
        available = set(available_providers)
        if not available:
            return None
        for provider in PROVIDER_PRIORITY:
            if provider in available:
                best = self.most_capable(provider)
                if best is not None:
                    return best
        for model in self._models.values():
            if model.provider in available:
                return model
        return None

    def register_discovered(self, models: Iterable[ModelDescriptor]) -> list[ModelDescriptor]:
        """
        Add discovered models

        Ids already present are left untouched, so a static entry always
        wins and rediscovery is idempotent.

        Returns:
            The descriptors that were actually added
        """
        added = []
        for model in models:
            if model.id in self._models:
                continue
            self._models[model.id] = model
            added.append(model)
        if added:
            logger.info("Registered %d discovered model(s)", len(added))
        return added
