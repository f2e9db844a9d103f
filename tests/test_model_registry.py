"""
ModelRegistry のテスト
"""

import pytest

from prompt_studio_core.domain.errors import UnknownModelError
from prompt_studio_core.domain.value_objects import ModelSource
from prompt_studio_core.model_registry import STATIC_MODELS, ModelRegistry

from fakes import make_model


class TestStaticCatalog:
    """静的モデル一覧"""

    def test_ids_are_unique(self):
        ids = [m.id for m in STATIC_MODELS]
        assert len(ids) == len(set(ids))

    def test_default_registry_contains_static_models(self):
        registry = ModelRegistry()
        assert len(registry) == len(STATIC_MODELS)
        assert "claude-sonnet-4-5-20250929" in registry

    def test_each_cloud_provider_has_one_default(self):
        registry = ModelRegistry()
        providers = [m.provider for m in registry.defaults()]
        assert len(providers) == len(set(providers))
        assert {"openai", "anthropic", "google"} <= set(providers)

    def test_temperature_defaults_within_range(self):
        for model in STATIC_MODELS:
            temp = model.capabilities.temperature_range
            assert temp.min <= temp.default <= temp.max, model.id


class TestLookup:
    def test_get_unknown_returns_none(self):
        assert ModelRegistry([]).get("missing") is None

    def test_require_unknown_raises(self):
        with pytest.raises(UnknownModelError) as exc_info:
            ModelRegistry([]).require("missing")
        assert exc_info.value.model_id == "missing"

    def test_by_provider_sorted_by_tier(self):
        registry = ModelRegistry()
        tiers = [m.tier for m in registry.by_provider("openai")]
        assert tiers == sorted(tiers)
        assert registry.most_capable("openai").tier == 1

    def test_grouped_by_provider_covers_all_providers(self):
        grouped = ModelRegistry().grouped_by_provider()
        assert "ollama" in grouped
        assert grouped["ollama"] == []

    def test_most_capable_for_empty_provider(self):
        assert ModelRegistry().most_capable("ollama") is None


class TestBestAvailable:
    """設定済みプロバイダーから最適なモデルを選ぶ"""

    def test_priority_order(self):
        registry = ModelRegistry()
        best = registry.best_available(["google", "anthropic"])
        assert best.provider == "anthropic"
        assert best.tier == 1

    def test_single_provider(self):
        assert ModelRegistry().best_available(["mistral"]).id == "mistral-large-latest"

    def test_no_providers(self):
        assert ModelRegistry().best_available([]) is None

    def test_provider_without_models(self):
        assert ModelRegistry([make_model("a", "openai")]).best_available(["google"]) is None


class TestRegisterDiscovered:
    """発見されたモデルの登録"""

    def test_adds_new_models(self):
        registry = ModelRegistry([make_model("a")])
        added = registry.register_discovered([make_model("ollama-llama3", "ollama")])
        assert [m.id for m in added] == ["ollama-llama3"]
        assert registry.by_provider("ollama")[0].id == "ollama-llama3"

    def test_existing_ids_are_kept(self):
        original = make_model("a", display_name="Original")
        registry = ModelRegistry([original])
        added = registry.register_discovered([make_model("a", display_name="Other")])
        assert added == []
        assert registry.get("a") is original

    def test_rediscovery_is_idempotent(self):
        registry = ModelRegistry([])
        model = make_model("ollama-x", "ollama")
        registry.register_discovered([model])
        registry.register_discovered([model])
        assert len(registry) == 1

    def test_static_source_by_default(self):
        assert all(m.source == ModelSource.STATIC for m in ModelRegistry().all())
