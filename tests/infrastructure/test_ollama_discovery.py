"""
Ollama モデル検出のテスト

httpx.MockTransport でローカルサーバーの応答を差し替える。
"""

import httpx
import pytest

from prompt_studio_core.domain.value_objects import ModelSource
from prompt_studio_core.infrastructure.ollama_discovery import (
    discover_ollama_models,
    display_name,
    model_id_for,
    ollama_root,
    supports_thinking,
    to_descriptor,
)


TAGS = {
    "models": [
        {"name": "llama3:8b", "size": 4_000_000_000, "details": {"parameter_size": "8.0B"}},
        {"name": "deepseek-r1:32b", "size": 19_000_000_000, "details": {"parameter_size": "32.8B"}},
        {"model": "mistral:latest", "size": 4_100_000_000},
        {"size": 1},
    ]
}


def _transport(status: int = 200, payload=None, seen: list | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        return httpx.Response(status, json=payload if payload is not None else TAGS)

    return httpx.MockTransport(handler)


class TestHelpers:
    """名前の変換"""

    @pytest.mark.parametrize("base_url, expected", [
        ("http://localhost:11434", "http://localhost:11434"),
        ("http://localhost:11434/", "http://localhost:11434"),
        ("http://localhost:11434/v1", "http://localhost:11434"),
        ("http://gpu-box:11434/v1/", "http://gpu-box:11434"),
    ])
    def test_ollama_root(self, base_url, expected):
        assert ollama_root(base_url) == expected

    def test_model_id_for(self):
        assert model_id_for("deepseek-r1:32b") == "ollama-deepseek-r1-32b"

    @pytest.mark.parametrize("name, size, expected", [
        ("deepseek-r1:32b", None, "DeepSeek R1 32B"),
        ("mistral:latest", None, "Mistral"),
        ("gpt-oss:20b", None, "GPT OSS 20B"),
        ("llama3:8b", "8.0B", "Llama3 8B (8.0B)"),
    ])
    def test_display_name(self, name, size, expected):
        assert display_name(name, size) == expected

    def test_supports_thinking(self):
        assert supports_thinking("deepseek-r1:7b") is True
        assert supports_thinking("qwen3:4b") is True
        assert supports_thinking("llama3:8b") is False

    def test_to_descriptor(self):
        model = to_descriptor({"name": "qwen3:4b"})
        assert model.id == "ollama-qwen3-4b"
        assert model.provider == "ollama"
        assert model.source == ModelSource.DISCOVERED
        assert model.capabilities.supports_thinking is True


class TestDiscover:
    """/api/tags の問い合わせ"""

    @pytest.mark.asyncio
    async def test_sorted_largest_first_and_nameless_skipped(self):
        seen = []
        models = await discover_ollama_models("http://localhost:11434/v1", transport=_transport(seen=seen))
        assert seen == ["http://localhost:11434/api/tags"]
        assert [m.id for m in models] == [
            "ollama-deepseek-r1-32b",
            "ollama-mistral-latest",
            "ollama-llama3-8b",
        ]

    @pytest.mark.asyncio
    async def test_http_error_status_returns_empty(self):
        assert await discover_ollama_models("http://localhost:11434", transport=_transport(status=500)) == []

    @pytest.mark.asyncio
    async def test_unreachable_returns_empty(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        models = await discover_ollama_models("http://localhost:11434", transport=httpx.MockTransport(handler))
        assert models == []

    @pytest.mark.asyncio
    async def test_invalid_json_returns_empty(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        assert await discover_ollama_models("http://localhost:11434", transport=transport) == []

    @pytest.mark.asyncio
    async def test_unexpected_shape_returns_empty(self):
        assert await discover_ollama_models("http://localhost:11434", transport=_transport(payload=[1, 2])) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"models": {"name": "llama3"}},
        {"models": "llama3"},
    ])
    async def test_models_not_a_list_returns_empty(self, payload):
        assert await discover_ollama_models("http://localhost:11434", transport=_transport(payload=payload)) == []

    @pytest.mark.asyncio
    async def test_non_dict_entries_are_skipped(self):
        payload = {"models": ["garbage", None, {"name": "llama3:8b", "size": 1}]}
        models = await discover_ollama_models("http://localhost:11434", transport=_transport(payload=payload))
        assert [m.id for m in models] == ["ollama-llama3-8b"]

    @pytest.mark.asyncio
    async def test_no_models(self):
        models = await discover_ollama_models("http://localhost:11434", transport=_transport(payload={"models": []}))
        assert models == []
