"""
テスト用のフェイク実装

プロバイダーの代わりに使うスクリプト化されたクライアントと、
単調増加する時計を提供する。
"""

from __future__ import annotations

import asyncio
import itertools

from prompt_studio_core.domain.value_objects import (
    ChunkType,
    ModelCapabilities,
    ModelDescriptor,
    ModelResponse,
    StreamChunk,
    TemperatureRange,
    Usage,
)
from prompt_studio_core.infrastructure.model_clients.base import ModelClient
from prompt_studio_core.model_registry import ModelRegistry


class FakeClock:
    """呼ばれるたびに 1.0 ずつ進む時計"""

    def __init__(self, start: float = 1000.0):
        self._counter = itertools.count()
        self._start = start

    def __call__(self) -> float:
        return self._start + next(self._counter)


def make_model(model_id: str, provider: str = "openai", display_name: str | None = None) -> ModelDescriptor:
    return ModelDescriptor(
        id=model_id,
        provider=provider,
        name=model_id,
        display_name=display_name or model_id.upper(),
        context_window=8192,
        capabilities=ModelCapabilities(
            temperature_range=TemperatureRange(min=0.0, max=1.0, default=0.7),
            max_output_tokens=2048,
        ),
    )


def make_registry() -> ModelRegistry:
    return ModelRegistry([
        make_model("model-a", "openai", "Model A"),
        make_model("model-b", "anthropic", "Model B"),
        make_model("model-c", "google", "Model C"),
        make_model("judge", "anthropic", "Judge"),
    ])


class ScriptedClient(ModelClient):
    """決められたチャンクを返す（または失敗する）クライアント"""

    def __init__(
        self,
        model: ModelDescriptor | None = None,
        chunks: tuple[str, ...] = ("Hello", " world"),
        thinking: tuple[str, ...] = (),
        delay: float = 0.0,
        error: Exception | None = None,
        response_text: str = "",
        gate: asyncio.Event | None = None,
    ):
        self.model = model or make_model("model-a")
        self.chunks = chunks
        self.thinking = thinking
        self.delay = delay
        self.error = error
        self.response_text = response_text
        self.gate = gate
        self.prompts: list[str] = []
        self.system_prompts: list[str | None] = []

    async def stream(self, prompt, parameters=None):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        for text in self.thinking:
            yield StreamChunk(ChunkType.THINKING_DELTA, text=text)
        for text in self.chunks:
            yield StreamChunk(ChunkType.CONTENT_DELTA, text=text)
        yield StreamChunk(ChunkType.DONE, usage=Usage(input_tokens=3, output_tokens=2), finish_reason="stop")

    async def generate(self, prompt, *, system_prompt=None, temperature=None, max_tokens=None):
        self.prompts.append(prompt)
        self.system_prompts.append(system_prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return ModelResponse(output=self.response_text, latency_ms=1, model_name=self.model.id)


class ClientTable:
    """model id -> client の対応表（Workspace の client_factory として使う）"""

    def __init__(self, clients: dict[str, ModelClient]):
        self.clients = clients

    def __call__(self, model: ModelDescriptor) -> ModelClient:
        return self.clients[model.id]
