"""
Discover models installed on a local Ollama server and describe them as
registry entries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from urllib.parse import urlparse

import httpx

from prompt_studio_core.domain.value_objects import ModelDescriptor, ModelSource
from prompt_studio_core.model_registry import LOCAL_CAPABILITIES

logger = logging.getLogger(__name__)

# Model families known to emit reasoning output
THINKING_FAMILIES = ("deepseek-r1", "qwen3-coder", "qwen3", "gpt-oss", "o1", "o3")

_WORD_OVERRIDES = {
    "gpt": "GPT",
    "oss": "OSS",
    "r1": "R1",
    "deepseek": "DeepSeek",
    "qwen": "Qwen",
    "qwen3": "Qwen 3",
    "llama": "Llama",
    "mistral": "Mistral",
    "coder": "Coder",
}


def ollama_root(base_url: str) -> str:
    """Ollama API root: strip /v1 from base_url (http://localhost:11434/v1 -> http://localhost:11434)"""
    u = urlparse(base_url)
    path = u.path.rstrip("/")
    if path.endswith("/v1"):
        path = path[:-3]
    return f"{u.scheme}://{u.netloc}{path}".rstrip("/") or base_url


def model_id_for(name: str) -> str:
    return f"ollama-{name.replace(':', '-')}"


def display_name(name: str, parameter_size: str | None = None) -> str:
    """
    Human-readable model name

    "deepseek-r1:32b" -> "DeepSeek R1 32B", "mistral:latest" -> "Mistral"
    """
    base, _, tag = name.partition(":")
    words = [_WORD_OVERRIDES.get(part.lower(), part[:1].upper() + part[1:]) for part in base.split("-")]
    result = " ".join(words)
    if tag and tag != "latest":
        result += " " + re.sub(r"(\d+)[bB]", r"\1B", tag).upper()
    if parameter_size and parameter_size not in result:
        result += f" ({parameter_size})"
    return result


def supports_thinking(name: str) -> bool:
    lower = name.lower()
    return any(family in lower for family in THINKING_FAMILIES)


def to_descriptor(entry: dict) -> ModelDescriptor:
    """Convert one /api/tags entry into a discovered model descriptor"""
    name = entry.get("name") or entry.get("model") or ""
    details = entry.get("details") or {}
    capabilities = LOCAL_CAPABILITIES
    if supports_thinking(name):
        capabilities = replace(LOCAL_CAPABILITIES, supports_thinking=True)
    return ModelDescriptor(
        id=model_id_for(name),
        provider="ollama",
        name=name,
        display_name=display_name(name, details.get("parameter_size")),
        context_window=4096,
        capabilities=capabilities,
        tier=2,
        source=ModelSource.DISCOVERED,
    )


async def discover_ollama_models(
    base_url: str,
    timeout_s: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ModelDescriptor]:
    """
    Query Ollama for installed models (GET /api/tags)

    Returns descriptors sorted by size, largest first. An unreachable
    server or a malformed answer yields an empty list.
    """
    url = f"{ollama_root(base_url)}/api/tags"
    try:
        async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
            r = await client.get(url)
            if r.status_code != 200:
                logger.info("Ollama returned HTTP %d for %s", r.status_code, url)
                return []
            data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.info("Ollama not reachable at %s: %s", base_url, e)
        return []

    if not isinstance(data, dict):
        logger.info("Unexpected Ollama response from %s", url)
        return []

    models = data.get("models") or []
    if not isinstance(models, list):
        logger.info("Unexpected Ollama model list from %s", url)
        return []

    entries = [m for m in models if isinstance(m, dict) and (m.get("name") or m.get("model"))]
    entries.sort(key=lambda m: m.get("size") or 0, reverse=True)
    return [to_descriptor(m) for m in entries]
