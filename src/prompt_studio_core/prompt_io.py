"""
Prompt import/export

JSON document format (version 1.1):

    {
      "version": "1.1",
      "exportedAt": "<ISO 8601>",
      "prompt": {"name", "content", "intent"?, "guardrails"?, "examples"?},
      "executionHistory"?: [{"modelId", "output", "thinking"?, "status", "latencyMs"?}]
    }

Import is fault tolerant: unknown fields are ignored, missing example
ids are generated and an invalid example type falls back to positive.
Only the prompt content is required.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from prompt_studio_core.domain.constants import EXPORT_VERSION
from prompt_studio_core.domain.entities import CompletedRun, Example, PromptConfiguration, RunState
from prompt_studio_core.domain.errors import ValidationError
from prompt_studio_core.domain.value_objects import Polarity

IMPORTED_PROMPT_NAME = "Imported Prompt"


@dataclass(frozen=True)
class ImportedRun:
    """A run carried in an imported document (informational only)"""
    model_id: str
    output: str
    thinking: str | None = None
    status: str = "completed"
    latency_ms: int | None = None


@dataclass(frozen=True)
class ImportedDocument:
    name: str
    content: str
    intent: str = ""
    guardrails: str = ""
    examples: tuple[Example, ...] = ()
    execution_history: tuple[ImportedRun, ...] = ()

    def to_configuration(self, selected_model_ids: Sequence[str] = ()) -> PromptConfiguration:
        return PromptConfiguration(
            name=self.name,
            content=self.content,
            intent=self.intent,
            examples=self.examples,
            guardrails=self.guardrails,
            selected_model_ids=tuple(selected_model_ids),
        )


def build_export_data(
    config: PromptConfiguration,
    runs: Sequence[RunState] = (),
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the export document; only completed runs are included"""
    exported_at = exported_at or datetime.now(timezone.utc)

    prompt: dict[str, Any] = {"name": config.name, "content": config.content}
    if config.intent:
        prompt["intent"] = config.intent
    if config.guardrails:
        prompt["guardrails"] = config.guardrails
    if config.examples:
        prompt["examples"] = [
            {"id": ex.id, "content": ex.content, "type": ex.polarity.value}
            for ex in config.examples
        ]

    data: dict[str, Any] = {
        "version": EXPORT_VERSION,
        "exportedAt": exported_at.isoformat(),
        "prompt": prompt,
    }

    history = []
    for run in runs:
        if not isinstance(run, CompletedRun):
            continue
        entry: dict[str, Any] = {"modelId": run.model_id, "output": run.output, "status": "completed"}
        if run.thinking:
            entry["thinking"] = run.thinking
        if run.latency_ms is not None:
            entry["latencyMs"] = run.latency_ms
        history.append(entry)
    if history:
        data["executionHistory"] = history
    return data


def export_to_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def export_filename(name: str) -> str:
    """'My Prompt!' -> 'my-prompt-export.json'"""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "prompt"
    return f"{slug}-export.json"


def _parse_examples(raw: Any) -> tuple[Example, ...]:
    if not isinstance(raw, list):
        return ()
    examples = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("content"), str):
            continue
        polarity = item.get("type")
        examples.append(Example(
            id=item["id"] if isinstance(item.get("id"), str) else str(uuid.uuid4()),
            content=item["content"],
            polarity=Polarity(polarity) if polarity in ("positive", "negative") else Polarity.POSITIVE,
        ))
    return tuple(examples)


def _parse_history(raw: Any) -> tuple[ImportedRun, ...]:
    if not isinstance(raw, list):
        return ()
    runs = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if not isinstance(item.get("modelId"), str) or not isinstance(item.get("output"), str):
            continue
        latency = item.get("latencyMs")
        runs.append(ImportedRun(
            model_id=item["modelId"],
            output=item["output"],
            thinking=item["thinking"] if isinstance(item.get("thinking"), str) else None,
            status=item["status"] if isinstance(item.get("status"), str) else "completed",
            latency_ms=int(latency) if isinstance(latency, (int, float)) and not isinstance(latency, bool) else None,
        ))
    return tuple(runs)


def _optional_text(value: Any) -> str:
    return value if isinstance(value, str) and value.strip() else ""


def parse_import_json(text: str) -> ImportedDocument:
    """
    Parse an exported document

    Raises:
        ValidationError: Invalid JSON, missing prompt object or empty content
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid JSON format") from e

    if not isinstance(data, dict):
        raise ValidationError("Invalid data structure")
    prompt = data.get("prompt")
    if not isinstance(prompt, dict):
        raise ValidationError('Missing required "prompt" field')
    content = prompt.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Missing or empty prompt content")

    name = prompt.get("name")
    return ImportedDocument(
        name=name if isinstance(name, str) and name.strip() else IMPORTED_PROMPT_NAME,
        content=content,
        intent=_optional_text(prompt.get("intent")),
        guardrails=_optional_text(prompt.get("guardrails")),
        examples=_parse_examples(prompt.get("examples")),
        execution_history=_parse_history(data.get("executionHistory")),
    )


def read_import_file(path: str | Path) -> ImportedDocument:
    return parse_import_json(Path(path).read_text(encoding="utf-8"))


def write_export_file(data: dict[str, Any], output_dir: str | Path) -> Path:
    """Write the export document into output_dir; returns the file path"""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(data["prompt"]["name"])
    path.write_text(export_to_json(data), encoding="utf-8")
    return path
