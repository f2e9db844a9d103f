"""
Workspace

Wires one registry, run tracker, configuration store, version history,
evaluation coordinator and execution orchestrator into a single prompt
workspace. All state is owned by the instance; nothing is global.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from prompt_studio_core.domain.entities import (
    CompletedRun,
    EvaluationSnapshot,
    FailedRun,
    PromptConfiguration,
    RunState,
    StreamingRun,
    VersionEntry,
)
from prompt_studio_core.domain.value_objects import ModelDescriptor
from prompt_studio_core.infrastructure.model_clients.base import ModelClient
from prompt_studio_core.infrastructure.model_clients.factory import create_client
from prompt_studio_core.infrastructure.ollama_discovery import discover_ollama_models
from prompt_studio_core.model_registry import ModelRegistry
from prompt_studio_core.prompt_io import ImportedDocument, build_export_data, parse_import_json
from prompt_studio_core.stores.configuration_store import PromptConfigurationStore
from prompt_studio_core.stores.execution_tracker import ExecutionRunTracker
from prompt_studio_core.stores.version_history import VersionHistoryLedger
from prompt_studio_core.studio_config import ApiKeyResolver, StudioConfig, load_config
from prompt_studio_core.use_cases.evaluation import EvaluationCoordinator
from prompt_studio_core.use_cases.execution import ExecutionOrchestrator

logger = logging.getLogger(__name__)

SUGGESTION_TARGETS = ("content", "intent", "guardrails")


@dataclass(frozen=True)
class DisplayRun:
    """A run state enriched with model metadata for display"""
    run: RunState
    display_name: str
    provider: str

    @property
    def model_id(self) -> str:
        return self.run.model_id


class Workspace:
    """One prompt document with its runs, evaluation and version history"""

    def __init__(
        self,
        config: StudioConfig | None = None,
        registry: ModelRegistry | None = None,
        client_factory: Callable[[ModelDescriptor], ModelClient] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or load_config()
        self.registry = registry or ModelRegistry()
        self.keys = ApiKeyResolver(self.config)
        client_factory = client_factory or self.create_client

        self.tracker = ExecutionRunTracker(clock=clock)
        self.configuration = PromptConfigurationStore(self.tracker)
        self.history = VersionHistoryLedger(self.configuration, self.tracker, clock=clock)
        self.evaluation = EvaluationCoordinator(
            self.registry,
            self.configuration,
            self.tracker,
            self.history,
            client_factory,
            judge_model_id=self.config.evaluation.judge_model,
            temperature=self.config.evaluation.temperature,
            max_tokens=self.config.evaluation.max_tokens,
            clock=clock,
        )
        self.history.set_evaluation_source(lambda: self.evaluation.current_evaluation)
        self.orchestrator = ExecutionOrchestrator(
            self.registry,
            self.configuration,
            self.tracker,
            self.history,
            client_factory,
            evaluation=self.evaluation,
        )

    def create_client(self, model: ModelDescriptor) -> ModelClient:
        """Client for a model using the resolved key of its provider"""
        return create_client(model, self.keys.resolve(model.provider), self.config)

    async def discover_ollama(self) -> list[ModelDescriptor]:
        """Query the local Ollama server and register what it serves"""
        models = await discover_ollama_models(
            self.config.ollama.base_url,
            timeout_s=self.config.ollama.discovery_timeout_seconds,
        )
        return self.registry.register_discovered(models)

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------

    def new_document(self, name: str = "Untitled") -> None:
        """Start a fresh document; the model selection is kept"""
        selected = self.configuration.configuration.selected_model_ids
        self.configuration.set_configuration(PromptConfiguration(name=name, selected_model_ids=selected))
        self.history.clear()
        self.evaluation.reset()
        self.orchestrator.clear_last_sent_prompt()

    def load_document(self, document: ImportedDocument, selected_model_ids: Sequence[str] | None = None) -> None:
        """Replace the configuration with an imported document and clear the history"""
        if selected_model_ids is None:
            selected_model_ids = self.configuration.configuration.selected_model_ids
        self.configuration.set_configuration(document.to_configuration(selected_model_ids))
        self.history.clear()
        self.evaluation.reset()
        self.orchestrator.clear_last_sent_prompt()

    def import_json(self, text: str, selected_model_ids: Sequence[str] | None = None) -> ImportedDocument:
        document = parse_import_json(text)
        self.load_document(document, selected_model_ids)
        return document

    def export_data(self) -> dict[str, Any]:
        config = self.configuration.configuration
        return build_export_data(config, self.tracker.snapshot_all_runs(config.selected_model_ids))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    @property
    def can_execute(self) -> bool:
        return self.configuration.can_execute

    @property
    def can_evaluate(self) -> bool:
        return self.evaluation.can_evaluate

    def is_provider_available(self, provider: str) -> bool:
        return self.keys.is_configured(provider)

    async def run(self) -> VersionEntry | None:
        """
        Run the selected models

        While a past version is previewed, its prompt parts are restored
        first so the run continues from that point.
        """
        if self.history.is_viewing_history and not self.tracker.is_executing:
            self.history.restore_version(self.history.view_index)
        if not self.can_execute:
            return None
        return await self.orchestrator.execute_all()

    async def evaluate(self, judge_model_id: str | None = None) -> EvaluationSnapshot | None:
        return await self.evaluation.evaluate(judge_model_id)

    def apply_suggestion(self, target: str, text: str) -> VersionEntry:
        """Apply an assistant suggestion to one prompt part and record it as a version"""
        if target == "content":
            self.configuration.update_content(text)
        elif target == "intent":
            self.configuration.update_intent(text)
        elif target == "guardrails":
            self.configuration.update_guardrails(text)
        else:
            raise ValueError(f"Unknown suggestion target: {target} (expected one of {', '.join(SUGGESTION_TARGETS)})")
        return self.history.push_version("assistant", changed_part=target)

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def _describe(self, run: RunState) -> DisplayRun:
        model = self.registry.get(run.model_id)
        return DisplayRun(
            run=run,
            display_name=model.display_name if model else run.model_id,
            provider=model.provider if model else "unknown",
        )

    def display_runs(self) -> list[DisplayRun]:
        """
        Runs to show, in selection order

        While a past version is previewed, that version's settled runs
        are shown instead of the live ones.
        """
        preview = self.history.preview_snapshot()
        if preview is not None:
            return [self._describe(run) for run in preview.completed_runs]
        config = self.configuration.configuration
        return [self._describe(run) for run in self.tracker.snapshot_all_runs(config.selected_model_ids)]

    def execution_context(self) -> dict[str, Any]:
        """Read-only snapshot of the workspace for an assistant"""
        config = self.configuration.configuration
        selected_models = []
        for model_id in config.selected_model_ids:
            model = self.registry.get(model_id)
            if model is not None:
                selected_models.append({"id": model.id, "name": model.display_name, "provider": model.provider})

        latest_runs = []
        for item in self.display_runs() if not self.history.is_viewing_history else []:
            run = item.run
            if isinstance(run, CompletedRun):
                output, status = run.output, "completed"
            elif isinstance(run, FailedRun):
                output, status = "", "error"
            elif isinstance(run, StreamingRun):
                output, status = run.content, "streaming"
            else:
                continue
            latest_runs.append({
                "model": item.display_name,
                "provider": item.provider,
                "output": output,
                "status": status,
            })

        context: dict[str, Any] = {
            "prompt_name": config.name,
            "prompt_content": config.content,
            "prompt_intent": config.intent or None,
            "prompt_guardrails": config.guardrails or None,
            "prompt_examples": [
                {"id": ex.id, "content": ex.content, "type": ex.polarity.value} for ex in config.examples
            ] or None,
            "selected_models": selected_models,
            "latest_runs": latest_runs,
        }
        evaluation = self.evaluation.current_evaluation
        if evaluation is not None:
            context["evaluation"] = {
                "evaluation_prompt": evaluation.evaluation_prompt,
                "results": [
                    {"model_id": r.model_id, "score": r.score, "reasoning": r.reasoning}
                    for r in evaluation.results
                ],
            }
        return context
