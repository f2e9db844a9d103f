"""
Execution Use Case

Runs the composed prompt against every selected model concurrently and
records the settled batch as a new version.

Each model's call is isolated: any error is converted into that model's
FailedRun and never reaches sibling calls. The version is pushed only
after every call has settled.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from prompt_studio_core.domain.constants import RUN_VERSION_LABEL
from prompt_studio_core.domain.entities import RunState, VersionEntry
from prompt_studio_core.domain.errors import MissingApiKeyError, TransportError
from prompt_studio_core.domain.value_objects import (
    ChunkType,
    ErrorKind,
    ModelDescriptor,
    RunParameters,
    Usage,
)
from prompt_studio_core.infrastructure.model_clients.base import ModelClient
from prompt_studio_core.model_registry import ModelRegistry
from prompt_studio_core.prompt_builder import build_prompt_for
from prompt_studio_core.stores.configuration_store import PromptConfigurationStore
from prompt_studio_core.stores.execution_tracker import ExecutionRunTracker
from prompt_studio_core.stores.observable import Observable
from prompt_studio_core.stores.version_history import VersionHistoryLedger
from prompt_studio_core.use_cases.evaluation import EvaluationCoordinator

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ModelDescriptor], ModelClient]


def error_kind_for(error: BaseException) -> ErrorKind:
    """Classify an execution error"""
    if isinstance(error, MissingApiKeyError):
        return ErrorKind.MISSING_API_KEY
    if isinstance(error, TransportError):
        return error.kind
    return ErrorKind.UNKNOWN


def error_provider_for(error: BaseException, model: ModelDescriptor | None) -> str | None:
    provider = getattr(error, "provider", None)
    if provider:
        return provider
    return model.provider if model else None


class ExecutionOrchestrator(Observable):
    """Coordinates a Run: compose the prompt, fan out to all models, fan in, push a version"""

    def __init__(
        self,
        registry: ModelRegistry,
        configuration_store: PromptConfigurationStore,
        tracker: ExecutionRunTracker,
        ledger: VersionHistoryLedger,
        client_factory: ClientFactory,
        evaluation: EvaluationCoordinator | None = None,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._configuration_store = configuration_store
        self._tracker = tracker
        self._ledger = ledger
        self._client_factory = client_factory
        self._evaluation = evaluation
        self._last_sent_prompt: str | None = None

    @property
    def last_sent_prompt(self) -> str | None:
        """The exact text sent to the models by the latest Run"""
        return self._last_sent_prompt

    def clear_last_sent_prompt(self) -> None:
        self._last_sent_prompt = None

    async def execute_model(
        self,
        model_id: str,
        full_prompt: str,
        parameters: RunParameters | None = None,
        run_id: str | None = None,
    ) -> RunState:
        """
        Stream one model's response into the tracker

        Errors end the run as Failed instead of propagating. When run_id
        is given the run was already started by the caller.

        Returns:
            The model's run state after the call settled
        """
        if run_id is None:
            run_id = self._tracker.start_run(model_id)
        model = None
        try:
            model = self._registry.require(model_id)
            client = self._client_factory(model)

            start_time = time.time()
            content: list[str] = []
            thinking: list[str] = []
            usage: Usage | None = None
            async for chunk in client.stream(full_prompt, parameters):
                if chunk.type == ChunkType.CONTENT_DELTA:
                    content.append(chunk.text)
                    self._tracker.append_delta(model_id, content=chunk.text, run_id=run_id)
                elif chunk.type == ChunkType.THINKING_DELTA:
                    thinking.append(chunk.text)
                    self._tracker.append_delta(model_id, thinking=chunk.text, run_id=run_id)
                elif chunk.type == ChunkType.DONE:
                    usage = chunk.usage
            latency_ms = int((time.time() - start_time) * 1000)
        except Exception as e:
            self._tracker.fail_run(
                model_id,
                str(e),
                error_kind=error_kind_for(e),
                provider=error_provider_for(e, model),
                run_id=run_id,
            )
            return self._tracker.run_state(model_id)

        self._tracker.complete_run(
            model_id,
            "".join(content),
            thinking="".join(thinking) or None,
            latency_ms=latency_ms,
            usage=usage,
            run_id=run_id,
        )
        return self._tracker.run_state(model_id)

    async def execute_all(self) -> VersionEntry | None:
        """
        Run the current configuration against all selected models

        Does nothing (returns None) when the configuration cannot be
        executed. Otherwise clears the stale evaluation, runs every
        selected model concurrently, waits for all of them to settle
        and pushes a 'Run' version.

        Returns:
            The pushed VersionEntry, or None when nothing ran or the
            document was replaced before the run settled
        """
        if not self._configuration_store.can_execute:
            logger.debug("Run skipped: configuration cannot be executed")
            return None

        if self._evaluation is not None:
            self._evaluation.clear_evaluation()

        config = self._configuration_store.configuration
        built = build_prompt_for(config)
        self._last_sent_prompt = built.full_prompt
        self._emit("prompt_sent", prompt=built.full_prompt, has_extras=built.has_extras)

        model_ids = list(config.selected_model_ids)
        document_generation = self._configuration_store.document_generation
        logger.info("Running %d model(s): %s", len(model_ids), ", ".join(model_ids))
        # Every model is Streaming before the first call can settle
        run_ids = [self._tracker.start_run(model_id) for model_id in model_ids]
        results = await asyncio.gather(
            *[
                self.execute_model(model_id, built.full_prompt, config.parameters, run_id=run_id)
                for model_id, run_id in zip(model_ids, run_ids)
            ],
            return_exceptions=True,
        )
        # Only a failing change listener can get past execute_model's error boundary
        for model_id, result in zip(model_ids, results):
            if isinstance(result, BaseException):
                logger.error("Run for %s raised outside its error boundary: %s", model_id, result)
                raise result

        if document_generation != self._configuration_store.document_generation:
            logger.info("Document replaced during the run; no version recorded")
            return None

        entry = self._ledger.push_version("user", RUN_VERSION_LABEL)
        self._emit("run_finished", version_id=entry.id)
        return entry
