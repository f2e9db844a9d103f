"""
Evaluation Use Case

Coordinates one judge call over the completed outputs of the current
run and attaches the result to the version history.

State machine: IDLE -> EVALUATING -> COMPLETE | FAILED. Starting a new
evaluation supersedes any evaluation still in flight; the superseded
call's result is discarded when it arrives.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from prompt_studio_core.domain.constants import DEFAULT_JUDGE_MODEL, JUDGE_MAX_TOKENS, JUDGE_TEMPERATURE
from prompt_studio_core.domain.entities import CompletedRun, EvaluationSnapshot
from prompt_studio_core.domain.value_objects import ModelDescriptor
from prompt_studio_core.infrastructure.model_clients.base import ModelClient
from prompt_studio_core.model_registry import ModelRegistry
from prompt_studio_core.scoring.llm_judge import JudgeOutput, LLMJudge, build_evaluation_prompt
from prompt_studio_core.stores.configuration_store import PromptConfigurationStore
from prompt_studio_core.stores.execution_tracker import ExecutionRunTracker
from prompt_studio_core.stores.observable import Observable
from prompt_studio_core.stores.version_history import VersionHistoryLedger

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ModelDescriptor], ModelClient]


class EvaluationStatus(str, Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    COMPLETE = "complete"
    FAILED = "failed"


class EvaluationCoordinator(Observable):
    """Runs the judge over completed outputs and keeps the latest evaluation"""

    def __init__(
        self,
        registry: ModelRegistry,
        configuration_store: PromptConfigurationStore,
        tracker: ExecutionRunTracker,
        ledger: VersionHistoryLedger,
        client_factory: ClientFactory,
        judge_model_id: str = DEFAULT_JUDGE_MODEL,
        temperature: float = JUDGE_TEMPERATURE,
        max_tokens: int = JUDGE_MAX_TOKENS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._configuration_store = configuration_store
        self._tracker = tracker
        self._ledger = ledger
        self._client_factory = client_factory
        self.judge_model_id = judge_model_id
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._clock = clock

        self._custom_prompt = ""
        self._use_smart_default = True
        self._status = EvaluationStatus.IDLE
        self._current: EvaluationSnapshot | None = None
        self._error: str | None = None
        self._generation = 0
        self._run_epoch = 0

    @property
    def status(self) -> EvaluationStatus:
        return self._status

    @property
    def is_evaluating(self) -> bool:
        return self._status == EvaluationStatus.EVALUATING

    @property
    def current_evaluation(self) -> EvaluationSnapshot | None:
        return self._current

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def custom_prompt(self) -> str:
        return self._custom_prompt

    @property
    def use_smart_default(self) -> bool:
        return self._use_smart_default

    def set_custom_prompt(self, prompt: str) -> None:
        """Set custom criteria; non-blank criteria turn the smart default off"""
        self._custom_prompt = prompt
        if prompt.strip():
            self._use_smart_default = False
        self._emit("evaluation_prompt_changed")

    def toggle_smart_default(self) -> None:
        self._use_smart_default = not self._use_smart_default
        self._emit("evaluation_prompt_changed")

    def _effective_custom_prompt(self) -> str | None:
        return None if self._use_smart_default else self._custom_prompt

    @property
    def evaluation_prompt(self) -> str:
        """The criteria an evaluation would use right now (also used for previews)"""
        intent = self._configuration_store.configuration.intent
        return build_evaluation_prompt(intent, self._effective_custom_prompt())

    def judge_outputs(self) -> list[JudgeOutput]:
        """Completed runs with non-empty output, in display order"""
        config = self._configuration_store.configuration
        outputs = []
        for run in self._tracker.settled_runs(config.selected_model_ids):
            if not isinstance(run, CompletedRun) or not run.output:
                continue
            model = self._registry.get(run.model_id)
            outputs.append(JudgeOutput(
                model_id=run.model_id,
                model_name=model.display_name if model else run.model_id,
                provider=model.provider if model else "unknown",
                output=run.output,
            ))
        return outputs

    @property
    def can_evaluate(self) -> bool:
        return bool(self.judge_outputs()) and not self.is_evaluating

    def clear_evaluation(self) -> None:
        """Drop the current evaluation (a new run makes it stale)"""
        self._run_epoch += 1
        self._current = None
        self._error = None
        if self._status != EvaluationStatus.EVALUATING:
            self._status = EvaluationStatus.IDLE
        self._emit("evaluation_cleared")

    def reset(self) -> None:
        """Back to the initial state; an in-flight result will be discarded"""
        self._generation += 1
        self._custom_prompt = ""
        self._use_smart_default = True
        self._status = EvaluationStatus.IDLE
        self._current = None
        self._error = None
        self._emit("evaluation_reset")

    async def evaluate(self, judge_model_id: str | None = None) -> EvaluationSnapshot | None:
        """
        Score the completed outputs with the judge model

        The target version is the ledger's latest entry when the
        evaluation starts; the result attaches to that entry even if
        newer versions were pushed meanwhile. When a new run cleared the
        evaluation while the judge was working, the result is only
        attached to that entry and does not become the current
        evaluation. A failure keeps the previous evaluation and never
        touches the ledger.

        Returns:
            The new EvaluationSnapshot, or None if nothing was evaluated,
            the call failed or it was superseded
        """
        outputs = self.judge_outputs()
        if not outputs:
            logger.debug("No completed outputs to evaluate")
            return None

        self._generation += 1
        generation = self._generation
        run_epoch = self._run_epoch
        latest = self._ledger.latest
        target_version_id = latest.id if latest else None
        config = self._configuration_store.configuration
        custom_prompt = self._effective_custom_prompt()
        evaluation_prompt = build_evaluation_prompt(config.intent, custom_prompt)
        judge_id = judge_model_id or self.judge_model_id

        self._status = EvaluationStatus.EVALUATING
        self._error = None
        self._emit("evaluation_started", judge_model_id=judge_id, target_version_id=target_version_id)

        try:
            judge_model = self._registry.require(judge_id)
            judge = LLMJudge(
                self._client_factory(judge_model),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            results = await judge.judge(
                config.content,
                outputs,
                intent=config.intent or None,
                custom_prompt=custom_prompt,
            )
        except Exception as e:
            if generation != self._generation:
                logger.debug("Discarding failure of superseded evaluation: %s", e)
                return None
            if run_epoch != self._run_epoch:
                self._status = EvaluationStatus.IDLE
                logger.info("Evaluation of outputs replaced by a new run failed: %s", e)
                self._emit("evaluation_cleared")
                return None
            self._status = EvaluationStatus.FAILED
            self._error = str(e)
            logger.warning("Evaluation with %s failed: %s", judge_id, e)
            self._emit("evaluation_failed", message=self._error)
            return None

        if generation != self._generation:
            logger.debug("Discarding result of superseded evaluation")
            return None

        snapshot = EvaluationSnapshot(
            evaluation_prompt=evaluation_prompt,
            results=results,
            evaluated_at=self._clock(),
        )
        if run_epoch != self._run_epoch:
            # The outputs were replaced by a new run; only the judged version keeps the scores
            self._status = EvaluationStatus.IDLE
            if target_version_id is not None:
                self._ledger.attach_evaluation(target_version_id, snapshot)
            self._emit("evaluation_attached", target_version_id=target_version_id)
            return snapshot

        self._current = snapshot
        self._status = EvaluationStatus.COMPLETE
        if target_version_id is not None:
            self._ledger.attach_evaluation(target_version_id, snapshot)
        self._emit("evaluation_completed", target_version_id=target_version_id)
        return snapshot
