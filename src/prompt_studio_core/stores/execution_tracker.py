"""
Execution Run Tracker

Tracks the lifecycle of each model's streaming run and exposes one
merged, display-ordered view of active and settled runs.

Every run carries a run id. Updates addressed to a run id that is no
longer the active one for the model (a superseded call settling late)
are ignored, so a stale completion can never overwrite a newer run.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import replace
from typing import Callable, Sequence

from prompt_studio_core.domain.entities import (
    CompletedRun,
    FailedRun,
    IdleRun,
    RunState,
    SettledRun,
    StreamingRun,
)
from prompt_studio_core.domain.value_objects import ErrorKind, Usage
from prompt_studio_core.stores.observable import Observable

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    return uuid.uuid4().hex


def order_runs(runs: Sequence[RunState], selected_model_ids: Sequence[str]) -> list[RunState]:
    """
    Order runs by position in selected_model_ids

    Models that are not selected keep their relative order and go last.
    """
    position = {model_id: i for i, model_id in enumerate(selected_model_ids)}
    unknown = len(position)
    return sorted(runs, key=lambda run: position.get(run.model_id, unknown))


class ExecutionRunTracker(Observable):
    """Per-model run state machines: Idle -> Streaming -> Completed | Failed"""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        super().__init__()
        self._clock = clock
        self._active: dict[str, StreamingRun] = {}
        self._settled: dict[str, SettledRun] = {}

    @property
    def is_executing(self) -> bool:
        return bool(self._active)

    @property
    def active_model_ids(self) -> list[str]:
        return list(self._active)

    def run_state(self, model_id: str) -> RunState:
        """Current state of a model's run (IdleRun when nothing was started)"""
        if model_id in self._active:
            return self._active[model_id]
        if model_id in self._settled:
            return self._settled[model_id]
        return IdleRun(model_id)

    def active_run_id(self, model_id: str) -> str | None:
        run = self._active.get(model_id)
        return run.run_id if run else None

    def _is_current(self, model_id: str, run_id: str | None) -> bool:
        run = self._active.get(model_id)
        if run is None:
            return False
        return run_id is None or run.run_id == run_id

    def start_run(self, model_id: str, run_id: str | None = None) -> str:
        """
        Move a model to Streaming with empty buffers

        Any previous settled result for the model is dropped in the same
        step, so the model is never both streaming and settled.

        Returns:
            The run id of the new run
        """
        run_id = run_id or new_run_id()
        self._settled.pop(model_id, None)
        self._active[model_id] = StreamingRun(
            run_id=run_id,
            model_id=model_id,
            started_at=self._clock(),
        )
        logger.debug("Run %s started for %s", run_id, model_id)
        self._emit("run_started", model_id=model_id, run_id=run_id)
        return run_id

    def append_delta(
        self,
        model_id: str,
        content: str = "",
        thinking: str = "",
        run_id: str | None = None,
    ) -> bool:
        """
        Append streamed text to a running model's buffers

        Returns False (and changes nothing) when the model is not
        streaming or run_id names a superseded run.
        """
        if not self._is_current(model_id, run_id):
            logger.debug("Ignoring late delta for %s (run %s)", model_id, run_id)
            return False
        if not content and not thinking:
            return True
        run = self._active[model_id]
        self._active[model_id] = replace(
            run,
            content=run.content + content,
            thinking=run.thinking + thinking,
        )
        self._emit("run_delta", model_id=model_id, run_id=run.run_id)
        return True

    def complete_run(
        self,
        model_id: str,
        output: str,
        thinking: str | None = None,
        latency_ms: int | None = None,
        usage: Usage | None = None,
        run_id: str | None = None,
    ) -> bool:
        """Move a streaming model to Completed; False if the run is not current"""
        if not self._is_current(model_id, run_id):
            logger.debug("Ignoring stale completion for %s (run %s)", model_id, run_id)
            return False
        run = self._active.pop(model_id)
        self._settled[model_id] = CompletedRun(
            run_id=run.run_id,
            model_id=model_id,
            output=output,
            completed_at=self._clock(),
            thinking=thinking or None,
            latency_ms=latency_ms,
            usage=usage,
        )
        logger.debug("Run %s completed for %s", run.run_id, model_id)
        self._emit("run_completed", model_id=model_id, run_id=run.run_id)
        self._emit_if_idle()
        return True

    def fail_run(
        self,
        model_id: str,
        message: str,
        error_kind: ErrorKind = ErrorKind.UNKNOWN,
        provider: str | None = None,
        run_id: str | None = None,
    ) -> bool:
        """Move a streaming model to Failed; False if the run is not current"""
        if not self._is_current(model_id, run_id):
            logger.debug("Ignoring stale failure for %s (run %s)", model_id, run_id)
            return False
        run = self._active.pop(model_id)
        self._settled[model_id] = FailedRun(
            run_id=run.run_id,
            model_id=model_id,
            message=message,
            completed_at=self._clock(),
            error_kind=ErrorKind(error_kind),
            provider=provider,
        )
        logger.warning("Model %s failed (%s): %s", model_id, ErrorKind(error_kind).value, message)
        self._emit("run_failed", model_id=model_id, run_id=run.run_id, error_kind=ErrorKind(error_kind).value)
        self._emit_if_idle()
        return True

    def _emit_if_idle(self) -> None:
        if not self._active:
            self._emit("execution_finished")

    def clear(self) -> None:
        """Drop all active and settled runs"""
        self._active.clear()
        self._settled.clear()
        self._emit("runs_cleared")

    def snapshot_all_runs(self, selected_model_ids: Sequence[str] = ()) -> list[RunState]:
        """Active and settled runs merged, ordered by selected_model_ids (unknown last)"""
        runs: list[RunState] = [*self._active.values(), *self._settled.values()]
        return order_runs(runs, selected_model_ids)

    def settled_runs(self, selected_model_ids: Sequence[str] = ()) -> tuple[SettledRun, ...]:
        """Settled runs only, in display order"""
        return tuple(
            run for run in self.snapshot_all_runs(selected_model_ids)
            if isinstance(run, (CompletedRun, FailedRun))
        )
