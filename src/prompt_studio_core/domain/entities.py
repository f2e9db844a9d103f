"""
Domain Entities

Defines the primary data structures of a prompt workspace: the editable
configuration, per-model run states, evaluation results and the
immutable version snapshots.

All entities are frozen; state changes produce new instances.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from prompt_studio_core.domain.value_objects import (
    ErrorKind,
    Polarity,
    RunParameters,
    Usage,
)


@dataclass(frozen=True)
class Example:
    """Example output attached to a prompt"""
    id: str
    content: str
    polarity: Polarity = Polarity.POSITIVE


@dataclass(frozen=True)
class PromptConfiguration:
    """The live, editable prompt configuration"""
    name: str = "Untitled Prompt"
    content: str = ""
    intent: str = ""
    examples: tuple[Example, ...] = ()
    guardrails: str = ""
    selected_model_ids: tuple[str, ...] = ()
    parameters: RunParameters = field(default_factory=RunParameters)


class RunStatus(str, Enum):
    """Lifecycle state of one model's run"""
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class IdleRun:
    """No run has been started for the model"""
    model_id: str

    status = RunStatus.IDLE


@dataclass(frozen=True)
class StreamingRun:
    """A run whose output is still arriving"""
    run_id: str
    model_id: str
    started_at: float
    content: str = ""
    thinking: str = ""

    status = RunStatus.STREAMING


@dataclass(frozen=True)
class CompletedRun:
    """A run that finished successfully"""
    run_id: str
    model_id: str
    output: str
    completed_at: float
    thinking: str | None = None
    latency_ms: int | None = None
    usage: Usage | None = None

    status = RunStatus.COMPLETED


@dataclass(frozen=True)
class FailedRun:
    """A run that ended with an error"""
    run_id: str
    model_id: str
    message: str
    completed_at: float
    error_kind: ErrorKind = ErrorKind.UNKNOWN
    provider: str | None = None

    status = RunStatus.FAILED


SettledRun = Union[CompletedRun, FailedRun]
RunState = Union[IdleRun, StreamingRun, CompletedRun, FailedRun]


@dataclass(frozen=True)
class EvaluationResult:
    """Judge verdict for a single model output"""
    model_id: str
    score: float
    reasoning: str
    strengths: tuple[str, ...] | None = None
    weaknesses: tuple[str, ...] | None = None


@dataclass(frozen=True)
class EvaluationSnapshot:
    """Complete result of one judge call"""
    evaluation_prompt: str
    results: tuple[EvaluationResult, ...]
    evaluated_at: float

    def result_for(self, model_id: str) -> EvaluationResult | None:
        for result in self.results:
            if result.model_id == model_id:
                return result
        return None


@dataclass(frozen=True)
class Snapshot:
    """Immutable capture of a configuration and its settled results"""
    content: str
    intent: str
    examples: tuple[Example, ...]
    guardrails: str
    selected_model_ids: tuple[str, ...]
    completed_runs: tuple[SettledRun, ...] = ()
    evaluation: EvaluationSnapshot | None = None

    def runs_by_model(self) -> dict[str, SettledRun]:
        return {run.model_id: run for run in self.completed_runs}


@dataclass(frozen=True)
class VersionEntry:
    """One entry of the version history"""
    id: str
    snapshot: Snapshot
    timestamp: float
    source: str = "user"  # user / assistant
    label: str | None = None
    changed_part: str | None = None  # content / intent / examples / guardrails
