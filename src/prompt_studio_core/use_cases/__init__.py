"""
Use Cases Layer

Aggregates business logic and provides use cases called from the workspace.
"""

from prompt_studio_core.use_cases.evaluation import (
    EvaluationCoordinator,
    EvaluationStatus,
)
from prompt_studio_core.use_cases.execution import (
    ExecutionOrchestrator,
    error_kind_for,
)

__all__ = [
    # evaluation
    "EvaluationCoordinator",
    "EvaluationStatus",
    # execution
    "ExecutionOrchestrator",
    "error_kind_for",
]
