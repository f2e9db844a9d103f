"""
Scoring sub-package

Provides the evaluation prompt builders and LLM Judge scoring logic.
"""

from prompt_studio_core.domain.entities import EvaluationResult
from prompt_studio_core.scoring.llm_judge import (
    JudgeOutput,
    LLMJudge,
    build_evaluation_prompt,
    build_judge_prompt,
    build_smart_default_prompt,
    parse_evaluation_response,
)

__all__ = [
    # entities (re-exported from domain)
    "EvaluationResult",
    # llm judge
    "JudgeOutput",
    "LLMJudge",
    "build_evaluation_prompt",
    "build_judge_prompt",
    "build_smart_default_prompt",
    "parse_evaluation_response",
]
