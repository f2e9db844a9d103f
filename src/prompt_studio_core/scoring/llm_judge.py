"""
LLM Judge scoring logic

Builds the evaluation prompt, sends all completed outputs to a judge
model in one call and parses the scores it returns.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from prompt_studio_core.infrastructure.model_clients.base import ModelClient

from prompt_studio_core.domain.constants import (
    EVALUATION_SCALE_MAX,
    EVALUATION_SCALE_MIN,
    JUDGE_MAX_TOKENS,
    JUDGE_TEMPERATURE,
)
from prompt_studio_core.domain.entities import EvaluationResult
from prompt_studio_core.domain.errors import EvaluationParseError

logger = logging.getLogger(__name__)

JUDGE_USER_MESSAGE = "Please evaluate the outputs now."

_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


@dataclass(frozen=True)
class JudgeOutput:
    """One model output handed to the judge"""
    model_id: str
    model_name: str
    provider: str
    output: str


def build_smart_default_prompt(intent: str | None = None) -> str:
    """Evaluation criteria derived from the intent (generic criteria without one)"""
    if intent and intent.strip():
        return (
            "Evaluate how well each output achieves the following intent:\n"
            "\n"
            f'"{intent}"\n'
            "\n"
            "Consider clarity, completeness, accuracy, and alignment with the stated goal."
        )
    return (
        "Evaluate how well each output addresses the prompt's apparent goal.\n"
        "\n"
        "Consider:\n"
        "- Relevance to the prompt\n"
        "- Clarity and coherence\n"
        "- Completeness of response\n"
        "- Accuracy of information (if applicable)"
    )


def build_evaluation_prompt(intent: str | None = None, custom_prompt: str | None = None) -> str:
    """
    Evaluation criteria used for a judge call and for previews

    A non-blank custom prompt is returned verbatim; otherwise the smart
    default is built from the intent. Deterministic for equal inputs.
    """
    if custom_prompt and custom_prompt.strip():
        return custom_prompt
    return build_smart_default_prompt(intent)


def _outputs_section(outputs: Sequence[JudgeOutput]) -> str:
    return "\n\n".join(
        f"### Output {i}: {o.model_name} ({o.provider})\n"
        f"Model ID: {o.model_id}\n"
        f"```\n{o.output}\n```"
        for i, o in enumerate(outputs, start=1)
    )


def build_judge_prompt(
    prompt_content: str,
    outputs: Sequence[JudgeOutput],
    intent: str | None = None,
    custom_prompt: str | None = None,
) -> str:
    """System prompt for the judge: scale, original prompt, criteria, outputs and response format"""
    lo, hi = EVALUATION_SCALE_MIN, EVALUATION_SCALE_MAX

    if intent and intent.strip():
        intent_section = (
            "## User's Intent\n"
            "The user's stated intent for this prompt is:\n"
            f'"{intent}"\n'
            "\n"
            "Evaluate how well each output achieves this intent.\n"
        )
    else:
        intent_section = (
            "## No Explicit Intent\n"
            "The user did not specify an explicit intent. "
            "Evaluate how well each output addresses the prompt's apparent goal.\n"
        )

    criteria_section = ""
    if custom_prompt and custom_prompt.strip():
        criteria_section = f"## Additional Evaluation Criteria\n{custom_prompt}\n"

    parts = [
        "You are an expert prompt evaluator. Your task is to objectively evaluate "
        "LLM outputs against specified criteria.",
        "",
        "## Scoring Scale",
        f"Score each output from {lo} to {hi}:",
        f"- {hi}: Perfect - fully achieves the goal with excellence",
        f"- 80-{hi - 1}: Very Good - achieves the goal with minor issues",
        "- 60-79: Adequate - partially achieves the goal",
        "- 40-59: Below Average - significant issues",
        "- 20-39: Poor - mostly fails to achieve the goal",
        f"- {lo}-19: Failure - does not address the goal at all",
        "",
        "## Original Prompt Being Evaluated",
        "```",
        prompt_content,
        "```",
        "",
        intent_section,
        criteria_section,
        "## Outputs to Evaluate",
        _outputs_section(outputs),
        "",
        "## Your Task",
        "Evaluate each output and provide:",
        f"1. A score from {lo} to {hi}",
        "2. Clear reasoning for the score",
        "3. Key strengths (what works well)",
        "4. Key weaknesses (what could be improved)",
        "",
        "## Response Format",
        "You MUST respond with valid JSON only. No markdown, no explanation outside the JSON.",
        "```json",
        "{",
        '  "evaluations": [',
        "    {",
        '      "modelId": "the-model-id",',
        '      "score": 85,',
        '      "reasoning": "Detailed explanation of why this score was given...",',
        '      "strengths": ["First strength", "Second strength"],',
        '      "weaknesses": ["First weakness"]',
        "    }",
        "  ]",
        "}",
        "```",
        "",
        "Evaluate each output in the order they appear above. Be objective, specific, and constructive.",
    ]
    return "\n".join(parts)


def _extract_json_text(text: str) -> str:
    """
    Best-effort JSON extraction

    1. ```json fenced block
    2. outermost {...} or [...], whichever opens first
    3. the text itself
    """
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1)
    spans = []
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            spans.append((start, end))
    if spans:
        start, end = min(spans)
        return text[start:end + 1]
    return text


def _clamp(value: float) -> float:
    """Clamp score to the evaluation scale"""
    return max(float(EVALUATION_SCALE_MIN), min(float(EVALUATION_SCALE_MAX), value))


def _string_list(value) -> tuple[str, ...] | None:
    if not isinstance(value, list):
        return None
    return tuple(str(v) for v in value)


def parse_evaluation_response(raw: str) -> tuple[EvaluationResult, ...]:
    """
    Parse the judge's response into evaluation results

    Accepts {"evaluations": [...]} or a bare array of score objects.

    Raises:
        EvaluationParseError: When no valid score list can be extracted
    """
    text = raw.strip()
    try:
        data = json.loads(_extract_json_text(text))
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse evaluation response: %s", text[:200])
        raise EvaluationParseError(f"Failed to parse evaluation response: {e}", raw_response=raw) from e

    items = data.get("evaluations") if isinstance(data, dict) else data
    if not isinstance(items, list):
        logger.warning("Evaluation response has no evaluations list: %s", text[:200])
        raise EvaluationParseError("Invalid evaluation response", raw_response=raw)

    results = []
    for item in items:
        if not isinstance(item, dict) or "modelId" not in item or "score" not in item:
            raise EvaluationParseError("Invalid evaluation entry", raw_response=raw)
        try:
            score = _clamp(float(item["score"]))
        except (TypeError, ValueError) as e:
            raise EvaluationParseError(f"Invalid score for {item['modelId']}", raw_response=raw) from e
        results.append(EvaluationResult(
            model_id=str(item["modelId"]),
            score=score,
            reasoning=str(item.get("reasoning") or ""),
            strengths=_string_list(item.get("strengths")),
            weaknesses=_string_list(item.get("weaknesses")),
        ))
    return tuple(results)


class LLMJudge:
    """
    Scores model outputs with a separate judge model

    All outputs go into a single non-streaming call.
    """

    def __init__(
        self,
        judge_client: ModelClient,
        temperature: float = JUDGE_TEMPERATURE,
        max_tokens: int = JUDGE_MAX_TOKENS,
    ) -> None:
        self._client = judge_client
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def judge(
        self,
        prompt_content: str,
        outputs: Sequence[JudgeOutput],
        *,
        intent: str | None = None,
        custom_prompt: str | None = None,
    ) -> tuple[EvaluationResult, ...]:
        """
        Have the judge score every output

        Raises:
            TransportError: When the judge call fails
            EvaluationParseError: When parsing the response fails
        """
        system_prompt = build_judge_prompt(
            prompt_content,
            outputs,
            intent=intent,
            custom_prompt=custom_prompt,
        )
        response = await self._client.generate(
            JUDGE_USER_MESSAGE,
            system_prompt=system_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return parse_evaluation_response(response.output)
