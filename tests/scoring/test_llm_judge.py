"""
LLM Judge のテスト

評価プロンプトの決定性、ジャッジ用プロンプトの構築、JSON のパースをテストする。
"""

import pytest

from prompt_studio_core.domain.errors import EvaluationParseError
from prompt_studio_core.scoring.llm_judge import (
    JUDGE_USER_MESSAGE,
    JudgeOutput,
    LLMJudge,
    build_evaluation_prompt,
    build_judge_prompt,
    build_smart_default_prompt,
    parse_evaluation_response,
)

from fakes import ScriptedClient, make_model


# ---------------------------------------------------------------------------
# build_evaluation_prompt
# ---------------------------------------------------------------------------

class TestBuildEvaluationPrompt:
    """評価プロンプトの決定性"""

    def test_intent_prompt_is_deterministic(self):
        first = build_evaluation_prompt(intent="Be concise")
        second = build_evaluation_prompt(intent="Be concise")
        assert first == second
        assert '"Be concise"' in first
        assert first.startswith("Evaluate how well each output achieves the following intent:")

    def test_no_intent_uses_generic_fallback(self):
        prompt = build_evaluation_prompt()
        assert prompt == build_smart_default_prompt(None)
        assert prompt.startswith("Evaluate how well each output addresses the prompt's apparent goal.")
        assert "- Relevance to the prompt" in prompt

    def test_blank_intent_uses_generic_fallback(self):
        assert build_evaluation_prompt(intent="   ") == build_evaluation_prompt()

    def test_custom_prompt_always_wins(self):
        assert build_evaluation_prompt(intent="X", custom_prompt="Y") == "Y"

    def test_custom_prompt_returned_verbatim(self):
        assert build_evaluation_prompt(custom_prompt="  Score tone  ") == "  Score tone  "

    def test_blank_custom_prompt_falls_back(self):
        assert build_evaluation_prompt(intent="X", custom_prompt="  ") == build_smart_default_prompt("X")


# ---------------------------------------------------------------------------
# build_judge_prompt
# ---------------------------------------------------------------------------

OUTPUTS = [
    JudgeOutput("model-a", "Model A", "openai", "Answer A"),
    JudgeOutput("model-b", "Model B", "anthropic", "Answer B"),
]


class TestBuildJudgePrompt:
    """ジャッジ用システムプロンプト"""

    def test_contains_scale_prompt_and_outputs(self):
        prompt = build_judge_prompt("Summarize", OUTPUTS)
        assert "Score each output from 0 to 100:" in prompt
        assert "- 80-99: Very Good - achieves the goal with minor issues" in prompt
        assert "```\nSummarize\n```" in prompt
        assert "### Output 1: Model A (openai)\nModel ID: model-a\n```\nAnswer A\n```" in prompt
        assert "### Output 2: Model B (anthropic)" in prompt
        assert prompt.index("Output 1") < prompt.index("Output 2")

    def test_no_intent_section(self):
        prompt = build_judge_prompt("p", OUTPUTS)
        assert "## No Explicit Intent" in prompt
        assert "## User's Intent" not in prompt
        assert "## Additional Evaluation Criteria" not in prompt

    def test_intent_and_custom_criteria(self):
        prompt = build_judge_prompt("p", OUTPUTS, intent="Be brief", custom_prompt="Check tone")
        assert '## User\'s Intent\nThe user\'s stated intent for this prompt is:\n"Be brief"' in prompt
        assert "## Additional Evaluation Criteria\nCheck tone" in prompt

    def test_deterministic(self):
        assert build_judge_prompt("p", OUTPUTS, intent="i") == build_judge_prompt("p", OUTPUTS, intent="i")


# ---------------------------------------------------------------------------
# parse_evaluation_response
# ---------------------------------------------------------------------------

class TestParseEvaluationResponse:
    """JSON 抽出とパース"""

    def test_evaluations_object(self):
        raw = '{"evaluations": [{"modelId": "a", "score": 85, "reasoning": "good", "strengths": ["x"], "weaknesses": []}]}'
        results = parse_evaluation_response(raw)
        assert len(results) == 1
        assert results[0].model_id == "a"
        assert results[0].score == 85.0
        assert results[0].reasoning == "good"
        assert results[0].strengths == ("x",)
        assert results[0].weaknesses == ()

    def test_bare_array(self):
        results = parse_evaluation_response('[{"modelId": "a", "score": 10, "reasoning": "r"}]')
        assert results[0].score == 10.0
        assert results[0].strengths is None

    def test_markdown_fence(self):
        raw = 'Here you go:\n```json\n{"evaluations": [{"modelId": "a", "score": 50, "reasoning": "r"}]}\n```\nThanks'
        assert parse_evaluation_response(raw)[0].score == 50.0

    def test_outermost_braces_with_surrounding_text(self):
        raw = 'Sure! {"evaluations": [{"modelId": "a", "score": 70, "reasoning": "nested {braces}"}]} done'
        results = parse_evaluation_response(raw)
        assert results[0].reasoning == "nested {braces}"

    def test_scores_are_clamped(self):
        raw = '[{"modelId": "a", "score": 150, "reasoning": ""}, {"modelId": "b", "score": -3, "reasoning": ""}]'
        results = parse_evaluation_response(raw)
        assert [r.score for r in results] == [100.0, 0.0]

    def test_keeps_response_order(self):
        raw = '[{"modelId": "b", "score": 1}, {"modelId": "a", "score": 2}]'
        assert [r.model_id for r in parse_evaluation_response(raw)] == ["b", "a"]

    def test_invalid_json_raises_with_raw_response(self):
        with pytest.raises(EvaluationParseError) as exc_info:
            parse_evaluation_response("I cannot evaluate this.")
        assert exc_info.value.raw_response == "I cannot evaluate this."

    def test_broken_json_raises(self):
        with pytest.raises(EvaluationParseError):
            parse_evaluation_response('{"evaluations": [{"modelId": "a", "score": }]}')

    def test_missing_evaluations_list_raises(self):
        with pytest.raises(EvaluationParseError, match="Invalid evaluation response"):
            parse_evaluation_response('{"result": "ok"}')

    def test_entry_without_score_raises(self):
        with pytest.raises(EvaluationParseError, match="Invalid evaluation entry"):
            parse_evaluation_response('[{"modelId": "a", "reasoning": "r"}]')

    def test_non_numeric_score_raises(self):
        with pytest.raises(EvaluationParseError):
            parse_evaluation_response('[{"modelId": "a", "score": "high"}]')


# ---------------------------------------------------------------------------
# LLMJudge
# ---------------------------------------------------------------------------

class TestLLMJudge:
    """1 回のジャッジ呼び出し"""

    @pytest.mark.asyncio
    async def test_single_call_with_system_prompt(self):
        client = ScriptedClient(
            make_model("judge", "anthropic"),
            response_text='{"evaluations": [{"modelId": "model-a", "score": 90, "reasoning": "great"}]}',
        )
        judge = LLMJudge(client)

        results = await judge.judge("Summarize", OUTPUTS, intent="Be brief")

        assert client.prompts == [JUDGE_USER_MESSAGE]
        assert client.system_prompts[0] == build_judge_prompt("Summarize", OUTPUTS, intent="Be brief")
        assert results[0].score == 90.0

    @pytest.mark.asyncio
    async def test_parse_failure_propagates(self):
        judge = LLMJudge(ScriptedClient(make_model("judge"), response_text="not json"))
        with pytest.raises(EvaluationParseError):
            await judge.judge("p", OUTPUTS)
