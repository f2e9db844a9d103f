"""
prompt_builder のテスト

セクションの順序、見出しの有無、例の扱いをテストする。
"""

from prompt_studio_core.domain.entities import Example, PromptConfiguration
from prompt_studio_core.domain.value_objects import Polarity
from prompt_studio_core.prompt_builder import build_examples_section, build_prompt, build_prompt_for


class TestBuildPrompt:
    """build_prompt() のテスト"""

    def test_content_only_is_sent_as_is(self):
        """追加セクションがない場合は見出しなしで本文のみ"""
        built = build_prompt("  Summarize the text.  \n")
        assert built.full_prompt == "Summarize the text."
        assert built.has_extras is False

    def test_blank_extras_are_ignored(self):
        built = build_prompt("Do it", intent="   ", guardrails="\n", examples=(Example("e", "  "),))
        assert built.full_prompt == "Do it"
        assert built.has_extras is False

    def test_full_section_order(self):
        built = build_prompt(
            "Write a haiku.",
            intent="Delight the reader",
            examples=(
                Example("1", "Good one", Polarity.POSITIVE),
                Example("2", "Bad one", Polarity.NEGATIVE),
            ),
            guardrails="No rhymes",
        )
        expected = (
            "## Intent\nDelight the reader"
            "\n\n"
            "## Examples\n"
            "### Good outputs (aim for these):\n"
            "Example 1:\n```\nGood one\n```\n"
            "### Bad outputs (avoid these):\n"
            "Example 1:\n```\nBad one\n```"
            "\n\n"
            "## Guardrails\nNo rhymes"
            "\n\n"
            "## Prompt\nWrite a haiku."
        )
        assert built.full_prompt == expected
        assert built.has_extras is True

    def test_intent_only_adds_prompt_header(self):
        built = build_prompt("Body", intent="Goal")
        assert built.full_prompt == "## Intent\nGoal\n\n## Prompt\nBody"

    def test_guardrails_only(self):
        built = build_prompt("Body", guardrails="Rule")
        assert built.full_prompt == "## Guardrails\nRule\n\n## Prompt\nBody"

    def test_empty_content_with_extras(self):
        built = build_prompt("   ", intent="Goal")
        assert built.full_prompt == "## Intent\nGoal"
        assert built.has_extras is True

    def test_build_prompt_for_configuration(self):
        config = PromptConfiguration(content="Body", intent="Goal")
        assert build_prompt_for(config) == build_prompt("Body", intent="Goal")


class TestBuildExamplesSection:
    """build_examples_section() のテスト"""

    def test_positive_before_negative_and_numbering_per_group(self):
        examples = (
            Example("1", "neg-1", Polarity.NEGATIVE),
            Example("2", "pos-1", Polarity.POSITIVE),
            Example("3", "neg-2", Polarity.NEGATIVE),
            Example("4", "pos-2", Polarity.POSITIVE),
        )
        section = build_examples_section(examples)
        lines = section.split("\n")
        assert lines[0] == "## Examples"
        assert lines[1] == "### Good outputs (aim for these):"
        assert section.index("pos-1") < section.index("pos-2") < section.index("neg-1") < section.index("neg-2")
        assert section.count("Example 1:") == 2
        assert section.count("Example 2:") == 2

    def test_empty_examples_are_skipped(self):
        section = build_examples_section((Example("1", ""), Example("2", "kept")))
        assert "Example 2:" not in section
        assert "kept" in section

    def test_only_negative(self):
        section = build_examples_section((Example("1", "bad", Polarity.NEGATIVE),))
        assert "Good outputs" not in section
        assert "### Bad outputs (avoid these):" in section

    def test_no_content_returns_empty_string(self):
        assert build_examples_section(()) == ""
        assert build_examples_section((Example("1", "  "),)) == ""

    def test_example_content_is_trimmed(self):
        section = build_examples_section((Example("1", "\n  text  \n"),))
        assert "```\ntext\n```" in section
