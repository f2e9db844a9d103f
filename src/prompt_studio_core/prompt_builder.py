"""
Prompt Builder

Combines the prompt parts into the text sent to every model.

Section order:
- Intent (if provided): what the prompt should accomplish
- Examples (if provided): good outputs first, then bad outputs
- Guardrails (if provided): rules the model must follow
- Prompt: the main content

Headers are used only when at least one optional section is present;
otherwise the trimmed content is sent as-is.
"""

from dataclasses import dataclass
from typing import Sequence

from prompt_studio_core.domain.entities import Example, PromptConfiguration
from prompt_studio_core.domain.value_objects import Polarity


@dataclass(frozen=True)
class BuiltPrompt:
    """Composed prompt text"""
    full_prompt: str
    has_extras: bool  # whether any optional section was added


def _fenced(index: int, content: str) -> str:
    return f"Example {index}:\n```\n{content.strip()}\n```"


def build_examples_section(examples: Sequence[Example]) -> str:
    """
    Build the examples section

    Examples with blank content are skipped. Numbering restarts for
    each polarity group.

    Returns:
        Examples section string (empty string when no example has content)
    """
    filled = [ex for ex in examples if ex.content.strip()]
    if not filled:
        return ""

    positive = [ex for ex in filled if ex.polarity == Polarity.POSITIVE]
    negative = [ex for ex in filled if ex.polarity == Polarity.NEGATIVE]

    parts = ["## Examples"]
    if positive:
        parts.append("### Good outputs (aim for these):")
        parts.extend(_fenced(i, ex.content) for i, ex in enumerate(positive, start=1))
    if negative:
        parts.append("### Bad outputs (avoid these):")
        parts.extend(_fenced(i, ex.content) for i, ex in enumerate(negative, start=1))
    return "\n".join(parts)


def build_prompt(
    content: str,
    intent: str = "",
    examples: Sequence[Example] = (),
    guardrails: str = "",
) -> BuiltPrompt:
    """
    Build the prompt sent to the models

    Args:
        content: Main prompt content
        intent: High-level goal
        examples: Example outputs (insertion order is kept within each group)
        guardrails: Constraints

    Returns:
        BuiltPrompt (sections joined by blank lines)
    """
    sections: list[str] = []

    if intent and intent.strip():
        sections.append(f"## Intent\n{intent.strip()}")

    examples_section = build_examples_section(examples)
    if examples_section:
        sections.append(examples_section)

    if guardrails and guardrails.strip():
        sections.append(f"## Guardrails\n{guardrails.strip()}")

    has_extras = bool(sections)

    if content.strip():
        if has_extras:
            sections.append(f"## Prompt\n{content.strip()}")
        else:
            sections.append(content.strip())

    return BuiltPrompt(full_prompt="\n\n".join(sections), has_extras=has_extras)


def build_prompt_for(config: PromptConfiguration) -> BuiltPrompt:
    """Build the prompt from a live configuration"""
    return build_prompt(
        config.content,
        intent=config.intent,
        examples=config.examples,
        guardrails=config.guardrails,
    )
