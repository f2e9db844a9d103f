"""
Prompt Configuration Store

Single source of truth for the editable prompt configuration. Each
mutation is a pure transition function ``(config, args) -> config``;
the store applies it, emits a change event and centralizes the side
effects (swapping documents clears all runs).
"""

from __future__ import annotations

import time
import uuid
from dataclasses import replace
from typing import Callable, Iterable, Sequence

from prompt_studio_core.domain.entities import Example, PromptConfiguration, Snapshot
from prompt_studio_core.domain.value_objects import Polarity, RunParameters
from prompt_studio_core.stores.execution_tracker import ExecutionRunTracker
from prompt_studio_core.stores.observable import Observable


def new_example_id() -> str:
    return f"example-{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}"


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------

def with_name(config: PromptConfiguration, name: str) -> PromptConfiguration:
    return replace(config, name=name)


def with_content(config: PromptConfiguration, content: str) -> PromptConfiguration:
    return replace(config, content=content)


def with_intent(config: PromptConfiguration, intent: str) -> PromptConfiguration:
    return replace(config, intent=intent)


def with_guardrails(config: PromptConfiguration, guardrails: str) -> PromptConfiguration:
    return replace(config, guardrails=guardrails)


def with_added_example(
    config: PromptConfiguration,
    example_id: str,
    polarity: Polarity = Polarity.POSITIVE,
    content: str = "",
) -> PromptConfiguration:
    example = Example(id=example_id, content=content, polarity=Polarity(polarity))
    return replace(config, examples=config.examples + (example,))


def with_updated_example(config: PromptConfiguration, example_id: str, content: str) -> PromptConfiguration:
    return replace(config, examples=tuple(
        replace(ex, content=content) if ex.id == example_id else ex
        for ex in config.examples
    ))


def without_example(config: PromptConfiguration, example_id: str) -> PromptConfiguration:
    return replace(config, examples=tuple(ex for ex in config.examples if ex.id != example_id))


def with_toggled_polarity(config: PromptConfiguration, example_id: str) -> PromptConfiguration:
    def flip(ex: Example) -> Example:
        if ex.id != example_id:
            return ex
        polarity = Polarity.NEGATIVE if ex.polarity == Polarity.POSITIVE else Polarity.POSITIVE
        return replace(ex, polarity=polarity)

    return replace(config, examples=tuple(flip(ex) for ex in config.examples))


def with_examples(config: PromptConfiguration, examples: Iterable[Example]) -> PromptConfiguration:
    return replace(config, examples=tuple(examples))


def with_selected_models(config: PromptConfiguration, model_ids: Iterable[str]) -> PromptConfiguration:
    # dict.fromkeys keeps the first occurrence of each id, in order
    return replace(config, selected_model_ids=tuple(dict.fromkeys(model_ids)))


def with_toggled_model(config: PromptConfiguration, model_id: str) -> PromptConfiguration:
    if model_id in config.selected_model_ids:
        selected = tuple(m for m in config.selected_model_ids if m != model_id)
    else:
        selected = config.selected_model_ids + (model_id,)
    return replace(config, selected_model_ids=selected)


def with_parameters(config: PromptConfiguration, **changes) -> PromptConfiguration:
    """Merge changes (temperature, max_tokens, thinking, system_prompt) into the parameters"""
    return replace(config, parameters=replace(config.parameters, **changes))


def with_snapshot_parts(config: PromptConfiguration, snapshot: Snapshot) -> PromptConfiguration:
    """Copy content, intent, examples and guardrails from a snapshot"""
    return replace(
        config,
        content=snapshot.content,
        intent=snapshot.intent,
        examples=tuple(snapshot.examples),
        guardrails=snapshot.guardrails,
    )


def can_execute(config: PromptConfiguration, is_executing: bool) -> bool:
    return bool(config.content.strip()) and bool(config.selected_model_ids) and not is_executing


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class PromptConfigurationStore(Observable):
    """Holds the live PromptConfiguration and applies named mutations to it"""

    def __init__(
        self,
        tracker: ExecutionRunTracker,
        configuration: PromptConfiguration | None = None,
        id_factory: Callable[[], str] = new_example_id,
    ) -> None:
        super().__init__()
        self._tracker = tracker
        self._config = configuration or PromptConfiguration()
        self._id_factory = id_factory
        self._document_generation = 0

    @property
    def configuration(self) -> PromptConfiguration:
        return self._config

    @property
    def document_generation(self) -> int:
        """Bumped whenever the whole configuration is replaced"""
        return self._document_generation

    @property
    def can_execute(self) -> bool:
        """Non-blank content, at least one selected model and nothing running"""
        return can_execute(self._config, self._tracker.is_executing)

    def _apply(self, new_config: PromptConfiguration, event_type: str, **payload) -> None:
        self._config = new_config
        self._emit(event_type, **payload)

    def set_configuration(self, configuration: PromptConfiguration) -> None:
        """Replace the whole configuration; all run state is cleared"""
        self._tracker.clear()
        self._document_generation += 1
        self._apply(configuration, "configuration_replaced")

    def update_name(self, name: str) -> None:
        self._apply(with_name(self._config, name), "name_updated")

    def update_content(self, content: str) -> None:
        self._apply(with_content(self._config, content), "content_updated")

    def update_intent(self, intent: str) -> None:
        self._apply(with_intent(self._config, intent), "intent_updated")

    def update_guardrails(self, guardrails: str) -> None:
        self._apply(with_guardrails(self._config, guardrails), "guardrails_updated")

    def add_example(self, polarity: Polarity = Polarity.POSITIVE, content: str = "") -> str:
        """Append an example with a fresh id; returns the id"""
        example_id = self._id_factory()
        self._apply(
            with_added_example(self._config, example_id, polarity, content),
            "example_added",
            example_id=example_id,
        )
        return example_id

    def update_example(self, example_id: str, content: str) -> None:
        self._apply(with_updated_example(self._config, example_id, content), "example_updated", example_id=example_id)

    def remove_example(self, example_id: str) -> None:
        self._apply(without_example(self._config, example_id), "example_removed", example_id=example_id)

    def toggle_example_polarity(self, example_id: str) -> None:
        self._apply(with_toggled_polarity(self._config, example_id), "example_updated", example_id=example_id)

    def set_examples(self, examples: Sequence[Example]) -> None:
        self._apply(with_examples(self._config, examples), "examples_replaced")

    def set_selected_models(self, model_ids: Iterable[str]) -> None:
        self._apply(with_selected_models(self._config, model_ids), "models_selected")

    def toggle_model(self, model_id: str) -> None:
        self._apply(with_toggled_model(self._config, model_id), "models_selected")

    def set_parameters(self, **changes) -> None:
        self._apply(with_parameters(self._config, **changes), "parameters_updated")

    def replace_parameters(self, parameters: RunParameters) -> None:
        self._apply(replace(self._config, parameters=parameters), "parameters_updated")

    def apply_snapshot(self, snapshot: Snapshot) -> None:
        """Write a snapshot's prompt parts back into the live configuration"""
        self._apply(with_snapshot_parts(self._config, snapshot), "snapshot_restored")
