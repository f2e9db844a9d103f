"""
Version History Ledger

Append-only history of configuration snapshots with a read-only preview
("time travel") mode. The view index is -1 while the live configuration
is shown, otherwise the index of the previewed entry.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import replace
from typing import Callable

from prompt_studio_core.domain.entities import EvaluationSnapshot, Snapshot, VersionEntry
from prompt_studio_core.stores.configuration_store import PromptConfigurationStore
from prompt_studio_core.stores.execution_tracker import ExecutionRunTracker
from prompt_studio_core.stores.observable import Observable

logger = logging.getLogger(__name__)

LIVE_VIEW = -1

VERSION_SOURCES = ("user", "assistant")


def new_version_id(timestamp: float) -> str:
    return f"version-{int(timestamp * 1000)}-{uuid.uuid4().hex[:7]}"


class VersionHistoryLedger(Observable):
    """Snapshots of the configuration and its settled runs, oldest first"""

    def __init__(
        self,
        configuration_store: PromptConfigurationStore,
        tracker: ExecutionRunTracker,
        evaluation_source: Callable[[], EvaluationSnapshot | None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._configuration_store = configuration_store
        self._tracker = tracker
        self._evaluation_source = evaluation_source
        self._clock = clock
        self._entries: list[VersionEntry] = []
        self._view_index = LIVE_VIEW

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[VersionEntry, ...]:
        return tuple(self._entries)

    @property
    def view_index(self) -> int:
        return self._view_index

    @property
    def is_viewing_history(self) -> bool:
        return self._view_index != LIVE_VIEW

    @property
    def latest(self) -> VersionEntry | None:
        return self._entries[-1] if self._entries else None

    def set_evaluation_source(self, evaluation_source: Callable[[], EvaluationSnapshot | None]) -> None:
        self._evaluation_source = evaluation_source

    def get(self, version_id: str) -> VersionEntry | None:
        for entry in self._entries:
            if entry.id == version_id:
                return entry
        return None

    def index_of(self, version_id: str) -> int | None:
        for i, entry in enumerate(self._entries):
            if entry.id == version_id:
                return i
        return None

    def capture_snapshot(self) -> Snapshot:
        """Snapshot the live configuration, its settled runs and the current evaluation"""
        config = self._configuration_store.configuration
        evaluation = self._evaluation_source() if self._evaluation_source else None
        return Snapshot(
            content=config.content,
            intent=config.intent,
            examples=tuple(config.examples),
            guardrails=config.guardrails,
            selected_model_ids=tuple(config.selected_model_ids),
            completed_runs=self._tracker.settled_runs(config.selected_model_ids),
            evaluation=evaluation,
        )

    def push_version(
        self,
        source: str = "user",
        label: str | None = None,
        changed_part: str | None = None,
    ) -> VersionEntry:
        """Append a snapshot of the current state and return the view to live"""
        if source not in VERSION_SOURCES:
            raise ValueError(f"Unknown version source: {source}")
        timestamp = self._clock()
        entry = VersionEntry(
            id=new_version_id(timestamp),
            snapshot=self.capture_snapshot(),
            timestamp=timestamp,
            source=source,
            label=label,
            changed_part=changed_part,
        )
        self._entries.append(entry)
        self._view_index = LIVE_VIEW
        logger.debug("Pushed version %s (%s, %s)", entry.id, source, label)
        self._emit("version_pushed", version_id=entry.id, index=len(self._entries) - 1)
        return entry

    def view_version(self, index: int) -> int:
        """
        Preview an entry read-only

        Out-of-range indexes fall back to the live view. The live
        configuration is never touched.

        Returns:
            The resulting view index
        """
        if 0 <= index < len(self._entries):
            self._view_index = index
        else:
            self._view_index = LIVE_VIEW
        self._emit("view_changed", index=self._view_index)
        return self._view_index

    def restore_version(self, index: int) -> VersionEntry | None:
        """Copy an entry's prompt parts into the live configuration; None if index is invalid"""
        if not 0 <= index < len(self._entries):
            return None
        entry = self._entries[index]
        self._configuration_store.apply_snapshot(entry.snapshot)
        self._view_index = LIVE_VIEW
        self._emit("version_restored", version_id=entry.id, index=index)
        return entry

    def preview_snapshot(self) -> Snapshot | None:
        """Snapshot of the previewed entry, or None while viewing live"""
        if not self.is_viewing_history:
            return None
        return self._entries[self._view_index].snapshot

    def attach_evaluation(self, version_id: str, evaluation: EvaluationSnapshot) -> bool:
        """
        Set the evaluation of an existing entry

        This is the only amendment made to a pushed entry; nothing but
        the evaluation changes. Returns False if the entry no longer exists.
        """
        index = self.index_of(version_id)
        if index is None:
            logger.debug("Version %s not found; evaluation not attached", version_id)
            return False
        entry = self._entries[index]
        self._entries[index] = replace(entry, snapshot=replace(entry.snapshot, evaluation=evaluation))
        self._emit("evaluation_attached", version_id=version_id, index=index)
        return True

    def clear(self) -> None:
        self._entries = []
        self._view_index = LIVE_VIEW
        self._emit("history_cleared")
