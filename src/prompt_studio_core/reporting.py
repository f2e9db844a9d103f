"""
Reporting

Flattens the version history into a pandas DataFrame with one row per
(version, model) for printing and CSV export.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from prompt_studio_core.domain.entities import CompletedRun, FailedRun
from prompt_studio_core.model_registry import ModelRegistry
from prompt_studio_core.stores.version_history import VersionHistoryLedger

HISTORY_COLUMNS = [
    "version_index",
    "version_id",
    "timestamp",
    "source",
    "label",
    "changed_part",
    "model_id",
    "model_name",
    "provider",
    "status",
    "latency_ms",
    "output_tokens",
    "output_chars",
    "error_kind",
    "score",
]


def history_frame(ledger: VersionHistoryLedger, registry: ModelRegistry) -> pd.DataFrame:
    """
    Build the history table

    Versions recorded before any run settled contribute no rows.
    """
    rows = []
    for index, entry in enumerate(ledger.entries):
        evaluation = entry.snapshot.evaluation
        for run in entry.snapshot.completed_runs:
            model = registry.get(run.model_id)
            result = evaluation.result_for(run.model_id) if evaluation else None
            row = {
                "version_index": index,
                "version_id": entry.id,
                "timestamp": datetime.fromtimestamp(entry.timestamp, tz=timezone.utc).isoformat(),
                "source": entry.source,
                "label": entry.label,
                "changed_part": entry.changed_part,
                "model_id": run.model_id,
                "model_name": model.display_name if model else run.model_id,
                "provider": model.provider if model else "unknown",
                "status": run.status.value,
                "latency_ms": None,
                "output_tokens": None,
                "output_chars": None,
                "error_kind": None,
                "score": result.score if result else None,
            }
            if isinstance(run, CompletedRun):
                row["latency_ms"] = run.latency_ms
                row["output_tokens"] = run.usage.output_tokens if run.usage else None
                row["output_chars"] = len(run.output)
            elif isinstance(run, FailedRun):
                row["error_kind"] = run.error_kind.value
            rows.append(row)
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def save_history_csv(df: pd.DataFrame, path: str | Path) -> Path:
    """Save the history table to CSV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
