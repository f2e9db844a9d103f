"""
Stores Layer

In-memory state holders for one prompt workspace: run tracking, the
live configuration and the version history. Each store notifies
subscribers after every mutation.
"""

from prompt_studio_core.stores.observable import Observable, StoreEvent
from prompt_studio_core.stores.execution_tracker import ExecutionRunTracker, order_runs
from prompt_studio_core.stores.configuration_store import PromptConfigurationStore
from prompt_studio_core.stores.version_history import LIVE_VIEW, VersionHistoryLedger

__all__ = [
    # observable
    "Observable",
    "StoreEvent",
    # execution tracker
    "ExecutionRunTracker",
    "order_runs",
    # configuration store
    "PromptConfigurationStore",
    # version history
    "LIVE_VIEW",
    "VersionHistoryLedger",
]
