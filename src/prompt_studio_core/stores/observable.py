"""
Change notifications shared by the stores
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List


@dataclass(frozen=True)
class StoreEvent:
    """Lightweight payload emitted after every store mutation."""

    type: str
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[StoreEvent], None]


class Observable:
    """Mixin giving a store subscribe/unsubscribe and event emission"""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event_type: str, **payload: Any) -> None:
        event = StoreEvent(type=event_type, payload=payload)
        for listener in list(self._listeners):
            listener(event)
