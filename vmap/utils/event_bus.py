# vmap/utils/event_bus.py
from __future__ import annotations
from typing import Any, Callable, DefaultDict, Dict, List
from collections import defaultdict


class EventBus:
    """
    Ultra-light pub/sub bus:
        off = bus.on("changed", lambda payload: ...)
        bus.emit("changed", fields=("center",))
        off()  # unsubscribe

    One bus per MapStore; there is no shared module-level instance because
    several map panels may live in the same process.
    """
    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Callable[[Dict[str, Any]], None]]] = defaultdict(list)

    def on(self, event: str, handler: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        self._subs[event].append(handler)
        def off() -> None:
            try:
                self._subs[event].remove(handler)
            except ValueError:
                pass
        return off

    def emit(self, event: str, **payload: Any) -> None:
        for h in list(self._subs.get(event, ())):
            h(payload)

    def handler_count(self, event: str) -> int:
        return len(self._subs.get(event, ()))
