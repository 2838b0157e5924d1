# signal_scoring/infrastructure/events/event_dispatcher.py
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List

from ...application.ports.event_bus_port import EventBusPort

logger = logging.getLogger("event_dispatcher")


class EventDispatcher(EventBusPort):
    """In-process pub/sub. A failing subscriber is logged and skipped."""

    def __init__(self):
        self._subs: Dict[str, List[Callable[[str, Dict[str, Any]], Any]]] = {}

    def subscribe(self, topic: str, cb: Callable[[str, Dict[str, Any]], Any]) -> None:
        self._subs.setdefault(topic, []).append(cb)

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        for cb in self._subs.get(topic, []):
            try:
                cb(topic, payload)
            except Exception:
                logger.exception("subscriber failed for topic %s", topic)
