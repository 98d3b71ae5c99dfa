from __future__ import annotations

"""
Synchronous in-process event bus for module lifecycle notifications.

Delivery happens inline on the publishing thread. Subscribers are called in
ascending priority; equal priorities keep subscription order. A failing
subscriber never stops delivery to the others: the failure is logged and
re-published once as `error.raised`.
"""

import itertools
import logging
import threading
from collections import Counter, deque
from typing import Any, Callable, Deque, Dict, List, NamedTuple

from mediamodules.core.events.models import BaseEvent, EventSeverity, SourceSubsystem


logger = logging.getLogger("mediamodules.events")

Handler = Callable[[BaseEvent], None]

ERROR_EVENT = "error.raised"


class Subscription(NamedTuple):
    pattern: str
    priority: int
    seq: int
    handler: Handler

    def matches(self, event_type: str) -> bool:
        """
        Patterns: "*" (everything), "<prefix>.*" (one area) or an exact type.
        """
        if self.pattern == "*":
            return True
        if self.pattern.endswith(".*"):
            return event_type.startswith(self.pattern[:-1])
        return self.pattern == event_type


class EventBus:
    def __init__(self, *, keep_recent: int = 200, enabled: bool = True):
        self._enabled = bool(enabled)
        self._lock = threading.Lock()
        self._seq = itertools.count()
        self._subs: List[Subscription] = []
        self._published = Counter()
        self._handler_errors = 0
        self._recent: Deque[BaseEvent] = deque(maxlen=max(10, int(keep_recent)))

    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def subscribe(self, event_type: str, handler: Handler, priority: int = 50) -> None:
        if not callable(handler):
            raise ValueError("handler must be callable")
        sub = Subscription(pattern=str(event_type), priority=int(priority), seq=next(self._seq), handler=handler)
        with self._lock:
            self._subs = sorted(self._subs + [sub], key=lambda s: (s.priority, s.seq))

    def unsubscribe(self, handler: Handler) -> int:
        """Drop every subscription of `handler`; returns how many were removed."""
        with self._lock:
            before = len(self._subs)
            self._subs = [s for s in self._subs if s.handler != handler]
            return before - len(self._subs)

    def publish(self, ev: BaseEvent) -> bool:
        """
        Deliver `ev` to matching subscribers. Returns False when the bus is
        disabled (the event is dropped).
        """
        if not self._enabled:
            return False
        with self._lock:
            self._published[ev.event_type] += 1
            self._recent.appendleft(ev)
            targets = [s for s in self._subs if s.matches(ev.event_type)]
        for sub in targets:
            self._deliver(sub, ev)
        return True

    # alias; delivery is always inline
    publish_nowait = publish

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "enabled": self._enabled,
                "published_total": sum(self._published.values()),
                "handler_errors_total": self._handler_errors,
                "subscribers": len(self._subs),
                "per_type_published": dict(self._published),
            }

    def dump_recent(self, n: int = 50) -> List[Dict[str, Any]]:
        """Most recent events first, as plain dicts."""
        with self._lock:
            events = list(itertools.islice(self._recent, max(1, int(n))))
        return [e.model_dump(mode="json") for e in events]

    def _deliver(self, sub: Subscription, ev: BaseEvent) -> None:
        try:
            sub.handler(ev)
        except Exception as e:  # noqa: BLE001
            name = getattr(sub.handler, "__name__", type(sub.handler).__name__)
            with self._lock:
                self._handler_errors += 1
            logger.warning("Subscriber %s failed on %s: %s", name, ev.event_type, e)
            if ev.event_type == ERROR_EVENT:
                return
            self.publish(
                BaseEvent(
                    event_type=ERROR_EVENT,
                    source_subsystem=SourceSubsystem.provider,
                    severity=EventSeverity.ERROR,
                    payload={"handler": name, "event_type": ev.event_type, "error": str(e)[:500]},
                )
            )
