"""
HookRegistry — lightweight event hooks for the highlight lifecycle.
===================================================================
Observers (the timeline renderer, tests, page analytics) subscribe to
coordinator events here instead of reaching into the activation logic.
Callbacks run synchronously inside the coordinator's own callback, so they
should return quickly.

Events fired by ScrollHighlightCoordinator (see EventType):
  FRAGMENT_ACTIVATED — a fragment switched to active
  GROUP_STARTED      — a block's staggered reveal was scheduled
  HIGHLIGHTS_RESET   — reset() returned every fragment to pending
  ALL_TRIGGERED      — activate_all() scheduled every fragment
  FALLBACK_ACTIVATED — no visibility tracking; everything activated at once
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger("folio.hooks")


# ─────────────────────────────────────────────────────────────────────────────
# EventType
# ─────────────────────────────────────────────────────────────────────────────

class EventType(str, Enum):
    """
    Lifecycle events of a ScrollHighlightCoordinator.

    Keyword arguments passed to subscribers:
      FRAGMENT_ACTIVATED — fragment: HighlightFragment, at_ms: float
      GROUP_STARTED      — block_label: str, size: int, at_ms: float
      HIGHLIGHTS_RESET   — cancelled: int
      ALL_TRIGGERED      — count: int, stagger_ms: int
      FALLBACK_ACTIVATED — count: int
    """
    FRAGMENT_ACTIVATED = "fragment_activated"
    GROUP_STARTED      = "group_started"
    HIGHLIGHTS_RESET   = "highlights_reset"
    ALL_TRIGGERED      = "all_triggered"
    FALLBACK_ACTIVATED = "fallback_activated"


Subscriber = Callable[..., None]


# ─────────────────────────────────────────────────────────────────────────────
# HookRegistry
# ─────────────────────────────────────────────────────────────────────────────

class HookRegistry:
    """
    Subscribers per EventType, called in subscription order.

    Event names may be given as EventType members or their string values;
    names outside EventType raise ValueError.

    Usage:
        registry = HookRegistry()
        unsubscribe = registry.add(EventType.GROUP_STARTED, lambda size, **_: print(size))
        registry.fire(EventType.GROUP_STARTED, block_label="p#intro", size=3, at_ms=0.0)
        unsubscribe()

    A subscriber that raises is logged and skipped; the rest still run and the
    coordinator carries on revealing fragments.
    """

    def __init__(self) -> None:
        self._subscribers: dict[EventType, list[Subscriber]] = {}

    def add(self, event: str | EventType, callback: Subscriber) -> Callable[[], bool]:
        """Subscribe `callback` to `event`. Returns a function that undoes it."""
        event = EventType(event)
        self._subscribers.setdefault(event, []).append(callback)
        return lambda: self.remove(event, callback)

    def remove(self, event: str | EventType, callback: Subscriber) -> bool:
        """Drop one subscription. False when `callback` was not subscribed."""
        subscribers = self._subscribers.get(EventType(event))
        if not subscribers or callback not in subscribers:
            return False
        subscribers.remove(callback)
        return True

    def fire(self, event: str | EventType, **payload) -> None:
        event = EventType(event)
        for callback in tuple(self._subscribers.get(event, ())):
            try:
                callback(**payload)
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s subscriber %r failed: %s", event.value, callback, exc)

    def clear(self, event: Optional[str | EventType] = None) -> None:
        """Forget the subscribers of `event`, or of every event."""
        if event is None:
            self._subscribers = {}
            return
        self._subscribers.pop(EventType(event), None)

    def registered_events(self) -> list[str]:
        """Event names that currently have a subscriber."""
        return [event.value for event, subs in self._subscribers.items() if subs]

    def __len__(self) -> int:
        return sum(map(len, self._subscribers.values()))
