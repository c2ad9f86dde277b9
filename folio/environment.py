"""
Environment — the capabilities a highlight coordinator consumes
===============================================================
The coordinator never touches a document, a clock or a viewport directly.
Everything it needs is reached through an Environment:

  * fragment discovery and presentation mutation (query/set_active)
  * a viewport-intersection tracker (may be unsupported → None)
  * a Scheduler for deferred activations
  * optional debug controls and a print-media notification

Two schedulers ship here: AsyncioScheduler runs on the current event loop,
VirtualScheduler is a deterministic fake clock advanced by hand. The
ManualVisibilityTracker delivers intersection notifications on request and
backs both the simulator and the tests.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .models import RootMargin, parse_root_margin

logger = logging.getLogger("folio.environment")


@dataclass
class VisibilityEntry:
    """One intersection notification, shaped like IntersectionObserverEntry."""
    target: Any
    is_intersecting: bool
    ratio: float = 1.0


VisibilityCallback = Callable[[list[VisibilityEntry]], None]
Unsubscribe = Callable[[], None]


# ─────────────────────────────────────────────────────────────────────────────
# Scheduling
# ─────────────────────────────────────────────────────────────────────────────

class ScheduledHandle(ABC):
    """A deferred callback that can be cancelled before it fires."""

    @abstractmethod
    def cancel(self) -> None: ...

    @property
    @abstractmethod
    def cancelled(self) -> bool: ...


class Scheduler(ABC):
    @abstractmethod
    def now_ms(self) -> float: ...

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledHandle: ...


class _LoopHandle(ScheduledHandle):
    __slots__ = ("_handle",)

    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Schedules on an asyncio event loop via loop.call_later().

    The loop is resolved lazily, so the scheduler can be built outside a
    running loop and used from inside one.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self._get_loop().time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledHandle:
        return _LoopHandle(self._get_loop().call_later(delay_ms / 1000.0, callback))


class _VirtualHandle(ScheduledHandle):
    __slots__ = ("due_ms", "callback", "_cancelled", "fired")

    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self._cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class VirtualScheduler(Scheduler):
    """
    Deterministic fake clock.

    Time only moves inside advance()/run_until_idle(). Callbacks run in
    (due time, scheduling order) order; a callback scheduled while the clock
    is advancing runs in the same advance() if it falls due within it.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, _VirtualHandle]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledHandle:
        if delay_ms < 0:
            delay_ms = 0
        handle = _VirtualHandle(self._now + delay_ms, callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, ms: float) -> int:
        """Move the clock forward by `ms`, running everything that falls due. Returns callbacks run."""
        if ms < 0:
            raise ValueError(f"cannot move the clock backwards (ms={ms})")
        target = self._now + ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._now = due
            if handle.cancelled:
                continue
            handle.fired = True
            ran += 1
            try:
                handle.callback()
            except Exception:
                # Same contract as an event loop: a failing callback is
                # reported and the clock keeps going.
                logger.exception("Scheduled callback %r failed", handle.callback)
        self._now = target
        return ran

    def run_until_idle(self) -> int:
        ran = 0
        while self._queue:
            ran += self.advance(max(0.0, self._queue[0][0] - self._now))
        return ran


# ─────────────────────────────────────────────────────────────────────────────
# Visibility tracking
# ─────────────────────────────────────────────────────────────────────────────

class VisibilityTracker(ABC):
    """Per-element subscribe/unsubscribe over a viewport-intersection source."""

    @abstractmethod
    def observe(self, element: Any) -> None: ...

    @abstractmethod
    def unobserve(self, element: Any) -> None: ...

    @abstractmethod
    def disconnect(self) -> None: ...

    @abstractmethod
    def is_observed(self, element: Any) -> bool: ...


class ManualVisibilityTracker(VisibilityTracker):
    """
    Tracker whose notifications are driven by the caller.

    enter()/leave() deliver a single entry; deliver() hands over an arbitrary
    batch so callers can reproduce simultaneous or out-of-order notifications.
    Entries for elements that are not observed are dropped, like a real
    IntersectionObserver after unobserve().
    """

    def __init__(self, callback: VisibilityCallback, threshold: float = 0.0,
                 root_margin: str = "0px") -> None:
        self._callback = callback
        self.threshold = threshold
        self.margin: RootMargin = parse_root_margin(root_margin)
        self._observed: dict[int, Any] = {}
        self.connected = True

    def observe(self, element: Any) -> None:
        self._observed[id(element)] = element

    def unobserve(self, element: Any) -> None:
        self._observed.pop(id(element), None)

    def disconnect(self) -> None:
        self._observed.clear()
        self.connected = False

    def is_observed(self, element: Any) -> bool:
        return id(element) in self._observed

    @property
    def observed_count(self) -> int:
        return len(self._observed)

    def _crosses(self, ratio: float) -> bool:
        if self.threshold <= 0:
            return ratio > 0
        return ratio >= self.threshold

    def deliver(self, entries: list[VisibilityEntry]) -> int:
        live = [e for e in entries if self.is_observed(e.target)]
        if live:
            self._callback(live)
        return len(live)

    def enter(self, element: Any, ratio: float = 1.0) -> bool:
        """Report `element` as visible at `ratio`. Returns True if a notification was delivered."""
        if not self._crosses(ratio):
            return False
        return self.deliver([VisibilityEntry(element, True, ratio)]) > 0

    def leave(self, element: Any) -> bool:
        return self.deliver([VisibilityEntry(element, False, 0.0)]) > 0


TrackerFactory = Callable[[VisibilityCallback, float, str], Optional[VisibilityTracker]]


# ─────────────────────────────────────────────────────────────────────────────
# Environment
# ─────────────────────────────────────────────────────────────────────────────

class Environment(ABC):
    """
    Everything the coordinator needs from its host.

    Only the abstract methods are mandatory; debug controls, print media and
    initial-viewport queries default to "not available".
    """

    scheduler: Scheduler

    @abstractmethod
    def query_fragments(self, selector: str) -> list[Any]:
        """All elements matching `selector`, in document order."""

    @abstractmethod
    def containing_block(self, element: Any, block_tags: tuple[str, ...]) -> Optional[Any]:
        """Nearest ancestor whose tag is in `block_tags`, or None."""

    @abstractmethod
    def is_marked_active(self, element: Any, active_class: str) -> bool: ...

    @abstractmethod
    def set_active(self, element: Any, active_class: str, active: bool) -> None: ...

    @abstractmethod
    def create_visibility_tracker(self, callback: VisibilityCallback, threshold: float,
                                  root_margin: str) -> Optional[VisibilityTracker]:
        """Return a tracker, or None when the host cannot report visibility."""

    def text_of(self, element: Any) -> str:
        return ""

    def describe_block(self, block: Any) -> str:
        return repr(block)

    def in_viewport(self, element: Any) -> bool:
        return False

    def find_control(self, control_id: str) -> Optional[Any]:
        return None

    def on_click(self, control: Any, callback: Callable[[], None]) -> Unsubscribe:
        raise NotImplementedError("this environment has no clickable controls")

    def on_print_change(self, callback: Callable[[bool], None]) -> Optional[Unsubscribe]:
        """Subscribe to print-media changes; None when the host has no print media."""
        return None
