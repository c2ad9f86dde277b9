"""
ScrollHighlightCoordinator — staggered, per-block highlight reveal
==================================================================
Activates highlight fragments as they scroll into view. Fragments sharing a
containing block (paragraph, heading, section, div) form one group: the
first fragment of a group to cross the trigger region starts the whole
group, which then activates in document order, `delay × index` apart.

Ordering inside a group comes from delay magnitude alone; later
notifications for the same block are ignored, whatever order they arrive in.
Activation is monotonic until reset(), which cancels every scheduled
activation and bumps a generation counter so that a callback which still
slips through after the reset is dropped.

Usage:
    doc = HtmlDocument(html)
    coord = ScrollHighlightCoordinator(doc, HighlightConfig(delay_between_highlights_ms=400))
    coord.init()
    doc.tracker.enter(doc.query_fragments(".highlight")[0])
    doc.scheduler.advance(1000)
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .environment import (
    Environment,
    ScheduledHandle,
    Unsubscribe,
    VisibilityEntry,
    VisibilityTracker,
)
from .hooks import EventType, HookRegistry
from .models import ActivationState, HighlightConfig, HighlightFragment

logger = logging.getLogger("folio.coordinator")


class ScrollHighlightCoordinator:

    def __init__(
        self,
        environment: Environment,
        config: Optional[HighlightConfig] = None,
        hooks: Optional[HookRegistry] = None,
    ) -> None:
        self.env = environment
        self.config = config or HighlightConfig()
        self.hooks = hooks or HookRegistry()

        self._fragments: list[HighlightFragment] = []
        self._by_element: dict[int, HighlightFragment] = {}
        self._groups: dict[int, list[HighlightFragment]] = {}
        # ObservationRegistry: fragment index → last reported visibility
        self._visibility: dict[int, bool] = {}
        self._in_progress: set[int] = set()
        self._scheduled: dict[int, ScheduledHandle] = {}
        self._generation = 0
        self._tracker: Optional[VisibilityTracker] = None
        self._unsubscribers: list[Unsubscribe] = []
        self._initialized = False
        self.animation_enabled = False

    # ── Introspection ────────────────────────────────────────────────────────

    @property
    def fragments(self) -> list[HighlightFragment]:
        return list(self._fragments)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def pending_activations(self) -> int:
        return sum(1 for h in self._scheduled.values() if not h.cancelled)

    def is_visible(self, fragment: HighlightFragment) -> bool:
        return self._visibility.get(fragment.index, False)

    def group_of(self, fragment: HighlightFragment) -> list[HighlightFragment]:
        if fragment.block is None:
            return [fragment]
        return list(self._groups.get(id(fragment.block), [fragment]))

    def fragment_for(self, element: Any) -> Optional[HighlightFragment]:
        return self._by_element.get(id(element))

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def init(self) -> int:
        """
        Discover fragments and start watching them. Returns the fragment count.

        A second call without teardown() in between does nothing.
        """
        if self._initialized:
            return len(self._fragments)
        self._initialized = True
        self._scan()

        if not self._fragments:
            logger.debug("No fragments match %r; nothing to coordinate", self.config.selector)
            return 0

        self._tracker = self.env.create_visibility_tracker(
            self._on_visibility, self.config.threshold, self.config.root_margin,
        )
        if self._tracker is None:
            self._fallback_activate()
            return len(self._fragments)

        self.animation_enabled = True
        for frag in self._fragments:
            if not frag.is_active:
                self._tracker.observe(frag.element)

        self._wire_controls()

        if self.config.activate_visible_on_init:
            for frag in self._fragments:
                if not frag.is_active and self.env.in_viewport(frag.element):
                    self._visibility[frag.index] = True
                    self.on_enter_viewport(frag)

        logger.info(
            "Highlight coordinator ready: %d fragments in %d groups",
            len(self._fragments), len(self._groups) + self._standalone_count(),
        )
        return len(self._fragments)

    def teardown(self) -> None:
        """Cancel pending activations and release every subscription. init() may be called again."""
        self._cancel_scheduled()
        self._generation += 1
        if self._tracker is not None:
            self._tracker.disconnect()
            self._tracker = None
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._fragments.clear()
        self._by_element.clear()
        self._groups.clear()
        self._visibility.clear()
        self._in_progress.clear()
        self._initialized = False
        self.animation_enabled = False

    def _scan(self) -> None:
        for index, element in enumerate(self.env.query_fragments(self.config.selector)):
            block = self.env.containing_block(element, self.config.block_tags)
            state = (
                ActivationState.ACTIVE
                if self.env.is_marked_active(element, self.config.active_class)
                else ActivationState.PENDING
            )
            frag = HighlightFragment(
                index=index,
                element=element,
                block=block,
                text=self.env.text_of(element),
                state=state,
            )
            self._fragments.append(frag)
            self._by_element[id(element)] = frag
            self._visibility[index] = False
            if block is not None:
                self._groups.setdefault(id(block), []).append(frag)

    def _standalone_count(self) -> int:
        return sum(1 for f in self._fragments if f.is_standalone)

    def _fallback_activate(self) -> None:
        logger.warning(
            "Visibility tracking unavailable; activating all %d highlights without animation",
            len(self._fragments),
        )
        for frag in self._fragments:
            self._activate(frag, self._generation)
        self.hooks.fire(EventType.FALLBACK_ACTIVATED, count=len(self._fragments))

    def _wire_controls(self) -> None:
        wiring: list[tuple[str, Callable[[], None]]] = [
            (self.config.reset_control_id, self.reset),
            (self.config.trigger_all_control_id,
             lambda: self.activate_all(self.config.trigger_all_stagger_ms)),
        ]
        for control_id, action in wiring:
            control = self.env.find_control(control_id)
            if control is None:
                logger.debug("Debug control #%s not present; skipping", control_id)
                continue
            self._unsubscribers.append(self.env.on_click(control, self._guarded(action)))

        unsubscribe = self.env.on_print_change(self._guarded_print)
        if unsubscribe is not None:
            self._unsubscribers.append(unsubscribe)

    def _guarded(self, action: Callable[[], None]) -> Callable[[], None]:
        def _run() -> None:
            try:
                action()
            except Exception:
                logger.exception("Highlight control handler failed")
        return _run

    def _guarded_print(self, matches: bool) -> None:
        try:
            self.on_print_change(matches)
        except Exception:
            logger.exception("Print media handler failed")

    # ── Visibility ───────────────────────────────────────────────────────────

    def _on_visibility(self, entries: list[VisibilityEntry]) -> None:
        for entry in entries:
            try:
                frag = self._by_element.get(id(entry.target))
                if frag is None:
                    continue
                self._visibility[frag.index] = entry.is_intersecting
                if entry.is_intersecting:
                    self.on_enter_viewport(frag)
            except Exception:
                logger.exception("Visibility notification handling failed")

    def on_enter_viewport(self, fragment: HighlightFragment) -> None:
        """Start the reveal of `fragment`'s group, unless it is already underway."""
        if fragment.block is None:
            self._activate(fragment, self._generation)
            return

        key = id(fragment.block)
        if key in self._in_progress:
            return
        self._in_progress.add(key)

        pending = [f for f in self._groups.get(key, [fragment]) if not f.is_active]
        if not pending:
            return
        self.hooks.fire(
            EventType.GROUP_STARTED,
            block_label=self.env.describe_block(fragment.block),
            size=len(pending),
            at_ms=self.env.scheduler.now_ms(),
        )
        self._stagger(pending, self.config.delay_between_highlights_ms)

    def _stagger(self, ordered: list[HighlightFragment], step_ms: int,
                 positions: Optional[list[int]] = None) -> None:
        generation = self._generation
        for i, frag in enumerate(ordered):
            slot = positions[i] if positions is not None else i
            previous = self._scheduled.pop(frag.index, None)
            if previous is not None:
                previous.cancel()
            if slot == 0 or step_ms == 0:
                self._activate(frag, generation)
                continue
            self._scheduled[frag.index] = self.env.scheduler.call_later(
                slot * step_ms, self._deferred(frag, generation),
            )

    def _deferred(self, fragment: HighlightFragment, generation: int) -> Callable[[], None]:
        def _fire() -> None:
            try:
                self._scheduled.pop(fragment.index, None)
                self._activate(fragment, generation)
            except Exception:
                logger.exception("Deferred activation of fragment %d failed", fragment.index)
        return _fire

    def _activate(self, fragment: HighlightFragment, generation: int) -> None:
        if generation != self._generation or fragment.is_active:
            return
        fragment.state = ActivationState.ACTIVE
        self.env.set_active(fragment.element, self.config.active_class, True)
        if self._tracker is not None:
            self._tracker.unobserve(fragment.element)
        if self.config.debug:
            logger.debug("Activated highlight %d: %s", fragment.index, fragment.text)
        self.hooks.fire(
            EventType.FRAGMENT_ACTIVATED,
            fragment=fragment,
            at_ms=self.env.scheduler.now_ms(),
        )

    # ── Explicit operations ──────────────────────────────────────────────────

    def reset(self) -> None:
        """Return every fragment to pending and re-arm tracking. Safe to call repeatedly."""
        cancelled = self._cancel_scheduled()
        self._generation += 1
        self._in_progress.clear()
        for frag in self._fragments:
            frag.state = ActivationState.PENDING
            self.env.set_active(frag.element, self.config.active_class, False)
            if self._tracker is not None and not self._tracker.is_observed(frag.element):
                self._tracker.observe(frag.element)
        if self.config.debug:
            logger.debug("All highlights reset (%d scheduled activations cancelled)", cancelled)
        self.hooks.fire(EventType.HIGHLIGHTS_RESET, cancelled=cancelled)
        # Nothing would ever re-enter these fragments without tracking
        if self._fragments and not self.animation_enabled:
            self._fallback_activate()

    def activate_all(self, stagger_ms: int) -> None:
        """Activate every fragment in document order, `stagger_ms` apart, ignoring the viewport."""
        if stagger_ms < 0:
            raise ValueError(f"stagger_ms must be >= 0, got {stagger_ms}")
        pending = [f for f in self._fragments if not f.is_active]
        for frag in pending:
            if frag.block is not None:
                self._in_progress.add(id(frag.block))
        self._stagger(pending, stagger_ms, positions=[f.index for f in pending])
        self.hooks.fire(EventType.ALL_TRIGGERED, count=len(pending), stagger_ms=stagger_ms)

    def on_print_change(self, matches: bool) -> None:
        if matches:
            self.activate_all(self.config.print_stagger_ms)

    def _cancel_scheduled(self) -> int:
        cancelled = 0
        for handle in self._scheduled.values():
            if not handle.cancelled:
                handle.cancel()
                cancelled += 1
        self._scheduled.clear()
        return cancelled
