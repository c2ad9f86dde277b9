"""
HtmlDocument — an Environment over a static HTML page
=====================================================
Parses the page with BeautifulSoup and plays the browser's part for the
highlight coordinator: fragment discovery, `class="active"` mutation,
debug-control clicks and print-media changes. Visibility notifications come
from a ManualVisibilityTracker unless another tracker factory is injected.

Elements (or any of their ancestors) carrying `data-above-fold` are
reported as already in the viewport, which is what
`activate_visible_on_init` consults.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Optional

from bs4 import BeautifulSoup, Tag

from .environment import (
    Environment,
    ManualVisibilityTracker,
    Scheduler,
    TrackerFactory,
    Unsubscribe,
    VirtualScheduler,
    VisibilityCallback,
    VisibilityTracker,
)

logger = logging.getLogger("folio.document")

ABOVE_FOLD_ATTR = "data-above-fold"


def _classes(el: Tag) -> list[str]:
    raw = el.get("class") or []
    if isinstance(raw, str):
        raw = raw.split()
    return list(raw)


class HtmlDocument(Environment):

    def __init__(
        self,
        html: str,
        *,
        scheduler: Optional[Scheduler] = None,
        tracker_factory: Optional[TrackerFactory] = None,
        supports_visibility: bool = True,
        supports_print: bool = True,
    ) -> None:
        self.soup = BeautifulSoup(html, "html.parser")
        self.scheduler = scheduler or VirtualScheduler()
        self._tracker_factory = tracker_factory or ManualVisibilityTracker
        self._supports_visibility = supports_visibility
        self._supports_print = supports_print
        self._click_handlers: dict[int, list[Callable[[], None]]] = defaultdict(list)
        self._print_handlers: list[Callable[[bool], None]] = []
        self.tracker: Optional[VisibilityTracker] = None

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> "HtmlDocument":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"HTML file not found: {path}")
        return cls(path.read_text(encoding="utf-8"), **kwargs)

    # ── Fragments ────────────────────────────────────────────────────────────

    def query_fragments(self, selector: str) -> list[Tag]:
        return list(self.soup.select(selector))

    def containing_block(self, element: Tag, block_tags: tuple[str, ...]) -> Optional[Tag]:
        return element.find_parent(list(block_tags))

    def is_marked_active(self, element: Tag, active_class: str) -> bool:
        return active_class in _classes(element)

    def set_active(self, element: Tag, active_class: str, active: bool) -> None:
        classes = _classes(element)
        if active and active_class not in classes:
            classes.append(active_class)
        elif not active and active_class in classes:
            classes.remove(active_class)
        if classes:
            element["class"] = classes
        elif element.has_attr("class"):
            del element["class"]

    def text_of(self, element: Tag) -> str:
        return element.get_text(" ", strip=True)

    def describe_block(self, block: Tag) -> str:
        label = block.name
        if block.get("id"):
            label += f"#{block['id']}"
        classes = _classes(block)
        if classes:
            label += "." + ".".join(classes)
        return label

    def in_viewport(self, element: Tag) -> bool:
        if element.has_attr(ABOVE_FOLD_ATTR):
            return True
        return element.find_parent(attrs={ABOVE_FOLD_ATTR: True}) is not None

    # ── Visibility ───────────────────────────────────────────────────────────

    def create_visibility_tracker(self, callback: VisibilityCallback, threshold: float,
                                  root_margin: str) -> Optional[VisibilityTracker]:
        if not self._supports_visibility:
            return None
        self.tracker = self._tracker_factory(callback, threshold, root_margin)
        return self.tracker

    # ── Debug controls ───────────────────────────────────────────────────────

    def find_control(self, control_id: str) -> Optional[Tag]:
        return self.soup.find(id=control_id)

    def on_click(self, control: Tag, callback: Callable[[], None]) -> Unsubscribe:
        handlers = self._click_handlers[id(control)]
        handlers.append(callback)

        def _unsubscribe() -> None:
            if callback in handlers:
                handlers.remove(callback)

        return _unsubscribe

    def click(self, control_id: str) -> bool:
        """Dispatch a click on the element with `control_id`. False if it doesn't exist."""
        control = self.find_control(control_id)
        if control is None:
            return False
        for cb in list(self._click_handlers.get(id(control), [])):
            cb()
        return True

    # ── Print media ──────────────────────────────────────────────────────────

    def on_print_change(self, callback: Callable[[bool], None]) -> Optional[Unsubscribe]:
        if not self._supports_print:
            return None
        self._print_handlers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._print_handlers:
                self._print_handlers.remove(callback)

        return _unsubscribe

    def emit_print(self, matches: bool = True) -> None:
        for cb in list(self._print_handlers):
            cb(matches)

    # ── Output ───────────────────────────────────────────────────────────────

    def render(self) -> str:
        return str(self.soup)
