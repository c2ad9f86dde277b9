"""
Scroll simulation — replay a page's highlight reveal on a virtual clock
=======================================================================
Loads a static HTML page into an HtmlDocument, runs a real
ScrollHighlightCoordinator against it and drives the viewport by hand:

  scroll       fragments cross the trigger region in document order,
               one every `scroll_step_ms`
  trigger-all  the "trigger all" debug control is clicked at t=0
  print        print media becomes active at t=0

No wall-clock time passes; the result lists when each highlight would turn
active in a browser using the same configuration.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .coordinator import ScrollHighlightCoordinator
from .document import HtmlDocument
from .environment import ManualVisibilityTracker, VirtualScheduler
from .models import HighlightConfig
from .timeline import ActivationRecord, TimelineRenderer

logger = logging.getLogger("folio.simulation")


class SimulationMode(str, Enum):
    SCROLL = "scroll"
    TRIGGER_ALL = "trigger-all"
    PRINT = "print"


@dataclass
class SimulationResult:
    mode: SimulationMode
    fragment_count: int
    records: list[ActivationRecord] = field(default_factory=list)
    html: str = ""
    fallback: bool = False

    @property
    def duration_ms(self) -> float:
        return max((r.at_ms for r in self.records), default=0.0)

    def activation_times(self) -> dict[int, float]:
        return {r.index: r.at_ms for r in self.records}


def simulate(
    html: str,
    config: Optional[HighlightConfig] = None,
    mode: SimulationMode | str = SimulationMode.SCROLL,
    scroll_step_ms: int = 250,
    renderer: Optional[TimelineRenderer] = None,
) -> SimulationResult:
    """Run the reveal for `html` and return every activation with its virtual timestamp."""
    mode = SimulationMode(mode)
    if scroll_step_ms < 0:
        raise ValueError(f"scroll_step_ms must be >= 0, got {scroll_step_ms}")

    config = config or HighlightConfig()
    scheduler = VirtualScheduler()
    doc = HtmlDocument(html, scheduler=scheduler)
    coord = ScrollHighlightCoordinator(doc, config)
    renderer = (renderer or TimelineRenderer(quiet=True)).attach(coord.hooks)

    count = coord.init()
    result = SimulationResult(mode=mode, fragment_count=count, fallback=renderer.fallback)
    if count == 0:
        result.html = doc.render()
        return result

    if mode is SimulationMode.SCROLL:
        tracker = doc.tracker
        if isinstance(tracker, ManualVisibilityTracker):
            for frag in coord.fragments:
                scheduler.call_later(
                    frag.index * scroll_step_ms,
                    lambda el=frag.element: tracker.enter(el),
                )
    elif mode is SimulationMode.TRIGGER_ALL:
        if not doc.click(config.trigger_all_control_id):
            coord.activate_all(config.trigger_all_stagger_ms)
    else:
        doc.emit_print(True)

    scheduler.run_until_idle()
    logger.debug("Simulation (%s) finished at %.0fms", mode.value, scheduler.now_ms())

    result.records = list(renderer.records)
    result.html = doc.render()
    coord.teardown()
    return result
