"""
folio
=====
Support tooling for a portfolio website: scroll-triggered highlight
coordination, design-system HTML checks and case-study prompt generation.

Highlight coordination:
    from folio import HtmlDocument, HighlightConfig, ScrollHighlightCoordinator

    doc = HtmlDocument(html)
    coord = ScrollHighlightCoordinator(doc, HighlightConfig(delay_between_highlights_ms=400))
    coord.init()
    doc.tracker.enter(coord.fragments[0].element)
    doc.scheduler.advance(1000)

Design-system checks:
    from folio import validate_output
    errors, warnings = validate_output(html, "case_study")
"""

from .models import ActivationState, HighlightConfig, HighlightFragment
from .environment import (
    AsyncioScheduler, Environment, ManualVisibilityTracker,
    VirtualScheduler, VisibilityEntry, VisibilityTracker,
)
from .document import HtmlDocument
from .coordinator import ScrollHighlightCoordinator
from .hooks import EventType, HookRegistry
from .simulation import SimulationMode, simulate
from .validators import (
    VALIDATORS, PageType, Severity, Violation,
    run_validators, validate_output, validate_tree,
)
from .prompts import DesignSystemPrompts, PromptBundle
from .case_study import CaseStudyAnswers, write_case_study

__all__ = [
    # ── Highlight coordination ──────────────────────────────────────────────
    "ActivationState", "HighlightConfig", "HighlightFragment",
    "Environment", "VisibilityTracker", "VisibilityEntry",
    "ManualVisibilityTracker", "AsyncioScheduler", "VirtualScheduler",
    "HtmlDocument", "ScrollHighlightCoordinator",
    "EventType", "HookRegistry", "SimulationMode", "simulate",
    # ── Design system ───────────────────────────────────────────────────────
    "VALIDATORS", "PageType", "Severity", "Violation",
    "run_validators", "validate_output", "validate_tree",
    "DesignSystemPrompts", "PromptBundle",
    "CaseStudyAnswers", "write_case_study",
]
