"""
folio — Core Models & Types
===========================
Highlight fragments, activation state, coordinator configuration and the
root-margin parser shared by every visibility tracker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Optional


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class ActivationState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


# ─────────────────────────────────────────────
# Defaults
# ─────────────────────────────────────────────

DEFAULT_SELECTOR = ".highlight"
DEFAULT_ACTIVE_CLASS = "active"
DEFAULT_BLOCK_TAGS: tuple[str, ...] = (
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "section", "div",
)


# ─────────────────────────────────────────────
# Fragments
# ─────────────────────────────────────────────

@dataclass(eq=False)
class HighlightFragment:
    """
    A marked span of text eligible for emphasis.

    `element` and `block` are opaque handles owned by the Environment; the
    coordinator never looks inside them. `index` is the position in document
    order and doubles as the fragment's stable identity.
    """
    index: int
    element: Any
    block: Optional[Any] = None
    text: str = ""
    state: ActivationState = ActivationState.PENDING

    @property
    def is_active(self) -> bool:
        return self.state is ActivationState.ACTIVE

    @property
    def is_standalone(self) -> bool:
        return self.block is None


# ─────────────────────────────────────────────
# Root margin
# ─────────────────────────────────────────────

_MARGIN_TOKEN_RE = re.compile(r"^(-?\d+(?:\.\d+)?)(px|%)$")


@dataclass(frozen=True)
class Inset:
    """One side of a root margin: a pixel offset or a percentage of the viewport."""
    value: float
    unit: str = "px"

    def resolve(self, extent: float) -> float:
        if self.unit == "%":
            return extent * self.value / 100.0
        return self.value


@dataclass(frozen=True)
class RootMargin:
    top: Inset
    right: Inset
    bottom: Inset
    left: Inset


def parse_root_margin(margin: str) -> RootMargin:
    """
    Parse a CSS-style margin shorthand ("10px", "0px 0px -50px 0px", "5% 0").

    Every value must carry a `px` or `%` unit, as IntersectionObserver demands.
    Raises ValueError on anything else.
    """
    tokens = margin.split()
    if not 1 <= len(tokens) <= 4:
        raise ValueError(f"root margin must have 1-4 values, got {margin!r}")
    insets: list[Inset] = []
    for tok in tokens:
        m = _MARGIN_TOKEN_RE.match(tok)
        if m is None:
            raise ValueError(f"invalid root margin value {tok!r} in {margin!r}")
        insets.append(Inset(float(m.group(1)), m.group(2)))

    # CSS shorthand expansion: top, right, bottom, left
    if len(insets) == 1:
        top = right = bottom = left = insets[0]
    elif len(insets) == 2:
        top, right = insets
        bottom, left = top, right
    elif len(insets) == 3:
        top, right, bottom = insets
        left = right
    else:
        top, right, bottom, left = insets
    return RootMargin(top, right, bottom, left)


# ─────────────────────────────────────────────
# Coordinator configuration
# ─────────────────────────────────────────────

@dataclass
class HighlightConfig:
    """
    Tuning knobs for ScrollHighlightCoordinator.

    threshold                 — fraction of the fragment that must be visible
    root_margin               — inset applied to the viewport before testing
    delay_between_highlights_ms — stagger between fragments of one block
    trigger_all_stagger_ms    — stagger used by the "trigger all" debug control
    print_stagger_ms          — stagger used when print media becomes active
    activate_visible_on_init  — enter fragments already in view at init()
    """
    threshold: float = 0.3
    root_margin: str = "0px 0px -50px 0px"
    delay_between_highlights_ms: int = 400
    trigger_all_stagger_ms: int = 100
    print_stagger_ms: int = 0
    activate_visible_on_init: bool = False
    debug: bool = False
    selector: str = DEFAULT_SELECTOR
    active_class: str = DEFAULT_ACTIVE_CLASS
    block_tags: tuple[str, ...] = field(default=DEFAULT_BLOCK_TAGS)
    reset_control_id: str = "resetHighlights"
    trigger_all_control_id: str = "triggerAll"

    def __post_init__(self) -> None:
        self.block_tags = tuple(self.block_tags)
        self.validate()

    def validate(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {self.threshold}")
        for name in ("delay_between_highlights_ms", "trigger_all_stagger_ms",
                     "print_stagger_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        parse_root_margin(self.root_margin)

    @property
    def margin(self) -> RootMargin:
        return parse_root_margin(self.root_margin)

    def with_overrides(self, **overrides: Any) -> "HighlightConfig":
        """Return a copy with the given fields replaced (None values are ignored)."""
        clean = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **clean)

    @classmethod
    def from_mapping(cls, raw: dict[str, Any], source: str = "<mapping>") -> "HighlightConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(
                f"'{source}': unknown highlight config keys {unknown}. "
                f"Valid keys: {sorted(known)}"
            )
        return cls(**raw)
