"""
Terminal timeline renderer for highlight simulations.

Subscribes to a coordinator's HookRegistry, records every activation with
its virtual timestamp and prints a compact line per event to stderr, leaving
stdout clean for the final table. Use quiet=True in tests.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass

from .hooks import EventType, HookRegistry
from .models import HighlightFragment


@dataclass
class ActivationRecord:
    at_ms: float
    index: int
    text: str


class TimelineRenderer:
    """
    Stateful hook subscriber. Maintains counters so callers can inspect
    final state after the clock has run.
    """

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet
        self.records: list[ActivationRecord] = []
        self.groups_started = 0
        self.resets = 0
        self.fallback = False

    def attach(self, hooks: HookRegistry) -> "TimelineRenderer":
        hooks.add(EventType.FRAGMENT_ACTIVATED, self.on_activated)
        hooks.add(EventType.GROUP_STARTED, self.on_group_started)
        hooks.add(EventType.HIGHLIGHTS_RESET, self.on_reset)
        hooks.add(EventType.ALL_TRIGGERED, self.on_all_triggered)
        hooks.add(EventType.FALLBACK_ACTIVATED, self.on_fallback)
        return self

    def on_activated(self, fragment: HighlightFragment, at_ms: float, **_) -> None:
        self.records.append(ActivationRecord(at_ms, fragment.index, fragment.text))
        if not self.quiet:
            print(f"   ✓ {at_ms:>7.0f}ms  #{fragment.index}  {fragment.text[:60]}",
                  file=sys.stderr)

    def on_group_started(self, block_label: str, size: int, at_ms: float, **_) -> None:
        self.groups_started += 1
        if not self.quiet:
            print(f"   → {at_ms:>7.0f}ms  {block_label}  ({size} highlights)", file=sys.stderr)

    def on_reset(self, cancelled: int, **_) -> None:
        self.resets += 1
        if not self.quiet:
            print(f"   ↺ reset  ({cancelled} scheduled activations cancelled)", file=sys.stderr)

    def on_all_triggered(self, count: int, stagger_ms: int, **_) -> None:
        if not self.quiet:
            print(f"   ⚡ trigger all  {count} highlights  stagger={stagger_ms}ms",
                  file=sys.stderr)

    def on_fallback(self, count: int, **_) -> None:
        self.fallback = True
        if not self.quiet:
            print(f"   ⚠  no visibility tracking — {count} highlights shown immediately",
                  file=sys.stderr)

    def activation_times(self) -> dict[int, float]:
        return {r.index: r.at_ms for r in self.records}

    def render_table(self) -> str:
        if not self.records:
            return "No highlights activated."
        lines = [f"{'t (ms)':>8}  {'#':>3}  text", "-" * 60]
        for r in sorted(self.records, key=lambda r: (r.at_ms, r.index)):
            lines.append(f"{r.at_ms:>8.0f}  {r.index:>3}  {r.text[:45]}")
        return "\n".join(lines)

    def summary(self) -> str:
        return (
            f"{len(self.records)} activated, "
            f"{self.groups_started} groups started, "
            f"{self.resets} resets"
        )
