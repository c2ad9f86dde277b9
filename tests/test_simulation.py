"""
Tests for the scroll simulator and the timeline renderer.
"""
from __future__ import annotations

import pytest

from folio.models import HighlightConfig
from folio.simulation import SimulationMode, simulate
from folio.timeline import TimelineRenderer


PAGE = """
<p><span class="highlight">a</span> <span class="highlight">b</span> <span class="highlight">c</span></p>
<p><span class="highlight">d</span></p>
"""


def test_scroll_mode_staggers_each_block():
    result = simulate(PAGE, scroll_step_ms=1000)
    # a enters at 0 and starts its block; d enters at 3000
    assert result.activation_times() == {0: 0.0, 1: 400.0, 2: 800.0, 3: 3000.0}
    assert result.fragment_count == 4
    assert result.duration_ms == 3000.0


def test_scroll_mode_fast_scroll_still_respects_block_delay():
    result = simulate(PAGE, scroll_step_ms=10)
    assert result.activation_times() == {0: 0.0, 1: 400.0, 2: 800.0, 3: 30.0}


def test_trigger_all_mode_uses_trigger_stagger():
    result = simulate(PAGE, HighlightConfig(trigger_all_stagger_ms=50), mode="trigger-all")
    assert result.activation_times() == {0: 0.0, 1: 50.0, 2: 100.0, 3: 150.0}


def test_print_mode_activates_everything_at_once():
    result = simulate(PAGE, mode=SimulationMode.PRINT)
    assert set(result.activation_times().values()) == {0.0}
    assert result.html.count("highlight active") == 4


def test_no_fragments():
    result = simulate("<p>plain</p>")
    assert result.fragment_count == 0
    assert result.records == []


def test_negative_scroll_step_rejected():
    with pytest.raises(ValueError):
        simulate(PAGE, scroll_step_ms=-1)


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        simulate(PAGE, mode="hover")


def test_renderer_counts_and_table(capsys):
    renderer = TimelineRenderer(quiet=False)
    simulate(PAGE, scroll_step_ms=1000, renderer=renderer)
    assert renderer.groups_started == 2
    assert len(renderer.records) == 4
    assert "4 activated" in renderer.summary()
    table = renderer.render_table()
    assert table.splitlines()[2].split() == ["0", "0", "a"]
    assert "→" in capsys.readouterr().err


def test_renderer_quiet_prints_nothing(capsys):
    simulate(PAGE, renderer=TimelineRenderer(quiet=True))
    assert capsys.readouterr().err == ""


def test_empty_table():
    assert TimelineRenderer(quiet=True).render_table() == "No highlights activated."
