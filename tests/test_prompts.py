"""
Tests for DesignSystemPrompts and schema loading.
"""
from __future__ import annotations

import json
import logging

import pytest

from folio.prompts import CONSTRAINTS, DesignSystemPrompts, PromptBundle, load_schema


DATA = {
    "title": "Checkout Redesign",
    "subtitle": "Cutting drop-off in half",
    "headerImage": "../assets/images/checkout/cover.webp",
    "executiveSummary": "We rebuilt the checkout.",
    "metrics": ["Faster checkout", "Fewer errors"],
    "sections": [
        {"title": "Research", "content": "Interviews.", "image": "r.webp"},
        {"title": "Design", "content": "Wireframes."},
    ],
    "comparisonMetrics": [
        {"metric": "Time", "original": "3m", "redesign": "1m", "difference": "-66%"},
    ],
}


@pytest.fixture()
def prompts(tmp_path):
    # No schema file: the builder runs without one
    return DesignSystemPrompts(schema_path=tmp_path / "missing.json")


def test_case_study_fills_placeholders(prompts):
    bundle = prompts.generate_case_study(DATA)
    user = bundle.user_prompt
    assert '<h1 class="hero-primary">Checkout Redesign</h1>' in user
    assert 'src="../assets/images/checkout/cover.webp"' in user
    assert 'alt="Case study header image"' in user
    assert '"executiveSummary": "We rebuilt the checkout."' in user
    assert "{" + "title}" not in user
    assert "{metricsTable}" not in user
    assert bundle.constraints == CONSTRAINTS["caseStudy"]
    assert bundle.system_prompt.startswith("You are a UX design assistant")


def test_summary_metric_colors_cycle(prompts):
    html = prompts.summary_content({"metrics": ["a", "b", "c", "d", "e"]})
    assert html.count("combo-blue-light") == 2
    assert "combo-orange-light" in html and "combo-green-light" in html


def test_duties_default_when_missing(prompts):
    html = prompts.duties_content({})
    assert "user-circle-duotone.svg" in html
    assert "UX Research, UX Design, Wireframing, Prototyping" in html


def test_intro_uses_default_question(prompts):
    assert "What is this project about?" in prompts.intro_content({})
    assert "Why?" in prompts.intro_content({"problemStatement": "Why?"})


def test_content_sections_spacing_and_images(prompts):
    html = prompts.content_sections(DATA)
    assert html.count('style="margin-bottom: 3rem"') == 1
    assert html.count('style="margin-bottom: 1rem"') == 1
    assert 'src="r.webp"' in html
    assert "Screenshot of design" in html


def test_metrics_table_empty_and_filled(prompts):
    assert prompts.metrics_table({}) == ""
    table = prompts.metrics_table(DATA)
    assert "comparison-table" in table
    assert "combo-blue-light td-right" in table


def test_invalid_case_study_data_raises(prompts):
    with pytest.raises(ValueError, match="Invalid case study data"):
        prompts.generate_case_study({"subtitle": "no title"})
    with pytest.raises(ValueError):
        prompts.generate_case_study({"title": ""})
    with pytest.raises(ValueError):
        prompts.generate_case_study({"title": "x", "metrics": "not a list"})


def test_component_and_page_prompts(prompts):
    component = prompts.component_prompt("card", {"title": "Hi"})
    assert component.user_prompt.startswith("Generate a card component:")
    assert '"title": "Hi"' in component.user_prompt
    assert component.constraints == CONSTRAINTS["component"]

    page = prompts.page_prompt("home", {"hero": True})
    assert page.user_prompt.startswith("Generate a home page:")
    assert page.constraints == CONSTRAINTS["page"]


def test_constraints_for_returns_copy():
    got = DesignSystemPrompts.constraints_for("page")
    got.append("mutated")
    assert "mutated" not in CONSTRAINTS["page"]
    assert DesignSystemPrompts.constraints_for("unknown") == []


def test_format_for_llm_without_schema(prompts):
    payload = prompts.format_for_llm(PromptBundle("sys", "user", ["c"]))
    assert payload == {"system": "sys", "user": "user", "constraints": ["c"], "format": "html"}
    assert prompts.schema_loaded is False


def test_format_for_llm_includes_loaded_schema(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps({"colors": ["--primary-blue"]}), encoding="utf-8")
    prompts = DesignSystemPrompts(schema_path=path)
    assert prompts.schema_loaded
    payload = prompts.format_for_llm(PromptBundle("s", "u"))
    assert payload["schema"] == {"colors": ["--primary-blue"]}


def test_load_schema_logs_and_returns_none(tmp_path, caplog):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.ERROR, logger="folio.prompts"):
        assert load_schema(bad) is None
        assert load_schema(tmp_path / "missing.json") is None
    assert len(caplog.records) == 2


def test_load_schema_default_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "ds.json"
    path.write_text('{"ok": true}', encoding="utf-8")
    monkeypatch.setenv("FOLIO_SCHEMA_PATH", str(path))
    assert load_schema() == {"ok": True}


def test_combined_prompt():
    assert PromptBundle("a", "b").combined() == "a\n\nb"
