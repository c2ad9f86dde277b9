"""
Tests for the folio CLI.
Each subcommand is driven through main(argv) and checked by exit code and output.
"""
from __future__ import annotations

import json
import logging
import textwrap

import pytest

from folio.cli import build_parser, main


PAGE = """<html><body>
<p class="body-primary"><span class="highlight">one</span> <span class="highlight">two</span></p>
<h2 class="header2-accent"><span class="highlight">three</span></h2>
</body></html>
"""


@pytest.fixture(autouse=True)
def restore_root_logging():
    # main() reconfigures the root logger on every call
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def site(tmp_path):
    (tmp_path / "index.html").write_text(PAGE, encoding="utf-8")
    return tmp_path


# ─────────────────────────────────────────────────────────────────────────────
# validate
# ─────────────────────────────────────────────────────────────────────────────

def test_validate_clean_site(site, capsys):
    assert main(["validate", str(site)]) == 0
    out = capsys.readouterr().out
    assert "RESULTS: 0 violations, 0 warnings" in out
    assert "All files comply" in out


def test_validate_reports_violations(site, capsys):
    (site / "about.html").write_text('<div style="color: #abcdef"></div>', encoding="utf-8")
    assert main(["validate", str(site)]) == 1
    out = capsys.readouterr().out
    assert "RESULTS: 2 violations, 0 warnings" in out
    assert "INLINE_STYLE" in out
    assert "HARDCODED_COLOR: line 1: Hardcoded color found: #abcdef" in out


def test_validate_warnings_fail_unless_allowed(site, capsys):
    (site / "about.html").write_text("<p>plain</p>", encoding="utf-8")
    assert main(["validate", str(site)]) == 1
    assert main(["validate", str(site), "--allow-warnings"]) == 0


def test_validate_rule_subset(site):
    (site / "about.html").write_text("<p>plain</p>", encoding="utf-8")
    assert main(["validate", str(site), "--rules", "inline_style,hardcoded_color"]) == 0


def test_validate_single_file_with_page_type(site, capsys):
    assert main(["validate", str(site / "index.html"), "--page-type", "case_study"]) == 1
    assert "Missing case-titles" in capsys.readouterr().out


def test_validate_page_type_needs_file(site):
    assert main(["validate", str(site), "--page-type", "page"]) == 2


def test_validate_missing_path(tmp_path, capsys):
    assert main(["validate", str(tmp_path / "nope")]) == 2
    assert "does not exist" in capsys.readouterr().err


# ─────────────────────────────────────────────────────────────────────────────
# simulate
# ─────────────────────────────────────────────────────────────────────────────

def test_simulate_scroll(site, capsys):
    assert main(["simulate", str(site / "index.html"), "--scroll-step", "1000"]) == 0
    out = capsys.readouterr().out
    assert "3 highlights" in out
    assert "last activation at 2000ms" in out


def test_simulate_delay_override_and_write(site, tmp_path, capsys):
    written = tmp_path / "activated.html"
    code = main([
        "simulate", str(site / "index.html"),
        "--scroll-step", "1000", "--delay", "100", "--write", str(written),
    ])
    assert code == 0
    assert written.read_text(encoding="utf-8").count("highlight active") == 3
    assert "Activated page written to" in capsys.readouterr().out


def test_simulate_with_yaml_config(site, tmp_path, capsys):
    cfg = tmp_path / "highlights.yaml"
    cfg.write_text("trigger_all_stagger_ms: 25\n", encoding="utf-8")
    code = main(["simulate", str(site / "index.html"), "--mode", "trigger-all",
                 "--config", str(cfg)])
    assert code == 0
    assert "last activation at 50ms" in capsys.readouterr().out


def test_simulate_rejects_bad_configuration(site, tmp_path, monkeypatch, capsys):
    page = str(site / "index.html")
    assert main(["simulate", page, "--delay", "-5"]) == 2
    assert "ERROR: delay_between_highlights_ms must be >= 0" in capsys.readouterr().err

    assert main(["simulate", page, "--config", str(tmp_path / "missing.yaml")]) == 2
    assert "not found" in capsys.readouterr().err

    bad = tmp_path / "bad.yaml"
    bad.write_text("speed: 3\n", encoding="utf-8")
    assert main(["simulate", page, "--config", str(bad)]) == 2
    assert "unknown highlight config keys" in capsys.readouterr().err

    monkeypatch.setenv("FOLIO_HIGHLIGHT_DELAY_MS", "soon")
    assert main(["simulate", page]) == 2
    assert "FOLIO_HIGHLIGHT_DELAY_MS" in capsys.readouterr().err


def test_simulate_page_without_highlights(tmp_path, capsys):
    page = tmp_path / "plain.html"
    page.write_text("<p>nothing</p>", encoding="utf-8")
    assert main(["simulate", str(page)]) == 0
    assert "No highlights" in capsys.readouterr().out


# ─────────────────────────────────────────────────────────────────────────────
# prompt
# ─────────────────────────────────────────────────────────────────────────────

def test_prompt_json_payload(tmp_path, capsys):
    data = tmp_path / "data.yaml"
    data.write_text("title: Checkout\nmetrics: [Faster]\n", encoding="utf-8")
    code = main(["prompt", str(data), "--json", "--schema", str(tmp_path / "none.json")])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert set(payload) == {"system", "user", "constraints", "format"}
    assert '<h1 class="hero-primary">Checkout</h1>' in payload["user"]


def test_prompt_plain_lists_constraints(tmp_path, capsys):
    data = tmp_path / "data.yaml"
    data.write_text("title: Checkout\n", encoding="utf-8")
    assert main(["prompt", str(data), "--schema", str(tmp_path / "none.json")]) == 0
    out = capsys.readouterr().out
    assert "CONSTRAINTS:" in out
    assert "- Must include case-header-img" in out


def test_prompt_invalid_data(tmp_path, capsys):
    data = tmp_path / "data.yaml"
    data.write_text("subtitle: no title\n", encoding="utf-8")
    assert main(["prompt", str(data), "--schema", str(tmp_path / "none.json")]) == 1
    assert "Invalid case study data" in capsys.readouterr().err


# ─────────────────────────────────────────────────────────────────────────────
# case-study
# ─────────────────────────────────────────────────────────────────────────────

def test_case_study_from_answers(tmp_path, capsys):
    answers = tmp_path / "answers.yaml"
    answers.write_text(textwrap.dedent("""\
        title: Healthcare Portal
        slug: healthcare-portal
        metrics: [Time reduction]
    """), encoding="utf-8")
    out_dir = tmp_path / "case-studies"
    argv = ["case-study", "--answers", str(answers), "-o", str(out_dir),
            "--schema", str(tmp_path / "none.json")]

    assert main(argv) == 0
    assert (out_dir / "healthcare-portal.html").exists()
    assert 'href="case-studies/healthcare-portal.html"' in capsys.readouterr().out

    assert main(argv) == 1
    assert "already exists" in capsys.readouterr().err
    assert main(argv + ["--overwrite"]) == 0


def test_case_study_bad_answers(tmp_path, capsys):
    answers = tmp_path / "answers.yaml"
    answers.write_text("title: T\nslug: Bad Slug\n", encoding="utf-8")
    assert main(["case-study", "--answers", str(answers), "-o", str(tmp_path)]) == 1
    assert "Invalid slug" in capsys.readouterr().err


# ─────────────────────────────────────────────────────────────────────────────
# parser
# ─────────────────────────────────────────────────────────────────────────────

def test_no_subcommand_prints_help(capsys):
    assert main([]) == 2
    assert "usage: folio" in capsys.readouterr().out


def test_parser_defaults():
    args = build_parser().parse_args(["simulate", "page.html"])
    assert args.mode == "scroll"
    assert args.scroll_step == 250
    assert args.delay is None
