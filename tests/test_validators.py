"""
Tests for the design-system validators.
Covers: each rule, line numbers, comment blanking, kwargs filtering,
        validate_output, file discovery and tree reports.
"""
from __future__ import annotations

from pathlib import Path

from folio.validators import (
    VALIDATORS,
    PageType,
    Severity,
    find_html_files,
    infer_page_type,
    run_validators,
    validate_hardcoded_colors,
    validate_html_file,
    validate_inline_styles,
    validate_output,
    validate_required_wrappers,
    validate_tree,
    validate_unclassed_text,
)


COMPLIANT_CASE_STUDY = """<img src="../a.webp" class="case-header-img" alt="cover">
<div class="case-titles">
  <h1 class="hero-primary">Title</h1>
  <h2 class="header2-accent">Subtitle</h2>
</div>
<div class="summary-duties"><p class="body-primary">Summary</p></div>
<a class="nav-link" href="#intro">Intro</a>
"""


# ─────────────────────────────────────────────────────────────────────────────
# inline_style
# ─────────────────────────────────────────────────────────────────────────────

def test_inline_style_flagged_with_line():
    html = '<div class="card">\n<p class="body-primary" style="margin: 0">x</p>\n</div>'
    violations = validate_inline_styles(html)
    assert len(violations) == 1
    assert violations[0].line == 2
    assert violations[0].severity is Severity.ERROR
    assert 'style="margin: 0"' in violations[0].message


def test_inline_background_only_is_allowed():
    html = ('<div class="project-card" style="background-image: url(a.webp); '
            'background-size: cover; background-position: center"></div>')
    assert validate_inline_styles(html) == []


def test_inline_background_mixed_with_other_properties_is_flagged():
    html = '<div style="background-image: url(a.webp); color: red"></div>'
    assert len(validate_inline_styles(html)) == 1


def test_inline_style_single_quotes():
    assert len(validate_inline_styles("<p style='padding:1rem'>x</p>")) == 1


# ─────────────────────────────────────────────────────────────────────────────
# hardcoded_color
# ─────────────────────────────────────────────────────────────────────────────

def test_hex_colors_flagged_individually():
    html = "<style>\n.a { color: #fff; }\n.b { color: #1A2b3C; }\n</style>"
    violations = validate_hardcoded_colors(html)
    assert [v.message for v in violations] == [
        "Hardcoded color found: #fff",
        "Hardcoded color found: #1A2b3C",
    ]
    assert [v.line for v in violations] == [2, 3]


def test_anchors_ids_and_entities_are_not_colors():
    html = ('<a class="x" href="#add">a</a><div id="cafe"></div>'
            '<img src="img#bad.png" alt="">&#123;')
    assert validate_hardcoded_colors(html) == []


def test_alpha_and_odd_length_hex_runs_are_flagged():
    html = "<style>.x { color: #ff000080; }\n.y { color: #f008; border-color: #12345; }</style>"
    assert [v.message for v in validate_hardcoded_colors(html)] == [
        "Hardcoded color found: #ff000080",
        "Hardcoded color found: #f008",
        "Hardcoded color found: #12345",
    ]


def test_overlong_or_short_hex_runs_are_not_colors():
    assert validate_hardcoded_colors("<p>#ab and #abcdef012</p>") == []


# ─────────────────────────────────────────────────────────────────────────────
# required_wrappers
# ─────────────────────────────────────────────────────────────────────────────

def test_case_study_requires_wrappers():
    violations = validate_required_wrappers("<div class='card'></div>", PageType.CASE_STUDY)
    assert [v.message for v in violations] == [
        "Missing case-header-img", "Missing case-titles", "Missing summary-duties",
    ]


def test_wrappers_must_be_classes_not_text():
    html = "<p class='body-primary'>case-titles summary-duties case-header-img</p>"
    assert len(validate_required_wrappers(html, "case_study")) == 3


def test_compliant_case_study_has_wrappers():
    assert validate_required_wrappers(COMPLIANT_CASE_STUDY, PageType.CASE_STUDY) == []


def test_plain_pages_need_no_wrappers():
    assert validate_required_wrappers("<p>x</p>") == []


# ─────────────────────────────────────────────────────────────────────────────
# unclassed_text
# ─────────────────────────────────────────────────────────────────────────────

def test_unclassed_text_elements_warn():
    html = "<h1>Hi</h1>\n<p>Body</p>\n<span class='x'>ok</span>\n<a href='/'>link</a>"
    violations = validate_unclassed_text(html)
    assert [v.line for v in violations] == [1, 2, 4]
    assert all(v.severity is Severity.WARNING for v in violations)


def test_unclassed_text_ignores_similar_tags():
    assert validate_unclassed_text("<pre>x</pre><article></article><abbr>y</abbr>") == []


# ─────────────────────────────────────────────────────────────────────────────
# run_validators / validate_output
# ─────────────────────────────────────────────────────────────────────────────

def test_run_validators_filters_kwargs_per_rule():
    violations = run_validators("<p>x</p>", page_type=PageType.CASE_STUDY)
    rules = {v.rule for v in violations}
    assert rules == {"required_wrappers", "unclassed_text"}


def test_run_validators_subset_and_unknown():
    violations = run_validators('<p style="x:1">x</p>', ["inline_style", "nope"])
    assert [v.rule for v in violations] == ["inline_style"]


def test_run_validators_ignores_comments_and_keeps_lines():
    html = '<!--\n<p style="color: #fff">old</p>\n-->\n<p class="a" style="margin:0">x</p>'
    violations = run_validators(html, ["inline_style", "hardcoded_color"])
    assert len(violations) == 1
    assert violations[0].line == 4


def test_run_validators_reports_crashing_rule(monkeypatch):
    def boom(html):
        raise RuntimeError("bad regex day")
    monkeypatch.setitem(VALIDATORS, "boom", boom)
    violations = run_validators("<p></p>", ["boom"])
    assert violations[0].message == "Validator crash: bad regex day"


def test_validate_output_splits_errors_and_warnings():
    html = '<div style="color: #000"><p>x</p></div>'
    errors, warnings = validate_output(html, "case_study")
    assert "Hardcoded color found: #000" in errors
    assert any(e.startswith("Inline style found") for e in errors)
    assert "Missing case-titles" in errors
    assert warnings == ["Text element without class: <p>"]


def test_validate_output_clean():
    assert validate_output(COMPLIANT_CASE_STUDY, PageType.CASE_STUDY) == ([], [])


# ─────────────────────────────────────────────────────────────────────────────
# Files and trees
# ─────────────────────────────────────────────────────────────────────────────

def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_find_html_files_skips_dependency_and_hidden_dirs(tmp_path):
    _write(tmp_path / "index.html", "")
    _write(tmp_path / "case-studies" / "a.html", "")
    _write(tmp_path / "node_modules" / "pkg" / "x.html", "")
    _write(tmp_path / ".cache" / "y.html", "")
    _write(tmp_path / "notes.md", "")
    found = [p.relative_to(tmp_path).as_posix() for p in find_html_files(tmp_path)]
    assert found == ["index.html", "case-studies/a.html"]


def test_find_html_files_single_file(tmp_path):
    page = _write(tmp_path / "one.html", "")
    assert find_html_files(page) == [page]
    assert find_html_files(_write(tmp_path / "x.txt", "")) == []


def test_infer_page_type():
    assert infer_page_type(Path("site/case-studies/a.html")) is PageType.CASE_STUDY
    assert infer_page_type(Path("site/index.html")) is PageType.PAGE


def test_validate_html_file_uses_inferred_page_type(tmp_path):
    page = _write(tmp_path / "case-studies" / "a.html", '<div class="card"></div>')
    rules = {v.rule for v in validate_html_file(page)}
    assert rules == {"required_wrappers"}


def test_validate_tree_report(tmp_path):
    _write(tmp_path / "index.html", '<p class="body-primary">ok</p>')
    _write(tmp_path / "about.html", '<p style="color: #123456">x</p>')
    report = validate_tree(tmp_path)
    assert len(report.files) == 2
    assert report.total_violations == 3
    assert report.total_warnings == 1
    assert report.total_errors == 2
    assert not report.passed()
    passed = {f.path.name: f.passed for f in report.files}
    assert passed == {"about.html": False, "index.html": True}
