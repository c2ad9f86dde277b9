"""
Design-System Validators
========================
Deterministic checks over raw HTML text. Each rule returns a list of
Violations carrying the 1-based line of the offending markup.

Rules:
  inline_style       ERROR    style="..." (background-image/size/position only is allowed)
  hardcoded_color    ERROR    3-8 digit hex (#rgb, #rgba, #rrggbb, #rrggbbaa) outside href/src/id values and entities
  required_wrappers  ERROR    case-study pages must contain the mandatory wrapper classes
  unclassed_text     WARNING  h1-h6, p, span and a tags without a class attribute

run_validators() filters kwargs per rule using inspect.signature, so callers
can pass page_type to everything without tripping rules that ignore it.
"""

from __future__ import annotations

import inspect
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger("folio.validators")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class PageType(str, Enum):
    CASE_STUDY = "case_study"
    COMPONENT = "component"
    PAGE = "page"


@dataclass
class Violation:
    rule: str
    severity: Severity
    message: str
    line: Optional[int] = None

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    def format(self) -> str:
        where = f"line {self.line}: " if self.line is not None else ""
        return f"{where}{self.message}"


def _line_of(text: str, pos: int) -> int:
    return text.count("\n", 0, pos) + 1


# ─────────────────────────────────────────────
# Rules
# ─────────────────────────────────────────────

_STYLE_ATTR_RE = re.compile(r"""\bstyle\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)
_ALLOWED_INLINE_PROPERTIES = {"background-image", "background-size", "background-position"}


def validate_inline_styles(html: str) -> list[Violation]:
    """Flag inline style attributes; project cards may set their background inline."""
    violations = []
    for m in _STYLE_ATTR_RE.finditer(html):
        value = m.group(1) if m.group(1) is not None else m.group(2)
        properties = {
            decl.split(":", 1)[0].strip().lower()
            for decl in value.split(";")
            if decl.strip()
        }
        if properties and properties <= _ALLOWED_INLINE_PROPERTIES:
            continue
        violations.append(Violation(
            "inline_style", Severity.ERROR,
            f"Inline style found: {m.group(0)}",
            _line_of(html, m.start()),
        ))
    return violations


_HEX_COLOR_RE = re.compile(r"#[0-9a-fA-F]{3,8}\b")
# href="#intro", id="cafe" and &#123; look like hex but are not colors
_NOT_A_COLOR_RE = re.compile(
    r"""\b(?:href|src|id|for|xlink:href)\s*=\s*(?:"[^"]*"|'[^']*')|&#\w+;""",
    re.IGNORECASE,
)


def validate_hardcoded_colors(html: str) -> list[Violation]:
    """Flag hex color literals; colors must come from the CSS variables."""
    # Blank out non-color regions with same-length padding so positions survive
    masked = _NOT_A_COLOR_RE.sub(lambda m: " " * len(m.group(0)), html)
    return [
        Violation(
            "hardcoded_color", Severity.ERROR,
            f"Hardcoded color found: {m.group(0)}",
            _line_of(html, m.start()),
        )
        for m in _HEX_COLOR_RE.finditer(masked)
    ]


REQUIRED_WRAPPERS: dict[PageType, tuple[str, ...]] = {
    PageType.CASE_STUDY: ("case-header-img", "case-titles", "summary-duties"),
    PageType.COMPONENT: (),
    PageType.PAGE: (),
}

_CLASS_ATTR_RE = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)


def _class_tokens(html: str) -> set[str]:
    tokens: set[str] = set()
    for m in _CLASS_ATTR_RE.finditer(html):
        value = m.group(1) if m.group(1) is not None else m.group(2)
        tokens.update(value.split())
    return tokens


def validate_required_wrappers(html: str,
                               page_type: PageType | str = PageType.PAGE) -> list[Violation]:
    """Check the wrapper classes the page type's layout pattern depends on."""
    page_type = PageType(page_type)
    present = _class_tokens(html)
    return [
        Violation("required_wrappers", Severity.ERROR, f"Missing {name}")
        for name in REQUIRED_WRAPPERS[page_type]
        if name not in present
    ]


_TEXT_TAG_RE = re.compile(r"<(?:h[1-6]|p|span|a)\b[^>]*>", re.IGNORECASE)


def validate_unclassed_text(html: str) -> list[Violation]:
    """Warn about text elements that carry no typography class."""
    violations = []
    for m in _TEXT_TAG_RE.finditer(html):
        tag = m.group(0)
        if _CLASS_ATTR_RE.search(tag) or "image-caption" in tag:
            continue
        violations.append(Violation(
            "unclassed_text", Severity.WARNING,
            f"Text element without class: {tag[:50]}",
            _line_of(html, m.start()),
        ))
    return violations


# ─────────────────────────────────────────────
# Validator registry
# ─────────────────────────────────────────────

VALIDATORS = {
    "inline_style": validate_inline_styles,
    "hardcoded_color": validate_hardcoded_colors,
    "required_wrappers": validate_required_wrappers,
    "unclassed_text": validate_unclassed_text,
}


def _filter_kwargs_for(fn, kwargs: dict) -> dict:
    """Only pass kwargs that the rule function actually accepts."""
    params = inspect.signature(fn).parameters
    if any(p.kind == inspect.Parameter.VAR_KEYWORD for p in params.values()):
        return kwargs
    accepted = {k for k, p in params.items()
                if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD,
                              inspect.Parameter.KEYWORD_ONLY)
                and k != "html"}
    return {k: v for k, v in kwargs.items() if k in accepted}


_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)


def _blank_comments(html: str) -> str:
    """Replace comment text with spaces, keeping newlines so line numbers hold."""
    return _COMMENT_RE.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), html)


def run_validators(html: str, validator_names: Optional[list[str]] = None,
                   **kwargs) -> list[Violation]:
    """
    Run the named rules (all of them by default) and return every violation,
    in rule order. HTML comments are not rendered and are not checked.
    """
    html = _blank_comments(html)
    violations: list[Violation] = []
    for name in validator_names or list(VALIDATORS):
        fn = VALIDATORS.get(name)
        if fn is None:
            logger.warning("Unknown validator: %s", name)
            continue
        try:
            violations.extend(fn(html, **_filter_kwargs_for(fn, kwargs)))
        except Exception as e:
            violations.append(Violation(name, Severity.ERROR, f"Validator crash: {e}"))
    return violations


def validate_output(html: str,
                    page_type: PageType | str = PageType.PAGE) -> tuple[list[str], list[str]]:
    """
    Check LLM-generated markup before it is pasted into a page.

    Returns (errors, warnings) as plain message lists.
    """
    violations = run_validators(html, page_type=page_type)
    errors = [v.message for v in violations if not v.is_warning]
    warnings = [v.message for v in violations if v.is_warning]
    return errors, warnings


# ─────────────────────────────────────────────
# Files and trees
# ─────────────────────────────────────────────

_SKIP_DIRS = {"node_modules", ".git", "dist", "build", "__pycache__"}


def infer_page_type(path: Path) -> PageType:
    """Pages under a case-studies/ directory follow the case-study pattern."""
    return PageType.CASE_STUDY if "case-studies" in path.parts else PageType.PAGE


def validate_html_file(path: str | Path, page_type: Optional[PageType] = None,
                       validator_names: Optional[list[str]] = None) -> list[Violation]:
    path = Path(path)
    try:
        html = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        return [Violation("read_error", Severity.ERROR, f"Failed to read file: {exc}")]
    return run_validators(
        html, validator_names,
        page_type=page_type or infer_page_type(path),
    )


def find_html_files(root: str | Path) -> list[Path]:
    """All *.html files under root, skipping dependency, VCS and hidden directories."""
    root = Path(root)
    if root.is_file():
        return [root] if root.suffix.lower() == ".html" else []
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in _SKIP_DIRS and not d.startswith(".")
        )
        for name in sorted(filenames):
            if name.lower().endswith(".html"):
                found.append(Path(dirpath) / name)
    return found


@dataclass
class FileReport:
    path: Path
    violations: list[Violation] = field(default_factory=list)

    @property
    def warnings(self) -> list[Violation]:
        return [v for v in self.violations if v.is_warning]

    @property
    def errors(self) -> list[Violation]:
        return [v for v in self.violations if not v.is_warning]

    @property
    def passed(self) -> bool:
        return not self.violations


@dataclass
class ValidationReport:
    files: list[FileReport] = field(default_factory=list)

    @property
    def total_violations(self) -> int:
        """Every finding, warnings included."""
        return sum(len(f.violations) for f in self.files)

    @property
    def total_warnings(self) -> int:
        return sum(len(f.warnings) for f in self.files)

    @property
    def total_errors(self) -> int:
        return self.total_violations - self.total_warnings

    def passed(self, allow_warnings: bool = False) -> bool:
        if allow_warnings:
            return self.total_errors == 0
        return self.total_violations == 0


def validate_tree(root: str | Path,
                  validator_names: Optional[list[str]] = None) -> ValidationReport:
    report = ValidationReport()
    for path in find_html_files(root):
        report.files.append(FileReport(path, validate_html_file(path, None, validator_names)))
    logger.debug(
        "Validated %d files: %d violations, %d warnings",
        len(report.files), report.total_violations, report.total_warnings,
    )
    return report
