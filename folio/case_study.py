"""
Case-Study Generator — answers → prompt → placeholder page
===========================================================
Collects the handful of facts a new case study needs (from a YAML answers
file or interactively), turns them into a design-system prompt and writes a
placeholder page under case-studies/ that carries the prompt for pasting
into an LLM.

Answers file schema (only `title` and `slug` are required):

    title: "Redesigning a Healthcare Portal"
    subtitle: "Improving appointment scheduling"
    slug: healthcare-portal
    header_image: healthcare/cover.webp      # relative to assets/images/
    executive_summary: "I led a redesign that ..."
    metrics:                                 # any of METRIC_CHOICES
      - Time reduction
      - Error rate reduction
    role: Lead UX Designer                   # default: UX Designer
    duration: 4 months                       # default: 3 months
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from . import config
from .prompts import DesignSystemPrompts, PromptBundle

logger = logging.getLogger("folio.case_study")

SLUG_RE = re.compile(r"^[a-z0-9-]+$")

METRIC_CHOICES: list[str] = [
    "Success rate improvement",
    "Time reduction",
    "User satisfaction increase",
    "Task completion improvement",
    "Conversion rate increase",
    "Error rate reduction",
]

RESPONSIBILITIES = "UX Research, UX Design, Wireframing, Prototyping"


@dataclass
class CaseStudyAnswers:
    title: str
    slug: str
    subtitle: str = ""
    header_image: str = "project/cover.webp"
    executive_summary: str = ""
    metrics: list[str] = field(default_factory=list)
    role: str = "UX Designer"
    duration: str = "3 months"

    def __post_init__(self) -> None:
        self.title = self.title.strip()
        self.slug = self.slug.strip()
        if not self.title:
            raise ValueError("Title is required")
        if not SLUG_RE.match(self.slug):
            raise ValueError(
                f"Invalid slug {self.slug!r}: use lowercase letters, numbers, and hyphens only"
            )
        unknown = [m for m in self.metrics if m not in METRIC_CHOICES]
        if unknown:
            raise ValueError(f"Unknown metrics {unknown}. Choose from: {METRIC_CHOICES}")

    @property
    def file_name(self) -> str:
        return f"{self.slug}.html"


# ─────────────────────────────────────────────────────────────────────────────
# Collecting answers
# ─────────────────────────────────────────────────────────────────────────────

def load_answers(path: str | Path) -> CaseStudyAnswers:
    """
    Parse a YAML answers file.

    Raises
    ------
    FileNotFoundError  — file doesn't exist
    ValueError         — required fields missing or values invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Answers file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    if not raw.get("title"):
        raise ValueError(f"'{path}': 'title' field is required")
    if not raw.get("slug"):
        raise ValueError(f"'{path}': 'slug' field is required")

    defaults = CaseStudyAnswers.__dataclass_fields__
    try:
        return CaseStudyAnswers(
            title=str(raw["title"]),
            slug=str(raw["slug"]),
            subtitle=str(raw.get("subtitle") or ""),
            header_image=str(raw.get("header_image") or defaults["header_image"].default),
            executive_summary=str(raw.get("executive_summary") or ""),
            metrics=[str(m) for m in (raw.get("metrics") or [])],
            role=str(raw.get("role") or defaults["role"].default),
            duration=str(raw.get("duration") or defaults["duration"].default),
        )
    except ValueError as exc:
        raise ValueError(f"'{path}': {exc}") from exc


def _ask(ask: Callable[[str], str], message: str, default: str = "",
         check: Optional[Callable[[str], Optional[str]]] = None) -> str:
    suffix = f" ({default})" if default else ""
    while True:
        answer = ask(f"{message}{suffix} ").strip() or default
        problem = check(answer) if check else None
        if problem is None:
            return answer
        print(f"  {problem}")


def prompt_answers(ask: Callable[[str], str] = input) -> CaseStudyAnswers:
    """Collect answers on the terminal, re-asking until each value is valid."""
    title = _ask(ask, "Case study title:",
                 check=lambda v: None if v else "Title is required")
    subtitle = _ask(ask, "Case study subtitle:")
    slug = _ask(ask, "URL slug (e.g., healthcare-portal):",
                check=lambda v: None if SLUG_RE.match(v)
                else "Use lowercase letters, numbers, and hyphens only")
    header_image = _ask(ask, "Header image path (relative to assets/images/):",
                        default="project/cover.webp")
    summary = _ask(ask, "Executive summary (1-2 sentences):")

    print("Key metrics to highlight:")
    for i, choice in enumerate(METRIC_CHOICES, start=1):
        print(f"  [{i}] {choice}")

    def _check_metrics(value: str) -> Optional[str]:
        picks = [p for p in re.split(r"[,\s]+", value) if p]
        if all(p.isdigit() and 1 <= int(p) <= len(METRIC_CHOICES) for p in picks):
            return None
        return f"Enter numbers between 1 and {len(METRIC_CHOICES)}, separated by commas"

    picked = _ask(ask, "Select metrics (e.g. 1,3):", check=_check_metrics)
    metrics = [METRIC_CHOICES[int(p) - 1] for p in re.split(r"[,\s]+", picked) if p]

    role = _ask(ask, "Your role:", default="UX Designer")
    duration = _ask(ask, "Project duration:", default="3 months")

    return CaseStudyAnswers(
        title=title, slug=slug, subtitle=subtitle, header_image=header_image,
        executive_summary=summary, metrics=metrics, role=role, duration=duration,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Building the page
# ─────────────────────────────────────────────────────────────────────────────

def build_case_study_data(answers: CaseStudyAnswers) -> dict[str, Any]:
    return {
        "title": answers.title,
        "subtitle": answers.subtitle,
        "headerImage": f"../assets/images/{answers.header_image}",
        "altText": f"{answers.title} - case study header image",
        "executiveSummary": answers.executive_summary,
        "metrics": [f"{m} through data-driven design" for m in answers.metrics],
        "duties": [
            {"icon": "user-circle-duotone.svg", "label": "Role:", "value": answers.role},
            {"icon": "calendar-dots-duotone.svg", "label": "Duration:", "value": answers.duration},
            {"icon": "list-checks-duotone.svg", "label": "Responsibilities:",
             "value": RESPONSIBILITIES},
        ],
    }


def _comment_safe(text: str) -> str:
    return text.replace("-->", "-- >")


def _script_literal(text: str) -> str:
    # JSON string literals are valid JS; escaping "<" keeps markup out of the script element
    return json.dumps(text).replace("<", "\\u003c")


def render_case_study_page(answers: CaseStudyAnswers, bundle: PromptBundle) -> str:
    preview = bundle.system_prompt[:500]
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Case Study: {answers.title}</title>
    <link rel="stylesheet" href="../assets/css/alt-main.css" />
    <link rel="stylesheet" href="../assets/css/alt-components.css" />
    <link rel="stylesheet" href="../assets/css/responsive.css" />
    <link rel="preconnect" href="https://fonts.googleapis.com" />
    <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin />
    <link href="https://fonts.googleapis.com/css2?family=Figtree:ital,wght@0,300..900;1,300..900&family=Roboto+Serif:ital,opsz,wght@0,8..144,100..900;1,8..144,100..900&display=swap" rel="stylesheet"/>
</head>
<body>
    <header>
        <nav class="navbar">
          <div class="name-links-div">
          <ul class="nav-links">
              <li class="nav-link"><a class="nav-link" href="../index.html">Home</a></li>
              <li class="nav-link"><a class="nav-link" href="../about.html">About Me</a></li>
          </ul>
          </div>
      </nav>
    </header>

    <main>
        <img src="../assets/images/{answers.header_image}" class="case-header-img" alt="{answers.title} - case study header image">
        <div class="case-titles">
            <h1 class="hero-primary">{answers.title}</h1>
            <h2 class="header2-accent">{answers.subtitle}</h2>
        </div>
        <div class="summary-duties">
            <div class="summary"></div>
            <hr class="vertical-hr"/>
            <div class="duties-list"></div>
        </div>

        <!-- GENERATED CONTENT WILL GO HERE -->
        <!-- Use this prompt with your LLM of choice:
        {_comment_safe(preview)}...

        {_comment_safe(bundle.user_prompt)}
        -->

        <div class="basic-section">
            <h2 class="header1-primary">Design System Generated Content</h2>
            <p class="body-primary">Copy the prompt above and use it with an LLM to generate the case study content that follows design system constraints.</p>
            <div class="hero-buttons">
                <button onclick="copyPrompt()" class="btn btn-primary btn-label">Copy Prompt to Clipboard</button>
            </div>
        </div>
    </main>

    <footer class="site-footer">
        <!-- Standard footer -->
    </footer>

    <script>
        const casePrompt = {_script_literal(bundle.combined())};
        function copyPrompt() {{
            navigator.clipboard.writeText(casePrompt);
            alert('Prompt copied to clipboard! Paste it into your LLM.');
        }}
    </script>
</body>
</html>
"""


def write_case_study(
    answers: CaseStudyAnswers,
    output_dir: Optional[str | Path] = None,
    *,
    overwrite: bool = False,
    prompts: Optional[DesignSystemPrompts] = None,
) -> Path:
    """
    Render and write the placeholder page. Returns the written path.

    Raises FileExistsError if the page exists and overwrite is False.
    """
    output_dir = Path(output_dir) if output_dir is not None else config.case_study_dir()
    dest = output_dir / answers.file_name
    if dest.exists() and not overwrite:
        raise FileExistsError(f"Case study already exists: {dest} (use overwrite to replace it)")

    prompts = prompts or DesignSystemPrompts()
    bundle = prompts.generate_case_study(build_case_study_data(answers))

    output_dir.mkdir(parents=True, exist_ok=True)
    dest.write_text(render_case_study_page(answers, bundle), encoding="utf-8")
    logger.info("Case study template written to %s", dest)
    return dest
