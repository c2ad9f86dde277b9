"""
Design-System Prompt Builder
============================
Builds the prompt bundles handed to an external LLM when drafting portfolio
pages. Nothing here talks to a model: callers get a PromptBundle and decide
what to do with it.

The design-system schema JSON is optional. When it can't be loaded the
builder logs the problem and carries on with `schema = None`.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import jsonschema

from . import config

logger = logging.getLogger("folio.prompts")


SYSTEM_PROMPT = """You are a UX design assistant that strictly follows the portfolio design system.

DESIGN SYSTEM CONSTRAINTS:
You MUST follow these rules exactly:

COLOR SYSTEM:
- Use ONLY these CSS variables:
  Primary: var(--primary-blue), var(--primary-pink), var(--primary-green), var(--primary-orange)
  Light: var(--light-blue), var(--light-pink), var(--light-green), var(--light-orange)
  Lightest: var(--lightest-blue), var(--lightest-pink), var(--lightest-green), var(--lightest-orange)
  Functional: var(--text-dark), var(--text-light), var(--border-gray), var(--bg-light), var(--btn-hover)

TYPOGRAPHY CLASSES:
- Headers: .hero-primary, .hero-accent, .header1-primary, .header2-primary, .header2-accent, .header3-primary
- Body: .body-primarylrg, .body-primary-bold, .body-primary
- Special: .btn-label, .metric-lrg, .caption-spaced, .quote

COMPONENTS:
- Layout: .container, .main-page, .grid-2-2, .cards-3, .basic-section
- Cards: .card, .hero-card, .stat-card, .project-card
- Buttons: .btn, .btn-square (with .btn-primary/.btn-secondary variants)
- Navigation: .navbar, .nav-links, .nav-link, .nav-link-active
- Images: .basic-image, .image-help, .image-caption, .case-header-img

HIGHLIGHT SYSTEM:
- Use <span class="highlight-text combo-[color]-light"> for inline highlights
- Available colors: combo-blue-light, combo-pink-light, combo-green-light, combo-orange-light

RESPONSIVE RULES:
- Use clamp() for all spacing and typography
- Mobile-first: min-width media queries only
- Breakpoints: 480px, 768px, 1024px
- All interactive elements: min-height: 44px

ACCESSIBILITY:
- All images: descriptive alt text
- Interactive elements: appropriate ARIA labels
- Semantic HTML structure
- Keyboard navigation support

STRICT PROHIBITIONS:
- NO inline styles (except background-image on project cards)
- NO hardcoded hex/color values
- NO custom CSS classes (use design system only)
- NO skipping required wrapper elements

CONTENT PATTERNS:
CASE STUDY PATTERN:
1. .case-header-img
2. .case-titles (h1.hero-primary + h2.header2-accent)
3. .summary-duties (.summary + .duties-list)
4. #intro section with .text-block
5. Alternating .image-text/.text-block sections
6. .comparison-table for metrics

HOME PAGE PATTERN:
1. .hero with .hero-background
2. .hero-content with avatar
3. .hero-cards (3 .stat-card)
4. .projects with .project-card-container

YOUR TASK: Generate design-system-compliant HTML based on user requests.
OUTPUT: Only valid HTML that follows all rules above."""


CASE_STUDY_TEMPLATE = """Generate a case study page with this structure:

{caseStudyData}

REQUIRED STRUCTURE:
1. <img src="{headerImage}" class="case-header-img" alt="{altText}">
2. <div class="case-titles">
   <h1 class="hero-primary">{title}</h1>
   <h2 class="header2-accent">{subtitle}</h2>
</div>
3. <div class="summary-duties">
   <div class="summary">
     <h2 class="header1-primary">Executive Summary</h2>
     {summaryContent}
   </div>
   <hr class="vertical-hr"/>
   <div class="duties-list">
     {dutiesContent}
   </div>
</div>
4. <div id="intro">
   <div class="text-block">
     <h2 class="header1-primary">Introduction</h2>
     {introContent}
   </div>
</div>
5. {contentSections}
6. {metricsTable}
7. Standard footer with contact info

USE HIGHLIGHTS: For key metrics and findings, use:
<span class="highlight-text combo-blue-light">text</span>
<span class="highlight-text combo-green-light">text</span>
<span class="highlight-text combo-orange-light">text</span>
<span class="highlight-text combo-pink-light">text</span>"""


COMPONENT_TEMPLATE = """Generate a {componentType} component:

Properties: {properties}

AVAILABLE COMPONENT TYPES:
- card: Use .card with inner content structure
- button: Use .btn or .btn-square with variant
- metric: Use .metric-lrg in .card with .header2-accent
- highlight: Use .highlight-text with appropriate color
- grid: Use .grid-2-2 or .cards-3
- section: Use .basic-section with .text-block

OUTPUT: HTML only, no explanations."""


PAGE_TEMPLATE = """Generate a {pageType} page:

{pageData}

PAGE TYPES:
- caseStudy: Follow case study pattern
- home: Follow home page pattern
- about: Follow about page pattern

OUTPUT: Complete HTML page with header, main, footer."""


CONSTRAINTS: dict[str, list[str]] = {
    "caseStudy": [
        "Must include case-header-img",
        "Must include case-titles with hero-primary and header2-accent",
        "Must include summary-duties section",
        "Must include #intro section",
        "Must use highlight-text for key points",
        "Must include appropriate alt text for images",
    ],
    "component": [
        "Use only design system CSS classes",
        "No inline styles",
        "Include accessibility attributes",
        "Use appropriate semantic HTML",
    ],
    "page": [
        "Include proper HTML structure",
        "Include navigation",
        "Include footer",
        "Follow mobile-first responsive design",
    ],
}

# Highlight/row colors cycle in these orders
_SUMMARY_COLORS = ["combo-blue-light", "combo-orange-light", "combo-pink-light", "combo-green-light"]
_TABLE_COLORS = ["blue", "pink", "orange", "green"]

DEFAULT_DUTIES: list[dict[str, str]] = [
    {"icon": "user-circle-duotone.svg", "label": "Role:", "value": "UX Designer"},
    {"icon": "calendar-dots-duotone.svg", "label": "Duration:", "value": "3 months"},
    {"icon": "list-checks-duotone.svg", "label": "Responsibilities:",
     "value": "UX Research, UX Design, Wireframing, Prototyping"},
]

CASE_STUDY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["title"],
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "subtitle": {"type": "string"},
        "headerImage": {"type": "string"},
        "altText": {"type": "string"},
        "executiveSummary": {"type": "string"},
        "additionalSummary": {"type": "string"},
        "metrics": {"type": "array", "items": {"type": "string"}},
        "duties": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["icon", "label", "value"],
                "properties": {
                    "icon": {"type": "string"},
                    "label": {"type": "string"},
                    "value": {"type": "string"},
                },
            },
        },
        "problemStatement": {"type": "string"},
        "introduction": {"type": "string"},
        "sections": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["title", "content"],
                "properties": {
                    "title": {"type": "string"},
                    "subtitle": {"type": "string"},
                    "content": {"type": "string"},
                    "image": {"type": "string"},
                    "imageAlt": {"type": "string"},
                    "imageCaption": {"type": "string"},
                },
            },
        },
        "comparisonMetrics": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["metric", "original", "redesign", "difference"],
            },
        },
    },
}


@dataclass
class PromptBundle:
    system_prompt: str
    user_prompt: str
    constraints: list[str] = field(default_factory=list)

    def combined(self) -> str:
        return f"{self.system_prompt}\n\n{self.user_prompt}"


def load_schema(path: Optional[str | Path] = None) -> Optional[dict[str, Any]]:
    """Read the design-system schema JSON. Any failure is logged and yields None."""
    path = Path(path) if path is not None else config.schema_path()
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Error loading design system schema from %s: %s", path, exc)
        return None


class DesignSystemPrompts:
    """
    Fills the prompt templates from structured page data.

    Usage:
        prompts = DesignSystemPrompts()
        bundle = prompts.generate_case_study({"title": "...", "metrics": [...]})
        payload = prompts.format_for_llm(bundle)
    """

    def __init__(self, schema_path: Optional[str | Path] = None) -> None:
        self.schema = load_schema(schema_path)
        self.system_prompt = SYSTEM_PROMPT
        self.templates = {
            "caseStudy": CASE_STUDY_TEMPLATE,
            "component": COMPONENT_TEMPLATE,
            "page": PAGE_TEMPLATE,
        }

    @property
    def schema_loaded(self) -> bool:
        return self.schema is not None

    # ── Case study ───────────────────────────────────────────────────────────

    def generate_case_study(self, data: dict[str, Any]) -> PromptBundle:
        """
        Fill the case-study template from `data`.

        Raises ValueError when `data` doesn't match CASE_STUDY_SCHEMA.
        """
        try:
            jsonschema.validate(instance=data, schema=CASE_STUDY_SCHEMA)
        except jsonschema.ValidationError as exc:
            raise ValueError(f"Invalid case study data: {exc.message}") from exc

        # Data JSON goes in first; every later placeholder replaces its first occurrence only
        filled = self.templates["caseStudy"].replace(
            "{caseStudyData}", json.dumps(data, indent=2),
        )
        replacements = [
            ("{headerImage}", data.get("headerImage", "")),
            ("{altText}", data.get("altText") or "Case study header image"),
            ("{title}", data.get("title", "")),
            ("{subtitle}", data.get("subtitle", "")),
            ("{summaryContent}", self.summary_content(data)),
            ("{dutiesContent}", self.duties_content(data)),
            ("{introContent}", self.intro_content(data)),
            ("{contentSections}", self.content_sections(data)),
            ("{metricsTable}", self.metrics_table(data)),
        ]
        for placeholder, value in replacements:
            filled = filled.replace(placeholder, value, 1)

        return PromptBundle(
            system_prompt=self.system_prompt,
            user_prompt=filled,
            constraints=self.constraints_for("caseStudy"),
        )

    def summary_content(self, data: dict[str, Any]) -> str:
        html = f'<p class="body-primary">{data.get("executiveSummary", "")}</p>'
        metrics = data.get("metrics")
        if isinstance(metrics, list) and metrics:
            html += ('<ul style="margin-left: 2rem; display: flex; '
                     'flex-direction: column; gap: .5rem;">')
            for i, metric in enumerate(metrics):
                color = _SUMMARY_COLORS[i % len(_SUMMARY_COLORS)]
                html += (f'<li class="body-primary">'
                         f'<span class="highlight-text {color}">{metric}</span></li>')
            html += "</ul>"
        if data.get("additionalSummary"):
            html += f'<p class="body-primary">{data["additionalSummary"]}</p>'
        return html

    def duties_content(self, data: dict[str, Any]) -> str:
        html = ""
        for duty in data.get("duties") or DEFAULT_DUTIES:
            html += f"""
        <div class="duties-item">
          <img src="../assets/images/icons/{duty['icon']}" alt="{duty['label'].lower()} icon"/>
          <div class="duties-text-div">
            <p>{duty['label']}</p>
            <p class="body-primary-bold">{duty['value']}</p>
          </div>
        </div>"""
        return html

    def intro_content(self, data: dict[str, Any]) -> str:
        question = data.get("problemStatement") or "What is this project about?"
        return f"""
      <h3 class="header2-accent">{question}</h3>
      <p class="body-primary">{data.get("introduction", "")}</p>"""

    def content_sections(self, data: dict[str, Any]) -> str:
        sections = data.get("sections") or []
        html = ""
        for i, section in enumerate(sections):
            spacing = "1rem" if i == len(sections) - 1 else "3rem"
            subtitle = (f'<h3 class="header2-accent">{section["subtitle"]}</h3>'
                        if section.get("subtitle") else "")
            html += f"""
        <div class="text-block" style="margin-bottom: {spacing}">
          <h2 class="header1-primary">{section['title']}</h2>
          {subtitle}
          <p class="body-primary">{section['content']}</p>
        </div>"""
            if section.get("image"):
                html += f"""
          <figure>
            <figcaption class="image-caption caption-spaced">
              {section.get("imageCaption") or "Screenshot of design"}
            </figcaption>
            <img class="basic-image image-help" src="{section['image']}"
                 alt="{section.get('imageAlt') or 'Design screenshot'}">
          </figure>"""
        return html

    def metrics_table(self, data: dict[str, Any]) -> str:
        rows = data.get("comparisonMetrics")
        if not isinstance(rows, list) or not rows:
            return ""
        html = """
      <table class="comparison-table">
        <thead>
          <tr>
            <th class="header3-primary"></th>
            <th class="header3-primary" style="color: var(--text-light)">Original Design</th>
            <th class="header3-primary" style="color: var(--text-light)">Redesign</th>
            <th class="header3-primary" style="color: var(--text-light)">Difference</th>
          </tr>
        </thead>
        <tbody>"""
        for i, row in enumerate(rows):
            color = _TABLE_COLORS[i % len(_TABLE_COLORS)]
            html += f"""
        <tr>
          <th class="header3-primary trh combo-{color}">{row['metric']}</th>
          <td class="body-primarylrg combo-{color}-light">{row['original']}</td>
          <td class="body-primarylrg combo-{color}-light">{row['redesign']}</td>
          <td class="body-primarylrg combo-{color}-light td-right">{row['difference']}</td>
        </tr>"""
        html += """
        </tbody>
      </table>"""
        return html

    # ── Components and pages ─────────────────────────────────────────────────

    def component_prompt(self, component_type: str, properties: dict[str, Any]) -> PromptBundle:
        user = (self.templates["component"]
                .replace("{componentType}", component_type)
                .replace("{properties}", json.dumps(properties, indent=2)))
        return PromptBundle(self.system_prompt, user, self.constraints_for("component"))

    def page_prompt(self, page_type: str, page_data: dict[str, Any]) -> PromptBundle:
        user = (self.templates["page"]
                .replace("{pageType}", page_type)
                .replace("{pageData}", json.dumps(page_data, indent=2)))
        return PromptBundle(self.system_prompt, user, self.constraints_for("page"))

    @staticmethod
    def constraints_for(kind: str) -> list[str]:
        return list(CONSTRAINTS.get(kind, []))

    def format_for_llm(self, bundle: PromptBundle) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "system": bundle.system_prompt,
            "user": bundle.user_prompt,
            "constraints": bundle.constraints,
            "format": "html",
        }
        if self.schema is not None:
            payload["schema"] = self.schema
        return payload
