"""
Configuration — environment variables and YAML highlight config files
=====================================================================
`.env` in the working directory is loaded once on import, so every entry
point (CLI, library use, tests) sees the same settings.

Recognised variables:
    FOLIO_SCHEMA_PATH            design-system schema JSON (default: ./design-system-schema.json)
    FOLIO_CASE_STUDY_DIR         where generated case studies go (default: case-studies)
    FOLIO_HIGHLIGHT_DELAY_MS     delay between highlights of one block
    FOLIO_HIGHLIGHT_THRESHOLD    visibility threshold (0..1)
    FOLIO_HIGHLIGHT_ROOT_MARGIN  trigger-region inset, CSS shorthand
    FOLIO_DEBUG                  "1"/"true" enables per-activation debug logging

YAML config file schema (every key optional):

    threshold: 0.3
    root_margin: "0px 0px -50px 0px"
    delay_between_highlights_ms: 400
    trigger_all_stagger_ms: 100
    print_stagger_ms: 0
    activate_visible_on_init: false
    debug: false
    selector: ".highlight"
    block_tags: [p, h1, h2, h3, section, div]
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .models import HighlightConfig

load_dotenv()

logger = logging.getLogger("folio.config")

DEFAULT_SCHEMA_FILENAME = "design-system-schema.json"
DEFAULT_CASE_STUDY_DIR = "case-studies"

_TRUTHY = {"1", "true", "yes", "on"}


def schema_path() -> Path:
    raw = os.getenv("FOLIO_SCHEMA_PATH", "").strip()
    return Path(raw) if raw else Path.cwd() / DEFAULT_SCHEMA_FILENAME


def case_study_dir() -> Path:
    return Path(os.getenv("FOLIO_CASE_STUDY_DIR", "").strip() or DEFAULT_CASE_STUDY_DIR)


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in _TRUTHY


def _env_number(name: str, cast) -> Optional[Any]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def highlight_config_from_env(base: Optional[HighlightConfig] = None) -> HighlightConfig:
    """Apply FOLIO_HIGHLIGHT_* / FOLIO_DEBUG overrides on top of `base`."""
    base = base or HighlightConfig()
    margin = os.getenv("FOLIO_HIGHLIGHT_ROOT_MARGIN", "").strip() or None
    return base.with_overrides(
        delay_between_highlights_ms=_env_number("FOLIO_HIGHLIGHT_DELAY_MS", int),
        threshold=_env_number("FOLIO_HIGHLIGHT_THRESHOLD", float),
        root_margin=margin,
        debug=_env_bool("FOLIO_DEBUG"),
    )


def load_highlight_config(path: str | Path) -> HighlightConfig:
    """
    Parse a YAML highlight config file.

    Raises
    ------
    FileNotFoundError  — file doesn't exist
    ValueError         — unknown keys or invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Highlight config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"'{path}': expected a mapping at the top level")

    config = HighlightConfig.from_mapping(raw, source=str(path))
    logger.debug("Loaded highlight config from %s", path)
    return config
