#!/usr/bin/env python3
"""
CLI Entry Point — portfolio tooling from the terminal
=====================================================
Usage:
    python -m folio validate [ROOT] [--allow-warnings]
    python -m folio simulate page.html --mode scroll --scroll-step 250
    python -m folio prompt data.yaml [--json]
    python -m folio case-study --answers answers.yaml [--overwrite]

`validate` exits 1 when any file has a violation (warnings included unless
--allow-warnings is given), so it can gate a commit.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from . import config
from .case_study import load_answers, prompt_answers, write_case_study
from .models import HighlightConfig
from .prompts import DesignSystemPrompts
from .simulation import SimulationMode, simulate
from .timeline import TimelineRenderer
from .validators import VALIDATORS, PageType, run_validators, validate_tree

logger = logging.getLogger("folio.cli")


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
        force=True,  # re-apply even if already configured
    )


def _split_rules(raw: Optional[str]) -> Optional[list[str]]:
    if not raw:
        return None
    return [r.strip() for r in raw.split(",") if r.strip()]


# ─────────────────────────────────────────────────────────────────────────────
# validate
# ─────────────────────────────────────────────────────────────────────────────

def cmd_validate(args) -> int:
    """Check every HTML file under ROOT (or a single file) against the design system."""
    root = Path(args.root)
    if not root.exists():
        print(f"ERROR: Path does not exist: {root}", file=sys.stderr)
        return 2
    rules = _split_rules(args.rules)

    if args.page_type:
        # Explicit page type: validate just this file the way validate_output would
        if not root.is_file():
            print("ERROR: --page-type needs a single HTML file", file=sys.stderr)
            return 2
        html = root.read_text(encoding="utf-8", errors="replace")
        violations = run_validators(html, rules, page_type=PageType(args.page_type))
        for v in violations:
            marker = "⚠️ " if v.is_warning else "❌"
            print(f"  {marker} {v.format()}")
        errors = [v for v in violations if not v.is_warning]
        failed = errors if args.allow_warnings else violations
        return 1 if failed else 0

    report = validate_tree(root, rules)
    print(f"🔍 Validating {len(report.files)} HTML files against design system...\n")

    for file_report in report.files:
        print(f"📄 {file_report.path}")
        if file_report.passed:
            print("  ✅ Passed\n")
            continue
        for v in file_report.violations:
            if v.is_warning:
                print(f"  ⚠️  {v.format()}")
            else:
                print(f"  ❌ {v.rule.upper()}: {v.format()}")
        print("")

    print("=" * 50)
    print(f"RESULTS: {report.total_violations} violations, {report.total_warnings} warnings")

    if not report.passed(allow_warnings=args.allow_warnings):
        print("\n❌ Some files need attention. Please fix violations before committing.")
        return 1
    print("\n✅ All files comply with the design system!")
    return 0


def _validate_subparsers(subparsers) -> None:
    ap = subparsers.add_parser(
        "validate",
        help="Check HTML files for inline styles, hardcoded colors and missing wrappers",
    )
    ap.add_argument("root", nargs="?", default=".",
                    help="Directory (or single file) to check (default: .)")
    ap.add_argument("--rules", default="",
                    help=f"Comma-separated subset of rules: {', '.join(VALIDATORS)}")
    ap.add_argument("--page-type", choices=[p.value for p in PageType], default=None,
                    help="Treat ROOT as a single file of this page type")
    ap.add_argument("--allow-warnings", action="store_true",
                    help="Exit 0 when only warnings remain")
    ap.set_defaults(func=cmd_validate)


# ─────────────────────────────────────────────────────────────────────────────
# simulate
# ─────────────────────────────────────────────────────────────────────────────

def cmd_simulate(args) -> int:
    """Replay a page's highlight reveal on a virtual clock and print the timeline."""
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: File does not exist: {path}", file=sys.stderr)
        return 2

    try:
        base = config.load_highlight_config(args.config) if args.config else HighlightConfig()
        highlight_config = config.highlight_config_from_env(base).with_overrides(
            delay_between_highlights_ms=args.delay,
            trigger_all_stagger_ms=args.stagger,
        )
    except (FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    renderer = TimelineRenderer(quiet=not args.verbose)
    result = simulate(
        path.read_text(encoding="utf-8"),
        config=highlight_config,
        mode=args.mode,
        scroll_step_ms=args.scroll_step,
        renderer=renderer,
    )

    if result.fragment_count == 0:
        print(f"No highlights ({highlight_config.selector}) found in {path}.")
        return 0

    print(renderer.render_table())
    print("-" * 60)
    print(f"{result.fragment_count} highlights | {renderer.summary()} | "
          f"last activation at {result.duration_ms:.0f}ms")

    if args.write:
        Path(args.write).write_text(result.html, encoding="utf-8")
        print(f"Activated page written to: {args.write}")
    return 0


def _simulate_subparsers(subparsers) -> None:
    ap = subparsers.add_parser(
        "simulate",
        help="Print when each highlight in a page would activate",
    )
    ap.add_argument("file", help="HTML page to simulate")
    ap.add_argument("--mode", choices=[m.value for m in SimulationMode],
                    default=SimulationMode.SCROLL.value,
                    help="How the reveal is triggered (default: scroll)")
    ap.add_argument("--scroll-step", type=int, default=250,
                    help="Milliseconds between successive highlights entering the viewport")
    ap.add_argument("--delay", type=int, default=None,
                    help="Delay between highlights of one block (default: 400)")
    ap.add_argument("--stagger", type=int, default=None,
                    help="Stagger for trigger-all mode (default: 100)")
    ap.add_argument("--config", default="", help="YAML highlight config file")
    ap.add_argument("--write", default="", help="Write the activated HTML here")
    ap.set_defaults(func=cmd_simulate)


# ─────────────────────────────────────────────────────────────────────────────
# prompt
# ─────────────────────────────────────────────────────────────────────────────

def cmd_prompt(args) -> int:
    """Fill the case-study prompt from a YAML/JSON data file."""
    path = Path(args.data)
    if not path.exists():
        print(f"ERROR: File does not exist: {path}", file=sys.stderr)
        return 2
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    prompts = DesignSystemPrompts(args.schema or None)
    try:
        bundle = prompts.generate_case_study(data)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(prompts.format_for_llm(bundle), indent=2))
    else:
        print(bundle.combined())
        print("\nCONSTRAINTS:")
        for c in bundle.constraints:
            print(f"- {c}")
    return 0


def _prompt_subparsers(subparsers) -> None:
    ap = subparsers.add_parser("prompt", help="Build a case-study LLM prompt from a data file")
    ap.add_argument("data", help="YAML or JSON case-study data")
    ap.add_argument("--schema", default="", help="Design-system schema JSON")
    ap.add_argument("--json", action="store_true",
                    help="Print the LLM payload (system/user/constraints) as JSON")
    ap.set_defaults(func=cmd_prompt)


# ─────────────────────────────────────────────────────────────────────────────
# case-study
# ─────────────────────────────────────────────────────────────────────────────

def cmd_case_study(args) -> int:
    """Create a placeholder case-study page carrying its generation prompt."""
    print("🎨 Generating new case study...\n")
    try:
        answers = load_answers(args.answers) if args.answers else prompt_answers()
    except (FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\n(cancelled)")
        return 1

    try:
        dest = write_case_study(
            answers,
            args.output_dir or None,
            overwrite=args.overwrite,
            prompts=DesignSystemPrompts(args.schema or None),
        )
    except FileExistsError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print("\n✅ Case study template created!")
    print(f"📁 File: {dest}")
    print("\n📋 Next steps:")
    print("1. Add your images to assets/images/")
    print("2. Use the generated prompt with your LLM to fill in content")
    print("3. Run 'python -m folio validate' to check for design system compliance")
    print(f'\n🔗 Add to index.html: <a href="case-studies/{answers.file_name}">{answers.title}</a>')
    return 0


def _case_study_subparsers(subparsers) -> None:
    ap = subparsers.add_parser("case-study", help="Scaffold a new case-study page")
    ap.add_argument("--answers", default="",
                    help="YAML answers file (asks interactively when omitted)")
    ap.add_argument("--output-dir", "-o", dest="output_dir", default="",
                    help="Where to write the page (default: $FOLIO_CASE_STUDY_DIR or case-studies)")
    ap.add_argument("--schema", default="", help="Design-system schema JSON")
    ap.add_argument("--overwrite", action="store_true", help="Replace an existing page")
    ap.set_defaults(func=cmd_case_study)


# ─────────────────────────────────────────────────────────────────────────────
# main
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folio",
        description="folio — portfolio site tooling (highlights, design-system checks, prompts)",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    subparsers = parser.add_subparsers(dest="subcommand", metavar="SUBCOMMAND")
    _validate_subparsers(subparsers)
    _simulate_subparsers(subparsers)
    _prompt_subparsers(subparsers)
    _case_study_subparsers(subparsers)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 2
    return func(args)


if __name__ == "__main__":
    sys.exit(main())
