#!/usr/bin/env python3
"""
Training Directives CLI.

Deterministic daily training directives with validated narration.

Usage:
    training-directives plan snapshot.json              # Three-day horizon
    training-directives plan snapshot.json --trend RISING --offline
    training-directives score snapshot.json             # Ranked candidates
    training-directives check-templates                 # Fallback self-check
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import get_settings
from .exceptions import SnapshotValidationError, TemplateDefinitionError
from .llm.orchestrator import GenerativeOrchestrator
from .llm.providers import get_llm_client
from .llm.templates import verify_all_templates
from .models import BiometricSnapshot, HorizonContract, NarrationPayload, Trend
from .recommendations.planner import ArcPlanner
from .recommendations.scoring import ScoringEngine
from .utils.log_sanitizer import install_log_sanitizer

console = Console()
logger = logging.getLogger(__name__)


STIMULUS_COLORS = {
    "OVERLOAD": "red",
    "MAINTENANCE": "blue",
    "FLUSH": "green",
    "TEST": "magenta",
}


def load_snapshot(path: str) -> BiometricSnapshot:
    """Read a snapshot JSON file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return BiometricSnapshot.from_dict(data)


def format_stimulus(stimulus: str) -> str:
    color = STIMULUS_COLORS.get(stimulus, "white")
    return f"[{color}]{stimulus}[/{color}]"


def print_narration(narration: NarrationPayload) -> None:
    lines = [
        f"[bold]Focus:[/bold] {narration.session_focus}",
        f"[bold]Avoid:[/bold] {narration.avoid_cue}",
        "",
        narration.insight_summary or "",
    ]
    if narration.insight_detail:
        lines += ["", f"[dim]{narration.insight_detail}[/dim]"]
    source = narration.source.value
    if narration.retry_count:
        source += f", {narration.retry_count} repair"
    console.print(Panel("\n".join(lines), title=f"Today ({source})", box=box.ROUNDED))
    for warning in narration.warnings:
        console.print(f"[yellow]Note: {warning}[/yellow]")


def print_horizon(horizon: HorizonContract) -> None:
    table = Table(title="Three-Day Horizon", box=box.ROUNDED)
    table.add_column("Day", justify="right")
    table.add_column("State")
    table.add_column("Category")
    table.add_column("Stimulus")
    table.add_column("Constraints")

    for entry in horizon:
        table.add_row(
            str(entry.day_offset),
            entry.state.value,
            entry.directive.category.value,
            format_stimulus(entry.directive.stimulus_type.value),
            "; ".join(entry.constraints.describe()),
        )
    console.print(table)


def cmd_plan(args) -> int:
    """Plan today's directive and forecast the next two days."""
    snapshot = load_snapshot(args.snapshot)
    verify_all_templates()

    provider = None if args.offline else get_llm_client()
    planner = ArcPlanner(GenerativeOrchestrator(provider))
    horizon = asyncio.run(planner.plan_horizon(snapshot, args.trend))

    if args.json:
        console.print_json(data=horizon.to_dict())
        return 0

    console.print()
    console.print(Panel(f"[bold]Training Directives[/bold] - state {snapshot.state.value}"))
    print_horizon(horizon)
    console.print()
    print_narration(horizon.today.narration)
    console.print()
    return 0


def cmd_score(args) -> int:
    """Show the ranked candidates and safety envelope for a snapshot."""
    snapshot = load_snapshot(args.snapshot)
    result = ScoringEngine.evaluate(snapshot)

    if args.json:
        console.print_json(data=result.to_dict())
        return 0

    console.print()
    table = Table(title=f"Candidates for {snapshot.state.value}", box=box.ROUNDED)
    table.add_column("Rank", justify="right")
    table.add_column("Category")
    table.add_column("Stimulus")
    table.add_column("Score", justify="right")
    table.add_column("Reason")

    for rank, candidate in enumerate(result.ranked, start=1):
        table.add_row(
            str(rank),
            candidate.category.value,
            format_stimulus(candidate.stimulus_type.value),
            f"{candidate.score:.2f}",
            candidate.reason,
        )
    console.print(table)
    console.print(Panel("\n".join(result.envelope.describe()), title="Safety Envelope", box=box.ROUNDED))
    console.print()
    return 0


def cmd_check_templates(args) -> int:
    """Run the fallback template self-check."""
    try:
        reports = verify_all_templates()
    except TemplateDefinitionError as e:
        console.print(f"[red]{e.message}[/red]")
        for error in e.errors:
            console.print(f"  [red]- {error}[/red]")
        return 1

    table = Table(title="Fallback Templates", box=box.ROUNDED)
    table.add_column("Schema")
    table.add_column("Status")
    for name, report in reports.items():
        table.add_row(name, "[green]ok[/green]" if report.valid else "[red]invalid[/red]")
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="training-directives",
        description="Deterministic daily training directives with validated narration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  training-directives plan snapshot.json
  training-directives plan snapshot.json --trend FALLING --offline
  training-directives score snapshot.json --json
  training-directives check-templates
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    plan_p = subparsers.add_parser("plan", help="Plan the three-day horizon")
    plan_p.add_argument("snapshot", help="Path to a biometric snapshot JSON file")
    plan_p.add_argument(
        "--trend",
        choices=[t.value for t in Trend],
        default=Trend.STABLE.value,
        help="Recent recovery direction used for the forecast",
    )
    plan_p.add_argument(
        "--offline",
        action="store_true",
        help="Skip generation and use fallback narration",
    )
    plan_p.add_argument("--json", action="store_true", help="Print JSON instead of tables")

    score_p = subparsers.add_parser("score", help="Show ranked directive candidates")
    score_p.add_argument("snapshot", help="Path to a biometric snapshot JSON file")
    score_p.add_argument("--json", action="store_true", help="Print JSON instead of tables")

    subparsers.add_parser("check-templates", help="Self-check every fallback template")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    install_log_sanitizer()

    commands = {
        "plan": cmd_plan,
        "score": cmd_score,
        "check-templates": cmd_check_templates,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        return command(args)
    except FileNotFoundError as e:
        console.print(f"[red]Snapshot not found: {e.filename}[/red]")
    except json.JSONDecodeError as e:
        console.print(f"[red]Snapshot is not valid JSON: {e}[/red]")
    except SnapshotValidationError as e:
        console.print(f"[red]Invalid snapshot: {e.message}[/red]")
    except TemplateDefinitionError as e:
        console.print(f"[red]{e.message}[/red]")
        for error in e.errors:
            console.print(f"  [red]- {error}[/red]")
    return 1


if __name__ == "__main__":
    sys.exit(main())
