#!/usr/bin/env python3
"""Look up one MP/MLA on PRS India from the terminal.

Resolves the name to a profile page, prints the extracted fields and the
probe telemetry, and appends the lookup to the lookup log.

Usage::

    python scripts/lookup.py "Rahul Gandhi"                 # as MP (default)
    python scripts/lookup.py "Atishi" --type MLA
    python scripts/lookup.py "Dr. Shashi Tharoor" --json    # raw JSON
    python scripts/lookup.py --recent 10                    # last 10 lookups

Exit code is 0 when a profile was found and 1 otherwise.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Ensure the project is importable
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from prs_track.models import ROLES, ResolutionResult  # noqa: E402
from prs_track.resolver import resolve_member  # noqa: E402
from prs_track.run_log import LookupLogger, load_recent  # noqa: E402

console = Console()

_PROFILE_ROWS: tuple[tuple[str, str], ...] = (
    ("Name", "name"),
    ("Party", "party"),
    ("State", "state"),
    ("Constituency", "constituency"),
    ("Term", "termStart"),
    ("End of term", "termEnd"),
    ("No. of terms", "noOfTerm"),
    ("Membership", "membership"),
    ("Age", "age"),
    ("Gender", "gender"),
    ("Education", "education"),
)

_METRIC_ROWS: tuple[tuple[str, str, str, str], ...] = (
    ("Attendance", "attendance", "natAttendance", "stateAttendance"),
    ("Debates", "debates", "natDebates", "stateDebates"),
    ("Questions", "questions", "natQuestions", "stateQuestions"),
    ("Private member bills", "pmb", "natPMB", "statePMB"),
)


def _print_result(result: ResolutionResult) -> None:
    data = result.profile.to_dict()
    if not result.found:
        console.print(
            Panel(
                f"[bold red]No profile found[/] for {result.query.name!r} "
                f"(searched as {result.searched_as}, "
                f"{result.total_urls_checked} URLs checked)",
                border_style="red",
            )
        )
    else:
        title = f"[bold]{data['name']}[/] ({result.found_as})"
        if result.role_switched:
            title += f" [yellow]searched as {result.searched_as}[/]"
        console.print(Panel(f"{title}\n[dim]{result.source_url}[/]", border_style="cyan"))

        profile = Table(show_header=False, box=None)
        profile.add_column(style="bold")
        profile.add_column()
        for label, key in _PROFILE_ROWS:
            profile.add_row(label, str(data[key]))
        if data["note"]:
            profile.add_row("Note", str(data["note"]))
        console.print(profile)

        metrics = Table(title="Performance")
        metrics.add_column("Metric")
        metrics.add_column("Member", justify="right")
        metrics.add_column("National avg", justify="right")
        metrics.add_column("State avg", justify="right")
        for label, own, nat, st in _METRIC_ROWS:
            metrics.add_row(label, str(data[own]), str(data[nat]), str(data[st]))
        console.print(metrics)

    passes = Table(title="Probe passes")
    passes.add_column("Role")
    passes.add_column("Reduced")
    passes.add_column("Tiers", justify="right")
    passes.add_column("URLs", justify="right")
    passes.add_column("Time", justify="right")
    passes.add_column("Result")
    for p in result.passes:
        passes.add_row(
            p.role,
            "yes" if p.reduced else "no",
            f"{p.tiers_probed}/{p.tiers_total}",
            str(len(p.urls_checked)),
            f"{p.elapsed_s:.2f}s",
            "[green]hit[/]" if p.found else "[dim]miss[/]",
        )
    console.print(passes)


def _print_recent(limit: int) -> None:
    table = Table(title=f"Last {limit} lookups")
    table.add_column("When")
    table.add_column("Name")
    table.add_column("Asked")
    table.add_column("Found")
    table.add_column("URLs", justify="right")
    table.add_column("Time", justify="right")
    for rec in load_recent(limit):
        table.add_row(
            rec.started_at[:16].replace("T", " "),
            rec.name,
            rec.searched_as,
            rec.found_as or f"[dim]{rec.status}[/]",
            str(rec.urls_checked),
            f"{rec.duration_s:.1f}s" if rec.duration_s is not None else "-",
        )
    console.print(table)


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve an MP/MLA to their PRS India profile.")
    parser.add_argument("name", nargs="?", help="Member name, e.g. 'Rahul Gandhi'.")
    parser.add_argument(
        "--type",
        dest="role",
        default="MP",
        type=str.upper,
        choices=ROLES,
        help="Member type to search first (default: MP).",
    )
    parser.add_argument("--constituency", default=None, help="Constituency hint (metadata only).")
    parser.add_argument("--state", default=None, help="State hint (metadata only).")
    parser.add_argument("--json", action="store_true", help="Print the raw result as JSON.")
    parser.add_argument("--no-log", action="store_true", help="Do not append to the lookup log.")
    parser.add_argument("--recent", type=int, default=0, help="Show the last N logged lookups.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.recent:
        _print_recent(args.recent)
        return 0
    if not args.name or not args.name.strip():
        parser.error("a member name is required")

    if args.no_log:
        result = resolve_member(args.name, args.role, args.constituency, args.state)
    else:
        with LookupLogger(args.name, args.role) as log:
            result = resolve_member(args.name, args.role, args.constituency, args.state)
            log.record(result)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_result(result)
    return 0 if result.found else 1


if __name__ == "__main__":
    sys.exit(main())
