"""Rich console output for the oss-review CLI.

Summaries go to a shared Console; in GitHub Actions the warning and error
helpers emit workflow annotations instead.
"""

import os
from typing import Any, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from .models import ComponentDiff, DiffResult, Updated, VersionResolution

IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "added": "green",
        "updated": "yellow",
        "removed": "red",
    }
)

# Force colors ON in GitHub Actions (it supports ANSI colors but Rich may incorrectly disable them)
console = Console(
    theme=custom_theme,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def gha_warning(message: str, title: Optional[str] = None) -> None:
    """Emit a warning annotation in GitHub Actions, or a styled line elsewhere."""
    if IS_GITHUB_ACTIONS:
        print(f"::warning title={title}::{message}" if title else f"::warning::{message}")
    elif title:
        console.print(f"[warning]Warning ({title}):[/warning] {message}")
    else:
        console.print(f"[warning]Warning:[/warning] {message}")


def gha_error(message: str, title: Optional[str] = None) -> None:
    if IS_GITHUB_ACTIONS:
        print(f"::error title={title}::{message}" if title else f"::error::{message}")
    elif title:
        console.print(f"[error]Error ({title}):[/error] {message}")
    else:
        console.print(f"[error]Error:[/error] {message}")


def print_success(message: str) -> None:
    console.print(f"[success]✓[/success] {message}")


def print_summary_table(title: str, data: List[Tuple[str, Any]]) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Item", style="cyan")
    table.add_column("Value", justify="right")
    for label, value in data:
        table.add_row(label, str(value))
    console.print(table)


def _version_text(diff: ComponentDiff) -> str:
    if isinstance(diff, Updated):
        return f"{diff.previous_version} → {diff.component.version}"
    return diff.component.version


def print_diff_summary(result: DiffResult) -> None:
    """Print change counts and, if there are any changes, the changed components."""
    counts = result.counts()
    print_summary_table(
        "SBOM diff",
        [
            ("Current BOM version", result.comparison_info.current_version),
            ("Previous BOM version", result.comparison_info.previous_version),
            ("Added", counts["added"]),
            ("Updated", counts["updated"]),
            ("Removed", counts["removed"]),
        ],
    )
    if not result.diffs:
        return

    table = Table(title="Changed components", show_header=True, header_style="bold")
    table.add_column("Change")
    table.add_column("Component", style="cyan")
    table.add_column("Version")
    table.add_column("License")
    for diff in result.diffs:
        table.add_row(
            f"[{diff.change_type}]{diff.change_type}[/{diff.change_type}]",
            diff.component.full_name,
            _version_text(diff),
            diff.component.license_id,
        )
    console.print(table)


def print_resolution(resolution: VersionResolution) -> None:
    print_summary_table(
        "Version resolution",
        [
            ("Previous version", resolution.previous_version or "(none)"),
            ("First version", "yes" if resolution.is_first_version else "no"),
            ("Source", resolution.source),
            ("Reason", resolution.reason or "-"),
        ],
    )
