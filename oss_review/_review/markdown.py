"""Markdown building blocks shared by the review, approval and comment documents."""

import re
from typing import Iterable, List, Optional

from ..models import ComponentDiff, Updated

CHANGE_MARKERS = {
    "added": "🆕",
    "updated": "🔄",
    "removed": "🗑️",
}
UNKNOWN_MARKER = "❓"

VERSION_ARROW = "→"

DIFF_TABLE_HEADER = ("Change", "Component", "Version", "License")

NO_RESPONSE_PLACEHOLDERS = ("No response", "_No response_")
NO_RESPONSE = "_No response_"

_UNESCAPED_PIPE = re.compile(r"(?<!\\)\|")
_SEPARATOR_ROW = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?$")
_VARIATION_SELECTOR = "\ufe0f"


def escape_markdown(text: Optional[str]) -> str:
    """Make text safe for a Markdown table cell."""
    if text is None:
        return ""
    return text.replace("|", "\\|").replace("\n", " ").replace("\r", "")


def unescape_cell(text: str) -> str:
    return text.replace("\\|", "|")


def change_marker(change_type: str) -> str:
    return CHANGE_MARKERS.get(change_type, UNKNOWN_MARKER)


def change_type_from_marker(marker: str) -> str:
    """Inverse of ``change_marker``; anything unrecognized is ``unknown``."""
    for change_type, emoji in CHANGE_MARKERS.items():
        if emoji.rstrip(_VARIATION_SELECTOR) in marker:
            return change_type
    return "unknown"


def format_full_name(group: Optional[str], name: str) -> str:
    return f"{group}:{name}" if group else name


def escaped_full_name(group: Optional[str], name: str) -> str:
    return format_full_name(escape_markdown(group) if group else None, escape_markdown(name))


def section_heading(group: Optional[str], name: str, license_id: str) -> str:
    """Heading text of a component's detail section, without the leading hashes."""
    return f"{escaped_full_name(group, name)} ({escape_markdown(license_id)})"


def version_display(diff: ComponentDiff) -> str:
    version = escape_markdown(diff.component.version)
    if isinstance(diff, Updated) and diff.previous_version:
        return f"{escape_markdown(diff.previous_version)} {VERSION_ARROW} {version}"
    return version


def table_row(cells: Iterable[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def render_diff_table(diffs: Iterable[ComponentDiff]) -> List[str]:
    """Summary table: change marker, full name, version (old → new for updates), license."""
    lines = [table_row(DIFF_TABLE_HEADER), table_row("---" for _ in DIFF_TABLE_HEADER)]
    for diff in diffs:
        component = diff.component
        lines.append(
            table_row(
                (
                    change_marker(diff.change_type),
                    escaped_full_name(component.group, component.name),
                    version_display(diff),
                    escape_markdown(component.license_id),
                )
            )
        )
    return lines


def split_table_row(line: str) -> List[str]:
    """
    Split a table row on unescaped pipes.

    Only the border pipes are dropped, so an empty cell (a component
    without a version) keeps its column position.
    """
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [unescape_cell(cell.strip()) for cell in _UNESCAPED_PIPE.split(row)]


def is_separator_row(line: str) -> bool:
    return bool(_SEPARATOR_ROW.match(line.strip()))


def is_diff_table_header(line: str) -> bool:
    cells = split_table_row(line)
    return all(header in cells for header in DIFF_TABLE_HEADER)


def render_checkbox(label: str, checked: bool = False) -> str:
    return f"- [{'x' if checked else ' '}] {label}"
