"""Review response parsing.

Reads a review issue body (as rendered by ``ReviewRequest.to_markdown`` and
then edited by a reviewer) back into a ``ReviewResultsDocument``.

Parsing is forgiving: a missing table yields no components, malformed
table rows are skipped, and a component without a matching detail section
is reported with no actions.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .approval import APPROVAL_LABEL
from .markdown import (
    NO_RESPONSE_PLACEHOLDERS,
    VERSION_ARROW,
    change_type_from_marker,
    is_diff_table_header,
    is_separator_row,
    section_heading,
    split_table_row,
)
from .models import DONE, NOT_DONE, ComponentReviewResult, ReviewedComponent, ReviewResultsDocument
from .request import APPROVAL_REQUEST_LABEL

_SECTION_HEADING = re.compile(r"^###\s+(.*?)\s*$")
_SECTION_END = re.compile(r"^(#{1,3}\s|-{3,}\s*$|\*{3,}\s*$)")
_FIELD_HEADING = re.compile(r"^####\s+(.+?)\s*$")


@dataclass
class ParsedComponent:
    name: str
    version: str
    license: str
    change_type: str
    group: Optional[str] = None


def parse_checkbox_state(text: str, label: str) -> bool:
    """
    Find a ``- [x] <label>`` / ``- [ ] <label>`` line anywhere in ``text``.

    Returns:
        True if the checkbox is checked, False if unchecked or absent
    """
    pattern = re.compile(rf"^\s*-\s*\[([ xX])\]\s*{re.escape(label)}\s*$", re.MULTILINE)
    match = pattern.search(text)
    if not match:
        return False
    return match.group(1).lower() == "x"


def parse_table_row(row: str) -> Optional[ParsedComponent]:
    """Parse ``| marker | group:name | version | license |``; None if malformed."""
    cells = split_table_row(row)
    if len(cells) < 4:
        return None

    marker, full_name, version_cell, license_id = cells[:4]
    if not full_name:
        return None

    group: Optional[str] = None
    name = full_name
    if ":" in full_name:
        group, name = full_name.split(":", 1)

    version = version_cell
    if VERSION_ARROW in version_cell:
        version = version_cell.split(VERSION_ARROW, 1)[1].strip()

    return ParsedComponent(
        name=name,
        version=version,
        license=license_id,
        change_type=change_type_from_marker(marker),
        group=group or None,
    )


def parse_components_from_table(text: str) -> List[ParsedComponent]:
    """Collect the rows of the diff summary table."""
    components: List[ParsedComponent] = []
    in_table = False

    for line in text.splitlines():
        if not in_table:
            in_table = is_diff_table_header(line)
            continue

        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            break
        if is_separator_row(stripped) or "|" not in stripped:
            continue

        component = parse_table_row(stripped)
        if component is not None:
            components.append(component)

    return components


def _normalize_heading(text: str) -> str:
    return re.sub(r"\s+", "", text)


def find_section(text: str, heading: str) -> Optional[List[str]]:
    """
    Return the lines of the ``### <heading>`` section.

    A section runs until the next heading of level 1-3 or a horizontal rule.
    """
    wanted = _normalize_heading(heading)
    lines = text.splitlines()

    for index, line in enumerate(lines):
        match = _SECTION_HEADING.match(line)
        if not match or _normalize_heading(match.group(1)) != wanted:
            continue
        body: List[str] = []
        for following in lines[index + 1 :]:
            if _SECTION_END.match(following):
                break
            body.append(following)
        return body

    return None


def parse_section_fields(section_lines: List[str]) -> Dict[str, str]:
    """Map each ``#### <label>`` sub-block of a section to the reviewer's answer."""
    blocks: List[tuple] = []
    for line in section_lines:
        match = _FIELD_HEADING.match(line)
        if match:
            blocks.append((match.group(1), []))
        elif blocks:
            blocks[-1][1].append(line)

    actions: Dict[str, str] = {}
    for label, body_lines in blocks:
        body = "\n".join(body_lines).strip()
        if "- [" in body:
            actions[label] = DONE if parse_checkbox_state(body, DONE) else NOT_DONE
        elif body and body not in NO_RESPONSE_PLACEHOLDERS:
            actions[label] = body
    return actions


def parse_review_response(
    raw_text: str,
    reviewer: str,
    version: str,
    reviewed_at: Optional[str] = None,
) -> ReviewResultsDocument:
    """
    Parse a filled-in review issue body.

    Args:
        raw_text: Issue body text
        reviewer: Identity of the reviewer (e.g. GitHub login)
        version: Release version the review belongs to
        reviewed_at: Timestamp to record; defaults to now (UTC, ISO 8601)

    Returns:
        ReviewResultsDocument with one result per summary table row
    """
    results: List[ComponentReviewResult] = []

    for parsed in parse_components_from_table(raw_text):
        section = find_section(raw_text, section_heading(parsed.group, parsed.name, parsed.license))
        actions = parse_section_fields(section) if section is not None else {}
        results.append(
            ComponentReviewResult(
                component=ReviewedComponent(name=parsed.name, version=parsed.version, group=parsed.group),
                license=parsed.license,
                actions=actions,
            )
        )

    return ReviewResultsDocument(
        version=version,
        reviewed_at=reviewed_at or datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        reviewer=reviewer,
        results=results,
    )


def parse_approval_decision(raw_text: str) -> bool:
    """True if the approval issue's approval checkbox is checked."""
    return parse_checkbox_state(raw_text, APPROVAL_LABEL)


def parse_approval_request_flag(raw_text: str) -> bool:
    """True if the review issue's "request administrator approval" checkbox is checked."""
    return parse_checkbox_state(raw_text, APPROVAL_REQUEST_LABEL)
