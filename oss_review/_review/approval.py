"""Approval issue rendering.

The approval issue summarizes a parsed review and ends with the single
checkbox an administrator ticks to allow the SBOM into Dependency-Track.
"""

from typing import Iterable, List

from .markdown import escape_markdown, escaped_full_name, render_checkbox, table_row
from .models import ComponentReviewResult

APPROVAL_ISSUE_LABEL = "oss-approval"
APPROVAL_LABEL = "I have reviewed the above and approve registering this SBOM in Dependency-Track"


def approval_issue_title(version: str) -> str:
    return f"[Approval] OSS approval {version}"


def _action_summary(result: ComponentReviewResult) -> str:
    count = len(result.actions)
    if count == 0:
        return "No actions"
    return f"{count} action{'s' if count != 1 else ''}"


def render_approval_issue(
    version: str,
    review_results: Iterable[ComponentReviewResult],
    sbom_artifact_url: str,
    review_results_artifact_url: str,
) -> str:
    """Render the approval issue body in Markdown."""
    results = list(review_results)
    lines: List[str] = [
        "## ✅ OSS approval",
        "",
        f"Release version: **{version}**",
        "",
        "The review has been completed. Check the results below and approve them.",
        "",
        "### Review results",
        "",
        table_row(("Component", "Version", "License", "Actions")),
        table_row(("---",) * 4),
    ]

    for result in results:
        component = result.component
        lines.append(
            table_row(
                (
                    escaped_full_name(component.group, component.name),
                    escape_markdown(component.version),
                    escape_markdown(result.license),
                    _action_summary(result),
                )
            )
        )

    lines.extend(["", "### Review details", ""])
    for result in results:
        component = result.component
        heading = f"{escaped_full_name(component.group, component.name)} ({escape_markdown(result.license)})"
        lines.extend([f"#### {heading}", ""])
        if not result.actions:
            lines.append("No actions recorded")
        for label, value in result.actions.items():
            lines.append(f"- **{escape_markdown(label)}**: {escape_markdown(value)}")
        lines.append("")

    lines.extend(
        [
            "---",
            "",
            f"📦 [Download SBOM]({sbom_artifact_url})",
            "",
            f"📄 [Download review results JSON]({review_results_artifact_url})",
            "",
            "### Approval",
            "",
            render_checkbox(APPROVAL_LABEL),
            "",
        ]
    )
    return "\n".join(lines)
