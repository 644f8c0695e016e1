"""Pull request comment rendering."""

from typing import List, Mapping

from .._guidelines.models import Guideline
from ..models import ComponentDiff
from .markdown import render_diff_table

NO_CHANGES_COMMENT = "## 🔍 OSS changes\n\nNo component changes since the previous release."


def render_pr_comment(
    diffs: List[ComponentDiff],
    guidelines_map: Mapping[str, List[Guideline]],
    sbom_artifact_url: str,
) -> str:
    """
    Render the SBOM diff and license guidelines as a PR comment.

    Returns ``NO_CHANGES_COMMENT`` when there are no diffs.
    """
    if not diffs:
        return NO_CHANGES_COMMENT

    lines: List[str] = [
        "## 🔍 OSS changes",
        "",
        "Changes since the previous release were detected.",
        "",
        "### Changes",
        "",
    ]
    lines.extend(render_diff_table(diffs))
    lines.append("")

    guideline_lines: List[str] = []
    for diff in diffs:
        license_id = diff.component.license_id
        guidelines = guidelines_map.get(license_id)
        if not guidelines:
            continue
        guideline_lines.append(f"**{license_id} ({diff.component.full_name})**")
        guideline_lines.extend(f"- {guideline.message}" for guideline in guidelines)
        guideline_lines.append("")

    if guideline_lines:
        lines.extend(["### License guidelines", ""])
        lines.extend(guideline_lines)

    lines.extend(["---", "", f"📦 [Download SBOM]({sbom_artifact_url})"])
    return "\n".join(lines)
