"""Review request rendering.

A review request lists the component changes of a release with one input
field per applicable license guideline. It is built once as a structured
``ReviewRequest`` and can be emitted two ways:

- ``to_issue_form()``: a GitHub issue-form YAML template
- ``to_markdown()``: the issue body, in the layout GitHub uses for a
  submitted issue form. ``parse_review_response`` reads this layout back.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .._guidelines.models import Guideline
from ..models import ComponentDiff
from .markdown import NO_RESPONSE, render_checkbox, render_diff_table, section_heading
from .models import DONE, ReviewField

REVIEW_LABEL = "oss-review"

COMMON_CHECKS_TITLE = "Common checks"
COMMON_CHECKS = (
    "The license type of every new component has been verified",
    "No unintended version upgrades are included",
)

APPROVAL_REQUEST_TITLE = "Approval request"
APPROVAL_REQUEST_LABEL = "Request administrator approval"

TEXT_PLACEHOLDER = "Describe the action taken"


def review_issue_title(version: str) -> str:
    return f"[Review] OSS review {version}"


def field_id(full_name: str, index: int) -> str:
    return f"{re.sub(r'[^a-zA-Z0-9]', '-', full_name)}-{index}"


@dataclass
class ComponentSection:
    """Detail block of one changed component."""

    diff: ComponentDiff
    license_id: str
    fields: List[ReviewField] = field(default_factory=list)
    common_instructions: Optional[str] = None

    @property
    def heading(self) -> str:
        component = self.diff.component
        return section_heading(component.group, component.name, self.license_id)


@dataclass
class ReviewRequest:
    version: str
    diffs: List[ComponentDiff]
    sections: List[ComponentSection]
    sbom_artifact_url: str
    labels: List[str] = field(default_factory=lambda: [REVIEW_LABEL])

    @property
    def title(self) -> str:
        return review_issue_title(self.version)

    def to_markdown(self) -> str:
        lines: List[str] = [
            "## 🔍 Component changes and license guidelines",
            "",
            "Changes since the previous release were detected. Review the items below.",
            "",
        ]
        lines.extend(render_diff_table(self.diffs))
        lines.extend(["", f"### {COMMON_CHECKS_TITLE}", ""])
        lines.extend(render_checkbox(check) for check in COMMON_CHECKS)

        for section in self.sections:
            lines.extend(["", f"### {section.heading}", ""])
            if section.common_instructions:
                lines.extend([f"> {_one_line(section.common_instructions)}", ""])
            if not section.fields:
                lines.append("No guidelines apply.")
            for review_field in section.fields:
                lines.append(f"> **{review_field.label}**: {_one_line(review_field.description)}")
            for review_field in section.fields:
                lines.extend(["", f"#### {review_field.label}", ""])
                if review_field.input_type == "checkbox":
                    lines.append(render_checkbox(DONE))
                else:
                    lines.append(NO_RESPONSE)

        lines.extend(["", "---", "", f"📦 [Download SBOM]({self.sbom_artifact_url})"])
        lines.extend(["", f"### {APPROVAL_REQUEST_TITLE}", "", render_checkbox(APPROVAL_REQUEST_LABEL), ""])
        return "\n".join(lines)

    def to_issue_form(self) -> str:
        body: List[Dict[str, Any]] = [
            _markdown_block(
                "## 🔍 Component changes and license guidelines\n\n"
                "Changes since the previous release were detected. Review the items below."
            ),
            _markdown_block("\n" + "\n".join(render_diff_table(self.diffs)) + "\n"),
            {
                "type": "checkboxes",
                "id": "common-checks",
                "attributes": {
                    "label": COMMON_CHECKS_TITLE,
                    "options": [{"label": check, "required": True} for check in COMMON_CHECKS],
                },
            },
        ]

        for section in self.sections:
            heading = f"\n### {section.heading}"
            if section.common_instructions:
                heading += f"\n\n{section.common_instructions.strip()}"
            body.append(_markdown_block(heading))
            body.extend(_form_field(review_field) for review_field in section.fields)

        body.append(_markdown_block(f"\n---\n\n📦 [Download SBOM]({self.sbom_artifact_url})"))
        body.append(
            {
                "type": "checkboxes",
                "id": "approval-request",
                "attributes": {
                    "label": APPROVAL_REQUEST_TITLE,
                    "options": [{"label": APPROVAL_REQUEST_LABEL, "required": False}],
                },
            }
        )

        form = {
            "name": "OSS review",
            "description": "Pre-release review of open source usage",
            "title": self.title,
            "labels": list(self.labels),
            "body": body,
        }
        return yaml.safe_dump(form, allow_unicode=True, sort_keys=False, width=float("inf"))


def _one_line(text: str) -> str:
    return " ".join(text.split())


def _markdown_block(value: str) -> Dict[str, Any]:
    return {"type": "markdown", "attributes": {"value": value}}


def _form_field(review_field: ReviewField) -> Dict[str, Any]:
    if review_field.input_type == "checkbox":
        return {
            "type": "checkboxes",
            "id": review_field.field_id,
            "attributes": {
                "label": review_field.label,
                "description": review_field.description,
                "options": [{"label": DONE, "required": False}],
            },
        }
    if review_field.input_type == "select":
        return {
            "type": "dropdown",
            "id": review_field.field_id,
            "attributes": {
                "label": review_field.label,
                "description": review_field.description,
                "options": list(review_field.options or []),
            },
            "validations": {"required": True},
        }
    return {
        "type": "input",
        "id": review_field.field_id,
        "attributes": {
            "label": review_field.label,
            "description": review_field.description,
            "placeholder": TEXT_PLACEHOLDER,
        },
        "validations": {"required": True},
    }


def render_review_request(
    version: str,
    diffs: List[ComponentDiff],
    guidelines_map: Mapping[str, List[Guideline]],
    sbom_artifact_url: str,
    common_instructions: Optional[Mapping[str, str]] = None,
) -> ReviewRequest:
    """
    Build the review request for a release.

    Args:
        version: Release version under review
        diffs: Output of ``compare_sboms``
        guidelines_map: License id -> applicable guidelines
        sbom_artifact_url: Where reviewers can download the SBOM
        common_instructions: Optional license id -> instructions shown above the fields

    Returns:
        ReviewRequest with one section per diff entry
    """
    common_instructions = common_instructions or {}
    sections: List[ComponentSection] = []
    for diff in diffs:
        license_id = diff.component.license_id
        guidelines = guidelines_map.get(license_id) or []
        fields = [
            ReviewField(
                field_id=field_id(diff.component.full_name, index),
                input_type=guideline.input_type,
                label=guideline.label,
                description=guideline.message,
                options=list(guideline.options) if guideline.options else None,
            )
            for index, guideline in enumerate(guidelines)
        ]
        sections.append(
            ComponentSection(
                diff=diff,
                license_id=license_id,
                fields=fields,
                common_instructions=common_instructions.get(license_id),
            )
        )

    return ReviewRequest(version=version, diffs=list(diffs), sections=sections, sbom_artifact_url=sbom_artifact_url)
