"""Data models for review requests and parsed review results."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .._guidelines.models import InputType

DONE = "Done"
NOT_DONE = "Not done"


@dataclass
class ReviewField:
    """One input field of a review request, derived from one guideline."""

    field_id: str
    input_type: InputType
    label: str
    description: str
    options: Optional[List[str]] = None


@dataclass
class ReviewedComponent:
    name: str
    version: str
    group: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.group:
            data["group"] = self.group
        data["name"] = self.name
        data["version"] = self.version
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewedComponent":
        return cls(name=data["name"], version=data.get("version", ""), group=data.get("group") or None)


@dataclass
class ComponentReviewResult:
    """
    The reviewer's answers for one component.

    Attributes:
        component: Identity of the reviewed component
        license: License id the component was reviewed under
        actions: Field label -> entered value, in document order
    """

    component: ReviewedComponent
    license: str
    actions: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"component": self.component.to_dict(), "license": self.license, "actions": dict(self.actions)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentReviewResult":
        return cls(
            component=ReviewedComponent.from_dict(data["component"]),
            license=data.get("license", ""),
            actions={str(k): str(v) for k, v in (data.get("actions") or {}).items()},
        )


@dataclass
class ReviewResultsDocument:
    """Parsed review response, written as review-results.json."""

    version: str
    reviewed_at: str
    reviewer: str
    results: List[ComponentReviewResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "reviewedAt": self.reviewed_at,
            "reviewer": self.reviewer,
            "results": [result.to_dict() for result in self.results],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewResultsDocument":
        return cls(
            version=data.get("version", ""),
            reviewed_at=data.get("reviewedAt", ""),
            reviewer=data.get("reviewer", ""),
            results=[ComponentReviewResult.from_dict(entry) for entry in data.get("results") or []],
        )
