"""Data models for SBOM snapshots, component diffs and version resolution.

SBOM documents arrive as loosely-typed JSON. They are validated by
``oss_review.validation`` and converted into the records below at the load
boundary, so the differ, resolver and renderers never see raw dicts.
Each record keeps the original mapping in ``raw`` so that fields this
package does not model (hashes, properties, dependencies, ...) survive a
load/dump cycle untouched.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple

BOM_FORMAT = "CycloneDX"
UNKNOWN_LICENSE = "Unknown"
UNKNOWN_VERSION = "unknown"

# Component kinds we know about. CycloneDX defines more; others are kept as-is.
COMPONENT_TYPES = ("library", "application", "framework", "container", "file")

ComponentType = Literal["library", "application", "framework", "container", "file"]
ChangeType = Literal["added", "updated", "removed"]
VersionSource = Literal["config-file", "first-version", "dt-not-found"]


@dataclass
class License:
    """
    One entry of a component's ``licenses`` list.

    Either an SPDX ``expression`` or a structured license with ``id``,
    ``name`` and ``url``.
    """

    expression: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "License":
        lic = data.get("license") or {}
        return cls(
            expression=data.get("expression"),
            id=lic.get("id"),
            name=lic.get("name"),
            url=lic.get("url"),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.expression:
            return {"expression": self.expression}
        lic = {key: value for key, value in (("id", self.id), ("name", self.name), ("url", self.url)) if value}
        return {"license": lic}

    @property
    def identifier(self) -> Optional[str]:
        """SPDX expression, else license id, else license name."""
        return self.expression or self.id or self.name


@dataclass
class Component:
    """
    A tracked piece of software.

    Identity is ``(group or "", name)``; the version is deliberately not part
    of it, so a version bump is an update of the same component.
    """

    name: str
    version: str
    type: str = "library"
    group: Optional[str] = None
    licenses: List[License] = field(default_factory=list)
    purl: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Component":
        """Build a component from an already validated CycloneDX component mapping."""
        return cls(
            name=data["name"],
            version=data.get("version") or "",
            type=data.get("type") or "library",
            group=data.get("group") or None,
            licenses=[License.from_dict(entry) for entry in data.get("licenses") or []],
            purl=data.get("purl"),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        data: Dict[str, Any] = {"type": self.type}
        if self.group:
            data["group"] = self.group
        data["name"] = self.name
        data["version"] = self.version
        if self.licenses:
            data["licenses"] = [lic.to_dict() for lic in self.licenses]
        if self.purl:
            data["purl"] = self.purl
        return data

    @property
    def key(self) -> Tuple[str, str]:
        return (self.group or "", self.name)

    @property
    def full_name(self) -> str:
        return f"{self.group}:{self.name}" if self.group else self.name

    @property
    def license_id(self) -> str:
        """
        The component's primary license identifier.

        First license entry's SPDX expression, else its id, else its name,
        else ``"Unknown"``.
        """
        if not self.licenses:
            return UNKNOWN_LICENSE
        return self.licenses[0].identifier or UNKNOWN_LICENSE


@dataclass
class SBOM:
    """A CycloneDX SBOM snapshot. Component order is preserved as loaded."""

    spec_version: str
    components: List[Component] = field(default_factory=list)
    bom_format: str = BOM_FORMAT
    serial_number: Optional[str] = None
    version: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SBOM":
        """Build an SBOM from an already validated CycloneDX mapping."""
        return cls(
            spec_version=str(data.get("specVersion", "")),
            components=[Component.from_dict(c) for c in data.get("components") or []],
            bom_format=data.get("bomFormat", BOM_FORMAT),
            serial_number=data.get("serialNumber"),
            version=data.get("version"),
            metadata=data.get("metadata"),
            raw=dict(data),
        )

    @classmethod
    def empty(cls, spec_version: str = "1.6") -> "SBOM":
        """An SBOM with no components, the baseline for a first release."""
        return cls(spec_version=spec_version)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.raw)
        data["bomFormat"] = self.bom_format
        data["specVersion"] = self.spec_version
        if self.serial_number is not None:
            data["serialNumber"] = self.serial_number
        if self.version is not None:
            data["version"] = self.version
        if self.metadata is not None:
            data["metadata"] = self.metadata
        data["components"] = [c.to_dict() for c in self.components]
        return data


@dataclass
class ComponentDiff:
    """Base of the three diff variants: ``Added``, ``Updated`` and ``Removed``."""

    component: Component

    change_type: ClassVar[str] = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {"changeType": self.change_type, "component": self.component.to_dict()}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ComponentDiff":
        """Rebuild a diff entry from its ``to_dict`` form."""
        component = Component.from_dict(data["component"])
        change_type = data.get("changeType")
        if change_type == "added":
            return Added(component)
        if change_type == "updated":
            return Updated(component, previous_version=data.get("previousVersion") or "")
        if change_type == "removed":
            return Removed(component)
        raise ValueError(f"Unknown changeType: {change_type!r}")


@dataclass
class Added(ComponentDiff):
    """Component present in the current SBOM only."""

    change_type: ClassVar[ChangeType] = "added"


@dataclass
class Updated(ComponentDiff):
    """Component present in both SBOMs with a different version string."""

    previous_version: str

    change_type: ClassVar[ChangeType] = "updated"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["previousVersion"] = self.previous_version
        return data


@dataclass
class Removed(ComponentDiff):
    """Component present in the previous SBOM only (previous snapshot)."""

    change_type: ClassVar[ChangeType] = "removed"


@dataclass
class ComparisonInfo:
    current_version: str
    previous_version: str
    compared_at: str


@dataclass
class DiffResult:
    """A diff list together with what was compared, as written to diff-result.json."""

    comparison_info: ComparisonInfo
    diffs: List[ComponentDiff]

    def counts(self) -> Dict[str, int]:
        counts = {"added": 0, "updated": 0, "removed": 0}
        for diff in self.diffs:
            counts[diff.change_type] = counts.get(diff.change_type, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparisonInfo": {
                "currentVersion": self.comparison_info.current_version,
                "previousVersion": self.comparison_info.previous_version,
                "comparedAt": self.comparison_info.compared_at,
            },
            "diffs": [diff.to_dict() for diff in self.diffs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiffResult":
        info = data.get("comparisonInfo") or {}
        return cls(
            comparison_info=ComparisonInfo(
                current_version=info.get("currentVersion", UNKNOWN_VERSION),
                previous_version=info.get("previousVersion", UNKNOWN_VERSION),
                compared_at=info.get("comparedAt", ""),
            ),
            diffs=[ComponentDiff.from_dict(entry) for entry in data.get("diffs") or []],
        )


@dataclass(frozen=True)
class VersionResolution:
    """
    Outcome of resolving the baseline ("previous") version for a release.

    Attributes:
        previous_version: Baseline version, or None for a first release
        is_first_version: True exactly when previous_version is None
        source: Which rule decided the outcome
        reason: Why the release is treated as a first release
    """

    previous_version: Optional[str]
    is_first_version: bool
    source: VersionSource
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate resolution state."""
        if self.is_first_version != (self.previous_version is None):
            raise ValueError("is_first_version must be True exactly when previous_version is None")
        if self.source == "config-file" and self.is_first_version:
            raise ValueError("A config-file resolution cannot be a first version")

    @classmethod
    def first_version(cls, source: VersionSource, reason: str) -> "VersionResolution":
        """Create a resolution that treats the release as the first one."""
        return cls(previous_version=None, is_first_version=True, source=source, reason=reason)

    @classmethod
    def from_config(cls, previous_version: str) -> "VersionResolution":
        """Create a resolution for a baseline recorded in the config file."""
        return cls(previous_version=previous_version, is_first_version=False, source="config-file")
