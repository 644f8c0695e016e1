"""Data models for license guidelines."""

from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional

from ..exceptions import ConfigurationError

InputType = Literal["checkbox", "text", "select"]
INPUT_TYPES = ("checkbox", "text", "select")

LinkType = Literal["static", "dynamic"]


@dataclass(frozen=True)
class ComponentContext:
    """
    Facts about how a component is used, tested by guideline conditions.

    An attribute left as None makes every condition on it evaluate false.
    """

    is_modified: Optional[bool] = None
    link_type: Optional[LinkType] = None
    is_distributed: Optional[bool] = None


@dataclass
class Guideline:
    """
    One reviewer instruction, rendered as one input field.

    Attributes:
        condition: Source condition expression, kept for traceability
        message: Instruction shown to the reviewer
        input_type: checkbox, text or select
        label: Field label, also the key of the reviewer's answer
        options: Choices for a select field (required iff input_type is select)
    """

    condition: str
    message: str
    input_type: InputType
    label: str
    options: Optional[List[str]] = None

    def __post_init__(self) -> None:
        if self.input_type not in INPUT_TYPES:
            raise ValueError(f"Invalid input_type: {self.input_type}")
        if self.input_type == "select" and not self.options:
            raise ValueError(f"Guideline '{self.label}' is a select field without options")
        if self.input_type != "select" and self.options:
            raise ValueError(f"Guideline '{self.label}' has options but is not a select field")


@dataclass
class GuidelineRule:
    condition: str
    message: str
    input_type: InputType
    label: str
    options: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Any, where: str) -> "GuidelineRule":
        if not isinstance(data, dict):
            raise ConfigurationError(f"{where}: rule must be a mapping")
        for key in ("condition", "message", "input_type", "label"):
            if not isinstance(data.get(key), str) or not data[key].strip():
                raise ConfigurationError(f"{where}: '{key}' must be a non-empty string")
        input_type = data["input_type"]
        if input_type not in INPUT_TYPES:
            raise ConfigurationError(f"{where}: invalid input_type '{input_type}', expected one of {INPUT_TYPES}")
        options = data.get("options")
        if options is not None and (not isinstance(options, list) or not all(isinstance(o, str) for o in options)):
            raise ConfigurationError(f"{where}: 'options' must be a list of strings")
        if input_type == "select" and not options:
            raise ConfigurationError(f"{where}: select rules require 'options'")
        if input_type != "select" and options:
            raise ConfigurationError(f"{where}: 'options' is only allowed on select rules")
        return cls(
            condition=data["condition"],
            message=data["message"],
            input_type=input_type,
            label=data["label"],
            options=options,
        )

    def to_guideline(self) -> Guideline:
        return Guideline(
            condition=self.condition,
            message=self.message,
            input_type=self.input_type,
            label=self.label,
            options=list(self.options) if self.options else None,
        )


@dataclass
class LicenseGuideline:
    license_id: str
    rules: List[GuidelineRule] = field(default_factory=list)
    common_instructions: Optional[str] = None


@dataclass
class LicenseGuidelineConfig:
    """Parsed license-guidelines.yml."""

    version: str
    guidelines: List[LicenseGuideline]

    @classmethod
    def from_dict(cls, data: Any) -> "LicenseGuidelineConfig":
        """
        Validate and convert a parsed guideline document.

        Raises:
            ConfigurationError: if any part of the document is malformed
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Invalid YAML structure")
        if not data.get("version") or not isinstance(data.get("guidelines"), list):
            raise ConfigurationError("Missing required fields: version or guidelines")

        guidelines: List[LicenseGuideline] = []
        for index, entry in enumerate(data["guidelines"]):
            where = f"guidelines[{index}]"
            if not isinstance(entry, dict) or not isinstance(entry.get("license_id"), str):
                raise ConfigurationError(f"{where}: 'license_id' must be a string")
            rules = entry.get("rules") or []
            if not isinstance(rules, list):
                raise ConfigurationError(f"{where}: 'rules' must be a list")
            common = entry.get("common_instructions")
            if common is not None and not isinstance(common, str):
                raise ConfigurationError(f"{where}: 'common_instructions' must be a string")
            guidelines.append(
                LicenseGuideline(
                    license_id=entry["license_id"],
                    rules=[GuidelineRule.from_dict(rule, f"{where}.rules[{i}]") for i, rule in enumerate(rules)],
                    common_instructions=common,
                )
            )

        return cls(version=str(data["version"]), guidelines=guidelines)

    def find(self, license_id: str) -> Optional[LicenseGuideline]:
        """Exact, case-sensitive lookup by license id."""
        for guideline in self.guidelines:
            if guideline.license_id == license_id:
                return guideline
        return None
