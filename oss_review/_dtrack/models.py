"""Records exchanged with the Dependency-Track REST API."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DTProject:
    uuid: str
    name: str
    version: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DTProject":
        return cls(uuid=data["uuid"], name=data.get("name", ""), version=data.get("version"))


@dataclass
class DTComponent:
    """A component as listed under a Dependency-Track project."""

    uuid: str
    name: str
    version: Optional[str] = None
    group: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DTComponent":
        return cls(
            uuid=data["uuid"],
            name=data.get("name", ""),
            version=data.get("version"),
            group=data.get("group"),
        )

    def matches(self, group: Optional[str], name: str, version: str) -> bool:
        """Match on (group, name, version), treating an absent group as empty."""
        return (self.group or "") == (group or "") and self.name == name and (self.version or "") == version


@dataclass
class DTComponentProperty:
    property_name: str
    property_value: str
    property_type: str = "STRING"
    group_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "propertyName": self.property_name,
            "propertyValue": self.property_value,
            "propertyType": self.property_type,
        }
        if self.group_name:
            data["groupName"] = self.group_name
        return data
