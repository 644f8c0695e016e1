"""SBOM shape validation at the load boundary.

Only the parts of a CycloneDX document that the diff and review logic
depends on are checked here: the format tag, the components array and the
fields of each component. Everything else is carried through untouched.

Usage:
    from oss_review.validation import load_sbom_file

    current = load_sbom_file("sbom.json", label="current")
"""

import json
from pathlib import Path
from typing import Any, Optional

import jsonschema
from jsonschema.exceptions import ValidationError, best_match

from .exceptions import FileProcessingError, SBOMValidationError
from .logging_config import logger
from .models import BOM_FORMAT, COMPONENT_TYPES, SBOM

SBOM_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["bomFormat", "components"],
    "properties": {
        "bomFormat": {"const": BOM_FORMAT},
        "specVersion": {"type": ["string", "number"]},
        "serialNumber": {"type": "string"},
        "version": {"type": "integer"},
        "metadata": {"type": "object"},
        "components": {"type": "array", "items": {"$ref": "#/$defs/component"}},
    },
    "$defs": {
        "component": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "type": {"type": "string"},
                "group": {"type": "string"},
                "name": {"type": "string", "minLength": 1},
                "version": {"type": "string"},
                "purl": {"type": "string"},
                "licenses": {"type": "array", "items": {"$ref": "#/$defs/license"}},
            },
        },
        "license": {
            "type": "object",
            "properties": {
                "expression": {"type": "string"},
                "license": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "name": {"type": "string"},
                        "url": {"type": "string"},
                    },
                },
            },
        },
    },
}

_validator = jsonschema.Draft202012Validator(SBOM_SCHEMA)


def _describe_error(error: ValidationError) -> str:
    location = ".".join(str(part) for part in error.absolute_path) or "(document)"
    return f"{location}: {error.message}"


def validate_sbom_data(data: Any, label: str) -> None:
    """
    Validate the shape of a parsed SBOM document.

    Args:
        data: Parsed JSON document
        label: Which SBOM this is ("current", "previous", a file name, ...)

    Raises:
        SBOMValidationError: naming the SBOM and the offending field
    """
    error = best_match(_validator.iter_errors(data))
    if error is not None:
        raise SBOMValidationError(f"Invalid {label} SBOM: {_describe_error(error)}")


def parse_sbom(data: Any, label: str) -> SBOM:
    """Validate a parsed document and convert it to an ``SBOM``."""
    validate_sbom_data(data, label)
    sbom = SBOM.from_dict(data)
    for component in sbom.components:
        if component.type not in COMPONENT_TYPES:
            logger.debug(f"Component {component.full_name} in {label} SBOM has type '{component.type}'")
    return sbom


def load_sbom_file(file_path: str, label: Optional[str] = None) -> SBOM:
    """
    Read, validate and convert an SBOM JSON file.

    Args:
        file_path: Path to the CycloneDX JSON file
        label: Name used in error messages (defaults to the file path)

    Raises:
        FileProcessingError: if the file cannot be read or is not JSON
        SBOMValidationError: if the document shape is invalid
    """
    label = label or file_path
    try:
        with Path(file_path).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileProcessingError(f"{label} SBOM file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise FileProcessingError(f"{label} SBOM file is not valid JSON: {e}")
    except OSError as e:
        raise FileProcessingError(f"Failed to read {label} SBOM file: {e}")

    return parse_sbom(data, label)
