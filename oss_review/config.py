"""Reader for the oss-management-system.yml file in the calling repository.

The file records which release the next release should be compared against:

    pre-project-version: v1.0.0

A missing file, a malformed file, and a missing key are all valid states;
they are reported through ``ConfigReadResult`` instead of raised.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .logging_config import logger

CONFIG_FILE_NAME = "oss-management-system.yml"
PRE_PROJECT_VERSION_KEY = "pre-project-version"


@dataclass
class OSSManagementConfig:
    pre_project_version: Optional[str] = None


@dataclass
class ConfigReadResult:
    """
    Result of reading the config file.

    Attributes:
        success: Whether the file was found and parsed
        file_path: Path that was read
        config: Parsed configuration (only on success)
        error: Failure description (only on failure)
    """

    success: bool
    file_path: str
    config: Optional[OSSManagementConfig] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, file_path: str, error: str) -> "ConfigReadResult":
        return cls(success=False, file_path=file_path, error=error)


def _log_expected_format() -> None:
    logger.error("Expected format:")
    logger.error(f"  {PRE_PROJECT_VERSION_KEY}: v1.0.0")


def config_exists(repo_root: str) -> bool:
    """Check if the config file exists in the repository root."""
    try:
        return (Path(repo_root) / CONFIG_FILE_NAME).is_file()
    except OSError:
        return False


def read_config(repo_root: str) -> ConfigReadResult:
    """
    Read and parse oss-management-system.yml from the repository root.

    Args:
        repo_root: Root directory of the calling repository

    Returns:
        ConfigReadResult with success/error information
    """
    config_path = str(Path(repo_root) / CONFIG_FILE_NAME)

    if not config_exists(repo_root):
        logger.warning(f"Config file not found: {config_path}")
        return ConfigReadResult.failure(config_path, "File not found")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            parsed = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse config file: {config_path}")
        logger.error(f"YAML syntax error: {e}")
        _log_expected_format()
        return ConfigReadResult.failure(config_path, f"Invalid YAML: {e}")
    except OSError as e:
        logger.error(f"Failed to read config file: {config_path}")
        logger.error(f"Read error: {e}")
        return ConfigReadResult.failure(config_path, f"Read error: {e}")

    if not isinstance(parsed, dict):
        logger.error(f"Failed to parse config file: {config_path}")
        logger.error("Invalid YAML: Expected an object")
        _log_expected_format()
        return ConfigReadResult.failure(config_path, "Invalid YAML: Expected an object")

    value = parsed.get(PRE_PROJECT_VERSION_KEY)
    # YAML reads `1.0` as a float; the version is an opaque string
    if value is not None and not isinstance(value, str):
        value = str(value)

    config = OSSManagementConfig(pre_project_version=value)
    logger.info(f"Config file found: {config_path}")
    logger.info(f"{PRE_PROJECT_VERSION_KEY}: {value or '(not set)'}")

    return ConfigReadResult(success=True, file_path=config_path, config=config)
