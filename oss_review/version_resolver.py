"""Resolve the baseline version a release's SBOM is compared against.

Rules, first match wins:

1. Config file missing or invalid           -> first version
2. ``pre-project-version`` empty or missing -> first version
3. SBOM for that version not in Dependency-Track, or the API failed
                                            -> first version (dt-not-found)
4. Otherwise                                -> the configured version

A missing baseline never aborts the pipeline; the caller diffs against an
empty SBOM instead.
"""

import logging
from typing import Any, Callable, Optional, Protocol

from .config import ConfigReadResult
from .logging_config import logger
from .models import SBOM, VersionResolution

# (logging level, message)
ResolutionSink = Callable[[int, str], None]


class SBOMSource(Protocol):
    """Anything that can fetch a project's SBOM, e.g. ``DependencyTrackClient``."""

    def get_sbom(self, project_name: str, version: str) -> Optional[SBOM]: ...


def _log_sink(level: int, message: str) -> None:
    logger.log(level, message)


def is_empty(value: Any) -> bool:
    """True for None, and for strings that are empty or whitespace only."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def resolve_previous_version(
    config_result: ConfigReadResult,
    project_name: str,
    current_version: str,
    sbom_source: SBOMSource,
    sink: Optional[ResolutionSink] = None,
) -> VersionResolution:
    """
    Resolve the previous version to use for comparison.

    Never raises: every failure of ``sbom_source`` is reported as a
    first-version resolution with the error in ``reason``.

    Args:
        config_result: Result from ``read_config``
        project_name: Project name for the Dependency-Track lookup
        current_version: Version being released; only used in diagnostics
        sbom_source: Where to look the baseline SBOM up
        sink: Receives one diagnostic per branch taken (defaults to the package logger)

    Returns:
        VersionResolution with version, is_first_version, source and reason
    """
    emit = sink or _log_sink

    if not config_result.success:
        emit(logging.INFO, "Treating as first version (reason: config file not found or invalid)")
        return VersionResolution.first_version("first-version", "Config file not found or invalid")

    pre_project_version = config_result.config.pre_project_version if config_result.config else None
    if is_empty(pre_project_version):
        emit(logging.INFO, "Treating as first version (reason: pre-project-version is empty)")
        return VersionResolution.first_version("first-version", "pre-project-version is empty")

    try:
        sbom = sbom_source.get_sbom(project_name, pre_project_version)
    except Exception as e:
        emit(logging.ERROR, f"DT API error while resolving baseline for {project_name} {current_version}: {e}")
        return VersionResolution.first_version("dt-not-found", f"DT API error: {e}")

    if sbom is None:
        emit(logging.WARNING, f"SBOM not found in DT for {project_name} version {pre_project_version}")
        return VersionResolution.first_version("dt-not-found", "SBOM not found in DT")

    emit(logging.INFO, f"Previous version resolved: {pre_project_version} (source: config-file)")
    return VersionResolution.from_config(pre_project_version)
