"""SBOM diffing.

Compares the components of two SBOM snapshots by identity key
``(group or "", name)`` and reports what was added, updated or removed.
Version strings are compared exactly; there is no semver ordering.
"""

from datetime import datetime, timezone
from typing import Dict, List, Set, Tuple

from .models import (
    UNKNOWN_VERSION,
    SBOM,
    Added,
    ComparisonInfo,
    Component,
    ComponentDiff,
    DiffResult,
    Removed,
    Updated,
)


def component_key(component: Component) -> Tuple[str, str]:
    """Identity key of a component. Version is not part of it."""
    return component.key


def compare_sboms(current: SBOM, previous: SBOM) -> List[ComponentDiff]:
    """
    Compare two SBOMs and return the component differences.

    Added and Updated entries come first, in the order their components
    appear in ``current``; Removed entries follow in the order of
    ``previous``. If a key occurs more than once in ``previous``, the last
    occurrence wins.

    Args:
        current: SBOM of the release under review
        previous: Baseline SBOM (empty for a first release)

    Returns:
        List of Added / Updated / Removed entries
    """
    previous_by_key: Dict[Tuple[str, str], Component] = {}
    for component in previous.components:
        previous_by_key[component_key(component)] = component

    diffs: List[ComponentDiff] = []
    matched: Set[Tuple[str, str]] = set()

    for component in current.components:
        key = component_key(component)
        matched.add(key)
        previous_component = previous_by_key.get(key)

        if previous_component is None:
            diffs.append(Added(component))
        elif previous_component.version != component.version:
            diffs.append(Updated(component, previous_version=previous_component.version))

    # dicts keep first-insertion order, so this follows the order of `previous`
    for key, previous_component in previous_by_key.items():
        if key not in matched:
            diffs.append(Removed(previous_component))

    return diffs


def build_diff_result(current: SBOM, previous: SBOM) -> DiffResult:
    """Compare two SBOMs and wrap the diff list with comparison metadata."""
    return DiffResult(
        comparison_info=ComparisonInfo(
            current_version=str(current.version) if current.version is not None else UNKNOWN_VERSION,
            previous_version=str(previous.version) if previous.version is not None else UNKNOWN_VERSION,
            compared_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        ),
        diffs=compare_sboms(current, previous),
    )
