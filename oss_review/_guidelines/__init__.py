"""License guideline evaluation.

Maps a license id and a component context to the reviewer instructions
configured for it in license-guidelines.yml.
"""

from .condition import evaluate_condition, parse_condition
from .models import ComponentContext, Guideline, GuidelineRule, LicenseGuideline, LicenseGuidelineConfig
from .provider import (
    DEFAULT_GUIDELINE,
    DEFAULT_GUIDELINES_PATH,
    LicenseGuideProvider,
    LoadState,
    build_guidelines_map,
)

__all__ = [
    "ComponentContext",
    "DEFAULT_GUIDELINE",
    "DEFAULT_GUIDELINES_PATH",
    "Guideline",
    "GuidelineRule",
    "LicenseGuideProvider",
    "LicenseGuideline",
    "LicenseGuidelineConfig",
    "LoadState",
    "build_guidelines_map",
    "evaluate_condition",
    "parse_condition",
]
