"""License guideline provider.

Loads license-guidelines.yml once and answers "which instructions apply to
this license in this context". The file is read at most once per provider;
a failed load is remembered and every lookup falls back to the built-in
default guideline.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml

from ..exceptions import ConfigurationError
from ..logging_config import logger
from ..models import ComponentDiff
from .condition import evaluate_condition
from .models import ComponentContext, Guideline, LicenseGuidelineConfig

DEFAULT_GUIDELINES_PATH = "config/license-guidelines.yml"

DEFAULT_GUIDELINE = Guideline(
    condition="always",
    message="No guideline is defined for this license. Consult the legal/compliance team.",
    input_type="text",
    label="Action taken",
)


class LoadState(Enum):
    NOT_LOADED = "not-loaded"
    LOADED = "loaded"
    FAILED = "failed"


class LicenseGuideProvider:
    """
    Provides license-specific guidelines from a YAML configuration file.

    Example:
        provider = LicenseGuideProvider("config/license-guidelines.yml")
        for guideline in provider.get_guidelines("Apache-2.0", ComponentContext(is_modified=True)):
            print(guideline.label, guideline.message)
    """

    def __init__(self, config_path: str = DEFAULT_GUIDELINES_PATH):
        self._config_path = config_path
        self._config: Optional[LicenseGuidelineConfig] = None
        self._state = LoadState.NOT_LOADED

    @property
    def config_path(self) -> str:
        return self._config_path

    @property
    def state(self) -> LoadState:
        return self._state

    def load_config(self) -> LoadState:
        """
        Load the configuration file if it has not been attempted yet.

        Returns:
            LoadState.LOADED or LoadState.FAILED
        """
        if self._state is not LoadState.NOT_LOADED:
            return self._state

        try:
            self._config = self._read_config()
            self._state = LoadState.LOADED
            logger.info(f"Loaded license guidelines configuration (version: {self._config.version})")
        except (OSError, yaml.YAMLError, ConfigurationError) as e:
            logger.warning(f"Failed to load license guideline configuration: {e}")
            logger.warning("Using default guidelines for all licenses.")
            self._config = None
            self._state = LoadState.FAILED

        return self._state

    def _read_config(self) -> LicenseGuidelineConfig:
        path = Path(self._config_path)
        if not path.is_file():
            raise ConfigurationError(f"License guideline configuration file not found: {self._config_path}")
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return LicenseGuidelineConfig.from_dict(data)

    def _loaded_config(self) -> Optional[LicenseGuidelineConfig]:
        self.load_config()
        return self._config

    def get_guidelines(self, license_id: str, context: Optional[ComponentContext] = None) -> List[Guideline]:
        """
        Get the guidelines that apply to a license in a given context.

        Returns the single default guideline when the configuration failed
        to load or has no entry for ``license_id``. Otherwise returns the
        entry's rules whose condition holds, in file order (possibly none).
        """
        config = self._loaded_config()
        entry = config.find(license_id) if config else None
        if entry is None:
            return [DEFAULT_GUIDELINE]

        context = context or ComponentContext()
        return [rule.to_guideline() for rule in entry.rules if evaluate_condition(rule.condition, context)]

    def get_common_instructions(self, license_id: str) -> Optional[str]:
        config = self._loaded_config()
        entry = config.find(license_id) if config else None
        if entry is None:
            return None
        return entry.common_instructions or None

    def get_license_ids(self) -> List[str]:
        config = self._loaded_config()
        if config is None:
            return []
        return [entry.license_id for entry in config.guidelines]


def build_guidelines_map(
    diffs: Iterable[ComponentDiff],
    provider: LicenseGuideProvider,
    context: Optional[ComponentContext] = None,
) -> Dict[str, List[Guideline]]:
    """Look up guidelines once per distinct license id among ``diffs``."""
    guidelines_map: Dict[str, List[Guideline]] = {}
    for diff in diffs:
        license_id = diff.component.license_id
        if license_id not in guidelines_map:
            guidelines_map[license_id] = provider.get_guidelines(license_id, context)
    return guidelines_map
