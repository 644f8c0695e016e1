"""Dependency-Track REST client.

Configuration via environment variables:
    DT_BASE_URL: Server base URL, without the /api suffix (default: http://localhost:8081)
    DT_API_KEY: API key, sent as X-Api-Key (required)

Every request goes through ``with_retry``; see ``retry.py`` for which
failures are retried.
"""

import base64
import json
import os
import time
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import quote

import requests

from ..exceptions import DTClientError
from ..http_client import get_default_headers
from ..logging_config import logger
from ..models import SBOM, Component
from ..validation import parse_sbom
from .models import DTComponent, DTComponentProperty, DTProject
from .retry import with_retry

DEFAULT_BASE_URL = "http://localhost:8081"

# Request timeouts in seconds
REQUEST_TIMEOUT = 30
UPLOAD_TIMEOUT = 120

# Seconds to let Dependency-Track process an uploaded BOM before looking the project up again
UPLOAD_SETTLE_SECONDS = 2


@dataclass
class DependencyTrackConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_env(cls) -> Optional["DependencyTrackConfig"]:
        """Load configuration from DT_* environment variables; None without an API key."""
        api_key = os.getenv("DT_API_KEY", "").strip()
        if not api_key:
            return None
        base_url = os.getenv("DT_BASE_URL", "").strip() or DEFAULT_BASE_URL
        return cls(api_key=api_key, base_url=base_url.rstrip("/"))


def _error_from_response(action: str, response: requests.Response) -> DTClientError:
    return DTClientError(
        f"Failed to {action}: [{response.status_code}] {response.reason or ''}".rstrip(),
        status_code=response.status_code,
        response_body=response.text,
    )


def _malformed(action: str, response: requests.Response, error: Exception) -> DTClientError:
    return DTClientError(
        f"Failed to {action}: unexpected response from Dependency-Track ({error!r})",
        status_code=response.status_code,
        response_body=response.text,
    )


def _json_body(action: str, response: requests.Response) -> Any:
    """Decode a successful response; proxies and error pages can answer 2xx with HTML."""
    try:
        return response.json()
    except ValueError as e:
        raise _malformed(action, response, e) from e


class DependencyTrackClient:
    """
    Client for the parts of the Dependency-Track API the review workflow uses.

    Projects are addressed by (name, version); SBOM downloads and uploads
    are CycloneDX JSON.
    """

    def __init__(self, config: DependencyTrackConfig):
        self._config = config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @with_retry()
    def _request(self, method: str, path: str, timeout: int = REQUEST_TIMEOUT, **kwargs: Any) -> requests.Response:
        return requests.request(
            method,
            f"{self._config.base_url}{path}",
            headers=get_default_headers(content_type="application/json", api_key=self._config.api_key),
            timeout=timeout,
            **kwargs,
        )

    def get_project(self, project_name: str, version: str) -> Optional[DTProject]:
        """Look up a project by name and version; None if it does not exist."""
        response = self._request("GET", "/api/v1/project/lookup", params={"name": project_name, "version": version})
        if response.status_code == 404:
            return None
        if not response.ok:
            raise _error_from_response("get project", response)
        data = _json_body("get project", response)
        try:
            return DTProject.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise _malformed("get project", response, e) from e

    def get_sbom(self, project_name: str, version: str) -> Optional[SBOM]:
        """
        Download the CycloneDX SBOM of a project version.

        Returns:
            The SBOM, or None if the project or its BOM does not exist
        """
        project = self.get_project(project_name, version)
        if project is None:
            return None

        response = self._request("GET", f"/api/v1/bom/cyclonedx/project/{quote(project.uuid)}")
        if response.status_code == 404:
            return None
        if not response.ok:
            raise _error_from_response("get SBOM", response)

        data = _json_body("get SBOM", response)
        # A project without components exports no components key
        if isinstance(data, dict):
            data.setdefault("components", [])
        return parse_sbom(data, f"{project_name}@{version}")

    def upload_sbom(self, project_name: str, version: str, sbom: SBOM) -> str:
        """
        Upload an SBOM, creating the project version if needed.

        If the SBOM has no BOM version number, it gets the current one in
        Dependency-Track plus one (or 1 for a new project).

        Returns:
            UUID of the project the SBOM was registered under

        Raises:
            DTClientError: if the upload fails or the project cannot be found afterwards
        """
        if not sbom.version:
            existing = self.get_sbom(project_name, version)
            sbom.version = existing.version + 1 if existing and existing.version else 1

        sbom_json = json.dumps(sbom.to_dict())
        payload = {
            "projectName": project_name,
            "projectVersion": version,
            "autoCreate": True,
            "bom": base64.b64encode(sbom_json.encode()).decode(),
        }
        logger.info(f"Uploading SBOM to Dependency-Track project: {project_name}:{version}")
        logger.debug(f"SBOM JSON length: {len(sbom_json)} characters")

        response = self._request("PUT", "/api/v1/bom", json=payload, timeout=UPLOAD_TIMEOUT)
        if not response.ok:
            raise _error_from_response("upload SBOM", response)

        time.sleep(UPLOAD_SETTLE_SECONDS)

        project = self.get_project(project_name, version)
        if project is None:
            raise DTClientError(f"Project not found after SBOM upload: {project_name}:{version}")
        logger.info(f"SBOM uploaded to Dependency-Track project {project.uuid}")
        return project.uuid

    def get_components(self, project_uuid: str) -> List[DTComponent]:
        response = self._request("GET", f"/api/v1/component/project/{quote(project_uuid)}")
        if not response.ok:
            raise _error_from_response("get components", response)
        data = _json_body("get components", response)
        try:
            return [DTComponent.from_dict(entry) for entry in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise _malformed("get components", response, e) from e

    def find_component_uuid(self, project_uuid: str, component: Component) -> Optional[str]:
        """UUID of the project component with the same group, name and version."""
        for candidate in self.get_components(project_uuid):
            if candidate.matches(component.group, component.name, component.version):
                return candidate.uuid
        return None

    def put_component_property(self, component_uuid: str, prop: DTComponentProperty) -> None:
        response = self._request("PUT", f"/api/v1/component/{quote(component_uuid)}/property", json=prop.to_dict())
        if not response.ok:
            raise _error_from_response("set component property", response)

    def set_component_property(
        self,
        project_uuid: str,
        component: Component,
        property_name: str,
        property_value: str,
    ) -> None:
        """
        Set a STRING property on the project component matching ``component``.

        Raises:
            DTClientError: if no component of the project matches
        """
        component_uuid = self.find_component_uuid(project_uuid, component)
        if component_uuid is None:
            raise DTClientError(
                f"Component not found: {component.group or ''}:{component.name}:{component.version}"
            )
        self.put_component_property(
            component_uuid,
            DTComponentProperty(property_name=property_name, property_value=property_value),
        )
        logger.info(f"Set property {property_name} on component {component.full_name}")
