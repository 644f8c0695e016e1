"""GitHub issues and comments over the REST API.

Configuration via environment variables:
    GITHUB_TOKEN: Token with issues / pull-requests write access (required)
    GITHUB_REPOSITORY: Target repository as owner/repo (required)
    GITHUB_API_URL: API root (default: https://api.github.com)

Calls are not retried; failures surface as ``GitHubError``.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..exceptions import GitHubError
from ..http_client import get_default_headers
from ..logging_config import logger

DEFAULT_API_URL = "https://api.github.com"
REQUEST_TIMEOUT = 30
ACCEPT = "application/vnd.github+json"


@dataclass
class GitHubConfig:
    token: str
    repository: str
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_env(cls) -> Optional["GitHubConfig"]:
        """Load configuration from the environment; None if token or repository is missing."""
        token = os.getenv("GITHUB_TOKEN", "").strip()
        repository = os.getenv("GITHUB_REPOSITORY", "").strip()
        if not token or "/" not in repository:
            return None
        api_url = os.getenv("GITHUB_API_URL", "").strip() or DEFAULT_API_URL
        return cls(token=token, repository=repository, api_url=api_url.rstrip("/"))


class GitHubClient:
    def __init__(self, config: GitHubConfig):
        self._config = config

    def _url(self, path: str) -> str:
        return f"{self._config.api_url}/repos/{self._config.repository}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = get_default_headers(token=self._config.token, content_type="application/json")
        headers["Accept"] = ACCEPT
        return headers

    def _send(self, method: str, path: str, action: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = requests.request(
                method, self._url(path), headers=self._headers(), json=payload, timeout=REQUEST_TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            raise GitHubError(f"Failed to {action}: {e}") from e

        if not response.ok:
            err_msg = f"Failed to {action}. [{response.status_code}]"
            if response.text:
                err_msg += f" - {response.text[:500]}"
            raise GitHubError(err_msg, status_code=response.status_code)
        return response.json()

    def create_issue(
        self,
        title: str,
        body: str,
        labels: Sequence[str],
        assignees: Optional[Sequence[str]] = None,
    ) -> int:
        """
        Create an issue.

        Returns:
            The new issue number
        """
        payload = {"title": title, "body": body, "labels": list(labels), "assignees": list(assignees or [])}
        data = self._send("POST", "/issues", "create issue", payload)
        logger.info(f"Created issue #{data['number']}: {title}")
        return int(data["number"])

    def post_comment(self, issue_number: int, body: str) -> int:
        """Comment on an issue or pull request; returns the comment id."""
        data = self._send("POST", f"/issues/{issue_number}/comments", "post comment", {"body": body})
        logger.info(f"Posted comment on #{issue_number}")
        return int(data["id"])

    def get_issue_body(self, issue_number: int) -> str:
        data = self._send("GET", f"/issues/{issue_number}", "get issue")
        return data.get("body") or ""


def split_assignees(value: Optional[str]) -> List[str]:
    """Parse a comma-separated assignee list, ignoring blanks."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]
