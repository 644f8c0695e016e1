"""GitHub issue and comment client."""

from .client import DEFAULT_API_URL, GitHubClient, GitHubConfig, split_assignees

__all__ = ["DEFAULT_API_URL", "GitHubClient", "GitHubConfig", "split_assignees"]
