"""Pytest configuration and shared fixtures for all tests."""

import pytest


@pytest.fixture(autouse=True)
def isolate_github_environment(monkeypatch):
    """Keep the CI environment of the test run from leaking into commands.

    Tests that exercise GitHub Actions behaviour set these variables
    explicitly.
    """
    for name in ("GITHUB_ACTIONS", "GITHUB_OUTPUT", "GITHUB_TOKEN", "GITHUB_REPOSITORY", "GITHUB_API_URL"):
        monkeypatch.delenv(name, raising=False)
    for name in ("DT_API_KEY", "DT_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
