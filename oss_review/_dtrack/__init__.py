"""Dependency-Track API client with bounded retry."""

from .client import DEFAULT_BASE_URL, DependencyTrackClient, DependencyTrackConfig
from .models import DTComponent, DTComponentProperty, DTProject
from .retry import RetryConfig, with_retry

__all__ = [
    "DEFAULT_BASE_URL",
    "DTComponent",
    "DTComponentProperty",
    "DTProject",
    "DependencyTrackClient",
    "DependencyTrackConfig",
    "RetryConfig",
    "with_retry",
]
