"""Custom exceptions for oss-review-action."""

from typing import Optional


class OssReviewError(Exception):
    """Base exception for all oss-review operations."""


class ConfigurationError(OssReviewError):
    """Raised when configuration validation fails."""


class SBOMValidationError(OssReviewError):
    """Raised when an SBOM document fails shape validation."""


class FileProcessingError(OssReviewError):
    """Raised when file operations fail."""


class APIError(OssReviewError):
    """Raised when API operations fail."""


class DTClientError(APIError):
    """Raised when a Dependency-Track API operation fails.

    Attributes:
        status_code: HTTP status of the last response, if one was received
        response_body: Body of the last response, if one was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class GitHubError(APIError):
    """Raised when a GitHub issue or comment operation fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
