"""HTTP client utilities with consistent user agent."""

from typing import Optional

from . import __version__

USER_AGENT = f"oss-review-action/{__version__}"


def get_default_headers(
    token: Optional[str] = None,
    content_type: Optional[str] = None,
    api_key: Optional[str] = None,
) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        token: Optional bearer token (GitHub)
        content_type: Optional Content-Type header value (e.g., "application/json")
        api_key: Optional Dependency-Track API key, sent as X-Api-Key

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if api_key:
        headers["X-Api-Key"] = api_key
    if content_type:
        headers["Content-Type"] = content_type
    return headers
