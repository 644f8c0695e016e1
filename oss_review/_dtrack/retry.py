"""Bounded retry for Dependency-Track requests.

Server errors (5xx) and transport failures are retried with exponential
backoff. Any other response is returned to the caller as-is: a 4xx will
not succeed on a second attempt.
"""

import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional

import requests

from ..exceptions import DTClientError
from ..logging_config import logger


@dataclass(frozen=True)
class RetryConfig:
    """
    Attributes:
        max_retries: Retries after the first attempt
        initial_delay: Seconds to wait before the first retry; doubled each time
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    exponential_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (self.exponential_base**attempt)


DEFAULT_RETRY = RetryConfig()


def with_retry(config: Optional[RetryConfig] = None) -> Callable:
    """
    Decorator for functions returning a ``requests.Response``.

    Raises:
        DTClientError: once retries are exhausted, carrying the last status
            code and body, or the transport error message
    """
    config = config or DEFAULT_RETRY

    def decorator(func: Callable[..., requests.Response]) -> Callable[..., requests.Response]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> requests.Response:
            for attempt in range(config.max_retries + 1):
                is_last = attempt == config.max_retries
                try:
                    response = func(*args, **kwargs)
                except requests.exceptions.RequestException as e:
                    if is_last:
                        raise DTClientError(f"Failed after {config.max_retries} retries: {e}") from e
                    delay = config.delay_for(attempt)
                    logger.warning(
                        f"DT API request failed: {e}, retrying in {delay:g}s "
                        f"(attempt {attempt + 1}/{config.max_retries})"
                    )
                    time.sleep(delay)
                    continue

                if response.status_code < 500:
                    return response
                if is_last:
                    raise DTClientError(
                        f"Failed after {config.max_retries} retries: HTTP {response.status_code}",
                        status_code=response.status_code,
                        response_body=response.text,
                    )
                delay = config.delay_for(attempt)
                logger.warning(
                    f"DT API returned {response.status_code}, retrying in {delay:g}s "
                    f"(attempt {attempt + 1}/{config.max_retries})"
                )
                time.sleep(delay)

            raise AssertionError("unreachable")

        return wrapper

    return decorator
