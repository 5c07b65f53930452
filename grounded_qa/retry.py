"""
Helpers for calls to external services: OpenAI error translation and bounded retry.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Type, TypeVar

import openai

from grounded_qa.errors import RateLimited, ServiceCallError, ServiceTimeout

T = TypeVar("T")

logger = logging.getLogger(__name__)


def translate_openai_error(
    service: str, exc: Exception, permanent: Type[ServiceCallError]
) -> ServiceCallError:
    """Map an OpenAI SDK exception onto the engine's per-attempt error classes."""
    if isinstance(exc, openai.RateLimitError):
        return RateLimited(service, str(exc))
    if isinstance(exc, (openai.APITimeoutError, openai.APIConnectionError)):
        return ServiceTimeout(service, str(exc))
    return permanent(service, str(exc))


def call_with_retry(
    func: Callable[[], T],
    *,
    operation: str,
    max_retries: int = 1,
    base_delay: float = 1.0,
    max_delay: float = 8.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Execute `func`, retrying transient `ServiceCallError`s up to `max_retries` times.

    Permanent errors and the last transient error are re-raised unchanged.
    """
    for attempt in range(max_retries + 1):
        try:
            return func()
        except ServiceCallError as exc:
            if not exc.transient or attempt >= max_retries:
                raise
            wait_time = min(base_delay * (2**attempt), max_delay)
            logger.warning(
                "%s failed (attempt %d/%d): %s, retrying in %.1fs",
                operation,
                attempt + 1,
                max_retries + 1,
                exc,
                wait_time,
            )
            sleep(wait_time)
    raise AssertionError("unreachable")


__all__ = ["call_with_retry", "translate_openai_error"]
