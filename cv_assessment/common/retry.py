"""
Retry policy for fallible collaborator calls.

Every LLM-backed collaborator wraps its outbound call with a RetryPolicy
instead of carrying its own loop. Attempts and backoff come from Config so
that tests can run with zero wait.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import before_sleep_log, retry, stop_after_attempt, wait_exponential

from cv_assessment.common.config import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Capped attempts with exponential backoff; the last error is re-raised."""

    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 10.0
    multiplier: float = 1.0

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            max_attempts=Config.LLM_RETRY_ATTEMPTS,
            min_wait=Config.LLM_RETRY_MIN_WAIT,
            max_wait=Config.LLM_RETRY_MAX_WAIT,
        )

    @classmethod
    def no_wait(cls, max_attempts: int = 3) -> "RetryPolicy":
        """Policy with no backoff (tests, local tooling)."""
        return cls(max_attempts=max_attempts, min_wait=0, max_wait=0, multiplier=0)

    def wrap(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """
        Decorate an async callable with this policy.

        Usage:
            policy = RetryPolicy.from_config()
            call = policy.wrap(llm.ainvoke)
            response = await call(messages)
        """
        return retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.multiplier, min=self.min_wait, max=self.max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )(func)

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run one async call under this policy."""
        return await self.wrap(func)(*args, **kwargs)
