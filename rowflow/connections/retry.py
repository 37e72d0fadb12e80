"""Retry policy for opening database connections.

The policy is explicit and injectable so that callers (and tests) control the
number of attempts, the delay between them and how the delay is spent.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Type

from rowflow.logging import get_logger

logger = get_logger(__name__)


def linear_delay(attempt: int, step: float = 1.0) -> float:
    """Delay after the given failed attempt: ``attempt * step`` seconds."""
    return attempt * step


def no_delay(attempt: int) -> float:
    return 0.0


@dataclass
class RetryConfig:
    """Configuration for the connection-open retry loop."""

    max_attempts: int = 3
    delay: Callable[[int], float] = linear_delay
    sleep: Callable[[float], None] = time.sleep
    retry_on_exceptions: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (Exception,)
    )

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


class RetryExhaustedError(Exception):
    """Internal signal carrying every failure of an exhausted retry loop."""

    def __init__(self, attempts: int, failures: List[BaseException]):
        self.attempts = attempts
        self.failures = failures
        super().__init__(
            f"All {attempts} attempts failed, last error: {failures[-1]}"
        )

    @property
    def last_exception(self) -> BaseException:
        return self.failures[-1]


class RetryHandler:
    """Runs an operation until it succeeds or the attempts are exhausted."""

    def __init__(self, config: Optional[RetryConfig] = None, name: str = "operation"):
        self.config = config or RetryConfig()
        self.name = name
        self.attempts = 0
        self.delays: List[float] = []

    def should_retry(self, exception: BaseException, attempt: int) -> bool:
        """Determine if an exception raised on ``attempt`` (1-based) is retried."""
        if attempt >= self.config.max_attempts:
            return False
        return isinstance(exception, self.config.retry_on_exceptions)

    def execute_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """Execute ``func`` with retry logic.

        Raises:
            RetryExhaustedError: When the last allowed attempt failed
            Exception: Any non-retryable exception, unchanged
        """
        failures: List[BaseException] = []
        self.attempts = 0
        self.delays = []

        for attempt in range(1, self.config.max_attempts + 1):
            self.attempts = attempt
            try:
                result = func(*args, **kwargs)
                if attempt > 1:
                    logger.info(
                        "%s succeeded after %d attempts", self.name, attempt
                    )
                return result
            except Exception as e:
                failures.append(e)
                if not isinstance(e, self.config.retry_on_exceptions):
                    raise
                if not self.should_retry(e, attempt):
                    break

                delay = max(self.config.delay(attempt), 0.0)
                self.delays.append(delay)
                logger.warning(
                    "Attempt %d/%d for %s failed: %s. Next attempt in %.2f seconds",
                    attempt,
                    self.config.max_attempts,
                    self.name,
                    e,
                    delay,
                )
                if delay > 0:
                    self.config.sleep(delay)

        logger.error(
            "%s failed permanently after %d attempts: %s",
            self.name,
            self.attempts,
            failures[-1],
        )
        raise RetryExhaustedError(self.attempts, failures)
