"""
Circuit breaker for calls into shared backends.

While open, calls fail immediately with ``CircuitBreakerOpenError`` instead of
waiting out connect timeouts against a backend that is known to be down.
"""

import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Tuple, Type

from shared.errors import StoreUnavailableError
from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(StoreUnavailableError):
    """Raised instead of calling a backend whose breaker is open."""

    def __init__(self, name: str):
        super().__init__(
            f"Circuit breaker '{name}' is open",
            details={"circuit_breaker": name},
        )


class CircuitBreaker:
    """Counts consecutive backend failures and short-circuits once over threshold."""

    def __init__(self,
                 name: str,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 expected_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exceptions = expected_exceptions
        self.logger = get_logger(f"x_api.circuit_breaker.{name}")

        self._clock = clock
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitBreakerState:
        if self._state == CircuitBreakerState.OPEN and self._recovery_elapsed():
            self._state = CircuitBreakerState.HALF_OPEN
            self.logger.info("Circuit breaker half-open, allowing a probe call")
        return self._state

    def is_open(self) -> bool:
        return self.state == CircuitBreakerState.OPEN

    def _recovery_elapsed(self) -> bool:
        return (self._clock() - self._opened_at) >= self.recovery_timeout

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Run ``func`` under breaker protection."""
        if self.state == CircuitBreakerState.OPEN:
            raise CircuitBreakerOpenError(self.name)

        try:
            result = await func(*args, **kwargs)
        except self.expected_exceptions:
            self._record_failure()
            raise

        self._record_success()
        return result

    def _record_success(self) -> None:
        if self._state != CircuitBreakerState.CLOSED:
            self.logger.info("Circuit breaker closed after successful call")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0

    def _record_failure(self) -> None:
        self._failure_count += 1
        if self._state == CircuitBreakerState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = CircuitBreakerState.OPEN
            self._opened_at = self._clock()
            self.logger.warning(
                "Circuit breaker opened",
                failure_count=self._failure_count,
                threshold=self.failure_threshold
            )

    def get_state(self) -> Dict[str, Any]:
        """Snapshot for health reporting."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout
        }
