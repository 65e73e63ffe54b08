"""Circuit breaker for LLM provider calls.

Usage:
    breaker = GenericCircuitBreaker(failure_threshold=5, recovery_timeout=60.0, name="openai")
    try:
        result = await breaker.call(client.chat.completions.create, **request)
    except CircuitOpenError:
        # drop this analysis pass
"""

import enum
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised when calling through an open circuit breaker."""

    def __init__(self, name: str, retry_in: float) -> None:
        super().__init__(f"Circuit breaker {name} is OPEN (retry in {retry_in:.1f}s)")
        self.name = name
        self.retry_in = retry_in


class GenericCircuitBreaker:
    """Wraps async callables with CLOSED → OPEN → HALF_OPEN → CLOSED protection.

    - CLOSED: calls pass through; consecutive failures are counted.
    - OPEN: calls fail fast with CircuitOpenError until recovery_timeout
      has elapsed since the last failure.
    - HALF_OPEN: the next call is a trial call. Success closes the circuit,
      failure reopens it.

    Args:
        failure_threshold: Consecutive failures before opening the circuit.
        recovery_timeout: Seconds before a recovery attempt is allowed.
        name: Name used in logs and errors.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        name: str = "circuit_breaker",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._name = name
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def _transition(self, new_state: CircuitState, reason: str) -> None:
        if new_state is self._state:
            return
        log = logger.warning if new_state is CircuitState.OPEN else logger.info
        log(
            "Circuit breaker %s: %s -> %s (%s)",
            self._name,
            self._state.value,
            new_state.value,
            reason,
        )
        self._state = new_state

    def _before_call(self) -> None:
        if self._state is not CircuitState.OPEN:
            return
        elapsed = self._clock() - self._opened_at
        if elapsed < self._recovery_timeout:
            raise CircuitOpenError(self._name, self._recovery_timeout - elapsed)
        self._transition(CircuitState.HALF_OPEN, "recovery attempt")

    def record_success(self) -> None:
        self._consecutive_failures = 0
        self._transition(CircuitState.CLOSED, "call succeeded")

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._state is CircuitState.HALF_OPEN:
            self._opened_at = self._clock()
            self._transition(CircuitState.OPEN, "trial call failed")
        elif self._consecutive_failures >= self._failure_threshold:
            self._opened_at = self._clock()
            self._transition(
                CircuitState.OPEN,
                f"{self._consecutive_failures} consecutive failures",
            )

    def reset(self) -> None:
        """Force the circuit closed and clear the failure count."""
        self._consecutive_failures = 0
        self._transition(CircuitState.CLOSED, "reset")

    async def call(
        self,
        fn: Callable[..., Coroutine[Any, Any, T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Await ``fn(*args, **kwargs)`` through the breaker.

        Raises:
            CircuitOpenError: If the circuit is open and not yet due a trial call.
        """
        self._before_call()
        try:
            result = await fn(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result
