"""Retry logic and circuit breaker implementation.

This module provides retry with exponential backoff and jitter, and a
circuit breaker that fails fast while the remote backend keeps failing.
Only errors classified as retryable are retried; everything else
propagates unchanged on the first attempt.
"""

import time
import random
import threading
from typing import Callable, TypeVar, Any, Dict, Optional, List, Type
from enum import Enum

from ..exceptions import (
    BackendUnavailableError,
    CircuitBreakerOpenError,
    MaxRetriesExceededError,
)

T = TypeVar("T")


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class RetryManager:
    """Manages retry logic with exponential backoff and jitter."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        backoff_factor: float = 2.0,
        jitter: bool = True,
    ) -> None:
        """Initialize retry manager.

        Args:
            max_retries: Maximum number of retry attempts
            base_delay: Base delay in seconds
            max_delay: Maximum delay in seconds
            backoff_factor: Multiplier for exponential backoff
            jitter: Whether to add random jitter to delays
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter

        self._retry_conditions: List[Callable[[Exception], bool]] = []
        self._default_retry_conditions()

        self._metrics = {
            "total_operations": 0,
            "successful_operations": 0,
            "failed_operations": 0,
            "total_retry_attempts": 0,
            "total_delay_time": 0.0,
        }
        self._metrics_lock = threading.Lock()

    def _default_retry_conditions(self) -> None:
        """Set up default retry conditions."""
        # An open breaker is transient too, but hammering it is pointless
        self.add_retry_condition(
            lambda exc: isinstance(exc, BackendUnavailableError)
            and not isinstance(exc, CircuitBreakerOpenError)
        )

    def add_retry_condition(self, condition: Callable[[Exception], bool]) -> None:
        """Add a condition for when to retry.

        Args:
            condition: Function that takes an exception and returns True if should retry
        """
        self._retry_conditions.append(condition)

    def should_retry(self, exception: Exception) -> bool:
        """Check if an exception should trigger a retry."""
        return any(condition(exception) for condition in self._retry_conditions)

    def calculate_delay(self, attempt: int, retry_after: Optional[int] = None) -> float:
        """Calculate delay for a retry attempt.

        Args:
            attempt: Attempt number (0-based)
            retry_after: Server-provided delay that takes precedence

        Returns:
            Delay in seconds
        """
        if retry_after is not None:
            return min(float(retry_after), self.max_delay)

        delay = self.base_delay * (self.backoff_factor ** attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            delay += delay * random.random()

        return delay

    def _record(self, **increments: float) -> None:
        with self._metrics_lock:
            for key, amount in increments.items():
                self._metrics[key] += amount

    def execute_with_retry(self, operation: Callable[[], T]) -> T:
        """Execute an operation with retry logic.

        Args:
            operation: Function to execute

        Returns:
            Result of the operation

        Raises:
            MaxRetriesExceededError: If a retryable failure persists past max retries
            Exception: Any non-retryable error, unchanged
        """
        self._record(total_operations=1)
        last_exception: Optional[Exception] = None
        total_delay = 0.0

        for attempt in range(self.max_retries + 1):
            try:
                result = operation()
                self._record(successful_operations=1, total_delay_time=total_delay)
                return result

            except Exception as e:
                if not self.should_retry(e):
                    self._record(failed_operations=1, total_delay_time=total_delay)
                    raise

                last_exception = e
                if attempt == self.max_retries:
                    break

                delay = self.calculate_delay(attempt, getattr(e, "retry_after", None))
                total_delay += delay
                self._record(total_retry_attempts=1)

                time.sleep(delay)

        self._record(failed_operations=1, total_delay_time=total_delay)

        if self.max_retries == 0 and last_exception is not None:
            raise last_exception

        raise MaxRetriesExceededError(
            f"Maximum retries ({self.max_retries}) exceeded: {last_exception}",
            attempts=self.max_retries + 1,
            last_exception=last_exception,
        )

    def get_metrics(self) -> Dict[str, Any]:
        """Get retry metrics."""
        with self._metrics_lock:
            metrics = self._metrics.copy()

        if metrics["total_operations"] > 0:
            metrics["success_rate"] = metrics["successful_operations"] / metrics["total_operations"]
            metrics["failure_rate"] = metrics["failed_operations"] / metrics["total_operations"]
        else:
            metrics["success_rate"] = 0.0
            metrics["failure_rate"] = 0.0

        if metrics["total_retry_attempts"] > 0:
            metrics["average_retry_delay"] = metrics["total_delay_time"] / metrics["total_retry_attempts"]
        else:
            metrics["average_retry_delay"] = 0.0

        return metrics

    def reset_metrics(self) -> None:
        """Reset all metrics to zero."""
        with self._metrics_lock:
            for key in self._metrics:
                self._metrics[key] = 0


class CircuitBreaker:
    """Circuit breaker for protecting against cascading failures."""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        expected_exception: Type[Exception] = BackendUnavailableError,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            failure_threshold: Number of failures before opening circuit
            recovery_timeout: Time to wait before attempting recovery
            expected_exception: Exception type that triggers circuit breaker
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        """Get current circuit breaker state."""
        return self._state.value

    def _reset(self) -> None:
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = None

    def _record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.time()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitBreakerState.OPEN

    def _can_attempt_call(self) -> bool:
        if self._state in (CircuitBreakerState.CLOSED, CircuitBreakerState.HALF_OPEN):
            return True

        if self._last_failure_time is None:
            return True

        if time.time() - self._last_failure_time >= self.recovery_timeout:
            self._state = CircuitBreakerState.HALF_OPEN
            return True

        return False

    def call(self, operation: Callable[[], T]) -> T:
        """Execute an operation through the circuit breaker.

        Args:
            operation: Function to execute

        Returns:
            Result of the operation

        Raises:
            CircuitBreakerOpenError: If circuit breaker is open
        """
        with self._lock:
            if not self._can_attempt_call():
                raise CircuitBreakerOpenError(
                    f"Circuit breaker is open. Last failure: {self._last_failure_time}"
                )
            current_state = self._state

        try:
            result = operation()
        except Exception as e:
            if isinstance(e, self.expected_exception) and not isinstance(e, CircuitBreakerOpenError):
                with self._lock:
                    if current_state == CircuitBreakerState.HALF_OPEN:
                        self._state = CircuitBreakerState.OPEN
                        self._last_failure_time = time.time()
                    else:
                        self._record_failure()
            raise

        with self._lock:
            if current_state == CircuitBreakerState.HALF_OPEN:
                self._reset()
            else:
                self._failure_count = 0

        return result

    def get_state_info(self) -> Dict[str, Any]:
        """Get circuit breaker state information."""
        return {
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "last_failure_time": self._last_failure_time,
            "recovery_timeout": self.recovery_timeout,
        }
