"""
Circuit breaker for outbound messaging calls.

Keeps a failing Twilio API from being hammered by every outbox retry:

1. CLOSED: requests pass through
2. OPEN: after `failure_threshold` consecutive failures, requests fail fast
3. HALF_OPEN: after `timeout_seconds`, a few trial requests decide whether
   to close again or reopen

Usage:
    from rest_api.services.messaging.circuit_breaker import twilio_breaker

    async with twilio_breaker.call():
        response = await client.post(...)
"""

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncGenerator

from shared.config.logging import messaging_logger as logger


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    name: str
    failure_threshold: int = 5
    success_threshold: int = 2
    timeout_seconds: float = 30.0
    half_open_max_calls: int = 1


@dataclass
class CircuitBreakerStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    state_changes: int = 0


class CircuitBreakerError(Exception):
    """Raised when the circuit is open and the call is rejected."""
    def __init__(self, breaker_name: str, retry_after: float):
        self.breaker_name = breaker_name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{breaker_name}' is open. Retry after {retry_after:.1f}s")


class CircuitBreaker:
    """Async circuit breaker guarded by an asyncio lock."""

    def __init__(self, config: CircuitBreakerConfig):
        self.config = config
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._half_open_calls = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()
        self._stats = CircuitBreakerStats()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def stats(self) -> CircuitBreakerStats:
        return self._stats

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._stats.state_changes += 1

        if new_state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        elif new_state == CircuitState.HALF_OPEN:
            self._success_count = 0
            self._half_open_calls = 0
        else:
            self._failure_count = 0
            self._success_count = 0
            self._opened_at = None

        logger.info(
            "Circuit breaker state change",
            breaker=self.config.name,
            old_state=old_state.value,
            new_state=new_state.value,
        )

    async def _acquire(self) -> float | None:
        """None when the call may proceed, else seconds until a retry makes sense."""
        async with self._lock:
            if self._state == CircuitState.CLOSED:
                return None

            if self._state == CircuitState.OPEN:
                elapsed = time.monotonic() - (self._opened_at or 0)
                if elapsed < self.config.timeout_seconds:
                    return self.config.timeout_seconds - elapsed
                self._transition_to(CircuitState.HALF_OPEN)

            if self._half_open_calls >= self.config.half_open_max_calls:
                return 1.0
            self._half_open_calls += 1
            return None

    async def record_success(self) -> None:
        async with self._lock:
            self._stats.total_calls += 1
            self._stats.successful_calls += 1

            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                self._half_open_calls = max(0, self._half_open_calls - 1)
                if self._success_count >= self.config.success_threshold:
                    self._transition_to(CircuitState.CLOSED)
            else:
                self._failure_count = 0

    async def record_failure(self, error: Exception | None = None) -> None:
        async with self._lock:
            self._stats.total_calls += 1
            self._stats.failed_calls += 1
            self._failure_count += 1

            logger.warning(
                "Circuit breaker recorded failure",
                breaker=self.config.name,
                error=str(error) if error else None,
                failure_count=self._failure_count,
                threshold=self.config.failure_threshold,
            )

            if self._state == CircuitState.HALF_OPEN:
                self._transition_to(CircuitState.OPEN)
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self.config.failure_threshold
            ):
                self._transition_to(CircuitState.OPEN)

    @asynccontextmanager
    async def call(self) -> AsyncGenerator[None, None]:
        """
        Guard one outbound call.

        Raises:
            CircuitBreakerError: If the circuit is open
        """
        retry_after = await self._acquire()
        if retry_after is not None:
            self._stats.rejected_calls += 1
            raise CircuitBreakerError(self.config.name, retry_after)

        try:
            yield
        except Exception as e:
            await self.record_failure(e)
            raise
        await self.record_success()

    async def reset(self) -> None:
        async with self._lock:
            self._transition_to(CircuitState.CLOSED)
            self._half_open_calls = 0


# Twilio Messages API: opens after 5 failures, retries after 30s
twilio_breaker = CircuitBreaker(
    CircuitBreakerConfig(
        name="twilio",
        failure_threshold=5,
        success_threshold=1,
        timeout_seconds=30.0,
    )
)


def get_all_breaker_stats() -> dict[str, dict]:
    """Breaker state for the detailed health check."""
    breakers = {"twilio": twilio_breaker}
    return {
        name: {
            "state": breaker.state.value,
            "total_calls": breaker.stats.total_calls,
            "failed_calls": breaker.stats.failed_calls,
            "rejected_calls": breaker.stats.rejected_calls,
        }
        for name, breaker in breakers.items()
    }
