"""Retry with exponential backoff and per-operation circuit breakers for outbound API calls.

Circuit states:
  CLOSED    - normal operation, requests flow through
  OPEN      - failure threshold reached, requests are rejected without calling out
  HALF_OPEN - recovery window elapsed, a probe request is allowed
"""

import asyncio
import enum
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    def __init__(self, name: str):
        super().__init__(f"Circuit breaker '{name}' is open")
        self.name = name


class CircuitBreaker:
    def __init__(self, name: str, failure_threshold: int = 5, recovery_timeout: float = 60.0) -> None:
        self.name = name
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if self._state == CircuitState.OPEN and time.monotonic() - self._opened_at >= self._recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                logger.info(f"🔌 Circuit {self.name}: OPEN -> HALF_OPEN")
            return self._state

    def allow_request(self) -> bool:
        return self.state != CircuitState.OPEN

    def record_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.info(f"✅ Circuit {self.name} recovered -> CLOSED")
            self._state = CircuitState.CLOSED
            self._failure_count = 0

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            if self._state == CircuitState.HALF_OPEN or self._failure_count >= self._failure_threshold:
                if self._state != CircuitState.OPEN:
                    logger.warning(f"⚠️ Circuit {self.name} OPEN after {self._failure_count} failures")
                self._state = CircuitState.OPEN
                self._opened_at = time.monotonic()

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._opened_at = 0.0


class CircuitBreakerRegistry:
    def __init__(self) -> None:
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> CircuitBreaker:
        with self._lock:
            if name not in self._breakers:
                self._breakers[name] = CircuitBreaker(name)
            return self._breakers[name]

    def reset_all(self) -> None:
        with self._lock:
            for breaker in self._breakers.values():
                breaker.reset()


circuit_breakers = CircuitBreakerRegistry()


@dataclass
class RetryOptions:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    jitter: float = 0.5  # fraction of the delay added at random


PAYMENT_RETRY = RetryOptions(max_attempts=3, initial_delay=2.0)
API_RETRY = RetryOptions(max_attempts=3, initial_delay=1.0)


def compute_delay(attempt: int, options: RetryOptions) -> float:
    """Delay before retry number ``attempt`` (1-based)."""
    base = min(options.initial_delay * options.backoff_multiplier ** (attempt - 1), options.max_delay)
    return base + base * options.jitter * random.random()


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[Exception, int], bool],
    options: RetryOptions = API_RETRY,
    breaker: Optional[CircuitBreaker] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``fn`` until it succeeds, ``should_retry(exc, attempt)`` returns False,
    or ``options.max_attempts`` is reached. The last exception propagates.
    """
    if breaker is not None and not breaker.allow_request():
        raise CircuitOpenError(breaker.name)

    attempt = 0
    while True:
        attempt += 1
        try:
            result = await fn()
        except Exception as e:
            if breaker is not None:
                breaker.record_failure()
            if attempt >= options.max_attempts or not should_retry(e, attempt):
                raise
            if breaker is not None and not breaker.allow_request():
                raise CircuitOpenError(breaker.name) from e
            delay = compute_delay(attempt, options)
            logger.warning(f"🔁 Attempt {attempt} failed ({e}); retrying in {delay:.1f}s")
            await sleep(delay)
            continue

        if breaker is not None:
            breaker.record_success()
        return result
