"""Fixed-window rate limiter for intake sources."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from src.config.constants import (
    DEFAULT_RATE_LIMIT_CLASS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_RATE_LIMITS,
)
from src.config.schemas.policy import RateLimitConfig


class RateLimiterProtocol(Protocol):
    """Protocol for intake rate limiters.

    Allows dependency injection of rate limiter for testing.
    """

    def allow(
        self,
        identity: str,
        now: float | None = None,
        source_class: str | None = None,
    ) -> bool:
        """Record a request and decide whether it may proceed.

        Args:
            identity: Source identity (address, integration name).
            now: Current time in seconds; defaults to the limiter clock.
            source_class: Integration class selecting the limit.

        Returns:
            True if the request is within the limit.
        """
        ...


@dataclass
class _Window:
    start: float
    count: int


@dataclass
class FixedWindowRateLimiter:
    """Fixed-window request counter per source identity.

    A window opens with the first request of an identity and lasts
    ``window_seconds``. Requests past the class limit inside a window are
    denied without being counted. Identities with no recorded window,
    including all identities after ``reset()``, are allowed.

    Thread-safe: the read-increment-write runs under one lock.

    Attributes:
        window_seconds: Window length in seconds.
        limits: Maximum requests per window keyed by integration class.
        clock: Time source in seconds.
    """

    window_seconds: float = DEFAULT_RATE_LIMIT_WINDOW_SECONDS
    limits: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_RATE_LIMITS))
    clock: Callable[[], float] = time.monotonic

    _windows: dict[str, _Window] = field(init=False, default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _denied_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        """Validate limiter configuration."""
        if self.window_seconds <= 0:
            msg = f"window_seconds must be positive, got {self.window_seconds}"
            raise ValueError(msg)
        if DEFAULT_RATE_LIMIT_CLASS not in self.limits:
            msg = f"limits must define a '{DEFAULT_RATE_LIMIT_CLASS}' class"
            raise ValueError(msg)

    @classmethod
    def from_config(
        cls,
        config: RateLimitConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> "FixedWindowRateLimiter":
        """Create a limiter from policy configuration."""
        return cls(
            window_seconds=config.window_seconds,
            limits=dict(config.limits),
            clock=clock,
        )

    def limit_for(self, source_class: str | None) -> int:
        """Get the per-window maximum for an integration class."""
        if source_class is not None and source_class in self.limits:
            return self.limits[source_class]
        return self.limits[DEFAULT_RATE_LIMIT_CLASS]

    def allow(
        self,
        identity: str,
        now: float | None = None,
        source_class: str | None = None,
    ) -> bool:
        """Record a request and decide whether it may proceed.

        Args:
            identity: Source identity.
            now: Current time in seconds; defaults to the limiter clock.
            source_class: Integration class selecting the limit.

        Returns:
            True if the request is within the limit.
        """
        current = self.clock() if now is None else now
        limit = self.limit_for(source_class)

        with self._lock:
            window = self._windows.get(identity)
            if window is None or current >= window.start + self.window_seconds:
                self._windows[identity] = _Window(start=current, count=1)
                return True

            if window.count >= limit:
                self._denied_count += 1
                return False

            window.count += 1
            return True

    def count_for(self, identity: str) -> int:
        """Get the request count of the identity's current window."""
        with self._lock:
            window = self._windows.get(identity)
            return window.count if window else 0

    @property
    def denied_count(self) -> int:
        """Get the number of denied requests since creation."""
        with self._lock:
            return self._denied_count

    def reset(self) -> None:
        """Forget all windows; every identity is allowed again."""
        with self._lock:
            self._windows = {}
