"""
In-process sliding window rate limiter for public form submissions.

Modes:
    off     - every request is allowed without bookkeeping
    log     - limits are evaluated and logged but never block
    enforce - requests over the limit are rejected
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_MAX_TRACKED_IDENTITIES = 10000


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds
    retry_after: Optional[int] = None


class RateLimiter:
    """Sliding window limiter keyed by (identifier, action)."""

    def __init__(self, mode: str = "off", clock: Callable[[], float] = time.time):
        self.mode = mode
        self._clock = clock
        self._attempts: Dict[Tuple[str, str], Deque[float]] = {}

    def check(
        self, identifier: str, action: str, max_attempts: int, window_seconds: int
    ) -> RateLimitResult:
        """
        Check and record an attempt.

        Args:
            identifier: Caller identity, usually the client IP
            action: Name of the limited action (booking, contact)
            max_attempts: Attempts allowed per window
            window_seconds: Window length

        Returns:
            RateLimitResult with remaining attempts and retry information
        """
        now = self._clock()
        reset_time = now + window_seconds

        if self.mode not in ("log", "enforce"):
            return RateLimitResult(
                allowed=True, remaining=max(0, max_attempts - 1), reset_time=reset_time
            )

        try:
            attempts = self._window(identifier, action, now, window_seconds)

            if len(attempts) < max_attempts:
                attempts.append(now)
                return RateLimitResult(
                    allowed=True,
                    remaining=max(0, max_attempts - len(attempts)),
                    reset_time=attempts[0] + window_seconds,
                )

            # The window frees a slot when its oldest attempt expires
            reset_time = attempts[0] + window_seconds
            retry_after = max(1, int(reset_time - now + 0.999))

            if self.mode == "log":
                logger.warning(
                    f"Rate limit exceeded (log-only): identifier={identifier}, "
                    f"action={action}, retry_after={retry_after}"
                )
                return RateLimitResult(
                    allowed=True, remaining=0, reset_time=reset_time, retry_after=retry_after
                )

            return RateLimitResult(
                allowed=False, remaining=0, reset_time=reset_time, retry_after=retry_after
            )
        except Exception as e:
            # Fail open so limiter faults never block legitimate users
            logger.error(f"Rate limit check failed: {e}", exc_info=True)
            return RateLimitResult(
                allowed=True, remaining=max(0, max_attempts - 1), reset_time=reset_time
            )

    def clear(self, identifier: str, action: str) -> None:
        """Forget recorded attempts for an identity."""
        self._attempts.pop((identifier, action), None)

    def _window(
        self, identifier: str, action: str, now: float, window_seconds: int
    ) -> Deque[float]:
        key = (identifier, action)
        attempts = self._attempts.get(key)
        if attempts is None:
            if len(self._attempts) >= _MAX_TRACKED_IDENTITIES:
                self._evict_idle(now, window_seconds)
            attempts = self._attempts.setdefault(key, deque())

        cutoff = now - window_seconds
        while attempts and attempts[0] <= cutoff:
            attempts.popleft()
        return attempts

    def _evict_idle(self, now: float, window_seconds: int) -> None:
        cutoff = now - window_seconds
        idle = [k for k, v in self._attempts.items() if not v or v[-1] <= cutoff]
        for key in idle:
            del self._attempts[key]
