"""
Compliance Tracker — Rate Limiter

Sliding window limiter po IP adresi klijenta.
Default: 100 zahtjeva / 15 min u produkciji, 1000 inače.
"""

import logging
import time
from typing import Callable, Dict, List

logger = logging.getLogger("compliance_tracker.api.ratelimit")


class SlidingWindowLimiter:
    """Sliding window rate limiter po ključu (IP)."""

    def __init__(self, max_requests: int, window_sec: float,
                 clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_sec = window_sec
        self._clock = clock
        self._timestamps: Dict[str, List[float]] = {}

    def _recent(self, key: str) -> List[float]:
        cutoff = self._clock() - self.window_sec
        recent = [t for t in self._timestamps.get(key, ()) if t > cutoff]
        if recent:
            self._timestamps[key] = recent
        else:
            self._timestamps.pop(key, None)
        return recent

    def hit(self, key: str) -> bool:
        """Zabilježi zahtjev. False ako je limit prekoračen (zahtjev se ne broji)."""
        recent = self._recent(key)
        if len(recent) >= self.max_requests:
            logger.warning("Rate limit exceeded for %s", key)
            return False
        recent.append(self._clock())
        self._timestamps[key] = recent
        return True

    def remaining(self, key: str) -> int:
        return max(0, self.max_requests - len(self._recent(key)))

    def reset_in(self, key: str) -> float:
        """Za koliko sekundi se oslobađa prvo mjesto."""
        recent = self._recent(key)
        if not recent:
            return 0
        return max(0.0, self.window_sec - (self._clock() - min(recent)))
