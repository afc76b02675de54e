"""
Core cache data structures.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class TTLClass(Enum):
    """Policy buckets deciding how long a fetched value may be served."""
    LIVE = "live"               # 1 minute, anything under "current"
    PERIODIC = "periodic"       # 5 minutes, standings and results
    REFERENCE = "reference"     # 1 hour, driver/constructor data
    DEFAULT = "default"         # 30 minutes, everything else


@dataclass(frozen=True)
class CacheEntry:
    """
    Represents a cached upstream response with an absolute expiry.

    Entries are never mutated; storing under the same key replaces them.
    """
    key: str
    value: Any
    expires_at: float  # seconds since epoch

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if the entry has passed its expiry."""
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def remaining_seconds(self, now: Optional[float] = None) -> float:
        """Seconds left before expiry, never negative."""
        if now is None:
            now = time.time()
        return max(0.0, self.expires_at - now)
