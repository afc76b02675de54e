"""
TTL configuration and path-to-class mapping.
"""
from typing import Dict, Optional, Tuple

from .core import TTLClass


# TTL configuration by class (in seconds)
TTL_CONFIG: Dict[TTLClass, int] = {
    TTLClass.LIVE: 60,            # 1 minute
    TTLClass.PERIODIC: 300,       # 5 minutes
    TTLClass.REFERENCE: 3600,     # 1 hour
    TTLClass.DEFAULT: 1800,       # 30 minutes
}

# Evaluated in order, first match wins
CLASSIFICATION_RULES: Tuple[Tuple[TTLClass, Tuple[str, ...]], ...] = (
    (TTLClass.LIVE, ("current",)),
    (TTLClass.PERIODIC, ("standings", "results")),
    (TTLClass.REFERENCE, ("drivers", "constructors")),
)


def classify_path(path: str) -> TTLClass:
    """
    Determine the TTL class for a resolved upstream path.

    Matching is a case-sensitive substring test, so
    "/2024/driverStandings.json" has no "standings" and falls to default.

    Args:
        path: Resolved upstream path (e.g., "/2024/drivers.json")

    Returns:
        TTLClass for caching behavior
    """
    for ttl_class, needles in CLASSIFICATION_RULES:
        if any(needle in path for needle in needles):
            return ttl_class
    return TTLClass.DEFAULT


def get_ttl_for_class(
    ttl_class: TTLClass,
    ttl_config: Optional[Dict[TTLClass, int]] = None,
) -> int:
    """Get TTL seconds for a class, falling back to the built-in defaults."""
    config = ttl_config or TTL_CONFIG
    return config.get(ttl_class, TTL_CONFIG[ttl_class])


def build_ttl_config(
    live: int = TTL_CONFIG[TTLClass.LIVE],
    periodic: int = TTL_CONFIG[TTLClass.PERIODIC],
    reference: int = TTL_CONFIG[TTLClass.REFERENCE],
    default: int = TTL_CONFIG[TTLClass.DEFAULT],
) -> Dict[TTLClass, int]:
    """Build a TTL table from individually configured durations."""
    return {
        TTLClass.LIVE: live,
        TTLClass.PERIODIC: periodic,
        TTLClass.REFERENCE: reference,
        TTLClass.DEFAULT: default,
    }
