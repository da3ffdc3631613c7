"""
Configuration constants for the carto_core projection engine.

Contains the numerical tolerances shared by every projection, the
geographic envelope limits, the round-trip assertion tolerances and
the defaults of the authority object cache.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# NUMERICAL CONSTANTS
# =============================================================================

# Comparison and envelope tolerance
EPS = 1.0e-6

# Convergence tolerance of iterative solvers (radians)
TOL = 1.0e-10

# Iteration cap before an iterative solver gives up
MAX_ITER = 15

# Tighter tolerance of the conformal sphere latitude iteration (radians)
GAUSS_TOL = 1.0e-14

# =============================================================================
# GEOGRAPHIC ENVELOPE (degrees)
# =============================================================================

LONGITUDE_MIN = -180.0
LONGITUDE_MAX = 180.0
LATITUDE_MIN = -90.0
LATITUDE_MAX = 90.0

# =============================================================================
# ROUND-TRIP CHECK
# =============================================================================

# Run the inverse after every forward (and vice versa) and compare.
# Debug only: doubles the cost of every transform.
VERIFY_TRANSFORMS = False

# Points further than this from the projection origin
# (|dlon| / 2 + |dlat|, degrees) get the loose tolerance
FAR_FROM_ORIGIN_DEG = 40.0

# Points beyond these limits are considered near the envelope edge
EDGE_LONGITUDE_DEG = 179.0
EDGE_LATITUDE_DEG = 89.0

# Distance tolerances (metres)
TOLERANCE_FAR = 1.0
TOLERANCE_EDGE = 1.0e-1
TOLERANCE_NEAR = 1.0e-6

# =============================================================================
# NEW ZEALAND MAP GRID
# =============================================================================

# Newton refinements applied after the inverse series.
# Three would give ~1e-3 accuracy; two are used.
NZMG_REFINEMENT_ITERATIONS = 2

# Series accuracy of the grid is far coarser than the closed-form projections
NZMG_ASSERTION_TOLERANCE = 1.0e-1

# =============================================================================
# AUTHORITY CACHE
# =============================================================================

CACHE_POLICY_WEAK = "weak"
CACHE_POLICY_ALL = "all"
CACHE_POLICY_NONE = "none"
CACHE_POLICIES = (CACHE_POLICY_WEAK, CACHE_POLICY_ALL, CACHE_POLICY_NONE)

# Default policy and number of strongly referenced entries
DEFAULT_CACHE_POLICY = CACHE_POLICY_WEAK
DEFAULT_CACHE_CAPACITY = 50

# Authority used when a factory does not name one
DEFAULT_AUTHORITY = "EPSG"


# =============================================================================
# RUNTIME CONFIGURATION
# =============================================================================

@dataclass
class CacheConfig:
    """
    Runtime configuration for an authority object cache.

    Attributes:
        policy: "weak" (bounded strong LRU, weak beyond), "all" (unbounded)
                or "none" (no caching)
        capacity: Number of entries kept by strong reference ("weak" only)
        lock_timeout: Seconds to wait for a per-key lock, None to wait forever
    """

    policy: str = DEFAULT_CACHE_POLICY
    capacity: int = DEFAULT_CACHE_CAPACITY
    lock_timeout: Optional[float] = None

    def __post_init__(self):
        """Validate configuration values."""
        self.policy = self.policy.strip().lower()

        if self.policy not in CACHE_POLICIES:
            raise ValueError(
                f"policy must be one of {', '.join(CACHE_POLICIES)}, got {self.policy!r}"
            )

        if self.capacity < 0:
            raise ValueError("capacity must be non-negative")

        if self.lock_timeout is not None and self.lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")


# Default configuration instance
DEFAULT_CACHE_CONFIG = CacheConfig()
