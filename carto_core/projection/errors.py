"""
Exceptions raised by map projections.
"""


class ProjectionError(Exception):
    """Raised when a point cannot be transformed."""
    pass


class PointOutsideEnvelopeError(ProjectionError):
    """Raised when a longitude or latitude is outside its valid range."""
    pass


class PointOutsideDomainError(ProjectionError):
    """Raised when the projection is undefined at the point (pole, far hemisphere)."""
    pass


class NoConvergenceError(ProjectionError):
    """Raised when an iterative solver exceeds its iteration cap."""
    pass


class UnsupportedVariantError(ProjectionError, ValueError):
    """Raised at construction for an unsupported spherical/ellipsoidal model."""
    pass


class ProjectionCheckError(AssertionError):
    """Raised by the optional round-trip check when a transform drifts."""
    pass
