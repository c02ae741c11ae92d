"""
Error Taxonomy
==============
Exceptions and warnings raised by the surface fitting pipeline.

Fatal conditions derive from SurfaceFitError and propagate to the caller
without partial output. A degenerate rescale range is recoverable and is
reported as a warning instead.
"""


class SurfaceFitError(Exception):
    """Base class for all fatal surface fitting errors."""


class RankDeficiencyError(SurfaceFitError, ValueError):
    """The smoothing capacity `k` exceeds what the training coordinates can support."""


class WeightMismatchError(SurfaceFitError, ValueError):
    """The weight vector is not aligned one-to-one with the present-response rows."""


class EmptyTrainingSetError(SurfaceFitError, ValueError):
    """No row carries a usable response value."""


class JoinMismatchError(SurfaceFitError, RuntimeError):
    """Predictions could not be written back onto the input rows (internal fault)."""


class DegenerateAxisRangeWarning(UserWarning):
    """The anchors do not vary along a coordinate axis; distances along it use the evaluated points' range."""
