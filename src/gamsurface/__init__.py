"""
gamsurface
==========
Smooth two-dimensional response surfaces for scattered, noisy samples, such as
pollutant concentrations observed at wind vector coordinates, with masking of
extrapolated regions that lie too far from any measurement.
"""
from gamsurface.analysis import FittedSurface
from gamsurface.config import SurfaceFitConfig
from gamsurface.errors import (
    DegenerateAxisRangeWarning,
    EmptyTrainingSetError,
    JoinMismatchError,
    RankDeficiencyError,
    SurfaceFitError,
    WeightMismatchError,
)
from gamsurface.logging_config import setup_logging
from gamsurface.post import exclude_too_far
from gamsurface.surface import fit_gam_surface, fit_surface
from gamsurface.transform import PowerTransform
from gamsurface.wind import add_wind_components, expand_grid, wind_to_uv

__all__ = [
    "DegenerateAxisRangeWarning",
    "EmptyTrainingSetError",
    "FittedSurface",
    "JoinMismatchError",
    "PowerTransform",
    "RankDeficiencyError",
    "SurfaceFitConfig",
    "SurfaceFitError",
    "WeightMismatchError",
    "add_wind_components",
    "exclude_too_far",
    "expand_grid",
    "fit_gam_surface",
    "fit_surface",
    "setup_logging",
    "wind_to_uv",
]
