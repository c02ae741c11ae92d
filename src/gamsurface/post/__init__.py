"""
Post-processing
===============
Steps applied after the surface has been evaluated.

1. Masking: Discards extrapolated predictions that are too far from any
   measured coordinate.
2. Assembly: Writes the final values back onto the caller's table.
"""
from gamsurface.post.assemble import assemble_result
from gamsurface.post.mask import exclude_too_far

__all__ = ["assemble_result", "exclude_too_far"]
