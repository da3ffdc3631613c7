"""
carto_core

Numerical core of a cartographic projection system:

- map projections (Mercator, Equidistant Cylindrical, Orthographic,
  Stereographic, New Zealand Map Grid) with forward and inverse
  transforms over single points and coordinate buffers
- thread-safe authority object caches building each object once

Usage:
    from carto_core.projection import create_projection

    mercator = create_projection("Mercator_1SP", {"semi_major": 6378137.0,
                                                  "semi_minor": 6356752.314245179})
    x, y = mercator.forward(2.35, 48.85)
"""

__version__ = "0.1.0"
__author__ = "carto_core developers"
