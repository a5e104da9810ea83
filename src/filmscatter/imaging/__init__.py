"""Image processing for beam width extraction from film scans."""

from .sampler import SampleGrid, load_sample_grid, grid_from_array
from .centroid import Point, calculate_centroid
from .radial_profile import RadialDataPoint, calculate_radial_profile

__all__ = [
    "SampleGrid",
    "load_sample_grid",
    "grid_from_array",
    "Point",
    "calculate_centroid",
    "RadialDataPoint",
    "calculate_radial_profile",
]
