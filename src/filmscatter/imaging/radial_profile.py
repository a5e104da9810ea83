"""
Radial intensity profile around the beam centroid.

Every pixel is binned by its distance from the centroid and each bin is
averaged, giving intensity as a function of radius. Averaging (rather than
summing) normalizes for the growing number of pixels in each annulus.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional

import numpy as np

from .centroid import Point
from .sampler import SampleGrid


class RadialDataPoint(NamedTuple):
    """One bin of a radial profile."""

    radius: float  # Physical distance from the centroid (mm)
    intensity: float  # Bin-averaged dose-proxy intensity
    fit: Optional[float] = None  # Modeled intensity, for overlays


RadialProfile = list[RadialDataPoint]


def calculate_radial_profile(
    grid: SampleGrid,
    centroid: Point,
    pixel_to_mm: float,
    bin_width_px: float = 1.0,
) -> RadialProfile:
    """
    Bin the grid by distance from the centroid.

    Args:
        grid: Sample grid of the film scan.
        centroid: Beam center in pixel coordinates.
        pixel_to_mm: Physical size of one pixel (mm/pixel).
        bin_width_px: Radial bin width in pixels.

    Returns:
        Profile points for every non-empty bin, ordered by increasing
        radius. Empty bins are skipped.
    """
    if pixel_to_mm <= 0:
        raise ValueError(f"pixel_to_mm must be positive, got {pixel_to_mm}")
    if bin_width_px <= 0:
        raise ValueError(f"bin_width_px must be positive, got {bin_width_px}")

    width, height = grid.width, grid.height
    if width == 0 or height == 0:
        return []

    max_radius = math.sqrt(width * width + height * height) / 2
    n_bins = math.ceil(max_radius / bin_width_px)

    intensity = grid.intensity()
    ys, xs = np.indices(grid.shape)
    r = np.hypot(xs - centroid.x, ys - centroid.y)
    bin_idx = np.floor(r / bin_width_px).astype(np.int64)

    # Pixels beyond the half-diagonal (off-center centroids) are dropped
    inside = bin_idx < n_bins
    sums = np.bincount(bin_idx[inside], weights=intensity[inside], minlength=n_bins)
    counts = np.bincount(bin_idx[inside], minlength=n_bins)

    profile = []
    for i in np.flatnonzero(counts):
        profile.append(RadialDataPoint(
            radius=float(i * bin_width_px * pixel_to_mm),
            intensity=float(sums[i] / counts[i]),
        ))

    return profile


def profile_arrays(profile: RadialProfile) -> tuple[np.ndarray, np.ndarray]:
    """Split a profile into (radii, intensities) arrays."""
    radii = np.array([p.radius for p in profile], dtype=np.float64)
    intensities = np.array([p.intensity for p in profile], dtype=np.float64)
    return radii, intensities
