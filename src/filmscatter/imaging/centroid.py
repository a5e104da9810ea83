"""
Dose centroid of a film scan.

The beam center is the intensity-weighted center of mass of the film,
where intensity is the inverted brightness (dark = high dose). Faint
pixels at or below a noise threshold are dropped entirely so that
background fog does not pull the centroid toward the image center.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from .sampler import SampleGrid

# Intensity gate separating beam signal from background fog
NOISE_THRESHOLD = 20.0


class Point(NamedTuple):
    """A 2D coordinate in pixel space."""

    x: float
    y: float


def calculate_centroid(
    grid: SampleGrid,
    noise_threshold: float = NOISE_THRESHOLD,
) -> Point:
    """
    Calculate the intensity-weighted centroid of a sample grid.

    Args:
        grid: Sample grid of the film scan.
        noise_threshold: Samples with intensity <= this value are excluded
                         from both the weighted sums and the total mass.

    Returns:
        Centroid in pixel coordinates. Falls back to the geometric center
        (width / 2, height / 2) when no sample carries weight.
    """
    intensity = grid.intensity()
    weights = np.where(intensity > noise_threshold, intensity, 0.0)

    total_mass = float(np.sum(weights))
    if total_mass == 0:
        return Point(grid.width / 2, grid.height / 2)

    ys, xs = np.indices(grid.shape)
    cx = float(np.sum(xs * weights)) / total_mass
    cy = float(np.sum(ys * weights)) / total_mass

    return Point(cx, cy)
