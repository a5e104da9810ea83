"""Tests for radial profile binning."""

import math

import numpy as np
import pytest

from filmscatter.imaging.centroid import Point
from filmscatter.imaging.radial_profile import (
    RadialDataPoint,
    calculate_radial_profile,
    profile_arrays,
)
from filmscatter.imaging.sampler import SampleGrid


class TestCalculateRadialProfile:
    """Tests for radius -> average intensity profiles."""

    def test_radii_are_sorted_and_bounded(self, make_gaussian_grid):
        """Radii increase and never exceed the half-diagonal."""
        grid = make_gaussian_grid(width=80, height=50, sigma_px=8)
        scale = 0.25

        profile = calculate_radial_profile(grid, Point(10.0, 40.0), scale)
        radii, _ = profile_arrays(profile)

        assert len(profile) > 0
        assert np.all(np.diff(radii) > 0)
        assert radii.max() <= scale * math.sqrt(80 ** 2 + 50 ** 2) / 2

    def test_bins_are_averaged_and_empty_bins_skipped(self):
        """Bin intensity is the mean, and bins with no pixels are dropped."""
        data = np.full((3, 3, 3), 255.0)
        data[1, 1] = 155.0  # Intensity 100 at the center

        profile = calculate_radial_profile(SampleGrid(data), Point(1.0, 1.0), 0.5)

        # Bin 0: the center pixel. Bin 1: eight neighbours at r=1 and r=1.41.
        # Bin 2 (r in [2, 2.12)) holds no pixels.
        assert profile == [
            RadialDataPoint(radius=0.0, intensity=100.0),
            RadialDataPoint(radius=0.5, intensity=0.0),
        ]

    def test_uniform_grid_has_flat_profile(self):
        """Every bin of a uniform film has the same average intensity."""
        grid = SampleGrid(np.full((20, 20, 3), 55.0))

        profile = calculate_radial_profile(grid, Point(10.0, 10.0), 1.0)

        assert all(p.intensity == pytest.approx(200.0) for p in profile)

    def test_scale_converts_to_physical_units(self, make_gaussian_grid):
        """Radii are bin index times the pixel scale."""
        grid = make_gaussian_grid(width=31, height=31, sigma_px=5)

        profile = calculate_radial_profile(grid, Point(15.0, 15.0), 0.2)

        for i, p in enumerate(profile[:10]):
            assert p.radius == pytest.approx(i * 0.2)

    def test_profile_decreases_from_spot_center(self, make_gaussian_grid):
        """A Gaussian spot gives a falling profile."""
        grid = make_gaussian_grid(width=101, height=101, sigma_px=10)

        profile = calculate_radial_profile(grid, Point(50.0, 50.0), 1.0)
        _, intensities = profile_arrays(profile)

        assert intensities[0] == pytest.approx(200.0)
        assert np.all(np.diff(intensities[:40]) < 0)

    def test_wider_bins(self, make_gaussian_grid):
        """Doubling the bin width roughly halves the number of bins."""
        grid = make_gaussian_grid(width=60, height=60, sigma_px=8)
        centroid = Point(29.5, 29.5)

        fine = calculate_radial_profile(grid, centroid, 1.0)
        coarse = calculate_radial_profile(grid, centroid, 1.0, bin_width_px=2.0)

        assert len(coarse) == pytest.approx(len(fine) / 2, abs=1)
        assert coarse[1].radius == pytest.approx(2.0)

    def test_single_pixel_grid(self):
        """A 1x1 grid yields one point at radius 0."""
        grid = SampleGrid(np.full((1, 1, 3), 0.0))

        profile = calculate_radial_profile(grid, Point(0.0, 0.0), 0.1)

        assert profile == [RadialDataPoint(0.0, 255.0)]

    def test_non_positive_scale_raises(self, make_gaussian_grid):
        """A pixel scale must be positive."""
        grid = make_gaussian_grid(width=10, height=10)

        with pytest.raises(ValueError):
            calculate_radial_profile(grid, Point(5.0, 5.0), 0.0)
