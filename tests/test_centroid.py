"""Tests for the dose centroid."""

import numpy as np
import pytest

from filmscatter.imaging.centroid import Point, calculate_centroid
from filmscatter.imaging.sampler import SampleGrid


def uniform_grid(width, height, brightness):
    return SampleGrid(np.full((height, width, 3), float(brightness)))


class TestCalculateCentroid:
    """Tests for intensity-weighted centroid estimation."""

    def test_uniform_dark_grid_is_pixel_center(self):
        """A uniformly exposed film centers on the middle pixel coordinate."""
        centroid = calculate_centroid(uniform_grid(40, 30, 100))

        assert centroid.x == pytest.approx(19.5)
        assert centroid.y == pytest.approx(14.5)

    def test_blank_film_falls_back_to_geometric_center(self):
        """An unexposed (white) film has no mass and returns (w/2, h/2)."""
        centroid = calculate_centroid(uniform_grid(40, 30, 255))

        assert centroid == Point(20.0, 15.0)

    def test_background_fog_is_ignored(self):
        """Intensity at or below the noise threshold carries no weight."""
        # 255 - 235 = 20, exactly at the threshold
        assert calculate_centroid(uniform_grid(10, 8, 235)) == Point(5.0, 4.0)
        assert calculate_centroid(uniform_grid(10, 8, 240)) == Point(5.0, 4.0)

    def test_fog_does_not_pull_centroid(self):
        """Sub-threshold fog on one side leaves the spot centroid unchanged."""
        data = np.full((20, 20, 3), 255.0)
        data[:, :10] = 245.0  # Faint fog on the left half
        data[5, 15] = 0.0  # Single dark pixel

        centroid = calculate_centroid(SampleGrid(data))

        assert centroid.x == pytest.approx(15.0)
        assert centroid.y == pytest.approx(5.0)

    def test_single_dark_pixel(self):
        """A lone exposed pixel is its own centroid."""
        data = np.full((12, 16, 3), 255.0)
        data[3, 7] = 50.0

        centroid = calculate_centroid(SampleGrid(data))

        assert centroid.x == pytest.approx(7.0)
        assert centroid.y == pytest.approx(3.0)

    def test_off_center_gaussian(self, make_gaussian_grid):
        """The centroid of a symmetric spot is the spot center."""
        grid = make_gaussian_grid(width=121, height=101, sigma_px=10, center=(60, 40))

        centroid = calculate_centroid(grid)

        assert centroid.x == pytest.approx(60.0, abs=1e-6)
        assert centroid.y == pytest.approx(40.0, abs=1e-6)

    def test_grayscale_grid(self):
        """Grayscale grids are weighted by their brightness directly."""
        data = np.full((5, 5), 255.0)
        data[1, 3] = 0.0
        data[3, 3] = 0.0

        centroid = calculate_centroid(SampleGrid(data))

        assert centroid.x == pytest.approx(3.0)
        assert centroid.y == pytest.approx(2.0)

    def test_custom_threshold(self):
        """Raising the threshold drops weaker exposure."""
        data = np.full((10, 10, 3), 255.0)
        data[2, 2] = 200.0  # Intensity 55
        data[7, 7] = 0.0  # Intensity 255

        default = calculate_centroid(SampleGrid(data))
        strict = calculate_centroid(SampleGrid(data), noise_threshold=100)

        assert default.x < 7.0
        assert strict == Point(7.0, 7.0)
