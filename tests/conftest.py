"""Shared synthetic film fixtures."""

import numpy as np
import pytest
from PIL import Image

from filmscatter.imaging.sampler import SampleGrid


def gaussian_film(
    width: int = 201,
    height: int = 201,
    sigma_px: float = 20.0,
    amplitude: float = 200.0,
    center: tuple[float, float] | None = None,
) -> np.ndarray:
    """
    RGB film scan of a Gaussian dose spot.

    Intensity (255 - brightness) follows amplitude * exp(-r^2 / 2 sigma^2).
    """
    if center is None:
        center = ((width - 1) / 2, (height - 1) / 2)

    ys, xs = np.indices((height, width))
    r_sq = (xs - center[0]) ** 2 + (ys - center[1]) ** 2
    intensity = amplitude * np.exp(-r_sq / (2 * sigma_px ** 2))
    brightness = 255.0 - intensity

    return np.repeat(brightness[:, :, np.newaxis], 3, axis=2)


@pytest.fixture
def make_gaussian_grid():
    """Factory for SampleGrids of a Gaussian spot."""

    def _make(**kwargs) -> SampleGrid:
        return SampleGrid(gaussian_film(**kwargs))

    return _make


@pytest.fixture
def write_png(tmp_path):
    """Factory writing an RGB float array to a PNG file in tmp_path."""

    def _write(array: np.ndarray, name: str = "film.png"):
        path = tmp_path / name
        img = Image.fromarray(np.clip(np.round(array), 0, 255).astype(np.uint8))
        img.save(path)
        return path

    return _write


@pytest.fixture
def gaussian_png(write_png):
    """PNG scan of a 20 px sigma Gaussian spot on a 201x201 film."""
    return write_png(gaussian_film(), "gaussian.png")
