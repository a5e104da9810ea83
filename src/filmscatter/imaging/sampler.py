"""
Image sampling for film scans.

Decodes a scanned radiochromic film into an immutable grid of RGB (or
grayscale) samples. Scans are resampled to a modest working size before
analysis; the beam width is recovered in physical units later, so the
pixel scale passed downstream must describe the resampled grid.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import DecodeError

logger = logging.getLogger(__name__)

# Longest side of the working grid, in pixels
DEFAULT_SAMPLE_SIZE = 300

ImageSource = Union[str, Path, bytes, BinaryIO]


@dataclass(frozen=True)
class SampleGrid:
    """Read-only width x height grid of pixel samples."""

    data: np.ndarray  # (H, W, 3) RGB or (H, W) grayscale brightness, 0-255

    def __post_init__(self):
        data = np.asarray(self.data, dtype=np.float64)

        if data.ndim == 3:
            if data.shape[2] < 3:
                raise ValueError(f"Expected at least 3 channels, got {data.shape[2]}")
            data = data[:, :, :3]
        elif data.ndim != 2:
            raise ValueError(f"Expected a 2D or 3D sample array, got {data.ndim}D")

        data = np.array(data, copy=True)
        data.setflags(write=False)
        object.__setattr__(self, "data", data)

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    @property
    def is_grayscale(self) -> bool:
        return self.data.ndim == 2

    def brightness(self) -> np.ndarray:
        """Grayscale brightness, (R + G + B) / 3 for RGB samples."""
        if self.is_grayscale:
            return self.data
        return self.data.sum(axis=2) / 3.0

    def intensity(self) -> np.ndarray:
        """
        Dose-proxy intensity, 255 - brightness.

        Radiochromic film darkens with absorbed dose, so darkness rather
        than brightness carries the signal.
        """
        return 255.0 - self.brightness()


def grid_from_array(array: np.ndarray) -> SampleGrid:
    """Wrap an in-memory (H, W) or (H, W, C) array as a SampleGrid."""
    return SampleGrid(np.asarray(array))


def load_sample_grid(
    source: ImageSource,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> SampleGrid:
    """
    Decode an image source into a SampleGrid.

    Args:
        source: Path to an image file, raw encoded bytes, or a binary
                file-like object.
        sample_size: Longest side of the working grid. Larger images are
                     downscaled preserving aspect ratio; smaller ones are
                     left untouched. Values <= 0 disable resampling.

    Returns:
        SampleGrid of RGB samples.

    Raises:
        DecodeError: If the source cannot be opened or decoded.
    """
    label = source_label(source)

    try:
        if isinstance(source, (bytes, bytearray)):
            handle = io.BytesIO(source)
        else:
            handle = source

        with Image.open(handle) as img:
            img = img.convert("RGB")
            img = _resample(img, sample_size)
            data = np.asarray(img, dtype=np.uint8)
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as e:
        logger.warning("Could not decode image %s: %s", label, e)
        raise DecodeError(f"Could not decode image: {label}", source=label) from e

    return SampleGrid(data)


def _resample(img: Image.Image, sample_size: int) -> Image.Image:
    """Downscale so the longest side is at most sample_size."""
    if sample_size <= 0:
        return img

    scale = min(1.0, sample_size / max(img.width, img.height))
    if scale >= 1.0:
        return img

    new_size = (
        max(1, int(img.width * scale)),
        max(1, int(img.height * scale)),
    )
    return img.resize(new_size, Image.Resampling.BILINEAR)


def source_label(source: ImageSource) -> str:
    """Short human-readable name for an image source."""
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return getattr(source, "name", repr(source))
