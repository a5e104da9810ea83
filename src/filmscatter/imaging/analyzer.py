"""
Per-film analysis pipeline: image -> centroid -> radial profile -> sigma.

Each film is analyzed independently of every other; the batch helper runs
one task per image on a thread pool so that slow decodes overlap and a
failed decode leaves the other films untouched.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Hashable, Mapping, TypeVar

from ..errors import DecodeError
from ..fitting.gaussian import (
    HIGH_FRACTION,
    LOW_FRACTION,
    MIN_POINTS,
    GaussianFitResult,
    fit_gaussian_profile,
)
from .centroid import NOISE_THRESHOLD, Point, calculate_centroid
from .radial_profile import RadialDataPoint, calculate_radial_profile
from .sampler import (
    DEFAULT_SAMPLE_SIZE,
    ImageSource,
    SampleGrid,
    load_sample_grid,
    source_label,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


@dataclass
class FilmAnalysis:
    """Outcome of analyzing one film scan."""

    sigma: float  # Beam width (mm), 0 if the fit was refused
    centroid: Point
    profile: list[RadialDataPoint]  # Radial profile with fitted overlay
    fit: GaussianFitResult
    width_px: int
    height_px: int

    @property
    def ok(self) -> bool:
        return self.fit.ok


def analyze_grid(
    grid: SampleGrid,
    pixel_to_mm: float,
    noise_threshold: float = NOISE_THRESHOLD,
    bin_width_px: float = 1.0,
    low_fraction: float = LOW_FRACTION,
    high_fraction: float = HIGH_FRACTION,
    min_points: int = MIN_POINTS,
) -> FilmAnalysis:
    """
    Run the full width-extraction pipeline on a decoded grid.

    Args:
        grid: Sample grid of the film scan.
        pixel_to_mm: Physical size of one grid pixel (mm/pixel).
        noise_threshold: Centroid background gate.
        bin_width_px: Radial bin width in pixels.
        low_fraction: Lower fit window bound (fraction of peak).
        high_fraction: Upper fit window bound (fraction of peak).
        min_points: Minimum points in the fit window.

    Returns:
        FilmAnalysis with sigma in mm.
    """
    centroid = calculate_centroid(grid, noise_threshold=noise_threshold)
    profile = calculate_radial_profile(
        grid, centroid, pixel_to_mm, bin_width_px=bin_width_px
    )
    fit = fit_gaussian_profile(
        profile,
        low_fraction=low_fraction,
        high_fraction=high_fraction,
        min_points=min_points,
    )

    return FilmAnalysis(
        sigma=fit.sigma,
        centroid=centroid,
        profile=fit.points,
        fit=fit,
        width_px=grid.width,
        height_px=grid.height,
    )


def analyze_film(
    source: ImageSource,
    pixel_to_mm: float,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    **fit_options,
) -> FilmAnalysis:
    """
    Decode an image and analyze it.

    Raises:
        DecodeError: If the image cannot be decoded.
    """
    if pixel_to_mm <= 0:
        raise ValueError(f"pixel_to_mm must be positive, got {pixel_to_mm}")

    grid = load_sample_grid(source, sample_size=sample_size)
    analysis = analyze_grid(grid, pixel_to_mm, **fit_options)

    if not analysis.ok:
        logger.info(
            "No reliable Gaussian fit (%s) for %s",
            analysis.fit.confidence.value,
            source_label(source),
        )

    return analysis


def analyze_films(
    sources: Mapping[K, ImageSource],
    pixel_to_mm: float,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    max_workers: int = 4,
    **fit_options,
) -> tuple[dict[K, FilmAnalysis], dict[K, DecodeError]]:
    """
    Analyze several films concurrently.

    Args:
        sources: Mapping of caller-chosen keys to image sources.
        pixel_to_mm: Physical size of one grid pixel (mm/pixel).
        sample_size: Longest side of the working grid.
        max_workers: Thread pool size.

    Returns:
        Tuple of (analyses, errors), both keyed like `sources`. Every key
        lands in exactly one of the two dicts.
    """
    if pixel_to_mm <= 0:
        raise ValueError(f"pixel_to_mm must be positive, got {pixel_to_mm}")

    analyses: dict[K, FilmAnalysis] = {}
    errors: dict[K, DecodeError] = {}

    if not sources:
        return analyses, errors

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as ex:
        futures = {
            ex.submit(analyze_film, src, pixel_to_mm, sample_size, **fit_options): key
            for key, src in sources.items()
        }
        for fut in as_completed(futures):
            key = futures[fut]
            try:
                analyses[key] = fut.result()
            except DecodeError as e:
                errors[key] = e

    return analyses, errors
