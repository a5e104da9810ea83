"""Gaussian fitting of radial beam profiles."""

from .gaussian import (
    FitConfidence,
    GaussianFitResult,
    calculate_fit_curve,
    fit_gaussian,
    fit_gaussian_profile,
)

__all__ = [
    "FitConfidence",
    "GaussianFitResult",
    "calculate_fit_curve",
    "fit_gaussian",
    "fit_gaussian_profile",
]
