"""Scattering physics: quadrature correction, RMS angles, Highland theory."""

from .highland import HighlandParams, calculate_highland_theta
from .scattering import (
    AnalysisSummary,
    FilmSample,
    ScatteringResults,
    analyze_scattering,
    calculate_theta_rms,
    corrected_sigma,
    summarize_samples,
)

__all__ = [
    "HighlandParams",
    "calculate_highland_theta",
    "AnalysisSummary",
    "FilmSample",
    "ScatteringResults",
    "analyze_scattering",
    "calculate_theta_rms",
    "corrected_sigma",
    "summarize_samples",
]
