"""
Gaussian width extraction from a radial intensity profile.

The on-axis beam intensity is modeled as

    I(r) = A * exp(-r^2 / (2 * sigma^2))

which is linear after taking logs:

    ln(I) = ln(A) - r^2 / (2 * sigma^2)
    y     = c     + m * x,   with x = r^2, y = ln(I), m = -1 / (2 * sigma^2)

so sigma = sqrt(-1 / (2 * m)) follows from an ordinary least-squares line.

Only the 30-95% band of the peak intensity is fitted. The top 5% avoids
saturation at the beam core and the bottom 30% avoids the noisy tails;
most of the profile is discarded on purpose.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from scipy import stats

from ..imaging.radial_profile import RadialDataPoint, RadialProfile, profile_arrays

logger = logging.getLogger(__name__)

LOW_FRACTION = 0.30
HIGH_FRACTION = 0.95
MIN_POINTS = 5


class FitConfidence(Enum):
    """Outcome of a Gaussian fit."""

    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"  # Too few points in the window
    NON_GAUSSIAN = "non_gaussian"  # Flat or rising profile


@dataclass
class GaussianFitResult:
    """Result of fitting a Gaussian to a radial profile."""

    sigma: float  # Physical width (mm), 0 when the fit is refused
    amplitude: float  # exp(intercept) of the linearized fit
    r_squared: float  # Goodness of the linearized fit
    n_points: int  # Points inside the fit window
    confidence: FitConfidence
    points: list[RadialDataPoint] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.confidence == FitConfidence.OK


def fit_gaussian(
    profile: RadialProfile,
    low_fraction: float = LOW_FRACTION,
    high_fraction: float = HIGH_FRACTION,
    min_points: int = MIN_POINTS,
) -> float:
    """
    Recover the Gaussian width of a radial profile.

    Returns:
        Sigma in the profile's radius units, or 0 when no reliable fit
        is possible.
    """
    return fit_gaussian_profile(
        profile,
        low_fraction=low_fraction,
        high_fraction=high_fraction,
        min_points=min_points,
    ).sigma


def fit_gaussian_profile(
    profile: RadialProfile,
    low_fraction: float = LOW_FRACTION,
    high_fraction: float = HIGH_FRACTION,
    min_points: int = MIN_POINTS,
) -> GaussianFitResult:
    """
    Fit a Gaussian to a radial profile and report fit quality.

    Args:
        profile: Radial profile ordered by radius.
        low_fraction: Lower window bound as a fraction of peak intensity.
        high_fraction: Upper window bound as a fraction of peak intensity.
        min_points: Minimum window size for a regression to be trusted.

    Returns:
        GaussianFitResult. A refused fit has sigma 0 and a confidence flag
        saying why; the profile is returned without fitted values then.
    """
    if not profile:
        return _refused(profile, 0, FitConfidence.INSUFFICIENT_DATA)

    radii, intensities = profile_arrays(profile)
    max_intensity = float(np.max(intensities))

    window = (
        (intensities > max_intensity * low_fraction)
        & (intensities < max_intensity * high_fraction)
        & (radii > 0)
        & (intensities > 0)
    )
    n = int(np.sum(window))

    if n < min_points:
        logger.debug("Fit refused: %d points in window, need %d", n, min_points)
        return _refused(profile, n, FitConfidence.INSUFFICIENT_DATA)

    x = radii[window] ** 2
    y = np.log(intensities[window])

    if np.ptp(x) == 0:
        return _refused(profile, n, FitConfidence.NON_GAUSSIAN)

    reg = stats.linregress(x, y)
    slope = float(reg.slope)

    if slope >= 0:
        logger.debug("Fit refused: non-negative slope %.4g", slope)
        return _refused(profile, n, FitConfidence.NON_GAUSSIAN)

    sigma = math.sqrt(-1.0 / (2.0 * slope))

    return GaussianFitResult(
        sigma=sigma,
        amplitude=float(math.exp(reg.intercept)),
        r_squared=float(reg.rvalue ** 2),
        n_points=n,
        confidence=FitConfidence.OK,
        points=calculate_fit_curve(profile, sigma),
    )


def calculate_fit_curve(
    profile: RadialProfile,
    sigma: float,
) -> list[RadialDataPoint]:
    """
    Annotate each profile point with the modeled intensity.

    The model is anchored on the profile's peak intensity:
    fit = max_intensity * exp(-r^2 / (2 * sigma^2)). This is a display
    aid only and does not influence sigma. With sigma <= 0 there is no
    curve and every fit value is left as None.
    """
    if not profile:
        return []

    if sigma <= 0:
        return [p._replace(fit=None) for p in profile]

    max_intensity = max(p.intensity for p in profile)
    two_sigma_sq = 2.0 * sigma * sigma

    return [
        p._replace(fit=max_intensity * math.exp(-(p.radius * p.radius) / two_sigma_sq))
        for p in profile
    ]


def _refused(
    profile: RadialProfile,
    n_points: int,
    confidence: FitConfidence,
) -> GaussianFitResult:
    return GaussianFitResult(
        sigma=0.0,
        amplitude=0.0,
        r_squared=0.0,
        n_points=n_points,
        confidence=confidence,
        points=calculate_fit_curve(profile, 0.0),
    )
