"""
Scattering analysis from paired air/material beam widths.

Each film station is measured twice: once with the beam passing through air
only (baseline) and once through the scattering material. The broadening
caused by the material alone is obtained by quadrature subtraction,

    sigma_corrected = sqrt(sigma_material^2 - sigma_air^2)

and converted into a scattering angle by dividing by the distance from the
material to the film. Angles from all stations are combined into an RMS.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from .highland import HighlandParams


@dataclass
class FilmSample:
    """One measurement station: a film at a given distance."""

    id: int
    distance_l: float  # Distance from the scattering material (mm)
    air_image: Optional[Any] = None  # Path, bytes or file-like image source
    air_sigma: Optional[float] = None  # mm
    material_image: Optional[Any] = None
    material_sigma: Optional[float] = None  # mm

    def reset(self) -> None:
        """Drop images and sigmas, keeping id and distance."""
        self.air_image = None
        self.air_sigma = None
        self.material_image = None
        self.material_sigma = None


@dataclass(frozen=True)
class AnalysisSummary:
    """Derived scattering quantities for one station."""

    sample_id: int
    distance: float
    sigma_air: float
    sigma_material: float
    sigma_corrected: float
    theta: float  # sigma_corrected / distance (rad)
    theoretical_sigma: float  # theta_highland * distance

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisSummary":
        return cls(
            sample_id=int(data["sample_id"]),
            distance=float(data["distance"]),
            sigma_air=float(data["sigma_air"]),
            sigma_material=float(data["sigma_material"]),
            sigma_corrected=float(data["sigma_corrected"]),
            theta=float(data["theta"]),
            theoretical_sigma=float(data["theoretical_sigma"]),
        )


@dataclass
class ScatteringResults:
    """Per-station summaries plus aggregate angles for an experiment."""

    summaries: list[AnalysisSummary]
    theta_rms: float
    theoretical_theta: float
    highland_params: Optional[HighlandParams] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def n_valid(self) -> int:
        """Number of stations contributing to the RMS."""
        return sum(1 for s in self.summaries if s.theta > 0)

    def to_dataframe(self) -> pd.DataFrame:
        """Summary table indexed by sample id."""
        columns = [
            "sample_id",
            "distance",
            "sigma_air",
            "sigma_material",
            "sigma_corrected",
            "theta",
            "theoretical_sigma",
        ]
        df = pd.DataFrame([s.to_dict() for s in self.summaries], columns=columns)
        return df.set_index("sample_id")


def _as_sigma(value: Optional[float]) -> float:
    """Missing or NaN sigmas count as 0."""
    if value is None:
        return 0.0
    value = float(value)
    if math.isnan(value):
        return 0.0
    return value


def corrected_sigma(sigma_material: float, sigma_air: float) -> float:
    """
    Quadrature-subtract the air baseline from the material width.

    Returns 0 when the material width does not exceed the baseline.
    """
    diff_sq = sigma_material * sigma_material - sigma_air * sigma_air
    return math.sqrt(diff_sq) if diff_sq > 0 else 0.0


def scattering_angle(sigma_corrected: float, distance: float) -> float:
    """Small-angle scattering angle (rad); 0 for non-positive distances."""
    return sigma_corrected / distance if distance > 0 else 0.0


def summarize_sample(sample: FilmSample, theta_highland: float) -> AnalysisSummary:
    """Build the AnalysisSummary for one station."""
    sa = _as_sigma(sample.air_sigma)
    sm = _as_sigma(sample.material_sigma)
    sc = corrected_sigma(sm, sa)

    return AnalysisSummary(
        sample_id=sample.id,
        distance=sample.distance_l,
        sigma_air=sa,
        sigma_material=sm,
        sigma_corrected=sc,
        theta=scattering_angle(sc, sample.distance_l),
        theoretical_sigma=theta_highland * sample.distance_l,
    )


def summarize_samples(
    samples: Iterable[FilmSample],
    theta_highland: float,
) -> list[AnalysisSummary]:
    """Build one AnalysisSummary per station, in input order."""
    return [summarize_sample(s, theta_highland) for s in samples]


def calculate_theta_rms(thetas: Iterable[float]) -> float:
    """
    Root-mean-square of the strictly positive angles.

    Zero angles (missing data, zero corrected width, non-positive distance)
    are left out of the mean rather than counted as zeros. Returns 0 when
    no angle qualifies.
    """
    valid = np.array([t for t in thetas if t > 0], dtype=np.float64)
    if len(valid) == 0:
        return 0.0
    return float(np.sqrt(np.mean(valid ** 2)))


def analyze_scattering(
    samples: Sequence[FilmSample],
    highland_params: HighlandParams,
) -> ScatteringResults:
    """
    Combine all stations into a ScatteringResults.

    This is a pure projection of the current samples and parameters and
    can be recomputed after every change.
    """
    theoretical_theta = highland_params.theta()
    summaries = summarize_samples(samples, theoretical_theta)
    theta_rms = calculate_theta_rms(s.theta for s in summaries)

    warnings = []
    if not highland_params.is_valid:
        warnings.append(
            "Highland parameters must all be positive; theoretical angle set to 0."
        )
    clipped = [
        s.sample_id for s in summaries
        if s.sigma_material > 0 and s.sigma_material <= s.sigma_air
    ]
    if clipped:
        warnings.append(
            f"Material width not above air baseline for sample(s) "
            f"{', '.join(str(i) for i in clipped)}; corrected sigma set to 0."
        )

    return ScatteringResults(
        summaries=summaries,
        theta_rms=theta_rms,
        theoretical_theta=theoretical_theta,
        highland_params=highland_params,
        warnings=warnings,
    )
