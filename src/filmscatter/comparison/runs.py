"""
Saved experiment runs and cross-run comparison.

A SavedRun is an immutable snapshot of an experiment's results. Runs are
compared point-by-point at exactly equal distances; there is no
interpolation between differing distance sets.
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import RunStoreError
from ..physics.highland import HighlandParams
from ..physics.scattering import AnalysisSummary, ScatteringResults


@dataclass(frozen=True)
class SavedRun:
    """Snapshot of one experiment's results."""

    id: str
    material_name: str
    timestamp: float  # Seconds since the epoch
    results: tuple[AnalysisSummary, ...]
    theta_rms: float
    highland_params: HighlandParams
    theoretical_theta: float

    @classmethod
    def from_results(
        cls,
        material_name: str,
        results: ScatteringResults,
        highland_params: HighlandParams,
        timestamp: Optional[float] = None,
    ) -> "SavedRun":
        """Snapshot a ScatteringResults under a fresh run id."""
        return cls(
            id=uuid.uuid4().hex[:12],
            material_name=material_name,
            timestamp=time.time() if timestamp is None else timestamp,
            results=tuple(results.summaries),
            theta_rms=results.theta_rms,
            highland_params=highland_params,
            theoretical_theta=results.theoretical_theta,
        )

    @property
    def max_sigma_corrected(self) -> float:
        if not self.results:
            return 0.0
        return max(r.sigma_corrected for r in self.results)

    @property
    def theory_match_percentage(self) -> float:
        return theory_match_percentage(self.theta_rms, self.theoretical_theta)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "material_name": self.material_name,
            "timestamp": self.timestamp,
            "results": [r.to_dict() for r in self.results],
            "theta_rms": self.theta_rms,
            "highland_params": self.highland_params.to_dict(),
            "theoretical_theta": self.theoretical_theta,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedRun":
        return cls(
            id=str(data["id"]),
            material_name=str(data["material_name"]),
            timestamp=float(data["timestamp"]),
            results=tuple(AnalysisSummary.from_dict(r) for r in data["results"]),
            theta_rms=float(data["theta_rms"]),
            highland_params=HighlandParams.from_dict(data["highland_params"]),
            theoretical_theta=float(data["theoretical_theta"]),
        )


@dataclass(frozen=True)
class RunStatistics:
    """Scalar comparison statistics for one run."""

    run_id: str
    material_name: str
    max_sigma_corrected: float
    theta_rms: float
    theoretical_theta: float
    theory_match_percentage: float


class RunStore:
    """
    In-memory collection of saved runs, newest first.
    """

    def __init__(self, runs: Optional[Iterable[SavedRun]] = None):
        self._runs: list[SavedRun] = list(runs) if runs is not None else []

    def __len__(self) -> int:
        return len(self._runs)

    def __iter__(self) -> Iterator[SavedRun]:
        return iter(self._runs)

    def __contains__(self, run_id: str) -> bool:
        return any(r.id == run_id for r in self._runs)

    @property
    def runs(self) -> list[SavedRun]:
        return list(self._runs)

    def add(self, run: SavedRun) -> None:
        if run.id in self:
            raise RunStoreError(f"Run already stored: {run.id}")
        self._runs.insert(0, run)

    def get(self, run_id: str) -> SavedRun:
        for run in self._runs:
            if run.id == run_id:
                return run
        raise KeyError(run_id)

    def remove(self, run_id: str) -> SavedRun:
        run = self.get(run_id)
        self._runs.remove(run)
        return run

    def select(self, run_ids: Iterable[str]) -> list[SavedRun]:
        """Runs with the given ids, in store order."""
        wanted = set(run_ids)
        missing = wanted - {r.id for r in self._runs}
        if missing:
            raise KeyError(", ".join(sorted(missing)))
        return [r for r in self._runs if r.id in wanted]

    def save_json(self, path: str | Path) -> Path:
        path = Path(path)
        payload = {"runs": [r.to_dict() for r in self._runs]}
        path.write_text(json.dumps(payload, indent=2))
        return path

    @classmethod
    def load_json(cls, path: str | Path) -> "RunStore":
        """Load a store from JSON. A missing file yields an empty store."""
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text())
            runs = [SavedRun.from_dict(r) for r in data["runs"]]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise RunStoreError(f"Could not read saved runs from {path}: {e}") from e

        return cls(runs)


def theory_match_percentage(theta_rms: float, theoretical_theta: float) -> float:
    """
    How closely the measured RMS angle matches the Highland prediction.

    100 - |theta_rms - theoretical| / theoretical * 100, floored at 0.
    Returns 0 when there is no positive theoretical angle.
    """
    if theoretical_theta <= 0:
        return 0.0
    deviation = abs(theta_rms - theoretical_theta) / theoretical_theta * 100
    return max(0.0, 100 - deviation)


def run_statistics(run: SavedRun) -> RunStatistics:
    return RunStatistics(
        run_id=run.id,
        material_name=run.material_name,
        max_sigma_corrected=run.max_sigma_corrected,
        theta_rms=run.theta_rms,
        theoretical_theta=run.theoretical_theta,
        theory_match_percentage=run.theory_match_percentage,
    )


def build_comparison_series(runs: Sequence[SavedRun]) -> pd.DataFrame:
    """
    Corrected sigma per distance, one column per run.

    The index is the sorted union of all distances. A run without a sample
    at exactly that distance has NaN there. If a run repeats a distance,
    its first sample is used.

    Returns:
        DataFrame indexed by distance with one column per run id.
    """
    distances = sorted({r.distance for run in runs for r in run.results})
    df = pd.DataFrame(index=pd.Index(distances, name="distance", dtype=np.float64))

    for run in runs:
        by_distance: dict[float, float] = {}
        for r in run.results:
            by_distance.setdefault(r.distance, r.sigma_corrected)
        df[run.id] = [by_distance.get(d, np.nan) for d in distances]

    return df
