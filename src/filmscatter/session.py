"""
Experiment session state.

An ExperimentSession owns the mutable inputs of one experiment (material,
pixel scale, Highland parameters and the film stations) and derives every
result from them on demand. Nothing derived is cached, so results always
reflect the current inputs.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .comparison.runs import RunStore, SavedRun
from .config import Config
from .errors import DecodeError
from .imaging.analyzer import FilmAnalysis, analyze_films
from .imaging.sampler import ImageSource
from .physics.highland import HighlandParams
from .physics.scattering import FilmSample, ScatteringResults, analyze_scattering

logger = logging.getLogger(__name__)


class FilmKind(Enum):
    """Which exposure of a station a film belongs to."""

    AIR = "air"
    MATERIAL = "material"


class ExperimentSession:
    """
    Inputs and derived results for one scattering experiment.

    Usage:
        session = ExperimentSession(material_name="Lead 5mm")
        session.set_image(1, FilmKind.AIR, "air_100mm.png")
        session.set_image(1, FilmKind.MATERIAL, "lead_100mm.png")
        session.analyze_images()
        results = session.results()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        material_name: Optional[str] = None,
        highland_params: Optional[HighlandParams] = None,
        pixel_to_mm: Optional[float] = None,
        n_samples: Optional[int] = None,
    ):
        self.config = config or Config()
        self.material_name = (
            material_name if material_name is not None else self.config.MATERIAL_NAME
        )
        self.highland_params = highland_params or self.config.highland_params()
        self.pixel_to_mm = (
            pixel_to_mm if pixel_to_mm is not None else self.config.PIXEL_TO_MM
        )
        self.analyses: dict[tuple[int, FilmKind], FilmAnalysis] = {}
        self.samples: list[FilmSample] = []

        count = n_samples if n_samples is not None else self.config.NUM_SAMPLES
        for _ in range(count):
            self.add_sample()

    def __len__(self) -> int:
        return len(self.samples)

    def add_sample(
        self,
        distance: Optional[float] = None,
        sample_id: Optional[int] = None,
    ) -> FilmSample:
        """
        Append a station.

        Ids default to one past the current maximum; distances default to
        id * DISTANCE_STEP_MM.
        """
        if sample_id is None:
            sample_id = max((s.id for s in self.samples), default=0) + 1
        elif any(s.id == sample_id for s in self.samples):
            raise ValueError(f"Duplicate sample id: {sample_id}")

        if distance is None:
            distance = sample_id * self.config.DISTANCE_STEP_MM

        sample = FilmSample(id=sample_id, distance_l=float(distance))
        self.samples.append(sample)
        return sample

    def get_sample(self, sample_id: int) -> FilmSample:
        for sample in self.samples:
            if sample.id == sample_id:
                return sample
        raise KeyError(sample_id)

    def update_distance(self, sample_id: int, distance: float) -> None:
        self.get_sample(sample_id).distance_l = float(distance)

    def set_image(self, sample_id: int, kind: FilmKind, source: ImageSource) -> None:
        """Attach an image to a station; its previous sigma is cleared."""
        sample = self.get_sample(sample_id)
        if kind == FilmKind.AIR:
            sample.air_image = source
            sample.air_sigma = None
        else:
            sample.material_image = source
            sample.material_sigma = None
        self.analyses.pop((sample_id, kind), None)

    def record_sigma(
        self,
        sample_id: int,
        kind: FilmKind,
        sigma: Optional[float],
    ) -> None:
        sample = self.get_sample(sample_id)
        if kind == FilmKind.AIR:
            sample.air_sigma = sigma
        else:
            sample.material_sigma = sigma
        logger.debug("Sample %s %s sigma = %s", sample_id, kind.value, sigma)

    def reset_sample(self, sample_id: int) -> None:
        self.get_sample(sample_id).reset()
        for kind in FilmKind:
            self.analyses.pop((sample_id, kind), None)

    def analyze_images(
        self,
        max_workers: Optional[int] = None,
    ) -> dict[tuple[int, FilmKind], DecodeError]:
        """
        Analyze every attached image and record the resulting sigmas.

        Images that fail to decode get a sigma of None (counted as 0
        downstream) and are reported in the returned dict.

        Returns:
            Decode errors keyed by (sample_id, kind).
        """
        sources: dict[tuple[int, FilmKind], ImageSource] = {}
        for sample in self.samples:
            if sample.air_image is not None:
                sources[(sample.id, FilmKind.AIR)] = sample.air_image
            if sample.material_image is not None:
                sources[(sample.id, FilmKind.MATERIAL)] = sample.material_image

        analyses, errors = analyze_films(
            sources,
            self.pixel_to_mm,
            sample_size=self.config.SAMPLE_SIZE,
            max_workers=max_workers or self.config.MAX_WORKERS,
            noise_threshold=self.config.NOISE_THRESHOLD,
            bin_width_px=self.config.BIN_WIDTH_PX,
            low_fraction=self.config.FIT_LOW_FRACTION,
            high_fraction=self.config.FIT_HIGH_FRACTION,
            min_points=self.config.FIT_MIN_POINTS,
        )

        for (sample_id, kind), analysis in analyses.items():
            self.analyses[(sample_id, kind)] = analysis
            self.record_sigma(sample_id, kind, analysis.sigma)

        for (sample_id, kind), err in errors.items():
            logger.warning("Sample %s %s image failed: %s", sample_id, kind.value, err)
            self.analyses.pop((sample_id, kind), None)
            self.record_sigma(sample_id, kind, None)

        return errors

    @property
    def theoretical_theta(self) -> float:
        return self.highland_params.theta()

    def results(self) -> ScatteringResults:
        """Recompute results from the current inputs."""
        return analyze_scattering(self.samples, self.highland_params)

    def save_run(self, store: Optional[RunStore] = None) -> SavedRun:
        """Snapshot the current results, adding them to `store` if given."""
        run = SavedRun.from_results(
            self.material_name,
            self.results(),
            self.highland_params,
        )
        if store is not None:
            store.add(run)
        return run
