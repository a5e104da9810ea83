"""Analysis configuration with simple JSON persistence."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from .physics.highland import HighlandParams

logger = logging.getLogger(__name__)


@dataclass
class Config:
    # Image sampling
    PIXEL_TO_MM: float = 0.2  # mm/pixel = 25.4 / DPI
    SAMPLE_SIZE: int = 300  # Longest side after resampling, 0 disables

    # Centroid / radial profile
    NOISE_THRESHOLD: float = 20.0
    BIN_WIDTH_PX: float = 1.0

    # Gaussian fit window
    FIT_LOW_FRACTION: float = 0.30
    FIT_HIGH_FRACTION: float = 0.95
    FIT_MIN_POINTS: int = 5

    # Experiment layout
    NUM_SAMPLES: int = 10
    DISTANCE_STEP_MM: float = 100.0
    MATERIAL_NAME: str = "Unknown Material"

    # Highland parameters (water/tissue defaults)
    THICKNESS_CM: float = 1.0
    DENSITY_G_CM3: float = 1.0
    RAD_LENGTH_CM: float = 36.08
    MOMENTUM_MEV: float = 150.0
    BETA: float = 0.5

    # Concurrency
    MAX_WORKERS: int = 4

    @staticmethod
    def default_path() -> Path:
        return Path.home() / ".filmscatter_config.json"

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        cfg = cls()
        cfg_path = Path(path) if path is not None else cls.default_path()
        if not cfg_path.exists():
            return cfg

        try:
            data = json.loads(cfg_path.read_text())
        except (OSError, ValueError):
            logger.exception("Failed to read config file: %s", cfg_path)
            return cfg

        if not isinstance(data, dict):
            logger.warning("Ignoring config file without a JSON object: %s", cfg_path)
            return cfg

        for f in fields(cfg):
            if f.name not in data:
                continue
            raw = data[f.name]
            target = type(f.default)
            try:
                if target is bool:
                    val = bool(raw)
                elif target is int:
                    val = int(raw)
                elif target is float:
                    val = float(raw)
                else:
                    val = str(raw)
                setattr(cfg, f.name, val)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid config value for %s", f.name)

        cfg.normalize()
        return cfg

    def save(self, path: Optional[Path] = None) -> Path:
        cfg_path = Path(path) if path is not None else self.default_path()
        cfg_path.write_text(json.dumps(asdict(self), indent=2, sort_keys=True))
        return cfg_path

    def normalize(self) -> None:
        if not self.PIXEL_TO_MM > 0:
            logger.warning("Ignoring non-positive PIXEL_TO_MM %s", self.PIXEL_TO_MM)
            self.PIXEL_TO_MM = Config.PIXEL_TO_MM
        if self.FIT_LOW_FRACTION > self.FIT_HIGH_FRACTION:
            self.FIT_LOW_FRACTION, self.FIT_HIGH_FRACTION = (
                self.FIT_HIGH_FRACTION,
                self.FIT_LOW_FRACTION,
            )
        if self.FIT_MIN_POINTS < 2:
            self.FIT_MIN_POINTS = 2
        if self.NUM_SAMPLES < 0:
            self.NUM_SAMPLES = 0
        if self.MAX_WORKERS < 1:
            self.MAX_WORKERS = 1

    def highland_params(self) -> HighlandParams:
        return HighlandParams(
            thickness=self.THICKNESS_CM,
            density=self.DENSITY_G_CM3,
            rad_length=self.RAD_LENGTH_CM,
            momentum=self.MOMENTUM_MEV,
            beta=self.BETA,
        )
