"""
Highland approximation for the RMS multiple-Coulomb-scattering angle.

    theta = (17.5 / (beta * p)) * sqrt(x / X0) * (1 + 0.038 * ln(x / X0))

with thickness x and radiation length X0 in the same length unit, momentum
p in MeV/c and beta = v/c. The result is the projected RMS angle in radians.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

# Highland constant (MeV)
HIGHLAND_CONSTANT_MEV = 17.5
LOG_CORRECTION = 0.038


@dataclass(frozen=True)
class HighlandParams:
    """Physical inputs for the Highland formula."""

    thickness: float = 1.0  # x (cm)
    density: float = 1.0  # rho (g/cm^3), recorded but not used by the formula
    rad_length: float = 36.08  # X0 (cm)
    momentum: float = 150.0  # p (MeV/c)
    beta: float = 0.5  # v/c

    @property
    def is_valid(self) -> bool:
        """True when every parameter the formula uses is strictly positive."""
        return (
            self.thickness > 0
            and self.rad_length > 0
            and self.momentum > 0
            and self.beta > 0
        )

    def theta(self) -> float:
        """Highland RMS angle (rad) for these parameters."""
        return calculate_highland_theta(
            self.thickness, self.rad_length, self.momentum, self.beta
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "HighlandParams":
        return cls(
            thickness=float(data.get("thickness", 1.0)),
            density=float(data.get("density", 1.0)),
            rad_length=float(data.get("rad_length", 36.08)),
            momentum=float(data.get("momentum", 150.0)),
            beta=float(data.get("beta", 0.5)),
        )


def calculate_highland_theta(
    thickness: float,
    rad_length: float,
    momentum: float,
    beta: float,
) -> float:
    """
    Calculate the Highland RMS scattering angle.

    Args:
        thickness: Material thickness x (cm).
        rad_length: Radiation length X0 (cm).
        momentum: Particle momentum p (MeV/c).
        beta: Particle velocity v/c.

    Returns:
        theta_rms in radians. 0 when any parameter is non-positive, and
        clamped to 0 where the log correction drives the product negative
        (x/X0 far below 1).
    """
    if rad_length <= 0 or momentum <= 0 or beta <= 0 or thickness <= 0:
        return 0.0

    lx = thickness / rad_length

    term1 = HIGHLAND_CONSTANT_MEV / (beta * momentum)
    term2 = math.sqrt(lx)
    term3 = 1 + LOG_CORRECTION * math.log(lx)

    theta = term1 * term2 * term3
    return theta if theta > 0 else 0.0
