"""Tests for the Highland scattering angle."""

import math

import pytest

from filmscatter.physics.highland import HighlandParams, calculate_highland_theta


def highland(x, x0, p, beta):
    return 17.5 / (beta * p) * math.sqrt(x / x0) * (1 + 0.038 * math.log(x / x0))


class TestCalculateHighlandTheta:
    """Tests for calculate_highland_theta."""

    def test_water_reference(self):
        """1 cm of water at 150 MeV/c, beta 0.5."""
        theta = calculate_highland_theta(1.0, 36.08, 150.0, 0.5)

        assert theta == pytest.approx(highland(1.0, 36.08, 150.0, 0.5))
        assert theta == pytest.approx(0.03362, rel=1e-2)

    def test_lead(self):
        """A thick high-Z slab scatters more than water."""
        lead = calculate_highland_theta(0.5, 0.56, 150.0, 0.5)
        water = calculate_highland_theta(0.5, 36.08, 150.0, 0.5)

        assert lead == pytest.approx(highland(0.5, 0.56, 150.0, 0.5))
        assert lead > water

    def test_higher_momentum_scatters_less(self):
        low = calculate_highland_theta(1.0, 36.08, 100.0, 0.5)
        high = calculate_highland_theta(1.0, 36.08, 400.0, 0.5)

        assert high < low

    @pytest.mark.parametrize("args", [
        (0.0, 36.08, 150.0, 0.5),
        (1.0, 0.0, 150.0, 0.5),
        (1.0, 36.08, 0.0, 0.5),
        (1.0, 36.08, 150.0, 0.0),
        (-1.0, 36.08, 150.0, 0.5),
        (1.0, -36.08, 150.0, 0.5),
    ])
    def test_non_positive_parameter_gives_zero(self, args):
        """Any non-positive input disables the prediction."""
        assert calculate_highland_theta(*args) == 0

    def test_nan_gives_zero(self):
        assert calculate_highland_theta(float("nan"), 36.08, 150.0, 0.5) == 0

    def test_negative_log_correction_is_clamped(self):
        """Vanishingly thin material would give a negative angle."""
        assert calculate_highland_theta(1e-13, 1.0, 150.0, 0.5) == 0


class TestHighlandParams:
    """Tests for the HighlandParams value object."""

    def test_defaults_match_water(self):
        params = HighlandParams()

        assert params.theta() == pytest.approx(calculate_highland_theta(1.0, 36.08, 150.0, 0.5))
        assert params.is_valid

    def test_density_does_not_enter(self):
        """Density is recorded but ignored by the formula."""
        assert HighlandParams(density=11.35).theta() == HighlandParams(density=1.0).theta()

    def test_invalid(self):
        params = HighlandParams(beta=0.0)

        assert not params.is_valid
        assert params.theta() == 0

    def test_dict_round_trip(self):
        params = HighlandParams(thickness=0.5, density=11.35, rad_length=0.56,
                                momentum=200.0, beta=0.8)

        assert HighlandParams.from_dict(params.to_dict()) == params

    def test_from_partial_dict_uses_defaults(self):
        assert HighlandParams.from_dict({"thickness": 2.0}) == HighlandParams(thickness=2.0)
