"""
Tests for the gases module.

Tests the ozone, water vapor and other gases transmission model.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from surface_reflectance import gases


class TestAirMass:
    """Tests for the geometric air mass factor."""

    def test_nadir(self):
        """Test overhead sun and nadir view."""
        assert gases.air_mass(1.0, 1.0) == 2.0

    def test_array_input(self):
        """Test array input."""
        m = gases.air_mass(np.array([1.0, 0.5]), 1.0)
        assert_allclose(m, [2.0, 3.0])


class TestOzoneTransmittance:
    """Tests for ozone transmission."""

    def test_zero_ozone(self):
        """Test that transmission is 1 without ozone."""
        assert gases.ozone_transmittance(-0.0862, 2.0, 0.0) == 1.0

    def test_range_zero_to_one(self):
        """Test that transmission is between 0 and 1."""
        t = gases.ozone_transmittance(-0.0862, 2.3, 0.3)
        assert 0 < t < 1

    def test_value(self):
        """Test the closed form."""
        assert_allclose(gases.ozone_transmittance(-0.05, 2.0, 0.3), np.exp(-0.03))


class TestWaterVaporTransmittance:
    """Tests for water vapor transmission."""

    def test_dry_atmosphere_exactly_one(self):
        """Test that no absorber gives exactly 1."""
        t = gases.water_vapor_transmittance(0.02, 0.6, 2.0, 0.0)
        assert t == 1.0
        assert isinstance(t, float)

    def test_threshold_exactly_one(self):
        """Test that an absorber path of exactly 1e-6 gives exactly 1."""
        t = gases.water_vapor_transmittance(0.02, 0.6, 2.0, 5.0e-7)
        assert t == 1.0

    def test_above_threshold(self):
        """Test the power law above the threshold."""
        t = gases.water_vapor_transmittance(0.02, 0.6, 2.0, 1.5)
        assert_allclose(t, np.exp(-0.02 * 3.0 ** 0.6))
        assert t < 1.0

    def test_half_content_more_transparent(self):
        """Test that half the column transmits more."""
        full = gases.water_vapor_transmittance(0.02, 0.6, 2.0, 1.5)
        half = gases.water_vapor_transmittance(0.02, 0.6, 2.0, 0.75)
        assert half > full

    def test_array_input(self):
        """Test mixed dry and wet pixels."""
        t = gases.water_vapor_transmittance(0.02, 0.6, 2.0, np.array([0.0, 1.5]))
        assert t.shape == (2,)
        assert t[0] == 1.0
        assert t[1] < 1.0


class TestOtherGasTransmittance:
    """Tests for the uniformly mixed gases."""

    def test_no_absorption(self):
        """Test zero coefficient."""
        assert gases.other_gas_transmittance(0.0, 0.1, 0.0, 2.0, 1.0) == 1.0

    def test_value(self):
        """Test the closed form."""
        t = gases.other_gas_transmittance(0.0171, 0.1, 0.05, 2.5, 0.9)
        expected = np.exp(-(0.0171 * 0.9) * 2.5 ** np.exp(-(0.1 + 0.05 * 0.9)))
        assert_allclose(t, expected)

    def test_lower_pressure_more_transparent(self):
        """Test that less air absorbs less."""
        sea = gases.other_gas_transmittance(0.0171, 0.1, 0.0, 2.5, 1.0)
        mountain = gases.other_gas_transmittance(0.0171, 0.1, 0.0, 2.5, 0.7)
        assert mountain > sea


class TestGasCoefficients:
    """Tests for the coefficient container."""

    def test_read_only(self, gas_coefficients):
        """Test that coefficients are frozen."""
        assert gas_coefficients.n_bands == 8
        with pytest.raises(ValueError):
            gas_coefficients.oztrans_a[0] = 0.0

    def test_length_mismatch(self):
        """Test that arrays of different lengths are rejected."""
        with pytest.raises(ValueError, match="same length"):
            gases.GasCoefficients(
                oztrans_a=[0.0, 0.0], wvtrans_a=[0.0], wvtrans_b=[0.0],
                ogtrans_a1=[0.0], ogtrans_b0=[0.0], ogtrans_b1=[0.0],
            )


class TestGasTransmittance:
    """Tests for the per-band composition."""

    def test_matches_components(self, gas_coefficients):
        """Test that each term uses the band's coefficients."""
        mus, muv = 0.866, 0.996
        m = 1.0 / mus + 1.0 / muv
        tg = gases.gas_transmittance(gas_coefficients, 6, mus, muv, 0.3, 1.5, 900.0)

        assert tg.ozone == 1.0
        assert_allclose(tg.water_vapor, np.exp(-0.0244 * (m * 1.5) ** 0.6))
        assert_allclose(tg.water_vapor_half, np.exp(-0.0244 * (m * 0.75) ** 0.6))
        assert_allclose(
            tg.other, np.exp(-(0.0171 * 900.0 / 1013.0) * m ** np.exp(-0.1))
        )
        assert_allclose(tg.tgo, tg.other * tg.ozone)

    def test_transparent(self, transparent_gases):
        """Test that zero coefficients transmit everything."""
        tg = gases.gas_transmittance(transparent_gases, 0, 0.5, 0.9, 0.3, 1.5, 1013.0)
        assert tg.tgo == 1.0
        assert tg.water_vapor == 1.0
        assert tg.water_vapor_half == 1.0
