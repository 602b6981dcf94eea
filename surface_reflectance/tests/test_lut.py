"""
Tests for the lut module.

Tests construction and validation of the look-up table store.
"""

import logging

import numpy as np
import pytest
from numpy.testing import assert_allclose

from surface_reflectance import lut
from surface_reflectance.constants import LANDSAT_OLI, SENTINEL_2_MSI

from conftest import make_store, scattering_geometry


class TestGrids:
    """Tests for the angle grid builders."""

    def test_solar_grid(self):
        """Test the default sun angle table."""
        tts = lut.solar_angle_grid()
        assert tts.shape == (22,)
        assert tts[0] == 0.0
        assert tts[-1] == 84.0

    def test_view_grid(self):
        """Test that the view grid starts at nadir then follows min + step * k."""
        grid = lut.view_angle_grid()
        assert grid.shape == (20,)
        assert_allclose(grid[:4], [0.0, 2.0, 8.0, 14.0])


class TestLutStore:
    """Tests for LutStore construction."""

    def test_construction(self, scatter_store):
        """Test a valid store."""
        assert scatter_store.n_bands == LANDSAT_OLI.n_bands
        assert scatter_store.n_scatter == scattering_geometry()["positions"].size
        assert_allclose(scatter_store.log_aots, np.log(scatter_store.aots))

    def test_arrays_read_only(self, scatter_store):
        """Test that every table is frozen."""
        for name in ("reflectance", "transmission", "spherical_albedo",
                     "normalized_extinction", "tsmax", "nbfi", "log_aots"):
            assert not getattr(scatter_store, name).flags.writeable
        with pytest.raises(ValueError):
            scatter_store.spherical_albedo[0, 0, 0] = 1.0

    def test_logs_summary(self, caplog):
        """Test the construction summary message."""
        with caplog.at_level(logging.INFO, logger="surface_reflectance.lut"):
            make_store()
        assert "LUT store ready for landsat" in caplog.text

    def test_band_count_mismatch(self):
        """Test that tables for another sensor are rejected."""
        store = make_store()
        with pytest.raises(ValueError, match="spherical_albedo"):
            make_store(
                sensor=SENTINEL_2_MSI,
                reflectance=np.broadcast_to(0.0, (11, 7, 22, store.n_scatter)),
                spherical_albedo=store.spherical_albedo,
            )

    def test_wrong_reflectance_rank(self):
        """Test that a 3-D reflectance table is rejected."""
        with pytest.raises(ValueError, match="4-dimensional"):
            make_store(reflectance=np.zeros((8, 7, 22)))

    def test_pressures_must_descend(self):
        """Test that ascending pressures are rejected."""
        with pytest.raises(ValueError, match="descending"):
            make_store(pressures=np.linspace(500.0, 1050.0, 7))

    def test_aots_must_be_positive(self):
        """Test that a zero AOT level is rejected (log interpolation)."""
        aots = np.linspace(0.0, 5.0, 22)
        with pytest.raises(ValueError, match="aots"):
            make_store(aots=aots)

    def test_scattering_blocks_in_bounds(self):
        """Test that bookkeeping pointing past the table is rejected."""
        geom = scattering_geometry()
        indts = geom["indts"].copy()
        indts[5] += 10000
        with pytest.raises(ValueError, match="scattering blocks"):
            make_store(indts=indts)

    def test_nbfi_positive(self):
        """Test that empty scattering cells are rejected."""
        nbfi = scattering_geometry()["nbfi"].copy()
        nbfi[3, 3] = 0
        with pytest.raises(ValueError, match="nbfi"):
            make_store(nbfi=nbfi)

    def test_extinction_reference(self):
        """Test the reference extinction lookup."""
        store = make_store(extinction=1.7)
        assert store.extinction_reference(0) == pytest.approx(1.7)

    def test_solar_angles_must_match_grid(self):
        """Test that a sun angle table off the min/step grid is rejected."""
        with pytest.raises(ValueError, match="solar_angles must equal"):
            make_store(solar_min=3.0)

    def test_shifted_solar_grid(self):
        """Test that a sun angle table built from the same min/step is accepted."""
        store = make_store(solar_min=3.0, solar_angles=lut.solar_angle_grid(3.0))
        assert store.solar_angles[1] == 7.0

    def test_off_nadir_cell_needs_two_samples(self):
        """Test that an off-nadir cell with a single sample is rejected."""
        nbfi = scattering_geometry()["nbfi"].copy()
        nbfi[2, 5] = 1
        with pytest.raises(ValueError, match="at least 2"):
            make_store(nbfi=nbfi)

    def test_caller_arrays_keep_flags(self):
        """Test that freezing the store leaves the caller's arrays writeable."""
        transmission = np.ones((8, 7, 22, 22))
        store = make_store(transmission=transmission)
        assert transmission.flags.writeable
        assert not store.transmission.flags.writeable
        assert np.shares_memory(store.transmission, transmission)
