"""
Pytest configuration and shared fixtures for surface_reflectance tests.

The look-up tables built here are synthetic. Every table is linear in the
quantity it is interpolated over (scattering angle, log AOT, linear AOT,
pressure, zenith angle), so the interpolated values have closed forms the
tests can check against.
"""

import numpy as np
import pytest

from surface_reflectance.constants import (
    AOT_LEVELS,
    LANDSAT_OLI,
    NSOLAR_ZEN_VALS,
    NVIEW_ZEN_VALS,
    PRESSURE_LEVELS,
)
from surface_reflectance.gases import GasCoefficients
from surface_reflectance.geometry import Geometry
from surface_reflectance.lut import LutStore, solar_angle_grid, view_angle_grid

# Linear scattering-angle reflectance: a + b * scattering angle
SCATTER_INTERCEPT = 0.02
SCATTER_SLOPE = 5.0e-4

# Transmission: base + pressure, AOT and zenith angle terms
TRANS_BASE = 0.95
TRANS_PRESSURE = 2.0e-5
TRANS_AOT = -0.04
TRANS_ANGLE = -1.0e-3

# Spherical albedo: base + pressure and AOT terms
SALB_BASE = 0.05
SALB_PRESSURE = 1.0e-5
SALB_AOT = 0.03

# Path reflectance constant in scattering angle: base + log AOT and pressure
ROATM_BASE = 0.04
ROATM_LOG_AOT = 0.01
ROATM_PRESSURE = 1.0e-5


def scattering_geometry():
    """
    Build consistent scattering bookkeeping for the default angle grids.

    Returns
    -------
    dict
        ``tsmax``, ``tsmin``, ``nbfi``, ``nbfic``, ``ttv``, ``indts`` and
        ``positions``, the scattering angle of every packed sample.
    """
    tts = solar_angle_grid()
    views = view_angle_grid()
    ttv = np.repeat(views[:, np.newaxis], NSOLAR_ZEN_VALS, axis=1)

    tsmax = 180.0 - np.abs(tts[np.newaxis, :] - ttv)
    tsmin = 180.0 - (tts[np.newaxis, :] + ttv)
    width = tsmax - tsmin
    nbfi = np.where(width > 0, np.ceil(width / 4.0) + 1, 1.0)
    nbfic = np.cumsum(nbfi, axis=0)
    indts = np.concatenate(([0.0], np.cumsum(nbfic[-1, :])[:-1]))

    positions = np.zeros(int(indts[-1] + nbfic[-1, -1]))
    for isz in range(NSOLAR_ZEN_VALS):
        for ivz in range(NVIEW_ZEN_VALS):
            n = int(nbfi[ivz, isz])
            start = int(indts[isz] + nbfic[ivz, isz]) - n
            positions[start:start + n] = tsmax[ivz, isz] - 4.0 * np.arange(n)
            positions[start + n - 1] = tsmin[ivz, isz]

    return dict(tsmax=tsmax, tsmin=tsmin, nbfi=nbfi, nbfic=nbfic, ttv=ttv,
                indts=indts, positions=positions)


def transmission_table(n_bands):
    """Transmission linear in pressure, AOT and zenith angle."""
    p = np.array(PRESSURE_LEVELS)[:, None, None]
    a = np.array(AOT_LEVELS)[None, :, None]
    theta = solar_angle_grid()[None, None, :]
    table = TRANS_BASE + TRANS_PRESSURE * p + TRANS_AOT * a + TRANS_ANGLE * theta
    return np.broadcast_to(table, (n_bands,) + table.shape)


def albedo_table(n_bands):
    """Spherical albedo linear in pressure and AOT."""
    p = np.array(PRESSURE_LEVELS)[:, None]
    a = np.array(AOT_LEVELS)[None, :]
    table = SALB_BASE + SALB_PRESSURE * p + SALB_AOT * a
    return np.broadcast_to(table, (n_bands,) + table.shape)


def path_reflectance_levels(n_bands):
    """Path reflectance per (band, pressure, AOT), linear in log AOT."""
    p = np.array(PRESSURE_LEVELS)[:, None]
    a = np.array(AOT_LEVELS)[None, :]
    table = ROATM_BASE + ROATM_LOG_AOT * np.log(a) + ROATM_PRESSURE * p
    return np.broadcast_to(table, (n_bands,) + table.shape)


def make_store(reflectance=None, sensor=LANDSAT_OLI, extinction=1.0, **overrides):
    """
    Build a LutStore from the synthetic tables.

    Parameters
    ----------
    reflectance : {'scatter', 'levels', 'zero'} or ndarray, optional
        'scatter' (default) is linear in scattering angle and constant in
        band, pressure and AOT; 'levels' is constant in scattering angle
        and varies with pressure and AOT; 'zero' is all zeros.
    sensor : SensorFamily, optional
        Sensor family (default: Landsat OLI).
    extinction : float, optional
        Value of every normalized extinction entry.
    **overrides
        Replacement for any other LutStore argument.
    """
    geom = scattering_geometry()
    nb = sensor.n_bands
    n_scatter = geom["positions"].size
    shape = (nb, len(PRESSURE_LEVELS), len(AOT_LEVELS), n_scatter)

    if reflectance is None or (isinstance(reflectance, str) and reflectance == "scatter"):
        samples = SCATTER_INTERCEPT + SCATTER_SLOPE * geom["positions"]
        reflectance = np.broadcast_to(samples, shape)
    elif isinstance(reflectance, str) and reflectance == "levels":
        reflectance = np.broadcast_to(
            path_reflectance_levels(nb)[..., np.newaxis], shape
        )
    elif isinstance(reflectance, str) and reflectance == "zero":
        reflectance = np.broadcast_to(np.zeros(1), shape)

    kwargs = dict(
        sensor=sensor,
        reflectance=reflectance,
        transmission=transmission_table(nb),
        spherical_albedo=albedo_table(nb),
        normalized_extinction=np.full((nb, len(PRESSURE_LEVELS), len(AOT_LEVELS)),
                                      extinction),
        tsmax=geom["tsmax"],
        tsmin=geom["tsmin"],
        nbfic=geom["nbfic"],
        nbfi=geom["nbfi"],
        ttv=geom["ttv"],
        indts=geom["indts"],
    )
    kwargs.update(overrides)
    return LutStore(**kwargs)


def expected_transmission(pressure, aot, zenith):
    """Closed form of the synthetic transmission."""
    return TRANS_BASE + TRANS_PRESSURE * pressure + TRANS_AOT * aot + TRANS_ANGLE * zenith


def expected_albedo(pressure, aot):
    """Closed form of the synthetic spherical albedo."""
    return SALB_BASE + SALB_PRESSURE * pressure + SALB_AOT * aot


def expected_path_reflectance(pressure, aot):
    """Closed form of the 'levels' path reflectance."""
    return ROATM_BASE + ROATM_LOG_AOT * np.log(aot) + ROATM_PRESSURE * pressure


@pytest.fixture(scope="session")
def scatter_store():
    """Store with path reflectance linear in scattering angle."""
    return make_store("scatter")


@pytest.fixture(scope="session")
def levels_store():
    """Store with path reflectance varying with pressure and log AOT."""
    return make_store("levels")


@pytest.fixture(scope="session")
def zero_store():
    """Store with an all-zero path reflectance table."""
    return make_store("zero")


@pytest.fixture
def gas_coefficients():
    """Representative OLI gaseous transmission coefficients."""
    return GasCoefficients(
        oztrans_a=[-0.0043, -0.0263, -0.0862, -0.0653, -0.0020, 0.0, 0.0, 0.0],
        wvtrans_a=[0.000, 0.000, 0.0004, 0.0043, 0.0097, 0.0065, 0.0244, 0.9],
        wvtrans_b=[0.0, 0.0, 0.9, 0.9, 0.6, 0.6, 0.6, 0.6],
        ogtrans_a1=[0.0, 0.0, 0.0, 0.0, 0.0, 0.0050, 0.0171, 0.0],
        ogtrans_b0=[0.0, 0.0, 0.0, 0.0, 0.0, 0.1, 0.1, 0.0],
        ogtrans_b1=[0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
    )


@pytest.fixture
def transparent_gases():
    """Gas coefficients with no absorption in any band."""
    zeros = np.zeros(LANDSAT_OLI.n_bands)
    return GasCoefficients(
        oztrans_a=zeros, wvtrans_a=zeros, wvtrans_b=zeros,
        ogtrans_a1=zeros, ogtrans_b0=zeros, ogtrans_b1=zeros,
    )


@pytest.fixture
def typical_geometry():
    """Sun at 30 deg, view at 5 deg: interior of the tables at both weights 0.5."""
    return Geometry(solar_zenith=30.0, view_zenith=5.0, relative_azimuth=90.0)


@pytest.fixture
def clear_atmosphere():
    """Clear atmosphere ancillary data."""
    return {
        'pressure': 1013.0,    # mb
        'ozone': 0.3,          # cm-atm
        'water_vapor': 1.5,    # g/cm^2
    }


# Tolerance values for numerical comparisons
REFLECTANCE_RTOL = 1.0e-9  # Closed-form checks on the synthetic tables
