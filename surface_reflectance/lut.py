"""
Read-only store of the radiative-transfer look-up tables.

The tables are produced offline by a vector radiative transfer code and
parsed by an external loader. This module only takes the fully populated
arrays, checks them against the fixed table layout and freezes them, so
a single store can be shared by any number of concurrent inversions.

Table layout
------------
reflectance : [band][pressure][aot][scatter]
    Intrinsic atmospheric (path) reflectance. The last axis packs, for
    every solar zenith cell ``is`` and view zenith cell ``iv``, the
    ``nbfi[iv][is]`` samples taken every 4 deg of scattering angle from
    ``tsmax[iv][is]`` down to ``tsmin[iv][is]``. The block for a cell
    starts at ``indts[is] + nbfic[iv][is] - nbfi[iv][is]``.
transmission : [band][pressure][aot][sun angle]
    One-way total transmittance vs zenith angle.
spherical_albedo, normalized_extinction : [band][pressure][aot]
    Spherical albedo and aerosol extinction normalized at 550 nm.
"""

import logging
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from surface_reflectance.constants import (
    AOT_LEVELS,
    EXTINCTION_REFERENCE_AOT_INDEX,
    NAOT_VALS,
    NPRES_VALS,
    NSOLAR_CELLS,
    NSOLAR_ZEN_VALS,
    NSUNANGLE_VALS,
    NVIEW_ZEN_VALS,
    PRESSURE_LEVELS,
    SOLAR_ZENITH_MIN,
    SOLAR_ZENITH_STEP,
    VIEW_ZENITH_MIN,
    VIEW_ZENITH_STEP,
    SensorFamily,
)

logger = logging.getLogger(__name__)


def solar_angle_grid(
    minimum: float = SOLAR_ZENITH_MIN,
    step: float = SOLAR_ZENITH_STEP,
    size: int = NSUNANGLE_VALS,
) -> np.ndarray:
    """
    Build the regular sun angle table ``tts``.

    Parameters
    ----------
    minimum : float, optional
        First angle [deg] (default: 0).
    step : float, optional
        Angular step [deg] (default: 4).
    size : int, optional
        Number of entries (default: 22).

    Returns
    -------
    ndarray
        ``minimum + step * j`` for ``j`` in ``range(size)``.
    """
    return minimum + step * np.arange(size, dtype=float)


def view_angle_grid(
    minimum: float = VIEW_ZENITH_MIN,
    step: float = VIEW_ZENITH_STEP,
    size: int = NVIEW_ZEN_VALS,
) -> np.ndarray:
    """
    Build the view zenith grid: nadir, then ``minimum + step * k``.

    The first cell is the only irregular one.
    """
    grid = np.zeros(size, dtype=float)
    grid[1:] = minimum + step * np.arange(size - 1, dtype=float)
    return grid


def _frozen(name: str, values, shape: Tuple[int, ...]) -> np.ndarray:
    """Convert to a float array, check its shape and return a read-only view."""
    array = np.asarray(values, dtype=float).view()
    if array.shape != shape:
        raise ValueError(
            f"{name} must have shape {shape}, got {array.shape}"
        )
    array.flags.writeable = False
    return array


@dataclass
class LutStore:
    """
    Immutable look-up tables for one sensor family.

    Parameters
    ----------
    sensor : SensorFamily
        Sensor family the tables were computed for.
    reflectance : array_like
        Intrinsic reflectance, shape (bands, 7, 22, n_scatter).
    transmission : array_like
        Transmission, shape (bands, 7, 22, 22).
    spherical_albedo : array_like
        Spherical albedo, shape (bands, 7, 22).
    normalized_extinction : array_like
        Aerosol extinction normalized at 550 nm, shape (bands, 7, 22).
    tsmax, tsmin : array_like
        Maximum/minimum scattering angle [deg] per [view][solar] cell,
        shape (20, 22).
    nbfic, nbfi : array_like
        Cumulative and per-cell number of scattering samples, shape (20, 22).
    ttv : array_like
        View zenith angle [deg] per [view][solar] cell, shape (20, 22).
    indts : array_like
        Start offset of each solar zenith block, shape (22,).
    pressures : array_like, optional
        Surface pressure levels [mb], descending.
    aots : array_like, optional
        AOT at 550 nm levels, ascending.
    solar_angles : array_like, optional
        Sun angle table ``tts`` [deg].
    solar_min, solar_step, view_min, view_step : float, optional
        Origin and step [deg] of the solar and view zenith grids.

    Attributes
    ----------
    log_aots : ndarray
        Natural log of ``aots``, used by the log-AOT interpolation.
    n_scatter : int
        Length of the compressed scattering axis.

    Raises
    ------
    ValueError
        If a table has the wrong shape or a grid is not strictly monotonic.
        Also if the sun angle table disagrees with ``solar_min`` and
        ``solar_step``, or the scattering bookkeeping is inconsistent.

    Notes
    -----
    The store keeps read-only views of the validated arrays. Arrays passed
    in with a float64 dtype are not copied, so broadcast views stay cheap;
    the caller's own arrays keep their flags, and writes made through
    them show up in the store.
    """

    sensor: SensorFamily
    reflectance: np.ndarray
    transmission: np.ndarray
    spherical_albedo: np.ndarray
    normalized_extinction: np.ndarray
    tsmax: np.ndarray
    tsmin: np.ndarray
    nbfic: np.ndarray
    nbfi: np.ndarray
    ttv: np.ndarray
    indts: np.ndarray
    pressures: np.ndarray = field(default_factory=lambda: np.array(PRESSURE_LEVELS))
    aots: np.ndarray = field(default_factory=lambda: np.array(AOT_LEVELS))
    solar_angles: np.ndarray = field(default_factory=solar_angle_grid)
    solar_min: float = SOLAR_ZENITH_MIN
    solar_step: float = SOLAR_ZENITH_STEP
    view_min: float = VIEW_ZENITH_MIN
    view_step: float = VIEW_ZENITH_STEP
    log_aots: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        """Validate the table layout and freeze every array."""
        nb = self.sensor.n_bands
        grid = (NVIEW_ZEN_VALS, NSOLAR_ZEN_VALS)

        self.pressures = _frozen("pressures", self.pressures, (NPRES_VALS,))
        self.aots = _frozen("aots", self.aots, (NAOT_VALS,))
        self.solar_angles = _frozen(
            "solar_angles", self.solar_angles, (NSUNANGLE_VALS,)
        )
        # Cells are indexed from solar_min/solar_step, weights come from tts
        expected_tts = solar_angle_grid(self.solar_min, self.solar_step)
        if not np.allclose(self.solar_angles, expected_tts, rtol=0.0, atol=1e-5):
            raise ValueError(
                "solar_angles must equal solar_min + solar_step * j "
                f"(solar_min={self.solar_min}, solar_step={self.solar_step})"
            )
        if not np.all(np.diff(self.pressures) < 0):
            raise ValueError("pressures must be strictly descending")
        if not np.all(np.diff(self.aots) > 0) or self.aots[0] <= 0:
            raise ValueError("aots must be positive and strictly increasing")

        reflectance = np.asarray(self.reflectance, dtype=float)
        if reflectance.ndim != 4:
            raise ValueError(
                f"reflectance must be 4-dimensional, got {reflectance.ndim}"
            )
        self.reflectance = _frozen(
            "reflectance", reflectance, (nb, NPRES_VALS, NAOT_VALS, reflectance.shape[3])
        )
        self.transmission = _frozen(
            "transmission", self.transmission,
            (nb, NPRES_VALS, NAOT_VALS, NSUNANGLE_VALS),
        )
        self.spherical_albedo = _frozen(
            "spherical_albedo", self.spherical_albedo, (nb, NPRES_VALS, NAOT_VALS)
        )
        self.normalized_extinction = _frozen(
            "normalized_extinction", self.normalized_extinction,
            (nb, NPRES_VALS, NAOT_VALS),
        )

        self.tsmax = _frozen("tsmax", self.tsmax, grid)
        self.tsmin = _frozen("tsmin", self.tsmin, grid)
        self.ttv = _frozen("ttv", self.ttv, grid)
        self.nbfi = _frozen("nbfi", self.nbfi, grid)
        self.nbfic = _frozen("nbfic", self.nbfic, grid)
        self.indts = _frozen("indts", self.indts, (NSOLAR_ZEN_VALS,))
        self._check_scattering_bookkeeping()

        log_aots = np.log(self.aots)
        log_aots.flags.writeable = False
        self.log_aots = log_aots

        logger.info(
            "LUT store ready for %s: %d bands, %d scattering samples",
            self.sensor.name, nb, self.n_scatter,
        )

    def _check_scattering_bookkeeping(self) -> None:
        if np.any(self.nbfi < 1):
            raise ValueError("nbfi must be at least 1 in every cell")
        # Off-nadir cells interpolate between two samples of their own block
        if np.any(self.nbfi[1:, 1:NSOLAR_CELLS + 1] < 2):
            raise ValueError(
                "nbfi must be at least 2 in cells off nadir sun and nadir view"
            )
        if np.any(np.diff(self.nbfic, axis=0) < 0):
            raise ValueError("nbfic must be cumulative along the view axis")
        # Only the interpolation cells are reachable: its <= 19, so is <= 20
        reachable = slice(0, NSOLAR_CELLS + 1)
        block_end = self.indts[np.newaxis, reachable] + self.nbfic[:, reachable]
        if np.any(block_end > self.n_scatter):
            raise ValueError(
                "scattering blocks extend past the reflectance table "
                f"({int(block_end.max())} > {self.n_scatter})"
            )

    @property
    def n_bands(self) -> int:
        """Number of bands in the tables."""
        return self.reflectance.shape[0]

    @property
    def n_scatter(self) -> int:
        """Length of the compressed scattering axis."""
        return self.reflectance.shape[3]

    def extinction_reference(self, band: int) -> float:
        """
        Extinction used to normalize the AOT for angstrom rescaling.

        This is ``normalized_extinction[band][0][3]``.
        """
        return float(
            self.normalized_extinction[band, 0, EXTINCTION_REFERENCE_AOT_INDEX]
        )
