"""
Geometry indexing into the look-up tables.

Maps continuous surface pressure, AOT, solar zenith and view zenith
values to the bracketing table indices and the interpolation fractions
used by the scattering-angle interpolator and the atmospheric field
composer.

Zenith angles are the only validated inputs: an angle past the last
tabulated interpolation cell raises :class:`SolarZenithRangeError`.
Everything else is trusted.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from surface_reflectance.constants import (
    AOT_REFERENCE_WAVELENGTH,
    NSOLAR_CELLS,
    SensorFamily,
)
from surface_reflectance.lut import LutStore


class SolarZenithRangeError(ValueError):
    """
    Zenith angle outside the tabulated angle domain.

    Raised for the view direction too, since the transmission lookup for
    both directions shares the sun angle table; ``direction`` tells them
    apart.
    """

    def __init__(self, angle: float, index: int, max_index: int,
                 direction: str = "solar"):
        self.angle = angle
        self.index = index
        self.max_index = max_index
        self.direction = direction
        super().__init__(
            f"{direction.capitalize()} zenith is too large: {angle:f} deg "
            f"(table cell {index}, last valid cell {max_index})"
        )


@dataclass(frozen=True)
class Geometry:
    """
    Sun and view geometry of one pixel.

    All angles are in degrees.

    Attributes
    ----------
    solar_zenith : float
        Solar zenith angle [degrees].
    view_zenith : float
        View zenith angle [degrees].
    relative_azimuth : float
        Azimuthal difference between sun and observation [degrees].
    mus, muv, cos_relative_azimuth : float, optional
        Cosines of the three angles. Computed from the angles when not
        provided; callers that already have them pass them through so
        both values stay bit-identical to their own.
    """

    solar_zenith: float
    view_zenith: float
    relative_azimuth: float
    mus: Optional[float] = None
    muv: Optional[float] = None
    cos_relative_azimuth: Optional[float] = None

    def __post_init__(self):
        """Compute missing cosines."""
        if self.mus is None:
            object.__setattr__(self, "mus", float(np.cos(np.deg2rad(self.solar_zenith))))
        if self.muv is None:
            object.__setattr__(self, "muv", float(np.cos(np.deg2rad(self.view_zenith))))
        if self.cos_relative_azimuth is None:
            object.__setattr__(
                self,
                "cos_relative_azimuth",
                float(np.cos(np.deg2rad(self.relative_azimuth))),
            )

    @property
    def scattering_angle(self) -> float:
        """Scattering angle [degrees]."""
        return scattering_angle(self.mus, self.muv, self.cos_relative_azimuth)


def scattering_angle(mus: float, muv: float, cos_relative_azimuth: float) -> float:
    """
    Calculate the scattering angle between the solar and view directions.

    Parameters
    ----------
    mus : float
        Cosine of the solar zenith angle.
    muv : float
        Cosine of the view zenith angle.
    cos_relative_azimuth : float
        Cosine of the relative azimuth.

    Returns
    -------
    float
        Scattering angle in degrees.

    Notes
    -----
    .. math::

        \\cos\\Theta = -\\mu_s \\mu_v
        - \\cos\\Delta\\phi \\sqrt{1 - \\mu_s^2} \\sqrt{1 - \\mu_v^2}

    The cosine is not clipped to [-1, 1]. At the hotspot (equal zeniths,
    zero relative azimuth) rounding in the supplied cosines can push it
    just below -1, and the result is NaN.
    """
    cscaa = -mus * muv - cos_relative_azimuth * np.sqrt(1.0 - mus * mus) * np.sqrt(
        1.0 - muv * muv
    )
    return float(np.rad2deg(np.arccos(cscaa)))


def pressure_bracket(pressures: np.ndarray, pressure: float) -> Tuple[int, int]:
    """
    Find the pressure levels bracketing a surface pressure.

    Parameters
    ----------
    pressures : ndarray
        Surface pressure levels [mb], descending.
    pressure : float
        Surface pressure [mb].

    Returns
    -------
    tuple of int
        ``(ip1, ip1 + 1)`` where ``ip1`` is the last level, excluding the
        final one, that is above ``pressure`` (0 if none is).
    """
    ip1 = 0
    for ip in range(len(pressures) - 1):
        if pressure < pressures[ip]:
            ip1 = ip
    return ip1, ip1 + 1


def aot_bracket(aots: np.ndarray, aot: float) -> Tuple[int, int]:
    """
    Find the AOT levels bracketing an AOT value.

    Parameters
    ----------
    aots : ndarray
        AOT levels, ascending.
    aot : float
        AOT at 550 nm.

    Returns
    -------
    tuple of int
        ``(i1, i1 + 1)`` where ``i1`` is the last level, excluding the final
        one, that is below ``aot`` (0 if none is).
    """
    iaot1 = 0
    for iaot in range(len(aots) - 1):
        if aot > aots[iaot]:
            iaot1 = iaot
    return iaot1, iaot1 + 1


def view_angle_index(view_zenith: float, view_min: float, view_step: float) -> int:
    """Index of the view zenith cell; cell 0 holds everything up to ``view_min``."""
    if view_zenith <= view_min:
        return 0
    return int((view_zenith - view_min) / view_step + 1.0)


def solar_angle_index(
    zenith: float,
    solar_min: float,
    solar_step: float,
    max_index: int = NSOLAR_CELLS - 1,
    direction: str = "solar",
) -> int:
    """
    Index of the sun angle cell containing a zenith angle.

    Parameters
    ----------
    zenith : float
        Zenith angle [deg].
    solar_min, solar_step : float
        Origin and step [deg] of the angle grid.
    max_index : int, optional
        Last valid interpolation cell (default: 19).
    direction : str, optional
        'solar' or 'view', used in the error message.

    Returns
    -------
    int
        Cell index, 0 for angles at or below ``solar_min``.

    Raises
    ------
    SolarZenithRangeError
        If the cell index exceeds ``max_index``.
    """
    if zenith <= solar_min:
        return 0
    its = int((zenith - solar_min) / solar_step)
    if its > max_index:
        raise SolarZenithRangeError(zenith, its, max_index, direction)
    return its


def adjust_aot(
    aot: Union[float, np.ndarray],
    band: int,
    sensor: SensorFamily,
    extinction_reference: float,
    angstrom: float,
    aot_upper: Optional[float] = None,
) -> Union[float, np.ndarray]:
    """
    Rescale the 550 nm AOT to the band with the angstrom exponent.

    Parameters
    ----------
    aot : float or array_like
        AOT at 550 nm.
    band : int
        0-based LUT band index.
    sensor : SensorFamily
        Sensor family the band belongs to.
    extinction_reference : float
        Normalized extinction of the band at the reference corner
        (``normalized_extinction[band][0][3]``).
    angstrom : float
        Angstrom exponent; a negative value disables the rescaling.
    aot_upper : float, optional
        Upper bound the result is clamped to.

    Returns
    -------
    float or ndarray
        Adjusted AOT; a float for scalar input.

    Notes
    -----
    .. math::

        \\tau' = \\frac{\\tau}{e_{ref}}
        \\left(\\frac{\\lambda}{0.55}\\right)^{-\\epsilon}

    Bands past the sensor's extinction-aware set are left unchanged.
    """
    adjusted = np.asarray(aot, dtype=float)
    scalar_input = adjusted.ndim == 0

    if angstrom >= 0.0 and band <= sensor.max_extinction_band:
        wavelength = sensor.wavelengths[band]
        adjusted = (adjusted / extinction_reference) * (
            (wavelength / AOT_REFERENCE_WAVELENGTH) ** -angstrom
        )

    if aot_upper is not None:
        adjusted = np.minimum(adjusted, aot_upper)

    if scalar_input:
        return float(adjusted)
    return adjusted


@dataclass(frozen=True)
class Brackets:
    """
    Pressure and AOT brackets with their interpolation fractions.

    Attributes
    ----------
    ip1, ip2 : int
        Bracketing pressure level indices.
    iaot1, iaot2 : int
        Bracketing AOT level indices.
    pressure : float
        Surface pressure [mb].
    aot : float
        AOT after any angstrom rescaling and clamping.
    pressure_fraction : float
        (pressure - p[ip1]) / (p[ip2] - p[ip1]).
    aot_fraction : float
        Linear AOT fraction.
    log_aot_fraction : float
        AOT fraction in log space.
    """

    ip1: int
    ip2: int
    iaot1: int
    iaot2: int
    pressure: float
    aot: float
    pressure_fraction: float
    aot_fraction: float
    log_aot_fraction: float


def locate(store: LutStore, pressure: float, aot: float) -> Brackets:
    """
    Bracket a surface pressure and an (already adjusted) AOT in the tables.

    Parameters
    ----------
    store : LutStore
        Look-up tables.
    pressure : float
        Surface pressure [mb].
    aot : float
        AOT at 550 nm, after :func:`adjust_aot`.

    Returns
    -------
    Brackets
        Indices and fractions for both dimensions.
    """
    ip1, ip2 = pressure_bracket(store.pressures, pressure)
    iaot1, iaot2 = aot_bracket(store.aots, aot)

    p1 = store.pressures[ip1]
    a1 = store.aots[iaot1]
    log_a1 = store.log_aots[iaot1]

    return Brackets(
        ip1=ip1,
        ip2=ip2,
        iaot1=iaot1,
        iaot2=iaot2,
        pressure=pressure,
        aot=aot,
        pressure_fraction=float((pressure - p1) / (store.pressures[ip2] - p1)),
        aot_fraction=float((aot - a1) / (store.aots[iaot2] - a1)),
        log_aot_fraction=float(
            (np.log(aot) - log_a1) / (store.log_aots[iaot2] - log_a1)
        ),
    )


@dataclass(frozen=True)
class AngularCell:
    """
    Solar/view zenith cell of the scattering geometry tables.

    Attributes
    ----------
    its, itv : int
        Solar and view zenith cell indices.
    t : float
        Solar weight, 1 at ``tts[its]`` and 0 at ``tts[its + 1]``.
    u : float
        View weight, 1 at ``ttv[itv][its]`` and 0 at ``ttv[itv + 1][its]``.
    """

    its: int
    itv: int
    t: float
    u: float


def angular_cell(store: LutStore, geometry: Geometry) -> AngularCell:
    """
    Locate the solar/view zenith cell of a geometry.

    Raises
    ------
    SolarZenithRangeError
        If the solar zenith is past the last interpolation cell.
    """
    itv = view_angle_index(geometry.view_zenith, store.view_min, store.view_step)
    its = solar_angle_index(geometry.solar_zenith, store.solar_min, store.solar_step)

    tts = store.solar_angles
    ttv = store.ttv
    t = (tts[its + 1] - geometry.solar_zenith) / (tts[its + 1] - tts[its])
    u = (ttv[itv + 1, its] - geometry.view_zenith) / (
        ttv[itv + 1, its] - ttv[itv, its]
    )
    return AngularCell(its=its, itv=itv, t=float(t), u=float(u))
