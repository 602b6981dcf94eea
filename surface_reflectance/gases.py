"""
Absorption corrections for atmospheric gases.

This module implements the closed-form gaseous transmission model used by
the Lambertian inversion, with band-specific coefficients fitted offline
against a line-by-line radiative transfer code:

- O3 transmission, linear in the absorber path
- H2O transmission, a power law of the absorber path, for the full and
  half water vapor content
- Other gases (O2, CO2, CH4, N2O, ...) with a pressure-dependent
  air mass exponent

No table lookups and no checks on the physical range of the inputs; the
caller supplies valid atmospheric columns.

References
----------
.. [1] Vermote, E., Tanre, D., Deuze, J.L., Herman, M., Morcrette, J.J.
       (1997). Second Simulation of the Satellite Signal in the Solar
       Spectrum, 6S: an overview. IEEE Trans. Geosci. Remote Sens.,
       35:675-686.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from surface_reflectance.constants import (
    LUT_REFERENCE_PRESSURE,
    WATER_VAPOR_THRESHOLD,
)


def air_mass(
    mus: Union[float, np.ndarray],
    muv: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Calculate the geometric air mass factor from zenith cosines.

    Parameters
    ----------
    mus : float or array_like
        Cosine of the solar zenith angle.
    muv : float or array_like
        Cosine of the view zenith angle.

    Returns
    -------
    float or ndarray
        Air mass factor m = 1/mus + 1/muv.

    Examples
    --------
    >>> m = air_mass(1.0, 1.0)
    >>> print(f"Air mass factor: {m:.1f}")
    Air mass factor: 2.0
    """
    return 1.0 / mus + 1.0 / muv


def ozone_transmittance(
    oztrans_a: float,
    air_mass: Union[float, np.ndarray],
    ozone: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Calculate ozone transmission.

    Parameters
    ----------
    oztrans_a : float
        Ozone transmission coefficient of the band (negative).
    air_mass : float or array_like
        Geometric air mass factor.
    ozone : float or array_like
        Total column ozone [cm-atm].

    Returns
    -------
    float or ndarray
        Ozone transmission exp(a * m * uoz).

    Notes
    -----
    Ozone sits in the stratosphere, above most of the scattering, so the
    geometric air mass applies directly.
    """
    return np.exp(oztrans_a * air_mass * ozone)


def water_vapor_transmittance(
    wvtrans_a: float,
    wvtrans_b: float,
    air_mass: Union[float, np.ndarray],
    water_vapor: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Calculate water vapor transmission.

    Parameters
    ----------
    wvtrans_a, wvtrans_b : float
        Water vapor transmission coefficients of the band.
    air_mass : float or array_like
        Geometric air mass factor.
    water_vapor : float or array_like
        Total column water vapor [g/cm^2].

    Returns
    -------
    float or ndarray
        exp(-a * (m * uwv)^b), or exactly 1.0 where m * uwv <= 1e-6.

    Notes
    -----
    The half-content transmission used for the path reflectance is this
    function evaluated with ``water_vapor / 2``.
    """
    x = np.asarray(air_mass * water_vapor, dtype=float)
    scalar_input = x.ndim == 0
    x = np.atleast_1d(x)

    transmittance = np.ones_like(x)
    absorbing = x > WATER_VAPOR_THRESHOLD
    transmittance[absorbing] = np.exp(-wvtrans_a * x[absorbing] ** wvtrans_b)

    if scalar_input:
        return float(transmittance[0])
    return transmittance


def other_gas_transmittance(
    ogtrans_a1: float,
    ogtrans_b0: float,
    ogtrans_b1: float,
    air_mass: Union[float, np.ndarray],
    pressure_ratio: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Calculate the transmission of the uniformly mixed gases.

    Parameters
    ----------
    ogtrans_a1, ogtrans_b0, ogtrans_b1 : float
        Other gases transmission coefficients of the band.
    air_mass : float or array_like
        Geometric air mass factor.
    pressure_ratio : float or array_like
        Surface pressure divided by 1013 mb.

    Returns
    -------
    float or ndarray
        Other gases transmission.

    Notes
    -----
    .. math::

        t_{og} = \\exp\\left[-a_1 P\\, m^{\\exp[-(b_0 + b_1 P)]}\\right]

    where P is the pressure ratio.
    """
    exponent = np.exp(-(ogtrans_b0 + ogtrans_b1 * pressure_ratio))
    return np.exp(-(ogtrans_a1 * pressure_ratio) * air_mass ** exponent)


@dataclass
class GasCoefficients:
    """
    Per-band gaseous transmission coefficients.

    All attributes are arrays with one value per LUT band, fitted offline
    and never modified.

    Attributes
    ----------
    oztrans_a : ndarray
        Ozone transmission coefficient.
    wvtrans_a, wvtrans_b : ndarray
        Water vapor transmission coefficients.
    ogtrans_a1, ogtrans_b0, ogtrans_b1 : ndarray
        Other gases transmission coefficients.
    """

    oztrans_a: np.ndarray
    wvtrans_a: np.ndarray
    wvtrans_b: np.ndarray
    ogtrans_a1: np.ndarray
    ogtrans_b0: np.ndarray
    ogtrans_b1: np.ndarray

    def __post_init__(self):
        """Convert to read-only float arrays of a common length."""
        names = ("oztrans_a", "wvtrans_a", "wvtrans_b",
                 "ogtrans_a1", "ogtrans_b0", "ogtrans_b1")
        sizes = set()
        for name in names:
            values = np.array(getattr(self, name), dtype=float, ndmin=1)
            if values.ndim != 1:
                raise ValueError(f"{name} must be one-dimensional")
            values.flags.writeable = False
            setattr(self, name, values)
            sizes.add(values.size)
        if len(sizes) != 1:
            raise ValueError(
                f"All gas coefficient arrays must have the same length, got {sorted(sizes)}"
            )

    @property
    def n_bands(self) -> int:
        """Number of bands covered by the coefficients."""
        return self.oztrans_a.size


@dataclass(frozen=True)
class GasTransmission:
    """
    Gaseous transmissions for one band and geometry.

    Attributes
    ----------
    ozone : float or ndarray
        Ozone transmission.
    water_vapor : float or ndarray
        Water vapor transmission, full content.
    water_vapor_half : float or ndarray
        Water vapor transmission, half content.
    other : float or ndarray
        Other gases transmission.
    """

    ozone: Union[float, np.ndarray]
    water_vapor: Union[float, np.ndarray]
    water_vapor_half: Union[float, np.ndarray]
    other: Union[float, np.ndarray]

    @property
    def tgo(self) -> Union[float, np.ndarray]:
        """Gaseous transmission excluding water vapor (other * ozone)."""
        return self.other * self.ozone


def gas_transmittance(
    coefficients: GasCoefficients,
    band: int,
    mus: Union[float, np.ndarray],
    muv: Union[float, np.ndarray],
    ozone: Union[float, np.ndarray],
    water_vapor: Union[float, np.ndarray],
    pressure: Union[float, np.ndarray],
) -> GasTransmission:
    """
    Calculate ozone, water vapor and other gases transmissions for a band.

    Parameters
    ----------
    coefficients : GasCoefficients
        Per-band coefficients.
    band : int
        0-based LUT band index.
    mus, muv : float or array_like
        Cosines of the solar and view zenith angles.
    ozone : float or array_like
        Total column ozone [cm-atm].
    water_vapor : float or array_like
        Total column water vapor [g/cm^2].
    pressure : float or array_like
        Surface pressure [mb].

    Returns
    -------
    GasTransmission
        The four transmission terms.

    Examples
    --------
    >>> tg = gas_transmittance(coefs, 0, 0.866, 0.995, 0.3, 1.5, 1013.0)
    >>> print(f"Gaseous transmission: {tg.tgo * tg.water_vapor:.4f}")
    """
    m = air_mass(mus, muv)
    pressure_ratio = pressure / LUT_REFERENCE_PRESSURE

    a = coefficients.wvtrans_a[band]
    b = coefficients.wvtrans_b[band]

    return GasTransmission(
        ozone=ozone_transmittance(coefficients.oztrans_a[band], m, ozone),
        water_vapor=water_vapor_transmittance(a, b, m, water_vapor),
        water_vapor_half=water_vapor_transmittance(a, b, m, 0.5 * water_vapor),
        other=other_gas_transmittance(
            coefficients.ogtrans_a1[band],
            coefficients.ogtrans_b0[band],
            coefficients.ogtrans_b1[band],
            m,
            pressure_ratio,
        ),
    )
