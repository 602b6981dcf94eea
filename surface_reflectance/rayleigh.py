"""
Molecular (Rayleigh) scattering for the Lambertian inversion.

This module implements:

- Rayleigh optical thickness calculation (Bodhaine et al., 1999)
- Per-band molecular optical thickness coefficients for a sensor family
- Molecular path reflectance from a fitted Fourier expansion in the
  relative azimuth (Chandrasekhar single/multiple scattering fit)

The molecular reflectance is a pure function of the geometry and the
optical depth; it does not touch the look-up tables.

References
----------
.. [1] Bodhaine, B.A., et al. (1999). On Rayleigh optical depth calculations.
       J. Atmos. Oceanic Technol., 16:1854-1861.
.. [2] Vermote, E. and Tanre, D. (1992). Analytical expressions for
       radiative properties of planar Rayleigh scattering media, including
       polarization contributions. J. Quant. Spectrosc. Radiat. Transfer,
       47:305-314.
"""

import numpy as np
from typing import Union

from surface_reflectance.constants import (
    CHAND_AS0,
    CHAND_AS1,
    CHAND_AS2,
    STANDARD_PRESSURE,
    SensorFamily,
    depolarized_phase_factor,
    wavelength_array,
)

#: Anisotropic phase function weight for the standard depolarization
XFD: float = depolarized_phase_factor()

_AS0 = np.array(CHAND_AS0)
_AS1 = np.array(CHAND_AS1)
_AS2 = np.array(CHAND_AS2)


def rayleigh_optical_thickness(
    wavelength: Union[float, np.ndarray],
    pressure: float = STANDARD_PRESSURE,
) -> Union[float, np.ndarray]:
    """
    Calculate Rayleigh optical thickness at given wavelength(s).

    Based on Bodhaine et al. (1999, Eq. 30).

    Parameters
    ----------
    wavelength : float or array_like
        Wavelength in micrometers.
    pressure : float, optional
        Sea level atmospheric pressure in hPa (default: 1013.25 hPa).

    Returns
    -------
    float or ndarray
        Rayleigh optical thickness (dimensionless).

    Notes
    -----
    The optical thickness scales linearly with pressure:

    .. math::

        \\tau_R(P, \\lambda) = \\frac{P}{P_0} \\tau_{R0}(P_0, \\lambda)

    where :math:`P_0` = 1013.25 hPa is the standard pressure.

    Examples
    --------
    >>> tau = rayleigh_optical_thickness(0.443)
    >>> print(f"Rayleigh optical thickness at 443 nm: {tau:.4f}")
    """
    lam = np.asarray(wavelength, dtype=float)

    # Bodhaine et al. (1999) Eq. 30 for standard atmosphere
    # P = 1013.25 hPa, T = 288.15 K, CO2 = 360 ppm
    numerator = 1.0455996 - 341.29061 * lam**(-2) - 0.90230850 * lam**2
    denominator = 1.0 + 0.0027059889 * lam**(-2) - 85.968563 * lam**2
    tau_r0 = 0.0021520 * (numerator / denominator)

    # Pressure correction
    tau_r = (pressure / STANDARD_PRESSURE) * tau_r0

    return tau_r


def sensor_rayleigh_thickness(sensor: SensorFamily) -> np.ndarray:
    """
    Molecular optical thickness coefficient of every band of a sensor.

    Parameters
    ----------
    sensor : SensorFamily
        Sensor family.

    Returns
    -------
    ndarray
        Read-only array of Rayleigh optical thickness at standard pressure,
        one value per LUT band.
    """
    tauray = rayleigh_optical_thickness(wavelength_array(sensor))
    tauray.flags.writeable = False
    return tauray


def molecular_reflectance(
    relative_azimuth: Union[float, np.ndarray],
    muv: Union[float, np.ndarray],
    mus: Union[float, np.ndarray],
    tau: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Compute the molecular reflectance of the atmosphere.

    Parameters
    ----------
    relative_azimuth : float or array_like
        Azimuthal difference between sun and observation [deg].
    muv : float or array_like
        Cosine of the view zenith angle.
    mus : float or array_like
        Cosine of the solar zenith angle.
    tau : float or array_like
        Molecular optical depth (> 0).

    Returns
    -------
    float or ndarray
        Molecular reflectance, 0 to 1.

    Notes
    -----
    Three-term Fourier expansion in the relative azimuth:

    .. math::

        \\rho_R = I_0 + 2 [I_1 (-\\cos\\phi) + I_2 \\cos 2\\phi]

    Each term is a single-scattering part weighted by
    :math:`(1 - e^{-\\tau(1/\\mu_s + 1/\\mu_v)}) / 4(\\mu_s + \\mu_v)` plus a
    multiple-scattering correction weighted by
    :math:`(1 - e^{-\\tau/\\mu_s})(1 - e^{-\\tau/\\mu_v})` and a polynomial
    fit in :math:`\\ln\\tau` and the zenith cosines. The usual
    :math:`\\mu_s` factor of the single-scattering term cancels against
    the final division by :math:`\\mu_s` and is left out of both.
    """
    phios = np.deg2rad(relative_azimuth)
    xcosf2 = -np.cos(phios)
    xcosf3 = np.cos(2.0 * phios)

    xmus2 = mus * mus
    xmuv2 = muv * muv

    xph1 = 1.0 + (3.0 * xmus2 - 1.0) * (3.0 * xmuv2 - 1.0) * XFD * 0.125
    xph3 = (1.0 - xmus2) * (1.0 - xmuv2)
    xph2 = -mus * muv * np.sqrt(xph3) * XFD * 0.75
    xph3 = xph3 * XFD * 0.1875

    # Single scattering
    xitm = (1.0 - np.exp(-tau * (1.0 / mus + 1.0 / muv))) / (4.0 * (mus + muv))
    xp1 = xph1 * xitm
    xp2 = xph2 * xitm
    xp3 = xph3 * xitm

    # Multiple scattering
    xitm = (1.0 - np.exp(-tau / mus)) * (1.0 - np.exp(-tau / muv))
    cfonc1 = xph1 * xitm
    cfonc2 = xph2 * xitm
    cfonc3 = xph3 * xitm

    xlntau = np.log(tau)
    sum_mu = mus + muv
    prod_mu = mus * muv
    sum_mu2 = xmus2 + xmuv2
    prod_mu2 = xmus2 * xmuv2
    pl = (
        1.0, xlntau,
        sum_mu, xlntau * sum_mu,
        prod_mu, xlntau * prod_mu,
        sum_mu2, xlntau * sum_mu2,
        prod_mu2, xlntau * prod_mu2,
    )

    fs0 = sum(p * a for p, a in zip(pl, _AS0))
    fs1 = _AS1[0] + xlntau * _AS1[1]
    fs2 = _AS2[0] + xlntau * _AS2[1]

    xitot1 = xp1 + cfonc1 * fs0
    xitot2 = xp2 + cfonc2 * fs1
    xitot3 = xp3 + cfonc3 * fs2

    return xitot1 + 2.0 * (xitot2 * xcosf2 + xitot3 * xcosf3)
