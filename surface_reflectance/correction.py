"""
Lambertian Surface Reflectance Inversion
========================================

Converts top-of-atmosphere (TOA) reflectance to Lambertian surface
reflectance by inverting the coupled surface-atmosphere model

.. math::

    \\rho_{TOA} = T_g \\left[\\rho_{atm}
    + \\frac{T \\rho_s}{1 - S \\rho_s}\\right]

with the atmospheric terms either interpolated from the look-up tables
(:func:`surface_reflectance`) or evaluated from polynomial fits in the AOT
(:func:`surface_reflectance_from_fit`). Both paths end in the same
algebraic inversion, :func:`lambertian_inversion`.

The functions are pure: the tables are only read, so any number of
threads or processes may call them concurrently with one shared
:class:`~surface_reflectance.lut.LutStore`.

References
----------
.. [1] Vermote, E., Justice, C., Claverie, M., Franch, B. (2016).
       Preliminary analysis of the performance of the Landsat 8/OLI land
       surface reflectance product. Remote Sens. Environ., 185:46-56.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Union

import numpy as np

from . import atmosphere
from . import gases
from . import geometry
from . import rayleigh
from .constants import LUT_REFERENCE_PRESSURE, SensorFamily
from .lut import LutStore

logger = logging.getLogger(__name__)


@dataclass
class Ancillary:
    """
    Atmospheric state of one pixel.

    Attributes
    ----------
    pressure : float
        Surface pressure [mb]. Default is 1013.
    ozone : float
        Total column ozone [cm-atm]. Default is 0.3.
    water_vapor : float
        Total column water vapor [g/cm^2]. Default is 1.5.
    """

    pressure: float = LUT_REFERENCE_PRESSURE
    ozone: float = 0.3
    water_vapor: float = 1.5


@dataclass
class PolynomialFit:
    """
    Cubic fits of the atmospheric terms of a band against AOT.

    Coefficients are ordered from the cubic term down to the constant, as
    for :func:`numpy.polyval`.

    Attributes
    ----------
    roatm : array_like
        Intrinsic atmospheric reflectance coefficients (4).
    ttatmg : array_like
        Total atmospheric transmission coefficients (4).
    satm : array_like
        Spherical albedo coefficients (4).
    aot_upper : float
        Largest AOT the fit is valid for; larger values are clamped.
    """

    roatm: np.ndarray
    ttatmg: np.ndarray
    satm: np.ndarray
    aot_upper: float

    def __post_init__(self):
        """Check that every fit is cubic."""
        for name in ("roatm", "ttatmg", "satm"):
            coefs = np.asarray(getattr(self, name), dtype=float)
            if coefs.shape != (4,):
                raise ValueError(
                    f"{name} needs 4 polynomial coefficients, got shape {coefs.shape}"
                )
            setattr(self, name, coefs)


@dataclass
class SurfaceReflectance:
    """
    Result of a Lambertian inversion for one band.

    The intermediate atmospheric terms are returned too; the aerosol
    retrieval re-uses them while searching for the AOT.

    Attributes
    ----------
    roslamb : float or ndarray
        Lambertian surface reflectance.
    tgo : float or ndarray
        Gaseous transmission excluding water vapor.
    roatm : float or ndarray
        Intrinsic atmospheric reflectance (water vapor corrected in the
        full inversion).
    ttatmg : float or ndarray
        Total atmospheric transmission (times water vapor transmission in
        the full inversion).
    satm : float or ndarray
        Spherical albedo.
    aot : float or ndarray
        AOT the terms were evaluated at, after angstrom rescaling and
        clamping.
    rorayp : float or None
        Molecular reflectance at the surface pressure. None for the
        polynomial-fit inversion.
    """

    roslamb: Union[float, np.ndarray]
    tgo: Union[float, np.ndarray]
    roatm: Union[float, np.ndarray]
    ttatmg: Union[float, np.ndarray]
    satm: Union[float, np.ndarray]
    aot: Union[float, np.ndarray]
    rorayp: Optional[float] = None


def lambertian_inversion(
    rotoa: Union[float, np.ndarray],
    roatm: Union[float, np.ndarray],
    ttatmg: Union[float, np.ndarray],
    satm: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Invert the Lambertian surface-atmosphere model.

    Parameters
    ----------
    rotoa : float or array_like
        TOA reflectance, already normalized as the caller needs.
    roatm : float or array_like
        Intrinsic atmospheric reflectance.
    ttatmg : float or array_like
        Total atmospheric transmission.
    satm : float or array_like
        Spherical albedo.

    Returns
    -------
    float or ndarray
        Surface reflectance.

    Notes
    -----
    .. math::

        \\rho_s = \\frac{\\rho_{TOA} - \\rho_{atm}}
        {T + S (\\rho_{TOA} - \\rho_{atm})}
    """
    roslamb = rotoa - roatm
    return roslamb / (ttatmg + satm * roslamb)


def surface_reflectance(
    store: LutStore,
    band: int,
    rotoa: float,
    geom: geometry.Geometry,
    pressure: float,
    aot: float,
    ozone: float,
    water_vapor: float,
    gas_coefficients: gases.GasCoefficients,
    tauray: np.ndarray,
    angstrom: float = -1.0,
    aot_upper: Optional[float] = None,
) -> SurfaceReflectance:
    """
    Lambertian surface reflectance from the look-up tables.

    Parameters
    ----------
    store : LutStore
        Look-up tables.
    band : int
        0-based LUT band index.
    rotoa : float
        TOA reflectance.
    geom : Geometry
        Sun and view geometry.
    pressure : float
        Surface pressure [mb].
    aot : float
        AOT at 550 nm.
    ozone : float
        Total column ozone [cm-atm].
    water_vapor : float
        Total column water vapor [g/cm^2].
    gas_coefficients : GasCoefficients
        Per-band gaseous transmission coefficients.
    tauray : ndarray
        Per-band molecular optical thickness at 1013 mb.
    angstrom : float, optional
        Angstrom exponent; negative (default) disables the AOT rescaling.
    aot_upper : float, optional
        Upper bound for the rescaled AOT.

    Returns
    -------
    SurfaceReflectance
        Surface reflectance and the atmospheric terms.

    Raises
    ------
    SolarZenithRangeError
        If the solar or view zenith is past the tabulated domain.

    Notes
    -----
    With :math:`T_{og}`, :math:`T_{O_3}`, :math:`T_{H_2O}` and
    :math:`T_{H_2O}^{1/2}` the gaseous transmissions and
    :math:`\\rho_R` the molecular reflectance:

    .. math::

        T_g = T_{og} T_{O_3}

        \\rho_{atm}' = (\\rho_{atm} - \\rho_R) T_{H_2O}^{1/2} + \\rho_R

        T' = T(\\theta_s) T(\\theta_v) T_{H_2O}

    and the inversion is applied to :math:`\\rho_{TOA} / T_g`.
    """
    mraot = geometry.adjust_aot(
        aot,
        band,
        store.sensor,
        store.extinction_reference(band),
        angstrom,
        aot_upper,
    )
    brackets = geometry.locate(store, pressure, mraot)
    cell = geometry.angular_cell(store, geom)

    roatm = atmosphere.atmospheric_reflectance(
        store, band, brackets, cell, geom.scattering_angle
    )
    xtts = atmosphere.transmission(
        store, band, brackets, geom.solar_zenith, store.solar_min, store.solar_step
    )
    xttv = atmosphere.transmission(
        store, band, brackets, geom.view_zenith, store.view_min, store.view_step,
        direction="view",
    )
    ttatm = xtts * xttv
    satm = atmosphere.spherical_albedo(store, band, brackets)

    tg = gases.gas_transmittance(
        gas_coefficients, band, geom.mus, geom.muv, ozone, water_vapor, pressure
    )
    xtaur = tauray[band] * (pressure / LUT_REFERENCE_PRESSURE)
    rorayp = float(
        rayleigh.molecular_reflectance(geom.relative_azimuth, geom.muv, geom.mus, xtaur)
    )

    tgo = tg.other * tg.ozone
    roatm = (roatm - rorayp) * tg.water_vapor_half + rorayp
    ttatmg = ttatm * tg.water_vapor
    roslamb = lambertian_inversion(rotoa / tgo, roatm, ttatmg, satm)

    return SurfaceReflectance(
        roslamb=roslamb,
        tgo=tgo,
        roatm=roatm,
        ttatmg=ttatmg,
        satm=satm,
        aot=mraot,
        rorayp=rorayp,
    )


def surface_reflectance_from_fit(
    sensor: SensorFamily,
    band: int,
    rotoa: Union[float, np.ndarray],
    tgo: Union[float, np.ndarray],
    aot: Union[float, np.ndarray],
    fit: PolynomialFit,
    extinction_reference: float,
    angstrom: float = -1.0,
) -> SurfaceReflectance:
    """
    Lambertian surface reflectance from polynomial fits in the AOT.

    Skips the look-up tables; the gaseous effects other than ``tgo`` are
    folded into the fitted coefficients.

    Parameters
    ----------
    sensor : SensorFamily
        Sensor family.
    band : int
        0-based LUT band index.
    rotoa : float or array_like
        TOA reflectance.
    tgo : float or array_like
        Gaseous transmission excluding water vapor.
    aot : float or array_like
        AOT at 550 nm.
    fit : PolynomialFit
        Fitted coefficients and AOT upper bound of the band.
    extinction_reference : float
        ``normalized_extinction[band][0][3]`` for the angstrom rescaling.
    angstrom : float, optional
        Angstrom exponent; negative (default) disables the AOT rescaling.

    Returns
    -------
    SurfaceReflectance
        Surface reflectance and the fitted atmospheric terms
        (``rorayp`` is None).

    Notes
    -----
    Unlike :func:`surface_reflectance`, ``tgo`` scales the atmospheric
    terms instead of dividing the TOA reflectance:

    .. math::

        \\rho_s = \\frac{\\rho_{TOA} - T_g \\rho_{atm}}
        {T_g T + S (\\rho_{TOA} - T_g \\rho_{atm})}
    """
    mraot = geometry.adjust_aot(
        aot, band, sensor, extinction_reference, angstrom, fit.aot_upper
    )

    roatm = np.polyval(fit.roatm, mraot)
    ttatmg = np.polyval(fit.ttatmg, mraot)
    satm = np.polyval(fit.satm, mraot)

    roslamb = lambertian_inversion(rotoa, tgo * roatm, tgo * ttatmg, satm)

    if np.ndim(roslamb) == 0:
        roslamb, roatm, ttatmg, satm = (
            float(roslamb), float(roatm), float(ttatmg), float(satm)
        )

    return SurfaceReflectance(
        roslamb=roslamb,
        tgo=tgo,
        roatm=roatm,
        ttatmg=ttatmg,
        satm=satm,
        aot=mraot,
    )


class AtmosphericCorrection:
    """
    Surface reflectance processor bound to one set of look-up tables.

    Parameters
    ----------
    store : LutStore
        Look-up tables of the sensor family.
    gas_coefficients : GasCoefficients
        Per-band gaseous transmission coefficients.
    rayleigh_thickness : array_like, optional
        Per-band molecular optical thickness at 1013 mb. Default is the
        Bodhaine et al. (1999) value at each band center wavelength.
    aot_upper : float, optional
        Upper bound applied to the rescaled AOT in the full inversion.
        Default is no bound.

    Attributes
    ----------
    sensor : SensorFamily
        Sensor family of the tables.

    Examples
    --------
    >>> from surface_reflectance import AtmosphericCorrection, Geometry
    >>> ac = AtmosphericCorrection(store, coefficients)
    >>> result = ac.correct(0, 0.12, Geometry(30.0, 5.0, 90.0), aot=0.2)
    >>> print(result.roslamb)

    Notes
    -----
    The processor holds no mutable state; one instance may be shared by
    all worker threads of a scene.
    """

    def __init__(
        self,
        store: LutStore,
        gas_coefficients: gases.GasCoefficients,
        rayleigh_thickness: Optional[np.ndarray] = None,
        aot_upper: Optional[float] = None,
    ):
        if gas_coefficients.n_bands != store.n_bands:
            raise ValueError(
                f"Gas coefficients cover {gas_coefficients.n_bands} bands, "
                f"tables cover {store.n_bands}"
            )

        if rayleigh_thickness is None:
            rayleigh_thickness = rayleigh.sensor_rayleigh_thickness(store.sensor)
        else:
            rayleigh_thickness = np.array(rayleigh_thickness, dtype=float)
            if rayleigh_thickness.shape != (store.n_bands,):
                raise ValueError(
                    f"rayleigh_thickness must have shape ({store.n_bands},), "
                    f"got {rayleigh_thickness.shape}"
                )
            rayleigh_thickness.flags.writeable = False

        self.store = store
        self.sensor = store.sensor
        self.gas_coefficients = gas_coefficients
        self.rayleigh_thickness = rayleigh_thickness
        self.aot_upper = aot_upper

    def _check_band(self, band: int) -> int:
        if not 0 <= band < self.store.n_bands:
            raise ValueError(
                f"Band index {band} out of range for {self.sensor.name} "
                f"(0-{self.store.n_bands - 1})"
            )
        return band

    def correct(
        self,
        band: int,
        rotoa: float,
        geom: geometry.Geometry,
        aot: float,
        ancillary: Optional[Ancillary] = None,
        angstrom: float = -1.0,
    ) -> SurfaceReflectance:
        """
        Full LUT inversion of one band of one pixel.

        Parameters
        ----------
        band : int
            0-based LUT band index.
        rotoa : float
            TOA reflectance.
        geom : Geometry
            Sun and view geometry.
        aot : float
            AOT at 550 nm.
        ancillary : Ancillary, optional
            Pressure, ozone and water vapor. Defaults to :class:`Ancillary`.
        angstrom : float, optional
            Angstrom exponent; negative (default) disables the AOT rescaling.

        Returns
        -------
        SurfaceReflectance
            Surface reflectance and the atmospheric terms.

        Raises
        ------
        SolarZenithRangeError
            If the solar or view zenith is past the tabulated domain.
        """
        self._check_band(band)
        if ancillary is None:
            ancillary = Ancillary()

        try:
            return surface_reflectance(
                self.store,
                band,
                rotoa,
                geom,
                ancillary.pressure,
                aot,
                ancillary.ozone,
                ancillary.water_vapor,
                self.gas_coefficients,
                self.rayleigh_thickness,
                angstrom=angstrom,
                aot_upper=self.aot_upper,
            )
        except geometry.SolarZenithRangeError as err:
            logger.debug("Band %d not corrected: %s", band, err)
            raise

    def correct_bands(
        self,
        rotoa: Mapping[int, float],
        geom: geometry.Geometry,
        aot: float,
        ancillary: Optional[Ancillary] = None,
        angstrom: float = -1.0,
    ) -> Dict[int, SurfaceReflectance]:
        """
        Full LUT inversion of several bands of one pixel.

        Parameters
        ----------
        rotoa : mapping of int to float
            TOA reflectance keyed by 0-based LUT band index.
        geom, aot, ancillary, angstrom
            As for :meth:`correct`.

        Returns
        -------
        dict
            Inversion result keyed by band index.
        """
        return {
            band: self.correct(band, value, geom, aot, ancillary, angstrom)
            for band, value in rotoa.items()
        }

    def correct_from_fit(
        self,
        band: int,
        rotoa: Union[float, np.ndarray],
        tgo: Union[float, np.ndarray],
        aot: Union[float, np.ndarray],
        fit: PolynomialFit,
        angstrom: float = -1.0,
    ) -> SurfaceReflectance:
        """
        Polynomial-fit inversion of one band; vectorizes over pixels.

        See :func:`surface_reflectance_from_fit`.
        """
        self._check_band(band)
        return surface_reflectance_from_fit(
            self.sensor,
            band,
            rotoa,
            tgo,
            aot,
            fit,
            self.store.extinction_reference(band),
            angstrom=angstrom,
        )
