"""
surface_reflectance: Lambertian Surface Reflectance from Radiative-Transfer LUTs
================================================================================

A Python implementation of the Lambertian inversion at the core of the
Landsat 8/9 OLI and Sentinel-2 MSI land surface reflectance (LaSRC)
aerosol retrieval and atmospheric correction.

This package implements the algorithms documented in:

    Vermote, E., Justice, C., Claverie, M., Franch, B. (2016).
    Preliminary analysis of the performance of the Landsat 8/OLI land
    surface reflectance product. Remote Sens. Environ., 185:46-56.

Main Classes
------------
AtmosphericCorrection
    Surface reflectance processor bound to one set of look-up tables.
LutStore
    Read-only radiative-transfer look-up tables of a sensor family.

Modules
-------
constants
    Table dimensions, default grids and sensor band layouts.
lut
    Look-up table store and grid builders.
geometry
    Pressure, AOT and zenith angle indexing into the tables.
scattering
    Intrinsic reflectance interpolation in scattering angle.
atmosphere
    Path reflectance, transmission and spherical albedo of a band.
gases
    Ozone, water vapor and other gases transmission.
rayleigh
    Molecular optical thickness and reflectance.
correction
    Lambertian inversion (full LUT and polynomial-fit variants).

Example
-------
>>> from surface_reflectance.rayleigh import rayleigh_optical_thickness
>>> tau_r = rayleigh_optical_thickness(0.443)  # um
>>> print(f"Rayleigh optical thickness at 443 nm: {tau_r:.4f}")
"""

import logging

__version__ = "0.1.0"

from surface_reflectance.constants import SensorFamily, get_sensor
from surface_reflectance.correction import (
    Ancillary,
    AtmosphericCorrection,
    PolynomialFit,
    SurfaceReflectance,
    lambertian_inversion,
    surface_reflectance,
    surface_reflectance_from_fit,
)
from surface_reflectance.gases import GasCoefficients
from surface_reflectance.geometry import Geometry, SolarZenithRangeError
from surface_reflectance.lut import LutStore

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Ancillary",
    "AtmosphericCorrection",
    "GasCoefficients",
    "Geometry",
    "LutStore",
    "PolynomialFit",
    "SensorFamily",
    "SolarZenithRangeError",
    "SurfaceReflectance",
    "get_sensor",
    "lambertian_inversion",
    "surface_reflectance",
    "surface_reflectance_from_fit",
    "__version__",
]
