"""
Physical constants, table dimensions and sensor parameters for the
Lambertian LUT inversion.

This module contains constants used throughout the surface reflectance
algorithms, including:

- Reference pressures and wavelengths
- Fixed dimensions of the radiative-transfer look-up tables
- Default pressure, AOT and zenith angle grids
- Molecular (Rayleigh) reflectance model coefficients
- Sensor family band definitions (Landsat 8/9 OLI, Sentinel-2 MSI)

References
----------
.. [1] Vermote, E., Justice, C., Claverie, M., Franch, B. (2016).
       Preliminary analysis of the performance of the Landsat 8/OLI land
       surface reflectance product. Remote Sens. Environ., 185:46-56.
.. [2] Bodhaine et al. (1999), J. Atmos. Oceanic Technol., 16:1854-1861
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

# =============================================================================
# Physical Constants
# =============================================================================

#: Standard sea level atmospheric pressure [hPa] for Bodhaine et al. (1999)
STANDARD_PRESSURE: float = 1013.25

#: Sea level pressure [mb] the LUTs and gas coefficients are referenced to
LUT_REFERENCE_PRESSURE: float = 1013.0

#: Wavelength [um] the AOT is expressed at
AOT_REFERENCE_WAVELENGTH: float = 0.55

#: Rayleigh depolarization factor of air
DEPOLARIZATION_FACTOR: float = 0.0279

#: Below this absorber amount (air mass x column) water vapor is transparent
WATER_VAPOR_THRESHOLD: float = 1.0e-6

# =============================================================================
# Look-Up Table Dimensions
# =============================================================================

#: Number of surface pressure levels
NPRES_VALS: int = 7

#: Number of AOT at 550 nm levels
NAOT_VALS: int = 22

#: Number of entries in the sun angle table (and transmission angle axis)
NSUNANGLE_VALS: int = 22

#: Number of view zenith cells in the scattering geometry tables
NVIEW_ZEN_VALS: int = 20

#: Number of solar zenith cells in the scattering geometry tables
NSOLAR_ZEN_VALS: int = 22

#: Number of solar zenith interpolation cells; the last usable index is 19
NSOLAR_CELLS: int = 20

#: Angular step [deg] of the transmission table
TRANSMISSION_ANGLE_STEP: float = 4.0

#: Angular step [deg] of the scattering angle samples in the reflectance LUT
SCATTERING_ANGLE_STEP: float = 4.0

#: Index of the AOT level used to normalize the extinction coefficient
EXTINCTION_REFERENCE_AOT_INDEX: int = 3

# =============================================================================
# Default Grids
# =============================================================================

#: Surface pressure levels [mb], descending
PRESSURE_LEVELS: Tuple[float, ...] = (
    1050.0, 1013.0, 900.0, 800.0, 700.0, 600.0, 500.0
)

#: AOT at 550 nm levels, ascending
AOT_LEVELS: Tuple[float, ...] = (
    0.01, 0.05, 0.1, 0.15, 0.2, 0.3, 0.4, 0.6, 0.8, 1.0, 1.2,
    1.4, 1.6, 1.8, 2.0, 2.3, 2.6, 3.0, 3.5, 4.0, 4.5, 5.0,
)

#: Solar zenith grid origin and step [deg]
SOLAR_ZENITH_MIN: float = 0.0
SOLAR_ZENITH_STEP: float = 4.0

#: View zenith grid origin and step [deg]; the first cell is nadir
VIEW_ZENITH_MIN: float = 2.0
VIEW_ZENITH_STEP: float = 6.0

# =============================================================================
# Molecular Reflectance Model
# =============================================================================

#: Fourier term 0 polynomial coefficients over
#: {1, ln(tau), mus+muv, ln(tau)(mus+muv), mus*muv, ln(tau)mus*muv,
#:  mus^2+muv^2, ln(tau)(mus^2+muv^2), mus^2*muv^2, ln(tau)mus^2*muv^2}
CHAND_AS0: Tuple[float, ...] = (
    0.33243832, -6.777104e-02, 0.16285370, 1.577425e-03, -0.30924818,
    -1.240906e-02, -0.10324388, 3.241678e-02, 0.11493334, -3.503695e-02,
)

#: Fourier term 1 coefficients over {1, ln(tau)}
CHAND_AS1: Tuple[float, ...] = (0.19666292, -5.439061e-02)

#: Fourier term 2 coefficients over {1, ln(tau)}
CHAND_AS2: Tuple[float, ...] = (0.14545937, -2.910845e-02)


def depolarized_phase_factor(depolarization: float = DEPOLARIZATION_FACTOR) -> float:
    """
    Phase function weight of the anisotropic part of Rayleigh scattering.

    Parameters
    ----------
    depolarization : float, optional
        Depolarization factor of air (default: 0.0279).

    Returns
    -------
    float
        (1 - f) / (1 + 2 f) with f = d / (2 - d); 0.958725777 for the default.
    """
    f = depolarization / (2.0 - depolarization)
    return (1.0 - f) / (1.0 + 2.0 * f)


# =============================================================================
# Sensor Band Definitions
# =============================================================================


@dataclass(frozen=True)
class SensorFamily:
    """
    Band layout of one supported sensor family.

    Attributes
    ----------
    name : str
        Sensor family name.
    band_names : tuple of str
        Native band names, in LUT band order.
    wavelengths : tuple of float
        Band center wavelengths [um], in LUT band order.
    extinction_bands : int
        Number of leading bands whose AOT is rescaled with the
        angstrom exponent.
    """

    name: str
    band_names: Tuple[str, ...]
    wavelengths: Tuple[float, ...]
    extinction_bands: int

    @property
    def n_bands(self) -> int:
        """Number of bands stored in the LUTs."""
        return len(self.band_names)

    @property
    def max_extinction_band(self) -> int:
        """Largest band index that gets the angstrom AOT adjustment."""
        return self.extinction_bands - 1

    def band_index(self, band_name: str) -> int:
        """
        Map a native band name to its contiguous 0-based LUT index.

        Raises
        ------
        ValueError
            If the band is unknown or skipped for this family.
        """
        try:
            return self.band_names.index(str(band_name).lower())
        except ValueError:
            raise ValueError(
                f"Band '{band_name}' is not processed for {self.name}. "
                f"Available: {', '.join(self.band_names)}"
            ) from None


#: Landsat 8/9 OLI: bands 1-7 plus cirrus band 9
LANDSAT_OLI = SensorFamily(
    name="landsat",
    band_names=("1", "2", "3", "4", "5", "6", "7", "9"),
    wavelengths=(0.443, 0.480, 0.585, 0.655, 0.865, 1.61, 2.2, 1.375),
    extinction_bands=7,
)

#: Full Sentinel-2 MSI band list
SENTINEL_2_BAND_NAMES: Tuple[str, ...] = (
    "1", "2", "3", "4", "5", "6", "7", "8", "8a", "9", "10", "11", "12"
)

#: Sentinel-2 MSI with bands 9 and 10 skipped
SENTINEL_2_MSI = SensorFamily(
    name="sentinel-2",
    band_names=("1", "2", "3", "4", "5", "6", "7", "8", "8a", "11", "12"),
    wavelengths=(0.443, 0.490, 0.560, 0.665, 0.705, 0.740, 0.783, 0.842,
                 0.865, 1.61, 2.19),
    extinction_bands=11,
)

#: Sentinel-2 MSI with every band processed
SENTINEL_2_MSI_ALL = SensorFamily(
    name="sentinel-2-all",
    band_names=SENTINEL_2_BAND_NAMES,
    wavelengths=(0.443, 0.490, 0.560, 0.665, 0.705, 0.740, 0.783, 0.842,
                 0.865, 0.945, 1.375, 1.61, 2.19),
    extinction_bands=13,
)

SENSOR_FAMILIES: Dict[str, SensorFamily] = {
    "landsat-8": LANDSAT_OLI,
    "landsat-9": LANDSAT_OLI,
    "sentinel-2": SENTINEL_2_MSI,
    "sentinel-2-all": SENTINEL_2_MSI_ALL,
}


def get_sensor(sensor: str) -> SensorFamily:
    """
    Get the band layout for a sensor.

    Parameters
    ----------
    sensor : str
        Sensor name. One of 'landsat-8', 'landsat-9', 'sentinel-2',
        'sentinel-2-all' (case and '_' vs '-' insensitive).

    Returns
    -------
    SensorFamily
        Band layout for the sensor.

    Raises
    ------
    ValueError
        If sensor is not recognized.
    """
    key = sensor.lower().replace("_", "-")
    if key not in SENSOR_FAMILIES:
        raise ValueError(
            f"Unknown sensor: {sensor}. "
            f"Supported: {', '.join(SENSOR_FAMILIES)}"
        )
    return SENSOR_FAMILIES[key]


def wavelength_array(sensor: SensorFamily) -> np.ndarray:
    """Band center wavelengths [um] of a sensor family as an array."""
    return np.array(sensor.wavelengths, dtype=float)
