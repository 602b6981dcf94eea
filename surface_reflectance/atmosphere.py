"""
Band-level atmospheric quantities interpolated from the look-up tables.

This module composes the intrinsic atmospheric reflectance, the one-way
total transmission and the spherical albedo of a band for a given surface
pressure and AOT. All three follow the same two-stage pattern:

1. interpolate across the AOT bracket (in log AOT for the reflectance,
   linearly for transmission and albedo),
2. interpolate the two results across the pressure bracket, linearly.

The brackets come from :func:`surface_reflectance.geometry.locate`, which
guarantees both neighbors exist; nothing here checks bounds again.
"""

from surface_reflectance.constants import (
    NSOLAR_CELLS,
    TRANSMISSION_ANGLE_STEP,
)
from surface_reflectance.geometry import (
    AngularCell,
    Brackets,
    solar_angle_index,
)
from surface_reflectance.lut import LutStore
from surface_reflectance.scattering import interpolate_reflectance


def _blend(lower: float, upper: float, fraction: float) -> float:
    return lower + (upper - lower) * fraction


def atmospheric_reflectance(
    store: LutStore,
    band: int,
    brackets: Brackets,
    cell: AngularCell,
    scattering_angle: float,
) -> float:
    """
    Intrinsic atmospheric (path) reflectance.

    Parameters
    ----------
    store : LutStore
        Look-up tables.
    band : int
        0-based LUT band index.
    brackets : Brackets
        Pressure and AOT brackets.
    cell : AngularCell
        Solar/view zenith cell of the pixel.
    scattering_angle : float
        Scattering angle of the pixel [deg].

    Returns
    -------
    float
        Intrinsic atmospheric reflectance.

    Notes
    -----
    The reflectance is interpolated linearly in :math:`\\ln\\tau_a`:

    .. math::

        \\Delta = \\frac{\\ln\\tau_a - \\ln\\tau_1}{\\ln\\tau_2 - \\ln\\tau_1}
    """
    rop = []
    for ip in (brackets.ip1, brackets.ip2):
        roiaot1 = interpolate_reflectance(
            store, band, ip, brackets.iaot1, cell, scattering_angle
        )
        roiaot2 = interpolate_reflectance(
            store, band, ip, brackets.iaot2, cell, scattering_angle
        )
        rop.append(_blend(roiaot1, roiaot2, brackets.log_aot_fraction))

    return _blend(rop[0], rop[1], brackets.pressure_fraction)


def transmission(
    store: LutStore,
    band: int,
    brackets: Brackets,
    zenith: float,
    angle_min: float,
    angle_step: float,
    direction: str = "solar",
) -> float:
    """
    One-way total transmission along a zenith direction.

    Used for both the downward (solar zenith) and the upward (view zenith)
    path; pass the grid origin and step matching the angle.

    Parameters
    ----------
    store : LutStore
        Look-up tables.
    band : int
        0-based LUT band index.
    brackets : Brackets
        Pressure and AOT brackets.
    zenith : float
        Solar or view zenith angle [deg].
    angle_min, angle_step : float
        Origin and step [deg] used to find the angle cell.
    direction : str, optional
        'solar' (default) or 'view', reported in the range error.

    Returns
    -------
    float
        Transmission.

    Raises
    ------
    SolarZenithRangeError
        If the zenith angle is past the last interpolation cell.

    Notes
    -----
    The angular interpolation uses the sun angle table ``tts`` and its
    fixed 4 deg step for either direction.
    """
    its = solar_angle_index(zenith, angle_min, angle_step, NSOLAR_CELLS - 1, direction)
    xmts = (zenith - store.solar_angles[its]) / TRANSMISSION_ANGLE_STEP

    xtts = []
    for ip in (brackets.ip1, brackets.ip2):
        xtiaot = []
        for iaot in (brackets.iaot1, brackets.iaot2):
            xtranst = store.transmission[band, ip, iaot]
            xtiaot.append(_blend(float(xtranst[its]), float(xtranst[its + 1]), xmts))
        xtts.append(_blend(xtiaot[0], xtiaot[1], brackets.aot_fraction))

    return _blend(xtts[0], xtts[1], brackets.pressure_fraction)


def spherical_albedo(store: LutStore, band: int, brackets: Brackets) -> float:
    """
    Spherical albedo of the atmosphere.

    Parameters
    ----------
    store : LutStore
        Look-up tables.
    band : int
        0-based LUT band index.
    brackets : Brackets
        Pressure and AOT brackets.

    Returns
    -------
    float
        Spherical albedo.
    """
    table = store.spherical_albedo[band]
    satm = [
        _blend(
            float(table[ip, brackets.iaot1]),
            float(table[ip, brackets.iaot2]),
            brackets.aot_fraction,
        )
        for ip in (brackets.ip1, brackets.ip2)
    ]
    return _blend(satm[0], satm[1], brackets.pressure_fraction)
