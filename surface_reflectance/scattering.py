"""
Intrinsic reflectance as a function of the scattering angle.

For every solar/view zenith cell the reflectance LUT stores samples of the
path reflectance every 4 deg of scattering angle, from the largest
scattering angle reachable in that cell (``tsmax``) down to the smallest
(``tsmin``). This module interpolates those samples at the actual
scattering angle of the pixel in the four cells around its geometry and
blends the four values bilinearly.
"""

import numpy as np

from surface_reflectance.constants import SCATTERING_ANGLE_STEP
from surface_reflectance.geometry import AngularCell
from surface_reflectance.lut import LutStore

# Corner order: 0=(its, itv), 1=(its+1, itv), 2=(its, itv+1), 3=(its+1, itv+1)
CORNER_OFFSETS = ((0, 0), (1, 0), (0, 1), (1, 1))


def corner_reflectance(
    samples: np.ndarray,
    start: int,
    nbfi: int,
    tsmax: float,
    tsmin: float,
    scattering_angle: float,
) -> float:
    """
    Interpolate the reflectance samples of one zenith cell.

    Parameters
    ----------
    samples : ndarray
        Compressed scattering axis of the reflectance LUT for one band,
        pressure and AOT.
    start : int
        Offset of the cell's first sample.
    nbfi : int
        Number of samples in the cell.
    tsmax, tsmin : float
        Largest and smallest scattering angle of the cell [deg].
    scattering_angle : float
        Scattering angle to interpolate at [deg].

    Returns
    -------
    float
        Interpolated reflectance.

    Notes
    -----
    Sample ``k`` sits at ``tsmax - 4k`` except the last one, which sits at
    ``tsmin``. The bracket index is clamped to ``[1, nbfi - 1]``; angles
    outside ``[tsmin, tsmax]`` are extrapolated from the edge bracket.
    """
    step = SCATTERING_ANGLE_STEP
    isca = int((tsmax - scattering_angle) / step + 1)
    if isca <= 0:
        isca = 1
    if isca + 1 < nbfi:
        sca1 = tsmax - (isca - 1) * step
        sca2 = sca1 - step
    else:
        isca = nbfi - 1
        sca1 = tsmax - (isca - 1) * step
        sca2 = tsmin

    roinf = samples[start + isca - 1]
    rosup = samples[start + isca]
    return float(roinf + (rosup - roinf) * (scattering_angle - sca1) / (sca2 - sca1))


def interpolate_reflectance(
    store: LutStore,
    band: int,
    ip: int,
    iaot: int,
    cell: AngularCell,
    scattering_angle: float,
) -> float:
    """
    Intrinsic reflectance at a scattering angle for one (pressure, AOT) pair.

    Parameters
    ----------
    store : LutStore
        Look-up tables.
    band : int
        0-based LUT band index.
    ip : int
        Pressure level index.
    iaot : int
        AOT level index.
    cell : AngularCell
        Solar/view zenith cell and weights of the pixel.
    scattering_angle : float
        Scattering angle of the pixel [deg].

    Returns
    -------
    float
        Reflectance blended from the four surrounding zenith cells.

    Notes
    -----
    With corner values :math:`c_0 \\ldots c_3`:

    .. math::

        \\rho = c_3 + u (c_1 - c_3) + t (c_2 - c_3)
        + u t (c_0 - c_1 - c_2 + c_3)

    A cell at nadir sun or nadir view (index 0) has a single sample, as
    the scattering angle does not depend on the azimuth there.
    """
    samples = store.reflectance[band, ip, iaot]

    ro = []
    for ds, dv in CORNER_OFFSETS:
        isz = cell.its + ds
        ivz = cell.itv + dv
        nbfi = int(store.nbfi[ivz, isz])
        start = int(store.indts[isz] + store.nbfic[ivz, isz]) - nbfi

        if isz != 0 and ivz != 0:
            ro.append(
                corner_reflectance(
                    samples,
                    start,
                    nbfi,
                    store.tsmax[ivz, isz],
                    store.tsmin[ivz, isz],
                    scattering_angle,
                )
            )
        else:
            ro.append(float(samples[start]))

    t, u = cell.t, cell.u
    return (
        ro[3]
        + u * (ro[1] - ro[3])
        + t * (ro[2] - ro[3])
        + u * t * (ro[0] - ro[1] - ro[2] + ro[3])
    )
