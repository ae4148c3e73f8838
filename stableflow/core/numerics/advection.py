"""Semi-Lagrangian advection on padded simulation grids."""

import numpy as np
from typing import Optional

from .grid import Grid
from .boundary import Bounds, BoundaryKind, set_bnd
from .solvers import interior_size
from ...utils.error_handling import require_shape

def advect(kind: BoundaryKind,
           d: Grid,
           d0: Grid,
           u: Grid,
           v: Grid,
           dt: float,
           bounds: Optional[Bounds] = None):
    """
    Transport ``d0`` along (u, v) into ``d``.

    Each interior cell is traced back by ``dt * N * velocity``, the foot is
    clamped to [0.5, N + 0.5] on both axes and ``d0`` is bilinearly sampled
    there.

    Args:
        kind: Boundary rule for ``d``
        d: Output grid
        d0: Field being transported
        u: Horizontal velocity
        v: Vertical velocity
        dt: Time step
        bounds: Boundary vectors, box walls when omitted
    """
    for name, grid in (("d0", d0), ("u", u), ("v", v)):
        require_shape(d.shape, grid.shape, name)
    n = interior_size(d)
    dt0 = dt * n

    jj, ii = np.mgrid[1:n + 1, 1:n + 1]
    x = np.clip(ii - dt0 * u.data[1:-1, 1:-1], 0.5, n + 0.5)
    y = np.clip(jj - dt0 * v.data[1:-1, 1:-1], 0.5, n + 0.5)

    # NaN feet still need a cell to index; the NaN weights below keep the
    # result NaN
    i0 = np.floor(np.where(np.isnan(x), 0.5, x)).astype(np.intp)
    j0 = np.floor(np.where(np.isnan(y), 0.5, y)).astype(np.intp)
    i1 = i0 + 1
    j1 = j0 + 1

    s1 = x - i0
    s0 = 1 - s1
    t1 = y - j0
    t0 = 1 - t1

    src = d0.data
    d.data[1:-1, 1:-1] = (s0 * (t0 * src[j0, i0] + t1 * src[j1, i0]) +
                          s1 * (t0 * src[j0, i1] + t1 * src[j1, i1]))
    set_bnd(kind, d, bounds)
