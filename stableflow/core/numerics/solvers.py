import numpy as np
from functools import lru_cache
from typing import Optional, Tuple

from .grid import Grid
from .boundary import Bounds, BoundaryKind, set_bnd
from ...utils.error_handling import ConfigurationError, SolverError, require_shape

DEFAULT_ITERATIONS = 20

@lru_cache(maxsize=32)
def _wavefronts(width: int, height: int) -> Tuple[Tuple[np.ndarray, np.ndarray], ...]:
    """
    Interior cells grouped by anti-diagonal ``x + y``.

    With a 5-point stencil a cell depends only on its left/upper neighbours
    (already updated) and right/lower neighbours (not yet updated) in a
    lexicographic Gauss-Seidel sweep. Every cell on one anti-diagonal sees
    exactly that split, so sweeping diagonals in order reproduces the
    row-major sweep value for value.
    """
    nx = width - 2
    ny = height - 2
    fronts = []
    for k in range(2, nx + ny + 1):
        ys = np.arange(max(1, k - nx), min(ny, k - 1) + 1, dtype=np.intp)
        xs = k - ys
        fronts.append((ys, xs))
    return tuple(fronts)

def interior_size(grid: Grid) -> int:
    """N for an (N+2)x(N+2) simulation grid"""
    if grid.width != grid.height:
        raise SolverError(f"Simulation grids must be square, got {grid.width}x{grid.height}")
    if grid.width < 3:
        raise SolverError(f"Grid {grid.width}x{grid.height} has no interior")
    return grid.width - 2

def _check_iterations(iterations: int):
    if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)) or iterations < 0:
        raise ConfigurationError(f"Iteration count must be a non-negative integer, got {iterations!r}")

def add_source(x: Grid, s: Grid, dt: float):
    """x += dt * s over every cell"""
    require_shape(x.shape, s.shape, "source")
    x.data[...] += dt * s.data

def lin_solve(kind: BoundaryKind,
              x: Grid,
              x0: Grid,
              a: float,
              c: float,
              bounds: Optional[Bounds] = None,
              iterations: int = DEFAULT_ITERATIONS):
    """
    Gauss-Seidel relaxation of ``x = (x0 + a * sum(neighbours(x))) / c``.

    Runs a fixed number of full sweeps with no convergence test and
    re-applies the boundary conditions after each one.

    Args:
        kind: Boundary rule for ``x``
        x: Unknown, updated in place; its current values are the initial guess
        x0: Right-hand side
        a: Neighbour coupling
        c: Normalisation
        bounds: Boundary vectors, box walls when omitted
        iterations: Number of sweeps
    """
    require_shape(x.shape, x0.shape, "x0")
    _check_iterations(iterations)
    d = x.data
    d0 = x0.data
    fronts = _wavefronts(x.width, x.height)
    for _ in range(iterations):
        for ys, xs in fronts:
            d[ys, xs] = (d0[ys, xs] + a * (d[ys, xs - 1] + d[ys, xs + 1] +
                                           d[ys - 1, xs] + d[ys + 1, xs])) / c
        set_bnd(kind, x, bounds)

def diffuse(kind: BoundaryKind,
            x: Grid,
            x0: Grid,
            diff: float,
            dt: float,
            bounds: Optional[Bounds] = None,
            iterations: int = DEFAULT_ITERATIONS):
    """Implicit Euler diffusion of ``x0`` into ``x``"""
    n = interior_size(x)
    a = dt * diff * n * n
    lin_solve(kind, x, x0, a, 1 + 4 * a, bounds, iterations)

def divergence(u: Grid, v: Grid) -> np.ndarray:
    """Central-difference divergence of the interior, in grid units of 1/N"""
    require_shape(u.shape, v.shape, "v")
    n = interior_size(u)
    ud = u.data
    vd = v.data
    return 0.5 * n * (ud[1:-1, 2:] - ud[1:-1, :-2] + vd[2:, 1:-1] - vd[:-2, 1:-1])

def project(u: Grid,
            v: Grid,
            p: Grid,
            div: Grid,
            bounds: Optional[Bounds] = None,
            iterations: int = DEFAULT_ITERATIONS):
    """
    Remove the divergent part of (u, v).

    Solves the pressure Poisson equation with ``lin_solve(a=1, c=4)`` and
    subtracts the pressure gradient. ``p`` and ``div`` are scratch grids.
    """
    for name, grid in (("v", v), ("p", p), ("div", div)):
        require_shape(u.shape, grid.shape, name)
    n = interior_size(u)
    h = 1.0 / n
    ud = u.data
    vd = v.data
    pd = p.data

    div.data[1:-1, 1:-1] = -0.5 * h * (ud[1:-1, 2:] - ud[1:-1, :-2] + vd[2:, 1:-1] - vd[:-2, 1:-1])
    p.fill(0.0)
    set_bnd(BoundaryKind.SCALAR, div, bounds)
    set_bnd(BoundaryKind.SCALAR, p, bounds)

    lin_solve(BoundaryKind.SCALAR, p, div, 1, 4, bounds, iterations)

    ud[1:-1, 1:-1] -= 0.5 * (pd[1:-1, 2:] - pd[1:-1, :-2]) / h
    vd[1:-1, 1:-1] -= 0.5 * (pd[2:, 1:-1] - pd[:-2, 1:-1]) / h
    set_bnd(BoundaryKind.HORIZONTAL_VELOCITY, u, bounds)
    set_bnd(BoundaryKind.VERTICAL_VELOCITY, v, bounds)
