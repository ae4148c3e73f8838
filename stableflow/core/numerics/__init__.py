from .grid import Grid, create_grid, pad, convolve, fill_random, fill_row
from .boundary import Bounds, BoundaryKind, box_bounds, bounds_from_image, set_bnd, threshold
from .solvers import DEFAULT_ITERATIONS, add_source, lin_solve, diffuse, project, divergence
from .advection import advect

__all__ = [
    'Grid',
    'create_grid',
    'pad',
    'convolve',
    'fill_random',
    'fill_row',
    'Bounds',
    'BoundaryKind',
    'box_bounds',
    'bounds_from_image',
    'set_bnd',
    'threshold',
    'DEFAULT_ITERATIONS',
    'add_source',
    'lin_solve',
    'diffuse',
    'project',
    'divergence',
    'advect'
]
