from .numerics.grid import Grid, create_grid, pad
from .numerics.boundary import Bounds, BoundaryKind, box_bounds, bounds_from_image, set_bnd
from .eulerian.solver import SimulationState, StableFluidSolver, velocity_step, density_step

__all__ = [
    'Grid',
    'create_grid',
    'pad',
    'Bounds',
    'BoundaryKind',
    'box_bounds',
    'bounds_from_image',
    'set_bnd',
    'SimulationState',
    'StableFluidSolver',
    'velocity_step',
    'density_step'
]
