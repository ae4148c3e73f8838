"""
StableFlow - stable-fluids density simulation on a padded 2D grid
"""

from stableflow.core import (
    Grid,
    create_grid,
    pad,
    Bounds,
    BoundaryKind,
    box_bounds,
    bounds_from_image,
    set_bnd,
    SimulationState,
    StableFluidSolver,
    velocity_step,
    density_step
)
from stableflow.configs import SimulationConfig, ConfigManager
from stableflow.utils import setup_logging, create_logger

__version__ = "1.0.0"

__all__ = [
    # Core components
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
    'density_step',

    # Configuration
    'SimulationConfig',
    'ConfigManager',

    # Utilities
    'setup_logging',
    'create_logger'
]
