from .error_handling import (
    SimulationError,
    SolverError,
    BoundaryError,
    ConfigurationError,
    ResourceError,
    setup_logging,
    handle_simulation_error,
    require_shape,
    check_array_bounds,
    create_logger
)
from .logging import SimulationLogger, Timer

__all__ = [
    'SimulationError',
    'SolverError',
    'BoundaryError',
    'ConfigurationError',
    'ResourceError',
    'setup_logging',
    'handle_simulation_error',
    'require_shape',
    'check_array_bounds',
    'create_logger',
    'SimulationLogger',
    'Timer'
]
