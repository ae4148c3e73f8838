import logging
from typing import Optional, Dict
import traceback
import sys
import numpy as np

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class SimulationError(Exception):
    """Base class for simulation-related errors"""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message)
        self.details = details or {}

class SolverError(SimulationError):
    """Error in numerical solver"""
    pass

class BoundaryError(SimulationError):
    """Error in boundary conditions"""
    pass

class ConfigurationError(SimulationError):
    """Error in configuration"""
    pass

class ResourceError(SimulationError):
    """Missing or unreadable input resource"""
    pass

def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Setup logging configuration"""
    # stdout may carry raw frames, so console logging goes to stderr
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

def handle_simulation_error(e: Exception, logger: logging.Logger) -> None:
    """Handle simulation errors with appropriate logging"""
    if isinstance(e, SimulationError):
        logger.error(f"{e.__class__.__name__}: {str(e)}")
        if e.details:
            logger.debug(f"Error details: {e.details}")
    else:
        logger.error(f"Unexpected error: {str(e)}")
        logger.debug(f"Traceback: {traceback.format_exc()}")

def require_shape(expected: tuple, actual: tuple, field_name: str,
                  error: type = SolverError) -> None:
    """Raise ``error`` unless two grid shapes agree"""
    if tuple(expected) != tuple(actual):
        raise error(
            f"Shape mismatch for {field_name}: expected {tuple(expected)}, got {tuple(actual)}",
            details={"expected": tuple(expected), "actual": tuple(actual)}
        )

def check_array_bounds(array: np.ndarray, field_name: str) -> bool:
    """Report non-finite values without touching them.

    Numerical blow-ups are left in place so they stay visible in later
    frames; this only logs a warning and returns False.
    """
    finite = np.isfinite(array)
    if np.all(finite):
        return True
    logging.getLogger(__name__).warning(
        f"Non-finite values detected in {field_name}: {int(finite.size - finite.sum())} cells"
    )
    return False

def create_logger(name: str) -> logging.Logger:
    """Create a logger with standard configuration"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    # Add console handler if not already present
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)
        logger.propagate = False

    return logger
