import logging
import numpy as np
from dataclasses import dataclass, fields, replace
from typing import Dict, Optional

from ..numerics.grid import Grid, create_grid
from ..numerics.boundary import Bounds, BoundaryKind, box_bounds
from ..numerics.solvers import (
    DEFAULT_ITERATIONS,
    add_source,
    diffuse,
    divergence,
    project,
)
from ..numerics.advection import advect
from ...configs.settings import ConfigManager, SimulationConfig
from ...utils.error_handling import BoundaryError, ConfigurationError, require_shape

logger = logging.getLogger(__name__)

@dataclass
class SimulationState:
    """The six (N+2)x(N+2) grids of one simulation, owned by the frame driver"""
    u: Grid
    v: Grid
    u_prev: Grid
    v_prev: Grid
    dens: Grid
    dens_prev: Grid

    @classmethod
    def create(cls, grid_size: int) -> "SimulationState":
        """Allocate zeroed grids for an N x N interior"""
        if grid_size < 1:
            raise ConfigurationError(f"Grid size must be at least 1, got {grid_size}")
        size = grid_size + 2
        return cls(**{f.name: create_grid(size, size) for f in fields(cls)})

    @property
    def grid_size(self) -> int:
        return self.u.width - 2

    def clear_sources(self):
        """Zero the source/scratch buffers before the next frame's input"""
        self.u_prev.fill(0.0)
        self.v_prev.fill(0.0)
        self.dens_prev.fill(0.0)

def velocity_step(u: Grid,
                  v: Grid,
                  u_prev: Grid,
                  v_prev: Grid,
                  bounds: Optional[Bounds],
                  visc: float,
                  dt: float,
                  iterations: int = DEFAULT_ITERATIONS):
    """
    Advance the velocity field by one frame.

    Sources are expected to be in (u, v) already. The order diffuse,
    project, advect, project keeps the field divergence free after
    self-advection. ``u_prev`` and ``v_prev`` are clobbered.
    """
    u_prev.copy_from(u)
    v_prev.copy_from(v)
    diffuse(BoundaryKind.HORIZONTAL_VELOCITY, u, u_prev, visc, dt, bounds, iterations)
    diffuse(BoundaryKind.VERTICAL_VELOCITY, v, v_prev, visc, dt, bounds, iterations)
    project(u, v, u_prev, v_prev, bounds, iterations)

    u_prev.copy_from(u)
    v_prev.copy_from(v)
    advect(BoundaryKind.HORIZONTAL_VELOCITY, u, u_prev, u_prev, v_prev, dt, bounds)
    advect(BoundaryKind.VERTICAL_VELOCITY, v, v_prev, u_prev, v_prev, dt, bounds)
    project(u, v, u_prev, v_prev, bounds, iterations)

def density_step(dens: Grid,
                 dens_prev: Grid,
                 u: Grid,
                 v: Grid,
                 bounds: Optional[Bounds],
                 diff: float,
                 dt: float,
                 iterations: int = DEFAULT_ITERATIONS):
    """Add ``dens_prev`` as a source, diffuse, then advect through (u, v)"""
    add_source(dens, dens_prev, dt)
    dens_prev.copy_from(dens)
    diffuse(BoundaryKind.SCALAR, dens, dens_prev, diff, dt, bounds, iterations)
    dens_prev.copy_from(dens)
    advect(BoundaryKind.SCALAR, dens, dens_prev, u, v, dt, bounds)

class StableFluidSolver:
    def __init__(self,
                 config: Optional[SimulationConfig] = None,
                 bounds: Optional[Bounds] = None):
        """
        Stable-fluids solver on an (N+2)x(N+2) padded grid

        Args:
            config: Simulation configuration, defaults when omitted
            bounds: Boundary vectors; a plain box when omitted
        """
        self.config = config or SimulationConfig()
        ConfigManager(self.config).require_valid()

        n = self.config.grid_size
        self.state = SimulationState.create(n)

        if bounds is None:
            bounds = Bounds.create(n + 2, n + 2)
            box_bounds(bounds)
        require_shape(self.state.u.shape, bounds.shape, "bounds", BoundaryError)
        self.bounds = bounds
        self.frame = 0

        logger.debug(
            f"Solver ready: N={n}, visc={self.config.viscosity}, "
            f"diff={self.config.diffusion}, dt={self.config.time_step}, "
            f"iterations={self.config.solver_iterations}"
        )

    @property
    def grid_size(self) -> int:
        return self.state.grid_size

    def step(self):
        """Advance one frame: velocity sources, velocity step, density step"""
        cfg = self.config
        s = self.state
        add_source(s.u, s.u_prev, cfg.time_step)
        add_source(s.v, s.v_prev, cfg.time_step)
        velocity_step(s.u, s.v, s.u_prev, s.v_prev, self.bounds,
                      cfg.viscosity, cfg.time_step, cfg.solver_iterations)
        density_step(s.dens, s.dens_prev, s.u, s.v, self.bounds,
                     cfg.diffusion, cfg.time_step, cfg.solver_iterations)
        # No interactive input: every frame starts with empty sources
        s.clear_sources()
        self.frame += 1

    def get_state(self) -> Dict:
        """Get current simulation state"""
        s = self.state
        u = s.u.data.copy()
        v = s.v.data.copy()
        dens = s.dens.data.copy()
        div = divergence(s.u, s.v)
        return {
            'frame': self.frame,
            'u': u,
            'v': v,
            'density': dens,
            'metrics': {
                'max_velocity': float(np.max(np.hypot(u, v))),
                'total_density': float(np.sum(dens[1:-1, 1:-1])),
                'mean_abs_divergence': float(np.mean(np.abs(div)))
            }
        }

    def update_config(self, **changes):
        """Update run parameters; grid size is fixed for the solver's lifetime"""
        if 'grid_size' in changes and changes['grid_size'] != self.config.grid_size:
            raise ConfigurationError("grid_size cannot change on a running solver")
        known = {f.name for f in fields(self.config)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields: {', '.join(unknown)}",
                                     {"fields": unknown})
        config = replace(self.config, **changes)
        ConfigManager(config).require_valid()
        self.config = config
