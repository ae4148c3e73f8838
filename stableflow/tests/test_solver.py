import pytest
import numpy as np

from stableflow.configs.settings import SimulationConfig
from stableflow.core.eulerian.solver import (
    SimulationState, StableFluidSolver, velocity_step, density_step
)
from stableflow.core.numerics.boundary import Bounds, box_bounds
from stableflow.core.numerics.grid import fill_random, pad
from stableflow.core.numerics.solvers import divergence
from stableflow.utils.error_handling import BoundaryError, ConfigurationError

def box(size):
    bounds = Bounds.create(size, size)
    box_bounds(bounds)
    return bounds

@pytest.fixture
def state():
    return SimulationState.create(12)

def test_state_allocation(state):
    assert state.grid_size == 12
    assert state.u.shape == (14, 14)
    assert not state.u.shares_buffer(state.u_prev)
    with pytest.raises(ConfigurationError):
        SimulationState.create(0)

def test_clear_sources(state):
    state.u_prev.fill(1.0)
    state.v_prev.fill(2.0)
    state.dens_prev.fill(3.0)
    state.dens.fill(4.0)
    state.clear_sources()
    for grid in (state.u_prev, state.v_prev, state.dens_prev):
        assert np.all(grid.data == 0)
    assert np.all(state.dens.data == 4.0)

def test_zero_state_stays_zero(state):
    bounds = box(14)
    for _ in range(3):
        velocity_step(state.u, state.v, state.u_prev, state.v_prev, bounds, 0.001, 0.01)
        density_step(state.dens, state.dens_prev, state.u, state.v, bounds, 0.0, 0.01)
    for grid in (state.u, state.v, state.dens):
        assert np.all(grid.data == 0)

def test_single_cell_impulse_without_motion():
    s = SimulationState.create(2)
    # N=2 has no single centre cell; (1, 1) is the first interior cell
    s.dens.set(1, 1, 1.0)
    density_step(s.dens, s.dens_prev, s.u, s.v, box(4), 0.0, 0.1)

    interior = s.dens.data[1:-1, 1:-1]
    assert interior[0, 0] == 1.0
    assert interior[0, 1] == 0.0
    assert interior[1, 0] == 0.0
    assert interior[1, 1] == 0.0
    # ring cells next to the impulse copy it
    assert s.dens.get(0, 1) == 1.0
    assert s.dens.get(1, 0) == 1.0

def test_density_source_is_added(state):
    state.dens_prev.set(6, 6, 10.0)
    density_step(state.dens, state.dens_prev, state.u, state.v, box(14), 0.0, 0.1)
    assert state.dens.get(6, 6) == pytest.approx(1.0)

def test_velocity_step_keeps_field_nearly_divergence_free(state):
    rng = np.random.default_rng(1337)
    fill_random(pad(state.u, 1, 1), 2.0, rng)
    fill_random(pad(state.v, 1, 1), 2.0, rng)
    state.u.data[...] -= 1.0
    state.v.data[...] -= 1.0
    before = np.sum(np.abs(divergence(state.u, state.v)))

    velocity_step(state.u, state.v, state.u_prev, state.v_prev, box(14), 0.0, 0.01)
    after = np.sum(np.abs(divergence(state.u, state.v)))

    assert after < before

def test_nan_is_carried_deterministically():
    def run():
        solver = StableFluidSolver(SimulationConfig(grid_size=10))
        solver.state.dens.fill(0.5)
        solver.state.u.set(5, 5, np.nan)
        solver.step()
        solver.step()
        return solver.state.u.data.copy(), solver.state.dens.data.copy()

    u1, d1 = run()
    u2, d2 = run()
    assert np.isnan(u1).any()
    assert np.isnan(d1).any()
    assert np.array_equal(u1, u2, equal_nan=True)
    assert np.array_equal(d1, d2, equal_nan=True)

class TestStableFluidSolver:
    def test_defaults(self):
        solver = StableFluidSolver(SimulationConfig(grid_size=10))
        assert solver.grid_size == 10
        assert solver.frame == 0
        assert solver.bounds.bx.get(0, 3) == 1.0
        assert solver.bounds.by.get(3, 11) == -1.0

    def test_step_consumes_sources(self):
        solver = StableFluidSolver(SimulationConfig(grid_size=10, time_step=0.1))
        s = solver.state
        s.u_prev.set(4, 4, 5.0)
        s.dens_prev.set(4, 4, 5.0)
        solver.step()

        assert solver.frame == 1
        assert np.any(s.u.data != 0)
        assert solver.get_state()['metrics']['total_density'] > 0
        assert np.all(s.u_prev.data == 0)
        assert np.all(s.dens_prev.data == 0)

    def test_get_state_is_a_snapshot(self):
        solver = StableFluidSolver(SimulationConfig(grid_size=10))
        snapshot = solver.get_state()
        snapshot['density'][...] = 9.0
        assert np.all(solver.state.dens.data == 0)
        assert snapshot['metrics'] == {
            'max_velocity': 0.0,
            'total_density': 0.0,
            'mean_abs_divergence': 0.0
        }

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            StableFluidSolver(SimulationConfig(grid_size=0))
        with pytest.raises(ConfigurationError):
            StableFluidSolver(SimulationConfig(time_step=-1.0))

    def test_bounds_must_match_grid(self):
        with pytest.raises(BoundaryError):
            StableFluidSolver(SimulationConfig(grid_size=10), box(10))

    def test_update_config(self):
        solver = StableFluidSolver(SimulationConfig(grid_size=10))
        solver.update_config(viscosity=0.5, solver_iterations=4)
        assert solver.config.viscosity == 0.5
        assert solver.config.solver_iterations == 4
        with pytest.raises(ConfigurationError):
            solver.update_config(grid_size=16)
        with pytest.raises(ConfigurationError):
            solver.update_config(viscosity=-1.0)
        with pytest.raises(ConfigurationError, match="turbulence"):
            solver.update_config(turbulence=1)
        assert solver.config.viscosity == 0.5

    def test_obstacle_stops_flow_into_it(self):
        bounds = box(12)
        # solid column at x = 5, approached from the left
        bounds.bx.data[1:-1, 4] = 1.0
        solver = StableFluidSolver(SimulationConfig(grid_size=10, time_step=0.1), bounds)
        solver.state.u_prev.data[1:-1, 1:4] = 20.0
        solver.step()
        assert np.all(solver.state.u.data[1:-1, 4] <= 0.0)
