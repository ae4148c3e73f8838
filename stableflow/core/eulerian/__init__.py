from .solver import SimulationState, StableFluidSolver, velocity_step, density_step

__all__ = ['SimulationState', 'StableFluidSolver', 'velocity_step', 'density_step']
