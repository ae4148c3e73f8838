import pytest
import numpy as np
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent.parent

def test_imports():
    """Test that all required packages can be imported"""
    import numpy as np
    import yaml
    import PIL
    import imageio.v3
    import stableflow

    assert stableflow.__version__ == "1.0.0"
    assert callable(stableflow.velocity_step)
    assert callable(stableflow.density_step)

def test_project_structure():
    """Test that the project structure is correct"""
    required_dirs = [
        "core/numerics",
        "core/eulerian",
        "configs",
        "utils",
        "visualization",
        "tests"
    ]

    for directory in required_dirs:
        assert (PACKAGE_ROOT / directory).exists(), f"Directory {directory} does not exist"

def test_config_loading():
    """Test that the default config can be loaded"""
    import yaml

    config_path = PACKAGE_ROOT / "configs" / "default.yaml"
    assert config_path.exists(), "Default config file not found"

    with open(config_path) as f:
        config = yaml.safe_load(f)

    assert config["grid_size"] == 100
    assert config["solver_iterations"] == 20
    assert config["background_color"] == 0xff222222
    assert config["obstacle_image"] is None

def test_basic_simulation():
    """Test basic fluid simulation setup"""
    from stableflow import SimulationConfig, StableFluidSolver

    solver = StableFluidSolver(SimulationConfig(grid_size=16))
    state = solver.state
    state.dens.set(8, 8, 1.0)
    state.u_prev.set(8, 8, 10.0)

    for _ in range(3):
        solver.step()

    result = solver.get_state()
    assert result['frame'] == 3
    assert result['density'].shape == (18, 18)
    assert np.all(np.isfinite(result['density']))
    assert np.all(np.isfinite(result['u']))
    assert result['metrics']['total_density'] > 0
    assert np.all(state.u_prev.data == 0)
