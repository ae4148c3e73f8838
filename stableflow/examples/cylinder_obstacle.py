import numpy as np
import logging
from pathlib import Path

from stableflow.configs.settings import ConfigManager
from stableflow.core.eulerian.solver import StableFluidSolver
from stableflow.core.numerics.grid import fill_random, pad
from stableflow.main import build_bounds, inject_inflow
from stableflow.visualization.export import GifSink
from stableflow.visualization.image import Image, blit, rgba
from stableflow.visualization.renderer import RenderConfig, Renderer
from stableflow.utils import SimulationLogger, setup_logging

def create_cylinder(width: int, height: int) -> Image:
    """Opaque ellipse filling a transparent image"""
    image = Image(width, height)
    y, x = np.mgrid[0:height, 0:width]
    inside = ((2 * x + 1 - width) / width) ** 2 + ((2 * y + 1 - height) / height) ** 2 <= 1.0
    image.pixels[inside] = rgba(200, 60, 40, 255)
    return image

def main():
    setup_logging(logging.INFO)

    # Load configuration
    manager = ConfigManager.default()
    config = manager.config
    config.grid_size = 64
    config.num_frames = 120
    config.output_dir = str(Path(__file__).parent / "results")
    manager.require_valid()

    # Cylinder obstacle spanning a quarter of the padded grid
    size = config.grid_size + 2
    cylinder = Image(size, size)
    blit(cylinder, create_cylinder(size // 4, size // 4), (3 * size // 8, 3 * size // 8))
    solver = StableFluidSolver(config, build_bounds(config, cylinder))

    rng = np.random.default_rng(config.seed)
    fill_random(pad(solver.state.dens, 2, 2), config.initial_density, rng)

    # Draw the obstacle over the density, at screen scale
    render_config = RenderConfig(config.screen_width, config.screen_height, config.background_color)
    renderer = Renderer(render_config, config.grid_size)
    overlay = create_cylinder(config.screen_width // 4, config.screen_height // 4)

    sim_logger = SimulationLogger()
    sim_logger.start_simulation(config.num_frames, config.grid_size)
    with GifSink(manager.get_animation_path(), config.gif_fps) as sink:
        for frame in range(config.num_frames):
            inject_inflow(solver.state, config, rng)
            solver.step()
            sink.write(renderer.render(solver.state.dens, overlay))

            if (frame + 1) % 20 == 0:
                sim_logger.update_progress(frame + 1, solver.get_state()["metrics"])
    sim_logger.end_simulation()
    sim_logger.cleanup()

if __name__ == "__main__":
    main()
