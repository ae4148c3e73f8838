import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from stableflow.configs.settings import ConfigManager, SimulationConfig
from stableflow.core.eulerian.solver import SimulationState, StableFluidSolver
from stableflow.core.numerics.boundary import Bounds, box_bounds, bounds_from_image
from stableflow.core.numerics.grid import fill_random, fill_row, pad
from stableflow.visualization.export import FrameSink, create_sink
from stableflow.visualization.image import Image, image_scale, load_image_file, load_rgba
from stableflow.visualization.renderer import RenderConfig, Renderer
from stableflow.utils import (
    SimulationError,
    SimulationLogger,
    Timer,
    check_array_bounds,
    create_logger,
    handle_simulation_error,
    setup_logging,
)

logger = logging.getLogger(__name__)

RAW_SUFFIXES = (".bgra", ".raw")

def load_obstacle(config: SimulationConfig) -> Image:
    """Load the obstacle image named in the config"""
    path = config.obstacle_image
    if Path(path).suffix.lower() in RAW_SUFFIXES:
        return load_rgba(path, config.obstacle_width, config.obstacle_height)
    return load_image_file(path)

def build_bounds(config: SimulationConfig, obstacle: Optional[Image] = None) -> Bounds:
    """Box walls plus, when given, obstacle edges scaled to the padded grid"""
    size = config.grid_size + 2
    bounds = Bounds.create(size, size)
    if obstacle is not None:
        scaled = Image(size, size)
        image_scale(scaled, obstacle)
        bounds_from_image(bounds, scaled, config.obstacle_cutoff)
    box_bounds(bounds)
    return bounds

def inject_inflow(state: SimulationState, config: SimulationConfig, rng: np.random.Generator):
    """Noisy horizontal jet across one row near the bottom of the grid"""
    row = config.grid_size - config.inflow_row_offset
    fill_row(state.u, row, 0.0, config.inflow_u_amplitude, rng)
    fill_row(state.v, row, config.inflow_v_mean, config.inflow_v_amplitude, rng)

def run_simulation(config: SimulationConfig,
                   sink: FrameSink,
                   sim_logger: Optional[SimulationLogger] = None) -> StableFluidSolver:
    """
    Run the fixed-length frame loop

    Args:
        config: Validated simulation configuration
        sink: Destination for rendered frames
        sim_logger: Optional progress logger

    Returns:
        Solver in its final state
    """
    rng = np.random.default_rng(config.seed)
    obstacle = load_obstacle(config) if config.obstacle_image else None
    solver = StableFluidSolver(config, build_bounds(config, obstacle))
    fill_random(pad(solver.state.dens, 2, 2), config.initial_density, rng)

    renderer = Renderer(
        RenderConfig(config.screen_width, config.screen_height, config.background_color),
        config.grid_size
    )

    report_every = max(1, config.num_frames // 10)
    finite = True
    if sim_logger:
        sim_logger.start_simulation(config.num_frames, config.grid_size)
    try:
        with Timer("frames") as timer:
            for frame in range(config.num_frames):
                inject_inflow(solver.state, config, rng)
                solver.step()
                sink.write(renderer.render(solver.state.dens))
                timer.lap()

                if finite and not check_array_bounds(solver.state.dens.data, f"density at frame {frame}"):
                    finite = False
                    if sim_logger:
                        sim_logger.log_warning(f"Density stopped being finite at frame {frame}")
                if sim_logger and ((frame + 1) % report_every == 0 or frame + 1 == config.num_frames):
                    sim_logger.update_progress(frame + 1, solver.get_state()["metrics"])
    except SimulationError as e:
        if sim_logger:
            sim_logger.log_error(e, f"Frame {solver.frame}")
            sim_logger.end_simulation(success=False)
        raise

    if timer.laps:
        logger.debug(f"{timer.mean_lap() * 1000:.2f} ms per frame")
    if sim_logger:
        sim_logger.end_simulation(success=True)
    return solver

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="StableFlow - stable fluids density simulation")
    parser.add_argument("--config", help="YAML or JSON config file (packaged defaults otherwise)")
    parser.add_argument("--frames", type=int, help="Number of frames to simulate")
    parser.add_argument("--grid-size", type=int, help="Interior grid size N")
    parser.add_argument("--iterations", type=int, help="Relaxation sweeps per solve")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--obstacle", help="Obstacle image (.bgra raw dump or any Pillow format)")
    parser.add_argument(
        "--output-format",
        choices=["raw", "png", "gif"],
        help="raw: packed pixels on stdout; png: image sequence; gif: animation"
    )
    parser.add_argument("--output-dir", help="Directory for png/gif output")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser.parse_args(argv)

def build_config(args: argparse.Namespace) -> SimulationConfig:
    manager = ConfigManager.from_file(args.config) if args.config else ConfigManager.default()
    overrides = {
        "num_frames": args.frames,
        "grid_size": args.grid_size,
        "solver_iterations": args.iterations,
        "seed": args.seed,
        "obstacle_image": args.obstacle,
        "output_format": args.output_format,
        "output_dir": args.output_dir,
        "log_level": args.log_level,
    }
    manager.update(**{k: v for k, v in overrides.items() if v is not None})
    manager.require_valid()
    return manager.config

def main(argv: Optional[List[str]] = None) -> int:
    cli_logger = create_logger("stableflow.cli")
    try:
        args = parse_args(argv)
        config = build_config(args)
        level = getattr(logging, config.log_level.upper())
        setup_logging(level, args.log_file)

        sim_logger = SimulationLogger(args.log_file, level)
        try:
            with create_sink(config.output_format, config.output_dir, config.gif_fps) as sink:
                run_simulation(config, sink, sim_logger)
        finally:
            sim_logger.cleanup()
    except SimulationError as e:
        handle_simulation_error(e, cli_logger)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
