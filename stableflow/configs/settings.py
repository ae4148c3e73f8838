import yaml
import json
import logging
from typing import Optional, Dict, List
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
import os
import math

from ..utils.error_handling import ConfigurationError, ResourceError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

OUTPUT_FORMATS = ("raw", "png", "gif")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
ANIMATION_FILENAME = "density.gif"

INTEGER_FIELDS = (
    "grid_size", "solver_iterations", "num_frames", "seed", "inflow_row_offset",
    "obstacle_width", "obstacle_height", "screen_width", "screen_height",
    "background_color", "gif_fps"
)
REAL_FIELDS = (
    "viscosity", "diffusion", "time_step", "initial_density", "inflow_u_amplitude",
    "inflow_v_mean", "inflow_v_amplitude", "obstacle_cutoff"
)

class ConfigFormat(Enum):
    """Configuration file formats"""
    YAML = "yaml"
    JSON = "json"

    @classmethod
    def from_path(cls, filename: str) -> "ConfigFormat":
        suffix = Path(filename).suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.YAML
        if suffix == ".json":
            return cls.JSON
        raise ConfigurationError(f"Cannot infer config format from '{filename}'")

@dataclass
class SimulationConfig:
    """Simulation configuration"""
    # Grid and physics
    grid_size: int = 100
    viscosity: float = 0.001
    diffusion: float = 0.0
    time_step: float = 0.01
    solver_iterations: int = 20

    # Run
    num_frames: int = 100
    seed: int = 1337
    initial_density: float = 1.0

    # Inflow jet injected every frame, ``inflow_row_offset`` rows above the bottom
    inflow_row_offset: int = 10
    inflow_u_amplitude: float = 45.0
    inflow_v_mean: float = -5.0
    inflow_v_amplitude: float = 5.0

    # Obstacle
    obstacle_image: Optional[str] = None
    obstacle_width: int = 100
    obstacle_height: int = 100
    obstacle_cutoff: float = 128.0

    # Output
    screen_width: int = 506
    screen_height: int = 253
    background_color: int = 0xff222222
    output_format: str = "raw"
    output_dir: str = "results"
    gif_fps: int = 30
    log_level: str = "INFO"

class ConfigManager:
    def __init__(self, config: Optional[SimulationConfig] = None):
        """
        Initialize configuration manager

        Args:
            config: Simulation configuration
        """
        self.config = config or SimulationConfig()

    def save(self,
             filename: str,
             format: Optional[ConfigFormat] = None):
        """
        Save configuration to file

        Args:
            filename: Output filename
            format: File format, inferred from the extension when omitted
        """
        format = format or ConfigFormat.from_path(filename)
        config_dict = self._config_to_dict()

        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(filename, "w") as f:
            if format == ConfigFormat.YAML:
                yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(config_dict, f, indent=4)

    def load(self,
             filename: str,
             format: Optional[ConfigFormat] = None):
        """
        Load configuration from file

        Args:
            filename: Input filename
            format: File format, inferred from the extension when omitted
        """
        format = format or ConfigFormat.from_path(filename)
        try:
            with open(filename, "r") as f:
                if format == ConfigFormat.YAML:
                    config_dict = yaml.safe_load(f)
                else:
                    config_dict = json.load(f)
        except FileNotFoundError as e:
            raise ResourceError(f"Config file not found: {filename}") from e
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Malformed config file {filename}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Config file {filename} must contain a mapping")
        self._update_config(config_dict)

    @classmethod
    def from_file(cls, filename: str) -> "ConfigManager":
        manager = cls()
        manager.load(filename)
        return manager

    @classmethod
    def default(cls) -> "ConfigManager":
        """Manager holding the packaged default configuration"""
        return cls.from_file(str(DEFAULT_CONFIG_PATH))

    def _config_to_dict(self) -> Dict:
        return {field.name: getattr(self.config, field.name) for field in fields(self.config)}

    def _update_config(self, config_dict: Dict):
        known = {field.name for field in fields(self.config)}
        for name, value in config_dict.items():
            if name in known:
                setattr(self.config, name, value)
            else:
                logger.warning(f"Ignoring unknown config field: {name}")

    def update(self, **overrides):
        """Override individual fields; unknown names are logged and ignored"""
        self._update_config(overrides)

    def validate(self) -> List[str]:
        """
        Validate configuration

        Returns:
            List of validation errors
        """
        errors = []
        c = self.config

        for name in INTEGER_FIELDS:
            value = getattr(c, name)
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be an integer, got {value!r}")
        for name in REAL_FIELDS:
            value = getattr(c, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                errors.append(f"{name} must be a finite number, got {value!r}")
        if errors:
            return errors

        if c.grid_size < 1:
            errors.append("Grid size must be a positive integer")
        if c.viscosity < 0:
            errors.append("Viscosity must be non-negative")
        if c.diffusion < 0:
            errors.append("Diffusion must be non-negative")
        if c.time_step <= 0:
            errors.append("Time step must be positive")
        if c.solver_iterations < 0:
            errors.append("Solver iterations must be a non-negative integer")

        if c.num_frames < 0:
            errors.append("Number of frames must be non-negative")
        if not 0 <= c.inflow_row_offset <= c.grid_size:
            errors.append("Inflow row offset must lie inside the grid")
        if c.obstacle_width <= 0 or c.obstacle_height <= 0:
            errors.append("Obstacle image size must be positive")

        if c.screen_width <= 0 or c.screen_height <= 0:
            errors.append("Screen size must be positive")
        if c.output_format not in OUTPUT_FORMATS:
            errors.append(f"Output format must be one of {', '.join(OUTPUT_FORMATS)}")
        if c.gif_fps <= 0:
            errors.append("GIF frame rate must be positive")
        if str(c.log_level).upper() not in LOG_LEVELS:
            errors.append(f"Log level must be one of {', '.join(LOG_LEVELS)}")

        return errors

    def require_valid(self):
        """Raise ConfigurationError listing every validation failure"""
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors), details={"errors": errors})

    def get_animation_path(self) -> str:
        return os.path.join(self.config.output_dir, ANIMATION_FILENAME)
