from typing import Optional
import numpy as np
from dataclasses import dataclass

from .image import Image, blit, center, clear, image_scale, rgb
from ..core.numerics.grid import Grid, pad
from ..utils.error_handling import ConfigurationError

@dataclass
class RenderConfig:
    """Render configuration"""
    screen_width: int = 506
    screen_height: int = 253
    background_color: int = 0xff222222
    low: float = 0.0
    high: float = 1.0

    def __post_init__(self):
        if self.screen_width <= 0 or self.screen_height <= 0:
            raise ConfigurationError("Screen size must be positive")

        if self.high == self.low:
            raise ConfigurationError("Density range must not be empty")

def draw_density(image: Image, dens: Grid, lo: float = 0.0, hi: float = 1.0):
    """
    Paint ``dens`` as opaque grayscale into the top-left of ``image``

    ``(d - lo) / (hi - lo)`` is scaled to 0..255, truncated and clamped.
    NaN cells come out black.
    """
    if dens.width > image.width or dens.height > image.height:
        raise ConfigurationError(
            f"{dens.width}x{dens.height} density does not fit in {image.width}x{image.height} image"
        )
    with np.errstate(invalid="ignore"):
        scaled = np.trunc(255.0 * ((dens.data - lo) / (hi - lo)))
    intensity = np.clip(np.nan_to_num(scaled, nan=0.0), 0, 255).astype(np.uint32)
    image.pixels[:dens.height, :dens.width] = rgb(intensity, intensity, intensity)

class Renderer:
    def __init__(self, config: RenderConfig, grid_size: int):
        """
        Initialize renderer

        Args:
            config: Render configuration
            grid_size: Interior size N of the density grid
        """
        self.config = config
        self.screen = Image(config.screen_width, config.screen_height)
        self.density_image = Image(grid_size, grid_size)

    def render(self, dens: Grid, overlay: Optional[Image] = None) -> Image:
        """
        Render the interior of a padded density grid to the screen image

        Args:
            dens: (N+2)x(N+2) density grid
            overlay: Optional image blended over the centre of the screen

        Returns:
            Screen image, reused between calls
        """
        clear(self.screen, self.config.background_color)
        draw_density(self.density_image, pad(dens, 1, 1), self.config.low, self.config.high)
        image_scale(self.screen, self.density_image)
        if overlay is not None:
            blit(self.screen, overlay, center(self.screen.resolution, overlay.resolution))
        return self.screen
