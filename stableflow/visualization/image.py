"""
Packed 32-bit images used for obstacle input and rendered output.

Pixels are ``uint32`` values laid out as ``0xAARRGGBB``; stored
little-endian that is BGRA byte order, the layout of ``.bgra`` dumps.
"""

import os
import numpy as np
from typing import Optional, Tuple, Union
from PIL import Image as PILImage

from ..core.numerics.grid import Grid
from ..utils.error_handling import ConfigurationError, ResourceError

Color = Union[int, np.ndarray]

def rgba(r: Color, g: Color, b: Color, a: Color) -> Color:
    return ((np.uint32(a) << np.uint32(24)) | (np.uint32(r) << np.uint32(16)) |
            (np.uint32(g) << np.uint32(8)) | np.uint32(b))

def rgb(r: Color, g: Color, b: Color) -> Color:
    return rgba(r, g, b, 255)

def get_alpha(color: Color) -> Color:
    return (np.uint32(color) >> np.uint32(24)) & np.uint32(0xFF)

def get_red(color: Color) -> Color:
    return (np.uint32(color) >> np.uint32(16)) & np.uint32(0xFF)

def get_green(color: Color) -> Color:
    return (np.uint32(color) >> np.uint32(8)) & np.uint32(0xFF)

def get_blue(color: Color) -> Color:
    return np.uint32(color) & np.uint32(0xFF)

def blend_color(target: Color, source: Color) -> Color:
    """Source-over blend of ``source`` onto ``target`` using the source alpha"""
    sa = get_alpha(source).astype(np.uint32)
    inv = np.uint32(255) - sa

    def mix(sc, tc):
        return (sc * sa + tc * inv) // np.uint32(255)

    r = mix(get_red(source), get_red(target))
    g = mix(get_green(source), get_green(target))
    b = mix(get_blue(source), get_blue(target))
    a = sa + (get_alpha(target) * inv) // np.uint32(255)
    return rgba(r, g, b, a)

class Image:
    def __init__(self, width: int, height: int, stride: Optional[int] = None):
        """
        Zero-filled (transparent black) image

        Args:
            width: Width in pixels
            height: Height in pixels
            stride: Row pitch in pixels, at least ``width``
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Image extent must be positive, got {width}x{height}")
        stride = width if stride is None else stride
        if stride < width:
            raise ConfigurationError(f"Stride {stride} is smaller than width {width}")
        self.width = width
        self.height = height
        self.stride = stride
        self.buffer = np.zeros(height * stride, dtype=np.uint32)

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def pixels(self) -> np.ndarray:
        """Writable ``(height, width)`` view of the packed pixels"""
        return self.buffer.reshape(self.height, self.stride)[:, :self.width]

    def pixel(self, x: int, y: int) -> int:
        assert 0 <= x < self.width and 0 <= y < self.height
        return int(self.buffer[x + y * self.stride])

    def set_pixel(self, x: int, y: int, color: int):
        assert 0 <= x < self.width and 0 <= y < self.height
        self.buffer[x + y * self.stride] = color

    def alpha_channel(self) -> np.ndarray:
        return get_alpha(self.pixels).astype(np.float64)

    def to_rgba_array(self) -> np.ndarray:
        """``(height, width, 4)`` uint8 array for Pillow/imageio"""
        p = self.pixels
        return np.stack([get_red(p), get_green(p), get_blue(p), get_alpha(p)], axis=-1).astype(np.uint8)

    def tobytes(self) -> bytes:
        """Raw little-endian packed pixels, row by row, without stride padding"""
        return np.ascontiguousarray(self.pixels, dtype="<u4").tobytes()

    @classmethod
    def from_rgba_array(cls, array: np.ndarray) -> "Image":
        if array.ndim != 3 or array.shape[2] != 4:
            raise ConfigurationError(f"Expected an (H, W, 4) array, got shape {array.shape}")
        image = cls(array.shape[1], array.shape[0])
        a = array.astype(np.uint32)
        image.pixels[...] = rgba(a[..., 0], a[..., 1], a[..., 2], a[..., 3])
        return image

def clear(image: Image, color: int):
    image.pixels[...] = color

def load_rgba(filename: str, width: int, height: int) -> Image:
    """
    Read a raw packed-pixel dump of exactly ``width * height`` pixels

    Raises:
        ResourceError: file missing or unreadable
        ConfigurationError: file size does not match the expected extent
    """
    expected = width * height * 4
    try:
        size = os.path.getsize(filename)
    except OSError as e:
        raise ResourceError(f"Could not open '{filename}': {e.strerror or e}") from e
    if size != expected:
        raise ConfigurationError(
            f"'{filename}' holds {size} bytes, expected {expected} for {width}x{height} pixels",
            details={"size": size, "expected": expected}
        )
    image = Image(width, height)
    try:
        image.buffer[...] = np.fromfile(filename, dtype="<u4", count=width * height)
    except OSError as e:
        raise ResourceError(f"Could not read '{filename}': {e}") from e
    return image

def load_image_file(filename: str) -> Image:
    """Decode any Pillow-readable image into packed pixels"""
    try:
        with PILImage.open(filename) as img:
            array = np.asarray(img.convert("RGBA"))
    except FileNotFoundError as e:
        raise ResourceError(f"Could not open '{filename}': {e.strerror}") from e
    except OSError as e:
        raise ResourceError(f"Could not decode '{filename}': {e}") from e
    return Image.from_rgba_array(array)

def image_scale(target: Image, source: Image):
    """Nearest-neighbour rescale of ``source`` to fill ``target``"""
    xs = np.arange(target.width) * source.width // target.width
    ys = np.arange(target.height) * source.height // target.height
    target.pixels[...] = source.pixels[ys[:, None], xs[None, :]]

def center(outer: Tuple[int, int], inner: Tuple[int, int]) -> Tuple[int, int]:
    """Top-left position that centres ``inner`` in ``outer`` (both width, height)"""
    return ((outer[0] - inner[0]) // 2, (outer[1] - inner[1]) // 2)

def blit(target: Image, source: Image, position: Tuple[int, int]):
    """Alpha-blend ``source`` onto ``target`` with its top-left at ``position``"""
    x, y = position
    if x < 0 or y < 0 or x + source.width > target.width or y + source.height > target.height:
        raise ConfigurationError(
            f"{source.width}x{source.height} image at {position} does not fit in "
            f"{target.width}x{target.height}"
        )
    region = target.pixels[y:y + source.height, x:x + source.width]
    region[...] = blend_color(region, source.pixels)

def alpha_to_grid(image: Image, grid: Grid):
    """Copy the alpha channel into the top-left corner of ``grid``"""
    if image.width > grid.width or image.height > grid.height:
        raise ConfigurationError(
            f"{image.width}x{image.height} image does not fit in {grid.width}x{grid.height} grid"
        )
    grid.data[:image.height, :image.width] = image.alpha_channel()
