import numpy as np
from typing import Callable, Optional, Tuple

from ...utils.error_handling import ConfigurationError

class Grid:
    """
    Fixed-size 2D float grid over a strided backing buffer.

    The backing array has shape ``(rows, stride)``; a grid is a window
    ``(x0, y0, width, height)`` on it, so logical cell ``(x, y)`` lives at
    ``buffer[offset + x + y * stride]``. Grids returned by ``create_grid``
    own their buffer, grids returned by ``pad`` are views sharing it.
    """

    def __init__(self,
                 base: np.ndarray,
                 x0: int = 0,
                 y0: int = 0,
                 width: Optional[int] = None,
                 height: Optional[int] = None,
                 view: bool = False):
        self._base = base
        self._view = view
        self.x0 = x0
        self.y0 = y0
        self.width = base.shape[1] - x0 if width is None else width
        self.height = base.shape[0] - y0 if height is None else height

    @property
    def stride(self) -> int:
        return self._base.shape[1]

    @property
    def buffer(self) -> np.ndarray:
        """Flat backing buffer shared by every view of this grid"""
        return self._base.reshape(-1)

    @property
    def offset(self) -> int:
        return self.x0 + self.y0 * self.stride

    @property
    def data(self) -> np.ndarray:
        """Logical cells as a writable ``(height, width)`` numpy view"""
        return self._base[self.y0:self.y0 + self.height, self.x0:self.x0 + self.width]

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def is_view(self) -> bool:
        return self._view

    def shares_buffer(self, other: "Grid") -> bool:
        return self._base is other._base

    def get(self, x: int, y: int) -> float:
        assert 0 <= x < self.width and 0 <= y < self.height, f"({x}, {y}) outside {self.resolution}"
        return float(self._base[self.y0 + y, self.x0 + x])

    def set(self, x: int, y: int, value: float):
        assert 0 <= x < self.width and 0 <= y < self.height, f"({x}, {y}) outside {self.resolution}"
        self._base[self.y0 + y, self.x0 + x] = value

    def fill(self, value: float):
        """Set every logical cell; stride padding is left alone"""
        self.data[...] = value

    def filter(self, fn: Callable[[float], float]):
        """Apply a scalar function in place to every logical cell"""
        self.data[...] = np.vectorize(fn, otypes=[self._base.dtype])(self.data)

    def copy_from(self, other: "Grid"):
        if other.shape != self.shape:
            raise ConfigurationError(
                f"Cannot copy grid of shape {other.shape} into {self.shape}"
            )
        self.data[...] = other.data

    def high(self) -> float:
        return float(np.max(self.data))

    def low(self) -> float:
        return float(np.min(self.data))

    def __repr__(self) -> str:
        kind = "view" if self.is_view else "grid"
        return f"Grid({self.width}x{self.height}, stride={self.stride}, offset={self.offset}, {kind})"

def create_grid(width: int, height: int, stride: Optional[int] = None) -> Grid:
    """
    Create a zero-initialized grid

    Args:
        width: Logical width
        height: Logical height
        stride: Row pitch in cells, at least ``width``

    Returns:
        Owning grid
    """
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Grid extent must be positive, got {width}x{height}")
    if stride is None:
        stride = width
    if stride < width:
        raise ConfigurationError(f"Stride {stride} is smaller than width {width}")
    return Grid(np.zeros((height, stride), dtype=np.float64), 0, 0, width, height)

def pad(grid: Grid, px: int, py: int) -> Grid:
    """
    View of ``grid`` with ``px`` columns and ``py`` rows removed on each side

    Writes through the view land in the parent buffer; nothing is copied.
    """
    if px < 0 or py < 0:
        raise ConfigurationError(f"Padding must be non-negative, got ({px}, {py})")
    width = grid.width - 2 * px
    height = grid.height - 2 * py
    if width <= 0 or height <= 0:
        raise ConfigurationError(
            f"Padding ({px}, {py}) leaves no cells in a {grid.width}x{grid.height} grid"
        )
    return Grid(grid._base, grid.x0 + px, grid.y0 + py, width, height, view=True)

def convolve(source: Grid, kernel: Grid, target: Grid):
    """
    Direct 2D convolution of ``source`` with an odd-sized ``kernel``.

    Only cells with a full kernel neighbourhood are written to ``target``;
    its outer band keeps whatever it held before.
    """
    if source.shape != target.shape:
        raise ConfigurationError(
            f"Convolution source {source.shape} and target {target.shape} differ"
        )
    if kernel.width % 2 != 1 or kernel.height % 2 != 1:
        raise ConfigurationError(
            f"Kernel extent must be odd, got {kernel.width}x{kernel.height}"
        )
    half_x = kernel.width // 2
    half_y = kernel.height // 2
    out_w = source.width - 2 * half_x
    out_h = source.height - 2 * half_y
    if out_w <= 0 or out_h <= 0:
        return

    src = source.data
    k = kernel.data
    acc = np.zeros((out_h, out_w), dtype=np.float64)
    for kx in range(kernel.width):
        for ky in range(kernel.height):
            acc += k[ky, kx] * src[ky:ky + out_h, kx:kx + out_w]
    target.data[half_y:half_y + out_h, half_x:half_x + out_w] = acc

def fill_random(grid: Grid, amplitude: float, rng: np.random.Generator):
    """Fill every logical cell with ``amplitude * U[0, 1)``"""
    grid.data[...] = rng.random(grid.shape) * amplitude

def fill_row(grid: Grid, y: int, mean: float, amplitude: float, rng: np.random.Generator):
    """Overwrite row ``y`` with noise of the given mean and peak-to-peak amplitude"""
    if not 0 <= y < grid.height:
        raise ConfigurationError(f"Row {y} outside grid of height {grid.height}")
    grid.data[y, :] = mean + amplitude * (rng.random(grid.width) - 0.5)
