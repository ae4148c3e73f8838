import logging
import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from .grid import Grid, create_grid
from ...utils.error_handling import BoundaryError, ConfigurationError, require_shape

logger = logging.getLogger(__name__)

DEFAULT_CUTOFF = 128.0

class BoundaryKind(Enum):
    """Which rule set_bnd applies to a field"""
    SCALAR = 0
    HORIZONTAL_VELOCITY = 1
    VERTICAL_VELOCITY = 2

@dataclass
class Bounds:
    """Per-cell boundary direction vectors; a zero vector marks a free cell"""
    bx: Grid
    by: Grid

    def __post_init__(self):
        require_shape(self.bx.shape, self.by.shape, "bounds.by", BoundaryError)

    @classmethod
    def create(cls, width: int, height: int) -> "Bounds":
        return cls(create_grid(width, height), create_grid(width, height))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.bx.shape

    def axis(self, kind: BoundaryKind) -> Optional[np.ndarray]:
        """Component of the vectors along a velocity kind's axis"""
        if kind == BoundaryKind.HORIZONTAL_VELOCITY:
            return self.bx.data
        if kind == BoundaryKind.VERTICAL_VELOCITY:
            return self.by.data
        return None

def box_bounds(bounds: Bounds):
    """
    Point every non-corner border cell inward.

    Left edge (+1, 0), right edge (-1, 0), top edge (0, +1), bottom edge
    (0, -1). The four corners are not touched.
    """
    h, w = bounds.shape
    bx = bounds.bx.data
    by = bounds.by.data

    bx[1:h - 1, 0] = 1.0
    by[1:h - 1, 0] = 0.0
    bx[1:h - 1, w - 1] = -1.0
    by[1:h - 1, w - 1] = 0.0

    bx[0, 1:w - 1] = 0.0
    by[0, 1:w - 1] = 1.0
    bx[h - 1, 1:w - 1] = 0.0
    by[h - 1, 1:w - 1] = -1.0

def threshold(value: float, cutoff: float = DEFAULT_CUTOFF) -> float:
    if value > cutoff:
        return 1.0
    return 0.0

def bounds_from_image(bounds: Bounds, image, cutoff: float = DEFAULT_CUTOFF):
    """
    Derive obstacle edge vectors from an image's alpha channel.

    The alpha channel is thresholded to a {0, 1} mask and forward
    differences of the mask are stored as the direction vectors, so the
    vectors point up the mask gradient (into the obstacle). This is a crude
    edge detector; cells deep inside an obstacle stay unconstrained.

    Args:
        bounds: Bounds to write into
        image: Image with ``width``, ``height`` and ``alpha_channel()``;
            must match the bounds grid exactly
        cutoff: Alpha values strictly above this count as solid
    """
    h, w = bounds.shape
    if (image.width, image.height) != (w, h):
        raise ConfigurationError(
            f"Obstacle image is {image.width}x{image.height}, bounds grid is {w}x{h}",
            details={"image": (image.width, image.height), "grid": (w, h)}
        )

    mask = create_grid(w, h)
    mask.data[...] = image.alpha_channel()
    mask.filter(lambda a: threshold(a, cutoff))

    s = mask.data
    bounds.bx.data[:h - 1, :w - 1] = s[:h - 1, 1:] - s[:h - 1, :w - 1]
    bounds.by.data[:h - 1, :w - 1] = s[1:, :w - 1] - s[:h - 1, :w - 1]

    edges = np.count_nonzero(
        (bounds.bx.data[:h - 1, :w - 1] != 0) | (bounds.by.data[:h - 1, :w - 1] != 0)
    )
    logger.debug(f"Obstacle mask: {int(s.sum())} solid cells, {edges} edge cells")

def set_bnd(kind: BoundaryKind, x: Grid, bounds: Optional[Bounds] = None):
    """
    Re-derive the boundary ring of ``x`` from its interior.

    Ring cells copy their inward neighbour, negated when the cell's boundary
    vector has a component along the velocity kind's axis. Interior obstacle
    cells drop velocity components that point into the obstacle. Corners are
    the mean of their two ring neighbours. Without ``bounds`` the box walls
    are assumed.
    """
    d = x.data
    h, w = d.shape

    if bounds is None:
        reflect_x = kind == BoundaryKind.HORIZONTAL_VELOCITY
        reflect_y = kind == BoundaryKind.VERTICAL_VELOCITY
        left = right = reflect_x
        top = bottom = reflect_y
    else:
        require_shape(bounds.shape, x.shape, "bounds", BoundaryError)
        axis = bounds.axis(kind)
        if axis is None:
            left = right = top = bottom = False
        else:
            left = axis[1:h - 1, 0] != 0
            right = axis[1:h - 1, w - 1] != 0
            top = axis[0, 1:w - 1] != 0
            bottom = axis[h - 1, 1:w - 1] != 0

            b = axis[1:h - 1, 1:w - 1]
            inner = d[1:h - 1, 1:w - 1]
            inner[(b != 0) & (inner * b > 0)] = 0.0

    d[1:h - 1, 0] = np.where(left, -d[1:h - 1, 1], d[1:h - 1, 1])
    d[1:h - 1, w - 1] = np.where(right, -d[1:h - 1, w - 2], d[1:h - 1, w - 2])
    d[0, 1:w - 1] = np.where(top, -d[1, 1:w - 1], d[1, 1:w - 1])
    d[h - 1, 1:w - 1] = np.where(bottom, -d[h - 2, 1:w - 1], d[h - 2, 1:w - 1])

    d[0, 0] = 0.5 * (d[0, 1] + d[1, 0])
    d[0, w - 1] = 0.5 * (d[0, w - 2] + d[1, w - 1])
    d[h - 1, 0] = 0.5 * (d[h - 1, 1] + d[h - 2, 0])
    d[h - 1, w - 1] = 0.5 * (d[h - 1, w - 2] + d[h - 2, w - 1])
