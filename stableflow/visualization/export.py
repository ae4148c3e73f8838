"""
Frame sinks for rendered simulation output
"""
import sys
import logging
import numpy as np
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import BinaryIO, List, Optional

import imageio.v3 as iio
from PIL import Image as PILImage

from .image import Image
from ..configs.settings import ANIMATION_FILENAME
from ..utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

class ExportFormat(Enum):
    """Supported frame output formats"""
    RAW = "raw"
    PNG = "png"
    GIF = "gif"

class FrameSink(ABC):
    """Consumes rendered frames one at a time"""

    def __init__(self):
        self.frames_written = 0

    @abstractmethod
    def write(self, image: Image):
        pass

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

class RawFrameSink(FrameSink):
    """Appends raw packed pixels to a binary stream (stdout by default)"""

    def __init__(self, stream: Optional[BinaryIO] = None):
        super().__init__()
        self.stream = stream if stream is not None else sys.stdout.buffer

    def write(self, image: Image):
        self.stream.write(image.tobytes())
        self.frames_written += 1

    def close(self):
        self.stream.flush()

class PngSequenceSink(FrameSink):
    """Writes each frame to ``<output_dir>/<prefix>_NNNNNN.png``"""

    def __init__(self, output_dir: str, prefix: str = "frame"):
        super().__init__()
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

    def path_for(self, index: int) -> Path:
        return self.output_dir / f"{self.prefix}_{index:06d}.png"

    def write(self, image: Image):
        PILImage.fromarray(image.to_rgba_array()).save(self.path_for(self.frames_written))
        self.frames_written += 1

class GifSink(FrameSink):
    """Collects frames and writes one animated GIF on close"""

    def __init__(self, filepath: str, fps: int = 30):
        super().__init__()
        self.filepath = Path(filepath)
        self.fps = fps
        self.frames: List[np.ndarray] = []

    def write(self, image: Image):
        # The screen image is reused between frames, so keep a copy
        self.frames.append(image.to_rgba_array()[..., :3].copy())
        self.frames_written += 1

    def close(self):
        if not self.frames:
            return
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        iio.imwrite(self.filepath, np.stack(self.frames), duration=1000.0 / self.fps, loop=0)
        logger.info(f"Wrote {len(self.frames)} frames to {self.filepath}")
        self.frames = []

def create_sink(format: str, output_dir: str = "results", fps: int = 30,
                stream: Optional[BinaryIO] = None) -> FrameSink:
    """
    Build the sink for an output format

    Args:
        format: One of ``raw``, ``png``, ``gif``
        output_dir: Directory for file-based sinks
        fps: Frame rate for GIF output
        stream: Binary stream for raw output

    Returns:
        Frame sink
    """
    try:
        export_format = ExportFormat(format)
    except ValueError as e:
        raise ConfigurationError(f"Unknown output format: {format}") from e

    if export_format == ExportFormat.RAW:
        return RawFrameSink(stream)
    if export_format == ExportFormat.PNG:
        return PngSequenceSink(output_dir)
    return GifSink(str(Path(output_dir) / ANIMATION_FILENAME), fps)
