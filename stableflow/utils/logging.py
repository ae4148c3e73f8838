import logging
import sys
import os
import time
from typing import Dict, List, Optional, TextIO

class SimulationLogger:
    def __init__(self,
                 log_file: Optional[str] = None,
                 level: int = logging.INFO,
                 stream: Optional[TextIO] = None,
                 name: str = "StableFlow"):
        """
        Run logger reporting frame progress

        Args:
            log_file: Optional file that also receives the run log
            level: Logging level
            stream: Console stream, stderr when omitted (stdout may carry frames)
            name: Logger name
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False
        self._handlers: List[logging.Handler] = []

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
            self._attach(file_handler)

        console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        self._attach(console_handler)

        self.timer = Timer(name)
        self.total_frames = 0
        self.frames_done = 0

    def _attach(self, handler: logging.Handler):
        self.logger.addHandler(handler)
        self._handlers.append(handler)

    def start_simulation(self, total_frames: int, grid_size: Optional[int] = None):
        self.total_frames = total_frames
        self.frames_done = 0
        self.timer.start()

        if grid_size is None:
            self.logger.info(f"Simulating {total_frames} frames")
        else:
            self.logger.info(f"Simulating {total_frames} frames on a {grid_size}x{grid_size} grid")

    def update_progress(self, frame: int, metrics: Optional[Dict[str, float]] = None):
        """
        Report completed frames, an ETA and optional solver metrics

        Args:
            frame: Number of frames completed so far
            metrics: Name to value mapping appended to the line
        """
        self.frames_done = frame
        elapsed = self.timer.get_elapsed()
        percent = 100.0 * frame / self.total_frames if self.total_frames else 100.0

        parts = [f"Frame {frame}/{self.total_frames} ({percent:.1f}%)"]
        if 0 < frame < self.total_frames:
            eta = elapsed / frame * (self.total_frames - frame)
            parts.append(f"ETA {eta:.1f}s")
        if metrics:
            parts.append(", ".join(f"{key} {value:.4g}" for key, value in metrics.items()))
        self.logger.info(" - ".join(parts))

    def log_error(self, error: Exception, context: Optional[str] = None):
        message = f"{context}: {error}" if context else str(error)
        self.logger.error(message, exc_info=True)

    def log_warning(self, message: str):
        self.logger.warning(message)

    def end_simulation(self, success: bool = True):
        self.timer.stop()
        if success:
            self.logger.info(f"Finished {self.frames_done} frames in {self.timer.get_elapsed():.2f}s")
        else:
            self.logger.error(f"Simulation failed after {self.frames_done} frames")

    def cleanup(self):
        """Detach and close the handlers this logger added"""
        for handler in self._handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self._handlers = []

class Timer:
    """Wall-clock timer with optional laps, usable as a context manager"""

    def __init__(self, name: str):
        self.name = name
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.laps: List[float] = []
        self._lap_start: Optional[float] = None

    def start(self):
        self.start_time = time.perf_counter()
        self._lap_start = self.start_time
        self.end_time = None
        self.laps = []

    def lap(self) -> float:
        """Close the current lap and return its length in seconds"""
        now = time.perf_counter()
        if self._lap_start is None:
            self.start_time = self._lap_start = now
        duration = now - self._lap_start
        self.laps.append(duration)
        self._lap_start = now
        return duration

    def stop(self):
        self.end_time = time.perf_counter()

    def get_elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time

    def mean_lap(self) -> float:
        return sum(self.laps) / len(self.laps) if self.laps else 0.0

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
