"""
Renderer module - the heart of the path tracer.

Implements:
- Recursive radiance estimation with a bounded bounce depth
- Sky gradient background
- Row-parallel rendering with one deterministic random stream per row
- Cooperative cancellation between rows
"""

from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
import numpy as np

from .vec3 import Color
from .ray import Ray
from .camera import Camera
from .shapes import Hittable
from .sampling import random_double, spawn_streams

logger = logging.getLogger(__name__)

# Lower bound on hit distance, skips self-intersection at a bounce origin
SHADOW_ACNE_EPSILON = 0.001

BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
SKY_BLUE = Color(0.5, 0.7, 1.0)


class RenderCancelled(InterruptedError):
    """Raised when a render is stopped through Renderer.cancel()."""


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = 50
    num_threads: int = 0  # 0 = auto-detect
    seed: Optional[int] = None

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads must be non-negative, got {self.num_threads}")
        if self.seed is not None:
            if isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer)):
                raise ValueError(f"seed must be a non-negative integer, got {self.seed!r}")
            if self.seed < 0:
                raise ValueError(f"seed must be a non-negative integer, got {self.seed}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float, **kwargs) -> RenderSettings:
        """Create settings whose height follows from width and aspect ratio."""
        if aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=max(1, int(width / aspect_ratio)), **kwargs)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def sky_color(ray: Ray) -> Color:
    """Blend from white at the horizon to sky blue at the zenith."""
    unit_direction = ray.direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return WHITE * (1.0 - t) + SKY_BLUE * t


def ray_color(ray: Ray, world: Hittable, depth: int, rng: np.random.Generator) -> Color:
    """Estimate the radiance carried back along a ray.

    Args:
        ray: The ray to trace
        world: The scene to trace against
        depth: Remaining bounce budget
        rng: Random stream for material scattering

    Returns:
        The estimated color for this ray
    """
    # Bounce budget exhausted, no more light is gathered
    if depth <= 0:
        return BLACK

    hit_record = world.hit(ray, SHADOW_ACNE_EPSILON, float('inf'))

    if hit_record is None:
        return sky_color(ray)

    # Geometry without a material absorbs everything
    if hit_record.material is None:
        return BLACK

    scatter_result = hit_record.material.scatter(ray, hit_record, rng)
    if scatter_result is None:
        return BLACK

    return scatter_result.attenuation * ray_color(
        scatter_result.scattered_ray, world, depth - 1, rng
    )


class Renderer:
    """Monte Carlo path tracing renderer."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._cancelled = threading.Event()

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def cancel(self) -> None:
        """Ask a running render to stop before its next row."""
        self._cancelled.set()

    def render(self, world: Hittable, camera: Camera) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Rows are rendered top to bottom, each with its own random stream
        spawned from the settings' seed. With a fixed seed the result is
        identical for any number of threads.

        Args:
            world: The scene to render (any Hittable)
            camera: The camera to render from

        Returns:
            Averaged linear image of shape (height, width, 3), top row first

        Raises:
            RenderCancelled: If cancel() was called during the render
        """
        width = self.settings.width
        height = self.settings.height
        samples = self.settings.samples_per_pixel
        max_depth = self.settings.max_depth

        self._cancelled.clear()
        image = np.zeros((height, width, 3), dtype=np.float64)
        streams = spawn_streams(self.settings.seed, height)

        lock = threading.Lock()
        completed_rows = [0]

        def render_row(row: int) -> Tuple[int, np.ndarray]:
            """Render a single scanline; row 0 is the top of the image."""
            if self._cancelled.is_set():
                raise RenderCancelled("Render cancelled")

            rng = streams[row]
            j = height - 1 - row
            row_image = np.zeros((width, 3), dtype=np.float64)

            for i in range(width):
                pixel_color = Color(0, 0, 0)

                for _ in range(samples):
                    u = (i + random_double(rng)) / max(width - 1, 1)
                    v = (j + random_double(rng)) / max(height - 1, 1)

                    ray = camera.get_ray(u, v, rng)
                    pixel_color += ray_color(ray, world, max_depth, rng)

                row_image[i] = pixel_color.to_array() / samples

            with lock:
                completed_rows[0] += 1
                done = completed_rows[0]
            if self._progress_callback:
                self._progress_callback(done / height)

            return row, row_image

        logger.debug(
            "Rendering %dx%d, %d samples/pixel, depth %d, %d thread(s)",
            width, height, samples, max_depth, self.settings.num_threads
        )

        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                try:
                    results = list(executor.map(render_row, range(height)))
                except BaseException:
                    # Queued rows bail out before the pool is joined
                    self._cancelled.set()
                    raise
        else:
            results = [render_row(row) for row in range(height)]

        for row, row_image in results:
            image[row] = row_image

        return image
