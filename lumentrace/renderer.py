"""
Renderer module - the heart of the ray tracer.

Implements:
- Recursive Monte Carlo shading with a bounded bounce depth
- Box-filter antialiasing and gamma-2 pixel finalization
- Multi-threaded row-based rendering with per-row random generators
- Cooperative cancellation between rows
"""

from __future__ import annotations
import math
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np

from .vec3 import Color, BLACK, WHITE, LIGHT_BLUE
from .ray import Ray
from .interval import Interval
from .camera import Camera
from .shapes import Hittable
from .image import ImageSink


class RenderCancelled(Exception):
    """Raised by Renderer.render when cancel() was requested mid-render."""


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 400
    height: int = 225
    samples_per_pixel: int = 10
    max_depth: int = 10
    num_threads: int = 0  # 0 = auto-detect
    seed: Optional[int] = None
    t_min: float = 1e-4  # Avoids shadow acne from self-intersection
    horizon: Color = field(default_factory=lambda: WHITE)
    zenith: Color = field(default_factory=lambda: LIGHT_BLUE)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image size must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads must be non-negative, got {self.num_threads}")
        if self.t_min <= 0:
            raise ValueError(f"t_min must be positive, got {self.t_min}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4


def finalize_pixel(accumulated: Color, samples: int) -> Tuple[int, int, int]:
    """Turn summed linear radiance into an 8-bit RGB triple.

    Averages over the sample count, applies gamma 2 (square root) and
    clamps each channel to [0, 1] before scaling to [0, 255].
    """
    scale = 1.0 / samples
    channels = []
    for c in accumulated:
        linear = c * scale
        gamma = math.sqrt(linear) if linear > 0 else 0.0
        channels.append(int(Interval.UNIT.clamp(gamma) * 255.0))
    return tuple(channels)


class Renderer:
    """Recursive ray tracing renderer with multi-threading support.

    The renderer starts out configured from its camera. After changing any
    camera parameter, call `configure()` again before rendering.
    """

    def __init__(self, settings: RenderSettings = None, camera: Camera = None):
        """Create a renderer.

        Args:
            settings: Render configuration (uses defaults if None)
            camera: Camera to render from (uses a default camera if None)
        """
        self.settings = settings if settings else RenderSettings()
        self.camera = camera if camera else Camera()
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._cancel = threading.Event()
        # Image size is fixed for the lifetime of the renderer
        self._width = self.settings.width
        self._height = self.settings.height
        self.configure()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def configure(self) -> None:
        """Re-derive camera geometry from the current camera parameters."""
        self.camera.configure(self._width, self._height)

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def cancel(self) -> None:
        """Ask a running render to stop after the rows in flight."""
        self._cancel.set()

    def render(self, scene: Hittable, sink: Optional[ImageSink] = None) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            scene: The scene to render (any Hittable)
            sink: Optional receiver of finished pixels, each written once

        Returns:
            8-bit image as numpy array of shape (height, width, 3)

        Raises:
            RenderCancelled: if cancel() was called during the render
        """
        assert self.camera.is_configured, "renderer is not configured"
        self._cancel.clear()

        width = self._width
        height = self._height
        image = np.zeros((height, width, 3), dtype=np.uint8)

        # One independent stream per row keeps seeded renders reproducible
        # regardless of how rows are scheduled across threads.
        row_seeds = np.random.SeedSequence(self.settings.seed).spawn(height)

        def render_row(y: int) -> int:
            if self._cancel.is_set():
                return -1
            image[y] = self.render_row(scene, y, np.random.default_rng(row_seeds[y]))
            return y

        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                futures = [executor.submit(render_row, y) for y in range(height)]
                try:
                    for finished, future in enumerate(as_completed(futures), start=1):
                        self._row_done(future.result(), finished, image, sink)
                except BaseException:
                    for pending in futures:
                        pending.cancel()
                    raise
        else:
            for y in range(height):
                self._row_done(render_row(y), y + 1, image, sink)

        return image

    def _row_done(self, y: int, finished: int, image: np.ndarray, sink: Optional[ImageSink]) -> None:
        if y < 0 or self._cancel.is_set():
            raise RenderCancelled(f"render cancelled after {finished - 1} of {self.height} rows")

        if sink is not None:
            for x in range(self._width):
                sink.set_pixel(x, y, tuple(int(c) for c in image[y, x]))

        if self._progress_callback:
            self._progress_callback(finished / self._height)

    def render_row(self, scene: Hittable, y: int, rng: np.random.Generator) -> np.ndarray:
        """Render one image row and return it as a (width, 3) uint8 array."""
        samples = self.settings.samples_per_pixel
        max_depth = self.settings.max_depth
        row = np.zeros((self._width, 3), dtype=np.uint8)

        for x in range(self._width):
            pixel_color = BLACK
            for _ in range(samples):
                ray = self.camera.get_ray(x, y, rng)
                pixel_color = pixel_color + self.ray_color(ray, scene, max_depth, rng)
            row[x] = finalize_pixel(pixel_color, samples)

        return row

    def ray_color(self, ray: Ray, scene: Hittable, depth: int, rng: np.random.Generator) -> Color:
        """Compute the color for a ray by recursive scattering.

        Args:
            ray: The ray to trace
            scene: The scene to trace against
            depth: Remaining bounces, 0 contributes no light
            rng: Random generator for material sampling

        Returns:
            The linear radiance carried back along this ray
        """
        if depth <= 0:
            return BLACK

        hit_record = scene.hit(ray, Interval(self.settings.t_min, math.inf))

        if hit_record is None:
            return self.background(ray)

        if hit_record.material is None:
            return BLACK

        scatter_result = hit_record.material.scatter(ray, hit_record, rng)
        if scatter_result is None:
            return BLACK

        return scatter_result.attenuation * self.ray_color(
            scatter_result.scattered_ray, scene, depth - 1, rng
        )

    def background(self, ray: Ray) -> Color:
        """Vertical gradient from the horizon color to the zenith color."""
        unit_direction = ray.direction.normalize()
        a = 0.5 * (unit_direction.y + 1.0)
        return self.settings.horizon * (1.0 - a) + self.settings.zenith * a
