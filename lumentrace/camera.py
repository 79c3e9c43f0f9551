"""
Camera module for generating primary rays.

Supports:
- Perspective projection with a vertical field of view
- Arbitrary positioning via look-at
- Depth of field (defocus disk)
- Box-filter antialiasing jitter

Parameters are plain mutable attributes. The derived viewport geometry is
cached by `configure()` and is NOT recomputed when a parameter changes;
call `configure()` again after mutating the camera.
"""

from __future__ import annotations
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray


class Camera:
    """A look-at perspective camera with an optional thin-lens defocus disk."""

    def __init__(
        self,
        look_from: Point3 = Point3(0, 0, 1),
        look_at: Point3 = Point3(0, 0, 0),
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = 90.0,
        defocus_angle: float = 0.0,
        focus_dist: float = 10.0
    ):
        """Create a camera.

        Args:
            look_from: Camera position in world space
            look_at: Point the camera is looking at
            vup: World up vector (usually (0, 1, 0))
            vfov: Vertical field of view in degrees
            defocus_angle: Cone angle in degrees of rays through each pixel (0 = pinhole)
            focus_dist: Distance from look_from to the plane of perfect focus
        """
        self.look_from = look_from
        self.look_at = look_at
        self.vup = vup
        self.vfov = vfov
        self.defocus_angle = defocus_angle
        self.focus_dist = focus_dist

        self.is_configured = False
        self.image_width = 0
        self.image_height = 0

    def configure(self, image_width: int, image_height: int) -> None:
        """Derive the viewport geometry for an image of the given size.

        Raises:
            ValueError: if the parameters describe a degenerate camera
        """
        self._validate(image_width, image_height)

        self.image_width = image_width
        self.image_height = image_height
        self.center = self.look_from

        # Determine viewport dimensions
        h = math.tan(math.radians(self.vfov) / 2)
        viewport_height = 2 * h * self.focus_dist
        viewport_width = viewport_height * image_width / image_height

        # Orthonormal camera basis
        self.w = (self.look_from - self.look_at).normalize()  # Points backward from camera
        self.u = self.vup.cross(self.w).normalize()           # Points right
        self.v = self.w.cross(self.u)                         # Points up

        # Vectors across the viewport edges, y grows downward in the image
        viewport_u = self.u * viewport_width
        viewport_v = -self.v * viewport_height

        self.pixel_delta_x = viewport_u / image_width
        self.pixel_delta_y = viewport_v / image_height

        viewport_upper_left = (
            self.center
            - self.w * self.focus_dist
            - viewport_u / 2
            - viewport_v / 2
        )
        self.pixel00 = viewport_upper_left + (self.pixel_delta_x + self.pixel_delta_y) * 0.5

        self.defocus_radius = self.focus_dist * math.tan(math.radians(self.defocus_angle / 2))
        self.defocus_disk_u = self.u * self.defocus_radius
        self.defocus_disk_v = self.v * self.defocus_radius

        self.is_configured = True

    def _validate(self, image_width: int, image_height: int) -> None:
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"image size must be positive, got {image_width}x{image_height}")
        if not 0 < self.vfov < 180:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.focus_dist <= 0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")
        if self.defocus_angle < 0:
            raise ValueError(f"defocus_angle must be non-negative, got {self.defocus_angle}")

        view = self.look_from - self.look_at
        if view.near_zero():
            raise ValueError("look_from and look_at must differ")
        if self.vup.cross(view).near_zero():
            raise ValueError("vup must not be parallel to the viewing direction")

    def geometry(self) -> dict:
        """Return the derived geometry as a dict of numpy arrays."""
        assert self.is_configured, "camera is not configured"
        return {
            'pixel00': self.pixel00.to_array(),
            'pixel_delta_x': self.pixel_delta_x.to_array(),
            'pixel_delta_y': self.pixel_delta_y.to_array(),
            'u': self.u.to_array(),
            'v': self.v.to_array(),
            'w': self.w.to_array(),
            'defocus_disk_u': self.defocus_disk_u.to_array(),
            'defocus_disk_v': self.defocus_disk_v.to_array(),
        }

    def pixel_center(self, x: int, y: int) -> Point3:
        """Center of pixel (x, y) on the focus plane; (0, 0) is the upper left."""
        return self.pixel00 + self.pixel_delta_x * x + self.pixel_delta_y * y

    def get_ray(self, x: int, y: int, rng: np.random.Generator) -> Ray:
        """Generate a jittered ray through pixel (x, y).

        The sample point is uniformly distributed over the pixel square. The
        origin is the eye, or a point on the defocus disk when depth of field
        is enabled.
        """
        px, py = rng.random(2) - 0.5
        pixel_sample = self.pixel_center(x, y) + self.pixel_delta_x * px + self.pixel_delta_y * py

        origin = self.center if self.defocus_angle <= 0 else self._defocus_disk_sample(rng)
        return Ray(origin, pixel_sample - origin)

    def _defocus_disk_sample(self, rng: np.random.Generator) -> Point3:
        """Return a random point on the camera defocus disk."""
        p = Vec3.random_in_unit_disk(rng)
        return self.center + self.defocus_disk_u * p.x + self.defocus_disk_v * p.y

    def __repr__(self) -> str:
        return f"Camera(look_from={self.look_from}, look_at={self.look_at}, vfov={self.vfov})"
