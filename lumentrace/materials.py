"""
Materials system.

Implements:
- Matte (Lambertian diffuse)
- Metal (specular reflection with fuzz)
- Glass (dielectric refraction with Schlick reflectance)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .vec3 import Vec3, Color, WHITE
from .ray import Ray

if TYPE_CHECKING:
    from .shapes import HitRecord


@dataclass
class ScatterResult:
    """Result of a material scatter operation."""
    scattered_ray: Ray
    attenuation: Color


class Material(ABC):
    """Abstract base class for materials."""

    @abstractmethod
    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        """Compute the scattered ray and attenuation.

        Args:
            ray_in: The incoming ray
            hit: The intersection being shaded
            rng: Random generator owned by the calling worker

        Returns:
            ScatterResult if ray scatters, None if absorbed
        """
        pass


class Matte(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    def __init__(self, albedo: Color):
        """Create a matte material.

        Args:
            albedo: The base color (RGB, each component 0-1)
        """
        self.albedo = albedo

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        scatter_direction = hit.normal + Vec3.random_unit_vector(rng)

        # Catch degenerate scatter direction
        if scatter_direction.near_zero():
            scatter_direction = hit.normal

        return ScatterResult(
            scattered_ray=Ray(hit.point, scatter_direction),
            attenuation=self.albedo
        )

    def __repr__(self) -> str:
        return f"Matte(albedo={self.albedo})"


class Metal(Material):
    """Metallic material with specular reflection."""

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        """Create a metal material.

        Args:
            albedo: The reflection color
            fuzz: Radius of the reflection perturbation (0 = mirror, 1 = very rough)
        """
        self.albedo = albedo
        self.fuzz = max(0.0, min(fuzz, 1.0))

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        reflected = ray_in.direction.reflect(hit.normal).normalize()
        if self.fuzz > 0:
            reflected = reflected + Vec3.random_unit_vector(rng) * self.fuzz

        # Absorb rays fuzzed below the surface
        if reflected.dot(hit.normal) <= 0:
            return None

        return ScatterResult(
            scattered_ray=Ray(hit.point, reflected),
            attenuation=self.albedo
        )

    def __repr__(self) -> str:
        return f"Metal(albedo={self.albedo}, fuzz={self.fuzz})"


class Glass(Material):
    """Dielectric (glass-like) material with refraction."""

    def __init__(self, ior: float = 1.5, tint: Color = WHITE):
        """Create a glass material.

        Args:
            ior: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
            tint: Attenuation color, white means no absorption
        """
        if ior <= 0:
            raise ValueError(f"index of refraction must be positive, got {ior}")
        self.ior = ior
        self.tint = tint

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        refraction_ratio = 1.0 / self.ior if hit.front_face else self.ior

        unit_direction = ray_in.direction.normalize()
        cos_theta = min(-unit_direction.dot(hit.normal), 1.0)
        sin_theta = math.sqrt(1.0 - cos_theta * cos_theta)

        cannot_refract = refraction_ratio * sin_theta > 1.0

        if cannot_refract or self.reflectance(cos_theta, refraction_ratio) > rng.random():
            direction = unit_direction.reflect(hit.normal)
        else:
            direction = unit_direction.refract(hit.normal, refraction_ratio)

        return ScatterResult(
            scattered_ray=Ray(hit.point, direction),
            attenuation=self.tint
        )

    @staticmethod
    def reflectance(cosine: float, ref_idx: float) -> float:
        """Schlick's approximation for reflectance."""
        r0 = (1 - ref_idx) / (1 + ref_idx)
        r0 = r0 * r0
        return r0 + (1 - r0) * pow(1 - cosine, 5)

    def __repr__(self) -> str:
        return f"Glass(ior={self.ior})"
