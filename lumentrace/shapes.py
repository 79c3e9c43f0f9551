"""
Geometric shapes for the ray tracer.

Each shape implements the Hittable interface with a `hit` method that
returns the nearest intersection inside a search interval, or None.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional
import math

from .vec3 import Vec3, Point3
from .ray import Ray
from .interval import Interval
from .materials import Material


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: Unit surface normal (always points against the ray)
        t: The ray parameter at intersection
        front_face: True if ray hit from outside the object
        material: The material that shades this hit (owned by the scene)
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool = True
    material: Optional[Material] = None

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        """Set the normal to always point against the ray direction.

        Args:
            ray: The incoming ray
            outward_normal: The geometric normal pointing outward, unit length
        """
        assert outward_normal.is_unit(), "outward normal must have unit length"

        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


class Hittable(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    @abstractmethod
    def hit(self, ray: Ray, ray_t: Interval) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            ray_t: Acceptable range of the ray parameter t

        Returns:
            HitRecord for the nearest intersection, None otherwise
        """
        pass


class Sphere(Hittable):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere (negative flips the normals inward)
            material: Material for shading
        """
        if radius == 0:
            raise ValueError("sphere radius must be non-zero")
        self.center = center
        self.radius = radius
        self.material = material

    def hit(self, ray: Ray, ray_t: Interval) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0.
        With b = 2h the roots are (-h ± sqrt(h² - ac)) / a.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant <= 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if not ray_t.surrounds(root):
            root = (-half_b + sqrtd) / a
            if not ray_t.surrounds(root):
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius

        hit_record = HitRecord(point=point, normal=outward_normal, t=root, material=self.material)
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Scene(Hittable):
    """An ordered collection of hittables that owns their materials.

    Materials are registered with the scene and referenced by handle, so a
    material lives as long as the scene that shades with it. Objects whose
    material has not been registered are rejected.
    """

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = []
        self._materials: list[Material] = []
        for obj in objects or []:
            self.add(obj)

    def register_material(self, material: Material) -> int:
        """Take ownership of a material and return its handle.

        Registering the same material again returns the existing handle.
        """
        for handle, registered in enumerate(self._materials):
            if registered is material:
                return handle
        self._materials.append(material)
        return len(self._materials) - 1

    def material(self, handle: int) -> Material:
        """Look up a registered material by handle."""
        return self._materials[handle]

    @property
    def materials(self) -> tuple:
        return tuple(self._materials)

    def is_registered(self, material: Material) -> bool:
        return any(registered is material for registered in self._materials)

    def _materials_of(self, obj: Hittable) -> list[Material]:
        """Materials an object shades with: its own, or all of a child scene's."""
        if isinstance(obj, Scene):
            return list(obj.materials)
        material = getattr(obj, 'material', None)
        return [material] if isinstance(material, Material) else []

    def add_object(self, obj: Hittable) -> None:
        """Add an object whose material is already registered."""
        for material in self._materials_of(obj):
            if not self.is_registered(material):
                raise ValueError(f"material of {obj!r} is not registered with the scene")
        self.objects.append(obj)

    def add(self, obj: Hittable) -> None:
        """Register the object's materials (if any) and add the object."""
        for material in self._materials_of(obj):
            self.register_material(material)
        self.add_object(obj)

    def clear(self) -> None:
        """Remove all objects and materials."""
        self.objects.clear()
        self._materials.clear()

    def hit(self, ray: Ray, ray_t: Interval) -> Optional[HitRecord]:
        """Find the closest intersection among all objects.

        The upper bound shrinks to the closest hit so far, so later objects
        can only replace the current best with a nearer hit.
        """
        closest_hit: Optional[HitRecord] = None
        closest_t = ray_t.max

        for obj in self.objects:
            hit_record = obj.hit(ray, ray_t.with_max(closest_t))
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[Hittable]:
        return iter(self.objects)
