"""
LumenTrace - A Python Ray Tracing Renderer

A forward recursive ray tracer with:
- Spheres collected in a scene that owns their materials
- Matte, metal and glass materials
- Look-at camera with depth of field
- Antialiasing by jittered supersampling
- Multi-threaded, seed-reproducible rendering
"""

__version__ = "0.1.0"
__author__ = "LumenTrace Team"

from .vec3 import Vec3, Point3, Color, BLACK, WHITE, LIGHT_BLUE
from .ray import Ray
from .interval import Interval
from .shapes import Hittable, HitRecord, Sphere, Scene
from .materials import Material, ScatterResult, Matte, Metal, Glass
from .camera import Camera
from .image import ImageSink, ArraySink, save_image
from .renderer import Renderer, RenderSettings, RenderCancelled, finalize_pixel
