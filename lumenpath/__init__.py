"""
lumenpath - A Monte Carlo path tracer

Renders scenes of spheres with diffuse, metal and glass materials:
- Recursive path tracing with a bounded bounce depth
- Thin-lens camera with depth of field
- Sky gradient background
- Reproducible renders from an explicit random seed
- PPM and Pillow image output
"""

__version__ = "0.1.0"

from .vec3 import Vec3, Point3, Color, unit_vector
from .ray import Ray
from .sampling import make_rng, spawn_streams, random_double
from .shapes import Sphere, HittableList, HitRecord, Hittable
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric
from .camera import Camera
from .renderer import Renderer, RenderSettings, RenderCancelled, ray_color, sky_color
from .image import write_color, to_ldr, encode_ppm, save_ppm, save_image
from .scenes import SCENES, build_scene, random_scene, two_spheres_scene, hollow_glass_scene
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
