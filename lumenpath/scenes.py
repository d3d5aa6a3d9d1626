"""
Built-in scenes.

Each builder returns the world together with a camera framed for it:
- random: the large "final render" scene with a grid of small spheres
- spheres: a diffuse sphere resting on a large ground sphere
- hollow_glass: ground, diffuse, hollow glass bubble and metal spheres
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, Tuple
import numpy as np

from .vec3 import Vec3, Point3, Color
from .camera import Camera
from .shapes import Sphere, HittableList
from .materials import Lambertian, Metal, Dielectric
from .sampling import make_rng, random_double

logger = logging.getLogger(__name__)

# Material choice thresholds for the grid spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95

FEATURE_CLEARANCE = 0.9

SceneBuilder = Callable[[float, Optional[np.random.Generator]], Tuple[HittableList, Camera]]


def random_scene(
    aspect_ratio: float = 3.0 / 2.0,
    rng: Optional[np.random.Generator] = None
) -> Tuple[HittableList, Camera]:
    """Create the final scene: three feature spheres among many small ones.

    Args:
        aspect_ratio: Width / height of the image the camera renders
        rng: Random stream driving sphere placement and materials

    Returns:
        Tuple of (world, camera)
    """
    rng = rng if rng is not None else make_rng()
    world = HittableList()

    ground_material = Lambertian(Color(0.5, 0.5, 0.5))
    world.add(Sphere(Point3(0, -1000, 0), 1000, ground_material))

    feature_centers = [Point3(0, 0.2, 0), Point3(-4, 0.2, 0), Point3(4, 0.2, 0)]

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = random_double(rng)
            center = Point3(a + 0.9 * random_double(rng), 0.2, b + 0.9 * random_double(rng))

            if any((center - c).length() <= FEATURE_CLEARANCE for c in feature_centers):
                continue

            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = Color.random(rng) * Color.random(rng)
                sphere_material = Lambertian(albedo)
            elif choose_mat < METAL_PROBABILITY:
                albedo = Color.random(rng, 0.5, 1)
                fuzz = random_double(rng, 0, 0.5)
                sphere_material = Metal(albedo, fuzz)
            else:
                sphere_material = Dielectric(1.5)

            world.add(Sphere(center, 0.2, sphere_material))

    world.add(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))
    world.add(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))

    logger.debug("Random scene built with %d spheres", len(world))

    camera = Camera(
        look_from=Point3(13, 2, 3),
        look_at=Point3(0, 0, 0),
        vup=Vec3(0, 1, 0),
        vfov=20,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0
    )
    return world, camera


def two_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
    rng: Optional[np.random.Generator] = None
) -> Tuple[HittableList, Camera]:
    """Create a diffuse sphere resting on a large ground sphere."""
    world = HittableList()
    world.add(Sphere(Point3(0, 0, -1), 0.5, Lambertian(Color(0.1, 0.2, 0.5))))
    world.add(Sphere(Point3(0, -100.5, -1), 100, Lambertian(Color(0.8, 0.8, 0.0))))

    return world, Camera(aspect_ratio=aspect_ratio)


def hollow_glass_scene(
    aspect_ratio: float = 16.0 / 9.0,
    rng: Optional[np.random.Generator] = None
) -> Tuple[HittableList, Camera]:
    """Create the three-sphere scene with a hollow glass bubble on the left.

    The bubble is a glass sphere with a second, negative-radius glass
    sphere inside it sharing the center, whose normals point inward.
    """
    world = HittableList()

    material_ground = Lambertian(Color(0.8, 0.8, 0.0))
    material_center = Lambertian(Color(0.1, 0.2, 0.5))
    material_left = Dielectric(1.5)
    material_right = Metal(Color(0.8, 0.6, 0.2), 0.0)

    world.add(Sphere(Point3(0.0, -100.5, -1.0), 100.0, material_ground))
    world.add(Sphere(Point3(0.0, 0.0, -1.0), 0.5, material_center))
    world.add(Sphere(Point3(-1.0, 0.0, -1.0), 0.5, material_left))
    world.add(Sphere(Point3(-1.0, 0.0, -1.0), -0.4, material_left))
    world.add(Sphere(Point3(1.0, 0.0, -1.0), 0.5, material_right))

    return world, Camera(aspect_ratio=aspect_ratio)


SCENES: Dict[str, SceneBuilder] = {
    'random': random_scene,
    'spheres': two_spheres_scene,
    'hollow_glass': hollow_glass_scene,
}


def build_scene(
    name: str,
    aspect_ratio: float,
    rng: Optional[np.random.Generator] = None
) -> Tuple[HittableList, Camera]:
    """Build a registered scene by name.

    Raises:
        KeyError: If no scene is registered under name
    """
    if name not in SCENES:
        raise KeyError(f"Unknown scene: {name} (choose from {', '.join(sorted(SCENES))})")
    return SCENES[name](aspect_ratio, rng)
