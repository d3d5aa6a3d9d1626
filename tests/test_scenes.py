"""Tests for built-in scenes, including end-to-end renders."""

import math
import pytest
import numpy as np

from lumenpath.vec3 import Vec3, Point3, Color
from lumenpath.ray import Ray
from lumenpath.shapes import Sphere
from lumenpath.materials import Lambertian, Metal, Dielectric
from lumenpath.renderer import Renderer, RenderSettings
from lumenpath.image import encode_ppm
from lumenpath.sampling import make_rng
from lumenpath.scenes import (
    SCENES, build_scene, random_scene, two_spheres_scene, hollow_glass_scene
)


class TestRandomScene:
    """Test the random final scene."""

    def test_feature_spheres(self):
        world, _ = random_scene(rng=make_rng(0))
        spheres = list(world)

        assert spheres[0].radius == 1000
        glass, diffuse, metal = spheres[-3:]
        assert isinstance(glass.material, Dielectric)
        assert isinstance(diffuse.material, Lambertian)
        assert isinstance(metal.material, Metal)
        assert metal.material.fuzz == 0.0

    def test_small_spheres_clear_feature_spheres(self):
        world, _ = random_scene(rng=make_rng(1))
        small = [s for s in world if s.radius == 0.2]

        assert 0 < len(small) <= 22 * 22
        for s in small:
            for c in (Point3(0, 0.2, 0), Point3(-4, 0.2, 0), Point3(4, 0.2, 0)):
                assert (s.center - c).length() > 0.9

    def test_material_mix(self):
        world, _ = random_scene(rng=make_rng(2))
        small = [s for s in world if s.radius == 0.2]
        kinds = [type(s.material) for s in small]

        diffuse = kinds.count(Lambertian) / len(kinds)
        metal = kinds.count(Metal) / len(kinds)
        glass = kinds.count(Dielectric) / len(kinds)

        assert 0.7 < diffuse < 0.9
        assert 0.08 < metal < 0.22
        assert glass < 0.1

    def test_material_parameters_in_range(self):
        world, _ = random_scene(rng=make_rng(3))
        for s in world:
            if s.radius != 0.2:
                continue
            if isinstance(s.material, Metal):
                assert all(0.5 <= c < 1 for c in s.material.albedo)
                assert 0 <= s.material.fuzz < 0.5
            elif isinstance(s.material, Lambertian):
                assert all(0 <= c < 1 for c in s.material.albedo)
            else:
                assert s.material.refractive_index == 1.5

    def test_same_seed_same_scene(self):
        first, _ = random_scene(rng=make_rng(5))
        second, _ = random_scene(rng=make_rng(5))
        assert [s.center for s in first] == [s.center for s in second]

    def test_camera(self):
        _, camera = random_scene(aspect_ratio=1.5, rng=make_rng(0))
        assert camera.origin == Point3(13, 2, 3)
        assert abs(camera.lens_radius - 0.05) < 1e-12


class TestRegistry:
    """Test scene lookup."""

    def test_registered_names(self):
        assert set(SCENES) == {'random', 'spheres', 'hollow_glass'}

    def test_build_scene(self):
        world, camera = build_scene('spheres', 16 / 9)
        assert len(world) == 2

    def test_unknown_scene(self):
        with pytest.raises(KeyError):
            build_scene('teapot', 1.0)


class TestTwoSpheresRender:
    """Diffuse sphere on a ground sphere, rendered at reduced size."""

    def render(self):
        settings = RenderSettings.from_aspect_ratio(
            32, 16.0 / 9.0, samples_per_pixel=4, max_depth=10, num_threads=1, seed=2024
        )
        world, camera = two_spheres_scene(settings.aspect_ratio)
        return settings, Renderer(settings).render(world, camera)

    def test_scene_contents(self):
        world, camera = two_spheres_scene()
        small, ground = list(world)
        assert small.center == Point3(0, 0, -1) and small.radius == 0.5
        assert small.material.albedo == Color(0.1, 0.2, 0.5)
        assert ground.center == Point3(0, -100.5, -1) and ground.radius == 100
        assert ground.material.albedo == Color(0.8, 0.8, 0.0)
        assert camera.origin == Point3(0, 0, 0)

    def test_ppm_output(self):
        settings, image = self.render()
        text = encode_ppm(image)
        lines = text.splitlines()

        assert settings.height == 18
        assert text.startswith("P3\n32 18\n255\n")
        pixels = [tuple(int(v) for v in line.split()) for line in lines[3:]]
        assert len(pixels) == 32 * 18
        assert all(0 <= v <= 255 for p in pixels for v in p)

    def test_top_row_is_sky(self):
        _, image = self.render()
        top = image[0]
        # Sky gradient: bright, blue channel saturated
        assert np.all(top[:, 2] > 0.95)
        assert np.all(top[:, 0] > 0.5)

    def test_center_shows_blue_sphere(self):
        _, image = self.render()
        # Block of pixels well inside the sphere's silhouette
        center = image[8:11, 14:19].reshape(-1, 3).mean(axis=0)
        assert center[2] > center[0]
        assert center.sum() < image[0, 16].sum()

    def test_bottom_shows_yellow_ground(self):
        _, image = self.render()
        bottom = image[-1, 1]
        assert bottom[0] > bottom[2]
        assert bottom[1] > bottom[2]

    def test_reproducible(self):
        _, first = self.render()
        _, second = self.render()
        assert encode_ppm(first) == encode_ppm(second)


class TestHollowGlass:
    """The glass bubble is a shell with two refractive boundaries on each side."""

    def test_scene_contents(self):
        world, _ = hollow_glass_scene()
        shells = [s for s in world if s.center == Point3(-1, 0, -1)]
        assert sorted(s.radius for s in shells) == [-0.4, 0.5]
        assert shells[0].material is shells[1].material
        assert isinstance(shells[0].material, Dielectric)

    def test_ray_crosses_four_boundaries(self):
        world, _ = hollow_glass_scene()
        bubble = Point3(-1, 0, -1)
        origin = Point3(0, 0, 0)
        direction = (bubble - origin).normalize()
        distance = (bubble - origin).length()

        # Walk the center line through the bubble, hit by hit
        faces = []
        ray = Ray(origin, direction)
        for _ in range(4):
            hit = world.hit(ray, 0.001, float('inf'))
            assert hit is not None
            assert ray.direction.dot(hit.normal) <= 0
            faces.append((round((hit.point - origin).length(), 6), hit.front_face))
            ray = Ray(hit.point, direction)

        assert faces == [
            (round(distance - 0.5, 6), True),   # into the glass
            (round(distance - 0.4, 6), False),  # out of the glass into the bubble
            (round(distance + 0.4, 6), True),   # back into the glass
            (round(distance + 0.5, 6), False),  # out into the air
        ]

    def test_center_ray_passes_straight_through(self):
        """At normal incidence every refraction keeps the direction."""
        world, _ = hollow_glass_scene()
        bubble = Point3(-1, 0, -1)
        direction = bubble.normalize()
        rng = make_rng(11)

        ray = Ray(Point3(0, 0, 0), direction)
        for _ in range(4):
            hit = world.hit(ray, 0.001, float('inf'))
            result = hit.material.scatter(ray, hit, rng)
            ray = result.scattered_ray
            if ray.direction.normalize().dot(direction) < 0.999:
                break  # occasional Schlick reflection
        else:
            # Left the bubble travelling in the original direction
            assert world.hit(ray, 0.001, float('inf')) is None

    def test_hollow_differs_from_solid(self):
        settings = RenderSettings(width=24, height=12, samples_per_pixel=4, max_depth=10,
                                  num_threads=1, seed=77)
        world, camera = hollow_glass_scene(settings.aspect_ratio)
        hollow = Renderer(settings).render(world, camera)

        inner = [s for s in world if s.radius < 0][0]
        world.objects.remove(inner)
        solid = Renderer(settings).render(world, camera)

        assert hollow.shape == solid.shape
        assert not np.array_equal(hollow, solid)
