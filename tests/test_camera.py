"""Tests for Camera class."""

import pytest
import math
from lumenpath.vec3 import Vec3, Point3
from lumenpath.camera import Camera
from lumenpath.sampling import make_rng


class TestCameraCreation:
    """Test Camera construction."""

    def test_default_camera(self):
        cam = Camera()
        assert cam.origin == Point3(0, 0, 0)
        assert cam.lens_radius == 0.0

    def test_default_viewport(self):
        # vfov 90 at focus distance 1 gives a viewport 2 units high
        cam = Camera(aspect_ratio=16 / 9)
        assert abs(cam.vertical.y - 2.0) < 1e-9
        assert abs(cam.horizontal.x - 32 / 9) < 1e-9
        assert cam.lower_left_corner == Point3(-16 / 9, -1, -1)

    def test_camera_basis_vectors(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -1),
            vup=Vec3(0, 1, 0),
            vfov=90,
            aspect_ratio=1.0
        )
        # w should point backward (opposite of look direction)
        assert cam.w.z > 0
        # u should point right
        assert abs(cam.u.x - 1.0) < 1e-6
        # v should point up
        assert abs(cam.v.y - 1.0) < 1e-6

    def test_basis_is_orthonormal(self):
        cam = Camera(
            look_from=Point3(13, 2, 3),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 1, 0),
            vfov=20,
            aspect_ratio=1.5
        )
        for axis in (cam.u, cam.v, cam.w):
            assert abs(axis.length() - 1.0) < 1e-9
        assert abs(cam.u.dot(cam.v)) < 1e-9
        assert abs(cam.u.dot(cam.w)) < 1e-9
        assert abs(cam.v.dot(cam.w)) < 1e-9

    def test_viewport_scales_with_focus_distance(self):
        near = Camera(vfov=60, aspect_ratio=1.0, focus_dist=1.0)
        far = Camera(vfov=60, aspect_ratio=1.0, focus_dist=10.0)
        assert abs(far.vertical.length() - 10 * near.vertical.length()) < 1e-9
        assert abs(near.vertical.length() - 2 * math.tan(math.radians(30))) < 1e-9

    def test_lens_radius_is_half_aperture(self):
        assert Camera(aperture=0.1, focus_dist=10).lens_radius == 0.05


class TestCameraValidation:
    """Invalid camera parameters fail at construction."""

    @pytest.mark.parametrize('kwargs', [
        {'vfov': 0},
        {'vfov': 180},
        {'aspect_ratio': 0},
        {'aperture': -0.1},
        {'focus_dist': 0},
        {'look_from': Point3(1, 1, 1), 'look_at': Point3(1, 1, 1)},
        {'look_from': Point3(0, 5, 0), 'look_at': Point3(0, 0, 0), 'vup': Vec3(0, 1, 0)},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            Camera(**kwargs)


class TestCameraRays:
    """Test Camera.get_ray() method."""

    def test_center_ray(self):
        cam = Camera(aspect_ratio=1.0)
        ray = cam.get_ray(0.5, 0.5, make_rng(0))

        # Center ray should go straight forward
        assert abs(ray.direction.x) < 1e-9
        assert abs(ray.direction.y) < 1e-9
        assert ray.direction.z < 0  # Forward is -Z

    def test_corner_rays(self):
        cam = Camera(aspect_ratio=1.0)
        rng = make_rng(0)

        bl = cam.get_ray(0, 0, rng)
        assert bl.direction.x < 0
        assert bl.direction.y < 0

        tr = cam.get_ray(1, 1, rng)
        assert tr.direction.x > 0
        assert tr.direction.y > 0

    def test_ray_aims_at_viewport_point(self):
        cam = Camera(aspect_ratio=2.0)
        ray = cam.get_ray(0.25, 0.75, make_rng(0))
        target = cam.lower_left_corner + cam.horizontal * 0.25 + cam.vertical * 0.75
        assert ray.at(1.0) == target

    def test_ray_origin_without_dof(self):
        cam = Camera(
            look_from=Point3(1, 2, 3),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 1, 0),
            vfov=90,
            aspect_ratio=1.0,
            aperture=0.0
        )
        ray = cam.get_ray(0.5, 0.5, make_rng(0))
        assert ray.origin == cam.origin


class TestDepthOfField:
    """Test Camera depth of field."""

    def test_dof_varies_origin(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -10),
            vup=Vec3(0, 1, 0),
            vfov=90,
            aspect_ratio=1.0,
            aperture=2.0,  # Large aperture
            focus_dist=10.0
        )
        rng = make_rng(1)

        origins = [cam.get_ray(0.5, 0.5, rng).origin for _ in range(100)]

        xs = [o.x for o in origins]
        assert max(xs) - min(xs) > 0.1
        # Lens samples stay on the lens disk
        for o in origins:
            assert (o - cam.origin).length() < cam.lens_radius
            assert abs(o.z) < 1e-12

    def test_rays_converge_on_focus_plane(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -1),
            vfov=40,
            aspect_ratio=1.0,
            aperture=1.0,
            focus_dist=5.0
        )
        rng = make_rng(2)

        target = cam.lower_left_corner + cam.horizontal * 0.3 + cam.vertical * 0.6
        for _ in range(20):
            ray = cam.get_ray(0.3, 0.6, rng)
            assert ray.at(1.0) == target

    def test_no_dof_fixed_origin(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -10),
            vfov=90,
            aspect_ratio=1.0,
            aperture=0.0,  # Pinhole
            focus_dist=10.0
        )
        rng = make_rng(3)

        for _ in range(10):
            assert cam.get_ray(0.5, 0.5, rng).origin == cam.origin


class TestFieldOfView:
    """Test Camera field of view."""

    def test_narrow_fov(self):
        cam_narrow = Camera(vfov=20, aspect_ratio=1.0)
        cam_wide = Camera(vfov=90, aspect_ratio=1.0)
        rng = make_rng(0)

        ray_narrow = cam_narrow.get_ray(1, 1, rng)
        ray_wide = cam_wide.get_ray(1, 1, rng)

        # Narrow should be more aligned with center
        center = Vec3(0, 0, -1)
        assert ray_narrow.direction.normalize().dot(center) > ray_wide.direction.normalize().dot(center)


class TestCameraPositioning:
    """Test various camera positions."""

    def test_looking_down(self):
        cam = Camera(
            look_from=Point3(0, 10, 0),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 0, -1),
            vfov=90,
            aspect_ratio=1.0
        )
        ray = cam.get_ray(0.5, 0.5, make_rng(0))
        assert ray.direction.y < 0

    def test_angled_camera(self):
        cam = Camera(
            look_from=Point3(5, 5, 5),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 1, 0),
            vfov=60,
            aspect_ratio=1.0
        )
        ray = cam.get_ray(0.5, 0.5, make_rng(0))
        target = Point3(0, 0, 0) - cam.origin
        assert ray.direction.normalize().dot(target.normalize()) > 0.999
