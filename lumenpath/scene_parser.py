"""
Scene description parser.

Supports YAML (or JSON) scene files with:
- Camera configuration
- Render settings
- Materials library
- Objects (spheres referencing materials)

Example scene file:
```yaml
camera:
  look_from: [13, 2, 3]
  look_at: [0, 0, 0]
  vfov: 20
  aperture: 0.1
  focus_dist: 10

render:
  width: 400
  aspect_ratio: 1.5
  samples: 100
  max_depth: 50
  seed: 7

materials:
  ground:
    type: lambertian
    albedo: [0.5, 0.5, 0.5]

  glass:
    type: dielectric
    ior: 1.5

objects:
  - type: sphere
    center: [0, -1000, 0]
    radius: 1000
    material: ground

  - type: sphere
    center: [0, 1, 0]
    radius: 1
    material: glass
```
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .vec3 import Vec3, Point3, Color
from .camera import Camera
from .shapes import Sphere, HittableList
from .materials import Material, Lambertian, Metal, Dielectric
from .renderer import RenderSettings

logger = logging.getLogger(__name__)


class SceneParseError(Exception):
    """Error during scene parsing."""
    pass


class SceneParser:
    """Parser for scene description files."""

    def __init__(self):
        self.materials: Dict[str, Material] = {}
        self.objects: HittableList = HittableList()

    def parse_file(
        self,
        filepath: Union[str, Path],
        render_overrides: Optional[Dict[str, Any]] = None
    ) -> Tuple[HittableList, Camera, RenderSettings]:
        """Parse a scene file.

        Args:
            filepath: Path to the scene file (YAML or JSON)
            render_overrides: Values replacing keys of the ``render`` section

        Returns:
            Tuple of (world, camera, settings)
        """
        path = Path(filepath)
        if not path.exists():
            raise SceneParseError(f"Scene file not found: {filepath}")

        content = path.read_text()

        try:
            if path.suffix == '.json':
                data = json.loads(content)
            else:
                # YAML is a superset of JSON
                data = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise SceneParseError(f"Cannot read scene file {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise SceneParseError(f"Scene file must contain a mapping: {filepath}")

        logger.debug("Parsing scene file %s", path)
        return self.parse_dict(data, render_overrides)

    def parse_dict(
        self,
        data: Dict[str, Any],
        render_overrides: Optional[Dict[str, Any]] = None
    ) -> Tuple[HittableList, Camera, RenderSettings]:
        """Parse a scene from a dictionary.

        Args:
            data: Scene description dictionary
            render_overrides: Values replacing keys of the ``render`` section

        Returns:
            Tuple of (world, camera, settings)
        """
        # Parse materials first (objects reference them)
        if data.get('materials') is not None:
            self._parse_materials(data['materials'])

        if data.get('objects') is not None:
            self._parse_objects(data['objects'])

        render_data = dict(self._section(data, 'render'))
        if render_overrides:
            self._apply_render_overrides(render_data, render_overrides)
        settings = self._parse_settings(render_data)
        camera = self._parse_camera(self._section(data, 'camera'), settings.aspect_ratio)

        logger.debug("Scene has %d objects and %d materials", len(self.objects), len(self.materials))
        return self.objects, camera, settings

    def _section(self, data: Dict[str, Any], key: str) -> Dict[str, Any]:
        """Return a top-level section, treating an empty one as a mapping."""
        section = data.get(key)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise SceneParseError(f"'{key}' must be a mapping, got: {section}")
        return section

    def _apply_render_overrides(self, render_data: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        """Replace render keys, keeping the file's framing when only the width changes."""
        if 'width' in overrides and 'height' not in overrides and 'height' in render_data:
            try:
                render_data['aspect_ratio'] = (
                    float(render_data.get('width', 400)) / float(render_data.pop('height'))
                )
            except (TypeError, ValueError, ZeroDivisionError) as e:
                raise SceneParseError(f"Invalid render settings: {e}") from e
        render_data.update(overrides)

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from a list or an x/y/z mapping."""
        try:
            if isinstance(data, (list, tuple)):
                if len(data) != 3:
                    raise SceneParseError(f"Vec3 must have 3 components, got {len(data)}")
                return Vec3(float(data[0]), float(data[1]), float(data[2]))
            elif isinstance(data, dict):
                return Vec3(
                    float(data.get('x', 0)),
                    float(data.get('y', 0)),
                    float(data.get('z', 0))
                )
        except (TypeError, ValueError) as e:
            raise SceneParseError(f"Cannot parse Vec3 from: {data}") from e
        raise SceneParseError(f"Cannot parse Vec3 from: {data}")

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from a list, an r/g/b mapping or a hex string."""
        if isinstance(data, dict):
            return self._parse_vec3({
                'x': data.get('r', 0), 'y': data.get('g', 0), 'z': data.get('b', 0)
            })
        elif isinstance(data, str):
            hex_color = data[1:] if data.startswith('#') else ''
            if len(hex_color) == 6:
                try:
                    r = int(hex_color[0:2], 16) / 255.0
                    g = int(hex_color[2:4], 16) / 255.0
                    b = int(hex_color[4:6], 16) / 255.0
                except ValueError as e:
                    raise SceneParseError(f"Cannot parse color from string: {data}") from e
                return Color(r, g, b)
            raise SceneParseError(f"Cannot parse color from string: {data}")
        return self._parse_vec3(data)

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        """Parse materials section."""
        if not isinstance(materials_data, dict):
            raise SceneParseError("'materials' must be a mapping of name to material")

        for name, mat_data in materials_data.items():
            if not isinstance(mat_data, dict):
                raise SceneParseError(f"Material '{name}' must be a mapping")
            try:
                self.materials[name] = self._parse_material(mat_data)
            except (TypeError, ValueError) as e:
                raise SceneParseError(f"Material '{name}': {e}") from e

    def _parse_material(self, mat_data: Dict[str, Any]) -> Material:
        mat_type = str(mat_data.get('type', 'lambertian')).lower()

        if mat_type == 'lambertian':
            albedo = self._parse_color(mat_data.get('albedo', [0.5, 0.5, 0.5]))
            return Lambertian(albedo)

        elif mat_type == 'metal':
            albedo = self._parse_color(mat_data.get('albedo', [0.8, 0.8, 0.8]))
            fuzz = float(mat_data.get('fuzz', 0.0))
            return Metal(albedo, fuzz)

        elif mat_type == 'dielectric':
            ior = float(mat_data.get('ior', 1.5))
            return Dielectric(ior)

        raise SceneParseError(f"Unknown material type: {mat_type}")

    def _get_material(self, mat_ref: Any) -> Material:
        """Get a material by name or inline definition."""
        if mat_ref is None:
            raise SceneParseError("Every object needs a material")
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneParseError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            # Inline material definition
            self._parse_materials({'_inline': mat_ref})
            return self.materials.pop('_inline')
        else:
            raise SceneParseError(f"Invalid material reference: {mat_ref}")

    def _parse_objects(self, objects_data: list) -> None:
        """Parse objects section."""
        if not isinstance(objects_data, list):
            raise SceneParseError("'objects' must be a list")

        for obj_data in objects_data:
            if not isinstance(obj_data, dict):
                raise SceneParseError(f"Object must be a mapping, got: {obj_data}")
            obj_type = str(obj_data.get('type', 'sphere')).lower()
            material = self._get_material(obj_data.get('material'))

            if obj_type == 'sphere':
                center = self._parse_vec3(obj_data.get('center', [0, 0, 0]))
                try:
                    radius = float(obj_data.get('radius', 1.0))
                    self.objects.add(Sphere(center, radius, material))
                except (TypeError, ValueError) as e:
                    raise SceneParseError(f"Invalid sphere: {e}") from e
            else:
                raise SceneParseError(f"Unknown object type: {obj_type}")

    def _parse_camera(self, camera_data: Dict[str, Any], aspect_ratio: float) -> Camera:
        """Parse camera section, framing it to the render's aspect ratio."""
        try:
            return Camera(
                look_from=self._parse_vec3(camera_data.get('look_from', [0, 0, 0])),
                look_at=self._parse_vec3(camera_data.get('look_at', [0, 0, -1])),
                vup=self._parse_vec3(camera_data.get('vup', [0, 1, 0])),
                vfov=float(camera_data.get('vfov', 90)),
                aspect_ratio=aspect_ratio,
                aperture=float(camera_data.get('aperture', 0.0)),
                focus_dist=float(camera_data.get('focus_dist', 1.0))
            )
        except (TypeError, ValueError) as e:
            raise SceneParseError(f"Invalid camera: {e}") from e

    def _parse_settings(self, settings_data: Dict[str, Any]) -> RenderSettings:
        """Parse render settings section."""
        try:
            width = int(settings_data.get('width', 400))
            options = dict(
                samples_per_pixel=int(settings_data.get('samples', 100)),
                max_depth=int(settings_data.get('max_depth', 50)),
                num_threads=int(settings_data.get('threads', 0)),
                seed=settings_data.get('seed')
            )
            if 'height' in settings_data:
                return RenderSettings(width=width, height=int(settings_data['height']), **options)
            aspect_ratio = float(settings_data.get('aspect_ratio', 16.0 / 9.0))
            return RenderSettings.from_aspect_ratio(width, aspect_ratio, **options)
        except (TypeError, ValueError) as e:
            raise SceneParseError(f"Invalid render settings: {e}") from e


def load_scene(
    filepath: Union[str, Path],
    render_overrides: Optional[Dict[str, Any]] = None
) -> Tuple[HittableList, Camera, RenderSettings]:
    """Load a scene from file.

    Args:
        filepath: Path to scene file
        render_overrides: Values replacing keys of the ``render`` section

    Returns:
        Tuple of (world, camera, settings)
    """
    parser = SceneParser()
    return parser.parse_file(filepath, render_overrides)


def parse_scene(data: Dict[str, Any]) -> Tuple[HittableList, Camera, RenderSettings]:
    """Parse a scene from a dictionary."""
    parser = SceneParser()
    return parser.parse_dict(data)
