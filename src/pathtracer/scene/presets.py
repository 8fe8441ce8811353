"""Ready-made scenes with matching cameras.

Each factory rebuilds the global scene through a fresh SceneManager and
returns it together with a camera framed for the scene. The camera is not
set up; call setup_camera() on it (optionally after adjusting it with
dataclasses.replace) before rendering.

Scenes:
    default: Three spheres on a large yellow-green ground sphere: a matte
        red sphere in the middle, a fuzzy silver metal sphere on the left and
        a slightly fuzzy gold metal sphere on the right.
    glass: A glass sphere with an air bubble inside, a blue matte sphere and
        a polished gold sphere, seen from above with a shallow depth of field.
    single: A single grey matte sphere under the sky.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.presets import create_default_scene
    >>>
    >>> scene, camera = create_default_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
"""

import math
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager, read_scene_file

# =============================================================================
# Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0
GROUND_ALBEDO = (0.8, 0.8, 0.0)

SPHERE_RADIUS = 0.5
CENTER_POSITION = (0.0, 0.0, -1.0)
LEFT_POSITION = (-1.0, 0.0, -1.0)
RIGHT_POSITION = (1.0, 0.0, -1.0)

GLASS_IOR = 1.5

ScenePreset = Callable[[float], tuple[SceneManager, ThinLensCamera]]


def create_front_camera(aspect_ratio: float) -> ThinLensCamera:
    """Pinhole camera at the origin looking down -z with a 90 degree field of view."""
    return ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )


def create_default_scene(aspect_ratio: float) -> tuple[SceneManager, ThinLensCamera]:
    """Create the ground, diffuse and two metal spheres scene.

    Args:
        aspect_ratio: Width / height of the image the camera renders.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_diffuse_material(albedo=GROUND_ALBEDO)
    center = scene.add_diffuse_material(albedo=(0.7, 0.3, 0.3))
    left = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.3)
    right = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.1)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere(CENTER_POSITION, SPHERE_RADIUS, center)
    scene.add_sphere(LEFT_POSITION, SPHERE_RADIUS, left)
    scene.add_sphere(RIGHT_POSITION, SPHERE_RADIUS, right)

    return scene, create_front_camera(aspect_ratio)


def create_glass_scene(aspect_ratio: float) -> tuple[SceneManager, ThinLensCamera]:
    """Create a scene with a hollow glass sphere and depth of field.

    The hollow look comes from a smaller sphere inside the glass sphere
    whose index of refraction is the reciprocal of the glass, i.e. air
    relative to glass.

    Args:
        aspect_ratio: Width / height of the image the camera renders.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    scene.add_diffuse_sphere(GROUND_CENTER, GROUND_RADIUS, albedo=GROUND_ALBEDO)
    scene.add_diffuse_sphere(CENTER_POSITION, SPHERE_RADIUS, albedo=(0.1, 0.2, 0.5))
    scene.add_dielectric_sphere(LEFT_POSITION, SPHERE_RADIUS, ior=GLASS_IOR)
    scene.add_dielectric_sphere(LEFT_POSITION, 0.4, ior=1.0 / GLASS_IOR)
    scene.add_metal_sphere(RIGHT_POSITION, SPHERE_RADIUS, albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = CENTER_POSITION
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=math.dist(lookfrom, lookat),
    )
    return scene, camera


def create_single_sphere_scene(aspect_ratio: float) -> tuple[SceneManager, ThinLensCamera]:
    """Create a scene with one grey diffuse sphere and nothing else.

    Args:
        aspect_ratio: Width / height of the image the camera renders.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()
    scene.add_diffuse_sphere(CENTER_POSITION, SPHERE_RADIUS, albedo=(0.5, 0.5, 0.5))
    return scene, create_front_camera(aspect_ratio)


# Presets selectable by name (e.g. from the command line)
SCENE_PRESETS: dict[str, ScenePreset] = {
    "default": create_default_scene,
    "glass": create_glass_scene,
    "single": create_single_sphere_scene,
}


def get_scene_preset(name: str) -> ScenePreset:
    """Look up a scene factory by name.

    Raises:
        ValueError: If no preset has that name.
    """
    try:
        return SCENE_PRESETS[name]
    except KeyError:
        available = ", ".join(sorted(SCENE_PRESETS))
        raise ValueError(f"Unknown scene preset {name!r} (available: {available})") from None


def _camera_from_dict(data: dict[str, Any], aspect_ratio: float) -> ThinLensCamera:
    """Build a camera from a scene file's "camera" entry."""
    try:
        return ThinLensCamera(
            lookfrom=tuple(data["lookfrom"]),
            lookat=tuple(data["lookat"]),
            vup=tuple(data.get("vup", (0.0, 1.0, 0.0))),
            vfov=float(data.get("vfov", 90.0)),
            aspect_ratio=aspect_ratio,
            aperture=float(data.get("aperture", 0.0)),
            focus_dist=float(data.get("focus_dist", 1.0)),
        )
    except KeyError as e:
        raise ValueError(f"Camera entry is missing {e.args[0]!r}") from e


def load_scene_file(
    path: str | Path,
    aspect_ratio: float,
) -> tuple[SceneManager, ThinLensCamera]:
    """Load a scene from a JSON file written by SceneManager.to_json_file().

    The file may carry an optional "camera" object with lookfrom, lookat and
    optionally vup, vfov, aperture and focus_dist. Without it the scene is
    viewed through create_front_camera().

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file does not describe a valid scene or camera.
    """
    data = read_scene_file(path)

    scene = SceneManager()
    scene.from_dict(data)

    camera_data = data.get("camera")
    if camera_data is None:
        return scene, create_front_camera(aspect_ratio)
    return scene, _camera_from_dict(camera_data, aspect_ratio)
