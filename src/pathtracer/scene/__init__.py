"""Scene module for scene storage, queries and construction.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes with matching cameras

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for sphere data
    - A unified material ID space mapped onto per-type material registries
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    clear_material_tracking,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
    read_scene_file,
)
from .presets import (
    SCENE_PRESETS,
    create_default_scene,
    create_front_camera,
    create_glass_scene,
    create_single_sphere_scene,
    get_scene_preset,
    load_scene_file,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "clear_material_tracking",
    "read_scene_file",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets module
    "SCENE_PRESETS",
    "create_default_scene",
    "create_glass_scene",
    "create_single_sphere_scene",
    "create_front_camera",
    "get_scene_preset",
    "load_scene_file",
]
