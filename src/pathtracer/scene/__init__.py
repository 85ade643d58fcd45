"""Scene module: sphere storage, authoring and the demo scene.

Components:
    intersection: Taichi field storage and the nearest-hit query
    manager: SphereInfo records and the SceneManager
    demo: The demo room with a light and a mirror
"""

from .demo import DemoSceneParams, create_demo_scene, demo_spheres
from .intersection import (
    MAX_SPHERES,
    NO_EXCLUSION,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    query_intersection,
)
from .manager import IntersectionResult, Primitive, SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "query_intersection",
    "MAX_SPHERES",
    "NO_EXCLUSION",
    # Manager module
    "SceneManager",
    "SphereInfo",
    "Primitive",
    "IntersectionResult",
    # Demo scene
    "DemoSceneParams",
    "create_demo_scene",
    "demo_spheres",
]
