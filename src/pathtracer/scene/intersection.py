"""Scene-level sphere storage and intersection testing.

Spheres are stored in Taichi fields in a Structure-of-Arrays layout and are
read-only while kernels run. ``intersect_scene`` scans every sphere linearly
and keeps the nearest hit; there is no acceleration structure, which is fine
for scenes of tens of spheres.

A sphere index may be excluded from a query. The path tracer excludes the
sphere the previous bounce hit, which stands in for an origin offset and
keeps a reflected ray from re-hitting its own surface.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene, vec3
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, 5), 1.0, vec3(0, 0, 0), vec3(1, 1, 1), 0.0)
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Sentinel for "exclude nothing"
NO_EXCLUSION = -1


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: Distance along the ray to the hit point. +inf on a miss.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The (roughness-perturbed) surface normal at the hit point.
            Only valid if hit == 1.
        sphere_index: Index of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    sphere_index: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_reflectivities = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_roughnesses = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Host-side scene object whose spheres the fields currently hold
_scene_owner: object | None = None


def clear_scene(owner: object | None = None) -> None:
    """Clear all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.

    Args:
        owner: Host-side scene that will upload into the emptied fields.
            ``None`` leaves the fields unowned.
    """
    global _scene_owner
    num_spheres[None] = 0
    _scene_owner = owner


def get_scene_owner() -> object | None:
    """Get the host-side scene the fields were last cleared for."""
    return _scene_owner


def add_sphere(
    position: vec3,
    radius: float,
    emission: vec3,
    reflectivity: vec3,
    roughness: float = 0.0,
) -> int:
    """Add a sphere to the scene.

    No validation happens here; ``SceneManager`` validates sphere data
    before uploading it.

    Args:
        position: The center of the sphere.
        radius: The radius of the sphere.
        emission: Emitted radiance (RGB).
        reflectivity: Per-channel reflectivity (RGB).
        roughness: Normal perturbation magnitude.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_positions[idx] = position
    sphere_radii[idx] = radius
    sphere_emissions[idx] = emission
    sphere_reflectivities[idx] = reflectivity
    sphere_roughnesses[idx] = roughness
    num_spheres[None] = idx + 1
    logger.debug("Uploaded sphere %d (radius=%s)", idx, radius)
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def load_sphere(index: ti.i32) -> Sphere:
    """Gather the sphere at ``index`` from the SoA fields."""
    return Sphere(
        position=sphere_positions[index],
        radius=sphere_radii[index],
        emission=sphere_emissions[index],
        reflectivity=sphere_reflectivities[index],
        roughness=sphere_roughnesses[index],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=tm.inf,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        sphere_index=-1,
    )


@ti.func
def _to_scene_hit_record(rec: HitRecord, sphere_index: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        sphere_index=sphere_index,
    )


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3, excluded: ti.i32) -> SceneHitRecord:
    """Test a ray against every sphere except ``excluded``.

    Keeps the hit with the smallest distance. Ties between exactly equal
    distances go to the lower index.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        excluded: Index of a sphere to skip, or NO_EXCLUSION.

    Returns:
        The nearest SceneHitRecord, or a miss record (also for an empty scene).
    """
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        if i != excluded:
            rec = hit_sphere(ray_origin, ray_direction, load_sphere(i))
            if rec.hit == 1 and rec.t < result.t:
                result = _to_scene_hit_record(rec, i)

    return result


# =============================================================================
# Python-side Query
# =============================================================================

_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_index = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _intersect_query(ray_origin: vec3, ray_direction: vec3, excluded: ti.i32):
    # Single-iteration outer loop keeps the sphere scan serial
    for _ in range(1):
        rec = intersect_scene(ray_origin, ray_direction, excluded)
        _query_hit[None] = rec.hit
        _query_t[None] = rec.t
        _query_point[None] = rec.point
        _query_normal[None] = rec.normal
        _query_index[None] = rec.sphere_index


def query_intersection(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    excluded: int = NO_EXCLUSION,
) -> tuple[bool, float, tuple[float, float, float], tuple[float, float, float], int]:
    """Run one intersection query from Python.

    Intended for inspection and tests; rendering never goes through here.

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        excluded: Sphere index to skip.

    Returns:
        Tuple of (hit, distance, point, normal, sphere_index).
    """
    _intersect_query(vec3(*origin), vec3(*direction), excluded)
    point = _query_point[None]
    normal = _query_normal[None]
    return (
        bool(_query_hit[None]),
        float(_query_t[None]),
        (float(point[0]), float(point[1]), float(point[2])),
        (float(normal[0]), float(normal[1]), float(normal[2])),
        int(_query_index[None]),
    )
