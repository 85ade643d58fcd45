"""Sphere primitive with closed-form ray-sphere intersection.

A sphere carries its own surface description (emission, reflectivity and
roughness) since it is the only primitive the tracer supports.

The intersection test projects the sphere centre onto the ray instead of
solving the general quadratic:

    oc  = center - origin
    tca = dot(oc, direction)              distance to the closest approach
    d   = sqrt(|oc|^2 - tca^2)            closest-approach distance to center
    t   = tca - sqrt(radius^2 - d^2)      near root only

A hit requires ``tca > 0`` (sphere ahead of the origin) and ``d < radius``.
Only the near root is ever returned, so a ray starting inside a sphere whose
centre lies ahead reports a hit at a negative distance, and one whose centre
lies behind reports a miss.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize, perturb_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere with its surface properties.

    Attributes:
        position: The center of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        emission: Emitted radiance (RGB), independent of incoming light.
        reflectivity: Per-channel fraction of incoming light reflected (RGB).
        roughness: Normal perturbation magnitude, 0 = mirror.
    """

    position: vec3
    radius: ti.f32
    emission: vec3
    reflectivity: vec3
    roughness: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: Distance along the ray to the hit point. +inf on a miss.
        point: The 3D point where the ray intersected the sphere.
            Only valid if hit == 1.
        normal: The outward surface normal at the hit point, perturbed by
            the sphere's roughness (unit length). Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=tm.inf,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray. Must be unit length.
        sphere: The sphere to test intersection against.

    Returns:
        A HitRecord. Degenerate geometry never raises; it reports a miss.
    """
    oc = sphere.position - ray_origin
    tca = tm.dot(oc, ray_direction)
    # Rounding can push |oc|^2 - tca^2 slightly below zero for head-on rays
    d = ti.sqrt(tm.max(tm.dot(oc, oc) - tca * tca, 0.0))

    result = make_miss_record()

    if tca > 0.0 and d < sphere.radius:
        t = tca - ti.sqrt(sphere.radius * sphere.radius - d * d)
        point = ray_origin + t * ray_direction
        normal = perturb_normal(normalize(point - sphere.position), sphere.roughness)
        result = HitRecord(hit=1, t=t, point=point, normal=normal)

    return result


@ti.func
def make_sphere(
    position: vec3,
    radius: ti.f32,
    emission: vec3,
    reflectivity: vec3,
    roughness: ti.f32,
) -> Sphere:
    """Create a sphere within a Taichi kernel."""
    return Sphere(
        position=position,
        radius=radius,
        emission=emission,
        reflectivity=reflectivity,
        roughness=roughness,
    )
