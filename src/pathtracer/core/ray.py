"""Ray data structure and vector utilities for the path tracing kernels.

This module provides the Ray dataclass and the vector algebra used inside
Taichi kernels. Everything here is a ``@ti.func`` operating on
``taichi.math.vec3`` values, which are immutable from the caller's point of
view: every operation returns a new vector.

Colours share the vec3 representation inside kernels (r, g, b in x, y, z);
the host-side ``Vector3``/``Colour`` split lives in ``core.values``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 1.0))
    ...     return ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Intersection
            routines require unit length; callers normalize.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def magnitude(v: vec3) -> ti.f32:
    """Compute the Euclidean length, ``sqrt(dot(v, v))``."""
    return ti.sqrt(tm.dot(v, v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Computed as ``v * (1 / magnitude(v))``. The zero vector is not guarded:
    it yields non-finite components, so callers must never pass one.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return v * (1.0 / magnitude(v))


@ti.func
def scale(v: vec3, s: ti.f32) -> vec3:
    """Multiply every component by a scalar."""
    return v * s


@ti.func
def multiply(a: vec3, b: vec3) -> vec3:
    """Componentwise product.

    Used for colour attenuation: incoming light times a per-channel
    reflectivity.
    """
    return vec3(a.x * b.x, a.y * b.y, a.z * b.z)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes ``d - 2 * dot(d, n) * n``. The normal should be unit length for
    the result to keep the incident vector's length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


# =============================================================================
# Random Perturbation
# =============================================================================


@ti.func
def random_perturbation() -> vec3:
    """Random vector with components drawn uniformly from [-0.5, 0.5)."""
    return vec3(
        ti.random(ti.f32) - 0.5,
        ti.random(ti.f32) - 0.5,
        ti.random(ti.f32) - 0.5,
    )


@ti.func
def perturb_normal(normal: vec3, roughness: ti.f32) -> vec3:
    """Jitter a unit normal by ``roughness`` and re-normalize.

    This is the only source of randomness in the tracer: a rough surface
    reflects about a randomly tilted normal, which is what makes it look
    glossy or diffuse. A roughness of 0 returns the normal untouched and
    draws no random numbers.

    Args:
        normal: The geometric surface normal (unit length).
        roughness: Perturbation magnitude, >= 0.

    Returns:
        The perturbed unit normal.
    """
    result = normal
    if roughness > 0.0:
        result = normalize(normal + roughness * random_perturbation())
    return result
