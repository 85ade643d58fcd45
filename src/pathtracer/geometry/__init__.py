"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with surface properties and ray-sphere intersection

Spheres are the only supported primitive. Intersection routines are Taichi
functions (@ti.func) called from the path tracing kernels:
    record = hit_sphere(ray_origin, ray_direction, sphere)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
]
