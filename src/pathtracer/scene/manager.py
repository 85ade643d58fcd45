"""Scene manager for authoring sphere scenes.

The SceneManager is the Python-side view of the scene. It validates sphere
records, uploads them into the Taichi fields of ``scene.intersection`` and
keeps a host-side list so that intersection results can refer back to the
object that was hit.

Spheres are the only primitive kind. ``Primitive`` is kept as a closed
union so that a new kind has exactly one dispatch point to extend
(``SceneManager.add``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, 10), 2.0, reflectivity=(1, 1, 1))
    0
    >>> result = scene.intersect((0, 0, 0), (0, 0, 1))
    >>> result.collided, result.distance
    (True, 8.0)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import taichi.math as tm

from pathtracer.core.values import Colour, Vector3
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    NO_EXCLUSION,
    add_sphere,
    clear_scene,
    get_scene_owner,
    query_intersection,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class SphereInfo:
    """A sphere in the scene.

    Attributes:
        position: Center of the sphere in world space.
        radius: Radius, must be positive.
        emission: Radiance emitted regardless of incoming light. Black for
            purely reflective surfaces.
        reflectivity: Per-channel fraction of incoming light reflected.
            Values above 1 are allowed (boosted highlights).
        roughness: Normal perturbation magnitude, >= 0. 0 is a mirror.
    """

    position: Vector3
    radius: float
    emission: Colour = field(default_factory=Colour.black)
    reflectivity: Colour = field(default_factory=Colour.black)
    roughness: float = 0.0

    def __post_init__(self) -> None:
        # Accept plain tuples for convenience
        object.__setattr__(self, "position", Vector3.of(self.position))
        object.__setattr__(self, "emission", Colour.of(self.emission))
        object.__setattr__(self, "reflectivity", Colour.of(self.reflectivity))

        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        if not self.roughness >= 0.0:
            raise ValueError(f"Sphere roughness must be non-negative, got {self.roughness}")
        for name, colour in (("emission", self.emission), ("reflectivity", self.reflectivity)):
            for channel in colour:
                if channel < 0.0:
                    raise ValueError(f"Sphere {name} channels must be non-negative, got {colour}")


# Closed union of supported primitive kinds
Primitive = SphereInfo


@dataclass(frozen=True)
class IntersectionResult:
    """Result of a single intersection query.

    Attributes:
        collided: Whether anything was hit.
        distance: Distance along the ray to the hit, ``math.inf`` on a miss.
        point: Hit point (zero vector on a miss).
        normal: Roughness-perturbed unit normal (zero vector on a miss).
        sphere_index: Index of the hit sphere, or None.
        sphere: The hit sphere, or None.
    """

    collided: bool
    distance: float
    point: Vector3
    normal: Vector3
    sphere_index: int | None = None
    sphere: SphereInfo | None = None

    @classmethod
    def miss(cls) -> IntersectionResult:
        return cls(
            collided=False,
            distance=math.inf,
            point=Vector3.zero(),
            normal=Vector3.zero(),
        )


class SceneManager:
    """Ordered collection of spheres mirrored into Taichi fields.

    The Taichi scene fields hold one scene at a time. Creating a
    SceneManager claims them; an older manager re-uploads its spheres the
    next time it is queried or rendered (see ``upload``). Kernels only ever
    read the uploaded data.

    Attributes:
        spheres: The spheres in upload order. Index i matches the sphere
            index reported by intersection queries.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere((0, 0, 10), 2.0, reflectivity=(1, 1, 1))
        0
        >>> scene.add_sphere((0, 0, -10), 2.0, emission=(100, 100, 100))
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene(owner=self)
        self.spheres.clear()

    def clear(self) -> None:
        """Remove every sphere from the scene."""
        self._clear_all()

    def is_uploaded(self) -> bool:
        """Check whether the Taichi fields currently hold this scene."""
        return get_scene_owner() is self

    def upload(self) -> None:
        """Make this scene the one the kernels read.

        Does nothing while the fields already hold this scene. Otherwise
        the fields are cleared and every sphere is uploaded again in order,
        so sphere indices are unchanged.
        """
        if self.is_uploaded():
            return

        clear_scene(owner=self)
        for sphere in self.spheres:
            self._upload_sphere(sphere)
        logger.debug("Re-uploaded scene with %d spheres", len(self.spheres))

    @staticmethod
    def _upload_sphere(sphere: SphereInfo) -> int:
        return add_sphere(
            vec3(*sphere.position.to_tuple()),
            sphere.radius,
            vec3(*sphere.emission.to_tuple()),
            vec3(*sphere.reflectivity.to_tuple()),
            sphere.roughness,
        )

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add(self, primitive: Primitive) -> int:
        """Add a primitive to the scene.

        Args:
            primitive: The primitive to upload.

        Returns:
            The index of the added primitive.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            TypeError: If the primitive is not a supported kind.
        """
        self.upload()
        match primitive:
            case SphereInfo():
                index = self._upload_sphere(primitive)
                self.spheres.append(primitive)
                return index
            case _:
                raise TypeError(f"Unsupported primitive: {type(primitive).__name__}")

    def add_sphere(
        self,
        position: Vector3 | Sequence[float],
        radius: float,
        *,
        emission: Colour | Sequence[float] = (0.0, 0.0, 0.0),
        reflectivity: Colour | Sequence[float] = (0.0, 0.0, 0.0),
        roughness: float = 0.0,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            position: Center of the sphere.
            radius: Radius (positive).
            emission: Emitted radiance (RGB).
            reflectivity: Per-channel reflectivity (RGB).
            roughness: Normal perturbation magnitude (>= 0).

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the sphere data is invalid.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        info = SphereInfo(
            position=Vector3.of(position),
            radius=radius,
            emission=Colour.of(emission),
            reflectivity=Colour.of(reflectivity),
            roughness=roughness,
        )
        return self.add(info)

    def extend(self, primitives: Iterable[Primitive]) -> list[int]:
        """Add several primitives in order and return their indices."""
        return [self.add(primitive) for primitive in primitives]

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    def get_sphere(self, index: int) -> SphereInfo | None:
        """Get the sphere at ``index``, or None if out of range."""
        if 0 <= index < len(self.spheres):
            return self.spheres[index]
        return None

    def intersect(
        self,
        origin: Vector3 | Sequence[float],
        direction: Vector3 | Sequence[float],
        exclude: int | None = None,
    ) -> IntersectionResult:
        """Find the nearest sphere hit by a ray.

        The normal of the result is perturbed by the hit sphere's roughness,
        exactly as during rendering.

        Args:
            origin: Ray origin.
            direction: Ray direction. Must be unit length.
            exclude: Index of a sphere to ignore.

        Returns:
            An IntersectionResult; a miss has ``distance == math.inf``.
        """
        self.upload()
        excluded = NO_EXCLUSION if exclude is None else exclude
        hit, distance, point, normal, index = query_intersection(
            Vector3.of(origin).to_tuple(),
            Vector3.of(direction).to_tuple(),
            excluded,
        )
        if not hit:
            return IntersectionResult.miss()

        return IntersectionResult(
            collided=True,
            distance=distance,
            point=Vector3.of(point),
            normal=Vector3.of(normal),
            sphere_index=index,
            sphere=self.get_sphere(index),
        )

    # =========================================================================
    # Dictionary Interchange
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene as plain Python data.

        Returns:
            A dictionary with a ``spheres`` list.
        """
        return {
            "spheres": [
                {
                    "position": list(sphere.position.to_tuple()),
                    "radius": sphere.radius,
                    "emission": list(sphere.emission.to_tuple()),
                    "reflectivity": list(sphere.reflectivity.to_tuple()),
                    "roughness": sphere.roughness,
                }
                for sphere in self.spheres
            ]
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with spheres described by plain Python data.

        Args:
            data: Dictionary with a ``spheres`` list as produced by to_dict().

        Raises:
            ValueError: If a sphere entry is missing a position or radius,
                or holds invalid values.
        """
        self.clear()

        for entry in data.get("spheres", []):
            if "position" not in entry or "radius" not in entry:
                raise ValueError(f"Sphere entry needs 'position' and 'radius': {entry}")
            self.add_sphere(
                entry["position"],
                entry["radius"],
                emission=entry.get("emission", (0.0, 0.0, 0.0)),
                reflectivity=entry.get("reflectivity", (0.0, 0.0, 0.0)),
                roughness=entry.get("roughness", 0.0),
            )

        logger.debug("Loaded %d spheres from dict", len(self.spheres))

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES
