"""Host-side vector and colour value types.

Kernels work on ``taichi.math.vec3`` values; everything that crosses the
Python boundary (scene authoring, intersection queries, trace results and
pixel sinks) uses the immutable types defined here instead.

``Vector3`` and ``Colour`` share the same componentwise arithmetic but are
distinct classes, so a position never compares equal to (or silently stands
in for) a colour with the same components.

Example:
    >>> from pathtracer.core.values import Colour, Vector3, average
    >>> d = Vector3(0.0, 0.0, 1.0)
    >>> d.reflect(Vector3(0.0, 0.0, -1.0))
    Vector3(x=0.0, y=0.0, z=-1.0)
    >>> average([Colour(1.0, 0.0, 0.0), Colour(0.0, 1.0, 0.0)])
    Colour(r=0.5, g=0.5, b=0.0)
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T", "Vector3", "Colour")


@dataclass(frozen=True)
class Vector3:
    """A 3-component real vector.

    Attributes:
        x: First component.
        y: Second component.
        z: Third component.
    """

    x: float
    y: float
    z: float

    @classmethod
    def of(cls, value: Vector3 | Sequence[float]) -> Vector3:
        """Coerce a Vector3 or a 3-element sequence to a Vector3."""
        if isinstance(value, Vector3):
            return value
        if isinstance(value, Colour):
            raise TypeError("Colour cannot be used as a Vector3")
        x, y, z = value
        return cls(float(x), float(y), float(z))

    @classmethod
    def zero(cls) -> Vector3:
        return cls(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, s: float) -> Vector3:
        return Vector3(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def scale(self, s: float) -> Vector3:
        return self * s

    def multiply(self, other: Vector3) -> Vector3:
        """Componentwise product."""
        return Vector3(self.x * other.x, self.y * other.y, self.z * other.z)

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def magnitude(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> Vector3:
        """Scale to unit length.

        The zero vector has no direction; normalizing it raises
        ``ZeroDivisionError`` here (kernels produce non-finite values instead).
        """
        return self * (1.0 / self.magnitude())

    def reflect(self, normal: Vector3) -> Vector3:
        """Reflect about ``normal``: ``d - 2 * dot(d, n) * n``."""
        return self - normal * (2.0 * self.dot(normal))

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Colour:
    """An RGB colour with unbounded, non-clamped channels.

    Channels are only quantized at the display boundary, so values well
    above 1 (or 255) are expected for emissive surfaces.

    Attributes:
        r: Red channel.
        g: Green channel.
        b: Blue channel.
    """

    r: float
    g: float
    b: float

    @classmethod
    def of(cls, value: Colour | Sequence[float]) -> Colour:
        """Coerce a Colour or a 3-element sequence to a Colour."""
        if isinstance(value, Colour):
            return value
        if isinstance(value, Vector3):
            raise TypeError("Vector3 cannot be used as a Colour")
        r, g, b = value
        return cls(float(r), float(g), float(b))

    @classmethod
    def black(cls) -> Colour:
        return cls(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[float]:
        return iter((self.r, self.g, self.b))

    def __add__(self, other: Colour) -> Colour:
        return Colour(self.r + other.r, self.g + other.g, self.b + other.b)

    def __mul__(self, s: float) -> Colour:
        return Colour(self.r * s, self.g * s, self.b * s)

    __rmul__ = __mul__

    def scale(self, s: float) -> Colour:
        return self * s

    def multiply(self, other: Colour) -> Colour:
        """Componentwise product, e.g. light attenuated by a reflectivity."""
        return Colour(self.r * other.r, self.g * other.g, self.b * other.b)

    def is_black(self) -> bool:
        return self.r == 0.0 and self.g == 0.0 and self.b == 0.0

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)


def average(values: Sequence[T]) -> T:
    """Componentwise mean of a non-empty sequence of same-typed values.

    Args:
        values: Vectors or colours; all elements must share one type.

    Returns:
        The mean, of the same type as the elements.

    Raises:
        ValueError: If ``values`` is empty.
        TypeError: If the sequence mixes Vector3 and Colour.
    """
    if len(values) == 0:
        raise ValueError("Cannot average an empty sequence")

    kind = type(values[0])
    mx = my = mz = 0.0
    # Running mean, same recurrence as the render target accumulation
    for n, value in enumerate(values, start=1):
        if type(value) is not kind:
            raise TypeError(f"Cannot average {kind.__name__} with {type(value).__name__}")
        a, b, c = value
        mx += (a - mx) / n
        my += (b - my) / n
        mz += (c - mz) / n

    return kind(mx, my, mz)
