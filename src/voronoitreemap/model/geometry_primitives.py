"""
Geometric Primitives for the power diagram and the treemap output.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import cached_property
from typing import Iterator, List, Optional, Sequence, Union, TYPE_CHECKING
import numpy as np
import math

from voronoitreemap.config import POLYGON_EPS
from voronoitreemap.model.geometry_utils import _contains, _shoelace, flat_to_pairs

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Point2D:
    """
    A point (or free vector) in the plane.
    """
    x: float
    y: float

    def __add__(self, other: Point2D) -> Point2D:
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point2D) -> Point2D:
        return Point2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Point2D:
        return Point2D(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> Point2D:
        if scalar == 0.0: raise ZeroDivisionError
        return Point2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Point2D:
        return Point2D(-self.x, -self.y)

    def dot(self, other: Point2D) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Point2D) -> float:
        """Z-component of the 3D cross product."""
        return self.x * other.y - self.y * other.x

    @property
    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.length_squared)

    def distance_to(self, other: Point2D) -> float:
        return (self - other).magnitude

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y])


@dataclass(frozen=True)
class Vector3D:
    """
    A vector in 3D space, used for the lifted sites of the power diagram.
    """
    x: float
    y: float
    z: float

    def __add__(self, other: Vector3D) -> Vector3D:
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3D) -> Vector3D:
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3D:
        return Vector3D(self.x * scalar, self.y * scalar, self.z * scalar)

    def __truediv__(self, scalar: float) -> Vector3D:
        if scalar == 0.0: raise ZeroDivisionError
        return Vector3D(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector3D:
        return Vector3D(-self.x, -self.y, -self.z)

    @property
    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.length_squared)

    def normalize(self) -> Vector3D:
        mag = self.magnitude
        if mag == 0.0: return Vector3D(0.0, 0.0, 0.0)
        return self / mag

    def dot(self, other: Vector3D) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3D) -> Vector3D:
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z])


PointLike = Union[Point2D, Sequence[float]]


class Polygon:
    """
    A convex polygon with vertices in counter-clockwise order.

    The polygon is implicitly closed (the last vertex connects to the first).
    The vertex array is read-only, so the memoised area, centroid and bounds
    stay valid for the lifetime of the object.
    """

    def __init__(
        self,
        vertices: Optional[Union[Sequence[PointLike], npt.NDArray[np.float64]]] = None,
    ) -> None:
        """
        Initialize the polygon.

        Args:
            vertices: Sequence of Point2D or (x, y) pairs, or an (n, 2) array.

        Raises:
            ValueError: If the vertices cannot be arranged as (n, 2) coordinates.
        """
        if vertices is None:
            array = np.empty((0, 2), dtype=np.float64)
        else:
            if len(vertices) > 0 and isinstance(vertices[0], Point2D):
                vertices = [(p.x, p.y) for p in vertices]
            array = np.array(vertices, dtype=np.float64)
            if array.size == 0:
                array = array.reshape(0, 2)
        if array.ndim != 2 or array.shape[1] != 2:
            raise ValueError(f"Polygon vertices must have shape (n, 2), got {array.shape}.")
        array.setflags(write=False)
        self._vertices = array

    @classmethod
    def from_flat(cls, values: Sequence[float]) -> Polygon:
        """Build a polygon from a flat [x0, y0, x1, y1, ...] list."""
        return cls(flat_to_pairs(list(values)))

    @classmethod
    def from_points(cls, points: Sequence[Point2D]) -> Polygon:
        return cls([(p.x, p.y) for p in points])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n={len(self)}, area={self.area:.6g})"

    def __len__(self) -> int:
        return self._vertices.shape[0]

    def __getitem__(self, index: int) -> Point2D:
        x, y = self._vertices[index]
        return Point2D(float(x), float(y))

    def __iter__(self) -> Iterator[Point2D]:
        for x, y in self._vertices.tolist():
            yield Point2D(x, y)

    @property
    def vertices(self) -> npt.NDArray[np.float64]:
        """Read-only (n, 2) array of the vertices."""
        return self._vertices

    @property
    def points(self) -> List[Point2D]:
        return list(self)

    def coordinates(self) -> List[tuple[float, float]]:
        """Vertices as plain (x, y) tuples, for tight Python loops."""
        return [(x, y) for x, y in self._vertices.tolist()]

    def to_flat_list(self) -> List[float]:
        """Return the vertices as [x0, y0, x1, y1, ...] for direct rendering."""
        return self._vertices.ravel().tolist()

    @cached_property
    def _sums(self) -> tuple[float, float, float]:
        if len(self) < 3:
            return 0.0, 0.0, 0.0
        return _shoelace(np.ascontiguousarray(self._vertices))

    @property
    def signed_area(self) -> float:
        """Shoelace area, positive for counter-clockwise vertex order."""
        return 0.5 * self._sums[0]

    @property
    def area(self) -> float:
        return abs(self.signed_area)

    @cached_property
    def centroid(self) -> Point2D:
        """
        Area centroid of the polygon.

        Falls back to the vertex mean when the polygon has no area.

        Raises:
            ValueError: If the polygon has no vertices.
        """
        if len(self) == 0:
            raise ValueError("An empty polygon has no centroid.")
        double_area, cx, cy = self._sums
        if double_area == 0.0:
            mean = self._vertices.mean(axis=0)
            return Point2D(float(mean[0]), float(mean[1]))
        denominator = 3.0 * double_area
        return Point2D(cx / denominator, cy / denominator)

    @cached_property
    def bounds(self) -> tuple[float, float, float, float]:
        """
        Bounding box as (min_x, min_y, max_x, max_y).

        Raises:
            ValueError: If the polygon has no vertices.
        """
        if len(self) == 0:
            raise ValueError("An empty polygon has no bounding box.")
        lo = self._vertices.min(axis=0)
        hi = self._vertices.max(axis=0)
        return float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1])

    @property
    def min_x(self) -> float:
        return self.bounds[0]

    @property
    def min_y(self) -> float:
        return self.bounds[1]

    @property
    def max_x(self) -> float:
        return self.bounds[2]

    @property
    def max_y(self) -> float:
        return self.bounds[3]

    @property
    def is_degenerate(self) -> bool:
        """True if the polygon cannot host a layout (fewer than 3 vertices or no area)."""
        return len(self) < 3 or self.area <= 0.0

    def contains(self, point: Point2D, eps: float = POLYGON_EPS) -> bool:
        """Test whether the point lies inside or on the boundary of this convex polygon."""
        if len(self) < 3:
            return False
        return bool(_contains(np.ascontiguousarray(self._vertices), point.x, point.y, eps))

    def transformed(self, scale: float, offset: Point2D) -> Polygon:
        """Return the polygon mapped by p -> p * scale + offset."""
        return Polygon(self._vertices * scale + offset.to_array())
