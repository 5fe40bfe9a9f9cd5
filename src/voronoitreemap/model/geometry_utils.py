from __future__ import annotations

from typing import TYPE_CHECKING

import numba as nb
import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@nb.jit(cache=True, fastmath=True)
def _shoelace(xy: npt.NDArray[np.float64]) -> tuple[float, float, float]:
    """
    Accumulate the shoelace sums of a closed polygon.

    Args:
        xy: (n, 2) array of vertices, the last vertex connects to the first.

    Returns:
        Twice the signed area and the two centroid numerators
        sum((x_i + x_j) * c_ij), sum((y_i + y_j) * c_ij).
    """
    n = xy.shape[0]
    double_area = 0.0
    cx = 0.0
    cy = 0.0
    for i in range(n):
        j = i + 1 if i < n - 1 else 0
        x0 = xy[i, 0]
        y0 = xy[i, 1]
        x1 = xy[j, 0]
        y1 = xy[j, 1]
        cross = x0 * y1 - x1 * y0
        double_area += cross
        cx += (x0 + x1) * cross
        cy += (y0 + y1) * cross
    return double_area, cx, cy


@nb.jit(cache=True, fastmath=True)
def _contains(xy: npt.NDArray[np.float64], px: float, py: float, eps: float) -> bool:
    """
    Test whether (px, py) lies inside or on a counter-clockwise convex polygon.

    Args:
        xy: (n, 2) array of vertices in counter-clockwise order.
        px: X-coordinate of the tested point.
        py: Y-coordinate of the tested point.
        eps: Tolerance; points up to `eps` (in cross product units) right of an edge still count.
    """
    n = xy.shape[0]
    for i in range(n):
        j = i + 1 if i < n - 1 else 0
        cross = (xy[j, 0] - xy[i, 0]) * (py - xy[i, 1]) - (xy[j, 1] - xy[i, 1]) * (px - xy[i, 0])
        if cross < -eps:
            return False
    return True


def area_sign(
    a: tuple[float, float],
    b: tuple[float, float],
    c: tuple[float, float],
    eps: float
) -> int:
    """Orientation of the triangle (a, b, c): +1 counter-clockwise, -1 clockwise, 0 collinear within `eps`."""
    area = (b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1])
    if area > eps:
        return 1
    if area < -eps:
        return -1
    return 0


def between(a: tuple[float, float], b: tuple[float, float], c: tuple[float, float]) -> bool:
    """
    Test whether c lies between a and b, assuming the three points are collinear.

    The test runs along x unless the segment is vertical.
    """
    if a[0] != b[0]:
        return (a[0] <= c[0] <= b[0]) or (b[0] <= c[0] <= a[0])
    return (a[1] <= c[1] <= b[1]) or (b[1] <= c[1] <= a[1])


def remove_duplicate_vertices(
    points: list[tuple[float, float]],
    tolerance: float
) -> list[tuple[float, float]]:
    """Drop consecutive repeated vertices of a closed polygon, including a last vertex equal to the first."""
    def same(p: tuple[float, float], q: tuple[float, float]) -> bool:
        return abs(p[0] - q[0]) <= tolerance and abs(p[1] - q[1]) <= tolerance

    result: list[tuple[float, float]] = []
    for p in points:
        if result and same(p, result[-1]):
            continue
        result.append(p)
    while len(result) > 1 and same(result[0], result[-1]):
        result.pop()
    return result


def flat_to_pairs(values: list[float]) -> npt.NDArray[np.float64]:
    """
    Convert a flat [x0, y0, x1, y1, ...] list into an (n, 2) array.

    Raises:
        ValueError: If the list has an odd number of entries.
    """
    if len(values) % 2 != 0:
        raise ValueError(f"A flat coordinate list needs an even number of values, got {len(values)}.")
    return np.asarray(values, dtype=np.float64).reshape(-1, 2)
