"""
Convex Polygon Intersection
===========================
Intersection of two counter-clockwise convex polygons by advancing along
both boundaries in lockstep (O'Rourke's directed-edge walk).
"""
from __future__ import annotations

import enum
import logging
from typing import List, Optional, Tuple

from voronoitreemap.config import CLIP_EPS
from voronoitreemap.model.geometry_primitives import Polygon
from voronoitreemap.model.geometry_utils import area_sign, between, remove_duplicate_vertices

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float]


class InFlag(enum.Enum):
    """Which polygon's boundary the traced intersection currently follows."""
    P_IN = enum.auto()
    Q_IN = enum.auto()
    UNKNOWN = enum.auto()


class SegmentCode(enum.Enum):
    COLLINEAR = enum.auto()
    NO_INTERSECTION = enum.auto()
    PROPER = enum.auto()


def segment_intersection(
    a: Coordinate,
    b: Coordinate,
    c: Coordinate,
    d: Coordinate,
    eps: float = CLIP_EPS
) -> tuple[SegmentCode, Optional[Coordinate], Optional[Coordinate]]:
    """
    Intersect the segments (a, b) and (c, d).

    Returns:
        The classification and up to two points: the crossing point for a
        proper intersection, or the ends of the shared piece for collinear
        overlapping segments.
    """
    cross = (d[0] - c[0]) * (b[1] - a[1]) - (b[0] - a[0]) * (d[1] - c[1])
    if cross == 0.0:
        if area_sign(a, b, c, eps) == 0:
            # Six ways two collinear segments can overlap
            if between(a, b, c) and between(a, b, d):
                return SegmentCode.COLLINEAR, c, d
            if between(c, d, a) and between(c, d, b):
                return SegmentCode.COLLINEAR, a, b
            if between(a, b, c) and between(c, d, b):
                return SegmentCode.COLLINEAR, c, b
            if between(a, b, c) and between(c, d, a):
                return SegmentCode.COLLINEAR, c, a
            if between(a, b, d) and between(c, d, b):
                return SegmentCode.COLLINEAR, d, b
            if between(a, b, d) and between(c, d, a):
                return SegmentCode.COLLINEAR, d, a
        return SegmentCode.NO_INTERSECTION, None, None

    t = (a[0] * (d[1] - c[1]) - a[1] * (d[0] - c[0]) + c[1] * (d[0] - c[0]) - c[0] * (d[1] - c[1])) / cross
    s = ((b[0] - a[0]) * a[1] + c[0] * (b[1] - a[1]) - a[0] * (b[1] - a[1]) - c[1] * (b[0] - a[0])) / -cross
    if 0.0 <= t <= 1.0 and 0.0 <= s <= 1.0:
        return SegmentCode.PROPER, (a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1])), None
    return SegmentCode.NO_INTERSECTION, None, None


class ConvexIntersect:
    """
    Intersection of two convex polygons given counter-clockwise.
    """

    def __init__(self, convex_p: Polygon, convex_q: Polygon, eps: float = CLIP_EPS) -> None:
        """
        Initialize the clipping problem.

        Args:
            convex_p: First polygon (N vertices).
            convex_q: Second polygon (M vertices).
            eps: Orientation tolerance.
        """
        self.convex_p = convex_p
        self.convex_q = convex_q
        self.eps = eps
        self.intersection = Polygon()

    @property
    def n(self) -> int:
        return len(self.convex_p)

    @property
    def m(self) -> int:
        return len(self.convex_q)

    def compute(self) -> Polygon:
        """
        Compute the intersection polygon.

        Every step advances one of the two polygons. The walk stops once both
        have been advanced past their own vertex count, and neither is
        advanced more than twice its vertex count.
        Polygons that do not cross but nest inside each other return the
        inner one.

        Returns:
            The intersection, empty if the polygons do not overlap.
        """
        n, m = self.n, self.m
        if n < 3 or m < 3:
            self.intersection = Polygon()
            return self.intersection

        P = self.convex_p.coordinates()
        Q = self.convex_q.coordinates()
        eps = self.eps
        origin = (0.0, 0.0)

        result: List[Coordinate] = []
        inflag = InFlag.UNKNOWN
        first_point = True

        a = b = 0  # indices on P and Q
        aa = ba = 0  # number of advances on P and Q

        while True:
            if a == n:
                a = 0
            if b == m:
                b = 0
            a1 = n - 1 if a == 0 else a - 1
            b1 = m - 1 if b == 0 else b - 1

            A = (P[a][0] - P[a1][0], P[a][1] - P[a1][1])
            B = (Q[b][0] - Q[b1][0], Q[b][1] - Q[b1][1])

            cross = area_sign(origin, A, B, eps)
            a_h_b = area_sign(Q[b1], Q[b], P[a], eps)
            b_h_a = area_sign(P[a1], P[a], Q[b], eps)

            code, p1, p2 = segment_intersection(P[a1], P[a], Q[b1], Q[b], eps)

            if code is SegmentCode.PROPER:
                if inflag is InFlag.UNKNOWN and first_point:
                    first_point = False
                    aa = ba = 0
                result.append(p1)
                if a_h_b > 0:
                    inflag = InFlag.P_IN
                elif b_h_a > 0:
                    inflag = InFlag.Q_IN

            # Overlapping edges pointing in opposite directions: the polygons only touch along them
            if code is SegmentCode.COLLINEAR and A[0] * B[0] + A[1] * B[1] < 0.0:
                result.extend([p1, p2])
                return self._finish(result)

            if cross == 0 and a_h_b < 0 and b_h_a < 0:
                # Parallel and disjoint
                return self._finish(result)
            elif cross == 0 and a_h_b == 0 and b_h_a == 0:
                # Collinear: advance the outside edge, never stall
                if inflag is InFlag.P_IN:
                    ba += 1
                    b += 1
                else:
                    aa += 1
                    a += 1
            elif cross >= 0:
                if b_h_a > 0:
                    if inflag is InFlag.P_IN:
                        result.append(P[a])
                    aa += 1
                    a += 1
                else:
                    if inflag is InFlag.Q_IN:
                        result.append(Q[b])
                    ba += 1
                    b += 1
            else:
                if a_h_b > 0:
                    if inflag is InFlag.Q_IN:
                        result.append(Q[b])
                    ba += 1
                    b += 1
                else:
                    if inflag is InFlag.P_IN:
                        result.append(P[a])
                    aa += 1
                    a += 1

            if not ((aa < n or ba < m) and aa < 2 * n and ba < 2 * m):
                break

        if aa >= 2 * n or ba >= 2 * m:
            logger.debug(f"Convex intersection stopped at the advance cap ({aa} on P, {ba} on Q).")

        if not result and inflag is InFlag.UNKNOWN:
            # No crossing at all: either nested or disjoint
            if self.convex_q.contains(self.convex_p[0], eps):
                self.intersection = self.convex_p
                return self.intersection
            if self.convex_p.contains(self.convex_q[0], eps):
                self.intersection = self.convex_q
                return self.intersection

        return self._finish(result)

    def _finish(self, points: List[Coordinate]) -> Polygon:
        self.intersection = Polygon(remove_duplicate_vertices(points, self.eps))
        return self.intersection


def intersect(convex_p: Polygon, convex_q: Polygon, eps: float = CLIP_EPS) -> Polygon:
    """Intersection of two counter-clockwise convex polygons."""
    return ConvexIntersect(convex_p, convex_q, eps).compute()
