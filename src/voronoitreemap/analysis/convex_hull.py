"""
Incremental 3D Convex Hull
==========================
Builds the convex hull of a point set one point at a time.

The mesh is an arena: `ConvexHull3D.faces` owns every face ever created and
faces refer to each other only through their integer handle (the index into
that list). A face absorbed by a later point stays in the arena with
`valid = False`, so handles never move.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from voronoitreemap.config import HULL_EPS
from voronoitreemap.model.geometry_primitives import Point2D, Vector3D
from voronoitreemap.model.sites import DualSite

logger = logging.getLogger(__name__)


class HalfEdge:
    """
    A directed edge of a triangular face.

    Attributes:
        origin: Vertex index the edge starts at.
        target: Vertex index the edge ends at.
        neighbor: Handle of the face on the other side of the edge (-1 until linked).
    """
    __slots__ = ("origin", "target", "neighbor")

    def __init__(self, origin: int, target: int) -> None:
        self.origin = origin
        self.target = target
        self.neighbor = -1

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.origin} -> {self.target}, neighbor={self.neighbor})"

    def joins(self, a: int, b: int) -> bool:
        """True if the edge connects a and b in either direction."""
        return (self.origin == a and self.target == b) or (self.origin == b and self.target == a)


class TriangularFace:
    """
    A triangle of the hull surface.

    Vertices and edges run counter-clockwise when seen from outside, so the
    normal (v1 - v0) x (v2 - v0) points away from the hull. Edge i starts at
    vertex i; the next edge of edge i is edge (i + 1) % 3.
    """

    def __init__(self, handle: int, v0: int, v1: int, v2: int, corners: Sequence[Vector3D]) -> None:
        """
        Initialize the face.

        Args:
            handle: Index of the face in the hull arena.
            v0, v1, v2: Vertex indices in counter-clockwise order.
            corners: Coordinates of v0, v1 and v2.
        """
        self.handle = handle
        self.vertices = (v0, v1, v2)
        self.edges = (HalfEdge(v0, v1), HalfEdge(v1, v2), HalfEdge(v2, v0))
        self.corners = tuple(corners)

        p0, p1, p2 = self.corners
        self.normal = (p1 - p0).cross(p2 - p0).normalize()

        self.valid = True
        self._dual_point: Optional[Point2D] = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(handle={self.handle}, vertices={self.vertices}, valid={self.valid})"

    @staticmethod
    def next_edge_index(index: int) -> int:
        return (index + 1) % 3

    def edge_index(self, a: int, b: int) -> int:
        """Index of the edge joining a and b, or -1 if the face has no such edge."""
        for i, edge in enumerate(self.edges):
            if edge.joins(a, b):
                return i
        return -1

    def is_visible_from(self, point: Vector3D, eps: float = HULL_EPS) -> bool:
        """True if the point lies strictly outside the supporting plane of the face."""
        return self.normal.dot(point - self.corners[0]) > eps

    def is_lower(self, eps: float = HULL_EPS) -> bool:
        """True if the outward normal points downwards."""
        return self.normal.z < -eps

    def dual_point(self) -> Point2D:
        """
        Vertex of the power diagram dual to this (lower hull) face.

        For the supporting plane z = a x + b y + c of the face the dual point
        is (a / 2, b / 2). Computed once and cached.
        """
        if self._dual_point is None:
            p1, p2, p3 = self.corners
            a = p1.y * (p2.z - p3.z) + p2.y * (p3.z - p1.z) + p3.y * (p1.z - p2.z)
            b = p1.z * (p2.x - p3.x) + p2.z * (p3.x - p1.x) + p3.z * (p1.x - p2.x)
            c = -0.5 / (p1.x * (p2.y - p3.y) + p2.x * (p3.y - p1.y) + p3.x * (p1.y - p2.y))
            self._dual_point = Point2D(a * c, b * c)
        return self._dual_point


class ConvexHull3D:
    """
    Convex hull of a set of 3D points, built incrementally.
    """

    def __init__(self, points: Sequence[DualSite], eps: float = HULL_EPS) -> None:
        """
        Initialize the hull problem.

        Args:
            points: Points in any order. The list is copied; the bootstrap step reorders the copy.
            eps: Distance beyond which a point counts as outside a face.
        """
        self.points: List[DualSite] = list(points)
        self.eps = eps
        self.faces: List[TriangularFace] = []
        self._horizon: List[HalfEdge] = []

    @property
    def number_of_points(self) -> int:
        return len(self.points)

    def face(self, handle: int) -> TriangularFace:
        return self.faces[handle]

    def compute(self) -> Optional[List[TriangularFace]]:
        """
        Compute the hull.

        Returns:
            The faces of the hull surface, or None if there are fewer than
            four points or no four of them span a volume.
        """
        self.faces = []
        if self.number_of_points < 4:
            logger.debug(f"Convex hull needs at least 4 points, got {self.number_of_points}.")
            return None

        if not self._prepare():
            logger.debug("Convex hull input is degenerate (collinear or coplanar).")
            return None

        for i in range(4, self.number_of_points):
            point = self.points[i].coordinate
            for handle in range(len(self.faces)):
                face = self.faces[handle]
                if face.valid and face.is_visible_from(point, self.eps):
                    self._compute_horizon(face, point)
                    self._sort_horizon()
                    self._stitch(i)
                    break

        return [face for face in self.faces if face.valid]

    def _coordinate(self, index: int) -> Vector3D:
        return self.points[index].coordinate

    def _swap(self, i: int, j: int) -> None:
        if i != j:
            self.points[i], self.points[j] = self.points[j], self.points[i]

    def _add_face(self, v0: int, v1: int, v2: int) -> TriangularFace:
        face = TriangularFace(
            len(self.faces), v0, v1, v2,
            (self._coordinate(v0), self._coordinate(v1), self._coordinate(v2))
        )
        self.faces.append(face)
        return face

    def _link(self, face: TriangularFace, other: TriangularFace, a: int, b: int) -> None:
        """Make `face` and `other` neighbors across their shared edge (a, b)."""
        i = face.edge_index(a, b)
        j = other.edge_index(a, b)
        if i < 0 or j < 0:
            logger.warning(f"Faces {face.handle} and {other.handle} do not share the edge ({a}, {b}).")
            return
        face.edges[i].neighbor = other.handle
        other.edges[j].neighbor = face.handle

    def _prepare(self) -> bool:
        """
        Move three non-collinear points to the front, followed by a fourth
        point off their plane, and build the initial tetrahedron.
        """
        p0 = self._coordinate(0)
        p1 = self._coordinate(1)

        # Tolerances are relative: lifted coordinates grow with the square of the layout size
        base = p1 - p0
        normal: Optional[Vector3D] = None
        for i in range(2, self.number_of_points):
            offset = self._coordinate(i) - p0
            candidate = base.cross(offset)
            if candidate.magnitude > self.eps * base.magnitude * offset.magnitude:
                self._swap(i, 2)
                normal = candidate.normalize()
                break
        if normal is None:
            return False

        for i in range(3, self.number_of_points):
            offset = self._coordinate(i) - p0
            if abs(normal.dot(offset)) > self.eps * offset.magnitude:
                self._swap(i, 3)
                break
        else:
            return False

        # The fourth point must lie behind the base face
        if normal.dot(self._coordinate(3) - p0) > 0.0:
            self._swap(2, 3)

        f0 = self._add_face(0, 1, 2)
        f1 = self._add_face(1, 3, 2)
        f2 = self._add_face(0, 2, 3)
        f3 = self._add_face(0, 3, 1)

        self._link(f0, f1, 1, 2)
        self._link(f0, f2, 0, 2)
        self._link(f0, f3, 0, 1)
        self._link(f1, f2, 2, 3)
        self._link(f1, f3, 1, 3)
        self._link(f2, f3, 0, 3)
        return True

    def _compute_horizon(self, start: TriangularFace, point: Vector3D) -> None:
        """
        Depth-first search over the faces visible from `point`.

        Visible faces are invalidated; every edge from a visible face to a
        face that cannot see the point is collected as a horizon edge.
        """
        self._horizon = []
        start.valid = False
        stack = [start]
        while stack:
            face = stack.pop()
            for edge in face.edges:
                neighbor = self.faces[edge.neighbor]
                if not neighbor.valid:
                    continue
                if neighbor.is_visible_from(point, self.eps):
                    neighbor.valid = False
                    stack.append(neighbor)
                else:
                    self._horizon.append(edge)

    def _sort_horizon(self) -> None:
        """Chain the horizon edges tail-to-head into one counter-clockwise cycle."""
        if not self._horizon:
            return
        by_origin = {edge.origin: edge for edge in self._horizon}
        ordered = [self._horizon[0]]
        while len(ordered) < len(self._horizon):
            following = by_origin.get(ordered[-1].target)
            if following is None or following is ordered[0]:
                break
            ordered.append(following)

        if len(ordered) != len(self._horizon):
            logger.warning(f"Horizon of {len(self._horizon)} edges does not form a single cycle.")
            chained = set(map(id, ordered))
            ordered.extend(edge for edge in self._horizon if id(edge) not in chained)
        self._horizon = ordered

    def _stitch(self, index: int) -> None:
        """Close the hole left by the visible faces with a fan of faces around point `index`."""
        first: Optional[TriangularFace] = None
        last: Optional[TriangularFace] = None
        for edge in self._horizon:
            outside = self.faces[edge.neighbor]
            added = self._add_face(edge.origin, edge.target, index)
            self._link(added, outside, edge.origin, edge.target)
            if last is None:
                first = added
            else:
                self._link(added, last, edge.origin, index)
            last = added

        if first is not None and last is not None:
            self._link(last, first, last.vertices[1], index)
