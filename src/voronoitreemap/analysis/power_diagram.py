"""
Power Diagram by Lifting
========================
Each weighted site (x, y, w) is lifted to (x, y, x^2 + y^2 - w). The lower
convex hull of the lifted points projects onto the power diagram: a lower
hull vertex is a cell, the faces around it are the cell's corners.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from voronoitreemap.analysis.convex_hull import ConvexHull3D, TriangularFace
from voronoitreemap.analysis.convex_intersect import intersect
from voronoitreemap.config import HULL_EPS, NEARLY_ZERO, POLYGON_EPS
from voronoitreemap.model.geometry_primitives import Point2D, Polygon
from voronoitreemap.model.geometry_utils import remove_duplicate_vertices
from voronoitreemap.model.sites import DualSite, Site

logger = logging.getLogger(__name__)


class PowerDiagram:
    """
    Power diagram of a list of sites, bounded by a convex polygon.

    `compute()` writes the results onto the sites it was given: every real
    site gets its raw cell (`polygon`), its cell clipped to the boundary
    (`clip_polygon`) and its adjacent sites (`neighbors`).
    """

    def __init__(self, sites: List[Site], boundary: Polygon, eps: float = HULL_EPS) -> None:
        """
        Initialize the power diagram problem.

        Args:
            sites: The sites/generators. They are mutated by `compute()`.
            boundary: Convex boundary polygon, counter-clockwise.
            eps: Tolerance for classifying hull faces as lower hull faces.
        """
        self.sites = sites
        self.eps = eps
        self.hull_faces: Optional[List[TriangularFace]] = None
        self.boundary = boundary
        self.dummy_sites = self._make_dummy_sites(boundary)
        min_x, min_y, max_x, max_y = boundary.bounds
        self._vertex_tolerance = POLYGON_EPS * max(1.0, max_x - min_x, max_y - min_y)

    @staticmethod
    def _make_dummy_sites(boundary: Polygon) -> List[Site]:
        """
        Four sentinel sites around the boundary's bounding box, pushed out by
        the box size in each axis, so that every real cell is bounded.
        """
        min_x, min_y, max_x, max_y = boundary.bounds
        corners = [
            (2 * min_x - max_x, 2 * min_y - max_y),
            (2 * max_x - min_x, 2 * min_y - max_y),
            (2 * max_x - min_x, 2 * max_y - min_y),
            (2 * min_x - max_x, 2 * max_y - min_y),
        ]
        return [Site(x, y, weight=NEARLY_ZERO, dummy=True) for x, y in corners]

    def compute(self) -> bool:
        """
        Rebuild the diagram from the current site locations and weights.

        Returns:
            False if the hull could not be built; every site is then left
            without a cell.
        """
        for site in self.sites:
            site.reset_cell()
        for site in self.dummy_sites:
            site.reset_cell()

        dual_sites = [site.to_dual_site() for site in self.sites]
        dual_sites.extend(site.to_dual_site() for site in self.dummy_sites)

        hull = ConvexHull3D(dual_sites)
        self.hull_faces = hull.compute()
        if self.hull_faces is None:
            logger.warning(f"Power diagram of {len(self.sites)} sites has no hull.")
            return False

        self._extract_cells(hull)
        return True

    def _extract_cells(self, hull: ConvexHull3D) -> None:
        for face in self.hull_faces:
            if not face.is_lower(self.eps):
                continue
            for index, edge in enumerate(face.edges):
                dual: DualSite = hull.points[edge.origin]
                if dual.visited:
                    continue
                dual.visited = True
                site = dual.site
                if site is None or site.dummy:
                    continue

                corners = self._walk_ring(hull, face, index, site)
                site.polygon = Polygon(remove_duplicate_vertices(
                    [(p.x, p.y) for p in corners], self._vertex_tolerance
                ))
                site.clip_polygon = intersect(site.polygon, self.boundary)
                if len(site.clip_polygon) < 3:
                    logger.warning(f"Empty clipped cell for {site}, keeping the unclipped cell.")
                    site.clip_polygon = site.polygon

    def _walk_ring(self, hull: ConvexHull3D, face: TriangularFace, index: int, site: Site) -> List[Point2D]:
        """
        Visit the faces around the origin vertex of edge `index` of `face`.

        Returns the dual points of the faces in ring order and records the
        vertex at the other end of every ring edge as a neighbor of `site`.
        """
        corners: List[Point2D] = []
        start = (face.handle, index)
        current = start
        for _ in range(len(hull.faces)):
            edge = hull.face(current[0]).edges[current[1]]
            neighbor_site = hull.points[edge.target].site
            if neighbor_site is not None:
                site.neighbors.add(neighbor_site)

            across = hull.face(edge.neighbor)
            corners.append(across.dual_point())
            shared = across.edge_index(edge.origin, edge.target)
            current = (across.handle, TriangularFace.next_edge_index(shared))
            if current == start:
                break
        else:
            logger.warning(f"Ring of faces around {site} did not close.")
        return corners
