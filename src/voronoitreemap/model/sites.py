from __future__ import annotations

from typing import Optional, Set

from voronoitreemap.config import NEARLY_ZERO
from voronoitreemap.model.geometry_primitives import Point2D, Polygon, Vector3D


class Site:
    """
    A weighted generator of the power diagram.

    Every real site corresponds to one child of the tree node being laid out.
    Dummy sites are the four far-away points that keep the diagram bounded;
    they never receive a clipped cell.
    """

    def __init__(
        self,
        x: float,
        y: float,
        attribute: float = 0.0,
        weight: float = NEARLY_ZERO,
        dummy: bool = False,
    ) -> None:
        """
        Initialize the site.

        Args:
            x: X-coordinate of the site.
            y: Y-coordinate of the site.
            attribute: Target value the cell area should be proportional to.
            weight: Power diagram weight.
            dummy: Whether the site only bounds the diagram.
        """
        self.location = Point2D(x, y)
        self.weight = weight
        self.attribute = attribute
        self.dummy = dummy

        # Correction factor of the previous weight update, damps oscillations
        self.last_f: float = 1.0

        self.neighbors: Set[Site] = set()
        self.polygon = Polygon()
        self.clip_polygon = Polygon()

    def __repr__(self) -> str:
        kind = "dummy" if self.dummy else f"attribute={self.attribute:g}"
        return f"{self.__class__.__name__}(({self.location.x:.4g}, {self.location.y:.4g}), weight={self.weight:.4g}, {kind})"

    def reset_cell(self) -> None:
        """Forget the cell and the adjacency of the previous diagram."""
        self.neighbors = set()
        self.polygon = Polygon()
        self.clip_polygon = Polygon()

    def to_dual_site(self) -> DualSite:
        """Lift the site onto the paraboloid z = x^2 + y^2 - weight."""
        x, y = self.location.x, self.location.y
        return DualSite(x, y, x * x + y * y - self.weight, site=self)


class DualSite:
    """A point in 3D space, the lifted image of a Site."""

    __slots__ = ("coordinate", "site", "visited")

    def __init__(self, x: float, y: float, z: float, site: Optional[Site] = None) -> None:
        self.coordinate = Vector3D(x, y, z)
        self.site = site
        self.visited = False

    def __repr__(self) -> str:
        c = self.coordinate
        return f"{self.__class__.__name__}({c.x:.4g}, {c.y:.4g}, {c.z:.4g})"
