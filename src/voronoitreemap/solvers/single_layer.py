from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from voronoitreemap.analysis.power_diagram import PowerDiagram
from voronoitreemap.config import (
    DEFAULT_ERROR_THRESHOLD,
    DEFAULT_MAX_ITERATIONS,
    GROUP_SPLIT_RATIO,
    NEARLY_ZERO,
    OSCILLATION_HIGH,
    OSCILLATION_LOW,
    REFERENCE_EXTENT,
    WEIGHT_FLOOR,
    WEIGHT_PIVOT,
)
from voronoitreemap.model.geometry_primitives import Point2D
from voronoitreemap.model.sites import Site

if TYPE_CHECKING:
    from voronoitreemap.model.geometry_primitives import Polygon

logger = logging.getLogger(__name__)

# (min_x, max_x, min_y, max_y)
Rect = tuple[float, float, float, float]


class SingleLayerSolver:
    """
    Class for laying out one level of the treemap.

    Finds site positions and weights whose power diagram, clipped to the
    boundary, has cell areas proportional to the attributes.
    """

    def __init__(
        self,
        attributes: Sequence[float],
        boundary: Polygon,
        error_threshold: float = DEFAULT_ERROR_THRESHOLD,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        rng: Optional[np.random.Generator] = None,
        reference_extent: Optional[float] = REFERENCE_EXTENT,
    ) -> None:
        """
        Initialize the solver and place the initial sites.

        Args:
            attributes: Target values, one per cell, all positive.
            boundary: Convex region to subdivide, counter-clockwise.
            error_threshold: Relative area error at which the iteration stops.
            max_iterations: Iteration cap.
            rng: Random source for the initial placement.
            reference_extent: Larger side of the frame the iteration runs in,
                None to iterate in the boundary's own units.

        Raises:
            ValueError: If there are no attributes, an attribute is not
                positive, or the boundary has no area.
        """
        if len(attributes) == 0:
            raise ValueError("At least one attribute is required.")
        if any(not value > 0 for value in attributes):
            raise ValueError(f"Attributes must be positive, got {list(attributes)}.")
        if boundary.is_degenerate:
            raise ValueError(f"Boundary polygon has no area: {boundary!r}.")

        self.attributes: List[float] = [float(value) for value in attributes]
        self.boundary = boundary
        self.error_threshold = error_threshold
        self.max_iterations = max_iterations
        self.rng = rng if rng is not None else np.random.default_rng()

        self.error: float = math.inf
        self.iterations: int = 0
        self.sum_attributes: float = math.fsum(self.attributes)

        min_x, min_y, max_x, max_y = boundary.bounds
        if reference_extent is None:
            self._scale = 1.0
            self._origin = Point2D(0.0, 0.0)
        else:
            self._scale = reference_extent / max(max_x - min_x, max_y - min_y)
            self._origin = Point2D(min_x, min_y)
        if self._is_identity_frame:
            self._bound = boundary
        else:
            self._bound = boundary.transformed(self._scale, -self._origin * self._scale)
        self._bound_area = self._bound.area

        self._min_negative_weight = 0.0
        self.sites: List[Site] = self._place_sites()

    @property
    def _is_identity_frame(self) -> bool:
        return self._scale == 1.0 and self._origin == Point2D(0.0, 0.0)

    def target_area(self, site: Site) -> float:
        """Area the cell of `site` should have, in solver frame units."""
        return site.attribute / self.sum_attributes * self._bound_area

    def _random_point(self, rect: Rect) -> Point2D:
        """Uniform point of `rect` that lies inside the boundary."""
        while True:
            x = rect[0] + (rect[1] - rect[0]) * self.rng.random()
            y = rect[2] + (rect[3] - rect[2]) * self.rng.random()
            point = Point2D(x, y)
            if self._bound.contains(point):
                return point

    def _place_sites(self) -> List[Site]:
        """
        Seed one site per attribute with a recursive spatial partition.

        Each group gets its largest member placed at random; the rest is split
        into groups of ascending attributes, each seeded around its own random
        center inside a square sized after the group's share of the area.
        """
        order = np.argsort(self.attributes, kind="stable")
        values = [self.attributes[i] for i in order]
        sites: List[Optional[Site]] = [None] * len(self.attributes)

        min_x, min_y, max_x, max_y = self._bound.bounds
        self._place_group(sites, order.tolist(), values, (min_x, max_x, min_y, max_y))
        return sites  # type: ignore[return-value]

    def _place_group(self, sites: List[Optional[Site]], indices: List[int], values: List[float], rect: Rect) -> None:
        count = len(values)
        point = self._random_point(rect)
        sites[indices[-1]] = Site(point.x, point.y, values[-1], WEIGHT_FLOOR)
        if count == 1:
            return

        limit = GROUP_SPLIT_RATIO * values[-1]
        group_sum = values[0]
        start = 0
        for i in range(1, count):
            group_sum += values[i]
            if group_sum > limit or i == count - 1:
                center = self._random_point(rect)
                half = math.sqrt(group_sum / self.sum_attributes * self._bound_area) / 2
                sub_rect = (center.x - half, center.x + half, center.y - half, center.y + half)
                self._place_group(sites, indices[start:i], values[start:i], sub_rect)

                start = i
                group_sum = values[i]

    def adapt_positions_weights(self) -> None:
        """Move every site to the centroid of its cell and lift its weight to the floor."""
        for site in self.sites:
            if len(site.clip_polygon) >= 3:
                site.location = site.clip_polygon.centroid
            site.weight = max(site.weight, WEIGHT_FLOOR)

    def adapt_weights(self) -> None:
        """Scale every weight towards its target area, then keep the diagram valid."""
        self._min_negative_weight = 0.0
        for site in self.sites:
            area_current = max(site.clip_polygon.area, NEARLY_ZERO * self._bound_area)
            area_target = self.target_area(site)

            radius_current = math.sqrt(area_current / math.pi)
            radius_target = math.sqrt(area_target / math.pi)
            delta_circle = radius_current - radius_target

            f_adapt = area_target / area_current

            # Damping: the correction flipped direction, or it is already small
            if (f_adapt > OSCILLATION_HIGH and site.last_f < OSCILLATION_LOW) or \
                    (f_adapt < OSCILLATION_LOW and site.last_f > OSCILLATION_HIGH):
                f_adapt = math.sqrt(f_adapt)
            if OSCILLATION_LOW < f_adapt < OSCILLATION_HIGH and site.weight != 1.0:
                f_adapt = math.sqrt(f_adapt)

            if site.weight < WEIGHT_PIVOT:
                f_adapt = f_adapt * f_adapt
            if site.weight > WEIGHT_PIVOT:
                f_adapt = math.sqrt(f_adapt)

            site.last_f = f_adapt
            site.weight *= f_adapt

            if site.weight < WEIGHT_FLOOR:
                radius_new = math.sqrt(max(site.weight, 0.0)) - delta_circle
                if radius_new < 0:
                    site.weight = -(radius_new * radius_new)
                    self._min_negative_weight = min(self._min_negative_weight, site.weight)

        if self._min_negative_weight < 0:
            shift = -self._min_negative_weight + WEIGHT_FLOOR
            for site in self.sites:
                site.weight += shift

        self.fix_weights()

    def fix_weights(self) -> None:
        """
        Scale all weights so that no weight difference between neighbors
        exceeds their squared distance.
        """
        f_min = 1.0
        for site in self.sites:
            for neighbor in site.neighbors:
                distance_squared = (site.location - neighbor.location).length_squared
                f = distance_squared / (abs(site.weight - neighbor.weight) + WEIGHT_FLOOR)
                f_min = min(f_min, f)

        for site in self.sites:
            site.weight *= f_min

    def get_error(self) -> float:
        """Largest relative deviation of a cell area from its target."""
        error = 0.0
        for site in self.sites:
            area_target = self.target_area(site)
            error = max(abs(site.clip_polygon.area - area_target) / area_target, error)
        return error

    def compute(self) -> List[Site]:
        """
        Iterate until the area error drops to the threshold or the iteration cap is hit.

        Returns:
            The sites in the order of the attributes, each with its final cell.
            `error` and `iterations` hold the achieved error and the number of
            iterations used, also when the solve did not converge.
        """
        diagram = PowerDiagram(self.sites, self._bound)
        if diagram.compute():
            for i in range(1, self.max_iterations + 1):
                self.adapt_positions_weights()
                self.adapt_weights()
                self.iterations = i
                if not diagram.compute():
                    self.error = math.inf
                    break

                self.error = self.get_error()
                logger.debug(f"Iteration: {i} - Error: {self.error:.6f}")
                if self.error <= self.error_threshold:
                    break
        else:
            self.error = math.inf

        self._restore_frame()
        logger.debug(
            f"Layer of {len(self.sites)} sites finished - Error: {self.error:.6f} - Iterations: {self.iterations}"
        )
        return self.sites

    def _restore_frame(self) -> None:
        """Map sites and cells from the solver frame back into the boundary's units."""
        if self._is_identity_frame:
            return
        inverse = 1.0 / self._scale
        for site in self.sites:
            site.location = site.location * inverse + self._origin
            site.weight *= inverse * inverse
            site.polygon = site.polygon.transformed(inverse, self._origin)
            site.clip_polygon = site.clip_polygon.transformed(inverse, self._origin)
