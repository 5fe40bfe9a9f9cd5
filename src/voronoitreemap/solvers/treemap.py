"""
Voronoi Treemap
===============
Lays out a whole attribute tree by solving one single-layer problem per
internal node, top-down.

Why is this file needed?
------------------------
1. Recursion: Each solved layer hands its cells to the children as their regions.
2. Retries: A layer that misses the error threshold is solved again from a fresh placement.
3. Parallelism: Sibling subtrees are independent once their regions are known,
   so they are laid out on a bounded pool of worker threads.

Classes:
    VoronoiTreemap: The tree orchestrator.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from numbers import Real
from typing import List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from voronoitreemap.config import DEFAULT_ERROR_THRESHOLD, DEFAULT_MAX_ITERATIONS, TreemapSettings
from voronoitreemap.model.geometry_primitives import Polygon
from voronoitreemap.model.tree import Tree, TreeNode
from voronoitreemap.solvers.single_layer import SingleLayerSolver

logger = logging.getLogger(__name__)

BoundaryLike = Union[Polygon, Sequence[float], Sequence[Sequence[float]]]

# (attribute node, treemap node, random source of the subtree)
Job = Tuple[TreeNode[float], TreeNode[Polygon], np.random.Generator]


def as_boundary_polygon(boundary: BoundaryLike) -> Polygon:
    """
    Convert the caller's boundary into a Polygon.

    Args:
        boundary: A Polygon, a flat [x0, y0, x1, y1, ...] list or a sequence of (x, y) pairs,
            describing a convex polygon counter-clockwise.

    Raises:
        TypeError: If the boundary is none of the accepted forms.
        ValueError: If it has fewer than 3 points or no area.
    """
    if isinstance(boundary, Polygon):
        polygon = boundary
    elif isinstance(boundary, (list, tuple, np.ndarray)):
        if len(boundary) > 0 and isinstance(boundary[0], Real):
            polygon = Polygon.from_flat(boundary)
        else:
            polygon = Polygon(boundary)
    else:
        raise TypeError(f"Unsupported boundary type: {type(boundary).__name__}.")

    if len(polygon) < 3:
        raise ValueError(f"Boundary needs at least 3 points, got {len(polygon)}.")
    if polygon.area <= 0.0:
        raise ValueError("Boundary polygon has no area.")
    return polygon


@dataclass
class LayerReport:
    """Diagnostics of one or more solved layers."""
    error: float = 0.0
    iterations: int = 0
    failed: int = 0

    def merge(self, other: LayerReport) -> None:
        self.error = max(self.error, other.error)
        self.iterations = max(self.iterations, other.iterations)
        self.failed += other.failed


class VoronoiTreemap:
    """
    Class for computing a Voronoi treemap.

    Every node of the resulting tree holds the convex polygon of the
    corresponding node of the attribute tree.
    """

    def __init__(
        self,
        attribute_tree: Tree[float],
        boundary: BoundaryLike,
        error_threshold: float = DEFAULT_ERROR_THRESHOLD,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        settings: Optional[TreemapSettings] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """
        Initialize the treemap problem.

        Args:
            attribute_tree: Tree of positive attributes (see `accumulate_attributes`).
            boundary: Convex region of the root, counter-clockwise.
            error_threshold: Relative area error a layer has to reach.
            max_iterations: Iteration cap of a single-layer solve.
            settings: Full settings; overrides `error_threshold` and `max_iterations`.
            rng: Random source; every subtree gets its own generator spawned from it.
        """
        self.attribute_tree = attribute_tree
        self.boundary = as_boundary_polygon(boundary)
        self.settings = settings if settings is not None else TreemapSettings(
            error_threshold=error_threshold,
            max_iterations=max_iterations,
        )
        self.settings.validate()
        self.rng = rng if rng is not None else np.random.default_rng()

        self.treemap: Optional[Tree[Polygon]] = None
        self._report = LayerReport()

    @property
    def max_error(self) -> float:
        """Largest area error of any layer of the last computation."""
        return self._report.error

    @property
    def actual_iterations(self) -> int:
        """Largest iteration count of any single-layer solve of the last computation."""
        return self._report.iterations

    @property
    def failed_layers(self) -> int:
        """Number of layers left unsolved because of a degenerate region or a site count mismatch."""
        return self._report.failed

    def compute(self) -> Tree[Polygon]:
        """
        Lay out the whole attribute tree.

        Returns:
            A tree isomorphic to the attribute tree whose attributes are the cell polygons.
        """
        self.treemap = Tree(self.boundary)
        report = LayerReport()
        root_job: Job = (self.attribute_tree.root, self.treemap.root, self.rng)

        if self.settings.max_workers == 1:
            jobs: List[Job] = [root_job]
            while jobs:
                layer, children = self._compute_layer(*jobs.pop())
                report.merge(layer)
                jobs.extend(reversed(children))
        else:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="treemap") as executor:
                pending: Set[Future] = {executor.submit(self._compute_layer, *root_job)}
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        layer, children = future.result()
                        report.merge(layer)
                        pending.update(executor.submit(self._compute_layer, *job) for job in children)

        self._report = report
        logger.info(
            f"Treemap finished - Max error: {report.error:.6f} - "
            f"Max iterations: {report.iterations} - Failed layers: {report.failed}"
        )
        return self.treemap

    def _compute_layer(
        self,
        attribute_node: TreeNode[float],
        treemap_node: TreeNode[Polygon],
        rng: np.random.Generator,
    ) -> Tuple[LayerReport, List[Job]]:
        """
        Subdivide the region of `treemap_node` among the children of `attribute_node`.

        Returns:
            The diagnostics of this layer and the jobs of the children, in child order.
        """
        report = LayerReport()
        children = attribute_node.children
        count = len(children)
        if count == 0:
            return report, []

        region = treemap_node.attribute
        if count == 1:
            # Nothing to subdivide: the only child takes the parent's region as is
            node = treemap_node.add_child(TreeNode(region))
            return report, [(children[0], node, rng)]

        if region.is_degenerate:
            logger.warning(f"Region of a node with {count} children is degenerate, subtree left empty.")
            self._mirror_empty(attribute_node, treemap_node)
            report.failed = 1
            return report, []

        attributes = [child.attribute for child in children]
        settings = self.settings
        for attempt in range(1, settings.max_retries + 1):
            solver = SingleLayerSolver(
                attributes,
                region,
                error_threshold=settings.error_threshold,
                max_iterations=settings.max_iterations,
                rng=rng,
                reference_extent=settings.reference_extent,
            )
            sites = solver.compute()
            if solver.error <= settings.error_threshold:
                logger.info(f"Layer of {count} cells converged - Error: {solver.error:.6f} - "
                            f"Iterations: {solver.iterations} - Attempt: {attempt}")
                break
        else:
            logger.warning(f"Layer of {count} cells did not converge after {settings.max_retries} attempts - "
                           f"Error: {solver.error:.6f}")

        report.error = solver.error
        report.iterations = solver.iterations

        if len(sites) != count:
            logger.warning(f"Solver returned {len(sites)} sites for {count} children, subtree left empty.")
            self._mirror_empty(attribute_node, treemap_node)
            report.failed = 1
            return report, []

        jobs: List[Job] = []
        for child, site, child_rng in zip(children, sites, rng.spawn(count)):
            node = treemap_node.add_child(TreeNode(site.clip_polygon))
            jobs.append((child, node, child_rng))
        return report, jobs

    @staticmethod
    def _mirror_empty(attribute_node: TreeNode[float], treemap_node: TreeNode[Polygon]) -> None:
        """Give every descendant of `attribute_node` an empty polygon."""
        stack = [(attribute_node, treemap_node)]
        while stack:
            source, target = stack.pop()
            for child in source.children:
                stack.append((child, target.add_child(TreeNode(Polygon()))))
