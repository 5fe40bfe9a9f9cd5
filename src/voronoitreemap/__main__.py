"""Demo run: lays out a random three-level tree inside an octagon."""
import logging

import numpy as np

from voronoitreemap.config import TreemapSettings
from voronoitreemap.dev import timer
from voronoitreemap.logging_config import setup_logging
from voronoitreemap.model.tree import Tree, TreeNode, accumulate_attributes
from voronoitreemap.solvers.treemap import VoronoiTreemap

logger = logging.getLogger(__name__)

# Regular octagon in a 900 x 900 box, shifted by 20
OCTAGON = [
    263.6, 0.0,
    649.26, 0.0,
    900.0, 263.6,
    900.0, 649.26,
    649.26, 900.0,
    263.6, 900.0,
    0.0, 649.26,
    0.0, 263.6,
]
BOUNDARY = [value + 20.0 for value in OCTAGON]


def build_random_tree(rng: np.random.Generator, depth: int = 3, max_children: int = 6) -> Tree[float]:
    tree: Tree[float] = Tree(0.0)
    frontier = [tree.root]
    for level in range(depth):
        next_frontier = []
        for node in frontier:
            for _ in range(int(rng.integers(2, max_children + 1))):
                value = float(rng.integers(1, 100)) if level == depth - 1 else 0.0
                next_frontier.append(node.add_child(TreeNode(value)))
        frontier = next_frontier
    accumulate_attributes(tree)
    return tree


@timer
def main() -> None:
    rng = np.random.default_rng(2024)
    tree = build_random_tree(rng)
    logger.info(f"Attribute tree: {len(tree.leaves())} leaves, depth {tree.root.depth()}")

    settings = TreemapSettings(error_threshold=0.2, max_iterations=300)
    treemap = VoronoiTreemap(tree, BOUNDARY, settings=settings, rng=rng)
    result = treemap.compute()

    total = sum(node.attribute.area for node in result.leaves())
    logger.info(f"Boundary area: {treemap.boundary.area:.2f} - Leaf area sum: {total:.2f}")
    logger.info(f"Max error: {treemap.max_error:.4f} - Max iterations: {treemap.actual_iterations}")


if __name__ == "__main__":
    setup_logging(level=logging.INFO)
    main()
