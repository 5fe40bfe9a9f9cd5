"""
Voronoi Treemap
===============
Hierarchical power-diagram treemap layout: a tree of positive attributes and
a convex boundary polygon go in, a tree of convex cell polygons whose areas
are proportional to the attributes comes out.

Exports:
    VoronoiTreemap: Lays out a whole attribute tree.
    SingleLayerSolver: Lays out one level.
    TreemapSettings: Tunable parameters.
    Tree, TreeNode, Polygon, Point2D: Input and output data structures.
    accumulate_attributes: Prepares the internal attributes of a tree.
"""
from voronoitreemap.config import TreemapSettings
from voronoitreemap.model.geometry_primitives import Point2D, Polygon
from voronoitreemap.model.tree import Tree, TreeNode, accumulate_attributes
from voronoitreemap.solvers.single_layer import SingleLayerSolver
from voronoitreemap.solvers.treemap import VoronoiTreemap

__all__ = [
    "Point2D",
    "Polygon",
    "SingleLayerSolver",
    "Tree",
    "TreeNode",
    "TreemapSettings",
    "VoronoiTreemap",
    "accumulate_attributes",
]
