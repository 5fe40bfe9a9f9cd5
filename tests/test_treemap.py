import numpy as np
import pytest

from voronoitreemap.config import TreemapSettings
from voronoitreemap.model.sites import Site
from voronoitreemap.model.tree import Tree, TreeNode, accumulate_attributes
from voronoitreemap.solvers import treemap as treemap_module
from voronoitreemap.solvers.treemap import VoronoiTreemap, as_boundary_polygon

UNIT_SQUARE_FLAT = [0.0, 0.0, 1.0, 0.0, 1.0, 1.0, 0.0, 1.0]


def flat_tree(values) -> Tree:
    tree = Tree(None)
    for value in values:
        tree.root.add_child(TreeNode(value))
    accumulate_attributes(tree)
    return tree


def nested_tree() -> Tree:
    tree = Tree(None)
    a = tree.root.add_child(TreeNode(None))
    for value in (3.0, 1.0, 2.0):
        a.add_child(TreeNode(value))
    b = tree.root.add_child(TreeNode(None))
    for value in (4.0, 4.0):
        b.add_child(TreeNode(value))
    tree.root.add_child(TreeNode(5.0))
    accumulate_attributes(tree)
    return tree


def shape(tree: Tree) -> list:
    return [len(node.children) for node in tree.walk()]


def test_two_equal_children(unit_square):
    treemap = VoronoiTreemap(flat_tree([1.0, 1.0]), unit_square, error_threshold=0.05, rng=np.random.default_rng(1))

    result = treemap.compute()

    first, second = (node.attribute for node in result.root.children)
    assert treemap.max_error <= 0.05
    assert first.area == pytest.approx(0.5, rel=0.05)
    assert second.area == pytest.approx(0.5, rel=0.05)
    assert first.area + second.area == pytest.approx(1.0)
    assert not second.contains(first.centroid)
    assert not first.contains(second.centroid)


def test_three_unequal_children(unit_square):
    treemap = VoronoiTreemap(flat_tree([1.0, 2.0, 3.0]), UNIT_SQUARE_FLAT, error_threshold=0.05,
                             rng=np.random.default_rng(2))

    result = treemap.compute()

    areas = [node.attribute.area for node in result.root.children]
    assert treemap.max_error <= 0.05
    for area, expected in zip(areas, (1 / 6, 2 / 6, 3 / 6)):
        assert area == pytest.approx(expected, rel=0.05)
    assert sum(areas) == pytest.approx(1.0)
    assert treemap.actual_iterations >= 1


def test_single_child_takes_parent_region(unit_square, monkeypatch):
    class NoSolver:
        def __init__(self, *args, **kwargs):
            raise AssertionError("a single child must not be solved")

    monkeypatch.setattr(treemap_module, "SingleLayerSolver", NoSolver)
    tree = flat_tree([7.0])

    result = VoronoiTreemap(tree, unit_square).compute()

    child = result.root.children[0].attribute
    assert child is result.root.attribute
    assert child.coordinates() == unit_square.coordinates()


def test_nested_tree_is_isomorphic(octagon):
    tree = nested_tree()
    treemap = VoronoiTreemap(tree, octagon, settings=TreemapSettings(error_threshold=0.2, max_iterations=300),
                             rng=np.random.default_rng(3))

    result = treemap.compute()

    assert shape(result) == shape(tree)
    assert treemap.failed_layers == 0
    assert treemap.max_error <= 0.2
    for node in result.walk():
        if len(node.children) > 1:
            assert sum(child.attribute.area for child in node.children) == pytest.approx(node.attribute.area, rel=1e-6)
    for leaf in result.leaves():
        assert not leaf.attribute.is_degenerate


def test_seeded_runs_match_across_worker_counts(octagon):
    def run(workers: int) -> list:
        settings = TreemapSettings(error_threshold=0.2, max_iterations=300, max_workers=workers)
        result = VoronoiTreemap(nested_tree(), octagon, settings=settings, rng=np.random.default_rng(9)).compute()
        return [node.attribute.coordinates() for node in result.walk()]

    assert run(3) == run(1)
    assert run(3) == run(3)


def test_site_count_mismatch_leaves_subtree_empty(unit_square, monkeypatch):
    class ShortSolver:
        def __init__(self, attributes, boundary, **kwargs):
            self.error = 0.0
            self.iterations = 1

        def compute(self):
            return []

    monkeypatch.setattr(treemap_module, "SingleLayerSolver", ShortSolver)
    tree = nested_tree()
    treemap = VoronoiTreemap(tree, unit_square)

    result = treemap.compute()

    assert treemap.failed_layers == 1
    assert shape(result) == shape(tree)
    assert all(len(node.attribute) == 0 for node in result.walk() if node is not result.root)


def test_degenerate_region_leaves_subtree_empty(unit_square, monkeypatch):
    class EmptyCellSolver:
        def __init__(self, attributes, boundary, **kwargs):
            self.attributes = attributes
            self.error = 0.0
            self.iterations = 1

        def compute(self):
            return [Site(0.5, 0.5, value) for value in self.attributes]

    monkeypatch.setattr(treemap_module, "SingleLayerSolver", EmptyCellSolver)
    tree = nested_tree()
    treemap = VoronoiTreemap(tree, unit_square)

    result = treemap.compute()

    # Both internal children of the root get an empty region
    assert treemap.failed_layers == 2
    assert shape(result) == shape(tree)


def test_boundary_forms(unit_square):
    pairs = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]

    for boundary in (unit_square, UNIT_SQUARE_FLAT, pairs, np.array(pairs)):
        assert as_boundary_polygon(boundary).coordinates() == pairs


@pytest.mark.parametrize("boundary, error", [
    ("square", TypeError),
    ([0.0, 0.0, 1.0, 0.0], ValueError),
    ([0.0, 0.0, 1.0], ValueError),
    ([0.0, 0.0, 1.0, 1.0, 2.0, 2.0], ValueError),
])
def test_bad_boundaries(boundary, error):
    with pytest.raises(error):
        VoronoiTreemap(flat_tree([1.0, 1.0]), boundary)


def test_invalid_settings(unit_square):
    with pytest.raises(ValueError):
        VoronoiTreemap(flat_tree([1.0, 1.0]), unit_square, error_threshold=0.0)
    with pytest.raises(ValueError):
        VoronoiTreemap(flat_tree([1.0, 1.0]), unit_square, settings=TreemapSettings(max_workers=0))


def counting_solver(errors):
    """Solver stand-in reporting `errors[k]` on its k-th construction, counted in `calls`."""
    calls = []

    class CountingSolver:
        def __init__(self, attributes, boundary, **kwargs):
            calls.append(kwargs)
            self.attributes = attributes
            self.boundary = boundary
            self.error = errors[min(len(calls), len(errors)) - 1]
            self.iterations = len(calls)

        def compute(self):
            sites = [Site(0.5, 0.5, value) for value in self.attributes]
            for site in sites:
                site.clip_polygon = self.boundary
            return sites

    return CountingSolver, calls


def test_layer_is_retried_up_to_the_cap(unit_square, monkeypatch):
    solver, calls = counting_solver([0.5 + k / 100 for k in range(30)])
    monkeypatch.setattr(treemap_module, "SingleLayerSolver", solver)
    settings = TreemapSettings(error_threshold=0.01, max_workers=1)
    treemap = VoronoiTreemap(flat_tree([1.0, 2.0]), unit_square, settings=settings)

    result = treemap.compute()

    assert len(calls) == 20
    assert treemap.actual_iterations == 20
    assert treemap.max_error == pytest.approx(0.69)
    assert treemap.failed_layers == 0
    assert len(result.root.children) == 2


def test_retries_stop_at_the_first_converged_attempt(unit_square, monkeypatch):
    solver, calls = counting_solver([0.3, 0.2, 0.005, 0.001])
    monkeypatch.setattr(treemap_module, "SingleLayerSolver", solver)
    settings = TreemapSettings(error_threshold=0.01, max_retries=5, max_workers=1)
    treemap = VoronoiTreemap(flat_tree([1.0, 2.0]), unit_square, settings=settings)

    treemap.compute()

    assert len(calls) == 3
    assert treemap.actual_iterations == 3
    assert treemap.max_error == pytest.approx(0.005)
