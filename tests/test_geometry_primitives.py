import numpy as np
import pytest

from voronoitreemap.model.geometry_primitives import Point2D, Polygon, Vector3D
from voronoitreemap.model.geometry_utils import area_sign, flat_to_pairs, remove_duplicate_vertices


def test_point_arithmetic():
    a = Point2D(1.0, 2.0)
    b = Point2D(3.0, -1.0)

    assert a + b == Point2D(4.0, 1.0)
    assert a - b == Point2D(-2.0, 3.0)
    assert a * 2.0 == Point2D(2.0, 4.0)
    assert -a == Point2D(-1.0, -2.0)
    assert a.dot(b) == pytest.approx(1.0)
    assert a.cross(b) == pytest.approx(-7.0)
    assert Point2D(3.0, 4.0).magnitude == pytest.approx(5.0)
    assert a.distance_to(a) == 0.0


def test_vector_cross_and_normalize():
    x = Vector3D(1.0, 0.0, 0.0)
    y = Vector3D(0.0, 1.0, 0.0)

    assert x.cross(y) == Vector3D(0.0, 0.0, 1.0)
    assert Vector3D(0.0, 3.0, 4.0).normalize().magnitude == pytest.approx(1.0)
    assert Vector3D(0.0, 0.0, 0.0).normalize() == Vector3D(0.0, 0.0, 0.0)
    with pytest.raises(ZeroDivisionError):
        _ = x / 0.0


def test_polygon_area_centroid_bounds(unit_square):
    assert len(unit_square) == 4
    assert unit_square.area == pytest.approx(1.0)
    assert unit_square.signed_area > 0
    assert unit_square.centroid.x == pytest.approx(0.5)
    assert unit_square.centroid.y == pytest.approx(0.5)
    assert unit_square.bounds == (0.0, 0.0, 1.0, 1.0)
    assert not unit_square.is_degenerate


def test_polygon_clockwise_has_negative_signed_area():
    polygon = Polygon([(0.0, 0.0), (0.0, 2.0), (2.0, 2.0), (2.0, 0.0)])

    assert polygon.signed_area == pytest.approx(-4.0)
    assert polygon.area == pytest.approx(4.0)


def test_polygon_flat_round_trip(octagon):
    flat = octagon.to_flat_list()

    assert len(flat) == 16
    assert Polygon.from_flat(flat).coordinates() == octagon.coordinates()


def test_polygon_contains(unit_square):
    assert unit_square.contains(Point2D(0.5, 0.5))
    assert unit_square.contains(Point2D(1.0, 0.5))
    assert not unit_square.contains(Point2D(1.5, 0.5))
    assert not Polygon().contains(Point2D(0.0, 0.0))


def test_polygon_transformed(unit_square):
    moved = unit_square.transformed(10.0, Point2D(5.0, -5.0))

    assert moved.area == pytest.approx(100.0)
    assert moved.bounds == (5.0, -5.0, 15.0, 5.0)


def test_polygon_is_read_only(unit_square):
    with pytest.raises(ValueError):
        unit_square.vertices[0, 0] = 3.0


def test_empty_polygon():
    empty = Polygon()

    assert len(empty) == 0
    assert empty.area == 0.0
    assert empty.is_degenerate
    with pytest.raises(ValueError):
        _ = empty.centroid
    with pytest.raises(ValueError):
        _ = empty.bounds


def test_polygon_rejects_bad_shape():
    with pytest.raises(ValueError):
        Polygon([(0.0, 0.0, 1.0), (1.0, 0.0, 1.0)])


def test_polygon_from_points():
    polygon = Polygon.from_points([Point2D(0.0, 0.0), Point2D(2.0, 0.0), Point2D(0.0, 2.0)])

    assert polygon.area == pytest.approx(2.0)
    assert polygon[1] == Point2D(2.0, 0.0)


def test_flat_to_pairs_odd_length():
    with pytest.raises(ValueError):
        flat_to_pairs([0.0, 1.0, 2.0])
    assert flat_to_pairs([0.0, 1.0, 2.0, 3.0]).shape == (2, 2)


def test_area_sign():
    assert area_sign((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), 1e-9) == 1
    assert area_sign((0.0, 0.0), (0.0, 1.0), (1.0, 0.0), 1e-9) == -1
    assert area_sign((0.0, 0.0), (1.0, 1.0), (2.0, 2.0), 1e-9) == 0


def test_remove_duplicate_vertices():
    points = [(0.0, 0.0), (0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (1.0, 1.0 + 1e-12), (0.0, 0.0)]

    assert remove_duplicate_vertices(points, 1e-9) == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]
    assert remove_duplicate_vertices([], 1e-9) == []


def test_polygon_from_array():
    array = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])

    assert Polygon(array).area == pytest.approx(0.5)
