import numpy as np
import pytest

from voronoitreemap.model.geometry_primitives import Polygon


@pytest.fixture
def unit_square() -> Polygon:
    return Polygon([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])


@pytest.fixture
def octagon() -> Polygon:
    flat = [
        263.6, 0.0, 649.26, 0.0, 900.0, 263.6, 900.0, 649.26,
        649.26, 900.0, 263.6, 900.0, 0.0, 649.26, 0.0, 263.6,
    ]
    return Polygon.from_flat([value + 20.0 for value in flat])


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(123)
