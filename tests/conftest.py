"""Shared test fixtures for pyscalarfield tests."""

import math

import numpy as np
import pytest

from pyscalarfield import Coordinate, TabulatedField


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------

def quad_2d(x):
    """x0^2 + x1"""
    return x[0] * x[0] + x[1]


def sin_prod_2d(x):
    """sin(x0) * exp(x1)"""
    return math.sin(x[0]) * math.exp(x[1])


TEST_POINTS_2D = [
    [0.5, 0.3],
    [-0.7, 0.8],
    [0.0, 0.0],
    [0.9, -0.9],
    [2.0, 3.0],
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def xy_2d():
    """Static 2D coordinate projections (x0, x1)."""
    return Coordinate(0, 2), Coordinate(1, 2)


@pytest.fixture
def xy_dynamic():
    """Dynamic coordinate projections (x0, x1), run-time dimension 2."""
    return Coordinate(0, 2, dynamic=True), Coordinate(1, 2, dynamic=True)


@pytest.fixture
def table_3rows():
    """Column table with rows [10, 20, 30]."""
    return np.array([[10.0], [20.0], [30.0]])


@pytest.fixture
def tabulated_2d(table_3rows):
    """2D tabulated field over the 3-row table."""
    return TabulatedField(table_3rows, 2)
