"""Leaf nodes of the expression graph: constants, tabulated data, callables."""

from __future__ import annotations

import operator
from typing import Callable

import numpy as np

from pyscalarfield._validation import _check_dimension, _is_scalar
from pyscalarfield.expression import ScalarExpression


class Constant(ScalarExpression):
    """A scalar literal living in a *dimension*-D base space.

    Parameters
    ----------
    value : float
        The constant value returned at every point.
    dimension : int
        Base space dimension.
    dynamic : bool, optional
        Whether the dimension is a run-time quantity. Default is False.
    """

    def __init__(self, value: float, dimension: int, dynamic: bool = False):
        if not _is_scalar(value):
            raise TypeError(f"Constant value must be a real number, got {type(value).__name__}")
        super().__init__(dimension, dynamic)
        self.value = float(value)

    def _evaluate(self, p: np.ndarray) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"Constant(value={self.value}, dims={self._dims_repr()})"

    def __str__(self) -> str:
        return repr(self.value)


class TabulatedField(ScalarExpression):
    """Field backed by one column of an externally owned table.

    The node acts as a scalar once a row has been forwarded to it:
    :meth:`forward` copies ``data[i, 0]`` into a cache and evaluation
    returns that cached value whatever the query point. The table is
    referenced, never copied, and must outlive every expression
    containing this leaf. Copies of the leaf (made when it is nested by
    value into a composite) share the table but hold their own cache.

    The cache is not thread-safe: concurrent ``forward`` and ``evaluate``
    calls on the same leaf must be serialized by the caller.

    Parameters
    ----------
    data : ndarray of shape (n_rows, 1) or (n_rows,)
        Row-indexed table, one scalar per row.
    dimension : int
        Base space dimension.
    dynamic : bool, optional
        Whether the dimension is a run-time quantity. Default is False.
    """

    def __init__(self, data, dimension: int, dynamic: bool = False):
        super().__init__(dimension, dynamic)
        data = np.asarray(data)
        if data.ndim not in (1, 2) or (data.ndim == 2 and data.shape[1] != 1):
            raise ValueError(
                f"Tabulated data must have shape (n_rows, 1) or (n_rows,), "
                f"got {data.shape}"
            )
        self._data = data
        self._value = 0.0

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def n_rows(self) -> int:
        return self._data.shape[0]

    def forward(self, index: int) -> "TabulatedField":
        """Load row *index* of the table into the cached value."""
        i = operator.index(index)
        if i < 0 or i >= self.n_rows:
            raise IndexError(f"Row {i} out of range [0, {self.n_rows - 1}]")
        if self._data.ndim == 2:
            self._value = float(self._data[i, 0])
        else:
            self._value = float(self._data[i])
        return self

    def _evaluate(self, p: np.ndarray) -> float:
        return self._value

    def __repr__(self) -> str:
        return f"TabulatedField(rows={self.n_rows}, dims={self._dims_repr()})"

    def __str__(self) -> str:
        return "data[i]"


class ScalarField(ScalarExpression):
    """Field defined by a Python callable ``f(point) -> float``.

    The callable receives the query point as a 1-D float array. Copies of
    the leaf (made when it is nested by value) share the callable.

    Parameters
    ----------
    function : callable
        The field. Must accept an array of length *dimension*.
    dimension : int
        Base space dimension.
    dynamic : bool, optional
        Whether the dimension is a run-time quantity. Default is False.
    """

    def __init__(self, function: Callable, dimension: int, dynamic: bool = False):
        if not callable(function):
            raise TypeError(f"function must be callable, got {type(function).__name__}")
        super().__init__(dimension, dynamic)
        self.function = function

    def _evaluate(self, p: np.ndarray) -> float:
        return self.function(p)

    def __str__(self) -> str:
        return getattr(self.function, "__name__", "f") + "(x)"


class Coordinate(ScalarExpression):
    """The coordinate projection ``p -> p[index]``.

    Parameters
    ----------
    index : int
        Coordinate to extract, in ``[0, dimension)``.
    dimension : int
        Base space dimension.
    dynamic : bool, optional
        Whether the dimension is a run-time quantity. Default is False.
    """

    def __init__(self, index: int, dimension: int, dynamic: bool = False):
        super().__init__(dimension, dynamic)
        index = operator.index(index)
        if index < 0 or index >= self.inner_dimension():
            raise ValueError(
                f"Coordinate index {index} out of range [0, {self.inner_dimension() - 1}]"
            )
        self.index = index

    def _resize(self, n: int) -> None:
        n = _check_dimension(n)
        if n <= self.index:
            raise ValueError(
                f"Cannot resize to {n}: coordinate index {self.index} would be out of range"
            )
        super()._resize(n)

    def _evaluate(self, p: np.ndarray) -> float:
        return p[self.index]

    def __repr__(self) -> str:
        return f"Coordinate(index={self.index}, dims={self._dims_repr()})"

    def __str__(self) -> str:
        return f"x{self.index}"
