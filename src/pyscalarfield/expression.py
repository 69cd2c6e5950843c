"""Base classes of the field expression graph.

Every node of an expression tree derives from :class:`FieldExpression`,
which fixes the protocol shared by the whole graph: point evaluation,
base space dimension, forwarding of an external row index to stateful
leaves, and the finite-difference step size. Scalar-valued nodes derive
from :class:`ScalarExpression`, which adds the arithmetic operator
surface and differentiation.

Evaluation is a single recursive pass: the public :meth:`evaluate`
converts the point once, and nodes call each other's ``_evaluate``
directly. Floating point special values are never trapped; division by
zero or the logarithm of a negative number yield ``inf``/``nan`` which
propagate through the tree.
"""

from __future__ import annotations

import copy

import numpy as np

from pyscalarfield._validation import (
    DEFAULT_STEP,
    DYNAMIC,
    _as_point,
    _check_dimension,
    _check_step,
)


class FieldExpression:
    """Abstract node of a field expression tree.

    Parameters
    ----------
    dimension : int
        Dimension of the base space the field is defined on.
    dynamic : bool, optional
        If True the dimension is a run-time quantity that can be changed
        with :meth:`resize`. If False (default) the dimension is part of
        the node's identity and two static nodes of different dimension
        cannot be combined.
    """

    # numpy defers to our reflected operators (e.g. ``np.float64(2) * f``)
    __array_ufunc__ = None

    # attribute names holding child nodes, walked by _clone
    _operands: tuple = ()

    def __init__(self, dimension: int, dynamic: bool = False):
        dimension = _check_dimension(dimension)
        if dynamic:
            self.static_dimension = DYNAMIC
            self._dynamic_dimension = dimension
        else:
            self.static_dimension = dimension
            self._dynamic_dimension = 0
        self._step = DEFAULT_STEP

    # ------------------------------------------------------------------
    # Dimension
    # ------------------------------------------------------------------

    @property
    def is_dynamic(self) -> bool:
        """True if the base space dimension is decided at run time."""
        return self.static_dimension == DYNAMIC

    def inner_dimension(self) -> int:
        """Return the dimension of the base space."""
        if self.is_dynamic:
            return self._dynamic_dimension
        return self.static_dimension

    @property
    def resize(self):
        """Rebind the run-time dimension of a dynamic expression.

        Only dynamic expressions expose this method; on a static
        expression accessing ``resize`` raises ``AttributeError``.
        """
        if not self.is_dynamic:
            raise AttributeError(
                f"{type(self).__name__} has static dimension "
                f"{self.static_dimension} and cannot be resized"
            )
        return self._resize

    def _resize(self, n: int) -> None:
        self._dynamic_dimension = _check_dimension(n)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _evaluate(self, p: np.ndarray):
        raise NotImplementedError

    def evaluate(self, point):
        """Evaluate the expression at *point*.

        Parameters
        ----------
        point : array_like of shape (d,)
            Query point, one coordinate per base space dimension.

        Returns
        -------
        float or ndarray
            Field value (scalar nodes) or derivative array (gradient,
            Hessian).

        Raises
        ------
        ValueError
            If *point* is not 1-D, or a node checking the point length
            finds it different from its dimension.
        """
        p = _as_point(point)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            return self._evaluate(p)

    def __call__(self, point):
        return self.evaluate(point)

    def evaluate_batch(self, points) -> np.ndarray:
        """Evaluate the expression at every row of *points*.

        Parameters
        ----------
        points : array_like of shape (n, d)
            Query points, one per row.

        Returns
        -------
        ndarray
            Results stacked along the first axis.
        """
        pts = self._as_points(points)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            results = [self._evaluate(p) for p in pts]
        return self._stack(results, len(pts))

    def evaluate_rows(self, points) -> np.ndarray:
        """Evaluate row by row, forwarding each row index first.

        For each ``i`` calls ``forward(i)`` and then evaluates at
        ``points[i]``, so tabulated leaves anywhere in the tree report
        the value of row ``i``.

        Parameters
        ----------
        points : array_like of shape (n, d)
            Query points, row ``i`` paired with table row ``i``.

        Returns
        -------
        ndarray
            Results stacked along the first axis.
        """
        pts = self._as_points(points)
        results = []
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            for i, p in enumerate(pts):
                self.forward(i)
                results.append(self._evaluate(p))
        return self._stack(results, len(pts))

    @staticmethod
    def _as_points(points) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2:
            raise ValueError(
                f"points must be a 2-D array of shape (n, d), got shape {pts.shape}"
            )
        return pts

    def _value_shape(self) -> tuple:
        """Shape of a single evaluation result."""
        return ()

    def _stack(self, results, n: int) -> np.ndarray:
        if n == 0:
            return np.empty((0,) + self._value_shape())
        return np.stack([np.asarray(r, dtype=float) for r in results])

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def _clone(self, memo: dict | None = None) -> "FieldExpression":
        """Copy the tree rooted at this node, iteratively.

        Every node is shallow-copied, so leaves share their external
        resources (tabulated tables, wrapped callables) while cached
        values and step sizes become independent. A node reached twice
        is copied once.
        """
        if memo is None:
            memo = {}
        root = memo.get(id(self))
        if root is not None:
            return root
        root = copy.copy(self)
        memo[id(self)] = root
        stack = [root]
        while stack:
            node = stack.pop()
            for name in node._operands:
                child = getattr(node, name)
                clone = memo.get(id(child))
                if clone is None:
                    clone = copy.copy(child)
                    memo[id(child)] = clone
                    stack.append(clone)
                setattr(node, name, clone)
        return root

    def __deepcopy__(self, memo):
        return self._clone(memo)

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    def forward(self, index: int) -> "FieldExpression":
        """Propagate an external row index to stateful leaves.

        Does nothing unless overridden. Returns ``self``.
        """
        return self

    # ------------------------------------------------------------------
    # Finite-difference step
    # ------------------------------------------------------------------

    def set_step(self, h: float) -> None:
        """Set the step size used when this expression is differentiated."""
        self._step = _check_step(h)

    def step(self) -> float:
        return self._step

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def _dims_repr(self) -> str:
        if self.is_dynamic:
            return f"dynamic({self._dynamic_dimension})"
        return str(self.static_dimension)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dims={self._dims_repr()})"


def _binary_method(ufunc, symbol: str, reflected: bool = False):
    """Build an arithmetic dunder that lifts its operands into a BinaryOp."""

    def method(self, other):
        from pyscalarfield.operations import _combine
        return _combine(self, other, ufunc, symbol, reflected)

    return method


class ScalarExpression(FieldExpression):
    """Scalar-valued field expression.

    Adds the operator surface (``+ - * /`` between expressions and with
    numeric literals, unary ``-``) and numerical differentiation.

    Examples
    --------
    >>> from pyscalarfield import Coordinate, sin
    >>> x, y = Coordinate(0, 2), Coordinate(1, 2)
    >>> f = sin(x) * y + 1.0
    >>> round(f([0.5, 2.0]), 6)
    1.958851
    """

    __add__ = _binary_method(np.add, "+")
    __radd__ = _binary_method(np.add, "+", reflected=True)
    __sub__ = _binary_method(np.subtract, "-")
    __rsub__ = _binary_method(np.subtract, "-", reflected=True)
    __mul__ = _binary_method(np.multiply, "*")
    __rmul__ = _binary_method(np.multiply, "*", reflected=True)
    __truediv__ = _binary_method(np.divide, "/")
    __rtruediv__ = _binary_method(np.divide, "/", reflected=True)

    def evaluate(self, point) -> float:
        return float(super().evaluate(point))

    def __neg__(self):
        from pyscalarfield.operations import Negation
        return Negation(self)

    def derive(self, nest_as_ref: bool = False):
        """Return the central-difference gradient of this expression.

        The returned :class:`~pyscalarfield.derivatives.Gradient` uses this
        expression's current step size.

        Parameters
        ----------
        nest_as_ref : bool, optional
            If True the gradient references this expression instead of
            owning a copy of it. Default is False.
        """
        from pyscalarfield.derivatives import Gradient
        return Gradient(self, self._step, nest_as_ref=nest_as_ref)

    def derive_twice(self, nest_as_ref: bool = False, symmetric: bool = True):
        """Return the finite-difference Hessian of this expression.

        Parameters
        ----------
        nest_as_ref : bool, optional
            If True the Hessian references this expression instead of
            owning a copy of it. Default is False.
        symmetric : bool, optional
            If True (default) each off-diagonal entry is computed once
            and mirrored.
        """
        from pyscalarfield.derivatives import Hessian
        return Hessian(self, self._step, nest_as_ref=nest_as_ref, symmetric=symmetric)
