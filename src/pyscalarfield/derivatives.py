"""Finite-difference gradient and Hessian of scalar field expressions.

Both wrappers are themselves field expressions: they share the base
expression's dimension, forward row indices to it, and re-evaluate the
whole base subtree at every stencil point (nothing is memoized between
stencil points). With ``e_k`` the ``k``-th standard basis vector and
``h`` the wrapper's step size:

.. math::

    \\partial_k f(p) \\approx \\frac{f(p + h e_k) - f(p - h e_k)}{2h}

    \\partial_{kk} f(p) \\approx \\frac{f(p + h e_k) - 2 f(p) + f(p - h e_k)}{h^2}

    \\partial_{ij} f(p) \\approx \\frac{f(p + h e_i + h e_j) - f(p + h e_i - h e_j)
        - f(p - h e_i + h e_j) + f(p - h e_i - h e_j)}{4h^2}

All three stencils are second-order accurate in ``h``. No boundary
handling is done: the base expression is evaluated wherever the stencil
lands.
"""

from __future__ import annotations

import numpy as np

from pyscalarfield._validation import DEFAULT_STEP, _check_point, _check_step
from pyscalarfield.expression import FieldExpression, ScalarExpression
from pyscalarfield.operations import _nest


class _DerivativeExpression(FieldExpression):
    """Shared state of the derivative wrappers: base expression and step."""

    _operands = ("expression",)

    def __init__(self, expression: ScalarExpression, step: float = DEFAULT_STEP,
                 nest_as_ref: bool = False):
        expression = _nest(expression, nest_as_ref)
        super().__init__(expression.inner_dimension(), dynamic=expression.is_dynamic)
        self.expression = expression
        self._step = _check_step(step)

    def _resize(self, n: int) -> None:
        # the stencil lives in the base expression's space
        self.expression.resize(n)
        super()._resize(n)

    def forward(self, index: int) -> "_DerivativeExpression":
        self.expression.forward(index)
        return self


class Gradient(_DerivativeExpression):
    """Central-difference gradient of a scalar expression.

    Evaluation returns an array of shape ``(d,)``.

    Parameters
    ----------
    expression : ScalarExpression
        The field to differentiate.
    step : float, optional
        Finite-difference step size. Default is ``1e-3``.
    nest_as_ref : bool, optional
        Reference *expression* instead of owning a copy of it.
    """

    def _evaluate(self, p: np.ndarray) -> np.ndarray:
        d = self.inner_dimension()
        _check_point(p, d)
        h = self._step
        f = self.expression._evaluate
        grad = np.empty(d)
        q = p.copy()
        for k in range(d):
            q[k] = p[k] + h
            f_plus = f(q)
            q[k] = p[k] - h
            f_minus = f(q)
            q[k] = p[k]
            grad[k] = (f_plus - f_minus) / (2.0 * h)
        return grad

    def _value_shape(self) -> tuple:
        return (self.inner_dimension(),)

    def __str__(self) -> str:
        return f"grad({self.expression})"


class Hessian(_DerivativeExpression):
    """Finite-difference Hessian of a scalar expression.

    Evaluation returns an array of shape ``(d, d)``.

    Parameters
    ----------
    expression : ScalarExpression
        The field to differentiate twice.
    step : float, optional
        Finite-difference step size. Default is ``1e-3``.
    nest_as_ref : bool, optional
        Reference *expression* instead of owning a copy of it.
    symmetric : bool, optional
        If True (default) each off-diagonal entry is computed once and
        mirrored, so the result is exactly symmetric. If False both
        triangles are computed independently and agree only up to
        round-off.
    """

    def __init__(self, expression: ScalarExpression, step: float = DEFAULT_STEP,
                 nest_as_ref: bool = False, symmetric: bool = True):
        super().__init__(expression, step, nest_as_ref)
        self.symmetric = symmetric

    def _evaluate(self, p: np.ndarray) -> np.ndarray:
        d = self.inner_dimension()
        _check_point(p, d)
        h = self._step
        f = self.expression._evaluate
        hess = np.empty((d, d))
        q = p.copy()

        f_center = f(p)
        for k in range(d):
            q[k] = p[k] + h
            f_plus = f(q)
            q[k] = p[k] - h
            f_minus = f(q)
            q[k] = p[k]
            hess[k, k] = (f_plus - 2.0 * f_center + f_minus) / (h * h)

        for i in range(d):
            for j in range(d):
                if i == j or (self.symmetric and j < i):
                    continue
                hess[i, j] = self._mixed_partial(f, p, q, i, j, h)
                if self.symmetric:
                    hess[j, i] = hess[i, j]
        return hess

    def _value_shape(self) -> tuple:
        d = self.inner_dimension()
        return (d, d)

    @staticmethod
    def _mixed_partial(f, p, q, i, j, h) -> float:
        """Four-point stencil for the mixed partial along ``(i, j)``; restores *q*."""
        q[i] = p[i] + h
        q[j] = p[j] + h
        f_pp = f(q)
        q[j] = p[j] - h
        f_pm = f(q)
        q[i] = p[i] - h
        f_mm = f(q)
        q[j] = p[j] + h
        f_mp = f(q)
        q[i] = p[i]
        q[j] = p[j]
        return (f_pp - f_pm - f_mp + f_mm) / (4.0 * h * h)

    def __str__(self) -> str:
        return f"hess({self.expression})"
