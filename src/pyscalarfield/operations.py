"""Composition nodes and the free-function operator surface.

Composite nodes own a copy of their operand subtrees (leaves in the copy
share their tables and callables) unless constructed with
``nest_as_ref=True``, in which case they hold the operand object itself
and see every later change made to it (a forwarded row, a new step size).
Referenced operands must stay alive as long as the composite does.

No node validates numeric domains: dividing by zero or taking the
logarithm of a non-positive value produces ``inf``/``nan`` exactly as
numpy does.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from pyscalarfield._validation import DYNAMIC, _check_compatible, _check_point, _is_scalar
from pyscalarfield.expression import ScalarExpression


def _nest(operand, nest_as_ref: bool):
    if not isinstance(operand, ScalarExpression):
        raise TypeError(
            f"Operand must be a ScalarExpression, got {type(operand).__name__}"
        )
    return operand if nest_as_ref else operand._clone()


def _wrap(node) -> str:
    if isinstance(node, BinaryOp):
        return f"({node})"
    return str(node)


class BinaryOp(ScalarExpression):
    """Combine two scalar expressions with a binary numeric operator.

    Both operands are evaluated on every call, left first, and their
    values combined with *operator*. Nothing is cached.

    Parameters
    ----------
    left, right : ScalarExpression
        Operands. Two static operands must have the same dimension
        (``TypeError`` otherwise); if either is dynamic their run-time
        dimensions must agree (``ValueError`` otherwise).
    operator : callable
        ``operator(a, b) -> float``, typically a numpy ufunc.
    symbol : str, optional
        Infix symbol used when printing the expression.
    nest_as_ref : bool, optional
        Store the operands by reference instead of by copy. Default is
        False.
    """

    _operands = ("left", "right")

    def __init__(
        self,
        left: ScalarExpression,
        right: ScalarExpression,
        operator: Callable,
        symbol: str = "?",
        nest_as_ref: bool = False,
    ):
        left = _nest(left, nest_as_ref)
        right = _nest(right, nest_as_ref)
        static_dimension = _check_compatible(left, right)
        super().__init__(left.inner_dimension(), dynamic=static_dimension == DYNAMIC)
        self.left = left
        self.right = right
        self.operator = operator
        self.symbol = symbol

    def _evaluate(self, p: np.ndarray) -> float:
        _check_point(p, self.inner_dimension())
        a = self.left._evaluate(p)
        b = self.right._evaluate(p)
        return self.operator(a, b)

    def forward(self, index: int) -> "BinaryOp":
        self.left.forward(index)
        self.right.forward(index)
        return self

    def __str__(self) -> str:
        return f"{_wrap(self.left)} {self.symbol} {_wrap(self.right)}"


class UnaryOp(ScalarExpression):
    """Apply a unary numeric function to a scalar expression.

    Parameters
    ----------
    operand : ScalarExpression
        The argument of the function.
    function : callable
        ``function(x) -> float``, typically a numpy ufunc.
    name : str, optional
        Function name used when printing the expression.
    nest_as_ref : bool, optional
        Store the operand by reference instead of by copy.
    """

    _operands = ("operand",)

    def __init__(
        self,
        operand: ScalarExpression,
        function: Callable,
        name: str = "f",
        nest_as_ref: bool = False,
    ):
        operand = _nest(operand, nest_as_ref)
        super().__init__(operand.inner_dimension(), dynamic=operand.is_dynamic)
        self.operand = operand
        self.function = function
        self.name = name

    def _evaluate(self, p: np.ndarray) -> float:
        return self.function(self.operand._evaluate(p))

    def forward(self, index: int) -> "UnaryOp":
        self.operand.forward(index)
        return self

    def __str__(self) -> str:
        return f"{self.name}({self.operand})"


class Negation(ScalarExpression):
    """Flip the sign of a scalar expression."""

    _operands = ("operand",)

    def __init__(self, operand: ScalarExpression, nest_as_ref: bool = False):
        operand = _nest(operand, nest_as_ref)
        super().__init__(operand.inner_dimension(), dynamic=operand.is_dynamic)
        self.operand = operand

    def _evaluate(self, p: np.ndarray) -> float:
        return -self.operand._evaluate(p)

    def forward(self, index: int) -> "Negation":
        self.operand.forward(index)
        return self

    def __str__(self) -> str:
        return f"-{_wrap(self.operand)}"


def _combine(expr, other, operator, symbol, reflected):
    """Lift ``expr <op> other`` (or ``other <op> expr``) into a BinaryOp.

    Numeric literals are promoted to a :class:`Constant` sharing the
    expression's dimension and dynamic-ness. Returns ``NotImplemented``
    for any other operand type.
    """
    if _is_scalar(other):
        from pyscalarfield.leaves import Constant
        other = Constant(other, expr.inner_dimension(), dynamic=expr.is_dynamic)
    elif not isinstance(other, ScalarExpression):
        return NotImplemented
    if reflected:
        return BinaryOp(other, expr, operator, symbol)
    return BinaryOp(expr, other, operator, symbol)


def _unary_function(function, name: str):
    """Build the free function ``name(expr)`` applying *function* lazily."""

    def apply_(expr: ScalarExpression) -> UnaryOp:
        return UnaryOp(expr, function, name)

    apply_.__name__ = name
    apply_.__qualname__ = name
    apply_.__doc__ = f"Return the lazy elementwise ``{name}`` of a scalar expression."
    return apply_


sin = _unary_function(np.sin, "sin")
cos = _unary_function(np.cos, "cos")
tan = _unary_function(np.tan, "tan")
exp = _unary_function(np.exp, "exp")
log = _unary_function(np.log, "log")
sqrt = _unary_function(np.sqrt, "sqrt")
abs = _unary_function(np.abs, "abs")  # noqa: A001


def apply(expr: ScalarExpression, function: Callable, name: str | None = None) -> UnaryOp:
    """Apply an arbitrary unary callable to a scalar expression.

    Parameters
    ----------
    expr : ScalarExpression
        The argument.
    function : callable
        ``function(x) -> float``.
    name : str, optional
        Name used when printing; defaults to ``function.__name__``.
    """
    if not callable(function):
        raise TypeError(f"function must be callable, got {type(function).__name__}")
    if name is None:
        name = getattr(function, "__name__", "f")
    return UnaryOp(expr, function, name)
