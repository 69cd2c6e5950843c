"""pyscalarfield: lazy expression templates for scalar fields over R^d.

Leaves (:class:`Constant`, :class:`TabulatedField`, :class:`ScalarField`,
:class:`Coordinate`) are combined with ``+ - * /``, unary ``-`` and the
functions :func:`sin`, :func:`cos`, :func:`tan`, :func:`exp`,
:func:`log` into expression trees that are evaluated lazily, one
recursive pass per query point. Any scalar expression can be
differentiated numerically with :meth:`~ScalarExpression.derive`
(:class:`Gradient`) and :meth:`~ScalarExpression.derive_twice`
(:class:`Hessian`), themselves field expressions.

Example
-------
>>> from pyscalarfield import Coordinate
>>> x, y = Coordinate(0, 2), Coordinate(1, 2)
>>> f = x * x + y
>>> f([2.0, 3.0])
7.0
>>> f.derive()([2.0, 3.0]).round(6).tolist()
[4.0, 1.0]
"""

from pyscalarfield._validation import DEFAULT_STEP, DYNAMIC, MIN_RECOMMENDED_STEP
from pyscalarfield._version import __version__
from pyscalarfield.derivatives import Gradient, Hessian
from pyscalarfield.expression import FieldExpression, ScalarExpression
from pyscalarfield.leaves import Constant, Coordinate, ScalarField, TabulatedField
from pyscalarfield.operations import (
    BinaryOp,
    Negation,
    UnaryOp,
    abs,
    apply,
    cos,
    exp,
    log,
    sin,
    sqrt,
    tan,
)

__all__ = [
    "BinaryOp",
    "Constant",
    "Coordinate",
    "DEFAULT_STEP",
    "DYNAMIC",
    "FieldExpression",
    "Gradient",
    "Hessian",
    "MIN_RECOMMENDED_STEP",
    "Negation",
    "ScalarExpression",
    "ScalarField",
    "TabulatedField",
    "UnaryOp",
    "abs",
    "apply",
    "cos",
    "exp",
    "log",
    "sin",
    "sqrt",
    "tan",
    "__version__",
]
