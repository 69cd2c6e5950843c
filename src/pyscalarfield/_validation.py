"""Shared argument checks for field expressions."""

from __future__ import annotations

import math
import operator
import os
import sys
import warnings

import numpy as np

DYNAMIC = -1
DEFAULT_STEP = 1e-3
MIN_RECOMMENDED_STEP = 1.5e-8


def _is_scalar(value) -> bool:
    """Return True if *value* is a numeric scalar (int, float, or numpy scalar)."""
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))


def _check_dimension(n) -> int:
    """Validate a run-time base space dimension and return it as an int."""
    try:
        n = operator.index(n)
    except TypeError:
        raise TypeError(
            f"Dimension must be an integer, got {type(n).__name__}"
        ) from None
    if n < 1:
        raise ValueError(f"Dimension must be positive, got {n}")
    return n


def _check_compatible(a, b) -> int:
    """Validate that two field expressions can be combined.

    Two static operands must share the same dimension (rejected at
    construction with ``TypeError``, the operand kinds being incompatible).
    If either operand is dynamic, their run-time dimensions must agree
    (``ValueError``).

    Returns
    -------
    int
        The static dimension of the composite, or ``DYNAMIC``.
    """
    if not a.is_dynamic and not b.is_dynamic:
        if a.static_dimension != b.static_dimension:
            raise TypeError(
                f"Cannot combine fields with different base dimension: "
                f"{a.static_dimension} vs {b.static_dimension}"
            )
        return a.static_dimension

    if a.inner_dimension() != b.inner_dimension():
        raise ValueError(
            f"Dimension mismatch: {a.inner_dimension()} vs {b.inner_dimension()}"
        )
    return DYNAMIC


def _as_point(point) -> np.ndarray:
    """Convert *point* to a 1-D float array (no copy if already one)."""
    p = np.asarray(point, dtype=float)
    if p.ndim != 1:
        raise ValueError(
            f"Evaluation point must be 1-D, got array of shape {p.shape}"
        )
    return p


def _check_point(p: np.ndarray, dimension: int) -> None:
    """Raise ``ValueError`` if *p* does not live in a *dimension*-D space."""
    if p.shape[0] != dimension:
        raise ValueError(
            f"Point has {p.shape[0]} coordinates, expected {dimension}"
        )


def _external_stacklevel() -> int:
    """Return the ``stacklevel`` of the first caller outside this package.

    Counted from the function that calls this helper, as
    :func:`warnings.warn` expects when called from that function.
    """
    package_dir = os.path.dirname(os.path.abspath(__file__))
    frame = sys._getframe(1)
    level = 1
    while frame is not None and os.path.dirname(os.path.abspath(frame.f_code.co_filename)) == package_dir:
        frame = frame.f_back
        level += 1
    return level


def _check_step(h) -> float:
    """Validate a finite-difference step size.

    Raises
    ------
    ValueError
        If *h* is not a finite, strictly positive number.

    Warns
    -----
    UserWarning
        If *h* is so small that round-off dominates the stencil.
    """
    if not _is_scalar(h):
        raise TypeError(f"Step size must be a real number, got {type(h).__name__}")
    h = float(h)
    if not math.isfinite(h) or h <= 0.0:
        raise ValueError(f"Step size must be finite and positive, got {h}")
    if h < MIN_RECOMMENDED_STEP:
        warnings.warn(
            f"Step size {h:.1e} is below {MIN_RECOMMENDED_STEP:.1e}; "
            f"finite-difference results will be dominated by round-off.",
            UserWarning,
            stacklevel=_external_stacklevel(),
        )
    return h
