"""Tests for finite-difference Gradient and Hessian wrappers."""

import math
import warnings

import numpy as np
import pytest
from scipy.optimize import approx_fprime

from pyscalarfield import (
    DEFAULT_STEP,
    Constant,
    Coordinate,
    Gradient,
    Hessian,
    TabulatedField,
    cos,
    exp,
    sin,
)
from conftest import TEST_POINTS_2D, sin_prod_2d


def _sin_prod_grad(p):
    return np.array([math.cos(p[0]) * math.exp(p[1]), math.sin(p[0]) * math.exp(p[1])])


def _sin_prod_hess(p):
    s, c, e = math.sin(p[0]), math.cos(p[0]), math.exp(p[1])
    return np.array([[-s * e, c * e], [c * e, s * e]])


class TestGradient:
    def test_quadratic_at_2_3(self, xy_2d):
        x, y = xy_2d
        f = x * x + y
        g = f.derive()
        np.testing.assert_allclose(g([2.0, 3.0]), [4.0, 1.0], atol=1e-8)

    def test_returns_array_of_dimension(self, xy_2d):
        g = (xy_2d[0] * xy_2d[1]).derive()
        out = g([1.0, 2.0])
        assert isinstance(out, np.ndarray)
        assert out.shape == (2,)
        assert g.inner_dimension() == 2

    @pytest.mark.parametrize("point", TEST_POINTS_2D)
    def test_second_order_accuracy(self, xy_2d, point):
        x, y = xy_2d
        f = sin(x) * exp(y)
        h = f.step()
        err = np.max(np.abs(f.derive()(point) - _sin_prod_grad(point)))
        scale = max(1.0, math.exp(point[1]))
        assert err < 10 * h * h * scale

    @pytest.mark.parametrize("point", TEST_POINTS_2D)
    def test_matches_scipy(self, xy_2d, point):
        x, y = xy_2d
        f = cos(x * y) + x
        expected = approx_fprime(np.array(point), f.evaluate, 1e-7)
        np.testing.assert_allclose(f.derive()(point), expected, atol=1e-5)

    def test_constant_has_zero_gradient(self):
        g = Constant(3.0, 3).derive()
        np.testing.assert_array_equal(g([1.0, 2.0, 3.0]), np.zeros(3))

    def test_uses_expression_step(self, xy_2d):
        x, _ = xy_2d
        f = x * x * x
        f.set_step(0.1)
        g = f.derive()
        assert g.step() == 0.1
        # central difference of x^3 has error exactly h^2
        assert abs(g([1.0, 0.0])[0] - (3.0 + 0.01)) < 1e-12

    def test_step_captured_at_derive_time(self, xy_2d):
        f = xy_2d[0] * xy_2d[0]
        g = f.derive()
        f.set_step(0.5)
        assert g.step() == DEFAULT_STEP

    def test_step_is_per_node(self, xy_2d):
        x, y = xy_2d
        x.set_step(0.25)
        f = x + y
        assert f.step() == DEFAULT_STEP
        assert f.derive().step() == DEFAULT_STEP

    def test_wrapper_set_step(self, xy_2d):
        x, _ = xy_2d
        g = Gradient(x * x * x, step=0.2)
        g.set_step(0.1)
        assert abs(g([1.0, 0.0])[0] - 3.01) < 1e-12

    def test_point_length_checked(self, xy_2d):
        g = xy_2d[0].derive()
        with pytest.raises(ValueError):
            g([1.0, 2.0, 3.0])

    def test_forward_reaches_tabulated_leaf(self, tabulated_2d, xy_2d):
        x, _ = xy_2d
        g = (tabulated_2d * x).derive()
        g.forward(2)
        np.testing.assert_allclose(g([1.0, 1.0]), [30.0, 0.0], atol=1e-9)

    def test_evaluate_batch_shape(self, xy_2d):
        g = (xy_2d[0] * xy_2d[1]).derive()
        out = g.evaluate_batch(np.array(TEST_POINTS_2D))
        assert out.shape == (len(TEST_POINTS_2D), 2)

    def test_empty_batch_shape(self, xy_2d):
        x, y = xy_2d
        f = x * y
        empty = np.empty((0, 2))
        assert f.evaluate_batch(empty).shape == (0,)
        assert f.derive().evaluate_batch(empty).shape == (0, 2)
        assert f.derive_twice().evaluate_batch(empty).shape == (0, 2, 2)
        assert f.derive().evaluate_rows(empty).shape == (0, 2)

    def test_reference_nesting(self, xy_2d):
        x, _ = xy_2d
        f = x * x
        g = f.derive(nest_as_ref=True)
        assert g.expression is f

    def test_dynamic_gradient_resize(self, xy_dynamic):
        x, y = xy_dynamic
        g = (x * y).derive()
        assert g.is_dynamic
        g.resize(3)
        assert g.inner_dimension() == 3
        assert g.expression.inner_dimension() == 3
        assert g([1.0, 2.0, 0.0]).shape == (3,)

    def test_str(self, xy_2d):
        assert str(xy_2d[0].derive()) == "grad(x0)"


class TestHessian:
    @pytest.mark.parametrize("point", TEST_POINTS_2D)
    def test_accuracy(self, xy_2d, point):
        x, y = xy_2d
        f = sin(x) * exp(y)
        H = f.derive_twice()(point)
        scale = max(1.0, math.exp(point[1]))
        np.testing.assert_allclose(H, _sin_prod_hess(point), atol=1e-5 * scale)

    def test_quadratic_exact(self, xy_2d):
        x, y = xy_2d
        f = 3.0 * x * x + 2.0 * x * y - y * y
        H = f.derive_twice()([0.7, -1.3])
        np.testing.assert_allclose(H, [[6.0, 2.0], [2.0, -2.0]], atol=1e-6)

    @pytest.mark.parametrize("point", TEST_POINTS_2D)
    def test_symmetric_mirrored(self, point):
        x, y, z = Coordinate(0, 3), Coordinate(1, 3), Coordinate(2, 3)
        f = sin(x * y) * exp(z) + x * z * z
        H = f.derive_twice()(point + [0.25])
        assert H.shape == (3, 3)
        np.testing.assert_array_equal(H, H.T)

    @pytest.mark.parametrize("point", TEST_POINTS_2D)
    def test_symmetric_independent(self, point):
        x, y, z = Coordinate(0, 3), Coordinate(1, 3), Coordinate(2, 3)
        f = sin(x * y) * exp(z) + x * z * z
        H = f.derive_twice(symmetric=False)(point + [0.25])
        np.testing.assert_allclose(H, H.T, rtol=1e-9, atol=1e-7)

    def test_modes_agree(self, xy_2d):
        x, y = xy_2d
        f = cos(x) * y * y
        p = [0.3, -0.4]
        np.testing.assert_allclose(
            f.derive_twice()(p), f.derive_twice(symmetric=False)(p), atol=1e-7
        )

    def test_uses_expression_step(self, xy_2d):
        x, _ = xy_2d
        f = x * x * x * x
        f.set_step(0.1)
        H = f.derive_twice()
        assert H.step() == 0.1
        # second difference of x^4 at 1: 12 + 2 h^2
        assert abs(H([1.0, 0.0])[0, 0] - 12.02) < 1e-10

    def test_forward_and_dimension(self, tabulated_2d, xy_2d):
        x, y = xy_2d
        H = Hessian(tabulated_2d * x * y)
        assert H.inner_dimension() == 2
        H.forward(0)
        np.testing.assert_allclose(H([1.0, 1.0]), [[0.0, 10.0], [10.0, 0.0]], atol=1e-6)

    def test_point_length_checked(self, xy_2d):
        with pytest.raises(ValueError):
            xy_2d[0].derive_twice()([1.0])


class TestStep:
    def test_default(self, xy_2d):
        assert xy_2d[0].step() == DEFAULT_STEP == 1e-3

    @pytest.mark.parametrize("h", [0.0, -1e-3, math.inf, math.nan])
    def test_rejects_invalid(self, xy_2d, h):
        with pytest.raises(ValueError):
            xy_2d[0].set_step(h)

    def test_rejects_non_numeric(self, xy_2d):
        with pytest.raises(TypeError):
            xy_2d[0].set_step("small")

    def test_tiny_step_warns(self, xy_2d):
        with pytest.warns(UserWarning, match="round-off"):
            xy_2d[0].set_step(1e-12)

    def test_tiny_step_warning_points_at_caller(self, xy_2d):
        x, _ = xy_2d
        with pytest.warns(UserWarning) as record:
            x.set_step(1e-12)
        assert record[0].filename == __file__

        with pytest.warns(UserWarning) as record:
            Hessian(x, step=1e-12)
        assert record[0].filename == __file__

        with pytest.warns(UserWarning) as record:
            x.derive_twice()
        assert all(r.filename == __file__ for r in record)

    def test_reasonable_step_silent(self, xy_2d):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            xy_2d[0].set_step(1e-4)

    def test_wrapper_rejects_invalid_step(self, xy_2d):
        with pytest.raises(ValueError):
            Gradient(xy_2d[0], step=-1.0)


class TestCrossCheck:
    def test_gradient_of_callable_field(self):
        from pyscalarfield import ScalarField

        f = ScalarField(sin_prod_2d, 2)
        p = [0.3, 0.2]
        np.testing.assert_allclose(f.derive()(p), _sin_prod_grad(p), atol=1e-6)

    def test_tabulated_rows_driven_gradient(self, xy_2d):
        x, _ = xy_2d
        table = np.array([[1.0], [2.0], [3.0]])
        f = TabulatedField(table, 2) * x * x
        g = f.derive()
        pts = np.array([[1.0, 0.0], [1.0, 0.0], [1.0, 0.0]])
        out = g.evaluate_rows(pts)
        np.testing.assert_allclose(out[:, 0], [2.0, 4.0, 6.0], atol=1e-8)
        np.testing.assert_allclose(out[:, 1], 0.0, atol=1e-12)
