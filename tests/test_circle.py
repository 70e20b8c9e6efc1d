"""Tests for the boundary circle model and the algebraic circle fit."""

import numpy as np
import pytest

from errors import ComputationError, ValidationError
from segmentation import BoundaryCircle, fit_circle


def circle_points(cx, cy, r, n=36):
    theta = np.linspace(0, 2 * np.pi, n, endpoint=False)
    return np.column_stack([cx + r * np.cos(theta), cy + r * np.sin(theta)])


class TestFitCircle:
    def test_exact_points_recover_circle(self):
        cx, cy, r = fit_circle(circle_points(50.0, -20.0, 10.0))
        assert cx == pytest.approx(50.0)
        assert cy == pytest.approx(-20.0)
        assert r == pytest.approx(10.0)

    def test_three_points_are_enough(self):
        cx, cy, r = fit_circle([(1, 0), (0, 1), (-1, 0)])
        assert (cx, cy, r) == pytest.approx((0.0, 0.0, 1.0))

    def test_accepts_list_of_tuples(self):
        points = [tuple(p) for p in circle_points(5.0, 5.0, 3.0, n=8)]
        assert fit_circle(points) == pytest.approx((5.0, 5.0, 3.0))

    def test_too_few_points(self):
        with pytest.raises(ComputationError):
            fit_circle([(0, 0), (1, 1)])

    def test_collinear_points(self):
        with pytest.raises(ComputationError):
            fit_circle([(0, 0), (1, 1), (2, 2), (3, 3)])

    def test_coincident_points(self):
        with pytest.raises(ComputationError):
            fit_circle([(4, 4)] * 5)

    @pytest.mark.parametrize("slope, offset", [(0.7, 1.3), (-2.1, 0.4), (0.33, -5.0), (1.0, 0.0)])
    def test_float_collinear_points(self, slope, offset):
        points = [(x * 1.37, slope * x * 1.37 + offset) for x in range(7)]
        with pytest.raises(ComputationError):
            fit_circle(points)

    def test_computation_error_is_arithmetic_error(self):
        with pytest.raises(ArithmeticError):
            fit_circle([])


class TestBoundaryCircle:
    def test_defaults(self):
        circle = BoundaryCircle()
        assert circle.center == (0, 0)
        assert circle.radius == 0

    def test_fit_rounds_to_nearest_pixel(self):
        circle = BoundaryCircle().fit(circle_points(10.6, 10.4, 5.7))
        assert circle.center == (11, 10)
        assert circle.radius == 6

    def test_fit_returns_self(self):
        circle = BoundaryCircle()
        assert circle.fit(circle_points(0.0, 0.0, 4.0)) is circle

    def test_fit_failure_leaves_circle_unchanged(self):
        circle = BoundaryCircle((3, 4), 5)
        with pytest.raises(ComputationError):
            circle.fit([(0, 0), (1, 1), (2, 2)])
        assert circle == BoundaryCircle((3, 4), 5)

    def test_negative_radius_rejected(self):
        circle = BoundaryCircle((1, 1), 2)
        with pytest.raises(ValidationError):
            circle.set_radius(-1)
        assert circle.radius == 2

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            BoundaryCircle((0, 0), -5)

    def test_nan_radius_rejected(self):
        circle = BoundaryCircle((1, 1), 2)
        with pytest.raises(ValidationError):
            circle.set_radius(float("nan"))
        with pytest.raises(ValidationError):
            circle.set_circle(1, 1, float("nan"))
        assert circle == BoundaryCircle((1, 1), 2)

    def test_zero_radius_allowed(self):
        circle = BoundaryCircle()
        circle.set_radius(0)
        assert circle.radius == 0

    def test_set_circle_three_arguments(self):
        circle = BoundaryCircle()
        circle.set_circle(1, 2, 3)
        assert circle.center == (1, 2)
        assert circle.radius == 3

    def test_set_circle_negative_radius_keeps_center(self):
        circle = BoundaryCircle((7, 8), 9)
        with pytest.raises(ValidationError):
            circle.set_circle((1, 1), -1)
        assert circle.center == (7, 8)
        assert circle.radius == 9

    def test_set_circle_wrong_arity(self):
        with pytest.raises(TypeError):
            BoundaryCircle().set_circle(1)

    def test_point_at(self):
        circle = BoundaryCircle((10, 20), 5)
        x, y = circle.point_at(0.0)
        assert x == pytest.approx(15.0)
        assert y == pytest.approx(20.0)
        x, y = circle.point_at(np.array([np.pi / 2]))
        assert x[0] == pytest.approx(10.0)
        assert y[0] == pytest.approx(25.0)

    def test_draw(self):
        image = np.zeros((20, 20), dtype=np.uint8)
        BoundaryCircle((10, 10), 5).draw(image, color=255, thickness=-1)
        assert image[10, 10] == 255
        assert image[0, 0] == 0

    def test_repr(self):
        assert repr(BoundaryCircle((1, 2), 3)) == "BoundaryCircle(center=(1, 2), radius=3)"
