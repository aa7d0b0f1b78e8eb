"""Test module for quadify.spline

The tests are run using pytest.
These tests cover the tangent intersection used for single segment fits and the
linear spline system used for two and more segments.
"""

import math
import threading

import numpy as np
import pytest

from quadify.curves import Circle, QuadraticBezierCurve
from quadify.spline import SplineSystem, TangentIntersector


class _Line:
    """Straight line from (0, 0) to (1, 0)."""

    def evaluate(self, t):
        return (t, 0.0)

    def derivative(self, t):  # pylint: disable=unused-argument
        return (1.0, 0.0)


###############################################################################
# TangentIntersector Tests
###############################################################################


class TestTangentIntersector:
    """Test class for TangentIntersector."""

    def test_quarter_circle(self):
        """The tangents of a quarter circle meet at (R, R)."""
        arc = Circle(0.0, 0.0, 100.0).arc(0.0, math.pi / 2)
        point = TangentIntersector.find_intersection(
            arc.evaluate(0.0), arc.derivative(0.0), arc.derivative(1.0), arc.evaluate(1.0)
        )
        assert point == pytest.approx((100.0, 100.0))

    def test_diverging_tangents(self):
        """An intersection behind the start point is rejected."""
        assert TangentIntersector.find_intersection((0.0, 0.0), (0.0, -1.0), (1.0, 0.0), (1.0, 1.0)) is None

    def test_parallel_collinear_rays(self):
        """Collinear rays pointing at each other yield the midpoint."""
        point = TangentIntersector.find_intersection((0.0, 0.0), (1.0, 0.0), (1.0, 0.0), (2.0, 0.0))
        assert point == pytest.approx((1.0, 0.0))

    def test_parallel_offset_rays(self):
        """Parallel rays on different lines have no intersection."""
        assert TangentIntersector.find_intersection((0.0, 0.0), (1.0, 0.0), (1.0, 0.0), (2.0, 1.0)) is None

    def test_s_curve_tangents(self):
        """Parallel tangents of an S-shaped curve are rejected."""
        assert TangentIntersector.find_intersection((0.0, 0.0), (3.0, 3.0), (3.0, 3.0), (3.0, 0.0)) is None


###############################################################################
# SplineSystem Tests
###############################################################################


class TestSplineSystem:
    """Test class for SplineSystem."""

    def test_matrix_shape_and_boundary_rows(self):
        """Boundary rows pin the first and the last off-curve point."""
        matrix = SplineSystem.build_matrix(4)
        assert matrix.shape == (8, 8)
        assert matrix[0, 0] == 1.0
        assert matrix[2, 1] == 1.0
        assert matrix[1, 6] == 1.0
        assert matrix[3, 7] == 1.0
        assert matrix[0].sum() == 1.0

    def test_matrix_inner_rows(self):
        """Inner rows hold the mid point weights 1/8, 3/4, 1/8."""
        matrix = SplineSystem.build_matrix(3)
        assert matrix[4, 0] == 0.125
        assert matrix[4, 2] == 0.75
        assert matrix[4, 4] == 0.125
        assert matrix[5, 1] == 0.125
        assert matrix[5, 3] == 0.75
        assert matrix[5, 5] == 0.125

    def test_matrix_regular(self):
        """The system is solvable for every n >= 2."""
        for n in range(2, 20):
            assert np.linalg.matrix_rank(SplineSystem.build_matrix(n)) == 2 * n

    def test_matrix_needs_two_segments(self):
        """Less than two segments is not a spline system."""
        with pytest.raises(ValueError):
            SplineSystem.build_matrix(1)

    def test_rhs(self):
        """End rows are offset along the end tangents, inner rows sample the curve."""
        rhs = SplineSystem.build_rhs(_Line(), 3)
        assert rhs.shape == (6,)
        assert rhs[0] == pytest.approx(1.0 / 6.0)
        assert rhs[1] == pytest.approx(5.0 / 6.0)
        assert rhs[2] == 0.0
        assert rhs[3] == 0.0
        assert rhs[4] == pytest.approx(0.5)
        assert rhs[5] == 0.0

    def test_solve_line(self):
        """A straight line gives equally spaced off-curve points."""
        system = SplineSystem()
        assert np.allclose(system.solve(_Line(), 2), [[0.25, 0.0], [0.75, 0.0]])
        assert np.allclose(system.solve(_Line(), 3), [[1.0 / 6.0, 0.0], [0.5, 0.0], [5.0 / 6.0, 0.0]])

    def test_solve_quadratic_is_exact_subdivision(self):
        """A quadratic curve is reproduced by its subdivision into two halves."""
        p0, p1, p2 = (0.0, 0.0), (50.0, 100.0), (100.0, 0.0)
        off_points = SplineSystem().solve(QuadraticBezierCurve(p0, p1, p2), 2)
        assert np.allclose(off_points, [[25.0, 50.0], [75.0, 50.0]])

    def test_inverse_cache(self):
        """The inverse is computed once per n and reused."""
        system = SplineSystem()
        assert system.cached_sizes == []
        first = system.inverse_matrix(5)
        second = system.inverse_matrix(5)
        assert first is second
        system.inverse_matrix(3)
        assert system.cached_sizes == [3, 5]
        assert np.allclose(first @ SplineSystem.build_matrix(5), np.eye(10))

    def test_caches_are_per_instance(self):
        """Two systems do not share their caches."""
        system_a = SplineSystem()
        system_b = SplineSystem()
        system_a.inverse_matrix(4)
        assert system_b.cached_sizes == []

    def test_concurrent_access(self):
        """Concurrent callers end up with a single cache entry per n."""
        system = SplineSystem()
        results = []

        def worker():
            results.append(system.inverse_matrix(6))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert system.cached_sizes == [6]
        assert all(result is results[0] for result in results)
