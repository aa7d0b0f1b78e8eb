"""Construction of the off-curve points of a quadratic spline approximating a curve.

A chain of n quadratic segments is described by its n off-curve points only: the
on-curve joints are the midpoints of consecutive off-curve points (TrueType style)
and the chain starts and ends at the end points of the approximated curve.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

from quadify.common import COLLINEAR_EPS, PARALLEL_EPS, Point2d
from quadify.curves import Curve

logger = logging.getLogger(__name__)

# Weights of the previous, current and next off-curve point for the mid point (t=0.5)
# of the segment controlled by the current off-curve point.
_MIX_BEFORE: float = 1.0 / 8.0
_MIX_HERE: float = 3.0 / 4.0
_MIX_NEXT: float = 1.0 / 8.0


def _x(n: int) -> int:
    return 2 * n


def _y(n: int) -> int:
    return 2 * n + 1


###############################################################################
# TangentIntersector
###############################################################################


class TangentIntersector:
    """Single segment fit: the off-curve point is the intersection of the end tangents."""

    @staticmethod
    def find_intersection(p1: Point2d, d1: Point2d, d2: Point2d, p2: Point2d) -> Optional[Point2d]:
        """
        Intersect the ray from p1 along d1 with the line through p2 along d2.

        Solves p1 + u*d1 = p2 + v*d2 for u and v. A valid single segment needs the
        intersection in front of p1 (u > 0) and behind p2 (v < 0).
        Nearly parallel directions only yield a result if both rays lie on a common line
        and point towards each other; the midpoint of p1 and p2 is returned then.

        Args:
            p1 (Point2d): start point of the curve
            d1 (Point2d): tangent direction at the start point
            d2 (Point2d): tangent direction at the end point
            p2 (Point2d): end point of the curve

        Returns:
            Optional[Point2d]: the off-curve point or None if the tangents diverge
        """
        det = d2[0] * d1[1] - d2[1] * d1[0]
        num_u = (p2[1] - p1[1]) * d2[0] - (p2[0] - p1[0]) * d2[1]
        num_v = (p2[1] - p1[1]) * d1[0] - (p2[0] - p1[0]) * d1[1]

        if abs(det) < PARALLEL_EPS:
            if abs(num_u) < COLLINEAR_EPS and abs(num_v) < COLLINEAR_EPS and num_u * det <= 0 and num_v * det >= 0:
                return (0.5 * (p1[0] + p2[0]), 0.5 * (p1[1] + p2[1]))
            return None

        u = num_u / det
        v = num_v / det
        if u <= 0 or v >= 0:
            return None
        return (p1[0] + d1[0] * u, p1[1] + d1[1] * u)


###############################################################################
# SplineSystem
###############################################################################


class SplineSystem:
    """
    Linear system for the n off-curve points of an n-segment quadratic spline (n >= 2).

    Unknown 2*j is the x-coordinate and unknown 2*j+1 the y-coordinate of off-curve point j.
    Four boundary rows pin the first and the last off-curve point on the end tangents of
    the curve (at a distance of 1/(2n) of the derivative from the end points). For every
    inner segment j two rows demand that the segment's mid point
        1/8 * off[j-1] + 3/4 * off[j] + 1/8 * off[j+1]
    equals the curve at parameter (j + 1/2) / n.

    The matrix depends on n only, so its inverse is computed once per n and kept in
    the instance cache. The cache is guarded by a lock and never invalidated.
    """

    def __init__(self) -> None:
        self._inverse_cache: Dict[int, NDArray[np.float64]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def build_matrix(n: int) -> NDArray[np.float64]:
        """
        System matrix of shape (2n, 2n).

        Raises:
            ValueError: if n < 2
        """
        if n < 2:
            raise ValueError(f"Spline system needs at least 2 segments, got {n}")
        matrix = np.zeros((2 * n, 2 * n), dtype=np.float64)
        matrix[0, _x(0)] = 1.0
        matrix[2, _y(0)] = 1.0
        matrix[1, _x(n - 1)] = 1.0
        matrix[3, _y(n - 1)] = 1.0
        # inner segments
        for j in range(1, n - 1):
            matrix[_x(j + 1), _x(j - 1)] = _MIX_BEFORE
            matrix[_x(j + 1), _x(j)] = _MIX_HERE
            matrix[_x(j + 1), _x(j + 1)] = _MIX_NEXT
            matrix[_y(j + 1), _y(j - 1)] = _MIX_BEFORE
            matrix[_y(j + 1), _y(j)] = _MIX_HERE
            matrix[_y(j + 1), _y(j + 1)] = _MIX_NEXT
        return matrix

    @staticmethod
    def build_rhs(curve: Curve, n: int) -> NDArray[np.float64]:
        """Right-hand side of length 2n sampled from the given curve."""
        if n < 2:
            raise ValueError(f"Spline system needs at least 2 segments, got {n}")
        rhs = np.zeros(2 * n, dtype=np.float64)
        start_x, start_y = curve.evaluate(0.0)
        end_x, end_y = curve.evaluate(1.0)
        left_tx, left_ty = curve.derivative(0.0)
        right_tx, right_ty = curve.derivative(1.0)
        d_scale = 1.0 / (2 * n)

        rhs[0] = start_x + left_tx * d_scale
        rhs[2] = start_y + left_ty * d_scale
        rhs[1] = end_x - right_tx * d_scale
        rhs[3] = end_y - right_ty * d_scale
        # inner segments
        for j in range(1, n - 1):
            rhs[_x(j + 1)], rhs[_y(j + 1)] = curve.evaluate((j + 0.5) / n)
        return rhs

    def inverse_matrix(self, n: int) -> NDArray[np.float64]:
        """
        Inverse of the system matrix for n segments (memoized).

        Raises:
            ValueError: if n < 2
            numpy.linalg.LinAlgError: if the matrix is singular
        """
        with self._lock:
            inverse = self._inverse_cache.get(n)
            if inverse is None:
                inverse = np.linalg.inv(self.build_matrix(n))
                self._inverse_cache[n] = inverse
                logger.debug("Cached inverse spline matrix for n=%d", n)
            return inverse

    def solve(self, curve: Curve, n: int) -> NDArray[np.float64]:
        """
        Off-curve points of the n-segment spline approximating the curve.

        Returns:
            NDArray[np.float64]: array of shape (n, 2), points in curve order
        """
        solution = self.inverse_matrix(n) @ self.build_rhs(curve, n)
        return solution.reshape(n, 2)

    @property
    def cached_sizes(self) -> List[int]:
        """Segment counts whose inverse matrix is cached (sorted)."""
        with self._lock:
            return sorted(self._inverse_cache)
