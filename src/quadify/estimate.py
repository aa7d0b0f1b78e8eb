"""Distance estimation between points and quadratic Bezier segments."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

from quadify.common import Point2d, mix
from quadify.polynomial import PolynomialSolver

QuadSegment = Tuple[Point2d, Point2d, Point2d]


class QuadraticDistance:
    """Class to provide static methods measuring the distance from points to quadratic segments."""

    @staticmethod
    def evaluate(start: Point2d, ctrl: Point2d, end: Point2d, t: float) -> Point2d:
        """Point on the quadratic Bezier segment (start, ctrl, end) at parameter t."""
        return (
            mix(mix(start[0], ctrl[0], t), mix(ctrl[0], end[0], t), t),
            mix(mix(start[1], ctrl[1], t), mix(ctrl[1], end[1], t), t),
        )

    @staticmethod
    def min_squared_distance(point: Point2d, start: Point2d, ctrl: Point2d, end: Point2d) -> float:
        """
        Squared euclidean distance from point to the closest point of a quadratic segment.

        With Q(t) = A*t^2 + B*t + start, where A = start - 2*ctrl + end and B = 2*(ctrl - start),
        the squared distance |Q(t) - point|^2 is extremal where (Q(t) - point) . Q'(t) = 0:

            2*|A|^2 t^3 + 3*(A.B) t^2 + (|B|^2 + 2*A.D) t + B.D = 0,   D = start - point

        The distance is evaluated at every root inside (0, 1) and at both segment ends.

        Args:
            point (Point2d): query point
            start (Point2d): on-curve start point of the segment
            ctrl (Point2d): off-curve control point of the segment
            end (Point2d): on-curve end point of the segment

        Returns:
            float: the minimal squared distance
        """
        zx, zy = point
        ax = start[0] + end[0] - 2.0 * ctrl[0]
        ay = start[1] + end[1] - 2.0 * ctrl[1]
        bx = 2.0 * (ctrl[0] - start[0])
        by = 2.0 * (ctrl[1] - start[1])
        dx = start[0] - zx
        dy = start[1] - zy

        e3 = 2.0 * (ax * ax + ay * ay)
        e2 = 3.0 * (ax * bx + ay * by)
        e1 = bx * bx + by * by + 2.0 * (ax * dx + ay * dy)
        e0 = dx * bx + dy * by

        min_distance = math.inf
        for t in PolynomialSolver.cubic_candidates_in_unit_interval(e3, e2, e1, e0):
            qx, qy = QuadraticDistance.evaluate(start, ctrl, end, t)
            distance = (qx - zx) * (qx - zx) + (qy - zy) * (qy - zy)
            if distance < min_distance:
                min_distance = distance
        return min_distance

    @staticmethod
    def min_squared_distance_to_chain(point: Point2d, segments: Sequence[QuadSegment]) -> float:
        """Squared distance from point to the closest of the given quadratic segments."""
        return min(
            (QuadraticDistance.min_squared_distance(point, start, ctrl, end) for start, ctrl, end in segments),
            default=math.inf,
        )
