"""Closed-form real root finding for quadratic and cubic polynomials."""

from __future__ import annotations

import math
from typing import List

from quadify.common import DISCRIMINANT_EPS, LEADING_COEFF_EPS


def _cube_root(x: float) -> float:
    """Real cube root, also for negative arguments."""
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


class PolynomialSolver:
    """Class to provide static methods to find the real roots of polynomials up to degree three.

    All roots are returned as plain python floats in ascending order.
    """

    @staticmethod
    def solve_quadratic(a: float, b: float, c: float) -> List[float]:
        """
        Real roots of a*x^2 + b*x + c = 0.

        A vanishing leading coefficient degrades to the linear equation b*x + c = 0,
        which has no root if b vanishes too. The discriminant is compared against zero
        relative to the magnitude of its terms, so a nearly repeated root is reported once.

        Args:
            a (float): coefficient of x^2
            b (float): coefficient of x
            c (float): constant coefficient

        Returns:
            List[float]: zero, one or two roots in ascending order
        """
        if a == 0:
            return [] if b == 0 else [-c / b]

        disc = b * b - 4.0 * a * c
        scale = b * b + abs(4.0 * a * c)
        if abs(disc) <= DISCRIMINANT_EPS * scale:
            return [-b / (2.0 * a)]
        if disc < 0:
            return []

        # q has the sign of -b, no cancellation between b and the square root
        q = -0.5 * (b + math.copysign(math.sqrt(disc), b))
        return sorted([q / a, c / q])

    @staticmethod
    def solve_cubic(a: float, b: float, c: float, d: float) -> List[float]:
        """
        Real roots of a*x^3 + b*x^2 + c*x + d = 0.

        Uses the formulation of Cardano's method by R.W.D. Nickalls ("A new approach to
        solving the cubic", Math. Gazette 1993): the cubic is expressed around its point
        of symmetry (xn, yn) and the sign of yn^2 - h^2 decides between one real root,
        a double root or three distinct real roots.
        The coefficients are normalized by the largest of them first; a leading coefficient
        that is negligible after normalization degrades to the quadratic solver.

        Args:
            a (float): coefficient of x^3
            b (float): coefficient of x^2
            c (float): coefficient of x
            d (float): constant coefficient

        Returns:
            List[float]: the real roots in ascending order, each distinct root once
        """
        scale = max(abs(a), abs(b), abs(c), abs(d))
        if scale == 0:
            return []
        a, b, c, d = a / scale, b / scale, c / scale, d / scale
        if abs(a) <= LEADING_COEFF_EPS:
            return PolynomialSolver.solve_quadratic(b, c, d)
        if a < 0:
            a, b, c, d = -a, -b, -c, -d

        xn = -b / (3.0 * a)  # point of symmetry
        yn = ((a * xn + b) * xn + c) * xn + d
        delta_sq = (b * b - 3.0 * a * c) / (9.0 * a * a)
        h_sq = 4.0 * a * a * delta_sq * delta_sq * delta_sq
        disc = yn * yn - h_sq

        if abs(disc) <= DISCRIMINANT_EPS * max(yn * yn, abs(h_sq)):
            # double root at xn + delta1, simple root at xn - 2 * delta1
            delta1 = _cube_root(yn / (2.0 * a))
            if delta1 == 0:
                return [xn]
            return sorted([xn - 2.0 * delta1, xn + delta1])

        if disc > 0:
            disc_sqrt = math.sqrt(disc)
            return [xn + _cube_root((-yn + disc_sqrt) / (2.0 * a)) + _cube_root((-yn - disc_sqrt) / (2.0 * a))]

        # three distinct real roots, h_sq > 0 here
        cos_3theta = max(-1.0, min(1.0, -yn / math.sqrt(h_sq)))
        theta = math.acos(cos_3theta) / 3.0
        delta = math.sqrt(delta_sq)
        return sorted(xn + 2.0 * delta * math.cos(theta + k * 2.0 * math.pi / 3.0) for k in range(3))

    @staticmethod
    def cubic_candidates_in_unit_interval(a: float, b: float, c: float, d: float) -> List[float]:
        """
        Candidate parameter values of a cubic on [0, 1].

        Returns the interval endpoints 0 and 1 followed by every real root of the cubic
        lying strictly inside (0, 1). Used by callers that minimize a function whose
        derivative is the given cubic.
        """
        candidates = [0.0, 1.0]
        candidates.extend(root for root in PolynomialSolver.solve_cubic(a, b, c, d) if 0.0 < root < 1.0)
        return candidates
