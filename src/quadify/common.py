"""Central module containing types and numeric tolerances shared by the fitting engine."""

from __future__ import annotations

from typing import Literal, Tuple

###############################################################################
# Types
###############################################################################


Point2d = Tuple[float, float]

SplineCmds = Literal[  # Type-Definition for path commands emitted for a quadratic spline
    # MoveTo (2) - start a new subpath and move the current point to (x,y)
    "M",
    # Quadratic Bezier To (4) - draw a quadratic Bezier curve with one control point and an endpoint (x,y)
    "Q",
]


###############################################################################
# Tolerances
###############################################################################

# Relative tolerance for classifying a discriminant as zero (repeated roots)
DISCRIMINANT_EPS: float = 1.0e-12

# Leading coefficient, relative to the largest coefficient, below which a cubic counts as quadratic
LEADING_COEFF_EPS: float = 1.0e-12

# Absolute tolerance below which two tangent directions count as parallel
PARALLEL_EPS: float = 1.0e-6

# Absolute tolerance for the numerators of parallel tangent rays (collinear case)
COLLINEAR_EPS: float = 1.0e-12


###############################################################################
# Functions
###############################################################################


def mix(a: float, b: float, t: float) -> float:
    """Linear interpolation between a (t=0) and b (t=1)."""
    return a + (b - a) * t


def mid_point(p: Point2d, q: Point2d) -> Point2d:
    """Midpoint of two points."""
    return (0.5 * (p[0] + q[0]), 0.5 * (p[1] + q[1]))
