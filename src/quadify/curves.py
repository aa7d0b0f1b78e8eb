"""Parametric curves with analytic derivatives that can be fitted by quadratic splines.

Every curve is defined on the parameter domain [0, 1] and offers the two methods
of the `Curve` protocol: `evaluate(t)` returns the point and `derivative(t)` the
(non-normalized) tangent vector at t. `Circle` is the exception: it is parametrized
by the angle in radians and is usually wrapped into `Reparametrized` with a `Slice`
(see `Circle.arc`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from quadify.common import Point2d, mix

###############################################################################
# Protocols
###############################################################################


@runtime_checkable
class Curve(Protocol):
    """A 2D curve with analytic derivative, defined and finite on t in [0, 1]."""

    def evaluate(self, t: float) -> Point2d:
        """Point on the curve at parameter t."""

    def derivative(self, t: float) -> Point2d:
        """Tangent vector dC/dt at parameter t."""


@runtime_checkable
class DerivableFunction(Protocol):
    """A scalar function with analytic derivative, used to remap the domain of a curve."""

    def evaluate(self, t: float) -> float:
        """Function value at t."""

    def derivative(self, t: float) -> float:
        """Derivative df/dt at t."""


###############################################################################
# Bezier curves
###############################################################################


def _bez3(a: float, b: float, c: float, d: float, t: float) -> float:
    ab = mix(a, b, t)
    bc = mix(b, c, t)
    cd = mix(c, d, t)
    return mix(mix(ab, bc, t), mix(bc, cd, t), t)


def _bez3_derivative(a: float, b: float, c: float, d: float, t: float) -> float:
    omt = 1.0 - t
    return 3.0 * (omt * omt * (b - a) + 2.0 * omt * t * (c - b) + t * t * (d - c))


@dataclass(frozen=True)
class CubicBezierCurve:
    """
    Cubic Bezier curve given by its four control points.

    Attributes:
        p0 (Point2d): start point
        p1 (Point2d): first control point
        p2 (Point2d): second control point
        p3 (Point2d): end point
    """

    p0: Point2d
    p1: Point2d
    p2: Point2d
    p3: Point2d

    def evaluate(self, t: float) -> Point2d:
        """Point at parameter t (de Casteljau)."""
        return (
            _bez3(self.p0[0], self.p1[0], self.p2[0], self.p3[0], t),
            _bez3(self.p0[1], self.p1[1], self.p2[1], self.p3[1], t),
        )

    def derivative(self, t: float) -> Point2d:
        """Tangent vector at parameter t."""
        return (
            _bez3_derivative(self.p0[0], self.p1[0], self.p2[0], self.p3[0], t),
            _bez3_derivative(self.p0[1], self.p1[1], self.p2[1], self.p3[1], t),
        )


@dataclass(frozen=True)
class QuadraticBezierCurve:
    """Quadratic Bezier curve given by start point p0, control point p1 and end point p2."""

    p0: Point2d
    p1: Point2d
    p2: Point2d

    def evaluate(self, t: float) -> Point2d:
        """Point at parameter t."""
        return (
            mix(mix(self.p0[0], self.p1[0], t), mix(self.p1[0], self.p2[0], t), t),
            mix(mix(self.p0[1], self.p1[1], t), mix(self.p1[1], self.p2[1], t), t),
        )

    def derivative(self, t: float) -> Point2d:
        """Tangent vector at parameter t."""
        omt = 1.0 - t
        return (
            2.0 * (omt * (self.p1[0] - self.p0[0]) + t * (self.p2[0] - self.p1[0])),
            2.0 * (omt * (self.p1[1] - self.p0[1]) + t * (self.p2[1] - self.p1[1])),
        )


###############################################################################
# Circle and reparametrization
###############################################################################


@dataclass(frozen=True)
class Slice:
    """Linear map of [0, 1] onto [start, end]."""

    start: float
    end: float

    def evaluate(self, t: float) -> float:
        """Mapped parameter."""
        return mix(self.start, self.end, t)

    def derivative(self, t: float) -> float:  # pylint: disable=unused-argument
        """Constant slope of the map."""
        return self.end - self.start


@dataclass(frozen=True)
class Reparametrized:
    """
    Curve composed with a scalar function: t -> curve(fn(t)).

    The derivative follows the chain rule: curve'(fn(t)) * fn'(t).
    """

    curve: Curve
    fn: DerivableFunction

    def evaluate(self, t: float) -> Point2d:
        """Point at parameter t."""
        return self.curve.evaluate(self.fn.evaluate(t))

    def derivative(self, t: float) -> Point2d:
        """Tangent vector at parameter t."""
        dx, dy = self.curve.derivative(self.fn.evaluate(t))
        d_fn = self.fn.derivative(t)
        return (dx * d_fn, dy * d_fn)


@dataclass(frozen=True)
class Circle:
    """
    Circle parametrized by the angle (radians, counter-clockwise from the positive x-axis).

    Attributes:
        center_x (float): x-coordinate of the center
        center_y (float): y-coordinate of the center
        radius (float): radius, a negative radius shifts the angle by pi (use Slice(end, start) to run clockwise)
    """

    center_x: float
    center_y: float
    radius: float

    def evaluate(self, t: float) -> Point2d:
        """Point at angle t."""
        return (self.center_x + self.radius * math.cos(t), self.center_y + self.radius * math.sin(t))

    def derivative(self, t: float) -> Point2d:
        """Tangent vector at angle t."""
        return (-self.radius * math.sin(t), self.radius * math.cos(t))

    def arc(self, start_angle: float, end_angle: float) -> Reparametrized:
        """Arc from start_angle to end_angle as a curve on [0, 1]."""
        return Reparametrized(self, Slice(start_angle, end_angle))
