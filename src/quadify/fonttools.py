"""Output of fitted quadratic splines to glyph outlines via the FontTools pen protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
from fontTools.pens.basePen import AbstractPen
from numpy.typing import NDArray

from quadify.common import Point2d, SplineCmds, mid_point
from quadify.curves import Curve
from quadify.estimate import QuadSegment


@dataclass(frozen=True)
class QuadraticSpline:
    """
    A chain of quadratic Bezier segments in TrueType notation.

    The on-curve joints are implied as midpoints of consecutive off-curve points, so
    the chain is fully described by its start point, off-curve points and end point.

    Attributes:
        start (Point2d): on-curve start point
        off_points (Tuple[Point2d, ...]): off-curve points in curve order
        end (Point2d): on-curve end point
    """

    start: Point2d
    off_points: Tuple[Point2d, ...]
    end: Point2d

    @classmethod
    def from_fit(
        cls, curve: Curve, off_points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]]
    ) -> QuadraticSpline:
        """Create the spline of a fit result, anchored at the end points of the fitted curve."""
        start_x, start_y = curve.evaluate(0.0)
        end_x, end_y = curve.evaluate(1.0)
        return cls(
            start=(float(start_x), float(start_y)),
            off_points=tuple((float(x), float(y)) for x, y in off_points),
            end=(float(end_x), float(end_y)),
        )

    def segments(self) -> List[QuadSegment]:
        """Explicit segments (start, ctrl, end) of the chain."""
        offs = self.off_points
        if not offs:
            return []
        joints = [self.start] + [mid_point(offs[j], offs[j + 1]) for j in range(len(offs) - 1)] + [self.end]
        return [(joints[j], ctrl, joints[j + 1]) for j, ctrl in enumerate(offs)]

    def to_points_commands(self) -> Tuple[NDArray[np.float64], List[SplineCmds]]:
        """
        Points and commands of the chain with explicit joints.

        Points have dimension 3: (x, y, type), type is 0.0 for on-curve points and
        2.0 for quadratic control points. Commands are one "M" followed by one "Q" per
        segment; every "Q" consumes two points (control point and end point).

        Returns:
            Tuple[NDArray[np.float64], List[SplineCmds]]: points of shape (1 + 2*n, 3) and commands
        """
        segments = self.segments()
        points = np.empty((1 + 2 * len(segments), 3), dtype=np.float64)
        points[0] = (self.start[0], self.start[1], 0.0)
        commands: List[SplineCmds] = ["M"]
        for j, (_, ctrl, end) in enumerate(segments):
            points[1 + 2 * j] = (ctrl[0], ctrl[1], 2.0)
            points[2 + 2 * j] = (end[0], end[1], 0.0)
            commands.append("Q")
        return points, commands

    def draw(self, pen: AbstractPen, move_to: bool = True) -> None:
        """
        Draw the chain into a FontTools pen.

        The chain is emitted as a single qCurveTo with all off-curve points, the joints
        stay implied. A chain without off-curve points is drawn as a line.

        Args:
            pen (AbstractPen): target pen, e.g. a TTGlyphPen or RecordingPen
            move_to (bool): start a new contour at the start point (default True),
                otherwise the pen's current point must be the start point
        """
        if move_to:
            pen.moveTo(self.start)
        if self.off_points:
            pen.qCurveTo(*self.off_points, self.end)
        else:
            pen.lineTo(self.end)
