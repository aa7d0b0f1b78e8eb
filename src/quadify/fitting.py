"""Fitting of quadratic spline chains to smooth parametric curves.

`QuadraticSplineFitter` computes the off-curve points of a chain of quadratic Bezier
segments approximating a `Curve`, either for a fixed number of segments or by
increasing the number of segments until an error bound is met.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from quadify.common import Point2d, mid_point
from quadify.curves import Circle, Curve
from quadify.estimate import QuadraticDistance, QuadSegment
from quadify.spline import SplineSystem, TangentIntersector

logger = logging.getLogger(__name__)


###############################################################################
# Errors
###############################################################################


class QuadifyError(Exception):
    """Base exception for quadratic spline fitting errors."""


class SingleSegmentFitError(QuadifyError):
    """Raised when the end tangents of a curve do not meet in front of a single segment."""


###############################################################################
# FitConfig
###############################################################################


@dataclass(frozen=True)
class FitConfig:
    """Parameters of the adaptive fit.

    Attributes:
        allow_error: Upper bound (exclusive) for the mean squared deviation of a fit.
        max_segments: Largest number of segments tried.
        samples: Number of error samples per segment.
    """

    allow_error: float = 0.1
    max_segments: int = 32
    samples: int = 128

    def __post_init__(self):
        if not self.allow_error >= 0:
            raise ValueError(f"allow_error must be non-negative, got {self.allow_error}")
        if self.max_segments < 0:
            raise ValueError(f"max_segments must be non-negative, got {self.max_segments}")
        if self.samples < 1:
            raise ValueError(f"samples must be at least 1, got {self.samples}")

    def to_dict(self) -> dict:
        """Convert config to a dictionary for serialization."""
        return {
            "allow_error": self.allow_error,
            "max_segments": self.max_segments,
            "samples": self.samples,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FitConfig":
        """Create FitConfig from a dictionary, missing keys take the field defaults."""
        defaults = cls()
        return cls(
            allow_error=data.get("allow_error", defaults.allow_error),
            max_segments=data.get("max_segments", defaults.max_segments),
            samples=data.get("samples", defaults.samples),
        )


DEFAULT_FIT_CONFIG = FitConfig()


###############################################################################
# Results
###############################################################################


@dataclass(frozen=True)
class FitAttempt:
    """Outcome of fitting a curve with a given number of segments.

    Exactly one of `off_points` and `reason` is set.
    """

    segments: int
    off_points: Optional[NDArray[np.float64]] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True if the attempt produced off-curve points."""
        return self.off_points is not None and len(self.off_points) > 0


@dataclass(frozen=True)
class AdaptiveFitResult:
    """Result of an adaptive fit.

    Attributes:
        off_points: Off-curve points of the returned fit, None if no attempt succeeded.
        segments: Number of segments of the returned fit (0 if none).
        error: Estimated mean squared deviation of the returned fit (inf if none).
        satisfied: True if error is below the requested bound.
        attempts: Number of segment counts tried.
    """

    off_points: Optional[NDArray[np.float64]]
    segments: int
    error: float
    satisfied: bool
    attempts: int


###############################################################################
# QuadraticSplineFitter
###############################################################################


class QuadraticSplineFitter:
    """
    Fits chains of quadratic Bezier segments to curves.

    An instance owns the cache of inverted spline matrices, so reusing one fitter for
    many curves avoids repeated matrix inversions. Fitting is deterministic.
    """

    def __init__(self, system: Optional[SplineSystem] = None) -> None:
        self._system = system if system is not None else SplineSystem()

    @property
    def system(self) -> SplineSystem:
        """The spline system (and its inverse matrix cache) used by this fitter."""
        return self._system

    def attempt_fit(self, curve: Curve, n: int) -> FitAttempt:
        """
        Fit the curve with n segments without raising on failure.

        Returns:
            FitAttempt: points of shape (n, 2), or the reason why no fit exists
        """
        if n <= 0:
            return FitAttempt(n, off_points=np.empty((0, 2), dtype=np.float64))

        if n == 1:
            off_point = TangentIntersector.find_intersection(
                curve.evaluate(0.0), curve.derivative(0.0), curve.derivative(1.0), curve.evaluate(1.0)
            )
            if off_point is None:
                return FitAttempt(n, reason="end tangents do not intersect in front of the curve")
            off_points = np.array([off_point], dtype=np.float64)
        else:
            try:
                off_points = self._system.solve(curve, n)
            except np.linalg.LinAlgError as err:
                return FitAttempt(n, reason=f"singular spline system: {err}")

        if not np.all(np.isfinite(off_points)):
            return FitAttempt(n, reason="non-finite off-curve points")
        return FitAttempt(n, off_points=off_points)

    def fit_fixed_segments(self, curve: Curve, n: int) -> NDArray[np.float64]:
        """
        Off-curve points of an n-segment quadratic spline approximating the curve.

        A single segment uses the intersection of the end tangents; more segments solve
        the spline system. n <= 0 yields an empty array of shape (0, 2).

        Args:
            curve (Curve): curve to approximate
            n (int): number of segments

        Returns:
            NDArray[np.float64]: off-curve points of shape (n, 2) in curve order

        Raises:
            SingleSegmentFitError: if n == 1 and the end tangents diverge
            QuadifyError: if no finite solution exists
        """
        attempt = self.attempt_fit(curve, n)
        if attempt.off_points is None:
            if n == 1:
                raise SingleSegmentFitError(f"No valid single segment fit: {attempt.reason}")
            raise QuadifyError(f"No valid fit with {n} segments: {attempt.reason}")
        return attempt.off_points

    @staticmethod
    def spline_segments(curve: Curve, off_points: NDArray[np.float64]) -> List[QuadSegment]:
        """
        The quadratic segments (start, ctrl, end) defined by the off-curve points.

        Segment j is controlled by off-curve point j and joins the midpoints to its
        neighbours; the first segment starts at curve(0), the last ends at curve(1).
        """
        count = len(off_points)
        ctrls: List[Point2d] = [(float(x), float(y)) for x, y in off_points]
        segments: List[QuadSegment] = []
        for j, ctrl in enumerate(ctrls):
            start = mid_point(ctrls[j - 1], ctrl) if j > 0 else curve.evaluate(0.0)
            end = mid_point(ctrl, ctrls[j + 1]) if j < count - 1 else curve.evaluate(1.0)
            segments.append((start, ctrl, end))
        return segments

    def estimate_error(self, curve: Curve, off_points: NDArray[np.float64], samples: int) -> float:
        """
        Mean squared deviation of the spline from the curve.

        The curve is sampled at t = k/samples for k = 1 .. samples-1 and the squared
        distance of each sample to the nearest spline segment is summed up. The sum is
        divided by samples: the two end points lie on the spline and count as zero.

        Raises:
            ValueError: if samples < 1
        """
        if samples < 1:
            raise ValueError(f"samples must be at least 1, got {samples}")
        segments = self.spline_segments(curve, off_points)
        square_dist = 0.0
        for k in range(1, samples):
            square_dist += QuadraticDistance.min_squared_distance_to_chain(curve.evaluate(k / samples), segments)
        return square_dist / samples

    def fit_adaptive_report(
        self, curve: Curve, max_error: float, max_segments: int, samples: int
    ) -> AdaptiveFitResult:
        """
        Fit with the smallest number of segments whose error is below max_error.

        Segment counts 1 .. max_segments are tried in order. Failed attempts are skipped.
        The error of an s-segment fit is estimated with samples * s samples. If no count
        meets the bound, the last successful fit is returned as best effort.
        No fit is produced for samples < 1.
        """
        if samples < 1:
            logger.debug("No fit: samples must be at least 1, got %d", samples)
            return AdaptiveFitResult(None, 0, math.inf, False, 0)

        best: Optional[NDArray[np.float64]] = None
        best_segments = 0
        best_error = math.inf
        attempts = 0
        for s in range(1, max_segments + 1):
            attempts += 1
            attempt = self.attempt_fit(curve, s)
            if not attempt.ok:
                logger.debug("Skipping %d segment(s): %s", s, attempt.reason)
                continue
            error = self.estimate_error(curve, attempt.off_points, samples * s)
            if error < max_error:
                logger.debug("Fit with %d segment(s) meets error bound (%g < %g)", s, error, max_error)
                return AdaptiveFitResult(attempt.off_points, s, error, True, attempts)
            best, best_segments, best_error = attempt.off_points, s, error

        if best is None:
            logger.debug("No fit found with up to %d segment(s)", max_segments)
        else:
            logger.debug(
                "Error bound %g not met, best effort with %d segment(s): %g", max_error, best_segments, best_error
            )
        return AdaptiveFitResult(best, best_segments, best_error, False, attempts)

    def fit_adaptive(
        self, curve: Curve, max_error: float, max_segments: int, samples: int
    ) -> Optional[NDArray[np.float64]]:
        """
        Off-curve points of the adaptive fit (see fit_adaptive_report).

        Returns:
            Optional[NDArray[np.float64]]: points of shape (s, 2) or None if no fit exists
        """
        return self.fit_adaptive_report(curve, max_error, max_segments, samples).off_points


###############################################################################
# Functions
###############################################################################


def quadify_curve(curve: Curve, n: int = 1, fitter: Optional[QuadraticSplineFitter] = None) -> NDArray[np.float64]:
    """Fixed-segment fit, see QuadraticSplineFitter.fit_fixed_segments."""
    fitter = fitter if fitter is not None else QuadraticSplineFitter()
    return fitter.fit_fixed_segments(curve, n)


def auto_quadify(
    curve: Curve, config: Optional[FitConfig] = None, fitter: Optional[QuadraticSplineFitter] = None
) -> Optional[NDArray[np.float64]]:
    """Adaptive fit with the parameters of config (defaults: DEFAULT_FIT_CONFIG)."""
    config = config if config is not None else DEFAULT_FIT_CONFIG
    fitter = fitter if fitter is not None else QuadraticSplineFitter()
    return fitter.fit_adaptive(curve, config.allow_error, config.max_segments, config.samples)


def main() -> None:
    """Fit a half circle and print the resulting off-curve points."""
    fitter = QuadraticSplineFitter()
    half_circle = Circle(0.0, 0.0, 500.0).arc(0.0, math.pi)
    result = fitter.fit_adaptive_report(half_circle, 0.1, 32, 128)
    print(f"segments: {result.segments}, error: {result.error:.6f}, satisfied: {result.satisfied}")
    if result.off_points is not None:
        for x, y in result.off_points:
            print(f"  ({x:10.4f}, {y:10.4f})")


if __name__ == "__main__":
    main()
