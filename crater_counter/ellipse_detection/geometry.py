r"""
This module provides the geometric building blocks of the ellipse detection.

The detection follows Xie & Ji (`A New Efficient Ellipse Detection Method
<https://doi.org/10.1109/ICPR.2002.1048464>`_).  Every ellipse is found from its major axis: a pair of boundary
points is assumed to be the two ends of the major axis, which fixes the center, the semimajor length and the
orientation of the ellipse, leaving only the semiminor length to be found (which is done by voting, see
:mod:`.voting`).

Testing every pair of points this way is expensive, so pairs that cannot be the ends of a major axis are rejected up
front using the image gradient.  On the boundary of an ellipse the image gradient is (roughly) perpendicular to the
tangent.  At the two ends of the major axis the normal to the boundary is along the major axis itself, so the
gradient at both points has to be (nearly) parallel or anti-parallel to the segment joining them.  This is checked by
:func:`axis_alignment_error` and :func:`hypothesize_major_axis`.

This module also provides the :class:`Ellipse` that is produced for each accepted detection and
:func:`ellipse_circumference` which is used to normalize the votes for an ellipse by its size.
"""

from dataclasses import dataclass

from typing import NamedTuple

import numpy as np

from crater_counter.image_processing.interest_points import InterestPoint
from crater_counter._typing import DOUBLE_ARRAY, F_ARRAY_LIKE, COLOR


AXIS_TOLERANCE: float = np.pi / 6
"""
The largest angle (in radians) allowed between the gradient at a major axis end point and the axis itself (30 degrees)
"""


def angle_between(first: F_ARRAY_LIKE, second: F_ARRAY_LIKE) -> float:
    """
    Compute the unsigned angle between two 2D vectors in radians.

    The result is in [0, pi].  If either vector has zero length the angle is undefined and ``nan`` is returned, which
    fails every tolerance comparison.

    :param first: the first vector
    :param second: the second vector
    :return: the angle between the vectors
    """

    x1, y1 = first
    x2, y2 = second

    if (x1 == 0 and y1 == 0) or (x2 == 0 and y2 == 0):
        return float('nan')

    return float(np.arctan2(abs(x1 * y2 - y1 * x2), x1 * x2 + y1 * y2))


def ellipse_circumference(semimajor: float, semiminor: float) -> float:
    r"""
    Approximate the circumference of an ellipse.

    This uses the Padé approximation

    .. math::
        C \approx \pi (a + b) \frac{64 + 3h^2}{64 - 16h}, \qquad h = \left(\frac{a - b}{a + b}\right)^2

    which is within a fraction of a percent for moderate eccentricities and is exact for circles (:math:`2\pi a`).

    The approximation is only monotonic in each length while the axis ratio is at least about 0.12.  For flatter
    ellipses it grows again as the shorter axis goes to 0 (:math:`C(20, 0.001) > C(20, 2.35)`), so near zero
    semiminor accumulator bins get an inflated circumference and therefore a lower vote density.

    :param semimajor: the semimajor length :math:`a`
    :param semiminor: the semiminor length :math:`b`
    :return: the approximate circumference
    """

    h = ((semimajor - semiminor) / (semimajor + semiminor)) ** 2

    return float(np.pi * (semimajor + semiminor) * (64 + 3 * h * h) / (64 - 16 * h))


class AxisHypothesis(NamedTuple):
    """
    A pair of interest points hypothesized to be the two ends of the major axis of an ellipse.
    """

    first: InterestPoint
    """
    The interest point at one end of the axis
    """

    second: InterestPoint
    """
    The interest point at the other end of the axis
    """

    center: DOUBLE_ARRAY
    """
    The midpoint of the two points, which is the center of the hypothesized ellipse
    """

    semimajor: float
    """
    Half of the distance between the two points
    """

    orientation: float
    """
    The angle of the axis from the first point to the second point in radians, measured from the +x (column) axis
    toward the +y (row) axis.
    """

    alignment_error: float
    """
    The worst angle between the axis and the end point gradients in radians (see :func:`axis_alignment_error`)
    """


def axis_alignment_error(first: InterestPoint, second: InterestPoint) -> float:
    """
    Compute how far the gradients of two points are from lying along the segment joining them.

    For each point the smaller of the angles between its gradient and the two directions of the segment (first to
    second and second to first) is found, so that gradients pointing either into or out of the ellipse are treated
    alike.  The larger of the two per-point angles is returned.

    Coincident points give ``nan``.

    :param first: the point at one end of the segment
    :param second: the point at the other end of the segment
    :return: the alignment error in radians
    """

    forward = second.position - first.position
    backward = -forward

    first_error = min(angle_between(forward, first.direction), angle_between(backward, first.direction))
    second_error = min(angle_between(forward, second.direction), angle_between(backward, second.direction))

    # nan has to propagate so that degenerate pairs are rejected
    if np.isnan(first_error) or np.isnan(second_error):
        return float('nan')

    return max(first_error, second_error)


def hypothesize_major_axis(first: InterestPoint, second: InterestPoint,
                           tolerance: float = AXIS_TOLERANCE) -> AxisHypothesis | None:
    """
    Decide whether two interest points could be the ends of the major axis of an ellipse.

    The pair is accepted when :func:`axis_alignment_error` is less than `tolerance`.  Self pairs, coincident points
    and points without a gradient are always rejected.

    :param first: the point at one end of the axis
    :param second: the point at the other end of the axis
    :param tolerance: the largest allowed alignment error in radians
    :return: The hypothesis if the pair is accepted, otherwise ``None``
    """

    if first is second:
        return None

    error = axis_alignment_error(first, second)

    if not error < tolerance:
        return None

    first_position = first.position
    second_position = second.position
    axis = second_position - first_position

    return AxisHypothesis(first=first,
                          second=second,
                          center=(first_position + second_position) / 2,
                          semimajor=float(np.linalg.norm(axis)) / 2,
                          orientation=float(np.arctan2(axis[1], axis[0])),
                          alignment_error=error)


@dataclass(frozen=True)
class Ellipse:
    """
    An accepted ellipse detection along with the interest points that were attributed to it.

    The semiminor length is whatever the voting produced.  It is not forced to be smaller than the semimajor length;
    use :attr:`axes_swapped` to check for that case.
    """

    center: tuple[float, float]
    """
    The center of the ellipse (x, y) in pixels
    """

    semimajor: float
    """
    The semimajor length (half the distance between the axis end points) in pixels
    """

    semiminor: float
    """
    The semiminor length found by voting in pixels
    """

    orientation: float
    """
    The angle of the major axis from the +x axis toward the +y axis in radians
    """

    endpoint1: tuple[float, float]
    """
    The first end of the major axis (x, y)
    """

    endpoint2: tuple[float, float]
    """
    The second end of the major axis (x, y)
    """

    contributing_points: tuple[InterestPoint, ...] = ()
    """
    The interest points attributed to this ellipse (including the axis end points)
    """

    color: COLOR = (255, 0, 0)
    """
    A display colour for the ellipse.  This is cosmetic only.
    """

    score: float = 0.0
    """
    The number of votes per unit circumference the ellipse was accepted with
    """

    @property
    def major_axis(self) -> float:
        """
        The full length of the major axis (twice the semimajor length)
        """
        return 2 * self.semimajor

    @property
    def minor_axis(self) -> float:
        """
        The full length of the minor axis (twice the semiminor length)
        """
        return 2 * self.semiminor

    @property
    def axes_swapped(self) -> bool:
        """
        ``True`` when the voted semiminor length is longer than the semimajor length.
        """
        return self.semiminor > self.semimajor

    @property
    def circumference(self) -> float:
        """
        The approximate circumference of the ellipse (see :func:`ellipse_circumference`)
        """
        return ellipse_circumference(self.semimajor, self.semiminor)

    def boundary_points(self, count: int = 64) -> DOUBLE_ARRAY:
        """
        Sample points evenly in parametric angle around the ellipse.

        :param count: The number of points to sample
        :return: the points as a 2 x count array (x in the first row, y in the second)
        """

        theta = np.linspace(0, 2 * np.pi, count, endpoint=False)

        cos_o, sin_o = np.cos(self.orientation), np.sin(self.orientation)

        major = self.semimajor * np.cos(theta)
        minor = self.semiminor * np.sin(theta)

        return np.vstack([self.center[0] + major * cos_o - minor * sin_o,
                          self.center[1] + major * sin_o + minor * cos_o])

    def to_cv2_box(self) -> tuple[tuple[float, float], tuple[float, float], float]:
        """
        Express the ellipse as the rotated rectangle tuple used by ``cv2.ellipse``/``cv2.fitEllipse``.

        :return: ((center x, center y), (major axis, minor axis), orientation in degrees)
        """

        return self.center, (self.major_axis, self.minor_axis), float(np.rad2deg(self.orientation))
