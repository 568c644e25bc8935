"""
This module provides the :class:`EllipseRegistry`, which owns the interest points that are still available to the
detection and the ellipses that have been accepted so far.

The working set is ordered (the detection cursor walks it by position) but points are attributed to ellipses by their
:attr:`~.InterestPoint.identity`, so removing points never changes which point an accumulator bin refers to.  The
registry is the only thing that removes points from the working set, and it does so only when an ellipse is accepted,
moving the points into the new :class:`.Ellipse` so that every point belongs to at most one ellipse.
"""

import logging

from typing import Iterable

import numpy as np

from crater_counter.ellipse_detection.geometry import AxisHypothesis, Ellipse
from crater_counter.ellipse_detection.voting import AccumulatorBin
from crater_counter.image_processing.interest_points import InterestPoint
from crater_counter._typing import COLOR


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class EllipseRegistry:
    """
    Holds the working set of interest points and the list of accepted ellipses for one detection episode.

    Typical use is:

        >>> registry = EllipseRegistry()
        >>> registry.load(points)
        >>> ellipse = registry.accept(hypothesis, vote_result.best, vote_result.score)
        >>> len(registry.remaining), len(registry.ellipses)

    The display colour of each accepted ellipse is drawn at random (each channel uniformly in [64, 260) and truncated
    to 255) from a generator seeded with `random_seed`.
    """

    def __init__(self, random_seed: int | None = None) -> None:
        """
        :param random_seed: The seed for the display colour generator
        """

        self._rng: np.random.Generator = np.random.default_rng(random_seed)

        self._working: list[InterestPoint] = []

        self._ellipses: list[Ellipse] = []

    @property
    def remaining(self) -> tuple[InterestPoint, ...]:
        """
        The interest points that have not been attributed to an ellipse, in working set order
        """
        return tuple(self._working)

    @property
    def ellipses(self) -> tuple[Ellipse, ...]:
        """
        The accepted ellipses in the order they were accepted
        """
        return tuple(self._ellipses)

    def __len__(self) -> int:
        return len(self._working)

    def point_at(self, index: int) -> InterestPoint:
        """
        Get the interest point at a position in the working set.

        :param index: The position in the working set
        :return: the interest point
        :raises ValueError: if the index is outside of the working set
        """

        if not 0 <= index < len(self._working):
            raise ValueError(f'index {index} is outside of the working set of {len(self._working)} points')

        return self._working[index]

    def load(self, points: Iterable[InterestPoint]) -> None:
        """
        Replace the working set (the accepted ellipses are kept).

        If the identities of the points are not unique they are renumbered in order, since votes are tracked by
        identity.

        :param points: the interest points to work with
        """

        working = list(points)

        if len({point.identity for point in working}) != len(working):
            _LOGGER.debug('Interest point identities are not unique.  Renumbering them')
            working = [point._replace(identity=ind) for ind, point in enumerate(working)]

        self._working = working

    def clear(self) -> None:
        """
        Forget the working set and every accepted ellipse.
        """

        self._working = []
        self._ellipses = []

    def _random_color(self) -> COLOR:

        channels = np.minimum(self._rng.random(3) * 196 + 64, 255).astype(int)

        return int(channels[0]), int(channels[1]), int(channels[2])

    def accept(self, hypothesis: AxisHypothesis, winner: AccumulatorBin, score: float = 0.0) -> Ellipse:
        """
        Accept a hypothesis as an ellipse, moving its supporting points out of the working set.

        Every working point whose identity is in the contributors of `winner`, along with the two ends of the major
        axis, is removed from the working set and stored (in working set order) in the new ellipse.

        :param hypothesis: The accepted major axis hypothesis
        :param winner: The accumulator bin that supports the hypothesis
        :param score: The vote density of the winning bin
        :return: the new ellipse
        """

        consumed = set(winner.contributors)
        consumed.add(hypothesis.first.identity)
        consumed.add(hypothesis.second.identity)

        contributing = [point for point in self._working if point.identity in consumed]
        self._working = [point for point in self._working if point.identity not in consumed]

        ellipse = Ellipse(center=(float(hypothesis.center[0]), float(hypothesis.center[1])),
                          semimajor=hypothesis.semimajor,
                          semiminor=winner.semiminor,
                          orientation=hypothesis.orientation,
                          endpoint1=(hypothesis.first.x, hypothesis.first.y),
                          endpoint2=(hypothesis.second.x, hypothesis.second.y),
                          contributing_points=tuple(contributing),
                          color=self._random_color(),
                          score=score)

        self._ellipses.append(ellipse)

        _LOGGER.info(f'Accepted ellipse {len(self._ellipses)} at ({ellipse.center[0]:.1f}, {ellipse.center[1]:.1f}) '
                     f'with a={ellipse.semimajor:.2f}, b={ellipse.semiminor:.2f} from {len(contributing)} points. '
                     f'{len(self._working)} points remain')

        if ellipse.axes_swapped:
            _LOGGER.warning(f'The semiminor length ({ellipse.semiminor:.2f}) of ellipse {len(self._ellipses)} is longer '
                            f'than its semimajor length ({ellipse.semimajor:.2f}).  Keeping the values as computed')

        return ellipse
