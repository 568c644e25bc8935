r"""
This module provides the semiminor axis voting used to confirm or reject a major axis hypothesis.

Description of the Technique
----------------------------

Once a pair of points has been accepted as the ends of the major axis of an ellipse (see :mod:`.geometry`) the
center :math:`(x_0, y_0)`, the semimajor length :math:`a` and the orientation of the ellipse are known.  Every other
interest point :math:`p` that lies on the same ellipse then determines the semiminor length :math:`b`.  With

.. math::
    d = \|p - (x_0, y_0)\|, \qquad f = \min(\|p - p_1\|, \|p - p_2\|)

the angle :math:`\tau` between the major axis and the line from the center to :math:`p` follows from the law of
cosines,

.. math::
    \cos^2\tau = \left(\frac{a^2 + d^2 - f^2}{2ad}\right)^2

and the semiminor length is

.. math::
    b = \sqrt{\frac{a^2 d^2 \sin^2\tau}{a^2 - d^2\cos^2\tau}}

Points that really are on the ellipse all produce (about) the same :math:`b`, while other points scatter.  The
estimates are therefore binned in a one dimensional accumulator, where an estimate joins the first bin whose
representative value is within :attr:`~EllipseVotingEngineOptions.similarity_tolerance` pixels, and the representative
value of the bin drifts toward each new member.

Raw vote counts favour large ellipses, simply because more interest points fit along a longer boundary, so each bin
is scored by its vote density: the number of votes divided by the circumference of the ellipse it describes.  Since
the density alone over-rewards tiny ellipses, a hypothesis is only accepted when the best bin both exceeds
:attr:`~EllipseVotingEngineOptions.density_threshold` and has more than
:attr:`~EllipseVotingEngineOptions.min_votes` votes.

Degenerate Geometry
-------------------

A number of configurations make the semiminor recovery ill conditioned (a point right at the center, or a denominator
near 0).  These are not errors.  The squared cosine is clipped to [0, 1] to absorb rounding and the absolute value is
taken before the square root so that such points produce (wild) finite votes which land in sparsely populated bins,
and estimates that are still not finite are dropped.

Tuning
------

:attr:`~EllipseVotingEngineOptions.similarity_tolerance` should be a few pixels; too small and the votes for a real
ellipse spread over several bins, too large and unrelated votes merge.  The acceptance thresholds
:attr:`~EllipseVotingEngineOptions.density_threshold` and :attr:`~EllipseVotingEngineOptions.min_votes` depend on how
densely the image was sampled for interest points, so they should be revisited whenever the sampling grid changes.
"""

import logging

from dataclasses import dataclass, field

from enum import Enum

from typing import NamedTuple, Iterable

import numpy as np

from crater_counter.ellipse_detection.geometry import AxisHypothesis, ellipse_circumference
from crater_counter.image_processing.interest_points import InterestPoint
from crater_counter.utilities.options import UserOptions
from crater_counter.utilities.mixin_classes.user_option_configured import UserOptionConfigured
from crater_counter.utilities.mixin_classes.attribute_equality_comparison import AttributeEqualityComparison
from crater_counter.utilities.mixin_classes.attribute_printing import AttributePrinting


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class GradientPolarity(Enum):
    """
    An enum specifying which way the gradient of a voting point must point relative to the ellipse center.
    """

    INWARD = 1
    """
    The gradient must point toward the center (within the center tolerance)
    """

    OUTWARD = -1
    """
    The gradient must point away from the center (within the center tolerance)
    """

    EITHER = 0
    """
    The gradient may point toward or away from the center
    """


@dataclass
class AccumulatorBin:
    """
    A cluster of similar semiminor estimates gathered during one voting pass.
    """

    semiminor: float
    """
    The representative semiminor value of the bin
    """

    votes: int = 1
    """
    The number of estimates that joined this bin
    """

    contributors: list[int] = field(default_factory=list)
    """
    The identities of the interest points whose estimates joined this bin
    """


class VoteResult(NamedTuple):
    """
    The outcome of a voting pass for a single major axis hypothesis.
    """

    best: AccumulatorBin
    """
    The bin with the highest vote density
    """

    score: float
    """
    The vote density (votes per unit circumference) of the best bin
    """

    bins: list[AccumulatorBin]
    """
    Every bin that was opened during the pass, in the order they were opened
    """

    scores: list[float]
    """
    The vote density of each bin in :attr:`bins`
    """


@dataclass
class EllipseVotingEngineOptions(UserOptions):
    """
    This class defines the options used to configure the :class:`EllipseVotingEngine`.
    """

    similarity_tolerance: float = 7.0
    """
    How close (in pixels) a semiminor estimate must be to the value of a bin to join it.
    """

    update_weight: float = 0.25
    """
    The weight given to a new estimate when updating the representative value of the bin it joins.
    """

    center_tolerance: float = np.pi / 4
    """
    The largest angle (in radians) allowed between the gradient of a voting point and the direction to the center.
    """

    gradient_polarity: GradientPolarity = GradientPolarity.INWARD
    """
    Which way the gradient of a voting point has to point relative to the center.

    The default expects the gradient to point toward the center of the ellipse.  Use ``OUTWARD`` for images where
    craters are brighter than their surroundings, or ``EITHER`` when the polarity is unknown.
    """

    density_threshold: float = 0.2
    """
    The vote density (votes per pixel of circumference) the best bin must exceed for the ellipse to be accepted.
    """

    min_votes: int = 8
    """
    The number of votes the best bin must exceed for the ellipse to be accepted.
    """


class EllipseVotingEngine(UserOptionConfigured[EllipseVotingEngineOptions],
                          AttributeEqualityComparison,
                          AttributePrinting,
                          EllipseVotingEngineOptions):
    """
    This class estimates the semiminor length of a hypothesized ellipse by letting interest points vote on it.

    Use :meth:`vote` to run a voting pass for a hypothesis and :meth:`accepts` to decide whether the winning bin is
    strong enough for the hypothesis to become a detected ellipse:

        >>> engine = EllipseVotingEngine()
        >>> result = engine.vote(hypothesis, points)
        >>> if result is not None and engine.accepts(result):
        ...     print(result.best.semiminor)

    The semiminor estimate of a single point can be computed with :meth:`estimate_semiminor` and scores with
    :meth:`score_bins`.
    """

    def __init__(self, options: EllipseVotingEngineOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """
        super().__init__(EllipseVotingEngineOptions, options=options)

    def faces_center(self, point: InterestPoint, center: np.ndarray) -> bool:
        """
        Check whether the gradient at a point is consistent with the point lying on an ellipse around `center`.

        :param point: the candidate point
        :param center: the center of the hypothesized ellipse
        :return: ``True`` if the gradient agrees with :attr:`gradient_polarity` within :attr:`center_tolerance`
        """

        to_center = center - point.position
        direction = point.direction

        norms = np.linalg.norm(to_center) * np.linalg.norm(direction)
        if norms == 0:
            return False

        cosine = float(to_center @ direction) / norms

        if self.gradient_polarity is GradientPolarity.EITHER:
            cosine = abs(cosine)
        elif self.gradient_polarity is GradientPolarity.OUTWARD:
            cosine = -cosine

        return cosine >= np.cos(self.center_tolerance)

    @staticmethod
    def estimate_semiminor(hypothesis: AxisHypothesis, point: InterestPoint) -> float | None:
        """
        Compute the semiminor length implied by a point lying on the hypothesized ellipse.

        The gradient of the point is not checked here (see :meth:`faces_center`).

        :param hypothesis: the major axis hypothesis
        :param point: the point to compute the estimate for
        :return: The semiminor estimate, or ``None`` if the point is farther from the center than the semimajor length
                 or the estimate is not finite
        """

        semimajor = np.float64(hypothesis.semimajor)
        position = point.position

        distance = np.linalg.norm(position - hypothesis.center)
        if distance > semimajor:
            return None

        focal = min(np.linalg.norm(position - hypothesis.first.position),
                    np.linalg.norm(position - hypothesis.second.position))

        with np.errstate(divide='ignore', invalid='ignore'):
            cos_tau_sq = ((semimajor ** 2 + distance ** 2 - focal ** 2) / (2 * semimajor * distance)) ** 2
            # rounding can push this slightly above 1
            cos_tau_sq = np.clip(cos_tau_sq, 0.0, 1.0)
            sin_tau_sq = 1.0 - cos_tau_sq

            semiminor = np.sqrt(np.abs((semimajor ** 2 * distance ** 2 * sin_tau_sq) /
                                       (semimajor ** 2 - distance ** 2 * cos_tau_sq)))

        if not np.isfinite(semiminor):
            return None

        return float(semiminor)

    def accumulate(self, bins: list[AccumulatorBin], semiminor: float, identity: int) -> None:
        """
        Add a semiminor estimate to the accumulator in place.

        The estimate joins the first bin within :attr:`similarity_tolerance` of it (moving the value of the bin toward
        the estimate by :attr:`update_weight`), or opens a new bin.

        :param bins: the accumulator
        :param semiminor: the estimate to add
        :param identity: the identity of the point that produced the estimate
        """

        for accumulator_bin in bins:
            if abs(accumulator_bin.semiminor - semiminor) < self.similarity_tolerance:
                accumulator_bin.semiminor = ((1 - self.update_weight) * accumulator_bin.semiminor +
                                             self.update_weight * semiminor)
                accumulator_bin.votes += 1
                accumulator_bin.contributors.append(identity)
                return

        bins.append(AccumulatorBin(semiminor, 1, [identity]))

    @staticmethod
    def score_bins(semimajor: float, bins: list[AccumulatorBin]) -> list[float]:
        """
        Compute the vote density of each bin.

        :param semimajor: the semimajor length of the hypothesis
        :param bins: the accumulator
        :return: the number of votes per unit circumference for each bin
        """

        return [accumulator_bin.votes / ellipse_circumference(semimajor, accumulator_bin.semiminor)
                for accumulator_bin in bins]

    def vote(self, hypothesis: AxisHypothesis, points: Iterable[InterestPoint],
             excluded: Iterable[int] | None = None) -> VoteResult | None:
        """
        Run a voting pass for a major axis hypothesis.

        The end points of the hypothesis never vote.  Neither do points whose identity is in `excluded`.

        :param hypothesis: The major axis hypothesis to vote on
        :param points: The interest points that may vote
        :param excluded: Identities of points that should not vote
        :return: The best supported bin with its score and the full accumulator, or ``None`` if nothing voted
        """

        skip = {hypothesis.first.identity, hypothesis.second.identity}
        if excluded is not None:
            skip.update(excluded)

        bins: list[AccumulatorBin] = []

        for point in points:
            if point.identity in skip:
                continue

            if not self.faces_center(point, hypothesis.center):
                continue

            semiminor = self.estimate_semiminor(hypothesis, point)
            if semiminor is None:
                continue

            self.accumulate(bins, semiminor, point.identity)

        if not bins:
            return None

        scores = self.score_bins(hypothesis.semimajor, bins)
        best = int(np.argmax(scores))

        _LOGGER.debug(f'{sum(b.votes for b in bins)} votes in {len(bins)} bins, best score {scores[best]:.3f} '
                      f'with {bins[best].votes} votes')

        return VoteResult(bins[best], scores[best], bins, scores)

    def accepts(self, result: VoteResult | None) -> bool:
        """
        Decide whether the result of a voting pass is strong enough to accept the hypothesis as an ellipse.

        :param result: the result of :meth:`vote`
        :return: ``True`` if the best bin's score exceeds :attr:`density_threshold` and its votes exceed
                 :attr:`min_votes`
        """

        if result is None:
            return False

        return result.score > self.density_threshold and result.best.votes > self.min_votes
