"""
This module provides the :class:`DetectionSession`, the incremental driver of the crater (ellipse) detection.

Description
-----------

Testing every pair of interest points as a major axis hypothesis, with a voting pass over every other point for each
accepted pair, is far too much work to do at once inside a rendering loop.  The session therefore works through the
pairs with an explicit cursor ``(p1, p2)`` and does exactly one pair per call to :meth:`~DetectionSession.step`.  All
of the state (the cursor, the working set of interest points and the accepted ellipses) lives on the session, so the
host can call :meth:`~DetectionSession.step` once per frame and draw :attr:`~StepResult.ellipses` in between.

The session moves through the :class:`DetectionState` states:

* ``IDLE``: nothing to do, :meth:`~DetectionSession.step` does nothing.
* ``EXTRACTING``: the interest points for the current scene still have to be found.  The next step finds them.
* ``STEPPING``: the cursor is walking the pairs.  Each step tests one pair.
* ``DONE``: every pair has been tested since the last acceptance.  Further steps do nothing.

Whenever an ellipse is accepted its points leave the working set, so positions in the working set shift and the
cursor goes back to ``(0, 0)``.  When the scene changes the host calls :meth:`~DetectionSession.reset`, which throws
away all of the work for the old scene.

Use
---

    >>> import cv2
    >>> from crater_counter import DetectionSession, DetectionState
    >>> session = DetectionSession(cv2.imread('tile.png'))
    >>> session.start()
    >>> while session.step().state is not DetectionState.DONE:
    ...     pass  # draw a frame here
    >>> print(len(session.ellipses))

or, when there is nothing to interleave, :meth:`~DetectionSession.run` steps until the session is done.
"""

import logging

from dataclasses import dataclass, field

from enum import Enum, auto

from typing import NamedTuple

from numpy.typing import NDArray

from crater_counter.ellipse_detection.geometry import AXIS_TOLERANCE, AxisHypothesis, Ellipse, hypothesize_major_axis
from crater_counter.ellipse_detection.registry import EllipseRegistry
from crater_counter.ellipse_detection.voting import EllipseVotingEngine, EllipseVotingEngineOptions
from crater_counter.image_processing.gradient_fields import GradientFieldProvider, ScharrGradientField
from crater_counter.image_processing.interest_points import (InterestPoint, InterestPointExtractor,
                                                             InterestPointExtractorOptions)
from crater_counter.utilities.options import UserOptions
from crater_counter.utilities.mixin_classes.user_option_configured import UserOptionConfigured
from crater_counter.utilities.mixin_classes.attribute_printing import AttributePrinting


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class DetectionState(Enum):
    """
    An enum specifying the state of a :class:`DetectionSession`.
    """

    IDLE = auto()
    """
    No detection is running
    """

    EXTRACTING = auto()
    """
    The interest points for the current scene have not been computed yet
    """

    STEPPING = auto()
    """
    The cursor is walking the point pairs
    """

    DONE = auto()
    """
    Every pair has been tested
    """


class DetectionCursor(NamedTuple):
    """
    The position of the detection in the pairs of the working set.
    """

    p1: int = 0
    """
    The position of the first point of the next pair in the working set
    """

    p2: int = 0
    """
    The position of the second point of the next pair in the working set
    """


class StepResult(NamedTuple):
    """
    What happened during one call to :meth:`DetectionSession.step`.
    """

    state: DetectionState
    """
    The state of the session after the step
    """

    ellipses: tuple[Ellipse, ...]
    """
    Every ellipse accepted so far in this episode
    """

    hypothesis: AxisHypothesis | None = None
    """
    The major axis hypothesis tested during this step, if the pair passed the axis test
    """

    score: float | None = None
    """
    The best vote density for :attr:`hypothesis`, if anything voted
    """

    accepted: Ellipse | None = None
    """
    The ellipse accepted during this step, if any
    """


@dataclass
class DetectionSessionOptions(UserOptions):
    """
    This class defines the options used to configure the :class:`DetectionSession`.
    """

    extractor_options: InterestPointExtractorOptions = field(default_factory=InterestPointExtractorOptions)
    """
    The options for the :class:`.InterestPointExtractor` used to find the interest points of each scene
    """

    voting_options: EllipseVotingEngineOptions = field(default_factory=EllipseVotingEngineOptions)
    """
    The options for the :class:`.EllipseVotingEngine` used to vote on each hypothesis
    """

    axis_tolerance: float = AXIS_TOLERANCE
    """
    The largest angle (in radians) allowed between the gradient at a major axis end point and the axis
    """

    random_seed: int | None = None
    """
    The seed for the display colours of the accepted ellipses
    """


class DetectionSession(UserOptionConfigured[DetectionSessionOptions],
                       AttributePrinting,
                       DetectionSessionOptions):
    """
    Runs the ellipse detection for a scene a single point pair at a time.

    The session owns all of the state of a detection episode, so multiple sessions (for instance for different
    images) can run side by side.  The gradient field and the interest points can be customized by providing a
    different :class:`.GradientFieldProvider` or :class:`.InterestPointExtractor`.
    """

    def __init__(self, source: NDArray | None = None, gradient_field: GradientFieldProvider | None = None,
                 extractor: InterestPointExtractor | None = None, options: DetectionSessionOptions | None = None) -> None:
        """
        :param source: The image to search.  This can be provided later through :meth:`reset`
        :param gradient_field: The gradient provider to use.  If ``None`` a :class:`.ScharrGradientField` is used
        :param extractor: The interest point extractor to use.  If ``None`` one is built from
                          :attr:`extractor_options` (and rebuilt from them at every :meth:`start` and :meth:`reset`)
        :param options: The options configuring this class
        """
        super().__init__(DetectionSessionOptions, options=options)

        self.source: NDArray | None = source
        """
        The image being searched
        """

        self.gradient_field: GradientFieldProvider = gradient_field if gradient_field is not None else ScharrGradientField()
        """
        The provider of the gradient of :attr:`source`
        """

        self._owns_extractor: bool = extractor is None

        self.extractor: InterestPointExtractor = (extractor if extractor is not None
                                                  else InterestPointExtractor(self.extractor_options))
        """
        The interest point extractor run at the start of each episode
        """

        self.voting_engine: EllipseVotingEngine = EllipseVotingEngine(self.voting_options)
        """
        The semiminor voting engine
        """

        self.registry: EllipseRegistry = EllipseRegistry(self.random_seed)
        """
        The working set of interest points and the accepted ellipses
        """

        self._state: DetectionState = DetectionState.IDLE

        self._cursor: DetectionCursor = DetectionCursor()

        self._extracted: tuple[InterestPoint, ...] = ()

    @property
    def state(self) -> DetectionState:
        """
        The current state of the session
        """
        return self._state

    @property
    def cursor(self) -> DetectionCursor:
        """
        The pair that the next step will test
        """
        return self._cursor

    @property
    def ellipses(self) -> tuple[Ellipse, ...]:
        """
        The ellipses accepted so far in this episode
        """
        return self.registry.ellipses

    @property
    def interest_points(self) -> tuple[InterestPoint, ...]:
        """
        The interest points that have not been attributed to an ellipse yet
        """
        return self.registry.remaining

    @property
    def extracted_points(self) -> tuple[InterestPoint, ...]:
        """
        Every interest point found for the current scene, whether attributed to an ellipse or not
        """
        return self._extracted

    def update_voting_engine(self, options: EllipseVotingEngineOptions | None = None) -> None:
        """
        Rebuild the :attr:`voting_engine` from :attr:`voting_options`.

        This is done for you at every :meth:`start` and :meth:`reset`, so changes made to :attr:`voting_options` take
        effect with the next scene.  Changes made directly to :attr:`voting_engine` last until then.

        :param options: New voting options to store in :attr:`voting_options` first.  ``None`` to keep the current
                        ones
        """

        if options is not None:
            self.voting_options = options

        self.voting_engine = EllipseVotingEngine(self.voting_options)

    def update_extractor(self, options: InterestPointExtractorOptions | None = None) -> None:
        """
        Rebuild the :attr:`extractor` from :attr:`extractor_options`.

        An extractor that was provided to the session by the user is never replaced.

        :param options: New extractor options to store in :attr:`extractor_options` first.  ``None`` to keep the
                        current ones
        """

        if options is not None:
            self.extractor_options = options

        if self._owns_extractor:
            self.extractor = InterestPointExtractor(self.extractor_options)
        else:
            _LOGGER.debug('Keeping the user provided interest point extractor')

    def reset_settings(self) -> None:
        """
        Resets the session and the tools it built to the options it was originally initialized with.

        The current scene (points, ellipses and cursor) is kept.
        """

        super().reset_settings()

        self.update_voting_engine()
        self.update_extractor()

    def _clear(self) -> None:
        # a fresh registry restarts the colour sequence from random_seed
        self.registry = EllipseRegistry(self.random_seed)
        self._cursor = DetectionCursor()
        self._extracted = ()

    def start(self) -> None:
        """
        Start (or restart) detection on the current source.

        Any previous results are discarded.

        :raises ValueError: if there is no source to search
        """

        if self.source is None:
            raise ValueError('there is no image to search.  Provide one with reset(source)')

        self.update_voting_engine()
        self.update_extractor()

        self._clear()
        self._state = DetectionState.EXTRACTING

    def reset(self, source: NDArray | None = None) -> None:
        """
        Invalidate the scene.

        All interest points, ellipses and the cursor are cleared immediately.  If a new `source` is provided it replaces
        the current one.  The voting engine and the default extractor are rebuilt from :attr:`voting_options` and
        :attr:`extractor_options`.  Detection then restarts from extraction on the next step (or the session goes idle
        if there is no source at all).

        :param source: the new image to search, or ``None`` to keep the current one
        """

        if source is not None:
            self.source = source

        self.update_voting_engine()
        self.update_extractor()

        self._clear()

        if self.source is None:
            self._state = DetectionState.IDLE
        else:
            self._state = DetectionState.EXTRACTING

        _LOGGER.debug(f'Scene reset, now {self._state.name}')

    def stop(self) -> None:
        """
        Discard all of the work for the current scene and go idle.
        """

        self._clear()
        self._state = DetectionState.IDLE

    def restore_cursor(self, cursor: DetectionCursor | tuple[int, int]) -> None:
        """
        Move the cursor to a previously saved position.

        :param cursor: the (p1, p2) cursor to continue from
        :raises ValueError: if the session is not stepping or the cursor is outside of the working set
        """

        if self._state is not DetectionState.STEPPING:
            raise ValueError(f'the cursor can only be restored while stepping, not while {self._state.name}')

        p1, p2 = cursor
        count = len(self.registry)
        if not (0 <= p1 < count and 0 <= p2 < count):
            raise ValueError(f'cursor {(p1, p2)} is outside of the working set of {count} points')

        self._cursor = DetectionCursor(int(p1), int(p2))

    def _result(self, hypothesis: AxisHypothesis | None = None, score: float | None = None,
                accepted: Ellipse | None = None) -> StepResult:
        return StepResult(self._state, self.registry.ellipses, hypothesis, score, accepted)

    def _extract(self) -> StepResult:

        assert self.source is not None, 'extracting requires a source'

        points = self.extractor(self.source, self.gradient_field)

        self.registry.load(points)
        self._extracted = self.registry.remaining
        self._cursor = DetectionCursor()

        self._state = DetectionState.STEPPING if points else DetectionState.DONE

        _LOGGER.info(f'Searching {len(points)} interest points ({len(points) ** 2} pairs)')

        return self._result()

    def _advance(self) -> None:

        count = len(self.registry)
        p1, p2 = self._cursor

        p2 += 1
        if p2 >= count:
            p2 = 0
            p1 += 1

        self._cursor = DetectionCursor(p1, p2)

        if p1 >= count:
            self._state = DetectionState.DONE
            _LOGGER.info(f'Finished with {len(self.registry.ellipses)} ellipses detected and '
                         f'{count} interest points unattributed')

    def _test_pair(self) -> StepResult:

        p1, p2 = self._cursor

        hypothesis = None
        if p1 != p2:
            hypothesis = hypothesize_major_axis(self.registry.point_at(p1), self.registry.point_at(p2),
                                                self.axis_tolerance)

        if hypothesis is None:
            self._advance()
            return self._result()

        vote = self.voting_engine.vote(hypothesis, self.registry.remaining)

        if not self.voting_engine.accepts(vote):
            self._advance()
            return self._result(hypothesis, None if vote is None else vote.score)

        assert vote is not None

        ellipse = self.registry.accept(hypothesis, vote.best, vote.score)

        # positions in the working set have shifted
        self._cursor = DetectionCursor()
        if not len(self.registry):
            self._state = DetectionState.DONE
            _LOGGER.info(f'Finished with {len(self.registry.ellipses)} ellipses detected, every point attributed')

        return self._result(hypothesis, vote.score, ellipse)

    def step(self) -> StepResult:
        """
        Do one bounded unit of detection work.

        While extracting this finds the interest points.  While stepping this tests the pair under the cursor (the
        axis test, then the semiminor vote, then acceptance) and moves the cursor on.  When idle or done this does
        nothing.

        :return: the state after the step, the ellipses so far, and what the step tested
        """

        if self._state is DetectionState.EXTRACTING:
            return self._extract()

        if self._state is DetectionState.STEPPING:
            return self._test_pair()

        return self._result()

    def run(self, max_steps: int | None = None) -> tuple[Ellipse, ...]:
        """
        Step until the session is done (or idle), or until `max_steps` steps have been taken.

        :param max_steps: The largest number of steps to take.  ``None`` for no limit
        :return: the ellipses accepted so far
        """

        steps = 0
        while self._state in (DetectionState.EXTRACTING, DetectionState.STEPPING):
            if max_steps is not None and steps >= max_steps:
                break
            self.step()
            steps += 1

        return self.registry.ellipses
