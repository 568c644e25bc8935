"""
This package provides the randomized Hough style ellipse (crater) detection.

The detection is split into the geometric axis test (:mod:`.geometry`), the semiminor voting (:mod:`.voting`), the
bookkeeping of accepted ellipses and their points (:mod:`.registry`) and the incremental driver that ties them
together one point pair at a time (:mod:`.session`).  Most users only need the :class:`.DetectionSession`.
"""

import crater_counter.ellipse_detection.geometry as geometry
import crater_counter.ellipse_detection.voting as voting
import crater_counter.ellipse_detection.registry as registry
import crater_counter.ellipse_detection.session as session

from crater_counter.ellipse_detection.geometry import (AXIS_TOLERANCE, AxisHypothesis, Ellipse, angle_between,
                                                       axis_alignment_error, ellipse_circumference,
                                                       hypothesize_major_axis)
from crater_counter.ellipse_detection.voting import (AccumulatorBin, EllipseVotingEngine, EllipseVotingEngineOptions,
                                                     GradientPolarity, VoteResult)
from crater_counter.ellipse_detection.registry import EllipseRegistry
from crater_counter.ellipse_detection.session import (DetectionCursor, DetectionSession, DetectionSessionOptions,
                                                      DetectionState, StepResult)

__all__ = ["AXIS_TOLERANCE", "AxisHypothesis", "Ellipse", "angle_between", "axis_alignment_error",
           "ellipse_circumference", "hypothesize_major_axis",
           "AccumulatorBin", "EllipseVotingEngine", "EllipseVotingEngineOptions", "GradientPolarity", "VoteResult",
           "EllipseRegistry",
           "DetectionCursor", "DetectionSession", "DetectionSessionOptions", "DetectionState", "StepResult"]
