"""
crater_counter finds impact craters in images by detecting the ellipses their rims trace.

Interest points (strong image edges along with their gradient direction) are sampled from the image
(:mod:`.image_processing`), and pairs of them are tested as the major axes of ellipses whose semiminor axes are voted
on by the remaining points (:mod:`.ellipse_detection`).  The work is done one point pair at a time by a
:class:`.DetectionSession` so that it can be interleaved with an interactive display.
"""

import crater_counter.utilities as utilities
import crater_counter.image_processing as image_processing
import crater_counter.ellipse_detection as ellipse_detection

from crater_counter.image_processing import (GradientFieldProvider, ScharrGradientField, EncodedGradientField,
                                             InterestPoint, InterestPointExtractor, InterestPointExtractorOptions,
                                             ImageSourceType)
from crater_counter.ellipse_detection import (DetectionSession, DetectionSessionOptions, DetectionState, StepResult,
                                              Ellipse, EllipseVotingEngine, EllipseVotingEngineOptions,
                                              GradientPolarity, ellipse_circumference)

__all__ = ["GradientFieldProvider", "ScharrGradientField", "EncodedGradientField",
           "InterestPoint", "InterestPointExtractor", "InterestPointExtractorOptions", "ImageSourceType",
           "DetectionSession", "DetectionSessionOptions", "DetectionState", "StepResult",
           "Ellipse", "EllipseVotingEngine", "EllipseVotingEngineOptions", "GradientPolarity", "ellipse_circumference"]
