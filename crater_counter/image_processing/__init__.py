"""
This package provides the image processing used to find candidate crater rim points in an image.

It provides gradient field providers (:class:`.ScharrGradientField`, :class:`.EncodedGradientField`, or a custom
:class:`.GradientFieldProvider`) and the :class:`.InterestPointExtractor` which samples the gradient on a sparse grid
and keeps the strong edges as :class:`.InterestPoint` instances.

A general user will usually not interact with these classes directly and will instead rely on the
:class:`.DetectionSession` to use them.
"""

import crater_counter.image_processing.gradient_fields as gradient_fields
import crater_counter.image_processing.interest_points as interest_points

from crater_counter.image_processing.gradient_fields import (GradientFieldProvider, ScharrGradientField,
                                                             EncodedGradientField, SCHARR_KERNEL)
from crater_counter.image_processing.interest_points import (InterestPoint, InterestPointExtractor,
                                                             InterestPointExtractorOptions, ImageSourceType)

__all__ = ["GradientFieldProvider", "ScharrGradientField", "EncodedGradientField", "SCHARR_KERNEL",
           "InterestPoint", "InterestPointExtractor", "InterestPointExtractorOptions", "ImageSourceType"]
