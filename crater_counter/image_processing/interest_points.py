"""
This module provides the functionality for picking the points of an image that are likely to lie on the rim of a
crater.

An interest point is a sampled pixel location whose image gradient is strong.  Rather than considering every pixel
(which makes the pairwise ellipse search far too expensive), the image is sampled on an evenly spaced grid inside a
region of interest, and only the samples whose gradient magnitude exceeds a threshold are kept.  The gradient direction
is kept with each point since it is what lets the ellipse detection reject impossible point pairings cheaply.

The kept points are shuffled before they are returned so that the pairwise search does not sweep the image in raster
order.
"""

import logging

from dataclasses import dataclass

from enum import Enum

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from crater_counter.image_processing.gradient_fields import GradientFieldProvider
from crater_counter.utilities.options import UserOptions
from crater_counter.utilities.mixin_classes.user_option_configured import UserOptionConfigured
from crater_counter.utilities.mixin_classes.attribute_equality_comparison import AttributeEqualityComparison
from crater_counter.utilities.mixin_classes.attribute_printing import AttributePrinting
from crater_counter._typing import DOUBLE_ARRAY, REGION


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


class InterestPoint(NamedTuple):
    """
    A sampled image location that likely lies on an edge, along with the image gradient there.
    """

    x: float
    """
    The pixel column of the sample
    """

    y: float
    """
    The pixel row of the sample
    """

    gradient_x: float
    """
    The horizontal component of the (non-normalized) gradient at the sample
    """

    gradient_y: float
    """
    The vertical component of the (non-normalized) gradient at the sample
    """

    identity: int = 0
    """
    An identifier for the point that is unique within the extraction it came from.

    The ellipse detection uses this (and not the position of the point in a list) to keep track of which points voted
    for which ellipse, since positions change as points are removed.
    """

    @property
    def position(self) -> DOUBLE_ARRAY:
        """
        The location of the point as a length 2 array (x, y)
        """
        return np.array([self.x, self.y], dtype=np.float64)

    @property
    def direction(self) -> DOUBLE_ARRAY:
        """
        The gradient at the point as a length 2 array (gx, gy)
        """
        return np.array([self.gradient_x, self.gradient_y], dtype=np.float64)


class ImageSourceType(Enum):
    """
    An enum specifying the kind of image being searched, which sets the default gradient threshold.
    """

    ELEVATION_MAP = 0.2
    """
    Shaded relief or elevation map tiles, which have soft, low contrast crater rims
    """

    SYNTHETIC = 0.8
    """
    Clean synthetic renders (test images) with hard, high contrast edges
    """


@dataclass
class InterestPointExtractorOptions(UserOptions):
    """
    This class defines the options used to configure the :class:`InterestPointExtractor`.
    """

    source_type: ImageSourceType = ImageSourceType.ELEVATION_MAP
    """
    The kind of image being searched.

    This sets :attr:`threshold` when it is left as ``None``.
    """

    threshold: float | None = None
    """
    The gradient magnitude a sample must exceed to be kept as an interest point.

    The gradient fields are normalized to roughly [-1, 1] so this is generally between 0 and 1.  Leave as ``None`` to
    use the value associated with :attr:`source_type`.
    """

    grid_size: int = 75
    """
    The number of samples to take along each axis of the region when :attr:`stride` is not set.
    """

    stride: float | None = None
    """
    The spacing between samples in pixels (the same along both axes).

    Leave as ``None`` to space :attr:`grid_size` samples evenly over the region.
    """

    region: REGION | None = None
    """
    The (left, top, right, bottom) pixel bounds of the part of the image to sample (right/bottom exclusive).

    Leave as ``None`` to sample the whole image.
    """

    shuffle: bool = True
    """
    Whether to randomly shuffle the extracted points.
    """

    random_seed: int | None = None
    """
    The seed for the shuffle.  Leave as ``None`` for a different order every time.
    """

    def override_options(self) -> None:
        if self.threshold is None:
            self.threshold = self.source_type.value


class InterestPointExtractor(UserOptionConfigured[InterestPointExtractorOptions],
                             AttributeEqualityComparison,
                             AttributePrinting,
                             InterestPointExtractorOptions):
    """
    This class samples an image on a sparse grid and keeps the samples with strong gradients.

    For each grid location the gradient is requested from a :class:`.GradientFieldProvider` and the sample is kept if

    .. math::
        g_x^2 + g_y^2 > t^2

    where :math:`t` is :attr:`threshold`.  The grid starts at the top left corner of :attr:`region` and steps by the
    stride (which need not be an integer; sample locations are floored to pixels when querying the gradient).

    Use :meth:`extract` (or simply call the instance) to get the interest points for an image:

        >>> from crater_counter.image_processing import InterestPointExtractor, ScharrGradientField
        >>> extractor = InterestPointExtractor()
        >>> points = extractor(image, ScharrGradientField())

    There are no failure modes for the extraction itself.  An image with no strong gradients simply produces an empty
    list.
    """

    def __init__(self, options: InterestPointExtractorOptions | None = None) -> None:
        """
        :param options: The options configuring this class
        """
        super().__init__(InterestPointExtractorOptions, options=options)

        self._rng: np.random.Generator = np.random.default_rng(self.random_seed)

    def sample_grid(self, width: int, height: int) -> tuple[DOUBLE_ARRAY, DOUBLE_ARRAY]:
        """
        Compute the x and y sample locations for an image of the given size.

        :param width: The width of the image in pixels
        :param height: The height of the image in pixels
        :return: the column locations and the row locations to sample (each 1D)
        :raises ValueError: if the region is empty or the stride is not positive
        """

        if self.region is None:
            left, top, right, bottom = 0, 0, width, height
        else:
            left, top, right, bottom = self.region
            left, top = max(left, 0), max(top, 0)
            right, bottom = min(right, width), min(bottom, height)

        if right <= left or bottom <= top:
            raise ValueError(f'the sample region {(left, top, right, bottom)} is empty for a {width}x{height} image')

        if self.stride is not None:
            if self.stride <= 0:
                raise ValueError(f'the stride must be positive, not {self.stride}')
            x_step = y_step = float(self.stride)
            x_count = int(np.ceil((right - left) / x_step))
            y_count = int(np.ceil((bottom - top) / y_step))
        else:
            if self.grid_size < 1:
                raise ValueError(f'the grid size must be at least 1, not {self.grid_size}')
            x_step = (right - left) / self.grid_size
            y_step = (bottom - top) / self.grid_size
            x_count = y_count = self.grid_size

        # every sample lies in [left, right) x [top, bottom)
        return left + x_step * np.arange(x_count, dtype=np.float64), top + y_step * np.arange(y_count, dtype=np.float64)

    def extract(self, source: NDArray, gradient_field: GradientFieldProvider) -> list[InterestPoint]:
        """
        Identify the interest points in an image.

        :param source: The image to search
        :param gradient_field: The provider of the gradient of `source`
        :return: The interest points, in random order if :attr:`shuffle` is ``True``
        """

        height, width = np.shape(source)[:2]

        columns, rows = self.sample_grid(width, height)

        threshold = self.threshold if self.threshold is not None else self.source_type.value

        kept: list[tuple[float, float, float, float]] = []
        for y in rows:
            for x in columns:
                gx, gy = gradient_field.gradient_at(source, int(np.floor(x)), int(np.floor(y)))

                if gx * gx + gy * gy > threshold * threshold:
                    kept.append((float(x), float(y), gx, gy))

        if self.shuffle:
            kept = [kept[ind] for ind in self._rng.permutation(len(kept))]

        points = [InterestPoint(*sample, identity=ind) for ind, sample in enumerate(kept)]

        _LOGGER.info(f'Found {len(points)} interest points in {columns.size * rows.size} samples')

        return points

    def __call__(self, source: NDArray, gradient_field: GradientFieldProvider) -> list[InterestPoint]:
        return self.extract(source, gradient_field)
