"""
This module provides the gradient field providers used to find interest points in an image.

A gradient field provider answers one question: what is the (horizontal, vertical) image gradient at an integer
pixel location of an image?  The values are normalized so that they lie approximately in [-1, 1], which lets the
interest point thresholds be shared between image sources.

Two concrete providers are included:

* :class:`ScharrGradientField`, which convolves the grayscale image with the Scharr kernel, and
* :class:`EncodedGradientField`, which decodes gradients that were already computed elsewhere (for instance by a
  GPU shader) and stored in the red and blue channels of an RGB image.

Custom providers can be built by subclassing :class:`GradientFieldProvider` and implementing
:meth:`~GradientFieldProvider.compute_field`.
"""

from abc import ABCMeta, abstractmethod

from typing import cast

import numpy as np
from numpy.typing import NDArray

import scipy.signal as sig

import cv2

from crater_counter.utilities.mixin_classes.attribute_printing import AttributePrinting
from crater_counter._typing import DOUBLE_ARRAY


SCHARR_KERNEL: NDArray[np.complex128] = np.array([[ -3-3j, 0-10j,  +3 -3j],
                                                 [-10+0j, 0+ 0j, +10 +0j],
                                                 [ -3+3j, 0+10j,  +3 +3j]])
"""
The Scharr kernel for gradient computation in both x and y directions (x is the real, y is the imaginary).
"""

SCHARR_GAIN: float = 16.0
"""
The response of one axis of the Scharr kernel to a unit step edge (3 + 10 + 3).
"""


class GradientFieldProvider(AttributePrinting, metaclass=ABCMeta):
    """
    An ABC for objects that provide the image gradient at pixel locations.

    The gradient of the most recent source is cached, so repeated calls to :meth:`gradient_at` for the same source
    object only compute the field once.  The cache is keyed on the identity of the source, so a source that is
    modified in place needs :meth:`clear_cache` to be called.
    """

    def __init__(self) -> None:
        self._source: object | None = None
        self._horizontal: DOUBLE_ARRAY | None = None
        self._vertical: DOUBLE_ARRAY | None = None

    @abstractmethod
    def compute_field(self, source: NDArray) -> tuple[DOUBLE_ARRAY, DOUBLE_ARRAY]:
        """
        Compute the horizontal and vertical gradient images for a source image.

        :param source: The image to compute the gradient of
        :return: the horizontal (left to right) and vertical (top to bottom) gradient images, each the same height and
                 width as the source
        """
        pass

    def gradient_field(self, source: NDArray) -> tuple[DOUBLE_ARRAY, DOUBLE_ARRAY]:
        """
        Return the (possibly cached) horizontal and vertical gradient images for `source`.

        :param source: The image to get the gradient of
        :return: the horizontal and vertical gradient images
        """

        if source is not self._source or self._horizontal is None or self._vertical is None:
            self._horizontal, self._vertical = self.compute_field(source)
            self._source = source

        return self._horizontal, self._vertical

    def gradient_at(self, source: NDArray, x: int, y: int) -> tuple[float, float]:
        """
        Get the gradient vector at pixel column `x` and row `y` of `source`.

        :param source: The image to query
        :param x: The pixel column
        :param y: The pixel row
        :return: the horizontal and vertical gradient components
        :raises ValueError: if the pixel is outside of the image
        """

        horizontal, vertical = self.gradient_field(source)

        rows, cols = horizontal.shape
        if not (0 <= x < cols and 0 <= y < rows):
            raise ValueError(f'pixel ({x}, {y}) is outside of the {cols}x{rows} image')

        return float(horizontal[y, x]), float(vertical[y, x])

    def clear_cache(self) -> None:
        """
        Forget the cached gradient field.
        """

        self._source = None
        self._horizontal = None
        self._vertical = None


class ScharrGradientField(GradientFieldProvider):
    """
    Computes the image gradient by convolving the image with horizontal and vertical Scharr masks.

    Colour images (3 or 4 channels, OpenCV BGR ordering) are converted to grayscale first.  The result is divided by
    :data:`SCHARR_GAIN` times the full scale of the image so that a step edge spanning the full dynamic range has a
    gradient of about 1.  For integer images the full scale is the maximum of the dtype (255 for uint8); for floating
    point images it is the peak to peak range of the image itself.
    """

    def __init__(self, full_scale: float | None = None) -> None:
        """
        :param full_scale: Overrides the full scale used for normalization.  Leave as ``None`` to infer it from the
                           image
        """
        super().__init__()

        self.full_scale: float | None = full_scale
        """
        The DN value that corresponds to a gradient of 1 (divided by the kernel gain).  ``None`` to infer it
        """

    @staticmethod
    def to_grayscale(source: NDArray) -> NDArray:
        """
        Convert a colour image to a single channel image (grayscale images are returned unchanged).

        :param source: the image to convert
        :return: the single channel image
        :raises ValueError: if the image is not 2D or a 3/4 channel colour image
        """

        if source.ndim == 2:
            return source

        if source.dtype not in (np.uint8, np.uint16, np.float32):
            # OpenCV colour conversions only accept these depths
            source = source.astype(np.float32)

        if source.ndim == 3 and source.shape[2] == 3:
            return cv2.cvtColor(source, cv2.COLOR_BGR2GRAY)

        if source.ndim == 3 and source.shape[2] == 4:
            return cv2.cvtColor(source, cv2.COLOR_BGRA2GRAY)

        raise ValueError(f'cannot compute the gradient of an image with shape {source.shape}')

    def _infer_full_scale(self, image: NDArray) -> float:

        if self.full_scale is not None:
            return float(self.full_scale)

        if np.issubdtype(image.dtype, np.integer):
            return float(np.iinfo(image.dtype).max)

        return float(np.ptp(image))

    def compute_field(self, source: NDArray) -> tuple[DOUBLE_ARRAY, DOUBLE_ARRAY]:

        image = self.to_grayscale(np.asarray(source))

        full_scale = self._infer_full_scale(image)

        if full_scale <= 0:
            # a flat image has no edges
            zeros = np.zeros(image.shape, dtype=np.float64)
            return zeros, zeros.copy()

        gradients: NDArray[np.complex128] = sig.convolve2d(image.astype(np.float64), SCHARR_KERNEL,
                                                          mode='same', boundary='symm')

        # the convolution flips the kernel, so negate to get the left to right/top to bottom gradient
        gradients = -gradients / (SCHARR_GAIN * full_scale)

        return cast(DOUBLE_ARRAY, gradients.real.copy()), cast(DOUBLE_ARRAY, gradients.imag.copy())


class EncodedGradientField(GradientFieldProvider):
    """
    Decodes a gradient field that was stored in the colour channels of an 8 bit image.

    The horizontal component is stored in the red channel and the vertical component in the blue channel, each
    encoded as ``128 * (component + 1)``.  This is the output format of the common fragment shader approach to
    computing image gradients on the GPU.

    By default the channels are read in RGB order.  Set `bgr` to ``True`` for images loaded through OpenCV, which
    stores colour images in BGR order.
    """

    def __init__(self, bgr: bool = False) -> None:
        """
        :param bgr: whether the encoded image is stored in BGR channel order
        """
        super().__init__()

        self.bgr: bool = bgr
        """
        Whether the encoded image is stored in BGR channel order (as from cv2.imread)
        """

    def compute_field(self, source: NDArray) -> tuple[DOUBLE_ARRAY, DOUBLE_ARRAY]:

        image = np.asarray(source)

        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise ValueError(f'an encoded gradient image must have 3 or 4 channels, not shape {image.shape}')

        red, blue = (2, 0) if self.bgr else (0, 2)

        horizontal = image[..., red].astype(np.float64) / 128 - 1
        vertical = image[..., blue].astype(np.float64) / 128 - 1

        return horizontal, vertical
