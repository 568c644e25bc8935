"""
Count the craters in an image.

This script loads an image, runs a :class:`.DetectionSession` on it until every interest point pair has been tested,
and prints one line per detected crater (center, semimajor and semiminor lengths in pixels, orientation in degrees,
score and the number of supporting points).  Optionally the detections can be drawn over the image and saved.

The image is normally searched using its own Scharr gradient.  If the image instead holds a gradient field that was
computed elsewhere and encoded in its red and blue channels, use ``--encoded_gradient``.
"""

import logging

from argparse import ArgumentParser

from typing import Sequence

import cv2

from crater_counter.ellipse_detection.geometry import Ellipse
from crater_counter.ellipse_detection.session import DetectionSession, DetectionSessionOptions
from crater_counter.image_processing.gradient_fields import EncodedGradientField, GradientFieldProvider, ScharrGradientField
from crater_counter.image_processing.interest_points import ImageSourceType
from crater_counter._typing import PATH


_LOGGER: logging.Logger = logging.getLogger(__name__)
"""
This is the logging interface for reporting status, results, issues, and other information.
"""


def _get_parser() -> ArgumentParser:
    """
    Helper function for the argparse extension

    :return: A setup argument parser
    """

    parser = ArgumentParser(description='Detect craters as ellipses in an image')

    parser.add_argument('image', help='The image to search', type=str)
    parser.add_argument('-s', '--source_type', help='The kind of image, which sets the default gradient threshold',
                        choices=[source.name.lower() for source in ImageSourceType],
                        default=ImageSourceType.ELEVATION_MAP.name.lower())
    parser.add_argument('-t', '--threshold', help='The gradient magnitude an interest point must exceed', type=float)
    parser.add_argument('-g', '--grid_size', help='The number of samples along each axis of the image',
                        type=int, default=75)
    parser.add_argument('--min_votes', help='The number of votes an ellipse must exceed', type=int, default=8)
    parser.add_argument('--density', help='The votes per pixel of circumference an ellipse must exceed',
                        type=float, default=0.2)
    parser.add_argument('--seed', help='The random seed for the interest point order', type=int)
    parser.add_argument('-m', '--max_steps', help='Stop after this many steps even if not done', type=int)
    parser.add_argument('-e', '--encoded_gradient', help='The image stores a gradient in its red/blue channels',
                        action='store_true')
    parser.add_argument('-o', '--overlay', help='Draw the detections over the image and save it here', type=str)
    parser.add_argument('-v', '--verbose', help='Print progress information', action='store_true')

    return parser


def draw_ellipses(image, ellipses: Sequence[Ellipse]):
    """
    Draw the detected ellipses and their supporting points on a colour copy of an image.

    :param image: The image the ellipses were found in
    :param ellipses: The ellipses to draw
    :return: the annotated BGR image
    """

    if image.ndim == 2:
        canvas = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    else:
        canvas = image[..., :3].copy()

    for ellipse in ellipses:
        # the ellipse colours are RGB, OpenCV draws in BGR
        color = tuple(reversed(ellipse.color))

        (cx, cy), (major, minor), angle = ellipse.to_cv2_box()
        cv2.ellipse(canvas, (int(round(cx)), int(round(cy))), (int(round(major / 2)), int(round(minor / 2))),
                    angle, 0, 360, color, 1)

        for point in ellipse.contributing_points:
            cv2.circle(canvas, (int(point.x), int(point.y)), 1, color, -1)

    return canvas


def count_craters(image_path: PATH, options: DetectionSessionOptions, encoded_gradient: bool = False,
                  max_steps: int | None = None) -> tuple[Ellipse, ...]:
    """
    Run the crater detection on an image file.

    :param image_path: The image to search
    :param options: The options for the detection session
    :param encoded_gradient: Whether the image holds an encoded gradient field rather than intensities
    :param max_steps: The largest number of steps to take
    :return: the detected ellipses
    :raises ValueError: if the image cannot be read
    """

    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR if encoded_gradient else cv2.IMREAD_UNCHANGED)

    if image is None:
        raise ValueError(f'The file you specified ({image_path}) is not a readable image')

    gradient_field: GradientFieldProvider = EncodedGradientField(bgr=True) if encoded_gradient else ScharrGradientField()

    session = DetectionSession(image, gradient_field=gradient_field, options=options)
    session.start()

    return session.run(max_steps)


def main(argv: Sequence[str] | None = None) -> None:
    """
    Parse the command line and count the craters.

    :param argv: The command line arguments (``None`` to use sys.argv)
    """

    args = _get_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    options = DetectionSessionOptions(random_seed=args.seed)
    options.extractor_options.source_type = ImageSourceType[args.source_type.upper()]
    options.extractor_options.threshold = args.threshold
    options.extractor_options.grid_size = args.grid_size
    options.extractor_options.random_seed = args.seed
    options.voting_options.min_votes = args.min_votes
    options.voting_options.density_threshold = args.density

    ellipses = count_craters(args.image, options, encoded_gradient=args.encoded_gradient, max_steps=args.max_steps)

    print(f'Detected {len(ellipses)} craters')
    for ind, ellipse in enumerate(ellipses):
        print(f'{ind + 1:4d} center=({ellipse.center[0]:.1f}, {ellipse.center[1]:.1f}) '
              f'a={ellipse.semimajor:.2f} b={ellipse.semiminor:.2f} '
              f'angle={ellipse.to_cv2_box()[2]:.1f} score={ellipse.score:.3f} '
              f'points={len(ellipse.contributing_points)}')

    if args.overlay is not None:
        image = cv2.imread(args.image, cv2.IMREAD_COLOR)
        if not cv2.imwrite(args.overlay, draw_ellipses(image, ellipses)):
            _LOGGER.error(f'Unable to write the overlay to {args.overlay}')


if __name__ == '__main__':
    main()
