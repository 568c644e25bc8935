"""
test_count_craters
==================

Tests the count_craters command line script.
"""

from unittest import TestCase

import io
import os
import tempfile

from contextlib import redirect_stdout

import numpy as np
import cv2

from crater_counter.scripts import count_craters as cc
from crater_counter.ellipse_detection.geometry import Ellipse
from crater_counter.ellipse_detection.session import DetectionSessionOptions
from crater_counter.image_processing.interest_points import InterestPoint


class TestCountCraters(TestCase):
    @classmethod
    def setUpClass(cls):
        cls.directory = tempfile.TemporaryDirectory()

        image = np.zeros((128, 128), dtype=np.uint8)
        cv2.ellipse(image, (64, 64), (40, 25), 20, 0, 360, 255, -1)
        cls.image_path = os.path.join(cls.directory.name, 'crater.png')
        cv2.imwrite(cls.image_path, cv2.GaussianBlur(image, (0, 0), 2))

        cls.encoded_path = os.path.join(cls.directory.name, 'encoded.png')
        cv2.imwrite(cls.encoded_path, np.full((32, 32, 3), 128, dtype=np.uint8))

    @classmethod
    def tearDownClass(cls):
        cls.directory.cleanup()

    def test_parser(self):
        args = cc._get_parser().parse_args(['image.png', '-s', 'synthetic', '-g', '20', '--seed', '3', '-e'])

        self.assertEqual(args.image, 'image.png')
        self.assertEqual(args.source_type, 'synthetic')
        self.assertEqual(args.grid_size, 20)
        self.assertEqual(args.seed, 3)
        self.assertTrue(args.encoded_gradient)
        self.assertIsNone(args.threshold)
        self.assertIsNone(args.overlay)
        self.assertEqual(args.min_votes, 8)
        self.assertEqual(args.density, 0.2)

    def test_main(self):
        overlay = os.path.join(self.directory.name, 'overlay.png')

        output = io.StringIO()
        with redirect_stdout(output):
            cc.main([self.image_path, '-g', '40', '--seed', '1', '-m', '3000', '-o', overlay])

        lines = output.getvalue().splitlines()
        self.assertTrue(lines[0].startswith('Detected '))
        self.assertEqual(len(lines), int(lines[0].split()[1]) + 1)

        self.assertTrue(os.path.isfile(overlay))
        self.assertEqual(cv2.imread(overlay).shape, (128, 128, 3))

    def test_encoded_gradient(self):
        output = io.StringIO()
        with redirect_stdout(output):
            cc.main([self.encoded_path, '-e'])

        self.assertEqual(output.getvalue().splitlines(), ['Detected 0 craters'])

    def test_count_craters_options(self):
        options = DetectionSessionOptions(random_seed=2)
        options.extractor_options.grid_size = 10

        ellipses = cc.count_craters(self.image_path, options, max_steps=50)

        self.assertIsInstance(ellipses, tuple)

    def test_missing_image(self):
        with self.assertRaises(ValueError):
            cc.count_craters(os.path.join(self.directory.name, 'missing.png'), DetectionSessionOptions())

    def test_draw_ellipses(self):
        ellipse = Ellipse((16.0, 16.0), 10.0, 5.0, 0.0, (6.0, 16.0), (26.0, 16.0),
                          contributing_points=(InterestPoint(6, 16, 1, 0),), color=(255, 0, 0))

        canvas = cc.draw_ellipses(np.zeros((32, 32), dtype=np.uint8), [ellipse])

        self.assertEqual(canvas.shape, (32, 32, 3))
        # red in RGB is drawn into the last (red) channel of the BGR canvas
        self.assertEqual(canvas[16, 26].tolist(), [0, 0, 255])
        self.assertEqual(canvas[0, 0].tolist(), [0, 0, 0])


if __name__ == '__main__':
    import unittest

    unittest.main()
