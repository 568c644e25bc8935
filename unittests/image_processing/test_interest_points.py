"""
test_interest_points
====================

Tests the methods and classes contained in the interest_points submodule of crater_counter.
"""

from unittest import TestCase
import numpy as np
import cv2
from crater_counter.image_processing import interest_points as cip
from crater_counter.image_processing.gradient_fields import ScharrGradientField, EncodedGradientField


class TestInterestPoint(TestCase):
    def test_vectors(self):
        point = cip.InterestPoint(3.5, 4.0, -0.25, 0.5, identity=7)

        np.testing.assert_array_equal(point.position, [3.5, 4.0])
        np.testing.assert_array_equal(point.direction, [-0.25, 0.5])
        self.assertEqual(point.identity, 7)

    def test_immutable(self):
        point = cip.InterestPoint(1, 2, 3, 4)

        with self.assertRaises(AttributeError):
            point.x = 5  # type: ignore

        self.assertEqual(hash(point), hash(cip.InterestPoint(1, 2, 3, 4)))


class TestInterestPointExtractor(TestCase):
    @classmethod
    def setUpClass(cls):
        # a bright, blurred ellipse on a dark background so that the gradient on the rim points inward
        cls.center = np.array([128.0, 128.0])
        cls.axes = np.array([60.0, 40.0])

        image = np.zeros((256, 256), dtype=np.uint8)
        cv2.ellipse(image, (128, 128), (60, 40), 0, 0, 360, 255, -1)
        cls.image = cv2.GaussianBlur(image, (0, 0), 2)

    def test_threshold_presets(self):
        with self.subTest(source_type=cip.ImageSourceType.ELEVATION_MAP):
            extractor = cip.InterestPointExtractor()
            self.assertEqual(extractor.threshold, 0.2)

        with self.subTest(source_type=cip.ImageSourceType.SYNTHETIC):
            options = cip.InterestPointExtractorOptions(source_type=cip.ImageSourceType.SYNTHETIC)
            self.assertEqual(cip.InterestPointExtractor(options).threshold, 0.8)

        with self.subTest(threshold=0.5):
            options = cip.InterestPointExtractorOptions(source_type=cip.ImageSourceType.SYNTHETIC, threshold=0.5)
            self.assertEqual(cip.InterestPointExtractor(options).threshold, 0.5)

    def test_sample_grid(self):
        with self.subTest(grid_size=75):
            columns, rows = cip.InterestPointExtractor().sample_grid(256, 128)

            self.assertEqual(columns.size, 75)
            self.assertEqual(rows.size, 75)
            self.assertEqual(columns[0], 0)
            self.assertAlmostEqual(columns[1], 256 / 75)
            self.assertAlmostEqual(rows[1], 128 / 75)
            self.assertLess(columns[-1], 256)
            self.assertLess(rows[-1], 128)

        with self.subTest(stride=10, region=(5, 20, 50, 45)):
            options = cip.InterestPointExtractorOptions(stride=10, region=(5, 20, 50, 45))
            columns, rows = cip.InterestPointExtractor(options).sample_grid(256, 128)

            np.testing.assert_array_equal(columns, [5, 15, 25, 35, 45])
            np.testing.assert_array_equal(rows, [20, 30, 40])

        with self.subTest(region='clipped'):
            options = cip.InterestPointExtractorOptions(stride=50, region=(-10, -10, 1000, 1000))
            columns, rows = cip.InterestPointExtractor(options).sample_grid(100, 60)

            np.testing.assert_array_equal(columns, [0, 50])
            np.testing.assert_array_equal(rows, [0, 50])

    def test_sample_grid_errors(self):
        for options in [cip.InterestPointExtractorOptions(stride=0),
                        cip.InterestPointExtractorOptions(grid_size=0),
                        cip.InterestPointExtractorOptions(region=(10, 10, 10, 20)),
                        cip.InterestPointExtractorOptions(region=(300, 0, 400, 20))]:
            with self.subTest(options=options):
                with self.assertRaises(ValueError):
                    cip.InterestPointExtractor(options).sample_grid(256, 256)

    def test_extract_rim(self):
        extractor = cip.InterestPointExtractor(cip.InterestPointExtractorOptions(random_seed=4))

        points = extractor(self.image, ScharrGradientField())

        self.assertGreater(len(points), 50)

        for point in points:
            offset = point.position - self.center

            # every point is close to the rim
            implicit = ((offset / self.axes) ** 2).sum()
            self.assertLess(abs(implicit - 1), 0.25)

            # and the gradient points into the bright ellipse
            self.assertGreater(point.direction @ -offset, 0)

            self.assertGreater(point.gradient_x ** 2 + point.gradient_y ** 2, 0.2 ** 2)

        self.assertEqual(sorted(point.identity for point in points), list(range(len(points))))

    def test_shuffle(self):
        field = ScharrGradientField()

        with self.subTest(shuffle=False):
            options = cip.InterestPointExtractorOptions(shuffle=False)
            points = cip.InterestPointExtractor(options).extract(self.image, field)

            raster = [(point.y, point.x) for point in points]
            self.assertEqual(raster, sorted(raster))

        with self.subTest(shuffle=True):
            first = cip.InterestPointExtractor(cip.InterestPointExtractorOptions(random_seed=10)).extract(self.image,
                                                                                                          field)
            second = cip.InterestPointExtractor(cip.InterestPointExtractorOptions(random_seed=10)).extract(self.image,
                                                                                                           field)

            self.assertEqual(first, second)
            self.assertNotEqual([(p.x, p.y) for p in first], sorted([(p.x, p.y) for p in first],
                                                                    key=lambda loc: (loc[1], loc[0])))

    def test_empty(self):
        points = cip.InterestPointExtractor().extract(np.zeros((64, 64), dtype=np.uint8), ScharrGradientField())

        self.assertEqual(points, [])

    def test_region(self):
        options = cip.InterestPointExtractorOptions(region=(0, 0, 128, 256), random_seed=1)

        points = cip.InterestPointExtractor(options).extract(self.image, ScharrGradientField())

        self.assertTrue(points)
        self.assertTrue(all(point.x < 128 for point in points))

    def test_encoded_thresholds(self):
        # one strong and one weak gradient sample
        image = np.full((2, 2, 3), 128, dtype=np.uint8)
        image[0, 0, 0] = 255
        image[1, 1, 0] = 180

        with self.subTest(source_type=cip.ImageSourceType.ELEVATION_MAP):
            options = cip.InterestPointExtractorOptions(stride=1, shuffle=False)
            points = cip.InterestPointExtractor(options).extract(image, EncodedGradientField())
            self.assertEqual([(p.x, p.y) for p in points], [(0, 0), (1, 1)])

        with self.subTest(source_type=cip.ImageSourceType.SYNTHETIC):
            options = cip.InterestPointExtractorOptions(source_type=cip.ImageSourceType.SYNTHETIC, stride=1, shuffle=False)
            points = cip.InterestPointExtractor(options).extract(image, EncodedGradientField())
            self.assertEqual([(p.x, p.y) for p in points], [(0, 0)])
            self.assertAlmostEqual(points[0].gradient_x, 255 / 128 - 1)
            self.assertAlmostEqual(points[0].gradient_y, 0.0)

    def test_reset_settings(self):
        extractor = cip.InterestPointExtractor()
        extractor.grid_size = 10

        extractor.reset_settings()

        self.assertEqual(extractor.grid_size, 75)
        self.assertEqual(extractor, cip.InterestPointExtractor())


if __name__ == '__main__':
    import unittest

    unittest.main()
