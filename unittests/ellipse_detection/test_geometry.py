"""
test_geometry
=============

Tests the functions and classes contained in the geometry submodule of crater_counter.
"""

from unittest import TestCase
import numpy as np
from crater_counter.ellipse_detection import geometry as ceg
from crater_counter.image_processing.interest_points import InterestPoint


class TestAngleBetween(TestCase):
    def test_angles(self):
        self.assertAlmostEqual(ceg.angle_between([1, 0], [0, 3]), np.pi / 2)
        self.assertAlmostEqual(ceg.angle_between([1, 0], [-2, 0]), np.pi)
        self.assertAlmostEqual(ceg.angle_between([1, 1], [2, 2]), 0)
        self.assertAlmostEqual(ceg.angle_between([1, 0], [1, -1]), np.pi / 4)

    def test_zero_vector(self):
        self.assertTrue(np.isnan(ceg.angle_between([0, 0], [1, 0])))
        self.assertTrue(np.isnan(ceg.angle_between([1, 0], [0, 0])))


class TestEllipseCircumference(TestCase):
    def test_circle(self):
        self.assertAlmostEqual(ceg.ellipse_circumference(5, 5), 10 * np.pi)

    def test_ellipse(self):
        h = (10 / 30) ** 2
        self.assertAlmostEqual(ceg.ellipse_circumference(20, 10), 30 * np.pi * (64 + 3 * h * h) / (64 - 16 * h))

        # the elliptic integral value
        self.assertAlmostEqual(ceg.ellipse_circumference(20, 10), 96.88448220547, delta=0.2)

    def test_symmetric(self):
        self.assertAlmostEqual(ceg.ellipse_circumference(20, 10), ceg.ellipse_circumference(10, 20))

    def test_monotonic(self):
        # the approximation is monotonic while the axis ratio stays at or above 0.12
        with self.subTest(length='semiminor'):
            lengths = np.linspace(0.12 * 20, 20, 500)
            circumferences = [ceg.ellipse_circumference(20, length) for length in lengths]
            self.assertTrue(np.all(np.diff(circumferences) > 0))

        with self.subTest(length='semimajor'):
            lengths = np.linspace(20, 20 / 0.12, 500)
            circumferences = [ceg.ellipse_circumference(length, 20) for length in lengths]
            self.assertTrue(np.all(np.diff(circumferences) > 0))

    def test_flat_ellipses(self):
        # below an axis ratio of about 0.12 the approximation grows again as the short axis shrinks
        self.assertGreater(ceg.ellipse_circumference(20, 0.001), ceg.ellipse_circumference(20, 2.35))


class TestHypothesizeMajorAxis(TestCase):
    def test_aligned_pair(self):
        first = InterestPoint(30, 50, 1, 0, identity=0)
        second = InterestPoint(70, 50, -1, 0, identity=1)

        hypothesis = ceg.hypothesize_major_axis(first, second)

        self.assertIsNotNone(hypothesis)
        np.testing.assert_array_almost_equal(hypothesis.center, [50, 50])
        self.assertAlmostEqual(hypothesis.semimajor, 20)
        self.assertAlmostEqual(hypothesis.orientation, 0)
        self.assertAlmostEqual(hypothesis.alignment_error, 0)
        self.assertIs(hypothesis.first, first)
        self.assertIs(hypothesis.second, second)

    def test_polarity_ignored(self):
        # gradients pointing out of the ellipse at both ends are still aligned with the axis
        first = InterestPoint(30, 50, -1, 0, identity=0)
        second = InterestPoint(70, 50, 1, 0, identity=1)

        self.assertIsNotNone(ceg.hypothesize_major_axis(first, second))

        # so are mixed polarities
        first = InterestPoint(30, 50, 1, 0, identity=0)
        second = InterestPoint(70, 50, 1, 0, identity=1)

        self.assertIsNotNone(ceg.hypothesize_major_axis(first, second))

    def test_orientation(self):
        first = InterestPoint(0, 0, 1, 1, identity=0)
        second = InterestPoint(10, 10, 1, 1, identity=1)

        forward = ceg.hypothesize_major_axis(first, second)
        backward = ceg.hypothesize_major_axis(second, first)

        self.assertAlmostEqual(forward.orientation, np.pi / 4)
        self.assertAlmostEqual(backward.orientation, -3 * np.pi / 4)
        self.assertAlmostEqual(forward.semimajor, np.sqrt(200) / 2)

    def test_tolerance(self):
        first = InterestPoint(30, 50, 1, 0, identity=0)

        for degrees, accepted in [(0, True), (29, True), (31, False), (60, False), (90, False), (151, True)]:
            angle = np.deg2rad(degrees)
            second = InterestPoint(70, 50, np.cos(angle), np.sin(angle), identity=1)

            with self.subTest(degrees=degrees):
                self.assertEqual(ceg.hypothesize_major_axis(first, second) is not None, accepted)

        with self.subTest(tolerance=np.pi / 2.5):
            angle = np.deg2rad(60)
            second = InterestPoint(70, 50, np.cos(angle), np.sin(angle), identity=1)

            self.assertIsNotNone(ceg.hypothesize_major_axis(first, second, tolerance=np.pi / 2.5))

    def test_worst_endpoint_counts(self):
        first = InterestPoint(30, 50, 0, 1, identity=0)
        second = InterestPoint(70, 50, -1, 0, identity=1)

        self.assertAlmostEqual(ceg.axis_alignment_error(first, second), np.pi / 2)
        self.assertIsNone(ceg.hypothesize_major_axis(first, second))

    def test_degenerate(self):
        point = InterestPoint(30, 50, 1, 0, identity=0)

        with self.subTest(pair='self'):
            self.assertIsNone(ceg.hypothesize_major_axis(point, point))

        with self.subTest(pair='coincident'):
            self.assertIsNone(ceg.hypothesize_major_axis(point, InterestPoint(30, 50, -1, 0, identity=1)))
            self.assertTrue(np.isnan(ceg.axis_alignment_error(point, InterestPoint(30, 50, -1, 0, identity=1))))

        with self.subTest(pair='no gradient'):
            self.assertIsNone(ceg.hypothesize_major_axis(point, InterestPoint(70, 50, 0, 0, identity=1)))


class TestEllipse(TestCase):
    @classmethod
    def setUpClass(cls):
        cls.ellipse = ceg.Ellipse(center=(100.0, 80.0), semimajor=40.0, semiminor=25.0, orientation=np.pi / 6,
                                  endpoint1=(100 - 40 * np.cos(np.pi / 6), 80 - 40 * np.sin(np.pi / 6)),
                                  endpoint2=(100 + 40 * np.cos(np.pi / 6), 80 + 40 * np.sin(np.pi / 6)))

    def test_axes(self):
        self.assertEqual(self.ellipse.major_axis, 80)
        self.assertEqual(self.ellipse.minor_axis, 50)
        self.assertFalse(self.ellipse.axes_swapped)

        swapped = ceg.Ellipse((0, 0), 10, 12, 0, (-10, 0), (10, 0))
        self.assertTrue(swapped.axes_swapped)

    def test_circumference(self):
        self.assertAlmostEqual(self.ellipse.circumference, ceg.ellipse_circumference(40, 25))

    def test_boundary_points(self):
        boundary = self.ellipse.boundary_points(32)

        self.assertEqual(boundary.shape, (2, 32))

        # rotate back into the ellipse frame and check the implicit equation
        offset = boundary - np.array(self.ellipse.center).reshape(2, 1)
        cos_o, sin_o = np.cos(self.ellipse.orientation), np.sin(self.ellipse.orientation)
        along = offset[0] * cos_o + offset[1] * sin_o
        across = -offset[0] * sin_o + offset[1] * cos_o

        np.testing.assert_array_almost_equal((along / 40) ** 2 + (across / 25) ** 2, np.ones(32))

        np.testing.assert_array_almost_equal(boundary[:, 0], self.ellipse.endpoint2)
        np.testing.assert_array_almost_equal(boundary[:, 16], self.ellipse.endpoint1)

    def test_cv2_box(self):
        center, axes, angle = self.ellipse.to_cv2_box()

        self.assertEqual(center, (100.0, 80.0))
        self.assertEqual(axes, (80.0, 50.0))
        self.assertAlmostEqual(angle, 30)

    def test_frozen(self):
        with self.assertRaises(AttributeError):
            self.ellipse.semimajor = 3  # type: ignore


if __name__ == '__main__':
    import unittest

    unittest.main()
