from __future__ import annotations

import unittest

import numpy as np

from svgconvert_core.render.fill import rasterize_coverage


def _square(x0: float, y0: float, x1: float, y1: float) -> np.ndarray:
    return np.array([[x0, y0], [x1, y0], [x1, y1], [x0, y1]], dtype=np.float64)


class RasterizeCoverageTests(unittest.TestCase):
    def test_pixel_aligned_square_is_fully_covered(self) -> None:
        coverage = rasterize_coverage([_square(0, 0, 10, 10)], 10, 10)
        assert coverage is not None
        self.assertEqual(coverage.y0, 0)
        self.assertEqual(coverage.mask.shape, (10, 10))
        np.testing.assert_allclose(coverage.mask, 1.0)

    def test_fractional_edge_gets_partial_coverage(self) -> None:
        coverage = rasterize_coverage([_square(0, 0, 2.5, 4)], 4, 4)
        assert coverage is not None
        np.testing.assert_allclose(coverage.mask[:, 0], 1.0)
        np.testing.assert_allclose(coverage.mask[:, 2], 0.5)
        np.testing.assert_allclose(coverage.mask[:, 3], 0.0)

    def test_band_starts_at_first_covered_row(self) -> None:
        coverage = rasterize_coverage([_square(0, 5, 10, 7)], 10, 10)
        assert coverage is not None
        self.assertEqual(coverage.y0, 5)
        self.assertEqual(coverage.mask.shape, (2, 10))

    def test_fill_rules_differ_on_nested_contours(self) -> None:
        shapes = [_square(0, 0, 8, 8), _square(2, 2, 6, 6)]
        nonzero = rasterize_coverage(shapes, 8, 8, "nonzero")
        evenodd = rasterize_coverage(shapes, 8, 8, "evenodd")
        assert nonzero is not None and evenodd is not None
        self.assertAlmostEqual(float(nonzero.mask[3, 3]), 1.0)
        self.assertAlmostEqual(float(evenodd.mask[3, 3]), 0.0)
        self.assertAlmostEqual(float(evenodd.mask[0, 0]), 1.0)

    def test_opposite_winding_hole_under_nonzero(self) -> None:
        shapes = [_square(0, 0, 8, 8), _square(2, 2, 6, 6)[::-1]]
        coverage = rasterize_coverage(shapes, 8, 8, "nonzero")
        assert coverage is not None
        self.assertAlmostEqual(float(coverage.mask[3, 3]), 0.0)

    def test_shapes_outside_canvas(self) -> None:
        self.assertIsNone(rasterize_coverage([_square(20, 0, 30, 10)], 10, 10))
        self.assertIsNone(rasterize_coverage([_square(0, -10, 10, -2)], 10, 10))
        self.assertIsNone(rasterize_coverage([], 10, 10))

    def test_partially_visible_shape_is_clipped(self) -> None:
        coverage = rasterize_coverage([_square(-5, -5, 5, 5)], 10, 10)
        assert coverage is not None
        self.assertEqual(coverage.y0, 0)
        self.assertEqual(coverage.mask.shape, (5, 10))
        self.assertAlmostEqual(float(coverage.mask[0, 4]), 1.0)
        self.assertAlmostEqual(float(coverage.mask[0, 5]), 0.0)

    def test_unknown_fill_rule(self) -> None:
        with self.assertRaises(ValueError):
            rasterize_coverage([_square(0, 0, 1, 1)], 2, 2, "winding")


if __name__ == "__main__":
    unittest.main()
