from __future__ import annotations

import unittest

from svgconvert_core.core.pathdata import parse_path_data, parse_points, rect_path


class PathDataParserTests(unittest.TestCase):
    def test_absolute_commands(self) -> None:
        path = parse_path_data("M10 20 L30 40 H50 V60 Z")
        self.assertEqual(len(path.subpaths), 1)
        sub = path.subpaths[0]
        self.assertEqual(sub.start, (10.0, 20.0))
        self.assertEqual(sub.segments, [(30.0, 40.0), (50.0, 40.0), (50.0, 60.0)])
        self.assertTrue(sub.closed)

    def test_relative_commands(self) -> None:
        sub = parse_path_data("m10 10 l5 0 l0 5 z").subpaths[0]
        self.assertEqual(sub.segments, [(15.0, 10.0), (15.0, 15.0)])

    def test_implicit_lineto_after_moveto(self) -> None:
        sub = parse_path_data("M0 0 10 0 10 10").subpaths[0]
        self.assertEqual(sub.segments, [(10.0, 0.0), (10.0, 10.0)])

    def test_compact_numbers(self) -> None:
        self.assertEqual(parse_path_data("M0,0L1.5.5").subpaths[0].segments, [(1.5, 0.5)])
        self.assertEqual(parse_path_data("M-1-2h3").subpaths[0].start, (-1.0, -2.0))

    def test_smooth_cubic_reflects_previous_control(self) -> None:
        sub = parse_path_data("M0 0 C 0 10 10 10 10 0 S 20 -10 20 0").subpaths[0]
        self.assertEqual(sub.segments[1], (10.0, -10.0, 20.0, -10.0, 20.0, 0.0))

    def test_smooth_quad_without_previous_quad_uses_current_point(self) -> None:
        sub = parse_path_data("M0 0 L 5 5 T 10 0").subpaths[0]
        self.assertEqual(sub.segments[1], (5.0, 5.0, 10.0, 0.0))

    def test_malformed_tail_keeps_prefix(self) -> None:
        sub = parse_path_data("M0 0 L10 0 L10 x").subpaths[0]
        self.assertEqual(sub.segments, [(10.0, 0.0)])

    def test_drawing_after_close_starts_at_subpath_start(self) -> None:
        path = parse_path_data("M5 5 L10 5 L10 10 Z l1 1")
        self.assertEqual(len(path.subpaths), 2)
        self.assertEqual(path.subpaths[1].start, (5.0, 5.0))
        self.assertEqual(path.subpaths[1].segments, [(6.0, 6.0)])

    def test_arc_becomes_cubics_ending_on_target(self) -> None:
        sub = parse_path_data("M0 0 A 10 10 0 0 1 20 0").subpaths[0]
        self.assertEqual(len(sub.segments), 2)
        self.assertEqual(sub.segments[-1][-2:], (20.0, 0.0))
        mid = sub.segments[0][-2:]
        self.assertAlmostEqual(mid[0], 10.0)
        self.assertAlmostEqual(abs(mid[1]), 10.0)

    def test_packed_arc_flags(self) -> None:
        sub = parse_path_data("M0 0a5 5 0 1110 0").subpaths[0]
        self.assertEqual(sub.segments[-1][-2:], (10.0, 0.0))

    def test_empty_data_is_falsy(self) -> None:
        self.assertFalse(parse_path_data(""))
        self.assertFalse(parse_path_data(None))
        self.assertFalse(parse_path_data("M 1 1"))


class ShapePathTests(unittest.TestCase):
    def test_plain_rect_is_closed_polygon(self) -> None:
        sub = rect_path(1.0, 2.0, 3.0, 4.0).subpaths[0]
        self.assertEqual(sub.start, (1.0, 2.0))
        self.assertEqual(sub.segments, [(4.0, 2.0), (4.0, 6.0), (1.0, 6.0)])
        self.assertTrue(sub.closed)

    def test_rounded_rect_bounds(self) -> None:
        bounds = rect_path(0.0, 0.0, 10.0, 6.0, rx=2.0, ry=2.0).bounds()
        assert bounds is not None
        x, y, w, h = bounds
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 0.0)
        self.assertAlmostEqual(w, 10.0)
        self.assertAlmostEqual(h, 6.0)

    def test_points_drop_odd_coordinate(self) -> None:
        self.assertEqual(parse_points("1,2 3 4 5"), [(1.0, 2.0), (3.0, 4.0)])
        self.assertEqual(parse_points(None), [])


if __name__ == "__main__":
    unittest.main()
