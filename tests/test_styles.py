from __future__ import annotations

import unittest

from svgconvert_core.core.styles import (
    BLACK,
    Color,
    LengthContext,
    PaintReference,
    Style,
    StyleSheet,
    parse_color,
    parse_declarations,
    parse_length,
    resolve_style,
)


class ColorParsingTests(unittest.TestCase):
    def test_hex_and_named_colors(self) -> None:
        self.assertEqual(parse_color("#ff0000"), Color(255, 0, 0))
        self.assertEqual(parse_color("#f00"), Color(255, 0, 0))
        self.assertEqual(parse_color("red"), Color(255, 0, 0))

    def test_rgba_with_fractional_alpha(self) -> None:
        self.assertEqual(parse_color("rgba(0, 0, 255, 0.5)"), Color(0, 0, 255, 0.5))

    def test_transparent(self) -> None:
        self.assertEqual(parse_color("transparent").alpha, 0.0)

    def test_unknown_color_raises(self) -> None:
        with self.assertRaises(ValueError):
            parse_color("not-a-color")

    def test_premultiplied(self) -> None:
        r, g, b, a = Color(255, 0, 0, 0.5).premultiplied(0.5)
        self.assertAlmostEqual(r, 0.25)
        self.assertEqual((g, b), (0.0, 0.0))
        self.assertAlmostEqual(a, 0.25)


class LengthParsingTests(unittest.TestCase):
    def test_absolute_units(self) -> None:
        self.assertEqual(parse_length("10"), 10.0)
        self.assertEqual(parse_length("1in"), 96.0)
        self.assertAlmostEqual(parse_length("10mm") or 0.0, 37.7952755, places=5)

    def test_relative_units(self) -> None:
        ctx = LengthContext(200.0, 100.0)
        self.assertEqual(parse_length("50%", ctx, "x"), 100.0)
        self.assertEqual(parse_length("50%", ctx, "y"), 50.0)
        self.assertEqual(parse_length("2em", ctx), 32.0)

    def test_malformed_length(self) -> None:
        self.assertIsNone(parse_length("abc"))
        self.assertIsNone(parse_length("10furlongs"))
        self.assertIsNone(parse_length(None))


class StyleSheetTests(unittest.TestCase):
    def test_specificity_orders_rules(self) -> None:
        sheet = StyleSheet()
        sheet.add_css("#x { fill: red } .a { fill: green } rect { fill: blue; stroke: black }")
        self.assertEqual(sheet.declarations_for("rect", "x", ["a"])["fill"], "red")
        self.assertEqual(sheet.declarations_for("rect", None, ["a"])["fill"], "green")
        self.assertEqual(sheet.declarations_for("rect", None, []), {"fill": "blue", "stroke": "black"})
        self.assertEqual(sheet.declarations_for("circle", None, []), {})

    def test_selector_lists_and_comments(self) -> None:
        sheet = StyleSheet()
        sheet.add_css("/* shapes */ circle, .dot { opacity: 0.5 }")
        self.assertEqual(sheet.declarations_for("circle", None, []), {"opacity": "0.5"})
        self.assertEqual(sheet.declarations_for("path", None, ["dot"]), {"opacity": "0.5"})

    def test_unsupported_selectors_are_ignored(self) -> None:
        sheet = StyleSheet()
        sheet.add_css("g > rect { fill: red } rect:hover { fill: blue }")
        self.assertEqual(sheet.rules, [])

    def test_declarations_strip_important(self) -> None:
        self.assertEqual(parse_declarations("fill: red !important; ; stroke:blue"), {"fill": "red", "stroke": "blue"})


class ResolveStyleTests(unittest.TestCase):
    ctx = LengthContext()

    def test_inherited_and_reset_properties(self) -> None:
        parent = resolve_style(Style(), {"fill": "red", "opacity": "0.5", "stroke-width": "3"}, self.ctx)
        child = resolve_style(parent, {}, self.ctx)
        self.assertEqual(child.fill, Color(255, 0, 0))
        self.assertEqual(child.stroke_width, 3.0)
        self.assertEqual(child.opacity, 1.0)

    def test_malformed_values_keep_inherited(self) -> None:
        style = resolve_style(Style(), {"fill": "notacolor", "stroke-width": "-3", "fill-rule": "odd"}, self.ctx)
        self.assertEqual(style.fill, BLACK)
        self.assertEqual(style.stroke_width, 1.0)
        self.assertEqual(style.fill_rule, "nonzero")

    def test_paint_references_and_current_color(self) -> None:
        style = resolve_style(Style(), {"fill": "url(#g) blue", "color": "lime", "stroke": "currentColor"}, self.ctx)
        self.assertEqual(style.fill, PaintReference("g", Color(0, 0, 255)))
        self.assertEqual(style.stroke, Color(0, 255, 0))

    def test_none_paint(self) -> None:
        self.assertIsNone(resolve_style(Style(), {"fill": "none"}, self.ctx).fill)

    def test_odd_dasharray_is_repeated(self) -> None:
        style = resolve_style(Style(), {"stroke-dasharray": "5, 3 2"}, self.ctx)
        self.assertEqual(style.stroke_dasharray, (5.0, 3.0, 2.0, 5.0, 3.0, 2.0))

    def test_visibility_and_display(self) -> None:
        style = resolve_style(Style(), {"visibility": "hidden", "display": "none"}, self.ctx)
        self.assertFalse(style.visible)
        self.assertFalse(style.display)


if __name__ == "__main__":
    unittest.main()
