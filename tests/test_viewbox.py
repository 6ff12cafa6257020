from __future__ import annotations

import unittest

from svgconvert_core.core.document import parse_svg
from svgconvert_core.core.errors import RenderWarning
from svgconvert_core.core.viewbox import format_number, resolve_viewbox


class ResolveViewBoxTests(unittest.TestCase):
    def test_existing_viewbox_only_gets_target_size(self) -> None:
        doc = parse_svg(b'<svg viewBox="0 0 5 5" width="100" height="100"/>')
        self.assertIsNone(resolve_viewbox(doc, (10, 20)))
        self.assertEqual(doc.root_element.get("viewBox"), "0 0 5 5")
        self.assertEqual(doc.width_attribute, "10.0")
        self.assertEqual(doc.height_attribute, "20.0")

    def test_missing_viewbox_is_guessed_from_size(self) -> None:
        doc = parse_svg(b'<svg width="100" height="50"/>')
        warning = resolve_viewbox(doc, (20, 10))
        self.assertIs(warning, RenderWarning.MISSING_VIEWBOX_GUESSED)
        self.assertEqual(doc.root_element.get("viewBox"), "0 0 100.0 50.0")
        self.assertEqual((doc.width_attribute, doc.height_attribute), ("20.0", "10.0"))

    def test_fixing_disabled(self) -> None:
        doc = parse_svg(b'<svg width="100" height="50"/>')
        warning = resolve_viewbox(doc, (20, 10), allow_fixing=False)
        self.assertIs(warning, RenderWarning.MISSING_VIEWBOX_UNRESOLVABLE)
        self.assertFalse(doc.has_viewbox_attribute)
        self.assertEqual(doc.width_attribute, "20.0")

    def test_unparseable_dimensions_fall_back_to_unresolvable(self) -> None:
        for attrs in ('width="100px" height="50"', 'width=" 100" height="50"', 'width="0" height="50"', 'width="100"'):
            with self.subTest(attrs=attrs):
                doc = parse_svg(f"<svg {attrs}/>".encode("utf-8"))
                self.assertIs(resolve_viewbox(doc, (1, 1)), RenderWarning.MISSING_VIEWBOX_UNRESOLVABLE)
                self.assertFalse(doc.has_viewbox_attribute)

    def test_scientific_and_fractional_dimensions(self) -> None:
        doc = parse_svg(b'<svg width="1e2" height="12.5"/>')
        self.assertIs(resolve_viewbox(doc, (1, 1)), RenderWarning.MISSING_VIEWBOX_GUESSED)
        self.assertEqual(doc.root_element.get("viewBox"), "0 0 100.0 12.5")

    def test_warning_messages(self) -> None:
        self.assertEqual(
            str(RenderWarning.MISSING_VIEWBOX_GUESSED),
            "Missing viewBox in svg file, one was guessed using width and height",
        )
        self.assertEqual(
            RenderWarning.MISSING_VIEWBOX_UNRESOLVABLE.message,
            "Missing viewBox in svg file, the svg will not be resized",
        )

    def test_format_number(self) -> None:
        self.assertEqual(format_number(10), "10.0")
        self.assertEqual(format_number(2.5), "2.5")


if __name__ == "__main__":
    unittest.main()
