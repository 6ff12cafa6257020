from __future__ import annotations

import io
from pathlib import Path
import tempfile
import unittest

from PIL import Image

from svgconvert_core.cli import main


class ConvertCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)
        self.output = self.dir / "out.png"

    def _input(self, svg: str) -> Path:
        path = self.dir / "in.svg"
        path.write_text(svg, encoding="utf-8")
        return path

    def _run(self, *args: str) -> tuple[int, str]:
        err = io.StringIO()
        code = main(list(args), stderr=err)
        return code, err.getvalue()

    def test_converts_to_requested_size(self) -> None:
        source = self._input('<svg viewBox="0 0 100 100"><rect width="100" height="100" fill="red"/></svg>')
        code, err = self._run("convert", str(source), str(self.output), "16", "8")
        self.assertEqual(code, 0)
        self.assertEqual(err, "")
        with Image.open(self.output) as image:
            self.assertEqual(image.size, (16, 8))
            self.assertEqual(image.mode, "RGBA")

    def test_scale_option(self) -> None:
        source = self._input('<svg viewBox="0 0 1 1"/>')
        code, _ = self._run("convert", str(source), str(self.output), "4", "4", "--scale", "2.5")
        self.assertEqual(code, 0)
        with Image.open(self.output) as image:
            self.assertEqual(image.size, (10, 10))

    def test_prints_guessed_viewbox_warning(self) -> None:
        source = self._input('<svg width="10" height="10"/>')
        code, err = self._run("convert", str(source), str(self.output), "5", "5")
        self.assertEqual(code, 0)
        self.assertEqual(err, "[Warning] Missing viewBox in svg file, one was guessed using width and height\n")

    def test_no_svg_fix(self) -> None:
        source = self._input('<svg width="10" height="10"/>')
        code, err = self._run("convert", str(source), str(self.output), "5", "5", "--no-svg-fix")
        self.assertEqual(code, 0)
        self.assertIn("[Warning] Missing viewBox in svg file, the svg will not be resized", err)

    def test_quiet_suppresses_output(self) -> None:
        source = self._input('<svg width="10" height="10"/>')
        code, err = self._run("convert", str(source), str(self.output), "5", "5", "--quiet")
        self.assertEqual(code, 0)
        self.assertEqual(err, "")

    def test_no_alpha_channel_with_background(self) -> None:
        source = self._input('<svg viewBox="0 0 1 1"/>')
        code, _ = self._run(
            "convert", str(source), str(self.output), "2", "2", "--no-alpha-channel", "--background", "black"
        )
        self.assertEqual(code, 0)
        with Image.open(self.output) as image:
            self.assertEqual(image.mode, "RGB")
            self.assertEqual(image.getpixel((0, 0)), (0, 0, 0))

    def test_config_file(self) -> None:
        config = self.dir / "render.toml"
        config.write_text("[render]\nremove_alpha_channel = true\n", encoding="utf-8")
        source = self._input('<svg viewBox="0 0 1 1"/>')
        code, _ = self._run("convert", str(source), str(self.output), "2", "2", "--config", str(config))
        self.assertEqual(code, 0)
        with Image.open(self.output) as image:
            self.assertEqual(image.mode, "RGB")

    def test_invalid_svg_reports_error_and_writes_nothing(self) -> None:
        source = self._input("<not-xml")
        code, err = self._run("convert", str(source), str(self.output), "5", "5")
        self.assertEqual(code, 1)
        self.assertTrue(err.startswith("[Error] The SVG data is malformed"))
        self.assertFalse(self.output.exists())

    def test_invalid_size_reports_error(self) -> None:
        source = self._input('<svg viewBox="0 0 1 1"/>')
        code, err = self._run("convert", str(source), str(self.output), "0", "5")
        self.assertEqual(code, 1)
        self.assertIn("[Error]", err)
        self.assertFalse(self.output.exists())

    def test_missing_input_file(self) -> None:
        code, err = self._run("convert", str(self.dir / "missing.svg"), str(self.output), "5", "5", "--quiet")
        self.assertEqual(code, 1)
        self.assertEqual(err, "")


if __name__ == "__main__":
    unittest.main()
