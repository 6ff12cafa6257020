from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence, TextIO

from svgconvert_core.core.config import RenderConfiguration, RenderTarget, load_configuration, parse_background
from svgconvert_core.core.errors import ConfigurationError, RenderWarning, SVGRenderingError
from svgconvert_core.core.session import SVGRenderer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="svgconvert")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert an SVG file to a PNG of the given size.")
    convert.add_argument("input", type=Path)
    convert.add_argument("output", type=Path)
    convert.add_argument("width", type=float)
    convert.add_argument("height", type=float)
    convert.add_argument("--scale", type=float, default=1.0, help="Multiplier applied to width and height.")
    convert.add_argument(
        "--no-svg-fix",
        action="store_true",
        help="Do not guess a missing viewBox from width/height; the SVG is then not resized.",
    )
    convert.add_argument(
        "--no-alpha-channel",
        action="store_true",
        help="Flatten onto the background color and write an RGB PNG.",
    )
    convert.add_argument("--background", default=None, help="Background color used when removing alpha.")
    convert.add_argument("--config", type=Path, default=None, help="TOML file with a [render] table.")
    convert.add_argument("--quiet", action="store_true", help="Do not print warnings or errors.")
    convert.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Sequence[str] | None = None, stderr: TextIO | None = None) -> int:
    args = build_parser().parse_args(argv)
    err = stderr or sys.stderr
    if args.command == "convert":
        return _convert(args, err)
    raise RuntimeError(f"unsupported command: {args.command}")


def _convert(args: argparse.Namespace, err: TextIO) -> int:
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    def report(kind: str, message: object) -> None:
        if not args.quiet:
            print(f"[{kind}] {message}", file=err)

    def on_warning(warning: RenderWarning) -> None:
        report("Warning", warning.message)

    try:
        configuration = load_configuration(args.config) if args.config is not None else RenderConfiguration()
        configuration = configuration.with_overrides(
            allow_fixing_missing_viewbox=False if args.no_svg_fix else None,
            remove_alpha_channel=True if args.no_alpha_channel else None,
            background=parse_background(args.background) if args.background is not None else None,
        )
        target = RenderTarget(width=args.width, height=args.height, scale=args.scale)
        svg_data = args.input.read_bytes()
        png = SVGRenderer(configuration).render(svg_data, target, warning_sink=on_warning)
        args.output.write_bytes(png)
    except (SVGRenderingError, ConfigurationError, OSError) as exc:
        report("Error", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
