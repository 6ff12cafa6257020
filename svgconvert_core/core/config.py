from __future__ import annotations

from dataclasses import dataclass, replace
import math
from pathlib import Path
import tomllib
from typing import Any

from PIL import ImageColor

from .errors import ConfigurationError


RGB = tuple[int, int, int]


@dataclass(frozen=True)
class RenderConfiguration:
    """Per-controller render options.

    `allow_fixing_missing_viewbox` lets the renderer add `viewBox="0 0 width height"` to
    documents that lack one, so they can be resized to the target. Without a viewBox the
    document is still converted, at its natural size.
    """

    allow_fixing_missing_viewbox: bool = True
    remove_alpha_channel: bool = False
    background: RGB = (255, 255, 255)
    compress_level: int = 6

    def __post_init__(self) -> None:
        if len(self.background) != 3 or any(not 0 <= int(c) <= 255 for c in self.background):
            raise ConfigurationError(f"background must be three 0..255 channels, got {self.background!r}")
        if not 0 <= self.compress_level <= 9:
            raise ConfigurationError(f"compress_level must be in [0, 9], got {self.compress_level}")

    def with_overrides(self, **overrides: Any) -> "RenderConfiguration":
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


@dataclass(frozen=True)
class RenderTarget:
    width: float
    height: float
    scale: float = 1.0
    remove_alpha: bool | None = None

    def __post_init__(self) -> None:
        for label, value in (("width", self.width), ("height", self.height), ("scale", self.scale)):
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{label} must be a finite number > 0, got {value}")

    @property
    def pixel_width(self) -> int:
        return _round_half_up(self.width * self.scale)

    @property
    def pixel_height(self) -> int:
        return _round_half_up(self.height * self.scale)

    @property
    def pixel_size(self) -> tuple[int, int]:
        return (self.pixel_width, self.pixel_height)

    def removes_alpha(self, configuration: RenderConfiguration) -> bool:
        if self.remove_alpha is None:
            return configuration.remove_alpha_channel
        return self.remove_alpha


def load_configuration(path: Path) -> RenderConfiguration:
    """Read a `[render]` table from a TOML file."""
    try:
        with path.open("rb") as fh:
            raw = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid config file {path}: {exc}") from exc
    table = raw.get("render", {})
    if not isinstance(table, dict):
        raise ConfigurationError("`render` must be a table")
    known = {"allow_fixing_missing_viewbox", "remove_alpha_channel", "background", "compress_level"}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ConfigurationError(f"unknown render options: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key in ("allow_fixing_missing_viewbox", "remove_alpha_channel"):
        if key in table:
            if not isinstance(table[key], bool):
                raise ConfigurationError(f"`{key}` must be a boolean")
            values[key] = table[key]
    if "background" in table:
        values["background"] = parse_background(table["background"])
    if "compress_level" in table:
        if not isinstance(table["compress_level"], int):
            raise ConfigurationError("`compress_level` must be an integer")
        values["compress_level"] = table["compress_level"]
    return RenderConfiguration(**values)


def parse_background(value: Any) -> RGB:
    if isinstance(value, str):
        try:
            rgb = ImageColor.getrgb(value)
        except ValueError as exc:
            raise ConfigurationError(f"unknown background color `{value}`") from exc
        return (rgb[0], rgb[1], rgb[2])
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return (int(value[0]), int(value[1]), int(value[2]))
    raise ConfigurationError(f"background must be a color string or [r, g, b], got {value!r}")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
