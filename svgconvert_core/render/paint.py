from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Mapping, Union

import numpy as np

from svgconvert_core.core.coordinates import Transform
from svgconvert_core.core.document import GradientStop, LinearGradient, PaintServer, RadialGradient
from svgconvert_core.core.styles import Color, Paint, PaintReference

LOGGER = logging.getLogger(__name__)

_FOCAL_LIMIT = 0.99


@dataclass(frozen=True)
class SolidPaint:
    rgba: tuple[float, float, float, float]

    def shade(self, y0: int, rows: int, width: int) -> np.ndarray:
        return np.asarray(self.rgba, dtype=np.float32)


@dataclass(frozen=True)
class GradientPaint:
    """Gradient sampled at pixel centers through the inverse of its pixel-space transform."""

    kind: str
    inverse: Transform
    offsets: np.ndarray
    colors: np.ndarray
    spread: str
    geometry: tuple[float, ...]

    def shade(self, y0: int, rows: int, width: int) -> np.ndarray:
        xs = np.arange(width, dtype=np.float64) + 0.5
        ys = np.arange(y0, y0 + rows, dtype=np.float64) + 0.5
        grid_x, grid_y = np.meshgrid(xs, ys)
        points = self.inverse.apply(np.stack([grid_x.ravel(), grid_y.ravel()], axis=1))
        if self.kind == "linear":
            t = _linear_parameter(points, self.geometry)
        else:
            t = _radial_parameter(points, self.geometry)
        t = _apply_spread(t, self.spread)
        channels = [np.interp(t, self.offsets, self.colors[:, c]) for c in range(4)]
        rgba = np.stack(channels, axis=1).astype(np.float32)
        rgba[:, :3] *= rgba[:, 3:4]
        return rgba.reshape(rows, width, 4)


ShadedPaint = Union[SolidPaint, GradientPaint]


def make_paint(
    paint: Paint | None,
    opacity: float,
    paint_servers: Mapping[str, PaintServer],
    bbox: tuple[float, float, float, float] | None,
    ctm: Transform,
) -> ShadedPaint | None:
    """Resolve a style paint to something the rasterizer can shade. `None` means paint nothing."""
    if paint is None or opacity <= 0.0:
        return None
    if isinstance(paint, Color):
        return _solid(paint, opacity)
    assert isinstance(paint, PaintReference)
    server = paint_servers.get(paint.element_id)
    if server is None:
        LOGGER.debug("paint server #%s not found", paint.element_id)
        return _solid(paint.fallback, opacity) if paint.fallback is not None else None
    stops = server.stops
    if not stops:
        return None
    if len(stops) == 1:
        return _solid_stop(stops[0], opacity)

    bbox_transform = Transform.identity()
    if server.units == "objectBoundingBox":
        if bbox is None or bbox[2] <= 0 or bbox[3] <= 0:
            return None
        x, y, w, h = bbox
        bbox_transform = Transform(origin=(x, y), basis_x=(w, 0.0), basis_y=(0.0, h))
    full = ctm @ bbox_transform
    if server.transform is not None:
        full = full @ server.transform
    try:
        inverse = full.inverted()
    except ValueError:
        return None

    offsets = np.array([stop.offset for stop in stops], dtype=np.float64)
    colors = np.array(
        [
            (stop.color.r / 255.0, stop.color.g / 255.0, stop.color.b / 255.0, stop.color.alpha * stop.opacity * opacity)
            for stop in stops
        ],
        dtype=np.float64,
    )

    if isinstance(server, LinearGradient):
        if math.isclose(server.x1, server.x2) and math.isclose(server.y1, server.y2):
            return _solid_stop(stops[-1], opacity)
        geometry = (server.x1, server.y1, server.x2, server.y2)
        return GradientPaint("linear", inverse, offsets, colors, server.spread, geometry)

    assert isinstance(server, RadialGradient)
    if server.r <= 0:
        return _solid_stop(stops[-1], opacity)
    fx, fy = server.fx, server.fy
    dx, dy = fx - server.cx, fy - server.cy
    distance = math.hypot(dx, dy)
    limit = server.r * _FOCAL_LIMIT
    if distance > limit:
        fx = server.cx + dx * limit / distance
        fy = server.cy + dy * limit / distance
    geometry = (server.cx, server.cy, server.r, fx, fy)
    return GradientPaint("radial", inverse, offsets, colors, server.spread, geometry)


def _solid(color: Color, opacity: float) -> SolidPaint | None:
    rgba = color.premultiplied(opacity)
    if rgba[3] <= 0.0:
        return None
    return SolidPaint(rgba)


def _solid_stop(stop: GradientStop, opacity: float) -> SolidPaint | None:
    return _solid(stop.color, stop.opacity * opacity)


def _linear_parameter(points: np.ndarray, geometry: tuple[float, ...]) -> np.ndarray:
    x1, y1, x2, y2 = geometry
    dx, dy = x2 - x1, y2 - y1
    return ((points[:, 0] - x1) * dx + (points[:, 1] - y1) * dy) / (dx * dx + dy * dy)


def _radial_parameter(points: np.ndarray, geometry: tuple[float, ...]) -> np.ndarray:
    # t where the point lies on the circle interpolated from (focal, 0) to (center, r).
    cx, cy, r, fx, fy = geometry
    ex, ey = cx - fx, cy - fy
    dx = points[:, 0] - fx
    dy = points[:, 1] - fy
    a = ex * ex + ey * ey - r * r
    b = dx * ex + dy * ey
    c = dx * dx + dy * dy
    return (b - np.sqrt(np.maximum(b * b - a * c, 0.0))) / a


def _apply_spread(t: np.ndarray, spread: str) -> np.ndarray:
    if spread == "repeat":
        return t - np.floor(t)
    if spread == "reflect":
        folded = np.mod(t, 2.0)
        return np.where(folded > 1.0, 2.0 - folded, folded)
    return np.clip(t, 0.0, 1.0)
