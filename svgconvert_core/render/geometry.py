from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from svgconvert_core.core.pathdata import PathData

_MAX_CURVE_STEPS = 512


@dataclass(frozen=True)
class Polyline:
    points: np.ndarray
    closed: bool = False


def flatten_path(path: PathData, tolerance: float) -> list[Polyline]:
    """Approximate curves with line segments deviating at most `tolerance` units."""
    tolerance = max(tolerance, 1e-9)
    result: list[Polyline] = []
    for sub in path:
        chunks: list[np.ndarray] = [np.array([sub.start], dtype=np.float64)]
        current = sub.start
        for seg in sub.segments:
            if len(seg) == 2:
                chunks.append(np.array([seg], dtype=np.float64))
            elif len(seg) == 4:
                chunks.append(_flatten_quad(current, (seg[0], seg[1]), (seg[2], seg[3]), tolerance))
            else:
                chunks.append(
                    _flatten_cubic(current, (seg[0], seg[1]), (seg[2], seg[3]), (seg[4], seg[5]), tolerance)
                )
            current = (seg[-2], seg[-1])
        points = np.concatenate(chunks, axis=0)
        if len(points) >= 2 or sub.closed:
            result.append(Polyline(points=points, closed=sub.closed))
    return result


def polyline_bounds(polylines: list[Polyline]) -> tuple[float, float, float, float] | None:
    """(x, y, width, height) of all points, or None when empty."""
    arrays = [line.points for line in polylines if len(line.points)]
    if not arrays:
        return None
    pts = np.concatenate(arrays, axis=0)
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return (float(lo[0]), float(lo[1]), float(hi[0] - lo[0]), float(hi[1] - lo[1]))


def circle_polygon(center: tuple[float, float], radius: float, tolerance: float) -> np.ndarray:
    steps = segments_for_radius(radius, tolerance)
    angles = np.linspace(0.0, 2.0 * math.pi, steps, endpoint=False)
    return np.stack([center[0] + radius * np.cos(angles), center[1] + radius * np.sin(angles)], axis=1)


def segments_for_radius(radius: float, tolerance: float) -> int:
    if radius <= tolerance:
        return 8
    step = 2.0 * math.acos(max(-1.0, 1.0 - tolerance / radius))
    return int(min(256, max(8, math.ceil(2.0 * math.pi / step))))


def _flatten_quad(p0, p1, p2, tolerance: float) -> np.ndarray:
    ctrl = np.array([p0, p1, p2], dtype=np.float64)
    dd = float(np.hypot(*(ctrl[0] - 2 * ctrl[1] + ctrl[2])))
    steps = _curve_steps(dd / 4.0, tolerance)
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    mt = 1.0 - t
    return mt * mt * ctrl[0] + 2 * mt * t * ctrl[1] + t * t * ctrl[2]


def _flatten_cubic(p0, p1, p2, p3, tolerance: float) -> np.ndarray:
    ctrl = np.array([p0, p1, p2, p3], dtype=np.float64)
    dd = max(
        float(np.hypot(*(ctrl[0] - 2 * ctrl[1] + ctrl[2]))),
        float(np.hypot(*(ctrl[1] - 2 * ctrl[2] + ctrl[3]))),
    )
    steps = _curve_steps(0.75 * dd, tolerance)
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    mt = 1.0 - t
    return mt**3 * ctrl[0] + 3 * mt * mt * t * ctrl[1] + 3 * mt * t * t * ctrl[2] + t**3 * ctrl[3]


def _curve_steps(error_bound: float, tolerance: float) -> int:
    # Linear interpolation error with n steps is error_bound / n**2.
    if error_bound <= tolerance:
        return 1
    return min(_MAX_CURVE_STEPS, math.ceil(math.sqrt(error_bound / tolerance)))
