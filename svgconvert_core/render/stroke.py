from __future__ import annotations

from dataclasses import dataclass
import logging
import math

import numpy as np

from .geometry import Polyline, circle_polygon

LOGGER = logging.getLogger(__name__)

# Patterns finer than this many dashes per subpath are stroked solid.
MAX_DASHES = 100_000
_EPSILON = 1e-9


@dataclass(frozen=True)
class StrokeParams:
    width: float
    linecap: str = "butt"
    linejoin: str = "miter"
    miterlimit: float = 4.0
    dasharray: tuple[float, ...] = ()
    dashoffset: float = 0.0


def stroke_outline(polylines: list[Polyline], params: StrokeParams, tolerance: float) -> list[np.ndarray]:
    """Polygons whose nonzero union is the stroke area.

    Every polygon is emitted with the same orientation so overlapping pieces never
    cancel under the nonzero rule.
    """
    half = params.width / 2.0
    if half <= 0:
        return []
    pieces: list[Polyline] = []
    for line in polylines:
        pts = _dedupe(line.points, line.closed)
        if params.dasharray:
            pieces.extend(apply_dashes(Polyline(pts, line.closed), params.dasharray, params.dashoffset))
        else:
            pieces.append(_solid(Polyline(pts, line.closed)))
    polygons: list[np.ndarray] = []
    for piece in pieces:
        polygons.extend(_outline_piece(piece, half, params, tolerance))
    return [_orient(poly) for poly in polygons if len(poly) >= 3]


def apply_dashes(line: Polyline, dasharray: tuple[float, ...], offset: float) -> list[Polyline]:
    pts = line.points
    if line.closed and len(pts) > 1:
        pts = np.vstack([pts, pts[:1]])
    if len(pts) < 2:
        return []
    pattern_length = float(sum(dasharray))
    if pattern_length <= 0:
        return [_solid(line)]
    seg_lengths = np.hypot(*(pts[1:] - pts[:-1]).T)
    total = float(seg_lengths.sum())
    if total / pattern_length * len(dasharray) > MAX_DASHES:
        LOGGER.debug("dash pattern too dense (%.3g over %.3g), stroking solid", pattern_length, total)
        return [_solid(line)]

    position = offset % pattern_length
    index = 0
    while position >= dasharray[index]:
        position -= dasharray[index]
        index = (index + 1) % len(dasharray)
    remaining = dasharray[index] - position
    drawing = index % 2 == 0
    starts_on_dash = drawing

    dashes: list[Polyline] = []
    current: list[np.ndarray] = [pts[0]] if drawing else []

    def extend(point: np.ndarray) -> None:
        if not current or math.hypot(*(point - current[-1])) > _EPSILON:
            current.append(point)

    for a, b, seg_len in zip(pts[:-1], pts[1:], seg_lengths):
        seg_len = float(seg_len)
        travelled = 0.0
        while seg_len - travelled > remaining:
            travelled += remaining
            point = a + (b - a) * (travelled / seg_len)
            if drawing:
                extend(point)
                dashes.append(Polyline(np.array(current)))
                current = []
            else:
                current = [point]
            drawing = not drawing
            index = (index + 1) % len(dasharray)
            remaining = dasharray[index]
        remaining -= seg_len - travelled
        if drawing:
            extend(b)
    if drawing and current:
        if line.closed and starts_on_dash:
            # The dash running through the start vertex is one piece, so that corner keeps its join.
            if not dashes:
                return [_solid(line)]
            dashes[0] = Polyline(np.vstack([np.array(current), dashes[0].points[1:]]))
        elif len(current) >= 2:
            dashes.append(Polyline(np.array(current)))
    return dashes


def _outline_piece(line: Polyline, half: float, params: StrokeParams, tolerance: float) -> list[np.ndarray]:
    pts = _dedupe(line.points, line.closed)
    if len(pts) == 0:
        return []
    if len(pts) == 1:
        # Zero-length subpaths still show round and square caps.
        center = pts[0]
        if params.linecap == "round":
            return [circle_polygon((center[0], center[1]), half, tolerance)]
        if params.linecap == "square":
            x, y = center
            return [np.array([[x - half, y - half], [x + half, y - half], [x + half, y + half], [x - half, y + half]])]
        return []

    closed = line.closed and len(pts) > 2
    seg_starts = pts if closed else pts[:-1]
    seg_ends = np.roll(pts, -1, axis=0) if closed else pts[1:]
    vectors = seg_ends - seg_starts
    lengths = np.hypot(vectors[:, 0], vectors[:, 1])
    directions = vectors / lengths[:, None]
    normals = np.stack([-directions[:, 1], directions[:, 0]], axis=1) * half

    polygons: list[np.ndarray] = []
    for a, b, n in zip(seg_starts, seg_ends, normals):
        polygons.append(np.array([a + n, b + n, b - n, a - n]))

    count = len(directions)
    join_pairs = range(count) if closed else range(count - 1)
    for i in join_pairs:
        j = (i + 1) % count
        join = _join(seg_ends[i], directions[i], directions[j], half, params, tolerance)
        if join is not None:
            polygons.append(join)

    if not closed:
        polygons.extend(_cap(pts[0], -directions[0], half, params.linecap, tolerance))
        polygons.extend(_cap(pts[-1], directions[-1], half, params.linecap, tolerance))
    return polygons


def _join(vertex, d0, d1, half: float, params: StrokeParams, tolerance: float) -> np.ndarray | None:
    cross = d0[0] * d1[1] - d0[1] * d1[0]
    dot = float(np.dot(d0, d1))
    if abs(cross) < 1e-12 and dot > 0:
        return None
    if params.linejoin == "round":
        return circle_polygon((vertex[0], vertex[1]), half, tolerance)
    # Offsets on the outer side of the turn.
    sign = -1.0 if cross > 0 else 1.0
    o0 = np.array([-d0[1], d0[0]]) * sign
    o1 = np.array([-d1[1], d1[0]]) * sign
    bevel = np.array([vertex, vertex + o0 * half, vertex + o1 * half])
    if params.linejoin == "bevel":
        return bevel
    bisector = o0 + o1
    norm = float(np.hypot(*bisector))
    if norm < 1e-12:
        return bevel
    cos_half = norm / 2.0
    ratio = 1.0 / cos_half
    if ratio > params.miterlimit:
        return bevel
    tip = vertex + bisector / norm * half * ratio
    return np.array([vertex, vertex + o0 * half, tip, vertex + o1 * half])


def _cap(point, outward, half: float, linecap: str, tolerance: float) -> list[np.ndarray]:
    if linecap == "round":
        return [circle_polygon((point[0], point[1]), half, tolerance)]
    if linecap == "square":
        n = np.array([-outward[1], outward[0]]) * half
        ext = outward * half
        return [np.array([point + n, point + ext + n, point + ext - n, point - n])]
    return []


def _dedupe(points: np.ndarray, closed: bool) -> np.ndarray:
    pts = np.asarray(points, dtype=np.float64)
    if len(pts) < 2:
        return pts
    step = np.hypot(*(pts[1:] - pts[:-1]).T)
    keep = np.concatenate([[True], step > _EPSILON])
    pts = pts[keep]
    if closed and len(pts) > 1 and math.hypot(*(pts[-1] - pts[0])) <= _EPSILON:
        pts = pts[:-1]
    return pts


def _orient(polygon: np.ndarray) -> np.ndarray:
    x = polygon[:, 0]
    y = polygon[:, 1]
    area = float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))
    return polygon[::-1] if area < 0 else polygon


def _solid(line: Polyline) -> Polyline:
    return Polyline(line.points, line.closed and len(line.points) > 2)
