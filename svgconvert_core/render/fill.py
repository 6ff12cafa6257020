from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable

import numpy as np


SUBSAMPLES = 4
FILL_RULES = ("nonzero", "evenodd")


@dataclass(frozen=True)
class Coverage:
    """Per-pixel coverage in [0, 1] for canvas rows `y0 .. y0 + mask.shape[0]`."""

    y0: int
    mask: np.ndarray


def rasterize_coverage(
    polygons: Iterable[np.ndarray],
    width: int,
    height: int,
    fill_rule: str = "nonzero",
    samples: int = SUBSAMPLES,
) -> Coverage | None:
    """Scanline coverage of closed polygons in pixel space.

    Every pixel row is sampled on `samples` horizontal scanlines. On each scanline the
    edge crossings are sorted, the winding number decides which spans are inside and
    each span contributes its exact horizontal overlap to the pixels it touches.
    """
    if fill_rule not in FILL_RULES:
        raise ValueError(f"unknown fill rule: {fill_rule}")
    edges = _collect_edges(polygons)
    if edges is None:
        return None
    x0, y0, x1, y1 = edges
    direction = np.where(y1 > y0, 1, -1)
    swap = y1 < y0
    ya = np.where(swap, y1, y0)
    yb = np.where(swap, y0, y1)
    xa = np.where(swap, x1, x0)
    xb = np.where(swap, x0, x1)
    dxdy = (xb - xa) / (yb - ya)

    row0 = max(0, int(math.floor(float(ya.min()))))
    row1 = min(height, int(math.ceil(float(yb.max()))))
    if row1 <= row0 or float(np.max(np.maximum(xa, xb))) <= 0.0 or float(np.min(np.minimum(xa, xb))) >= width:
        return None

    # Sample line k sits at y = (k + 0.5) / samples and belongs to edges with ya <= y < yb.
    first = np.ceil(ya * samples - 0.5).astype(np.int64)
    last = np.ceil(yb * samples - 0.5).astype(np.int64)
    first = np.maximum(first, row0 * samples)
    last = np.minimum(last, row1 * samples)
    counts = np.maximum(last - first, 0)
    total = int(counts.sum())
    if total == 0:
        return None

    edge_index = np.repeat(np.arange(len(counts)), counts)
    starts = np.cumsum(counts) - counts
    k = first[edge_index] + (np.arange(total) - starts[edge_index])
    sample_y = (k + 0.5) / samples
    cross_x = xa[edge_index] + (sample_y - ya[edge_index]) * dxdy[edge_index]
    winding_step = direction[edge_index]

    order = np.lexsort((cross_x, k))
    k = k[order]
    cross_x = cross_x[order]
    winding_step = winding_step[order]

    group_start = np.empty(total, dtype=bool)
    group_start[0] = True
    group_start[1:] = k[1:] != k[:-1]
    running = np.cumsum(winding_step)
    start_index = np.flatnonzero(group_start)
    group_id = np.cumsum(group_start) - 1
    winding = running - (running[start_index] - winding_step[start_index])[group_id]

    if fill_rule == "nonzero":
        inside = winding != 0
    else:
        inside = (winding % 2) != 0
    same_line = np.zeros(total, dtype=bool)
    same_line[:-1] = k[1:] == k[:-1]
    span = np.flatnonzero(inside & same_line)
    if span.size == 0:
        return None

    left = np.clip(cross_x[span], 0.0, float(width))
    right = np.clip(cross_x[span + 1], 0.0, float(width))
    keep = right > left
    left, right = left[keep], right[keep]
    rows = k[span][keep] // samples - row0
    if rows.size == 0:
        return None

    band_rows = row1 - row0
    stride = width + 1
    weight = 1.0 / samples
    left_col = np.floor(left).astype(np.int64)
    right_col = np.floor(right).astype(np.int64)
    # Each span adds `weight` to pixels [left_col, right_col) with fractional ends.
    flat_size = band_rows * stride
    diff = np.bincount(rows * stride + left_col, weights=np.full(rows.size, weight), minlength=flat_size)
    diff -= np.bincount(rows * stride + right_col, weights=np.full(rows.size, weight), minlength=flat_size)
    extra = np.bincount(rows * stride + right_col, weights=weight * (right - right_col), minlength=flat_size)
    extra -= np.bincount(rows * stride + left_col, weights=weight * (left - left_col), minlength=flat_size)

    mask = np.cumsum(diff.reshape(band_rows, stride), axis=1) + extra.reshape(band_rows, stride)
    mask = np.clip(mask[:, :width], 0.0, 1.0).astype(np.float32)
    return Coverage(y0=row0, mask=mask)


def _collect_edges(polygons: Iterable[np.ndarray]) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray] | None:
    starts: list[np.ndarray] = []
    ends: list[np.ndarray] = []
    for polygon in polygons:
        pts = np.asarray(polygon, dtype=np.float64).reshape(-1, 2)
        if len(pts) < 2:
            continue
        starts.append(pts)
        ends.append(np.roll(pts, -1, axis=0))
    if not starts:
        return None
    p0 = np.concatenate(starts, axis=0)
    p1 = np.concatenate(ends, axis=0)
    finite = np.isfinite(p0).all(axis=1) & np.isfinite(p1).all(axis=1)
    sloped = finite & (p0[:, 1] != p1[:, 1])
    if not sloped.any():
        return None
    p0, p1 = p0[sloped], p1[sloped]
    return p0[:, 0], p0[:, 1], p1[:, 0], p1[:, 1]
