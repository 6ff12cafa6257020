from __future__ import annotations

import logging
from typing import Mapping

import numpy as np

from svgconvert_core.core.coordinates import Transform
from svgconvert_core.core.document import Group, Node, PaintServer, SVGDocument
from svgconvert_core.core.errors import InvalidGeometry

from .fill import SUBSAMPLES, rasterize_coverage
from .framebuffer import FrameBuffer
from .geometry import flatten_path, polyline_bounds
from .paint import ShadedPaint, make_paint
from .stroke import StrokeParams, stroke_outline

LOGGER = logging.getLogger(__name__)


class Rasterizer:
    """Paints a document tree into a premultiplied RGBA frame buffer.

    `tolerance` is the maximum curve flattening error in pixels.
    """

    def __init__(self, tolerance: float = 0.2, samples: int = SUBSAMPLES) -> None:
        if tolerance <= 0:
            raise ValueError("tolerance must be > 0")
        if samples <= 0:
            raise ValueError("samples must be > 0")
        self.tolerance = tolerance
        self.samples = samples

    def paint(self, document: SVGDocument, transform: Transform, width: int, height: int) -> FrameBuffer:
        if width <= 0 or height <= 0:
            raise InvalidGeometry(f"canvas size must be > 0, got {width}x{height}")
        canvas = FrameBuffer(width, height)
        painted = self._paint_node(canvas, document.tree, transform, document.paint_servers)
        LOGGER.debug("painted %d shapes into %dx%d canvas", painted, width, height)
        return canvas

    def _paint_node(
        self,
        canvas: FrameBuffer,
        node: Node,
        parent_ctm: Transform,
        servers: Mapping[str, PaintServer],
    ) -> int:
        ctm = parent_ctm if node.transform is None else parent_ctm @ node.transform
        if abs(ctm.determinant()) < 1e-12:
            return 0
        opacity = node.style.opacity
        if opacity <= 0.0:
            return 0
        if isinstance(node, Group):
            if not node.children:
                return 0
            target = canvas if opacity >= 1.0 else FrameBuffer(canvas.width, canvas.height)
            painted = sum(self._paint_node(target, child, ctm, servers) for child in node.children)
            if target is not canvas:
                canvas.composite(target, opacity)
            return painted
        return self._paint_shape(canvas, node, ctm, servers)

    def _paint_shape(
        self,
        canvas: FrameBuffer,
        node: Node,
        ctm: Transform,
        servers: Mapping[str, PaintServer],
    ) -> int:
        style = node.style
        if not style.visible:
            return 0
        path = node.to_path()
        if not path:
            return 0
        tolerance = self.tolerance / ctm.max_scale()
        polylines = flatten_path(path, tolerance)
        if not polylines:
            return 0
        bbox = polyline_bounds(polylines)

        # Overlapping fill and stroke must fade together, so they share a layer.
        layered = style.opacity < 1.0 and style.fill is not None and style.stroke is not None
        paint_opacity = 1.0 if layered else style.opacity
        fill = make_paint(style.fill, style.fill_opacity * paint_opacity, servers, bbox, ctm)
        stroke = None
        if style.stroke_width > 0:
            stroke = make_paint(style.stroke, style.stroke_opacity * paint_opacity, servers, bbox, ctm)
        if fill is None and stroke is None:
            return 0

        target = FrameBuffer(canvas.width, canvas.height) if layered else canvas
        if fill is not None:
            polygons = [ctm.apply(line.points) for line in polylines if len(line.points) >= 3]
            self._fill(target, polygons, style.fill_rule, fill)
        if stroke is not None:
            params = StrokeParams(
                width=style.stroke_width,
                linecap=style.stroke_linecap,
                linejoin=style.stroke_linejoin,
                miterlimit=style.stroke_miterlimit,
                dasharray=style.stroke_dasharray,
                dashoffset=style.stroke_dashoffset,
            )
            outline = stroke_outline(polylines, params, tolerance)
            self._fill(target, [ctm.apply(poly) for poly in outline], "nonzero", stroke)
        if layered:
            canvas.composite(target, style.opacity)
        return 1

    def _fill(self, canvas: FrameBuffer, polygons: list[np.ndarray], fill_rule: str, paint: ShadedPaint) -> None:
        if not polygons:
            return
        coverage = rasterize_coverage(polygons, canvas.width, canvas.height, fill_rule, self.samples)
        if coverage is None:
            return
        rows = coverage.mask.shape[0]
        canvas.blend(coverage.y0, coverage.mask, paint.shade(coverage.y0, rows, canvas.width))

