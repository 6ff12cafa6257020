from .compositor import apply_alpha_policy, flatten_alpha
from .fill import Coverage, rasterize_coverage
from .framebuffer import FrameBuffer
from .geometry import Polyline, flatten_path
from .paint import GradientPaint, SolidPaint, make_paint
from .png import encode_png
from .rasterizer import Rasterizer
from .stroke import StrokeParams, stroke_outline

__all__ = [
    "Coverage",
    "FrameBuffer",
    "GradientPaint",
    "Polyline",
    "Rasterizer",
    "SolidPaint",
    "StrokeParams",
    "apply_alpha_policy",
    "encode_png",
    "flatten_alpha",
    "flatten_path",
    "make_paint",
    "rasterize_coverage",
    "stroke_outline",
]
