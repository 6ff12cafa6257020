from .errors import (
    AlphaChannelRemovalFailed,
    ConfigurationError,
    EncodingFailed,
    InvalidGeometry,
    InvalidState,
    InvalidSVGData,
    RenderWarning,
    RenderingAlreadyInProgress,
    SVGRenderingError,
)
from .config import RenderConfiguration, RenderTarget, load_configuration, parse_background
from .coordinates import Transform, ViewBox, compute_transform, parse_transform
from .pathdata import PathBuilder, PathData, Subpath, parse_path_data
from .styles import Color, LengthContext, Style, StyleSheet, parse_color, parse_length
from .document import (
    Circle,
    Ellipse,
    Group,
    Line,
    LinearGradient,
    Node,
    Path,
    Polygon,
    Polyline,
    RadialGradient,
    Rect,
    SVGDocument,
    parse_svg,
)
from .viewbox import resolve_viewbox

__all__ = [
    "AlphaChannelRemovalFailed",
    "Circle",
    "Color",
    "ConfigurationError",
    "Ellipse",
    "EncodingFailed",
    "Group",
    "InvalidGeometry",
    "InvalidState",
    "InvalidSVGData",
    "LengthContext",
    "Line",
    "LinearGradient",
    "Node",
    "Path",
    "PathBuilder",
    "PathData",
    "Polygon",
    "Polyline",
    "RadialGradient",
    "Rect",
    "RenderConfiguration",
    "RenderTarget",
    "RenderWarning",
    "RenderingAlreadyInProgress",
    "SVGDocument",
    "SVGRenderingError",
    "Style",
    "StyleSheet",
    "Subpath",
    "Transform",
    "ViewBox",
    "compute_transform",
    "load_configuration",
    "parse_background",
    "parse_color",
    "parse_length",
    "parse_path_data",
    "parse_svg",
    "parse_transform",
    "resolve_viewbox",
]
