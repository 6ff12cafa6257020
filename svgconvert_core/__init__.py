from svgconvert_core.core.session import RenderResult, SVGRenderer, SessionState
from svgconvert_core.core.config import RenderConfiguration, RenderTarget, load_configuration
from svgconvert_core.core.errors import (
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

__all__ = [
    "AlphaChannelRemovalFailed",
    "ConfigurationError",
    "EncodingFailed",
    "InvalidGeometry",
    "InvalidState",
    "InvalidSVGData",
    "RenderConfiguration",
    "RenderResult",
    "RenderTarget",
    "RenderWarning",
    "RenderingAlreadyInProgress",
    "SVGRenderer",
    "SVGRenderingError",
    "SessionState",
    "load_configuration",
]
