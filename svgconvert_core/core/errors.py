from __future__ import annotations

from enum import Enum


class SVGRenderingError(RuntimeError):
    """Base class for failures that abort a render."""

    description = "Unexpected error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        message = self.description if not detail else f"{self.description}: {detail}"
        super().__init__(message)


class InvalidSVGData(SVGRenderingError):
    description = "The SVG data is malformed"


class InvalidGeometry(SVGRenderingError):
    description = "The SVG geometry or the target size is degenerate"


class RenderingAlreadyInProgress(SVGRenderingError):
    description = (
        "A rendering is already in progress. An SVGRenderer only supports the rendering of one SVG at a time."
    )


class AlphaChannelRemovalFailed(SVGRenderingError):
    description = "Internal error, failed to remove alpha channel from the generated image"


class EncodingFailed(SVGRenderingError):
    description = "Internal error, getting png representation from the rendered image failed"


class InvalidState(SVGRenderingError):
    description = "Unexpected error"


class ConfigurationError(ValueError):
    pass


class RenderWarning(Enum):
    MISSING_VIEWBOX_GUESSED = "missingViewBoxGuessed"
    MISSING_VIEWBOX_UNRESOLVABLE = "missingViewBoxUnresolvable"

    @property
    def message(self) -> str:
        return _WARNING_MESSAGES[self]

    def __str__(self) -> str:
        return self.message


_WARNING_MESSAGES = {
    RenderWarning.MISSING_VIEWBOX_GUESSED: "Missing viewBox in svg file, one was guessed using width and height",
    RenderWarning.MISSING_VIEWBOX_UNRESOLVABLE: "Missing viewBox in svg file, the svg will not be resized",
}
