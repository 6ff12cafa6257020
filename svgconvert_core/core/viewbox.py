from __future__ import annotations

import logging
import math
import re

from .document import SVGDocument
from .errors import RenderWarning

LOGGER = logging.getLogger(__name__)

# Plain decimal numbers only: unit suffixes and padding make the size unusable for a guess.
_PLAIN_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def resolve_viewbox(
    document: SVGDocument,
    target_size: tuple[float, float],
    allow_fixing: bool = True,
) -> RenderWarning | None:
    """Fix up a missing viewBox and stamp the target size on the root element.

    Returns the warning raised by the fix-up, if any. Malformed width/height values never
    fail the render; they only make the viewBox unresolvable.
    """
    warning: RenderWarning | None = None
    if not document.has_viewbox_attribute:
        width = _parse_dimension(document.width_attribute)
        height = _parse_dimension(document.height_attribute)
        if allow_fixing and width is not None and height is not None:
            document.set_root_attribute("viewBox", f"0 0 {format_number(width)} {format_number(height)}")
            warning = RenderWarning.MISSING_VIEWBOX_GUESSED
        else:
            warning = RenderWarning.MISSING_VIEWBOX_UNRESOLVABLE
        LOGGER.debug("viewBox resolution: %s", warning.value)

    target_width, target_height = target_size
    document.set_root_attribute("width", format_number(target_width))
    document.set_root_attribute("height", format_number(target_height))
    return warning


def format_number(value: float) -> str:
    return repr(float(value))


def _parse_dimension(raw: str | None) -> float | None:
    if raw is None or _PLAIN_NUMBER_RE.fullmatch(raw) is None:
        return None
    value = float(raw)
    if not math.isfinite(value) or value <= 0:
        return None
    return value
