from __future__ import annotations

from dataclasses import dataclass, field, replace
import math
import re
from typing import Iterable, Mapping, Union

from PIL import ImageColor


_LENGTH_RE = re.compile(r"^\s*([-+]?(?:\d*\.\d+|\d+\.?)(?:[eE][-+]?\d+)?)\s*(px|pt|pc|mm|cm|in|em|ex|%)?\s*$")
_URL_RE = re.compile(r"^url\(\s*['\"]?#([^)'\"]+)['\"]?\s*\)\s*(.*)$")
_RGBA_FLOAT_RE = re.compile(r"^rgba\(\s*([^,]+),\s*([^,]+),\s*([^,]+),\s*([0-9.]+%?)\s*\)$")
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
_RULE_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_SIMPLE_SELECTOR_RE = re.compile(r"^(\*|[A-Za-z][\w-]*)?((?:[.#][\w-]+)*)$")

# CSS px per unit, 96 dpi.
_UNIT_SCALE = {
    None: 1.0,
    "px": 1.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "mm": 96.0 / 25.4,
    "cm": 96.0 / 2.54,
    "in": 96.0,
}
DEFAULT_FONT_SIZE = 16.0

INHERITED_PROPERTIES = (
    "fill",
    "fill-opacity",
    "fill-rule",
    "stroke",
    "stroke-width",
    "stroke-opacity",
    "stroke-linecap",
    "stroke-linejoin",
    "stroke-miterlimit",
    "stroke-dasharray",
    "stroke-dashoffset",
    "color",
    "visibility",
)
STYLE_PROPERTIES = INHERITED_PROPERTIES + ("opacity", "display")


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    alpha: float = 1.0

    def premultiplied(self, opacity: float = 1.0) -> tuple[float, float, float, float]:
        a = max(0.0, min(1.0, self.alpha * opacity))
        return (self.r / 255.0 * a, self.g / 255.0 * a, self.b / 255.0 * a, a)


@dataclass(frozen=True)
class PaintReference:
    """`url(#id)` paint with an optional fallback color."""

    element_id: str
    fallback: Color | None = None


Paint = Union[Color, PaintReference]
BLACK = Color(0, 0, 0)


@dataclass(frozen=True)
class LengthContext:
    viewport_width: float = 100.0
    viewport_height: float = 100.0
    font_size: float = DEFAULT_FONT_SIZE

    @property
    def diagonal(self) -> float:
        return math.sqrt((self.viewport_width**2 + self.viewport_height**2) / 2.0)


@dataclass(frozen=True)
class Style:
    fill: Paint | None = BLACK
    fill_opacity: float = 1.0
    fill_rule: str = "nonzero"
    stroke: Paint | None = None
    stroke_width: float = 1.0
    stroke_opacity: float = 1.0
    stroke_linecap: str = "butt"
    stroke_linejoin: str = "miter"
    stroke_miterlimit: float = 4.0
    stroke_dasharray: tuple[float, ...] = ()
    stroke_dashoffset: float = 0.0
    color: Color = BLACK
    visible: bool = True
    opacity: float = 1.0
    display: bool = True

    def inherit(self) -> "Style":
        """Child starting point: inherited properties kept, the rest reset."""
        return replace(self, opacity=1.0, display=True)


@dataclass(frozen=True)
class _Rule:
    tag: str | None
    element_id: str | None
    classes: tuple[str, ...]
    specificity: tuple[int, int, int]
    order: int
    declarations: Mapping[str, str]

    def matches(self, tag: str, element_id: str | None, classes: Iterable[str]) -> bool:
        if self.tag is not None and self.tag != tag:
            return False
        if self.element_id is not None and self.element_id != element_id:
            return False
        return set(self.classes).issubset(classes)


@dataclass
class StyleSheet:
    """Simple selectors only: `*`, `tag`, `.class`, `#id` and compounds of those."""

    rules: list[_Rule] = field(default_factory=list)

    def add_css(self, text: str) -> None:
        text = _COMMENT_RE.sub("", text)
        for selectors, body in _RULE_RE.findall(text):
            if selectors.strip().startswith("@"):
                continue
            declarations = parse_declarations(body)
            if not declarations:
                continue
            for selector in selectors.split(","):
                rule = _parse_selector(selector.strip(), len(self.rules), declarations)
                if rule is not None:
                    self.rules.append(rule)

    def declarations_for(self, tag: str, element_id: str | None, classes: Iterable[str]) -> dict[str, str]:
        class_set = set(classes)
        matched = [rule for rule in self.rules if rule.matches(tag, element_id, class_set)]
        matched.sort(key=lambda rule: (rule.specificity, rule.order))
        merged: dict[str, str] = {}
        for rule in matched:
            merged.update(rule.declarations)
        return merged


def parse_declarations(text: str | None) -> dict[str, str]:
    result: dict[str, str] = {}
    if not text:
        return result
    for chunk in text.split(";"):
        if ":" not in chunk:
            continue
        name, value = chunk.split(":", 1)
        name = name.strip().lower()
        value = value.replace("!important", "").strip()
        if name and value:
            result[name] = value
    return result


def parse_length(value: str | None, context: LengthContext | None = None, axis: str = "x") -> float | None:
    """Parse an SVG length into user units; `None` when absent or malformed."""
    if value is None:
        return None
    match = _LENGTH_RE.match(value)
    if match is None:
        return None
    number = float(match.group(1))
    unit = match.group(2)
    ctx = context or LengthContext()
    if unit == "%":
        if axis == "x":
            base = ctx.viewport_width
        elif axis == "y":
            base = ctx.viewport_height
        else:
            base = ctx.diagonal
        return number * base / 100.0
    if unit == "em":
        return number * ctx.font_size
    if unit == "ex":
        return number * ctx.font_size / 2.0
    return number * _UNIT_SCALE[unit]


def parse_color(value: str) -> Color:
    """Parse a CSS color. Raises ValueError for unknown values."""
    text = value.strip()
    lowered = text.lower()
    if lowered == "transparent":
        return Color(0, 0, 0, 0.0)
    rgba = _RGBA_FLOAT_RE.match(lowered)
    if rgba is not None:
        base = ImageColor.getrgb(f"rgb({rgba.group(1)},{rgba.group(2)},{rgba.group(3)})")
        raw_alpha = rgba.group(4)
        alpha = float(raw_alpha[:-1]) / 100.0 if raw_alpha.endswith("%") else float(raw_alpha)
        return Color(base[0], base[1], base[2], max(0.0, min(1.0, alpha)))
    rgb = ImageColor.getrgb(lowered)
    if len(rgb) == 4:
        return Color(rgb[0], rgb[1], rgb[2], rgb[3] / 255.0)
    return Color(rgb[0], rgb[1], rgb[2])


def parse_paint(value: str, parent: Paint | None, current_color: Color) -> Paint | None:
    text = value.strip()
    if text == "none":
        return None
    if text == "inherit":
        return parent
    if text == "currentColor":
        return current_color
    match = _URL_RE.match(text)
    if match is not None:
        fallback_text = match.group(2).strip()
        fallback: Color | None = None
        if fallback_text and fallback_text != "none":
            fallback = current_color if fallback_text == "currentColor" else parse_color(fallback_text)
        return PaintReference(match.group(1).strip(), fallback)
    return parse_color(text)


def resolve_style(parent: Style, properties: Mapping[str, str], context: LengthContext) -> Style:
    """Apply declared properties on top of the inherited parent style.

    Malformed values are ignored and the inherited value stays in effect.
    """
    style = parent.inherit()
    changes: dict[str, object] = {}
    color = style.color
    if "color" in properties:
        raw = properties["color"]
        if raw.strip() != "inherit":
            try:
                color = parse_color(raw)
            except ValueError:
                pass
        changes["color"] = color
    for name, value in properties.items():
        value = value.strip()
        if name == "color" or (value == "inherit" and name in INHERITED_PROPERTIES):
            continue
        try:
            changes.update(_property_change(name, value, style, color, context))
        except ValueError:
            continue
    return replace(style, **changes)


def _property_change(name: str, value: str, style: Style, color: Color, context: LengthContext) -> dict[str, object]:
    if name == "fill":
        return {"fill": parse_paint(value, style.fill, color)}
    if name == "stroke":
        return {"stroke": parse_paint(value, style.stroke, color)}
    if name in ("fill-opacity", "stroke-opacity", "opacity"):
        return {name.replace("-", "_"): _parse_opacity(value)}
    if name == "fill-rule":
        if value not in ("nonzero", "evenodd"):
            raise ValueError(value)
        return {"fill_rule": value}
    if name == "stroke-width":
        width = parse_length(value, context, axis="diagonal")
        if width is None or width < 0:
            raise ValueError(value)
        return {"stroke_width": width}
    if name == "stroke-linecap":
        if value not in ("butt", "round", "square"):
            raise ValueError(value)
        return {"stroke_linecap": value}
    if name == "stroke-linejoin":
        if value not in ("miter", "round", "bevel", "miter-clip", "arcs"):
            raise ValueError(value)
        return {"stroke_linejoin": "miter" if value in ("miter-clip", "arcs") else value}
    if name == "stroke-miterlimit":
        limit = float(value)
        if limit < 1.0:
            raise ValueError(value)
        return {"stroke_miterlimit": limit}
    if name == "stroke-dasharray":
        return {"stroke_dasharray": _parse_dasharray(value, context)}
    if name == "stroke-dashoffset":
        offset = parse_length(value, context, axis="diagonal")
        if offset is None:
            raise ValueError(value)
        return {"stroke_dashoffset": offset}
    if name == "visibility":
        return {"visible": value not in ("hidden", "collapse")}
    if name == "display":
        return {"display": value != "none"}
    return {}


def _parse_opacity(value: str) -> float:
    text = value.strip()
    number = float(text[:-1]) / 100.0 if text.endswith("%") else float(text)
    return max(0.0, min(1.0, number))


def _parse_dasharray(value: str, context: LengthContext) -> tuple[float, ...]:
    if value == "none":
        return ()
    dashes: list[float] = []
    for part in value.replace(",", " ").split():
        length = parse_length(part, context, axis="diagonal")
        if length is None or length < 0:
            raise ValueError(value)
        dashes.append(length)
    if not dashes or sum(dashes) <= 0:
        return ()
    if len(dashes) % 2:
        dashes = dashes * 2
    return tuple(dashes)


def _parse_selector(selector: str, order: int, declarations: Mapping[str, str]) -> _Rule | None:
    match = _SIMPLE_SELECTOR_RE.match(selector)
    if not selector or match is None:
        return None
    tag = match.group(1)
    if tag == "*":
        tag = None
    element_id: str | None = None
    classes: list[str] = []
    for part in re.findall(r"[.#][\w-]+", match.group(2)):
        if part[0] == "#":
            element_id = part[1:]
        else:
            classes.append(part[1:])
    specificity = (1 if element_id else 0, len(classes), 1 if tag else 0)
    return _Rule(
        tag=tag,
        element_id=element_id,
        classes=tuple(classes),
        specificity=specificity,
        order=order,
        declarations=dict(declarations),
    )
