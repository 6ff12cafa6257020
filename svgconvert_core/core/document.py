from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterator, Union
import xml.etree.ElementTree as ET

from .coordinates import Transform, ViewBox, parse_transform
from .errors import InvalidSVGData
from .pathdata import PathData, ellipse_path, parse_path_data, parse_points, points_path, rect_path
from .styles import (
    Color,
    LengthContext,
    STYLE_PROPERTIES,
    Style,
    StyleSheet,
    parse_color,
    parse_declarations,
    parse_length,
    resolve_style,
)

LOGGER = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
XLINK_NAMESPACE = "http://www.w3.org/1999/xlink"
ET.register_namespace("", SVG_NAMESPACE)
ET.register_namespace("xlink", XLINK_NAMESPACE)

_NON_RENDERING = {
    "defs",
    "linearGradient",
    "radialGradient",
    "stop",
    "style",
    "title",
    "desc",
    "metadata",
    "clipPath",
    "mask",
    "pattern",
    "filter",
    "marker",
    "symbol",
    "script",
}
_CONTAINERS = {"g", "a", "switch"}
_MAX_USE_DEPTH = 16


@dataclass(eq=False, kw_only=True)
class Node:
    element_id: str | None = None
    style: Style = field(default_factory=Style)
    transform: Transform | None = None
    parent: "Group | None" = field(default=None, repr=False)

    def to_path(self) -> PathData:
        return PathData()


@dataclass(eq=False, kw_only=True)
class Group(Node):
    children: list[Node] = field(default_factory=list)

    def append(self, child: Node) -> None:
        if child.parent is not None:
            raise ValueError("node already belongs to a group")
        child.parent = self
        self.children.append(child)

    def walk(self) -> Iterator[Node]:
        for child in self.children:
            yield child
            if isinstance(child, Group):
                yield from child.walk()


@dataclass(eq=False, kw_only=True)
class Path(Node):
    data: PathData = field(default_factory=PathData)

    def to_path(self) -> PathData:
        return self.data


@dataclass(eq=False, kw_only=True)
class Rect(Node):
    x: float = 0.0
    y: float = 0.0
    width: float
    height: float
    rx: float = 0.0
    ry: float = 0.0

    def to_path(self) -> PathData:
        return rect_path(self.x, self.y, self.width, self.height, self.rx, self.ry)


@dataclass(eq=False, kw_only=True)
class Circle(Node):
    cx: float = 0.0
    cy: float = 0.0
    r: float

    def to_path(self) -> PathData:
        return ellipse_path(self.cx, self.cy, self.r, self.r)


@dataclass(eq=False, kw_only=True)
class Ellipse(Node):
    cx: float = 0.0
    cy: float = 0.0
    rx: float
    ry: float

    def to_path(self) -> PathData:
        return ellipse_path(self.cx, self.cy, self.rx, self.ry)


@dataclass(eq=False, kw_only=True)
class Line(Node):
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0

    def to_path(self) -> PathData:
        return points_path([(self.x1, self.y1), (self.x2, self.y2)], closed=False)


@dataclass(eq=False, kw_only=True)
class Polyline(Node):
    points: list[tuple[float, float]] = field(default_factory=list)

    def to_path(self) -> PathData:
        return points_path(self.points, closed=False)


@dataclass(eq=False, kw_only=True)
class Polygon(Polyline):
    def to_path(self) -> PathData:
        return points_path(self.points, closed=True)


@dataclass(frozen=True)
class GradientStop:
    offset: float
    color: Color
    opacity: float = 1.0


@dataclass(frozen=True, kw_only=True)
class Gradient:
    element_id: str
    stops: tuple[GradientStop, ...]
    units: str = "objectBoundingBox"
    transform: Transform | None = None
    spread: str = "pad"


@dataclass(frozen=True, kw_only=True)
class LinearGradient(Gradient):
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 1.0
    y2: float = 0.0


@dataclass(frozen=True, kw_only=True)
class RadialGradient(Gradient):
    cx: float = 0.5
    cy: float = 0.5
    r: float = 0.5
    fx: float = 0.5
    fy: float = 0.5


PaintServer = Union[LinearGradient, RadialGradient]


@dataclass(eq=False)
class SVGDocument:
    """Parsed SVG: the verbatim XML root plus a typed, style-resolved node tree."""

    root_element: ET.Element
    tree: Group
    paint_servers: dict[str, PaintServer] = field(default_factory=dict)

    @property
    def width_attribute(self) -> str | None:
        return self.root_element.get("width")

    @property
    def height_attribute(self) -> str | None:
        return self.root_element.get("height")

    @property
    def has_viewbox_attribute(self) -> bool:
        return self.root_element.get("viewBox") is not None

    @property
    def viewbox(self) -> ViewBox | None:
        return ViewBox.parse(self.root_element.get("viewBox"))

    def set_root_attribute(self, name: str, value: str) -> None:
        self.root_element.set(name, value)

    def to_xml(self) -> bytes:
        return ET.tostring(self.root_element, encoding="utf-8", xml_declaration=True)


def parse_svg(data: bytes | str) -> SVGDocument:
    """Parse SVG markup. Raises InvalidSVGData for malformed XML or a non-`svg` root."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise InvalidSVGData(str(exc)) from exc
    if local_name(root.tag) != "svg":
        raise InvalidSVGData(f"root element is <{local_name(root.tag)}>, expected <svg>")
    return _DocumentBuilder(root).build()


def local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


class _DocumentBuilder:
    def __init__(self, root: ET.Element) -> None:
        self._root = root
        self._ids: dict[str, ET.Element] = {}
        self._sheet = StyleSheet()
        for elem in root.iter():
            element_id = elem.get("id")
            if element_id and element_id not in self._ids:
                self._ids[element_id] = elem
            if local_name(elem.tag) == "style" and elem.text:
                self._sheet.add_css(elem.text)
        self._context = _root_length_context(root)

    def build(self) -> SVGDocument:
        style = resolve_style(Style(), self._properties(self._root), self._context)
        tree = Group(element_id=self._root.get("id"), style=style)
        self._build_children(self._root, tree, use_stack=())
        servers: dict[str, PaintServer] = {}
        for element_id, elem in self._ids.items():
            if local_name(elem.tag) in ("linearGradient", "radialGradient"):
                servers[element_id] = self._build_gradient(elem)
        return SVGDocument(root_element=self._root, tree=tree, paint_servers=servers)

    def _properties(self, elem: ET.Element) -> dict[str, str]:
        props = {name: elem.attrib[name] for name in STYLE_PROPERTIES if name in elem.attrib}
        classes = (elem.get("class") or "").split()
        props.update(self._sheet.declarations_for(local_name(elem.tag), elem.get("id"), classes))
        props.update(parse_declarations(elem.get("style")))
        return props

    def _build_children(self, elem: ET.Element, group: Group, use_stack: tuple[str, ...]) -> None:
        for child in elem:
            node = self._build_node(child, group.style, use_stack)
            if node is None:
                continue
            group.append(node)
            if local_name(elem.tag) == "switch":
                break

    def _build_node(self, elem: ET.Element, parent_style: Style, use_stack: tuple[str, ...]) -> Node | None:
        tag = local_name(elem.tag)
        if tag in _NON_RENDERING or not tag:
            return None
        style = resolve_style(parent_style, self._properties(elem), self._context)
        if not style.display:
            return None
        transform = parse_transform(elem.get("transform"))
        common = {"element_id": elem.get("id"), "style": style, "transform": transform}
        ctx = self._context

        if tag in _CONTAINERS:
            group = Group(**common)
            self._build_children(elem, group, use_stack)
            return group
        if tag == "svg":
            return self._build_nested_svg(elem, common, use_stack)
        if tag == "use":
            return self._build_use(elem, common, use_stack)
        if tag == "rect":
            width = _length(elem, "width", ctx, "x")
            height = _length(elem, "height", ctx, "y")
            if width <= 0 or height <= 0:
                return None
            rx = parse_length(elem.get("rx"), ctx, "x")
            ry = parse_length(elem.get("ry"), ctx, "y")
            if rx is None:
                rx = ry
            if ry is None:
                ry = rx
            return Rect(
                x=_length(elem, "x", ctx, "x"),
                y=_length(elem, "y", ctx, "y"),
                width=width,
                height=height,
                rx=max(0.0, rx or 0.0),
                ry=max(0.0, ry or 0.0),
                **common,
            )
        if tag == "circle":
            r = _length(elem, "r", ctx, "diagonal")
            if r <= 0:
                return None
            return Circle(cx=_length(elem, "cx", ctx, "x"), cy=_length(elem, "cy", ctx, "y"), r=r, **common)
        if tag == "ellipse":
            rx = _length(elem, "rx", ctx, "x")
            ry = _length(elem, "ry", ctx, "y")
            if rx <= 0 or ry <= 0:
                return None
            return Ellipse(cx=_length(elem, "cx", ctx, "x"), cy=_length(elem, "cy", ctx, "y"), rx=rx, ry=ry, **common)
        if tag == "line":
            return Line(
                x1=_length(elem, "x1", ctx, "x"),
                y1=_length(elem, "y1", ctx, "y"),
                x2=_length(elem, "x2", ctx, "x"),
                y2=_length(elem, "y2", ctx, "y"),
                **common,
            )
        if tag == "polyline":
            return Polyline(points=parse_points(elem.get("points")), **common)
        if tag == "polygon":
            return Polygon(points=parse_points(elem.get("points")), **common)
        if tag == "path":
            return Path(data=parse_path_data(elem.get("d")), **common)
        LOGGER.debug("skipping unsupported element <%s>", tag)
        return None

    def _build_nested_svg(self, elem: ET.Element, common: dict, use_stack: tuple[str, ...]) -> Group:
        ctx = self._context
        x = _length(elem, "x", ctx, "x")
        y = _length(elem, "y", ctx, "y")
        placement = Transform.translate(x, y)
        viewbox = ViewBox.parse(elem.get("viewBox"))
        width = parse_length(elem.get("width", "100%"), ctx, "x")
        height = parse_length(elem.get("height", "100%"), ctx, "y")
        if viewbox is not None and viewbox.width > 0 and viewbox.height > 0 and width and height:
            # Nested viewports keep the default xMidYMid meet alignment.
            scale = min(width / viewbox.width, height / viewbox.height)
            offset_x = x + (width - viewbox.width * scale) / 2.0 - viewbox.min_x * scale
            offset_y = y + (height - viewbox.height * scale) / 2.0 - viewbox.min_y * scale
            placement = Transform(origin=(offset_x, offset_y), basis_x=(scale, 0.0), basis_y=(0.0, scale))
        own = common.get("transform")
        common = dict(common, transform=placement if own is None else own @ placement)
        group = Group(**common)
        self._build_children(elem, group, use_stack)
        return group

    def _build_use(self, elem: ET.Element, common: dict, use_stack: tuple[str, ...]) -> Group | None:
        href = elem.get("href") or elem.get(f"{{{XLINK_NAMESPACE}}}href") or ""
        target_id = href[1:] if href.startswith("#") else ""
        target = self._ids.get(target_id)
        if target is None or target_id in use_stack or len(use_stack) >= _MAX_USE_DEPTH:
            LOGGER.debug("skipping <use> with unresolvable reference %r", href)
            return None
        ctx = self._context
        offset = Transform.translate(_length(elem, "x", ctx, "x"), _length(elem, "y", ctx, "y"))
        own = common.get("transform")
        group = Group(**dict(common, transform=offset if own is None else own @ offset))
        stack = use_stack + (target_id,)
        if local_name(target.tag) == "symbol":
            self._build_children(target, group, stack)
        else:
            node = self._build_node(target, group.style, stack)
            if node is not None:
                group.append(node)
        return group

    def _build_gradient(self, elem: ET.Element) -> PaintServer:
        element_id = elem.get("id") or ""
        attrs, stop_source = self._gradient_chain(elem)
        tag = local_name(elem.tag)
        units = attrs.get("gradientUnits", "objectBoundingBox")
        if units not in ("objectBoundingBox", "userSpaceOnUse"):
            units = "objectBoundingBox"
        spread = attrs.get("spreadMethod", "pad")
        if spread not in ("pad", "reflect", "repeat"):
            spread = "pad"
        common = {
            "element_id": element_id,
            "stops": self._gradient_stops(stop_source),
            "units": units,
            "transform": parse_transform(attrs.get("gradientTransform")),
            "spread": spread,
        }

        ctx = LengthContext(1.0, 1.0) if units == "objectBoundingBox" else self._context

        def coord(name: str, default: str, axis: str) -> float:
            value = parse_length(attrs.get(name, default), ctx, axis)
            if value is None:
                value = parse_length(default, ctx, axis)
            return value or 0.0

        if tag == "linearGradient":
            return LinearGradient(
                x1=coord("x1", "0%", "x"),
                y1=coord("y1", "0%", "y"),
                x2=coord("x2", "100%", "x"),
                y2=coord("y2", "0%", "y"),
                **common,
            )
        cx = coord("cx", "50%", "x")
        cy = coord("cy", "50%", "y")
        return RadialGradient(
            cx=cx,
            cy=cy,
            r=coord("r", "50%", "diagonal"),
            fx=coord("fx", attrs.get("cx", "50%"), "x"),
            fy=coord("fy", attrs.get("cy", "50%"), "y"),
            **common,
        )

    def _gradient_chain(self, elem: ET.Element) -> tuple[dict[str, str], ET.Element | None]:
        """Merge attributes along the href chain; stops come from the first gradient that has any."""
        attrs: dict[str, str] = {}
        stop_source: ET.Element | None = None
        current: ET.Element | None = elem
        visited = {elem.get("id") or ""}
        while current is not None:
            for name, value in current.attrib.items():
                attrs.setdefault(local_name(name), value)
            if stop_source is None and any(local_name(child.tag) == "stop" for child in current):
                stop_source = current
            href = current.get("href") or current.get(f"{{{XLINK_NAMESPACE}}}href") or ""
            next_id = href[1:] if href.startswith("#") else ""
            if not next_id or next_id in visited:
                break
            visited.add(next_id)
            current = self._ids.get(next_id)
            if current is not None and local_name(current.tag) not in ("linearGradient", "radialGradient"):
                break
        return attrs, stop_source

    def _gradient_stops(self, source: ET.Element | None) -> tuple[GradientStop, ...]:
        if source is None:
            return ()
        stops: list[GradientStop] = []
        last_offset = 0.0
        for child in source:
            if local_name(child.tag) != "stop":
                continue
            props = {key: child.attrib[key] for key in ("stop-color", "stop-opacity") if key in child.attrib}
            props.update(parse_declarations(child.get("style")))
            offset = _parse_offset(child.get("offset", "0"))
            last_offset = max(last_offset, offset)
            try:
                color = parse_color(props.get("stop-color", "black"))
            except ValueError:
                color = Color(0, 0, 0)
            try:
                opacity = max(0.0, min(1.0, float(props.get("stop-opacity", "1"))))
            except ValueError:
                opacity = 1.0
            stops.append(GradientStop(offset=last_offset, color=color, opacity=opacity))
        return tuple(stops)


def _root_length_context(root: ET.Element) -> LengthContext:
    viewbox = ViewBox.parse(root.get("viewBox"))
    if viewbox is not None and viewbox.width > 0 and viewbox.height > 0:
        return LengthContext(viewbox.width, viewbox.height)
    width = parse_length(root.get("width"))
    height = parse_length(root.get("height"))
    return LengthContext(width if width and width > 0 else 100.0, height if height and height > 0 else 100.0)


def _length(elem: ET.Element, name: str, ctx: LengthContext, axis: str) -> float:
    value = parse_length(elem.get(name), ctx, axis)
    return 0.0 if value is None else value


def _parse_offset(raw: str) -> float:
    text = raw.strip()
    try:
        value = float(text[:-1]) / 100.0 if text.endswith("%") else float(text)
    except ValueError:
        return 0.0
    return max(0.0, min(1.0, value))
