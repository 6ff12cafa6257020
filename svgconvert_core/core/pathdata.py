from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import re
from typing import Iterable, Iterator


LOGGER = logging.getLogger(__name__)

Point = tuple[float, float]

# Segment tuples: (x, y) line, (cx, cy, x, y) quadratic, (c1x, c1y, c2x, c2y, x, y) cubic.
Segment = tuple[float, ...]

_KAPPA = 0.5522847498307936
_COMMANDS = "MmZzLlHhVvCcSsQqTtAa"
_SEPARATOR_RE = re.compile(r"[\s,]*")
_NUMBER_RE = re.compile(r"[-+]?(?:\d*\.\d+|\d+\.?)(?:[eE][-+]?\d+)?")


@dataclass
class Subpath:
    start: Point
    segments: list[Segment] = field(default_factory=list)
    closed: bool = False

    @property
    def end(self) -> Point:
        if not self.segments:
            return self.start
        last = self.segments[-1]
        return (last[-2], last[-1])


@dataclass
class PathData:
    subpaths: list[Subpath] = field(default_factory=list)

    def __iter__(self) -> Iterator[Subpath]:
        return iter(self.subpaths)

    def __bool__(self) -> bool:
        return any(sub.segments or sub.closed for sub in self.subpaths)

    def bounds(self) -> tuple[float, float, float, float] | None:
        """Bounding box of all anchor and control points as (x, y, width, height)."""
        xs: list[float] = []
        ys: list[float] = []
        for sub in self.subpaths:
            xs.append(sub.start[0])
            ys.append(sub.start[1])
            for seg in sub.segments:
                xs.extend(seg[0::2])
                ys.extend(seg[1::2])
        if not xs:
            return None
        return (min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


class PathBuilder:
    def __init__(self) -> None:
        self._path = PathData()
        self._current: Subpath | None = None
        self._pending_start: Point = (0.0, 0.0)

    @property
    def current_point(self) -> Point:
        if self._current is None:
            return self._pending_start
        return self._current.end

    def build(self) -> PathData:
        return self._path

    def move_to(self, x: float, y: float) -> None:
        self._current = Subpath(start=(x, y))
        self._path.subpaths.append(self._current)

    def line_to(self, x: float, y: float) -> None:
        self._ensure_subpath().segments.append((x, y))

    def quad_to(self, cx: float, cy: float, x: float, y: float) -> None:
        self._ensure_subpath().segments.append((cx, cy, x, y))

    def cubic_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> None:
        self._ensure_subpath().segments.append((c1x, c1y, c2x, c2y, x, y))

    def arc_to(
        self,
        rx: float,
        ry: float,
        rotation_deg: float,
        large_arc: bool,
        sweep: bool,
        x: float,
        y: float,
    ) -> None:
        """Append an SVG endpoint arc as cubic segments of at most 90 degrees."""
        x0, y0 = self.current_point
        if (x0, y0) == (x, y):
            return
        rx, ry = abs(rx), abs(ry)
        if rx == 0.0 or ry == 0.0:
            self.line_to(x, y)
            return
        phi = math.radians(rotation_deg)
        cos_p, sin_p = math.cos(phi), math.sin(phi)
        hx, hy = (x0 - x) / 2.0, (y0 - y) / 2.0
        x1p = cos_p * hx + sin_p * hy
        y1p = -sin_p * hx + cos_p * hy
        lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
        if lam > 1.0:
            s = math.sqrt(lam)
            rx *= s
            ry *= s
        num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
        den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
        coef = math.sqrt(max(0.0, num / den)) if den else 0.0
        if large_arc == sweep:
            coef = -coef
        cxp = coef * rx * y1p / ry
        cyp = -coef * ry * x1p / rx
        cx = cos_p * cxp - sin_p * cyp + (x0 + x) / 2.0
        cy = sin_p * cxp + cos_p * cyp + (y0 + y) / 2.0
        theta = _angle_between((1.0, 0.0), ((x1p - cxp) / rx, (y1p - cyp) / ry))
        delta = _angle_between(((x1p - cxp) / rx, (y1p - cyp) / ry), ((-x1p - cxp) / rx, (-y1p - cyp) / ry))
        if not sweep and delta > 0:
            delta -= 2.0 * math.pi
        elif sweep and delta < 0:
            delta += 2.0 * math.pi

        def point(angle: float) -> Point:
            ex, ey = rx * math.cos(angle), ry * math.sin(angle)
            return (cx + ex * cos_p - ey * sin_p, cy + ex * sin_p + ey * cos_p)

        def tangent(angle: float) -> Point:
            ex, ey = -rx * math.sin(angle), ry * math.cos(angle)
            return (ex * cos_p - ey * sin_p, ex * sin_p + ey * cos_p)

        count = max(1, math.ceil(abs(delta) / (math.pi / 2.0) - 1e-9))
        step = delta / count
        alpha = 4.0 / 3.0 * math.tan(step / 4.0)
        for i in range(count):
            a1 = theta + i * step
            a2 = a1 + step
            p1, d1 = point(a1), tangent(a1)
            p2, d2 = point(a2), tangent(a2)
            if i == count - 1:
                p2 = (x, y)
            self.cubic_to(
                p1[0] + alpha * d1[0],
                p1[1] + alpha * d1[1],
                p2[0] - alpha * d2[0],
                p2[1] - alpha * d2[1],
                p2[0],
                p2[1],
            )

    def close(self) -> None:
        if self._current is None:
            return
        self._current.closed = True
        start = self._current.start
        # Drawing after a close starts a new subpath at the same point.
        self._current = None
        self._pending_start = start

    def _ensure_subpath(self) -> Subpath:
        if self._current is None:
            self.move_to(*self._pending_start)
        assert self._current is not None
        return self._current


def parse_path_data(d: str | None) -> PathData:
    """Parse SVG path data. Rendering keeps everything before the first error."""
    builder = PathBuilder()
    if not d:
        return builder.build()
    scanner = _PathScanner(d)
    command: str | None = None
    last_control: Point | None = None
    last_kind = ""
    try:
        while not scanner.at_end():
            explicit = scanner.take_command()
            if explicit is not None:
                command = explicit
            elif command is None or command in "Zz":
                raise ValueError(f"expected a command at offset {scanner.pos}")
            assert command is not None
            relative = command.islower()
            kind = command.upper()
            cx, cy = builder.current_point
            ox, oy = (cx, cy) if relative else (0.0, 0.0)
            if kind == "Z":
                builder.close()
                last_control = None
            elif kind == "M":
                x, y = scanner.number() + ox, scanner.number() + oy
                builder.move_to(x, y)
                command = "l" if relative else "L"
                last_control = None
            elif kind == "L":
                builder.line_to(scanner.number() + ox, scanner.number() + oy)
                last_control = None
            elif kind == "H":
                builder.line_to(scanner.number() + ox, cy)
                last_control = None
            elif kind == "V":
                builder.line_to(cx, scanner.number() + oy)
                last_control = None
            elif kind == "C":
                c1 = (scanner.number() + ox, scanner.number() + oy)
                c2 = (scanner.number() + ox, scanner.number() + oy)
                end = (scanner.number() + ox, scanner.number() + oy)
                builder.cubic_to(*c1, *c2, *end)
                last_control = c2
            elif kind == "S":
                c1 = _reflect(last_control, (cx, cy)) if last_kind in ("C", "S") else (cx, cy)
                c2 = (scanner.number() + ox, scanner.number() + oy)
                end = (scanner.number() + ox, scanner.number() + oy)
                builder.cubic_to(*c1, *c2, *end)
                last_control = c2
            elif kind == "Q":
                c = (scanner.number() + ox, scanner.number() + oy)
                end = (scanner.number() + ox, scanner.number() + oy)
                builder.quad_to(*c, *end)
                last_control = c
            elif kind == "T":
                c = _reflect(last_control, (cx, cy)) if last_kind in ("Q", "T") else (cx, cy)
                end = (scanner.number() + ox, scanner.number() + oy)
                builder.quad_to(*c, *end)
                last_control = c
            elif kind == "A":
                rx, ry, rotation = scanner.number(), scanner.number(), scanner.number()
                large, sweep = scanner.flag(), scanner.flag()
                x, y = scanner.number() + ox, scanner.number() + oy
                builder.arc_to(rx, ry, rotation, large, sweep, x, y)
                last_control = None
            last_kind = kind
    except ValueError as exc:
        LOGGER.debug("path data truncated: %s", exc)
    return builder.build()


def rect_path(x: float, y: float, width: float, height: float, rx: float = 0.0, ry: float = 0.0) -> PathData:
    builder = PathBuilder()
    rx = min(max(rx, 0.0), width / 2.0)
    ry = min(max(ry, 0.0), height / 2.0)
    if rx == 0.0 or ry == 0.0:
        builder.move_to(x, y)
        builder.line_to(x + width, y)
        builder.line_to(x + width, y + height)
        builder.line_to(x, y + height)
        builder.close()
        return builder.build()
    builder.move_to(x + rx, y)
    builder.line_to(x + width - rx, y)
    builder.arc_to(rx, ry, 0.0, False, True, x + width, y + ry)
    builder.line_to(x + width, y + height - ry)
    builder.arc_to(rx, ry, 0.0, False, True, x + width - rx, y + height)
    builder.line_to(x + rx, y + height)
    builder.arc_to(rx, ry, 0.0, False, True, x, y + height - ry)
    builder.line_to(x, y + ry)
    builder.arc_to(rx, ry, 0.0, False, True, x + rx, y)
    builder.close()
    return builder.build()


def ellipse_path(cx: float, cy: float, rx: float, ry: float) -> PathData:
    builder = PathBuilder()
    kx, ky = rx * _KAPPA, ry * _KAPPA
    builder.move_to(cx + rx, cy)
    builder.cubic_to(cx + rx, cy + ky, cx + kx, cy + ry, cx, cy + ry)
    builder.cubic_to(cx - kx, cy + ry, cx - rx, cy + ky, cx - rx, cy)
    builder.cubic_to(cx - rx, cy - ky, cx - kx, cy - ry, cx, cy - ry)
    builder.cubic_to(cx + kx, cy - ry, cx + rx, cy - ky, cx + rx, cy)
    builder.close()
    return builder.build()


def points_path(points: Iterable[Point], closed: bool) -> PathData:
    builder = PathBuilder()
    pts = list(points)
    if not pts:
        return builder.build()
    builder.move_to(*pts[0])
    for x, y in pts[1:]:
        builder.line_to(x, y)
    if closed:
        builder.close()
    return builder.build()


def parse_points(value: str | None) -> list[Point]:
    if not value:
        return []
    numbers = [float(n) for n in _NUMBER_RE.findall(value)]
    # An odd trailing coordinate is dropped.
    return list(zip(numbers[0::2], numbers[1::2]))


class _PathScanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _skip(self) -> None:
        match = _SEPARATOR_RE.match(self.text, self.pos)
        if match is not None:
            self.pos = match.end()

    def at_end(self) -> bool:
        self._skip()
        return self.pos >= len(self.text)

    def take_command(self) -> str | None:
        self._skip()
        if self.pos < len(self.text) and self.text[self.pos] in _COMMANDS:
            self.pos += 1
            return self.text[self.pos - 1]
        return None

    def number(self) -> float:
        self._skip()
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is None:
            raise ValueError(f"expected a number at offset {self.pos}")
        self.pos = match.end()
        return float(match.group(0))

    def flag(self) -> bool:
        self._skip()
        if self.pos >= len(self.text) or self.text[self.pos] not in "01":
            raise ValueError(f"expected an arc flag at offset {self.pos}")
        self.pos += 1
        return self.text[self.pos - 1] == "1"


def _reflect(control: Point | None, about: Point) -> Point:
    if control is None:
        return about
    return (2.0 * about[0] - control[0], 2.0 * about[1] - control[1])


def _angle_between(u: Point, v: Point) -> float:
    return math.atan2(u[0] * v[1] - u[1] * v[0], u[0] * v[0] + u[1] * v[1])
