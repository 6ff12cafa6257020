from __future__ import annotations

from dataclasses import dataclass
import math
import re

import numpy as np

from .errors import InvalidGeometry


_TRANSFORM_RE = re.compile(r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)")
_NUMBER_RE = re.compile(r"[-+]?(?:\d*\.\d+|\d+\.?)(?:[eE][-+]?\d+)?")


@dataclass(frozen=True)
class Transform:
    """2x3 affine map: `origin + x * basis_x + y * basis_y`."""

    origin: tuple[float, float] = (0.0, 0.0)
    basis_x: tuple[float, float] = (1.0, 0.0)
    basis_y: tuple[float, float] = (0.0, 1.0)

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def matrix(cls, a: float, b: float, c: float, d: float, e: float, f: float) -> "Transform":
        return cls(origin=(e, f), basis_x=(a, b), basis_y=(c, d))

    @classmethod
    def translate(cls, tx: float, ty: float = 0.0) -> "Transform":
        return cls(origin=(tx, ty))

    @classmethod
    def scale(cls, sx: float, sy: float | None = None) -> "Transform":
        return cls(basis_x=(sx, 0.0), basis_y=(0.0, sx if sy is None else sy))

    @classmethod
    def rotate(cls, degrees: float, cx: float = 0.0, cy: float = 0.0) -> "Transform":
        rad = math.radians(degrees)
        cos_a, sin_a = math.cos(rad), math.sin(rad)
        rotation = cls(basis_x=(cos_a, sin_a), basis_y=(-sin_a, cos_a))
        if cx == 0.0 and cy == 0.0:
            return rotation
        return cls.translate(cx, cy) @ rotation @ cls.translate(-cx, -cy)

    @classmethod
    def skew_x(cls, degrees: float) -> "Transform":
        return cls(basis_y=(math.tan(math.radians(degrees)), 1.0))

    @classmethod
    def skew_y(cls, degrees: float) -> "Transform":
        return cls(basis_x=(1.0, math.tan(math.radians(degrees))))

    def determinant(self) -> float:
        exx, exy = self.basis_x
        eyx, eyy = self.basis_y
        return (exx * eyy) - (exy * eyx)

    def is_identity(self) -> bool:
        return self == Transform()

    def __matmul__(self, other: "Transform") -> "Transform":
        """Compose so that `other` is applied first."""
        return Transform(
            origin=self.transform_point(other.origin),
            basis_x=self.transform_vector(other.basis_x),
            basis_y=self.transform_vector(other.basis_y),
        )

    def transform_point(self, point: tuple[float, float]) -> tuple[float, float]:
        x, y = point
        ox, oy = self.origin
        exx, exy = self.basis_x
        eyx, eyy = self.basis_y
        return (ox + x * exx + y * eyx, oy + x * exy + y * eyy)

    def transform_vector(self, vector: tuple[float, float]) -> tuple[float, float]:
        vx, vy = vector
        exx, exy = self.basis_x
        eyx, eyy = self.basis_y
        return (vx * exx + vy * eyx, vx * exy + vy * eyy)

    def apply(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        linear = np.array([self.basis_x, self.basis_y], dtype=np.float64)
        return pts @ linear + np.asarray(self.origin, dtype=np.float64)

    def inverted(self) -> "Transform":
        det = self.determinant()
        if abs(det) < 1e-12:
            raise ValueError("transform is singular")
        exx, exy = self.basis_x
        eyx, eyy = self.basis_y
        inv_x = (eyy / det, -exy / det)
        inv_y = (-eyx / det, exx / det)
        ox, oy = self.origin
        origin = (-(ox * inv_x[0] + oy * inv_y[0]), -(ox * inv_x[1] + oy * inv_y[1]))
        return Transform(origin=origin, basis_x=inv_x, basis_y=inv_y)

    def max_scale(self) -> float:
        """Largest singular value of the linear part."""
        a, b = self.basis_x
        c, d = self.basis_y
        s1 = a * a + b * b + c * c + d * d
        det = a * d - b * c
        disc = max(0.0, s1 * s1 - 4.0 * det * det)
        return math.sqrt((s1 + math.sqrt(disc)) / 2.0)


@dataclass(frozen=True)
class ViewBox:
    min_x: float
    min_y: float
    width: float
    height: float

    @classmethod
    def parse(cls, value: str | None) -> "ViewBox | None":
        if value is None:
            return None
        parts = value.replace(",", " ").split()
        if len(parts) != 4:
            return None
        try:
            min_x, min_y, width, height = (float(p) for p in parts)
        except ValueError:
            return None
        if not all(math.isfinite(v) for v in (min_x, min_y, width, height)):
            return None
        return cls(min_x, min_y, width, height)


def compute_transform(viewbox: ViewBox | None, width: int, height: int) -> Transform:
    """Map viewBox user space onto a `width` x `height` pixel canvas.

    X and Y scale independently; aspect ratio is not preserved. Without a usable
    viewBox the document keeps its natural size anchored at the origin.
    """
    if width <= 0 or height <= 0:
        raise InvalidGeometry(f"target size must be > 0, got {width}x{height}")
    if viewbox is None:
        return Transform.identity()
    if viewbox.width <= 0 or viewbox.height <= 0:
        raise InvalidGeometry(f"viewBox width/height must be > 0, got {viewbox.width}x{viewbox.height}")
    scale_x = width / viewbox.width
    scale_y = height / viewbox.height
    return Transform(
        origin=(-viewbox.min_x * scale_x, -viewbox.min_y * scale_y),
        basis_x=(scale_x, 0.0),
        basis_y=(0.0, scale_y),
    )


def parse_transform(value: str | None) -> Transform | None:
    """Parse an SVG `transform` list; unknown or malformed entries are ignored."""
    if not value:
        return None
    result = Transform.identity()
    found = False
    for name, raw_args in _TRANSFORM_RE.findall(value):
        args = [float(n) for n in _NUMBER_RE.findall(raw_args)]
        step = _transform_from_args(name, args)
        if step is None:
            continue
        result = result @ step
        found = True
    return result if found else None


def _transform_from_args(name: str, args: list[float]) -> Transform | None:
    if name == "matrix" and len(args) == 6:
        return Transform.matrix(*args)
    if name == "translate" and len(args) in (1, 2):
        return Transform.translate(*args)
    if name == "scale" and len(args) in (1, 2):
        return Transform.scale(*args)
    if name == "rotate" and len(args) in (1, 3):
        return Transform.rotate(*args)
    if name == "skewX" and len(args) == 1:
        return Transform.skew_x(args[0])
    if name == "skewY" and len(args) == 1:
        return Transform.skew_y(args[0])
    return None
