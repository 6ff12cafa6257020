from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class FrameBuffer:
    """Premultiplied float RGBA canvas. Starts fully transparent."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be > 0")
        self.pixels = np.zeros((self.height, self.width, 4), dtype=np.float32)

    def blend(self, y0: int, coverage: np.ndarray, paint: np.ndarray) -> None:
        """Source-over `paint` (premultiplied) into rows `y0..` weighted by `coverage`."""
        rows = coverage.shape[0]
        if rows == 0:
            return
        src = np.asarray(paint, dtype=np.float32) * coverage[:, :, None].astype(np.float32)
        view = self.pixels[y0 : y0 + rows]
        view *= 1.0 - src[:, :, 3:4]
        view += src

    def composite(self, layer: "FrameBuffer", opacity: float = 1.0) -> None:
        if (layer.width, layer.height) != (self.width, self.height):
            raise ValueError("layer size does not match frame buffer")
        src = layer.pixels * np.float32(max(0.0, min(1.0, opacity)))
        self.pixels *= 1.0 - src[:, :, 3:4]
        self.pixels += src

    def to_rgba8(self) -> np.ndarray:
        """Straight-alpha uint8 copy of the canvas."""
        pixels = np.clip(self.pixels, 0.0, 1.0)
        alpha = pixels[:, :, 3:4]
        with np.errstate(divide="ignore", invalid="ignore"):
            rgb = np.where(alpha > 0.0, pixels[:, :, :3] / alpha, 0.0)
        out = np.empty((self.height, self.width, 4), dtype=np.uint8)
        out[:, :, :3] = np.clip(np.rint(rgb * 255.0), 0, 255).astype(np.uint8)
        out[:, :, 3] = np.clip(np.rint(alpha[:, :, 0] * 255.0), 0, 255).astype(np.uint8)
        return out

    def to_bytes(self) -> bytes:
        return self.to_rgba8().tobytes()
