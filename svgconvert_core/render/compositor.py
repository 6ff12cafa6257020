from __future__ import annotations

import numpy as np


def flatten_alpha(pixels: np.ndarray, background: tuple[int, int, int] = (255, 255, 255)) -> np.ndarray:
    """Composite straight-alpha RGBA8 pixels over an opaque background. Alpha becomes 255."""
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(f"expected an HxWx4 buffer, got shape {pixels.shape}")
    if len(background) != 3:
        raise ValueError("background must have three channels")
    rgb = pixels[:, :, :3].astype(np.float32)
    alpha = pixels[:, :, 3:4].astype(np.float32) / 255.0
    bg = np.asarray(background, dtype=np.float32)
    out = np.empty_like(pixels, dtype=np.uint8)
    out[:, :, :3] = np.clip(np.rint(rgb * alpha + bg * (1.0 - alpha)), 0, 255).astype(np.uint8)
    out[:, :, 3] = 255
    return out


def apply_alpha_policy(
    pixels: np.ndarray,
    remove_alpha: bool,
    background: tuple[int, int, int] = (255, 255, 255),
) -> np.ndarray:
    if not remove_alpha:
        return pixels
    return flatten_alpha(pixels, background)
