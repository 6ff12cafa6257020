from __future__ import annotations

import io

import numpy as np
from PIL import Image

from svgconvert_core.core.errors import EncodingFailed


def encode_png(pixels: np.ndarray, include_alpha: bool = True, compress_level: int = 6) -> bytes:
    """Encode an HxWx4 uint8 buffer as PNG; RGB when `include_alpha` is false."""
    arr = np.ascontiguousarray(pixels, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise EncodingFailed(f"expected an HxWx4 buffer, got shape {arr.shape}")
    if not include_alpha:
        arr = np.ascontiguousarray(arr[:, :, :3])
    buffer = io.BytesIO()
    try:
        Image.fromarray(arr).save(buffer, format="PNG", compress_level=compress_level)
    except (OSError, ValueError, TypeError) as exc:
        raise EncodingFailed(str(exc)) from exc
    return buffer.getvalue()
