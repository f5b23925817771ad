"""Image export utilities for traced frames.

Buffers produced by the tracer store row 0 at the bottom of the image (the
display convention used by Taichi canvases). Image files store row 0 at the
top, so rows are flipped on export.

Supported formats:
    - PNG (8-bit sRGB via Pillow)

Example:
    >>> from spheretracer.preview.export import save_png
    >>> pixels = tracer.trace_frame(camera, scene, (640, 480))
    >>> save_png(pixels, "frame.png")
"""

from __future__ import annotations

import logging
import os

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def to_uint8(pixels: np.ndarray, *, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
    """Convert a tracer buffer to 8-bit colour.

    8-bit buffers (single-sample mode) are returned unchanged. Float buffers
    (accumulated radiance) are clamped to [0, 1], gamma-encoded and scaled.

    Args:
        pixels: Array of shape (H, W, 3), dtype uint8 or floating point.
        gamma: Gamma applied to float buffers (1.0 leaves values linear).

    Returns:
        8-bit array of shape (H, W, 3).

    Raises:
        ValueError: If the array is not (H, W, 3) or gamma is not positive.
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) buffer, got shape {pixels.shape}")
    if pixels.dtype == np.uint8:
        return pixels
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    linear = np.nan_to_num(pixels.astype(np.float32), nan=0.0, posinf=1.0, neginf=0.0)
    linear = np.clip(linear, 0.0, 1.0)
    encoded = np.power(linear, 1.0 / gamma)
    return (encoded * 255.0).astype(np.uint8)


def save_png(pixels: np.ndarray, filepath: str | os.PathLike, *, gamma: float = 1.0) -> None:
    """Save a tracer buffer as a PNG file.

    Args:
        pixels: Buffer returned by ``Tracer.trace_frame`` or ``Tracer.pixels``
            (row 0 at the bottom).
        filepath: Output file path (should end in .png).
        gamma: Gamma applied to float buffers.
    """
    image_uint8 = np.ascontiguousarray(np.flipud(to_uint8(pixels, gamma=gamma)))
    PILImage.fromarray(image_uint8, mode="RGB").save(filepath)
    logger.debug("Saved %dx%d frame to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)
